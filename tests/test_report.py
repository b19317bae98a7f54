"""
goal: CSV schema, JSON output and aggregate reports stay stable.
"""

from __future__ import annotations

import csv
import io
import json
from datetime import datetime, timedelta, timezone

import pytest

from lexis.output.report import (
    CSV_COLUMNS,
    LexisReportGenerator,
    export_csv,
    format_timestamp,
    write_csv,
)

FIXED = datetime(2024, 1, 2, 3, 4, 5, 678901, tzinfo=timezone.utc)


@pytest.fixture
def results(engine, malicious_script, benign_script):
    return [
        engine.analyze(malicious_script, "dropper.ps1").model_copy(update={"timestamp": FIXED}),
        engine.analyze(benign_script, "services.ps1").model_copy(update={"timestamp": FIXED}),
    ]


def test_timestamp_format():
    assert format_timestamp(FIXED) == "2024-01-02T03:04:05.678Z"
    assert format_timestamp(datetime(2024, 1, 2, 3, 4, 5)) == "2024-01-02T03:04:05.000Z"


def test_csv_columns_and_rows(results):
    rows = list(csv.reader(io.StringIO(export_csv(results))))
    assert tuple(rows[0]) == CSV_COLUMNS
    assert len(CSV_COLUMNS) == 22
    assert len(rows) == 3

    dropper = dict(zip(CSV_COLUMNS, rows[1]))
    assert dropper["Filename"] == "dropper.ps1"
    assert dropper["Classification"] == "malicious"
    assert dropper["Base64 Count"] == "4"
    assert dropper["Timestamp"] == "2024-01-02T03:04:05.678Z"
    assert "Encoded Payload" in dropper["Threat Categories"].split("; ")
    assert len(dropper["Confidence"].split(".")[1]) == 3
    assert len(dropper["Average Line Length"].split(".")[1]) == 2


def test_csv_uses_newline_terminator(results):
    text = export_csv(results)
    assert "\r\n" not in text
    assert text.endswith("\n")


def test_write_csv(tmp_path, results):
    path = write_csv(results, tmp_path / "out" / "results.csv")
    assert open(path, encoding="utf-8").readline().startswith("Filename,Classification,")


def test_json_single_and_many(results):
    single = json.loads(LexisReportGenerator.to_json(results[:1]))
    assert single["filename"] == "dropper.ps1"
    assert single["features"]["base64_count"] == 4
    assert single["classification"] == "malicious"

    many = json.loads(LexisReportGenerator.to_json(results))
    assert [r["filename"] for r in many] == ["dropper.ps1", "services.ps1"]

    wrapped = json.loads(LexisReportGenerator.to_json(results[:1], as_array=True))
    assert [r["filename"] for r in wrapped] == ["dropper.ps1"]
    assert json.loads(LexisReportGenerator.to_json([], as_array=True)) == []


def test_build_report_summary(results):
    data = LexisReportGenerator().build_report(results, now=FIXED)
    summary = data["summary"]
    assert summary["total_analyzed"] == 2
    assert summary["malicious_count"] == 1
    assert summary["benign_count"] == 1
    assert summary["total_base64_strings"] == 4
    assert summary["total_network_indicators"] == 1
    assert data["network_indicators"]["urls"] == ["http://evil.example/stage2.ps1"]
    assert data["threat_categories"]["Encoded Payload"] == 1
    assert [s["filename"] for s in data["high_risk_scripts"]] == ["dropper.ps1"]
    assert data["recommendations"][0].startswith("CRITICAL: 1 malicious")
    assert data["detailed_results"] == []


def test_build_report_filters(results):
    generator = LexisReportGenerator()
    stale = results[0].model_copy(update={"timestamp": FIXED - timedelta(days=10)})
    mixed = [stale, results[1]]

    assert generator.build_report(mixed, date_range="7d", now=FIXED)["summary"]["total_analyzed"] == 1
    assert generator.build_report(mixed, date_range="30d", now=FIXED)["summary"]["total_analyzed"] == 2

    benign_only = generator.build_report(results, classifications=["benign"], now=FIXED)
    assert benign_only["summary"]["malicious_count"] == 0
    assert benign_only["high_risk_scripts"] == []

    with pytest.raises(ValueError):
        generator.build_report(results, report_type="weekly")
    with pytest.raises(ValueError):
        generator.build_report(results, date_range="1y")


def test_global_recommendations_baseline():
    advice = LexisReportGenerator.global_recommendations([])
    assert advice == [
        "Regular monitoring and analysis of PowerShell activity is recommended",
        "Provide security awareness training on PowerShell-based threats",
    ]


def test_text_reports(results):
    generator = LexisReportGenerator()

    summary = generator.render_text(generator.build_report(results, now=FIXED))
    assert "CLASSIFICATION BREAKDOWN" in summary
    assert "* Malicious: 1 scripts (50.0%)" in summary

    executive = generator.render_text(generator.build_report(results, "executive", now=FIXED))
    assert executive.startswith("EXECUTIVE SUMMARY")
    assert "1. dropper.ps1 (Score:" in executive

    detailed_data = generator.build_report(results, "detailed", now=FIXED)
    assert len(detailed_data["detailed_results"]) == 2
    detailed = generator.render_text(detailed_data, results)
    assert "DETAILED ANALYSIS RESULTS" in detailed
    assert "services.ps1" in detailed


def test_empty_report_has_zero_shares():
    generator = LexisReportGenerator()
    text = generator.render_text(generator.build_report([], now=FIXED))
    assert "* Malicious: 0 scripts (0.0%)" in text
    assert "Average Obfuscation Score: 0.0/100" in text


def test_generate_report_files(tmp_path, results):
    generator = LexisReportGenerator()
    json_path = generator.generate_report(results, tmp_path / "report.json")
    assert json.loads(open(json_path, encoding="utf-8").read())["summary"]["total_analyzed"] == 2

    text_path = generator.generate_report(results, tmp_path / "report.txt", "executive")
    assert "HIGH-RISK SCRIPTS" in open(text_path, encoding="utf-8").read()
