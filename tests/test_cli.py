"""
goal: the command-line interface analyses files, exports results and
exits non-zero on boundary errors.
"""

from __future__ import annotations

import json

from click.testing import CliRunner

from lexis.cli import lexis_cli


def test_json_output(write_script, malicious_script):
    path = write_script("dropper.ps1", malicious_script)
    result = CliRunner().invoke(lexis_cli, [str(path), "--json"])
    assert result.exit_code == 0, result.output
    data = json.loads(result.stdout)
    assert isinstance(data, list)
    assert len(data) == 1
    assert data[0]["filename"] == "dropper.ps1"
    assert data[0]["classification"] == "malicious"


def test_console_output(write_script, benign_script):
    path = write_script("services.ps1", benign_script)
    result = CliRunner().invoke(lexis_cli, [str(path)])
    assert result.exit_code == 0, result.output
    assert "BENIGN" in result.output


def test_exports(tmp_path, write_script, malicious_script, benign_script):
    a = write_script("a.ps1", malicious_script)
    b = write_script("b.ps1", benign_script)
    csv_path = tmp_path / "results.csv"
    report_path = tmp_path / "report.txt"

    result = CliRunner().invoke(lexis_cli, [
        str(a), str(b),
        "--csv", str(csv_path),
        "--report", str(report_path),
        "--report-type", "executive",
    ])
    assert result.exit_code == 0, result.output
    lines = csv_path.read_text(encoding="utf-8").splitlines()
    assert lines[0].startswith("Filename,Classification,")
    assert len(lines) == 3
    assert report_path.read_text(encoding="utf-8").startswith("EXECUTIVE SUMMARY")


def test_hunt_filters_results(write_script, benign_script):
    path = write_script("services.ps1", benign_script)
    result = CliRunner().invoke(lexis_cli, [str(path), "--json", "--hunt", "High Obfuscation"])
    assert result.exit_code == 0, result.output
    assert json.loads(result.stdout) == []


def test_missing_input_exits_non_zero(tmp_path):
    result = CliRunner().invoke(lexis_cli, [str(tmp_path / "absent.ps1")])
    assert result.exit_code == 1


def test_missing_tables_or_config_exits_non_zero(tmp_path, write_script):
    path = write_script("a.ps1", "Get-Date")
    result = CliRunner().invoke(lexis_cli, [str(path), "--tables", str(tmp_path / "none.toml")])
    assert result.exit_code == 1

    result = CliRunner().invoke(lexis_cli, [str(path), "--config", str(tmp_path / "none.toml")])
    assert result.exit_code == 1


def test_unknown_hunt_query_rejected(write_script):
    path = write_script("a.ps1", "Get-Date")
    result = CliRunner().invoke(lexis_cli, [str(path), "--hunt", "Nope"])
    assert result.exit_code == 2
