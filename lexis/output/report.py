"""
Lexis Report Generator
=======================

Serialisation boundary for analysis results:

- **CSV** -- one row per result with a fixed column order, suitable for
  spreadsheets and bulk triage.
- **JSON** -- full result records via ``model_dump(mode="json")`` for
  SIEM ingestion and downstream pipelines.
- **Aggregate reports** -- a summary over many results (classification
  breakdown, indicator totals, category histogram, high-risk scripts
  and global recommendations) rendered as JSON or as plain-text
  summary, executive or detailed reports.

References:
    - RFC 4180 -- Common Format and MIME Type for CSV Files.
    - OASIS. (2023). STIX 2.1 Specification.
"""

from __future__ import annotations

import csv
import io
import json
from collections import Counter
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Iterable, Literal, Sequence

from shared.math_utils import mean, safe_ratio

from lexis.core.models import AnalysisResult, Classification


ReportType = Literal["summary", "executive", "detailed"]
DateRange = Literal["all", "7d", "30d"]

REPORT_TYPES: tuple[str, ...] = ("summary", "executive", "detailed")
DATE_RANGES: dict[str, int | None] = {"all": None, "7d": 7, "30d": 30}

ENGINE_NAME = "Lexis Static Script Analyzer"

_HIGH_RISK_THRESHOLD = 70
_HIGH_RISK_LIMIT = 10


# ---------------------------------------------------------------------------
# CSV export
# ---------------------------------------------------------------------------

CSV_COLUMNS: tuple[str, ...] = (
    "Filename",
    "Classification",
    "Confidence",
    "Entropy",
    "Base64 Count",
    "Max String Length",
    "Suspicious Keywords Count",
    "Total Length",
    "Line Count",
    "Average Line Length",
    "Obfuscation Score",
    "URL Count",
    "IP Count",
    "File Extensions Count",
    "PowerShell Commands Count",
    "Encoding Methods Count",
    "Variable Obfuscation Score",
    "Comment Ratio",
    "Function Count",
    "Nested Block Depth",
    "Threat Categories",
    "Timestamp",
)


def format_timestamp(moment: datetime) -> str:
    """ISO-8601 UTC with millisecond precision and a ``Z`` suffix."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    utc = moment.astimezone(timezone.utc)
    return utc.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def csv_row(result: AnalysisResult) -> list[str]:
    """Flatten one result into the :data:`CSV_COLUMNS` order."""
    f = result.features
    return [
        result.filename,
        result.classification.value,
        f"{result.confidence:.3f}",
        f"{f.entropy:.3f}",
        str(f.base64_count),
        str(f.max_string_length),
        str(f.suspicious_keyword_count),
        str(f.total_length),
        str(f.line_count),
        f"{f.average_line_length:.2f}",
        str(f.obfuscation_score),
        str(f.url_count),
        str(f.ip_count),
        str(f.file_extension_count),
        str(f.powershell_command_count),
        str(f.encoding_method_count),
        f"{f.variable_obfuscation_score:.2f}",
        f"{f.comment_ratio:.2f}",
        str(f.function_count),
        str(f.nested_block_depth),
        "; ".join(result.threat_categories),
        format_timestamp(result.timestamp),
    ]


def export_csv(results: Iterable[AnalysisResult]) -> str:
    """Render *results* as CSV text with a header row."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_COLUMNS)
    for result in results:
        writer.writerow(csv_row(result))
    return buffer.getvalue()


def write_csv(results: Iterable[AnalysisResult], output_path: str | Path) -> str:
    """Write :func:`export_csv` output to *output_path*; return its absolute path."""
    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(export_csv(results), encoding="utf-8", newline="")
    return str(path.resolve())


# ---------------------------------------------------------------------------
# Report generator
# ---------------------------------------------------------------------------

class LexisReportGenerator:
    """Generates JSON and plain-text reports from analysis results.

    Usage::

        generator = LexisReportGenerator()
        generator.generate_report(results, "report.txt", report_type="executive")
    """

    def __init__(self, version: str = "1.0.0") -> None:
        self._version = version

    # ------------------------------------------------------------------ #
    #  JSON
    # ------------------------------------------------------------------ #

    @staticmethod
    def to_json(
        results: Sequence[AnalysisResult], indent: int = 2, *, as_array: bool = False
    ) -> str:
        """Serialise one result as an object, several as an array.

        With *as_array* the output is always an array, even for zero or
        one result.
        """
        if len(results) == 1 and not as_array:
            payload: Any = results[0].model_dump(mode="json")
        else:
            payload = [r.model_dump(mode="json") for r in results]
        return json.dumps(payload, indent=indent, ensure_ascii=False)

    # ------------------------------------------------------------------ #
    #  Aggregation
    # ------------------------------------------------------------------ #

    @staticmethod
    def filter_results(
        results: Iterable[AnalysisResult],
        classifications: Iterable[Classification | str] | None = None,
        date_range: str = "all",
        now: datetime | None = None,
    ) -> list[AnalysisResult]:
        """Keep results whose verdict is selected and whose timestamp is in range.

        Raises:
            ValueError: If *date_range* is not one of ``all``, ``7d``, ``30d``.
        """
        if date_range not in DATE_RANGES:
            raise ValueError(
                f"Unknown date range {date_range!r}; expected one of {', '.join(DATE_RANGES)}"
            )
        selected = (
            {Classification(c) for c in classifications}
            if classifications is not None
            else set(Classification)
        )
        days = DATE_RANGES[date_range]
        cutoff = None
        if days is not None:
            cutoff = (now or datetime.now(timezone.utc)) - timedelta(days=days)

        return [
            r for r in results
            if r.classification in selected and (cutoff is None or r.timestamp >= cutoff)
        ]

    def build_report(
        self,
        results: Iterable[AnalysisResult],
        report_type: str = "summary",
        *,
        classifications: Iterable[Classification | str] | None = None,
        date_range: str = "all",
        include_recommendations: bool = True,
        now: datetime | None = None,
    ) -> dict[str, Any]:
        """Aggregate *results* into a report data structure.

        Args:
            results: Analysis results to aggregate.
            report_type: ``summary``, ``executive`` or ``detailed``.
            classifications: Verdicts to include (default: all).
            date_range: ``all``, ``7d`` or ``30d``.
            include_recommendations: Attach global recommendations.
            now: Reference time for the date filter and metadata.

        Returns:
            JSON-serialisable report dictionary.

        Raises:
            ValueError: For an unknown report type or date range.
        """
        if report_type not in REPORT_TYPES:
            raise ValueError(
                f"Unknown report type {report_type!r}; expected one of {', '.join(REPORT_TYPES)}"
            )
        generated_at = now or datetime.now(timezone.utc)
        selected = self.filter_results(results, classifications, date_range, generated_at)

        verdicts = Counter(r.classification for r in selected)
        network_total = sum(r.features.url_count + r.features.ip_count for r in selected)
        high_risk = sorted(
            (r for r in selected if r.features.obfuscation_score > _HIGH_RISK_THRESHOLD),
            key=lambda r: r.features.obfuscation_score,
            reverse=True,
        )[:_HIGH_RISK_LIMIT]

        return {
            "metadata": {
                "generated_at": format_timestamp(generated_at),
                "report_type": report_type,
                "date_range": date_range,
                "total_scripts": len(selected),
                "analysis_engine": f"{ENGINE_NAME} v{self._version}",
            },
            "summary": {
                "total_analyzed": len(selected),
                "malicious_count": verdicts[Classification.MALICIOUS],
                "suspicious_count": verdicts[Classification.SUSPICIOUS],
                "benign_count": verdicts[Classification.BENIGN],
                "average_obfuscation_score": mean(
                    [r.features.obfuscation_score for r in selected]
                ),
                "total_network_indicators": network_total,
                "total_base64_strings": sum(r.features.base64_count for r in selected),
            },
            "threat_categories": dict(
                Counter(c for r in selected for c in r.threat_categories)
            ),
            "network_indicators": {
                "urls": list(dict.fromkeys(u for r in selected for u in r.features.urls_found)),
                "ips": list(dict.fromkeys(i for r in selected for i in r.features.ip_addresses)),
            },
            "high_risk_scripts": [
                {
                    "filename": r.filename,
                    "classification": r.classification.value,
                    "obfuscation_score": r.features.obfuscation_score,
                    "confidence": r.confidence,
                }
                for r in high_risk
            ],
            "recommendations": (
                self.global_recommendations(selected) if include_recommendations else []
            ),
            "detailed_results": (
                [r.model_dump(mode="json", exclude={"script_content"}) for r in selected]
                if report_type == "detailed"
                else []
            ),
        }

    @staticmethod
    def global_recommendations(results: Sequence[AnalysisResult]) -> list[str]:
        """Advice derived from the whole result set."""
        malicious = sum(1 for r in results if r.classification is Classification.MALICIOUS)
        suspicious = sum(1 for r in results if r.classification is Classification.SUSPICIOUS)
        network = sum(r.features.url_count + r.features.ip_count for r in results)

        advice: list[str] = []
        if malicious:
            advice.append(
                f"CRITICAL: {malicious} malicious script(s) detected - immediate action required"
            )
            advice.append(
                "Implement strict execution policies and sandboxing for PowerShell scripts"
            )
        if suspicious:
            advice.append(
                f"WARNING: {suspicious} suspicious script(s) require further investigation"
            )
        if network:
            advice.append(
                "Monitor network traffic for connections to detected URLs and IP addresses"
            )
            advice.append(
                "Consider implementing network-level blocking for suspicious indicators"
            )
        advice.append("Regular monitoring and analysis of PowerShell activity is recommended")
        advice.append("Provide security awareness training on PowerShell-based threats")
        return advice

    # ------------------------------------------------------------------ #
    #  Plain-text rendering
    # ------------------------------------------------------------------ #

    def render_text(self, data: dict[str, Any], results: Sequence[AnalysisResult] = ()) -> str:
        """Render report *data* in the layout named by its report type.

        *results* supplies the per-script records for a detailed report.
        """
        report_type = data["metadata"]["report_type"]
        if report_type == "executive":
            return self._render_executive(data)
        text = self._render_summary(data)
        if report_type == "detailed":
            text += self._render_details(results)
        return text

    def generate_report(
        self,
        results: Sequence[AnalysisResult],
        output_path: str | Path,
        report_type: str = "summary",
        *,
        classifications: Iterable[Classification | str] | None = None,
        date_range: str = "all",
        include_recommendations: bool = True,
    ) -> str:
        """Build and write an aggregate report.

        A ``.json`` suffix writes the report data as JSON; any other
        suffix writes the plain-text rendering.

        Returns:
            The absolute path of the generated report.
        """
        data = self.build_report(
            results,
            report_type,
            classifications=classifications,
            date_range=date_range,
            include_recommendations=include_recommendations,
        )
        path = Path(output_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        if path.suffix.lower() == ".json":
            content = json.dumps(data, indent=2, ensure_ascii=False)
        else:
            selected = self.filter_results(results, classifications, date_range)
            content = self.render_text(data, selected)
        path.write_text(content, encoding="utf-8")
        return str(path.resolve())

    @staticmethod
    def _period(data: dict[str, Any]) -> str:
        date_range = data["metadata"]["date_range"]
        return "All Time" if date_range == "all" else date_range

    @staticmethod
    def _share(count: int, total: int) -> str:
        return f"{safe_ratio(count, total, 100.0):.1f}%"

    @staticmethod
    def _bullets(items: Iterable[str]) -> str:
        return "\n".join(f"* {item}" for item in items)

    def _render_executive(self, data: dict[str, Any]) -> str:
        s = data["summary"]
        total = s["total_analyzed"]
        high_risk = "\n".join(
            f"{idx}. {script['filename']} (Score: {script['obfuscation_score']})"
            for idx, script in enumerate(data["high_risk_scripts"], start=1)
        )
        return (
            "EXECUTIVE SUMMARY - SCRIPT SECURITY ANALYSIS\n"
            f"Generated: {data['metadata']['generated_at']}\n"
            f"Analysis Period: {self._period(data)}\n"
            "\n"
            "THREAT OVERVIEW\n"
            "===============\n"
            f"Total Scripts Analyzed: {total}\n"
            f"Malicious Scripts: {s['malicious_count']} ({self._share(s['malicious_count'], total)})\n"
            f"Suspicious Scripts: {s['suspicious_count']} ({self._share(s['suspicious_count'], total)})\n"
            f"Benign Scripts: {s['benign_count']} ({self._share(s['benign_count'], total)})\n"
            "\n"
            "RISK ASSESSMENT\n"
            "===============\n"
            f"Average Obfuscation Score: {s['average_obfuscation_score']:.1f}/100\n"
            f"Network Indicators Found: {s['total_network_indicators']}\n"
            f"Encoded Payloads Detected: {s['total_base64_strings']}\n"
            "\n"
            "KEY RECOMMENDATIONS\n"
            "===================\n"
            f"{self._bullets(data['recommendations'])}\n"
            "\n"
            "HIGH-RISK SCRIPTS\n"
            "=================\n"
            f"{high_risk}\n"
        )

    def _render_summary(self, data: dict[str, Any]) -> str:
        s = data["summary"]
        meta = data["metadata"]
        total = s["total_analyzed"]
        categories = self._bullets(
            f"{category}: {count} occurrence(s)"
            for category, count in data["threat_categories"].items()
        )
        text = (
            "SCRIPT STATIC ANALYSIS REPORT - SUMMARY\n"
            f"Generated: {meta['generated_at']}\n"
            f"Report Type: {meta['report_type'].upper()}\n"
            f"Analysis Engine: {meta['analysis_engine']}\n"
            "\n"
            "ANALYSIS SUMMARY\n"
            "================\n"
            f"Total Scripts Analyzed: {total}\n"
            f"Analysis Period: {self._period(data)}\n"
            "\n"
            "CLASSIFICATION BREAKDOWN\n"
            "========================\n"
            f"* Malicious: {s['malicious_count']} scripts ({self._share(s['malicious_count'], total)})\n"
            f"* Suspicious: {s['suspicious_count']} scripts ({self._share(s['suspicious_count'], total)})\n"
            f"* Benign: {s['benign_count']} scripts ({self._share(s['benign_count'], total)})\n"
            "\n"
            "THREAT INDICATORS\n"
            "=================\n"
            f"Average Obfuscation Score: {s['average_obfuscation_score']:.1f}/100\n"
            f"Total Network Indicators: {s['total_network_indicators']}\n"
            f"Total Base64 Encoded Strings: {s['total_base64_strings']}\n"
            "\n"
            "THREAT CATEGORIES\n"
            "=================\n"
            f"{categories}\n"
        )
        if data["recommendations"]:
            text += (
                "\n"
                "RECOMMENDATIONS\n"
                "===============\n"
                f"{self._bullets(data['recommendations'])}\n"
            )
        return text

    @staticmethod
    def _render_details(results: Sequence[AnalysisResult]) -> str:
        blocks: list[str] = ["\nDETAILED ANALYSIS RESULTS\n=========================\n"]
        for idx, r in enumerate(results, start=1):
            f = r.features
            lines = [
                f"{idx}. {r.filename}",
                f"   Classification: {r.classification.value.upper()}",
                f"   Confidence: {r.confidence * 100:.1f}%",
                f"   Obfuscation Score: {f.obfuscation_score}/100",
                f"   Entropy: {f.entropy:.2f}",
                f"   Base64 Strings: {f.base64_count}",
                f"   Suspicious Keywords: {f.suspicious_keyword_count}",
                f"   Network Indicators: {f.url_count + f.ip_count}",
                f"   Script Length: {f.total_length:,} characters",
                f"   Analysis Date: {format_timestamp(r.timestamp)}",
            ]
            if r.threat_categories:
                lines.append(f"   Threat Categories: {', '.join(r.threat_categories)}")
            blocks.append("\n".join(lines) + "\n")
        return "\n".join(blocks)
