"""
Lexis Console Output
=====================

Rich-powered terminal display for script analysis results: verdict
panel with a score bar, feature table, risk factors, signature matches,
behaviour buckets, timeline and the simulated sandbox verdict.

Uses the LexisConsole abstraction for consistent styling.

References:
    - Rich library: https://github.com/Textualize/rich
"""

from __future__ import annotations

from typing import Sequence

from rich.markup import escape
from rich.panel import Panel
from rich.text import Text

from shared.console import LexisConsole

from lexis.core.models import AnalysisResult, Classification, SandboxResult


_VERDICT_STYLES: dict[Classification, str] = {
    Classification.MALICIOUS: "lexis.malicious",
    Classification.SUSPICIOUS: "lexis.suspicious",
    Classification.BENIGN: "lexis.benign",
}

_VERDICT_BORDERS: dict[Classification, str] = {
    Classification.MALICIOUS: "bright_red",
    Classification.SUSPICIOUS: "yellow",
    Classification.BENIGN: "green",
}


def _score_colour(score: float) -> str:
    """Return a colour for the obfuscation score."""
    if score >= 75:
        return "bright_red"
    elif score >= 45:
        return "yellow"
    elif score >= 20:
        return "bright_cyan"
    return "bright_green"


def _score_bar(score: float, width: int = 40) -> str:
    colour = _score_colour(score)
    filled = int(score / 100.0 * width)
    return f"[{colour}]{'#' * filled}[/{colour}][dim]{'.' * (width - filled)}[/dim]"


def _excerpt(items: Sequence[str], limit: int = 5) -> str:
    shown = escape(", ".join(items[:limit]))
    if len(items) > limit:
        shown += f" (+{len(items) - limit} more)"
    return shown or "-"


# ---------------------------------------------------------------------------
# LexisConsoleOutput
# ---------------------------------------------------------------------------

class LexisConsoleOutput:
    """Rich terminal display for :class:`AnalysisResult` records.

    Usage::

        output = LexisConsoleOutput()
        output.display(result)
    """

    def __init__(self, console: LexisConsole | None = None) -> None:
        self._console: LexisConsole = console or LexisConsole()

    def display(self, result: AnalysisResult) -> None:
        """Display the complete analysis result."""
        self._console.section(f"Analysis: {escape(result.filename)}")

        self.display_verdict(result)
        self.display_features(result)

        if result.risk_factors:
            self.display_risk_factors(result)
        if result.signature_matches:
            self.display_signatures(result)
        if result.behavior_analysis.observed:
            self.display_behavior(result)
        if result.timeline:
            self.display_timeline(result)

        self.display_sandbox(result.sandbox)

        if result.recommendations:
            self._console.section("Recommendations")
            for advice in result.recommendations:
                self._console.print(f"  [lexis.info]>[/lexis.info] {escape(advice)}")
            self._console.blank()

        self._console.divider()

    def display_verdict(self, result: AnalysisResult) -> None:
        score = result.obfuscation_score
        style = _VERDICT_STYLES[result.classification]
        lines: list[str] = [
            f"[bold]Classification:[/bold]  [{style}]{result.classification.value.upper()}[/{style}]",
            f"[bold]Confidence:[/bold]      {result.confidence * 100:.1f}%",
            f"[bold]Score:[/bold]           [{_score_colour(score)}]{score}/100[/{_score_colour(score)}]",
            f"  {_score_bar(score)}",
        ]
        if result.threat_categories:
            lines.append(f"[bold]Threats:[/bold]         {', '.join(result.threat_categories)}")

        self._console.print(Panel(
            "\n".join(lines),
            title="[bold bright_cyan]Verdict[/bold bright_cyan]",
            border_style=_VERDICT_BORDERS[result.classification],
            padding=(0, 2),
        ))
        self._console.blank()

    def display_features(self, result: AnalysisResult) -> None:
        f = result.features
        rows: list[tuple[str, str]] = [
            ("Entropy", f"{f.entropy:.3f} bits/char"),
            ("Length / Lines", f"{f.total_length:,} / {f.line_count:,}"),
            ("Average Line Length", f"{f.average_line_length:.2f}"),
            ("Longest String Literal", str(f.max_string_length)),
            ("Base64 Strings", str(f.base64_count)),
            ("Suspicious Keywords", _excerpt(f.suspicious_keywords)),
            ("Known Commands", _excerpt(f.powershell_commands)),
            ("Encoding Methods", _excerpt(f.encoding_methods)),
            ("URLs", _excerpt(f.urls_found)),
            ("IP Addresses", _excerpt(f.ip_addresses)),
            ("File Extensions", _excerpt(f.file_extensions)),
            ("String Obfuscation", _excerpt(f.string_obfuscation_techniques)),
            ("Variable Obfuscation", f"{f.variable_obfuscation_score:.1f}%"),
            ("Comment Ratio", f"{f.comment_ratio:.1f}%"),
            ("Functions", str(f.function_count)),
            ("Max Nesting Depth", str(f.nested_block_depth)),
        ]
        self._console.table("Lexical Features", ["Feature", "Value"], rows,
                            styles=["bold", ""])
        self._console.blank()

    def display_risk_factors(self, result: AnalysisResult) -> None:
        rows = [
            (
                LexisConsole.severity_cell(factor.severity),
                factor.category,
                factor.description,
                escape("\n".join(factor.evidence)) or "-",
            )
            for factor in result.risk_factors
        ]
        self._console.table(
            "Risk Factors",
            ["Severity", "Category", "Description", "Evidence"],
            rows,
        )
        self._console.blank()

    def display_signatures(self, result: AnalysisResult) -> None:
        rows = [
            (
                LexisConsole.severity_cell(match.severity),
                escape(match.rule_name),
                escape(match.description),
                ", ".join(match.tags),
            )
            for match in result.signature_matches
        ]
        self._console.table("Signature Matches", ["Severity", "Rule", "Description", "Tags"], rows)
        self._console.blank()

    def display_behavior(self, result: AnalysisResult) -> None:
        rows = [
            (category.replace("_", " ").title(), ", ".join(labels))
            for category, labels in result.behavior_analysis.observed.items()
        ]
        self._console.table("Behaviour Indicators", ["Category", "Observed"], rows,
                            styles=["bold bright_cyan", ""])
        self._console.blank()

    def display_timeline(self, result: AnalysisResult) -> None:
        rows = [
            (event.timestamp, LexisConsole.severity_cell(event.severity), event.action,
             event.description)
            for event in result.timeline
        ]
        self._console.table("Timeline", ["Position", "Severity", "Action", "Description"], rows)
        self._console.blank()

    def display_sandbox(self, sandbox: SandboxResult) -> None:
        verdict = (
            "[lexis.success]Safe to execute[/lexis.success]"
            if sandbox.safe_to_execute
            else "[lexis.error]Not safe to execute[/lexis.error]"
        )
        lines: list[str] = [
            f"[bold]Verdict:[/bold]       {verdict}",
            f"[bold]Risk Level:[/bold]    {LexisConsole.severity_cell(sandbox.risk_level)}",
            f"[bold]Capabilities:[/bold]  {_excerpt(sandbox.detected_capabilities, 10)}",
        ]
        for activity in sandbox.network_activity:
            lines.append(
                f"  [bright_magenta]net[/bright_magenta] {activity.type}://"
                f" -> {escape(activity.destination)} (port {activity.port})"
            )
        for change in sandbox.file_system_changes:
            lines.append(f"  [bright_blue]fs[/bright_blue]  {change.action} {change.path}")
        for change in sandbox.registry_changes:
            lines.append(f"  [bright_yellow]reg[/bright_yellow] {change.action} {change.key}")
        for process in sandbox.process_activity:
            lines.append(
                f"  [bright_red]proc[/bright_red] {process.action} {process.process}"
                f" {process.arguments or ''}".rstrip()
            )

        self._console.print(Panel(
            Text.from_markup("\n".join(lines)),
            title="[bold bright_cyan]Simulated Sandbox (static, nothing executed)[/bold bright_cyan]",
            border_style="bright_cyan",
            padding=(0, 2),
        ))
        self._console.blank()

    def display_batch_summary(self, results: Sequence[AnalysisResult]) -> None:
        """One-line-per-script overview table for multi-file runs."""
        rows = [
            (
                escape(r.filename),
                f"[{_VERDICT_STYLES[r.classification]}]{r.classification.value.upper()}"
                f"[/{_VERDICT_STYLES[r.classification]}]",
                str(r.obfuscation_score),
                f"{r.confidence * 100:.1f}%",
                str(len(r.signature_matches)),
            )
            for r in results
        ]
        self._console.table(
            "Batch Summary",
            ["File", "Verdict", "Score", "Confidence", "Signatures"],
            rows,
            caption=f"{len(results)} script(s) analysed",
        )
        self._console.blank()
