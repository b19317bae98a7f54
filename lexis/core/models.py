"""
Lexis Data Models
==================

Pydantic-based records for script analysis results.  Every record is
immutable: models are frozen and sequence fields are tuples, so one
:class:`AnalysisResult` is built per analysed script and never mutated
afterwards.

The modelling approach follows domain-driven design principles (Evans, 2003),
with each model representing a bounded-context value object.

References:
    - Evans, E. (2003). Domain-Driven Design. Addison-Wesley.
    - Pydantic v2 documentation. https://docs.pydantic.dev/latest/
"""

from __future__ import annotations

import enum
from datetime import datetime, timezone
from typing import Literal, Optional

from pydantic import Field, computed_field

from shared.models import FrozenModel, RiskLevel, Severity


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class Classification(str, enum.Enum):
    """Three-way verdict produced by the classifier."""
    BENIGN = "benign"
    SUSPICIOUS = "suspicious"
    MALICIOUS = "malicious"


class TimelineSeverity(str, enum.Enum):
    """Severity of a pseudo-timeline event."""
    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"


ChangeAction = Literal["create", "modify", "delete", "read"]


# ---------------------------------------------------------------------------
# Lexical features
# ---------------------------------------------------------------------------

class AnalysisFeatures(FrozenModel):
    """Flat record of measurements extracted from one script.

    Every ``*_count`` attribute is computed from its paired tuple so the
    two can never disagree.

    Attributes:
        entropy: Shannon entropy of the UTF-8 encoding, in bits per byte
                 (equal to bits per character for ASCII text, at most 8).
        base64_strings: Accepted Base64 candidates, in order of appearance.
        max_string_length: Longest quoted-literal inner length.
        suspicious_keywords: Matched suspicious keywords, in table order.
        total_length: Number of characters.
        line_count: Number of ``\\n``-separated lines, always >= 1.
        average_line_length: ``total_length / line_count``.
        obfuscation_score: Weighted heuristic score in [0, 100].
        urls_found: Extracted ``http(s)://`` URLs.
        ip_addresses: Extracted dotted-quad IPv4 addresses.
        file_extensions: Matched suspicious file extensions.
        powershell_commands: Matched known commands.
        encoding_methods: Matched encoding-method names.
        string_obfuscation_techniques: Names of detected techniques.
        variable_obfuscation_score: Share of obfuscated variable names.
        comment_ratio: Share of comment lines.
        function_count: Number of function declarations.
        nested_block_depth: Maximum brace nesting depth.
    """
    entropy: float = Field(default=0.0, ge=0.0)
    base64_strings: tuple[str, ...] = ()
    max_string_length: int = Field(default=0, ge=0)
    suspicious_keywords: tuple[str, ...] = ()
    total_length: int = Field(default=0, ge=0)
    line_count: int = Field(default=1, ge=1)
    average_line_length: float = Field(default=0.0, ge=0.0)
    obfuscation_score: int = Field(default=0, ge=0, le=100)
    urls_found: tuple[str, ...] = ()
    ip_addresses: tuple[str, ...] = ()
    file_extensions: tuple[str, ...] = ()
    powershell_commands: tuple[str, ...] = ()
    encoding_methods: tuple[str, ...] = ()
    string_obfuscation_techniques: tuple[str, ...] = ()
    variable_obfuscation_score: float = Field(default=0.0, ge=0.0, le=100.0)
    comment_ratio: float = Field(default=0.0, ge=0.0, le=100.0)
    function_count: int = Field(default=0, ge=0)
    nested_block_depth: int = Field(default=0, ge=0)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def base64_count(self) -> int:
        return len(self.base64_strings)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def suspicious_keyword_count(self) -> int:
        return len(self.suspicious_keywords)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def url_count(self) -> int:
        return len(self.urls_found)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def ip_count(self) -> int:
        return len(self.ip_addresses)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def file_extension_count(self) -> int:
        return len(self.file_extensions)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def powershell_command_count(self) -> int:
        return len(self.powershell_commands)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def encoding_method_count(self) -> int:
        return len(self.encoding_methods)


# ---------------------------------------------------------------------------
# Explanatory artefacts
# ---------------------------------------------------------------------------

class RiskFactor(FrozenModel):
    """A human-facing risk factor with bounded evidence excerpts."""
    category: str
    severity: Severity
    description: str
    evidence: tuple[str, ...] = ()


class SignatureMatch(FrozenModel):
    """A named, fixed-pattern detection analogous to a YARA rule hit.

    Attributes:
        rule_name: Identifier of the rule that fired.
        description: What the rule detects.
        severity: Fixed severity of the rule.
        tags: Classification tags of the rule.
        matches: The rule's trigger substrings.
    """
    rule_name: str
    description: str
    severity: Severity
    tags: tuple[str, ...] = ()
    matches: tuple[str, ...] = ()


class BehaviorAnalysis(FrozenModel):
    """Capabilities implied by static indicators, one tuple per category.

    An empty tuple means the capability was not observed.
    """
    file_operations: tuple[str, ...] = ()
    registry_operations: tuple[str, ...] = ()
    network_connections: tuple[str, ...] = ()
    process_creation: tuple[str, ...] = ()
    service_manipulation: tuple[str, ...] = ()
    scheduled_tasks: tuple[str, ...] = ()
    persistence_mechanisms: tuple[str, ...] = ()
    anti_analysis: tuple[str, ...] = ()
    data_exfiltration: tuple[str, ...] = ()
    privilege_escalation: tuple[str, ...] = ()

    @property
    def observed(self) -> dict[str, tuple[str, ...]]:
        """Only the non-empty categories, in declaration order."""
        return {
            name: value
            for name, value in self
            if value
        }


class TimelineEvent(FrozenModel):
    """A line-anchored pseudo-event."""
    timestamp: str
    action: str
    description: str
    severity: TimelineSeverity
    line_number: int = Field(ge=1)


# ---------------------------------------------------------------------------
# Sandbox simulation
# ---------------------------------------------------------------------------

class NetworkActivity(FrozenModel):
    """Hypothetical outbound connection derived from an extracted URL."""
    type: Literal["dns", "http", "https", "tcp", "udp"]
    destination: str
    port: Optional[int] = None
    purpose: str


class FileSystemChange(FrozenModel):
    """Illustrative file-system effect.

    ``synthetic`` is ``True`` for entries produced from a fixed template
    rather than from a path named in the script.
    """
    action: ChangeAction
    path: str
    description: str
    synthetic: bool = True


class RegistryChange(FrozenModel):
    """Illustrative registry effect (see :class:`FileSystemChange`)."""
    action: ChangeAction
    key: str
    value: Optional[str] = None
    description: str
    synthetic: bool = True


class ProcessActivity(FrozenModel):
    """Illustrative process effect (see :class:`FileSystemChange`)."""
    action: Literal["start", "stop", "inject"]
    process: str
    arguments: Optional[str] = None
    description: str
    synthetic: bool = True


class SandboxResult(FrozenModel):
    """Static, non-executing approximation of runtime effects."""
    safe_to_execute: bool
    risk_level: RiskLevel
    detected_capabilities: tuple[str, ...] = ()
    network_activity: tuple[NetworkActivity, ...] = ()
    file_system_changes: tuple[FileSystemChange, ...] = ()
    registry_changes: tuple[RegistryChange, ...] = ()
    process_activity: tuple[ProcessActivity, ...] = ()


# ---------------------------------------------------------------------------
# Aggregate analysis result
# ---------------------------------------------------------------------------

class AnalysisResult(FrozenModel):
    """Complete verdict for a single script.

    Attributes:
        filename: Display name supplied by the caller.
        features: Extracted lexical features, including the score.
        classification: Three-way verdict.
        confidence: Heuristic confidence in [0, 0.95].
        timestamp: UTC creation time of the record.
        script_content: The analysed text, kept for re-export.
        threat_categories: Threshold-driven tags.
        risk_factors: Evidence-bearing risk factors.
        recommendations: Advisory strings.
        signature_matches: Named-rule hits.
        behavior_analysis: Capability buckets.
        timeline: Line-ordered pseudo-events.
        sandbox: Simulated sandbox verdict.
    """
    filename: str
    features: AnalysisFeatures
    classification: Classification
    confidence: float = Field(ge=0.0, le=0.95)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    script_content: str = ""
    threat_categories: tuple[str, ...] = ()
    risk_factors: tuple[RiskFactor, ...] = ()
    recommendations: tuple[str, ...] = ()
    signature_matches: tuple[SignatureMatch, ...] = ()
    behavior_analysis: BehaviorAnalysis = Field(default_factory=BehaviorAnalysis)
    timeline: tuple[TimelineEvent, ...] = ()
    sandbox: SandboxResult

    @property
    def obfuscation_score(self) -> int:
        """Shortcut for ``features.obfuscation_score``."""
        return self.features.obfuscation_score
