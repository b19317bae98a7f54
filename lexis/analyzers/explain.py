"""
Explanatory Artefacts
======================

Threshold-driven builders that turn a feature set and verdict into the
human-facing parts of a result: threat-category tags, evidence-bearing
risk factors and advisory recommendations.
"""

from __future__ import annotations

from shared.models import Severity

from lexis.core.models import AnalysisFeatures, Classification, RiskFactor


_EXCERPT_LENGTH = 50
_ENCODED_EVIDENCE_ITEMS = 3
DEFAULT_EVIDENCE_LIMIT = 5


def threat_categories(features: AnalysisFeatures) -> tuple[str, ...]:
    """Return threat-category tags for *features*, in a fixed order."""
    checks: tuple[tuple[bool, str], ...] = (
        (features.base64_count > 3, "Encoded Payload"),
        (features.url_count > 0, "Network Communication"),
        (features.ip_count > 0, "Direct IP Communication"),
        (features.suspicious_keyword_count > 5, "Execution Policy Bypass"),
        (features.variable_obfuscation_score > 50, "Code Obfuscation"),
        (features.entropy > 6, "High Entropy Content"),
        (features.encoding_method_count > 2, "Multiple Encoding Methods"),
        (features.nested_block_depth > 5, "Complex Control Flow"),
    )
    return tuple(tag for triggered, tag in checks if triggered)


def _tiered(count: float, tiers: tuple[tuple[float, Severity], ...], floor: Severity) -> Severity:
    for bound, severity in tiers:
        if count > bound:
            return severity
    return floor


def risk_factors(
    features: AnalysisFeatures,
    evidence_limit: int = DEFAULT_EVIDENCE_LIMIT,
) -> tuple[RiskFactor, ...]:
    """Build risk factors with bounded evidence lists.

    Args:
        features: Extracted lexical features.
        evidence_limit: Maximum number of evidence items per factor.

    Returns:
        Risk factors in a fixed category order.
    """
    factors: list[RiskFactor] = []
    limit = max(0, evidence_limit)

    if features.base64_count > 0:
        factors.append(RiskFactor(
            category="Encoded Content",
            severity=_tiered(
                features.base64_count,
                ((5, Severity.HIGH), (2, Severity.MEDIUM)),
                Severity.LOW,
            ),
            description=f"Found {features.base64_count} Base64 encoded string(s)",
            evidence=tuple(
                s[:_EXCERPT_LENGTH] + "..."
                for s in features.base64_strings[:min(_ENCODED_EVIDENCE_ITEMS, limit)]
            ),
        ))

    if features.url_count > 0:
        factors.append(RiskFactor(
            category="Network Activity",
            severity=_tiered(
                features.url_count,
                ((3, Severity.CRITICAL), (1, Severity.HIGH)),
                Severity.MEDIUM,
            ),
            description=f"Script contains {features.url_count} URL(s)",
            evidence=features.urls_found[:limit],
        ))

    if features.suspicious_keyword_count > 0:
        factors.append(RiskFactor(
            category="Suspicious Commands",
            severity=_tiered(
                features.suspicious_keyword_count,
                ((10, Severity.CRITICAL), (5, Severity.HIGH)),
                Severity.MEDIUM,
            ),
            description=f"Contains {features.suspicious_keyword_count} suspicious keyword(s)",
            evidence=features.suspicious_keywords[:limit],
        ))

    if features.variable_obfuscation_score > 30:
        factors.append(RiskFactor(
            category="Code Obfuscation",
            severity=Severity.HIGH if features.variable_obfuscation_score > 70 else Severity.MEDIUM,
            description=(
                "High variable obfuscation score: "
                f"{features.variable_obfuscation_score:.1f}%"
            ),
            evidence=("Obfuscated variable names detected",)[:limit],
        ))

    return tuple(factors)


def recommendations(
    features: AnalysisFeatures,
    classification: Classification,
) -> tuple[str, ...]:
    """Return classification- and feature-gated advisory strings."""
    advice: list[str] = []

    if classification is Classification.MALICIOUS:
        advice.extend((
            "DO NOT EXECUTE this script - it shows strong indicators of malicious activity",
            "Quarantine the file immediately",
            "Perform deeper analysis in an isolated environment",
        ))
    elif classification is Classification.SUSPICIOUS:
        advice.extend((
            "Exercise extreme caution before executing",
            "Test in a sandboxed environment first",
            "Review the script manually for legitimacy",
        ))

    if features.base64_count > 0:
        advice.append("Decode Base64 strings to understand their purpose")

    if features.url_count > 0:
        advice.append("Verify all URLs are from trusted sources")
        advice.append("Monitor network traffic if execution is necessary")

    if features.variable_obfuscation_score > 50:
        advice.append("Deobfuscate variable names for better analysis")

    if features.comment_ratio < 10 and features.total_length > 1000:
        advice.append("Low comment ratio suggests potential obfuscation")

    return tuple(advice)
