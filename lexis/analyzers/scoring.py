"""
Obfuscation Scoring and Classification
=======================================

Combines lexical features into a single bounded obfuscation score with a
hand-tuned, additive, per-factor-capped heuristic, and maps the score to
a three-way verdict with a confidence value.

The weights and thresholds below are calibration data, not a learned
model.  Changing any of them changes verdicts and must be treated as a
behaviour change.
"""

from __future__ import annotations

import math

from lexis.core.models import AnalysisFeatures, Classification


# ---------------------------------------------------------------------------
# Score weights
# ---------------------------------------------------------------------------

# (exclusive lower bound, points), highest tier first
_ENTROPY_TIERS: tuple[tuple[float, float], ...] = ((6.0, 30.0), (5.0, 20.0), (4.0, 10.0))
_STRING_LENGTH_TIERS: tuple[tuple[float, float], ...] = ((1000, 25.0), (500, 15.0), (200, 10.0))
_TOTAL_LENGTH_TIERS: tuple[tuple[float, float], ...] = ((50_000, 15.0), (20_000, 10.0))

# (points per hit, cap)
_BASE64_WEIGHT = (15.0, 40.0)
_KEYWORD_WEIGHT = (10.0, 50.0)
_URL_WEIGHT = (5.0, 20.0)
_IP_WEIGHT = (8.0, 25.0)
_ENCODING_WEIGHT = (12.0, 30.0)
_VARIABLE_OBFUSCATION_WEIGHT = (0.3, 20.0)
_NESTING_WEIGHT = (3.0, 15.0)

_DENSE_LINE_BONUS = 15.0
_UNCOMMENTED_BONUS = 10.0

# Classification bands
MALICIOUS_THRESHOLD = 75
SUSPICIOUS_THRESHOLD = 45
MAX_CONFIDENCE = 0.95


def _tier(value: float, tiers: tuple[tuple[float, float], ...]) -> float:
    for bound, points in tiers:
        if value > bound:
            return points
    return 0.0


def _capped(count: float, weight: tuple[float, float]) -> float:
    per_hit, cap = weight
    return min(count * per_hit, cap)


def obfuscation_score(features: AnalysisFeatures) -> int:
    """Compute the weighted obfuscation score of *features*.

    Contributions are added in a fixed order; intermediate terms may be
    fractional.  The total is clamped to 100 and floored to an integer
    once, at the end.

    Args:
        features: Extracted lexical features.

    Returns:
        Integer score in [0, 100].
    """
    score = 0.0

    score += _tier(features.entropy, _ENTROPY_TIERS)
    score += _capped(features.base64_count, _BASE64_WEIGHT)
    score += _tier(features.max_string_length, _STRING_LENGTH_TIERS)
    score += _capped(features.suspicious_keyword_count, _KEYWORD_WEIGHT)
    score += _tier(features.total_length, _TOTAL_LENGTH_TIERS)

    # Short lines with high entropy suggest packed one-liners
    if features.average_line_length < 50 and features.entropy > 5:
        score += _DENSE_LINE_BONUS

    score += _capped(features.url_count, _URL_WEIGHT)
    score += _capped(features.ip_count, _IP_WEIGHT)
    score += _capped(features.encoding_method_count, _ENCODING_WEIGHT)
    score += _capped(features.variable_obfuscation_score, _VARIABLE_OBFUSCATION_WEIGHT)
    score += _capped(features.nested_block_depth, _NESTING_WEIGHT)

    if features.total_length > 1000 and features.comment_ratio < 5:
        score += _UNCOMMENTED_BONUS

    return int(math.floor(max(0.0, min(score, 100.0))))


def classify(score: float) -> tuple[Classification, float]:
    """Map an obfuscation score to a verdict and confidence.

    - score >= 75: malicious, ``min(score / 100 * 0.95, 0.95)``
    - 45 <= score < 75: suspicious, ``score / 100 * 0.8``
    - score < 45: benign, ``(100 - score) / 100 * 0.9``

    The confidence never exceeds 0.95.
    """
    if score >= MALICIOUS_THRESHOLD:
        return Classification.MALICIOUS, min(score / 100 * 0.95, MAX_CONFIDENCE)
    if score >= SUSPICIOUS_THRESHOLD:
        return Classification.SUSPICIOUS, score / 100 * 0.8
    return Classification.BENIGN, (100 - score) / 100 * 0.9
