"""
goal: weighted score stays integral and bounded; classifier bands and
confidence values are exact.
"""

from __future__ import annotations

import pytest

from lexis.analyzers.scoring import classify, obfuscation_score
from lexis.core.models import AnalysisFeatures, Classification


def test_default_features_score_zero():
    assert obfuscation_score(AnalysisFeatures()) == 0


def test_additive_contributions():
    features = AnalysisFeatures(
        entropy=4.5,
        base64_strings=("a", "b"),
        suspicious_keywords=("iex", "bypass", "hidden"),
    )
    # entropy tier 10 + base64 2*15 + keywords 3*10
    assert obfuscation_score(features) == 70


def test_fractional_terms_floored_once():
    assert obfuscation_score(AnalysisFeatures(variable_obfuscation_score=33.3)) == 9


def test_dense_and_uncommented_bonuses():
    dense = AnalysisFeatures(entropy=5.5, average_line_length=10.0)
    assert obfuscation_score(dense) == 35

    uncommented = AnalysisFeatures(total_length=1500, comment_ratio=0.0)
    assert obfuscation_score(uncommented) == 10


def test_adversarial_features_clamped_to_100():
    features = AnalysisFeatures(
        entropy=7.9,
        base64_strings=tuple("x" for _ in range(50)),
        max_string_length=5000,
        suspicious_keywords=tuple(f"k{i}" for i in range(30)),
        total_length=100_000,
        average_line_length=10.0,
        urls_found=tuple(f"http://h{i}" for i in range(20)),
        ip_addresses=tuple("1.1.1.1" for _ in range(20)),
        encoding_methods=("base64", "gzip", "encode", "decode"),
        variable_obfuscation_score=100.0,
        nested_block_depth=40,
    )
    score = obfuscation_score(features)
    assert isinstance(score, int)
    assert score == 100


@pytest.mark.parametrize(
    "score, verdict, confidence",
    [
        (80, Classification.MALICIOUS, 0.76),
        (75, Classification.MALICIOUS, 0.7125),
        (100, Classification.MALICIOUS, 0.95),
        (50, Classification.SUSPICIOUS, 0.40),
        (45, Classification.SUSPICIOUS, 0.36),
        (44, Classification.BENIGN, 0.504),
        (10, Classification.BENIGN, 0.81),
        (0, Classification.BENIGN, 0.90),
    ],
)
def test_classifier_bands(score, verdict, confidence):
    got_verdict, got_confidence = classify(score)
    assert got_verdict is verdict
    assert got_confidence == pytest.approx(confidence)
    assert got_confidence <= 0.95
