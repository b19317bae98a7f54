"""
goal: entropy and numeric helpers behave at their boundaries.
"""

from __future__ import annotations

import pytest

from shared.math_utils import clamp, mean, safe_ratio, shannon_entropy


def test_entropy_empty_is_zero():
    assert shannon_entropy("") == 0.0
    assert shannon_entropy(b"") == 0.0


def test_entropy_single_symbol_is_zero():
    assert shannon_entropy("aaaaaaaa") == 0.0


def test_entropy_uniform_alphabets():
    assert shannon_entropy("ab") == pytest.approx(1.0)
    assert shannon_entropy("abcd" * 10) == pytest.approx(2.0)
    assert shannon_entropy(bytes(range(256))) == pytest.approx(8.0)


def test_entropy_bounded_by_distinct_symbols():
    text = "Invoke-Expression $payload"
    import math
    assert 0.0 <= shannon_entropy(text) <= math.log2(len(set(text)))


def test_numeric_helpers():
    assert safe_ratio(5, 0) == 0.0
    assert safe_ratio(1, 4, 100.0) == 25.0
    assert clamp(150.0) == 100.0
    assert clamp(-3.0) == 0.0
    assert mean([]) == 0.0
    assert mean([1, 2, 3]) == pytest.approx(2.0)
