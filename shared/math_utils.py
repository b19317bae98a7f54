"""
Lexis Mathematical Utilities
=============================

Entropy estimation and small numeric helpers used by the lexical
feature extractor and the report aggregator.

References:
    [1] Shannon, C. E. (1948). A Mathematical Theory of Communication.
        Bell System Technical Journal, 27(3), 379-423.
    [2] Lyda, R., & Hamrock, J. (2007). Using Entropy Analysis to Find
        Encrypted and Packed Malware. IEEE Security & Privacy, 5(2).
"""

from __future__ import annotations

from collections import Counter
from typing import Sequence, Union

import numpy as np
from numpy.typing import NDArray


# ---------------------------------------------------------------------------
#  Type aliases for readability
# ---------------------------------------------------------------------------
FloatArray = NDArray[np.floating]
Symbols = Union[str, bytes]


# ========================== Entropy Measures ===============================


def symbol_probabilities(data: Symbols) -> FloatArray:
    """Return the relative frequency of every distinct symbol in *data*.

    Symbols are characters for ``str`` input and byte values for
    ``bytes`` input.  The order of the returned array is the order in
    which symbols first appear.

    Args:
        data: Text or raw bytes.

    Returns:
        1-D float64 array summing to 1.0, or an empty array for empty input.
    """
    if not data:
        return np.zeros(0, dtype=np.float64)

    counts = np.fromiter(Counter(data).values(), dtype=np.float64)
    return counts / float(len(data))


def shannon_entropy(data: Symbols) -> float:
    """Compute the Shannon entropy of a character or byte sequence.

    .. math::

        H = -\\sum_i p_i \\, \\log_2(p_i)

    where :math:`p_i` is the relative frequency of symbol *i*.  The
    result is in **bits per symbol** and lies in
    ``[0, log2(distinct symbols)]``.

    Reference:
        Shannon, C. E. (1948). A Mathematical Theory of Communication.

    Args:
        data: Text or raw bytes to analyse.

    Returns:
        Shannon entropy in bits per symbol. Returns 0.0 for empty input.
    """
    probabilities = symbol_probabilities(data)
    if probabilities.size == 0:
        return 0.0

    entropy = float(-np.sum(probabilities * np.log2(probabilities)))
    # A single repeated symbol yields -0.0
    return max(entropy, 0.0)


# ========================== Numeric helpers ================================


def clamp(value: float, lower: float = 0.0, upper: float = 100.0) -> float:
    """Clamp *value* into the closed interval ``[lower, upper]``."""
    return max(lower, min(value, upper))


def safe_ratio(numerator: float, denominator: float, scale: float = 1.0) -> float:
    """Return ``numerator / denominator * scale`` or 0.0 when the denominator is 0."""
    if denominator == 0:
        return 0.0
    return numerator / denominator * scale


def mean(values: Sequence[float]) -> float:
    """Arithmetic mean of *values*; 0.0 for an empty sequence."""
    if len(values) == 0:
        return 0.0
    return float(np.mean(np.asarray(values, dtype=np.float64)))
