"""
Threat Hunting
===============

Predefined hunting queries and free-form filters over a collection of
:class:`AnalysisResult` records.  Hunting never touches raw script text;
it only inspects the features and behaviour buckets an earlier analysis
produced.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable

from lexis.core.models import AnalysisResult


ALL_THREAT_TYPES = "all"


@dataclass(frozen=True)
class HuntQuery:
    """A named predicate over analysis results."""

    name: str
    description: str
    predicate: Callable[[AnalysisResult], bool]

    def __call__(self, result: AnalysisResult) -> bool:
        return self.predicate(result)


def _keyword_contains(result: AnalysisResult, *fragments: str) -> bool:
    return any(
        fragment in keyword
        for keyword in result.features.suspicious_keywords
        for fragment in fragments
    )


HUNT_QUERIES: tuple[HuntQuery, ...] = (
    HuntQuery(
        name="Base64 Encoded PowerShell",
        description="Scripts with multiple Base64 encoded strings",
        predicate=lambda r: r.features.base64_count > 2,
    ),
    HuntQuery(
        name="Network Download Activity",
        description="Scripts attempting to download content",
        predicate=lambda r: r.features.url_count > 0 and _keyword_contains(r, "download"),
    ),
    HuntQuery(
        name="Execution Policy Bypass",
        description="Scripts bypassing PowerShell execution policies",
        predicate=lambda r: _keyword_contains(r, "bypass", "executionpolicy"),
    ),
    HuntQuery(
        name="High Obfuscation",
        description="Heavily obfuscated scripts",
        predicate=lambda r: r.features.obfuscation_score > 70,
    ),
    HuntQuery(
        name="Persistence Mechanisms",
        description="Scripts creating persistence",
        predicate=lambda r: bool(r.behavior_analysis.persistence_mechanisms),
    ),
    HuntQuery(
        name="Anti-Analysis Techniques",
        description="Scripts with evasion techniques",
        predicate=lambda r: bool(r.behavior_analysis.anti_analysis),
    ),
)

_QUERIES_BY_NAME: dict[str, HuntQuery] = {q.name: q for q in HUNT_QUERIES}


def query_names() -> tuple[str, ...]:
    return tuple(_QUERIES_BY_NAME)


def get_query(name: str) -> HuntQuery:
    """Look up a predefined query by its exact name.

    Raises:
        KeyError: If no query has that name.
    """
    try:
        return _QUERIES_BY_NAME[name]
    except KeyError:
        raise KeyError(
            f"Unknown hunting query {name!r}; choose one of: {', '.join(query_names())}"
        ) from None


def hunt(results: Iterable[AnalysisResult], query_name: str) -> list[AnalysisResult]:
    """Return the results matched by the predefined query *query_name*."""
    query = get_query(query_name)
    return [result for result in results if query(result)]


def filter_results(
    results: Iterable[AnalysisResult],
    search: str = "",
    threat_type: str = ALL_THREAT_TYPES,
    min_score: int = 0,
) -> list[AnalysisResult]:
    """Filter results the way an analyst narrows a result table.

    Args:
        results: Results to filter.
        search: Case-insensitive substring matched against the filename
            and each threat category; empty matches everything.
        threat_type: Exact threat category, or ``"all"``.
        min_score: Minimum obfuscation score, inclusive.

    Returns:
        Matching results in input order.
    """
    needle = search.lower()
    matched: list[AnalysisResult] = []
    for result in results:
        matches_search = (
            needle in result.filename.lower()
            or any(needle in category.lower() for category in result.threat_categories)
        )
        matches_type = (
            threat_type == ALL_THREAT_TYPES
            or threat_type in result.threat_categories
        )
        if matches_search and matches_type and result.features.obfuscation_score >= min_score:
            matched.append(result)
    return matched
