"""
goal: predefined hunting queries and result filters select the right scripts.
"""

from __future__ import annotations

import pytest

from lexis.analyzers.hunting import filter_results, hunt, query_names


@pytest.fixture
def results(engine, malicious_script, benign_script):
    return [
        engine.analyze(malicious_script, "Dropper.ps1"),
        engine.analyze(benign_script, "services.ps1"),
        engine.analyze("Copy-Item x $env:APPDATA\\Startup\\y.lnk\nStart-Sleep 30", "persist.ps1"),
    ]


def _names(results):
    return [r.filename for r in results]


def test_query_catalogue_order():
    assert query_names() == (
        "Base64 Encoded PowerShell",
        "Network Download Activity",
        "Execution Policy Bypass",
        "High Obfuscation",
        "Persistence Mechanisms",
        "Anti-Analysis Techniques",
    )


def test_predefined_queries(results):
    assert _names(hunt(results, "Base64 Encoded PowerShell")) == ["Dropper.ps1"]
    assert _names(hunt(results, "Network Download Activity")) == ["Dropper.ps1"]
    assert _names(hunt(results, "Execution Policy Bypass")) == ["Dropper.ps1"]
    assert _names(hunt(results, "High Obfuscation")) == ["Dropper.ps1"]
    assert _names(hunt(results, "Persistence Mechanisms")) == ["persist.ps1"]
    assert _names(hunt(results, "Anti-Analysis Techniques")) == ["persist.ps1"]


def test_unknown_query(results):
    with pytest.raises(KeyError):
        hunt(results, "Nope")


def test_filter_results(results):
    assert _names(filter_results(results, search="dropper")) == ["Dropper.ps1"]
    assert _names(filter_results(results, search="encoded payload")) == ["Dropper.ps1"]
    assert _names(filter_results(results, threat_type="Encoded Payload")) == ["Dropper.ps1"]
    assert _names(filter_results(results, min_score=75)) == ["Dropper.ps1"]
    assert len(filter_results(results)) == 3
