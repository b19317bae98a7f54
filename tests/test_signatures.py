"""
goal: named signature rules fire in rule order and honour custom tables.
"""

from __future__ import annotations

from shared.models import Severity

from lexis.analyzers.signatures import SignatureMatcher
from lexis.core.tables import SignatureRule, SignatureTables


def test_mimikatz_rule():
    matches = SignatureMatcher().match("Invoke-Mimikatz -Command sekurlsa::logonpasswords")
    assert [m.rule_name for m in matches] == ["Mimikatz_Usage"]
    hit = matches[0]
    assert hit.severity is Severity.CRITICAL
    assert hit.matches == ("mimikatz", "sekurlsa")
    assert "credential-theft" in hit.tags


def test_matches_reported_in_rule_order():
    text = "schtasks /create /tn updater /tr beacon.exe"
    names = [m.rule_name for m in SignatureMatcher().match(text)]
    assert names == ["Cobalt_Strike", "Persistence_Scheduled_Task"]


def test_no_match_on_plain_script():
    assert SignatureMatcher().match("Get-ChildItem C:\\Users") == ()


def test_custom_rule_requires_all_of_terms():
    tables = SignatureTables(rules=(
        SignatureRule(
            name="Custom_Loader",
            severity=Severity.HIGH,
            any_of=("Loader.ps1",),
            all_of=("Invoke-Expression",),
        ),
    ))
    matcher = SignatureMatcher(tables)
    assert [m.rule_name for m in matcher.match("LOADER.PS1 | Invoke-Expression")] == ["Custom_Loader"]
    assert matcher.match("loader.ps1 only") == ()


def test_rule_without_terms_never_fires():
    rule = SignatureRule(name="Empty")
    assert rule.matches("anything at all") is False
