"""
goal: simulated sandbox bands the score and emits flagged template records.
"""

from __future__ import annotations

import pytest

from shared.models import RiskLevel

from lexis.analyzers.sandbox import SandboxSimulator
from lexis.core.models import AnalysisFeatures


@pytest.mark.parametrize(
    "score, level",
    [
        (80, RiskLevel.CRITICAL),
        (71, RiskLevel.CRITICAL),
        (70, RiskLevel.HIGH),
        (41, RiskLevel.HIGH),
        (40, RiskLevel.MEDIUM),
        (21, RiskLevel.MEDIUM),
        (20, RiskLevel.LOW),
        (0, RiskLevel.LOW),
    ],
)
def test_risk_tiers(score, level):
    result = SandboxSimulator().simulate("", AnalysisFeatures(obfuscation_score=score))
    assert result.risk_level is level
    assert result.safe_to_execute is (level is RiskLevel.LOW)


def test_network_activity_from_urls():
    features = AnalysisFeatures(urls_found=("https://a.example:443/x", "http://b.example/y"))
    activity = SandboxSimulator().simulate("", features).network_activity
    assert [(a.type, a.port) for a in activity] == [("https", 443), ("http", 80)]
    assert activity[1].destination == "http://b.example/y"


def test_templates_and_capabilities():
    text = (
        "New-ItemProperty -Path HKCU:\\Software\\Run -Name u -Value x; "
        "Start-Process x; Remove-Item y; Compress-Archive z"
    )
    result = SandboxSimulator().simulate(text, AnalysisFeatures())
    assert result.detected_capabilities == (
        "Process Creation",
        "File System Modification",
        "Registry Modification",
        "Data Compression",
    )
    assert [c.action for c in result.file_system_changes] == ["create", "delete"]
    assert result.registry_changes[0].key.endswith("CurrentVersion\\Run")
    assert result.process_activity[0].process == "powershell.exe"
    records = (
        result.file_system_changes + result.registry_changes + result.process_activity
    )
    assert all(r.synthetic for r in records)


def test_quiet_script_has_no_effects():
    result = SandboxSimulator().simulate("Get-Date", AnalysisFeatures())
    assert result.detected_capabilities == ()
    assert result.file_system_changes == ()
    assert result.registry_changes == ()
    assert result.process_activity == ()
