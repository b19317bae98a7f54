"""
Behavior Categorizer
=====================

Buckets static indicators into ten capability categories, in the spirit
of the import-API categorisation used for compiled binaries: each
category owns a table of ``(required terms, label)`` checks, and a label
is reported when every required term occurs in the lower-cased script.

The categories are computed independently and share no mutable state.

References:
    - MITRE ATT&CK Framework. (2024). https://attack.mitre.org/
    - Sikorski, M., & Honig, A. (2012). Practical Malware Analysis.
"""

from __future__ import annotations

from lexis.core.models import BehaviorAnalysis


# ---------------------------------------------------------------------------
# Category database: field name -> ((required substrings, label), ...)
# ---------------------------------------------------------------------------

_Check = tuple[tuple[str, ...], str]

_BEHAVIOR_CHECKS: dict[str, tuple[_Check, ...]] = {
    "file_operations": (
        (("new-item",), "File Creation"),
        (("remove-item",), "File Deletion"),
        (("copy-item",), "File Copy"),
        (("move-item",), "File Move"),
        (("get-content",), "File Read"),
        (("set-content",), "File Write"),
    ),
    "registry_operations": (
        (("new-itemproperty",), "Registry Key Creation"),
        (("remove-itemproperty",), "Registry Key Deletion"),
        (("set-itemproperty",), "Registry Value Modification"),
        (("get-itemproperty",), "Registry Value Read"),
    ),
    "network_connections": (
        (("invoke-webrequest",), "HTTP Request"),
        (("invoke-restmethod",), "REST API Call"),
        (("new-object system.net.webclient",), "WebClient Usage"),
        (("test-netconnection",), "Network Connectivity Test"),
    ),
    "process_creation": (
        (("start-process",), "Process Start"),
        (("invoke-expression",), "Dynamic Code Execution"),
        (("invoke-command",), "Remote Command Execution"),
    ),
    "service_manipulation": (
        (("new-service",), "Service Creation"),
        (("stop-service",), "Service Stop"),
        (("start-service",), "Service Start"),
        (("set-service",), "Service Modification"),
    ),
    "scheduled_tasks": (
        (("new-scheduledtask",), "Scheduled Task Creation"),
        (("register-scheduledtask",), "Scheduled Task Registration"),
        (("schtasks",), "Legacy Scheduled Task"),
    ),
    "persistence_mechanisms": (
        (("hklm:\\software\\microsoft\\windows\\currentversion\\run",), "Registry Run Key"),
        (("startup",), "Startup Folder"),
        (("wmi",), "WMI Event Subscription"),
    ),
    "anti_analysis": (
        (("get-process", "wireshark"), "Network Analysis Detection"),
        (("get-process", "procmon"), "Process Monitor Detection"),
        (("sleep",), "Delay Execution"),
        (("test-path", "sandbox"), "Sandbox Detection"),
    ),
    "data_exfiltration": (
        (("compress-archive",), "Data Compression"),
        (("send-mailmessage",), "Email Exfiltration"),
        (("ftp",), "FTP Upload"),
        (("invoke-webrequest", "post"), "HTTP POST Exfiltration"),
    ),
    "privilege_escalation": (
        (("runas",), "RunAs Execution"),
        (("uac",), "UAC Bypass"),
        (("token",), "Token Manipulation"),
    ),
}


class BehaviorCategorizer:
    """Derives a :class:`BehaviorAnalysis` from static substring presence."""

    def __init__(self, checks: dict[str, tuple[_Check, ...]] | None = None) -> None:
        self._checks = checks if checks is not None else _BEHAVIOR_CHECKS

    def categorize(self, text: str) -> BehaviorAnalysis:
        """Return every category's observed capability labels."""
        lowered = text.lower()
        return BehaviorAnalysis(**{
            category: self._labels(lowered, checks)
            for category, checks in self._checks.items()
        })

    @staticmethod
    def _labels(lowered: str, checks: tuple[_Check, ...]) -> tuple[str, ...]:
        return tuple(
            label
            for required, label in checks
            if all(term in lowered for term in required)
        )
