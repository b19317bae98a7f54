"""
Sandbox Simulator
==================

Produces a *simulated* dynamic-analysis verdict from static indicators.
Nothing is executed.  The risk level is a banding of the obfuscation
score; capabilities and network activity come from the script itself,
while file-system, registry and process records are fixed
representative templates emitted when their trigger term occurs.

Template records carry ``synthetic=True`` so consumers can tell them
apart from observed behaviour.
"""

from __future__ import annotations

from shared.models import RiskLevel

from lexis.core.models import (
    AnalysisFeatures,
    FileSystemChange,
    NetworkActivity,
    ProcessActivity,
    RegistryChange,
    SandboxResult,
)


_CAPABILITY_TRIGGERS: tuple[tuple[str, str], ...] = (
    ("invoke-webrequest", "Network Communication"),
    ("start-process", "Process Creation"),
    ("new-item", "File System Modification"),
    ("new-itemproperty", "Registry Modification"),
    ("compress-archive", "Data Compression"),
    ("invoke-expression", "Dynamic Code Execution"),
)

_NETWORK_PURPOSE = "Data download or command retrieval"
_HTTPS_PORT = 443
_HTTP_PORT = 80


class SandboxSimulator:
    """Builds a :class:`SandboxResult` from script text and its features."""

    def simulate(self, text: str, features: AnalysisFeatures) -> SandboxResult:
        lowered = text.lower()
        risk_level = RiskLevel.from_score(features.obfuscation_score)
        return SandboxResult(
            safe_to_execute=risk_level is RiskLevel.LOW,
            risk_level=risk_level,
            detected_capabilities=self.capabilities(lowered),
            network_activity=self.network_activity(features.urls_found),
            file_system_changes=self.file_system_changes(lowered),
            registry_changes=self.registry_changes(lowered),
            process_activity=self.process_activity(lowered),
        )

    @staticmethod
    def capabilities(lowered: str) -> tuple[str, ...]:
        return tuple(label for term, label in _CAPABILITY_TRIGGERS if term in lowered)

    @staticmethod
    def network_activity(urls: tuple[str, ...]) -> tuple[NetworkActivity, ...]:
        """One record per extracted URL, duplicates included."""
        return tuple(
            NetworkActivity(
                type="https" if url.startswith("https") else "http",
                destination=url,
                port=_HTTPS_PORT if ":443" in url else _HTTP_PORT,
                purpose=_NETWORK_PURPOSE,
            )
            for url in urls
        )

    @staticmethod
    def file_system_changes(lowered: str) -> tuple[FileSystemChange, ...]:
        changes: list[FileSystemChange] = []
        if "new-item" in lowered:
            changes.append(FileSystemChange(
                action="create",
                path="C:\\temp\\malware.exe",
                description="Creates suspicious executable file",
            ))
        if "remove-item" in lowered:
            changes.append(FileSystemChange(
                action="delete",
                path="C:\\Windows\\System32\\logs\\security.log",
                description="Attempts to delete security logs",
            ))
        return tuple(changes)

    @staticmethod
    def registry_changes(lowered: str) -> tuple[RegistryChange, ...]:
        if "new-itemproperty" in lowered and "run" in lowered:
            return (RegistryChange(
                action="create",
                key="HKLM\\Software\\Microsoft\\Windows\\CurrentVersion\\Run",
                value="malware.exe",
                description="Creates persistence mechanism via registry run key",
            ),)
        return ()

    @staticmethod
    def process_activity(lowered: str) -> tuple[ProcessActivity, ...]:
        if "start-process" in lowered:
            return (ProcessActivity(
                action="start",
                process="powershell.exe",
                arguments="-ExecutionPolicy Bypass -WindowStyle Hidden",
                description="Starts hidden PowerShell process with execution policy bypass",
            ),)
        return ()
