"""
Signature Tables
=================

Versionable lookup data consumed by the analysis engine: suspicious
keywords, known commands, encoding-method names, disallowed file
extensions and named signature rules.  The tables are a frozen model
injected into the engine, so callers and tests can substitute their own
without touching analysis logic.

Custom tables are loaded from TOML::

    version = "2024.1"
    suspicious_keywords = ["iex", "bypass"]

    [[rules]]
    name = "Custom_Loader"
    description = "In-house loader fingerprint"
    severity = "high"
    tags = ["loader"]
    any_of = ["loader.ps1"]
    all_of = ["invoke-expression"]

Keys missing from the document fall back to :data:`DEFAULT_TABLES`.

References:
    - YARA documentation: https://yara.readthedocs.io/
    - MITRE ATT&CK T1059.001 -- Command and Scripting Interpreter: PowerShell.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

from pydantic import Field, field_validator

from shared.models import FrozenModel, Severity

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib


# ---------------------------------------------------------------------------
# Default lookup data
# ---------------------------------------------------------------------------

_SUSPICIOUS_KEYWORDS: tuple[str, ...] = (
    "iex", "invoke-expression", "invoke-command", "invoke-item",
    "bypass", "executionpolicy", "noprofile", "windowstyle", "hidden",
    "downloadstring", "downloadfile", "webclient", "net.webclient",
    "start-process", "start-job", "new-object", "reflection.assembly",
    "system.convert", "frombase64string", "tobase64string",
    "compression.gzipstream", "system.io.compression",
    "security.cryptography", "aes", "rijndael", "des",
    "powershell.exe", "cmd.exe", "wscript", "cscript",
    "regsvr32", "rundll32", "mshta", "bitsadmin",
    "certutil", "schtasks", "at.exe", "wmic",
    "vssadmin", "bcdedit", "diskpart", "taskkill",
    "netsh", "route", "arp", "ipconfig",
    "mimikatz", "kerberoast", "bloodhound", "empire",
    "metasploit", "cobalt", "beacon", "shellcode",
)

_KNOWN_COMMANDS: tuple[str, ...] = (
    "get-process", "get-service", "get-wmiobject", "get-childitem",
    "set-executionpolicy", "invoke-webrequest", "invoke-restmethod",
    "new-object", "add-type", "start-process", "stop-process",
    "get-content", "set-content", "out-file", "export-csv",
    "import-module", "get-module", "new-module", "remove-module",
    "get-command", "get-help", "get-member", "where-object",
    "foreach-object", "select-object", "sort-object", "group-object",
    "measure-object", "compare-object", "tee-object", "format-table",
    "format-list", "out-gridview", "out-string", "convertto-json",
    "convertfrom-json", "convertto-xml", "convertfrom-xml",
)

_ENCODING_METHODS: tuple[str, ...] = (
    "base64", "utf8", "unicode", "ascii", "utf7", "utf32",
    "gzip", "deflate", "compress", "decompress",
    "encrypt", "decrypt", "encode", "decode",
    "tobase64string", "frombase64string",
)

_SUSPICIOUS_EXTENSIONS: tuple[str, ...] = (
    ".exe", ".dll", ".bat", ".cmd", ".ps1", ".vbs", ".js",
    ".jar", ".scr", ".com", ".pif", ".msi", ".reg",
)


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------

class SignatureRule(FrozenModel):
    """A named substring rule.

    The rule fires when at least one ``any_of`` term is present (or
    ``any_of`` is empty) *and* every ``all_of`` term is present.  Terms
    are compared case-insensitively against the whole script.

    Attributes:
        name: Rule identifier reported in matches.
        description: What the rule detects.
        severity: Severity attached to every match.
        tags: Classification tags.
        any_of: Alternative trigger substrings.
        all_of: Companion substrings that must all be present.
    """
    name: str = Field(..., min_length=1)
    description: str = ""
    severity: Severity = Severity.MEDIUM
    tags: tuple[str, ...] = ()
    any_of: tuple[str, ...] = ()
    all_of: tuple[str, ...] = ()

    @field_validator("any_of", "all_of")
    @classmethod
    def _lower_terms(cls, terms: tuple[str, ...]) -> tuple[str, ...]:
        return tuple(term.lower() for term in terms)

    @property
    def triggers(self) -> tuple[str, ...]:
        """Every term this rule looks for, ``any_of`` first."""
        return self.any_of + self.all_of

    def matches(self, lowered_text: str) -> bool:
        """Return ``True`` if the rule fires on already lower-cased text."""
        if not self.any_of and not self.all_of:
            return False
        if self.any_of and not any(term in lowered_text for term in self.any_of):
            return False
        return all(term in lowered_text for term in self.all_of)


_DEFAULT_RULES: tuple[SignatureRule, ...] = (
    SignatureRule(
        name="PowerShell_Empire",
        description="Detects PowerShell Empire framework usage",
        severity=Severity.CRITICAL,
        tags=("apt", "post-exploitation", "empire"),
        any_of=("invoke-empire", "empire.ps1"),
    ),
    SignatureRule(
        name="Mimikatz_Usage",
        description="Detects Mimikatz credential dumping tool",
        severity=Severity.CRITICAL,
        tags=("credential-theft", "mimikatz", "post-exploitation"),
        any_of=("mimikatz", "sekurlsa"),
    ),
    SignatureRule(
        name="Cobalt_Strike",
        description="Detects Cobalt Strike beacon activity",
        severity=Severity.CRITICAL,
        tags=("apt", "cobalt-strike", "c2"),
        any_of=("beacon", "cobalt"),
    ),
    SignatureRule(
        name="Fileless_Malware",
        description="Detects fileless malware techniques",
        severity=Severity.HIGH,
        tags=("fileless", "injection", "evasion"),
        any_of=("reflectiveloader", "invoke-reflectivedllinjection"),
    ),
    SignatureRule(
        name="Persistence_Scheduled_Task",
        description="Detects scheduled task persistence",
        severity=Severity.MEDIUM,
        tags=("persistence", "scheduled-task"),
        any_of=("new-scheduledtask", "schtasks"),
    ),
)


class SignatureTables(FrozenModel):
    """Read-only lookup tables shared by every analysis.

    Term tables are stored lower-cased; order is preserved because hit
    lists are reported in table order.
    """
    version: str = "builtin-1"
    suspicious_keywords: tuple[str, ...] = _SUSPICIOUS_KEYWORDS
    known_commands: tuple[str, ...] = _KNOWN_COMMANDS
    encoding_methods: tuple[str, ...] = _ENCODING_METHODS
    suspicious_extensions: tuple[str, ...] = _SUSPICIOUS_EXTENSIONS
    rules: tuple[SignatureRule, ...] = _DEFAULT_RULES

    @field_validator(
        "suspicious_keywords",
        "known_commands",
        "encoding_methods",
        "suspicious_extensions",
    )
    @classmethod
    def _normalise_terms(cls, terms: tuple[str, ...]) -> tuple[str, ...]:
        return tuple(dict.fromkeys(term.lower() for term in terms if term))

    @field_validator("suspicious_extensions")
    @classmethod
    def _dotted(cls, extensions: tuple[str, ...]) -> tuple[str, ...]:
        return tuple(dict.fromkeys(
            ext if ext.startswith(".") else f".{ext}" for ext in extensions
        ))

    @classmethod
    def from_mapping(cls, data: dict[str, Any]) -> SignatureTables:
        """Build tables from a plain mapping, defaulting missing keys.

        Raises:
            pydantic.ValidationError: If a present key has an invalid shape.
        """
        valid_keys = set(cls.model_fields)
        return cls.model_validate({k: v for k, v in data.items() if k in valid_keys})

    @classmethod
    def load(cls, path: str | Path) -> SignatureTables:
        """Load tables from a TOML file.

        Raises:
            FileNotFoundError: If *path* does not exist.
            ValueError: If the document is not valid TOML or fails validation.
        """
        tables_path = Path(path)
        if not tables_path.exists():
            raise FileNotFoundError(f"Signature tables not found: {tables_path}")

        with open(tables_path, "rb") as fh:
            try:
                raw = tomllib.load(fh)
            except tomllib.TOMLDecodeError as exc:
                raise ValueError(f"Invalid signature tables {tables_path}: {exc}") from exc

        return cls.from_mapping(raw)


DEFAULT_TABLES: SignatureTables = SignatureTables()
