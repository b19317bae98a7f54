"""
Lexical Feature Extractor
==========================

Turns raw script text into a fixed set of numeric and categorical
features: byte entropy, embedded Base64 payloads, network
indicators, table lookups, string-obfuscation techniques, variable-name
obfuscation and structural metrics.

All detection is lexical (substring and regular-expression matching over
the raw text); the script is never parsed or executed.  Degenerate input,
including the empty string, yields a valid all-default feature set.

References:
    - Shannon, C. E. (1948). A Mathematical Theory of Communication.
    - Bohannon, D., & Holmes, L. (2017). Revoke-Obfuscation: PowerShell
      Obfuscation Detection Using Science. Black Hat USA.
    - Mandiant. (2023). FLOSS: FireEye Labs Obfuscated String Solver.
"""

from __future__ import annotations

import base64
import binascii
import re

from shared.math_utils import clamp, safe_ratio, shannon_entropy

from lexis.core.models import AnalysisFeatures
from lexis.core.tables import DEFAULT_TABLES, SignatureTables


# ---------------------------------------------------------------------------
# Extraction patterns
# ---------------------------------------------------------------------------

# Base64 alphabet run of at least 20 chars with up to two padding chars
_BASE64_PATTERN = re.compile(r"[A-Za-z0-9+/]{20,}={0,2}")

_URL_PATTERN = re.compile(r"https?://[^\s<>\"']+", re.IGNORECASE)

_IPV4_PATTERN = re.compile(r"\b(?:[0-9]{1,3}\.){3}[0-9]{1,3}\b", re.ASCII)

_EXTENSION_PATTERN = re.compile(r"\.[a-zA-Z0-9]{2,4}\b", re.ASCII)

_QUOTED_PATTERN = re.compile(r"\"[^\"]*\"|'[^']*'")

_VARIABLE_PATTERN = re.compile(r"\$[a-zA-Z_][a-zA-Z0-9_`]*")

_FUNCTION_PATTERN = re.compile(r"function\s+[a-zA-Z_][a-zA-Z0-9_-]*\s*\{", re.IGNORECASE)

# (technique name, pattern) in reporting order
_STRING_OBFUSCATION_CHECKS: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("String Concatenation", re.compile(r"['\"][^'\"]*['\"]\s*\+\s*['\"][^'\"]*['\"]")),
    ("Backtick Obfuscation", re.compile(r"`[a-zA-Z]")),
    ("Variable Substitution", re.compile(r"\$\{[^}]+\}")),
    ("Format String Obfuscation", re.compile(r"-f\s*@\(")),
    ("Character Array Conversion", re.compile(r"\[char\[\]\]")),
)

# Variable-name heuristics
_CAPS_RUN = re.compile(r"[A-Z]{2,}")
_LETTERS_THEN_DIGITS = re.compile(r"^[a-zA-Z]{1,2}[0-9]{2,}$")
_VOWEL = re.compile(r"[aeiou]", re.IGNORECASE)

_COMMENT_MARKER = "#"
_MIN_BASE64_DECODED = 10


class FeatureExtractor:
    """Extracts :class:`AnalysisFeatures` from script text.

    The extractor holds only a reference to the read-only
    :class:`SignatureTables`, so one instance can be shared between
    threads.

    Usage::

        extractor = FeatureExtractor()
        features = extractor.extract(script_text)
        print(features.entropy, features.base64_count)
    """

    def __init__(self, tables: SignatureTables | None = None) -> None:
        self._tables: SignatureTables = tables or DEFAULT_TABLES

    @property
    def tables(self) -> SignatureTables:
        return self._tables

    def extract(self, text: str) -> AnalysisFeatures:
        """Compute every lexical feature of *text*.

        The returned record has ``obfuscation_score == 0``; the score is
        computed afterwards from the features themselves.

        Args:
            text: Raw script text, possibly empty.

        Returns:
            A populated :class:`AnalysisFeatures`.
        """
        lines = text.split("\n")
        line_count = len(lines)
        lowered = text.lower()

        return AnalysisFeatures(
            entropy=shannon_entropy(text.encode("utf-8")),
            base64_strings=tuple(self.detect_base64_strings(text)),
            max_string_length=self.max_string_length(text),
            suspicious_keywords=self._table_hits(lowered, self._tables.suspicious_keywords),
            total_length=len(text),
            line_count=line_count,
            average_line_length=len(text) / line_count,
            urls_found=tuple(self.extract_urls(text)),
            ip_addresses=tuple(self.extract_ip_addresses(text)),
            file_extensions=tuple(self.detect_file_extensions(text)),
            powershell_commands=self._table_hits(lowered, self._tables.known_commands),
            encoding_methods=self._table_hits(lowered, self._tables.encoding_methods),
            string_obfuscation_techniques=tuple(self.string_obfuscation_techniques(text)),
            variable_obfuscation_score=self.variable_obfuscation_score(text),
            comment_ratio=self.comment_ratio(lines),
            function_count=len(_FUNCTION_PATTERN.findall(text)),
            nested_block_depth=self.nested_block_depth(text),
        )

    # ------------------------------------------------------------------ #
    #  Encoded payloads
    # ------------------------------------------------------------------ #

    def detect_base64_strings(self, text: str) -> list[str]:
        """Return Base64 candidates that decode to meaningful bytes.

        A candidate is accepted when it decodes to at least 10 bytes that
        contain at least one ASCII letter.  Malformed candidates are
        skipped silently.
        """
        accepted: list[str] = []
        for match in _BASE64_PATTERN.finditer(text):
            candidate = match.group(0)
            decoded = self._decode_base64(candidate)
            if decoded is None:
                continue
            if len(decoded) >= _MIN_BASE64_DECODED and self._has_ascii_letter(decoded):
                accepted.append(candidate)
        return accepted

    @staticmethod
    def _decode_base64(candidate: str) -> bytes | None:
        """Decode *candidate*, tolerating missing padding.

        Returns ``None`` for a body whose length is 1 modulo 4 or which
        fails strict decoding.
        """
        body = candidate.rstrip("=")
        remainder = len(body) % 4
        if remainder == 1:
            return None
        padded = body + "=" * ((4 - remainder) % 4)
        try:
            return base64.b64decode(padded, validate=True)
        except (binascii.Error, ValueError):
            return None

    @staticmethod
    def _has_ascii_letter(data: bytes) -> bool:
        return any(0x41 <= b <= 0x5A or 0x61 <= b <= 0x7A for b in data)

    # ------------------------------------------------------------------ #
    #  Network indicators
    # ------------------------------------------------------------------ #

    @staticmethod
    def extract_urls(text: str) -> list[str]:
        """Return ``http(s)://`` tokens up to whitespace, ``<``, ``>`` or a quote."""
        return _URL_PATTERN.findall(text)

    @staticmethod
    def extract_ip_addresses(text: str) -> list[str]:
        """Return dotted quads whose every octet is at most 255."""
        return [
            ip for ip in _IPV4_PATTERN.findall(text)
            if all(int(octet) <= 255 for octet in ip.split("."))
        ]

    def detect_file_extensions(self, text: str) -> list[str]:
        """Return disallowed extensions found in *text*, lower-cased, first-seen order."""
        disallowed = set(self._tables.suspicious_extensions)
        seen = dict.fromkeys(ext.lower() for ext in _EXTENSION_PATTERN.findall(text))
        return [ext for ext in seen if ext in disallowed]

    # ------------------------------------------------------------------ #
    #  Table lookups
    # ------------------------------------------------------------------ #

    @staticmethod
    def _table_hits(lowered_text: str, terms: tuple[str, ...]) -> tuple[str, ...]:
        """Terms occurring in the text, once each, in table order."""
        return tuple(term for term in terms if term in lowered_text)

    # ------------------------------------------------------------------ #
    #  Obfuscation
    # ------------------------------------------------------------------ #

    @staticmethod
    def string_obfuscation_techniques(text: str) -> list[str]:
        """Names of string-obfuscation techniques present in *text*."""
        techniques: list[str] = []
        for name, pattern in _STRING_OBFUSCATION_CHECKS:
            if name == "String Concatenation" and "+" not in text:
                continue
            if pattern.search(text):
                techniques.append(name)
        return techniques

    @staticmethod
    def variable_obfuscation_score(text: str) -> float:
        """Percentage of unique ``$variables`` whose names look obfuscated.

        Each unique name is tested by four independent heuristics and
        every positive heuristic counts as one hit, so the raw ratio can
        exceed 100 and is clamped.
        """
        unique_names = list(dict.fromkeys(
            token[1:] for token in _VARIABLE_PATTERN.findall(text)
        ))
        if not unique_names:
            return 0.0

        hits = 0
        for name in unique_names:
            if len(name) < 3 and _CAPS_RUN.search(name):
                hits += 1
            if "`" in name:
                hits += 1
            if _LETTERS_THEN_DIGITS.match(name):
                hits += 1
            if len(name) > 20 and not _VOWEL.search(name):
                hits += 1

        return clamp(safe_ratio(hits, len(unique_names), 100.0))

    # ------------------------------------------------------------------ #
    #  Structure
    # ------------------------------------------------------------------ #

    @staticmethod
    def max_string_length(text: str) -> int:
        """Inner length of the longest quoted literal, 0 if none."""
        return max((len(m) - 2 for m in _QUOTED_PATTERN.findall(text)), default=0)

    @staticmethod
    def comment_ratio(lines: list[str]) -> float:
        """Percentage of lines whose stripped form starts with ``#``."""
        comments = sum(1 for line in lines if line.strip().startswith(_COMMENT_MARKER))
        return clamp(safe_ratio(comments, len(lines), 100.0))

    @staticmethod
    def nested_block_depth(text: str) -> int:
        """Maximum depth of a ``{``/``}`` counter floored at zero."""
        depth = 0
        max_depth = 0
        for char in text:
            if char == "{":
                depth += 1
                max_depth = max(max_depth, depth)
            elif char == "}":
                depth = max(0, depth - 1)
        return max_depth
