"""
Signature Matcher
==================

Runs the ordered, named substring rules from the signature tables over
the whole script and reports every rule that fires.  Rules are
independent of each other and of the obfuscation score; an empty match
list means no known fingerprint was seen, not that the script is safe.

References:
    - YARA documentation: https://yara.readthedocs.io/
"""

from __future__ import annotations

from lexis.core.models import SignatureMatch
from lexis.core.tables import DEFAULT_TABLES, SignatureRule, SignatureTables


class SignatureMatcher:
    """Evaluates :class:`SignatureRule` entries against script text.

    Usage::

        matcher = SignatureMatcher()
        for hit in matcher.match(script_text):
            print(hit.rule_name, hit.severity.value)
    """

    def __init__(self, tables: SignatureTables | None = None) -> None:
        self._rules: tuple[SignatureRule, ...] = (tables or DEFAULT_TABLES).rules

    @property
    def rules(self) -> tuple[SignatureRule, ...]:
        return self._rules

    def match(self, text: str) -> tuple[SignatureMatch, ...]:
        """Return one :class:`SignatureMatch` per firing rule, in rule order."""
        lowered = text.lower()
        return tuple(
            SignatureMatch(
                rule_name=rule.name,
                description=rule.description,
                severity=rule.severity,
                tags=rule.tags,
                matches=rule.triggers,
            )
            for rule in self._rules
            if rule.matches(lowered)
        )
