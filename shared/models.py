"""
Lexis Shared Models
====================

Enumerations and base model configuration shared by every Lexis
module.  Severity tiers follow the four-level qualitative scale used by
the CVSS v3.1 rating table (without the "none" band), which is also the
vocabulary analysts see in the risk-factor and signature-match output.

References:
    - FIRST. (2019). Common Vulnerability Scoring System v3.1.
      https://www.first.org/cvss/v3.1/specification-document
    - Pydantic v2 documentation. https://docs.pydantic.dev/latest/
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict


# ========================== Enumerations ===================================


class Severity(str, Enum):
    """Qualitative severity of a risk factor or signature match.

    Attributes:
        LOW:      Minor indicator; rarely meaningful on its own.
        MEDIUM:   Worth reviewing in context.
        HIGH:     Strong indicator of unwanted behaviour.
        CRITICAL: Characteristic of known offensive tooling.
    """

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class RiskLevel(str, Enum):
    """Coarse risk tier derived from the numeric obfuscation score.

    Thresholds (strictly greater than):
      - > 70 : CRITICAL
      - > 40 : HIGH
      - > 20 : MEDIUM
      - else : LOW
    """

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @classmethod
    def from_score(cls, score: float) -> RiskLevel:
        """Derive the tier from a 0-100 obfuscation score.

        Args:
            score: Numeric score in the range [0, 100].

        Returns:
            Corresponding :class:`RiskLevel` member.
        """
        if score > 70:
            return cls.CRITICAL
        if score > 40:
            return cls.HIGH
        if score > 20:
            return cls.MEDIUM
        return cls.LOW


# ========================== Base model ======================================


class FrozenModel(BaseModel):
    """Immutable pydantic base used for every analysis record.

    Instances reject attribute assignment after construction; sequence
    fields are declared as tuples by subclasses so nested data cannot be
    mutated in place either.
    """

    model_config = ConfigDict(
        frozen=True,
        use_enum_values=False,
        extra="ignore",
    )
