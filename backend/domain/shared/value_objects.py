"""
Shared Value Objects used across the BOM domain.

Value Objects are immutable objects that describe characteristics of a thing.
Two value objects are equal if all their properties are equal.
"""

from __future__ import annotations
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any

from .exceptions import ValidationException


# =============================================================================
# ENUMERATIONS
# =============================================================================

class NodeType(str, Enum):
    """Kind of a BOM tree node, derived from its level."""

    STRUCTURAL = "structural"            # Levels 1-5
    PRIMARY_PART = "primary-part"        # Level 6
    ALTERNATE_PART = "alternate-part"    # Level 7


class Lifecycle(str, Enum):
    """Lifecycle phase of a part."""

    RESEARCH = "research"
    PILOT = "pilot"
    MASS_PRODUCTION = "mass-production"
    END_OF_LIFE = "end-of-life"
    OBSOLETE = "obsolete"


class ItemStatus(str, Enum):
    """Usability status of a part inside a BOM."""

    VALID = "valid"
    INVALID = "invalid"
    PENDING = "pending"
    SUBSTITUTED = "substituted"
    OBSOLETE = "obsolete"

    @property
    def is_active(self) -> bool:
        """Only valid parts count as active for cost and coverage."""
        return self is ItemStatus.VALID


class ComplianceStatus(str, Enum):
    """Regulatory compliance state of a node."""

    COMPLIANT = "compliant"
    EXPIRING = "expiring"
    MISSING = "missing"


def coerce_enum(enum_cls, value: Any, field: str):
    """Convert a raw value into an enum member, raising ValidationException."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        allowed = [m.value for m in enum_cls]
        raise ValidationException(
            f"Invalid {field} '{value}'. Allowed: {allowed}", field, value
        )


def coerce_decimal(value: Any, field: str) -> Decimal:
    """Convert a raw number into Decimal via its string form."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ValidationException(f"{field} must be a number", field, value)
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationException(f"{field} must be a number", field, value)


# =============================================================================
# VALUE OBJECTS
# =============================================================================

@dataclass(frozen=True)
class Designator:
    """
    Value object representing a node position code.
    Follows the hierarchical designator convention.

    Example: M1.U2.S1.P3.B
    """

    value: str

    def __post_init__(self):
        if not self.value:
            raise ValidationException("Designator cannot be empty", "position")

    @property
    def segments(self) -> list[str]:
        return self.value.split('.')

    def is_child_of(self, parent: Designator) -> bool:
        """Check if this designator extends another one."""
        return self.value.startswith(parent.value + '.')

    def __str__(self) -> str:
        return self.value
