"""
BOM Domain - Designator codes.

Every node carries a human-facing position code built from its level,
its parent's code and its sibling ordinal, e.g. M1.U2.P3.B.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Optional

from domain.shared.exceptions import MaxDepthExceededException, ValidationException

from .entities import BOMNode
from .levels import (
    ALTERNATE_PART_LEVEL,
    BOM_LEVELS,
    PRIMARY_PART_LEVEL,
    child_level,
    is_leaf_level,
    is_valid_child_level,
    validate_level,
)


# Alternates are lettered A..Z
MAX_ALTERNATE_ORDINAL = 26


def level_prefix(level: int) -> str:
    return BOM_LEVELS[validate_level(level)].prefix


def alternate_letter(ordinal: int) -> str:
    if not 1 <= ordinal <= MAX_ALTERNATE_ORDINAL:
        raise ValidationException(
            f"Alternate ordinal must be between 1 and {MAX_ALTERNATE_ORDINAL}",
            "ordinal",
            ordinal,
        )
    return chr(64 + ordinal)


def generate_position(
    level: int,
    parent_position: Optional[str],
    ordinal: int,
    is_alternate: Optional[bool] = None,
) -> str:
    """
    Compute the designator code of a new node.

    Examples:
        generate_position(1, None, 1)              -> "M1"
        generate_position(2, "M1", 1)              -> "M1.U1"
        generate_position(6, "M1.U1", 2)           -> "M1.U1.P2"
        generate_position(7, "M1.U1.P2", 1, True)  -> "M1.U1.P2.A"

    The parent position of an alternate is the position of its primary part.
    """
    validate_level(level)
    if isinstance(ordinal, bool) or not isinstance(ordinal, int) or ordinal < 1:
        raise ValidationException("Ordinal must be a positive integer", "ordinal", ordinal)
    if is_alternate is not None and is_alternate != (level == ALTERNATE_PART_LEVEL):
        raise ValidationException(
            "Only level-7 nodes are alternates", "is_alternate", is_alternate
        )

    prefix = level_prefix(level)

    if level == 1:
        return f"{prefix}{ordinal}"

    if level >= PRIMARY_PART_LEVEL:
        if not parent_position:
            return f"{prefix}{ordinal}"
        if level == PRIMARY_PART_LEVEL:
            return f"{parent_position}.{prefix}{ordinal}"
        return f"{parent_position}.{alternate_letter(ordinal)}"

    if parent_position:
        return f"{parent_position}.{prefix}{ordinal}"
    return f"{prefix}{ordinal}"


# =============================================================================
# ORDINAL SOURCES
# =============================================================================

class OrdinalSource(ABC):
    """
    Decides the sibling ordinal of the next child created under a parent.

    peek_ordinal() has no side effect; commit() records an ordinal once
    the child carrying it has been attached.
    """

    @abstractmethod
    def peek_ordinal(self, parent: BOMNode) -> int:
        pass

    def commit(self, parent: BOMNode, ordinal: int) -> None:
        pass

    def next_ordinal(self, parent: BOMNode) -> int:
        ordinal = self.peek_ordinal(parent)
        self.commit(parent, ordinal)
        return ordinal


class SiblingCountOrdinals(OrdinalSource):
    """
    Current number of children plus one.

    After a deletion the next child can receive an ordinal that was
    already used, so a historical position code may come back.
    """

    def peek_ordinal(self, parent: BOMNode) -> int:
        return len(parent.children) + 1


class MonotonicOrdinals(OrdinalSource):
    """
    Per-parent high-water mark; ordinals are never reused.

    The mark is seeded from the parent's current child count, so it can be
    attached to an existing tree.
    """

    def __init__(self, issued: Optional[Dict[str, int]] = None):
        self._issued: Dict[str, int] = dict(issued or {})

    def peek_ordinal(self, parent: BOMNode) -> int:
        return max(self._issued.get(parent.id, 0), len(parent.children)) + 1

    def commit(self, parent: BOMNode, ordinal: int) -> None:
        self._issued[parent.id] = max(self._issued.get(parent.id, 0), ordinal)

    @property
    def issued(self) -> Dict[str, int]:
        return dict(self._issued)


# =============================================================================
# CHILD PLACEMENT
# =============================================================================

@dataclass(frozen=True)
class ChildSlot:
    """Level, ordinal and position a new child of a given parent would get."""

    level: int
    ordinal: int
    position: str


def place_child(
    parent: BOMNode,
    level: Optional[int] = None,
    ordinals: Optional[OrdinalSource] = None,
) -> ChildSlot:
    """
    Work out where a new child of parent goes, without committing the ordinal.

    The level defaults to one below the parent. Raises
    MaxDepthExceededException under a level-7 alternate and
    ValidationException when level cannot sit below the parent.
    """
    if is_leaf_level(parent.level):
        raise MaxDepthExceededException(parent.id, parent.level)
    if level is None:
        level = child_level(parent.level)
    elif not is_valid_child_level(parent.level, level):
        raise ValidationException(
            f"A level-{level} node cannot be a child of a level-{parent.level} node",
            "level",
            level,
        )
    ordinal = (ordinals or SiblingCountOrdinals()).peek_ordinal(parent)
    position = generate_position(
        level,
        parent.position,
        ordinal,
        is_alternate=level == ALTERNATE_PART_LEVEL,
    )
    return ChildSlot(level=level, ordinal=ordinal, position=position)
