"""
BOM Domain - Level model.

The canonical 7-level BOM shape:
- L1 machine (top assembly), L2 unit, L3 sub-module, L4 family, L5 group
- L6 primary part
- L7 alternate (substitute) part, always a child of a primary part
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict

from domain.shared.exceptions import DepthExceededException, ValidationException
from domain.shared.value_objects import NodeType


MIN_LEVEL = 1
MAX_LEVEL = 7
PRIMARY_PART_LEVEL = 6
ALTERNATE_PART_LEVEL = 7


@dataclass(frozen=True)
class LevelInfo:
    level: int
    name: str
    prefix: str
    node_type: NodeType


BOM_LEVELS: Dict[int, LevelInfo] = {
    1: LevelInfo(1, "Machine", "M", NodeType.STRUCTURAL),
    2: LevelInfo(2, "Unit", "U", NodeType.STRUCTURAL),
    3: LevelInfo(3, "Sub-module", "S", NodeType.STRUCTURAL),
    4: LevelInfo(4, "Family", "F", NodeType.STRUCTURAL),
    5: LevelInfo(5, "Group", "G", NodeType.STRUCTURAL),
    6: LevelInfo(6, "Primary part", "P", NodeType.PRIMARY_PART),
    7: LevelInfo(7, "Alternate part", "", NodeType.ALTERNATE_PART),
}


def validate_level(level) -> int:
    """Return the level if it is an integer in 1..7."""
    if isinstance(level, bool) or not isinstance(level, int) or level not in BOM_LEVELS:
        raise ValidationException(
            f"BOM level must be an integer between {MIN_LEVEL} and {MAX_LEVEL}",
            "level",
            level,
        )
    return level


def is_leaf_level(level: int) -> bool:
    return level == MAX_LEVEL


def can_have_material(level: int) -> bool:
    return level >= PRIMARY_PART_LEVEL


def child_level(level: int) -> int:
    """Level of a node created under a node of the given level."""
    validate_level(level)
    if is_leaf_level(level):
        raise DepthExceededException(level)
    return level + 1


def node_type_for_level(level: int) -> NodeType:
    return BOM_LEVELS[validate_level(level)].node_type


def level_name(level: int) -> str:
    return BOM_LEVELS[validate_level(level)].name


def is_valid_child_level(parent_level: int, level: int) -> bool:
    """
    Check if a node of the given level may sit directly under the parent.

    Children are always deeper than their parent. Intermediate assembly
    tiers may be skipped (a part can hang directly under a unit), but an
    alternate part only ever sits under a primary part.
    """
    if level == ALTERNATE_PART_LEVEL:
        return parent_level == PRIMARY_PART_LEVEL
    return parent_level < level < ALTERNATE_PART_LEVEL
