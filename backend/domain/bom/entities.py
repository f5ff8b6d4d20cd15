"""
BOM Domain - Entities.

A BOM tree is made of immutable nodes. Every node exposes
id, level, position and children; the material attribute set only
exists on primary and alternate parts (levels 6-7).
"""

from __future__ import annotations
from dataclasses import dataclass, fields, replace
from datetime import date, datetime
from decimal import Decimal
from typing import Any, FrozenSet, Optional, Tuple
from uuid import uuid4

from domain.shared.exceptions import DepthExceededException, ValidationException
from domain.shared.value_objects import (
    ComplianceStatus,
    ItemStatus,
    Lifecycle,
    NodeType,
    coerce_decimal,
    coerce_enum,
)

from .levels import (
    PRIMARY_PART_LEVEL,
    can_have_material,
    is_leaf_level,
    node_type_for_level,
    validate_level,
)


# Fields that identify a node inside its tree; never replaced by a patch
IMMUTABLE_FIELDS: FrozenSet[str] = frozenset({"id", "level", "parent_id"})

MATERIAL_FIELDS: FrozenSet[str] = frozenset({
    "part_name", "quantity", "unit", "cost", "supplier",
    "variance", "lifecycle", "item_status", "part_id",
})


def new_node_id() -> str:
    """Globally unique node id."""
    return str(uuid4())


@dataclass(frozen=True)
class BOMNode:
    """
    Common shape of every node in a BOM tree.

    Nodes are values: mutation happens by building a new node
    (see domain.bom.tree), never by assigning attributes.
    """

    id: str
    level: int
    position: str = ""
    title: str = ""
    parent_id: Optional[str] = None
    children: Tuple[BOMNode, ...] = ()

    def __post_init__(self):
        if not self.id:
            raise ValidationException("Node id is required", "id")
        validate_level(self.level)
        if not isinstance(self.children, tuple):
            object.__setattr__(self, "children", tuple(self.children))
        if self.children and is_leaf_level(self.level):
            raise DepthExceededException(self.level)

    @property
    def node_type(self) -> NodeType:
        return node_type_for_level(self.level)

    @property
    def is_material(self) -> bool:
        return False

    @classmethod
    def field_names(cls) -> FrozenSet[str]:
        return frozenset(f.name for f in fields(cls))

    def replace(self, **changes: Any) -> BOMNode:
        """Return a copy with the given fields replaced."""
        unknown = set(changes) - self.field_names()
        if unknown:
            raise ValidationException(
                f"Unknown fields for {self.__class__.__name__}: {sorted(unknown)}",
                "patch",
                sorted(unknown),
            )
        return replace(self, **changes)

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} id={self.id} level={self.level} position={self.position!r}>"


@dataclass(frozen=True, repr=False)
class StructuralNode(BOMNode):
    """Assembly tiers (levels 1-5): machine, unit, sub-module, family, group."""

    def __post_init__(self):
        super().__post_init__()
        if can_have_material(self.level):
            raise ValidationException(
                f"Structural nodes live on levels 1-5, got level {self.level}",
                "level",
                self.level,
            )


@dataclass(frozen=True, repr=False)
class MaterialNode(BOMNode):
    """
    Primary part (level 6) or alternate part (level 7).

    Carries the material attribute set used by cost roll-up.
    """

    part_name: str = ""
    quantity: Decimal = Decimal("1")
    unit: str = "pcs"
    cost: Decimal = Decimal("0")
    supplier: str = ""
    variance: Decimal = Decimal("0")
    lifecycle: Lifecycle = Lifecycle.MASS_PRODUCTION
    item_status: ItemStatus = ItemStatus.VALID
    part_id: Optional[str] = None

    def __post_init__(self):
        super().__post_init__()
        if not can_have_material(self.level):
            raise ValidationException(
                f"Parts live on levels {PRIMARY_PART_LEVEL}-7, got level {self.level}",
                "level",
                self.level,
            )
        quantity = coerce_decimal(self.quantity, "quantity")
        cost = coerce_decimal(self.cost, "cost")
        if quantity < 1:
            raise ValidationException("Quantity must be at least 1", "quantity", quantity)
        if cost < 0:
            raise ValidationException("Cost cannot be negative", "cost", cost)
        object.__setattr__(self, "quantity", quantity)
        object.__setattr__(self, "cost", cost)
        object.__setattr__(self, "variance", coerce_decimal(self.variance, "variance"))
        object.__setattr__(self, "lifecycle", coerce_enum(Lifecycle, self.lifecycle, "lifecycle"))
        object.__setattr__(self, "item_status", coerce_enum(ItemStatus, self.item_status, "item_status"))

    @property
    def is_material(self) -> bool:
        return True

    @property
    def is_alternate(self) -> bool:
        return self.node_type is NodeType.ALTERNATE_PART

    @property
    def is_active(self) -> bool:
        return self.item_status.is_active

    @property
    def extended_cost(self) -> Decimal:
        """Own cost of this part line (cost x quantity)."""
        return self.cost * self.quantity


@dataclass(frozen=True, repr=False)
class ComplianceNode(BOMNode):
    """
    Node of the compliance tree.

    The stored status is independent per node; the expiry rule is
    applied at read time (see domain.bom.aggregation.effective_status).
    """

    status: ComplianceStatus = ComplianceStatus.COMPLIANT
    expire_date: Optional[date] = None

    def __post_init__(self):
        super().__post_init__()
        object.__setattr__(self, "status", coerce_enum(ComplianceStatus, self.status, "status"))
        object.__setattr__(self, "expire_date", parse_date(self.expire_date, "expire_date"))


def parse_date(value: Any, field_name: str) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, (date, datetime)):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        raise ValidationException(f"{field_name} must be an ISO date", field_name, value)


def create_node(
    level: int,
    title: str = "",
    *,
    node_id: Optional[str] = None,
    parent_id: Optional[str] = None,
    position: str = "",
    children: Tuple[BOMNode, ...] = (),
    **attributes: Any,
) -> BOMNode:
    """
    Factory for BOM nodes.

    Picks StructuralNode or MaterialNode from the level. Material
    attributes passed for a structural level are dropped.
    """
    validate_level(level)
    if can_have_material(level):
        node_cls = MaterialNode
    else:
        node_cls = StructuralNode
        attributes = {k: v for k, v in attributes.items() if k not in MATERIAL_FIELDS}

    unknown = set(attributes) - node_cls.field_names()
    if unknown:
        raise ValidationException(
            f"Unknown node attributes: {sorted(unknown)}", "attributes", sorted(unknown)
        )

    return node_cls(
        id=node_id or new_node_id(),
        level=level,
        position=position,
        title=title,
        parent_id=parent_id,
        children=tuple(children),
        **attributes,
    )


def create_compliance_node(
    level: int,
    title: str = "",
    *,
    node_id: Optional[str] = None,
    parent_id: Optional[str] = None,
    position: str = "",
    status: Any = ComplianceStatus.COMPLIANT,
    expire_date: Any = None,
    children: Tuple[BOMNode, ...] = (),
) -> ComplianceNode:
    """Factory for compliance tree nodes."""
    return ComplianceNode(
        id=node_id or new_node_id(),
        level=level,
        position=position,
        title=title,
        parent_id=parent_id,
        children=tuple(children),
        status=status,
        expire_date=expire_date,
    )
