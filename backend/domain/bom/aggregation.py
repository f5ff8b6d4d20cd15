"""
BOM Domain - Derived aggregates.

Cost roll-up over material nodes and compliance-status classification.
Everything here is recomputed from the tree on every call; nothing is
cached on the nodes.
"""

from __future__ import annotations
import math
from collections import Counter
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Iterable, Optional, Sequence, Union

from domain.shared.value_objects import ComplianceStatus

from .entities import BOMNode, ComplianceNode, MaterialNode
from .forest import iter_forest
from .tree import iter_nodes


DEFAULT_EXPIRY_WINDOW_DAYS = 90

SECONDS_PER_DAY = 24 * 60 * 60

TWO_PLACES = Decimal("0.01")


# =============================================================================
# COST
# =============================================================================

def own_cost(node: BOMNode) -> Decimal:
    """Cost contributed by the node itself, without its children."""
    if isinstance(node, MaterialNode):
        return node.extended_cost
    return Decimal("0")


def total_cost(node: BOMNode) -> Decimal:
    """
    Recursive cost roll-up.

    A part line contributes cost x quantity; structural nodes contribute
    nothing themselves. Alternates are summed like any other child.
    """
    return own_cost(node) + sum((total_cost(child) for child in node.children), Decimal("0"))


def forest_total_cost(forest: Sequence[BOMNode]) -> Decimal:
    return sum((total_cost(root) for root in forest), Decimal("0"))


# =============================================================================
# COMPLIANCE
# =============================================================================

def _as_datetime(value: Union[date, datetime], tzinfo=None) -> datetime:
    """Datetime for value; naive values take tzinfo so both sides compare."""
    if not isinstance(value, datetime):
        return datetime(value.year, value.month, value.day, tzinfo=tzinfo)
    if value.tzinfo is None and tzinfo is not None:
        return value.replace(tzinfo=tzinfo)
    return value


def days_until(expire_date: Union[date, datetime], today: Optional[Union[date, datetime]] = None) -> int:
    """
    Whole days left until expire_date, rounded up.

    Plain dates give an exact day difference; when either side carries a
    time of day the difference is taken in seconds and rounded up. A naive
    side is read in the time zone of the aware one.
    """
    if today is None:
        today = date.today()
    if not isinstance(expire_date, datetime) and not isinstance(today, datetime):
        return (expire_date - today).days

    tzinfo = next(
        (value.tzinfo for value in (today, expire_date)
         if isinstance(value, datetime) and value.tzinfo is not None),
        None,
    )
    delta = _as_datetime(expire_date, tzinfo) - _as_datetime(today, tzinfo)
    return math.ceil(delta.total_seconds() / SECONDS_PER_DAY)


def effective_status(
    node: ComplianceNode,
    today: Optional[date] = None,
    window_days: int = DEFAULT_EXPIRY_WINDOW_DAYS,
) -> ComplianceStatus:
    """
    Status shown for a node at read time.

    A node stored as compliant whose expire date falls within the window
    reads as expiring; every other node keeps its stored status.
    """
    if node.status is ComplianceStatus.COMPLIANT and node.expire_date is not None:
        if 0 <= days_until(node.expire_date, today) <= window_days:
            return ComplianceStatus.EXPIRING
    return node.status


@dataclass
class StatusStatistics:
    """Flat count of nodes per effective compliance status."""

    compliant: int = 0
    expiring: int = 0
    missing: int = 0

    @property
    def total(self) -> int:
        return self.compliant + self.expiring + self.missing

    @property
    def compliance_rate(self) -> Decimal:
        """Share of compliant nodes in percent, 0 for an empty set."""
        if not self.total:
            return Decimal("0.00")
        rate = Decimal(self.compliant) * 100 / Decimal(self.total)
        return rate.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)

    def add(self, status: ComplianceStatus) -> None:
        setattr(self, status.value, getattr(self, status.value) + 1)

    def to_dict(self) -> Dict[str, object]:
        return {
            "compliant": self.compliant,
            "expiring": self.expiring,
            "missing": self.missing,
            "total": self.total,
            "complianceRate": self.compliance_rate,
        }


def _count_statuses(
    nodes: Iterable[BOMNode],
    today: Optional[date],
    window_days: int,
) -> StatusStatistics:
    stats = StatusStatistics()
    for node in nodes:
        if isinstance(node, ComplianceNode):
            stats.add(effective_status(node, today, window_days))
    return stats


def status_statistics(
    root_or_forest: Union[BOMNode, Sequence[BOMNode]],
    today: Optional[date] = None,
    window_days: int = DEFAULT_EXPIRY_WINDOW_DAYS,
) -> StatusStatistics:
    """
    Count every compliance node of a tree or forest by effective status.

    Each node counts once regardless of its depth; a parent's status is
    not derived from its children.
    """
    if isinstance(root_or_forest, BOMNode):
        nodes = iter_nodes(root_or_forest)
    else:
        nodes = iter_forest(root_or_forest)
    return _count_statuses(nodes, today, window_days)


# =============================================================================
# NODE SETS
# =============================================================================

@dataclass
class NodeSetStatistics:
    count: int = 0
    by_level: Dict[int, int] = field(default_factory=dict)
    by_node_type: Dict[str, int] = field(default_factory=dict)
    material_cost: Decimal = Decimal("0")
    statuses: StatusStatistics = field(default_factory=StatusStatistics)

    def to_dict(self) -> Dict[str, object]:
        return {
            "count": self.count,
            "byLevel": {str(level): n for level, n in sorted(self.by_level.items())},
            "byNodeType": dict(self.by_node_type),
            "materialCost": self.material_cost,
            "statuses": self.statuses.to_dict(),
        }


def node_set_statistics(
    nodes: Iterable[BOMNode],
    today: Optional[date] = None,
    window_days: int = DEFAULT_EXPIRY_WINDOW_DAYS,
) -> NodeSetStatistics:
    """
    Statistics of an arbitrary node set (e.g. the current selection).

    Only the nodes themselves are counted: a selected parent does not
    bring its children into the set.
    """
    nodes = list(nodes)
    levels = Counter(node.level for node in nodes)
    types = Counter(node.node_type.value for node in nodes)
    return NodeSetStatistics(
        count=len(nodes),
        by_level=dict(levels),
        by_node_type=dict(types),
        material_cost=sum((own_cost(node) for node in nodes), Decimal("0")),
        statuses=_count_statuses(nodes, today, window_days),
    )
