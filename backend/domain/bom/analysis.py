"""
BOM Domain - Structure audit and cost analysis.

Read-only reports over a BOM tree: flat listings, consistency checks,
part statistics, cost breakdowns and cost warnings. None of these
functions change the tree they are given.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, List, Optional, Sequence, Union

from domain.shared.exceptions import NodeNotFoundException
from domain.shared.value_objects import Designator, coerce_decimal

from .aggregation import total_cost
from .designator import level_prefix
from .entities import BOMNode, MaterialNode
from .levels import (
    ALTERNATE_PART_LEVEL,
    MIN_LEVEL,
    PRIMARY_PART_LEVEL,
    is_valid_child_level,
    level_name,
)
from .tree import find_node, iter_nodes, update_node


TWO_PLACES = Decimal("0.01")
ONE_PLACE = Decimal("0.1")
ZERO = Decimal("0")
HUNDRED = Decimal("100")


def _percent(part: Decimal, whole: Decimal, places: Decimal = TWO_PLACES) -> Decimal:
    if not whole:
        return ZERO.quantize(places)
    return (Decimal(part) * HUNDRED / Decimal(whole)).quantize(places, rounding=ROUND_HALF_UP)


def _roots(root_or_forest: Union[BOMNode, Sequence[BOMNode]]) -> Sequence[BOMNode]:
    if isinstance(root_or_forest, BOMNode):
        return [root_or_forest]
    return root_or_forest


def _parts(root: BOMNode) -> List[MaterialNode]:
    return [node for node in iter_nodes(root) if isinstance(node, MaterialNode)]


# =============================================================================
# FLAT VIEWS
# =============================================================================

@dataclass(frozen=True)
class FlatRow:
    node: BOMNode
    depth: int
    path: str
    level_name: str


def flatten_tree(root_or_forest: Union[BOMNode, Sequence[BOMNode]]) -> List[FlatRow]:
    """
    Pre-order listing with the title path of every node.

    Example path: "Printer > Paper feed > Roller"
    """
    rows: List[FlatRow] = []

    def visit(node: BOMNode, depth: int, titles: List[str]) -> None:
        titles = titles + [node.title]
        rows.append(FlatRow(node, depth, " > ".join(titles), level_name(node.level)))
        for child in node.children:
            visit(child, depth + 1, titles)

    for root in _roots(root_or_forest):
        visit(root, 0, [])
    return rows


def index_by_id(root_or_forest: Union[BOMNode, Sequence[BOMNode]]) -> Dict[str, BOMNode]:
    index: Dict[str, BOMNode] = {}
    for root in _roots(root_or_forest):
        for node in iter_nodes(root):
            index.setdefault(node.id, node)
    return index


def index_by_position(root_or_forest: Union[BOMNode, Sequence[BOMNode]]) -> Dict[str, List[BOMNode]]:
    """Position code -> nodes carrying it (codes are not guaranteed unique)."""
    index: Dict[str, List[BOMNode]] = {}
    for root in _roots(root_or_forest):
        for node in iter_nodes(root):
            if node.position:
                index.setdefault(node.position, []).append(node)
    return index


# =============================================================================
# STRUCTURE AUDIT
# =============================================================================

@dataclass(frozen=True)
class StructureIssue:
    kind: str
    node_id: str
    message: str

    def to_dict(self) -> Dict[str, str]:
        return {"kind": self.kind, "nodeId": self.node_id, "message": self.message}


@dataclass
class StructureReport:
    issues: List[StructureIssue] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.issues

    def of_kind(self, kind: str) -> List[StructureIssue]:
        return [issue for issue in self.issues if issue.kind == kind]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "isValid": self.is_valid,
            "issues": [issue.to_dict() for issue in self.issues],
        }


def _last_segment_ok(node: BOMNode) -> bool:
    segment = Designator(node.position).segments[-1]
    if node.level == ALTERNATE_PART_LEVEL:
        return len(segment) == 1 and "A" <= segment <= "Z"
    prefix = level_prefix(node.level)
    return segment.startswith(prefix) and segment[len(prefix):].isdigit()


def validate_structure(root: BOMNode) -> StructureReport:
    """
    Audit a tree that may have been assembled from untrusted records.

    Issue kinds:
        level_mismatch          child is not deeper than its parent, an alternate is not
                                under a primary part, or the root is not on level 1
        parent_mismatch         parent_id does not name the owning node
        position_conflict       the same position code appears more than once
        position_prefix         position does not extend the parent's code
        no_active_primary_part  the tree has no valid level-6 part
    """
    issues: List[StructureIssue] = []
    seen_positions: Dict[str, str] = {}
    has_active_primary = False

    if root.level != MIN_LEVEL:
        issues.append(StructureIssue(
            "level_mismatch", root.id, f"Root is on level {root.level}, expected {MIN_LEVEL}"
        ))
    if root.parent_id is not None:
        issues.append(StructureIssue(
            "parent_mismatch", root.id, f"Root names parent {root.parent_id}"
        ))

    def visit(node: BOMNode, parent: Optional[BOMNode]) -> None:
        nonlocal has_active_primary

        if parent is not None:
            if not is_valid_child_level(parent.level, node.level):
                issues.append(StructureIssue(
                    "level_mismatch",
                    node.id,
                    f"Level {node.level} cannot sit under a level-{parent.level} parent",
                ))
            if node.parent_id != parent.id:
                issues.append(StructureIssue(
                    "parent_mismatch",
                    node.id,
                    f"parent_id {node.parent_id} but owned by {parent.id}",
                ))

        if node.position:
            if node.position in seen_positions:
                issues.append(StructureIssue(
                    "position_conflict",
                    node.id,
                    f"Position {node.position} already used by {seen_positions[node.position]}",
                ))
            else:
                seen_positions[node.position] = node.id

            extends_parent = (
                parent is None
                or not parent.position
                or Designator(node.position).is_child_of(Designator(parent.position))
            )
            if not extends_parent or not _last_segment_ok(node):
                issues.append(StructureIssue(
                    "position_prefix",
                    node.id,
                    f"Position {node.position} does not fit level {node.level}"
                    + (f" under {parent.position}" if parent is not None and parent.position else ""),
                ))

        if node.level == PRIMARY_PART_LEVEL and isinstance(node, MaterialNode) and node.is_active:
            has_active_primary = True

        for child in node.children:
            visit(child, node)

    visit(root, None)

    if not has_active_primary:
        issues.append(StructureIssue(
            "no_active_primary_part", root.id, "At least one valid primary part is required"
        ))
    return StructureReport(issues)


# =============================================================================
# PART STATISTICS
# =============================================================================

@dataclass
class PartStatistics:
    total_parts: int = 0
    primary_parts: int = 0
    alternative_parts: int = 0
    active_parts: int = 0
    active_alternative_parts: int = 0
    by_status: Dict[str, int] = field(default_factory=dict)
    supplier_count: int = 0
    effective_cost: Decimal = ZERO
    average_variance: Decimal = ZERO

    @property
    def effective_parts(self) -> int:
        return self.active_parts + self.active_alternative_parts

    @property
    def coverage(self) -> Decimal:
        return _percent(Decimal(self.effective_parts), Decimal(self.total_parts))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalParts": self.total_parts,
            "primaryParts": self.primary_parts,
            "alternativeParts": self.alternative_parts,
            "activeParts": self.active_parts,
            "activeAlternativeParts": self.active_alternative_parts,
            "effectiveParts": self.effective_parts,
            "byStatus": dict(self.by_status),
            "supplierCount": self.supplier_count,
            "effectiveCost": self.effective_cost,
            "averageVariance": self.average_variance,
            "coverage": self.coverage,
        }


def _active_alternate(primary: MaterialNode) -> Optional[MaterialNode]:
    for child in primary.children:
        if isinstance(child, MaterialNode) and child.is_active:
            return child
    return None


def part_statistics(root: BOMNode) -> PartStatistics:
    """
    Part counts plus the effective cost of the BOM.

    The effective cost counts each valid primary part once: when it has a
    valid alternate, the first such alternate's line cost replaces the
    primary's. Unlike total_cost, inactive lines are skipped.
    """
    stats = PartStatistics()
    suppliers = set()
    variances: List[Decimal] = []

    for part in _parts(root):
        stats.total_parts += 1
        stats.by_status[part.item_status.value] = stats.by_status.get(part.item_status.value, 0) + 1
        if part.is_alternate:
            stats.alternative_parts += 1
            if part.is_active:
                stats.active_alternative_parts += 1
            continue

        stats.primary_parts += 1
        if not part.is_active:
            continue
        stats.active_parts += 1
        line = _active_alternate(part) or part
        stats.effective_cost += line.extended_cost
        variances.append(line.variance)
        if line.supplier.strip():
            suppliers.add(line.supplier.strip())

    stats.supplier_count = len(suppliers)
    if variances:
        stats.average_variance = (sum(variances, ZERO) / len(variances)).quantize(
            TWO_PLACES, rounding=ROUND_HALF_UP
        )
    return stats


@dataclass
class MissingPartsReport:
    count: int
    percentage: Decimal
    details: List[MaterialNode]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "count": self.count,
            "percentage": self.percentage,
            "details": [
                {
                    "id": part.id,
                    "position": part.position,
                    "title": part.title,
                    "level": part.level,
                    "itemStatus": part.item_status.value,
                }
                for part in self.details
            ],
        }


def missing_parts(root: BOMNode) -> MissingPartsReport:
    """Primary parts that are not valid and have no valid alternate."""
    parts = _parts(root)
    missing = [
        part for part in parts
        if part.level == PRIMARY_PART_LEVEL
        and not part.is_active
        and _active_alternate(part) is None
    ]
    return MissingPartsReport(
        count=len(missing),
        percentage=_percent(Decimal(len(missing)), Decimal(len(parts)), ONE_PLACE),
        details=missing,
    )


# =============================================================================
# COST BREAKDOWN
# =============================================================================

@dataclass
class LevelCost:
    level: int
    count: int = 0
    active_count: int = 0
    cost: Decimal = ZERO
    percentage: Decimal = ZERO

    def to_dict(self) -> Dict[str, Any]:
        return {
            "level": self.level,
            "name": level_name(self.level),
            "count": self.count,
            "activeCount": self.active_count,
            "cost": self.cost,
            "percentage": self.percentage,
        }


@dataclass
class SupplierCost:
    name: str
    cost: Decimal = ZERO
    parts: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "cost": self.cost, "parts": list(self.parts)}


@dataclass
class CostBreakdown:
    total_cost: Decimal
    by_level: Dict[int, LevelCost]
    by_supplier: List[SupplierCost]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalCost": self.total_cost,
            "byLevel": [entry.to_dict() for _, entry in sorted(self.by_level.items())],
            "bySupplier": [entry.to_dict() for entry in self.by_supplier],
        }


def cost_breakdown(root: BOMNode) -> CostBreakdown:
    """
    Split total_cost by part level and by supplier.

    Level costs add up to total_cost; parts without a supplier are left
    out of the supplier list, which is sorted by cost, highest first.
    """
    total = total_cost(root)
    by_level = {
        PRIMARY_PART_LEVEL: LevelCost(PRIMARY_PART_LEVEL),
        ALTERNATE_PART_LEVEL: LevelCost(ALTERNATE_PART_LEVEL),
    }
    suppliers: Dict[str, SupplierCost] = {}

    for part in _parts(root):
        entry = by_level[part.level]
        entry.count += 1
        entry.cost += part.extended_cost
        if part.is_active:
            entry.active_count += 1
        name = part.supplier.strip()
        if name:
            supplier = suppliers.setdefault(name, SupplierCost(name))
            supplier.cost += part.extended_cost
            supplier.parts.append(part.title)

    for entry in by_level.values():
        entry.percentage = _percent(entry.cost, total)

    ranked = sorted(suppliers.values(), key=lambda s: s.cost, reverse=True)
    return CostBreakdown(total, by_level, ranked)


def calculate_variance(new_cost: Any, original_cost: Any) -> Decimal:
    """Relative change in percent, two decimals; 0 when there is no original cost."""
    new_cost = coerce_decimal(new_cost, "new_cost")
    original_cost = coerce_decimal(original_cost, "original_cost")
    if not original_cost:
        return ZERO.quantize(TWO_PLACES)
    return _percent(new_cost - original_cost, original_cost)


@dataclass
class CostImpact:
    node_id: str
    title: str
    original_node_cost: Decimal
    updated_node_cost: Decimal
    original_total: Decimal
    new_total: Decimal

    @property
    def impact(self) -> Decimal:
        return self.new_total - self.original_total

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nodeId": self.node_id,
            "title": self.title,
            "originalNodeCost": self.original_node_cost,
            "updatedNodeCost": self.updated_node_cost,
            "originalTotal": self.original_total,
            "newTotal": self.new_total,
            "impact": self.impact,
        }


def simulate_cost_change(root: BOMNode, node_id: str, cost: Any, quantity: Any = None) -> CostImpact:
    """
    What-if cost evaluation for one part line.

    Structural nodes carry no cost, so their impact is always zero.
    The given tree is not modified.
    """
    node = find_node(root, node_id)
    if node is None:
        raise NodeNotFoundException(node_id)

    original_total = total_cost(root)
    if not isinstance(node, MaterialNode):
        return CostImpact(node_id, node.title, ZERO, ZERO, original_total, original_total)

    new_cost = coerce_decimal(cost, "cost")
    new_quantity = node.quantity if quantity is None else coerce_decimal(quantity, "quantity")
    simulated = update_node(root, node_id, {
        "cost": new_cost,
        "quantity": new_quantity,
        "variance": calculate_variance(new_cost, node.cost),
    })
    return CostImpact(
        node_id=node_id,
        title=node.title,
        original_node_cost=node.extended_cost,
        updated_node_cost=new_cost * new_quantity,
        original_total=original_total,
        new_total=total_cost(simulated),
    )


# =============================================================================
# WARNINGS & HEALTH
# =============================================================================

@dataclass(frozen=True)
class CostThresholds:
    max_total_cost: Decimal = Decimal("100000")
    max_cost_per_part: Decimal = Decimal("10000")
    max_alternative_count: int = 5
    max_variance_percentage: Decimal = Decimal("20")


@dataclass(frozen=True)
class CostWarning:
    type: str
    level: str  # error | warning | info
    message: str
    details: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "level": self.level,
            "message": self.message,
            "details": list(self.details),
        }


@dataclass
class CostWarningReport:
    warnings: List[CostWarning] = field(default_factory=list)

    def count(self, level: str) -> int:
        return sum(1 for warning in self.warnings if warning.level == level)

    @property
    def has_errors(self) -> bool:
        return self.count("error") > 0

    @property
    def has_warnings(self) -> bool:
        return self.count("warning") > 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "warnings": [warning.to_dict() for warning in self.warnings],
            "hasErrors": self.has_errors,
            "hasWarnings": self.has_warnings,
            "summary": {
                "total": len(self.warnings),
                "errors": self.count("error"),
                "warnings": self.count("warning"),
                "info": self.count("info"),
            },
        }


def cost_warnings(root: BOMNode, thresholds: Optional[CostThresholds] = None) -> CostWarningReport:
    thresholds = thresholds or CostThresholds()
    report = CostWarningReport()
    parts = _parts(root)

    total = total_cost(root)
    if total > thresholds.max_total_cost:
        report.warnings.append(CostWarning(
            "total_cost",
            "error",
            f"Total cost {total:.2f} exceeds {thresholds.max_total_cost}",
        ))

    expensive = [
        part for part in parts
        if part.level == PRIMARY_PART_LEVEL
        and part.is_active
        and part.extended_cost > thresholds.max_cost_per_part
    ]
    if expensive:
        report.warnings.append(CostWarning(
            "expensive_part",
            "warning",
            f"{len(expensive)} part(s) cost more than {thresholds.max_cost_per_part}",
            [f"{part.title}: {part.extended_cost:.2f}" for part in expensive],
        ))

    alternatives = sum(1 for part in parts if part.is_alternate)
    if alternatives > thresholds.max_alternative_count:
        report.warnings.append(CostWarning(
            "too_many_alternatives",
            "info",
            f"{alternatives} alternate parts, more than the recommended {thresholds.max_alternative_count}",
        ))

    drifting = [
        part for part in parts
        if abs(part.variance) > thresholds.max_variance_percentage
    ]
    if drifting:
        report.warnings.append(CostWarning(
            "high_variance",
            "warning",
            f"{len(drifting)} part(s) vary by more than {thresholds.max_variance_percentage}%",
            [f"{part.title}: {part.variance}%" for part in drifting],
        ))

    return report


@dataclass(frozen=True)
class HealthScore:
    score: int
    grade: str
    warnings_deduction: int
    alternative_ratio_deduction: int
    supplier_diversity_deduction: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "score": self.score,
            "grade": self.grade,
            "details": {
                "warningsDeduction": self.warnings_deduction,
                "alternativeRatioDeduction": self.alternative_ratio_deduction,
                "supplierDiversityDeduction": self.supplier_diversity_deduction,
            },
        }


GRADES = ((90, "A"), (80, "B"), (70, "C"), (60, "D"))


def grade_for_score(score: int) -> str:
    for floor, grade in GRADES:
        if score >= floor:
            return grade
    return "F"


def health_score(
    root: BOMNode,
    warnings: Optional[CostWarningReport] = None,
    thresholds: Optional[CostThresholds] = None,
) -> HealthScore:
    """
    0-100 score of a BOM's cost health.

    Deductions: 20 per error, 10 per warning, 5 per info; 10 when more
    than 30% of the parts are alternates; 5 with fewer than 3 suppliers.
    """
    if warnings is None:
        warnings = cost_warnings(root, thresholds)
    stats = part_statistics(root)

    by_warnings = warnings.count("error") * 20 + warnings.count("warning") * 10 + warnings.count("info") * 5
    by_alternatives = 0
    if stats.total_parts and Decimal(stats.alternative_parts) / stats.total_parts > Decimal("0.3"):
        by_alternatives = 10
    by_suppliers = 5 if stats.supplier_count < 3 else 0

    score = max(0, min(100, 100 - by_warnings - by_alternatives - by_suppliers))
    return HealthScore(score, grade_for_score(score), by_warnings, by_alternatives, by_suppliers)
