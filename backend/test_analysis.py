"""Test structure audit and cost analysis reports."""

from decimal import Decimal

import pytest

from domain.bom.analysis import (
    CostThresholds,
    calculate_variance,
    cost_breakdown,
    cost_warnings,
    flatten_tree,
    grade_for_score,
    health_score,
    index_by_id,
    index_by_position,
    missing_parts,
    part_statistics,
    simulate_cost_change,
    validate_structure,
)
from domain.bom.entities import create_node
from domain.shared.exceptions import NodeNotFoundException


def _ids(document, *titles):
    by_title = {row.node.title: row.node.id for row in flatten_tree(document.root)}
    return [by_title[title] for title in titles]


# =============================================================================
# FLAT VIEWS
# =============================================================================

def test_flatten_tree_paths(document):
    rows = flatten_tree(document.root)
    assert [row.path for row in rows] == [
        "Printer",
        "Printer > Paper feed",
        "Printer > Paper feed > Roller",
        "Printer > Paper feed > Roller > Roller alt",
        "Printer > Paper feed > Spring",
    ]
    assert [row.depth for row in rows] == [0, 1, 2, 3, 2]
    assert rows[3].level_name == "Alternate part"


def test_indexes(document):
    roller_id, = _ids(document, "Roller")
    assert index_by_id(document.root)[roller_id].title == "Roller"
    by_position = index_by_position(document.root)
    assert [node.title for node in by_position["M1.U1.P1.A"]] == ["Roller alt"]
    assert sorted(by_position) == ["M1", "M1.U1", "M1.U1.P1", "M1.U1.P1.A", "M1.U1.P2"]


# =============================================================================
# STRUCTURE AUDIT
# =============================================================================

def test_document_tree_is_valid(document):
    report = validate_structure(document.root)
    assert report.is_valid
    assert report.to_dict() == {"isValid": True, "issues": []}


def test_structure_issues_are_reported():
    stray = create_node(7, "Stray", node_id="stray", parent_id="s", position="M1.S1.A")
    root = create_node(1, "R", node_id="r", position="M1", children=(
        create_node(3, "S", node_id="s", parent_id="wrong", position="M1.S1", children=(stray,)),
        create_node(2, "U", node_id="u", parent_id="r", position="M1.S1"),
    ))
    report = validate_structure(root)
    assert not report.is_valid
    assert [issue.node_id for issue in report.of_kind("parent_mismatch")] == ["s"]
    assert [issue.node_id for issue in report.of_kind("level_mismatch")] == ["stray"]
    assert [issue.node_id for issue in report.of_kind("position_conflict")] == ["u"]
    assert [issue.node_id for issue in report.of_kind("position_prefix")] == ["u"]
    assert [issue.node_id for issue in report.of_kind("no_active_primary_part")] == ["r"]


def test_position_must_extend_parent_by_whole_segment():
    root = create_node(1, "R", node_id="r", position="M1", children=(
        create_node(2, "U", node_id="u", parent_id="r", position="M1.U1", children=(
            create_node(3, "S", node_id="s", parent_id="u", position="M1.U12"),
            create_node(3, "T", node_id="t", parent_id="u", position="M1.U1.S3"),
            create_node(3, "V", node_id="v", parent_id="u", position="M1.U1.Sx"),
        )),
    ))
    flagged = [issue.node_id for issue in validate_structure(root).of_kind("position_prefix")]
    assert flagged == ["s", "v"]


def test_root_must_be_on_level_one():
    root = create_node(2, "Loose unit", node_id="u", position="M1.U1")
    kinds = [issue.kind for issue in validate_structure(root).issues]
    assert "level_mismatch" in kinds


# =============================================================================
# PART STATISTICS
# =============================================================================

def test_part_statistics(document):
    stats = part_statistics(document.root)
    assert (stats.total_parts, stats.primary_parts, stats.alternative_parts) == (3, 2, 1)
    assert (stats.active_parts, stats.active_alternative_parts) == (2, 1)
    assert stats.supplier_count == 2
    assert stats.coverage == Decimal("100.00")


def test_active_alternate_replaces_primary_cost(document):
    """Test that the roller counts at its alternate's 80 x 2 instead of 100 x 2."""
    assert part_statistics(document.root).effective_cost == Decimal("180")


def test_inactive_alternate_keeps_primary_cost(document):
    alt_id, = _ids(document, "Roller alt")
    document.edit_node(alt_id, {"item_status": "obsolete"})
    stats = part_statistics(document.root)
    assert stats.effective_cost == Decimal("220")
    assert stats.by_status == {"valid": 2, "obsolete": 1}


def test_missing_parts(document):
    roller_id, spring_id = _ids(document, "Roller", "Spring")
    document.edit_node(roller_id, {"item_status": "invalid"})
    assert missing_parts(document.root).count == 0

    document.edit_node(spring_id, {"item_status": "pending"})
    report = missing_parts(document.root)
    assert report.count == 1
    assert report.percentage == Decimal("33.3")
    assert report.to_dict()["details"][0]["position"] == "M1.U1.P2"


# =============================================================================
# COST BREAKDOWN
# =============================================================================

def test_cost_breakdown_by_level(document):
    breakdown = cost_breakdown(document.root)
    assert breakdown.total_cost == Decimal("380")
    primary, alternate = breakdown.by_level[6], breakdown.by_level[7]
    assert (primary.count, primary.cost) == (2, Decimal("220"))
    assert (alternate.count, alternate.cost) == (1, Decimal("160"))
    assert primary.cost + alternate.cost == breakdown.total_cost
    assert primary.percentage == Decimal("57.89")
    assert alternate.percentage == Decimal("42.11")


def test_cost_breakdown_by_supplier(document):
    suppliers = cost_breakdown(document.root).by_supplier
    assert [(s.name, s.cost) for s in suppliers] == [("Acme", Decimal("220")), ("Globex", Decimal("160"))]
    assert suppliers[0].parts == ["Roller", "Spring"]


@pytest.mark.parametrize("new, original, expected", [
    (120, 100, "20.00"),
    (80, 100, "-20.00"),
    ("33.3", "30", "11.00"),
    (5, 0, "0.00"),
])
def test_calculate_variance(new, original, expected):
    assert calculate_variance(new, original) == Decimal(expected)


def test_simulate_cost_change(document):
    spring_id, = _ids(document, "Spring")
    before = document.root
    impact = simulate_cost_change(document.root, spring_id, 10)
    assert impact.original_total == Decimal("380")
    assert impact.new_total == Decimal("400")
    assert impact.impact == Decimal("20")
    assert impact.updated_node_cost == Decimal("40")
    assert document.root is before


def test_simulate_cost_change_with_quantity(document):
    spring_id, = _ids(document, "Spring")
    impact = simulate_cost_change(document.root, spring_id, 5, quantity=10)
    assert impact.impact == Decimal("30")


def test_simulate_cost_change_on_structural_node(document):
    impact = simulate_cost_change(document.root, document.root.id, 999)
    assert impact.impact == Decimal("0")
    with pytest.raises(NodeNotFoundException):
        simulate_cost_change(document.root, "missing", 1)


# =============================================================================
# WARNINGS & HEALTH
# =============================================================================

def test_no_warnings_within_default_thresholds(document):
    report = cost_warnings(document.root)
    assert report.warnings == []
    assert not report.has_errors


def test_warnings_against_tight_thresholds(document):
    thresholds = CostThresholds(
        max_total_cost=Decimal("300"),
        max_cost_per_part=Decimal("150"),
        max_alternative_count=0,
    )
    report = cost_warnings(document.root, thresholds)
    assert [w.type for w in report.warnings] == ["total_cost", "expensive_part", "too_many_alternatives"]
    assert report.warnings[1].details == ["Roller: 200.00"]
    assert report.to_dict()["summary"] == {"total": 3, "errors": 1, "warnings": 1, "info": 1}


def test_high_variance_warning(document):
    roller_id, = _ids(document, "Roller")
    document.edit_node(roller_id, {"variance": "-25"})
    report = cost_warnings(document.root)
    assert [w.type for w in report.warnings] == ["high_variance"]
    assert report.has_warnings


def test_health_score(document):
    """Test deductions for alternate ratio (1 of 3) and only two suppliers."""
    score = health_score(document.root)
    assert score.alternative_ratio_deduction == 10
    assert score.supplier_diversity_deduction == 5
    assert (score.score, score.grade) == (85, "B")


def test_health_score_with_warnings(document):
    thresholds = CostThresholds(max_total_cost=Decimal("300"), max_cost_per_part=Decimal("150"),
                                max_alternative_count=0)
    score = health_score(document.root, thresholds=thresholds)
    assert score.warnings_deduction == 35
    assert (score.score, score.grade) == (50, "F")


@pytest.mark.parametrize("score, grade", [(100, "A"), (90, "A"), (89, "B"), (70, "C"), (60, "D"), (59, "F")])
def test_grade_for_score(score, grade):
    assert grade_for_score(score) == grade
