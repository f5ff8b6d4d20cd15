"""
BOM Tasks.

Celery tasks for BOM-related operations. Trees are handed over as plain
nested records, so a task never depends on the caller's process state.
"""

from datetime import date
from decimal import Decimal
import logging

from celery import shared_task
from django.conf import settings

from domain.bom.aggregation import status_statistics, total_cost
from domain.bom.analysis import (
    CostThresholds,
    cost_breakdown,
    cost_warnings,
    health_score,
    missing_parts,
    part_statistics,
    validate_structure,
)
from domain.bom.entities import parse_date
from domain.bom.records import forest_from_records, node_from_record, to_json_safe
from domain.bom.tree import collect_ids
from domain.shared.exceptions import DomainException

logger = logging.getLogger(__name__)


def thresholds_from_settings() -> CostThresholds:
    return CostThresholds(
        max_total_cost=Decimal(str(settings.BOM_MAX_TOTAL_COST)),
        max_cost_per_part=Decimal(str(settings.BOM_MAX_COST_PER_PART)),
        max_alternative_count=int(settings.BOM_MAX_ALTERNATIVE_COUNT),
        max_variance_percentage=Decimal(str(settings.BOM_MAX_VARIANCE_PERCENTAGE)),
    )


def _failure(exc: DomainException) -> dict:
    return {'success': False, 'error': exc.to_dict()}


@shared_task
def validate_bom_tree(tree: dict):
    """
    Audit a BOM tree record.

    Checks:
    - Level and parent references of every node
    - Position code conflicts and prefixes
    - At least one valid primary part
    """
    try:
        root = node_from_record(tree)
    except DomainException as e:
        logger.warning(f"Rejected BOM tree for validation: {e.message}")
        return _failure(e)

    report = validate_structure(root)
    logger.info(f"BOM {root.position or root.id} validation: {len(report.issues)} issues found")

    return to_json_safe({
        'success': True,
        'rootId': root.id,
        'nodesCount': len(collect_ids(root)),
        **report.to_dict(),
    })


@shared_task
def build_cost_report(tree: dict):
    """
    Full cost report of a BOM tree: summary, breakdown, warnings, health score.
    """
    try:
        root = node_from_record(tree)
    except DomainException as e:
        logger.warning(f"Rejected BOM tree for cost report: {e.message}")
        return _failure(e)

    warnings = cost_warnings(root, thresholds_from_settings())
    score = health_score(root, warnings)
    statistics = part_statistics(root)

    logger.info(
        f"Cost report for BOM {root.position or root.id}: "
        f"total {total_cost(root)}, {len(warnings.warnings)} warnings, grade {score.grade}"
    )

    return to_json_safe({
        'success': True,
        'rootId': root.id,
        'summary': {
            'totalCost': total_cost(root),
            **statistics.to_dict(),
        },
        'breakdown': cost_breakdown(root).to_dict(),
        'missingParts': missing_parts(root).to_dict(),
        'warnings': warnings.to_dict(),
        'healthScore': score.to_dict(),
    })


@shared_task
def compliance_snapshot(forest: list, today: str = None):
    """
    Status statistics of a compliance forest on a given day (default: today).
    """
    try:
        roots = forest_from_records(forest, compliance=True)
        as_of = parse_date(today, 'today') or date.today()
    except DomainException as e:
        logger.warning(f"Rejected compliance forest: {e.message}")
        return _failure(e)

    stats = status_statistics(roots, as_of, settings.BOM_EXPIRY_WINDOW_DAYS)
    logger.info(
        f"Compliance snapshot on {as_of}: {stats.compliant} compliant, "
        f"{stats.expiring} expiring, {stats.missing} missing"
    )

    return to_json_safe({
        'success': True,
        'date': as_of,
        'roots': len(roots),
        **stats.to_dict(),
    })
