"""
Shared pytest setup: Django settings, eager Celery and sample BOM trees.
"""

import os
import sys
from decimal import Decimal

import django
import pytest

# Setup Django
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings')
os.environ.setdefault('DJANGO_ENV', 'dev')
os.environ['CELERY_TASK_ALWAYS_EAGER'] = 'True'
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))
django.setup()

from config.celery import app as celery_app  # noqa: E402  binds shared tasks to the eager app

from domain.bom.aggregates import BOMDocument  # noqa: E402
from domain.bom.entities import create_compliance_node, create_node  # noqa: E402


@pytest.fixture
def celery_eager():
    celery_app.conf.task_always_eager = True
    celery_app.conf.task_eager_propagates = True
    return celery_app


@pytest.fixture
def document():
    """
    Printer BOM built through the aggregate:

    M1 Printer
    └── M1.U1 Paper feed
        ├── M1.U1.P1 Roller (100 x 2)
        │   └── M1.U1.P1.A Roller alt (80 x 2)
        └── M1.U1.P2 Spring (5 x 4)
    """
    doc = BOMDocument.create("Printer")
    unit = doc.add_child(doc.root.id, "Paper feed")
    roller = doc.add_child(
        unit.id, "Roller", level=6, cost=Decimal("100"), quantity=2, supplier="Acme"
    )
    doc.add_child(roller.id, "Roller alt", cost=Decimal("80"), quantity=2, supplier="Globex")
    doc.add_child(unit.id, "Spring", level=6, cost=Decimal("5"), quantity=4, supplier="Acme")
    doc.clear_domain_events()
    return doc


@pytest.fixture
def tree():
    """Five-level tree with fixed ids, built by hand."""
    alt = create_node(7, "Cap alt", node_id="alt", parent_id="part", position="M1.U1.S1.P1.A",
                      cost="2", quantity=1)
    part = create_node(6, "Cap", node_id="part", parent_id="sub", position="M1.U1.S1.P1",
                       cost="3", quantity=10, children=(alt,))
    sub = create_node(3, "Board", node_id="sub", parent_id="unit", position="M1.U1.S1",
                      children=(part,))
    unit = create_node(2, "Power", node_id="unit", parent_id="root", position="M1.U1",
                       children=(sub,))
    other = create_node(2, "Frame", node_id="other", parent_id="root", position="M1.U2")
    return create_node(1, "Machine", node_id="root", position="M1", children=(unit, other))


@pytest.fixture
def compliance_forest():
    """Two products; dates are relative to 2026-01-01."""
    first = create_compliance_node(
        1, "Product A", node_id="a", position="M1", status="compliant",
        expire_date="2026-12-31",
        children=(
            create_compliance_node(2, "Charger", node_id="a1", parent_id="a",
                                   status="compliant", expire_date="2026-01-31"),
            create_compliance_node(2, "Cable", node_id="a2", parent_id="a", status="missing"),
        ),
    )
    second = create_compliance_node(
        1, "Product B", node_id="b", position="M2", status="expiring",
        expire_date="2026-03-01",
        children=(
            create_compliance_node(2, "Battery", node_id="b1", parent_id="b",
                                   status="compliant", expire_date="2026-07-20"),
        ),
    )
    return [first, second]
