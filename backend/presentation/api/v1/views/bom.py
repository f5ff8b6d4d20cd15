"""
BOM Views.

API views for BOM trees and compliance forests.
"""

import logging

from django.conf import settings
from rest_framework.decorators import action
from rest_framework.response import Response

from domain.bom.aggregation import effective_status, node_set_statistics, status_statistics, total_cost
from domain.bom.analysis import cost_breakdown, part_statistics, validate_structure
from domain.bom.designator import place_child
from domain.bom.entities import ComplianceNode
from domain.bom.forest import collect_selected_in_forest, iter_forest
from domain.bom.records import (
    forest_from_records,
    node_from_record,
    node_to_record,
    patch_from_record,
    to_json_safe,
)
from domain.bom import tree as bom_tree
from domain.shared.exceptions import ParentNotFoundException
from ..serializers.bom import (
    AddChildSerializer,
    ComplianceSelectionSerializer,
    ComplianceStatisticsSerializer,
    DeleteNodeSerializer,
    TreeSerializer,
    UpdateNodeSerializer,
)
from .base import BaseTreeViewSet

logger = logging.getLogger(__name__)


def tree_payload(root, **extra):
    """Response body carrying a tree record plus its total cost."""
    return {
        'tree': to_json_safe(node_to_record(root), places=None),
        'totalCost': to_json_safe(total_cost(root)),
        **extra,
    }


class BOMTreeViewSet(BaseTreeViewSet):
    """
    ViewSet for editing a BOM tree.

    Endpoints:
    - POST /bom-tree/add-child/ - append a node under parentId
    - POST /bom-tree/update-node/ - merge a patch into nodeId
    - POST /bom-tree/delete-node/ - remove nodeId with its subtree
    - POST /bom-tree/summary/ - cost, statistics and audit of a tree
    """

    serializer_classes = {
        'add_child': AddChildSerializer,
        'update_node': UpdateNodeSerializer,
        'delete_node': DeleteNodeSerializer,
        'default': TreeSerializer,
    }

    @action(detail=False, methods=['post'], url_path='add-child')
    def add_child(self, request):
        """Add a child node."""
        data = self.get_validated_data(request)
        root = node_from_record(data['tree'])
        parent = bom_tree.find_node(root, data['parentId'])
        if parent is None:
            raise ParentNotFoundException(data['parentId'])

        record = dict(data['node'])
        if record.get('level') is None or not record.get('position'):
            slot = place_child(parent, record.get('level'))
            record['level'] = slot.level
            record['position'] = record.get('position') or slot.position
        node = node_from_record(record)

        new_root = bom_tree.add_child_node(root, parent.id, node)
        created = bom_tree.find_node(new_root, node.id)
        logger.info(f"Added node {created.id} ({created.position or 'no position'}) under {data['parentId']}")

        return Response(tree_payload(
            new_root,
            node=to_json_safe(node_to_record(created), places=None),
        ))

    @action(detail=False, methods=['post'], url_path='update-node')
    def update_node(self, request):
        """Update fields of a node."""
        data = self.get_validated_data(request)
        root = node_from_record(data['tree'])
        patch = patch_from_record(data['patch'])

        new_root = bom_tree.update_node(root, data['nodeId'], patch)
        logger.info(f"Updated node {data['nodeId']}: {sorted(patch)}")

        return Response(tree_payload(new_root))

    @action(detail=False, methods=['post'], url_path='delete-node')
    def delete_node(self, request):
        """Delete a node and its subtree."""
        data = self.get_validated_data(request)
        root = node_from_record(data['tree'])

        new_root = bom_tree.delete_node(root, data['nodeId'])
        logger.info(f"Deleted node {data['nodeId']}")

        return Response(tree_payload(new_root))

    @action(detail=False, methods=['post'])
    def summary(self, request):
        """Derived values of a tree; the tree itself is not returned."""
        data = self.get_validated_data(request)
        root = node_from_record(data['tree'])

        return Response(to_json_safe({
            'totalCost': total_cost(root),
            'statistics': part_statistics(root).to_dict(),
            'breakdown': cost_breakdown(root).to_dict(),
            'validation': validate_structure(root).to_dict(),
            'ids': bom_tree.collect_ids(root),
        }))


class ComplianceForestViewSet(BaseTreeViewSet):
    """
    ViewSet for compliance forests.

    Endpoints:
    - POST /compliance-forest/statistics/ - status counts and per-node status
    - POST /compliance-forest/selection/ - selected nodes and their statistics
    """

    serializer_classes = {
        'statistics': ComplianceStatisticsSerializer,
        'selection': ComplianceSelectionSerializer,
    }

    @property
    def window_days(self):
        return settings.BOM_EXPIRY_WINDOW_DAYS

    @action(detail=False, methods=['post'])
    def statistics(self, request):
        """Count nodes by effective status."""
        data = self.get_validated_data(request)
        forest = forest_from_records(data['forest'], compliance=True)
        today = data.get('today')

        stats = status_statistics(forest, today, self.window_days)
        statuses = {
            node.id: effective_status(node, today, self.window_days).value
            for node in iter_forest(forest)
            if isinstance(node, ComplianceNode)
        }

        return Response(to_json_safe({
            **stats.to_dict(),
            'statuses': statuses,
        }))

    @action(detail=False, methods=['post'])
    def selection(self, request):
        """Selected nodes in traversal order, with node-set statistics."""
        data = self.get_validated_data(request)
        forest = forest_from_records(data['forest'], compliance=True)

        selected = collect_selected_in_forest(forest, data['ids'])
        stats = node_set_statistics(selected, data.get('today'), self.window_days)

        return Response({
            'nodes': [to_json_safe(node_to_record(node), places=None) for node in selected],
            'statistics': to_json_safe(stats.to_dict()),
        })
