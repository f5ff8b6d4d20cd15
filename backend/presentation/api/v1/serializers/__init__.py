"""
Serializers Package.

All API serializers for the BOM engine.
"""

from .bom import (
    NodeRecordSerializer,
    NewNodeSerializer,
    AddChildSerializer,
    UpdateNodeSerializer,
    DeleteNodeSerializer,
    TreeSerializer,
    ComplianceStatisticsSerializer,
    ComplianceSelectionSerializer,
)
