"""
BOM Serializers.

Request serializers for the stateless BOM tree endpoints. The client
sends the whole tree (or forest) with every request; serializers only
check the shape of the records, the domain layer checks the rules.
"""

from rest_framework import serializers

from domain.bom.levels import MAX_LEVEL, MIN_LEVEL
from domain.shared.value_objects import ComplianceStatus, ItemStatus, Lifecycle

from .base import RecursiveChildrenMixin, choices_of


class NodeRecordSerializer(RecursiveChildrenMixin, serializers.Serializer):
    """One node record (camelCase keys) with its nested children."""

    id = serializers.CharField(required=False, allow_blank=True)
    parentId = serializers.CharField(required=False, allow_null=True, allow_blank=True)
    level = serializers.IntegerField(min_value=MIN_LEVEL, max_value=MAX_LEVEL)
    position = serializers.CharField(required=False, allow_blank=True)
    nodeType = serializers.CharField(required=False, allow_blank=True)
    title = serializers.CharField(required=False, allow_blank=True)

    # Material attributes (levels 6-7)
    partName = serializers.CharField(required=False, allow_blank=True)
    quantity = serializers.DecimalField(
        max_digits=None, decimal_places=None, min_value=1, required=False
    )
    unit = serializers.CharField(required=False, allow_blank=True)
    cost = serializers.DecimalField(
        max_digits=None, decimal_places=None, min_value=0, required=False
    )
    supplier = serializers.CharField(required=False, allow_blank=True)
    variance = serializers.DecimalField(max_digits=None, decimal_places=None, required=False)
    lifecycle = serializers.ChoiceField(choices=choices_of(Lifecycle), required=False)
    itemStatus = serializers.ChoiceField(choices=choices_of(ItemStatus), required=False)
    partId = serializers.CharField(required=False, allow_null=True, allow_blank=True)

    # Compliance attributes
    status = serializers.ChoiceField(choices=choices_of(ComplianceStatus), required=False)
    expireDate = serializers.DateField(required=False, allow_null=True)

    children = serializers.ListField(
        child=serializers.DictField(), required=False, default=list
    )


class NewNodeSerializer(NodeRecordSerializer):
    """Record of a node to add; level and position may be left to the server."""

    level = serializers.IntegerField(min_value=MIN_LEVEL, max_value=MAX_LEVEL, required=False)


class AddChildSerializer(serializers.Serializer):
    tree = NodeRecordSerializer()
    parentId = serializers.CharField()
    node = NewNodeSerializer()


class UpdateNodeSerializer(serializers.Serializer):
    tree = NodeRecordSerializer()
    nodeId = serializers.CharField()
    patch = serializers.DictField()

    def validate_patch(self, value):
        if not value:
            raise serializers.ValidationError("Patch must name at least one field.")
        return value


class DeleteNodeSerializer(serializers.Serializer):
    tree = NodeRecordSerializer()
    nodeId = serializers.CharField()


class TreeSerializer(serializers.Serializer):
    tree = NodeRecordSerializer()


class ComplianceStatisticsSerializer(serializers.Serializer):
    forest = NodeRecordSerializer(many=True)
    today = serializers.DateField(required=False)


class ComplianceSelectionSerializer(serializers.Serializer):
    forest = NodeRecordSerializer(many=True)
    ids = serializers.ListField(child=serializers.CharField(), allow_empty=True)
    today = serializers.DateField(required=False)
