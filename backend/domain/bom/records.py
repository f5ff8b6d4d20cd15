"""
BOM Domain - Plain record mapping.

Trees cross process boundaries (HTTP bodies, task payloads) as nested
dicts with camelCase keys. This module converts between those records
and node values.
"""

from __future__ import annotations
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional

from domain.shared.exceptions import ValidationException
from domain.shared.value_objects import ComplianceStatus

from .entities import (
    BOMNode,
    ComplianceNode,
    MaterialNode,
    create_compliance_node,
    create_node,
)


# record key -> node field
RECORD_FIELDS: Dict[str, str] = {
    "id": "id",
    "parentId": "parent_id",
    "level": "level",
    "position": "position",
    "title": "title",
    "children": "children",
    "partName": "part_name",
    "quantity": "quantity",
    "unit": "unit",
    "cost": "cost",
    "supplier": "supplier",
    "variance": "variance",
    "lifecycle": "lifecycle",
    "itemStatus": "item_status",
    "partId": "part_id",
    "status": "status",
    "expireDate": "expire_date",
}

MATERIAL_RECORD_KEYS = (
    "partName", "quantity", "unit", "cost", "supplier",
    "variance", "lifecycle", "itemStatus", "partId",
)

TWO_PLACES = Decimal("0.01")


def _require_mapping(record: Any) -> Mapping[str, Any]:
    if not isinstance(record, Mapping):
        raise ValidationException("Node record must be an object", "record", record)
    return record


def _children_of(record: Mapping[str, Any]) -> List[Any]:
    children = record.get("children") or []
    if not isinstance(children, (list, tuple)):
        raise ValidationException("children must be a list", "children", children)
    return list(children)


def node_from_record(
    record: Mapping[str, Any],
    compliance: bool = False,
    parent_id: Optional[str] = None,
) -> BOMNode:
    """
    Build a node (and its subtree) from a nested record.

    The record's nodeType is ignored and re-derived from the level.
    Material keys on structural levels are accepted and dropped; other
    unknown keys are ignored. Children get parentId set to their parent.
    """
    record = _require_mapping(record)
    if "level" not in record:
        raise ValidationException("Node record needs a level", "level")

    node_id = record.get("id") or None
    level = record["level"]
    position = record.get("position") or ""
    title = record.get("title") or ""
    owner = parent_id if parent_id is not None else (record.get("parentId") or None)

    if compliance:
        node = create_compliance_node(
            level,
            title,
            node_id=node_id,
            parent_id=owner,
            position=position,
            status=record.get("status") or ComplianceStatus.COMPLIANT,
            expire_date=record.get("expireDate"),
        )
    else:
        attributes = {
            RECORD_FIELDS[key]: record[key]
            for key in MATERIAL_RECORD_KEYS
            if key in record and record[key] is not None
        }
        node = create_node(
            level,
            title,
            node_id=node_id,
            parent_id=owner,
            position=position,
            **attributes,
        )

    children = tuple(
        node_from_record(child, compliance=compliance, parent_id=node.id)
        for child in _children_of(record)
    )
    if children:
        node = node.replace(children=children)
    return node


def _plain(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, date):
        return value.isoformat()
    return value


def node_to_record(node: BOMNode) -> Dict[str, Any]:
    """Nested record of a node and its subtree."""
    record: Dict[str, Any] = {
        "id": node.id,
        "parentId": node.parent_id,
        "level": node.level,
        "position": node.position,
        "nodeType": node.node_type.value,
        "title": node.title,
    }
    if isinstance(node, MaterialNode):
        for key in MATERIAL_RECORD_KEYS:
            record[key] = _plain(getattr(node, RECORD_FIELDS[key]))
    if isinstance(node, ComplianceNode):
        record["status"] = node.status.value
        record["expireDate"] = _plain(node.expire_date)
    record["children"] = [node_to_record(child) for child in node.children]
    return record


def forest_from_records(records: Iterable[Mapping[str, Any]], compliance: bool = False) -> List[BOMNode]:
    if isinstance(records, Mapping) or not isinstance(records, Iterable):
        raise ValidationException("Forest must be a list of node records", "forest")
    return [node_from_record(record, compliance=compliance) for record in records]


def forest_to_records(forest: Iterable[BOMNode]) -> List[Dict[str, Any]]:
    return [node_to_record(root) for root in forest]


def patch_from_record(patch: Mapping[str, Any], compliance: bool = False) -> Dict[str, Any]:
    """
    Translate a camelCase patch into node field names.

    Keys without a mapping are passed through unchanged so that the tree
    mutator can reject them. A children list is converted into nodes.
    """
    patch = _require_mapping(patch)
    result: Dict[str, Any] = {}
    for key, value in patch.items():
        if key == "nodeType":
            raise ValidationException("nodeType is derived from the level", "nodeType", value)
        name = RECORD_FIELDS.get(key, key)
        if name == "children":
            value = tuple(
                node_from_record(child, compliance=compliance)
                for child in (value or [])
            )
        result[name] = value
    return result


def to_json_safe(value: Any, places: Optional[Decimal] = TWO_PLACES) -> Any:
    """
    Recursively prepare a value for JSON.

    Decimals become strings, quantized to places (exact when places is
    None); dates become ISO strings; enums become their values.
    """
    if isinstance(value, Decimal):
        return str(value if places is None else value.quantize(places, rounding=ROUND_HALF_UP))
    if isinstance(value, (Enum, date)):
        return _plain(value)
    if isinstance(value, Mapping):
        return {str(key): to_json_safe(item, places) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_json_safe(item, places) for item in value]
    return value
