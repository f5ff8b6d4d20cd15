"""
BOM Domain - Aggregates.

BOMDocument is the aggregate root of one editing session: it owns the
current tree value and publishes a new one after every mutation.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional

from domain.shared.base_aggregate import AggregateRoot
from domain.shared.events import (
    BOMDocumentCreated,
    BOMNodeAdded,
    BOMNodeRemoved,
    BOMNodeUpdated,
    DomainEvent,
)
from domain.shared.exceptions import (
    NodeNotFoundException,
    ParentNotFoundException,
    ValidationException,
)

from .aggregation import total_cost
from .designator import OrdinalSource, SiblingCountOrdinals, generate_position, place_child
from .entities import BOMNode, create_node
from .levels import MIN_LEVEL
from .records import node_to_record
from .tree import add_child_node, collect_ids, delete_node, find_node, update_node


@dataclass
class BOMDocument(AggregateRoot):
    """
    Aggregate root for a BOM being edited.

    Key responsibilities:
    - Hold the current immutable tree
    - Derive level, ordinal and position of every new node
    - Emit domain events for each published change
    """

    name: str = ""
    root: Optional[BOMNode] = None
    ordinals: OrdinalSource = field(default_factory=SiblingCountOrdinals, repr=False)

    @classmethod
    def create(
        cls,
        title: str,
        name: Optional[str] = None,
        ordinals: Optional[OrdinalSource] = None,
    ) -> BOMDocument:
        """Bootstrap a document with its level-1 root (position M1)."""
        root = create_node(MIN_LEVEL, title, position=generate_position(MIN_LEVEL, None, 1))
        document = cls(
            name=name if name is not None else title,
            root=root,
            ordinals=ordinals or SiblingCountOrdinals(),
        )
        document.add_domain_event(BOMDocumentCreated(
            document_id=document.id,
            root_id=root.id,
            position=root.position,
        ))
        return document

    # =========================================================================
    # QUERIES
    # =========================================================================

    @property
    def total_cost(self) -> Decimal:
        return total_cost(self._require_root())

    def find(self, node_id: str) -> Optional[BOMNode]:
        return find_node(self._require_root(), node_id)

    def to_record(self) -> Dict[str, Any]:
        return node_to_record(self._require_root())

    # =========================================================================
    # COMMANDS
    # =========================================================================

    def add_child(
        self,
        parent_id: str,
        title: str = "",
        level: Optional[int] = None,
        **attributes: Any,
    ) -> BOMNode:
        """
        Create a node under parent_id and publish the new tree.

        The level defaults to one below the parent; a deeper level skips
        intermediate tiers. The ordinal comes from the document's
        OrdinalSource. Returns the created node.
        """
        root = self._require_root()
        parent = find_node(root, parent_id)
        if parent is None:
            raise ParentNotFoundException(parent_id)

        slot = place_child(parent, level, self.ordinals)
        node = create_node(
            slot.level, title, parent_id=parent_id, position=slot.position, **attributes
        )
        new_root = add_child_node(root, parent_id, node)
        self.ordinals.commit(parent, slot.ordinal)

        self._publish(new_root, BOMNodeAdded(
            document_id=self.id,
            parent_id=parent_id,
            node_id=node.id,
            position=node.position,
            level=slot.level,
        ))
        return node

    def edit_node(self, node_id: str, patch: Mapping[str, Any]) -> BOMNode:
        """Merge patch into a node and publish the new tree."""
        new_root = update_node(self._require_root(), node_id, patch)
        self._publish(new_root, BOMNodeUpdated(
            document_id=self.id,
            node_id=node_id,
            changes={key: value for key, value in patch.items() if key != "children"},
        ))
        return find_node(new_root, node_id)

    def remove_node(self, node_id: str) -> List[str]:
        """Remove a node with its subtree; returns the removed ids."""
        root = self._require_root()
        target = find_node(root, node_id)
        if target is None:
            raise NodeNotFoundException(node_id)
        new_root = delete_node(root, node_id)
        removed = collect_ids(target)
        self._publish(new_root, BOMNodeRemoved(
            document_id=self.id,
            node_id=node_id,
            removed_ids=tuple(removed),
        ))
        return removed

    # =========================================================================
    # INTERNALS
    # =========================================================================

    def _require_root(self) -> BOMNode:
        if self.root is None:
            raise ValidationException("BOM document has no root node", "root")
        return self.root

    def _publish(self, new_root: BOMNode, event: DomainEvent) -> None:
        self.root = new_root
        self.record_change(event)

    def validate(self) -> None:
        root = self._require_root()
        if root.level != MIN_LEVEL or root.parent_id is not None:
            raise ValidationException(
                "Root of a BOM document must be a level-1 node without parent",
                "root",
                root.id,
            )
