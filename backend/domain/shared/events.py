"""
Domain Events.

Domain events are records of significant business occurrences.
They are used for decoupling the BOM editing session from its listeners.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from uuid import UUID, uuid4


@dataclass(frozen=True)
class DomainEvent:
    """
    Base class for all domain events.

    Domain events are immutable records of something that happened in the domain.
    They are used for:
    - Triggering side effects (notifications, recalculations)
    - Audit trail
    """

    event_id: UUID = field(default_factory=uuid4)
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def event_type(self) -> str:
        """Get the event type name."""
        return self.__class__.__name__


# =============================================================================
# BOM EVENTS
# =============================================================================

@dataclass(frozen=True)
class BOMDocumentCreated(DomainEvent):
    """Event raised when a BOM document is bootstrapped with its root node."""

    document_id: Optional[UUID] = None
    root_id: str = ""
    position: str = ""


@dataclass(frozen=True)
class BOMNodeAdded(DomainEvent):
    """Event raised when a node is added under a parent."""

    document_id: Optional[UUID] = None
    parent_id: str = ""
    node_id: str = ""
    position: str = ""
    level: int = 0


@dataclass(frozen=True)
class BOMNodeUpdated(DomainEvent):
    """Event raised when node fields are replaced."""

    document_id: Optional[UUID] = None
    node_id: str = ""
    changes: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class BOMNodeRemoved(DomainEvent):
    """Event raised when a node and its subtree are removed."""

    document_id: Optional[UUID] = None
    node_id: str = ""
    removed_ids: tuple = ()
