"""
Aggregate root base.

An aggregate root publishes each new state as a whole and queues one
domain event per published change. Callers drain the queue with
clear_domain_events() once a command has been handled.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import List

from .base_entity import VersionedEntity
from .events import DomainEvent


@dataclass
class AggregateRoot(VersionedEntity):
    """Versioned entity with a queue of pending domain events."""

    _domain_events: List[DomainEvent] = field(default_factory=list, repr=False)

    def add_domain_event(self, event: DomainEvent) -> None:
        self._domain_events.append(event)

    def record_change(self, event: DomainEvent) -> None:
        """Bump the version and queue the event describing the change."""
        self.increment_version()
        self.add_domain_event(event)

    def clear_domain_events(self) -> List[DomainEvent]:
        """Return the queued events and empty the queue."""
        events, self._domain_events = self._domain_events, []
        return events

    @property
    def domain_events(self) -> List[DomainEvent]:
        return list(self._domain_events)

    def validate(self) -> None:
        """Raise a DomainException when an invariant does not hold."""
