"""
In-Memory Audit Storage

Used by tests and by deployments that only want local structured logs.
Events live as long as the process does.
"""

from typing import Optional

from finledger.models.audit import AuditEvent, AuditEventType
from finledger.services.storage.interface import AuditStorageInterface


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only list of audit events."""

    def __init__(self):
        self._events: list[AuditEvent] = []

    @property
    def events(self) -> list[AuditEvent]:
        return list(self._events)

    async def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    async def get_events_by_actor(self, actor: str) -> list[AuditEvent]:
        events = [e for e in self._events if e.actor == actor]
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: str,
    ) -> list[AuditEvent]:
        events = [
            e for e in self._events
            if e.entity_type == entity_type and e.entity_id == entity_id
        ]
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_recent_events(
        self,
        limit: int = 100,
        event_type: Optional[AuditEventType] = None,
    ) -> list[AuditEvent]:
        events = [
            e for e in self._events
            if event_type is None or e.event_type == event_type
        ]
        # Newest first; append order breaks timestamp ties
        indexed = list(enumerate(events))
        indexed.sort(key=lambda pair: (pair[1].timestamp, pair[0]), reverse=True)
        return [e for _, e in indexed[:limit]]
