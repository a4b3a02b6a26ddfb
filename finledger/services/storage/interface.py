"""
Audit Sink Interface

DESIGN DECISION: The ledger writes its audit trail through an abstract sink.
- Tests and local runs keep events in memory
- Household deployments append them to a Google Sheet admins can read
- Another backend only needs these four coroutines

The ledger state itself never goes through this interface; it lives in
an explicit store object owned by the service.
"""

from abc import ABC, abstractmethod
from typing import Optional

from finledger.models.audit import AuditEvent, AuditEventType


class AuditStorageInterface(ABC):
    """
    Append-only home for AuditEvents.

    Sinks never rewrite or drop an event once appended.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """Persist one event. Returns False when the sink could not take it."""
        pass

    @abstractmethod
    async def get_events_by_actor(self, actor: str) -> list[AuditEvent]:
        """Events raised by one caller principal, oldest first."""
        pass

    @abstractmethod
    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: str,
    ) -> list[AuditEvent]:
        """
        History of one ledger entity, oldest first.

        Args:
            entity_type: "transaction", "budget", "user", "invite", ...
            entity_id: Transaction id, category name or principal
        """
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
        event_type: Optional[AuditEventType] = None,
    ) -> list[AuditEvent]:
        """Up to `limit` events, newest first, optionally of a single type."""
        pass


class StorageError(Exception):
    """An audit sink failed to read or write."""
    pass


class StorageConnectionError(StorageError):
    """The audit sink backend is unreachable or misconfigured."""
    pass
