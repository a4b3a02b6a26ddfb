"""
Audit Logger

DESIGN DECISION: Every call that reaches the ledger leaves a trace:
1. Committed mutations, with the entity they touched
2. Business rejections, with the result tag returned to the caller
3. Authorization denials and unexpected faults

The audit logger:
- Is async so persistence never runs inside the ledger's critical section
- Never fails the ledger call it is reporting on
"""

from typing import Callable, Optional

import structlog

from finledger.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from finledger.services.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


_LEVELS = {
    AuditSeverity.DEBUG: "debug",
    AuditSeverity.INFO: "info",
    AuditSeverity.WARNING: "warning",
    AuditSeverity.ERROR: "error",
    AuditSeverity.CRITICAL: "critical",
}


class AuditLogger:
    """
    Writes ledger audit events.

    Each event goes to the structured JSON log and, when a sink is
    attached, to that AuditStorageInterface as well.
    """

    def __init__(self, storage: Optional[AuditStorageInterface] = None):
        """
        Args:
            storage: Audit sink. None keeps the trail in the local log only.
        """
        self._storage = storage
        self._logger = structlog.get_logger("finledger.audit")

    @property
    def storage(self) -> Optional[AuditStorageInterface]:
        return self._storage

    async def log(self, event: AuditEvent) -> bool:
        """
        Record one event.

        Returns False only when an attached sink rejected or failed the
        write; the failure itself is logged, never raised.
        """
        emit = getattr(self._logger, _LEVELS.get(event.severity, "info"))
        emit("audit_event", **event.to_log_dict())

        if self._storage is None:
            return True

        try:
            return await self._storage.append_event(event)
        except Exception as e:
            self._logger.error(
                "audit_storage_failed",
                error=str(e),
                event_id=str(event.event_id),
            )
            return False

    async def log_built(self, build: Callable[[], AuditEvent]) -> bool:
        """
        Build an event and record it.

        The ledger call being reported on has already finished, so a
        failure to build the event is logged and reported as False.
        """
        try:
            event = build()
        except Exception as e:
            self._logger.error(
                "audit_event_build_failed",
                error_type=type(e).__name__,
                error=str(e),
            )
            return False
        return await self.log(event)

    async def log_rejected(
        self,
        actor: str,
        operation: str,
        result: str,
        entity_id: Optional[str] = None,
    ) -> None:
        """A call returned a non-success result tag."""
        await self.log_built(lambda: AuditEventBuilder.rejected(
            actor=actor,
            operation=operation,
            result=result,
            entity_id=entity_id,
        ))

    async def log_authorization_denied(
        self,
        actor: str,
        operation: str,
        error_message: str,
    ) -> None:
        await self.log_built(lambda: AuditEventBuilder.authorization_denied(
            actor=actor,
            operation=operation,
            error_message=error_message,
        ))

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        actor: Optional[str] = None,
    ) -> None:
        """A call faulted with something other than an authorization error."""
        await self.log_built(lambda: AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            actor=actor,
        ))
