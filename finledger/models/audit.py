"""
Audit Models for the Finance Ledger

Every call that reaches the ledger leaves an audit event behind:
committed mutations, rejected business results and authorization denials.
This provides:
1. Traceability of who changed what, and when
2. Debugging information when a caller reports a surprising result
3. A history that survives even though transactions can be deleted

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditEventType(str, Enum):
    """
    Types of events we audit.

    Each mutating ledger operation has its own event type.
    """
    # Transactions
    TRANSACTION_ADDED = "transaction_added"
    TRANSACTION_UPDATED = "transaction_updated"
    TRANSACTION_DELETED = "transaction_deleted"

    # Budgets
    BUDGET_SET = "budget_set"
    BUDGET_DELETED = "budget_deleted"

    # Registries
    CATEGORY_ADDED = "category_added"
    CATEGORY_DELETED = "category_deleted"
    PAYMENT_METHOD_ADDED = "payment_method_added"
    PAYMENT_METHOD_DELETED = "payment_method_deleted"

    # Onboarding and identity
    INVITE_ISSUED = "invite_issued"
    INVITE_GENERATION_FAILED = "invite_generation_failed"
    INVITE_ACCEPTED = "invite_accepted"
    ACCESS_REVOKED = "access_revoked"

    # Preferences
    PROFILE_UPDATED = "profile_updated"
    NOTIFICATION_SETTINGS_UPDATED = "notification_settings_updated"

    # Rejections
    OPERATION_REJECTED = "operation_rejected"
    AUTHORIZATION_DENIED = "authorization_denied"

    # System events
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=_utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Who did it
    actor: Optional[str] = Field(
        default=None,
        description="Principal of the caller"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'transaction', 'budget', 'invite')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="Key of the entity this event relates to"
    )

    # Event details
    operation: Optional[str] = Field(
        default=None,
        description="Name of the ledger operation"
    )
    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    # Error information (if applicable)
    error_code: Optional[str] = None
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "actor": self.actor,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "operation": self.operation,
            "description": self.description,
            "details": self.details,
            "error_code": self.error_code,
            "error_message": self.error_message,
        }

    def to_sheets_row(self) -> list:
        """
        Convert to a row suitable for Google Sheets storage.

        Returns columns in order:
        [event_id, timestamp, event_type, severity, actor, entity_type,
         entity_id, operation, description, details_json, error_code,
         error_message]
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.actor or "",
            self.entity_type or "",
            self.entity_id or "",
            self.operation or "",
            self.description,
            json.dumps(self.details) if self.details else "",
            self.error_code or "",
            self.error_message or "",
        ]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.transaction_added(actor, txn_id, amount, category)
        event = AuditEventBuilder.rejected(actor, "deleteTransaction", "invalidTxn")
    """

    @staticmethod
    def transaction_added(
        actor: str,
        transaction_id: int,
        amount: int,
        category: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_ADDED,
            actor=actor,
            entity_type="transaction",
            entity_id=str(transaction_id),
            operation="addTransaction",
            description=f"Transaction {transaction_id} added",
            details={
                "amount": amount,
                "category": category,
            },
        )

    @staticmethod
    def transaction_updated(actor: str, transaction_id: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_UPDATED,
            actor=actor,
            entity_type="transaction",
            entity_id=str(transaction_id),
            operation="updateTransaction",
            description=f"Transaction {transaction_id} updated",
        )

    @staticmethod
    def transaction_deleted(actor: str, transaction_id: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_DELETED,
            actor=actor,
            entity_type="transaction",
            entity_id=str(transaction_id),
            operation="deleteTransaction",
            description=f"Transaction {transaction_id} deleted",
        )

    @staticmethod
    def budget_set(actor: str, category: str, amount: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BUDGET_SET,
            actor=actor,
            entity_type="budget",
            entity_id=category,
            operation="setBudget",
            description="Budget set",
            details={"amount": amount},
        )

    @staticmethod
    def budget_deleted(actor: str, category: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BUDGET_DELETED,
            actor=actor,
            entity_type="budget",
            entity_id=category,
            operation="deleteBudget",
            description="Budget deleted",
        )

    @staticmethod
    def registry_changed(
        actor: str,
        event_type: AuditEventType,
        entity_type: str,
        name: str,
        operation: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=event_type,
            actor=actor,
            entity_type=entity_type,
            entity_id=name,
            operation=operation,
            description=f"{entity_type.replace('_', ' ').capitalize()} {event_type.value.rsplit('_', 1)[-1]}",
            details={"name": name},
        )

    @staticmethod
    def invite_issued(actor: str, expires_at: int) -> AuditEvent:
        # The token itself is a credential and is never written to the log
        return AuditEvent(
            event_type=AuditEventType.INVITE_ISSUED,
            actor=actor,
            entity_type="invite",
            operation="generateInviteLink",
            description="Invite link generated",
            details={"expires_at": expires_at},
        )

    @staticmethod
    def invite_generation_failed(actor: str, reason: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INVITE_GENERATION_FAILED,
            severity=AuditSeverity.WARNING,
            actor=actor,
            entity_type="invite",
            operation="generateInviteLink",
            description="Invite link generation failed",
            error_message=reason,
        )

    @staticmethod
    def invite_accepted(actor: str, username: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INVITE_ACCEPTED,
            actor=actor,
            entity_type="user",
            entity_id=actor,
            operation="acceptInvite",
            description="Invite accepted",
            details={"username": username},
        )

    @staticmethod
    def access_revoked(actor: str, principal: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ACCESS_REVOKED,
            severity=AuditSeverity.WARNING,
            actor=actor,
            entity_type="user",
            entity_id=principal,
            operation="revokeAccess",
            description="Access revoked",
        )

    @staticmethod
    def preferences_updated(
        actor: str,
        event_type: AuditEventType,
        operation: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=event_type,
            actor=actor,
            entity_type="user",
            entity_id=actor,
            operation=operation,
            description=f"{operation} applied",
        )

    @staticmethod
    def rejected(
        actor: str,
        operation: str,
        result: str,
        entity_id: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.OPERATION_REJECTED,
            severity=AuditSeverity.WARNING,
            actor=actor,
            entity_id=entity_id,
            operation=operation,
            description=f"{operation} rejected: {result}",
            error_code=result,
        )

    @staticmethod
    def authorization_denied(
        actor: str,
        operation: str,
        error_message: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.AUTHORIZATION_DENIED,
            severity=AuditSeverity.ERROR,
            actor=actor,
            operation=operation,
            description=f"Unauthorized call to {operation}",
            error_code="unauthorized",
            error_message=error_message,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        actor: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            actor=actor,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
        )
