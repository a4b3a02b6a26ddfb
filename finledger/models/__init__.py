"""
Data Models Package

This package contains all Pydantic models used by the finance ledger.
All data flowing in or out of the ledger must conform to these schemas.
"""

from finledger.models.ledger import (
    Budget,
    Category,
    CategoryAction,
    InviteToken,
    NotificationSettings,
    PaymentMethod,
    Principal,
    Role,
    Timestamp,
    Transaction,
    TransactionId,
    User,
    UserProfile,
)
from finledger.models.results import (
    AddTransactionResult,
    CategoryResult,
    DeleteBudgetResult,
    DeleteTransactionResult,
    GenerateInviteLinkResult,
    GenerateInviteStatus,
    InvitationResult,
    PaymentMethodResult,
    RevokeAccessResult,
    SetBudgetResult,
    UpdateProfileResult,
    UpdateTransactionResult,
)
from finledger.models.summaries import (
    BudgetAlert,
    BudgetStatusRow,
    BudgetSummaryRow,
    CategorySummary,
    DashboardSummary,
    MonthlySummary,
    PaymentMethodSummary,
    SpendingTrend,
)
from finledger.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ledger models
    "Budget",
    "Category",
    "CategoryAction",
    "InviteToken",
    "NotificationSettings",
    "PaymentMethod",
    "Principal",
    "Role",
    "Timestamp",
    "Transaction",
    "TransactionId",
    "User",
    "UserProfile",
    # Result variants
    "AddTransactionResult",
    "CategoryResult",
    "DeleteBudgetResult",
    "DeleteTransactionResult",
    "GenerateInviteLinkResult",
    "GenerateInviteStatus",
    "InvitationResult",
    "PaymentMethodResult",
    "RevokeAccessResult",
    "SetBudgetResult",
    "UpdateProfileResult",
    "UpdateTransactionResult",
    # Aggregate views
    "BudgetAlert",
    "BudgetStatusRow",
    "BudgetSummaryRow",
    "CategorySummary",
    "DashboardSummary",
    "MonthlySummary",
    "PaymentMethodSummary",
    "SpendingTrend",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
