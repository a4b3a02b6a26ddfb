"""
Core Ledger Models

These models define the entities held by the ledger store:
users, invite tokens, transactions, budgets and per-user preferences.

DESIGN DECISION: Money is always an integer amount of minor currency
units (e.g. cents). Timestamps are integers in nanoseconds since the
epoch. Nothing in the ledger ever touches floating point money.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


# Type aliases used across the ledger
Principal = str
Category = str
PaymentMethod = str
TransactionId = int
Timestamp = int


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class Role(str, Enum):
    """
    Role of a registered user.

    CRITICAL: This is a closed two-variant type. Every access decision
    branches on it explicitly; there is no third "unknown" role.
    """
    ADMIN = "Admin"
    EDITOR = "Editor"


class CategoryAction(str, Enum):
    """Action applied by manage_category."""
    ADD = "add"
    DELETE = "delete"


# =============================================================================
# IDENTITY
# =============================================================================

class User(BaseModel):
    """
    A registered principal.

    Users are never deleted. Revoking access flips `revoked` and the
    record stays for history.
    """
    model_config = ConfigDict(frozen=True)

    principal: Principal = Field(
        ...,
        min_length=1,
        description="Opaque caller identity"
    )
    username: str = Field(
        ...,
        min_length=3,
        description="Unique display name chosen at invite acceptance"
    )
    joined_at: Timestamp = Field(
        ...,
        description="When the user accepted their invite (ns)"
    )
    role: Role
    revoked: bool = False


class InviteToken(BaseModel):
    """
    One-time, time-boxed onboarding credential.

    `used` goes from False to True exactly once.
    """

    token: str = Field(..., min_length=1)
    issued_by: Principal
    issued_at: Timestamp
    expires_at: Timestamp
    used: bool = False
    used_by: Optional[Principal] = None

    def is_expired(self, now: Timestamp) -> bool:
        """Expiry is inclusive: a token is still valid at exactly expires_at."""
        return now > self.expires_at


# =============================================================================
# LEDGER
# =============================================================================

class Transaction(BaseModel):
    """
    A single ledger entry.

    id, owner and created_at are fixed at creation. Sign of `amount`
    is meaningful: positive amounts are expenses, negative are income.
    """

    id: TransactionId = Field(..., ge=1)
    owner: Principal
    date: Timestamp = Field(
        ...,
        description="Logical transaction date supplied by the caller (ns)"
    )
    created_at: Timestamp
    updated_at: Timestamp
    category: Category = Field(..., min_length=1)
    payment_method: PaymentMethod = Field(..., min_length=1)
    amount: int = Field(
        ...,
        description="Amount in minor currency units"
    )
    notes: Optional[str] = None


class Budget(BaseModel):
    """Spending limit for one category."""

    category: Category = Field(..., min_length=1)
    amount: int = Field(
        ...,
        ge=0,
        description="Limit in minor currency units"
    )
    updated_at: Timestamp


# =============================================================================
# PREFERENCES
# =============================================================================

class UserProfile(BaseModel):
    """Display preferences. One record per user, overwritten on write."""
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    theme: str = Field(default="light", max_length=50)
    notifications_enabled: bool = True
    preferred_currency: str = Field(default="USD", max_length=10)


class NotificationSettings(BaseModel):
    """Notification toggles and the budget warning threshold."""
    model_config = ConfigDict(extra="forbid")

    email_notifications: bool = False
    browser_notifications: bool = True
    budget_warning_threshold: int = Field(
        default=80,
        ge=0,
        le=100,
        description="Alert when a budget is this percent consumed"
    )
