"""
Ledger State

The single shared store. It holds every entity collection and is passed
explicitly to each component; there are no module-level globals.

DESIGN DECISION: Stored models are never mutated in place. Components
replace them (model_copy) so a shallow snapshot of the collections is
enough to roll a failed call back.
"""

from contextlib import contextmanager
from typing import Iterator

from finledger.models.ledger import (
    Budget,
    Category,
    InviteToken,
    NotificationSettings,
    PaymentMethod,
    Principal,
    Transaction,
    TransactionId,
    User,
    UserProfile,
)


class LedgerState:
    """Entity collections of one ledger instance."""

    def __init__(self):
        self.users: dict[Principal, User] = {}
        self.invites: dict[str, InviteToken] = {}
        self.categories: set[Category] = set()
        self.payment_methods: set[PaymentMethod] = set()
        self.transactions: dict[TransactionId, Transaction] = {}
        self.budgets: dict[Category, Budget] = {}
        self.profiles: dict[Principal, UserProfile] = {}
        self.notification_settings: dict[Principal, NotificationSettings] = {}
        self.last_transaction_id: TransactionId = 0

    def _snapshot(self) -> dict:
        return {
            "users": dict(self.users),
            "invites": dict(self.invites),
            "categories": set(self.categories),
            "payment_methods": set(self.payment_methods),
            "transactions": dict(self.transactions),
            "budgets": dict(self.budgets),
            "profiles": dict(self.profiles),
            "notification_settings": dict(self.notification_settings),
            "last_transaction_id": self.last_transaction_id,
        }

    def _restore(self, snapshot: dict) -> None:
        for name, value in snapshot.items():
            setattr(self, name, value)

    @contextmanager
    def atomic(self) -> Iterator["LedgerState"]:
        """
        Run a block as one commit.

        If the block raises, every collection is put back the way it was
        on entry and the exception propagates.
        """
        snapshot = self._snapshot()
        try:
            yield self
        except BaseException:
            self._restore(snapshot)
            raise

    def next_transaction_id(self) -> TransactionId:
        """Allocate an id. Ids are never reused, even after deletion."""
        self.last_transaction_id += 1
        return self.last_transaction_id
