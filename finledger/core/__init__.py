"""
Ledger Core Package

Synchronous components operating on one explicit LedgerState.
Serialization, authorization gating and auditing are layered on top
by the orchestrator.
"""

from finledger.core.budgets import BudgetEngine
from finledger.core.errors import LedgerError, UnauthorizedError, UnknownOperationError
from finledger.core.identity import AccessControl, IdentityRegistry
from finledger.core.invites import InviteLedger, TokenCollisionError
from finledger.core.profiles import ProfileStore
from finledger.core.registry import CategoryAndMethodRegistry
from finledger.core.state import LedgerState
from finledger.core.transactions import TransactionStore

__all__ = [
    "AccessControl",
    "BudgetEngine",
    "CategoryAndMethodRegistry",
    "IdentityRegistry",
    "InviteLedger",
    "LedgerError",
    "LedgerState",
    "ProfileStore",
    "TokenCollisionError",
    "TransactionStore",
    "UnauthorizedError",
    "UnknownOperationError",
]
