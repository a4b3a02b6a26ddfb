"""
Transaction Store

Owns the transaction ledger: creation, in-place update, deletion and
role-scoped reads.

GUARANTEES:
- Ids are allocated monotonically and never reused
- owner, id and created_at never change after creation
- A caller who is neither owner nor Admin cannot tell a foreign
  transaction from a missing one (both are `invalidTxn` / absent)
"""

from typing import Optional

from finledger.core.identity import AccessControl
from finledger.core.state import LedgerState
from finledger.models.ledger import (
    Category,
    PaymentMethod,
    Principal,
    Timestamp,
    Transaction,
    TransactionId,
)
from finledger.models.results import (
    AddTransactionResult,
    DeleteTransactionResult,
    UpdateTransactionResult,
)


class TransactionStore:
    """The ledger of transactions."""

    def __init__(self, state: LedgerState, access: AccessControl):
        self._state = state
        self._access = access

    def _visible(self, caller: Principal, txn_id: TransactionId) -> Optional[Transaction]:
        txn = self._state.transactions.get(txn_id)
        if txn is None or not self._access.can_access(caller, txn.owner):
            return None
        return txn

    def add_transaction(
        self,
        caller: Principal,
        date: Timestamp,
        amount: int,
        category: Category,
        payment_method: PaymentMethod,
        notes: Optional[str],
        now: Timestamp,
    ) -> AddTransactionResult:
        if not category:
            return AddTransactionResult.CATEGORY_EMPTY
        if not payment_method:
            return AddTransactionResult.PAYMENT_METHOD_EMPTY

        txn_id = self._state.next_transaction_id()
        self._state.transactions[txn_id] = Transaction(
            id=txn_id,
            owner=caller,
            date=date,
            created_at=now,
            updated_at=now,
            category=category,
            payment_method=payment_method,
            amount=amount,
            notes=notes,
        )
        return AddTransactionResult.SUCCESS

    def update_transaction(
        self,
        caller: Principal,
        txn_id: TransactionId,
        date: Timestamp,
        amount: int,
        category: Category,
        payment_method: PaymentMethod,
        notes: Optional[str],
        now: Timestamp,
    ) -> UpdateTransactionResult:
        txn = self._visible(caller, txn_id)
        if txn is None:
            return UpdateTransactionResult.INVALID_TXN
        if not category:
            return UpdateTransactionResult.CATEGORY_EMPTY
        if not payment_method:
            return UpdateTransactionResult.PAYMENT_METHOD_EMPTY

        self._state.transactions[txn_id] = txn.model_copy(update={
            "date": date,
            "amount": amount,
            "category": category,
            "payment_method": payment_method,
            "notes": notes,
            "updated_at": now,
        })
        return UpdateTransactionResult.SUCCESS

    def delete_transaction(
        self,
        caller: Principal,
        txn_id: TransactionId,
    ) -> DeleteTransactionResult:
        if self._visible(caller, txn_id) is None:
            return DeleteTransactionResult.INVALID_TXN
        del self._state.transactions[txn_id]
        return DeleteTransactionResult.SUCCESS

    def get_transaction(
        self,
        caller: Principal,
        txn_id: TransactionId,
    ) -> Optional[Transaction]:
        return self._visible(caller, txn_id)

    def all_transactions(self) -> list[Transaction]:
        """Unscoped snapshot in id order, for aggregation."""
        return [self._state.transactions[k] for k in sorted(self._state.transactions)]

    def owned_by(self, principal: Principal) -> list[Transaction]:
        return [t for t in self.all_transactions() if t.owner == principal]

    def get_all_transactions(self, caller: Principal) -> list[Transaction]:
        """Admins see the full ledger, everyone else only their own."""
        if self._access.is_admin(caller):
            return self.all_transactions()
        if not self._access.is_registered(caller):
            return []
        return self.owned_by(caller)

    def get_user_transactions(
        self,
        caller: Principal,
        principal: Principal,
    ) -> list[Transaction]:
        """One user's transactions, visible to that user or an Admin."""
        if not self._access.can_access(caller, principal):
            return []
        return self.owned_by(principal)

    def get_filtered_transactions(
        self,
        caller: Principal,
        start_date: Optional[Timestamp] = None,
        end_date: Optional[Timestamp] = None,
        min_amount: Optional[int] = None,
        max_amount: Optional[int] = None,
        category: Optional[Category] = None,
        payment_method: Optional[PaymentMethod] = None,
    ) -> list[Transaction]:
        """
        Apply each supplied predicate as an inclusive bound.

        Absent predicates are unconstrained. Scoped like get_all_transactions.
        """
        results = []
        for txn in self.get_all_transactions(caller):
            if start_date is not None and txn.date < start_date:
                continue
            if end_date is not None and txn.date > end_date:
                continue
            if min_amount is not None and txn.amount < min_amount:
                continue
            if max_amount is not None and txn.amount > max_amount:
                continue
            if category is not None and txn.category != category:
                continue
            if payment_method is not None and txn.payment_method != payment_method:
                continue
            results.append(txn)
        return results
