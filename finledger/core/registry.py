"""
Category and Payment Method Registry

The sets of valid spending categories and payment methods.
Names are taken exactly as given: an empty string is rejected, never
normalized into a default.
"""

from typing import Iterable

from finledger.core.state import LedgerState
from finledger.models.ledger import Category, CategoryAction, PaymentMethod
from finledger.models.results import CategoryResult, PaymentMethodResult


class CategoryAndMethodRegistry:
    """Registered categories and payment methods."""

    def __init__(self, state: LedgerState):
        self._state = state

    def seed(
        self,
        categories: Iterable[Category],
        payment_methods: Iterable[PaymentMethod],
    ) -> None:
        """Register initial values at store initialization."""
        self._state.categories.update(c for c in categories if c)
        self._state.payment_methods.update(m for m in payment_methods if m)

    def get_categories(self) -> list[Category]:
        return sorted(self._state.categories)

    def get_payment_methods(self) -> list[PaymentMethod]:
        return sorted(self._state.payment_methods)

    def manage_category(
        self,
        category: Category,
        action: CategoryAction,
    ) -> CategoryResult:
        if not category:
            return CategoryResult.INVALID_CATEGORY

        if action == CategoryAction.ADD:
            if category in self._state.categories:
                return CategoryResult.CATEGORY_EXISTS
            self._state.categories.add(category)
            return CategoryResult.SUCCESS

        if action == CategoryAction.DELETE:
            self._state.categories.discard(category)
            return CategoryResult.SUCCESS

        raise ValueError(f"Unhandled category action: {action!r}")

    def add_payment_method(self, method: PaymentMethod) -> PaymentMethodResult:
        if not method:
            return PaymentMethodResult.INVALID_METHOD
        if method in self._state.payment_methods:
            return PaymentMethodResult.METHOD_EXISTS
        self._state.payment_methods.add(method)
        return PaymentMethodResult.SUCCESS

    def delete_payment_method(self, method: PaymentMethod) -> PaymentMethodResult:
        if not method:
            return PaymentMethodResult.INVALID_METHOD
        self._state.payment_methods.discard(method)
        return PaymentMethodResult.SUCCESS
