"""
Budget Engine

Per-category budget limits plus every derived spend view.

DESIGN DECISION: Aggregates are pure functions of the transactions handed
in and the current budget set. Nothing is cached between calls, so a view
can never be staler than the ledger it was computed from.

Definitions used throughout:
- spent      = signed sum of amounts
- remaining  = budget - spent (negative once over budget)
- percentage = spent / budget * 100
- over budget when spent > budget
Dashboard totals treat positive amounts as expenses and negative
amounts as income.
"""

from bisect import bisect_right
from collections import defaultdict
from datetime import datetime, timezone
from typing import Iterable, Optional

from finledger.core.state import LedgerState
from finledger.models.ledger import (
    Budget,
    Category,
    NotificationSettings,
    Principal,
    Timestamp,
    Transaction,
)
from finledger.models.results import DeleteBudgetResult, SetBudgetResult
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


NANOS_PER_SECOND = 1_000_000_000
TOP_N = 5


def spend_percentage(spent: int, budget: int) -> float:
    """Share of a budget consumed. A zero budget is either untouched or fully used."""
    if budget == 0:
        return 0.0 if spent <= 0 else 100.0
    return spent / budget * 100


def in_window(
    txn: Transaction,
    start: Optional[Timestamp],
    end: Optional[Timestamp],
) -> bool:
    if start is not None and txn.date < start:
        return False
    if end is not None and txn.date > end:
        return False
    return True


def _month_start(year: int, month: int) -> Timestamp:
    dt = datetime(year, month, 1, tzinfo=timezone.utc)
    return int(dt.timestamp()) * NANOS_PER_SECOND


def _shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def _year_month(ts: Timestamp) -> tuple[int, int]:
    dt = datetime.fromtimestamp(ts // NANOS_PER_SECOND, tz=timezone.utc)
    return dt.year, dt.month


class BudgetEngine:
    """Budgets and spend aggregation."""

    def __init__(
        self,
        state: LedgerState,
        default_warning_threshold: int = 80,
        max_trend_months: int = 120,
    ):
        self._state = state
        self._default_threshold = default_warning_threshold
        self._max_trend_months = max_trend_months

    # -------------------------------------------------------------------------
    # Budget records
    # -------------------------------------------------------------------------

    def set_budget(
        self,
        category: Category,
        amount: int,
        now: Timestamp,
    ) -> SetBudgetResult:
        if not category:
            return SetBudgetResult.CATEGORY_EMPTY
        if amount < 0:
            return SetBudgetResult.INVALID_AMOUNT
        self._state.budgets[category] = Budget(
            category=category,
            amount=amount,
            updated_at=now,
        )
        return SetBudgetResult.SUCCESS

    def delete_budget(self, category: Category) -> DeleteBudgetResult:
        if category not in self._state.budgets:
            return DeleteBudgetResult.INVALID_CATEGORY
        del self._state.budgets[category]
        return DeleteBudgetResult.SUCCESS

    def get_budgets(self) -> list[Budget]:
        return [self._state.budgets[c] for c in sorted(self._state.budgets)]

    def warning_threshold(self, principal: Principal) -> int:
        settings: Optional[NotificationSettings] = self._state.notification_settings.get(principal)
        if settings is None:
            return self._default_threshold
        return settings.budget_warning_threshold

    # -------------------------------------------------------------------------
    # Aggregates
    # -------------------------------------------------------------------------

    @staticmethod
    def spent_by_category(transactions: Iterable[Transaction]) -> dict[Category, int]:
        totals: dict[Category, int] = defaultdict(int)
        for txn in transactions:
            totals[txn.category] += txn.amount
        return dict(totals)

    def get_budget_summary(self, transactions: Iterable[Transaction]) -> list[BudgetSummaryRow]:
        spent = self.spent_by_category(transactions)
        rows = []
        for budget in self.get_budgets():
            category_spent = spent.get(budget.category, 0)
            rows.append(BudgetSummaryRow(
                category=budget.category,
                budget=budget.amount,
                spent=category_spent,
                remaining=budget.amount - category_spent,
                percentage=spend_percentage(category_spent, budget.amount),
                over_budget=category_spent > budget.amount,
            ))
        return rows

    def check_budget_status(self, transactions: Iterable[Transaction]) -> list[BudgetStatusRow]:
        return [
            BudgetStatusRow(
                category=row.category,
                budget=row.budget,
                spent=row.spent,
                remaining=row.remaining,
                over_budget=row.over_budget,
            )
            for row in self.get_budget_summary(transactions)
        ]

    def get_budget_alerts(
        self,
        transactions: Iterable[Transaction],
        principal: Principal,
    ) -> list[BudgetAlert]:
        """Budgets at or past the principal's warning threshold."""
        threshold = self.warning_threshold(principal)
        return [
            BudgetAlert(
                category=row.category,
                budget=row.budget,
                spent=row.spent,
                percentage=row.percentage,
                over_budget=row.over_budget,
            )
            for row in self.get_budget_summary(transactions)
            if row.percentage >= threshold
        ]

    def get_category_summary(
        self,
        transactions: Iterable[Transaction],
        start: Optional[Timestamp] = None,
        end: Optional[Timestamp] = None,
    ) -> list[CategorySummary]:
        spent = self.spent_by_category(t for t in transactions if in_window(t, start, end))
        summaries = []
        for category in sorted(set(spent) | set(self._state.budgets)):
            category_spent = spent.get(category, 0)
            budget = self._state.budgets.get(category)
            summaries.append(CategorySummary(
                category=category,
                spent=category_spent,
                budget=budget.amount if budget else None,
                percentage=spend_percentage(category_spent, budget.amount) if budget else None,
            ))
        return summaries

    def get_payment_method_summary(
        self,
        transactions: Iterable[Transaction],
        start: Optional[Timestamp] = None,
        end: Optional[Timestamp] = None,
    ) -> list[PaymentMethodSummary]:
        counts: dict[str, int] = defaultdict(int)
        totals: dict[str, int] = defaultdict(int)
        for txn in transactions:
            if not in_window(txn, start, end):
                continue
            counts[txn.payment_method] += 1
            totals[txn.payment_method] += txn.amount
        return [
            PaymentMethodSummary(method=method, count=counts[method], spent=totals[method])
            for method in sorted(counts)
        ]

    def get_dashboard_summary(self, transactions: Iterable[Transaction]) -> DashboardSummary:
        transactions = list(transactions)
        expenses = sum(t.amount for t in transactions if t.amount > 0)
        income = -sum(t.amount for t in transactions if t.amount < 0)
        return DashboardSummary(
            total_income=income,
            total_expenses=expenses,
            budget_status=[
                (row.category, row.percentage)
                for row in self.get_budget_summary(transactions)
            ],
            categories_count=len(self._state.categories),
            total_transactions=len(transactions),
        )

    def get_spending_trends(
        self,
        transactions: Iterable[Transaction],
        months: int,
        now: Timestamp,
        category: Optional[Category] = None,
    ) -> list[SpendingTrend]:
        """
        Monthly spend for the last `months` calendar months, oldest first.

        `months` is capped at the configured maximum. Transactions are
        bucketed by comparing their raw dates against month boundaries,
        so any stored date is accepted.
        """
        months = min(months, self._max_trend_months)
        if months <= 0:
            return []

        year, month = _year_month(now)
        periods = [_shift_month(year, month, -offset) for offset in range(months - 1, -1, -1)]
        bounds = [_month_start(y, m) for y, m in periods]
        bounds.append(_month_start(*_shift_month(year, month, 1)))

        totals = [0] * months
        for txn in transactions:
            if category is not None and txn.category != category:
                continue
            if not bounds[0] <= txn.date < bounds[-1]:
                continue
            totals[bisect_right(bounds, txn.date) - 1] += txn.amount

        return [
            SpendingTrend(period=f"{y:04d}-{m:02d}", spent=spent)
            for (y, m), spent in zip(periods, totals)
        ]

    def get_monthly_summary(
        self,
        transactions: Iterable[Transaction],
        now: Timestamp,
    ) -> MonthlySummary:
        """Totals for the calendar month containing `now`."""
        year, month = _year_month(now)
        next_year, next_month = _shift_month(year, month, 1)
        period_start = _month_start(year, month)
        period_end = _month_start(next_year, next_month) - 1

        in_month = [t for t in transactions if in_window(t, period_start, period_end)]
        by_category = self.spent_by_category(in_month)
        by_method: dict[str, int] = defaultdict(int)
        for txn in in_month:
            by_method[txn.payment_method] += txn.amount

        def top(totals: dict[str, int]) -> list[tuple[str, int]]:
            ranked = sorted(totals.items(), key=lambda item: (-item[1], item[0]))
            return ranked[:TOP_N]

        budget_status = [
            BudgetAlert(
                category=row.category,
                budget=row.budget,
                spent=row.spent,
                percentage=row.percentage,
                over_budget=row.over_budget,
            )
            for row in self.get_budget_summary(in_month)
        ]

        return MonthlySummary(
            period_start=period_start,
            period_end=period_end,
            total_income=-sum(t.amount for t in in_month if t.amount < 0),
            total_expenses=sum(t.amount for t in in_month if t.amount > 0),
            total_transactions=len(in_month),
            top_categories=top(by_category),
            top_payment_methods=top(dict(by_method)),
            budget_status=budget_status,
        )
