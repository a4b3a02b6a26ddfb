"""
Aggregate View Models

Derived, read-only views computed by the budget engine.
None of these are stored; every call recomputes them from the live ledger.
"""

from typing import Optional

from pydantic import BaseModel, Field

from finledger.models.ledger import Category, PaymentMethod, Timestamp


class BudgetSummaryRow(BaseModel):
    """Budget vs. actual spend for one budgeted category."""

    category: Category
    budget: int
    spent: int
    remaining: int = Field(
        ...,
        description="budget - spent, negative once over budget"
    )
    percentage: float
    over_budget: bool


class BudgetStatusRow(BaseModel):
    """Row of check_budget_status."""

    category: Category
    budget: int
    spent: int
    remaining: int
    over_budget: bool


class BudgetAlert(BaseModel):
    """A budget that has crossed the user's warning threshold."""

    category: Category
    budget: int
    spent: int
    percentage: float
    over_budget: bool


class CategorySummary(BaseModel):
    """
    Spend for one category.

    `budget` and `percentage` are absent when no budget is set.
    """

    category: Category
    spent: int
    budget: Optional[int] = None
    percentage: Optional[float] = None


class PaymentMethodSummary(BaseModel):
    """Spend and transaction count for one payment method."""

    method: PaymentMethod
    count: int = Field(..., ge=0)
    spent: int


class SpendingTrend(BaseModel):
    """Expense total for one calendar month (period is YYYY-MM)."""

    period: str = Field(..., pattern=r"^\d{4}-\d{2}$")
    spent: int


class DashboardSummary(BaseModel):
    """Headline numbers for the dashboard."""

    total_income: int
    total_expenses: int
    budget_status: list[tuple[Category, float]] = Field(default_factory=list)
    categories_count: int
    total_transactions: int


class MonthlySummary(BaseModel):
    """Current calendar month summary for one user."""

    period_start: Timestamp
    period_end: Timestamp
    total_income: int
    total_expenses: int
    total_transactions: int
    top_categories: list[tuple[Category, int]] = Field(default_factory=list)
    top_payment_methods: list[tuple[PaymentMethod, int]] = Field(default_factory=list)
    budget_status: list[BudgetAlert] = Field(default_factory=list)
