"""
Ledger Service Orchestrator

This module ties the ledger components together and defines the single
entry point every external call goes through.

DESIGN DECISION: The orchestrator enforces the boundaries:
- Calls are processed one at a time, strictly in arrival order
  (one FIFO asyncio.Lock acts as the mailbox)
- Mutating calls commit through LedgerState.atomic(): a call that
  faults leaves the ledger exactly as it found it
- Admin-only and registered-only gates run before any component is touched
- Every mutation, rejection and denial is audited after the commit

Business outcomes come back as result enums. Authorization faults raise
UnauthorizedError and nothing else does on the expected path.
"""

import asyncio
import logging
import secrets
import time
from typing import Callable, Optional, TypeVar

from finledger.audit import AuditLogger
from finledger.config import LedgerSettings, get_settings
from finledger.core import (
    AccessControl,
    BudgetEngine,
    CategoryAndMethodRegistry,
    IdentityRegistry,
    InviteLedger,
    LedgerState,
    ProfileStore,
    TransactionStore,
    UnauthorizedError,
)
from finledger.models.audit import AuditEvent, AuditEventBuilder, AuditEventType
from finledger.models.ledger import (
    Budget,
    Category,
    CategoryAction,
    NotificationSettings,
    PaymentMethod,
    Principal,
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
from finledger.services.storage import (
    AuditStorageInterface,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    InMemoryAuditStorage,
)


T = TypeVar("T")

Clock = Callable[[], Timestamp]


class LedgerService:
    """
    The serialized, audited face of one ledger.

    Every public method takes the authenticated caller principal first.
    Authentication itself belongs to the hosting runtime.
    """

    def __init__(
        self,
        state: Optional[LedgerState] = None,
        settings: Optional[LedgerSettings] = None,
        audit_logger: Optional[AuditLogger] = None,
        clock: Clock = time.time_ns,
        token_factory: Callable[[int], str] = secrets.token_urlsafe,
    ):
        self._state = state if state is not None else LedgerState()
        self._settings = settings or get_settings().ledger
        self._audit = audit_logger or AuditLogger()
        self._clock = clock
        self._lock = asyncio.Lock()

        self._access = AccessControl(self._state)
        self._identity = IdentityRegistry(self._state, self._access)
        self._invites = InviteLedger(
            self._state,
            self._identity,
            self._settings,
            token_factory=token_factory,
        )
        self._registry = CategoryAndMethodRegistry(self._state)
        self._transactions = TransactionStore(self._state, self._access)
        self._budgets = BudgetEngine(
            self._state,
            default_warning_threshold=self._settings.default_budget_warning_threshold,
            max_trend_months=self._settings.max_trend_months,
        )
        self._profiles = ProfileStore(self._state, self._access)

    @classmethod
    def initialize(
        cls,
        admin_principal: Principal,
        admin_username: Optional[str] = None,
        settings: Optional[LedgerSettings] = None,
        audit_logger: Optional[AuditLogger] = None,
        clock: Clock = time.time_ns,
        token_factory: Callable[[int], str] = secrets.token_urlsafe,
    ) -> "LedgerService":
        """
        Build a fresh ledger with its bootstrap Admin and seed registries.

        This is the explicit initialization step; a ledger without an
        Admin could never issue its first invite.
        """
        settings = settings or get_settings().ledger
        service = cls(
            state=LedgerState(),
            settings=settings,
            audit_logger=audit_logger,
            clock=clock,
            token_factory=token_factory,
        )
        service._identity.bootstrap_admin(
            admin_principal,
            admin_username or settings.bootstrap_admin_username,
            clock(),
        )
        service._registry.seed(
            settings.default_categories_list,
            settings.default_payment_methods_list,
        )
        return service

    @property
    def state(self) -> LedgerState:
        return self._state

    @property
    def audit_logger(self) -> AuditLogger:
        return self._audit

    # -------------------------------------------------------------------------
    # Call discipline
    # -------------------------------------------------------------------------

    async def _run(
        self,
        caller: Principal,
        operation: str,
        work: Callable[[], T],
        mutating: bool = True,
    ) -> T:
        """
        Run one call inside the mailbox.

        Faults roll the call back, are audited outside the lock and then
        propagate to the caller unchanged.
        """
        async with self._lock:
            try:
                if mutating:
                    with self._state.atomic():
                        return work()
                return work()
            except Exception as e:
                failure = e

        if isinstance(failure, UnauthorizedError):
            await self._audit.log_authorization_denied(caller, operation, str(failure))
        else:
            await self._audit.log_error(
                error_type=type(failure).__name__,
                error_message=str(failure),
                details={"operation": operation},
                actor=caller,
            )
        raise failure

    async def _audit_outcome(
        self,
        caller: Principal,
        operation: str,
        result,
        on_success: Callable[[], AuditEvent],
        entity_id: Optional[str] = None,
    ) -> None:
        if result.value == "success":
            await self._audit.log_built(on_success)
        else:
            await self._audit.log_rejected(caller, operation, result.value, entity_id)

    def _gate(self, caller: Principal, admin_only: bool) -> None:
        if admin_only:
            self._access.assert_admin(caller)
        else:
            self._access.require_registered(caller)

    # -------------------------------------------------------------------------
    # Identity and access control
    # -------------------------------------------------------------------------

    async def assert_admin(self, caller: Principal) -> None:
        """Return None for Admins; raise UnauthorizedError for everyone else."""
        await self._run(
            caller, "assertAdmin",
            lambda: self._access.assert_admin(caller),
            mutating=False,
        )

    async def get_users(self, caller: Principal) -> list[User]:
        return await self._run(caller, "getUsers", self._identity.get_users, mutating=False)

    async def revoke_access(self, caller: Principal, principal: Principal) -> RevokeAccessResult:
        result = await self._run(
            caller, "revokeAccess",
            lambda: self._identity.revoke_access(caller, principal),
        )
        await self._audit_outcome(
            caller, "revokeAccess", result,
            lambda: AuditEventBuilder.access_revoked(caller, principal),
            entity_id=principal,
        )
        return result

    # -------------------------------------------------------------------------
    # Invites
    # -------------------------------------------------------------------------

    async def generate_invite_link(self, caller: Principal) -> GenerateInviteLinkResult:
        def work() -> GenerateInviteLinkResult:
            self._access.assert_admin(caller)
            return self._invites.generate_invite_link(caller, self._clock())

        result = await self._run(caller, "generateInviteLink", work)
        if result.is_success:
            invite = self._state.invites.get(result.token)
            expires_at = invite.expires_at if invite else 0
            await self._audit.log_built(lambda: AuditEventBuilder.invite_issued(caller, expires_at))
        else:
            await self._audit.log_built(lambda: AuditEventBuilder.invite_generation_failed(
                caller, "No unique token available or outstanding invite cap reached",
            ))
        return result

    async def accept_invite(
        self,
        caller: Principal,
        token: str,
        username: str,
    ) -> InvitationResult:
        result = await self._run(
            caller, "acceptInvite",
            lambda: self._invites.accept_invite(caller, token, username, self._clock()),
        )
        await self._audit_outcome(
            caller, "acceptInvite", result,
            lambda: AuditEventBuilder.invite_accepted(caller, username),
        )
        return result

    # -------------------------------------------------------------------------
    # Categories and payment methods
    # -------------------------------------------------------------------------

    async def get_categories(self, caller: Principal) -> list[Category]:
        return await self._run(caller, "getCategories", self._registry.get_categories, mutating=False)

    async def get_payment_methods(self, caller: Principal) -> list[PaymentMethod]:
        return await self._run(
            caller, "getPaymentMethods", self._registry.get_payment_methods, mutating=False,
        )

    async def manage_category(
        self,
        caller: Principal,
        category: Category,
        action: CategoryAction,
    ) -> CategoryResult:
        action = CategoryAction(action)

        def work() -> CategoryResult:
            self._gate(caller, self._settings.registry_admin_only)
            return self._registry.manage_category(category, action)

        result = await self._run(caller, "manageCategory", work)
        event_type = (
            AuditEventType.CATEGORY_ADDED
            if action == CategoryAction.ADD
            else AuditEventType.CATEGORY_DELETED
        )
        await self._audit_outcome(
            caller, "manageCategory", result,
            lambda: AuditEventBuilder.registry_changed(
                caller, event_type, "category", category, "manageCategory",
            ),
            entity_id=category,
        )
        return result

    async def add_payment_method(self, caller: Principal, method: PaymentMethod) -> PaymentMethodResult:
        def work() -> PaymentMethodResult:
            self._gate(caller, self._settings.registry_admin_only)
            return self._registry.add_payment_method(method)

        result = await self._run(caller, "addPaymentMethod", work)
        await self._audit_outcome(
            caller, "addPaymentMethod", result,
            lambda: AuditEventBuilder.registry_changed(
                caller, AuditEventType.PAYMENT_METHOD_ADDED,
                "payment_method", method, "addPaymentMethod",
            ),
            entity_id=method,
        )
        return result

    async def delete_payment_method(self, caller: Principal, method: PaymentMethod) -> PaymentMethodResult:
        def work() -> PaymentMethodResult:
            self._gate(caller, self._settings.registry_admin_only)
            return self._registry.delete_payment_method(method)

        result = await self._run(caller, "deletePaymentMethod", work)
        await self._audit_outcome(
            caller, "deletePaymentMethod", result,
            lambda: AuditEventBuilder.registry_changed(
                caller, AuditEventType.PAYMENT_METHOD_DELETED,
                "payment_method", method, "deletePaymentMethod",
            ),
            entity_id=method,
        )
        return result

    # -------------------------------------------------------------------------
    # Transactions
    # -------------------------------------------------------------------------

    async def add_transaction(
        self,
        caller: Principal,
        date: Timestamp,
        amount: int,
        category: Category,
        payment_method: PaymentMethod,
        notes: Optional[str] = None,
    ) -> AddTransactionResult:
        def work() -> tuple[AddTransactionResult, TransactionId]:
            self._access.require_registered(caller)
            result = self._transactions.add_transaction(
                caller, date, amount, category, payment_method, notes, self._clock(),
            )
            return result, self._state.last_transaction_id

        result, txn_id = await self._run(caller, "addTransaction", work)
        await self._audit_outcome(
            caller, "addTransaction", result,
            lambda: AuditEventBuilder.transaction_added(caller, txn_id, amount, category),
        )
        return result

    async def update_transaction(
        self,
        caller: Principal,
        txn_id: TransactionId,
        date: Timestamp,
        amount: int,
        category: Category,
        payment_method: PaymentMethod,
        notes: Optional[str] = None,
    ) -> UpdateTransactionResult:
        result = await self._run(
            caller, "updateTransaction",
            lambda: self._transactions.update_transaction(
                caller, txn_id, date, amount, category, payment_method, notes, self._clock(),
            ),
        )
        await self._audit_outcome(
            caller, "updateTransaction", result,
            lambda: AuditEventBuilder.transaction_updated(caller, txn_id),
            entity_id=str(txn_id),
        )
        return result

    async def delete_transaction(self, caller: Principal, txn_id: TransactionId) -> DeleteTransactionResult:
        result = await self._run(
            caller, "deleteTransaction",
            lambda: self._transactions.delete_transaction(caller, txn_id),
        )
        await self._audit_outcome(
            caller, "deleteTransaction", result,
            lambda: AuditEventBuilder.transaction_deleted(caller, txn_id),
            entity_id=str(txn_id),
        )
        return result

    async def get_transaction(self, caller: Principal, txn_id: TransactionId) -> Optional[Transaction]:
        return await self._run(
            caller, "getTransaction",
            lambda: self._transactions.get_transaction(caller, txn_id),
            mutating=False,
        )

    async def get_all_transactions(self, caller: Principal) -> list[Transaction]:
        return await self._run(
            caller, "getAllTransactions",
            lambda: self._transactions.get_all_transactions(caller),
            mutating=False,
        )

    async def get_filtered_transactions(
        self,
        caller: Principal,
        start_date: Optional[Timestamp] = None,
        end_date: Optional[Timestamp] = None,
        min_amount: Optional[int] = None,
        max_amount: Optional[int] = None,
        category: Optional[Category] = None,
        payment_method: Optional[PaymentMethod] = None,
    ) -> list[Transaction]:
        return await self._run(
            caller, "getFilteredTransactions",
            lambda: self._transactions.get_filtered_transactions(
                caller,
                start_date=start_date,
                end_date=end_date,
                min_amount=min_amount,
                max_amount=max_amount,
                category=category,
                payment_method=payment_method,
            ),
            mutating=False,
        )

    async def get_user_transactions_by_caller(self, caller: Principal) -> list[Transaction]:
        """The caller's own transactions, whatever their role."""
        return await self._run(
            caller, "getUserTransactionsByCaller",
            lambda: self._transactions.get_user_transactions(caller, caller),
            mutating=False,
        )

    async def get_transactions_by_user(self, caller: Principal, principal: Principal) -> list[Transaction]:
        return await self._run(
            caller, "getTransactionsByUser",
            lambda: self._transactions.get_user_transactions(caller, principal),
            mutating=False,
        )

    get_user_transactions_by_principal = get_transactions_by_user

    # -------------------------------------------------------------------------
    # Budgets
    # -------------------------------------------------------------------------

    async def set_budget(self, caller: Principal, category: Category, amount: int) -> SetBudgetResult:
        def work() -> SetBudgetResult:
            self._gate(caller, self._settings.budget_admin_only)
            return self._budgets.set_budget(category, amount, self._clock())

        result = await self._run(caller, "setBudget", work)
        await self._audit_outcome(
            caller, "setBudget", result,
            lambda: AuditEventBuilder.budget_set(caller, category, amount),
            entity_id=category,
        )
        return result

    async def delete_budget(self, caller: Principal, category: Category) -> DeleteBudgetResult:
        def work() -> DeleteBudgetResult:
            self._gate(caller, self._settings.budget_admin_only)
            return self._budgets.delete_budget(category)

        result = await self._run(caller, "deleteBudget", work)
        await self._audit_outcome(
            caller, "deleteBudget", result,
            lambda: AuditEventBuilder.budget_deleted(caller, category),
            entity_id=category,
        )
        return result

    async def _read_registered(self, caller: Principal, operation: str, view: Callable[[], T]) -> T:
        def work() -> T:
            self._access.require_registered(caller)
            return view()
        return await self._run(caller, operation, work, mutating=False)

    async def _read_for_user(
        self,
        caller: Principal,
        principal: Principal,
        operation: str,
        view: Callable[[list[Transaction]], T],
    ) -> T:
        def work() -> T:
            self._access.require_self_or_admin(caller, principal)
            return view(self._transactions.owned_by(principal))
        return await self._run(caller, operation, work, mutating=False)

    async def get_budgets(self, caller: Principal) -> list[Budget]:
        return await self._read_registered(caller, "getBudgets", self._budgets.get_budgets)

    async def get_budget_summary(self, caller: Principal) -> list[BudgetSummaryRow]:
        return await self._read_registered(
            caller, "getBudgetSummary",
            lambda: self._budgets.get_budget_summary(self._transactions.all_transactions()),
        )

    async def check_budget_status(self, caller: Principal) -> list[BudgetStatusRow]:
        return await self._read_registered(
            caller, "checkBudgetStatus",
            lambda: self._budgets.check_budget_status(self._transactions.all_transactions()),
        )

    async def get_budget_alerts(self, caller: Principal) -> list[BudgetAlert]:
        """Shared budgets past the caller's own warning threshold."""
        return await self._read_registered(
            caller, "getBudgetAlerts",
            lambda: self._budgets.get_budget_alerts(self._transactions.all_transactions(), caller),
        )

    async def get_budget_alerts_for_user(self, caller: Principal, principal: Principal) -> list[BudgetAlert]:
        def work() -> list[BudgetAlert]:
            self._access.require_self_or_admin(caller, principal)
            return self._budgets.get_budget_alerts(self._transactions.all_transactions(), principal)
        return await self._run(caller, "getBudgetAlertsForUser", work, mutating=False)

    async def get_category_summary(
        self,
        caller: Principal,
        start: Optional[Timestamp] = None,
        end: Optional[Timestamp] = None,
    ) -> list[CategorySummary]:
        return await self._read_registered(
            caller, "getCategorySummary",
            lambda: self._budgets.get_category_summary(self._transactions.all_transactions(), start, end),
        )

    async def get_payment_method_summary(
        self,
        caller: Principal,
        start: Optional[Timestamp] = None,
        end: Optional[Timestamp] = None,
    ) -> list[PaymentMethodSummary]:
        return await self._read_registered(
            caller, "getPaymentMethodSummary",
            lambda: self._budgets.get_payment_method_summary(
                self._transactions.all_transactions(), start, end,
            ),
        )

    async def get_dashboard_summary(self, caller: Principal) -> DashboardSummary:
        return await self._read_registered(
            caller, "getDashboardSummary",
            lambda: self._budgets.get_dashboard_summary(self._transactions.all_transactions()),
        )

    async def get_spending_trends(
        self,
        caller: Principal,
        months: int,
        category: Optional[Category] = None,
    ) -> list[SpendingTrend]:
        return await self._read_registered(
            caller, "getSpendingTrends",
            lambda: self._budgets.get_spending_trends(
                self._transactions.all_transactions(), months, self._clock(), category,
            ),
        )

    async def get_user_category_summary(
        self,
        caller: Principal,
        principal: Principal,
        start: Optional[Timestamp] = None,
        end: Optional[Timestamp] = None,
    ) -> list[CategorySummary]:
        return await self._read_for_user(
            caller, principal, "getUserCategorySummary",
            lambda txns: self._budgets.get_category_summary(txns, start, end),
        )

    async def get_user_payment_method_summary(
        self,
        caller: Principal,
        principal: Principal,
        start: Optional[Timestamp] = None,
        end: Optional[Timestamp] = None,
    ) -> list[PaymentMethodSummary]:
        return await self._read_for_user(
            caller, principal, "getUserPaymentMethodSummary",
            lambda txns: self._budgets.get_payment_method_summary(txns, start, end),
        )

    async def get_user_dashboard_summary(self, caller: Principal, principal: Principal) -> DashboardSummary:
        return await self._read_for_user(
            caller, principal, "getUserDashboardSummary",
            self._budgets.get_dashboard_summary,
        )

    async def get_user_monthly_summary(self, caller: Principal, principal: Principal) -> MonthlySummary:
        return await self._read_for_user(
            caller, principal, "getUserMonthlySummary",
            lambda txns: self._budgets.get_monthly_summary(txns, self._clock()),
        )

    async def get_user_spending_trends(
        self,
        caller: Principal,
        principal: Principal,
        months: int,
        category: Optional[Category] = None,
    ) -> list[SpendingTrend]:
        return await self._read_for_user(
            caller, principal, "getUserSpendingTrends",
            lambda txns: self._budgets.get_spending_trends(txns, months, self._clock(), category),
        )

    # -------------------------------------------------------------------------
    # Profiles and notification settings
    # -------------------------------------------------------------------------

    async def set_user_profile(self, caller: Principal, profile: UserProfile) -> UpdateProfileResult:
        result = await self._run(
            caller, "setUserProfile",
            lambda: self._profiles.set_user_profile(caller, profile),
        )
        await self._audit_outcome(
            caller, "setUserProfile", result,
            lambda: AuditEventBuilder.preferences_updated(
                caller, AuditEventType.PROFILE_UPDATED, "setUserProfile",
            ),
        )
        return result

    async def set_notification_settings(
        self,
        caller: Principal,
        settings: NotificationSettings,
    ) -> UpdateProfileResult:
        result = await self._run(
            caller, "setNotificationSettings",
            lambda: self._profiles.set_notification_settings(caller, settings),
        )
        await self._audit_outcome(
            caller, "setNotificationSettings", result,
            lambda: AuditEventBuilder.preferences_updated(
                caller, AuditEventType.NOTIFICATION_SETTINGS_UPDATED, "setNotificationSettings",
            ),
        )
        return result

    async def get_user_profile_by_caller(self, caller: Principal) -> Optional[UserProfile]:
        return await self._run(
            caller, "getUserProfileByCaller",
            lambda: self._profiles.get_user_profile(caller),
            mutating=False,
        )

    async def get_user_profile_by_principal(
        self,
        caller: Principal,
        principal: Principal,
    ) -> Optional[UserProfile]:
        def work() -> Optional[UserProfile]:
            self._access.require_self_or_admin(caller, principal)
            return self._profiles.get_user_profile(principal)
        return await self._run(caller, "getUserProfileByPrincipal", work, mutating=False)

    async def get_notification_settings_by_caller(self, caller: Principal) -> Optional[NotificationSettings]:
        return await self._run(
            caller, "getNotificationSettingsByCaller",
            lambda: self._profiles.get_notification_settings(caller),
            mutating=False,
        )

    async def get_notification_settings_by_principal(
        self,
        caller: Principal,
        principal: Principal,
    ) -> Optional[NotificationSettings]:
        def work() -> Optional[NotificationSettings]:
            self._access.require_self_or_admin(caller, principal)
            return self._profiles.get_notification_settings(principal)
        return await self._run(caller, "getNotificationSettingsByPrincipal", work, mutating=False)


def create_ledger_service(
    admin_principal: Optional[Principal] = None,
    use_sheets: Optional[bool] = None,
) -> LedgerService:
    """
    Factory function to create a configured ledger service.

    Args:
        admin_principal: Bootstrap Admin. Falls back to
                         LEDGER_BOOTSTRAP_ADMIN_PRINCIPAL.
        use_sheets: Persist the audit trail to Google Sheets.
                    Falls back to AUDIT_TO_SHEETS.

    Raises:
        ValueError: If no bootstrap Admin principal is configured.
    """
    settings = get_settings()
    ledger_settings = settings.ledger
    admin_principal = admin_principal or ledger_settings.bootstrap_admin_principal
    if not admin_principal:
        raise ValueError(
            "A bootstrap Admin principal is required "
            "(set LEDGER_BOOTSTRAP_ADMIN_PRINCIPAL)"
        )

    logging.basicConfig(level=settings.app.log_level)

    if use_sheets is None:
        use_sheets = settings.app.audit_to_sheets

    audit_storage: AuditStorageInterface = InMemoryAuditStorage()
    if use_sheets:
        audit_storage = GoogleSheetsAuditStorage(GoogleSheetsClient())

    return LedgerService.initialize(
        admin_principal,
        settings=ledger_settings,
        audit_logger=AuditLogger(audit_storage),
    )
