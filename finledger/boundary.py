"""
Service Boundary

Translates the wire shape of the fixed operation surface into native
Python calls on LedgerService and back.

On the wire:
- Optional values are explicit present/absent wrappers: [] or [value]
- Results are tagged variants with exactly one key: {"success": None}
- Record fields are camelCase

Wrappers are unwrapped HERE, immediately. Nothing past this module ever
inspects a wrapper shape.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional, Sequence

from pydantic import BaseModel

from finledger.core.errors import UnknownOperationError
from finledger.models.ledger import CategoryAction, NotificationSettings, Principal, UserProfile
from finledger.models.results import GenerateInviteLinkResult
from finledger.orchestrator import LedgerService


# =============================================================================
# OPTION WRAPPERS
# =============================================================================

def from_opt(value: Sequence[Any]) -> Optional[Any]:
    """[] -> None, [x] -> x. Anything else is malformed."""
    if not isinstance(value, (list, tuple)) or len(value) > 1:
        raise ValueError(f"Expected an option wrapper ([] or [value]), got {value!r}")
    return value[0] if value else None


def to_opt(value: Optional[Any]) -> list:
    return [] if value is None else [value]


# =============================================================================
# ENCODING
# =============================================================================

def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def _snake(name: str) -> str:
    return "".join(f"_{c.lower()}" if c.isupper() else c for c in name)


def to_variant(result: Any) -> dict:
    """Render a result enum (or invite result) as a single-key tagged dict."""
    if isinstance(result, GenerateInviteLinkResult):
        return {result.status.value: result.token}
    if isinstance(result, Enum):
        return {result.value: None}
    raise TypeError(f"Not a result variant: {result!r}")


def encode(value: Any) -> Any:
    """
    Convert native values to wire values.

    Optional model fields become option wrappers; everything else is
    passed through recursively.
    """
    if isinstance(value, BaseModel):
        record = {}
        for name, field in type(value).model_fields.items():
            field_value = encode(getattr(value, name))
            if field.default is None:
                field_value = to_opt(field_value)
            record[_camel(name)] = field_value
        return record
    if isinstance(value, Enum):
        return {value.value: None}
    if isinstance(value, (list, tuple)):
        return [encode(item) for item in value]
    return value


def _decode_record(model: type[BaseModel]) -> Callable[[dict], BaseModel]:
    def decode(record: dict) -> BaseModel:
        return model(**{_snake(key): value for key, value in record.items()})
    return decode


def _decode_action(tag: dict) -> CategoryAction:
    if not isinstance(tag, dict) or len(tag) != 1:
        raise ValueError(f"Expected a single-tag variant, got {tag!r}")
    return CategoryAction(next(iter(tag)))


def _opt(inner: Callable[[Any], Any]) -> Callable[[Sequence[Any]], Optional[Any]]:
    def decode(value: Sequence[Any]) -> Optional[Any]:
        unwrapped = from_opt(value)
        return None if unwrapped is None else inner(unwrapped)
    return decode


def _int(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"Expected an integer, got {value!r}")
    return value


def _str(value: Any) -> str:
    if not isinstance(value, str):
        raise ValueError(f"Expected a string, got {value!r}")
    return value


# =============================================================================
# OPERATION TABLE
# =============================================================================

@dataclass(frozen=True)
class Operation:
    """One named operation: target method, argument decoders, result encoder."""

    method: str
    args: tuple[Callable[[Any], Any], ...] = ()
    result: Callable[[Any], Any] = encode


def _unit(_: Any) -> None:
    return None


OPERATIONS: dict[str, Operation] = {
    # Identity
    "assertAdmin": Operation("assert_admin", result=_unit),
    "getUsers": Operation("get_users"),
    "revokeAccess": Operation("revoke_access", (_str,), to_variant),
    # Invites
    "generateInviteLink": Operation("generate_invite_link", result=to_variant),
    "acceptInvite": Operation("accept_invite", (_str, _str), to_variant),
    # Registry
    "getCategories": Operation("get_categories"),
    "getPaymentMethods": Operation("get_payment_methods"),
    "manageCategory": Operation("manage_category", (_str, _decode_action), to_variant),
    "addPaymentMethod": Operation("add_payment_method", (_str,), to_variant),
    "deletePaymentMethod": Operation("delete_payment_method", (_str,), to_variant),
    # Transactions
    "addTransaction": Operation(
        "add_transaction", (_int, _int, _str, _str, _opt(_str)), to_variant,
    ),
    "updateTransaction": Operation(
        "update_transaction", (_int, _int, _int, _str, _str, _opt(_str)), to_variant,
    ),
    "deleteTransaction": Operation("delete_transaction", (_int,), to_variant),
    "getTransaction": Operation("get_transaction", (_int,), lambda t: to_opt(encode(t))),
    "getAllTransactions": Operation("get_all_transactions"),
    "getFilteredTransactions": Operation(
        "get_filtered_transactions",
        (_opt(_int), _opt(_int), _opt(_int), _opt(_int), _opt(_str), _opt(_str)),
    ),
    "getUserTransactionsByCaller": Operation("get_user_transactions_by_caller"),
    "getTransactionsByUser": Operation("get_transactions_by_user", (_str,)),
    "getUserTransactionsByPrincipal": Operation("get_user_transactions_by_principal", (_str,)),
    # Budgets
    "setBudget": Operation("set_budget", (_str, _int), to_variant),
    "deleteBudget": Operation("delete_budget", (_str,), to_variant),
    "getBudgets": Operation("get_budgets"),
    "getBudgetSummary": Operation("get_budget_summary"),
    "checkBudgetStatus": Operation("check_budget_status"),
    "getBudgetAlerts": Operation("get_budget_alerts"),
    "getBudgetAlertsForUser": Operation("get_budget_alerts_for_user", (_str,)),
    "getCategorySummary": Operation("get_category_summary", (_opt(_int), _opt(_int))),
    "getPaymentMethodSummary": Operation("get_payment_method_summary", (_opt(_int), _opt(_int))),
    "getDashboardSummary": Operation("get_dashboard_summary"),
    "getSpendingTrends": Operation("get_spending_trends", (_int, _opt(_str))),
    "getUserCategorySummary": Operation(
        "get_user_category_summary", (_str, _opt(_int), _opt(_int)),
    ),
    "getUserPaymentMethodSummary": Operation(
        "get_user_payment_method_summary", (_str, _opt(_int), _opt(_int)),
    ),
    "getUserDashboardSummary": Operation("get_user_dashboard_summary", (_str,)),
    "getUserMonthlySummary": Operation("get_user_monthly_summary", (_str,)),
    "getUserSpendingTrends": Operation("get_user_spending_trends", (_str, _int, _opt(_str))),
    # Profiles
    "setUserProfile": Operation(
        "set_user_profile", (_decode_record(UserProfile),), to_variant,
    ),
    "setNotificationSettings": Operation(
        "set_notification_settings", (_decode_record(NotificationSettings),), to_variant,
    ),
    "getUserProfileByCaller": Operation(
        "get_user_profile_by_caller", result=lambda p: to_opt(encode(p)),
    ),
    "getUserProfileByPrincipal": Operation(
        "get_user_profile_by_principal", (_str,), lambda p: to_opt(encode(p)),
    ),
    "getNotificationSettingsByCaller": Operation(
        "get_notification_settings_by_caller", result=lambda s: to_opt(encode(s)),
    ),
    "getNotificationSettingsByPrincipal": Operation(
        "get_notification_settings_by_principal", (_str,), lambda s: to_opt(encode(s)),
    ),
}


class LedgerBoundary:
    """
    Dispatches named wire calls to a LedgerService.

    Usage:
        boundary = LedgerBoundary(service)
        await boundary.call(caller, "addTransaction", date, 1500, "Food", "Cash", [])
    """

    def __init__(self, service: LedgerService):
        self._service = service

    @staticmethod
    def operations() -> list[str]:
        return sorted(OPERATIONS)

    async def call(self, caller: Principal, operation: str, *args: Any) -> Any:
        """
        Raises:
            UnknownOperationError: If `operation` is not part of the surface.
            ValueError: If the arguments do not match the operation's shape.
            UnauthorizedError: Propagated from the service.
        """
        entry = OPERATIONS.get(operation)
        if entry is None:
            raise UnknownOperationError(f"Unknown operation: {operation}")
        if len(args) != len(entry.args):
            raise ValueError(
                f"{operation} takes {len(entry.args)} arguments, got {len(args)}"
            )

        native_args = [decode(arg) for decode, arg in zip(entry.args, args)]
        method = getattr(self._service, entry.method)
        result = await method(caller, *native_args)
        return entry.result(result)
