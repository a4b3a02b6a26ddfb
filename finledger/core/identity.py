"""
Identity Registry and Access Control

The registry stores registered principals and their roles.
Access control answers the only two questions the rest of the ledger asks:
"is this caller an Admin?" and "may this caller touch that owner's data?"

CRITICAL: Role decisions branch on the closed Role enum. Unknown or
revoked principals have no role at all and are never treated as Editors.
"""

from typing import Optional

from finledger.core.errors import UnauthorizedError
from finledger.core.state import LedgerState
from finledger.models.ledger import Principal, Role, Timestamp, User
from finledger.models.results import RevokeAccessResult


class AccessControl:
    """Role gate shared by every component."""

    def __init__(self, state: LedgerState):
        self._state = state

    def role_of(self, principal: Principal) -> Optional[Role]:
        """Role of an active user, None for unknown or revoked principals."""
        user = self._state.users.get(principal)
        if user is None or user.revoked:
            return None
        return user.role

    def is_admin(self, principal: Principal) -> bool:
        role = self.role_of(principal)
        if role is None:
            return False
        if role == Role.ADMIN:
            return True
        if role == Role.EDITOR:
            return False
        raise ValueError(f"Unhandled role: {role!r}")

    def is_registered(self, principal: Principal) -> bool:
        return self.role_of(principal) is not None

    def assert_admin(self, caller: Principal) -> None:
        """
        Succeed silently for Admins.

        Raises:
            UnauthorizedError: For everyone else. The enclosing call aborts.
        """
        if not self.is_admin(caller):
            raise UnauthorizedError(caller, "Caller is not an Admin")

    def require_registered(self, caller: Principal) -> None:
        """
        Raises:
            UnauthorizedError: If the caller is unknown or revoked.
        """
        if not self.is_registered(caller):
            raise UnauthorizedError(caller, "Caller is not a registered user")

    def can_access(self, caller: Principal, owner: Principal) -> bool:
        """Owners see and change their own data; Admins see everything."""
        if self.is_admin(caller):
            return True
        return caller == owner and self.is_registered(caller)

    def require_self_or_admin(self, caller: Principal, principal: Principal) -> None:
        """
        Raises:
            UnauthorizedError: If caller is neither `principal` nor an Admin.
        """
        if not self.can_access(caller, principal):
            raise UnauthorizedError(
                caller,
                "Only the user themselves or an Admin may read this record",
            )


class IdentityRegistry:
    """Registered users, keyed by principal."""

    def __init__(self, state: LedgerState, access: AccessControl):
        self._state = state
        self._access = access

    def get_users(self) -> list[User]:
        """All users with active access, oldest first."""
        users = [u for u in self._state.users.values() if not u.revoked]
        users.sort(key=lambda u: (u.joined_at, u.principal))
        return users

    def is_known(self, principal: Principal) -> bool:
        """True for any principal with a record, revoked or not."""
        return principal in self._state.users

    def username_taken(self, username: str) -> bool:
        wanted = username.casefold()
        return any(u.username.casefold() == wanted for u in self._state.users.values())

    def register(
        self,
        principal: Principal,
        username: str,
        role: Role,
        now: Timestamp,
    ) -> User:
        """Create a user record. Callers validate before calling this."""
        user = User(
            principal=principal,
            username=username,
            joined_at=now,
            role=role,
        )
        self._state.users[principal] = user
        return user

    def bootstrap_admin(
        self,
        principal: Principal,
        username: str,
        now: Timestamp,
    ) -> User:
        """Explicit initialization step: register the first Admin."""
        if self.is_known(principal):
            raise ValueError(f"Principal already registered: {principal}")
        return self.register(principal, username, Role.ADMIN, now)

    def revoke_access(
        self,
        caller: Principal,
        principal: Principal,
    ) -> RevokeAccessResult:
        """
        Disable a non-Admin user.

        The record is kept (users are never deleted) with revoked=True.
        """
        target = self._state.users.get(principal)
        if target is None or target.revoked:
            return RevokeAccessResult.INVALID_USER

        if not self._access.is_admin(caller):
            return RevokeAccessResult.UNAUTHORIZED_ACTIVITY
        if target.role == Role.ADMIN:
            return RevokeAccessResult.UNAUTHORIZED_ACTIVITY

        self._state.users[principal] = target.model_copy(update={"revoked": True})
        return RevokeAccessResult.SUCCESS
