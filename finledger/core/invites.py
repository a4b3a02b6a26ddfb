"""
Invite Ledger

Issues, validates and consumes one-time invite tokens. Accepting an
invite is the only way a new principal becomes a registered user.

DESIGN DECISION: Only a successful acceptance burns a token.
A caller who picks a short or taken username can retry with the same
link; a used or expired token is rejected forever.
"""

import secrets
from typing import Callable

from tenacity import RetryError, Retrying, retry_if_exception_type, stop_after_attempt

from finledger.config import LedgerSettings
from finledger.core.identity import IdentityRegistry
from finledger.core.state import LedgerState
from finledger.models.ledger import InviteToken, Principal, Role, Timestamp
from finledger.models.results import GenerateInviteLinkResult, InvitationResult


class TokenCollisionError(Exception):
    """A freshly drawn token is already in the ledger."""
    pass


class InviteLedger:
    """Issues and redeems invite tokens."""

    def __init__(
        self,
        state: LedgerState,
        identity: IdentityRegistry,
        settings: LedgerSettings,
        token_factory: Callable[[int], str] = secrets.token_urlsafe,
    ):
        self._state = state
        self._identity = identity
        self._settings = settings
        self._token_factory = token_factory

    def _draw_token(self) -> str:
        token = self._token_factory(self._settings.invite_token_bytes)
        if not token or token in self._state.invites:
            raise TokenCollisionError("Drawn invite token is not unique")
        return token

    def outstanding_count(self, now: Timestamp) -> int:
        """Unused invites that have not expired yet."""
        return sum(
            1 for invite in self._state.invites.values()
            if not invite.used and not invite.is_expired(now)
        )

    def generate_invite_link(
        self,
        caller: Principal,
        now: Timestamp,
    ) -> GenerateInviteLinkResult:
        """
        Create a new token valid until now + the configured window.

        The Admin check happens before this is called.
        Returns `failed` when the outstanding-invite cap is reached or no
        unique token could be drawn.
        """
        if self.outstanding_count(now) >= self._settings.max_outstanding_invites:
            return GenerateInviteLinkResult.failed()

        retrying = Retrying(
            stop=stop_after_attempt(self._settings.invite_generation_attempts),
            retry=retry_if_exception_type(TokenCollisionError),
        )
        try:
            token = retrying(self._draw_token)
        except RetryError:
            return GenerateInviteLinkResult.failed()

        self._state.invites[token] = InviteToken(
            token=token,
            issued_by=caller,
            issued_at=now,
            expires_at=now + self._settings.invite_expiry_ns,
        )
        return GenerateInviteLinkResult.success(token)

    def accept_invite(
        self,
        caller: Principal,
        token: str,
        username: str,
        now: Timestamp,
    ) -> InvitationResult:
        """
        Redeem a token and register the caller as an Editor.

        Checks run in a fixed order and the first failure wins.
        Nothing is written unless every check passes.
        """
        invite = self._state.invites.get(token)
        if invite is None:
            return InvitationResult.INVALID_TOKEN
        if invite.used:
            return InvitationResult.ALREADY_USED_TOKEN
        if invite.is_expired(now):
            return InvitationResult.EXPIRED_TOKEN
        if len(username) < self._settings.min_username_length:
            return InvitationResult.SHORT_USERNAME
        if self._identity.is_known(caller):
            return InvitationResult.ALREADY_REGISTERED
        if self._identity.username_taken(username):
            return InvitationResult.USERNAME_TAKEN

        # Single commit point: token consumption and registration together
        self._state.invites[token] = invite.model_copy(
            update={"used": True, "used_by": caller}
        )
        self._identity.register(caller, username, Role.EDITOR, now)
        return InvitationResult.SUCCESS
