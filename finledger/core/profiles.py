"""Per-user profile and notification preferences."""

from typing import Optional

from finledger.core.identity import AccessControl
from finledger.core.state import LedgerState
from finledger.models.ledger import NotificationSettings, Principal, UserProfile
from finledger.models.results import UpdateProfileResult


class ProfileStore:
    """One UserProfile and one NotificationSettings record per user."""

    def __init__(self, state: LedgerState, access: AccessControl):
        self._state = state
        self._access = access

    def set_user_profile(
        self,
        caller: Principal,
        profile: UserProfile,
    ) -> UpdateProfileResult:
        if not self._access.is_registered(caller):
            return UpdateProfileResult.INVALID_USER
        self._state.profiles[caller] = profile
        return UpdateProfileResult.SUCCESS

    def set_notification_settings(
        self,
        caller: Principal,
        settings: NotificationSettings,
    ) -> UpdateProfileResult:
        if not self._access.is_registered(caller):
            return UpdateProfileResult.INVALID_USER
        self._state.notification_settings[caller] = settings
        return UpdateProfileResult.SUCCESS

    def get_user_profile(self, principal: Principal) -> Optional[UserProfile]:
        return self._state.profiles.get(principal)

    def get_notification_settings(self, principal: Principal) -> Optional[NotificationSettings]:
        return self._state.notification_settings.get(principal)
