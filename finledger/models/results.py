"""
Result Variants

Expected business outcomes are RETURNED, never raised.
Each operation family has its own closed enum so callers can
branch on the tag. Values match the wire tags exactly.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, model_validator


class AddTransactionResult(str, Enum):
    SUCCESS = "success"
    CATEGORY_EMPTY = "categoryEmpty"
    PAYMENT_METHOD_EMPTY = "paymentMethodEmpty"


class UpdateTransactionResult(str, Enum):
    SUCCESS = "success"
    INVALID_TXN = "invalidTxn"
    CATEGORY_EMPTY = "categoryEmpty"
    PAYMENT_METHOD_EMPTY = "paymentMethodEmpty"


class DeleteTransactionResult(str, Enum):
    SUCCESS = "success"
    INVALID_TXN = "invalidTxn"


class SetBudgetResult(str, Enum):
    SUCCESS = "success"
    CATEGORY_EMPTY = "categoryEmpty"
    INVALID_AMOUNT = "invalidAmount"


class DeleteBudgetResult(str, Enum):
    SUCCESS = "success"
    INVALID_CATEGORY = "invalidCategory"


class CategoryResult(str, Enum):
    SUCCESS = "success"
    CATEGORY_EXISTS = "categoryExists"
    INVALID_CATEGORY = "invalidCategory"


class PaymentMethodResult(str, Enum):
    SUCCESS = "success"
    METHOD_EXISTS = "methodExists"
    INVALID_METHOD = "invalidMethod"


class InvitationResult(str, Enum):
    """
    Outcomes of accept_invite, listed in the order they are checked.
    """
    SUCCESS = "success"
    INVALID_TOKEN = "invalidToken"
    ALREADY_USED_TOKEN = "alreadyUsedToken"
    EXPIRED_TOKEN = "expiredToken"
    SHORT_USERNAME = "shortUsername"
    ALREADY_REGISTERED = "alreadyRegistered"
    USERNAME_TAKEN = "usernameTaken"


class RevokeAccessResult(str, Enum):
    SUCCESS = "success"
    INVALID_USER = "invalidUser"
    UNAUTHORIZED_ACTIVITY = "unauthorizedActivity"


class UpdateProfileResult(str, Enum):
    SUCCESS = "success"
    INVALID_USER = "invalidUser"


class GenerateInviteStatus(str, Enum):
    SUCCESS = "success"
    FAILED = "failed"


class GenerateInviteLinkResult(BaseModel):
    """
    Result of generate_invite_link.

    Only the success variant carries a payload (the token).
    """

    status: GenerateInviteStatus
    token: Optional[str] = None

    @model_validator(mode='after')
    def validate_payload(self) -> 'GenerateInviteLinkResult':
        """Token is present iff generation succeeded."""
        if self.status == GenerateInviteStatus.SUCCESS and not self.token:
            raise ValueError("Successful invite generation must carry a token")
        if self.status == GenerateInviteStatus.FAILED and self.token is not None:
            raise ValueError("Failed invite generation cannot carry a token")
        return self

    @classmethod
    def success(cls, token: str) -> 'GenerateInviteLinkResult':
        return cls(status=GenerateInviteStatus.SUCCESS, token=token)

    @classmethod
    def failed(cls) -> 'GenerateInviteLinkResult':
        return cls(status=GenerateInviteStatus.FAILED)

    @property
    def is_success(self) -> bool:
        return self.status == GenerateInviteStatus.SUCCESS
