"""
Tests for the Finance Ledger models

Test strategy:
1. Unit tests for models and individual components
2. Service-level tests for call discipline (serialization, rollback, audit)
3. No real API calls in tests (Google Sheets is mocked)
"""

import pytest

from finledger.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)
from finledger.models.ledger import (
    Budget,
    InviteToken,
    NotificationSettings,
    Role,
    Transaction,
    User,
    UserProfile,
)
from finledger.models.results import (
    GenerateInviteLinkResult,
    GenerateInviteStatus,
    InvitationResult,
)
from finledger.models.summaries import SpendingTrend


class TestLedgerModels:
    """Tests for ledger entity models."""

    def test_transaction_creation(self):
        """Test Transaction model creation."""
        txn = Transaction(
            id=1,
            owner="alice",
            date=100,
            created_at=200,
            updated_at=200,
            category="Food",
            payment_method="Cash",
            amount=1250,
        )
        assert txn.amount == 1250
        assert txn.notes is None

    def test_transaction_rejects_empty_category(self):
        """Stored transactions can never carry an empty category."""
        with pytest.raises(ValueError):
            Transaction(
                id=1,
                owner="alice",
                date=100,
                created_at=200,
                updated_at=200,
                category="",
                payment_method="Cash",
                amount=1,
            )

    def test_budget_rejects_negative_amount(self):
        """Test that negative budget limits are rejected."""
        with pytest.raises(ValueError):
            Budget(category="Food", amount=-1, updated_at=0)

    def test_user_is_frozen(self):
        """Users change only through model_copy."""
        user = User(principal="p", username="alice", joined_at=0, role=Role.EDITOR)
        with pytest.raises(ValueError):
            user.role = Role.ADMIN
        revoked = user.model_copy(update={"revoked": True})
        assert revoked.revoked is True
        assert user.revoked is False

    def test_username_minimum_length(self):
        with pytest.raises(ValueError):
            User(principal="p", username="ab", joined_at=0, role=Role.EDITOR)

    def test_role_values(self):
        """Roles are a closed two-variant set."""
        assert {r.value for r in Role} == {"Admin", "Editor"}

    def test_invite_expiry_is_inclusive(self):
        """A token is still valid at exactly expires_at."""
        invite = InviteToken(token="t", issued_by="a", issued_at=0, expires_at=10)
        assert invite.is_expired(10) is False
        assert invite.is_expired(11) is True

    def test_notification_threshold_bounds(self):
        """Threshold is a percentage."""
        assert NotificationSettings().budget_warning_threshold == 80
        with pytest.raises(ValueError):
            NotificationSettings(budget_warning_threshold=101)

    def test_user_profile_strips_whitespace(self):
        """Test that whitespace is stripped from profile strings."""
        profile = UserProfile(theme="  dark  ", preferred_currency="EUR")
        assert profile.theme == "dark"

    def test_preferences_reject_unknown_fields(self):
        with pytest.raises(ValueError):
            UserProfile(theme="dark", colour="blue")
        with pytest.raises(ValueError):
            NotificationSettings(budget_warning_treshold=50)

    def test_spending_trend_period_format(self):
        """Periods are YYYY-MM."""
        assert SpendingTrend(period="2024-03", spent=5).period == "2024-03"
        with pytest.raises(ValueError):
            SpendingTrend(period="March", spent=5)


class TestResultModels:
    """Tests for result variants."""

    def test_invite_result_success_carries_token(self):
        result = GenerateInviteLinkResult.success("abc")
        assert result.is_success
        assert result.token == "abc"

    def test_invite_result_failed_has_no_token(self):
        result = GenerateInviteLinkResult.failed()
        assert result.status == GenerateInviteStatus.FAILED
        assert result.token is None

    def test_invite_result_rejects_inconsistent_payload(self):
        with pytest.raises(ValueError):
            GenerateInviteLinkResult(status=GenerateInviteStatus.SUCCESS)
        with pytest.raises(ValueError):
            GenerateInviteLinkResult(status=GenerateInviteStatus.FAILED, token="abc")

    def test_invitation_tags_match_wire_names(self):
        assert InvitationResult.ALREADY_USED_TOKEN.value == "alreadyUsedToken"
        assert InvitationResult.SHORT_USERNAME.value == "shortUsername"


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        """Test AuditEvent model creation."""
        event = AuditEvent(
            event_type=AuditEventType.TRANSACTION_ADDED,
            description="Transaction added",
        )
        assert event.event_type == AuditEventType.TRANSACTION_ADDED
        assert event.severity == AuditSeverity.INFO

    def test_audit_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        event = AuditEventBuilder.transaction_added("alice", 7, 1500, "Food")
        log_dict = event.to_log_dict()
        assert "event_id" in log_dict
        assert log_dict["event_type"] == "transaction_added"
        assert log_dict["entity_id"] == "7"
        assert log_dict["details"]["amount"] == 1500

    def test_audit_event_to_sheets_row(self):
        """Test conversion to sheets row."""
        event = AuditEventBuilder.rejected("bob", "deleteTransaction", "invalidTxn", "3")
        row = event.to_sheets_row()
        assert len(row) == 12
        assert row[2] == "operation_rejected"
        assert row[4] == "bob"
        assert row[10] == "invalidTxn"

    def test_invite_issued_never_contains_token(self):
        """Invite events carry the expiry, not the credential."""
        event = AuditEventBuilder.invite_issued("admin", expires_at=99)
        assert event.entity_id is None
        assert event.details == {"expires_at": 99}

    def test_registry_changed_description(self):
        event = AuditEventBuilder.registry_changed(
            "admin",
            AuditEventType.PAYMENT_METHOD_ADDED,
            "payment_method",
            "Card",
            "addPaymentMethod",
        )
        assert event.description == "Payment method added"
        assert event.entity_id == "Card"
        assert event.details == {"name": "Card"}

    def test_caller_strings_stay_out_of_description(self):
        long_name = "C" * 600
        event = AuditEventBuilder.budget_set("admin", long_name, 100)
        assert event.description == "Budget set"
        assert event.entity_id == long_name

        event = AuditEventBuilder.invite_accepted("bob", "u" * 600)
        assert event.description == "Invite accepted"
        assert event.details["username"] == "u" * 600

    def test_authorization_denied_is_error(self):
        event = AuditEventBuilder.authorization_denied("bob", "setBudget", "Caller is not an Admin")
        assert event.severity == AuditSeverity.ERROR
        assert event.error_code == "unauthorized"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
