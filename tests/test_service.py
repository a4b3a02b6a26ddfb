"""Tests for the service call discipline: serialization, rollback and audit."""

import asyncio

import pytest

from finledger.audit import AuditLogger
from finledger.config import get_settings
from finledger.core.errors import UnauthorizedError
from finledger.core.state import LedgerState
from finledger.models.audit import AuditEventBuilder, AuditEventType
from finledger.models.results import AddTransactionResult, GenerateInviteStatus, InvitationResult
from finledger.orchestrator import LedgerService, create_ledger_service
from finledger.services.storage import InMemoryAuditStorage

from conftest import ADMIN, ALICE, BOB, MALLORY, START_NS


class TestAtomicCommit:
    """A faulting call leaves the ledger as it found it."""

    def test_state_atomic_restores_on_error(self):
        state = LedgerState()
        state.categories.add("Food")

        with pytest.raises(RuntimeError):
            with state.atomic():
                state.categories.add("Rent")
                state.next_transaction_id()
                raise RuntimeError("boom")

        assert state.categories == {"Food"}
        assert state.last_transaction_id == 0

    def test_faulting_add_does_not_consume_an_id(self, service, run, editors, audit_storage):
        with pytest.raises(ValueError):
            run(service.add_transaction(ALICE, "not-a-timestamp", 100, "Food", "Cash"))

        assert service.state.transactions == {}
        assert service.state.last_transaction_id == 0
        assert run(service.add_transaction(ALICE, START_NS, 100, "Food", "Cash")) == \
            AddTransactionResult.SUCCESS
        assert [t.id for t in run(service.get_all_transactions(ADMIN))] == [1]

        errors = [e for e in audit_storage.events if e.event_type == AuditEventType.SYSTEM_ERROR]
        assert len(errors) == 1
        assert errors[0].actor == ALICE
        assert errors[0].details["operation"] == "addTransaction"

    def test_unauthorized_call_mutates_nothing(self, service, run):
        budgets_before = dict(service.state.budgets)
        with pytest.raises(UnauthorizedError):
            run(service.set_budget(MALLORY, "Food", 100))
        assert service.state.budgets == budgets_before


class TestSerializedCalls:
    """Concurrent calls behave as if they ran one after another."""

    def test_concurrent_adds_get_distinct_sequential_ids(self, service, run, editors):
        async def burst():
            return await asyncio.gather(*(
                service.add_transaction(ALICE if i % 2 else BOB, START_NS, i + 1, "Food", "Cash")
                for i in range(50)
            ))

        results = run(burst())

        assert all(r == AddTransactionResult.SUCCESS for r in results)
        txns = run(service.get_all_transactions(ADMIN))
        assert [t.id for t in txns] == list(range(1, 51))
        # Arrival order is preserved: the i-th call got id i + 1
        assert [t.amount for t in txns] == list(range(1, 51))

    def test_concurrent_invite_acceptance_has_one_winner(self, service, run):
        token = run(service.generate_invite_link(ADMIN)).token

        async def race():
            return await asyncio.gather(
                service.accept_invite(ALICE, token, "alice"),
                service.accept_invite(BOB, token, "bobby"),
            )

        results = run(race())

        assert sorted(r.value for r in results) == ["alreadyUsedToken", "success"]
        assert (ALICE in service.state.users) != (BOB in service.state.users)

    def test_interleaved_reads_see_committed_writes(self, service, run, editors):
        async def scenario():
            return await asyncio.gather(
                service.set_budget(ADMIN, "Food", 1000),
                service.add_transaction(ALICE, START_NS, 400, "Food", "Cash"),
                service.get_budget_summary(ALICE),
            )

        _, _, summary = run(scenario())

        assert summary[0].spent == 400


class TestAuditTrail:
    """Every mutation, rejection and denial is recorded."""

    def test_mutations_are_audited(self, service, run, editors, audit_storage):
        run(service.add_transaction(ALICE, START_NS, 100, "Food", "Cash"))
        run(service.set_budget(ADMIN, "Food", 500))
        run(service.delete_transaction(ALICE, 1))

        types = [e.event_type for e in audit_storage.events]
        assert types.count(AuditEventType.INVITE_ISSUED) == 2
        assert types.count(AuditEventType.INVITE_ACCEPTED) == 2
        assert AuditEventType.TRANSACTION_ADDED in types
        assert AuditEventType.BUDGET_SET in types
        assert AuditEventType.TRANSACTION_DELETED in types

    def test_rejections_are_audited(self, service, run, editors, audit_storage):
        run(service.delete_transaction(BOB, 99))

        [event] = [e for e in audit_storage.events if e.event_type == AuditEventType.OPERATION_REJECTED]
        assert event.actor == BOB
        assert event.entity_id == "99"
        assert event.error_code == "invalidTxn"

    def test_denials_are_audited(self, service, run, audit_storage):
        with pytest.raises(UnauthorizedError):
            run(service.generate_invite_link(MALLORY))

        [event] = [e for e in audit_storage.events if e.event_type == AuditEventType.AUTHORIZATION_DENIED]
        assert event.actor == MALLORY
        assert event.operation == "generateInviteLink"

    def test_invite_token_is_never_logged(self, service, run, audit_storage):
        token = run(service.generate_invite_link(ADMIN)).token
        for event in audit_storage.events:
            assert token not in str(event.to_log_dict())

    def test_failed_invite_generation_is_audited(self, settings, clock, run, audit_storage):
        service = LedgerService.initialize(
            ADMIN,
            settings=settings,
            clock=clock,
            audit_logger=AuditLogger(audit_storage),
            token_factory=lambda nbytes: "",
        )
        assert run(service.generate_invite_link(ADMIN)).status == GenerateInviteStatus.FAILED
        types = [e.event_type for e in audit_storage.events]
        assert types == [AuditEventType.INVITE_GENERATION_FAILED]

    def test_long_caller_strings_complete_the_call(self, service, run, editors, audit_storage):
        category = "C" * 600
        result = run(service.add_transaction(ALICE, START_NS, 100, category, "Cash"))

        assert result == AddTransactionResult.SUCCESS
        [added] = [e for e in audit_storage.events if e.event_type == AuditEventType.TRANSACTION_ADDED]
        assert added.details["category"] == category

    def test_long_username_is_registered_once(self, service, run, audit_storage):
        token = run(service.generate_invite_link(ADMIN)).token
        username = "u" * 600

        assert run(service.accept_invite(MALLORY, token, username)) == InvitationResult.SUCCESS
        assert service.state.users[MALLORY].username == username
        [accepted] = [e for e in audit_storage.events if e.event_type == AuditEventType.INVITE_ACCEPTED]
        assert accepted.details["username"] == username

    def test_unbuildable_event_does_not_fail_the_call(self, service, run, editors, monkeypatch):
        def broken(*args, **kwargs):
            raise ValueError("description too long")

        monkeypatch.setattr(AuditEventBuilder, "transaction_added", broken)

        result = run(service.add_transaction(ALICE, START_NS, 100, "Food", "Cash"))

        assert result == AddTransactionResult.SUCCESS
        assert len(service.state.transactions) == 1


class TestInitialization:
    """Tests for building a ledger."""

    def test_initialize_registers_bootstrap_admin(self, service):
        admin = service.state.users[ADMIN]
        assert admin.username == "admin"
        assert admin.revoked is False

    def test_bootstrap_admin_username_needs_three_characters(self, settings, clock):
        with pytest.raises(ValueError):
            LedgerService.initialize(ADMIN, "ab", settings=settings, clock=clock)

    def test_factory_requires_admin_principal(self, monkeypatch):
        monkeypatch.delenv("LEDGER_BOOTSTRAP_ADMIN_PRINCIPAL", raising=False)
        get_settings.cache_clear()
        try:
            with pytest.raises(ValueError):
                create_ledger_service(use_sheets=False)
        finally:
            get_settings.cache_clear()

    def test_factory_builds_in_memory_service(self, run):
        service = create_ledger_service(ADMIN, use_sheets=False)

        assert isinstance(service.audit_logger.storage, InMemoryAuditStorage)
        assert run(service.assert_admin(ADMIN)) is None
