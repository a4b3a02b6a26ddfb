"""
Shared fixtures for the finance ledger tests.

Every test gets its own isolated LedgerState through a fresh service,
a controllable clock and an in-memory audit trail.
"""

import asyncio

import pytest

from finledger.audit import AuditLogger
from finledger.config import LedgerSettings
from finledger.models.results import InvitationResult
from finledger.orchestrator import LedgerService
from finledger.services.storage import InMemoryAuditStorage


ADMIN = "admin-principal"
ALICE = "alice-principal"
BOB = "bob-principal"
MALLORY = "mallory-principal"

# 2024-03-15T12:00:00Z in nanoseconds
START_NS = 1_710_504_000 * 1_000_000_000
HOUR_NS = 3_600 * 1_000_000_000
DAY_NS = 24 * HOUR_NS


def run_async(coro):
    """Run one coroutine to completion on a fresh event loop."""
    return asyncio.run(coro)


class FakeClock:
    """Deterministic nanosecond clock."""

    def __init__(self, now: int = START_NS):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, nanos: int) -> None:
        self.now += nanos


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def settings():
    return LedgerSettings(
        invite_expiry_hours=24,
        default_categories="Food,Transport",
        default_payment_methods="Cash,Card",
    )


@pytest.fixture
def audit_storage():
    return InMemoryAuditStorage()


@pytest.fixture
def service(clock, settings, audit_storage):
    return LedgerService.initialize(
        ADMIN,
        "admin",
        settings=settings,
        audit_logger=AuditLogger(audit_storage),
        clock=clock,
    )


@pytest.fixture
def run():
    return run_async


@pytest.fixture
def enroll(service):
    """Invite and register a principal as an Editor."""
    def _enroll(principal: str, username: str) -> None:
        invite = run_async(service.generate_invite_link(ADMIN))
        assert invite.is_success
        result = run_async(service.accept_invite(principal, invite.token, username))
        assert result == InvitationResult.SUCCESS
    return _enroll


@pytest.fixture
def editors(enroll):
    """Alice and Bob registered as Editors."""
    enroll(ALICE, "alice")
    enroll(BOB, "bob")
    return ALICE, BOB
