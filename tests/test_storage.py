"""Tests for the audit storage backends and the audit logger."""

from unittest.mock import MagicMock

import gspread

from finledger.audit import AuditLogger
from finledger.config import GoogleSheetsSettings
from finledger.models.audit import AuditEventBuilder, AuditEventType
from finledger.services.storage import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    InMemoryAuditStorage,
    StorageError,
)
from finledger.services.storage.google_sheets import AUDIT_COLUMNS

from conftest import run_async


class FailingStorage(InMemoryAuditStorage):
    async def append_event(self, event):
        raise StorageError("sink unavailable")


class TestInMemoryAuditStorage:
    """Tests for the in-memory audit sink."""

    def test_queries(self):
        storage = InMemoryAuditStorage()
        run_async(storage.append_event(AuditEventBuilder.transaction_added("alice", 1, 100, "Food")))
        run_async(storage.append_event(AuditEventBuilder.transaction_deleted("bob", 1)))
        run_async(storage.append_event(AuditEventBuilder.budget_set("admin", "Food", 500)))

        assert len(run_async(storage.get_events_by_actor("alice"))) == 1
        assert len(run_async(storage.get_events_by_entity("transaction", "1"))) == 2

        recent = run_async(storage.get_recent_events(limit=2))
        assert [e.event_type for e in recent] == [
            AuditEventType.BUDGET_SET,
            AuditEventType.TRANSACTION_DELETED,
        ]

        budgets = run_async(storage.get_recent_events(event_type=AuditEventType.BUDGET_SET))
        assert len(budgets) == 1


class TestGoogleSheetsAuditStorage:
    """Tests for the Sheets sink with a mocked client."""

    def _storage(self):
        sheet = MagicMock()
        client = MagicMock(spec=GoogleSheetsClient)
        client.get_audit_sheet.return_value = sheet
        return GoogleSheetsAuditStorage(client), sheet

    def test_append_event_writes_one_row(self):
        storage, sheet = self._storage()
        event = AuditEventBuilder.budget_set("admin", "Food", 500)

        assert run_async(storage.append_event(event)) is True

        sheet.append_row.assert_called_once_with(event.to_sheets_row(), value_input_option="RAW")

    def test_rows_are_read_back(self):
        storage, sheet = self._storage()
        first = AuditEventBuilder.transaction_added("alice", 3, 100, "Food")
        second = AuditEventBuilder.rejected("bob", "deleteTransaction", "invalidTxn", "3")
        sheet.get_all_values.return_value = [
            AUDIT_COLUMNS,
            first.to_sheets_row(),
            second.to_sheets_row(),
            ["not-a-uuid"],
            [],
        ]

        events = run_async(storage.get_events_by_entity("transaction", "3"))
        assert [e.event_id for e in events] == [first.event_id]
        assert events[0].details == {"amount": 100, "category": "Food"}

        [rejected] = run_async(storage.get_events_by_actor("bob"))
        assert rejected.error_code == "invalidTxn"
        assert rejected.entity_type is None

        assert len(run_async(storage.get_recent_events())) == 2

    def test_missing_audit_sheet_is_created(self):
        settings = GoogleSheetsSettings.model_construct(
            credentials_path="credentials.json",
            spreadsheet_id="sheet-id",
            audit_sheet_name="AuditLog",
        )
        client = GoogleSheetsClient(settings)
        spreadsheet = MagicMock()
        spreadsheet.worksheet.side_effect = gspread.WorksheetNotFound("AuditLog")
        client._spreadsheet = spreadsheet

        sheet = client.get_audit_sheet()

        spreadsheet.add_worksheet.assert_called_once_with(
            title="AuditLog", rows=5000, cols=len(AUDIT_COLUMNS),
        )
        sheet.append_row.assert_called_once_with(AUDIT_COLUMNS)


class TestAuditLogger:
    """Tests for AuditLogger."""

    def test_log_persists_event(self):
        storage = InMemoryAuditStorage()
        logger = AuditLogger(storage)

        assert run_async(logger.log(AuditEventBuilder.budget_deleted("admin", "Food"))) is True
        assert len(storage.events) == 1

    def test_storage_failure_does_not_raise(self):
        logger = AuditLogger(FailingStorage())
        assert run_async(logger.log(AuditEventBuilder.budget_deleted("admin", "Food"))) is False

    def test_without_storage_logs_locally(self):
        logger = AuditLogger()
        assert run_async(logger.log(AuditEventBuilder.budget_deleted("admin", "Food"))) is True
        assert logger.storage is None
