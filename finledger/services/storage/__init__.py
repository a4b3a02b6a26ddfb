"""
Storage Services Package

Provides the abstract audit storage interface and its implementations.
Google Sheets is the persistent backend; in-memory storage backs tests.
"""

from finledger.services.storage.interface import (
    AuditStorageInterface,
    StorageConnectionError,
    StorageError,
)
from finledger.services.storage.memory import InMemoryAuditStorage
from finledger.services.storage.google_sheets import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    # Exceptions
    "StorageConnectionError",
    "StorageError",
    # Implementations
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "InMemoryAuditStorage",
]
