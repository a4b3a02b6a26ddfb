"""
Ledger Faults

Business outcomes are returned as result enums. The exceptions here are
the only way a ledger call aborts: the call is rolled back and the
exception propagates to the caller.
"""


class LedgerError(Exception):
    """Base exception for ledger faults."""
    pass


class UnauthorizedError(LedgerError):
    """Caller lacks the role or registration the operation requires."""

    def __init__(self, principal: str, message: str):
        self.principal = principal
        super().__init__(message)


class UnknownOperationError(LedgerError):
    """The boundary was asked for an operation that does not exist."""
    pass
