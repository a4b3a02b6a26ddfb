"""
Finance Ledger - Source Package

A shared household finance ledger: principal-scoped transactions,
per-category budgets, role-gated administration and invite-based onboarding.

DESIGN PRINCIPLES:
1. Expected outcomes are returned, never raised
2. Only authorization faults abort a call, and they abort it completely
3. No silent corrections: empty names are rejected, not defaulted
4. Calls are serialized; every view is computed from live state
5. Every mutation is auditable
"""

__version__ = "1.0.0"
__author__ = "Finance Ledger Team"
