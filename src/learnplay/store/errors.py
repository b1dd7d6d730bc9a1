"""Store error taxonomy.

Every failure that crosses the table store boundary is a ``StoreError``;
driver exceptions never leak to the services.
"""

from __future__ import annotations


class StoreError(Exception):
    """A store call failed (network, row or constraint error)."""

    def __init__(self, message: str, *, table: str | None = None, operation: str | None = None) -> None:
        super().__init__(message)
        self.table = table
        self.operation = operation


class UniqueViolationError(StoreError):
    """An insert or update collided with a unique constraint."""


class RecordNotFoundError(StoreError):
    """A single-row read matched nothing."""


class UnknownProcedureError(StoreError):
    """``rpc`` was called with a procedure name nobody registered."""
