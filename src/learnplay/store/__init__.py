"""Remote data store boundary."""

from learnplay.store.base import Row, TableStore
from learnplay.store.errors import (
    RecordNotFoundError,
    StoreError,
    UniqueViolationError,
    UnknownProcedureError,
)
from learnplay.store.sql import SqlTableStore

__all__ = [
    "RecordNotFoundError",
    "Row",
    "SqlTableStore",
    "StoreError",
    "TableStore",
    "UniqueViolationError",
    "UnknownProcedureError",
]
