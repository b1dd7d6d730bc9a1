"""Generic table-query interface used by every service."""

from __future__ import annotations

import abc
from collections.abc import Mapping, Sequence
from typing import Any

Row = dict[str, Any]


class TableStore(abc.ABC):
    """Row-level access to the remote data store.

    Each call is an independent unit of work: it commits before returning
    and may fail on its own. Nothing here wraps several calls into one
    transaction.

    Filters are equality predicates keyed by column name. A list, tuple or
    set value becomes an ``IN`` predicate and ``None`` becomes ``IS NULL``.
    """

    @abc.abstractmethod
    async def select(
        self,
        table: str,
        *,
        filters: Mapping[str, Any] | None = None,
        exclude: Mapping[str, Sequence[Any]] | None = None,
        search: tuple[str, Sequence[str]] | None = None,
        order_by: str | None = None,
        ascending: bool = True,
        limit: int | None = None,
    ) -> list[Row]:
        """Return matching rows.

        ``exclude`` maps columns to values the row must not hold. ``search``
        is ``(term, columns)``: a case-insensitive substring match on any of
        the columns.
        """

    @abc.abstractmethod
    async def select_one(self, table: str, *, filters: Mapping[str, Any]) -> Row | None:
        """Return the single matching row, or None. More than one match is an error."""

    @abc.abstractmethod
    async def insert(self, table: str, values: Mapping[str, Any]) -> Row:
        """Insert one row and return it as stored."""

    @abc.abstractmethod
    async def update(self, table: str, *, filters: Mapping[str, Any], values: Mapping[str, Any]) -> list[Row]:
        """Update every matching row and return the updated rows."""

    @abc.abstractmethod
    async def upsert(
        self,
        table: str,
        values: Mapping[str, Any],
        *,
        on_conflict: Sequence[str],
        keep_existing: Sequence[str] = (),
    ) -> Row:
        """Insert, or update the row sharing the ``on_conflict`` natural key.

        Columns in ``keep_existing`` are only written when the stored value
        is NULL, so a set-once column survives concurrent upserts.
        """

    @abc.abstractmethod
    async def delete(self, table: str, *, filters: Mapping[str, Any]) -> list[Row]:
        """Delete every matching row and return the deleted rows."""

    @abc.abstractmethod
    async def rpc(self, name: str, params: Mapping[str, Any]) -> Any:  # noqa: ANN401
        """Invoke a named remote procedure."""
