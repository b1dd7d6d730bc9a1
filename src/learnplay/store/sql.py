"""Table store backed by async SQLAlchemy.

Table names resolve against the ORM metadata. Each call opens its own
session and transaction, mirroring one request to a hosted Postgres REST
endpoint.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Mapping, Sequence
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy import MetaData, Table, delete, func, insert, or_, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.sql.elements import ColumnElement

from learnplay.db.base import Base
from learnplay.store.base import Row, TableStore
from learnplay.store.errors import StoreError, UniqueViolationError, UnknownProcedureError
from learnplay.store.procedures import DEFAULT_PROCEDURES, Procedure

logger = logging.getLogger(__name__)

_UNIQUE_SQLSTATE = "23505"


def _is_unique_violation(exc: IntegrityError) -> bool:
    """Detect unique-constraint failures across asyncpg and sqlite drivers."""
    orig = exc.orig
    if getattr(orig, "sqlstate", None) == _UNIQUE_SQLSTATE or getattr(orig, "pgcode", None) == _UNIQUE_SQLSTATE:
        return True
    message = str(orig)
    return "UNIQUE constraint failed" in message or "duplicate key value" in message


class SqlTableStore(TableStore):
    """``TableStore`` over an ``async_sessionmaker``."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        metadata: MetaData | None = None,
        procedures: Mapping[str, Procedure] | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._metadata = metadata if metadata is not None else Base.metadata
        self._procedures = dict(DEFAULT_PROCEDURES if procedures is None else procedures)

    def register_procedure(self, name: str, procedure: Procedure) -> None:
        """Expose an extra procedure through ``rpc``."""
        self._procedures[name] = procedure

    # --- helpers ---

    def _table(self, name: str, operation: str) -> Table:
        table = self._metadata.tables.get(name)
        if table is None:
            raise StoreError(f"Unknown table: {name}", table=name, operation=operation)
        return table

    @staticmethod
    def _predicates(
        table: Table,
        filters: Mapping[str, Any] | None,
        exclude: Mapping[str, Sequence[Any]] | None = None,
        search: tuple[str, Sequence[str]] | None = None,
    ) -> list[ColumnElement[bool]]:
        clauses: list[ColumnElement[bool]] = []
        for column, value in (filters or {}).items():
            col = table.c[column]
            if value is None:
                clauses.append(col.is_(None))
            elif isinstance(value, (list, tuple, set, frozenset)):
                clauses.append(col.in_(list(value)))
            else:
                clauses.append(col == value)
        for column, values in (exclude or {}).items():
            if values:
                clauses.append(table.c[column].not_in(list(values)))
        if search is not None:
            term, columns = search
            if term:
                pattern = f"%{term}%"
                clauses.append(or_(*(table.c[c].ilike(pattern) for c in columns)))
        return clauses

    @asynccontextmanager
    async def _transaction(self, table: str, operation: str) -> AsyncIterator[AsyncSession]:
        """Run one store call in its own transaction and translate driver errors."""
        try:
            async with self._session_factory() as session, session.begin():
                yield session
        except IntegrityError as exc:
            if _is_unique_violation(exc):
                raise UniqueViolationError(
                    f"Duplicate row in {table}", table=table, operation=operation
                ) from exc
            raise StoreError(f"Constraint violation on {table}: {exc.orig}", table=table, operation=operation) from exc
        except KeyError as exc:
            raise StoreError(f"Unknown column {exc} on {table}", table=table, operation=operation) from exc
        except SQLAlchemyError as exc:
            logger.warning("Store %s on %s failed: %s", operation, table, exc)
            raise StoreError(f"{operation} on {table} failed", table=table, operation=operation) from exc

    # --- TableStore ---

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
        async with self._transaction(table, "select") as session:
            tbl = self._table(table, "select")
            stmt = select(tbl).where(*self._predicates(tbl, filters, exclude, search))
            if order_by is not None:
                col = tbl.c[order_by]
                stmt = stmt.order_by(col.asc() if ascending else col.desc())
            if limit is not None:
                stmt = stmt.limit(limit)
            result = await session.execute(stmt)
            return [dict(row) for row in result.mappings()]

    async def select_one(self, table: str, *, filters: Mapping[str, Any]) -> Row | None:
        async with self._transaction(table, "select") as session:
            tbl = self._table(table, "select")
            result = await session.execute(select(tbl).where(*self._predicates(tbl, filters)))
            row = result.mappings().one_or_none()
            return dict(row) if row is not None else None

    async def insert(self, table: str, values: Mapping[str, Any]) -> Row:
        async with self._transaction(table, "insert") as session:
            tbl = self._table(table, "insert")
            result = await session.execute(insert(tbl).values(**values).returning(*tbl.c))
            return dict(result.mappings().one())

    async def update(self, table: str, *, filters: Mapping[str, Any], values: Mapping[str, Any]) -> list[Row]:
        async with self._transaction(table, "update") as session:
            tbl = self._table(table, "update")
            result = await session.execute(
                update(tbl).where(*self._predicates(tbl, filters)).values(**values).returning(*tbl.c)
            )
            return [dict(row) for row in result.mappings()]

    async def upsert(
        self,
        table: str,
        values: Mapping[str, Any],
        *,
        on_conflict: Sequence[str],
        keep_existing: Sequence[str] = (),
    ) -> Row:
        async with self._transaction(table, "upsert") as session:
            tbl = self._table(table, "upsert")
            conn = await session.connection()
            dialect = conn.dialect.name
            if dialect == "postgresql":
                stmt = pg_insert(tbl).values(**values)
            elif dialect == "sqlite":
                stmt = sqlite_insert(tbl).values(**values)
            else:
                raise StoreError(f"Upsert not supported on {dialect}", table=table, operation="upsert")

            set_ = {
                k: func.coalesce(tbl.c[k], stmt.excluded[k]) if k in keep_existing else stmt.excluded[k]
                for k in values
                if k not in on_conflict and k != "id"
            }
            if set_:
                stmt = stmt.on_conflict_do_update(index_elements=list(on_conflict), set_=set_)
            else:
                stmt = stmt.on_conflict_do_nothing(index_elements=list(on_conflict))
            result = await session.execute(stmt.returning(*tbl.c))
            row = result.mappings().one_or_none()
            if row is None:
                # DO NOTHING returns no row on conflict; read the existing one
                key = {k: values[k] for k in on_conflict}
                existing = await session.execute(select(tbl).where(*self._predicates(tbl, key)))
                row = existing.mappings().one()
            return dict(row)

    async def delete(self, table: str, *, filters: Mapping[str, Any]) -> list[Row]:
        if not filters:
            raise StoreError(f"Refusing unfiltered delete on {table}", table=table, operation="delete")
        async with self._transaction(table, "delete") as session:
            tbl = self._table(table, "delete")
            result = await session.execute(delete(tbl).where(*self._predicates(tbl, filters)).returning(*tbl.c))
            return [dict(row) for row in result.mappings()]

    async def rpc(self, name: str, params: Mapping[str, Any]) -> Any:  # noqa: ANN401
        procedure = self._procedures.get(name)
        if procedure is None:
            raise UnknownProcedureError(f"Unknown procedure: {name}", operation="rpc")
        async with self._transaction(name, "rpc") as session:
            return await procedure(session, params)
