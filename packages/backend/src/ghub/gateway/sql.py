"""SQLAlchemy-backed data service.

Learn: Implements the DataService protocol with SQLAlchemy Core against
the tables declared in ghub.db.models. Predicates from the gateway are
compiled to SQL expressions here; values arriving as JSON strings
("2026-10-16", "true") are coerced to the column's Python type first.

Errors leave as DataServiceError with Postgres-style codes so the
gateway can tell "no row" (PGRST116) from a constraint violation (23xxx)
from the database being down (08000).
"""

import asyncio
from datetime import date, datetime
from typing import Any, Optional

import structlog
from sqlalchemy import Table, and_, delete, insert, or_, select, update
from sqlalchemy.exc import DBAPIError, IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ghub.db.models import Base
from ghub.gateway.filters import (
    NOT_FOUND_CODE,
    And,
    DataServiceError,
    Eq,
    In,
    Or,
    Predicate,
    Query,
)

logger = structlog.get_logger()


def _coerce(column, value: Any) -> Any:
    """Convert a JSON-ish value to what the column's type expects."""
    if value is None:
        return None
    try:
        python_type = column.type.python_type
    except NotImplementedError:
        return value

    try:
        if isinstance(value, str):
            if python_type is datetime:
                return datetime.fromisoformat(value.replace("Z", "+00:00"))
            if python_type is date:
                return date.fromisoformat(value)
            if python_type is bool:
                lowered = value.strip().lower()
                if lowered in ("true", "t", "1", "yes"):
                    return True
                if lowered in ("false", "f", "0", "no"):
                    return False
                raise ValueError(f"not a boolean: {value!r}")
            if python_type in (int, float):
                return python_type(value)
        elif python_type is float and isinstance(value, int) and not isinstance(value, bool):
            return float(value)
    except ValueError as e:
        raise DataServiceError(
            f"invalid input for column {column.name}: {e}", code="22P02"
        ) from e
    return value


def _sqlstate(error: DBAPIError) -> Optional[str]:
    orig = error.orig
    return getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)


class SqlDataService:
    """DataService over one AsyncSession. Writes commit immediately."""

    def __init__(self, db: AsyncSession, metadata=Base.metadata):
        self.db = db
        self.metadata = metadata

    # ─── Compilation ────────────────────────────────────

    def _table(self, name: str) -> Table:
        table = self.metadata.tables.get(name)
        if table is None:
            raise DataServiceError(f'relation "{name}" does not exist', code="42P01")
        return table

    def _column(self, table: Table, name: str):
        if name not in table.c:
            raise DataServiceError(
                f'column {table.name}.{name} does not exist', code="42703"
            )
        return table.c[name]

    def _where(self, table: Table, predicate: Predicate):
        if isinstance(predicate, Eq):
            column = self._column(table, predicate.column)
            if predicate.value is None:
                return column.is_(None)
            return column == _coerce(column, predicate.value)
        if isinstance(predicate, In):
            column = self._column(table, predicate.column)
            return column.in_([_coerce(column, v) for v in predicate.values])
        if isinstance(predicate, Or):
            return or_(*(self._where(table, p) for p in predicate.predicates))
        if isinstance(predicate, And):
            return and_(*(self._where(table, p) for p in predicate.predicates))
        raise TypeError(f"Unsupported predicate: {predicate!r}")

    def _values(self, table: Table, values: dict[str, Any]) -> dict[str, Any]:
        return {
            name: _coerce(self._column(table, name), value)
            for name, value in values.items()
        }

    async def _execute(self, stmt, write: bool = False):
        try:
            result = await self.db.execute(stmt)
            rows = [dict(row) for row in result.mappings().all()] if result.returns_rows else []
            count = result.rowcount
            if write:
                await self.db.commit()
            return rows, count
        except IntegrityError as e:
            await self.db.rollback()
            raise DataServiceError(str(e.orig), code=_sqlstate(e) or "23000") from e
        except DBAPIError as e:
            await self.db.rollback()
            logger.error("sql.execute_failed", error=str(e.orig))
            code = _sqlstate(e) or ("08000" if e.connection_invalidated else "XX000")
            raise DataServiceError(str(e.orig), code=code) from e
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("sql.execute_failed", error=str(e))
            raise DataServiceError(str(e), code="08000") from e
        except (OSError, asyncio.TimeoutError) as e:
            # the driver could not reach the server; SQLAlchemy passes these through
            await self.db.rollback()
            logger.error("sql.unreachable", error=str(e) or type(e).__name__)
            raise DataServiceError(str(e) or type(e).__name__, code="08000") from e

    # ─── DataService ────────────────────────────────────

    async def select(self, query: Query) -> list[dict]:
        table = self._table(query.table)
        stmt = select(table)
        if query.where is not None:
            stmt = stmt.where(self._where(table, query.where))
        for order in query.order:
            column = self._column(table, order.column)
            stmt = stmt.order_by(column.desc() if order.descending else column.asc())
        if query.limit is not None:
            stmt = stmt.limit(query.limit)
        rows, _ = await self._execute(stmt)
        return rows

    async def select_single(self, query: Query) -> dict:
        rows = await self.select(
            Query(table=query.table, where=query.where, order=query.order, limit=2)
        )
        if len(rows) != 1:
            raise DataServiceError(
                "JSON object requested, multiple (or no) rows returned",
                code=NOT_FOUND_CODE,
            )
        return rows[0]

    async def insert(self, table: str, values: dict) -> dict:
        t = self._table(table)
        stmt = insert(t).values(**self._values(t, values)).returning(*t.c)
        rows, _ = await self._execute(stmt, write=True)
        return rows[0]

    async def update(self, table: str, values: dict, where: Predicate) -> list[dict]:
        t = self._table(table)
        stmt = (
            update(t)
            .where(self._where(t, where))
            .values(**self._values(t, values))
            .returning(*t.c)
        )
        rows, _ = await self._execute(stmt, write=True)
        return rows

    async def delete(self, table: str, where: Predicate) -> int:
        t = self._table(table)
        stmt = delete(t).where(self._where(t, where))
        _, count = await self._execute(stmt, write=True)
        return count
