"""Shared repository plumbing for the demand store.

Repositories call add()/flush()/execute() only — never commit().
The caller's session scope handles commit/rollback (Unit-of-Work).
"""

from collections.abc import Sequence
from typing import Any, Generic, TypeVar

from sqlalchemy import Table, delete, func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from src.db.session import Base

T = TypeVar("T", bound=Base)

_INSERT_BY_DIALECT = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class BulkTableRepository(Generic[T]):
    """Repository over one table that is rebuilt wholesale each run."""

    row_class: type[T]

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    @property
    def _table(self) -> Table:
        return self.row_class.__table__  # type: ignore[return-value]

    async def count(self) -> int:
        result = await self._session.execute(
            select(func.count()).select_from(self.row_class),
        )
        return int(result.scalar_one())

    async def list_all(self) -> list[T]:
        result = await self._session.execute(select(self.row_class))
        return list(result.scalars().all())

    async def delete_all(self) -> None:
        await self._session.execute(delete(self.row_class))

    async def insert_ignore(
        self, rows: Sequence[dict[str, Any]], *, batch_size: int = 1000,
    ) -> int:
        """Insert rows in batches, skipping rows that hit a unique constraint.

        Returns the number of rows submitted.
        """
        if batch_size < 1:
            msg = f"batch_size must be >= 1, got {batch_size}"
            raise ValueError(msg)
        dialect = self._session.get_bind().dialect.name
        make_insert = _INSERT_BY_DIALECT.get(dialect)
        if make_insert is None:
            msg = f"Unsupported dialect for bulk insert: {dialect}"
            raise ValueError(msg)

        written = 0
        for start in range(0, len(rows), batch_size):
            batch = list(rows[start:start + batch_size])
            stmt = make_insert(self._table).on_conflict_do_nothing()
            await self._session.execute(stmt, batch)
            written += len(batch)
        return written
