"""
Catalog Store

The write side the importer depends on: one upsert-by-natural-key
operation that returns the persisted row (including its generated id) or
an error value. Ordinary database errors such as constraint violations
never raise; an unreachable store or a lost connection does.

Implementations:
- CatalogStore: INSERT ... ON CONFLICT DO UPDATE ... RETURNING against
  PostgreSQL or SQLite, one transaction per upsert
- DryRunStore: writes nothing, hands out synthetic ids
"""

from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional, Protocol, Sequence, Tuple, Type

import structlog
from sqlalchemy import func
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import DisconnectionError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncSession, async_sessionmaker

from catalog_importer.database.models import Base

logger = structlog.get_logger(__name__)

_INSERT_CONSTRUCTS: Dict[str, Callable] = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class StoreUnavailableError(RuntimeError):
    """The store cannot be reached or the connection was lost; no further writes can succeed"""


@dataclass(frozen=True)
class UpsertResult:
    """Outcome of a single upsert: the persisted row or an error message"""
    row: Optional[Dict[str, Any]] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.row is not None

    @property
    def id(self) -> Any:
        return self.row["id"] if self.row else None


class UpsertStore(Protocol):
    """Anything the importer can write catalog rows through"""

    async def upsert(
        self,
        model: Type[Base],
        record: Mapping[str, Any],
        conflict_keys: Sequence[str],
        insert_only: Sequence[str] = (),
    ) -> UpsertResult:
        ...


def _describe(error: Exception) -> str:
    orig = getattr(error, "orig", None)
    return str(orig) if orig is not None else str(error)


class CatalogStore:
    """
    Relational store backed by an async SQLAlchemy session factory.

    Each upsert runs in its own transaction, so a failed row never rolls
    back rows written before it.

    Example:
        store = CatalogStore(session_factory)
        result = await store.upsert(Category, {"name": "Fruits"}, ["name"])
        if result.ok:
            category_id = result.id
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    @staticmethod
    async def _connect(session: AsyncSession) -> AsyncConnection:
        """Check out the session's connection; any failure here means the store is unreachable"""
        try:
            return await session.connection()
        except (SQLAlchemyError, OSError) as e:
            message = _describe(e)
            logger.error("Store unreachable", error=message, error_type=type(e).__name__)
            raise StoreUnavailableError(message) from e

    async def upsert(
        self,
        model: Type[Base],
        record: Mapping[str, Any],
        conflict_keys: Sequence[str],
        insert_only: Sequence[str] = (),
    ) -> UpsertResult:
        """
        Insert a row or overwrite the row sharing its natural key.

        Args:
            model: Mapped class of the target table
            record: Column values to write
            conflict_keys: Columns of the natural-key unique constraint
            insert_only: Columns written on insert but kept on conflict

        Returns:
            UpsertResult: The persisted row, or an error message

        Raises:
            StoreUnavailableError: If the store cannot be reached or the
                connection was lost
        """
        table = model.__table__
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    connection = await self._connect(session)
                    insert = _INSERT_CONSTRUCTS.get(connection.dialect.name)
                    if insert is None:
                        raise StoreUnavailableError(
                            f"Upsert not supported for dialect: {connection.dialect.name}"
                        )

                    stmt = insert(table).values(**record)
                    updates = {
                        column: stmt.excluded[column]
                        for column in record
                        if column not in conflict_keys and column not in insert_only
                    }
                    if "updated_at" in table.c:
                        updates["updated_at"] = func.now()
                    if not updates:
                        # Still update something so RETURNING yields the existing row
                        updates = {conflict_keys[0]: stmt.excluded[conflict_keys[0]]}

                    stmt = stmt.on_conflict_do_update(
                        index_elements=list(conflict_keys),
                        set_=updates,
                    ).returning(*table.c)

                    result = await session.execute(stmt)
                    row = dict(result.mappings().one())
        except SQLAlchemyError as e:
            if isinstance(e, DisconnectionError) or getattr(e, "connection_invalidated", False):
                raise StoreUnavailableError(_describe(e)) from e
            logger.debug(
                "Upsert rejected",
                table=table.name,
                error=_describe(e),
                error_type=type(e).__name__,
            )
            return UpsertResult(error=_describe(e))

        return UpsertResult(row=row)


class DryRunStore:
    """
    Store that writes nothing.

    Ids are synthetic but stable per natural key within one instance, so
    children of the same parent see the same parent id.
    """

    def __init__(self):
        self._ids: Dict[str, Dict[Tuple[Any, ...], int]] = defaultdict(dict)

    async def upsert(
        self,
        model: Type[Base],
        record: Mapping[str, Any],
        conflict_keys: Sequence[str],
        insert_only: Sequence[str] = (),
    ) -> UpsertResult:
        keyed = self._ids[model.__tablename__]
        key = tuple(record.get(column) for column in conflict_keys)
        if key not in keyed:
            keyed[key] = len(keyed) + 1
        return UpsertResult(row={**record, "id": keyed[key]})

    def count(self, table_name: str) -> int:
        """Distinct natural keys seen for a table"""
        return len(self._ids.get(table_name, {}))
