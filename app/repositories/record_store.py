"""Narrow record-store interface consumed by every insight service.

Services never import ORM models or build queries themselves: they ask
a ``RecordStore`` for plain dicts by id or by equality filter, and hand
back inserts/patches the same way.  ``SQLAlchemyRecordStore`` is the
production implementation; tests substitute an in-memory fake.
"""

from decimal import Decimal
from typing import Any, Dict, Iterable, List, Mapping, Optional, Protocol
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import MODELS_BY_TABLE
from app.repositories.base import BaseRepository

Record = Dict[str, Any]


class RecordStore(Protocol):
    """Query interface the insight services depend on."""

    async def get_by_id(
        self, table: str, record_id: UUID, workspace_id: Optional[UUID] = None
    ) -> Optional[Record]: ...

    async def get_by_filter(
        self,
        table: str,
        filters: Mapping[str, Any],
        limit: Optional[int] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> List[Record]: ...

    async def insert(self, table: str, record: Mapping[str, Any]) -> Record: ...

    async def update(
        self,
        table: str,
        record_id: UUID,
        patch: Mapping[str, Any],
        workspace_id: Optional[UUID] = None,
    ) -> bool: ...


def _plain(value: Any) -> Any:
    # Numeric columns come back as Decimal; the services do float maths
    if isinstance(value, Decimal):
        return float(value)
    return value


class SQLAlchemyRecordStore(BaseRepository):
    """``RecordStore`` backed by the ORM models in ``app.models``.

    Filters are equality matches; an iterable value becomes ``IN`` and
    ``None`` becomes ``IS NULL``.

    With *autocommit* every write is committed immediately (and rolled
    back on failure) so the store can run on its own session, isolated
    from the request transaction.
    """

    def __init__(self, db: AsyncSession, autocommit: bool = False) -> None:
        super().__init__(db)
        self._autocommit = autocommit

    async def _finish_write(self) -> None:
        if not self._autocommit:
            await self.flush()
            return
        try:
            await self._db.commit()
        except Exception:
            await self._db.rollback()
            raise

    @staticmethod
    def _model(table: str):
        try:
            return MODELS_BY_TABLE[table]
        except KeyError:
            raise ValueError(f"Unknown table: {table}") from None

    @staticmethod
    def _to_record(instance: Any) -> Record:
        return {
            attr.key: _plain(getattr(instance, attr.key))
            for attr in instance.__mapper__.column_attrs
        }

    @staticmethod
    def _conditions(model: Any, filters: Mapping[str, Any]) -> Iterable[Any]:
        for column_name, value in filters.items():
            column = getattr(model, column_name)
            if value is None:
                yield column.is_(None)
            elif isinstance(value, (list, tuple, set, frozenset)):
                yield column.in_(list(value))
            else:
                yield column == value

    async def get_by_id(
        self, table: str, record_id: UUID, workspace_id: Optional[UUID] = None
    ) -> Optional[Record]:
        """Return one record by primary key, or ``None``.

        When *workspace_id* is given a record from another workspace is
        reported as missing.
        """
        model = self._model(table)
        query = select(model).where(model.id == record_id)
        if workspace_id is not None:
            query = query.where(model.workspace_id == workspace_id)
        instance = (await self._db.execute(query)).scalar_one_or_none()
        return self._to_record(instance) if instance is not None else None

    async def get_by_filter(
        self,
        table: str,
        filters: Mapping[str, Any],
        limit: Optional[int] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> List[Record]:
        """Return every record matching *filters*.

        The query runs inside a SAVEPOINT, so a failed read leaves the
        surrounding transaction usable for later writes.
        """
        model = self._model(table)
        query = select(model).where(*self._conditions(model, filters))
        if order_by is not None:
            column = getattr(model, order_by)
            query = query.order_by(column.desc() if descending else column.asc())
        if limit is not None:
            query = query.limit(limit)
        async with self._db.begin_nested():
            result = await self._db.execute(query)
            instances = result.scalars().all()
        return [self._to_record(instance) for instance in instances]

    async def insert(self, table: str, record: Mapping[str, Any]) -> Record:
        """Insert a record and return it with server defaults populated."""
        instance = self._model(table)(**record)
        self._db.add(instance)
        await self._finish_write()
        await self._db.refresh(instance)
        return self._to_record(instance)

    async def update(
        self,
        table: str,
        record_id: UUID,
        patch: Mapping[str, Any],
        workspace_id: Optional[UUID] = None,
    ) -> bool:
        """Apply *patch* to one record; return ``False`` if nothing matched."""
        model = self._model(table)
        statement = update(model).where(model.id == record_id).values(**patch)
        if workspace_id is not None:
            statement = statement.where(model.workspace_id == workspace_id)
        result = await self._db.execute(statement)
        await self._finish_write()
        return bool(result.rowcount)
