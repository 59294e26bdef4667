from copy import deepcopy
from typing import Any, AsyncGenerator, Dict, List, Mapping, Optional
from unittest.mock import AsyncMock
from uuid import UUID, uuid4

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from app.core.cache import CacheService
from app.services.event_tracker import EventTracker


class InMemoryRecordStore:
    """Dict-backed stand-in for ``SQLAlchemyRecordStore``.

    Mirrors its filter semantics: list values mean ``IN`` and ``None``
    means ``IS NULL``.  Records are deep-copied on the way in and out.
    """

    def __init__(self) -> None:
        self.tables: Dict[str, List[Dict[str, Any]]] = {}
        self.updates: List[tuple] = []

    def add(self, table: str, **record: Any) -> Dict[str, Any]:
        record.setdefault("id", uuid4())
        self.tables.setdefault(table, []).append(record)
        return deepcopy(record)

    @staticmethod
    def _matches(record: Mapping[str, Any], filters: Mapping[str, Any]) -> bool:
        for column, value in filters.items():
            actual = record.get(column)
            if value is None:
                if actual is not None:
                    return False
            elif isinstance(value, (list, tuple, set, frozenset)):
                if actual not in value:
                    return False
            elif actual != value:
                return False
        return True

    async def get_by_id(
        self, table: str, record_id: UUID, workspace_id: Optional[UUID] = None
    ) -> Optional[Dict[str, Any]]:
        for record in self.tables.get(table, []):
            if record["id"] != record_id:
                continue
            if workspace_id is not None and record.get("workspace_id") != workspace_id:
                return None
            return deepcopy(record)
        return None

    async def get_by_filter(
        self,
        table: str,
        filters: Mapping[str, Any],
        limit: Optional[int] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> List[Dict[str, Any]]:
        rows = [r for r in self.tables.get(table, []) if self._matches(r, filters)]
        if order_by is not None:
            present = [r for r in rows if r.get(order_by) is not None]
            missing = [r for r in rows if r.get(order_by) is None]
            present.sort(key=lambda r: r[order_by], reverse=descending)
            rows = present + missing
        if limit is not None:
            rows = rows[:limit]
        return deepcopy(rows)

    async def insert(self, table: str, record: Mapping[str, Any]) -> Dict[str, Any]:
        return self.add(table, **dict(record))

    async def update(
        self,
        table: str,
        record_id: UUID,
        patch: Mapping[str, Any],
        workspace_id: Optional[UUID] = None,
    ) -> bool:
        for record in self.tables.get(table, []):
            if record["id"] != record_id:
                continue
            if workspace_id is not None and record.get("workspace_id") != workspace_id:
                return False
            record.update(deepcopy(dict(patch)))
            self.updates.append((table, record_id, dict(patch)))
            return True
        return False


@pytest.fixture
def workspace_id() -> UUID:
    return uuid4()


@pytest.fixture
def other_workspace_id() -> UUID:
    return uuid4()


@pytest.fixture
def store() -> InMemoryRecordStore:
    return InMemoryRecordStore()


@pytest.fixture
def tracker(store: InMemoryRecordStore) -> EventTracker:
    """Tracker writing into the same in-memory store."""
    return EventTracker(store=store, session_id="session_test")


@pytest.fixture
def mock_redis() -> AsyncMock:
    """Return an ``AsyncMock`` that behaves like ``redis.asyncio.Redis``."""
    redis = AsyncMock()
    redis.get = AsyncMock(return_value=None)
    redis.set = AsyncMock()
    redis.setex = AsyncMock()
    redis.ping = AsyncMock()
    return redis


@pytest.fixture
def mock_cache(mock_redis) -> CacheService:
    """Return a ``CacheService`` backed by the mock Redis client."""
    return CacheService(redis_client=mock_redis)


@pytest_asyncio.fixture
async def async_client(
    store: InMemoryRecordStore, tracker: EventTracker
) -> AsyncGenerator[AsyncClient, None]:
    """Yield an ``httpx.AsyncClient`` wired to the app over the in-memory store."""
    from app.api.deps import get_cache_service, get_event_tracker, get_record_store
    from app.core.rate_limit import limiter
    from app.main import app

    app.dependency_overrides[get_record_store] = lambda: store
    app.dependency_overrides[get_event_tracker] = lambda: tracker
    app.dependency_overrides[get_cache_service] = lambda: CacheService()
    limiter.reset()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
