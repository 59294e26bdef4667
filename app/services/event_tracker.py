import logging
import time
from typing import Optional
from uuid import uuid4

from app.core.exceptions import TrackingFailureError
from app.repositories.record_store import RecordStore
from app.schemas.event import AnalyticsEventCreate

logger = logging.getLogger(__name__)

EVENTS_TABLE = "analytics_events"


def new_session_id() -> str:
    return f"session_{int(time.time() * 1000)}_{uuid4().hex[:9]}"


class EventTracker:
    """Append analytics events without ever failing the caller.

    ``track`` is fire-and-forget: a storage error is logged as a
    tracking failure and dropped, never retried.  With no store
    configured every call is a no-op.
    """

    def __init__(
        self,
        store: Optional[RecordStore] = None,
        session_id: Optional[str] = None,
    ) -> None:
        self._store = store
        self._session_id = session_id or new_session_id()

    @property
    def session_id(self) -> str:
        return self._session_id

    async def track(self, event: AnalyticsEventCreate) -> None:
        if self._store is None:
            return
        try:
            await self._record(event)
        except TrackingFailureError as exc:
            logger.error("%s (%s)", exc.detail, exc.__cause__)

    async def _record(self, event: AnalyticsEventCreate) -> None:
        payload = event.model_dump()
        try:
            await self._store.insert(
                EVENTS_TABLE,
                {
                    "event_type": payload["type"],
                    "entity_type": payload["entity_type"],
                    "entity_id": payload["entity_id"],
                    "properties": event.model_dump(mode="json")["properties"],
                    "user_id": payload["user_id"],
                    "workspace_id": payload["workspace_id"],
                    "session_id": self._session_id,
                },
            )
        except Exception as exc:
            raise TrackingFailureError(
                f"Failed to track '{event.type}' event"
            ) from exc
