from uuid import UUID

from fastapi import APIRouter, Depends

from app.api.deps import get_event_tracker, get_workspace_id
from app.schemas.common import SuccessResponse
from app.schemas.event import AnalyticsEventCreate
from app.services.event_tracker import EventTracker

router = APIRouter(prefix="/events", tags=["Events"])


@router.post("", response_model=SuccessResponse, status_code=202)
async def track_event(
    event: AnalyticsEventCreate,
    workspace_id: UUID = Depends(get_workspace_id),
    tracker: EventTracker = Depends(get_event_tracker),
) -> SuccessResponse:
    """Record a client-side analytics event.

    Accepted even when storage fails: tracking never surfaces errors.
    """
    await tracker.track(event.model_copy(update={"workspace_id": workspace_id}))
    return SuccessResponse()
