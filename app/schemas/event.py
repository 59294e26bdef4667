from typing import Any, Dict, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class AnalyticsEventCreate(BaseModel):
    """A structured analytics event, e.g. ``lead_ai_analysis``."""

    type: str = Field(..., min_length=1, max_length=100)
    entity_type: Optional[str] = Field(None, max_length=50)
    entity_id: Optional[UUID] = None
    properties: Dict[str, Any] = Field(default_factory=dict)
    user_id: Optional[UUID] = None
    workspace_id: Optional[UUID] = None
