from uuid import uuid4

from sqlalchemy import Column, DateTime, String, Uuid
from sqlalchemy.sql import func

from app.models.base import Base, JSONType


class AnalyticsEvent(Base):
    """Append-only analytics record; written by ``EventTracker`` only."""

    __tablename__ = "analytics_events"
    id = Column(Uuid, primary_key=True, default=uuid4)
    workspace_id = Column(Uuid, index=True)
    event_type = Column(String(100), nullable=False)
    entity_type = Column(String(50))
    entity_id = Column(Uuid)
    properties = Column(JSONType)
    user_id = Column(Uuid)
    session_id = Column(String(100))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
