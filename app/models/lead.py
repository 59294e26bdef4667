from uuid import uuid4

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    Uuid,
)
from sqlalchemy.sql import func

from app.core.constants import LEAD_STATUSES, check_clause
from app.models.base import Base, JSONType


class Lead(Base):
    """Prospective client tracked through the sales pipeline.

    Status is driven from the pipeline board and is never changed by the
    scoring engine.  ``ai_score`` and ``ai_insights`` are the engine's
    cached annotation of the last analysis (advisory, last writer wins).
    """

    __tablename__ = "leads"
    id = Column(Uuid, primary_key=True, default=uuid4)
    workspace_id = Column(Uuid, nullable=False)
    name = Column(String(200), nullable=False)
    email = Column(String(255), nullable=False)
    phone = Column(String(50))
    company = Column(String(200))
    source = Column(String(50), nullable=False, server_default="Other")
    status = Column(String(20), nullable=False, server_default="new")
    expected_value = Column(Numeric(15, 2))
    notes = Column(Text)
    ai_score = Column(Integer)
    ai_insights = Column(JSONType)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        # Cohort lookups filter by workspace and closed status
        Index("idx_leads_workspace_status", "workspace_id", "status"),
        CheckConstraint(check_clause("status", LEAD_STATUSES), name="ck_lead_status"),
        CheckConstraint(
            "expected_value IS NULL OR expected_value >= 0",
            name="ck_lead_expected_value",
        ),
        CheckConstraint(
            "ai_score IS NULL OR ai_score BETWEEN 0 AND 100",
            name="ck_lead_ai_score_range",
        ),
    )
