from uuid import uuid4

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Numeric,
    String,
    Text,
    Uuid,
)
from sqlalchemy.sql import func

from app.core.constants import PROJECT_STATUSES, check_clause
from app.models.base import Base


class Project(Base):
    """Client engagement whose tasks and invoices feed the risk forecast."""

    __tablename__ = "projects"
    id = Column(Uuid, primary_key=True, default=uuid4)
    workspace_id = Column(Uuid, nullable=False, index=True)
    client_id = Column(Uuid, ForeignKey("clients.id", ondelete="SET NULL"))
    name = Column(String(200), nullable=False)
    description = Column(Text)
    status = Column(String(20), nullable=False, server_default="planning")
    budget = Column(Numeric(15, 2))
    start_date = Column(DateTime(timezone=True))
    end_date = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        CheckConstraint(
            check_clause("status", PROJECT_STATUSES), name="ck_project_status"
        ),
        CheckConstraint("budget IS NULL OR budget >= 0", name="ck_project_budget"),
        CheckConstraint(
            "start_date IS NULL OR end_date IS NULL OR start_date <= end_date",
            name="ck_project_dates",
        ),
    )
