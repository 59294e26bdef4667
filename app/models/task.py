from uuid import uuid4

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Numeric,
    String,
    Text,
    Uuid,
)
from sqlalchemy.sql import func

from app.core.constants import TASK_PRIORITIES, TASK_STATUSES, check_clause
from app.models.base import Base


class Task(Base):
    __tablename__ = "tasks"
    id = Column(Uuid, primary_key=True, default=uuid4)
    workspace_id = Column(Uuid, nullable=False)
    project_id = Column(Uuid, ForeignKey("projects.id", ondelete="CASCADE"))
    title = Column(String(255), nullable=False)
    description = Column(Text)
    status = Column(String(20), nullable=False, server_default="todo")
    priority = Column(String(20), nullable=False, server_default="medium")
    due_date = Column(DateTime(timezone=True))
    estimated_hours = Column(Numeric(8, 2))
    actual_hours = Column(Numeric(8, 2))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        Index("idx_tasks_workspace_project", "workspace_id", "project_id"),
        CheckConstraint(check_clause("status", TASK_STATUSES), name="ck_task_status"),
        CheckConstraint(
            check_clause("priority", TASK_PRIORITIES), name="ck_task_priority"
        ),
    )
