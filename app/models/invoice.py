from uuid import uuid4

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Numeric,
    String,
    Uuid,
)
from sqlalchemy.sql import func

from app.core.constants import INVOICE_STATUSES, check_clause
from app.models.base import Base


class Invoice(Base):
    """Invoice issued to a client, optionally tied to a project.

    ``paid_at`` is set exactly when the status is ``paid``; a CHECK
    constraint keeps the two in step.
    """

    __tablename__ = "invoices"
    id = Column(Uuid, primary_key=True, default=uuid4)
    workspace_id = Column(Uuid, nullable=False)
    client_id = Column(
        Uuid, ForeignKey("clients.id", ondelete="CASCADE"), nullable=False
    )
    project_id = Column(Uuid, ForeignKey("projects.id", ondelete="SET NULL"))
    invoice_number = Column(String(50))
    total_amount = Column(Numeric(15, 2), nullable=False, server_default="0")
    status = Column(String(20), nullable=False, server_default="draft")
    due_date = Column(DateTime(timezone=True), nullable=False)
    paid_at = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        Index("idx_invoices_workspace_client", "workspace_id", "client_id"),
        Index("idx_invoices_workspace_project", "workspace_id", "project_id"),
        CheckConstraint(
            check_clause("status", INVOICE_STATUSES), name="ck_invoice_status"
        ),
        CheckConstraint(
            "(status = 'paid') = (paid_at IS NOT NULL)", name="ck_invoice_paid_at"
        ),
    )
