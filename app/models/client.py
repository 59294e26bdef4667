from uuid import uuid4

from sqlalchemy import CheckConstraint, Column, DateTime, String, Uuid
from sqlalchemy.sql import func

from app.models.base import Base


class Client(Base):
    __tablename__ = "clients"
    id = Column(Uuid, primary_key=True, default=uuid4)
    workspace_id = Column(Uuid, nullable=False, index=True)
    name = Column(String(200), nullable=False)
    email = Column(String(255), nullable=False)
    phone = Column(String(50))
    company = Column(String(200))
    status = Column(String(20), nullable=False, server_default="active")
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        CheckConstraint("status IN ('active', 'inactive')", name="ck_client_status"),
    )
