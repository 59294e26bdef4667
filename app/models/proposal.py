from uuid import uuid4

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Uuid,
    true,
)
from sqlalchemy.sql import func

from app.core.constants import AB_TEST_STATUSES, check_clause
from app.models.base import Base, JSONType


class ProposalTemplate(Base):
    __tablename__ = "proposal_templates"
    id = Column(Uuid, primary_key=True, default=uuid4)
    workspace_id = Column(Uuid, nullable=False, index=True)
    name = Column(String(200), nullable=False)
    category = Column(String(100))
    usage_count = Column(Integer, nullable=False, server_default="0")
    conversion_rate = Column(Numeric(5, 4))
    is_active = Column(Boolean, nullable=False, server_default=true())
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        CheckConstraint("usage_count >= 0", name="ck_template_usage_count"),
        CheckConstraint(
            "conversion_rate IS NULL OR conversion_rate BETWEEN 0 AND 1",
            name="ck_template_conversion_rate",
        ),
    )


class ProposalABTest(Base):
    """Controlled comparison of two templates.

    ``results`` holds per-template ``{views, conversions,
    conversion_rate}`` plus ``statistical_significance`` and ``winner``.
    """

    __tablename__ = "proposal_ab_tests"
    id = Column(Uuid, primary_key=True, default=uuid4)
    workspace_id = Column(Uuid, nullable=False, index=True)
    name = Column(String(200), nullable=False)
    template_a_id = Column(
        Uuid, ForeignKey("proposal_templates.id", ondelete="CASCADE"), nullable=False
    )
    template_b_id = Column(
        Uuid, ForeignKey("proposal_templates.id", ondelete="CASCADE"), nullable=False
    )
    traffic_split = Column(Numeric(3, 2), nullable=False, server_default="0.5")
    status = Column(String(20), nullable=False, server_default="active")
    results = Column(JSONType)
    start_date = Column(DateTime(timezone=True), server_default=func.now())
    end_date = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        CheckConstraint(
            check_clause("status", AB_TEST_STATUSES), name="ck_ab_test_status"
        ),
        CheckConstraint(
            "traffic_split BETWEEN 0 AND 1", name="ck_ab_test_traffic_split"
        ),
    )
