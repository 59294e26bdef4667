"""initial CRM insights schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects.postgresql import JSONB

from app.core.constants import (
    AB_TEST_STATUSES,
    INVOICE_STATUSES,
    LEAD_STATUSES,
    PROJECT_STATUSES,
    TASK_PRIORITIES,
    TASK_STATUSES,
    check_clause,
)

# revision identifiers, used by Alembic.
revision: str = "0001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

JSON_TYPE = sa.JSON().with_variant(JSONB(), "postgresql")


def _timestamps(with_updated: bool = True) -> list:
    columns = [
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now()
        )
    ]
    if with_updated:
        columns.append(
            sa.Column(
                "updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()
            )
        )
    return columns


def upgrade() -> None:
    op.create_table(
        "clients",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("workspace_id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(50)),
        sa.Column("company", sa.String(200)),
        sa.Column("status", sa.String(20), nullable=False, server_default="active"),
        *_timestamps(),
        sa.CheckConstraint("status IN ('active', 'inactive')", name="ck_client_status"),
    )
    op.create_index("ix_clients_workspace_id", "clients", ["workspace_id"])

    op.create_table(
        "leads",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("workspace_id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(50)),
        sa.Column("company", sa.String(200)),
        sa.Column("source", sa.String(50), nullable=False, server_default="Other"),
        sa.Column("status", sa.String(20), nullable=False, server_default="new"),
        sa.Column("expected_value", sa.Numeric(15, 2)),
        sa.Column("notes", sa.Text()),
        sa.Column("ai_score", sa.Integer()),
        sa.Column("ai_insights", JSON_TYPE),
        *_timestamps(),
        sa.CheckConstraint(check_clause("status", LEAD_STATUSES), name="ck_lead_status"),
        sa.CheckConstraint(
            "expected_value IS NULL OR expected_value >= 0",
            name="ck_lead_expected_value",
        ),
        sa.CheckConstraint(
            "ai_score IS NULL OR ai_score BETWEEN 0 AND 100",
            name="ck_lead_ai_score_range",
        ),
    )
    # Cohort lookups filter by workspace and closed status
    op.create_index("idx_leads_workspace_status", "leads", ["workspace_id", "status"])

    op.create_table(
        "projects",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("workspace_id", sa.Uuid(), nullable=False),
        sa.Column(
            "client_id", sa.Uuid(), sa.ForeignKey("clients.id", ondelete="SET NULL")
        ),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("status", sa.String(20), nullable=False, server_default="planning"),
        sa.Column("budget", sa.Numeric(15, 2)),
        sa.Column("start_date", sa.DateTime(timezone=True)),
        sa.Column("end_date", sa.DateTime(timezone=True)),
        *_timestamps(),
        sa.CheckConstraint(
            check_clause("status", PROJECT_STATUSES), name="ck_project_status"
        ),
        sa.CheckConstraint("budget IS NULL OR budget >= 0", name="ck_project_budget"),
        sa.CheckConstraint(
            "start_date IS NULL OR end_date IS NULL OR start_date <= end_date",
            name="ck_project_dates",
        ),
    )
    op.create_index("ix_projects_workspace_id", "projects", ["workspace_id"])

    op.create_table(
        "tasks",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("workspace_id", sa.Uuid(), nullable=False),
        sa.Column(
            "project_id", sa.Uuid(), sa.ForeignKey("projects.id", ondelete="CASCADE")
        ),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("status", sa.String(20), nullable=False, server_default="todo"),
        sa.Column("priority", sa.String(20), nullable=False, server_default="medium"),
        sa.Column("due_date", sa.DateTime(timezone=True)),
        sa.Column("estimated_hours", sa.Numeric(8, 2)),
        sa.Column("actual_hours", sa.Numeric(8, 2)),
        *_timestamps(),
        sa.CheckConstraint(check_clause("status", TASK_STATUSES), name="ck_task_status"),
        sa.CheckConstraint(
            check_clause("priority", TASK_PRIORITIES), name="ck_task_priority"
        ),
    )
    op.create_index(
        "idx_tasks_workspace_project", "tasks", ["workspace_id", "project_id"]
    )

    op.create_table(
        "invoices",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("workspace_id", sa.Uuid(), nullable=False),
        sa.Column(
            "client_id",
            sa.Uuid(),
            sa.ForeignKey("clients.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "project_id", sa.Uuid(), sa.ForeignKey("projects.id", ondelete="SET NULL")
        ),
        sa.Column("invoice_number", sa.String(50)),
        sa.Column("total_amount", sa.Numeric(15, 2), nullable=False, server_default="0"),
        sa.Column("status", sa.String(20), nullable=False, server_default="draft"),
        sa.Column("due_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("paid_at", sa.DateTime(timezone=True)),
        *_timestamps(with_updated=False),
        sa.CheckConstraint(
            check_clause("status", INVOICE_STATUSES), name="ck_invoice_status"
        ),
        sa.CheckConstraint(
            "(status = 'paid') = (paid_at IS NOT NULL)", name="ck_invoice_paid_at"
        ),
    )
    op.create_index(
        "idx_invoices_workspace_client", "invoices", ["workspace_id", "client_id"]
    )
    op.create_index(
        "idx_invoices_workspace_project", "invoices", ["workspace_id", "project_id"]
    )

    op.create_table(
        "proposal_templates",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("workspace_id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("category", sa.String(100)),
        sa.Column("usage_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("conversion_rate", sa.Numeric(5, 4)),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(with_updated=False),
        sa.CheckConstraint("usage_count >= 0", name="ck_template_usage_count"),
        sa.CheckConstraint(
            "conversion_rate IS NULL OR conversion_rate BETWEEN 0 AND 1",
            name="ck_template_conversion_rate",
        ),
    )
    op.create_index(
        "ix_proposal_templates_workspace_id", "proposal_templates", ["workspace_id"]
    )

    op.create_table(
        "proposal_ab_tests",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("workspace_id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column(
            "template_a_id",
            sa.Uuid(),
            sa.ForeignKey("proposal_templates.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "template_b_id",
            sa.Uuid(),
            sa.ForeignKey("proposal_templates.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("traffic_split", sa.Numeric(3, 2), nullable=False, server_default="0.5"),
        sa.Column("status", sa.String(20), nullable=False, server_default="active"),
        sa.Column("results", JSON_TYPE),
        sa.Column("start_date", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("end_date", sa.DateTime(timezone=True)),
        *_timestamps(with_updated=False),
        sa.CheckConstraint(
            check_clause("status", AB_TEST_STATUSES), name="ck_ab_test_status"
        ),
        sa.CheckConstraint(
            "traffic_split BETWEEN 0 AND 1", name="ck_ab_test_traffic_split"
        ),
    )
    op.create_index(
        "ix_proposal_ab_tests_workspace_id", "proposal_ab_tests", ["workspace_id"]
    )

    op.create_table(
        "analytics_events",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("workspace_id", sa.Uuid()),
        sa.Column("event_type", sa.String(100), nullable=False),
        sa.Column("entity_type", sa.String(50)),
        sa.Column("entity_id", sa.Uuid()),
        sa.Column("properties", JSON_TYPE),
        sa.Column("user_id", sa.Uuid()),
        sa.Column("session_id", sa.String(100)),
        *_timestamps(with_updated=False),
    )
    op.create_index(
        "ix_analytics_events_workspace_id", "analytics_events", ["workspace_id"]
    )


def downgrade() -> None:
    op.drop_table("analytics_events")
    op.drop_table("proposal_ab_tests")
    op.drop_table("proposal_templates")
    op.drop_table("invoices")
    op.drop_table("tasks")
    op.drop_table("projects")
    op.drop_table("leads")
    op.drop_table("clients")
