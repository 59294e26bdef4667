import logging
import math
from typing import Any, List, Mapping, Optional, Sequence, Union
from uuid import UUID

from app.core.config import settings
from app.core.constants import (
    DEFAULT_INVOICE_AMOUNT,
    DEFAULT_INVOICE_HOURLY_RATE,
    DEFAULT_MILESTONE_AMOUNT,
    DEFAULT_PAYMENT_DAYS,
    DEFAULT_TASK_HOURS,
    EARLY_PAYMENT_DISCOUNT,
    LATE_FEE_PERCENTAGE,
    MAX_DUE_DAYS,
    MILESTONE_BUDGET_SHARE,
    MIN_DUE_DAYS,
    PAYMENT_DAYS_BUFFER,
    PROJECT_EXPENSES_AMOUNT,
)
from app.core.exceptions import DegradedInputError, ProjectNotFoundError
from app.repositories.record_store import RecordStore
from app.schemas.common import FollowUpChannel, TaskStatus
from app.schemas.event import AnalyticsEventCreate
from app.schemas.invoice import (
    AutomationRule,
    FollowUpStep,
    InvoiceAutomation,
    InvoiceDraft,
    InvoiceLineItem,
    InvoiceRecord,
    PaymentTerms,
    WorkPeriod,
)
from app.schemas.project import ProjectRecord, TaskRecord
from app.services.event_tracker import EventTracker

logger = logging.getLogger(__name__)

PROJECTS_TABLE = "projects"
TASKS_TABLE = "tasks"
INVOICES_TABLE = "invoices"

_SECONDS_PER_DAY = 86400

_AUTOMATION_RULES = (
    AutomationRule(
        trigger="Task completion milestone reached",
        action="Generate invoice automatically",
        timing="Immediately",
    ),
    AutomationRule(
        trigger="Invoice due date approaching",
        action="Send payment reminder email",
        timing="3 days before due date",
    ),
    AutomationRule(
        trigger="Payment overdue",
        action="Send follow-up email and apply late fee",
        timing="1 day after due date",
    ),
)


class InvoiceAutomationService:
    """Suggest invoice lines, payment terms and a collection schedule.

    Payment terms adapt to the client's history: the slower a client has
    paid in the past, the longer the due window (within 15–45 days) and
    the more worthwhile an early-payment discount.
    """

    def __init__(
        self,
        store: RecordStore,
        tracker: Optional[EventTracker] = None,
        history_limit: int = settings.PAYMENT_HISTORY_LIMIT,
    ) -> None:
        self._store = store
        self._tracker: EventTracker = tracker or EventTracker()
        self._history_limit = history_limit

    async def automate(
        self,
        project_id: UUID,
        client_id: UUID,
        workspace_id: UUID,
        work_period: WorkPeriod,
        include_expenses: bool = False,
    ) -> InvoiceAutomation:
        """Build invoice suggestions for a project's billing period.

        Raises:
            ProjectNotFoundError: If the project is absent from the workspace.
        """
        record = await self._store.get_by_id(
            PROJECTS_TABLE, project_id, workspace_id=workspace_id
        )
        if record is None:
            raise ProjectNotFoundError(f"Project {project_id} not found")
        project = ProjectRecord.model_validate(record)

        tasks = await self._store.get_by_filter(
            TASKS_TABLE, {"project_id": project_id, "workspace_id": workspace_id}
        )
        completed = self.completed_in_period(tasks or [], work_period)
        history = await self._payment_history(client_id, workspace_id)

        terms = self.payment_terms(history)
        result = InvoiceAutomation(
            suggested_items=self.line_items(completed, project, include_expenses),
            payment_terms=terms,
            automation_rules=[r.model_copy() for r in _AUTOMATION_RULES],
            follow_up_sequence=self.follow_up_sequence(terms),
        )

        await self._tracker.track(
            AnalyticsEventCreate(
                type="invoice_automation",
                entity_type="project",
                entity_id=project_id,
                workspace_id=workspace_id,
                properties={
                    "client_id": str(client_id),
                    "completed_tasks": len(completed),
                    "due_days": terms.due_days,
                },
            )
        )
        return result

    # ------------------------------------------------------------------
    # Pure helpers
    # ------------------------------------------------------------------

    @staticmethod
    def completed_in_period(
        tasks: Sequence[Union[TaskRecord, Mapping[str, Any]]],
        work_period: WorkPeriod,
    ) -> List[TaskRecord]:
        """Done tasks created inside the (inclusive) work period."""
        completed = []
        for task in tasks:
            if not isinstance(task, TaskRecord):
                task = TaskRecord.model_validate(task)
            if task.status != TaskStatus.done or task.created_at is None:
                continue
            if work_period.start <= task.created_at <= work_period.end:
                completed.append(task)
        return completed

    @staticmethod
    def line_items(
        completed: Sequence[TaskRecord],
        project: ProjectRecord,
        include_expenses: bool = False,
    ) -> List[InvoiceLineItem]:
        items: List[InvoiceLineItem] = []
        if completed:
            total_hours = sum(t.actual_hours or DEFAULT_TASK_HOURS for t in completed)
            rate = DEFAULT_INVOICE_HOURLY_RATE
            if project.budget and total_hours > 0:
                rate = project.budget / total_hours
            items.append(
                InvoiceLineItem(
                    description=f"{project.name} - Development Work",
                    quantity=total_hours,
                    rate=round(rate, 2),
                    amount=round(total_hours * rate, 2),
                )
            )
        else:
            amount = DEFAULT_MILESTONE_AMOUNT
            if project.budget:
                amount = project.budget * MILESTONE_BUDGET_SHARE
            items.append(
                InvoiceLineItem(
                    description=f"{project.name} - Milestone Payment",
                    quantity=1,
                    rate=round(amount, 2),
                    amount=round(amount, 2),
                )
            )

        if include_expenses:
            items.append(
                InvoiceLineItem(
                    description="Project Expenses",
                    quantity=1,
                    rate=PROJECT_EXPENSES_AMOUNT,
                    amount=PROJECT_EXPENSES_AMOUNT,
                )
            )
        return items

    @staticmethod
    def average_payment_days(history: Sequence[InvoiceRecord]) -> int:
        """Mean days paid past due over paid invoices, rounded up.

        Early payments count as zero days.  Without any paid invoice the
        default payment window is returned.
        """
        paid = [i for i in history if i.paid_at is not None and i.due_date is not None]
        if not paid:
            return DEFAULT_PAYMENT_DAYS
        total_days = sum(
            max(0.0, (i.paid_at - i.due_date).total_seconds() / _SECONDS_PER_DAY)
            for i in paid
        )
        return math.ceil(total_days / len(paid))

    @classmethod
    def payment_terms(cls, history: Sequence[InvoiceRecord]) -> PaymentTerms:
        avg_days = cls.average_payment_days(history)
        return PaymentTerms(
            due_days=max(MIN_DUE_DAYS, min(MAX_DUE_DAYS, avg_days + PAYMENT_DAYS_BUFFER)),
            early_payment_discount=(
                EARLY_PAYMENT_DISCOUNT if avg_days > DEFAULT_PAYMENT_DAYS else 0.0
            ),
            late_fee_percentage=LATE_FEE_PERCENTAGE,
        )

    @staticmethod
    def follow_up_sequence(terms: PaymentTerms) -> List[FollowUpStep]:
        due = terms.due_days
        return [
            FollowUpStep(day=due - 3, type=FollowUpChannel.email, template="Friendly payment reminder"),
            FollowUpStep(day=due + 1, type=FollowUpChannel.email, template="Payment overdue notice"),
            FollowUpStep(day=due + 7, type=FollowUpChannel.call, template="Personal follow-up call"),
            FollowUpStep(day=due + 14, type=FollowUpChannel.email, template="Final notice before collections"),
        ]

    # ------------------------------------------------------------------
    # Drafting
    # ------------------------------------------------------------------

    @staticmethod
    def draft_invoice_content(
        client_name: str,
        project_name: Optional[str] = None,
        work_completed: Sequence[str] = (),
        hours_worked: Optional[float] = None,
        hourly_rate: Optional[float] = None,
    ) -> InvoiceDraft:
        if project_name:
            title = f"Invoice for {project_name} - {client_name}"
        else:
            title = f"Professional Services - {client_name}"

        if work_completed:
            description = "Work completed:\n" + "\n".join(
                f"• {item}" for item in work_completed
            )
        else:
            description = "Professional services rendered as per agreement"

        amount = DEFAULT_INVOICE_AMOUNT
        if hours_worked and hourly_rate:
            amount = hours_worked * hourly_rate

        share = round(amount / len(work_completed), 2) if work_completed else 0.0
        return InvoiceDraft(
            title=title,
            description=description,
            suggested_amount=round(amount, 2),
            line_items=[
                InvoiceLineItem(description=item, quantity=1, rate=share, amount=share)
                for item in work_completed
            ],
        )

    # ------------------------------------------------------------------
    # Inputs
    # ------------------------------------------------------------------

    async def _payment_history(
        self, client_id: UUID, workspace_id: UUID
    ) -> List[InvoiceRecord]:
        """Return the client's most recent invoices.

        A failed fetch degrades to no history, i.e. the default terms.
        """
        try:
            return await self._fetch_history(client_id, workspace_id)
        except DegradedInputError as exc:
            logger.warning("%s; using default payment terms", exc.detail)
            return []

    async def _fetch_history(
        self, client_id: UUID, workspace_id: UUID
    ) -> List[InvoiceRecord]:
        try:
            rows = await self._store.get_by_filter(
                INVOICES_TABLE,
                {"client_id": client_id, "workspace_id": workspace_id},
                limit=self._history_limit,
                order_by="due_date",
                descending=True,
            )
            return [InvoiceRecord.model_validate(row) for row in rows]
        except Exception as exc:
            raise DegradedInputError(
                f"Payment history unavailable for client {client_id}"
            ) from exc
