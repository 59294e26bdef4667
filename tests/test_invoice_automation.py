from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from app.core.exceptions import ProjectNotFoundError
from app.schemas.common import FollowUpChannel
from app.schemas.invoice import InvoiceRecord, PaymentTerms, WorkPeriod
from app.schemas.project import ProjectRecord, TaskRecord
from app.services.invoice_automation import InvoiceAutomationService

START = datetime(2026, 5, 1, tzinfo=timezone.utc)
END = datetime(2026, 5, 31, 23, 59, tzinfo=timezone.utc)
PERIOD = WorkPeriod(start=START, end=END)


def _paid(days_late: float) -> InvoiceRecord:
    due = START
    return InvoiceRecord(
        status="paid", due_date=due, paid_at=due + timedelta(days=days_late)
    )


@pytest.fixture
def service(store) -> InvoiceAutomationService:
    return InvoiceAutomationService(store=store)


class TestCompletedInPeriod:
    def test_bounds_are_inclusive(self, service):
        tasks = [
            {"title": "on start", "status": "done", "created_at": START},
            {"title": "on end", "status": "done", "created_at": END},
            {"title": "before", "status": "done", "created_at": START - timedelta(seconds=1)},
            {"title": "after", "status": "done", "created_at": END + timedelta(seconds=1)},
            {"title": "open", "status": "review", "created_at": START + timedelta(days=3)},
            {"title": "undated", "status": "done"},
        ]

        completed = service.completed_in_period(tasks, PERIOD)

        assert [t.title for t in completed] == ["on start", "on end"]

    def test_naive_created_at_is_utc(self, service):
        tasks = [{"status": "done", "created_at": "2026-05-10T09:00:00"}]
        assert len(service.completed_in_period(tasks, PERIOD)) == 1


class TestLineItems:
    """Development-work, milestone and expense lines."""

    def test_rate_spreads_budget_over_hours(self, service):
        project = ProjectRecord(name="Portal", budget=12000.0)
        completed = [TaskRecord(status="done", actual_hours=30), TaskRecord(status="done", actual_hours=10)]

        items = service.line_items(completed, project)

        assert len(items) == 1
        item = items[0]
        assert item.description == "Portal - Development Work"
        assert item.quantity == 40
        assert item.rate == 300.0
        assert item.amount == 12000.0

    def test_tasks_without_hours_count_eight(self, service):
        project = ProjectRecord(name="Portal", budget=None)
        completed = [TaskRecord(status="done"), TaskRecord(status="done", actual_hours=4)]

        item = service.line_items(completed, project)[0]

        assert item.quantity == 12
        assert item.rate == 150.0
        assert item.amount == 1800.0

    def test_milestone_share_of_budget(self, service):
        project = ProjectRecord(name="Portal", budget=20000.0)

        items = service.line_items([], project)

        assert [(i.description, i.quantity, i.amount) for i in items] == [
            ("Portal - Milestone Payment", 1, 6000.0)
        ]

    def test_milestone_default_without_budget(self, service):
        items = service.line_items([], ProjectRecord(name="Portal"))
        assert items[0].amount == 5000.0

    def test_expenses_line(self, service):
        items = service.line_items([], ProjectRecord(name="Portal"), include_expenses=True)
        assert items[-1].description == "Project Expenses"
        assert items[-1].amount == 500.0


class TestPaymentTerms:
    """Due window and discount from past payment behaviour."""

    def test_no_history_defaults(self, service):
        terms = service.payment_terms([])
        assert terms.due_days == 35
        assert terms.early_payment_discount == 0.0
        assert terms.late_fee_percentage == 1.5

    def test_unpaid_invoices_ignored(self, service):
        history = [InvoiceRecord(status="sent", due_date=START)]
        assert service.average_payment_days(history) == 30

    def test_early_payment_counts_as_zero(self, service):
        history = [_paid(-5), _paid(-2)]
        assert service.average_payment_days(history) == 0
        assert service.payment_terms(history).due_days == 15

    def test_average_rounds_up(self, service):
        history = [_paid(3), _paid(4)]
        assert service.average_payment_days(history) == 4
        assert service.payment_terms(history).due_days == 15

    def test_mid_range(self, service):
        history = [_paid(20), _paid(24)]
        assert service.payment_terms(history).due_days == 27

    def test_slow_payers_clamped_and_offered_discount(self, service):
        history = [_paid(200), _paid(200)]
        terms = service.payment_terms(history)
        assert terms.due_days == 45
        assert terms.early_payment_discount == 2.0

    def test_discount_threshold(self, service):
        assert service.payment_terms([_paid(30)]).early_payment_discount == 0.0
        assert service.payment_terms([_paid(31)]).early_payment_discount == 2.0


class TestFollowUpSequence:
    def test_days_relative_to_due(self, service):
        terms = PaymentTerms(due_days=35, early_payment_discount=0.0, late_fee_percentage=1.5)

        steps = service.follow_up_sequence(terms)

        assert [(s.day, s.type) for s in steps] == [
            (32, FollowUpChannel.email),
            (36, FollowUpChannel.email),
            (42, FollowUpChannel.call),
            (49, FollowUpChannel.email),
        ]


class TestAutomate:
    """Record-store driven invoice suggestions."""

    @pytest.fixture
    def project(self, store, workspace_id) -> dict:
        return store.add(
            "projects", workspace_id=workspace_id, name="Portal", budget=9000.0, status="active"
        )

    @pytest.mark.asyncio
    async def test_full_suggestion(self, store, tracker, workspace_id, project):
        client_id = uuid4()
        for hours in (10, 20):
            store.add(
                "tasks",
                workspace_id=workspace_id,
                project_id=project["id"],
                title="Build",
                status="done",
                actual_hours=hours,
                created_at=START + timedelta(days=2),
            )
        store.add(
            "invoices",
            workspace_id=workspace_id,
            client_id=client_id,
            status="paid",
            due_date=START,
            paid_at=START + timedelta(days=40),
        )
        service = InvoiceAutomationService(store=store, tracker=tracker)

        result = await service.automate(
            project["id"], client_id, workspace_id, PERIOD, include_expenses=True
        )

        assert [i.description for i in result.suggested_items] == [
            "Portal - Development Work",
            "Project Expenses",
        ]
        assert result.suggested_items[0].rate == 300.0
        assert result.payment_terms.due_days == 45
        assert result.payment_terms.early_payment_discount == 2.0
        assert len(result.automation_rules) == 3
        assert result.follow_up_sequence[0].day == 42

        event = store.tables["analytics_events"][0]
        assert event["event_type"] == "invoice_automation"
        assert event["properties"] == {
            "client_id": str(client_id),
            "completed_tasks": 2,
            "due_days": 45,
        }

    @pytest.mark.asyncio
    async def test_history_from_other_workspace_ignored(
        self, store, service, workspace_id, other_workspace_id, project
    ):
        client_id = uuid4()
        store.add(
            "invoices",
            workspace_id=other_workspace_id,
            client_id=client_id,
            status="paid",
            due_date=START,
            paid_at=START + timedelta(days=90),
        )

        result = await service.automate(project["id"], client_id, workspace_id, PERIOD)

        assert result.payment_terms.due_days == 35

    @pytest.mark.asyncio
    async def test_history_failure_uses_default_terms(
        self, store, workspace_id, project
    ):
        original = store.get_by_filter

        async def flaky(table, filters, **kwargs):
            if table == "invoices":
                raise ConnectionError("db gone")
            return await original(table, filters, **kwargs)

        store.get_by_filter = AsyncMock(side_effect=flaky)
        service = InvoiceAutomationService(store=store)

        result = await service.automate(project["id"], uuid4(), workspace_id, PERIOD)

        assert result.payment_terms.due_days == 35
        assert result.suggested_items[0].description == "Portal - Milestone Payment"
        assert result.suggested_items[0].amount == 2700.0

    @pytest.mark.asyncio
    async def test_missing_project(self, service, workspace_id):
        with pytest.raises(ProjectNotFoundError):
            await service.automate(uuid4(), uuid4(), workspace_id, PERIOD)


class TestWorkPeriod:
    def test_start_after_end_rejected(self):
        with pytest.raises(ValueError):
            WorkPeriod(start=END, end=START)


class TestDraftInvoiceContent:
    def test_with_project_and_work(self):
        draft = InvoiceAutomationService.draft_invoice_content(
            "Acme",
            project_name="Portal",
            work_completed=["Design", "Build", "Launch"],
            hours_worked=10,
            hourly_rate=100,
        )

        assert draft.title == "Invoice for Portal - Acme"
        assert draft.description == "Work completed:\n• Design\n• Build\n• Launch"
        assert draft.suggested_amount == 1000.0
        assert [i.amount for i in draft.line_items] == [333.33, 333.33, 333.33]

    def test_defaults(self):
        draft = InvoiceAutomationService.draft_invoice_content("Acme")

        assert draft.title == "Professional Services - Acme"
        assert draft.description == "Professional services rendered as per agreement"
        assert draft.suggested_amount == 5000.0
        assert draft.line_items == []

    def test_rate_without_hours_uses_default_amount(self):
        draft = InvoiceAutomationService.draft_invoice_content("Acme", hourly_rate=200)
        assert draft.suggested_amount == 5000.0
