import logging
from datetime import datetime, timedelta
from typing import Any, List, Mapping, Optional, Sequence, Union
from uuid import UUID

from app.core.config import settings
from app.core.constants import (
    DEFAULT_HOURLY_RATE,
    RISK_LEVEL_HIGH,
    RISK_LEVEL_MEDIUM,
    SCHEDULE_BEHIND_COMPLETION,
    SCHEDULE_BEHIND_ELAPSED_FRACTION,
    URGENT_TASK_RATIO,
)
from app.core.dates import ensure_utc, utcnow
from app.core.exceptions import ProjectNotFoundError
from app.repositories.record_store import RecordStore
from app.schemas.common import (
    InvoiceStatus,
    RiskLevel,
    Severity,
    TaskPriority,
    TaskStatus,
)
from app.schemas.event import AnalyticsEventCreate
from app.schemas.invoice import InvoiceRecord
from app.schemas.project import (
    BudgetForecast,
    ProjectRecord,
    ResourceOptimization,
    RiskAnalysis,
    RiskFactor,
    TaskRecord,
)
from app.services.event_tracker import EventTracker

logger = logging.getLogger(__name__)

PROJECTS_TABLE = "projects"
TASKS_TABLE = "tasks"
INVOICES_TABLE = "invoices"


def _overdue_severity(count: int) -> Severity:
    if count > 5:
        return Severity.critical
    if count > 2:
        return Severity.high
    return Severity.medium


def risk_level_for(score: int) -> RiskLevel:
    if score >= RISK_LEVEL_HIGH:
        return RiskLevel.high
    if score >= RISK_LEVEL_MEDIUM:
        return RiskLevel.medium
    return RiskLevel.low


class ProjectRiskAnalyzer:
    """Completion, schedule risk and budget outlook for a project.

    ``analyze`` is pure: it works on already-fetched records and an
    explicit *now*.  ``analyze_project`` fetches the project with its
    tasks and invoices from the record store first.
    """

    def __init__(
        self,
        store: RecordStore,
        tracker: Optional[EventTracker] = None,
        paid_invoices_only: bool = settings.BUDGET_FORECAST_PAID_ONLY,
    ) -> None:
        self._store = store
        self._tracker: EventTracker = tracker or EventTracker()
        self._paid_invoices_only = paid_invoices_only

    async def analyze_project(
        self,
        project_id: UUID,
        workspace_id: UUID,
        now: Optional[datetime] = None,
    ) -> RiskAnalysis:
        """Fetch a project with its tasks and invoices and analyse it.

        Raises:
            ProjectNotFoundError: If the project is absent from the workspace.
        """
        record = await self._store.get_by_id(
            PROJECTS_TABLE, project_id, workspace_id=workspace_id
        )
        if record is None:
            raise ProjectNotFoundError(f"Project {project_id} not found")

        related = {"project_id": project_id, "workspace_id": workspace_id}
        tasks = await self._store.get_by_filter(TASKS_TABLE, related)
        invoices = await self._store.get_by_filter(INVOICES_TABLE, related)

        analysis = self.analyze(record, tasks or [], invoices or [], now=now)
        logger.info(
            "Project %s risk score %d (%s)",
            project_id,
            analysis.risk_score,
            analysis.risk_level.value,
        )

        await self._tracker.track(
            AnalyticsEventCreate(
                type="project_risk_analysis",
                entity_type="project",
                entity_id=project_id,
                workspace_id=workspace_id,
                properties={
                    "risk_score": analysis.risk_score,
                    "risk_level": analysis.risk_level.value,
                    "completion_percentage": analysis.completion_percentage,
                },
            )
        )
        return analysis

    def analyze(
        self,
        project: Union[ProjectRecord, Mapping[str, Any]],
        tasks: Sequence[Union[TaskRecord, Mapping[str, Any]]] = (),
        invoices: Sequence[Union[InvoiceRecord, Mapping[str, Any]]] = (),
        now: Optional[datetime] = None,
    ) -> RiskAnalysis:
        if not isinstance(project, ProjectRecord):
            project = ProjectRecord.model_validate(project)
        task_list = [
            t if isinstance(t, TaskRecord) else TaskRecord.model_validate(t)
            for t in tasks
        ]
        invoice_list = [
            i if isinstance(i, InvoiceRecord) else InvoiceRecord.model_validate(i)
            for i in invoices
        ]
        now = ensure_utc(now) if now is not None else utcnow()

        total = len(task_list)
        done = sum(1 for t in task_list if t.status == TaskStatus.done)
        completion = round(done / total * 100, 2) if total else 0.0
        overdue = [
            t
            for t in task_list
            if t.due_date is not None
            and t.due_date < now
            and t.status != TaskStatus.done
        ]

        start = project.start_date or project.created_at
        planned: Optional[timedelta] = None
        if start is not None and project.end_date is not None:
            planned = project.end_date - start

        predicted = None
        if planned is not None:
            predicted = (now + planned * ((100 - completion) / 100)).date()

        behind_schedule = (
            planned is not None
            and completion < SCHEDULE_BEHIND_COMPLETION
            and now > start + planned * SCHEDULE_BEHIND_ELAPSED_FRACTION
        )

        factors: List[RiskFactor] = []
        recommendations: List[str] = []
        if overdue:
            factors.append(
                RiskFactor(
                    type="overdue_tasks",
                    severity=_overdue_severity(len(overdue)),
                    description=f"{len(overdue)} overdue tasks",
                    impact=min(100, 10 * len(overdue)),
                )
            )
            recommendations.append("Address overdue tasks immediately")
        if behind_schedule:
            factors.append(
                RiskFactor(
                    type="schedule",
                    severity=Severity.high,
                    description="Project significantly behind schedule",
                    impact=30,
                )
            )
            recommendations.append("Consider additional resources or scope adjustment")
        if total == 0:
            factors.append(
                RiskFactor(
                    type="scope",
                    severity=Severity.low,
                    description="No tasks defined",
                    impact=10,
                )
            )
            recommendations.append("Break down project into actionable tasks")

        risk_score = min(100, sum(f.impact for f in factors))

        confidence = 0.70
        if not overdue:
            confidence += 0.15
        if completion > 50:
            confidence += 0.10
        if total > 5:
            confidence += 0.05

        return RiskAnalysis(
            risk_score=risk_score,
            risk_level=risk_level_for(risk_score),
            completion_percentage=completion,
            risk_factors=factors,
            recommendations=recommendations,
            confidence=round(min(0.95, confidence), 2),
            predicted_completion_date=predicted,
            budget_forecast=self._budget_forecast(project, task_list, invoice_list),
            resource_optimization=self._resource_optimization(task_list, len(overdue)),
        )

    def _budget_forecast(
        self,
        project: ProjectRecord,
        tasks: Sequence[TaskRecord],
        invoices: Sequence[InvoiceRecord],
    ) -> BudgetForecast:
        if self._paid_invoices_only:
            invoices = [i for i in invoices if i.status == InvoiceStatus.paid]

        current_spend = sum(i.total_amount or 0 for i in invoices)
        actual_hours = sum(t.actual_hours or 0 for t in tasks)
        estimated_hours = sum(t.estimated_hours or 0 for t in tasks)

        hourly_rate = current_spend / actual_hours if actual_hours > 0 else DEFAULT_HOURLY_RATE
        projected_total = estimated_hours * hourly_rate

        variance = 0.0
        if project.budget:
            variance = (projected_total - project.budget) / project.budget * 100

        return BudgetForecast(
            current_spend=round(current_spend, 2),
            projected_total=round(projected_total, 2),
            variance_percentage=round(variance, 2),
        )

    @staticmethod
    def _resource_optimization(
        tasks: Sequence[TaskRecord], overdue_count: int
    ) -> ResourceOptimization:
        result = ResourceOptimization()
        if overdue_count > 0:
            result.bottlenecks.append(f"{overdue_count} overdue tasks")
            result.suggestions.append(
                "Prioritize overdue tasks and reassign if necessary"
            )

        urgent = sum(1 for t in tasks if t.priority == TaskPriority.urgent)
        if tasks and urgent > len(tasks) * URGENT_TASK_RATIO:
            result.bottlenecks.append("Too many urgent tasks")
            result.suggestions.append(
                "Review task prioritization and planning process"
            )
        return result
