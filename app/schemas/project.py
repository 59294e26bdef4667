"""Project, task and risk-analysis schemas."""

from datetime import date
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from app.schemas.common import (
    ProjectStatus,
    RiskLevel,
    Severity,
    TaskPriority,
    TaskStatus,
    UtcDatetime,
)


class ProjectRecord(BaseModel):
    id: Optional[UUID] = None
    name: str
    status: ProjectStatus = ProjectStatus.planning
    budget: Optional[float] = Field(None, ge=0)
    start_date: UtcDatetime = None
    end_date: UtcDatetime = None
    client_id: Optional[UUID] = None
    workspace_id: Optional[UUID] = None
    created_at: UtcDatetime = None


class TaskRecord(BaseModel):
    id: Optional[UUID] = None
    title: str = ""
    status: TaskStatus = TaskStatus.todo
    priority: TaskPriority = TaskPriority.medium
    due_date: UtcDatetime = None
    estimated_hours: Optional[float] = Field(None, ge=0)
    actual_hours: Optional[float] = Field(None, ge=0)
    project_id: Optional[UUID] = None
    created_at: UtcDatetime = None


class RiskFactor(BaseModel):
    type: str
    severity: Severity
    description: str
    impact: int = Field(..., ge=0, le=100, description="Impact in percent")


class BudgetForecast(BaseModel):
    current_spend: float
    projected_total: float
    variance_percentage: float


class ResourceOptimization(BaseModel):
    bottlenecks: List[str] = Field(default_factory=list)
    suggestions: List[str] = Field(default_factory=list)


class RiskAnalysis(BaseModel):
    """Risk, progress and budget outlook for one project."""

    risk_score: int = Field(..., ge=0, le=100)
    risk_level: RiskLevel
    completion_percentage: float = Field(..., ge=0, le=100)
    risk_factors: List[RiskFactor] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)
    confidence: float = Field(..., ge=0.0, le=0.95)
    predicted_completion_date: Optional[date] = None
    budget_forecast: BudgetForecast
    resource_optimization: ResourceOptimization
