from uuid import UUID

from fastapi import APIRouter, Depends, Request

from app.api.deps import get_risk_analyzer, get_workspace_id
from app.core.config import settings
from app.core.rate_limit import limiter
from app.schemas.project import RiskAnalysis
from app.services.project_risk import ProjectRiskAnalyzer

router = APIRouter(prefix="/projects", tags=["Projects"])


@router.post("/{project_id}/risk-analysis", response_model=RiskAnalysis)
@limiter.limit(settings.RATE_LIMIT_ANALYSIS)
async def analyze_project_risk(
    request: Request,
    project_id: UUID,
    workspace_id: UUID = Depends(get_workspace_id),
    analyzer: ProjectRiskAnalyzer = Depends(get_risk_analyzer),
) -> RiskAnalysis:
    """Completion, risk factors and budget forecast for a project."""
    return await analyzer.analyze_project(project_id, workspace_id)
