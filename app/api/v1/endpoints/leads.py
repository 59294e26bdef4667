from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request

from app.api.deps import get_scoring_engine, get_workspace_id
from app.core.config import settings
from app.core.rate_limit import limiter
from app.schemas.lead import ScoringResult
from app.services.lead_scoring import LeadScoringEngine

router = APIRouter(prefix="/leads", tags=["Leads"])


@router.post("/{lead_id}/analysis", response_model=ScoringResult)
@limiter.limit(settings.RATE_LIMIT_ANALYSIS)
async def analyze_lead(
    request: Request,
    lead_id: UUID,
    persist: bool = Query(True, description="Write the score back onto the lead"),
    workspace_id: UUID = Depends(get_workspace_id),
    engine: LeadScoringEngine = Depends(get_scoring_engine),
) -> ScoringResult:
    """Score a lead against its workspace's closed-lead cohort.

    With ``persist`` the lead's ``ai_score``/``ai_insights`` are updated
    in the same transaction as the request.
    """
    return await engine.analyze_lead(lead_id, workspace_id, persist=persist)
