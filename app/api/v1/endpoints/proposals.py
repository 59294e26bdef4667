from uuid import UUID

from fastapi import APIRouter, Depends, Request

from app.api.deps import get_proposal_optimizer, get_workspace_id
from app.core.config import settings
from app.core.rate_limit import limiter
from app.schemas.proposal import (
    ProposalDraft,
    ProposalDraftRequest,
    ProposalOptimization,
    ProposalOptimizationRequest,
)
from app.services.proposal_optimization import ProposalOptimizer

router = APIRouter(prefix="/proposals", tags=["Proposals"])


@router.post("/optimize", response_model=ProposalOptimization)
@limiter.limit(settings.RATE_LIMIT_ANALYSIS)
async def optimize_proposal(
    request: Request,
    body: ProposalOptimizationRequest,
    workspace_id: UUID = Depends(get_workspace_id),
    optimizer: ProposalOptimizer = Depends(get_proposal_optimizer),
) -> ProposalOptimization:
    """Template, content, pricing and A/B-test suggestions for a client."""
    return await optimizer.optimize(
        client_id=body.client_id,
        workspace_id=workspace_id,
        project_type=body.project_type,
        budget_range=body.budget_range,
        industry=body.industry,
    )


@router.post("/draft", response_model=ProposalDraft)
async def draft_proposal(body: ProposalDraftRequest) -> ProposalDraft:
    return ProposalOptimizer.draft_proposal(
        client_name=body.client_name,
        project_type=body.project_type,
        budget_range=body.budget_range,
        requirements=body.requirements,
    )
