"""Lead-specific Pydantic schemas (stored record, scoring output)."""

from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from app.schemas.common import ActionPriority, LeadStatus, UtcDatetime


# ---------------------------------------------------------------------------
# Input records
# ---------------------------------------------------------------------------


class LeadRecord(BaseModel):
    """A lead as supplied by the record store.

    Only ``name`` and ``workspace_id`` are required for scoring; every
    other signal is optional and simply contributes nothing when absent.
    ``source`` is kept as free text because stored labels vary in case
    and spacing (see ``normalize_source``).
    """

    id: Optional[UUID] = None
    name: str = Field(..., min_length=1)
    email: Optional[str] = None
    phone: Optional[str] = None
    company: Optional[str] = None
    source: Optional[str] = None
    status: LeadStatus = LeadStatus.new
    expected_value: Optional[float] = Field(None, ge=0)
    notes: Optional[str] = None
    workspace_id: UUID
    created_at: UtcDatetime = None


class CohortLead(BaseModel):
    """Projection of a closed (won/lost) lead used for conversion estimates."""

    status: LeadStatus
    source: Optional[str] = None
    company: Optional[str] = None
    expected_value: Optional[float] = None


# ---------------------------------------------------------------------------
# Output schemas
# ---------------------------------------------------------------------------


class NextActions(BaseModel):
    priority: ActionPriority
    actions: List[str]
    timeline: str


class ScoringResult(BaseModel):
    """Result of scoring a single lead against its workspace cohort."""

    final_score: int = Field(..., ge=0, le=100)
    demographic_score: int = Field(..., ge=0, le=100)
    firmographic_score: int = Field(..., ge=0, le=100)
    behavioral_score: int = Field(..., ge=0, le=100)
    engagement_score: int = Field(..., ge=0, le=100)
    confidence: float = Field(..., ge=0.0, le=0.95)
    conversion_rate: float = Field(..., ge=0.0, le=1.0)
    factors: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)
    next_actions: NextActions
