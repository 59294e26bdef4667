"""Proposal templates, A/B tests and proposal-optimisation schemas."""

from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from app.schemas.common import ABTestStatus, Impact


class ClientRecord(BaseModel):
    id: Optional[UUID] = None
    name: str
    email: Optional[str] = None
    company: Optional[str] = None
    workspace_id: UUID


class ProposalTemplateRecord(BaseModel):
    id: UUID
    name: str
    category: Optional[str] = None
    usage_count: int = Field(0, ge=0)
    conversion_rate: Optional[float] = Field(None, ge=0.0, le=1.0)
    is_active: bool = True


class VariantResult(BaseModel):
    views: int = 0
    conversions: int = 0
    conversion_rate: float = 0.0


class ABTestResults(BaseModel):
    template_a: VariantResult = Field(default_factory=VariantResult)
    template_b: VariantResult = Field(default_factory=VariantResult)
    statistical_significance: float = Field(0.0, ge=0.0, le=1.0)
    winner: Optional[str] = Field(None, pattern=r"^(a|b|inconclusive)$")


class ABTestRecord(BaseModel):
    id: UUID
    name: str = ""
    template_a_id: UUID
    template_b_id: UUID
    traffic_split: float = Field(0.5, ge=0.0, le=1.0)
    status: ABTestStatus
    results: Optional[ABTestResults] = None


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class ProposalOptimizationRequest(BaseModel):
    """Request body for POST /api/v1/proposals/optimize."""

    client_id: UUID
    project_type: str = Field(..., min_length=1)
    budget_range: Optional[float] = Field(None, gt=0)
    industry: Optional[str] = None


class ProposalDraftRequest(BaseModel):
    """Request body for POST /api/v1/proposals/draft."""

    client_name: str = Field(..., min_length=1)
    project_type: str = Field(..., min_length=1)
    budget_range: Optional[float] = Field(None, gt=0)
    requirements: Optional[str] = None


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class TemplateSuggestion(BaseModel):
    template_id: UUID
    name: str
    conversion_rate: float
    confidence: float


class ContentImprovement(BaseModel):
    section: str
    suggestion: str
    impact: Impact


class PriceRange(BaseModel):
    min: float
    max: float


class PricingAnalysis(BaseModel):
    suggested_price: float
    price_range: PriceRange
    market_comparison: str


class ABTestRecommendation(BaseModel):
    test_name: str
    variants: List[str]
    success_metrics: List[str]


class ProposalOptimization(BaseModel):
    template_suggestions: List[TemplateSuggestion] = Field(default_factory=list)
    content_improvements: List[ContentImprovement] = Field(default_factory=list)
    pricing_analysis: PricingAnalysis
    ab_test_recommendations: List[ABTestRecommendation] = Field(default_factory=list)


class ProposalSection(BaseModel):
    name: str
    content: str


class PricingLine(BaseModel):
    item: str
    amount: float


class ProposalPricing(BaseModel):
    suggested_amount: float
    breakdown: List[PricingLine]


class ProposalDraft(BaseModel):
    title: str
    sections: List[ProposalSection]
    pricing: ProposalPricing
