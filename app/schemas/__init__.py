"""Pydantic schemas package – re-exports for convenience."""

# Common enums (imported first: the record schemas depend on them)
from app.schemas.common import (
    LeadSource as LeadSource,
    LeadStatus as LeadStatus,
    ProjectStatus as ProjectStatus,
    TaskStatus as TaskStatus,
    TaskPriority as TaskPriority,
    InvoiceStatus as InvoiceStatus,
    ABTestStatus as ABTestStatus,
    ActionPriority as ActionPriority,
    Severity as Severity,
    RiskLevel as RiskLevel,
    Impact as Impact,
    FollowUpChannel as FollowUpChannel,
    SuccessResponse as SuccessResponse,
)

# Lead scoring
from app.schemas.lead import (
    LeadRecord as LeadRecord,
    CohortLead as CohortLead,
    NextActions as NextActions,
    ScoringResult as ScoringResult,
)

# Project risk
from app.schemas.project import (
    ProjectRecord as ProjectRecord,
    TaskRecord as TaskRecord,
    RiskFactor as RiskFactor,
    BudgetForecast as BudgetForecast,
    ResourceOptimization as ResourceOptimization,
    RiskAnalysis as RiskAnalysis,
)

# Proposal optimisation
from app.schemas.proposal import (
    ProposalOptimizationRequest as ProposalOptimizationRequest,
    ProposalDraftRequest as ProposalDraftRequest,
    ProposalOptimization as ProposalOptimization,
    ProposalDraft as ProposalDraft,
)

# Invoice automation
from app.schemas.invoice import (
    InvoiceRecord as InvoiceRecord,
    WorkPeriod as WorkPeriod,
    InvoiceAutomationRequest as InvoiceAutomationRequest,
    InvoiceDraftRequest as InvoiceDraftRequest,
    InvoiceAutomation as InvoiceAutomation,
    InvoiceDraft as InvoiceDraft,
)

# Analytics events
from app.schemas.event import AnalyticsEventCreate as AnalyticsEventCreate
