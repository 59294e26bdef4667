"""Invoice records and invoice-automation request/response schemas."""

from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, model_validator
from typing_extensions import Self

from app.schemas.common import FollowUpChannel, InvoiceStatus, UtcDatetime


class InvoiceRecord(BaseModel):
    id: Optional[UUID] = None
    total_amount: float = 0.0
    status: InvoiceStatus = InvoiceStatus.draft
    due_date: UtcDatetime = None
    paid_at: UtcDatetime = None
    client_id: Optional[UUID] = None
    project_id: Optional[UUID] = None


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class WorkPeriod(BaseModel):
    """Inclusive billing window matched against task ``created_at``."""

    start: UtcDatetime
    end: UtcDatetime

    @model_validator(mode="after")
    def validate_bounds(self) -> Self:
        if self.start is None or self.end is None:
            raise ValueError("work period needs both start and end")
        if self.start > self.end:
            raise ValueError(
                f"work period start ({self.start.isoformat()}) is after "
                f"end ({self.end.isoformat()})"
            )
        return self


class InvoiceAutomationRequest(BaseModel):
    """Request body for POST /api/v1/invoices/automation."""

    project_id: UUID
    client_id: UUID
    work_period: WorkPeriod
    include_expenses: bool = False


class InvoiceDraftRequest(BaseModel):
    """Request body for POST /api/v1/invoices/draft."""

    client_name: str = Field(..., min_length=1)
    project_name: Optional[str] = None
    work_completed: List[str] = Field(default_factory=list)
    hours_worked: Optional[float] = Field(None, gt=0)
    hourly_rate: Optional[float] = Field(None, gt=0)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class InvoiceLineItem(BaseModel):
    description: str
    quantity: float
    rate: float
    amount: float


class PaymentTerms(BaseModel):
    due_days: int = Field(..., ge=15, le=45)
    early_payment_discount: float
    late_fee_percentage: float


class AutomationRule(BaseModel):
    trigger: str
    action: str
    timing: str


class FollowUpStep(BaseModel):
    day: int
    type: FollowUpChannel
    template: str


class InvoiceAutomation(BaseModel):
    suggested_items: List[InvoiceLineItem]
    payment_terms: PaymentTerms
    automation_rules: List[AutomationRule]
    follow_up_sequence: List[FollowUpStep]


class InvoiceDraft(BaseModel):
    title: str
    description: str
    suggested_amount: float
    line_items: List[InvoiceLineItem] = Field(default_factory=list)
