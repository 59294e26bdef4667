from uuid import UUID

from fastapi import APIRouter, Depends, Request

from app.api.deps import get_invoice_automation_service, get_workspace_id
from app.core.config import settings
from app.core.rate_limit import limiter
from app.schemas.invoice import (
    InvoiceAutomation,
    InvoiceAutomationRequest,
    InvoiceDraft,
    InvoiceDraftRequest,
)
from app.services.invoice_automation import InvoiceAutomationService

router = APIRouter(prefix="/invoices", tags=["Invoices"])


@router.post("/automation", response_model=InvoiceAutomation)
@limiter.limit(settings.RATE_LIMIT_ANALYSIS)
async def invoice_automation(
    request: Request,
    body: InvoiceAutomationRequest,
    workspace_id: UUID = Depends(get_workspace_id),
    service: InvoiceAutomationService = Depends(get_invoice_automation_service),
) -> InvoiceAutomation:
    """Suggested line items, payment terms and follow-ups for a billing period."""
    return await service.automate(
        project_id=body.project_id,
        client_id=body.client_id,
        workspace_id=workspace_id,
        work_period=body.work_period,
        include_expenses=body.include_expenses,
    )


@router.post("/draft", response_model=InvoiceDraft)
async def draft_invoice(body: InvoiceDraftRequest) -> InvoiceDraft:
    return InvoiceAutomationService.draft_invoice_content(
        client_name=body.client_name,
        project_name=body.project_name,
        work_completed=body.work_completed,
        hours_worked=body.hours_worked,
        hourly_rate=body.hourly_rate,
    )
