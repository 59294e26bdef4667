from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, BeforeValidator
from typing_extensions import Annotated

from app.core.dates import ensure_utc

# Stored dates arrive naive, aware, as bare dates or ISO strings
UtcDatetime = Annotated[Optional[datetime], BeforeValidator(ensure_utc)]


class LeadSource(str, Enum):
    REFERRAL = "Referral"
    LINKEDIN = "LinkedIn"
    WEBSITE_CONTACT_FORM = "Website Contact Form"
    COLD_OUTREACH = "Cold Outreach"
    OTHER = "Other"


class LeadStatus(str, Enum):
    new = "new"
    contacted = "contacted"
    qualified = "qualified"
    proposal = "proposal"
    won = "won"
    lost = "lost"


class ProjectStatus(str, Enum):
    planning = "planning"
    active = "active"
    on_hold = "on_hold"
    completed = "completed"
    cancelled = "cancelled"


class TaskStatus(str, Enum):
    todo = "todo"
    in_progress = "in_progress"
    review = "review"
    done = "done"


class TaskPriority(str, Enum):
    low = "low"
    medium = "medium"
    high = "high"
    urgent = "urgent"


class InvoiceStatus(str, Enum):
    draft = "draft"
    sent = "sent"
    paid = "paid"
    overdue = "overdue"


class ABTestStatus(str, Enum):
    active = "active"
    paused = "paused"
    completed = "completed"


class ActionPriority(str, Enum):
    immediate = "immediate"
    high = "high"
    medium = "medium"
    low = "low"


class Severity(str, Enum):
    critical = "critical"
    high = "high"
    medium = "medium"
    low = "low"


class RiskLevel(str, Enum):
    high = "high"
    medium = "medium"
    low = "low"


class Impact(str, Enum):
    high = "high"
    medium = "medium"
    low = "low"


class FollowUpChannel(str, Enum):
    email = "email"
    sms = "sms"
    call = "call"


class SuccessResponse(BaseModel):
    """Generic success response base."""

    success: bool = True
