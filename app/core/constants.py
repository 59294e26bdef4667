from typing import Dict, FrozenSet, List

from app.schemas.common import (
    ABTestStatus,
    InvoiceStatus,
    LeadStatus,
    ProjectStatus,
    TaskPriority,
    TaskStatus,
)

LEAD_STATUSES: FrozenSet[str] = frozenset(s.value for s in LeadStatus)

# The historical scoring cohort is drawn from closed leads only
CLOSED_LEAD_STATUSES: FrozenSet[str] = frozenset(
    {LeadStatus.won.value, LeadStatus.lost.value}
)

PROJECT_STATUSES: FrozenSet[str] = frozenset(s.value for s in ProjectStatus)
TASK_STATUSES: FrozenSet[str] = frozenset(s.value for s in TaskStatus)
TASK_PRIORITIES: FrozenSet[str] = frozenset(p.value for p in TaskPriority)
INVOICE_STATUSES: FrozenSet[str] = frozenset(s.value for s in InvoiceStatus)
AB_TEST_STATUSES: FrozenSet[str] = frozenset(s.value for s in ABTestStatus)


def check_clause(column: str, values: FrozenSet[str]) -> str:
    """Build a SQL ``IN`` CHECK clause for *column* from a constant set."""
    return f"{column} IN ({', '.join(repr(v) for v in sorted(values))})"


# ---------------------------------------------------------------------------
# Project risk
# ---------------------------------------------------------------------------

DEFAULT_HOURLY_RATE: float = 100.0
URGENT_TASK_RATIO: float = 0.3
SCHEDULE_BEHIND_COMPLETION: float = 25.0
SCHEDULE_BEHIND_ELAPSED_FRACTION: float = 0.5

RISK_LEVEL_HIGH: int = 70
RISK_LEVEL_MEDIUM: int = 40

# ---------------------------------------------------------------------------
# Proposal pricing
# ---------------------------------------------------------------------------

DEFAULT_BASE_PRICE: float = 25000.0

PROJECT_TYPE_BASE_PRICES: Dict[str, float] = {
    "website": 15000.0,
    "mobile app": 45000.0,
    "branding": 12000.0,
    "enterprise software": 75000.0,
}

REGULATED_INDUSTRIES: FrozenSet[str] = frozenset({"healthcare", "finance"})
REGULATED_INDUSTRY_MULTIPLIER: float = 1.3

PRICE_RANGE_MIN_FACTOR: float = 0.8
PRICE_RANGE_MAX_FACTOR: float = 1.4

SENIOR_TEAM_BUDGET_THRESHOLD: float = 50000.0
AB_TEST_SIGNIFICANCE_THRESHOLD: float = 0.95
DEFAULT_TEMPLATE_CONVERSION_RATE: float = 0.3
TEMPLATE_SUGGESTION_LIMIT: int = 3

# Share of the suggested amount per line, keyed by lower-cased project type
PRICING_BREAKDOWNS: Dict[str, List[tuple]] = {
    "website": [
        ("UX/UI Design", 0.3),
        ("Frontend Development", 0.4),
        ("Backend Development", 0.2),
        ("Testing & QA", 0.1),
    ],
    "mobile app": [
        ("App Design", 0.25),
        ("iOS Development", 0.35),
        ("Android Development", 0.35),
        ("Testing & Deployment", 0.05),
    ],
    "branding": [
        ("Brand Strategy", 0.3),
        ("Logo Design", 0.25),
        ("Brand Guidelines", 0.25),
        ("Marketing Materials", 0.2),
    ],
}
PRICING_BREAKDOWNS["web development"] = PRICING_BREAKDOWNS["website"]

DEFAULT_PRICING_BREAKDOWN: List[tuple] = [
    ("Planning & Strategy", 0.2),
    ("Implementation", 0.6),
    ("Testing & Support", 0.2),
]

# ---------------------------------------------------------------------------
# Invoice automation
# ---------------------------------------------------------------------------

DEFAULT_INVOICE_HOURLY_RATE: float = 150.0
DEFAULT_TASK_HOURS: float = 8.0
MILESTONE_BUDGET_SHARE: float = 0.3
DEFAULT_MILESTONE_AMOUNT: float = 5000.0
PROJECT_EXPENSES_AMOUNT: float = 500.0
DEFAULT_INVOICE_AMOUNT: float = 5000.0

DEFAULT_PAYMENT_DAYS: int = 30
PAYMENT_DAYS_BUFFER: int = 5
MIN_DUE_DAYS: int = 15
MAX_DUE_DAYS: int = 45
EARLY_PAYMENT_DISCOUNT: float = 2.0
LATE_FEE_PERCENTAGE: float = 1.5
