"""Single weighting table for lead scoring.

Every additive rule applied by ``LeadScoringEngine`` reads its points
from a ``ScoringWeights`` instance, so a workspace-specific table can be
passed to the engine without touching the rule code.
"""

from typing import Dict, FrozenSet, List, Tuple

from pydantic import BaseModel, ConfigDict, Field


def normalize_source(source: str | None) -> str:
    """Reduce a lead source label to a lookup key.

    ``"Website Contact Form"``, ``"website_contact_form"`` and
    ``"WebsiteContactForm"`` all map to ``"websitecontactform"``.
    """
    if not source:
        return ""
    return "".join(ch for ch in source.lower() if ch.isalnum())


class ScoringWeights(BaseModel):
    """Points and thresholds used by the lead scoring rules."""

    model_config = ConfigDict(frozen=True)

    base_score: int = 50

    # Demographic
    business_email_points: int = 15
    free_email_points: int = -10
    free_email_domains: FrozenSet[str] = frozenset(
        {
            "gmail.com",
            "googlemail.com",
            "yahoo.com",
            "hotmail.com",
            "outlook.com",
            "live.com",
            "msn.com",
            "aol.com",
            "icloud.com",
            "me.com",
            "mail.com",
            "gmx.com",
            "protonmail.com",
            "yandex.com",
        }
    )

    # Firmographic
    company_points: int = 20

    # Behavioral, keyed by ``normalize_source`` output
    source_points: Dict[str, int] = Field(
        default_factory=lambda: {
            "referral": 25,
            "linkedin": 15,
            "websitecontactform": 10,
            "coldoutreach": -5,
        }
    )
    source_factors: Dict[str, str] = Field(
        default_factory=lambda: {
            "referral": "High-quality referral source",
            "linkedin": "Professional network source",
            "websitecontactform": "Direct website inquiry",
            "coldoutreach": "Cold outreach lead",
        }
    )
    # Sources whose leads should be warmed up before a sales touch
    nurture_sources: FrozenSet[str] = frozenset({"coldoutreach"})

    # Engagement: (exclusive lower bound, points, factor), highest first
    value_tiers: List[Tuple[float, int, str]] = Field(
        default_factory=lambda: [
            (50000, 20, "High-value opportunity"),
            (25000, 10, "Medium-value opportunity"),
            (10000, 5, "Standard-value opportunity"),
        ]
    )
    urgency_keywords: Tuple[str, ...] = ("urgent", "asap", "immediately", "deadline")
    urgency_points: int = 15
    positive_keywords: Tuple[str, ...] = ("interested", "excited", "ready", "approved")
    positive_points: int = 10

    # Confidence
    base_confidence: float = 0.7
    large_cohort_size: int = 50
    large_cohort_bonus: float = 0.1
    strong_subscore_threshold: int = 30
    strong_subscore_bonus: float = 0.05
    max_confidence: float = 0.95

    # Conversion-rate estimate
    default_conversion_rate: float = 0.5
    similar_value_window: float = 10000
    high_conversion_rate: float = 0.7


DEFAULT_SCORING_WEIGHTS = ScoringWeights()
