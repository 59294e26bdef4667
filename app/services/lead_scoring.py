import logging
from typing import Any, List, Mapping, NamedTuple, Optional, Sequence, Tuple, Union
from uuid import UUID

from pydantic import ValidationError

from app.core.cache import CacheService
from app.core.config import settings
from app.core.constants import CLOSED_LEAD_STATUSES
from app.core.exceptions import (
    DegradedInputError,
    InvalidLeadDataError,
    LeadNotFoundError,
)
from app.core.scoring_weights import (
    DEFAULT_SCORING_WEIGHTS,
    ScoringWeights,
    normalize_source,
)
from app.repositories.record_store import RecordStore
from app.schemas.common import ActionPriority, LeadStatus
from app.schemas.event import AnalyticsEventCreate
from app.schemas.lead import CohortLead, LeadRecord, NextActions, ScoringResult
from app.services.event_tracker import EventTracker

logger = logging.getLogger(__name__)

LEADS_TABLE = "leads"

_DEMOGRAPHIC = "demographic"
_FIRMOGRAPHIC = "firmographic"
_BEHAVIORAL = "behavioral"
_ENGAGEMENT = "engagement"


class _Signal(NamedTuple):
    """One scoring rule that fired for a lead."""

    category: str
    points: int
    factor: Optional[str] = None
    recommendation: Optional[str] = None


class _Band(NamedTuple):
    min_score: int
    priority: ActionPriority
    actions: Tuple[str, ...]
    timeline: str
    recommendations: Tuple[str, ...]


# Highest band first; the first band whose floor the score reaches wins
_BANDS: Tuple[_Band, ...] = (
    _Band(
        80,
        ActionPriority.immediate,
        ("Call within 1 hour", "Send personalized email", "Connect on LinkedIn"),
        "Within 1 hour",
        (
            "High-priority lead - contact immediately",
            "Prepare detailed proposal with premium pricing",
        ),
    ),
    _Band(
        60,
        ActionPriority.high,
        ("Schedule discovery call", "Send company overview", "Research their business"),
        "Within 24 hours",
        ("Schedule discovery call within 24 hours", "Send relevant case studies"),
    ),
    _Band(
        40,
        ActionPriority.medium,
        ("Add to email sequence", "Send relevant content", "Monitor website activity"),
        "Within 3 days",
        ("Add to nurture sequence", "Qualify budget and timeline"),
    ),
    _Band(
        0,
        ActionPriority.low,
        ("Add to long-term nurture", "Monitor for engagement", "Quarterly check-in"),
        "Within 1 week",
        ("Monitor for engagement signals", "Consider long-term nurture campaign"),
    ),
)


def _clamp(value: float, low: int = 0, high: int = 100) -> int:
    return int(min(high, max(low, value)))


def band_for_score(score: int) -> _Band:
    for band in _BANDS:
        if score >= band.min_score:
            return band
    return _BANDS[-1]


class LeadScoringEngine:
    """Score leads with a weighted additive model.

    Every rule reads its points from one ``ScoringWeights`` table and
    fires at most once.  The final score starts at ``base_score``, adds
    every adjustment and is clamped to 0–100 as the last step.

    Sub-scores are reported per category: demographic is
    ``base_score`` plus its own adjustment, the other three are the sum
    of their adjustments.  Each is clamped independently, so a negative
    behavioral adjustment still lowers the final score while the
    behavioral sub-score bottoms out at 0.

    The historical cohort (closed leads of the same workspace) only
    drives the confidence value and the conversion-rate recommendation,
    never the score itself.
    """

    def __init__(
        self,
        store: RecordStore,
        cache: Optional[CacheService] = None,
        tracker: Optional[EventTracker] = None,
        weights: ScoringWeights = DEFAULT_SCORING_WEIGHTS,
        cohort_limit: int = settings.COHORT_SIZE_LIMIT,
        cohort_cache_ttl: int = settings.REDIS_CACHE_TTL,
    ) -> None:
        self._store = store
        self._cache: CacheService = cache or CacheService()
        self._tracker: EventTracker = tracker or EventTracker()
        self._weights = weights
        self._cohort_limit = cohort_limit
        self._cohort_cache_ttl = cohort_cache_ttl

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def analyze_lead(
        self, lead_id: UUID, workspace_id: UUID, persist: bool = True
    ) -> ScoringResult:
        """Fetch, score and (optionally) annotate a lead.

        Raises:
            LeadNotFoundError: If the lead is absent from the workspace.
            InvalidLeadDataError: If the stored lead cannot be scored.
        """
        record = await self._store.get_by_id(
            LEADS_TABLE, lead_id, workspace_id=workspace_id
        )
        if record is None:
            raise LeadNotFoundError(f"Lead {lead_id} not found")

        lead = self._parse_lead(record)
        cohort = await self._load_cohort(lead.workspace_id)
        result = self.score(lead, cohort)

        if persist:
            await self._store.update(
                LEADS_TABLE,
                lead_id,
                {
                    "ai_score": result.final_score,
                    "ai_insights": result.model_dump(
                        mode="json", exclude={"final_score"}
                    ),
                },
                workspace_id=workspace_id,
            )

        await self._tracker.track(
            AnalyticsEventCreate(
                type="lead_ai_analysis",
                entity_type="lead",
                entity_id=lead_id,
                workspace_id=workspace_id,
                properties={
                    "score": result.final_score,
                    "confidence": result.confidence,
                    "priority": result.next_actions.priority.value,
                },
            )
        )
        return result

    def score(
        self,
        lead: Union[LeadRecord, Mapping[str, Any]],
        cohort: Sequence[Union[CohortLead, Mapping[str, Any]]] = (),
    ) -> ScoringResult:
        """Score one lead against a historical cohort (pure, deterministic)."""
        if not isinstance(lead, LeadRecord):
            lead = self._parse_lead(lead)
        history = [
            c if isinstance(c, CohortLead) else CohortLead.model_validate(c)
            for c in cohort
        ][: self._cohort_limit]
        w = self._weights

        signals = self._collect_signals(lead)
        final_score = _clamp(w.base_score + sum(s.points for s in signals))

        def category_total(category: str) -> int:
            return sum(s.points for s in signals if s.category == category)

        sub_scores = {
            _DEMOGRAPHIC: _clamp(w.base_score + category_total(_DEMOGRAPHIC)),
            _FIRMOGRAPHIC: _clamp(category_total(_FIRMOGRAPHIC)),
            _BEHAVIORAL: _clamp(category_total(_BEHAVIORAL)),
            _ENGAGEMENT: _clamp(category_total(_ENGAGEMENT)),
        }

        conversion_rate = self.estimate_conversion_rate(lead, history)
        band = band_for_score(final_score)

        return ScoringResult(
            final_score=final_score,
            demographic_score=sub_scores[_DEMOGRAPHIC],
            firmographic_score=sub_scores[_FIRMOGRAPHIC],
            behavioral_score=sub_scores[_BEHAVIORAL],
            engagement_score=sub_scores[_ENGAGEMENT],
            confidence=self._confidence(sub_scores.values(), len(history)),
            conversion_rate=round(conversion_rate, 4),
            factors=[s.factor for s in signals if s.factor],
            recommendations=self._recommendations(
                band, lead, signals, conversion_rate
            ),
            next_actions=NextActions(
                priority=band.priority,
                actions=list(band.actions),
                timeline=band.timeline,
            ),
        )

    def estimate_conversion_rate(
        self, lead: LeadRecord, cohort: Sequence[CohortLead]
    ) -> float:
        """Share of won leads among cohort leads similar to *lead*.

        A cohort lead is similar when it shares the source, when its
        company contains the lead's company (any company does when the
        lead has none), or when the expected values differ by less than
        ``similar_value_window``.
        """
        w = self._weights
        if not cohort:
            return w.default_conversion_rate

        source = normalize_source(lead.source)
        company = (lead.company or "").strip().lower()
        value = lead.expected_value or 0

        similar = [
            c
            for c in cohort
            if (source and normalize_source(c.source) == source)
            or (c.company is not None and company in c.company.lower())
            or abs((c.expected_value or 0) - value) < w.similar_value_window
        ]
        if not similar:
            return w.default_conversion_rate

        won = sum(1 for c in similar if c.status == LeadStatus.won)
        return won / len(similar)

    # ------------------------------------------------------------------
    # Rules
    # ------------------------------------------------------------------

    def _collect_signals(self, lead: LeadRecord) -> List[_Signal]:
        w = self._weights
        signals: List[_Signal] = []

        # Demographic: email domain
        domain = ""
        if lead.email and "@" in lead.email:
            domain = lead.email.rsplit("@", 1)[1].strip().lower()
        if domain in w.free_email_domains:
            signals.append(
                _Signal(
                    _DEMOGRAPHIC,
                    w.free_email_points,
                    "Personal email domain",
                    "Verify business email for higher credibility",
                )
            )
        elif domain:
            signals.append(
                _Signal(_DEMOGRAPHIC, w.business_email_points, "Professional email domain")
            )

        # Firmographic: company presence
        if lead.company and lead.company.strip():
            signals.append(
                _Signal(_FIRMOGRAPHIC, w.company_points, "Company information provided")
            )
        else:
            signals.append(
                _Signal(_FIRMOGRAPHIC, 0, recommendation="Request company information")
            )

        # Behavioral: lead source
        source = normalize_source(lead.source)
        if source in w.source_points:
            signals.append(
                _Signal(
                    _BEHAVIORAL,
                    w.source_points[source],
                    w.source_factors.get(source, f"Lead source: {lead.source}"),
                    "Nurture with valuable content"
                    if source in w.nurture_sources
                    else None,
                )
            )

        # Engagement: expected deal value
        if lead.expected_value:
            for threshold, points, factor in w.value_tiers:
                if lead.expected_value > threshold:
                    signals.append(_Signal(_ENGAGEMENT, points, factor))
                    break
        else:
            signals.append(
                _Signal(_ENGAGEMENT, 0, recommendation="Qualify budget and timeline")
            )

        # Engagement: keywords in notes
        notes = (lead.notes or "").lower()
        if notes:
            if any(keyword in notes for keyword in w.urgency_keywords):
                signals.append(
                    _Signal(_ENGAGEMENT, w.urgency_points, "Urgent timeline indicated")
                )
            if any(keyword in notes for keyword in w.positive_keywords):
                signals.append(
                    _Signal(
                        _ENGAGEMENT, w.positive_points, "Positive engagement signals"
                    )
                )

        return signals

    def _confidence(self, sub_scores, cohort_size: int) -> float:
        w = self._weights
        confidence = w.base_confidence
        if cohort_size > w.large_cohort_size:
            confidence += w.large_cohort_bonus
        for sub_score in sub_scores:
            if sub_score > w.strong_subscore_threshold:
                confidence += w.strong_subscore_bonus
        return round(min(w.max_confidence, confidence), 2)

    def _recommendations(
        self,
        band: _Band,
        lead: LeadRecord,
        signals: Sequence[_Signal],
        conversion_rate: float,
    ) -> List[str]:
        candidates = list(band.recommendations)
        if conversion_rate > self._weights.high_conversion_rate:
            candidates.append("Similar leads have high conversion rate")
        if not lead.phone:
            candidates.append("Obtain phone number for better qualification")
        candidates.extend(s.recommendation for s in signals if s.recommendation)

        # Keep the first occurrence of each recommendation
        return list(dict.fromkeys(candidates))

    # ------------------------------------------------------------------
    # Inputs
    # ------------------------------------------------------------------

    @staticmethod
    def _parse_lead(record: Mapping[str, Any]) -> LeadRecord:
        try:
            return LeadRecord.model_validate(record)
        except ValidationError as exc:
            raise InvalidLeadDataError(
                f"Lead cannot be scored: {exc.error_count()} invalid field(s)"
            ) from exc

    async def _load_cohort(self, workspace_id: UUID) -> List[CohortLead]:
        """Return the workspace's closed-lead cohort, cache first.

        A failed fetch degrades to an empty cohort: confidence drops and
        the conversion rate falls back to its default.
        """
        cache_key = f"lead_cohort:{workspace_id}"
        cached = await self._cache.get_json(cache_key)
        if cached is not None:
            try:
                return [CohortLead.model_validate(row) for row in cached]
            except (ValidationError, TypeError):
                logger.warning("Discarding malformed cohort cache %s", cache_key)

        try:
            cohort = await self._fetch_cohort(workspace_id)
        except DegradedInputError as exc:
            logger.warning("%s; scoring with an empty cohort", exc.detail)
            return []

        await self._cache.set_json(
            cache_key,
            [c.model_dump(mode="json") for c in cohort],
            ttl=self._cohort_cache_ttl,
        )
        return cohort

    async def _fetch_cohort(self, workspace_id: UUID) -> List[CohortLead]:
        try:
            rows = await self._store.get_by_filter(
                LEADS_TABLE,
                {"workspace_id": workspace_id, "status": sorted(CLOSED_LEAD_STATUSES)},
                limit=self._cohort_limit,
                order_by="created_at",
                descending=True,
            )
            return [CohortLead.model_validate(row) for row in rows]
        except Exception as exc:
            raise DegradedInputError(
                f"Cohort unavailable for workspace {workspace_id}"
            ) from exc
