import logging
from typing import List, Optional, Sequence
from uuid import UUID

from app.core.config import settings
from app.core.constants import (
    AB_TEST_SIGNIFICANCE_THRESHOLD,
    DEFAULT_BASE_PRICE,
    DEFAULT_PRICING_BREAKDOWN,
    DEFAULT_TEMPLATE_CONVERSION_RATE,
    PRICE_RANGE_MAX_FACTOR,
    PRICE_RANGE_MIN_FACTOR,
    PRICING_BREAKDOWNS,
    PROJECT_TYPE_BASE_PRICES,
    REGULATED_INDUSTRIES,
    REGULATED_INDUSTRY_MULTIPLIER,
    SENIOR_TEAM_BUDGET_THRESHOLD,
    TEMPLATE_SUGGESTION_LIMIT,
)
from app.core.exceptions import ClientNotFoundError, DegradedInputError
from app.repositories.record_store import RecordStore
from app.schemas.common import ABTestStatus, Impact
from app.schemas.event import AnalyticsEventCreate
from app.schemas.proposal import (
    ABTestRecommendation,
    ABTestRecord,
    ContentImprovement,
    PriceRange,
    PricingAnalysis,
    PricingLine,
    ProposalDraft,
    ProposalOptimization,
    ProposalPricing,
    ProposalSection,
    ProposalTemplateRecord,
    TemplateSuggestion,
)
from app.services.event_tracker import EventTracker

logger = logging.getLogger(__name__)

CLIENTS_TABLE = "clients"
TEMPLATES_TABLE = "proposal_templates"
AB_TESTS_TABLE = "proposal_ab_tests"

_AB_TEST_CATALOGUE = (
    ABTestRecommendation(
        test_name="Pricing Strategy Test",
        variants=["Value-based pricing", "Hourly rate pricing", "Package pricing"],
        success_metrics=["Conversion rate", "Average deal size", "Time to close"],
    ),
    ABTestRecommendation(
        test_name="Content Length Test",
        variants=["Detailed proposal", "Executive summary", "Visual presentation"],
        success_metrics=["Engagement time", "Response rate", "Conversion rate"],
    ),
)

_BASE_IMPROVEMENTS = (
    ContentImprovement(
        section="Executive Summary",
        suggestion="Include specific ROI metrics and success stories",
        impact=Impact.high,
    ),
    ContentImprovement(
        section="Timeline",
        suggestion="Break down into detailed milestones with dependencies",
        impact=Impact.medium,
    ),
    ContentImprovement(
        section="Investment",
        suggestion="Provide multiple pricing options with clear value differentiation",
        impact=Impact.high,
    ),
)


class ProposalOptimizer:
    """Template, content, pricing and A/B-test suggestions for a proposal."""

    def __init__(
        self,
        store: RecordStore,
        tracker: Optional[EventTracker] = None,
        ab_test_history: bool = settings.AB_TEST_HISTORY_ENABLED,
    ) -> None:
        self._store = store
        self._tracker: EventTracker = tracker or EventTracker()
        self._ab_test_history = ab_test_history

    async def optimize(
        self,
        client_id: UUID,
        workspace_id: UUID,
        project_type: str,
        budget_range: Optional[float] = None,
        industry: Optional[str] = None,
    ) -> ProposalOptimization:
        """Build optimisation suggestions for a proposal to *client_id*.

        Raises:
            ClientNotFoundError: If the client is absent from the workspace.
        """
        client = await self._store.get_by_id(
            CLIENTS_TABLE, client_id, workspace_id=workspace_id
        )
        if client is None:
            raise ClientNotFoundError(f"Client {client_id} not found")

        templates = await self._store.get_by_filter(
            TEMPLATES_TABLE,
            {"workspace_id": workspace_id, "is_active": True},
            order_by="conversion_rate",
            descending=True,
        )
        ab_tests = await self._completed_ab_tests(workspace_id)

        result = ProposalOptimization(
            template_suggestions=self.suggest_templates(
                [ProposalTemplateRecord.model_validate(t) for t in templates],
                project_type,
                industry,
            ),
            content_improvements=self.content_improvements(budget_range),
            pricing_analysis=self.analyze_pricing(project_type, budget_range, industry),
            ab_test_recommendations=self.ab_test_recommendations(ab_tests),
        )

        await self._tracker.track(
            AnalyticsEventCreate(
                type="proposal_optimization",
                entity_type="client",
                entity_id=client_id,
                workspace_id=workspace_id,
                properties={
                    "project_type": project_type,
                    "suggested_price": result.pricing_analysis.suggested_price,
                    "template_count": len(result.template_suggestions),
                },
            )
        )
        return result

    # ------------------------------------------------------------------
    # Pure helpers
    # ------------------------------------------------------------------

    @staticmethod
    def suggest_templates(
        templates: Sequence[ProposalTemplateRecord],
        project_type: str,
        industry: Optional[str] = None,
    ) -> List[TemplateSuggestion]:
        """Top templates whose category matches the project type.

        A template also qualifies when its name contains the industry;
        with no industry given every template qualifies.  Ties keep their
        store order.
        """
        wanted_type = project_type.lower()
        wanted_industry = industry.lower() if industry else None

        def matches(template: ProposalTemplateRecord) -> bool:
            if template.category and wanted_type in template.category.lower():
                return True
            return wanted_industry is None or wanted_industry in template.name.lower()

        def rate(template: ProposalTemplateRecord) -> float:
            if template.conversion_rate is None:
                return DEFAULT_TEMPLATE_CONVERSION_RATE
            return template.conversion_rate

        ranked = sorted(filter(matches, templates), key=rate, reverse=True)
        return [
            TemplateSuggestion(
                template_id=t.id,
                name=t.name,
                conversion_rate=rate(t),
                confidence=0.8 if t.usage_count > 10 else 0.6,
            )
            for t in ranked[:TEMPLATE_SUGGESTION_LIMIT]
        ]

    @staticmethod
    def content_improvements(
        budget_range: Optional[float] = None,
    ) -> List[ContentImprovement]:
        improvements = [i.model_copy() for i in _BASE_IMPROVEMENTS]
        if budget_range and budget_range > SENIOR_TEAM_BUDGET_THRESHOLD:
            improvements.append(
                ContentImprovement(
                    section="Team",
                    suggestion="Highlight senior team members and their expertise",
                    impact=Impact.high,
                )
            )
        return improvements

    @staticmethod
    def base_price(project_type: str, industry: Optional[str] = None) -> float:
        price = PROJECT_TYPE_BASE_PRICES.get(project_type.lower(), DEFAULT_BASE_PRICE)
        if industry and industry.lower() in REGULATED_INDUSTRIES:
            price *= REGULATED_INDUSTRY_MULTIPLIER
        return price

    @classmethod
    def analyze_pricing(
        cls,
        project_type: str,
        budget_range: Optional[float] = None,
        industry: Optional[str] = None,
    ) -> PricingAnalysis:
        base = cls.base_price(project_type, industry)
        return PricingAnalysis(
            suggested_price=round(budget_range or base, 2),
            price_range=PriceRange(
                min=round(base * PRICE_RANGE_MIN_FACTOR, 2),
                max=round(base * PRICE_RANGE_MAX_FACTOR, 2),
            ),
            market_comparison="Competitive with industry standards",
        )

    def ab_test_recommendations(
        self, completed_tests: Sequence[ABTestRecord] = ()
    ) -> List[ABTestRecommendation]:
        recommendations: List[ABTestRecommendation] = []
        if self._ab_test_history:
            for test in completed_tests:
                results = test.results
                if (
                    results is None
                    or results.winner not in ("a", "b")
                    or results.statistical_significance <= AB_TEST_SIGNIFICANCE_THRESHOLD
                ):
                    continue
                winner_id = test.template_a_id if results.winner == "a" else test.template_b_id
                recommendations.append(
                    ABTestRecommendation(
                        test_name="Roll out winning template",
                        variants=[f"{test.name or 'A/B test'}: template {winner_id}"],
                        success_metrics=["Conversion rate"],
                    )
                )
        recommendations.extend(r.model_copy(deep=True) for r in _AB_TEST_CATALOGUE)
        return recommendations

    # ------------------------------------------------------------------
    # Drafting
    # ------------------------------------------------------------------

    @staticmethod
    def draft_proposal(
        client_name: str,
        project_type: str,
        budget_range: Optional[float] = None,
        requirements: Optional[str] = None,
    ) -> ProposalDraft:
        """Assemble a five-section proposal skeleton with a price breakdown."""
        kind = project_type.lower()
        focus = requirements or (
            "delivering high-quality solutions tailored to your specific needs"
        )
        sections = [
            ProposalSection(
                name="Executive Summary",
                content=(
                    f"We are excited to present this comprehensive {kind} proposal "
                    f"for {client_name}. Our team brings extensive experience and "
                    "proven methodologies to deliver exceptional results that align "
                    "with your business objectives."
                ),
            ),
            ProposalSection(
                name="Project Overview",
                content=(
                    f"This {kind} project will focus on {focus}. We will work "
                    "closely with your team to ensure seamless integration and "
                    "optimal outcomes."
                ),
            ),
            ProposalSection(
                name="Scope of Work",
                content="\n".join(
                    [
                        "Our comprehensive approach includes:",
                        "• Initial consultation and requirements gathering",
                        "• Strategic planning and design phase",
                        "• Implementation and development",
                        "• Testing and quality assurance",
                        "• Deployment and go-live support",
                        "• Post-launch maintenance and support",
                    ]
                ),
            ),
            ProposalSection(
                name="Timeline",
                content="\n".join(
                    [
                        "We propose a phased approach to ensure quality delivery:",
                        "• Phase 1: Discovery and Planning (2 weeks)",
                        "• Phase 2: Design and Development (4-6 weeks)",
                        "• Phase 3: Testing and Refinement (1-2 weeks)",
                        "• Phase 4: Launch and Support (1 week)",
                        "",
                        "Total estimated timeline: 8-11 weeks",
                    ]
                ),
            ),
            ProposalSection(
                name="Investment",
                content=(
                    f"Our investment for this {kind} project is structured to "
                    "provide maximum value while ensuring transparent pricing. All "
                    "costs are outlined below with no hidden fees."
                ),
            ),
        ]

        amount = budget_range or DEFAULT_BASE_PRICE
        shares = PRICING_BREAKDOWNS.get(kind, DEFAULT_PRICING_BREAKDOWN)
        return ProposalDraft(
            title=f"{project_type} Proposal for {client_name}",
            sections=sections,
            pricing=ProposalPricing(
                suggested_amount=round(amount, 2),
                breakdown=[
                    PricingLine(item=item, amount=round(amount * share, 2))
                    for item, share in shares
                ],
            ),
        )

    # ------------------------------------------------------------------
    # Inputs
    # ------------------------------------------------------------------

    async def _completed_ab_tests(self, workspace_id: UUID) -> List[ABTestRecord]:
        try:
            rows = await self._fetch_ab_tests(workspace_id)
        except DegradedInputError as exc:
            logger.warning("%s; using the static A/B catalogue", exc.detail)
            return []
        return rows

    async def _fetch_ab_tests(self, workspace_id: UUID) -> List[ABTestRecord]:
        try:
            rows = await self._store.get_by_filter(
                AB_TESTS_TABLE,
                {"workspace_id": workspace_id, "status": ABTestStatus.completed.value},
            )
            return [ABTestRecord.model_validate(row) for row in rows]
        except Exception as exc:
            raise DegradedInputError(
                f"A/B test history unavailable for workspace {workspace_id}"
            ) from exc
