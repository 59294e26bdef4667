import json
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from app.core.exceptions import InvalidLeadDataError, LeadNotFoundError
from app.core.scoring_weights import ScoringWeights, normalize_source
from app.schemas.common import ActionPriority
from app.schemas.lead import CohortLead, LeadRecord
from app.services.lead_scoring import LeadScoringEngine, band_for_score
from app.services.event_tracker import EventTracker


def _lead(workspace_id, **fields) -> LeadRecord:
    data = {"name": "Test Lead", "workspace_id": workspace_id}
    data.update(fields)
    return LeadRecord(**data)


def _cohort(*rows) -> list:
    return [CohortLead(**row) for row in rows]


@pytest.fixture
def engine(store) -> LeadScoringEngine:
    return LeadScoringEngine(store=store)


class TestWorkedExamples:
    """The two reference leads at either end of the scale."""

    def test_cold_outreach_free_email_scores_35(self, engine, workspace_id):
        lead = _lead(
            workspace_id,
            email="a@gmail.com",
            company="",
            source="ColdOutreach",
            expected_value=5000,
            notes="",
        )

        result = engine.score(lead, [])

        assert result.final_score == 35
        assert result.next_actions.priority == ActionPriority.low
        assert result.demographic_score == 40
        assert result.firmographic_score == 0
        assert result.behavioral_score == 0
        assert result.engagement_score == 0
        assert result.factors == ["Personal email domain", "Cold outreach lead"]
        assert result.recommendations == [
            "Monitor for engagement signals",
            "Consider long-term nurture campaign",
            "Obtain phone number for better qualification",
            "Verify business email for higher credibility",
            "Request company information",
            "Nurture with valuable content",
        ]

    def test_strong_referral_lead_clamps_to_100(self, engine, workspace_id):
        lead = _lead(
            workspace_id,
            email="a@acme.com",
            company="Acme",
            source="Referral",
            expected_value=60000,
            notes="ready to move forward, urgent",
        )

        result = engine.score(lead, [])

        # 50 + 15 + 20 + 25 + 20 + 15 + 10 = 155 -> 100
        assert result.final_score == 100
        assert result.next_actions.priority == ActionPriority.immediate
        assert result.next_actions.actions == [
            "Call within 1 hour",
            "Send personalized email",
            "Connect on LinkedIn",
        ]
        assert result.next_actions.timeline == "Within 1 hour"
        assert result.demographic_score == 65
        assert result.engagement_score == 45
        assert result.factors == [
            "Professional email domain",
            "Company information provided",
            "High-quality referral source",
            "High-value opportunity",
            "Urgent timeline indicated",
            "Positive engagement signals",
        ]
        assert result.recommendations[:2] == [
            "High-priority lead - contact immediately",
            "Prepare detailed proposal with premium pricing",
        ]


class TestScoringRules:
    """Individual rule behaviour and bounds."""

    @pytest.mark.parametrize(
        "source,expected",
        [
            ("Referral", 75),
            ("LinkedIn", 65),
            ("Website Contact Form", 60),
            ("website_contact_form", 60),
            ("Cold Outreach", 45),
            ("Other", 50),
            (None, 50),
        ],
    )
    def test_source_points(self, engine, workspace_id, source, expected):
        lead = _lead(workspace_id, source=source, phone="+15550000000")
        assert engine.score(lead).final_score == expected

    @pytest.mark.parametrize(
        "value,points",
        [(None, 0), (10000, 0), (10001, 5), (25001, 10), (50001, 20)],
    )
    def test_value_tiers_are_exclusive_lower_bounds(
        self, engine, workspace_id, value, points
    ):
        lead = _lead(workspace_id, expected_value=value)
        assert engine.score(lead).engagement_score == points

    def test_keywords_match_case_insensitively(self, engine, workspace_id):
        lead = _lead(workspace_id, notes="We need this ASAP and are EXCITED")
        result = engine.score(lead)
        assert result.engagement_score == 25
        assert "Urgent timeline indicated" in result.factors
        assert "Positive engagement signals" in result.factors

    def test_each_keyword_group_counts_once(self, engine, workspace_id):
        lead = _lead(workspace_id, notes="urgent urgent asap deadline")
        assert engine.score(lead).engagement_score == 15

    def test_unparseable_email_scores_nothing(self, engine, workspace_id):
        lead = _lead(workspace_id, email="not-an-email")
        result = engine.score(lead)
        assert result.demographic_score == 50
        assert "Verify business email for higher credibility" not in result.recommendations

    def test_final_score_never_negative(self, workspace_id, store):
        harsh = ScoringWeights(free_email_points=-100)
        engine = LeadScoringEngine(store=store, weights=harsh)
        lead = _lead(workspace_id, email="x@gmail.com", source="Cold Outreach")
        result = engine.score(lead)
        assert result.final_score == 0
        assert result.next_actions.priority == ActionPriority.low

    def test_scoring_is_deterministic(self, engine, workspace_id):
        lead = _lead(
            workspace_id,
            email="ceo@northwind.com",
            company="Northwind",
            source="LinkedIn",
            expected_value=30000,
        )
        cohort = _cohort(
            {"status": "won", "source": "LinkedIn"},
            {"status": "lost", "source": "Referral", "expected_value": 80000},
        )
        first = engine.score(lead, cohort)
        second = engine.score(lead, cohort)
        assert first.model_dump_json() == second.model_dump_json()

    def test_duplicate_recommendations_removed(self, engine, workspace_id):
        # medium band already recommends qualifying budget
        lead = _lead(workspace_id, email="x@gmail.com", source="LinkedIn")
        result = engine.score(lead)
        assert result.final_score == 55
        assert result.recommendations.count("Qualify budget and timeline") == 1
        assert result.recommendations[:2] == [
            "Add to nurture sequence",
            "Qualify budget and timeline",
        ]


class TestBands:
    """Score band boundaries map to priorities."""

    @pytest.mark.parametrize(
        "score,priority",
        [
            (100, ActionPriority.immediate),
            (80, ActionPriority.immediate),
            (79, ActionPriority.high),
            (60, ActionPriority.high),
            (59, ActionPriority.medium),
            (40, ActionPriority.medium),
            (39, ActionPriority.low),
            (0, ActionPriority.low),
        ],
    )
    def test_band_boundaries(self, score, priority):
        assert band_for_score(score).priority == priority


class TestConfidence:
    """Confidence grows with cohort size and strong sub-scores."""

    def test_base_confidence_with_empty_cohort(self, engine, workspace_id):
        # demographic 50 > 30 is the only strong sub-score
        assert engine.score(_lead(workspace_id)).confidence == 0.75

    def test_large_cohort_bonus(self, engine, workspace_id):
        cohort = _cohort(*({"status": "lost"} for _ in range(51)))
        assert engine.score(_lead(workspace_id), cohort).confidence == 0.85

    def test_confidence_capped(self, store, workspace_id):
        # every sub-score above 30 needs richer firmographic and behavioral points
        weights = ScoringWeights(company_points=35, source_points={"referral": 35})
        engine = LeadScoringEngine(store=store, weights=weights)
        lead = _lead(
            workspace_id,
            email="a@acme.com",
            company="Acme",
            source="Referral",
            expected_value=60000,
            notes="urgent, approved",
        )
        cohort = _cohort(*({"status": "won"} for _ in range(60)))
        assert engine.score(lead, cohort).confidence == 0.95


class TestConversionRate:
    """Similar-lead conversion estimate from the cohort."""

    def test_empty_cohort_defaults_to_half(self, engine, workspace_id):
        assert engine.score(_lead(workspace_id)).conversion_rate == 0.5

    def test_high_conversion_recommendation(self, engine, workspace_id):
        lead = _lead(workspace_id, source="Referral", expected_value=90000)
        cohort = _cohort(
            {"status": "won", "source": "Referral"},
            {"status": "won", "source": "referral"},
            {"status": "won", "source": "Referral"},
            {"status": "lost", "source": "Referral"},
            {"status": "lost", "source": "LinkedIn", "expected_value": 10000},
        )
        result = engine.score(lead, cohort)
        assert result.conversion_rate == 0.75
        assert "Similar leads have high conversion rate" in result.recommendations

    def test_lead_without_company_matches_any_company(self, engine, workspace_id):
        lead = _lead(workspace_id, source="LinkedIn", expected_value=90000)
        cohort = _cohort(
            {"status": "won", "source": "Referral", "company": "Acme"},
            {"status": "lost", "source": "Referral"},
        )
        # only the lead with a company is similar
        assert engine.score(lead, cohort).conversion_rate == 1.0

    def test_company_substring_match(self, engine, workspace_id):
        lead = _lead(workspace_id, company="Acme", expected_value=90000)
        cohort = _cohort(
            {"status": "lost", "source": "Referral", "company": "Acme Holdings"},
        )
        assert engine.score(lead, cohort).conversion_rate == 0.0

    def test_missing_values_count_as_zero(self, engine, workspace_id):
        lead = _lead(workspace_id, source="Referral")
        cohort = _cohort({"status": "won", "source": "LinkedIn", "expected_value": 9999})
        assert engine.score(lead, cohort).conversion_rate == 1.0

    def test_cohort_truncated_to_limit(self, store, workspace_id):
        engine = LeadScoringEngine(store=store, cohort_limit=2)
        cohort = _cohort(
            {"status": "won", "source": "Referral"},
            {"status": "won", "source": "Referral"},
            {"status": "lost", "source": "Referral"},
        )
        result = engine.score(_lead(workspace_id, source="Referral"), cohort)
        assert result.conversion_rate == 1.0


class TestAnalyzeLead:
    """Fetch, score, persist and track through the record store."""

    def _seed_lead(self, store, workspace_id, **fields):
        data = {
            "workspace_id": workspace_id,
            "name": "Dana",
            "email": "dana@acme.com",
            "company": "Acme",
            "source": "Referral",
            "status": "new",
            "expected_value": 30000.0,
        }
        data.update(fields)
        return store.add("leads", **data)

    @pytest.mark.asyncio
    async def test_persists_score_and_tracks_event(self, store, tracker, workspace_id):
        lead = self._seed_lead(store, workspace_id)
        engine = LeadScoringEngine(store=store, tracker=tracker)

        result = await engine.analyze_lead(lead["id"], workspace_id)

        stored = await store.get_by_id("leads", lead["id"])
        assert stored["ai_score"] == result.final_score
        assert stored["ai_insights"]["confidence"] == result.confidence
        assert "final_score" not in stored["ai_insights"]
        assert stored["status"] == "new"

        events = store.tables["analytics_events"]
        assert len(events) == 1
        assert events[0]["event_type"] == "lead_ai_analysis"
        assert events[0]["entity_id"] == lead["id"]
        assert events[0]["session_id"] == "session_test"

    @pytest.mark.asyncio
    async def test_persist_false_leaves_lead_untouched(self, store, workspace_id):
        lead = self._seed_lead(store, workspace_id)
        engine = LeadScoringEngine(store=store)

        await engine.analyze_lead(lead["id"], workspace_id, persist=False)

        assert store.updates == []

    @pytest.mark.asyncio
    async def test_cohort_drawn_from_closed_leads_of_same_workspace(
        self, store, workspace_id, other_workspace_id
    ):
        lead = self._seed_lead(store, workspace_id, expected_value=90000.0)
        for _ in range(3):
            self._seed_lead(store, workspace_id, status="won")
        self._seed_lead(store, workspace_id, status="qualified")
        for _ in range(5):
            self._seed_lead(store, other_workspace_id, status="lost")
        engine = LeadScoringEngine(store=store)

        result = await engine.analyze_lead(lead["id"], workspace_id, persist=False)

        assert result.conversion_rate == 1.0

    @pytest.mark.asyncio
    async def test_lead_from_other_workspace_not_found(
        self, store, workspace_id, other_workspace_id
    ):
        lead = self._seed_lead(store, other_workspace_id)
        engine = LeadScoringEngine(store=store)

        with pytest.raises(LeadNotFoundError):
            await engine.analyze_lead(lead["id"], workspace_id)

    @pytest.mark.asyncio
    async def test_missing_lead_not_found(self, store, workspace_id):
        engine = LeadScoringEngine(store=store)
        with pytest.raises(LeadNotFoundError):
            await engine.analyze_lead(uuid4(), workspace_id)

    @pytest.mark.asyncio
    async def test_lead_without_name_is_invalid(self, store, workspace_id):
        lead = self._seed_lead(store, workspace_id, name="")
        engine = LeadScoringEngine(store=store)
        with pytest.raises(InvalidLeadDataError):
            await engine.analyze_lead(lead["id"], workspace_id)

    @pytest.mark.asyncio
    async def test_cohort_failure_degrades_to_empty_cohort(self, store, workspace_id):
        lead = self._seed_lead(store, workspace_id)
        store.get_by_filter = AsyncMock(side_effect=RuntimeError("db down"))
        engine = LeadScoringEngine(store=store)

        result = await engine.analyze_lead(lead["id"], workspace_id)

        assert result.conversion_rate == 0.5
        assert store.updates

    @pytest.mark.asyncio
    async def test_tracking_failure_does_not_change_result(self, store, workspace_id):
        lead = self._seed_lead(store, workspace_id)
        broken_store = AsyncMock()
        broken_store.insert = AsyncMock(side_effect=RuntimeError("insert failed"))
        engine = LeadScoringEngine(store=store, tracker=EventTracker(store=broken_store))
        baseline = LeadScoringEngine(store=store)

        result = await engine.analyze_lead(lead["id"], workspace_id, persist=False)
        expected = await baseline.analyze_lead(lead["id"], workspace_id, persist=False)

        assert result == expected


class TestCohortCache:
    """Redis-backed cohort cache with direct-fetch fallback."""

    @pytest.mark.asyncio
    async def test_cache_hit_skips_store(self, store, mock_cache, mock_redis, workspace_id):
        lead = store.add("leads", workspace_id=workspace_id, name="Kim", source="Referral")
        mock_redis.get = AsyncMock(
            return_value=json.dumps([{"status": "won", "source": "Referral"}])
        )
        store.get_by_filter = AsyncMock(return_value=[])
        engine = LeadScoringEngine(store=store, cache=mock_cache)

        result = await engine.analyze_lead(lead["id"], workspace_id, persist=False)

        store.get_by_filter.assert_not_awaited()
        assert result.conversion_rate == 1.0

    @pytest.mark.asyncio
    async def test_cache_miss_populates_cache(
        self, store, mock_cache, mock_redis, workspace_id
    ):
        lead = store.add("leads", workspace_id=workspace_id, name="Kim")
        store.add("leads", workspace_id=workspace_id, name="Old", status="won")
        engine = LeadScoringEngine(store=store, cache=mock_cache, cohort_cache_ttl=60)

        await engine.analyze_lead(lead["id"], workspace_id, persist=False)

        mock_redis.setex.assert_awaited_once()
        key, ttl, payload = mock_redis.setex.await_args.args
        assert key == f"lead_cohort:{workspace_id}"
        assert ttl == 60
        assert json.loads(payload)[0]["status"] == "won"

    @pytest.mark.asyncio
    async def test_redis_outage_falls_back_to_store(
        self, store, mock_cache, mock_redis, workspace_id
    ):
        lead = store.add("leads", workspace_id=workspace_id, name="Kim", source="LinkedIn")
        store.add("leads", workspace_id=workspace_id, name="Old", status="won", source="LinkedIn")
        mock_redis.get = AsyncMock(side_effect=ConnectionError("redis down"))
        mock_redis.setex = AsyncMock(side_effect=ConnectionError("redis down"))
        engine = LeadScoringEngine(store=store, cache=mock_cache)

        result = await engine.analyze_lead(lead["id"], workspace_id, persist=False)

        assert result.conversion_rate == 1.0


class TestNormalizeSource:
    @pytest.mark.parametrize(
        "raw", ["Website Contact Form", "website_contact_form", "WebsiteContactForm"]
    )
    def test_spellings_collapse(self, raw):
        assert normalize_source(raw) == "websitecontactform"
