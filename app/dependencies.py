import logging
from typing import AsyncGenerator, Optional
from uuid import UUID

from fastapi import Depends, Header
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.cache import CacheService
from app.core.config import settings
from app.core.database import AsyncSessionLocal, get_db
from app.repositories.record_store import RecordStore, SQLAlchemyRecordStore
from app.services.event_tracker import EventTracker
from app.services.invoice_automation import InvoiceAutomationService
from app.services.lead_scoring import LeadScoringEngine
from app.services.project_risk import ProjectRiskAnalyzer
from app.services.proposal_optimization import ProposalOptimizer

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Workspace scoping
# ---------------------------------------------------------------------------


async def get_workspace_id(
    x_workspace_id: UUID = Header(..., alias="X-Workspace-ID"),
) -> UUID:
    """Workspace every read and write of the request is scoped to."""
    return x_workspace_id


# ---------------------------------------------------------------------------
# Redis client factory
# ---------------------------------------------------------------------------


async def get_redis_client() -> Optional[Redis]:
    """Get an async Redis client instance using connection pooling."""
    try:
        client = Redis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
        )
        await client.ping()
        return client
    except Exception:
        logger.warning("Redis unavailable – caching disabled for this request")
        return None


async def get_cache_service(
    redis_client: Optional[Redis] = Depends(get_redis_client),
) -> CacheService:
    """Build a :class:`CacheService` backed by the shared Redis client."""
    return CacheService(redis_client=redis_client)


# ---------------------------------------------------------------------------
# Record store and event tracker
# ---------------------------------------------------------------------------


async def get_record_store(
    db: AsyncSession = Depends(get_db),
) -> RecordStore:
    return SQLAlchemyRecordStore(db)


async def get_event_tracker() -> AsyncGenerator[EventTracker, None]:
    """Yield a tracker bound to its own autocommitting session.

    A failed event insert is rolled back on that session only, so the
    request transaction (and any score write-back) is never affected.
    """
    async with AsyncSessionLocal() as session:
        yield EventTracker(store=SQLAlchemyRecordStore(session, autocommit=True))


# ---------------------------------------------------------------------------
# Service factory functions
# ---------------------------------------------------------------------------


async def get_scoring_engine(
    store: RecordStore = Depends(get_record_store),
    cache: CacheService = Depends(get_cache_service),
    tracker: EventTracker = Depends(get_event_tracker),
) -> LeadScoringEngine:
    return LeadScoringEngine(store=store, cache=cache, tracker=tracker)


async def get_risk_analyzer(
    store: RecordStore = Depends(get_record_store),
    tracker: EventTracker = Depends(get_event_tracker),
) -> ProjectRiskAnalyzer:
    return ProjectRiskAnalyzer(store=store, tracker=tracker)


async def get_proposal_optimizer(
    store: RecordStore = Depends(get_record_store),
    tracker: EventTracker = Depends(get_event_tracker),
) -> ProposalOptimizer:
    return ProposalOptimizer(store=store, tracker=tracker)


async def get_invoice_automation_service(
    store: RecordStore = Depends(get_record_store),
    tracker: EventTracker = Depends(get_event_tracker),
) -> InvoiceAutomationService:
    return InvoiceAutomationService(store=store, tracker=tracker)
