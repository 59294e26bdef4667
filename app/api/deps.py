"""API-layer dependency functions.

Re-exports all dependency factories from ``app.dependencies`` so that
endpoint modules only need to import from ``app.api.deps``.
"""

from app.dependencies import (
    # Scoping
    get_workspace_id,
    # Storage
    get_record_store,
    get_event_tracker,
    # Service factories
    get_scoring_engine,
    get_risk_analyzer,
    get_proposal_optimizer,
    get_invoice_automation_service,
    # Redis
    get_redis_client,
    get_cache_service,
)

__all__ = [
    "get_workspace_id",
    "get_record_store",
    "get_event_tracker",
    "get_scoring_engine",
    "get_risk_analyzer",
    "get_proposal_optimizer",
    "get_invoice_automation_service",
    "get_redis_client",
    "get_cache_service",
]
