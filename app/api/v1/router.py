from fastapi import APIRouter

from app.api.v1.endpoints import events, health, invoices, leads, projects, proposals

router = APIRouter(prefix="/api/v1")

router.include_router(leads.router)
router.include_router(projects.router)
router.include_router(proposals.router)
router.include_router(invoices.router)
router.include_router(events.router)
router.include_router(health.router)
