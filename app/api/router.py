from fastapi import APIRouter

from app.api.routes import (
    health,
    hospitality,
    hospitality_assignments,
    legacy,
    markup_rules,
    public,
)

api_router = APIRouter()
api_router.include_router(health.router, tags=["health"])
api_router.include_router(public.router, prefix="/public", tags=["public"])
api_router.include_router(markup_rules.router, prefix="/admin/markup-rules", tags=["admin", "markup"])
api_router.include_router(hospitality.router, prefix="/admin/hospitalities", tags=["admin", "hospitality"])
api_router.include_router(
    hospitality_assignments.router,
    prefix="/admin/hospitality-assignments",
    tags=["admin", "hospitality"],
)
api_router.include_router(legacy.router, prefix="/admin/legacy", tags=["admin", "legacy"])
