from fastapi import APIRouter

# Aggregate all v1 routers here
from .routers import ai, assets, dashboard, health, portal, producer_settings, projects, quotes, suppliers, tracking

api_router = APIRouter()
api_router.include_router(health.router)
api_router.include_router(projects.router)
api_router.include_router(assets.router)
api_router.include_router(suppliers.router)
api_router.include_router(quotes.router)
api_router.include_router(portal.router)
api_router.include_router(ai.router)
api_router.include_router(producer_settings.router)
api_router.include_router(dashboard.router)
api_router.include_router(tracking.router)

__all__ = ["api_router"]
