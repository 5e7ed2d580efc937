from __future__ import annotations

from fastapi import APIRouter

from src.api.admin import router as admin_router
from src.api.analytics import router as analytics_router
from src.api.billing import router as billing_router
from src.api.deals import router as deals_router
from src.api.health import router as health_router
from src.api.leaderboard import router as leaderboard_router
from src.api.projections import router as projections_router
from src.api.targets import router as targets_router
from src.api.teams import router as teams_router


api_router = APIRouter()
api_router.include_router(health_router)
api_router.include_router(admin_router)
api_router.include_router(teams_router)
api_router.include_router(deals_router)
api_router.include_router(billing_router)
api_router.include_router(leaderboard_router)
api_router.include_router(analytics_router)
api_router.include_router(targets_router)
api_router.include_router(projections_router)
