"""Top-level API router."""

from fastapi import APIRouter

from finplan.api.routes.dashboards import router as dashboards_router
from finplan.api.routes.health import router as health_router
from finplan.api.routes.settings import router as settings_router
from finplan.api.routes.utilization import router as utilization_router
from finplan.api.routes.workbook import router as workbook_router

api_router = APIRouter()
api_router.include_router(health_router, tags=["health"])
api_router.include_router(settings_router)
api_router.include_router(workbook_router)
api_router.include_router(dashboards_router)
api_router.include_router(utilization_router)
