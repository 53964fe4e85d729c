from fastapi import APIRouter

from app.assetflow.core.config import settings
from app.assetflow.routers.assets import router as assets_router
from app.assetflow.routers.health import router as health_router
from app.assetflow.routers.metrics import router as metrics_router
from app.assetflow.routers.movements import router as movements_router
from app.assetflow.routers.stores import router as stores_router
from app.assetflow.routers.terms import router as terms_router

api_router = APIRouter()
api_router.include_router(health_router)
api_router.include_router(assets_router, tags=["assets"])
api_router.include_router(stores_router, tags=["stores"])
api_router.include_router(movements_router, tags=["movements"])
api_router.include_router(terms_router, tags=["responsibility-terms"])
if settings.METRICS_ENABLED:
    api_router.include_router(metrics_router, tags=["ops"])
