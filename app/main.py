from fastapi import FastAPI

from app.assetflow.api import api_router
from app.assetflow.core.config import settings
from app.assetflow.core.errors import setup_exception_handlers
from app.assetflow.core.logging import configure_logging
from app.assetflow.middleware.observability import ObservabilityMiddleware
from app.assetflow.middleware.trace import TraceIdMiddleware


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(title="Assetflow", summary=f"{settings.APP_NAME}: IT asset movements and custody")
    app.add_middleware(TraceIdMiddleware)
    app.add_middleware(ObservabilityMiddleware)
    setup_exception_handlers(app)
    app.include_router(api_router)
    return app


app = create_app()
