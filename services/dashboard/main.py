from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, AsyncGenerator, Dict

from fastapi import FastAPI

from services.common.http_errors import register_exception_handlers
from services.common.logging_config import (
    create_request_logging_middleware,
    get_logger,
    log_service_shutdown,
    log_service_startup,
    setup_service_logging,
)
from services.dashboard.routers.dashboard import router as dashboard_router
from services.dashboard.settings import get_settings

# Set up centralized logging - will be initialized in lifespan
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    settings = get_settings()

    setup_service_logging(
        service_name="dashboard",
        log_level=settings.LOG_LEVEL,
        log_format=settings.LOG_FORMAT,
    )

    log_service_startup(
        "dashboard",
        app_name=settings.APP_NAME,
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
        api_base_url=settings.api_base_url,
        request_timeout_seconds=settings.request_timeout_seconds,
    )
    yield
    log_service_shutdown("dashboard")


app = FastAPI(
    title="Perfex Dashboard Service",
    description="Aggregated statistics across Perfex modules",
    version="0.1.0",
    openapi_tags=[
        {
            "name": "dashboard",
            "description": "Finance, CRM, projects, operations and HR headline figures",
        },
    ],
    debug=False,
    lifespan=lifespan,
)

# Add centralized request logging middleware
app.middleware("http")(create_request_logging_middleware())

register_exception_handlers(app)

app.include_router(dashboard_router, prefix="/api/v1")


@app.get("/health")
async def health_check() -> Dict[str, Any]:
    """Health check endpoint for load balancers and monitoring."""
    settings = get_settings()
    return {
        "status": "ok",
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
