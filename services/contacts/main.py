import time
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
from services.contacts.database import check_database, dispose_engine
from services.contacts.routers.contacts import router as contacts_router
from services.contacts.settings import get_settings

# Set up centralized logging - will be initialized in lifespan
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    # Startup event logic
    settings = get_settings()

    setup_service_logging(
        service_name="contacts",
        log_level=settings.LOG_LEVEL,
        log_format=settings.LOG_FORMAT,
    )

    log_service_startup(
        "contacts",
        app_name=settings.APP_NAME,
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
        debug=settings.DEBUG,
        enforce_permissions=settings.enforce_permissions,
    )
    yield
    # Shutdown event logic
    await dispose_engine()
    log_service_shutdown("contacts")


app = FastAPI(
    title="Perfex Contacts Service",
    description="CRM contact management for Perfex organizations",
    version="0.1.0",
    openapi_tags=[
        {
            "name": "contacts",
            "description": "Contact CRUD, filtering and company details",
        },
    ],
    debug=False,
    lifespan=lifespan,
)

# Add centralized request logging middleware
app.middleware("http")(create_request_logging_middleware())

register_exception_handlers(app)

app.include_router(contacts_router, prefix="/api/v1")


@app.get("/health")
async def health_check() -> Dict[str, Any]:
    """
    Health check endpoint for load balancers and monitoring.
    Checks database connectivity.
    """
    start_time = time.time()
    settings = get_settings()

    db_status = "ok"
    db_error = None
    try:
        await check_database()
    except Exception as e:
        logger.warning(f"Database health check failed: {e}")
        db_status = "error"
        db_error = str(e) if settings.DEBUG else "Database unavailable"

    return {
        "status": db_status,
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "checks": {"database": {"status": db_status, "error": db_error}},
        "performance": {
            "total_check_time_ms": round((time.time() - start_time) * 1000, 2)
        },
    }


@app.get("/ready")
async def ready_check() -> Dict[str, str]:
    """
    Simple readiness check.
    """
    settings = get_settings()
    return {
        "status": "ok",
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
