"""
Dashboard API endpoint.

Aggregates module statistics for the caller's organization. The caller's
credentials are forwarded to every module so each applies its own access
rules.
"""

from typing import Any, AsyncGenerator, Dict, Optional

import httpx
from fastapi import APIRouter, Depends, Request

from services.common.logging_config import get_logger
from services.common.tenant_auth import TenantContext
from services.dashboard.auth import require_dashboard_read
from services.dashboard.services.api_client import ModuleAPIClient
from services.dashboard.services.dashboard_service import DashboardService
from services.dashboard.settings import get_settings

logger = get_logger(__name__)

router = APIRouter(prefix="/dashboard", tags=["dashboard"])

FORWARDED_HEADERS = ("Authorization", "X-User-Permissions", "X-User-Role")


def get_module_transport() -> Optional[httpx.AsyncBaseTransport]:
    """Transport for module API calls; None uses the default network transport."""
    return None


def forwarded_headers(request: Request, tenant: TenantContext) -> Dict[str, str]:
    headers = {
        "X-User-Id": tenant.user_id,
        "X-Organization-Id": tenant.organization_id,
    }
    for name in FORWARDED_HEADERS:
        value = request.headers.get(name)
        if value:
            headers[name] = value
    return headers


async def get_dashboard_service(
    request: Request,
    tenant: TenantContext = Depends(require_dashboard_read),
    transport: Optional[httpx.AsyncBaseTransport] = Depends(get_module_transport),
) -> AsyncGenerator[DashboardService, None]:
    """Dashboard service bound to a module client carrying the caller's identity."""
    settings = get_settings()
    async with ModuleAPIClient(
        base_url=settings.api_base_url,
        timeout=settings.request_timeout_seconds,
        headers=forwarded_headers(request, tenant),
        transport=transport,
    ) as client:
        yield DashboardService(
            client,
            currency=settings.dashboard_currency,
            locale=settings.dashboard_locale,
        )


@router.get("")
async def get_dashboard(
    dashboard_service: DashboardService = Depends(get_dashboard_service),
) -> Dict[str, Any]:
    """Statistics and rendered cards for every dashboard section."""
    summary = await dashboard_service.get_dashboard()
    return {
        "success": True,
        "data": summary.model_dump(mode="json", by_alias=True),
    }
