from typing import Any, Callable, Dict

import httpx
import pytest

from services.dashboard import settings as dashboard_settings

API_PREFIX = "/api/v1"


@pytest.fixture(autouse=True)
def reset_settings(monkeypatch):
    """Give every test a fresh settings object."""
    monkeypatch.setattr(dashboard_settings, "_settings", None)
    yield


@pytest.fixture
def module_routes() -> Dict[str, Any]:
    """Healthy responses for every module endpoint the dashboard reads."""

    def open_opportunities(request: httpx.Request) -> httpx.Response:
        if request.url.params.get("status") != "open":
            return httpx.Response(200, json={"success": True, "data": []})
        return httpx.Response(
            200,
            json={"data": {"data": [{"value": 5000}, {"value": 2500.25}]}},
        )

    return {
        "/invoices": {
            "success": True,
            "data": [{"status": "sent"}, {"status": "paid"}, {"status": "sent"}],
        },
        "/payments": {
            "success": True,
            "data": [{"amount": 1000}, {"amount": "234.5"}, {"amount": None}, "garbage"],
        },
        "/companies": [
            {"status": "active"},
            {"status": "active"},
            {"status": "inactive"},
        ],
        "/opportunities": open_opportunities,
        "/projects": {
            "success": True,
            "data": [
                {"status": "active"},
                {"status": "completed"},
                {"status": "active"},
                {"status": "planning"},
            ],
        },
        "/inventory/stats": {
            "success": True,
            "data": {"totalItems": 42, "totalValue": 9876.5},
        },
        "/hr/employees": {
            "success": True,
            "data": [
                {"status": "active"},
                {"status": "terminated"},
                {"status": "active"},
                {"status": "active"},
            ],
        },
        "/sales/orders/stats": {
            "success": True,
            "data": {"totalOrders": 17, "totalRevenue": "1500"},
        },
        "/manufacturing/boms/stats": {
            "success": True,
            "data": {"totalWorkOrders": 8, "inProgressOrders": 3},
        },
        "/assets/assets/stats": {
            "success": True,
            "data": {"totalAssets": 5, "totalValue": 120000},
        },
        "/notifications/unread-count": {"success": True, "data": {"count": 4}},
    }


@pytest.fixture
def module_api() -> Callable[[Dict[str, Any]], httpx.MockTransport]:
    """
    Build a mock transport serving module endpoints.

    A route maps a path (without the API prefix) to a JSON body, an
    ``httpx.Response``, or a callable taking the request. Unknown paths
    return 404. Every request is recorded on ``transport.calls``.
    """

    def build(routes: Dict[str, Any]) -> httpx.MockTransport:
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            path = request.url.path
            if path.startswith(API_PREFIX):
                path = path[len(API_PREFIX) :]
            route = routes.get(path)
            if route is None:
                return httpx.Response(404, json={"success": False, "error": "Not found"})
            if callable(route):
                return route(request)
            if isinstance(route, httpx.Response):
                return route
            return httpx.Response(200, json=route)

        transport = httpx.MockTransport(handler)
        transport.calls = calls  # type: ignore[attr-defined]
        return transport

    return build
