"""
Tests for the module API client.
"""

import httpx
import pytest

from services.common.http_errors import ErrorCode, UpstreamError
from services.common.logging_config import request_id_var
from services.dashboard.services.api_client import ModuleAPIClient

BASE_URL = "http://modules.test/api/v1"


def client_for(transport, **kwargs) -> ModuleAPIClient:
    return ModuleAPIClient(BASE_URL, timeout=2.0, transport=transport, **kwargs)


class TestModuleAPIClient:
    async def test_get_returns_body(self, module_api):
        transport = module_api({"/invoices": {"success": True, "data": [{"status": "sent"}]}})

        async with client_for(transport) as client:
            body = await client.get("/invoices")

        assert body == {"success": True, "data": [{"status": "sent"}]}
        assert str(transport.calls[0].url) == f"{BASE_URL}/invoices"

    async def test_query_params(self, module_api):
        transport = module_api({"/opportunities": []})

        async with client_for(transport) as client:
            await client.get("/opportunities", params={"status": "open"})

        assert transport.calls[0].url.params["status"] == "open"

    async def test_forwards_caller_headers(self, module_api):
        transport = module_api({"/projects": []})
        headers = {"Authorization": "Bearer abc", "X-Organization-Id": "org-1"}

        async with client_for(transport, headers=headers) as client:
            await client.get("/projects")

        sent = transport.calls[0].headers
        assert sent["Authorization"] == "Bearer abc"
        assert sent["X-Organization-Id"] == "org-1"
        assert sent["Accept"] == "application/json"

    async def test_propagates_request_id(self, module_api):
        transport = module_api({"/projects": []})
        token = request_id_var.set("req-77")
        try:
            async with client_for(transport) as client:
                await client.get("/projects")
        finally:
            request_id_var.reset(token)

        assert transport.calls[0].headers["X-Request-Id"] == "req-77"

    async def test_non_success_status(self, module_api):
        transport = module_api({"/payments": httpx.Response(503, text="down")})

        async with client_for(transport) as client:
            with pytest.raises(UpstreamError) as exc_info:
                await client.get("/payments")

        error = exc_info.value
        assert error.status_code == 502
        assert error.error_code == ErrorCode.UPSTREAM_ERROR
        assert error.details["endpoint"] == "/payments"
        assert error.details["upstream_status"] == 503

    async def test_unknown_endpoint(self, module_api):
        async with client_for(module_api({})) as client:
            with pytest.raises(UpstreamError) as exc_info:
                await client.get("/hr/employees")

        assert exc_info.value.details["upstream_status"] == 404

    async def test_timeout(self, module_api):
        def slow(request):
            raise httpx.ReadTimeout("took too long", request=request)

        async with client_for(module_api({"/inventory/stats": slow})) as client:
            with pytest.raises(UpstreamError) as exc_info:
                await client.get("/inventory/stats")

        assert "Timed out" in exc_info.value.message

    async def test_connection_error(self, module_api):
        def refused(request):
            raise httpx.ConnectError("connection refused", request=request)

        async with client_for(module_api({"/invoices": refused})) as client:
            with pytest.raises(UpstreamError):
                await client.get("/invoices")

    async def test_non_json_body(self, module_api):
        transport = module_api({"/invoices": httpx.Response(200, text="<html>")})

        async with client_for(transport) as client:
            with pytest.raises(UpstreamError) as exc_info:
                await client.get("/invoices")

        assert exc_info.value.message == "/invoices returned a non-JSON body"

    async def test_failure_envelope(self, module_api):
        transport = module_api({"/invoices": {"success": False, "error": "nope"}})

        async with client_for(transport) as client:
            with pytest.raises(UpstreamError):
                await client.get("/invoices")

    async def test_requires_context_manager(self):
        client = ModuleAPIClient(BASE_URL)

        with pytest.raises(RuntimeError):
            await client.get("/invoices")
