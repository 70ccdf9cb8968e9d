"""
HTTP client for the Perfex module APIs.

The dashboard reads every module through this client, forwarding the
caller's credentials so each module applies its own tenant scoping.
"""

import types
from typing import Any, Dict, Mapping, Optional, Type

import httpx

from services.common.http_errors import UpstreamError
from services.common.logging_config import get_logger, request_id_var

logger = get_logger(__name__)


class ModuleAPIClient:
    """Read-only client for module endpoints under a common API root."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        headers: Optional[Mapping[str, str]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the module API client.

        Args:
            base_url: API root, e.g. ``http://localhost:8787/api/v1``
            timeout: Per-request timeout in seconds
            headers: Caller headers to forward (Authorization, X-Organization-Id)
            transport: Optional transport override, used by tests
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = httpx.Timeout(timeout)
        self.headers = dict(headers or {})
        self.transport = transport
        self.http_client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self) -> "ModuleAPIClient":
        """Async context manager entry."""
        self.http_client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            headers=self._get_default_headers(),
            transport=self.transport,
        )
        return self

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Optional[types.TracebackType],
    ) -> None:
        """Async context manager exit."""
        if self.http_client:
            await self.http_client.aclose()
            self.http_client = None

    def _get_default_headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}

        # Propagate request ID for distributed tracing
        request_id = request_id_var.get()
        if request_id and request_id != "uninitialized":
            headers["X-Request-Id"] = request_id

        headers.update(self.headers)
        return headers

    async def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """
        GET a module endpoint and return its decoded JSON body.

        Raises:
            UpstreamError: On transport failure, timeout, a non-2xx status,
                a body that is not JSON, or an envelope with ``success: false``
        """
        if self.http_client is None:
            raise RuntimeError("ModuleAPIClient must be used as an async context manager")

        try:
            response = await self.http_client.get(path, params=params)
        except httpx.TimeoutException as e:
            logger.warning(f"Timeout calling {path}")
            raise UpstreamError(f"Timed out calling {path}", endpoint=path) from e
        except httpx.HTTPError as e:
            logger.warning(f"Error calling {path}: {e}")
            raise UpstreamError(f"Error calling {path}", endpoint=path) from e

        if not response.is_success:
            logger.warning(
                f"{path} returned {response.status_code}",
                upstream_status=response.status_code,
            )
            raise UpstreamError(
                f"{path} returned {response.status_code}",
                endpoint=path,
                upstream_status=response.status_code,
            )

        try:
            body = response.json()
        except ValueError as e:
            raise UpstreamError(
                f"{path} returned a non-JSON body",
                endpoint=path,
                upstream_status=response.status_code,
            ) from e

        if isinstance(body, dict) and body.get("success") is False:
            raise UpstreamError(
                f"{path} reported failure",
                endpoint=path,
                upstream_status=response.status_code,
            )
        return body
