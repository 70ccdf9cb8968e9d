"""
Shared structlog setup for the Perfex services.

Every log line carries the service name plus, inside a request, the
request, user and organization IDs taken from the gateway headers.
Production output is JSON; ``LOG_FORMAT=text`` switches to a compact
single-line format for local development.

Usage:
    from services.common.logging_config import setup_service_logging

    setup_service_logging(service_name="contacts", log_level="INFO", log_format="json")
"""

import logging
import sys
import time
import uuid
from contextvars import ContextVar
from typing import Any, Callable, Dict, Optional

import structlog
from fastapi import Request, Response

# Per-request identity, set by the request logging middleware
request_id_var: ContextVar[str] = ContextVar("request_id", default="uninitialized")
user_id_var: ContextVar[str] = ContextVar("user_id", default="anonymous")
organization_id_var: ContextVar[str] = ContextVar("organization_id", default="")

NOISY_LOGGERS = ("httpx", "httpcore", "aiosqlite")


def add_request_context(
    logger: structlog.types.WrappedLogger,
    method_name: str,
    event_dict: structlog.types.EventDict,
) -> structlog.types.EventDict:
    """Copy the current request identity into the event."""
    request_id = request_id_var.get()
    if request_id != "uninitialized":
        event_dict["request_id"] = request_id
    user_id = user_id_var.get()
    if user_id != "anonymous":
        event_dict["user_id"] = user_id
    organization_id = organization_id_var.get()
    if organization_id:
        event_dict.setdefault("organization_id", organization_id)
    return event_dict


def add_service_context(
    logger: structlog.types.WrappedLogger,
    method_name: str,
    event_dict: structlog.types.EventDict,
) -> structlog.types.EventDict:
    """Derive ``service`` from loggers named ``services.<service>.*``."""
    parts = event_dict.get("logger", "").split(".")
    if len(parts) >= 2 and parts[0] == "services":
        event_dict["service"] = parts[1]
    return event_dict


class PerfexTextRenderer:
    """
    Render an event as one line:

        <timestamp> [<service>] [<LEVEL>] [<rid>] <logger> - <event> | User: <id> | k=v, ...

    Only the last four characters of the request ID are shown. Non-scalar
    extras are cut to 150 characters.
    """

    _HEADER_KEYS = frozenset(
        {"timestamp", "level", "logger", "event", "service", "request_id", "user_id"}
    )

    def __init__(self, service_name: str):
        self.service_name = service_name

    def __call__(
        self,
        logger: structlog.types.WrappedLogger,
        method_name: str,
        event_dict: structlog.types.EventDict,
    ) -> str:
        request_id = event_dict.get("request_id", "")
        if request_id == "uninitialized":
            request_id = ""
        logger_name = event_dict.get("logger", "")
        message = str(event_dict.get("event", ""))
        if event_dict.get("user_id", "anonymous") != "anonymous":
            message += f" | User: {event_dict['user_id']}"

        parts = [
            event_dict.get("timestamp", ""),
            f"[{event_dict.get('service', self.service_name)}]",
            f"[{str(event_dict.get('level', 'info')).upper()}]",
            f"[{request_id[-4:]}]" if request_id else "",
            logger_name.removeprefix("services."),
            f"- {message}",
        ]

        extras = [
            f"{key}={self._short(value)}"
            for key, value in event_dict.items()
            if key not in self._HEADER_KEYS
        ]
        if extras:
            parts.append(f"| {', '.join(extras)}")
        return " ".join(part for part in parts if part)

    @staticmethod
    def _short(value: Any) -> str:
        if isinstance(value, (str, int, float, bool)):
            return str(value)
        return str(value)[:150]


def setup_service_logging(
    service_name: str,
    log_level: str = "INFO",
    log_format: str = "json",
) -> None:
    """
    Configure structlog and the root stdlib logger for a service.

    Args:
        service_name: Name of the service (e.g., "contacts")
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_format: "json" or "text"
    """
    renderer: Any = (
        structlog.processors.JSONRenderer()
        if log_format == "json"
        else PerfexTextRenderer(service_name)
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            add_request_context,
            add_service_context,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter("%(message)s"))
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        handlers=[handler],
        force=True,
    )
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    get_logger(__name__).info(
        f"Logging configured for {service_name}",
        log_level=log_level,
        log_format=log_format,
    )


def create_request_logging_middleware() -> Callable:
    """
    Build the FastAPI ``http`` middleware that binds request identity and
    logs each request with its status and duration.

    The request ID comes from ``X-Request-Id`` or is generated, and is echoed
    on the response.
    """

    async def log_requests(request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-Id") or str(uuid.uuid4())
        request_id_var.set(request_id)
        user_id_var.set(request.headers.get("X-User-Id") or "anonymous")
        organization_id_var.set(request.headers.get("X-Organization-Id") or "")

        logger = get_logger("http.requests")
        logger.info(
            f"→ {request.method} {request.url.path}",
            method=request.method,
            query_params=str(request.query_params) if request.query_params else None,
            client_ip=request.client.host if request.client else "unknown",
        )

        started = time.perf_counter()
        response = await call_next(request)
        elapsed = time.perf_counter() - started

        logger.log(
            _level_for_status(response.status_code),
            f"{request.method} {request.url.path} → "
            f"{response.status_code} ({elapsed:.3f}s)",
            status_code=response.status_code,
            process_time=elapsed,
        )

        response.headers["X-Request-Id"] = request_id
        return response

    return log_requests


def _level_for_status(status_code: int) -> int:
    if status_code >= 500:
        return logging.ERROR
    if status_code >= 400:
        return logging.WARNING
    return logging.INFO


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def log_service_startup(service_name: str, **kwargs: Any) -> None:
    get_logger("startup").info(f"Starting {service_name}", service=service_name, **kwargs)


def log_service_shutdown(service_name: str) -> None:
    get_logger(__name__).info(f"Service {service_name} shutting down")


def log_http_error(
    error_type: str,
    message: str,
    status_code: int,
    request_id: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
    **kwargs: Any,
) -> None:
    """Log an HTTP error at ERROR for 5xx, WARNING for 4xx, else INFO."""
    context: Dict[str, Any] = {"error_type": error_type, "status_code": status_code, **kwargs}
    if request_id:
        context["request_id"] = request_id
    if details:
        context["details"] = details

    get_logger(__name__).log(
        _level_for_status(status_code),
        f"HTTP {status_code} {error_type}: {message}",
        **context,
    )
