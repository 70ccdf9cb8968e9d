"""
Tenant authentication and permission checks shared by Perfex services.

A request is authenticated either by gateway headers (``X-User-Id`` plus
``X-Organization-Id``) or by a Bearer JWT carrying ``sub`` and an
organization claim. Both paths resolve to a ``TenantContext`` that routes
use to scope every query by organization.

Permissions are ``module:resource:action`` strings; a held permission may
use ``*`` for any trailing segment (``crm:contacts:*``, ``crm:*``, ``*``).
"""

from typing import Any, Callable, Dict, List, Optional

import jwt
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel, Field

from services.common.http_errors import AuthError, ErrorCode
from services.common.logging_config import get_logger, organization_id_var, user_id_var

logger = get_logger(__name__)

security = HTTPBearer(auto_error=False)

ADMIN_ROLE = "admin"


class TenantContext(BaseModel):
    """Authenticated caller and the organization every query is scoped to."""

    user_id: str
    organization_id: str
    permissions: List[str] = Field(default_factory=list)
    role: Optional[str] = None


def _split_permissions(raw: Optional[str]) -> List[str]:
    if not raw:
        return []
    return [perm.strip() for perm in raw.split(",") if perm.strip()]


def permission_matches(held: str, required: str) -> bool:
    """
    Check a single held permission against a required one.

    >>> permission_matches("crm:contacts:*", "crm:contacts:read")
    True
    >>> permission_matches("crm:companies:read", "crm:contacts:read")
    False
    """
    if held == "*" or held == required:
        return True
    held_parts = held.split(":")
    required_parts = required.split(":")
    for index, part in enumerate(held_parts):
        if part == "*":
            return True
        if index >= len(required_parts) or part != required_parts[index]:
            return False
    return len(held_parts) == len(required_parts)


def has_permission(context: TenantContext, required: str) -> bool:
    if context.role == ADMIN_ROLE:
        return True
    return any(permission_matches(held, required) for held in context.permissions)


def make_verify_jwt_token(
    get_settings: Callable[[], Any],
) -> Callable[[str], Dict[str, Any]]:
    """
    Create a JWT verification function bound to the service's settings.

    Args:
        get_settings: Function that returns the service's settings object

    Returns:
        Function that decodes and validates a token, raising AuthError
    """

    def verify_jwt_token(token: str) -> Dict[str, Any]:
        settings = get_settings()
        verify_signature = getattr(settings, "jwt_verify_signature", True)
        secret = getattr(settings, "jwt_secret_key", None)
        algorithm = getattr(settings, "jwt_algorithm", "HS256")
        issuer = getattr(settings, "jwt_issuer", None)
        audience = getattr(settings, "jwt_audience", None)

        if verify_signature and not secret:
            logger.error("JWT verification configuration error: no secret key")
            raise AuthError("JWT verification configuration error")

        try:
            claims = jwt.decode(
                token,
                key=secret or "",
                algorithms=[algorithm],
                issuer=issuer,
                audience=audience,
                options={
                    "verify_signature": bool(verify_signature),
                    "verify_exp": True,
                    "verify_aud": bool(audience),
                    "verify_iss": bool(issuer),
                },
            )
        except jwt.ExpiredSignatureError:
            logger.warning("JWT token has expired")
            raise AuthError("Token has expired", code=ErrorCode.TOKEN_EXPIRED)
        except jwt.InvalidTokenError as e:
            logger.warning(f"Invalid JWT token: {e}")
            raise AuthError("Invalid token", code=ErrorCode.TOKEN_INVALID)

        if not claims.get("sub"):
            raise AuthError("Missing user ID in token", code=ErrorCode.TOKEN_INVALID)
        return claims

    return verify_jwt_token


def tenant_from_claims(claims: Dict[str, Any]) -> TenantContext:
    """Build a tenant context from decoded token claims."""
    organization_id = claims.get("org_id") or claims.get("organization_id")
    if not organization_id:
        raise AuthError("Missing organization in token", code=ErrorCode.TOKEN_INVALID)

    permissions = claims.get("permissions") or []
    if isinstance(permissions, str):
        permissions = _split_permissions(permissions)

    return TenantContext(
        user_id=str(claims["sub"]),
        organization_id=str(organization_id),
        permissions=[str(perm) for perm in permissions],
        role=claims.get("role"),
    )


def tenant_from_gateway_headers(request: Request) -> Optional[TenantContext]:
    """
    Read the tenant context injected by the API gateway.

    Returns None when the request did not come through the gateway.
    """
    user_id = request.headers.get("X-User-Id")
    if not user_id:
        return None

    organization_id = request.headers.get("X-Organization-Id")
    if not organization_id:
        logger.warning("Gateway request without organization", user_id=user_id)
        raise AuthError("Organization context required")

    return TenantContext(
        user_id=user_id,
        organization_id=organization_id,
        permissions=_split_permissions(request.headers.get("X-User-Permissions")),
        role=request.headers.get("X-User-Role"),
    )


def make_get_tenant_context(
    get_settings: Callable[[], Any],
) -> Callable[..., Any]:
    """
    Create a FastAPI dependency resolving the caller's ``TenantContext``.

    Gateway headers win; otherwise a Bearer token is required.
    """
    verify_jwt_token = make_verify_jwt_token(get_settings)

    async def get_tenant_context(
        request: Request,
        credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    ) -> TenantContext:
        context = tenant_from_gateway_headers(request)
        if context is None:
            if not credentials:
                logger.warning("No authentication credentials provided")
                raise AuthError("Authentication required")
            context = tenant_from_claims(verify_jwt_token(credentials.credentials))

        user_id_var.set(context.user_id)
        organization_id_var.set(context.organization_id)
        request.state.tenant = context
        return context

    return get_tenant_context


def make_permission_required(
    permission: str,
    get_settings: Callable[[], Any],
) -> Callable[..., Any]:
    """
    Create a dependency that authenticates the caller and checks a permission.

    When ``enforce_permissions`` is off every authenticated caller holds every
    permission.

    Args:
        permission: Required permission, e.g. ``crm:contacts:read``
        get_settings: Function that returns the service's settings object

    Returns:
        FastAPI dependency returning the caller's TenantContext
    """
    get_tenant_context = make_get_tenant_context(get_settings)

    async def dependency(
        context: TenantContext = Depends(get_tenant_context),
    ) -> TenantContext:
        if not getattr(get_settings(), "enforce_permissions", True):
            return context
        if not has_permission(context, permission):
            logger.warning(
                f"Permission denied: {context.user_id} lacks {permission}",
                required_permission=permission,
                role=context.role,
            )
            raise AuthError(
                message=f"Insufficient permissions. Required: {permission}",
                code=ErrorCode.INSUFFICIENT_PERMISSIONS,
                status_code=403,
            )
        return context

    return dependency
