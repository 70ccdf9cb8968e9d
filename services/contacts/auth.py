"""
Authentication and permissions for the Contacts Service.

Callers reach the service through the API gateway (``X-User-Id`` and
``X-Organization-Id`` headers) or directly with a Bearer token; both yield a
``TenantContext`` scoping every query to the caller's organization.
"""

from services.common.tenant_auth import TenantContext, make_permission_required
from services.contacts.settings import get_settings


def permission_required(permission: str):
    """Dependency requiring ``permission`` (e.g. ``crm:contacts:read``)."""
    return make_permission_required(permission, get_settings)


require_contacts_read = permission_required("crm:contacts:read")
require_contacts_create = permission_required("crm:contacts:create")
require_contacts_update = permission_required("crm:contacts:update")
require_contacts_delete = permission_required("crm:contacts:delete")

__all__ = [
    "TenantContext",
    "permission_required",
    "require_contacts_read",
    "require_contacts_create",
    "require_contacts_update",
    "require_contacts_delete",
]
