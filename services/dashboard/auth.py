"""
Authentication and permissions for the Dashboard Service.
"""

from services.common.tenant_auth import TenantContext, make_permission_required
from services.dashboard.settings import get_settings

require_dashboard_read = make_permission_required("dashboard:read", get_settings)

__all__ = ["TenantContext", "require_dashboard_read"]
