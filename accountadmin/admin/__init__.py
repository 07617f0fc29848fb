"""Admin-only account management: role toggling, deletion and listing."""

from .models import RoleToggleRequest
from .routes import configure_admin_router
from .rules import Operation, RoleMutation, evaluate
from .service import AdminService

__all__ = [
    "AdminService",
    "Operation",
    "RoleMutation",
    "RoleToggleRequest",
    "configure_admin_router",
    "evaluate",
]
