"""All authentication-related modules and routes."""

from .routes import configure_auth_router
from .security_manager import SecurityManager
from .validation import Validate

__all__ = [
    "SecurityManager",
    "Validate",
    "configure_auth_router",
]
