"""Common data models and utilities for the application."""

from .models import AccountResponse, StatusResponse
from .roles import (
    ADMIN_ROLE,
    DEFAULT_ROLES,
    USER_ROLE,
    Role,
    RoleCatalog,
    canonical_role_name,
)
from .user import EMAIL_REGEX, Account, is_valid_email, normalize_email

__all__ = [
    "ADMIN_ROLE",
    "DEFAULT_ROLES",
    "EMAIL_REGEX",
    "USER_ROLE",
    "Account",
    "AccountResponse",
    "Role",
    "RoleCatalog",
    "StatusResponse",
    "canonical_role_name",
    "is_valid_email",
    "normalize_email",
]
