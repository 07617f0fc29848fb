"""Errors raised by the account administration services.

Every error carries the HTTP status code and the human readable message the
caller receives. Route helpers turn them into ``HTTPException`` instances.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import HTTPException, status

if TYPE_CHECKING:
    from collections.abc import Iterable


class AccountServiceError(Exception):
    """Base class for every rejection reported to the caller."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    default_message: str = "Bad request!"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_http_exception(self) -> HTTPException:
        """Build the HTTPException answering this error."""
        return HTTPException(status_code=self.status_code, detail=self.message)


class ValidationError(AccountServiceError):
    """Raised when a request is malformed. Lists every violated constraint."""

    def __init__(self, errors: Iterable[str]) -> None:
        self.errors = list(errors)
        super().__init__(" && ".join(self.errors))


class AccountNotFoundError(AccountServiceError):
    """Raised when the account does not exist (or holds no role at all)."""

    status_code = status.HTTP_404_NOT_FOUND
    default_message = "User not found!"


class RoleNotFoundError(AccountServiceError):
    """Raised when the requested role is not part of the role catalog."""

    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Role not found!"


class RoleAlreadyAssignedError(AccountServiceError):
    default_message = "The user already has the role!"


class RoleNotAssignedError(AccountServiceError):
    default_message = "The user does not have a role!"


class CannotRemoveLastRoleError(AccountServiceError):
    default_message = "The user must have at least one role!"


class CannotDeleteAdminError(AccountServiceError):
    """Raised when the admin role or an admin account would be removed."""

    default_message = "Can't remove ADMINISTRATOR role!"


class InvalidRoleCombinationError(AccountServiceError):
    default_message = "The user cannot combine administrative and business roles!"


class UserExistsError(AccountServiceError):
    default_message = "User exist!"


class StoreUnavailableError(AccountServiceError):
    """Raised when the credential store fails. Not retried by this layer."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_message = "Credential store unavailable"
