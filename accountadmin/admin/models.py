"""Request models for the admin endpoints."""

from __future__ import annotations

from pydantic import BaseModel

from accountadmin.common import is_valid_email

from .rules import Operation


class RoleToggleRequest(BaseModel):
    """Body of ``PUT /api/admin/user-role``.

    Fields are optional on purpose so that a partial body reaches
    :meth:`violations`, which reports every problem at once.

    :param user: Email of the account to change
    :param role: Role name, with or without the ``ROLE_`` prefix
    :param operation: ``"GRANT"`` or ``"REMOVE"``, any case
    """

    user: str | None = None
    role: str | None = None
    operation: str | None = None

    def violations(self) -> list[str]:
        """Return all violated constraints, empty if the request is well formed."""
        errors = []
        if not self.user or not self.user.strip():
            errors.append("User email must not be empty!")
        elif not is_valid_email(self.user.strip()):
            errors.append(f"Invalid user email given: '{self.user}'!")

        if not self.role or not self.role.strip():
            errors.append("Role must not be empty!")

        if not self.operation or not self.operation.strip():
            errors.append("Operation must not be empty!")
        else:
            try:
                Operation.parse(self.operation)
            except ValueError:
                errors.append("Operation must be GRANT or REMOVE!")
        return errors
