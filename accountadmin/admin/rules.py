"""Rules deciding which role grants and revokes are allowed.

Pure functions only: the caller loads the current roles, asks :func:`evaluate`
for a verdict and applies the returned mutation itself.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

from accountadmin.common import ADMIN_ROLE, canonical_role_name
from accountadmin.exceptions import (
    AccountNotFoundError,
    CannotDeleteAdminError,
    CannotRemoveLastRoleError,
    InvalidRoleCombinationError,
    RoleAlreadyAssignedError,
    RoleNotAssignedError,
)

if TYPE_CHECKING:
    from collections.abc import Collection


class Operation(StrEnum):
    """Role toggle operations."""

    GRANT = "GRANT"
    REMOVE = "REMOVE"

    @classmethod
    def parse(cls, value: str) -> Operation:
        """Parse a client-supplied operation, ignoring case.

        ``"revoke"`` is accepted as a synonym of ``"remove"``.

        :param value: Raw operation string
        :return: The matching Operation
        :raises ValueError: If the value names no operation
        """
        normalized = value.strip().upper()
        if normalized == "REVOKE":
            return cls.REMOVE
        return cls(normalized)


@dataclass(frozen=True)
class RoleMutation:
    """The single role assignment row to insert (GRANT) or delete (REMOVE)."""

    operation: Operation
    role: str

    @property
    def granted(self) -> str | None:
        """Role row to insert, None for a removal."""
        return self.role if self.operation is Operation.GRANT else None

    @property
    def removed(self) -> str | None:
        """Role row to delete, None for a grant."""
        return self.role if self.operation is Operation.REMOVE else None


def evaluate(
    current_roles: Collection[str],
    operation: Operation,
    role_name: str,
    admin_role: str = ADMIN_ROLE,
) -> RoleMutation:
    """Decide whether a role toggle is legal.

    The role must already be known to be in the catalog. Checks run in a fixed
    order and the first failing one is reported.

    :param current_roles: Canonical role names the account holds now
    :param operation: GRANT or REMOVE
    :param role_name: Requested role, in any case, with or without prefix
    :param admin_role: Canonical name of the admin role
    :return: The mutation to apply
    :raises AccountNotFoundError: If the account holds no role at all
    :raises RoleNotAssignedError: If a removed role is not held
    :raises CannotDeleteAdminError: If the admin's only role would be removed
    :raises CannotRemoveLastRoleError: If the only role would be removed
    :raises RoleAlreadyAssignedError: If a granted role is already held
    :raises InvalidRoleCombinationError: If admin and other roles would mix
    """
    if not current_roles:
        raise AccountNotFoundError

    requested = canonical_role_name(role_name)

    if operation is Operation.REMOVE:
        if requested not in current_roles:
            raise RoleNotAssignedError
        if len(current_roles) == 1:
            if requested == admin_role:
                raise CannotDeleteAdminError
            raise CannotRemoveLastRoleError
        return RoleMutation(Operation.REMOVE, requested)

    if requested in current_roles:
        raise RoleAlreadyAssignedError
    if requested == admin_role or admin_role in current_roles:
        raise InvalidRoleCombinationError
    return RoleMutation(Operation.GRANT, requested)


def apply(current_roles: Collection[str], mutation: RoleMutation) -> set[str]:
    """Return the role set that results from applying a mutation."""
    if mutation.operation is Operation.GRANT:
        return set(current_roles) | {mutation.role}
    return set(current_roles) - {mutation.role}
