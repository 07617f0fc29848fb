"""Tests for the role toggle rule engine."""

import pytest

from accountadmin.admin.rules import Operation, RoleMutation, apply, evaluate
from accountadmin.exceptions import (
    AccountNotFoundError,
    CannotDeleteAdminError,
    CannotRemoveLastRoleError,
    InvalidRoleCombinationError,
    RoleAlreadyAssignedError,
    RoleNotAssignedError,
)

ADMIN = "ROLE_ADMIN"
USER = "ROLE_USER"
ACCOUNTANT = "ROLE_ACCOUNTANT"
AUDITOR = "ROLE_AUDITOR"


class TestOperationParse:
    """Test suite for parsing client-supplied operations."""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("GRANT", Operation.GRANT),
            ("grant", Operation.GRANT),
            (" Remove ", Operation.REMOVE),
            ("revoke", Operation.REMOVE),
        ],
    )
    def test_parse_accepts_known_operations(
        self,
        raw: str,
        expected: Operation,
    ) -> None:
        """Test that operations parse regardless of case and whitespace."""
        assert Operation.parse(raw) is expected

    def test_parse_rejects_unknown_operation(self) -> None:
        """Test that anything else is a ValueError."""
        with pytest.raises(ValueError, match="DELETE"):
            Operation.parse("delete")


class TestRemove:
    """Test suite for the REMOVE path."""

    @pytest.mark.parametrize(
        ("roles", "removed"),
        [
            ({USER, ACCOUNTANT}, USER),
            ({USER, ACCOUNTANT}, ACCOUNTANT),
            ({USER, ACCOUNTANT, AUDITOR}, AUDITOR),
        ],
    )
    def test_remove_from_multi_role_set(self, roles: set[str], removed: str) -> None:
        """Test that any non-admin role of a multi-role set can be removed."""
        mutation = evaluate(roles, Operation.REMOVE, removed)

        assert mutation == RoleMutation(Operation.REMOVE, removed)
        assert (mutation.granted, mutation.removed) == (None, removed)
        assert apply(roles, mutation) == roles - {removed}

    def test_remove_unassigned_role(self) -> None:
        """Test that removing a role the account lacks is rejected."""
        with pytest.raises(RoleNotAssignedError):
            evaluate({USER, ACCOUNTANT}, Operation.REMOVE, "auditor")

    @pytest.mark.parametrize("role", [USER, ACCOUNTANT, AUDITOR])
    def test_remove_last_role(self, role: str) -> None:
        """Test that the only role of an account cannot be removed."""
        with pytest.raises(CannotRemoveLastRoleError):
            evaluate({role}, Operation.REMOVE, role)

    def test_remove_last_admin_role(self) -> None:
        """Test that the admin's only role reports the admin message."""
        with pytest.raises(CannotDeleteAdminError):
            evaluate({ADMIN}, Operation.REMOVE, "ADMIN")

    def test_unassigned_check_runs_before_last_role_check(self) -> None:
        """Test that a singleton set missing the role reports RoleNotAssigned."""
        with pytest.raises(RoleNotAssignedError):
            evaluate({USER}, Operation.REMOVE, ACCOUNTANT)


class TestGrant:
    """Test suite for the GRANT path."""

    def test_grant_business_role(self) -> None:
        """Test that a business role can be added to a business account."""
        mutation = evaluate({USER}, Operation.GRANT, "accountant")

        assert mutation == RoleMutation(Operation.GRANT, ACCOUNTANT)
        assert (mutation.granted, mutation.removed) == (ACCOUNTANT, None)
        assert apply({USER}, mutation) == {USER, ACCOUNTANT}

    def test_grant_assigned_role(self) -> None:
        """Test that granting a held role is rejected."""
        with pytest.raises(RoleAlreadyAssignedError):
            evaluate({USER, ACCOUNTANT}, Operation.GRANT, "ROLE_ACCOUNTANT")

    @pytest.mark.parametrize("roles", [{USER}, {USER, ACCOUNTANT}, {AUDITOR}])
    def test_grant_admin_to_business_account(self, roles: set[str]) -> None:
        """Test that the admin role can never be granted."""
        with pytest.raises(InvalidRoleCombinationError):
            evaluate(roles, Operation.GRANT, "admin")

    @pytest.mark.parametrize("role", [USER, ACCOUNTANT, AUDITOR])
    def test_grant_business_role_to_admin(self, role: str) -> None:
        """Test that an admin can never receive another role."""
        with pytest.raises(InvalidRoleCombinationError):
            evaluate({ADMIN}, Operation.GRANT, role)

    def test_grant_admin_to_admin_reports_already_assigned(self) -> None:
        """Test that the already-assigned check precedes the combination check."""
        with pytest.raises(RoleAlreadyAssignedError):
            evaluate({ADMIN}, Operation.GRANT, ADMIN)


@pytest.mark.parametrize("operation", list(Operation))
@pytest.mark.parametrize("role", [ADMIN, USER, ACCOUNTANT])
def test_empty_role_set_means_account_not_found(
    operation: Operation,
    role: str,
) -> None:
    """Test that an account without roles is treated as nonexistent."""
    with pytest.raises(AccountNotFoundError):
        evaluate(set(), operation, role)


def test_custom_admin_role() -> None:
    """Test that the admin role name comes from the caller."""
    with pytest.raises(InvalidRoleCombinationError):
        evaluate({USER}, Operation.GRANT, "ROLE_ROOT", admin_role="ROLE_ROOT")


def test_evaluation_is_deterministic() -> None:
    """Test that the same inputs always give the same verdict."""
    roles = frozenset({USER, ACCOUNTANT})
    verdicts = {evaluate(roles, Operation.REMOVE, USER) for _ in range(5)}

    assert verdicts == {RoleMutation(Operation.REMOVE, USER)}
    assert roles == {USER, ACCOUNTANT}


def test_end_to_end_sequence() -> None:
    """Walk through grant, rejected admin grant, remove and rejected remove."""
    roles = {USER}

    roles = apply(roles, evaluate(roles, Operation.GRANT, "ACCOUNTANT"))
    assert roles == {USER, ACCOUNTANT}

    with pytest.raises(InvalidRoleCombinationError):
        evaluate(roles, Operation.GRANT, "ADMIN")

    roles = apply(roles, evaluate(roles, Operation.REMOVE, "USER"))
    assert roles == {ACCOUNTANT}

    with pytest.raises(CannotRemoveLastRoleError):
        evaluate(roles, Operation.REMOVE, "ACCOUNTANT")
