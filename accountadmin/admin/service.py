"""Admin operations: listing accounts, toggling roles and deleting accounts."""

from __future__ import annotations

import asyncio
import logging
import weakref
from typing import TYPE_CHECKING

from accountadmin.common import is_valid_email, normalize_email
from accountadmin.exceptions import (
    AccountNotFoundError,
    AccountServiceError,
    CannotDeleteAdminError,
    RoleNotFoundError,
    ValidationError,
)

from .rules import Operation, evaluate

if TYPE_CHECKING:
    from accountadmin.common import Account, RoleCatalog
    from accountadmin.store import CredentialStore

    from .models import RoleToggleRequest

LOGGER = logging.getLogger(__name__)
LOGGER.setLevel(logging.DEBUG)

DELETED_STATUS = "deleted"


class AdminService:
    """Orchestrates validation, rule evaluation and persistence for admins.

    Role toggles and deletions read, decide and write inside one store
    transaction that holds the database write lock, so no other request or
    worker process can change the role set in between. A per-email lock also
    queues requests for the same account inside this process.
    """

    def __init__(self, store: CredentialStore, catalog: RoleCatalog) -> None:
        """Create the service.

        :param store: Credential store holding accounts and roles
        :param catalog: Role catalog loaded at startup
        """
        self.store = store
        self.catalog = catalog
        self._account_locks: weakref.WeakValueDictionary[str, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    def _lock_for(self, email: str) -> asyncio.Lock:
        lock = self._account_locks.get(email)
        if lock is None:
            lock = asyncio.Lock()
            self._account_locks[email] = lock
        return lock

    async def get_account(self, email: str) -> Account:
        """Read an account with its current roles.

        :param email: Account email, any case
        :return: The Account with roles sorted by name
        :raises AccountNotFoundError: If no such account exists
        """
        email = normalize_email(email)
        account = await self.store.find_by_email(email)
        if account is None:
            raise AccountNotFoundError
        roles = await self.store.find_roles_by_email(email)
        return account.with_roles(roles)

    async def list_users(self) -> list[Account]:
        """Return all accounts ascending by id, each with its roles.

        Roles are read per account, so each entry is consistent on its own
        but the list is not one snapshot.
        """
        accounts = await self.store.find_all()
        return [
            account.with_roles(await self.store.find_roles_by_email(account.email))
            for account in accounts
        ]

    async def toggle_role(self, request: RoleToggleRequest) -> Account:
        """Grant or remove one role and return the updated account.

        :param request: The role toggle request
        :return: The account as stored after the change
        :raises ValidationError: If the request is malformed
        :raises RoleNotFoundError: If the role is not in the catalog
        :raises AccountServiceError: Any rule violation from the rule engine
        """
        errors = request.violations()
        if errors:
            raise ValidationError(errors)

        if not self.catalog.contains(request.role):
            raise RoleNotFoundError

        email = normalize_email(request.user)
        operation = Operation.parse(request.operation)

        def decide(current_roles: list[str]) -> tuple[str | None, str | None]:
            try:
                mutation = evaluate(
                    set(current_roles),
                    operation,
                    request.role,
                    self.catalog.admin_role,
                )
            except AccountServiceError as e:
                LOGGER.debug(
                    "Rejected %s %s for %s: %s",
                    operation,
                    request.role,
                    email,
                    e.message,
                )
                raise
            return mutation.granted, mutation.removed

        async with self._lock_for(email):
            roles = await self.store.change_roles(email, decide)
            LOGGER.info(
                "%s %s for %s, roles now %s",
                operation,
                request.role,
                email,
                roles,
            )
            return await self.get_account(email)

    async def delete_user(self, email: str) -> tuple[str, str]:
        """Delete a non-admin account with its roles and salary rows.

        :param email: Account email as given by the caller
        :return: ``(email, "deleted")``
        :raises ValidationError: If the email is malformed
        :raises AccountNotFoundError: If the account holds no role
        :raises CannotDeleteAdminError: If the account is an admin
        """
        if not is_valid_email(email.strip()):
            raise ValidationError([f"Invalid user email given: '{email}'!"])

        email = normalize_email(email)

        def check(roles: list[str]) -> None:
            if not roles:
                raise AccountNotFoundError
            if self.catalog.admin_role in roles:
                LOGGER.debug("Rejected deletion of admin account %s", email)
                raise CannotDeleteAdminError

        async with self._lock_for(email):
            await self.store.delete_account_cascade(email, check)
        LOGGER.info("Deleted account %s", email)
        return email, DELETED_STATUS
