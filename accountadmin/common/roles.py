"""Role names and the system-wide role catalog."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    from accountadmin.store import CredentialStore

LOGGER = logging.getLogger(__name__)
LOGGER.setLevel(logging.DEBUG)

ROLE_PREFIX = "ROLE_"
ADMIN_ROLE = "ROLE_ADMIN"
USER_ROLE = "ROLE_USER"

DEFAULT_ROLES = (ADMIN_ROLE, USER_ROLE, "ROLE_ACCOUNTANT", "ROLE_AUDITOR")


def canonical_role_name(role_name: str) -> str:
    """Return the catalog form of a role name.

    ``"accountant"``, ``"Accountant"`` and ``"ROLE_ACCOUNTANT"`` all map to
    ``"ROLE_ACCOUNTANT"``.

    :param role_name: Role name as given by a client
    :return: Uppercase role name carrying the ``ROLE_`` prefix
    """
    name = role_name.strip().upper()
    if not name.startswith(ROLE_PREFIX):
        name = ROLE_PREFIX + name
    return name


@dataclass(frozen=True)
class Role:
    """A single catalog entry."""

    name: str


@dataclass(frozen=True)
class RoleCatalog:
    """Fixed list of valid roles, loaded once before serving traffic.

    :param roles: The catalog entries in store order
    :param admin_role: Canonical name of the distinguished admin role
    """

    roles: tuple[Role, ...]
    admin_role: str = ADMIN_ROLE

    def __post_init__(self) -> None:
        """Reject a catalog that does not know its own admin role."""
        if self.admin_role not in self.names():
            msg = f"Role catalog does not contain the admin role {self.admin_role}"
            raise ValueError(msg)

    @classmethod
    def from_names(
        cls,
        names: Iterable[str],
        admin_role: str = ADMIN_ROLE,
    ) -> RoleCatalog:
        """Build a catalog from raw role names.

        :param names: Role names, canonicalized on the way in
        :param admin_role: Canonical name of the admin role
        :return: RoleCatalog instance
        """
        unique = dict.fromkeys(canonical_role_name(name) for name in names)
        return cls(tuple(Role(name) for name in unique), admin_role)

    @classmethod
    async def load(
        cls,
        store: CredentialStore,
        timeout: float | None = None,
    ) -> RoleCatalog:
        """Read the catalog from the store once, at startup.

        :param store: Credential store holding the roles table
        :param timeout: Seconds to wait for the store, None for no limit
        :return: RoleCatalog instance
        :raises TimeoutError: If the store does not answer in time
        """
        names = await asyncio.wait_for(store.list_roles(), timeout)
        catalog = cls.from_names(names)
        LOGGER.info("Loaded role catalog: %s", ", ".join(catalog.names()))
        return catalog

    def list(self) -> list[Role]:
        """Return the catalog entries."""
        return list(self.roles)

    def names(self) -> tuple[str, ...]:
        """Return the canonical role names."""
        return tuple(role.name for role in self.roles)

    def contains(self, role_name: str) -> bool:
        """Check whether a client-supplied role name is a catalog member."""
        return canonical_role_name(role_name) in self.names()
