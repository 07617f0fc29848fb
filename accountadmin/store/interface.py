"""Abstract credential store used by the services."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from accountadmin.common import Account


class CredentialStore(ABC):
    """Asynchronous access to accounts, role assignments and dependent rows."""

    @abstractmethod
    async def list_roles(self) -> list[str]:
        """Return the role catalog names in creation order."""

    @abstractmethod
    async def seed_roles(self, role_names: Iterable[str]) -> None:
        """Insert catalog roles that do not exist yet."""

    @abstractmethod
    async def count_users(self) -> int:
        """Return the number of accounts."""

    @abstractmethod
    async def find_by_email(self, email: str) -> Account | None:
        """Return the account row for an email, without roles."""

    @abstractmethod
    async def find_all(self) -> list[Account]:
        """Return every account ascending by id, without roles."""

    @abstractmethod
    async def find_roles_by_email(self, email: str) -> list[str]:
        """Return the role names assigned to an email, empty if unknown."""

    @abstractmethod
    async def save_role(self, email: str, role: str) -> None:
        """Insert one role assignment row."""

    @abstractmethod
    async def delete_role(self, email: str, role: str) -> int:
        """Delete one role assignment row."""

    @abstractmethod
    async def delete_all_roles(self, email: str) -> int:
        """Delete every role assignment row of an email."""

    @abstractmethod
    async def delete_all_salaries(self, email: str) -> int:
        """Delete every salary row of an email."""

    @abstractmethod
    async def delete_by_email(self, email: str) -> int:
        """Delete the account row of an email."""

    @abstractmethod
    async def change_roles(
        self,
        email: str,
        decide: Callable[[list[str]], tuple[str | None, str | None]],
    ) -> list[str]:
        """Apply the role to insert and delete chosen by ``decide`` atomically.

        No other writer may change the account's roles between the read
        handed to ``decide`` and the write.
        """

    @abstractmethod
    async def delete_account_cascade(
        self,
        email: str,
        check: Callable[[list[str]], None] | None = None,
    ) -> None:
        """Delete roles, salaries and the account row in one transaction.

        ``check`` sees the roles inside that transaction and raises to refuse.
        """

    @abstractmethod
    async def create_account(
        self,
        name: str,
        lastname: str,
        email: str,
        hashed_password: bytes,
        role: str,
        first_account_role: str | None = None,
    ) -> Account:
        """Insert an account and its initial role in one transaction."""

    @abstractmethod
    async def update_password(self, email: str, hashed_password: bytes) -> int:
        """Replace the stored password hash of an account."""
