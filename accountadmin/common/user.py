"""Fundamental account data model for the app."""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

EMAIL_REGEX = r"^[\w.%+-]+@[\w-]+(\.[\w-]+)+$"
_EMAIL_PATTERN = re.compile(EMAIL_REGEX)


def is_valid_email(email: str) -> bool:
    """Check an account identifier against the email pattern."""
    return _EMAIL_PATTERN.fullmatch(email) is not None


def normalize_email(email: str) -> str:
    """Emails are stored and compared lowercase."""
    return email.strip().lower()


@dataclass
class Account:
    """A user account together with its current role names."""

    id: int
    name: str
    lastname: str
    email: str
    hashed_password: bytes = field(repr=False)
    roles: list[str] = field(default_factory=list)

    def with_roles(self, roles: Iterable[str]) -> Account:
        """Return a copy annotated with the given roles, sorted by name."""
        return replace(self, roles=sorted(roles))

    def has_role(self, role_name: str) -> bool:
        return role_name in self.roles
