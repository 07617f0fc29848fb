"""Response models shared by the auth and admin routers."""

from __future__ import annotations

from pydantic import BaseModel

from .user import Account


class AccountResponse(BaseModel):
    """Public view of an account.

    :param id: Creation-ordered account id
    :param name: First name
    :param lastname: Last name
    :param email: Account email, the account key
    :param roles: Role names, sorted
    """

    id: int
    name: str
    lastname: str
    email: str
    roles: list[str]

    @classmethod
    def from_account(cls, account: Account) -> AccountResponse:
        """Create AccountResponse from an Account.

        :param account: Account instance with roles loaded
        :return: AccountResponse instance
        """
        return cls(
            id=account.id,
            name=account.name,
            lastname=account.lastname,
            email=account.email,
            roles=sorted(account.roles),
        )


class StatusResponse(BaseModel):
    """Confirmation returned by delete and password change operations."""

    user: str
    status: str
