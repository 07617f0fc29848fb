"""Models for auth-related requests and responses."""

from __future__ import annotations

from pydantic import BaseModel

from accountadmin.common import AccountResponse, is_valid_email


def _blank(value: str | None) -> bool:
    return value is None or not value.strip()


class SignupRequest(BaseModel):
    """Body of ``POST /api/auth/signup``.

    :param name: First name
    :param lastname: Last name
    :param email: Email, becomes the account key
    :param password: Plaintext password, hashed before storage
    """

    name: str | None = None
    lastname: str | None = None
    email: str | None = None
    password: str | None = None

    def violations(self) -> list[str]:
        """Return every violated field constraint except password rules."""
        errors = []
        if _blank(self.name):
            errors.append("Name must not be empty!")
        if _blank(self.lastname):
            errors.append("Lastname must not be empty!")
        if _blank(self.email):
            errors.append("Email must not be empty!")
        elif not is_valid_email(self.email.strip()):
            errors.append(f"Invalid email given: '{self.email}'!")
        if _blank(self.password):
            errors.append("Password must not be empty!")
        return errors


class ChangePasswordRequest(BaseModel):
    """Body of ``POST /api/auth/changepass``."""

    new_password: str | None = None


class LoginResponse(BaseModel):
    """Response model for login requests.

    :param access_token: The JWT access token
    :param token_type: Always ``"bearer"``
    :param user: The authenticated account
    """

    access_token: str
    token_type: str = "bearer"
    user: AccountResponse
