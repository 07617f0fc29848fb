"""Password and JWT handling.

Includes password requirement checks, bcrypt hashing, JWT token creation and
verification.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

import jwt
from bcrypt import checkpw, gensalt, hashpw

if TYPE_CHECKING:
    from accountadmin.common import Account

LOGGER = logging.getLogger(__name__)
LOGGER.setLevel(logging.DEBUG)

# bcrypt only looks at the first 72 bytes and rejects longer input
_BCRYPT_MAX_BYTES = 72

BREACHED_PASSWORDS = frozenset(
    {
        "PasswordForJanuary",
        "PasswordForFebruary",
        "PasswordForMarch",
        "PasswordForApril",
        "PasswordForMay",
        "PasswordForJune",
        "PasswordForJuly",
        "PasswordForAugust",
        "PasswordForSeptember",
        "PasswordForOctober",
        "PasswordForNovember",
        "PasswordForDecember",
    },
)


@dataclass
class SecurityManager:
    """Manager for security configurations and validations.

    :param str secret_key: Secret key for JWT signing (generated if not provided)
    :param str algorithm: JWT signing algorithm
    :param int expire_minutes: Token expiration time in minutes
    :param int min_password_length: Minimum length for passwords
    :param int bcrypt_rounds: bcrypt cost factor
    """

    DEFAULT_JWT_ALGORITHM = "HS512"
    DEFAULT_TOKEN_EXPIRE_MINUTES = 60 * 24
    DEFAULT_MIN_PASSWORD_LENGTH = 12
    DEFAULT_BCRYPT_ROUNDS = 13
    MINIMUM_JWT_SECRET_KEY_LENGTH = 32

    secret_key: str | None = None
    algorithm: str = DEFAULT_JWT_ALGORITHM
    expire_minutes: int = DEFAULT_TOKEN_EXPIRE_MINUTES
    min_password_length: int = DEFAULT_MIN_PASSWORD_LENGTH
    bcrypt_rounds: int = DEFAULT_BCRYPT_ROUNDS

    def __post_init__(self) -> None:
        """Generate secret key if not provided."""
        if (
            self.secret_key is None
            or len(self.secret_key) < self.MINIMUM_JWT_SECRET_KEY_LENGTH
        ):
            self.secret_key = os.urandom(64).hex()

    def password_violations(self, password: str) -> list[str]:
        """Validate a password against the configured requirements.

        :param password: The password to validate
        :return: Every violated requirement, empty if the password is acceptable
        """
        errors = []
        if len(password) < self.min_password_length:
            errors.append(
                f"The password length must be at least {self.min_password_length} chars!",
            )
        if len(password.encode()) > _BCRYPT_MAX_BYTES:
            errors.append(
                f"The password must not be longer than {_BCRYPT_MAX_BYTES} bytes!",
            )
        if password in BREACHED_PASSWORDS:
            errors.append("The password is in the hacker's database!")
        return errors

    def hash_password(self, password: str) -> bytes:
        return hashpw(password.encode(), gensalt(rounds=self.bcrypt_rounds))

    def verify_password(self, password: str, hashed_password: bytes) -> bool:
        """Check a plaintext password against a stored bcrypt hash."""
        encoded = password.encode()
        if len(encoded) > _BCRYPT_MAX_BYTES:
            return False
        return checkpw(encoded, hashed_password)

    def create_access_token(self, account: Account) -> str:
        """Create a new JWT access token for the account.

        Roles are not part of the token; they are read from the store on
        every request.

        :param account: The account for whom to create the token
        :return: A JWT access token as a string
        """
        now = datetime.now(UTC)
        payload = {
            "sub": account.email,
            "exp": now + timedelta(minutes=self.expire_minutes),
            "iat": now,
            "type": "access_token",
        }

        return jwt.encode(payload, self.secret_key, algorithm=self.algorithm)

    def verify_token(self, token: str) -> str | None:
        """Verify and decode a JWT token, returning the account email.

        :param token: The JWT token string to verify
        :return: The email the token was issued to, None if the token is invalid
        """
        try:
            payload = jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
            )
        except jwt.ExpiredSignatureError:
            LOGGER.debug("Rejected expired token")
            return None
        except jwt.InvalidTokenError:
            return None

        if payload.get("type") != "access_token":
            return None

        return payload.get("sub")
