"""Configuration management for the account administration service.

This module provides utilities for loading and validating configuration
from environment variables.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv
from jwt.algorithms import get_default_algorithms

from accountadmin.auth import SecurityManager

LOGGER = logging.getLogger(__name__)
LOGGER.setLevel(logging.DEBUG)

_MINIMUM_BCRYPT_ROUNDS = 4
_MAXIMUM_BCRYPT_ROUNDS = 31


def configure_logging(app_config: AppConfig) -> None:
    """Configure logging based on the application configuration.

    :param app_config: The application configuration instance
    """
    if not app_config.logging_level:
        logging.basicConfig(level=logging.INFO, force=True)
        return

    numeric_level = getattr(logging, app_config.logging_level.upper(), None)
    if not isinstance(numeric_level, int):
        LOGGER.warning("Invalid log level: %s, using INFO", app_config.logging_level)
        numeric_level = logging.INFO
    logging.basicConfig(level=numeric_level, force=True)


def load_env_file(env_path: str | Path | None) -> None:
    """Load environment variables from a .env file if available.

    :param env_path: Path to the .env file
    """
    if not env_path:
        return
    env_path = Path(env_path)
    if env_path.exists():
        LOGGER.info("Loading environment variables from %s", env_path)
        load_dotenv(env_path)
    else:
        LOGGER.debug("No .env file found at %s", env_path)


@dataclass
class AppConfig:
    """Application configuration loaded from environment variables.

    All fields are initialized from environment variables using field
    creators, so explicit keyword arguments override the environment.

    **Usage:**

    .. code-block:: python

        load_env_file(".env")
        config = AppConfig()
    """

    DEFAULT_DATABASE_PATH = "account_admin.db"
    DEFAULT_ACCESS_TOKEN_EXPIRE_MINUTES = 60 * 24
    DEFAULT_MIN_PASSWORD_LENGTH = 12
    DEFAULT_BCRYPT_ROUNDS = 13
    DEFAULT_CATALOG_LOAD_TIMEOUT = 5
    MINIMUM_JWT_SECRET_KEY_LENGTH = 32

    # Database configuration
    db_path: str = field(
        default_factory=lambda: os.getenv("DB_PATH", AppConfig.DEFAULT_DATABASE_PATH),
    )

    # Logging configuration
    logging_level: str | None = field(
        default_factory=lambda: os.getenv("LOGGING_LEVEL"),
    )

    root_path: str = field(
        default_factory=lambda: os.getenv("ROOT_PATH", ""),
    )

    # Security configuration
    secret_key: str = field(
        default_factory=lambda: os.getenv("SECRET_KEY", ""),
    )

    algorithm: str = field(
        default_factory=lambda: os.getenv("ALGORITHM", "HS512"),
    )

    access_token_expire_minutes: int = field(
        default_factory=lambda: AppConfig._getenv_int_required(
            "ACCESS_TOKEN_EXPIRE_MINUTES",
            AppConfig.DEFAULT_ACCESS_TOKEN_EXPIRE_MINUTES,
        ),
    )

    min_password_length: int = field(
        default_factory=lambda: AppConfig._getenv_int_required(
            "MIN_PASSWORD_LENGTH",
            AppConfig.DEFAULT_MIN_PASSWORD_LENGTH,
        ),
    )

    bcrypt_rounds: int = field(
        default_factory=lambda: AppConfig._getenv_int_required(
            "BCRYPT_ROUNDS",
            AppConfig.DEFAULT_BCRYPT_ROUNDS,
        ),
    )

    # Startup configuration
    catalog_load_timeout: int | None = field(
        default_factory=lambda: AppConfig._getenv_int(
            "CATALOG_LOAD_TIMEOUT",
            AppConfig.DEFAULT_CATALOG_LOAD_TIMEOUT,
        ),
    )

    def __post_init__(self) -> None:
        """Post-initialization validation."""
        if self.algorithm not in get_default_algorithms():
            msg = f"ALGORITHM must be a supported JWT algorithm, got: {self.algorithm}"
            raise ValueError(msg)
        if self.access_token_expire_minutes <= 0:
            msg = "ACCESS_TOKEN_EXPIRE_MINUTES must be a positive integer"
            raise ValueError(msg)
        if self.min_password_length <= 0:
            msg = "MIN_PASSWORD_LENGTH must be a positive integer"
            raise ValueError(msg)
        if not _MINIMUM_BCRYPT_ROUNDS <= self.bcrypt_rounds <= _MAXIMUM_BCRYPT_ROUNDS:
            msg = (
                f"BCRYPT_ROUNDS must be between {_MINIMUM_BCRYPT_ROUNDS} "
                f"and {_MAXIMUM_BCRYPT_ROUNDS}"
            )
            raise ValueError(msg)
        if self.catalog_load_timeout is not None and self.catalog_load_timeout <= 0:
            msg = "CATALOG_LOAD_TIMEOUT must be a positive integer"
            raise ValueError(msg)
        if len(self.secret_key) < self.MINIMUM_JWT_SECRET_KEY_LENGTH:
            LOGGER.warning(
                "SECRET_KEY is not set or too short, generating a random key",
            )
            self.secret_key = os.urandom(self.MINIMUM_JWT_SECRET_KEY_LENGTH).hex()

    @property
    def security_manager(self) -> SecurityManager:
        """Create a SecurityManager instance from this configuration.

        :return: Configured SecurityManager instance
        """
        return SecurityManager(
            secret_key=self.secret_key,
            algorithm=self.algorithm,
            expire_minutes=self.access_token_expire_minutes,
            min_password_length=self.min_password_length,
            bcrypt_rounds=self.bcrypt_rounds,
        )

    @staticmethod
    def _getenv_int(key: str, default: int | None = None) -> int | None:
        """Get an integer environment variable.

        An empty value means None.

        :param key: Environment variable name
        :param default: Default value if not set
        :raises ValueError: If value cannot be converted to int
        """
        value_str = os.getenv(key)

        if value_str is None:
            return default
        if value_str == "":
            return None

        try:
            return int(value_str)
        except ValueError as e:
            msg = f"Environment variable {key} must be an integer, got: {value_str}"
            raise ValueError(msg) from e

    @staticmethod
    def _getenv_int_required(key: str, default: int) -> int:
        """Get an integer environment variable with a default.

        :param key: Environment variable name
        :param default: Default value if not set
        :return: The environment variable value as integer or default
        :raises ValueError: If value cannot be converted to int
        """
        value_str = os.getenv(key)

        if value_str is None or value_str == "":
            return default

        try:
            return int(value_str)
        except ValueError as e:
            msg = f"Environment variable {key} must be an integer, got: {value_str}"
            raise ValueError(msg) from e
