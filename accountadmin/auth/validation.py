"""FastAPI dependency validators for authentication and authorization."""

import logging
from collections.abc import Awaitable, Callable
from typing import Annotated

from fastapi import Depends, HTTPException, Security, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from accountadmin.common import Account
from accountadmin.exceptions import AccountServiceError
from accountadmin.store import CredentialStore

from .security_manager import SecurityManager

bearer_scheme = HTTPBearer(auto_error=False)

LOGGER = logging.getLogger(__name__)
LOGGER.setLevel(logging.DEBUG)


def _unauthorized() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )


class Validate:
    """Holds validator dependencies for FastAPI authentication/authorization."""

    def __init__(
        self,
        store: CredentialStore,
        security_manager: SecurityManager,
    ) -> None:
        """Create a new validator instance.

        :param store: Credential store to resolve accounts and roles
        :param security_manager: JWT security manager
        """
        self.store = store
        self.security_manager = security_manager

    async def jwt_token(
        self,
        credentials: HTTPAuthorizationCredentials | None = Security(bearer_scheme),  # noqa: B008
    ) -> Account:
        """Validate a bearer token and load the caller's account with roles."""
        if credentials is None:
            raise _unauthorized()

        email = self.security_manager.verify_token(credentials.credentials)
        if email is None:
            LOGGER.debug("JWT token validation failed")
            raise _unauthorized()

        try:
            account = await self.store.find_by_email(email)
            roles = await self.store.find_roles_by_email(email)
        except AccountServiceError as e:
            raise e.to_http_exception() from e

        if account is None or not roles:
            LOGGER.debug("Token presented for unknown account: %s", email)
            raise _unauthorized()

        LOGGER.debug("JWT token validated for account: %s", email)
        return account.with_roles(roles)

    def role(self, required_role: str) -> Callable[..., Awaitable[Account]]:
        """Return a dependency that requires the caller to hold a role."""

        async def validator(
            account: Annotated[Account, Depends(self.jwt_token)],
        ) -> Account:
            if not account.has_role(required_role):
                LOGGER.debug("Role validation failed for account: %s", account.email)
                raise HTTPException(
                    status_code=status.HTTP_403_FORBIDDEN,
                    detail="Access Denied!",
                )
            return account

        return validator
