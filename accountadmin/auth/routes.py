"""Authentication routes for the FastAPI application.

Provides endpoints for signup, login, reading the own account and changing
the own password.
"""

import asyncio
import logging
from typing import Annotated

from fastapi import APIRouter, Body, Depends, Form, HTTPException, status

from accountadmin.common import (
    USER_ROLE,
    Account,
    AccountResponse,
    RoleCatalog,
    StatusResponse,
    normalize_email,
)
from accountadmin.exceptions import AccountServiceError, ValidationError
from accountadmin.store import CredentialStore

from .models import ChangePasswordRequest, LoginResponse, SignupRequest
from .security_manager import SecurityManager
from .validation import Validate

LOG = logging.getLogger(__name__)
LOG.setLevel(logging.DEBUG)

PASSWORD_UPDATED_STATUS = "The password has been updated successfully"


async def _signup(
    store: CredentialStore,
    security_manager: SecurityManager,
    catalog: RoleCatalog,
    request: SignupRequest,
) -> AccountResponse:
    """Register a new account.

    The very first account becomes the admin, every later one a plain user,
    so signup never creates an account holding more than one role.
    """
    errors = request.violations()
    if not errors:
        errors = security_manager.password_violations(request.password)
    if errors:
        raise ValidationError(errors).to_http_exception()

    hashed_password = await asyncio.to_thread(
        security_manager.hash_password,
        request.password,
    )
    try:
        account = await store.create_account(
            name=request.name.strip(),
            lastname=request.lastname.strip(),
            email=normalize_email(request.email),
            hashed_password=hashed_password,
            role=USER_ROLE,
            first_account_role=catalog.admin_role,
        )
    except AccountServiceError as e:
        raise e.to_http_exception() from e
    return AccountResponse.from_account(account)


async def _login(
    store: CredentialStore,
    security_manager: SecurityManager,
    username: str,
    password: str,
) -> LoginResponse:
    email = normalize_email(username)
    try:
        account = await store.find_by_email(email)
        roles = await store.find_roles_by_email(email)
    except AccountServiceError as e:
        raise e.to_http_exception() from e

    if (
        account is None
        or not roles
        or not await asyncio.to_thread(
            security_manager.verify_password,
            password,
            account.hashed_password,
        )
    ):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid username or password",
        )

    account = account.with_roles(roles)
    LOG.info("Account %s logged in", email)
    return LoginResponse(
        access_token=security_manager.create_access_token(account),
        user=AccountResponse.from_account(account),
    )


async def _change_password(
    store: CredentialStore,
    security_manager: SecurityManager,
    request: ChangePasswordRequest,
    account: Account,
) -> StatusResponse:
    new_password = request.new_password or ""
    errors = security_manager.password_violations(new_password)
    if errors:
        raise ValidationError(errors).to_http_exception()

    if await asyncio.to_thread(
        security_manager.verify_password,
        new_password,
        account.hashed_password,
    ):
        raise ValidationError(
            ["The passwords must be different!"],
        ).to_http_exception()

    hashed_password = await asyncio.to_thread(
        security_manager.hash_password,
        new_password,
    )
    try:
        await store.update_password(account.email, hashed_password)
    except AccountServiceError as e:
        raise e.to_http_exception() from e
    LOG.info("Password changed for %s", account.email)
    return StatusResponse(user=account.email, status=PASSWORD_UPDATED_STATUS)


def configure_auth_router(
    router: APIRouter,
    store: CredentialStore,
    security_manager: SecurityManager,
    catalog: RoleCatalog,
    validate: Validate,
) -> APIRouter:
    """Configure the authentication router.

    :param router: The APIRouter to configure
    :param store: The credential store for database operations
    :param security_manager: The SecurityManager for password and JWT operations
    :param catalog: The role catalog, used to pick the first account's role
    :param validate: Authentication dependencies
    :return: The configured APIRouter
    """

    @router.post("/signup", response_model=AccountResponse)
    async def signup(
        request: Annotated[SignupRequest, Body()],
    ) -> AccountResponse:
        return await _signup(store, security_manager, catalog, request)

    @router.post("/login", response_model=LoginResponse)
    async def login(
        username: Annotated[str, Form()],
        password: Annotated[str, Form()],
    ) -> LoginResponse:
        return await _login(store, security_manager, username, password)

    @router.get("/account", response_model=AccountResponse)
    def get_account_info(
        account: Annotated[Account, Depends(validate.jwt_token)],
    ) -> AccountResponse:
        return AccountResponse.from_account(account)

    @router.post("/changepass", response_model=StatusResponse)
    async def change_password_route(
        request: Annotated[ChangePasswordRequest, Body()],
        account: Annotated[Account, Depends(validate.jwt_token)],
    ) -> StatusResponse:
        return await _change_password(store, security_manager, request, account)

    return router
