"""Admin routes for the FastAPI application.

Provides endpoints for listing accounts, toggling roles and deleting accounts.
Every endpoint requires the caller to hold the admin role.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Body, Depends

from accountadmin.auth.validation import Validate
from accountadmin.common import Account, AccountResponse, StatusResponse
from accountadmin.exceptions import AccountServiceError

from .models import RoleToggleRequest
from .service import AdminService

LOG = logging.getLogger(__name__)
LOG.setLevel(logging.DEBUG)


async def _list_users(admin_service: AdminService) -> list[AccountResponse]:
    try:
        accounts = await admin_service.list_users()
    except AccountServiceError as e:
        raise e.to_http_exception() from e
    return [AccountResponse.from_account(account) for account in accounts]


async def _toggle_role(
    admin_service: AdminService,
    request: RoleToggleRequest,
    admin: Account,
) -> AccountResponse:
    LOG.debug("Role toggle requested by %s: %s", admin.email, request)
    try:
        account = await admin_service.toggle_role(request)
    except AccountServiceError as e:
        raise e.to_http_exception() from e
    return AccountResponse.from_account(account)


async def _delete_user(
    admin_service: AdminService,
    email: str,
    admin: Account,
) -> StatusResponse:
    LOG.debug("Deletion of %s requested by %s", email, admin.email)
    try:
        deleted_email, status = await admin_service.delete_user(email)
    except AccountServiceError as e:
        raise e.to_http_exception() from e
    return StatusResponse(user=deleted_email, status=status)


def configure_admin_router(
    router: APIRouter,
    admin_service: AdminService,
    validate: Validate,
) -> APIRouter:
    """Configure the admin router.

    :param router: The APIRouter to configure
    :param admin_service: The AdminService carrying out the operations
    :param validate: Authentication/authorization dependencies
    :return: The configured APIRouter
    """
    require_admin = validate.role(admin_service.catalog.admin_role)

    @router.get("/user-listing", response_model=list[AccountResponse])
    async def list_users_route(
        _admin: Annotated[Account, Depends(require_admin)],
    ) -> list[AccountResponse]:
        return await _list_users(admin_service)

    @router.put("/user-role", response_model=AccountResponse)
    async def toggle_role_route(
        request: Annotated[RoleToggleRequest, Body()],
        admin: Annotated[Account, Depends(require_admin)],
    ) -> AccountResponse:
        return await _toggle_role(admin_service, request, admin)

    @router.delete("/user/{email}", response_model=StatusResponse)
    async def delete_user_route(
        email: str,
        admin: Annotated[Account, Depends(require_admin)],
    ) -> StatusResponse:
        return await _delete_user(admin_service, email, admin)

    return router
