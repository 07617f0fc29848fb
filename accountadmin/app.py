"""FastAPI application factory for the account administration service."""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Any

from aiosqlite import connect as aiosqlite_connect
from fastapi import APIRouter, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from accountadmin.admin import AdminService, configure_admin_router
from accountadmin.auth import Validate, configure_auth_router
from accountadmin.common import DEFAULT_ROLES, RoleCatalog
from accountadmin.config import AppConfig, configure_logging, load_env_file
from accountadmin.store import AccountQueries

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

LOGGER = logging.getLogger(__name__)


async def _request_validation_handler(
    _request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """Answer malformed request bodies with 400 and every violation."""
    errors = [
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": " && ".join(errors)},
    )


def configure_fastapi_app(config: AppConfig) -> FastAPI:
    """Configure and return the FastAPI application.

    :param config: Application configuration
    :return: Configured FastAPI application
    """
    if not Path(config.db_path).parent.exists():
        Path(config.db_path).parent.mkdir(parents=True, exist_ok=True)
        LOGGER.info(
            "Created directory for database at %s",
            Path(config.db_path).parent,
        )

    if not Path(config.db_path).exists():
        LOGGER.info("Database file does not exist at %s", config.db_path)

    security_manager = config.security_manager

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[Any, Any]:
        """Application lifespan manager.

        Opens the store, prepares the tables and loads the role catalog once
        before any request is served.
        """
        LOGGER.info("Account Admin API is starting")

        async with aiosqlite_connect(config.db_path) as db_connection:
            store = AccountQueries(db_connection)
            await store.initialize_tables()
            await store.seed_roles(DEFAULT_ROLES)
            catalog = await RoleCatalog.load(store, config.catalog_load_timeout)

            validate = Validate(store, security_manager)
            admin_service = AdminService(store, catalog)

            auth_router = configure_auth_router(
                APIRouter(),
                store,
                security_manager,
                catalog,
                validate,
            )
            admin_router = configure_admin_router(
                APIRouter(),
                admin_service,
                validate,
            )

            app.include_router(auth_router, prefix="/api/auth", tags=["auth"])
            app.include_router(admin_router, prefix="/api/admin", tags=["admin"])

            yield

            LOGGER.info("Account Admin API is shutting down")

    app = FastAPI(
        title="Account Admin API",
        version="0.1.0",
        lifespan=lifespan,
        root_path=config.root_path,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(RequestValidationError, _request_validation_handler)

    @app.get("/")
    def read_root() -> str:
        return "Account Admin API"

    return app


def create_app(env_file: str | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Without an explicit file, the ENV_FILE environment variable is used (or
    ``.env``). This is what uvicorn command line usage relies on.

    :param env_file: Optional path to the environment configuration file
    :return: Configured FastAPI application
    """
    load_env_file(env_file or os.environ.get("ENV_FILE", ".env"))
    config = AppConfig()
    configure_logging(config)
    return configure_fastapi_app(config)
