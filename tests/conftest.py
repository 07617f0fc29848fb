"""Pytest configuration file for setting up test environment."""

import sys
from collections.abc import AsyncGenerator, Awaitable, Callable
from pathlib import Path

import aiosqlite
import pytest
import pytest_asyncio

# Add the project root to Python path so tests can import accountadmin
project_dir = Path(__file__).parent.parent
sys.path.insert(0, str(project_dir))

from accountadmin.admin import AdminService  # noqa: E402
from accountadmin.common import DEFAULT_ROLES, Account, RoleCatalog  # noqa: E402
from accountadmin.store import AccountQueries  # noqa: E402

FAKE_HASH = b"$2b$04$not-a-real-bcrypt-hash"

AddAccount = Callable[..., Awaitable[Account]]


@pytest_asyncio.fixture
async def store(tmp_path: Path) -> AsyncGenerator[AccountQueries, None]:
    """Create a store on a fresh SQLite file with the default role catalog."""
    connection = await aiosqlite.connect(tmp_path / "test.db")
    queries = AccountQueries(connection)
    await queries.initialize_tables()
    await queries.seed_roles(DEFAULT_ROLES)
    yield queries
    await queries.close()


@pytest.fixture
def catalog() -> RoleCatalog:
    """Create the default role catalog."""
    return RoleCatalog.from_names(DEFAULT_ROLES)


@pytest.fixture
def admin_service(store: AccountQueries, catalog: RoleCatalog) -> AdminService:
    """Create an AdminService over the test store."""
    return AdminService(store, catalog)


@pytest.fixture
def add_account(store: AccountQueries) -> AddAccount:
    """Return a helper inserting an account holding the given roles."""

    async def _add_account(email: str, *roles: str, name: str = "John") -> Account:
        first, *rest = roles
        account = await store.create_account(
            name=name,
            lastname="Doe",
            email=email,
            hashed_password=FAKE_HASH,
            role=first,
        )
        for role in rest:
            await store.save_role(email, role)
        return account.with_roles(roles)

    return _add_account
