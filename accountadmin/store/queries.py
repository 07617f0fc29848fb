"""All queries related to accounts, role assignments and salaries.

Using the AccountQueries class as the SQLite credential store.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

import aiosqlite

from accountadmin.common import Account
from accountadmin.exceptions import StoreUnavailableError, UserExistsError

from .interface import CredentialStore

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, Callable, Iterable

    from aiosqlite import Connection

LOGGER = logging.getLogger(__name__)
LOGGER.setLevel(logging.DEBUG)

_STORE_FAILURE = "Credential store unavailable"


class AccountQueries(CredentialStore):
    """Repository for account and role queries backed by one aiosqlite connection.

    The connection is shared by every request, so statements are serialized
    through a lock and every write runs in its own transaction.
    """

    ENABLE_FOREIGN_KEYS = """PRAGMA foreign_keys = ON;"""

    BEGIN_IMMEDIATE = """BEGIN IMMEDIATE;"""

    CREATE_USERS_TABLE = """
        CREATE TABLE IF NOT EXISTS users (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            lastname TEXT NOT NULL,
            email TEXT NOT NULL UNIQUE,
            hashed_password BLOB NOT NULL,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        );
        """

    CREATE_ROLES_TABLE = """
        CREATE TABLE IF NOT EXISTS roles (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            role_name TEXT NOT NULL UNIQUE
        );
        """

    CREATE_USER_ROLES_TABLE = """
        CREATE TABLE IF NOT EXISTS user_roles (
            email TEXT NOT NULL,
            role TEXT NOT NULL,
            PRIMARY KEY (email, role),
            FOREIGN KEY (email) REFERENCES users (email),
            FOREIGN KEY (role) REFERENCES roles (role_name)
        );
        """

    CREATE_SALARIES_TABLE = """
        CREATE TABLE IF NOT EXISTS salaries (
            email TEXT NOT NULL,
            period TEXT NOT NULL,
            salary INTEGER NOT NULL,
            PRIMARY KEY (email, period),
            FOREIGN KEY (email) REFERENCES users (email)
        );
        """

    SEED_ROLE = """INSERT OR IGNORE INTO roles (role_name) VALUES (?);"""

    LIST_ROLES = """SELECT role_name FROM roles ORDER BY id ASC;"""

    COUNT_USERS = """SELECT COUNT(*) FROM users;"""

    GET_USER_BY_EMAIL = """
        SELECT id, name, lastname, email, hashed_password FROM users WHERE email = ?;
        """

    GET_ALL_USERS = """
        SELECT id, name, lastname, email, hashed_password FROM users ORDER BY id ASC;
        """

    GET_ROLES_BY_EMAIL = """
        SELECT role FROM user_roles WHERE email = ? ORDER BY role ASC;
        """

    ADD_USER = """
        INSERT INTO users (name, lastname, email, hashed_password) VALUES (?, ?, ?, ?);
        """

    ADD_ROLE = """INSERT INTO user_roles (email, role) VALUES (?, ?);"""

    ADD_SALARY = """
        INSERT INTO salaries (email, period, salary) VALUES (?, ?, ?);
        """

    UPDATE_USER_PASSWORD = """
        UPDATE users SET hashed_password = ? WHERE email = ?;
        """

    DELETE_ROLE = """DELETE FROM user_roles WHERE email = ? AND role = ?;"""

    DELETE_ALL_ROLES = """DELETE FROM user_roles WHERE email = ?;"""

    DELETE_ALL_SALARIES = """DELETE FROM salaries WHERE email = ?;"""

    DELETE_USER = """DELETE FROM users WHERE email = ?;"""

    def __init__(self, connection: Connection) -> None:
        self.connection = connection
        self._lock = asyncio.Lock()

    async def close(self) -> None:
        """Close the database connection."""
        await self.connection.close()

    @asynccontextmanager
    async def transaction(
        self,
        *,
        immediate: bool = False,
    ) -> AsyncGenerator[Connection, None]:
        """Run the enclosed statements as one transaction.

        Commits on success and rolls back on any failure. SQLite errors are
        re-raised as StoreUnavailableError.

        With ``immediate`` the database write lock is taken before the first
        statement, so a read-decide-write sequence cannot interleave with
        writers on other connections, including other processes.
        """
        async with self._lock:
            try:
                if immediate:
                    await self.connection.execute(AccountQueries.BEGIN_IMMEDIATE)
                yield self.connection
                await self.connection.commit()
            except aiosqlite.Error as e:
                await self.connection.rollback()
                LOGGER.exception("Store transaction failed and was rolled back")
                raise StoreUnavailableError(_STORE_FAILURE) from e
            except BaseException:
                await self.connection.rollback()
                raise

    async def _fetchall(
        self,
        query: str,
        parameters: Iterable[Any] = (),
    ) -> list[aiosqlite.Row]:
        async with self._lock:
            try:
                cursor = await self.connection.execute(query, tuple(parameters))
                rows = await cursor.fetchall()
                await cursor.close()
            except aiosqlite.Error as e:
                LOGGER.exception("Store read failed")
                raise StoreUnavailableError(_STORE_FAILURE) from e
        return list(rows)

    async def _write(self, query: str, parameters: Iterable[Any]) -> int:
        async with self.transaction() as db:
            cursor = await db.execute(query, tuple(parameters))
            return cursor.rowcount

    @staticmethod
    def _account_from_row(row: aiosqlite.Row) -> Account:
        account_id, name, lastname, email, hashed_password = row
        return Account(
            id=account_id,
            name=name,
            lastname=lastname,
            email=email,
            hashed_password=hashed_password,
        )

    async def initialize_tables(self) -> None:
        """Create all tables if they do not exist.

        This method should be called during application startup.
        """
        async with self.transaction() as db:
            await db.execute(AccountQueries.ENABLE_FOREIGN_KEYS)
            await db.execute(AccountQueries.CREATE_USERS_TABLE)
            await db.execute(AccountQueries.CREATE_ROLES_TABLE)
            await db.execute(AccountQueries.CREATE_USER_ROLES_TABLE)
            await db.execute(AccountQueries.CREATE_SALARIES_TABLE)
        LOGGER.debug("Account tables initialized")

    async def seed_roles(self, role_names: Iterable[str]) -> None:
        """Insert catalog roles that do not exist yet.

        :param role_names: Canonical role names
        """
        async with self.transaction() as db:
            await db.executemany(
                AccountQueries.SEED_ROLE,
                [(role_name,) for role_name in role_names],
            )

    async def list_roles(self) -> list[str]:
        rows = await self._fetchall(AccountQueries.LIST_ROLES)
        return [row[0] for row in rows]

    async def count_users(self) -> int:
        rows = await self._fetchall(AccountQueries.COUNT_USERS)
        return rows[0][0] if rows else 0

    async def find_by_email(self, email: str) -> Account | None:
        """Return the account row for an email.

        :param email: Normalized account email
        :return: The Account without roles, or None if there is no such row
        """
        rows = await self._fetchall(AccountQueries.GET_USER_BY_EMAIL, (email,))
        return self._account_from_row(rows[0]) if rows else None

    async def find_all(self) -> list[Account]:
        """Return every account ascending by id.

        :return: Accounts without roles
        """
        rows = await self._fetchall(AccountQueries.GET_ALL_USERS)
        return [self._account_from_row(row) for row in rows]

    async def find_roles_by_email(self, email: str) -> list[str]:
        rows = await self._fetchall(AccountQueries.GET_ROLES_BY_EMAIL, (email,))
        return [row[0] for row in rows]

    async def save_role(self, email: str, role: str) -> None:
        await self._write(AccountQueries.ADD_ROLE, (email, role))

    async def delete_role(self, email: str, role: str) -> int:
        return await self._write(AccountQueries.DELETE_ROLE, (email, role))

    async def delete_all_roles(self, email: str) -> int:
        return await self._write(AccountQueries.DELETE_ALL_ROLES, (email,))

    async def delete_all_salaries(self, email: str) -> int:
        return await self._write(AccountQueries.DELETE_ALL_SALARIES, (email,))

    async def delete_by_email(self, email: str) -> int:
        return await self._write(AccountQueries.DELETE_USER, (email,))

    async def save_salary(self, email: str, period: str, salary: int) -> None:
        """Insert one salary row for an existing account.

        :param email: Normalized account email
        :param period: Payroll period, e.g. ``"01-2024"``
        :param salary: Salary in cents
        """
        await self._write(AccountQueries.ADD_SALARY, (email, period, salary))

    async def _roles_in_transaction(self, db: Connection, email: str) -> list[str]:
        cursor = await db.execute(AccountQueries.GET_ROLES_BY_EMAIL, (email,))
        rows = await cursor.fetchall()
        await cursor.close()
        return [row[0] for row in rows]

    async def change_roles(
        self,
        email: str,
        decide: Callable[[list[str]], tuple[str | None, str | None]],
    ) -> list[str]:
        """Read, decide and write an account's roles under the write lock.

        ``decide`` receives the current roles and returns the role to insert
        and the role to delete (either may be None). Anything it raises
        aborts the transaction without a write.

        :param email: Normalized account email
        :param decide: Decision callback run inside the transaction
        :return: The roles after the change, sorted by name
        """
        async with self.transaction(immediate=True) as db:
            granted, removed = decide(await self._roles_in_transaction(db, email))
            if granted is not None:
                await db.execute(AccountQueries.ADD_ROLE, (email, granted))
            if removed is not None:
                await db.execute(AccountQueries.DELETE_ROLE, (email, removed))
            return await self._roles_in_transaction(db, email)

    async def delete_account_cascade(
        self,
        email: str,
        check: Callable[[list[str]], None] | None = None,
    ) -> None:
        """Delete an account with all of its dependent rows.

        Children go before the parent row and everything happens in a single
        transaction under the write lock, so a failure leaves the account
        untouched.

        :param email: Normalized account email
        :param check: Called with the current roles first, raises to refuse
        """
        async with self.transaction(immediate=True) as db:
            if check is not None:
                check(await self._roles_in_transaction(db, email))
            roles = await db.execute(AccountQueries.DELETE_ALL_ROLES, (email,))
            salaries = await db.execute(AccountQueries.DELETE_ALL_SALARIES, (email,))
            await db.execute(AccountQueries.DELETE_USER, (email,))
        LOGGER.debug(
            "Deleted %s with %d role and %d salary rows",
            email,
            roles.rowcount,
            salaries.rowcount,
        )

    async def create_account(
        self,
        name: str,
        lastname: str,
        email: str,
        hashed_password: bytes,
        role: str,
        first_account_role: str | None = None,
    ) -> Account:
        """Create a new account together with its initial role.

        :param name: First name
        :param lastname: Last name
        :param email: Normalized account email
        :param hashed_password: Password hash to store
        :param role: Role given to the new account
        :param first_account_role: Role given instead when no account exists yet
        :return: The created Account with its role
        :raises UserExistsError: If the email is already registered
        """
        async with self.transaction(immediate=True) as db:
            cursor = await db.execute(AccountQueries.GET_USER_BY_EMAIL, (email,))
            if await cursor.fetchone() is not None:
                raise UserExistsError

            if first_account_role is not None:
                cursor = await db.execute(AccountQueries.COUNT_USERS)
                (user_count,) = await cursor.fetchone()
                if user_count == 0:
                    role = first_account_role

            cursor = await db.execute(
                AccountQueries.ADD_USER,
                (name, lastname, email, hashed_password),
            )
            account_id = cursor.lastrowid
            await db.execute(AccountQueries.ADD_ROLE, (email, role))

        LOGGER.info("Created account %s with role %s", email, role)
        return Account(
            id=account_id,
            name=name,
            lastname=lastname,
            email=email,
            hashed_password=hashed_password,
            roles=[role],
        )

    async def update_password(self, email: str, hashed_password: bytes) -> int:
        """Replace the password hash of an account.

        :param email: Normalized account email
        :param hashed_password: New password hash
        :return: Number of rows updated
        """
        return await self._write(
            AccountQueries.UPDATE_USER_PASSWORD,
            (hashed_password, email),
        )
