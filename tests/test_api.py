"""End-to-end tests for the HTTP API."""

from collections.abc import Iterator
from pathlib import Path

import httpx
import pytest
from fastapi.testclient import TestClient

from accountadmin import AppConfig, configure_fastapi_app
from accountadmin.exceptions import StoreUnavailableError
from accountadmin.store import AccountQueries

ADMIN = {
    "name": "Ada",
    "lastname": "Admin",
    "email": "ada@acme.com",
    "password": "ada-strong-password",
}
JOHN = {
    "name": "John",
    "lastname": "Doe",
    "email": "John@acme.com",
    "password": "john-strong-password",
}


@pytest.fixture
def client(tmp_path: Path) -> Iterator[TestClient]:
    """Run the app against a fresh database with cheap hashing."""
    config = AppConfig(
        db_path=str(tmp_path / "api.db"),
        secret_key="s" * 64,
        bcrypt_rounds=4,
        logging_level="DEBUG",
    )
    with TestClient(configure_fastapi_app(config)) as test_client:
        yield test_client


def _login(client: TestClient, email: str, password: str) -> dict[str, str]:
    response = client.post(
        "/api/auth/login",
        data={"username": email, "password": password},
    )
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture
def admin_headers(client: TestClient) -> dict[str, str]:
    """Sign up the first account, which becomes the admin, and log in."""
    assert client.post("/api/auth/signup", json=ADMIN).status_code == 200
    return _login(client, ADMIN["email"], ADMIN["password"])


@pytest.fixture
def user_headers(client: TestClient, admin_headers: dict[str, str]) -> dict[str, str]:
    """Sign up a second, plain user account and log in."""
    assert admin_headers
    assert client.post("/api/auth/signup", json=JOHN).status_code == 200
    return _login(client, JOHN["email"], JOHN["password"])


def _toggle(
    client: TestClient,
    headers: dict[str, str],
    role: str,
    operation: str,
    user: str = "john@acme.com",
) -> httpx.Response:
    return client.put(
        "/api/admin/user-role",
        json={"user": user, "role": role, "operation": operation},
        headers=headers,
    )


class TestAuth:
    """Signup, login, account and password change endpoints."""

    def test_root(self, client: TestClient) -> None:
        assert client.get("/").json() == "Account Admin API"

    def test_first_signup_is_admin_then_users(self, client: TestClient) -> None:
        first = client.post("/api/auth/signup", json=ADMIN)
        second = client.post("/api/auth/signup", json=JOHN)

        assert first.status_code == 200
        assert first.json()["roles"] == ["ROLE_ADMIN"]
        assert second.json()["roles"] == ["ROLE_USER"]
        assert second.json()["email"] == "john@acme.com"
        assert "password" not in second.text

    def test_duplicate_signup(self, client: TestClient) -> None:
        client.post("/api/auth/signup", json=JOHN)

        response = client.post(
            "/api/auth/signup",
            json={**JOHN, "email": "JOHN@ACME.COM"},
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "User exist!"

    def test_signup_lists_every_violation(self, client: TestClient) -> None:
        response = client.post(
            "/api/auth/signup",
            json={"name": "", "email": "nope", "password": "x"},
        )

        assert response.status_code == 400
        assert response.json()["detail"] == (
            "Name must not be empty! && Lastname must not be empty! && "
            "Invalid email given: 'nope'!"
        )

    def test_signup_password_rules(self, client: TestClient) -> None:
        response = client.post(
            "/api/auth/signup",
            json={**JOHN, "password": "PasswordForMay"},
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "The password is in the hacker's database!"

    def test_login_failures(self, client: TestClient) -> None:
        client.post("/api/auth/signup", json=JOHN)

        wrong = client.post(
            "/api/auth/login",
            data={"username": "john@acme.com", "password": "not-the-password"},
        )
        unknown = client.post(
            "/api/auth/login",
            data={"username": "ghost@acme.com", "password": "not-the-password"},
        )

        assert wrong.status_code == 401
        assert unknown.status_code == 401
        assert wrong.json() == unknown.json()

    def test_account(self, client: TestClient, user_headers: dict[str, str]) -> None:
        response = client.get("/api/auth/account", headers=user_headers)

        assert response.status_code == 200
        assert response.json()["email"] == "john@acme.com"
        assert response.json()["roles"] == ["ROLE_USER"]

    def test_missing_or_bad_token(self, client: TestClient) -> None:
        assert client.get("/api/auth/account").status_code == 401
        response = client.get(
            "/api/auth/account",
            headers={"Authorization": "Bearer not.a.jwt"},
        )
        assert response.status_code == 401

    def test_change_password(
        self,
        client: TestClient,
        user_headers: dict[str, str],
    ) -> None:
        same = client.post(
            "/api/auth/changepass",
            json={"new_password": JOHN["password"]},
            headers=user_headers,
        )
        changed = client.post(
            "/api/auth/changepass",
            json={"new_password": "john-brand-new-password"},
            headers=user_headers,
        )

        assert same.status_code == 400
        assert same.json()["detail"] == "The passwords must be different!"
        assert changed.status_code == 200
        assert changed.json() == {
            "user": "john@acme.com",
            "status": "The password has been updated successfully",
        }
        _login(client, "john@acme.com", "john-brand-new-password")


class TestAdmin:
    """Listing, role toggling and deletion endpoints."""

    def test_admin_endpoints_require_admin(
        self,
        client: TestClient,
        user_headers: dict[str, str],
    ) -> None:
        listing = client.get("/api/admin/user-listing", headers=user_headers)
        toggle = _toggle(client, user_headers, "auditor", "grant")
        delete = client.delete("/api/admin/user/ada@acme.com", headers=user_headers)

        assert listing.status_code == 403
        assert toggle.status_code == 403
        assert delete.status_code == 403
        assert listing.json()["detail"] == "Access Denied!"

    def test_unauthenticated(self, client: TestClient) -> None:
        assert client.get("/api/admin/user-listing").status_code == 401

    def test_listing(
        self,
        client: TestClient,
        admin_headers: dict[str, str],
        user_headers: dict[str, str],
    ) -> None:
        assert user_headers
        response = client.get("/api/admin/user-listing", headers=admin_headers)

        assert response.status_code == 200
        body = response.json()
        assert [account["email"] for account in body] == [
            "ada@acme.com",
            "john@acme.com",
        ]
        assert body[0]["roles"] == ["ROLE_ADMIN"]

    def test_toggle_sequence(
        self,
        client: TestClient,
        admin_headers: dict[str, str],
        user_headers: dict[str, str],
    ) -> None:
        granted = _toggle(client, admin_headers, "ACCOUNTANT", "GRANT")
        assert granted.status_code == 200
        assert granted.json()["roles"] == ["ROLE_ACCOUNTANT", "ROLE_USER"]

        combined = _toggle(client, admin_headers, "ADMIN", "GRANT")
        assert combined.status_code == 400
        assert combined.json()["detail"] == (
            "The user cannot combine administrative and business roles!"
        )

        removed = _toggle(client, admin_headers, "USER", "REMOVE")
        assert removed.json()["roles"] == ["ROLE_ACCOUNTANT"]

        last = _toggle(client, admin_headers, "ACCOUNTANT", "REMOVE")
        assert last.status_code == 400
        assert last.json()["detail"] == "The user must have at least one role!"

        # The role change is visible to the next request of that user
        account = client.get("/api/auth/account", headers=user_headers)
        assert account.json()["roles"] == ["ROLE_ACCOUNTANT"]

    @pytest.mark.parametrize(
        ("user", "role", "operation", "status_code", "detail"),
        [
            ("john@acme.com", "janitor", "GRANT", 404, "Role not found!"),
            ("ghost@acme.com", "auditor", "GRANT", 404, "User not found!"),
            ("john@acme.com", "user", "GRANT", 400, "The user already has the role!"),
            (
                "john@acme.com",
                "auditor",
                "REMOVE",
                400,
                "The user does not have a role!",
            ),
            ("ada@acme.com", "admin", "REMOVE", 400, "Can't remove ADMINISTRATOR role!"),
            ("john@acme.com", "user", "flip", 400, "Operation must be GRANT or REMOVE!"),
        ],
    )
    def test_toggle_errors(  # noqa: PLR0913
        self,
        client: TestClient,
        admin_headers: dict[str, str],
        user_headers: dict[str, str],
        user: str,
        role: str,
        operation: str,
        status_code: int,
        detail: str,
    ) -> None:
        assert user_headers
        response = _toggle(client, admin_headers, role, operation, user=user)

        assert response.status_code == status_code
        assert response.json()["detail"] == detail

    def test_malformed_body(
        self,
        client: TestClient,
        admin_headers: dict[str, str],
    ) -> None:
        response = client.put(
            "/api/admin/user-role",
            content="not json",
            headers={**admin_headers, "Content-Type": "application/json"},
        )

        assert response.status_code == 400

    def test_delete_user(
        self,
        client: TestClient,
        admin_headers: dict[str, str],
        user_headers: dict[str, str],
    ) -> None:
        response = client.delete(
            "/api/admin/user/john@acme.com",
            headers=admin_headers,
        )

        assert response.status_code == 200
        assert response.json() == {"user": "john@acme.com", "status": "deleted"}
        listing = client.get("/api/admin/user-listing", headers=admin_headers)
        assert [account["email"] for account in listing.json()] == ["ada@acme.com"]
        # The deleted user's token no longer resolves to an account
        account = client.get("/api/auth/account", headers=user_headers)
        assert account.status_code == 401

    def test_delete_errors(
        self,
        client: TestClient,
        admin_headers: dict[str, str],
    ) -> None:
        admin = client.delete("/api/admin/user/ada@acme.com", headers=admin_headers)
        ghost = client.delete("/api/admin/user/ghost@acme.com", headers=admin_headers)

        assert admin.status_code == 400
        assert admin.json()["detail"] == "Can't remove ADMINISTRATOR role!"
        assert ghost.status_code == 404
        assert ghost.json()["detail"] == "User not found!"


class TestStoreFailures:
    """Infrastructure failures reach the caller as 503."""

    def test_listing_store_failure(
        self,
        client: TestClient,
        admin_headers: dict[str, str],
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        async def failing_find_all(_self: AccountQueries) -> list:
            raise StoreUnavailableError

        monkeypatch.setattr(AccountQueries, "find_all", failing_find_all)

        response = client.get("/api/admin/user-listing", headers=admin_headers)

        assert response.status_code == 503
        assert response.json()["detail"] == "Credential store unavailable"

    def test_toggle_store_failure(
        self,
        client: TestClient,
        admin_headers: dict[str, str],
        user_headers: dict[str, str],
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        async def failing_change_roles(
            _self: AccountQueries,
            _email: str,
            _decide: object,
        ) -> list[str]:
            raise StoreUnavailableError

        assert user_headers
        monkeypatch.setattr(AccountQueries, "change_roles", failing_change_roles)

        response = _toggle(client, admin_headers, "auditor", "grant")

        assert response.status_code == 503
        assert response.json()["detail"] == "Credential store unavailable"

    def test_login_store_failure(
        self,
        client: TestClient,
        admin_headers: dict[str, str],
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        async def failing_find_by_email(_self: AccountQueries, _email: str) -> None:
            raise StoreUnavailableError

        assert admin_headers
        monkeypatch.setattr(AccountQueries, "find_by_email", failing_find_by_email)

        response = client.post(
            "/api/auth/login",
            data={"username": ADMIN["email"], "password": ADMIN["password"]},
        )

        assert response.status_code == 503
