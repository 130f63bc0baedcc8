"""
Unit tests for the protected API v1 routes (admin, roles, user).

Routes run against the in-memory repositories so that role and privilege
checks are exercised end to end through the dependency chain.
"""

from collections.abc import Callable
from datetime import date
from unittest.mock import MagicMock, Mock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from src.adapters.repository.memory import InMemoryAccountRepository, InMemoryRoleRepository
from src.api.dependencies import get_account_repository
from src.domain.accounts import AccountService
from src.domain.authentication import TokenService
from src.domain.models import Account, ApprovalStatus, Role
from src.domain.ports import StoredObject
from src.domain.registration import RegistrationService
from tests.helpers import TEST_BCRYPT_COST, TEST_SECRET, bearer, build_app, sent_codes

NEW_USER = {
    "name": "Dave",
    "surname": "Brown",
    "email": "dave@example.com",
    "password": "password123",
    "birthdate": "1990-05-01",
    "role": "user",
}


@pytest.fixture
def app(
    accounts: InMemoryAccountRepository,
    roles: InMemoryRoleRepository,
    email_sender: Mock,
    storage: Mock,
) -> FastAPI:
    return build_app(accounts, roles, email_sender, storage)


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    return TestClient(app)


@pytest.fixture
def login_as(
    accounts: InMemoryAccountRepository, storage: Mock
) -> Callable[[str, str], dict[str, str]]:
    """Create an approved account with ``role``; returns its auth header."""
    service = AccountService(repository=accounts, storage=storage, bcrypt_cost=TEST_BCRYPT_COST)
    tokens = TokenService(secret_key=TEST_SECRET)

    def _login_as(email: str, role: str) -> dict[str, str]:
        account = service.create_account(email, "password123", "Test", "User", None, role)
        return bearer(tokens.issue(account))

    return _login_as


@pytest.fixture
def super_admin(login_as: Callable[[str, str], dict[str, str]]) -> dict[str, str]:
    return login_as("root@example.com", "super admin")


@pytest.fixture
def admin(login_as: Callable[[str, str], dict[str, str]]) -> dict[str, str]:
    return login_as("admin@example.com", "admin")


@pytest.fixture
def user(login_as: Callable[[str, str], dict[str, str]]) -> dict[str, str]:
    return login_as("user@example.com", "user")


@pytest.fixture
def pending_id(registration: RegistrationService, email_sender: Mock) -> int:
    account = registration.register("bob@example.com", "password123", "Bob", "Jones")
    registration.verify_email("bob@example.com", sent_codes(email_sender, "bob@example.com")[-1])
    return account.id


class TestAuthentication:
    def test_missing_token_returns_401(self, client: TestClient) -> None:
        response = client.get("/v1/admin/users")

        assert response.status_code == 401
        assert response.json() == {"detail": "Access denied"}
        assert response.headers["WWW-Authenticate"] == "Bearer"

    def test_non_bearer_scheme_is_missing_token(self, client: TestClient) -> None:
        response = client.get("/v1/admin/users", headers={"Authorization": "Basic abc"})
        assert response.status_code == 401

    def test_bad_token_returns_400(self, client: TestClient) -> None:
        response = client.get("/v1/admin/users", headers=bearer("not.a.token"))

        assert response.status_code == 400
        assert response.json() == {"detail": "Invalid token"}

    def test_foreign_signature_returns_400(self, client: TestClient) -> None:
        account = Account(
            id=1, email="x@example.com", password_hash="x", name="X", surname="Y", role=Role.ADMIN
        )
        forged = TokenService(secret_key="some-other-secret-key-32-bytes-long!").issue(account)

        response = client.get("/v1/admin/users", headers=bearer(forged))

        assert response.status_code == 400


class TestRoleGate:
    def test_user_role_is_forbidden(self, client: TestClient, user: dict[str, str]) -> None:
        response = client.get("/v1/admin/registration-requests", headers=user)

        assert response.status_code == 403
        assert response.json() == {"detail": "Access denied: insufficient privileges"}

    def test_store_untouched_for_wrong_role(
        self, app: FastAPI, client: TestClient, user: dict[str, str]
    ) -> None:
        """A user token is refused before any account store access."""
        repository = MagicMock()
        app.dependency_overrides[get_account_repository] = lambda: repository

        response = client.post(
            "/v1/admin/approve-user/1", json={"role": "admin"}, headers=user
        )

        assert response.status_code == 403
        assert repository.mock_calls == []

    @pytest.mark.parametrize("role_fixture", ["admin", "super_admin"])
    def test_admin_roles_allowed(
        self, client: TestClient, request: pytest.FixtureRequest, role_fixture: str
    ) -> None:
        headers = request.getfixturevalue(role_fixture)
        assert client.get("/v1/admin/users", headers=headers).status_code == 200


class TestRegistrationReview:
    def test_list_pending(self, client: TestClient, admin: dict[str, str], pending_id: int) -> None:
        response = client.get("/v1/admin/registration-requests", headers=admin)

        assert response.status_code == 200
        assert [item["id"] for item in response.json()] == [pending_id]
        assert response.json()[0]["approval_status"] == "pending"

    def test_approve(
        self,
        client: TestClient,
        admin: dict[str, str],
        pending_id: int,
        accounts: InMemoryAccountRepository,
    ) -> None:
        response = client.post(
            f"/v1/admin/approve-user/{pending_id}", json={"role": "admin"}, headers=admin
        )

        assert response.status_code == 200
        assert response.json()["message"] == "User approved successfully"
        assert response.json()["user"]["role"] == "admin"
        assert accounts.get_by_id(pending_id).approval_status == ApprovalStatus.APPROVED

    def test_approve_twice(
        self, client: TestClient, admin: dict[str, str], pending_id: int
    ) -> None:
        client.post(f"/v1/admin/approve-user/{pending_id}", json={"role": "user"}, headers=admin)

        response = client.post(
            f"/v1/admin/approve-user/{pending_id}", json={"role": "admin"}, headers=admin
        )

        assert response.status_code == 400
        assert response.json() == {"detail": "User has already been processed"}

    def test_approve_invalid_role(
        self, client: TestClient, admin: dict[str, str], pending_id: int
    ) -> None:
        response = client.post(
            f"/v1/admin/approve-user/{pending_id}", json={"role": "owner"}, headers=admin
        )

        assert response.status_code == 400
        assert response.json() == {"detail": "Invalid role"}

    def test_approve_unknown(self, client: TestClient, admin: dict[str, str]) -> None:
        response = client.post("/v1/admin/approve-user/999", json={}, headers=admin)

        assert response.status_code == 404
        assert response.json() == {"detail": "User not found"}

    def test_reject(
        self,
        client: TestClient,
        admin: dict[str, str],
        pending_id: int,
        accounts: InMemoryAccountRepository,
    ) -> None:
        response = client.post(f"/v1/admin/reject-user/{pending_id}", headers=admin)

        assert response.status_code == 200
        assert response.json()["user"]["approval_status"] == "rejected"
        assert accounts.get_by_id(pending_id).approval_status == ApprovalStatus.REJECTED


class TestUserManagement:
    def test_create_user(self, client: TestClient, admin: dict[str, str]) -> None:
        response = client.post("/v1/admin/users", json=NEW_USER, headers=admin)

        assert response.status_code == 201
        user = response.json()["user"]
        assert user["email"] == "dave@example.com"
        assert user["approval_status"] == "approved"
        assert user["is_verified"] is True
        assert user["birthdate"] == "1990-05-01"

    def test_create_duplicate(self, client: TestClient, admin: dict[str, str]) -> None:
        client.post("/v1/admin/users", json=NEW_USER, headers=admin)

        response = client.post("/v1/admin/users", json=NEW_USER, headers=admin)

        assert response.status_code == 400
        assert response.json() == {"detail": "User already exists"}

    def test_create_requires_privilege(
        self,
        client: TestClient,
        admin: dict[str, str],
        roles: InMemoryRoleRepository,
    ) -> None:
        """Privileges are read per request from the role store."""
        admin_role = roles.get_by_name("admin")
        roles.update(admin_role.id, None, ["update_user"])

        response = client.post("/v1/admin/users", json=NEW_USER, headers=admin)

        assert response.status_code == 403

    def test_get_user(self, client: TestClient, admin: dict[str, str]) -> None:
        created = client.post("/v1/admin/users", json=NEW_USER, headers=admin).json()["user"]

        response = client.get(f"/v1/admin/users/{created['id']}", headers=admin)

        assert response.status_code == 200
        assert response.json()["email"] == "dave@example.com"
        assert client.get("/v1/admin/users/999", headers=admin).status_code == 404

    def test_update_user(
        self,
        client: TestClient,
        admin: dict[str, str],
        accounts: InMemoryAccountRepository,
    ) -> None:
        created = client.post("/v1/admin/users", json=NEW_USER, headers=admin).json()["user"]

        response = client.put(
            f"/v1/admin/users/{created['id']}",
            json={"surname": "Green", "expired": True, "birthdate": "1991-01-01"},
            headers=admin,
        )

        assert response.status_code == 200
        stored = accounts.get_by_id(created["id"])
        assert stored.surname == "Green"
        assert stored.name == "Dave"
        assert stored.expired is True
        assert stored.birthdate == date(1991, 1, 1)

    def test_update_ignores_approval_status(
        self,
        client: TestClient,
        admin: dict[str, str],
        pending_id: int,
        accounts: InMemoryAccountRepository,
    ) -> None:
        response = client.put(
            f"/v1/admin/users/{pending_id}",
            json={"approval_status": "approved"},
            headers=admin,
        )

        assert response.status_code == 200
        assert accounts.get_by_id(pending_id).approval_status == ApprovalStatus.PENDING

    def test_delete_user(
        self,
        client: TestClient,
        admin: dict[str, str],
        accounts: InMemoryAccountRepository,
    ) -> None:
        created = client.post("/v1/admin/users", json=NEW_USER, headers=admin).json()["user"]

        response = client.delete(f"/v1/admin/users/{created['id']}", headers=admin)

        assert response.status_code == 200
        assert response.json() == {"message": "User deleted successfully"}
        assert accounts.get_by_id(created["id"]) is None
        assert client.delete(f"/v1/admin/users/{created['id']}", headers=admin).status_code == 404


class TestRoleRoutes:
    def test_admin_can_list(self, client: TestClient, admin: dict[str, str]) -> None:
        response = client.get("/v1/roles", headers=admin)

        assert response.status_code == 200
        assert {role["name"] for role in response.json()} == {"super admin", "admin", "user"}

    def test_admin_cannot_manage(self, client: TestClient, admin: dict[str, str]) -> None:
        response = client.post("/v1/roles", json={"name": "auditor"}, headers=admin)
        assert response.status_code == 403

    def test_super_admin_crud(self, client: TestClient, super_admin: dict[str, str]) -> None:
        created = client.post(
            "/v1/roles", json={"name": "auditor", "privileges": ["read_logs"]}, headers=super_admin
        )
        assert created.status_code == 201
        role_id = created.json()["role"]["id"]

        updated = client.put(
            f"/v1/roles/{role_id}",
            json={"privileges": ["read_logs", "export"]},
            headers=super_admin,
        )
        assert updated.json()["role"]["privileges"] == ["read_logs", "export"]

        fetched = client.get(f"/v1/roles/{role_id}", headers=super_admin)
        assert fetched.json()["name"] == "auditor"

        deleted = client.delete(f"/v1/roles/{role_id}", headers=super_admin)
        assert deleted.json() == {"message": "Role deleted successfully"}
        assert client.get(f"/v1/roles/{role_id}", headers=super_admin).status_code == 404

    def test_duplicate_role(self, client: TestClient, super_admin: dict[str, str]) -> None:
        response = client.post("/v1/roles", json={"name": "admin"}, headers=super_admin)

        assert response.status_code == 400
        assert response.json() == {"detail": "Role already exists"}


class TestSelfService:
    def test_profile(self, client: TestClient, user: dict[str, str]) -> None:
        response = client.get("/v1/user/profile", headers=user)

        assert response.status_code == 200
        assert response.json()["email"] == "user@example.com"
        assert response.json()["role"] == "user"

    def test_profile_requires_token(self, client: TestClient) -> None:
        assert client.get("/v1/user/profile").status_code == 401

    def test_upload_profile_picture(
        self, client: TestClient, user: dict[str, str], storage: Mock
    ) -> None:
        storage.upload.return_value = StoredObject(
            url="http://localhost:8000/uploads/abc.png", reference="abc.png"
        )

        response = client.post(
            "/v1/user/upload-profile-picture",
            files={"profile_picture": ("me.png", b"\x89PNG", "image/png")},
            headers=user,
        )

        assert response.status_code == 200
        assert response.json() == {
            "message": "Profile picture updated",
            "profile_picture": "http://localhost:8000/uploads/abc.png",
        }
        storage.upload.assert_called_once_with(b"\x89PNG", "me.png", "image/png")

    def test_upload_rejects_non_image(
        self, client: TestClient, user: dict[str, str], storage: Mock
    ) -> None:
        response = client.post(
            "/v1/user/upload-profile-picture",
            files={"profile_picture": ("notes.txt", b"hello", "text/plain")},
            headers=user,
        )

        assert response.status_code == 400
        assert response.json() == {"detail": "Profile picture must be an image"}
        storage.upload.assert_not_called()

    def test_upload_requires_file(self, client: TestClient, user: dict[str, str]) -> None:
        response = client.post("/v1/user/upload-profile-picture", headers=user)
        assert response.status_code == 400
