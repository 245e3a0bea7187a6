"""
Integration tests for authentication endpoints.

Tests registration with an access code, login, Google sign-in and the
current user profile.
"""

import pytest

from tests.utils import auth_headers, enroll_child, expire_code, register_parent


@pytest.mark.integration
@pytest.mark.asyncio
class TestRegister:
    """Test POST /auth/register."""

    async def test_register_links_child(self, async_client, store, unregistered_child):
        response = await register_parent(async_client, "newparent@example.com", unregistered_child["code"])

        assert response.status_code == 201
        data = response.json()
        assert data["access_token"]
        assert data["token_type"] == "bearer"
        assert data["linked_child_id"] == unregistered_child["id"]
        assert data["link_error"] is None
        assert data["user"]["role"] == "parent"
        assert data["user"]["linked_child_ids"] == [unregistered_child["id"]]

        user_id = data["user"]["id"]
        assert store.children[unregistered_child["id"]].parent_id == user_id
        assert store.codes[unregistered_child["code"]].used is True

    async def test_register_with_lowercase_code(self, async_client, unregistered_child):
        response = await register_parent(async_client, "newparent@example.com", unregistered_child["code"].lower())

        assert response.status_code == 201
        assert response.json()["linked_child_id"] == unregistered_child["id"]

    async def test_register_unknown_code(self, async_client, store):
        response = await register_parent(async_client, "newparent@example.com", "ZZZZ9999")

        assert response.status_code == 404
        assert "not found" in response.json()["detail"]
        # No orphaned account
        assert store.users == {}

    async def test_register_expired_code(self, async_client, linking_service, store, unregistered_child):
        await expire_code(linking_service, unregistered_child["code"])

        response = await register_parent(async_client, "newparent@example.com", unregistered_child["code"])

        assert response.status_code == 410
        assert store.users == {}

    async def test_register_used_code(self, async_client, unregistered_child):
        first = await register_parent(async_client, "newparent@example.com", unregistered_child["code"])
        assert first.status_code == 201

        response = await register_parent(async_client, "second@example.com", unregistered_child["code"])

        assert response.status_code == 409

    async def test_register_duplicate_email(self, async_client, linking_service, test_parent):
        child = await enroll_child(linking_service, "Ava", test_parent["email"])

        response = await register_parent(async_client, test_parent["email"], child["code"])

        assert response.status_code == 400
        assert response.json()["detail"] == "Email already registered"

    async def test_register_invalid_payload(self, async_client):
        response = await async_client.post(
            "/auth/register",
            json={"email": "not-an-email", "password": "123", "display_name": "", "access_code": ""}
        )

        assert response.status_code == 422


@pytest.mark.integration
@pytest.mark.asyncio
class TestLogin:
    """Test POST /auth/login."""

    async def test_login_success(self, async_client, test_parent):
        response = await async_client.post(
            "/auth/login",
            json={"email": test_parent["email"], "password": test_parent["password"]}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["user"]["id"] == test_parent["id"]
        assert data["user"]["last_login_at"] is not None

    async def test_login_email_is_case_insensitive(self, async_client, test_parent):
        response = await async_client.post(
            "/auth/login",
            json={"email": test_parent["email"].upper(), "password": test_parent["password"]}
        )

        assert response.status_code == 200

    async def test_login_wrong_password(self, async_client, test_parent):
        response = await async_client.post(
            "/auth/login",
            json={"email": test_parent["email"], "password": "wrong-password"}
        )

        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid email or password"

    async def test_login_unknown_user(self, async_client):
        response = await async_client.post(
            "/auth/login",
            json={"email": "nobody@example.com", "password": "whatever"}
        )

        assert response.status_code == 401


@pytest.mark.integration
@pytest.mark.asyncio
class TestGoogleSignIn:
    """Test POST /auth/google with the Google exchange stubbed out."""

    @pytest.fixture
    def google_profile(self, monkeypatch):
        profile = {"email": "googler@example.com", "name": "Gina Googler", "verified_email": True}

        async def fake_exchange(code):
            return profile

        monkeypatch.setattr("daycare.routes.auth.exchange_code_for_token", fake_exchange)
        return profile

    async def test_google_creates_parent_without_links(self, async_client, store, google_profile):
        response = await async_client.post("/auth/google", json={"code": "auth-code"})

        assert response.status_code == 200
        user = response.json()["user"]
        assert user["email"] == "googler@example.com"
        assert user["display_name"] == "Gina Googler"
        assert user["auth_provider"] == "google"
        assert user["role"] == "parent"
        assert user["linked_child_ids"] == []
        assert len(store.users) == 1

    async def test_google_existing_user_signs_in(self, async_client, store, google_profile):
        first = await async_client.post("/auth/google", json={"code": "auth-code"})
        second = await async_client.post("/auth/google", json={"code": "auth-code"})

        assert first.json()["user"]["id"] == second.json()["user"]["id"]
        assert len(store.users) == 1

    async def test_google_with_access_code(self, async_client, linking_service, google_profile):
        child = await enroll_child(linking_service, "Sam", "someone@example.com")

        response = await async_client.post(
            "/auth/google",
            json={"code": "auth-code", "access_code": child["code"]}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["linked_child_id"] == child["id"]
        assert data["user"]["linked_child_ids"] == [child["id"]]

    async def test_google_with_bad_access_code_keeps_account(self, async_client, store, google_profile):
        response = await async_client.post(
            "/auth/google",
            json={"code": "auth-code", "access_code": "ZZZZ9999"}
        )

        assert response.status_code == 200
        assert "not found" in response.json()["link_error"]
        assert len(store.users) == 1

    async def test_google_exchange_failure(self, async_client, monkeypatch):
        async def failing_exchange(code):
            raise ValueError("Google OAuth credentials not configured")

        monkeypatch.setattr("daycare.routes.auth.exchange_code_for_token", failing_exchange)

        response = await async_client.post("/auth/google", json={"code": "auth-code"})

        assert response.status_code == 502

    async def test_google_url(self, async_client):
        response = await async_client.get("/auth/google/url")

        assert response.status_code == 200
        assert "state=" in response.json()["url"]


@pytest.mark.integration
@pytest.mark.asyncio
class TestProfile:
    """Test GET /auth/me."""

    async def test_get_me(self, async_client, parent_token, test_parent):
        response = await async_client.get("/auth/me", headers=auth_headers(parent_token))

        assert response.status_code == 200
        assert response.json()["email"] == test_parent["email"]
        assert "password_hash" not in response.json()

    async def test_get_me_unauthenticated(self, async_client):
        response = await async_client.get("/auth/me")

        assert response.status_code == 401
