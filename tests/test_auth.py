import inspect

import pytest

from sehat_sathi.core.config import settings
from sehat_sathi.core.security import UserRole, issue_token

# Test data
test_user_data = {
    "name": "Test User",
    "email": "test@example.com",
    "password": "TestPassword123",
    "role": "patient",
    "phone": "9876543210",
}

test_login_data = {
    "email": "test@example.com",
    "password": "TestPassword123"
}


class TestAuthentication:

    def test_register_user(self, client):
        """Test user registration."""
        response = client.post("/api/v1/auth/register", json=test_user_data)
        assert response.status_code == 201

        body = response.json()
        assert body["success"] is True
        user = body["data"]["user"]
        assert user["email"] == test_user_data["email"]
        assert user["role"] == test_user_data["role"]
        assert user["is_active"] is True
        assert "password" not in user
        assert "password_hash" not in user
        assert body["data"]["token"]

    def test_register_duplicate_email(self, client):
        """Test registration with duplicate email."""
        client.post("/api/v1/auth/register", json=test_user_data)

        duplicate = dict(test_user_data, email="TEST@Example.com")
        response = client.post("/api/v1/auth/register", json=duplicate)
        assert response.status_code == 409

        body = response.json()
        assert body["success"] is False
        assert body["kind"] == "DuplicateEmail"
        assert "already exists" in body["message"]

    def test_register_short_password(self, client):
        """Test registration with a five character password."""
        invalid_data = dict(test_user_data, password="abcde")

        response = client.post("/api/v1/auth/register", json=invalid_data)
        assert response.status_code == 400
        assert response.json()["kind"] == "ValidationError"
        assert "password" in response.json()["message"]

    @pytest.mark.parametrize("field,value", [
        ("email", "not-an-email"),
        ("role", "admin"),
        ("name", ""),
    ])
    def test_register_invalid_fields(self, client, field, value):
        """Test registration with malformed fields."""
        response = client.post("/api/v1/auth/register", json=dict(test_user_data, **{field: value}))
        assert response.status_code == 400
        assert response.json()["kind"] == "ValidationError"

    def test_register_missing_fields(self, client):
        """Test registration without a role."""
        payload = {k: v for k, v in test_user_data.items() if k != "role"}
        response = client.post("/api/v1/auth/register", json=payload)
        assert response.status_code == 400

    def test_login_success(self, client):
        """Test successful login."""
        client.post("/api/v1/auth/register", json=test_user_data)

        response = client.post("/api/v1/auth/login", json=test_login_data)
        assert response.status_code == 200

        data = response.json()["data"]
        assert data["token"]
        assert data["token_type"] == "bearer"
        assert data["expires_in"] == settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60
        assert data["user"]["email"] == test_login_data["email"]

    def test_login_email_is_case_insensitive(self, client):
        client.post("/api/v1/auth/register", json=test_user_data)

        response = client.post(
            "/api/v1/auth/login",
            json=dict(test_login_data, email="Test@Example.COM"),
        )
        assert response.status_code == 200

    def test_login_invalid_credentials(self, client):
        """Test login with invalid credentials."""
        invalid_login = {
            "email": "nonexistent@example.com",
            "password": "wrongpassword"
        }

        response = client.post("/api/v1/auth/login", json=invalid_login)
        assert response.status_code == 401
        assert response.json()["kind"] == "InvalidCredentials"

    def test_login_wrong_password(self, client):
        """Test login with wrong password."""
        client.post("/api/v1/auth/register", json=test_user_data)

        wrong_login = dict(test_login_data, password="wrongpassword")

        response = client.post("/api/v1/auth/login", json=wrong_login)
        assert response.status_code == 401
        assert response.json()["kind"] == "InvalidCredentials"

    def test_get_current_user(self, client):
        """Test getting current user info."""
        client.post("/api/v1/auth/register", json=test_user_data)
        login_response = client.post("/api/v1/auth/login", json=test_login_data)

        token = login_response.json()["data"]["token"]
        headers = {"Authorization": f"Bearer {token}"}

        response = client.get("/api/v1/auth/me", headers=headers)
        assert response.status_code == 200
        assert response.json()["data"]["email"] == test_user_data["email"]

    def test_get_current_user_without_token(self, client):
        response = client.get("/api/v1/auth/me")
        assert response.status_code == 401
        assert response.json()["kind"] == "Unauthenticated"

    def test_get_current_user_invalid_token(self, client):
        """Test get current user with invalid token."""
        headers = {"Authorization": "Bearer invalid_token"}

        response = client.get("/api/v1/auth/me", headers=headers)
        assert response.status_code == 401
        assert response.json()["kind"] == "InvalidToken"

    def test_get_current_user_wrong_scheme(self, client, register_user):
        _, headers = register_user()
        token = headers["Authorization"].split(" ")[1]

        response = client.get("/api/v1/auth/me", headers={"Authorization": f"Token {token}"})
        assert response.status_code == 401

    def test_token_for_unknown_account(self, client):
        headers = {"Authorization": f"Bearer {issue_token(9999, UserRole.PATIENT)}"}

        response = client.get("/api/v1/auth/me", headers=headers)
        assert response.status_code == 401
        assert response.json()["kind"] == "Unauthenticated"

    def test_logout_revokes_token(self, client, register_user, fake_redis):
        """Test user logout."""
        _, headers = register_user()

        response = client.post("/api/v1/auth/logout", headers=headers)
        assert response.status_code == 200
        assert response.json()["success"] is True
        assert any(key.startswith("revoked_token:") for key in fake_redis.data)

        response = client.get("/api/v1/auth/me", headers=headers)
        assert response.status_code == 401

    def test_logout_does_not_affect_other_sessions(self, client):
        client.post("/api/v1/auth/register", json=test_user_data)
        first = client.post("/api/v1/auth/login", json=test_login_data).json()["data"]["token"]
        second = client.post("/api/v1/auth/login", json=test_login_data).json()["data"]["token"]

        client.post("/api/v1/auth/logout", headers={"Authorization": f"Bearer {first}"})

        response = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {second}"})
        assert response.status_code == 200

    def test_rate_limit(self, client, monkeypatch):
        monkeypatch.setattr(settings, "RATE_LIMIT_PER_HOUR", 2)

        statuses = [
            client.post("/api/v1/auth/login", json=test_login_data).status_code
            for _ in range(3)
        ]
        assert statuses[:2] == [401, 401]
        assert statuses[2] == 429


class TestAccountDeactivation:

    def test_deactivated_account_cannot_login(self, client, register_user, session_factory):
        from sehat_sathi.services.identity_service import IdentityService

        user, _ = register_user(email="inactive@example.com")
        session = session_factory()
        try:
            IdentityService(session).set_active(user["id"], False)
        finally:
            session.close()

        response = client.post(
            "/api/v1/auth/login",
            json={"email": "inactive@example.com", "password": "TestPassword123"},
        )
        assert response.status_code == 401
        assert response.json()["kind"] == "AccountInactive"

    def test_existing_token_rejected_after_deactivation(self, client, register_user, session_factory):
        from sehat_sathi.services.identity_service import IdentityService

        user, headers = register_user()
        assert client.get("/api/v1/auth/me", headers=headers).status_code == 200

        session = session_factory()
        try:
            IdentityService(session).set_active(user["id"], False)
        finally:
            session.close()

        response = client.get("/api/v1/auth/me", headers=headers)
        assert response.status_code == 401
        assert response.json()["kind"] == "AccountInactive"


class TestApplication:

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["data"]["status"] == "healthy"

    def test_unknown_route(self, client):
        response = client.get("/api/v1/nothing-here")
        assert response.status_code == 404
        assert response.json() == {
            "success": False,
            "message": "The requested resource was not found",
            "kind": "NotFound",
            "data": None,
        }

    def test_process_time_header(self, client):
        response = client.get("/")
        assert "X-Process-Time" in response.headers

    def test_api_handlers_run_in_threadpool(self):
        """Database-backed handlers and their dependencies are plain functions."""
        from fastapi.routing import APIRoute
        from sehat_sathi.main import app

        def walk(dependant):
            yield dependant.call
            for sub in dependant.dependencies:
                yield from walk(sub)

        api_routes = [
            route for route in app.routes
            if isinstance(route, APIRoute) and route.path.startswith("/api/v1")
        ]
        assert api_routes
        for route in api_routes:
            for call in walk(route.dependant):
                # Security schemes such as HTTPBearer are callable objects
                if not inspect.isfunction(call):
                    continue
                assert not inspect.iscoroutinefunction(call), f"{route.path}: {call.__name__}"


if __name__ == "__main__":
    pytest.main([__file__])
