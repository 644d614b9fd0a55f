"""Tests for authentication module."""

from datetime import timedelta

from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from shopfloor.auth.utils import create_access_token, decode_access_token
from shopfloor.db.models import User


class TestLogin:
    """Tests for login."""

    def test_login_success(self, client: TestClient, test_operator: User, db: Session):
        """Valid credentials return a bearer token."""
        response = client.post(
            "/api/auth/login",
            json={"email": "operator@example.com", "password": "operatorpass123"},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["token_type"] == "bearer"

        token = decode_access_token(data["access_token"])
        assert token.user_id == test_operator.id
        assert token.role == "operator"

        db.refresh(test_operator)
        assert test_operator.last_login is not None

    def test_login_wrong_password(self, client: TestClient, test_operator: User):
        """Wrong passwords are rejected."""
        response = client.post(
            "/api/auth/login",
            json={"email": "operator@example.com", "password": "wrong"},
        )
        assert response.status_code == 401

    def test_login_unknown_user(self, client: TestClient):
        """Unknown emails are rejected."""
        response = client.post(
            "/api/auth/login",
            json={"email": "nobody@example.com", "password": "whatever"},
        )
        assert response.status_code == 401

    def test_login_disabled_user(self, client: TestClient, test_operator: User, db: Session):
        """Disabled accounts cannot log in."""
        test_operator.is_active = False
        db.commit()
        response = client.post(
            "/api/auth/login",
            json={"email": "operator@example.com", "password": "operatorpass123"},
        )
        assert response.status_code == 401


class TestCurrentUser:
    """Tests for bearer token authentication."""

    def test_me(self, client: TestClient, test_operator: User):
        """A valid token identifies the user."""
        token = create_access_token(test_operator.id, test_operator.email, test_operator.role.value)
        response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 200
        data = response.json()
        assert data["email"] == "operator@example.com"
        assert data["employee_code"] == "07"
        assert data["role"] == "operator"

    def test_missing_token(self, client: TestClient):
        """Requests without a token are unauthorized."""
        assert client.get("/api/auth/me").status_code == 401

    def test_invalid_token(self, client: TestClient):
        """Garbage tokens are unauthorized."""
        response = client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-token"})
        assert response.status_code == 401

    def test_expired_token(self, client: TestClient, test_operator: User):
        """Expired tokens are unauthorized."""
        token = create_access_token(
            test_operator.id, test_operator.email, "operator", expires_delta=timedelta(minutes=-1)
        )
        response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401

    def test_disabled_user(self, client: TestClient, test_operator: User, db: Session):
        """Disabled users are forbidden even with a valid token."""
        token = create_access_token(test_operator.id, test_operator.email, "operator")
        test_operator.is_active = False
        db.commit()
        response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 403
