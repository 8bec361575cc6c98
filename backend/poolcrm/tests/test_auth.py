"""
Authentication and authorization tests for the pool CRM.

Tests cover whitelist-gated registration, company-scoped login, JWT token
handling and employee logon tracking.
"""
from datetime import datetime, timedelta, timezone
from fastapi import status

from poolcrm.auth.jwt_handler import JWTHandler, PasswordHandler
from .conftest import TEST_PASSWORD, bearer, register
from .test_base import BaseAPITest


class TestRegistration(BaseAPITest):
    """Test cases for user registration."""

    def test_first_user_creates_company(self, client, sample_registration):
        """The first registration for a company ID creates the company with an admin."""
        response = client.post("/api/auth/register", json=sample_registration)

        self.assert_success_response(response, status.HTTP_201_CREATED)
        data = response.json()
        assert data["company_created"] is True
        assert data["token_type"] == "bearer"
        assert data["user"]["role"] == "admin"
        assert data["user"]["company_id"] == "acme-pools"
        assert data["user"]["email"] == "owner@example.com"

        company = client.get("/api/company", headers=bearer(data["access_token"])).json()
        assert company["company_name"] == "Acme Pools"

    def test_first_user_is_whitelisted_as_registered(self, client, auth_headers):
        response = client.get("/api/whitelist", headers=auth_headers)

        self.assert_success_response(response)
        entries = response.json()["entries"]
        assert len(entries) == 1
        assert entries[0]["email"] == "owner@example.com"
        assert entries[0]["registered"] is True

    def test_company_id_is_trimmed(self, client):
        response = register(client, "  spa-world  ", "owner@example.com")

        self.assert_success_response(response, status.HTTP_201_CREATED)
        assert response.json()["user"]["company_id"] == "spa-world"

    def test_email_is_lowercased(self, client):
        response = register(client, "acme-pools", "Owner@Example.com")

        self.assert_success_response(response, status.HTTP_201_CREATED)
        assert response.json()["user"]["email"] == "owner@example.com"

    def test_non_whitelisted_email_is_refused(self, client, admin_auth):
        """Later registrations need a whitelist entry."""
        response = register(client, "acme-pools", "stranger@example.com")

        self.assert_error_response(response, status.HTTP_403_FORBIDDEN, "not authorized")

    def test_whitelisted_email_registers_as_user(self, client, auth_headers):
        client.post("/api/whitelist", json={"email": "crew@example.com"}, headers=auth_headers)

        response = register(client, "acme-pools", "crew@example.com")

        self.assert_success_response(response, status.HTTP_201_CREATED)
        data = response.json()
        assert data["company_created"] is False
        assert data["user"]["role"] == "user"

        entries = client.get("/api/whitelist", headers=auth_headers).json()["entries"]
        crew = next(e for e in entries if e["email"] == "crew@example.com")
        assert crew["registered"] is True
        assert crew["registered_at"] is not None

    def test_duplicate_registration_conflicts(self, client, sample_registration, admin_auth):
        response = client.post("/api/auth/register", json=sample_registration)

        self.assert_conflict(response)

    def test_same_email_can_register_in_another_company(self, client, admin_auth):
        response = register(client, "blue-lagoon", "owner@example.com")

        self.assert_success_response(response, status.HTTP_201_CREATED)
        assert response.json()["company_created"] is True

    def test_short_password_rejected(self, client):
        response = register(client, "acme-pools", "owner@example.com", password="short")

        self.assert_validation_error(response, "password")

    def test_invalid_email_rejected(self, client):
        response = register(client, "acme-pools", "not-an-email")

        self.assert_validation_error(response, "email")


class TestLogin(BaseAPITest):
    """Test cases for company-scoped login."""

    def test_login_success(self, client, admin_auth):
        response = client.post("/api/auth/login", json={
            "company_id": "acme-pools",
            "email": "owner@example.com",
            "password": TEST_PASSWORD
        })

        self.assert_success_response(response)
        data = response.json()
        assert data["access_token"]
        assert data["user"]["last_login"] is not None

    def test_login_wrong_password(self, client, admin_auth):
        response = client.post("/api/auth/login", json={
            "company_id": "acme-pools",
            "email": "owner@example.com",
            "password": "WrongPassword1"
        })

        self.assert_error_response(response, status.HTTP_401_UNAUTHORIZED, "Invalid credentials")

    def test_login_unknown_user(self, client, admin_auth):
        response = client.post("/api/auth/login", json={
            "company_id": "acme-pools",
            "email": "nobody@example.com",
            "password": TEST_PASSWORD
        })

        self.assert_unauthorized(response)

    def test_login_with_wrong_company(self, client, admin_auth, other_headers):
        """Valid credentials presented under another company's ID are forbidden."""
        response = client.post("/api/auth/login", json={
            "company_id": "blue-lagoon",
            "email": "owner@example.com",
            "password": TEST_PASSWORD
        })

        self.assert_error_response(response, status.HTTP_403_FORBIDDEN, "Invalid company ID")


class TestTokens(BaseAPITest):
    """Test cases for token handling."""

    def test_me_returns_current_user(self, client, auth_headers):
        response = client.get("/api/auth/me", headers=auth_headers)

        self.assert_success_response(response)
        assert response.json()["email"] == "owner@example.com"

    def test_missing_token(self, client):
        self.assert_unauthorized(client.get("/api/auth/me"))

    def test_invalid_token(self, client):
        self.assert_unauthorized(client.get("/api/auth/me", headers=bearer("not-a-token")))

    def test_expired_token(self, client, admin_auth):
        user = admin_auth["user"]
        token = JWTHandler.create_access_token(
            {"sub": user["id"], "company_id": user["company_id"], "email": user["email"],
             "role": "admin", "type": "access"},
            expires_delta=timedelta(seconds=-1)
        )

        self.assert_unauthorized(client.get("/api/auth/me", headers=bearer(token)))

    def test_oauth_state_is_not_an_access_token(self, client, admin_auth):
        state = JWTHandler.create_oauth_state(admin_auth["user"]["id"])

        self.assert_unauthorized(client.get("/api/auth/me", headers=bearer(state)))

    def test_refresh(self, client, auth_headers):
        response = client.post("/api/auth/refresh", headers=auth_headers)

        self.assert_success_response(response)
        new_token = response.json()["access_token"]
        self.assert_success_response(client.get("/api/auth/me", headers=bearer(new_token)))

    def test_logout(self, client, auth_headers):
        response = client.post("/api/auth/logout", headers=auth_headers)

        self.assert_success_response(response)
        assert response.json()["message"] == "Logged out successfully"


class TestLastLogon(BaseAPITest):
    """Test cases for employee logon tracking."""

    def test_updates_matching_employee(self, client, auth_headers):
        client.post("/api/employees", json={"name": "Olivia Owner", "email_address": "OWNER@example.com"},
                    headers=auth_headers)

        response = client.post("/api/auth/update-last-logon", headers=auth_headers)

        self.assert_success_response(response)
        last_logon = datetime.fromisoformat(response.json()["last_logon"])
        if last_logon.tzinfo is None:
            last_logon = last_logon.replace(tzinfo=timezone.utc)
        assert datetime.now(timezone.utc) - last_logon < timedelta(minutes=1)

    def test_no_matching_employee(self, client, auth_headers):
        response = client.post("/api/auth/update-last-logon", headers=auth_headers)

        self.assert_not_found(response)


class TestPasswordHandler:
    """Unit tests for password hashing."""

    def test_hash_and_verify(self):
        hashed = PasswordHandler.hash_password("Password123!")

        assert hashed != "Password123!"
        assert PasswordHandler.verify_password("Password123!", hashed)
        assert not PasswordHandler.verify_password("password123!", hashed)

    def test_password_strength(self):
        assert PasswordHandler.validate_password_strength("longenough")
        assert not PasswordHandler.validate_password_strength("short")
