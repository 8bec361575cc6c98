"""
Company profile and registration whitelist tests.
"""
import uuid
from fastapi import status

from .conftest import register
from .test_base import BaseAPITest


class TestCompanyProfile(BaseAPITest):
    """Test cases for the company profile."""

    def test_get_company(self, client, auth_headers):
        response = client.get("/api/company", headers=auth_headers)

        self.assert_success_response(response)
        data = response.json()
        assert data["company_id"] == "acme-pools"
        assert data["country"] == "USA"
        assert data["next_document_number"] == 1

    def test_admin_updates_company(self, client, auth_headers):
        response = client.put("/api/company", json={
            "company_name": "Acme Pools & Spas",
            "city": "Orlando",
            "phone": "407-555-0100"
        }, headers=auth_headers)

        self.assert_success_response(response)
        self.assert_fields(response.json(), {
            "company_name": "Acme Pools & Spas",
            "city": "Orlando",
            "phone": "407-555-0100"
        })

    def test_member_cannot_update_company(self, client, member_headers):
        response = client.put("/api/company", json={"company_name": "Hijacked"}, headers=member_headers)

        self.assert_forbidden(response)

    def test_country_cannot_be_cleared(self, client, auth_headers):
        response = client.put("/api/company", json={"country": None}, headers=auth_headers)

        self.assert_error_response(response, status.HTTP_400_BAD_REQUEST)

    def test_companies_see_their_own_profile(self, client, auth_headers, other_headers):
        response = client.get("/api/company", headers=other_headers)

        assert response.json()["company_id"] == "blue-lagoon"


class TestWhitelist(BaseAPITest):
    """Test cases for the registration whitelist."""

    def test_add_entry(self, client, auth_headers, admin_auth):
        response = client.post("/api/whitelist", json={"email": "New.Hire@Example.com"}, headers=auth_headers)

        self.assert_success_response(response, status.HTTP_201_CREATED)
        data = response.json()
        assert data["email"] == "new.hire@example.com"
        assert data["registered"] is False
        assert data["added_by"] == admin_auth["user"]["id"]

    def test_duplicate_entry(self, client, auth_headers):
        client.post("/api/whitelist", json={"email": "crew@example.com"}, headers=auth_headers)

        response = client.post("/api/whitelist", json={"email": "CREW@example.com"}, headers=auth_headers)

        self.assert_error_response(response, status.HTTP_400_BAD_REQUEST, "already whitelisted")

    def test_invalid_email(self, client, auth_headers):
        response = client.post("/api/whitelist", json={"email": "nope"}, headers=auth_headers)

        self.assert_validation_error(response, "email")

    def test_member_cannot_manage_whitelist(self, client, member_headers):
        response = client.post("/api/whitelist", json={"email": "x@example.com"}, headers=member_headers)
        self.assert_forbidden(response)

        response = client.get("/api/whitelist", headers=member_headers)
        self.assert_success_response(response)

    def test_remove_entry(self, client, auth_headers):
        entry = client.post("/api/whitelist", json={"email": "temp@example.com"}, headers=auth_headers).json()

        response = client.delete(f"/api/whitelist/{entry['id']}", headers=auth_headers)
        assert response.status_code == status.HTTP_204_NO_CONTENT

        emails = [e["email"] for e in client.get("/api/whitelist", headers=auth_headers).json()["entries"]]
        assert "temp@example.com" not in emails

    def test_removed_email_cannot_register(self, client, auth_headers):
        entry = client.post("/api/whitelist", json={"email": "temp@example.com"}, headers=auth_headers).json()
        client.delete(f"/api/whitelist/{entry['id']}", headers=auth_headers)

        self.assert_forbidden(register(client, "acme-pools", "temp@example.com"))

    def test_remove_missing_entry(self, client, auth_headers):
        response = client.delete(f"/api/whitelist/{uuid.uuid4()}", headers=auth_headers)

        self.assert_not_found(response)

    def test_whitelists_are_isolated(self, client, auth_headers, other_headers):
        entry = client.post("/api/whitelist", json={"email": "crew@example.com"}, headers=auth_headers).json()

        entries = client.get("/api/whitelist", headers=other_headers).json()["entries"]
        assert [e["email"] for e in entries] == ["boss@example.com"]

        response = client.delete(f"/api/whitelist/{entry['id']}", headers=other_headers)
        self.assert_not_found(response)
