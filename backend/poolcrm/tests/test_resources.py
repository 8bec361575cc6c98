"""
Employee, inventory, subcontractor and event management tests.
"""
import uuid
from datetime import date, timedelta
from fastapi import status

from .test_base import BaseCRUDTest, TenantIsolationTestMixin


class TestEmployees(BaseCRUDTest, TenantIsolationTestMixin):
    """CRUD and validation for employees."""

    base_url = "/api/employees"
    list_key = "employees"
    sample_data = {
        "name": "Sam Shotcrete",
        "email_address": "sam@example.com",
        "user_type": "manager",
        "color": "#1A2B3C",
        "is_foreman": True
    }
    update_data = {"user_role": "Site lead", "current": True}

    def create(self, client, headers, **overrides):
        overrides.setdefault("email_address", f"{uuid.uuid4().hex[:8]}@example.com")
        return super().create(client, headers, **overrides)

    def test_create_success(self, client, auth_headers, admin_auth):
        created = super().create(client, auth_headers)

        assert created["company_id"] == "acme-pools"
        self.assert_fields(created, self.sample_data)
        assert created["current"] is False

    def test_duplicate_email_conflicts(self, client, auth_headers):
        self.create(client, auth_headers, email_address="dup@example.com")

        response = client.post(self.base_url, json={**self.sample_data, "email_address": "DUP@example.com"},
                               headers=auth_headers)

        self.assert_conflict(response)

    def test_same_email_in_another_company(self, client, auth_headers, other_headers):
        self.create(client, auth_headers, email_address="shared@example.com")

        self.create(client, other_headers, email_address="shared@example.com")

    def test_invalid_color(self, client, auth_headers):
        response = client.post(self.base_url, json={**self.sample_data, "color": "blue"}, headers=auth_headers)

        self.assert_validation_error(response, "color")

    def test_blank_color_is_cleared(self, client, auth_headers):
        created = self.create(client, auth_headers)

        response = client.put(f"{self.base_url}/{created['id']}", json={"color": "  "}, headers=auth_headers)

        self.assert_success_response(response)
        assert response.json()["color"] is None

    def test_invalid_user_type(self, client, auth_headers):
        response = client.post(self.base_url, json={**self.sample_data, "user_type": "owner"},
                               headers=auth_headers)

        self.assert_validation_error(response, "user_type")

    def test_filter_current(self, client, auth_headers):
        self.create(client, auth_headers, current=True)
        self.create(client, auth_headers)

        response = client.get(self.base_url, params={"current": "true"}, headers=auth_headers)

        assert response.json()["total"] == 1


class TestInventory(BaseCRUDTest, TenantIsolationTestMixin):
    """CRUD and filtering for inventory items."""

    base_url = "/api/inventory"
    list_key = "items"
    sample_data = {
        "name": "Pool Plaster",
        "unit": "bag",
        "type": "material",
        "stock": 40,
        "brand": "Diamond Brite",
        "unit_price": 12.5
    }
    update_data = {"stock": 35, "unit_price": 13.25}

    def test_filter_by_type(self, client, auth_headers):
        self.create(client, auth_headers)
        self.create(client, auth_headers, name="Concrete Mixer", unit="ea", type="equipment")

        response = client.get(self.base_url, params={"type": "equipment"}, headers=auth_headers)

        data = response.json()
        assert data["total"] == 1
        assert data["items"][0]["name"] == "Concrete Mixer"

    def test_search(self, client, auth_headers):
        self.create(client, auth_headers)
        self.create(client, auth_headers, name="Tile", brand="Oceanside")

        response = client.get(self.base_url, params={"q": "diamond"}, headers=auth_headers)

        assert response.json()["total"] == 1

    def test_negative_stock(self, client, auth_headers):
        response = client.post(self.base_url, json={**self.sample_data, "stock": -1}, headers=auth_headers)

        self.assert_validation_error(response, "stock")

    def test_unit_required(self, client, auth_headers):
        data = {k: v for k, v in self.sample_data.items() if k != "unit"}

        response = client.post(self.base_url, json=data, headers=auth_headers)

        self.assert_validation_error(response, "unit")


class TestSubcontractors(BaseCRUDTest, TenantIsolationTestMixin):
    """CRUD and insurance expiry for subcontractors."""

    base_url = "/api/subcontractors"
    list_key = "subcontractors"
    sample_data = {
        "name": "Gunite Bros",
        "primary_contact_name": "Gus",
        "primary_contact_email": "gus@example.com",
        "rate": 65.0
    }
    update_data = {"rate": 70.0, "notes": "Weekends only"}

    def test_expired_certificate(self, client, auth_headers):
        yesterday = (date.today() - timedelta(days=1)).isoformat()

        created = self.create(client, auth_headers, coi_expiration=yesterday)

        assert created["coi_expired"] is True

    def test_valid_certificate(self, client, auth_headers):
        next_year = (date.today() + timedelta(days=365)).isoformat()

        created = self.create(client, auth_headers, coi_expiration=next_year)

        assert created["coi_expired"] is False

    def test_no_certificate(self, client, auth_headers):
        assert self.create(client, auth_headers)["coi_expired"] is False


class TestEvents(BaseCRUDTest, TenantIsolationTestMixin):
    """CRUD, filtering and employee assignment for events."""

    base_url = "/api/events"
    list_key = "events"
    sample_data = {"name": "Dig day", "date": "2026-05-04", "time": "08:30:00"}
    update_data = {"name": "Dig day (rescheduled)", "date": "2026-05-06"}

    def _employee(self, client, headers, **extra):
        response = client.post("/api/employees", json={
            "name": "Fran Foreman", "email_address": f"{uuid.uuid4().hex[:8]}@example.com",
            "color": "#FF8800", **extra
        }, headers=headers)
        assert response.status_code == status.HTTP_201_CREATED
        return response.json()

    def test_assigned_employee_details(self, client, auth_headers):
        employee = self._employee(client, auth_headers)

        created = self.create(client, auth_headers, employee_id=employee["id"])

        assert created["employee_name"] == "Fran Foreman"
        assert created["employee_color"] == "#FF8800"

    def test_employee_from_other_company(self, client, auth_headers, other_headers):
        employee = self._employee(client, other_headers)

        response = client.post(self.base_url, json={**self.sample_data, "employee_id": employee["id"]},
                               headers=auth_headers)

        self.assert_not_found(response)

    def test_date_range_filter(self, client, auth_headers):
        self.create(client, auth_headers, date="2026-05-01")
        self.create(client, auth_headers, date="2026-05-15")
        self.create(client, auth_headers, date="2026-06-01")

        response = client.get(self.base_url, params={"start_date": "2026-05-10", "end_date": "2026-05-31"},
                              headers=auth_headers)

        data = response.json()
        assert data["total"] == 1
        assert data["events"][0]["date"] == "2026-05-15"

    def test_ordered_by_date_and_time(self, client, auth_headers):
        self.create(client, auth_headers, name="Late", date="2026-05-01", time="15:00:00")
        self.create(client, auth_headers, name="Early", date="2026-05-01", time="07:00:00")
        self.create(client, auth_headers, name="Before", date="2026-04-30", time="18:00:00")

        names = [e["name"] for e in client.get(self.base_url, headers=auth_headers).json()["events"]]

        assert names == ["Before", "Early", "Late"]

    def test_deleting_employee_unassigns_event(self, client, auth_headers):
        employee = self._employee(client, auth_headers)
        created = self.create(client, auth_headers, employee_id=employee["id"])

        client.delete(f"/api/employees/{employee['id']}", headers=auth_headers)

        event = client.get(f"{self.base_url}/{created['id']}", headers=auth_headers).json()
        assert event["employee_id"] is None
        assert event["employee_name"] is None
