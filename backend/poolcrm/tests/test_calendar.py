"""
Google Calendar integration tests.
"""
import uuid
from datetime import datetime, timedelta, timezone
from unittest.mock import Mock, patch
from fastapi import status

from poolcrm.api.routes import calendar as calendar_routes
from poolcrm.auth.jwt_handler import JWTHandler
from poolcrm.services import IntegrationError
from poolcrm.services.calendar import event_body, event_patch, token_expired
from .test_base import BaseAPITest


def _calendar_client(expires_at=None):
    google = Mock()
    google.authorization_url.side_effect = lambda state: f"https://accounts.google.com/o/oauth2/v2/auth?state={state}"
    google.exchange_code.return_value = {
        "access_token": "ya29.first",
        "refresh_token": "1//refresh",
        "expires_at": expires_at or datetime.now(timezone.utc) + timedelta(hours=1)
    }
    google.fetch_email.return_value = "owner@example.com"
    google.refresh_access_token.return_value = {
        "access_token": "ya29.refreshed",
        "expires_at": datetime.now(timezone.utc) + timedelta(hours=1)
    }
    google.upsert_event.return_value = {"id": "g-event-1", "htmlLink": "https://calendar.google.com/event?eid=1"}
    google.list_events.return_value = [
        {"id": "g-1", "summary": "Dig day", "start": {"dateTime": "2026-05-04T09:00:00-04:00"},
         "end": {"dateTime": "2026-05-04T10:00:00-04:00"}, "status": "confirmed"},
        {"id": "g-2", "summary": "Inspection", "start": {"date": "2026-05-06"}, "end": {"date": "2026-05-07"}},
    ]
    google.delete_event.return_value = True
    return google


class CalendarTestMixin:

    def connect(self, client, admin_auth, google):
        state = JWTHandler.create_oauth_state(uuid.UUID(admin_auth["user"]["id"]))
        with patch.object(calendar_routes, "get_calendar_client", return_value=google):
            return client.get("/api/calendar/google/callback", params={"code": "auth-code", "state": state},
                              follow_redirects=False)


class TestCalendarConnection(BaseAPITest, CalendarTestMixin):
    """Test cases for the OAuth connection flow."""

    def test_auth_url(self, client, auth_headers):
        with patch.object(calendar_routes, "get_calendar_client", return_value=_calendar_client()):
            response = client.get("/api/calendar/google/auth-url", headers=auth_headers)

        self.assert_success_response(response)
        state = response.json()["auth_url"].split("state=")[1]
        assert JWTHandler.verify_oauth_state(state) is not None

    def test_auth_url_not_configured(self, client, auth_headers, monkeypatch):
        monkeypatch.delenv("GOOGLE_CLIENT_ID", raising=False)

        response = client.get("/api/calendar/google/auth-url", headers=auth_headers)

        self.assert_error_response(response, status.HTTP_503_SERVICE_UNAVAILABLE)

    def test_callback_connects_calendar(self, client, admin_auth, auth_headers):
        response = self.connect(client, admin_auth, _calendar_client())

        assert response.status_code in (status.HTTP_302_FOUND, status.HTTP_307_TEMPORARY_REDIRECT)
        assert "google_calendar=connected" in response.headers["location"]
        calendar_status = client.get("/api/calendar/google/status", headers=auth_headers).json()
        assert calendar_status["connected"] is True
        assert calendar_status["email"] == "owner@example.com"

    def test_callback_provider_error(self, client, admin_auth, auth_headers):
        google = _calendar_client()
        google.exchange_code.side_effect = IntegrationError("google", "invalid_grant", 400)

        response = self.connect(client, admin_auth, google)

        assert "google_calendar=error" in response.headers["location"]
        assert client.get("/api/calendar/google/status", headers=auth_headers).json()["connected"] is False

    def test_callback_rejects_bad_state(self, client, auth_headers):
        response = client.get("/api/calendar/google/callback", params={"code": "auth-code", "state": "forged"},
                              follow_redirects=False)

        self.assert_error_response(response, status.HTTP_400_BAD_REQUEST)

    def test_callback_rejects_access_token_as_state(self, client, admin_auth):
        response = client.get("/api/calendar/google/callback",
                              params={"code": "auth-code", "state": admin_auth["access_token"]},
                              follow_redirects=False)

        self.assert_error_response(response, status.HTTP_400_BAD_REQUEST)

    def test_status_not_connected(self, client, auth_headers):
        response = client.get("/api/calendar/google/status", headers=auth_headers)

        self.assert_success_response(response)
        self.assert_fields(response.json(), {"connected": False, "email": None, "token_expiry": None})

    def test_disconnect(self, client, admin_auth, auth_headers):
        self.connect(client, admin_auth, _calendar_client())

        response = client.post("/api/calendar/google/disconnect", headers=auth_headers)

        self.assert_success_response(response)
        assert client.get("/api/calendar/google/status", headers=auth_headers).json()["connected"] is False


class TestEventSync(BaseAPITest, CalendarTestMixin):
    """Test cases for pushing events to Google Calendar."""

    def _event(self, client, headers):
        response = client.post("/api/events", json={
            "name": "Site walk", "date": "2026-05-04", "time": "09:30:00"
        }, headers=headers)
        self.assert_success_response(response, status.HTTP_201_CREATED)
        return response.json()

    def test_sync_requires_connection(self, client, auth_headers):
        event = self._event(client, auth_headers)

        response = client.post(f"/api/calendar/events/{event['id']}/sync", headers=auth_headers)

        self.assert_error_response(response, status.HTTP_400_BAD_REQUEST, "not connected")

    def test_sync_creates_then_updates(self, client, admin_auth, auth_headers):
        google = _calendar_client(expires_at=datetime.now(timezone.utc) - timedelta(minutes=5))
        self.connect(client, admin_auth, google)
        event = self._event(client, auth_headers)

        with patch.object(calendar_routes, "get_calendar_client", return_value=google):
            first = client.post(f"/api/calendar/events/{event['id']}/sync", headers=auth_headers)
            second = client.post(f"/api/calendar/events/{event['id']}/sync", headers=auth_headers)

        self.assert_success_response(first)
        self.assert_fields(first.json(), {"google_event_id": "g-event-1", "created": True})
        assert second.json()["created"] is False
        google.refresh_access_token.assert_called_once_with("1//refresh")
        access_token, body, existing_id = google.upsert_event.call_args[0]
        assert access_token == "ya29.refreshed"
        assert body["summary"] == "Site walk"
        assert existing_id == "g-event-1"
        events = client.get("/api/events", headers=auth_headers).json()["events"]
        assert events[0]["google_event_id"] == "g-event-1"

    def test_sync_provider_failure(self, client, admin_auth, auth_headers):
        google = _calendar_client()
        self.connect(client, admin_auth, google)
        event = self._event(client, auth_headers)
        google.upsert_event.side_effect = IntegrationError("google", "quota exceeded", 429)

        with patch.object(calendar_routes, "get_calendar_client", return_value=google):
            response = client.post(f"/api/calendar/events/{event['id']}/sync", headers=auth_headers)

        self.assert_error_response(response, status.HTTP_502_BAD_GATEWAY)

    def test_sync_other_company_event(self, client, auth_headers, other_headers):
        event = self._event(client, auth_headers)

        response = client.post(f"/api/calendar/events/{event['id']}/sync", headers=other_headers)

        self.assert_not_found(response)


    def test_delete_removes_google_copy(self, client, admin_auth, auth_headers):
        google = _calendar_client()
        self.connect(client, admin_auth, google)
        event = self._event(client, auth_headers)
        with patch.object(calendar_routes, "get_calendar_client", return_value=google):
            client.post(f"/api/calendar/events/{event['id']}/sync", headers=auth_headers)
            response = client.delete(f"/api/events/{event['id']}", headers=auth_headers)

        assert response.status_code == status.HTTP_204_NO_CONTENT
        google.delete_event.assert_called_once_with("ya29.first", "g-event-1")
        self.assert_not_found(client.get(f"/api/events/{event['id']}", headers=auth_headers))

    def test_delete_when_google_fails(self, client, admin_auth, auth_headers):
        google = _calendar_client()
        self.connect(client, admin_auth, google)
        event = self._event(client, auth_headers)
        google.delete_event.side_effect = IntegrationError("google", "backend error", 500)
        with patch.object(calendar_routes, "get_calendar_client", return_value=google):
            client.post(f"/api/calendar/events/{event['id']}/sync", headers=auth_headers)
            response = client.delete(f"/api/events/{event['id']}", headers=auth_headers)

        assert response.status_code == status.HTTP_204_NO_CONTENT
        self.assert_not_found(client.get(f"/api/events/{event['id']}", headers=auth_headers))

    def test_delete_unsynced_event_skips_google(self, client, admin_auth, auth_headers):
        google = _calendar_client()
        self.connect(client, admin_auth, google)
        event = self._event(client, auth_headers)

        with patch.object(calendar_routes, "get_calendar_client", return_value=google):
            response = client.delete(f"/api/events/{event['id']}", headers=auth_headers)

        assert response.status_code == status.HTTP_204_NO_CONTENT
        google.delete_event.assert_not_called()


class TestGoogleEvents(BaseAPITest, CalendarTestMixin):
    """Test cases for managing events directly on Google Calendar."""

    def test_list_events(self, client, admin_auth, auth_headers):
        google = _calendar_client()
        self.connect(client, admin_auth, google)

        with patch.object(calendar_routes, "get_calendar_client", return_value=google):
            response = client.get("/api/calendar/google/events", params={
                "time_min": "2026-05-01T00:00:00Z", "time_max": "2026-05-31T00:00:00Z"
            }, headers=auth_headers)

        self.assert_success_response(response)
        data = response.json()
        assert data["total"] == 2
        self.assert_fields(data["events"][0], {"id": "g-1", "summary": "Dig day", "status": "confirmed"})
        assert data["events"][1]["start"] == {"date": "2026-05-06"}
        access_token, time_min, time_max = google.list_events.call_args[0]
        assert access_token == "ya29.first"
        assert time_min == datetime(2026, 5, 1, tzinfo=timezone.utc)
        assert time_max == datetime(2026, 5, 31, tzinfo=timezone.utc)

    def test_list_requires_connection(self, client, auth_headers):
        response = client.get("/api/calendar/google/events", headers=auth_headers)

        self.assert_error_response(response, status.HTTP_400_BAD_REQUEST, "not connected")

    def test_create_event(self, client, admin_auth, auth_headers):
        google = _calendar_client()
        self.connect(client, admin_auth, google)

        with patch.object(calendar_routes, "get_calendar_client", return_value=google):
            response = client.post("/api/calendar/google/events", json={
                "summary": "Plaster walkthrough",
                "start": "2026-06-02T14:00:00",
                "end": "2026-06-02T15:30:00",
                "time_zone": "America/Chicago",
                "location": "12 Palm Way",
                "attendees": ["pat@example.com"]
            }, headers=auth_headers)

        self.assert_success_response(response, status.HTTP_201_CREATED)
        self.assert_fields(response.json(), {
            "id": "g-event-1", "html_link": "https://calendar.google.com/event?eid=1"
        })
        access_token, body = google.upsert_event.call_args[0]
        assert access_token == "ya29.first"
        assert body["start"] == {"dateTime": "2026-06-02T14:00:00", "timeZone": "America/Chicago"}
        assert body["end"]["dateTime"] == "2026-06-02T15:30:00"
        assert body["attendees"] == [{"email": "pat@example.com"}]

    def test_create_rejects_end_before_start(self, client, admin_auth, auth_headers):
        google = _calendar_client()
        self.connect(client, admin_auth, google)

        with patch.object(calendar_routes, "get_calendar_client", return_value=google):
            response = client.post("/api/calendar/google/events", json={
                "summary": "Backwards", "start": "2026-06-02T14:00:00", "end": "2026-06-02T13:00:00"
            }, headers=auth_headers)

        self.assert_error_response(response, status.HTTP_400_BAD_REQUEST)
        google.upsert_event.assert_not_called()

    def test_update_event_patches_given_fields(self, client, admin_auth, auth_headers):
        google = _calendar_client()
        self.connect(client, admin_auth, google)

        with patch.object(calendar_routes, "get_calendar_client", return_value=google):
            response = client.put("/api/calendar/google/events/g-event-1",
                                  json={"summary": "Moved walkthrough"}, headers=auth_headers)

        self.assert_success_response(response)
        access_token, body, google_event_id = google.upsert_event.call_args[0]
        assert body == {"summary": "Moved walkthrough"}
        assert google_event_id == "g-event-1"

    def test_update_without_fields(self, client, admin_auth, auth_headers):
        self.connect(client, admin_auth, _calendar_client())

        response = client.put("/api/calendar/google/events/g-event-1", json={}, headers=auth_headers)

        self.assert_error_response(response, status.HTTP_400_BAD_REQUEST)

    def test_delete_event_unlinks_local_copy(self, client, admin_auth, auth_headers):
        google = _calendar_client()
        self.connect(client, admin_auth, google)
        event = client.post("/api/events", json={
            "name": "Site walk", "date": "2026-05-04", "time": "09:30:00"
        }, headers=auth_headers).json()

        with patch.object(calendar_routes, "get_calendar_client", return_value=google):
            client.post(f"/api/calendar/events/{event['id']}/sync", headers=auth_headers)
            response = client.delete("/api/calendar/google/events/g-event-1", headers=auth_headers)

        assert response.status_code == status.HTTP_204_NO_CONTENT
        google.delete_event.assert_called_once_with("ya29.first", "g-event-1")
        local = client.get(f"/api/events/{event['id']}", headers=auth_headers).json()
        assert local["google_event_id"] is None

    def test_delete_missing_event(self, client, admin_auth, auth_headers):
        google = _calendar_client()
        google.delete_event.return_value = False
        self.connect(client, admin_auth, google)

        with patch.object(calendar_routes, "get_calendar_client", return_value=google):
            response = client.delete("/api/calendar/google/events/gone", headers=auth_headers)

        self.assert_not_found(response)

    def test_provider_failure(self, client, admin_auth, auth_headers):
        google = _calendar_client()
        google.list_events.side_effect = IntegrationError("google", "HTTP 403", 403)
        self.connect(client, admin_auth, google)

        with patch.object(calendar_routes, "get_calendar_client", return_value=google):
            response = client.get("/api/calendar/google/events", headers=auth_headers)

        self.assert_error_response(response, status.HTTP_502_BAD_GATEWAY)

class TestCalendarHelpers:
    """Unit tests for token expiry and event bodies."""

    def test_token_expired(self):
        now = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)

        assert token_expired(None, now)
        assert token_expired(now + timedelta(seconds=30), now)
        assert not token_expired(now + timedelta(minutes=10), now)
        assert not token_expired(datetime(2026, 3, 1, 13, 0), now)

    def test_event_body_is_one_hour(self):
        body = event_body("Pool start", datetime(2026, 3, 1, 9, 0), time_zone="America/Chicago",
                          description="Assigned to Sam")

        assert body["start"] == {"dateTime": "2026-03-01T09:00:00", "timeZone": "America/Chicago"}
        assert body["end"]["dateTime"] == "2026-03-01T10:00:00"
        assert body["description"] == "Assigned to Sam"

    def test_event_body_with_end_and_attendees(self):
        body = event_body("Dig day", datetime(2026, 3, 1, 8, 0), time_zone="UTC",
                          end=datetime(2026, 3, 1, 16, 0), location="12 Palm Way",
                          attendees=["crew@example.com"])

        assert body["end"] == {"dateTime": "2026-03-01T16:00:00", "timeZone": "UTC"}
        assert body["location"] == "12 Palm Way"
        assert body["attendees"] == [{"email": "crew@example.com"}]

    def test_event_patch_only_changed_fields(self):
        patch_body = event_patch({"start": datetime(2026, 3, 2, 9, 0), "time_zone": "UTC", "attendees": None})

        assert patch_body == {
            "start": {"dateTime": "2026-03-02T09:00:00", "timeZone": "UTC"},
            "attendees": []
        }
