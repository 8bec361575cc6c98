"""
Google Calendar integration over the OAuth 2.0 and Calendar v3 REST APIs.
"""
import logging
import os
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, List, Optional
from urllib.parse import urlencode

from . import IntegrationError, IntegrationNotConfigured
from .http import call_vendor

logger = logging.getLogger(__name__)

PROVIDER = "google"
AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
TOKEN_URL = "https://oauth2.googleapis.com/token"
USERINFO_URL = "https://www.googleapis.com/oauth2/v2/userinfo"
EVENTS_URL = "https://www.googleapis.com/calendar/v3/calendars/primary/events"
SCOPES = [
    "https://www.googleapis.com/auth/calendar",
    "https://www.googleapis.com/auth/userinfo.email",
]
DEFAULT_TIME_ZONE = os.getenv("CALENDAR_TIME_ZONE", "America/New_York")
EVENT_DURATION = timedelta(hours=1)
LIST_WINDOW = timedelta(days=30)
# Refresh slightly before the provider's expiry
EXPIRY_MARGIN = timedelta(seconds=60)


def token_expired(expiry: Optional[datetime], now: Optional[datetime] = None) -> bool:
    if expiry is None:
        return True
    if expiry.tzinfo is None:
        expiry = expiry.replace(tzinfo=timezone.utc)
    return (now or datetime.now(timezone.utc)) >= expiry - EXPIRY_MARGIN


def _when(moment: datetime, time_zone: str) -> Dict[str, str]:
    return {"dateTime": moment.isoformat(), "timeZone": time_zone}


def event_body(name: str, start: datetime, time_zone: str = None, description: str = None,
               end: datetime = None, location: str = None, attendees: Iterable[str] = ()) -> Dict[str, Any]:
    """Calendar v3 event resource; one hour long unless ``end`` is given."""
    time_zone = time_zone or DEFAULT_TIME_ZONE
    body = {
        "summary": name,
        "start": _when(start, time_zone),
        "end": _when(end or start + EVENT_DURATION, time_zone),
    }
    if description:
        body["description"] = description
    if location:
        body["location"] = location
    if attendees:
        body["attendees"] = [{"email": email} for email in attendees]
    return body


def event_patch(changes: Dict[str, Any], time_zone: str = None) -> Dict[str, Any]:
    """Partial event resource holding only the changed fields."""
    time_zone = changes.get("time_zone") or time_zone or DEFAULT_TIME_ZONE
    body = {key: changes[key] for key in ("summary", "description", "location") if key in changes}
    for key in ("start", "end"):
        if changes.get(key) is not None:
            body[key] = _when(changes[key], time_zone)
    if "attendees" in changes:
        body["attendees"] = [{"email": email} for email in changes["attendees"] or []]
    return body


def ensure_access_token(client: "GoogleCalendarClient", user) -> str:
    """
    Current access token for a connected user, refreshed when expired.

    The refreshed token is stored on ``user``; the caller commits it.
    """
    if not user.google_calendar_access_token or token_expired(user.google_calendar_token_expiry):
        tokens = client.refresh_access_token(user.google_calendar_refresh_token)
        user.google_calendar_access_token = tokens["access_token"]
        user.google_calendar_token_expiry = tokens["expires_at"]
    return user.google_calendar_access_token


class GoogleCalendarClient:
    """OAuth and Calendar API client for a single Google Cloud application."""

    def __init__(self, client_id: str, client_secret: str, redirect_uri: str):
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri

    @classmethod
    def from_env(cls) -> "GoogleCalendarClient":
        """
        Build a client from ``GOOGLE_CLIENT_ID``, ``GOOGLE_CLIENT_SECRET`` and ``GOOGLE_REDIRECT_URI``.

        Raises:
            IntegrationNotConfigured: If the client credentials are missing
        """
        client_id = os.getenv("GOOGLE_CLIENT_ID")
        client_secret = os.getenv("GOOGLE_CLIENT_SECRET")
        if not client_id or not client_secret:
            raise IntegrationNotConfigured(PROVIDER, "GOOGLE_CLIENT_ID, GOOGLE_CLIENT_SECRET")
        redirect_uri = os.getenv(
            "GOOGLE_REDIRECT_URI", "http://localhost:8000/api/calendar/google/callback"
        )
        return cls(client_id, client_secret, redirect_uri)

    def authorization_url(self, state: str) -> str:
        params = {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "scope": " ".join(SCOPES),
            "access_type": "offline",
            "prompt": "consent",
            "state": state,
        }
        return f"{AUTH_URL}?{urlencode(params)}"

    def _token_request(self, data: Dict[str, str]) -> Dict[str, Any]:
        data = dict(data, client_id=self.client_id, client_secret=self.client_secret)
        tokens = call_vendor(PROVIDER, "POST", TOKEN_URL, data=data).json()
        expires_in = int(tokens.get("expires_in", 3600))
        tokens["expires_at"] = datetime.now(timezone.utc) + timedelta(seconds=expires_in)
        return tokens

    def exchange_code(self, code: str) -> Dict[str, Any]:
        """
        Exchange an authorization code for tokens.

        Raises:
            IntegrationError: If the exchange fails or no refresh token is issued
        """
        tokens = self._token_request({
            "code": code,
            "redirect_uri": self.redirect_uri,
            "grant_type": "authorization_code",
        })
        if not tokens.get("refresh_token"):
            raise IntegrationError(
                PROVIDER, "no refresh token received; revoke access and reconnect"
            )
        return tokens

    def refresh_access_token(self, refresh_token: str) -> Dict[str, Any]:
        return self._token_request({
            "refresh_token": refresh_token,
            "grant_type": "refresh_token",
        })

    def fetch_email(self, access_token: str) -> Optional[str]:
        response = call_vendor(
            PROVIDER, "GET", USERINFO_URL,
            headers={"Authorization": f"Bearer {access_token}"},
        )
        return response.json().get("email")

    def upsert_event(self, access_token: str, body: Dict[str, Any],
                     google_event_id: str = None) -> Dict[str, Any]:
        """Create an event on the primary calendar, or patch it when already synced."""
        headers = {"Authorization": f"Bearer {access_token}"}
        if google_event_id:
            response = call_vendor(
                PROVIDER, "PATCH", f"{EVENTS_URL}/{google_event_id}", headers=headers, json=body
            )
        else:
            response = call_vendor(PROVIDER, "POST", EVENTS_URL, headers=headers, json=body)
        return response.json()

    def list_events(self, access_token: str, time_min: datetime = None,
                    time_max: datetime = None) -> List[Dict[str, Any]]:
        """Single events on the primary calendar, by start time; defaults to the next 30 days."""
        time_min = time_min or datetime.now(timezone.utc)
        time_max = time_max or time_min + LIST_WINDOW
        response = call_vendor(
            PROVIDER, "GET", EVENTS_URL,
            headers={"Authorization": f"Bearer {access_token}"},
            params={
                "timeMin": _rfc3339(time_min),
                "timeMax": _rfc3339(time_max),
                "singleEvents": "true",
                "orderBy": "startTime",
            },
        )
        return response.json().get("items", [])

    def delete_event(self, access_token: str, google_event_id: str) -> bool:
        """
        Delete an event from the primary calendar.

        Returns:
            bool: False when the event was already gone
        """
        try:
            call_vendor(
                PROVIDER, "DELETE", f"{EVENTS_URL}/{google_event_id}",
                headers={"Authorization": f"Bearer {access_token}"},
            )
        except IntegrationError as e:
            if e.status_code in (404, 410):
                return False
            raise
        return True


def _rfc3339(moment: datetime) -> str:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.isoformat()
