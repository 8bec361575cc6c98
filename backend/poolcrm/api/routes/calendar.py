"""
Google Calendar integration API routes.

Users connect their own Google account through OAuth; company events can
then be pushed to that account's primary calendar.
"""
import logging
from datetime import datetime
from typing import Optional
from urllib.parse import urlencode
from fastapi import APIRouter, Depends, HTTPException, status, Query
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session
from uuid import UUID

from ...database.connection import get_db
from ...database.tenancy import apply_system_scope
from ...database.models import Event, User
from ...schemas.auth import StandardResponse
from ...schemas.calendar import (
    AuthUrlResponse, CalendarStatusResponse, EventSyncResponse,
    GoogleEventRequest, GoogleEventUpdateRequest, GoogleEventResponse, GoogleEventsListResponse
)
from ...auth.dependencies import (
    get_current_user, get_company_db, get_company_filter, CurrentUser, CompanyFilter
)
from ...auth.jwt_handler import JWTHandler
from ...services import FRONTEND_URL, IntegrationError, IntegrationNotConfigured
from ...services.calendar import GoogleCalendarClient, ensure_access_token, event_body, event_patch

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/calendar", tags=["Calendar"])


def get_calendar_client() -> GoogleCalendarClient:
    return GoogleCalendarClient.from_env()


def _client_or_503() -> GoogleCalendarClient:
    try:
        return get_calendar_client()
    except IntegrationNotConfigured as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))


def _redirect(result: str) -> RedirectResponse:
    return RedirectResponse(f"{FRONTEND_URL}/calendar?{urlencode({'google_calendar': result})}")


def _load_user(db: Session, user_id: UUID) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


def _is_connected(user: User) -> bool:
    return bool(user.google_calendar_connected and user.google_calendar_refresh_token)


def _connected_user(db: Session, user_id: UUID) -> User:
    user = _load_user(db, user_id)
    if not _is_connected(user):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Google Calendar not connected"
        )
    return user


def remove_google_event(db: Session, user_id: UUID, google_event_id: str) -> bool:
    """
    Delete a synced event from the user's Google calendar.

    Provider failures are logged rather than raised so the local delete
    still goes ahead. Returns True if Google deleted the event.
    """
    user = db.query(User).filter(User.id == user_id).first()
    if not (user and _is_connected(user)):
        logger.info("Not removing Google event %s: calendar not connected", google_event_id)
        return False
    try:
        client = get_calendar_client()
        return client.delete_event(ensure_access_token(client, user), google_event_id)
    except IntegrationError as e:
        logger.warning("Could not remove Google event %s: %s", google_event_id, e)
        return False


# PUBLIC_INTERFACE
@router.get("/google/auth-url", response_model=AuthUrlResponse,
            summary="Google authorization URL",
            description="URL that starts the Google consent flow for the current user.")
def get_auth_url(
    current_user: CurrentUser = Depends(get_current_user)
):
    client = _client_or_503()
    return AuthUrlResponse(auth_url=client.authorization_url(JWTHandler.create_oauth_state(current_user.user_id)))


# PUBLIC_INTERFACE
@router.get("/google/callback",
            summary="Google OAuth callback",
            description="Exchange the authorization code, store the tokens and redirect to the web app.")
def oauth_callback(
    code: str = Query(...),
    state: str = Query(...),
    db: Session = Depends(get_db)
):
    apply_system_scope(db)
    user_id = JWTHandler.verify_oauth_state(state)
    if user_id is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid or expired state")
    user = _load_user(db, user_id)
    client = _client_or_503()

    try:
        tokens = client.exchange_code(code)
        email = client.fetch_email(tokens["access_token"])
    except IntegrationError as e:
        logger.warning("Google Calendar connection failed for user %s: %s", user.id, e)
        return _redirect("error")

    user.google_calendar_refresh_token = tokens["refresh_token"]
    user.google_calendar_access_token = tokens["access_token"]
    user.google_calendar_token_expiry = tokens["expires_at"]
    user.google_calendar_email = email
    user.google_calendar_connected = True
    db.commit()
    logger.info("Google Calendar connected for user %s", user.id)
    return _redirect("connected")


# PUBLIC_INTERFACE
@router.get("/google/status", response_model=CalendarStatusResponse,
            summary="Calendar connection status")
async def get_status(
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_company_db)
):
    user = _load_user(db, current_user.user_id)
    connected = _is_connected(user)
    return CalendarStatusResponse(
        connected=connected,
        email=user.google_calendar_email if connected else None,
        token_expiry=user.google_calendar_token_expiry if connected else None
    )


# PUBLIC_INTERFACE
@router.post("/google/disconnect", response_model=StandardResponse,
             summary="Disconnect calendar",
             description="Forget the stored Google tokens for the current user.")
async def disconnect(
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_company_db)
):
    user = _load_user(db, current_user.user_id)
    user.google_calendar_connected = False
    user.google_calendar_refresh_token = None
    user.google_calendar_access_token = None
    user.google_calendar_token_expiry = None
    user.google_calendar_email = None
    db.commit()
    return StandardResponse(message="Google Calendar disconnected")


# PUBLIC_INTERFACE
@router.post("/events/{event_id}/sync", response_model=EventSyncResponse,
             summary="Sync event to Google Calendar",
             description="Create the event on the user's primary Google calendar, or update it if already synced.")
def sync_event(
    event_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    company_filter: CompanyFilter = Depends(get_company_filter),
    db: Session = Depends(get_db)
):
    event = company_filter.get(db, Event, event_id, "Event not found")
    user = _connected_user(db, current_user.user_id)
    client = _client_or_503()

    try:
        access_token = ensure_access_token(client, user)
        db.commit()

        description = f"Assigned to {event.employee.name}" if event.employee else None
        body = event_body(event.name, datetime.combine(event.date, event.time), description=description)
        created = event.google_event_id is None
        result = client.upsert_event(access_token, body, event.google_event_id)
    except IntegrationError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))

    event.google_event_id = result["id"]
    db.commit()
    return EventSyncResponse(
        event_id=str(event.id),
        google_event_id=event.google_event_id,
        html_link=result.get("htmlLink"),
        created=created
    )


# PUBLIC_INTERFACE
@router.get("/google/events", response_model=GoogleEventsListResponse,
            summary="List Google Calendar events",
            description="Events on the user's primary Google calendar, ordered by start time. "
                        "Defaults to the next 30 days.")
def list_google_events(
    time_min: Optional[datetime] = Query(None, description="Earliest event end"),
    time_max: Optional[datetime] = Query(None, description="Latest event start"),
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_company_db)
):
    user = _connected_user(db, current_user.user_id)
    client = _client_or_503()
    try:
        items = client.list_events(ensure_access_token(client, user), time_min, time_max)
    except IntegrationError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))
    db.commit()
    events = [GoogleEventResponse.from_api(item) for item in items]
    return GoogleEventsListResponse(events=events, total=len(events))


# PUBLIC_INTERFACE
@router.post("/google/events", response_model=GoogleEventResponse, status_code=status.HTTP_201_CREATED,
             summary="Create Google Calendar event")
def create_google_event(
    request: GoogleEventRequest,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_company_db)
):
    if request.end is not None and request.end <= request.start:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="End must be after start")
    user = _connected_user(db, current_user.user_id)
    client = _client_or_503()
    body = event_body(
        request.summary, request.start, time_zone=request.time_zone, description=request.description,
        end=request.end, location=request.location, attendees=request.attendees
    )
    try:
        result = client.upsert_event(ensure_access_token(client, user), body)
    except IntegrationError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))
    db.commit()
    return GoogleEventResponse.from_api(result)


# PUBLIC_INTERFACE
@router.put("/google/events/{google_event_id}", response_model=GoogleEventResponse,
            summary="Update Google Calendar event",
            description="Change only the given fields of an event on the user's Google calendar.")
def update_google_event(
    google_event_id: str,
    request: GoogleEventUpdateRequest,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_company_db)
):
    body = event_patch(request.model_dump(exclude_unset=True))
    if not body:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No fields to update")
    user = _connected_user(db, current_user.user_id)
    client = _client_or_503()
    try:
        result = client.upsert_event(ensure_access_token(client, user), body, google_event_id)
    except IntegrationError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))
    db.commit()
    return GoogleEventResponse.from_api(result)


# PUBLIC_INTERFACE
@router.delete("/google/events/{google_event_id}", status_code=status.HTTP_204_NO_CONTENT,
               summary="Delete Google Calendar event")
def delete_google_event(
    google_event_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_company_db)
):
    user = _connected_user(db, current_user.user_id)
    client = _client_or_503()
    try:
        deleted = client.delete_event(ensure_access_token(client, user), google_event_id)
    except IntegrationError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))
    # Unlink any company event that pointed at it
    db.query(Event).filter(
        Event.company_id == current_user.company_id,
        Event.google_event_id == google_event_id
    ).update({Event.google_event_id: None}, synchronize_session=False)
    db.commit()
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Google event not found")
