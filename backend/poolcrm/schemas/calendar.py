"""
Google Calendar integration schemas.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, EmailStr, Field


class AuthUrlResponse(BaseModel):
    auth_url: str


class CalendarStatusResponse(BaseModel):
    connected: bool
    email: Optional[str] = None
    token_expiry: Optional[datetime] = None


class EventSyncResponse(BaseModel):
    event_id: str
    google_event_id: str
    html_link: Optional[str] = None
    created: bool


class GoogleEventRequest(BaseModel):
    """Event to create on the user's primary Google calendar."""
    summary: str = Field(..., min_length=1, max_length=255, description="Event title")
    start: datetime = Field(..., description="Start time")
    end: Optional[datetime] = Field(None, description="End time; defaults to one hour after start")
    time_zone: Optional[str] = Field(None, max_length=64, description="IANA time zone")
    description: Optional[str] = None
    location: Optional[str] = Field(None, max_length=500)
    attendees: List[EmailStr] = Field(default_factory=list)


class GoogleEventUpdateRequest(BaseModel):
    summary: Optional[str] = Field(None, min_length=1, max_length=255)
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    time_zone: Optional[str] = Field(None, max_length=64)
    description: Optional[str] = None
    location: Optional[str] = Field(None, max_length=500)
    attendees: Optional[List[EmailStr]] = None


class GoogleEventResponse(BaseModel):
    id: str
    summary: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None
    start: Optional[Dict[str, Any]] = None
    end: Optional[Dict[str, Any]] = None
    html_link: Optional[str] = None
    status: Optional[str] = None

    @classmethod
    def from_api(cls, item: Dict[str, Any]) -> "GoogleEventResponse":
        return cls(
            id=item["id"],
            summary=item.get("summary"),
            description=item.get("description"),
            location=item.get("location"),
            start=item.get("start"),
            end=item.get("end"),
            html_link=item.get("htmlLink"),
            status=item.get("status"),
        )


class GoogleEventsListResponse(BaseModel):
    events: List[GoogleEventResponse]
    total: int
