"""
Calendar event schemas.
"""
import datetime as dt
from typing import Optional, List
from pydantic import BaseModel, ConfigDict, Field
from uuid import UUID


class EventCreateRequest(BaseModel):
    """Event creation request schema."""
    name: str = Field(..., min_length=1, max_length=255, description="Event title")
    date: dt.date = Field(..., description="Event date")
    time: dt.time = Field(..., description="Event start time")
    employee_id: Optional[UUID] = Field(None, description="Assigned employee")


class EventUpdateRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    date: Optional[dt.date] = None
    time: Optional[dt.time] = None
    employee_id: Optional[UUID] = None


class EventResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    company_id: str
    name: str
    date: dt.date
    time: dt.time
    employee_id: Optional[UUID] = None
    employee_name: Optional[str] = None
    employee_color: Optional[str] = None
    google_event_id: Optional[str] = None
    created_at: dt.datetime
    updated_at: Optional[dt.datetime] = None


class EventsListResponse(BaseModel):
    events: List[EventResponse]
    total: int
