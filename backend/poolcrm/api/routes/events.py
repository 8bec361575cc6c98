"""
Calendar event API routes.
"""
from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.orm import Session, joinedload
from uuid import UUID

from ...database.connection import get_db
from ...database.models import Employee, Event
from ...schemas.event import EventCreateRequest, EventUpdateRequest, EventResponse, EventsListResponse
from ...auth.dependencies import get_current_user, get_company_filter, CurrentUser, CompanyFilter
from ..updates import apply_update
from .calendar import remove_google_event

router = APIRouter(prefix="/events", tags=["Events"])


def _response(event: Event) -> EventResponse:
    response = EventResponse.model_validate(event)
    if event.employee is not None:
        response.employee_name = event.employee.name
        response.employee_color = event.employee.color
    return response


# PUBLIC_INTERFACE
@router.get("", response_model=EventsListResponse,
            summary="List events",
            description="List events ordered by date and time, optionally within a date range or for one employee.")
async def list_events(
    start_date: Optional[date] = Query(None, description="Earliest event date"),
    end_date: Optional[date] = Query(None, description="Latest event date"),
    employee_id: Optional[UUID] = Query(None, description="Filter by assigned employee"),
    company_filter: CompanyFilter = Depends(get_company_filter),
    db: Session = Depends(get_db)
):
    query = company_filter.filter_query(db.query(Event), Event).options(joinedload(Event.employee))
    if start_date:
        query = query.filter(Event.date >= start_date)
    if end_date:
        query = query.filter(Event.date <= end_date)
    if employee_id:
        query = query.filter(Event.employee_id == employee_id)

    events = query.order_by(Event.date, Event.time).all()
    return EventsListResponse(events=[_response(e) for e in events], total=len(events))


# PUBLIC_INTERFACE
@router.get("/{event_id}", response_model=EventResponse, summary="Get event")
async def get_event(
    event_id: UUID,
    company_filter: CompanyFilter = Depends(get_company_filter),
    db: Session = Depends(get_db)
):
    return _response(company_filter.get(db, Event, event_id, "Event not found"))


# PUBLIC_INTERFACE
@router.post("", response_model=EventResponse, status_code=status.HTTP_201_CREATED,
             summary="Create event",
             description="Create an event. Name, date and time are required; "
                         "the employee must belong to the company.")
async def create_event(
    request: EventCreateRequest,
    company_filter: CompanyFilter = Depends(get_company_filter),
    db: Session = Depends(get_db)
):
    if request.employee_id is not None:
        company_filter.get(db, Employee, request.employee_id, "Employee not found")

    event = Event(company_id=company_filter.company_id, **request.model_dump(exclude_none=True))
    db.add(event)
    db.commit()
    db.refresh(event)
    return _response(event)


# PUBLIC_INTERFACE
@router.put("/{event_id}", response_model=EventResponse, summary="Update event")
async def update_event(
    event_id: UUID,
    request: EventUpdateRequest,
    company_filter: CompanyFilter = Depends(get_company_filter),
    db: Session = Depends(get_db)
):
    event = company_filter.get(db, Event, event_id, "Event not found")
    changes = request.model_dump(exclude_unset=True)
    if changes.get("employee_id") is not None:
        company_filter.get(db, Employee, changes["employee_id"], "Employee not found")

    apply_update(event, changes, required=("name", "date", "time"))
    db.commit()
    db.refresh(event)
    return _response(event)


# PUBLIC_INTERFACE
@router.delete("/{event_id}", status_code=status.HTTP_204_NO_CONTENT,
               summary="Delete event",
               description="Delete an event. A copy synced to the caller's Google calendar is removed too.")
def delete_event(
    event_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    company_filter: CompanyFilter = Depends(get_company_filter),
    db: Session = Depends(get_db)
):
    event = company_filter.get(db, Event, event_id, "Event not found")
    if event.google_event_id:
        remove_google_event(db, current_user.user_id, event.google_event_id)
    db.delete(event)
    db.commit()
