"""
Goal tracking API routes.

Goals measure a company metric (profit, leads, projects sold, ...) against a
target; progress is computed on every read.
"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from uuid import UUID

from ...database.connection import get_db
from ...database.models import Goal
from ...schemas.goal import (
    DataPointInfo, DataPointsResponse,
    GoalCreateRequest, GoalUpdateRequest, GoalResponse, GoalsListResponse
)
from ...auth.dependencies import get_company_filter, CompanyFilter
from ...services import expenses
from ..updates import apply_update

router = APIRouter(prefix="/goals", tags=["Goals"])


def _validate_data_point(data_point: str):
    if data_point not in expenses.DATA_POINT_KEYS:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Unknown data point type: {data_point}"
        )


def _goal_response(db: Session, goal: Goal) -> GoalResponse:
    current = expenses.data_point_value(db, goal.company_id, goal.data_point_type, goal.start_date)
    return GoalResponse(
        id=goal.id,
        company_id=goal.company_id,
        goal_name=goal.goal_name,
        data_point_type=goal.data_point_type,
        target_value=goal.target_value,
        start_date=goal.start_date,
        target_date=goal.target_date,
        current_value=current,
        progress_percentage=expenses.goal_progress(current, goal.target_value),
        is_overdue=expenses.goal_overdue(current, goal.target_value, goal.target_date),
        created_at=goal.created_at,
        updated_at=goal.updated_at
    )


# PUBLIC_INTERFACE
@router.get("/data-points", response_model=DataPointsResponse,
            summary="Goal data points",
            description="Metrics a goal can track.")
async def list_data_points():
    return DataPointsResponse(data_points=[DataPointInfo(**point) for point in expenses.DATA_POINTS])


# PUBLIC_INTERFACE
@router.get("", response_model=GoalsListResponse,
            summary="List goals",
            description="List goals with their current value, progress and overdue flag.")
async def list_goals(
    company_filter: CompanyFilter = Depends(get_company_filter),
    db: Session = Depends(get_db)
):
    goals = company_filter.filter_query(db.query(Goal), Goal).order_by(Goal.created_at.desc()).all()
    return GoalsListResponse(goals=[_goal_response(db, g) for g in goals], total=len(goals))


# PUBLIC_INTERFACE
@router.post("", response_model=GoalResponse, status_code=status.HTTP_201_CREATED,
             summary="Create goal")
async def create_goal(
    request: GoalCreateRequest,
    company_filter: CompanyFilter = Depends(get_company_filter),
    db: Session = Depends(get_db)
):
    _validate_data_point(request.data_point_type)

    goal = Goal(company_id=company_filter.company_id, **request.model_dump(exclude_none=True))
    db.add(goal)
    db.commit()
    db.refresh(goal)
    return _goal_response(db, goal)


# PUBLIC_INTERFACE
@router.put("/{goal_id}", response_model=GoalResponse, summary="Update goal")
async def update_goal(
    goal_id: UUID,
    request: GoalUpdateRequest,
    company_filter: CompanyFilter = Depends(get_company_filter),
    db: Session = Depends(get_db)
):
    goal = company_filter.get(db, Goal, goal_id, "Goal not found")
    changes = request.model_dump(exclude_unset=True)
    if changes.get("data_point_type") is not None:
        _validate_data_point(changes["data_point_type"])

    apply_update(goal, changes, required=("goal_name", "data_point_type", "target_value"))
    db.commit()
    db.refresh(goal)
    return _goal_response(db, goal)


# PUBLIC_INTERFACE
@router.delete("/{goal_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete goal")
async def delete_goal(
    goal_id: UUID,
    company_filter: CompanyFilter = Depends(get_company_filter),
    db: Session = Depends(get_db)
):
    goal = company_filter.get(db, Goal, goal_id, "Goal not found")
    db.delete(goal)
    db.commit()
