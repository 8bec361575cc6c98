"""
Goal tracking schemas.
"""
from datetime import datetime
from decimal import Decimal
from typing import Optional, List
from pydantic import BaseModel, Field
from uuid import UUID


class DataPointInfo(BaseModel):
    """A metric a goal can be measured against."""
    key: str
    label: str
    format: str = Field(..., description="currency or number")


class DataPointsResponse(BaseModel):
    data_points: List[DataPointInfo]


class GoalCreateRequest(BaseModel):
    """Goal creation request schema."""
    goal_name: str = Field(..., min_length=1, max_length=255)
    data_point_type: str = Field(..., description="Metric key from /goals/data-points")
    target_value: Decimal = Field(..., description="Value the metric should reach")
    start_date: Optional[datetime] = Field(None, description="Only count records created from this date")
    target_date: Optional[datetime] = Field(None, description="Deadline")


class GoalUpdateRequest(BaseModel):
    goal_name: Optional[str] = Field(None, min_length=1, max_length=255)
    data_point_type: Optional[str] = None
    target_value: Optional[Decimal] = None
    start_date: Optional[datetime] = None
    target_date: Optional[datetime] = None


class GoalResponse(BaseModel):
    """Goal with its computed progress."""
    id: UUID
    company_id: str
    goal_name: str
    data_point_type: str
    target_value: float
    start_date: Optional[datetime] = None
    target_date: Optional[datetime] = None
    current_value: float
    progress_percentage: float
    is_overdue: bool
    created_at: datetime
    updated_at: Optional[datetime] = None


class GoalsListResponse(BaseModel):
    goals: List[GoalResponse]
    total: int
