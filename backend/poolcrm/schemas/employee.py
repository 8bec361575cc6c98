"""
Employee roster schemas.
"""
from datetime import datetime
from typing import Optional, List, Literal
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from uuid import UUID

EmployeeType = Literal["admin", "manager", "employee"]


def _clean_color(v):
    if isinstance(v, str):
        v = v.strip()
        return v or None
    return v


class EmployeeCreateRequest(BaseModel):
    """Employee creation request schema."""
    name: str = Field(..., min_length=1, max_length=255, description="Employee name")
    email_address: EmailStr = Field(..., description="Work email address")
    user_type: EmployeeType = Field("employee", description="admin, manager or employee")
    user_role: Optional[str] = Field(None, max_length=100, description="Job title")
    phone: Optional[str] = Field(None, max_length=50)
    color: Optional[str] = Field(None, pattern=r"^#[0-9A-Fa-f]{6}$", description="Calendar color (#RRGGBB)")
    current: bool = False
    is_project_manager: bool = False
    is_sales_person: bool = False
    is_foreman: bool = False
    registered_time_zone: Optional[str] = Field(None, max_length=64)

    @field_validator('color', mode="before")
    @classmethod
    def trim_color(cls, v):
        return _clean_color(v)


class EmployeeUpdateRequest(BaseModel):
    """Employee update request schema."""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    email_address: Optional[EmailStr] = None
    user_type: Optional[EmployeeType] = None
    user_role: Optional[str] = Field(None, max_length=100)
    phone: Optional[str] = Field(None, max_length=50)
    color: Optional[str] = Field(None, pattern=r"^#[0-9A-Fa-f]{6}$")
    current: Optional[bool] = None
    is_project_manager: Optional[bool] = None
    is_sales_person: Optional[bool] = None
    is_foreman: Optional[bool] = None
    registered_time_zone: Optional[str] = Field(None, max_length=64)

    @field_validator('color', mode="before")
    @classmethod
    def trim_color(cls, v):
        return _clean_color(v)


class EmployeeResponse(BaseModel):
    """Employee response schema."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    company_id: str
    name: str
    email_address: str
    user_type: str
    user_role: Optional[str] = None
    phone: Optional[str] = None
    color: Optional[str] = None
    last_logon: Optional[datetime] = None
    current: bool
    is_project_manager: bool
    is_sales_person: bool
    is_foreman: bool
    registered_time_zone: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


class EmployeesListResponse(BaseModel):
    employees: List[EmployeeResponse]
    total: int
