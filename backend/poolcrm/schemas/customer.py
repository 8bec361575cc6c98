"""
Customer-related Pydantic schemas.

Defines request/response models for customer management
and the sales pipeline.
"""
from datetime import datetime
from decimal import Decimal
from typing import Optional, List
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from uuid import UUID

from ..database.models import PipelineStatus


class CustomerCreateRequest(BaseModel):
    """Customer creation request schema."""
    first_name: str = Field(..., min_length=1, max_length=100, description="Customer first name")
    last_name: str = Field(..., min_length=1, max_length=100, description="Customer last name")
    email: Optional[EmailStr] = Field(None, description="Customer email")
    phone: Optional[str] = Field(None, max_length=50, description="Customer phone")
    address_line1: Optional[str] = Field(None, max_length=255)
    address_line2: Optional[str] = Field(None, max_length=255)
    city: Optional[str] = Field(None, max_length=100)
    state: Optional[str] = Field(None, max_length=50)
    zip_code: Optional[str] = Field(None, max_length=20)
    country: Optional[str] = Field(None, max_length=100)
    referred_by: Optional[str] = Field(None, max_length=255)
    pipeline_status: PipelineStatus = Field(PipelineStatus.LEAD, description="Sales pipeline stage")
    notes: Optional[str] = None
    estimated_value: Optional[Decimal] = Field(None, ge=0, description="Estimated deal value")


class CustomerUpdateRequest(BaseModel):
    """Customer update request schema."""
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=50)
    address_line1: Optional[str] = Field(None, max_length=255)
    address_line2: Optional[str] = Field(None, max_length=255)
    city: Optional[str] = Field(None, max_length=100)
    state: Optional[str] = Field(None, max_length=50)
    zip_code: Optional[str] = Field(None, max_length=20)
    country: Optional[str] = Field(None, max_length=100)
    referred_by: Optional[str] = Field(None, max_length=255)
    pipeline_status: Optional[PipelineStatus] = None
    notes: Optional[str] = None
    estimated_value: Optional[Decimal] = Field(None, ge=0)


class CustomerResponse(BaseModel):
    """Customer response schema."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(..., description="Customer ID")
    company_id: str = Field(..., description="Company ID")
    first_name: str
    last_name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    address_line1: Optional[str] = None
    address_line2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    country: Optional[str] = None
    referred_by: Optional[str] = None
    pipeline_status: PipelineStatus
    notes: Optional[str] = None
    estimated_value: Optional[float] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


class CustomersListResponse(BaseModel):
    """Customers list response schema."""
    customers: List[CustomerResponse] = Field(..., description="List of customers")
    total: int = Field(..., description="Total number of matching customers")
