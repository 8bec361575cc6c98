"""
Subcontractor schemas.
"""
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, List
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from uuid import UUID


class SubcontractorCreateRequest(BaseModel):
    """Subcontractor creation request schema."""
    name: str = Field(..., min_length=1, max_length=255, description="Subcontractor business name")
    primary_contact_name: Optional[str] = Field(None, max_length=255)
    primary_contact_phone: Optional[str] = Field(None, max_length=50)
    primary_contact_email: Optional[EmailStr] = None
    rate: Optional[Decimal] = Field(None, ge=0, description="Default hourly rate")
    coi_expiration: Optional[date] = Field(None, description="Certificate of insurance expiry")
    notes: Optional[str] = None


class SubcontractorUpdateRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    primary_contact_name: Optional[str] = Field(None, max_length=255)
    primary_contact_phone: Optional[str] = Field(None, max_length=50)
    primary_contact_email: Optional[EmailStr] = None
    rate: Optional[Decimal] = Field(None, ge=0)
    coi_expiration: Optional[date] = None
    notes: Optional[str] = None


class SubcontractorResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    company_id: str
    name: str
    primary_contact_name: Optional[str] = None
    primary_contact_phone: Optional[str] = None
    primary_contact_email: Optional[str] = None
    rate: Optional[float] = None
    coi_expiration: Optional[date] = None
    coi_expired: bool = Field(False, description="Whether the insurance certificate has lapsed")
    notes: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


class SubcontractorsListResponse(BaseModel):
    subcontractors: List[SubcontractorResponse]
    total: int
