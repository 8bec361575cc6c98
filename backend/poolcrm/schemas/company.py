"""
Company profile and registration whitelist schemas.
"""
from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from uuid import UUID

from ..database.models import SubscriptionStatus


class CompanyResponse(BaseModel):
    """Company profile response schema."""
    model_config = ConfigDict(from_attributes=True)

    company_id: str
    company_name: Optional[str] = None
    address_line1: Optional[str] = None
    address_line2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    country: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    website: Optional[str] = None
    next_document_number: int = 1
    subscription_status: Optional[SubscriptionStatus] = None
    subscription_plan: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


class CompanyUpdateRequest(BaseModel):
    """Company profile update request schema."""
    company_name: Optional[str] = Field(None, max_length=255)
    address_line1: Optional[str] = Field(None, max_length=255)
    address_line2: Optional[str] = Field(None, max_length=255)
    city: Optional[str] = Field(None, max_length=100)
    state: Optional[str] = Field(None, max_length=50)
    zip_code: Optional[str] = Field(None, max_length=20)
    country: Optional[str] = Field(None, max_length=100)
    phone: Optional[str] = Field(None, max_length=50)
    email: Optional[EmailStr] = None
    website: Optional[str] = Field(None, max_length=255)


class WhitelistAddRequest(BaseModel):
    """Request to allow an email address to register under the company."""
    email: EmailStr = Field(..., description="Email address to whitelist")

    @field_validator('email')
    @classmethod
    def lowercase(cls, v):
        return v.lower()


class WhitelistEntryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    registered: bool
    registered_at: Optional[datetime] = None
    added_by: Optional[UUID] = None
    created_at: datetime


class WhitelistListResponse(BaseModel):
    entries: List[WhitelistEntryResponse]
    total: int
