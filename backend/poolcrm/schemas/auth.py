"""
Authentication and user-related Pydantic schemas.

Defines request/response models for registration, login, token refresh
and the current-user profile.
"""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from uuid import UUID

from ..auth.jwt_handler import PasswordHandler
from ..database.models import UserRole


class UserRegistrationRequest(BaseModel):
    """User registration request schema."""
    company_id: str = Field(..., min_length=1, max_length=100, description="Company identifier to join or create")
    email: EmailStr = Field(..., description="User email address")
    password: str = Field(..., description="User password (minimum 8 characters)")
    full_name: Optional[str] = Field(None, max_length=255, description="User full name")
    company_name: Optional[str] = Field(None, max_length=255, description="Display name for a new company")

    @field_validator('company_id')
    @classmethod
    def strip_company_id(cls, v):
        v = v.strip()
        if not v:
            raise ValueError('company_id must not be blank')
        return v

    @field_validator('password')
    @classmethod
    def validate_password(cls, v):
        """Validate password strength."""
        if not PasswordHandler.validate_password_strength(v):
            raise ValueError('password too short')
        return v


class UserLoginRequest(BaseModel):
    """User login request schema."""
    company_id: str = Field(..., min_length=1, description="Company identifier")
    email: EmailStr = Field(..., description="User email address")
    password: str = Field(..., description="User password")


class UserInfo(BaseModel):
    """User information schema."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(..., description="User ID")
    company_id: str = Field(..., description="Company ID")
    email: str = Field(..., description="User email address")
    full_name: Optional[str] = Field(None, description="User full name")
    role: UserRole = Field(..., description="User role")
    active: bool = Field(..., description="Whether user is active")
    last_login: Optional[datetime] = Field(None, description="Last successful login")
    google_calendar_connected: bool = Field(False, description="Whether a calendar is linked")


class AuthResponse(BaseModel):
    """Authentication response schema."""
    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type")
    user: UserInfo = Field(..., description="User information")


class RegistrationResponse(AuthResponse):
    """Registration response schema."""
    company_created: bool = Field(..., description="Whether registration created the company")


class TokenRefreshResponse(BaseModel):
    """Token refresh response schema."""
    access_token: str = Field(..., description="New JWT access token")
    token_type: str = Field(default="bearer", description="Token type")


class LastLogonResponse(BaseModel):
    employee_id: UUID
    last_logon: datetime


class StandardResponse(BaseModel):
    """Standard API response schema."""
    message: str = Field(..., description="Response message")
