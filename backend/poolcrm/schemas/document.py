"""
Document storage and e-signature schemas.
"""
from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from uuid import UUID

from ..database.models import DocumentType, EntityType, SignatureStatus


class DocumentResponse(BaseModel):
    """Stored document metadata."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    company_id: str
    entity_type: EntityType
    entity_id: UUID
    document_type: DocumentType
    document_number: Optional[int] = None
    file_name: str
    file_path: str
    file_size: Optional[int] = None
    mime_type: Optional[str] = None
    esign_contract_id: Optional[str] = None
    esign_status: Optional[SignatureStatus] = None
    esign_sent_at: Optional[datetime] = None
    esign_completed_at: Optional[datetime] = None
    esign_sender_email: Optional[str] = None
    created_at: datetime


class DocumentsListResponse(BaseModel):
    documents: List[DocumentResponse]
    total: int


class SignatureRequest(BaseModel):
    """Send a stored PDF out for electronic signature."""
    recipient_email: EmailStr = Field(..., description="Customer signer email")
    recipient_name: str = Field(..., min_length=1, max_length=255, description="Customer signer name")
    subject: Optional[str] = Field(None, max_length=255)
    message: Optional[str] = None
