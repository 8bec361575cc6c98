"""
SMS messaging schemas.
"""
from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, ConfigDict, Field
from uuid import UUID

from ..database.models import MessageDirection, MessageStatus


class SendMessageRequest(BaseModel):
    """Outbound SMS request schema."""
    customer_id: UUID = Field(..., description="Customer to text")
    message: str = Field(..., min_length=1, max_length=1600, description="Message body")


class MessageResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    customer_id: Optional[UUID] = None
    phone_number: str
    message_body: str
    direction: MessageDirection
    provider_message_id: Optional[str] = None
    status: MessageStatus
    is_read: bool
    created_at: datetime


class MessagesListResponse(BaseModel):
    messages: List[MessageResponse]
    total: int


class ConversationSummary(BaseModel):
    """Latest message and unread count for one phone number."""
    phone_number: str
    customer_id: Optional[UUID] = None
    customer_name: Optional[str] = None
    last_message: MessageResponse
    unread_count: int


class ConversationsResponse(BaseModel):
    conversations: List[ConversationSummary]


class UnreadCountResponse(BaseModel):
    unread_count: int


class MarkReadRequest(BaseModel):
    """Mark inbound messages read by customer or phone number."""
    customer_id: Optional[UUID] = None
    phone_number: Optional[str] = None


class MarkReadResponse(BaseModel):
    updated: int
