"""
SMS messaging API routes.

Outbound texts go through the SMS provider; inbound texts arrive through the
provider webhook and are grouped here into per-phone conversations.
"""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload
from uuid import UUID

from ...database.connection import get_db
from ...database.models import Customer, MessageDirection, MessageStatus, SmsMessage
from ...schemas.message import (
    SendMessageRequest, MessageResponse, MessagesListResponse,
    ConversationSummary, ConversationsResponse, UnreadCountResponse,
    MarkReadRequest, MarkReadResponse
)
from ...auth.dependencies import get_company_filter, CompanyFilter
from ...services import IntegrationError, IntegrationNotConfigured
from ...services.sms import SMSClient, normalize_phone_number

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/messages", tags=["Messages"])


def get_sms_client() -> SMSClient:
    return SMSClient.from_env()


def _unread(query):
    return query.filter(
        SmsMessage.direction == MessageDirection.INBOUND,
        SmsMessage.is_read == False
    )


# PUBLIC_INTERFACE
@router.get("/conversations", response_model=ConversationsResponse,
            summary="List conversations",
            description="One entry per phone number with the latest message and unread count, most recent first.")
async def list_conversations(
    company_filter: CompanyFilter = Depends(get_company_filter),
    db: Session = Depends(get_db)
):
    messages = company_filter.filter_query(db.query(SmsMessage), SmsMessage).options(
        joinedload(SmsMessage.customer)
    ).order_by(SmsMessage.created_at.desc()).all()

    conversations = {}
    for message in messages:
        summary = conversations.get(message.phone_number)
        if summary is None:
            summary = ConversationSummary(
                phone_number=message.phone_number,
                last_message=MessageResponse.model_validate(message),
                unread_count=0
            )
            conversations[message.phone_number] = summary
        if summary.customer_id is None and message.customer is not None:
            summary.customer_id = message.customer.id
            summary.customer_name = f"{message.customer.first_name} {message.customer.last_name}"
        if message.direction == MessageDirection.INBOUND and not message.is_read:
            summary.unread_count += 1

    return ConversationsResponse(conversations=list(conversations.values()))


# PUBLIC_INTERFACE
@router.get("/unread-count", response_model=UnreadCountResponse,
            summary="Unread count",
            description="Number of unread inbound messages for the company.")
async def get_unread_count(
    company_filter: CompanyFilter = Depends(get_company_filter),
    db: Session = Depends(get_db)
):
    query = company_filter.filter_query(db.query(func.count(SmsMessage.id)), SmsMessage)
    return UnreadCountResponse(unread_count=_unread(query).scalar() or 0)


# PUBLIC_INTERFACE
@router.get("", response_model=MessagesListResponse,
            summary="List messages",
            description="Messages for a customer or a phone number, oldest first.")
async def list_messages(
    customer_id: Optional[UUID] = Query(None, description="Customer whose messages to list"),
    phone_number: Optional[str] = Query(None, description="Phone number whose messages to list"),
    company_filter: CompanyFilter = Depends(get_company_filter),
    db: Session = Depends(get_db)
):
    if customer_id is None and not phone_number:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="customer_id or phone_number is required"
        )

    query = company_filter.filter_query(db.query(SmsMessage), SmsMessage)
    if customer_id is not None:
        customer = company_filter.get(db, Customer, customer_id, "Customer not found")
        phone = normalize_phone_number(customer.phone)
        if phone:
            query = query.filter((SmsMessage.customer_id == customer.id) | (SmsMessage.phone_number == phone))
        else:
            query = query.filter(SmsMessage.customer_id == customer.id)
    else:
        query = query.filter(SmsMessage.phone_number == (normalize_phone_number(phone_number) or phone_number))

    messages = query.order_by(SmsMessage.created_at).all()
    return MessagesListResponse(
        messages=[MessageResponse.model_validate(m) for m in messages],
        total=len(messages)
    )


# PUBLIC_INTERFACE
@router.post("/send", response_model=MessageResponse, status_code=status.HTTP_201_CREATED,
             summary="Send SMS",
             description="Text a customer at their phone number on file.")
def send_message(
    request: SendMessageRequest,
    company_filter: CompanyFilter = Depends(get_company_filter),
    db: Session = Depends(get_db)
):
    customer = company_filter.get(db, Customer, request.customer_id, "Customer not found")
    phone = normalize_phone_number(customer.phone)
    if not phone:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Customer does not have a valid phone number"
        )

    try:
        result = get_sms_client().send(phone, request.message)
    except IntegrationNotConfigured as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))
    except IntegrationError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))

    message = SmsMessage(
        company_id=company_filter.company_id,
        customer_id=customer.id,
        phone_number=result["to"],
        message_body=request.message,
        direction=MessageDirection.OUTBOUND,
        provider_message_id=result["message_id"],
        status=MessageStatus(result["status"]),
        is_read=True
    )
    db.add(message)
    db.commit()
    db.refresh(message)
    logger.info("Sent SMS %s to customer %s", message.provider_message_id, customer.id)
    return MessageResponse.model_validate(message)


# PUBLIC_INTERFACE
@router.post("/mark-read", response_model=MarkReadResponse,
             summary="Mark messages read",
             description="Mark inbound messages from a customer or phone number as read.")
async def mark_read(
    request: MarkReadRequest,
    company_filter: CompanyFilter = Depends(get_company_filter),
    db: Session = Depends(get_db)
):
    if request.customer_id is None and not request.phone_number:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="customer_id or phone_number is required"
        )

    query = _unread(company_filter.filter_query(db.query(SmsMessage), SmsMessage))
    if request.customer_id is not None:
        company_filter.get(db, Customer, request.customer_id, "Customer not found")
        query = query.filter(SmsMessage.customer_id == request.customer_id)
    else:
        phone = normalize_phone_number(request.phone_number) or request.phone_number
        query = query.filter(SmsMessage.phone_number == phone)

    updated = query.update({SmsMessage.is_read: True}, synchronize_session=False)
    db.commit()
    return MarkReadResponse(updated=updated)
