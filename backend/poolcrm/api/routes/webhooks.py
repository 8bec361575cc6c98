"""
Inbound vendor webhook routes.

These endpoints are called by the e-signature, SMS and payment providers,
not by users, so they carry no bearer token. Each one authenticates the
caller with the provider's shared secret or signature instead.
"""
import hmac
import logging
import os
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from fastapi import APIRouter, Body, Depends, Header, HTTPException, Query, Request, status
from sqlalchemy.orm import Session

from ...database.connection import get_db
from ...database.tenancy import apply_system_scope
from ...database.models import (
    Customer, Document, MessageDirection, MessageStatus, SignatureStatus, SmsMessage
)
from ...services import IntegrationError, billing, esignature, sms
from ...services.storage import DocumentStorage, get_storage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhooks", tags=["Webhooks"])


def get_esignature_client() -> esignature.ESignatureClient:
    return esignature.ESignatureClient.from_env()


def _store_signed_copy(db: Session, storage: DocumentStorage, document: Document) -> Optional[Document]:
    """
    Download the completed PDF and file it next to the original as ``signed_<name>``.

    Returns the new document, or None when a copy exists or the download fails.
    """
    key = f"{document.file_path.rsplit('/', 1)[0]}/signed_{document.file_name}"
    if storage.exists(key) or db.query(Document).filter(Document.file_path == key).first():
        return None
    try:
        data = get_esignature_client().download_signed_document(document.esign_contract_id)
    except IntegrationError as e:
        logger.warning("Could not fetch signed copy of document %s: %s", document.id, e)
        return None

    signed = Document(
        company_id=document.company_id,
        entity_type=document.entity_type,
        entity_id=document.entity_id,
        document_type=document.document_type,
        document_number=document.document_number,
        file_name=key.rsplit("/", 1)[-1],
        file_path=key,
        file_size=len(data),
        mime_type="application/pdf",
        esign_status=SignatureStatus.COMPLETED,
        esign_completed_at=document.esign_completed_at
    )
    db.add(signed)
    storage.save(key, data)
    return signed


def _customers_by_phone(db: Session, phone: str):
    """Customers in any company whose phone number normalizes to ``phone``."""
    candidates = db.query(Customer).filter(Customer.phone.isnot(None)).all()
    return [c for c in candidates if sms.normalize_phone_number(c.phone) == phone]


# PUBLIC_INTERFACE
@router.post("/esign",
             summary="E-signature status webhook",
             description="Record signature status changes reported by the e-signature provider. "
                         "When a contract completes, the signed PDF is stored as a new document.")
def esign_webhook(
    payload: Dict[str, Any] = Body(...),
    x_webhook_secret: Optional[str] = Header(None),
    storage: DocumentStorage = Depends(get_storage),
    db: Session = Depends(get_db)
):
    expected = os.getenv("ESIGN_WEBHOOK_SECRET")
    if expected and not (x_webhook_secret and hmac.compare_digest(x_webhook_secret, expected)):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid webhook secret")

    apply_system_scope(db)
    new_status = esignature.map_webhook_event(payload)
    contract_id = esignature.webhook_document_id(payload)
    if new_status is None or not contract_id:
        return {"received": True, "matched": False}

    document = db.query(Document).filter(Document.esign_contract_id == contract_id).first()
    if not document:
        logger.info("Signature webhook for unknown contract %s", contract_id)
        return {"received": True, "matched": False}

    document.esign_status = SignatureStatus(new_status)
    signed = None
    if document.esign_status == SignatureStatus.COMPLETED:
        document.esign_completed_at = datetime.now(timezone.utc)
        signed = _store_signed_copy(db, storage, document)
    db.commit()
    logger.info("Document %s signature status is now %s", document.id, new_status)
    return {
        "received": True,
        "matched": True,
        "status": new_status,
        "signed_document_id": str(signed.id) if signed else None
    }


# PUBLIC_INTERFACE
@router.post("/sms/inbound",
             summary="Inbound SMS webhook",
             description="Store text messages received from customers. Messages are filed under "
                         "every company with a customer at the sender's number.")
async def sms_inbound(
    payload: Dict[str, Any] = Body(...),
    x_infobip_secret: Optional[str] = Header(None),
    secret: Optional[str] = Query(None),
    db: Session = Depends(get_db)
):
    if not sms.verify_webhook_secret(x_infobip_secret or secret):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid webhook secret")

    apply_system_scope(db)
    stored = 0
    for inbound in sms.parse_inbound(payload):
        phone = sms.normalize_phone_number(inbound["from"])
        if not phone or not inbound["text"]:
            continue
        customers = _customers_by_phone(db, phone)
        if not customers:
            logger.info("Inbound SMS %s did not match a customer", inbound["message_id"])
            continue
        for customer in customers:
            db.add(SmsMessage(
                company_id=customer.company_id,
                customer_id=customer.id,
                phone_number=phone,
                message_body=inbound["text"],
                direction=MessageDirection.INBOUND,
                provider_message_id=inbound["message_id"],
                status=MessageStatus.RECEIVED,
                is_read=False
            ))
            stored += 1

    db.commit()
    return {"received": True, "stored": stored}


# PUBLIC_INTERFACE
@router.post("/sms/delivery",
             summary="SMS delivery report webhook",
             description="Update the delivery status of sent messages.")
async def sms_delivery(
    payload: Dict[str, Any] = Body(...),
    x_infobip_secret: Optional[str] = Header(None),
    secret: Optional[str] = Query(None),
    db: Session = Depends(get_db)
):
    if not sms.verify_webhook_secret(x_infobip_secret or secret):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid webhook secret")

    apply_system_scope(db)
    updated = 0
    for report in sms.parse_delivery_reports(payload):
        if not report["message_id"] or report["status"] is None:
            continue
        updated += db.query(SmsMessage).filter(
            SmsMessage.provider_message_id == report["message_id"],
            SmsMessage.direction == MessageDirection.OUTBOUND
        ).update({SmsMessage.status: MessageStatus(report["status"])}, synchronize_session=False)

    db.commit()
    return {"received": True, "updated": updated}


# PUBLIC_INTERFACE
@router.post("/stripe",
             summary="Stripe webhook",
             description="Apply subscription lifecycle events to the paying company.")
async def stripe_webhook(
    request: Request,
    stripe_signature: Optional[str] = Header(None),
    db: Session = Depends(get_db)
):
    secret = os.getenv("STRIPE_WEBHOOK_SECRET")
    if not secret:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Stripe webhooks are not configured"
        )

    payload = await request.body()
    try:
        event = billing.construct_event(payload, stripe_signature, secret)
    except billing.SignatureVerificationError as e:
        logger.warning("Rejected Stripe webhook: %s", e)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid signature")
    except ValueError as e:
        logger.warning("Unreadable Stripe webhook payload: %s", e)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid payload")

    apply_system_scope(db)
    company_id = billing.apply_event(db, event)
    db.commit()
    return {"received": True, "company_id": company_id}
