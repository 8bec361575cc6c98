"""
Electronic signature provider client (BoldSign REST API).
"""
import io
import json
import logging
import os
from typing import Any, Dict, List, Optional

from pypdf import PdfReader
from pypdf.errors import PdfReadError

from . import IntegrationNotConfigured
from .http import call_vendor

logger = logging.getLogger(__name__)

PROVIDER = "boldsign"
BOLDSIGN_API_BASE_URL = "https://api.boldsign.com/v1"

# Provider webhook event -> internal signature status; None means acknowledge only
WEBHOOK_EVENT_STATUS = {
    "Sent": "sent",
    "Viewed": "delivered",
    "Signed": "signed",
    "Completed": "completed",
    "Declined": "declined",
    "Expired": "voided",
    "Revoked": "voided",
    "Reassigned": "sent",
    "DocumentSent": "sent",
    "DocumentViewed": "delivered",
    "DocumentSigned": "signed",
    "DocumentCompleted": "completed",
    "DocumentDeclined": "declined",
    "DocumentExpired": "voided",
    "DocumentRevoked": "voided",
    "SignerCompleted": "signed",
    "Verification": None,
}


def map_webhook_event(payload: Dict[str, Any]) -> Optional[str]:
    """Internal status for a webhook payload, or None when nothing should change."""
    event = payload.get("event")
    if isinstance(event, dict):
        event_type = event.get("eventType")
    else:
        event_type = event or payload.get("eventType") or payload.get("Event")
    return WEBHOOK_EVENT_STATUS.get(event_type)


def webhook_document_id(payload: Dict[str, Any]) -> Optional[str]:
    data = payload.get("data")
    if isinstance(data, dict) and data.get("documentId"):
        return data["documentId"]
    return payload.get("documentId")


def _signature_fields(prefix: str, top: int) -> List[Dict[str, Any]]:
    # Signature block layout on the last page of the contract template
    return [
        {"id": f"{prefix}_signature", "fieldType": "Signature", "isRequired": True,
         "bounds": {"x": 50, "y": top, "width": 280, "height": 28}},
        {"id": f"{prefix}_name", "fieldType": "TextBox", "isRequired": True,
         "placeHolder": "Printed Name",
         "bounds": {"x": 50, "y": top + 80, "width": 280, "height": 22}},
        {"id": f"{prefix}_date", "fieldType": "DateSigned", "isRequired": False,
         "dateFormat": "MM/dd/yyyy",
         "bounds": {"x": 475, "y": top, "width": 140, "height": 22}},
    ]


def build_signers(recipient_email: str, recipient_name: str, page: int,
                  company_signer_email: str = None, company_signer_name: str = None) -> List[Dict[str, Any]]:
    """Customer signs first; the company signer follows when it is a different person."""
    signers = [{
        "name": recipient_name or recipient_email,
        "emailAddress": recipient_email,
        "signerOrder": 1,
        "signerType": "Signer",
        "formFields": [dict(f, pageNumber=page) for f in _signature_fields("owner", 290)],
    }]
    if company_signer_email and company_signer_email.lower() != recipient_email.lower():
        signers.append({
            "name": company_signer_name or company_signer_email,
            "emailAddress": company_signer_email,
            "signerOrder": 2,
            "signerType": "Signer",
            "formFields": [dict(f, pageNumber=page) for f in _signature_fields("contractor", 534)],
        })
    return signers


def count_pdf_pages(data: bytes) -> int:
    """Number of pages in a PDF; 1 when the file cannot be parsed."""
    try:
        return max(len(PdfReader(io.BytesIO(data)).pages), 1)
    except (PdfReadError, KeyError, ValueError) as e:
        logger.warning("Could not read PDF page count: %s", e)
        return 1


class ESignatureClient:
    """BoldSign client authenticated with an API key."""

    def __init__(self, api_key: str, base_url: str = BOLDSIGN_API_BASE_URL):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")

    @classmethod
    def from_env(cls) -> "ESignatureClient":
        """
        Build a client from ``BOLDSIGN_API_KEY``.

        Raises:
            IntegrationNotConfigured: If the key is not set
        """
        api_key = os.getenv("BOLDSIGN_API_KEY")
        if not api_key:
            raise IntegrationNotConfigured(PROVIDER, "BOLDSIGN_API_KEY")
        return cls(api_key, os.getenv("BOLDSIGN_API_BASE_URL", BOLDSIGN_API_BASE_URL))

    @property
    def _headers(self):
        return {"X-API-KEY": self.api_key}

    def send_for_signature(self, pdf: bytes, file_name: str, recipient_email: str,
                           recipient_name: str, subject: str = None, message: str = None,
                           company_signer_email: str = None, company_signer_name: str = None) -> Dict[str, Any]:
        """
        Upload a PDF and send it to its signers.

        Returns:
            Dict[str, Any]: ``contract_id``, ``status`` and the signer list
        """
        if not file_name.lower().endswith(".pdf"):
            file_name = f"{file_name}.pdf"
        signers = build_signers(
            recipient_email, recipient_name, count_pdf_pages(pdf),
            company_signer_email, company_signer_name,
        )
        form = [
            ("Title", subject or file_name),
            ("Message", message or "Please review and sign this document."),
            ("EnableSigningOrder", "true"),
        ] + [("Signers", json.dumps(signer)) for signer in signers]

        response = call_vendor(
            PROVIDER, "POST", f"{self.base_url}/document/send",
            headers=self._headers,
            data=form,
            files=[("Files", (file_name, pdf, "application/pdf"))],
        )
        contract_id = response.json().get("documentId")
        logger.info("Sent %s for signature as %s", file_name, contract_id)
        return {
            "contract_id": contract_id,
            "status": "sent",
            "signers": [{"email": s["emailAddress"], "name": s["name"]} for s in signers],
        }

    def download_signed_document(self, document_id: str) -> bytes:
        response = call_vendor(
            PROVIDER, "GET", f"{self.base_url}/document/download",
            headers=self._headers,
            params={"documentId": document_id},
        )
        return response.content
