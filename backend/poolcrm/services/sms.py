"""
SMS provider client (Infobip) and payload helpers.
"""
import hmac
import logging
import os
import re
from typing import Any, Dict, List, Optional

from . import IntegrationError, IntegrationNotConfigured
from .http import call_vendor

logger = logging.getLogger(__name__)

PROVIDER = "infobip"

# Delivery report status group -> stored message status
DELIVERY_STATUS = {
    "DELIVERED": "delivered",
    "UNDELIVERABLE": "failed",
    "REJECTED": "failed",
    "EXPIRED": "failed",
}


def normalize_phone_number(phone: Optional[str]) -> Optional[str]:
    """
    Normalize a phone number to E.164.

    Bare 10-digit numbers are treated as North American. Returns None when
    the number cannot be normalized.
    """
    if not phone:
        return None
    cleaned = re.sub(r"[^\d+]", "", phone)
    if cleaned.startswith("+"):
        digits = cleaned[1:]
        if digits.isdigit() and 10 <= len(digits) <= 15:
            return cleaned
        return None
    if len(cleaned) == 11 and cleaned.startswith("1"):
        return f"+{cleaned}"
    if len(cleaned) == 10:
        return f"+1{cleaned}"
    if 10 <= len(cleaned) <= 15:
        return f"+{cleaned}"
    return None


def _plus(number) -> Optional[str]:
    if not number:
        return None
    number = str(number)
    return number if number.startswith("+") else f"+{number}"


def _parse_one(message: Dict[str, Any]) -> Dict[str, Any]:
    nested = message.get("message")
    text = message.get("text") or (nested.get("text") if isinstance(nested, dict) else None) or ""
    return {
        "message_id": message.get("messageId"),
        "from": _plus(message.get("from")),
        "to": _plus(message.get("to")),
        "text": text,
        "received_at": message.get("receivedAt"),
    }


def parse_inbound(payload: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Inbound messages from either a ``results`` batch or a single-message body."""
    results = payload.get("results")
    if isinstance(results, list):
        return [_parse_one(m) for m in results if isinstance(m, dict)]
    return [_parse_one(payload)]


def parse_delivery_reports(payload: Dict[str, Any]) -> List[Dict[str, Optional[str]]]:
    """Provider message ids with the stored status they map to (None if unmapped)."""
    reports = []
    for result in payload.get("results") or []:
        status = result.get("status") or {}
        group = status.get("groupName") or status.get("name") or ""
        reports.append({
            "message_id": result.get("messageId"),
            "status": DELIVERY_STATUS.get(group.upper()),
        })
    return reports


def verify_webhook_secret(provided: Optional[str], expected: Optional[str] = None) -> bool:
    """True when no secret is configured or the provided one matches."""
    expected = expected if expected is not None else os.getenv("INFOBIP_WEBHOOK_SECRET")
    if not expected:
        return True
    return bool(provided) and hmac.compare_digest(provided, expected)


class SMSClient:
    """Infobip SMS client."""

    def __init__(self, api_key: str, base_url: str, sender_id: str):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.sender_id = sender_id

    @classmethod
    def from_env(cls) -> "SMSClient":
        """
        Build a client from ``INFOBIP_API_KEY``, ``INFOBIP_BASE_URL`` and ``INFOBIP_SENDER_ID``.

        Raises:
            IntegrationNotConfigured: If any of them is missing
        """
        values = {name: os.getenv(name) for name in ("INFOBIP_API_KEY", "INFOBIP_BASE_URL", "INFOBIP_SENDER_ID")}
        missing = [name for name, value in values.items() if not value]
        if missing:
            raise IntegrationNotConfigured(PROVIDER, ", ".join(missing))
        return cls(values["INFOBIP_API_KEY"], values["INFOBIP_BASE_URL"], values["INFOBIP_SENDER_ID"])

    def send(self, to: str, text: str) -> Dict[str, Any]:
        """
        Send a text message.

        Args:
            to: Recipient number, normalized to E.164 before sending
            text: Message body

        Returns:
            Dict[str, Any]: ``message_id``, ``status`` and normalized ``to``

        Raises:
            ValueError: If the number cannot be normalized
            IntegrationError: If the provider rejects the request
        """
        normalized = normalize_phone_number(to)
        if not normalized:
            raise ValueError("Invalid phone number format")

        response = call_vendor(
            PROVIDER, "POST", f"{self.base_url}/sms/2/text/advanced",
            headers={
                "Authorization": f"App {self.api_key}",
                "Accept": "application/json",
            },
            json={
                "messages": [{
                    "destinations": [{"to": normalized.lstrip("+")}],
                    "from": self.sender_id,
                    "text": text,
                }]
            },
        )
        messages = response.json().get("messages") or []
        if not messages:
            raise IntegrationError(PROVIDER, "response did not include a message")
        message = messages[0]
        status_name = (message.get("status") or {}).get("groupName", "")
        return {
            "message_id": message.get("messageId"),
            "status": "failed" if status_name.upper() == "REJECTED" else "sent",
            "to": normalized,
        }
