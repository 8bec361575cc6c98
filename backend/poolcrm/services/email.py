"""
Transactional email through the EmailJS REST API.
"""
import logging
import os

from . import FRONTEND_URL, IntegrationNotConfigured
from .http import call_vendor

logger = logging.getLogger(__name__)

PROVIDER = "emailjs"
EMAILJS_SEND_URL = "https://api.emailjs.com/api/v1.0/email/send"


class EmailClient:
    """Sends templated emails with an EmailJS service."""

    def __init__(self, service_id: str, template_id: str, public_key: str, private_key: str):
        self.service_id = service_id
        self.template_id = template_id
        self.public_key = public_key
        self.private_key = private_key

    @classmethod
    def from_env(cls) -> "EmailClient":
        names = ("EMAILJS_SERVICE_ID", "EMAILJS_TEMPLATE_ID", "EMAILJS_PUBLIC_KEY", "EMAILJS_PRIVATE_KEY")
        values = [(os.getenv(name) or "").strip() for name in names]
        missing = [name for name, value in zip(names, values) if not value]
        if missing:
            raise IntegrationNotConfigured(PROVIDER, ", ".join(missing))
        return cls(*values)

    def send_welcome(self, to: str, company_id: str, company_name: str = None, owner_name: str = None):
        """Email a new company owner their company ID and the login link."""
        call_vendor(
            PROVIDER, "POST", EMAILJS_SEND_URL,
            json={
                "service_id": self.service_id,
                "template_id": self.template_id,
                "user_id": self.public_key,
                "accessToken": self.private_key,
                "template_params": {
                    "to_email": to,
                    "company_id": company_id,
                    "company_name": company_name or "",
                    "owner_name": owner_name or "",
                    "login_url": FRONTEND_URL,
                },
            },
        )
        logger.info("Welcome email sent for company %s", company_id)


def send_registration_welcome(to: str, company_id: str, company_name: str = None,
                              owner_name: str = None) -> bool:
    """
    Send the welcome email if EmailJS is configured.

    Returns:
        bool: True if the email was sent, False if email is not configured
    """
    try:
        client = EmailClient.from_env()
    except IntegrationNotConfigured as e:
        logger.info("Skipping welcome email: %s", e)
        return False
    client.send_welcome(to, company_id, company_name, owner_name)
    return True
