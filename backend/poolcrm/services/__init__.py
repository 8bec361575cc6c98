"""
Vendor integrations and business calculations shared by the API routes.

Vendor clients raise ``IntegrationError`` when the provider call fails and
``IntegrationNotConfigured`` when the required credentials are missing.
"""
import os

FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")


class IntegrationError(Exception):
    """A call to an external provider failed."""

    def __init__(self, provider: str, message: str, status_code: int = None):
        self.provider = provider
        self.message = message
        self.status_code = status_code
        super().__init__(f"{provider}: {message}")


class IntegrationNotConfigured(IntegrationError):
    """The provider's credentials are not set in the environment."""

    def __init__(self, provider: str, missing: str):
        super().__init__(provider, f"not configured (missing {missing})")
        self.missing = missing
