"""
Thin wrapper around ``requests`` used by the vendor clients.
"""
import logging
from typing import Any

import requests

from . import IntegrationError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 15


def call_vendor(provider: str, method: str, url: str, **kwargs: Any) -> requests.Response:
    """
    Perform an HTTP request against a provider API.

    Args:
        provider: Provider name used in errors and logs
        method: HTTP method
        url: Absolute URL
        **kwargs: Passed through to ``requests.request``

    Returns:
        requests.Response: Successful (2xx) response

    Raises:
        IntegrationError: On connection failure or a non-2xx status
    """
    kwargs.setdefault("timeout", DEFAULT_TIMEOUT)
    try:
        response = requests.request(method, url, **kwargs)
    except requests.RequestException as e:
        logger.error("%s request to %s failed: %s", provider, url, e)
        raise IntegrationError(provider, f"request failed: {e}") from e

    if not response.ok:
        logger.error("%s returned HTTP %s for %s", provider, response.status_code, url)
        raise IntegrationError(
            provider,
            f"HTTP {response.status_code}: {response.text[:500]}",
            status_code=response.status_code,
        )
    return response
