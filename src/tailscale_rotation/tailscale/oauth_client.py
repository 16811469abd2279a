"""Tailscale OAuth client.

Exchanges an OAuth client id/secret for a short-lived API access token using
the client-credentials grant.
"""

import base64
import logging
from typing import Protocol

import requests

from ..config import DEFAULT_TAILSCALE_API_URL
from ..exceptions import TailscaleApiError
from ..models import OAuthCredential

logger = logging.getLogger(__name__)


class Authenticator(Protocol):
    """Anything that turns an OAuth credential into a bearer access token."""

    def authenticate(self, credential: OAuthCredential) -> str: ...


class TailscaleOAuthClient:
    """Client for the Tailscale OAuth token endpoint."""

    def __init__(self, api_url: str = DEFAULT_TAILSCALE_API_URL, timeout: float = 30.0):
        """Initialize the client.

        Args:
            api_url: Tailscale API v2 base URL
            timeout: HTTP timeout in seconds
        """
        self.token_url = f"{api_url.rstrip('/')}/oauth/token"
        self.timeout = timeout

    @staticmethod
    def _headers(credential: OAuthCredential) -> dict[str, str]:
        raw = f"{credential.client_id}:{credential.client_key}".encode("utf-8")
        return {
            "Authorization": f"Basic {base64.b64encode(raw).decode('ascii')}",
            "Content-Type": "application/json",
        }

    def authenticate(self, credential: OAuthCredential) -> str:
        """Request an access token.

        Args:
            credential: OAuth client credential

        Returns:
            Bearer access token

        Raises:
            TailscaleApiError: On any non-2xx response
            requests.RequestException: Network failures are not wrapped
        """
        method = "POST"
        response = requests.request(
            method=method,
            url=self.token_url,
            headers=self._headers(credential),
            json={"grant_type": "client_credentials"},
            timeout=self.timeout,
        )
        if not response.ok:
            raise TailscaleApiError(
                f"The {method} request for {self.token_url} resulted in: {response.status_code}",
                method=method,
                url=self.token_url,
                status_code=response.status_code,
            )

        logger.debug("Obtained Tailscale access token for OAuth client %s", credential.client_id)
        return response.json()["access_token"]
