"""Tailscale auth key client.

Issues, verifies and revokes tailnet auth keys through the Tailscale API v2.
Verification enforces a minimum remaining validity so that a key promoted by
rotation never runs close to its real expiry.
"""

import json
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Optional, Protocol

import requests

from ..config import DEFAULT_TAILSCALE_API_URL
from ..exceptions import (KeyCapabilityError, KeyExpiredError,
                          KeyExpiringSoonError, KeyRevokedError,
                          TailscaleApiError, TailscaleApiKeyNotFoundError,
                          TailscaleApiUnauthenticatedError)
from ..models import IssuedKey, KeyDescription, KeyUsage

logger = logging.getLogger(__name__)

KEY_DEFAULT_LIFETIME_SECONDS = 90 * 24 * 3600
KEY_MINIMUM_FUTURE_VALIDITY_DAYS = 60


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class IssuerClient(Protocol):
    """Key operations the rotation state machine depends on."""

    def create_key(self, usage: KeyUsage) -> IssuedKey: ...

    def verify_key(self, key_id: str, usage: KeyUsage) -> bool: ...


class TailscaleApiKeyClient:
    """Client for `/tailnet/{tailnet}/keys`.

    Every method requires an access token; without one it raises
    TailscaleApiUnauthenticatedError before touching the network.
    """

    def __init__(
        self,
        tailnet: str,
        tag_name: str,
        access_token: Optional[str] = None,
        api_url: str = DEFAULT_TAILSCALE_API_URL,
        timeout: float = 30.0,
        clock: Callable[[], datetime] = _utcnow,
    ):
        """Initialize the client.

        Args:
            tailnet: Tailnet the keys belong to
            tag_name: Tag (without the "tag:" prefix) applied to issued keys
            access_token: Bearer token from TailscaleOAuthClient.authenticate
            api_url: Tailscale API v2 base URL
            timeout: HTTP timeout in seconds
            clock: Returns the current UTC time
        """
        self.tailnet = tailnet
        self.tag_name = tag_name
        self.access_token = access_token
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self._clock = clock

    @property
    def required_tag(self) -> str:
        return f"tag:{self.tag_name}"

    def _headers(self) -> dict[str, str]:
        if not self.access_token:
            raise TailscaleApiUnauthenticatedError(
                "No access token is configured yet, make sure you run the "
                "authenticate function first before."
            )
        return {
            "Authorization": f"Bearer {self.access_token}",
            "Content-Type": "application/json",
        }

    def _keys_url(self, key_id: Optional[str] = None) -> str:
        url = f"{self.api_url}/tailnet/{self.tailnet}/keys"
        if key_id is not None:
            url = f"{url}/{key_id}"
        return url

    def _request(
        self,
        method: str,
        body: Optional[dict] = None,
        key_id: Optional[str] = None,
    ) -> Any:
        headers = self._headers()
        url = self._keys_url(key_id)

        response = requests.request(
            method=method,
            url=url,
            headers=headers,
            json=body,
            timeout=self.timeout,
        )

        if response.status_code == 404 and key_id is not None:
            raise TailscaleApiKeyNotFoundError(
                f"The key {key_id} was not found",
                method=method,
                url=url,
                status_code=404,
            )
        if not response.ok:
            raise TailscaleApiError(
                f"The {method} request for {url} resulted in: {response.status_code}",
                method=method,
                url=url,
                status_code=response.status_code,
            )

        if not response.content:
            return None
        return response.json()

    def create_key(self, usage: KeyUsage) -> IssuedKey:
        """Issue a new ephemeral, tagged auth key.

        Args:
            usage: Whether the key may be used by more than one device

        Returns:
            The new key without its capability fields
        """
        body = {
            "capabilities": {
                "devices": {
                    "create": {
                        "reusable": usage is KeyUsage.REUSABLE,
                        "ephemeral": True,
                        "preauthorized": False,
                        "tags": [self.required_tag],
                    },
                },
            },
            "expirySeconds": KEY_DEFAULT_LIFETIME_SECONDS,
        }
        data = self._request("POST", body)
        issued = IssuedKey(
            id=data["id"],
            key=data["key"],
            created=data["created"],
            expires=data["expires"],
        )
        logger.info(
            "Created Tailscale auth key %s (usage=%s, expires=%s)",
            issued.id,
            usage.value,
            issued.expires,
        )
        return issued

    def describe_key(self, key_id: str) -> KeyDescription:
        """Fetch the current description of a key."""
        return KeyDescription.from_api(self._request("GET", key_id=key_id))

    def verify_key(self, key_id: str, usage: KeyUsage) -> bool:
        """Verify that a key is valid long enough and has the expected capabilities.

        Checks run in a fixed order and the first failure raises.

        Args:
            key_id: Tailscale key id
            usage: Expected usage policy

        Returns:
            True when every check passes

        Raises:
            KeyExpiredError: The key has expired
            KeyExpiringSoonError: The key expires within the minimum validity window
            KeyRevokedError: The key is revoked within the minimum validity window
            KeyCapabilityError: Reusable, ephemeral or tag capabilities are wrong
        """
        description = self.describe_key(key_id)
        now = self._clock()
        valid_until = now + timedelta(days=KEY_MINIMUM_FUTURE_VALIDITY_DAYS)
        expires = description.expires.isoformat()

        if description.expires < now:
            raise KeyExpiredError(f"The key expired on {expires}", key_id=key_id)

        if description.expires < valid_until:
            raise KeyExpiringSoonError(
                f"The key expires on {expires}, that is within the next "
                f"{KEY_MINIMUM_FUTURE_VALIDITY_DAYS} days",
                key_id=key_id,
            )

        if description.revoked is not None and description.revoked < valid_until:
            raise KeyRevokedError(
                f"The key was revoked on {description.revoked.isoformat()}",
                key_id=key_id,
            )

        capability = json.dumps(description.capabilities)
        should_be_reusable = usage is KeyUsage.REUSABLE
        if description.reusable is not should_be_reusable:
            detail = (
                "not reusable, while it should be"
                if should_be_reusable
                else "reusable, while it should not be"
            )
            raise KeyCapabilityError(
                f"The client authentication key ({key_id}) is {detail}! Capability: {capability}",
                key_id=key_id,
            )

        if description.ephemeral is not True:
            raise KeyCapabilityError(
                f"The client authentication key ({key_id}) is not ephemeral! "
                f"Capability: {capability}",
                key_id=key_id,
            )

        if not description.tags or self.required_tag not in description.tags:
            raise KeyCapabilityError(
                f"The client authentication key ({key_id}) is not tagged properly! "
                f"Capability: {capability}",
                key_id=key_id,
            )

        logger.info("Verified Tailscale auth key %s (usage=%s)", key_id, usage.value)
        return True

    def delete_key(self, key_id: str) -> None:
        """Revoke a key.

        Raises:
            TailscaleApiKeyNotFoundError: The key does not exist
        """
        self._request("DELETE", key_id=key_id)
        logger.info("Deleted Tailscale auth key %s", key_id)
