"""Tailscale API v2 clients used by rotation.

- TailscaleOAuthClient: OAuth client-credentials token exchange
- TailscaleApiKeyClient: auth key issue/verify/revoke
"""

from .api_key_client import (KEY_DEFAULT_LIFETIME_SECONDS,
                             KEY_MINIMUM_FUTURE_VALIDITY_DAYS, IssuerClient,
                             TailscaleApiKeyClient)
from .oauth_client import Authenticator, TailscaleOAuthClient

__all__ = [
    "Authenticator",
    "TailscaleOAuthClient",
    "IssuerClient",
    "TailscaleApiKeyClient",
    "KEY_DEFAULT_LIFETIME_SECONDS",
    "KEY_MINIMUM_FUTURE_VALIDITY_DAYS",
]
