"""Tailscale auth key rotation for AWS Secrets Manager.

Rotates a Tailscale device auth key stored in a Secrets Manager secret using
the four-step rotation protocol (createSecret, setSecret, testSecret,
finishSecret).
"""

from .config import RotationSettings, load_settings
from .exceptions import (ConfigurationError, InvalidStepError,
                         KeyCapabilityError, KeyExpiredError,
                         KeyExpiringSoonError, KeyRevokedError,
                         KeyVerificationError, RotationDisabledError,
                         RotationError, SecretError,
                         SecretVersionNotFoundError, SecretVersionStageError,
                         TailscaleApiError, TailscaleApiKeyNotFoundError,
                         TailscaleApiUnauthenticatedError)
from .models import (IssuedKey, KeyDescription, KeyUsage, OAuthCredential,
                     RotationStep, SecretMetadata, SecretStage)
from .rotation import SecretRotator
from .secret_store import SecretsManagerStore, SecretStore

__version__ = "0.1.0"

__all__ = [
    # Orchestration
    "SecretRotator",
    "SecretStore",
    "SecretsManagerStore",
    "RotationSettings",
    "load_settings",
    # Models
    "IssuedKey",
    "KeyDescription",
    "KeyUsage",
    "OAuthCredential",
    "RotationStep",
    "SecretMetadata",
    "SecretStage",
    # Errors
    "RotationError",
    "ConfigurationError",
    "InvalidStepError",
    "SecretError",
    "RotationDisabledError",
    "SecretVersionNotFoundError",
    "SecretVersionStageError",
    "TailscaleApiError",
    "TailscaleApiUnauthenticatedError",
    "TailscaleApiKeyNotFoundError",
    "KeyVerificationError",
    "KeyExpiredError",
    "KeyExpiringSoonError",
    "KeyRevokedError",
    "KeyCapabilityError",
]
