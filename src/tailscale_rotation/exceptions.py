"""Custom exceptions for the Tailscale key rotation function."""

from typing import Optional


class RotationError(Exception):
    """Base exception for all rotation errors."""

    pass


class ConfigurationError(RotationError):
    """Raised when a required setting is missing or malformed.

    No retry will help until an operator fixes the configuration.
    """

    pass


class InvalidStepError(RotationError):
    """Raised when the rotation step name is not one of the four known steps."""

    pass


class SecretError(RotationError):
    """Base exception for secret state violations."""

    def __init__(self, message: str, secret_id: Optional[str] = None):
        """
        Initialize secret error.

        Args:
            message: Error message
            secret_id: Identifier of the secret being rotated
        """
        super().__init__(message)
        self.secret_id = secret_id


class RotationDisabledError(SecretError):
    """Raised when the target secret does not have rotation enabled."""

    pass


class SecretVersionNotFoundError(SecretError):
    """Raised when the rotation token is not a staged version of the secret."""

    pass


class SecretVersionStageError(SecretError):
    """Raised when the rotation token version is not staged as AWSPENDING."""

    pass


class TailscaleApiError(RotationError):
    """Exception raised for Tailscale API errors."""

    def __init__(
        self,
        message: str,
        method: Optional[str] = None,
        url: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        """
        Initialize API error.

        Args:
            message: Error message
            method: HTTP method of the failed request
            url: URL of the failed request
            status_code: Optional HTTP status code
        """
        super().__init__(message)
        self.method = method
        self.url = url
        self.status_code = status_code


class TailscaleApiUnauthenticatedError(TailscaleApiError):
    """Raised when an API call is attempted without an access token."""

    pass


class TailscaleApiKeyNotFoundError(TailscaleApiError):
    """Raised when the API reports that a key does not exist (404)."""

    pass


class KeyVerificationError(RotationError):
    """Base exception for a candidate key that failed verification."""

    def __init__(self, message: str, key_id: Optional[str] = None):
        super().__init__(message)
        self.key_id = key_id


class KeyExpiredError(KeyVerificationError):
    """The key has already expired."""

    pass


class KeyExpiringSoonError(KeyVerificationError):
    """The key expires before the minimum future validity window."""

    pass


class KeyRevokedError(KeyVerificationError):
    """The key was (or will be) revoked within the minimum validity window."""

    pass


class KeyCapabilityError(KeyVerificationError):
    """The key capabilities do not match the expected usage or tag."""

    pass
