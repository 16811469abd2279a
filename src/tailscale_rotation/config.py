"""Configuration for the Tailscale key rotation function.

Settings are read from the environment (and an optional `.env` file) on every
invocation. The three required values have no defaults; `ensure_configured()`
must pass before any network call is made.
"""

from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigurationError

DEFAULT_TAILSCALE_API_URL = "https://api.tailscale.com/api/v2"


class RotationSettings(BaseSettings):
    """Rotation function settings."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Secret holding the OAuth client credential as '{"id": "...", "key": "..."}'
    oauth_secret_arn: str = ""
    tailnet: str = ""
    # Applied to issued keys as "tag:<tag_name>"
    tag_name: str = ""

    tailscale_api_url: str = DEFAULT_TAILSCALE_API_URL
    tailscale_request_timeout: float = 30.0
    rotation_log_level: str = "INFO"

    def missing_settings(self) -> list[str]:
        """Return the environment variable names of required settings that are empty."""
        required = {
            "OAUTH_SECRET_ARN": self.oauth_secret_arn,
            "TAILNET": self.tailnet,
            "TAG_NAME": self.tag_name,
        }
        return [name for name, value in required.items() if not value]

    def ensure_configured(self) -> None:
        """Raise ConfigurationError if any required setting is missing.

        Raises:
            ConfigurationError: naming every missing environment variable
        """
        missing = self.missing_settings()
        if missing:
            raise ConfigurationError(
                "Missing required configuration: "
                + ", ".join(missing)
                + ". Set the OAuth secret location, the Tailscale tailnet and the tag name "
                "to apply to issued keys."
            )


def load_settings() -> RotationSettings:
    """Load settings fresh from the environment."""
    return RotationSettings()
