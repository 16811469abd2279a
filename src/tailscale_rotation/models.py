"""Rotation data models.

Covers the stored secret values (issued Tailscale auth keys and the OAuth
client credential), the Tailscale key description used for verification, and
the Secrets Manager metadata the rotation state machine inspects.
"""

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

PURPOSE_TAG_KEY = "Purpose"


class SecretStage(str, Enum):
    """Secrets Manager staging labels used by rotation."""

    CURRENT = "AWSCURRENT"
    PENDING = "AWSPENDING"


class RotationStep(str, Enum):
    """Steps invoked by the Secrets Manager rotation scheduler, in order."""

    CREATE_SECRET = "createSecret"
    SET_SECRET = "setSecret"
    TEST_SECRET = "testSecret"
    FINISH_SECRET = "finishSecret"


class KeyUsage(str, Enum):
    """Key usage policy, selected by the `Purpose` tag of the rotating secret."""

    REUSABLE = "Cattle"  # Many devices may join with the same key
    SINGLE_USE = "Pet"  # One device per key

    @classmethod
    def from_tags(cls, tags: dict[str, str]) -> "KeyUsage":
        """Derive the usage policy from secret tags.

        Only an exact `Purpose=Cattle` tag selects a reusable key.
        """
        if tags.get(PURPOSE_TAG_KEY) == cls.REUSABLE.value:
            return cls.REUSABLE
        return cls.SINGLE_USE


def parse_timestamp(value: str) -> datetime:
    """Parse an RFC 3339 timestamp as returned by the Tailscale API."""
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass(frozen=True)
class OAuthCredential:
    """Tailscale OAuth client credential.

    Stored externally as the AWSCURRENT version of its own secret, with the
    JSON shape `{"id": "...", "key": "..."}`.
    """

    client_id: str
    client_key: str

    @classmethod
    def from_secret_string(cls, value: str) -> "OAuthCredential":
        data = json.loads(value)
        return cls(client_id=data["id"], client_key=data["key"])

    def __repr__(self) -> str:
        return f"OAuthCredential(client_id={self.client_id!r}, client_key='***')"


@dataclass(frozen=True)
class IssuedKey:
    """A Tailscale auth key as stored in the rotating secret.

    Capability flags are not stored; verification reads them back from the API.
    """

    id: str
    key: str
    created: str
    expires: str

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "key": self.key,
            "created": self.created,
            "expires": self.expires,
        }

    def to_secret_string(self) -> str:
        return json.dumps(self.to_dict())

    @classmethod
    def from_dict(cls, data: dict) -> "IssuedKey":
        return cls(
            id=data["id"],
            key=data["key"],
            created=data["created"],
            expires=data["expires"],
        )

    @classmethod
    def from_secret_string(cls, value: str) -> "IssuedKey":
        return cls.from_dict(json.loads(value))

    def __repr__(self) -> str:
        return f"IssuedKey(id={self.id!r}, created={self.created!r}, expires={self.expires!r})"


@dataclass(frozen=True)
class KeyDescription:
    """Tailscale's view of an auth key, used to verify a candidate."""

    id: str
    created: datetime
    expires: datetime
    revoked: Optional[datetime] = None
    reusable: Optional[bool] = None
    ephemeral: Optional[bool] = None
    preauthorized: Optional[bool] = None
    tags: Optional[list[str]] = None
    capabilities: dict = field(default_factory=dict)

    @classmethod
    def from_api(cls, data: dict) -> "KeyDescription":
        """Build from a `GET /tailnet/{tailnet}/keys/{id}` response body."""
        capabilities = data.get("capabilities") or {}
        create = (capabilities.get("devices") or {}).get("create") or {}
        return cls(
            id=data["id"],
            created=parse_timestamp(data["created"]),
            expires=parse_timestamp(data["expires"]),
            revoked=parse_timestamp(data["revoked"]) if data.get("revoked") else None,
            reusable=create.get("reusable"),
            ephemeral=create.get("ephemeral"),
            preauthorized=create.get("preauthorized"),
            tags=create.get("tags"),
            capabilities=capabilities,
        )


@dataclass(frozen=True)
class SecretMetadata:
    """Rotation-relevant metadata of a Secrets Manager secret."""

    secret_id: str
    rotation_enabled: bool
    version_stages: dict[str, frozenset[str]] = field(default_factory=dict)
    tags: dict[str, str] = field(default_factory=dict)

    def stages_of(self, version_id: str) -> Optional[frozenset[str]]:
        """Return the stage labels of a version, or None if it is not staged."""
        return self.version_stages.get(version_id)

    def current_version(self) -> Optional[str]:
        """Return the version that holds AWSCURRENT, if any."""
        for version_id, stages in self.version_stages.items():
            if SecretStage.CURRENT.value in stages:
                return version_id
        return None

    @property
    def key_usage(self) -> KeyUsage:
        return KeyUsage.from_tags(self.tags)
