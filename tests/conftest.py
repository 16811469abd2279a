"""Pytest configuration and fixtures for rotation tests"""

import json
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional
from unittest.mock import MagicMock, Mock

import pytest

# Ensure src directory is in Python path before any imports
project_root = Path(__file__).resolve().parent.parent
src_path = project_root / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from tailscale_rotation.config import RotationSettings
from tailscale_rotation.models import (IssuedKey, SecretMetadata,
                                       SecretStage)

SECRET_ID = "testSecretId"
OAUTH_SECRET_ID = "oauthSecretArn"
TAILNET = "testTailNet"
TAG_NAME = "testTag"
ACCESS_TOKEN = "testAccessToken"

# Fixed "now" for time-window checks
NOW = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


def iso_in_days(days: float, now: datetime = NOW) -> str:
    """RFC 3339 timestamp `days` from `now`, in the format the Tailscale API uses."""
    return (now + timedelta(days=days)).strftime("%Y-%m-%dT%H:%M:%SZ")


class FakeSecretStore:
    """In-memory SecretStore that records every call."""

    def __init__(self):
        self.metadata: dict[str, SecretMetadata] = {}
        self.current_values: dict[str, str] = {}
        self.version_values: dict[tuple[str, str], str] = {}
        self.calls: list[tuple] = []
        self.writes: list[tuple] = []
        self.fail_on: dict[str, Exception] = {}

    def _record(self, name: str, *args) -> None:
        self.calls.append((name, *args))
        if name in self.fail_on:
            raise self.fail_on[name]

    def describe(self, secret_id: str) -> SecretMetadata:
        self._record("describe", secret_id)
        return self.metadata[secret_id]

    def get_current(self, secret_id: str) -> str:
        self._record("get_current", secret_id)
        return self.current_values[secret_id]

    def get_by_version(self, secret_id: str, version_id: str) -> str:
        self._record("get_by_version", secret_id, version_id)
        return self.version_values[(secret_id, version_id)]

    def put_pending(self, secret_id: str, version_id: str, value: str) -> None:
        self._record("put_pending", secret_id, version_id, value)
        self.writes.append(("put_pending", secret_id, version_id, value))
        self.version_values[(secret_id, version_id)] = value

    def promote(
        self,
        secret_id: str,
        new_version_id: str,
        old_version_id: Optional[str] = None,
    ) -> None:
        self._record("promote", secret_id, new_version_id, old_version_id)
        self.writes.append(("promote", secret_id, new_version_id, old_version_id))

    def called(self, name: str) -> list[tuple]:
        return [call for call in self.calls if call[0] == name]


def make_metadata(
    version_stages: dict[str, list[str]],
    tags: Optional[dict[str, str]] = None,
    rotation_enabled: bool = True,
) -> SecretMetadata:
    return SecretMetadata(
        secret_id=SECRET_ID,
        rotation_enabled=rotation_enabled,
        version_stages={v: frozenset(stages) for v, stages in version_stages.items()},
        tags=tags or {},
    )


@pytest.fixture
def settings():
    """Fully configured settings."""
    return RotationSettings(
        oauth_secret_arn=OAUTH_SECRET_ID,
        tailnet=TAILNET,
        tag_name=TAG_NAME,
    )


@pytest.fixture
def issued_key():
    return IssuedKey(
        id="theKeyId",
        key="tskey-auth-secret",
        created=iso_in_days(0),
        expires=iso_in_days(61),
    )


@pytest.fixture
def store():
    """Store with a valid OAuth secret and a secret staged for rotation."""
    fake = FakeSecretStore()
    fake.current_values[OAUTH_SECRET_ID] = json.dumps({"id": "theId", "key": "theKey"})
    fake.metadata[SECRET_ID] = make_metadata(
        {
            "versionId": [SecretStage.PENDING.value],
            "currentId": [SecretStage.CURRENT.value],
            "oldId": ["irrelevantStage"],
        }
    )
    return fake


@pytest.fixture
def authenticator():
    auth = MagicMock()
    auth.authenticate.return_value = ACCESS_TOKEN
    return auth


@pytest.fixture
def issuer(issued_key):
    client = MagicMock()
    client.create_key.return_value = issued_key
    client.verify_key.return_value = True
    return client


@pytest.fixture
def make_response():
    """Factory for mocked `requests` responses."""

    def _make(status_code: int = 200, payload=None):
        response = Mock()
        response.status_code = status_code
        response.ok = 200 <= status_code < 300
        response.content = b"" if payload is None else json.dumps(payload).encode("utf-8")
        response.json.return_value = payload
        return response

    return _make
