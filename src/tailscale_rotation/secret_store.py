"""Secret store gateway.

`SecretStore` is the narrow interface the rotation state machine uses;
`SecretsManagerStore` implements it on AWS Secrets Manager with exactly one
API call per operation. Errors from boto3 propagate unchanged: retries happen
at the rotation step level, driven by Secrets Manager itself.
"""

import logging
from typing import Any, Optional, Protocol

from .models import SecretMetadata, SecretStage

logger = logging.getLogger(__name__)


class SecretStore(Protocol):
    """Versioned, staged secret store."""

    def describe(self, secret_id: str) -> SecretMetadata: ...

    def get_current(self, secret_id: str) -> str: ...

    def get_by_version(self, secret_id: str, version_id: str) -> str: ...

    def put_pending(self, secret_id: str, version_id: str, value: str) -> None: ...

    def promote(
        self,
        secret_id: str,
        new_version_id: str,
        old_version_id: Optional[str] = None,
    ) -> None: ...


class SecretsManagerStore:
    """SecretStore backed by AWS Secrets Manager."""

    def __init__(self, client: Any = None, region_name: Optional[str] = None):
        """Initialize the store.

        Args:
            client: A boto3 `secretsmanager` client; created lazily if omitted
            region_name: Region for the lazily created client
        """
        self._client = client
        self.region_name = region_name

    @property
    def client(self) -> Any:
        if self._client is None:
            import boto3

            self._client = boto3.client("secretsmanager", region_name=self.region_name)
        return self._client

    def describe(self, secret_id: str) -> SecretMetadata:
        """Describe a secret's rotation state, version stages and tags."""
        response = self.client.describe_secret(SecretId=secret_id)
        version_stages = {
            version_id: frozenset(stages)
            for version_id, stages in (response.get("VersionIdsToStages") or {}).items()
        }
        tags = {
            tag.get("Key", ""): tag.get("Value", "")
            for tag in response.get("Tags") or []
        }
        return SecretMetadata(
            secret_id=secret_id,
            # Only an explicit False disables rotation
            rotation_enabled=response.get("RotationEnabled") is not False,
            version_stages=version_stages,
            tags=tags,
        )

    def get_current(self, secret_id: str) -> str:
        response = self.client.get_secret_value(
            SecretId=secret_id,
            VersionStage=SecretStage.CURRENT.value,
        )
        return response["SecretString"]

    def get_by_version(self, secret_id: str, version_id: str) -> str:
        response = self.client.get_secret_value(SecretId=secret_id, VersionId=version_id)
        return response["SecretString"]

    def put_pending(self, secret_id: str, version_id: str, value: str) -> None:
        """Write a new secret version staged as AWSPENDING."""
        self.client.put_secret_value(
            SecretId=secret_id,
            ClientRequestToken=version_id,
            SecretString=value,
            VersionStages=[SecretStage.PENDING.value],
        )
        logger.debug("Put %s as AWSPENDING on %s", version_id, secret_id)

    def promote(
        self,
        secret_id: str,
        new_version_id: str,
        old_version_id: Optional[str] = None,
    ) -> None:
        """Move AWSCURRENT to `new_version_id`, removing it from `old_version_id`.

        Secrets Manager applies the stage move atomically.
        """
        params = {
            "SecretId": secret_id,
            "VersionStage": SecretStage.CURRENT.value,
            "MoveToVersionId": new_version_id,
        }
        if old_version_id is not None:
            params["RemoveFromVersionId"] = old_version_id
        self.client.update_secret_version_stage(**params)
        logger.debug(
            "Moved AWSCURRENT on %s from %s to %s", secret_id, old_version_id, new_version_id
        )
