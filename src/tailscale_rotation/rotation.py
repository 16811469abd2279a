"""Secrets Manager rotation state machine for Tailscale auth keys.

Secrets Manager calls the rotation function once per step, in the order
createSecret -> setSecret -> testSecret -> finishSecret, and retries a step
when it fails. Each invocation is stateless: configuration, the OAuth access
token and the secret metadata are re-read every time, and every step is safe to
re-run.

Usage:
    rotator = SecretRotator(SecretsManagerStore())
    rotator.rotate(secret_id, client_request_token, "createSecret")
"""

import logging
from typing import Callable, Optional

from .config import RotationSettings, load_settings
from .exceptions import (ConfigurationError, InvalidStepError,
                         RotationDisabledError, SecretVersionNotFoundError,
                         SecretVersionStageError)
from .logging_config import sanitize_log_input
from .models import (IssuedKey, KeyUsage, OAuthCredential, RotationStep,
                     SecretMetadata, SecretStage)
from .secret_store import SecretStore
from .tailscale import (Authenticator, IssuerClient, TailscaleApiKeyClient,
                        TailscaleOAuthClient)

logger = logging.getLogger(__name__)

# Builds the issuer client for one invocation from settings and access token
IssuerFactory = Callable[[RotationSettings, str], IssuerClient]
AuthenticatorFactory = Callable[[RotationSettings], Authenticator]


def default_authenticator_factory(settings: RotationSettings) -> Authenticator:
    return TailscaleOAuthClient(
        api_url=settings.tailscale_api_url,
        timeout=settings.tailscale_request_timeout,
    )


def default_issuer_factory(settings: RotationSettings, access_token: str) -> IssuerClient:
    return TailscaleApiKeyClient(
        tailnet=settings.tailnet,
        tag_name=settings.tag_name,
        access_token=access_token,
        api_url=settings.tailscale_api_url,
        timeout=settings.tailscale_request_timeout,
    )


def read_oauth_credential(store: SecretStore, oauth_secret_id: str) -> OAuthCredential:
    """Read the AWSCURRENT OAuth client credential.

    Raises:
        ConfigurationError: The secret value is not '{"id": ..., "key": ...}'
    """
    try:
        value = store.get_current(oauth_secret_id)
    except Exception as e:
        logger.error(
            "Ran into %s while retrieving the Tailscale OAuth credentials. "
            "Could not retrieve AWSCURRENT from %s, did you initialize it? "
            "The secret value needs to have the following syntax: "
            '\'{ "id": "your-oauth-id", "key": "your-oauth-key" }\'',
            e,
            oauth_secret_id,
        )
        raise

    try:
        return OAuthCredential.from_secret_string(value)
    except (ValueError, KeyError, TypeError) as e:
        raise ConfigurationError(
            f"The Tailscale OAuth secret {oauth_secret_id} is malformed ({type(e).__name__}). "
            'Expected \'{ "id": "your-oauth-id", "key": "your-oauth-key" }\'.'
        ) from e


def parse_step(step: str, secret_id: str) -> RotationStep:
    """Map a step name to RotationStep, raising InvalidStepError if unknown."""
    try:
        return RotationStep(step)
    except ValueError:
        logger.error(
            "Invalid step parameter %s for secret %s",
            sanitize_log_input(step),
            sanitize_log_input(secret_id),
        )
        raise InvalidStepError(f"Invalid step parameter {step} for secret {secret_id}") from None


def check_staged_for_rotation(metadata: SecretMetadata, token: str) -> bool:
    """Validate that `token` is a version staged for rotation.

    Returns:
        False if the version is already AWSCURRENT (rotation complete),
        True if it is AWSPENDING and the step should run.

    Raises:
        RotationDisabledError: Rotation is disabled on the secret
        SecretVersionNotFoundError: The token is not a version of the secret
        SecretVersionStageError: The version is neither AWSCURRENT nor AWSPENDING
    """
    secret_id = metadata.secret_id
    if not metadata.rotation_enabled:
        raise RotationDisabledError(
            f"Secret {secret_id} does not have rotation enabled", secret_id=secret_id
        )

    stages = metadata.stages_of(token)
    if stages is None:
        raise SecretVersionNotFoundError(
            f"Secret version {token} has no stage for rotation at secret {secret_id}",
            secret_id=secret_id,
        )

    if SecretStage.CURRENT.value in stages:
        logger.info("Secret version %s already set as AWSCURRENT for secret %s", token, secret_id)
        return False

    if SecretStage.PENDING.value not in stages:
        raise SecretVersionStageError(
            f"Secret version {token} not set as AWSPENDING for rotation of secret {secret_id}.",
            secret_id=secret_id,
        )
    return True


class SecretRotator:
    """Runs one rotation step against a secret.

    Secrets Manager and the Tailscale API are only reached through the
    injected store and factories.
    """

    def __init__(
        self,
        store: SecretStore,
        settings: Optional[RotationSettings] = None,
        authenticator_factory: AuthenticatorFactory = default_authenticator_factory,
        issuer_factory: IssuerFactory = default_issuer_factory,
    ):
        """Initialize the rotator.

        Args:
            store: Secret store holding both the rotating and the OAuth secret
            settings: Fixed settings; if None they are loaded on every rotate() call
            authenticator_factory: Builds the OAuth authenticator
            issuer_factory: Builds the key client from settings and access token
        """
        self.store = store
        self._settings = settings
        self._authenticator_factory = authenticator_factory
        self._issuer_factory = issuer_factory

    def rotate(self, secret_id: str, token: str, step: str) -> None:
        """Run a rotation step.

        Preconditions run on every call, before dispatch: configuration,
        OAuth authentication, secret description and version staging. When the
        token version already holds AWSCURRENT the call returns without any
        write or issuer call.

        Args:
            secret_id: Secret being rotated
            token: ClientRequestToken, the version id being rotated in
            step: One of createSecret, setSecret, testSecret, finishSecret

        Raises:
            RotationError: Any failure; nothing is suppressed
        """
        settings = self._settings if self._settings is not None else load_settings()
        settings.ensure_configured()

        credential = read_oauth_credential(self.store, settings.oauth_secret_arn)
        access_token = self._authenticator_factory(settings).authenticate(credential)
        issuer = self._issuer_factory(settings, access_token)

        metadata = self.store.describe(secret_id)
        if not check_staged_for_rotation(metadata, token):
            logger.info("Rotation already complete on %s", secret_id)
            return

        usage = metadata.key_usage
        rotation_step = parse_step(step, secret_id)

        if rotation_step is RotationStep.CREATE_SECRET:
            self.create_secret(issuer, secret_id, token, usage)
        elif rotation_step in (RotationStep.SET_SECRET, RotationStep.TEST_SECRET):
            # Nothing external to set: the key already exists in Tailscale after
            # createSecret, so setSecret verifies it the same way testSecret does.
            self.test_secret(issuer, secret_id, token, usage)
        else:
            self.finish_secret(secret_id, token, metadata)

    def create_secret(
        self,
        issuer: IssuerClient,
        secret_id: str,
        token: str,
        usage: KeyUsage,
    ) -> None:
        """Issue a new key and store it as the AWSPENDING version `token`."""
        issued = issuer.create_key(usage)
        self.store.put_pending(secret_id, token, issued.to_secret_string())
        logger.info("createSecret: Successfully put secret value %s for %s.", token, secret_id)

    def test_secret(
        self,
        issuer: IssuerClient,
        secret_id: str,
        token: str,
        usage: KeyUsage,
    ) -> None:
        """Verify the key stored in version `token` against Tailscale."""
        try:
            issued = IssuedKey.from_secret_string(self.store.get_by_version(secret_id, token))
            issuer.verify_key(issued.id, usage)
        except Exception as e:
            logger.error(
                "Ran into %s while verifying the Tailscale Client Key secret. "
                "Failed to verify %s on %s.",
                e,
                token,
                secret_id,
            )
            raise
        logger.info("testSecret: Verified key %s in version %s of %s.", issued.id, token, secret_id)

    def finish_secret(self, secret_id: str, token: str, metadata: SecretMetadata) -> None:
        """Move AWSCURRENT to version `token`."""
        current_version = metadata.current_version()
        try:
            self.store.promote(secret_id, token, current_version)
        except Exception as e:
            logger.error(
                "Ran into %s while finishing the Tailscale Client Key secret rotation. "
                "Failed to finish rotation of %s on %s.",
                e,
                token,
                secret_id,
            )
            raise
        logger.info(
            "finishSecret: Successfully set AWSCURRENT stage to version %s for secret %s.",
            token,
            secret_id,
        )
