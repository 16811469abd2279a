"""Operator CLI for Tailscale key rotation.

Usage:
    python -m tailscale_rotation step SECRET_ID TOKEN STEP   # Run one rotation step by hand
    python -m tailscale_rotation check SECRET_ID             # Verify the AWSCURRENT key
    python -m tailscale_rotation revoke KEY_ID               # Revoke a key out-of-band

Configuration comes from the same environment variables as the Lambda
function (OAUTH_SECRET_ARN, TAILNET, TAG_NAME).
"""

import argparse
import logging
import sys
from typing import Optional

from .config import RotationSettings, load_settings
from .exceptions import RotationError
from .logging_config import setup_structured_logging
from .models import IssuedKey, RotationStep
from .rotation import SecretRotator, read_oauth_credential
from .secret_store import SecretsManagerStore, SecretStore
from .tailscale import TailscaleApiKeyClient, TailscaleOAuthClient

logger = logging.getLogger(__name__)


def _key_client(settings: RotationSettings, store: SecretStore) -> TailscaleApiKeyClient:
    settings.ensure_configured()
    credential = read_oauth_credential(store, settings.oauth_secret_arn)
    access_token = TailscaleOAuthClient(
        api_url=settings.tailscale_api_url,
        timeout=settings.tailscale_request_timeout,
    ).authenticate(credential)
    return TailscaleApiKeyClient(
        tailnet=settings.tailnet,
        tag_name=settings.tag_name,
        access_token=access_token,
        api_url=settings.tailscale_api_url,
        timeout=settings.tailscale_request_timeout,
    )


def run_step(args, settings: RotationSettings, store: SecretStore) -> int:
    SecretRotator(store, settings=settings).rotate(args.secret_id, args.token, args.step)
    print(f"{args.step} completed for {args.secret_id} ({args.token})")
    return 0


def run_check(args, settings: RotationSettings, store: SecretStore) -> int:
    client = _key_client(settings, store)
    usage = store.describe(args.secret_id).key_usage
    issued = IssuedKey.from_secret_string(store.get_current(args.secret_id))
    client.verify_key(issued.id, usage)
    print(f"Key {issued.id} in {args.secret_id} is valid ({usage.value}, expires {issued.expires})")
    return 0


def run_revoke(args, settings: RotationSettings, store: SecretStore) -> int:
    _key_client(settings, store).delete_key(args.key_id)
    print(f"Key {args.key_id} revoked")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tailscale_rotation",
        description="Rotate Tailscale auth keys stored in AWS Secrets Manager",
    )
    parser.add_argument("--region", default=None, help="AWS region (default: from environment)")
    parser.add_argument("--log-level", default=None, help="Log level (default: ROTATION_LOG_LEVEL)")

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    step_parser = subparsers.add_parser("step", help="Run a single rotation step")
    step_parser.add_argument("secret_id", help="Secret being rotated")
    step_parser.add_argument("token", help="Version id (ClientRequestToken) being rotated in")
    step_parser.add_argument("step", choices=[s.value for s in RotationStep], help="Rotation step")

    check_parser = subparsers.add_parser("check", help="Verify the AWSCURRENT key of a secret")
    check_parser.add_argument("secret_id", help="Secret holding the key")

    revoke_parser = subparsers.add_parser("revoke", help="Revoke a Tailscale auth key")
    revoke_parser.add_argument("key_id", help="Tailscale key id")

    return parser


COMMANDS = {
    "step": run_step,
    "check": run_check,
    "revoke": run_revoke,
}


def main(argv: Optional[list[str]] = None, store: Optional[SecretStore] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    settings = load_settings()
    setup_structured_logging(args.log_level or settings.rotation_log_level)
    if store is None:
        store = SecretsManagerStore(region_name=args.region)

    try:
        return COMMANDS[args.command](args, settings, store)
    except RotationError as e:
        logger.error("%s failed: %s", args.command, e)
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
