"""AWS Lambda entry point for Secrets Manager rotation.

Secrets Manager invokes the function with:
    {"SecretId": "...", "ClientRequestToken": "...", "Step": "createSecret"}
"""

import logging

from .config import load_settings
from .logging_config import (correlation_id_var, sanitize_log_input,
                             setup_structured_logging)
from .rotation import SecretRotator
from .secret_store import SecretsManagerStore

logger = logging.getLogger(__name__)


def lambda_handler(event: dict, context=None) -> None:
    """Handle one rotation step.

    Any failure is raised back to the Lambda runtime so Secrets Manager marks
    the step as failed and retries it.
    """
    setup_structured_logging(load_settings().rotation_log_level)

    secret_id = event["SecretId"]
    token = event["ClientRequestToken"]
    step = event["Step"]
    correlation_id_var.set(token)

    logger.info(
        "Rotation step: %s with client request token: %s on secret %s",
        sanitize_log_input(step),
        sanitize_log_input(token),
        sanitize_log_input(secret_id),
    )
    SecretRotator(SecretsManagerStore()).rotate(secret_id, token, step)


handler = lambda_handler
