import json
import os

import boto3

from utils.logger import get_logger

logger = get_logger("secrets")


def get_region() -> str:
    """AWS_REGION is set inside Lambda; default to us-east-1 elsewhere."""
    return os.getenv("AWS_REGION", "us-east-1")


def get_secret_json(secret_name: str, region_name: str = None) -> dict:
    """
    Fetch a JSON object secret from AWS Secrets Manager.

    Used for the channel secret table, e.g.:

        {
          "promo": "s3cr3t",
          "alerts": "..."
        }
    """
    region_name = region_name or get_region()

    logger.info(
        "secrets.fetch",
        extra={"secret_name": secret_name, "region": region_name},
    )

    client = boto3.client("secretsmanager", region_name=region_name)

    resp = client.get_secret_value(SecretId=secret_name)
    secret_str = resp.get("SecretString")

    if not secret_str:
        msg = f"Secret '{secret_name}' has no SecretString payload"
        logger.error(msg)
        raise RuntimeError(msg)

    try:
        data = json.loads(secret_str)
    except json.JSONDecodeError as e:
        logger.error(
            "secrets.invalid_json",
            extra={"secret_name": secret_name, "error": str(e)},
        )
        raise RuntimeError(f"Secret '{secret_name}' is not valid JSON") from e

    if not isinstance(data, dict):
        msg = f"Secret '{secret_name}' must be a JSON object"
        logger.error(msg)
        raise RuntimeError(msg)

    return data
