import os
from dataclasses import dataclass
from typing import Dict, Mapping, Optional

from utils.logger import get_logger
from utils.secrets import get_region, get_secret_json

logger = get_logger("config")

DEFAULT_SMSPRO_URL = "https://smspro.nos.pt/smspro/smsprows.asmx"
DEFAULT_SMSPRO_ACTION = "https://smspro.nos.pt/smspro/smsprows.asmx?op=SendSMS"
DEFAULT_SMSPRO_TENANT = "bancoalime"


class ChannelSecrets:
    """
    Source of the expected secret for each channel.

    Subclasses implement `lookup`, returning None for channels that are not
    configured.
    """

    def lookup(self, channel: str) -> Optional[str]:
        raise NotImplementedError


class EnvChannelSecrets(ChannelSecrets):
    """One process environment variable per channel, named after the channel."""

    def __init__(self, environ: Mapping[str, str] = None):
        self._environ = os.environ if environ is None else environ

    def lookup(self, channel: str) -> Optional[str]:
        return self._environ.get(channel)


class StaticChannelSecrets(ChannelSecrets):
    def __init__(self, secrets: Mapping[str, str]):
        self._secrets: Dict[str, str] = dict(secrets)

    def lookup(self, channel: str) -> Optional[str]:
        return self._secrets.get(channel)


class SecretsManagerChannelSecrets(ChannelSecrets):
    """
    Channel secrets stored as a single JSON object in AWS Secrets Manager.

    The secret is fetched on first lookup and kept for the lifetime of this
    provider, which is one invocation.
    """

    def __init__(self, secret_name: str, region_name: str = None):
        self.secret_name = secret_name
        self.region_name = region_name or get_region()
        self._table: Optional[Dict[str, str]] = None

    def lookup(self, channel: str) -> Optional[str]:
        if self._table is None:
            self._table = get_secret_json(self.secret_name, self.region_name)
        value = self._table.get(channel)
        return None if value is None else str(value)


def load_channel_secrets() -> ChannelSecrets:
    """
    Pick the channel secret provider from the environment.

    CHANNEL_SECRETS_NAME: Secrets Manager secret holding {"<channel>": "<secret>"}.
                          When unset, each channel is its own environment variable.
    """
    secret_name = os.getenv("CHANNEL_SECRETS_NAME")
    if secret_name:
        logger.debug("config.channel_secrets", extra={"source": "secretsmanager"})
        return SecretsManagerChannelSecrets(secret_name)
    return EnvChannelSecrets()


@dataclass(frozen=True)
class GatewaySettings:
    username: str
    password: str
    url: str = DEFAULT_SMSPRO_URL
    action: str = DEFAULT_SMSPRO_ACTION
    tenant: str = DEFAULT_SMSPRO_TENANT
    timeout: Optional[float] = None


def load_gateway_settings() -> GatewaySettings:
    """
    Load SMSPro gateway settings from environment variables.

    SMSProUsername / SMSProPassword: gateway credentials (required)
    SMSPRO_URL / SMSPRO_ACTION / SMSPRO_TENANT: overrides for the fixed endpoint
    SMSPRO_TIMEOUT_SECONDS: outbound timeout; unset waits for the gateway indefinitely

    Raises RuntimeError with a clear message if something is missing/invalid.
    """
    username = os.getenv("SMSProUsername")
    password = os.getenv("SMSProPassword")
    timeout_str = os.getenv("SMSPRO_TIMEOUT_SECONDS")

    missing = []
    if not username:
        missing.append("SMSProUsername")
    if not password:
        missing.append("SMSProPassword")

    if missing:
        msg = f"Missing required environment variables: {', '.join(missing)}"
        logger.error(msg)
        raise RuntimeError(msg)

    timeout = None
    if timeout_str:
        try:
            timeout = float(timeout_str)
        except ValueError:
            msg = (
                f"Invalid SMSPRO_TIMEOUT_SECONDS='{timeout_str}'. "
                "Must be a number of seconds."
            )
            logger.error(msg)
            raise RuntimeError(msg)
        if timeout <= 0:
            msg = f"Invalid SMSPRO_TIMEOUT_SECONDS='{timeout_str}'. Must be positive."
            logger.error(msg)
            raise RuntimeError(msg)

    return GatewaySettings(
        username=username,
        password=password,
        url=os.getenv("SMSPRO_URL") or DEFAULT_SMSPRO_URL,
        action=os.getenv("SMSPRO_ACTION") or DEFAULT_SMSPRO_ACTION,
        tenant=os.getenv("SMSPRO_TENANT") or DEFAULT_SMSPRO_TENANT,
        timeout=timeout,
    )
