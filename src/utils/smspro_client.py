# utils/smspro_client.py

from xml.sax.saxutils import escape

import requests

from utils.config import GatewaySettings, load_gateway_settings
from utils.logger import get_logger

logger = get_logger("smspro_client")

CONTENT_TYPE = 'text/xml;charset="utf-8"'

ENVELOPE_TEMPLATE = (
    '<soap12:Envelope xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance" '
    'xmlns:xsd="http://www.w3.org/2001/XMLSchema" '
    'xmlns:soap12="http://www.w3.org/2003/05/soap-envelope">'
    "<soap12:Body>"
    '<SendSMS xmlns="http://www.outsystems.com">'
    "<TenantName>{tenant}</TenantName>"
    "<strUsername>{username}</strUsername>"
    "<strPassword>{password}</strPassword>"
    "<MsisdnList>{msisdn}</MsisdnList>"
    "<strMessage>{message}</strMessage>"
    "</SendSMS>"
    "</soap12:Body>"
    "</soap12:Envelope>"
)


def build_envelope(
    tenant: str, username: str, password: str, msisdn: str, message: str
) -> str:
    """
    Build the SOAP 1.2 SendSMS envelope.

    Every value is XML-escaped, so a message containing `<` or `&` is sent as
    text instead of breaking (or rewriting) the document.
    """
    return ENVELOPE_TEMPLATE.format(
        tenant=escape(tenant),
        username=escape(username),
        password=escape(password),
        msisdn=escape(msisdn),
        message=escape(message),
    )


class SmsProClient:
    """
    Thin client for the SMSPro SOAP web service.

    One `send` is one HTTP POST. Errors from `requests` (connection failures,
    timeouts, non-2xx statuses) are raised to the caller as-is.
    """

    def __init__(self, settings: GatewaySettings, session: requests.Session = None):
        self.settings = settings
        self.session = session or requests.Session()

    def send(self, msisdn: str, message: str) -> str:
        envelope = build_envelope(
            self.settings.tenant,
            self.settings.username,
            self.settings.password,
            msisdn,
            message,
        )
        headers = {
            "Content-Type": CONTENT_TYPE,
            "Accept": "text/xml",
            "SOAPAction": self.settings.action,
        }

        resp = self.session.post(
            self.settings.url,
            data=envelope.encode("utf-8"),
            headers=headers,
            timeout=self.settings.timeout,
        )
        resp.raise_for_status()

        logger.debug("smspro.response", extra={"status_code": resp.status_code})
        return resp.text


def build_client() -> SmsProClient:
    """
    Build an SmsProClient from environment configuration.

    Raises RuntimeError if the gateway credentials are not configured.
    """
    settings = load_gateway_settings()
    logger.debug(
        "smspro_client.initialized",
        extra={"url": settings.url, "tenant": settings.tenant, "timeout": settings.timeout},
    )
    return SmsProClient(settings)
