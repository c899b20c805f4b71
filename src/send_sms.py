import base64
import binascii
import hmac
import json
import math
from dataclasses import dataclass
from typing import Any, Dict, Optional

from utils import __version__
from utils.config import ChannelSecrets, load_channel_secrets
from utils.errors import AuthError, ParseError, SmsRequestError, ValidationError
from utils.logger import get_logger
from utils.smspro_client import SmsProClient, build_client

logger = get_logger("send_sms")

ALLOWED_METHODS = ("GET", "POST")
FIELDS = ("channel", "secret", "msisdn", "message")


@dataclass(frozen=True)
class InboundRequest:
    channel: str
    secret: str
    msisdn: str
    message: str

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "InboundRequest":
        """
        Decode the four request fields.

        Absent or null fields become "" and are rejected later by `validate`.
        Whole numbers are accepted as their digits, since msisdn is often
        sent unquoted. Strings that cannot be encoded as UTF-8 (lone
        surrogate escapes) are unreadable.
        """
        values = {}
        for field in FIELDS:
            value = payload.get(field)
            if value is None:
                values[field] = ""
            elif isinstance(value, str):
                try:
                    value.encode("utf-8")
                except UnicodeEncodeError as e:
                    raise ParseError(
                        f"Exception processing request:field '{field}' is not valid UTF-8"
                    ) from e
                values[field] = value
            elif isinstance(value, int) and not isinstance(value, bool):
                values[field] = str(value)
            elif isinstance(value, float) and math.isfinite(value) and value.is_integer():
                values[field] = str(int(value))
            else:
                raise ParseError(
                    f"Exception processing request:field '{field}' must be a string"
                )
        return cls(**values)

    def validate(self) -> None:
        if not (self.channel and self.secret and self.msisdn and self.message):
            raise ValidationError()


def _response(status_code: int, body: str) -> Dict[str, Any]:
    return {
        "statusCode": status_code,
        "headers": {"Content-Type": "text/plain; charset=utf-8"},
        "body": body,
    }


def parse_request(raw_body: Optional[str]) -> InboundRequest:
    if raw_body is None or not raw_body.strip():
        raise ParseError("no body was passed.")

    try:
        payload = json.loads(raw_body)
    except json.JSONDecodeError as e:
        logger.warning(
            "send_sms.invalid_json",
            extra={"body_preview": raw_body[:200]},
        )
        raise ParseError(f"Error parsing json body: {e}") from e

    if payload is None:
        raise ParseError("no body was passed.")
    if not isinstance(payload, dict):
        raise ParseError(
            f"Exception processing request:expected a JSON object, got {type(payload).__name__}"
        )

    return InboundRequest.from_payload(payload)


def authorize(request: InboundRequest, secrets: ChannelSecrets) -> None:
    expected = secrets.lookup(request.channel)
    if expected is None or not hmac.compare_digest(
        expected.encode("utf-8"), request.secret.encode("utf-8")
    ):
        logger.info(
            f"Incorrect Secret for channel {request.channel}",
            extra={"channel": request.channel, "channel_known": expected is not None},
        )
        raise AuthError(request.channel)


def handle(
    raw_body: Optional[str],
    secrets: ChannelSecrets = None,
    client: SmsProClient = None,
) -> Dict[str, Any]:
    """
    Validate a send request and forward it to the SMSPro gateway.

    Client errors come back as 400 responses. Errors from the gateway call
    are not caught.
    """
    try:
        request = parse_request(raw_body)
        request.validate()
        authorize(request, secrets or load_channel_secrets())
    except SmsRequestError as e:
        return _response(e.status_code, e.message)
    except RuntimeError as e:
        # Misconfiguration is a 500, not a 4xx
        logger.error("send_sms.config_error", extra={"error": str(e)})
        return _response(500, "server_misconfigured")

    logger.info(
        f"channel={request.channel} msisdn={request.msisdn} message={request.message}",
        extra={"channel": request.channel, "msisdn": request.msisdn},
    )

    if client is None:
        try:
            client = build_client()
        except RuntimeError as e:
            logger.error("send_sms.config_error", extra={"error": str(e)})
            return _response(500, "server_misconfigured")

    result = client.send(request.msisdn, request.message)
    logger.info(f"SMSProResult: {result}", extra={"msisdn": request.msisdn})

    return _response(200, f"SMS sent to {request.msisdn}")


def _http_method(event: dict) -> str:
    # REST API (v1) events carry httpMethod; HTTP API (v2) nests it.
    method = event.get("httpMethod") or (
        event.get("requestContext", {}).get("http", {}).get("method")
    )
    return (method or "POST").upper()


def _raw_body(event: dict) -> Optional[str]:
    body = event.get("body")
    if body is None:
        return None
    # Direct invocations may pass the payload already decoded.
    if isinstance(body, dict):
        return json.dumps(body)
    if not isinstance(body, str):
        raise ParseError(
            f"Exception processing request:expected a JSON object, got {type(body).__name__}"
        )
    if event.get("isBase64Encoded"):
        try:
            return base64.b64decode(body).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError) as e:
            raise ParseError(f"Exception processing request:{e}") from e
    return body


def lambda_handler(event, context):
    method = _http_method(event)
    logger.info(
        "send_sms.lambda_start",
        extra={
            "request_id": getattr(context, "aws_request_id", None),
            "method": method,
            "version": __version__,
        },
    )

    if method not in ALLOWED_METHODS:
        return _response(405, f"Method {method} not allowed")

    try:
        raw_body = _raw_body(event)
    except ParseError as e:
        return _response(e.status_code, e.message)

    return handle(raw_body)
