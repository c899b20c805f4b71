"""
Client-facing errors raised while reading a send request.

Each error carries the HTTP status and the plain-text message returned to the
caller. Failures talking to the SMS gateway are deliberately not part of this
hierarchy: they propagate out of the handler untouched.
"""

REQUIRED_SHAPE = '{"channel":"","secret":"","msisdn":"","message":""}'


class SmsRequestError(Exception):
    status_code = 400

    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class ParseError(SmsRequestError):
    """Body is absent, not JSON, or otherwise unreadable."""


class ValidationError(SmsRequestError):
    """A required field is missing or empty."""

    def __init__(self, message: str = f"Body must include a json message with {REQUIRED_SHAPE}"):
        super().__init__(message)


class AuthError(SmsRequestError):
    """Channel is unknown or the provided secret does not match."""

    def __init__(self, channel: str):
        self.channel = channel
        super().__init__(f"Incorrect Secret for channel {channel}")
