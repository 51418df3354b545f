"""
Error types for push delivery.

Every failure that aborts an invocation is a PushError. The HTTP layer turns
them into a JSON error body using `status_code`.
"""
from __future__ import annotations


class PushError(Exception):
    """Base class for errors that abort a dispatch."""
    status_code = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class Unauthorized(PushError):
    """Inbound request did not carry the shared secret."""
    status_code = 401


class MalformedEvent(PushError):
    """Inbound event body is not JSON or lacks required record fields."""
    pass


class MissingCredential(PushError):
    """Service account JSON is absent or unusable."""
    pass


class MalformedKey(PushError):
    """Private key is not base64 or not a PKCS#8 RSA key."""
    pass


class SigningFailure(PushError):
    """RSA signing of the assertion failed."""
    pass


class ExchangeRejected(PushError):
    """Token endpoint answered, but did not hand out an access token."""

    def __init__(self, message: str, status: int | None = None, body: str = ""):
        self.status = status
        self.body = body
        super().__init__(message)


class ExchangeUnreachable(PushError):
    """Token endpoint could not be reached."""
    pass


class StoreUnavailable(PushError):
    """Record store request failed."""
    pass


class ProviderUnreachable(PushError):
    """FCM send endpoint could not be reached."""
    pass
