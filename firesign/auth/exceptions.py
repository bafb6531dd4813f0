"""
Custom exceptions for sign-in operations.

Cancellation is deliberately absent: it is signalled by asyncio.CancelledError
and must never be wrapped in one of these.
"""


class FireSignError(Exception):
    """Base exception for sign-in operations."""

    def __init__(self, message: str, original_error: Exception | None = None):
        super().__init__(message)
        self.message = message
        self.original_error = original_error


class ConfigurationError(FireSignError):
    """
    Required sign-in settings are missing.

    Causes:
    - WEB_CLIENT_ID not set
    - FIREBASE_API_KEY not set
    """


class ProviderError(FireSignError):
    """
    The credential picker could not begin or complete.

    Causes:
    - Discovery document or token endpoint unreachable
    - Redirect carried an error or an unknown state
    - Token response without an identity token
    """


class NoCredentialError(ProviderError):
    """
    No matching credential is available.

    Not a user-facing error: there is simply nothing to sign in with.
    """


class ExchangeError(FireSignError):
    """
    The authentication backend rejected the credential.

    Causes:
    - Invalid, expired or mis-addressed identity token
    - Disabled user or project misconfiguration
    - Network failure while talking to the backend
    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        original_error: Exception | None = None,
    ):
        super().__init__(message, original_error=original_error)
        self.error_code = error_code
