"""
Authentication module for FireSign.

Provides Google sign-in through a credential picker, the Firebase credential
exchange, and the observable session state consumed by the UI.
"""

from firesign.auth.client import FireAuthClient
from firesign.auth.exceptions import (
    ConfigurationError,
    ExchangeError,
    FireSignError,
    NoCredentialError,
    ProviderError,
)
from firesign.auth.firebase import FirebaseAuth, FirebaseUser, google_credential
from firesign.auth.models import (
    BeginSignInRequest,
    PickerResult,
    PickerResultCode,
    SignInCredential,
    SignInFailure,
    SignInHandle,
    SignInOutcome,
    SignInSuccess,
    UserRecord,
)
from firesign.auth.one_tap import CredentialPicker, GoogleOneTapClient
from firesign.auth.session import SessionState, SessionStateStore

__all__ = [
    # Exchange
    "FireAuthClient",
    "FirebaseAuth",
    "FirebaseUser",
    "google_credential",
    # Picker
    "CredentialPicker",
    "GoogleOneTapClient",
    # Types
    "BeginSignInRequest",
    "PickerResult",
    "PickerResultCode",
    "SignInCredential",
    "SignInFailure",
    "SignInHandle",
    "SignInOutcome",
    "SignInSuccess",
    "UserRecord",
    # Session state
    "SessionState",
    "SessionStateStore",
    # Errors
    "FireSignError",
    "ConfigurationError",
    "ProviderError",
    "NoCredentialError",
    "ExchangeError",
]
