"""
Data types shared by the sign-in components.

The credential picker hands back opaque payloads; everything downstream of
the exchange works with UserRecord and the SignInOutcome union.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping, Optional, Union


@dataclass(frozen=True)
class UserRecord:
    """Signed-in user as shown on the profile screen."""

    user_id: str
    display_name: Optional[str] = None
    profile_picture_url: Optional[str] = None


@dataclass(frozen=True)
class SignInSuccess:
    """Credential exchange succeeded."""

    user: UserRecord

    @property
    def error_message(self) -> None:
        return None


@dataclass(frozen=True)
class SignInFailure:
    """Credential exchange failed with the provider's diagnostic text."""

    error_message: str


SignInOutcome = Union[SignInSuccess, SignInFailure]


@dataclass(frozen=True)
class BeginSignInRequest:
    """
    Options for starting the Google credential picker.

    Mirrors the one-tap "begin sign-in" request: identity tokens are
    requested for the server client ID, every Google account on the device
    is offered (not only previously authorized ones), and a remembered
    account is picked automatically when there is one.
    """

    server_client_id: str
    supported: bool = True
    filter_by_authorized_accounts: bool = False
    auto_select_enabled: bool = True
    nonce: Optional[str] = None


@dataclass(frozen=True)
class SignInHandle:
    """Opaque descriptor for launching the credential picker."""

    url: str
    state: str


class PickerResultCode(str, Enum):
    """Result code reported by the picker launch."""

    OK = "ok"
    CANCELED = "canceled"
    ERROR = "error"


@dataclass(frozen=True)
class PickerResult:
    """Raw result of launching the credential picker."""

    result_code: PickerResultCode
    payload: Optional[Mapping[str, str]] = None

    @property
    def is_ok(self) -> bool:
        return self.result_code is PickerResultCode.OK and self.payload is not None

    @classmethod
    def from_callback(cls, params: Mapping[str, str]) -> "PickerResult":
        """
        Build a result from the redirect query parameters.

        Google reports a dismissed account chooser as ``error=access_denied``;
        that is a cancellation, not a failure.
        """
        error = params.get("error")
        if error == "access_denied":
            return cls(result_code=PickerResultCode.CANCELED, payload=dict(params))
        if error or "code" not in params:
            return cls(result_code=PickerResultCode.ERROR, payload=dict(params))
        return cls(result_code=PickerResultCode.OK, payload=dict(params))


@dataclass(frozen=True)
class SignInCredential:
    """Credential extracted from a successful picker round-trip."""

    id_token: str
    account_id: str
    email: Optional[str] = None
    display_name: Optional[str] = None
    profile_picture_url: Optional[str] = None
    claims: dict = field(default_factory=dict, compare=False, repr=False)
