"""
Credential exchange client.

Bridges the Google credential picker and Firebase Authentication in two steps:
1. begin_sign_in() → handle to launch the picker with (or None: nothing to do)
2. complete_sign_in(payload) → SignInSuccess / SignInFailure

Provider and backend errors become outcomes. asyncio.CancelledError is not
an Exception subclass and always unwinds through this module untouched.
"""

import logging
from typing import Mapping, Optional

from firesign.auth.exceptions import FireSignError, NoCredentialError
from firesign.auth.firebase import FirebaseAuth, FirebaseUser, google_credential
from firesign.auth.models import (
    BeginSignInRequest,
    SignInFailure,
    SignInHandle,
    SignInOutcome,
    SignInSuccess,
    UserRecord,
)
from firesign.auth.one_tap import CredentialPicker, GoogleOneTapClient
from firesign.config import Settings, get_settings

logger = logging.getLogger(__name__)


class FireAuthClient:
    """
    Signs users in with Google and Firebase.

    Usage:
        client = FireAuthClient.from_settings()

        handle = await client.begin_sign_in()
        if handle is not None:
            result = await launcher.launch(handle)
            if result.is_ok:
                outcome = await client.complete_sign_in(result.payload)
    """

    def __init__(
        self,
        one_tap_client: CredentialPicker,
        auth: FirebaseAuth,
        server_client_id: str,
    ):
        self._one_tap = one_tap_client
        self._auth = auth
        self._server_client_id = server_client_id

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "FireAuthClient":
        """Build a client wired to Google and Firebase from settings."""
        settings = settings or get_settings()
        return cls(
            one_tap_client=GoogleOneTapClient(
                client_secret=settings.google_oauth_client_secret,
                redirect_uri=settings.google_oauth_redirect_uri,
                timeout=settings.http_timeout_seconds,
            ),
            auth=FirebaseAuth(
                api_key=settings.firebase_api_key,
                base_url=settings.identity_toolkit_url,
                timeout=settings.http_timeout_seconds,
            ),
            server_client_id=settings.web_client_id,
        )

    def build_sign_in_request(self) -> BeginSignInRequest:
        """Picker options: any Google account, auto-select when possible."""
        return BeginSignInRequest(
            server_client_id=self._server_client_id,
            supported=True,
            filter_by_authorized_accounts=False,
            auto_select_enabled=True,
        )

    async def begin_sign_in(self) -> Optional[SignInHandle]:
        """
        Start the credential picker.

        Returns:
            Handle to launch, or None when no credential can be offered
        """
        try:
            return await self._one_tap.begin_sign_in(self.build_sign_in_request())
        except NoCredentialError as e:
            logger.info(f"No Google credential available: {e.message}")
        except Exception as e:
            logger.warning(f"Could not begin Google sign-in: {e}", exc_info=True)
        return None

    async def complete_sign_in(self, payload: Mapping[str, str]) -> SignInOutcome:
        """
        Exchange the picker's payload for a Firebase session.

        Args:
            payload: Raw redirect payload from the picker

        Returns:
            SignInSuccess with the user, or SignInFailure with the diagnostic text
        """
        try:
            credential = await self._one_tap.get_sign_in_credential(payload)
            user = await self._auth.sign_in_with_credential(
                google_credential(credential.id_token)
            )
        except Exception as e:
            logger.warning(f"Sign-in exchange failed: {e}", exc_info=True)
            return SignInFailure(error_message=_error_message(e))

        return SignInSuccess(user=_to_user_record(user))

    async def sign_out(self) -> None:
        """Best-effort sign-out from the picker and from Firebase."""
        try:
            await self._one_tap.sign_out()
        except Exception as e:
            logger.warning(f"Failed to clear Google sign-in: {e}", exc_info=True)

        try:
            await self._auth.sign_out()
        except Exception as e:
            logger.warning(f"Failed to sign out of Firebase: {e}", exc_info=True)

    def current_user(self) -> Optional[UserRecord]:
        """Signed-in user from the cached session, without a network call."""
        user = self._auth.current_user
        if user is None:
            return None
        return _to_user_record(user)


def _to_user_record(user: FirebaseUser) -> UserRecord:
    return UserRecord(
        user_id=user.uid,
        display_name=user.display_name,
        profile_picture_url=user.photo_url,
    )


def _error_message(error: Exception) -> str:
    if isinstance(error, FireSignError):
        return error.message
    return str(error) or type(error).__name__
