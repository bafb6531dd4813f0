"""
Firebase Authentication backend over the Identity Toolkit REST API.

Exchanges a Google identity token for a Firebase session and keeps the
signed-in user cached in memory, so the current user can be read without a
network call.
"""

import logging
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlencode

import httpx

from firesign.auth.exceptions import ConfigurationError, ExchangeError
from firesign.config import get_settings

logger = logging.getLogger(__name__)

GOOGLE_PROVIDER_ID = "google.com"

# Firebase only checks that this is a well-formed URI for ID token sign-in.
DEFAULT_REQUEST_URI = "http://localhost"


@dataclass(frozen=True)
class GoogleAuthCredential:
    """Google credential accepted by Firebase."""

    id_token: Optional[str]
    access_token: Optional[str] = None
    provider_id: str = GOOGLE_PROVIDER_ID

    def to_post_body(self) -> str:
        params = {"providerId": self.provider_id}
        if self.id_token:
            params["id_token"] = self.id_token
        if self.access_token:
            params["access_token"] = self.access_token
        return urlencode(params)


def google_credential(
    id_token: Optional[str], access_token: Optional[str] = None
) -> GoogleAuthCredential:
    """Build a Firebase credential from Google tokens."""
    if not id_token and not access_token:
        raise ValueError("Either id_token or access_token must be provided")
    return GoogleAuthCredential(id_token=id_token, access_token=access_token)


@dataclass(frozen=True)
class FirebaseUser:
    """User signed in to Firebase."""

    uid: str
    display_name: Optional[str] = None
    photo_url: Optional[str] = None
    email: Optional[str] = None
    id_token: Optional[str] = None
    refresh_token: Optional[str] = None
    expires_in: int = 0


class FirebaseAuth:
    """Minimal Firebase Authentication client for IdP sign-in."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        *,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        settings = get_settings()
        self.api_key = api_key if api_key is not None else settings.firebase_api_key
        self.base_url = (base_url or settings.identity_toolkit_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.http_timeout_seconds
        self._transport = transport
        self._current_user: Optional[FirebaseUser] = None

        if not self.api_key:
            logger.warning(
                "Firebase Authentication not configured. Set FIREBASE_API_KEY in environment."
            )

    @property
    def current_user(self) -> Optional[FirebaseUser]:
        """Locally cached signed-in user."""
        return self._current_user

    async def sign_in_with_credential(self, credential: GoogleAuthCredential) -> FirebaseUser:
        """
        Sign in to Firebase with a Google credential.

        Args:
            credential: Credential built from the Google identity token

        Returns:
            FirebaseUser for the new session

        Raises:
            ConfigurationError: If no API key is configured
            ExchangeError: If Firebase rejects the credential or is unreachable
        """
        if not self.api_key:
            raise ConfigurationError("FIREBASE_API_KEY not configured.")

        body = {
            "postBody": credential.to_post_body(),
            "requestUri": DEFAULT_REQUEST_URI,
            "returnSecureToken": True,
            "returnIdpCredential": True,
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(
                    f"{self.base_url}/accounts:signInWithIdp",
                    params={"key": self.api_key},
                    json=body,
                )
                response.raise_for_status()
                user_data = response.json()
        except httpx.HTTPStatusError as e:
            error_code, message = _parse_error(e.response)
            raise ExchangeError(message, error_code=error_code, original_error=e) from e
        except httpx.HTTPError as e:
            raise ExchangeError(
                f"A network error has occurred: {e}", error_code="NETWORK_ERROR", original_error=e
            ) from e

        uid = user_data.get("localId")
        if not uid:
            raise ExchangeError("Sign-in response carries no user ID", error_code="MISSING_LOCAL_ID")

        user = FirebaseUser(
            uid=uid,
            display_name=user_data.get("displayName"),
            photo_url=user_data.get("photoUrl"),
            email=user_data.get("email"),
            id_token=user_data.get("idToken"),
            refresh_token=user_data.get("refreshToken"),
            expires_in=int(user_data.get("expiresIn") or 0),
        )
        self._current_user = user

        logger.info(f"Signed in to Firebase as {uid}")
        return user

    async def sign_out(self) -> None:
        """Drop the local Firebase session."""
        if self._current_user is not None:
            logger.info(f"Signed out of Firebase ({self._current_user.uid})")
        self._current_user = None


def _parse_error(response: httpx.Response) -> tuple[Optional[str], str]:
    """
    Split an Identity Toolkit error into code and diagnostic text.

    Errors look like ``{"error": {"message": "INVALID_IDP_RESPONSE : detail"}}``.
    The text after the separator is returned when present, the code otherwise.
    """
    try:
        body = response.json()
    except ValueError:
        body = None

    raw = None
    if isinstance(body, dict) and isinstance(body.get("error"), dict):
        raw = body["error"].get("message")
    if not raw:
        return None, f"Sign-in request failed with status {response.status_code}"

    code, _, detail = raw.partition(" : ")
    code = code.strip()
    detail = detail.strip()
    return code, detail or code
