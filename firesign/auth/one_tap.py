"""
Google credential picker built on the OpenID Connect authorization code flow.

Implements the picker round-trip:
1. Begin sign-in → resolve the authorization endpoint → account chooser URL
2. User picks an account → Google redirects back with code and state
3. Extract the credential → exchange the code for an identity token
4. Sign out → forget the remembered account so it is no longer auto-selected
"""

import logging
import secrets
from dataclasses import dataclass
from typing import Mapping, Optional, Protocol
from urllib.parse import urlencode

import httpx
from google.auth import jwt

from firesign.auth.exceptions import (
    ConfigurationError,
    NoCredentialError,
    ProviderError,
)
from firesign.auth.models import BeginSignInRequest, SignInCredential, SignInHandle
from firesign.config import get_settings

logger = logging.getLogger(__name__)

# Google OpenID Connect endpoints
GOOGLE_DISCOVERY_URL = "https://accounts.google.com/.well-known/openid-configuration"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"

SIGN_IN_SCOPES = ["openid", "email", "profile"]


class CredentialPicker(Protocol):
    """Interface of the identity provider gateway."""

    async def begin_sign_in(self, request: BeginSignInRequest) -> SignInHandle:
        ...

    async def get_sign_in_credential(self, payload: Mapping[str, str]) -> SignInCredential:
        ...

    async def sign_out(self) -> None:
        ...


@dataclass(frozen=True)
class _PendingSignIn:
    client_id: str
    nonce: str


class GoogleOneTapClient:
    """
    Credential picker backed by Google's account chooser.

    Usage:
        picker = GoogleOneTapClient()

        # Step 1: Build the launch descriptor
        handle = await picker.begin_sign_in(BeginSignInRequest(server_client_id=...))
        # Open handle.url in a browser, wait for the redirect

        # Step 2: Turn the redirect parameters into a credential
        credential = await picker.get_sign_in_credential(params)
    """

    def __init__(
        self,
        client_secret: Optional[str] = None,
        redirect_uri: Optional[str] = None,
        *,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        settings = get_settings()
        self.client_secret = (
            client_secret if client_secret is not None else settings.google_oauth_client_secret
        )
        self.redirect_uri = redirect_uri or settings.google_oauth_redirect_uri
        self.timeout = timeout if timeout is not None else settings.http_timeout_seconds
        self._transport = transport
        self._authorization_endpoint: Optional[str] = None
        self._remembered_account: Optional[str] = None
        self._pending: dict[str, _PendingSignIn] = {}

    @property
    def remembered_account(self) -> Optional[str]:
        """Account offered for auto-selection, if any."""
        return self._remembered_account

    async def begin_sign_in(self, request: BeginSignInRequest) -> SignInHandle:
        """
        Prepare the account chooser for launch.

        Args:
            request: Picker options

        Returns:
            SignInHandle describing the URL to open

        Raises:
            ConfigurationError: If no server client ID is configured
            NoCredentialError: If no account can satisfy the request
            ProviderError: If Google's configuration cannot be loaded
        """
        if not request.server_client_id:
            raise ConfigurationError(
                "Google sign-in not configured. Set WEB_CLIENT_ID in environment."
            )
        if not request.supported:
            raise NoCredentialError("Google ID token sign-in is not enabled for this request")
        if request.filter_by_authorized_accounts and self._remembered_account is None:
            raise NoCredentialError("Cannot find a matching credential.")

        authorization_endpoint = await self._get_authorization_endpoint()

        state = secrets.token_urlsafe(32)
        nonce = request.nonce or secrets.token_urlsafe(16)
        params = {
            "client_id": request.server_client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "scope": " ".join(SIGN_IN_SCOPES),
            "state": state,
            "nonce": nonce,
        }
        if request.auto_select_enabled and self._remembered_account:
            params["login_hint"] = self._remembered_account
        else:
            params["prompt"] = "select_account"

        # Only the latest request can complete; earlier ones were abandoned.
        self._pending.clear()
        self._pending[state] = _PendingSignIn(client_id=request.server_client_id, nonce=nonce)
        logger.debug(f"Prepared Google sign-in request (auto-select: {'login_hint' in params})")

        return SignInHandle(url=f"{authorization_endpoint}?{urlencode(params)}", state=state)

    async def get_sign_in_credential(self, payload: Mapping[str, str]) -> SignInCredential:
        """
        Extract the signed-in credential from the picker's redirect payload.

        Args:
            payload: Query parameters of the redirect

        Returns:
            SignInCredential holding the Google identity token

        Raises:
            ProviderError: If the payload is unknown, carries an error, or the
                identity token cannot be obtained
        """
        state = payload.get("state")
        pending = self._pending.pop(state, None) if state else None
        if pending is None:
            raise ProviderError("Sign-in response does not match a pending request")

        if payload.get("error"):
            raise ProviderError(payload.get("error_description") or payload["error"])

        code = payload.get("code")
        if not code:
            raise ProviderError("Sign-in response carries no authorization code")

        token_data = await self._exchange_code(code, pending.client_id)

        id_token = token_data.get("id_token")
        if not id_token:
            raise ProviderError("Token response carries no identity token")

        # Received straight from the token endpoint over TLS; the backend
        # verifies the signature during the exchange.
        try:
            claims = jwt.decode(id_token, verify=False)
        except ValueError as e:
            raise ProviderError(f"Malformed identity token: {e}", original_error=e) from e

        if claims.get("nonce") != pending.nonce:
            raise ProviderError("Identity token nonce does not match the sign-in request")
        if claims.get("aud") != pending.client_id:
            raise ProviderError("Identity token was issued for another client")
        if not claims.get("sub"):
            raise ProviderError("Identity token carries no subject")

        self._remembered_account = claims.get("email") or claims["sub"]

        return SignInCredential(
            id_token=id_token,
            account_id=claims["sub"],
            email=claims.get("email"),
            display_name=claims.get("name"),
            profile_picture_url=claims.get("picture"),
            claims=claims,
        )

    async def sign_out(self) -> None:
        """Forget the remembered account and drop pending requests."""
        self._remembered_account = None
        self._pending.clear()
        logger.info("Cleared remembered Google account")

    async def _get_authorization_endpoint(self) -> str:
        if self._authorization_endpoint is not None:
            return self._authorization_endpoint

        try:
            async with self._http_client() as client:
                response = await client.get(GOOGLE_DISCOVERY_URL)
                response.raise_for_status()
                discovery = response.json()
        except httpx.HTTPError as e:
            raise ProviderError(
                f"Failed to load Google sign-in configuration: {e}", original_error=e
            ) from e

        endpoint = discovery.get("authorization_endpoint")
        if not endpoint:
            raise ProviderError("Google sign-in configuration has no authorization endpoint")

        self._authorization_endpoint = endpoint
        return endpoint

    async def _exchange_code(self, code: str, client_id: str) -> dict:
        data = {
            "client_id": client_id,
            "client_secret": self.client_secret,
            "code": code,
            "grant_type": "authorization_code",
            "redirect_uri": self.redirect_uri,
        }

        try:
            async with self._http_client() as client:
                response = await client.post(GOOGLE_TOKEN_URL, data=data)
                response.raise_for_status()
                return response.json()
        except httpx.HTTPStatusError as e:
            raise ProviderError(_describe_token_error(e.response), original_error=e) from e
        except httpx.HTTPError as e:
            raise ProviderError(
                f"Network error while contacting Google: {e}", original_error=e
            ) from e

    def _http_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)


def _describe_token_error(response: httpx.Response) -> str:
    """Pick the most useful text out of a token endpoint error response."""
    try:
        body = response.json()
    except ValueError:
        body = {}
    if isinstance(body, dict):
        description = body.get("error_description") or body.get("error")
        if description:
            return str(description)
    return f"Token request failed with status {response.status_code}"
