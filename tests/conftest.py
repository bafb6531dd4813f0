"""
Pytest configuration and fixtures for FireSign tests.

Provides settings isolation, identity token builders and HTTP mocks.
"""

import base64
import json
from typing import Callable

import httpx
import pytest

from firesign.config import get_settings

CLIENT_ID = "web-client-id.apps.googleusercontent.com"
REDIRECT_URI = "http://127.0.0.1:8765/callback"
AUTHORIZATION_ENDPOINT = "https://accounts.google.com/o/oauth2/v2/auth"


def _b64(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Reload settings for every test so env changes do not leak."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def make_id_token() -> Callable[..., str]:
    """
    Build a JWT-shaped Google identity token.

    The signature is not valid; the picker only decodes the claims.
    """

    def _make(**claims) -> str:
        payload = {
            "iss": "https://accounts.google.com",
            "aud": CLIENT_ID,
            "sub": "1234567890",
            "email": "jane@example.com",
            "name": "Jane Doe",
            "picture": "https://lh3.googleusercontent.com/a/jane",
            "nonce": "nonce-1",
        }
        payload.update(claims)
        header = {"alg": "RS256", "typ": "JWT", "kid": "test"}
        return ".".join(
            [
                _b64(json.dumps(header).encode()),
                _b64(json.dumps(payload).encode()),
                _b64(b"signature"),
            ]
        )

    return _make


@pytest.fixture
def google_endpoints(make_id_token):
    """
    Mocked Google discovery and token endpoints.

    Returns an object whose attributes control the responses and record
    the requests seen.
    """

    class Endpoints:
        discovery_status = 200
        token_status = 200
        token_error = {"error": "invalid_grant", "error_description": "Bad Request"}

        def __init__(self):
            self.requests: list[httpx.Request] = []
            self.id_token = make_id_token()

        def handler(self, request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            if request.url.path == "/.well-known/openid-configuration":
                if self.discovery_status != 200:
                    return httpx.Response(self.discovery_status, text="unavailable")
                return httpx.Response(
                    200, json={"authorization_endpoint": AUTHORIZATION_ENDPOINT}
                )
            if request.url.path == "/token":
                if self.token_status != 200:
                    return httpx.Response(self.token_status, json=self.token_error)
                return httpx.Response(
                    200,
                    json={
                        "access_token": "ya29.access",
                        "expires_in": 3599,
                        "token_type": "Bearer",
                        "scope": "openid email profile",
                        "id_token": self.id_token,
                    },
                )
            return httpx.Response(404)

        @property
        def transport(self) -> httpx.MockTransport:
            return httpx.MockTransport(self.handler)

    return Endpoints()


@pytest.fixture
def firebase_backend():
    """Mocked Identity Toolkit signInWithIdp endpoint."""

    class Backend:
        status = 200
        user_data = {
            "localId": "u1",
            "idToken": "firebase-id-token",
            "refreshToken": "firebase-refresh-token",
            "expiresIn": "3600",
        }
        error_message = "INVALID_IDP_RESPONSE : invalid token"
        raise_error: Exception | None = None

        def __init__(self):
            self.requests: list[httpx.Request] = []

        def handler(self, request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            if self.raise_error is not None:
                raise self.raise_error
            if self.status != 200:
                return httpx.Response(
                    self.status,
                    json={"error": {"code": self.status, "message": self.error_message}},
                )
            return httpx.Response(200, json=self.user_data)

        @property
        def transport(self) -> httpx.MockTransport:
            return httpx.MockTransport(self.handler)

    return Backend()
