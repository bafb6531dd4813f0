"""Tests for the loopback picker launcher."""

import asyncio

import httpx
import pytest

from firesign.auth.models import PickerResultCode, SignInHandle
from firesign.ui.launcher import LoopbackSignInLauncher, build_callback_app

HANDLE = SignInHandle(url="https://accounts.google.com/auth?state=s1", state="s1")


def _browser_hitting(launcher: LoopbackSignInLauncher, *paths: str, idle_first: bool = False):
    """Fake browser that follows the redirect to the loopback listener."""
    responses: list[httpx.Response] = []
    opened: list[str] = []
    idle: list[asyncio.StreamWriter] = []

    async def follow():
        if idle_first:
            # A preconnect socket that never sends a request.
            _, writer = await asyncio.open_connection("127.0.0.1", launcher.bound_port)
            idle.append(writer)
        async with httpx.AsyncClient(trust_env=False) as client:
            for path in paths:
                responses.append(
                    await client.get(f"http://127.0.0.1:{launcher.bound_port}{path}")
                )

    def open_browser(url: str) -> None:
        opened.append(url)
        asyncio.get_running_loop().create_task(follow())

    return open_browser, opened, responses, idle


class TestCallbackApp:
    """Tests for the redirect route."""

    @pytest.mark.asyncio
    async def test_passes_query_parameters(self):
        """Should hand the redirect parameters to the callback."""
        received = []
        app = build_callback_app("/callback", received.append)

        async with httpx.AsyncClient(
            transport=httpx.ASGITransport(app=app), base_url="http://loopback"
        ) as client:
            response = await client.get("/callback", params={"code": "abc", "state": "s1"})

        assert response.status_code == 200
        assert "close this window" in response.text
        assert received == [{"code": "abc", "state": "s1"}]

    @pytest.mark.asyncio
    async def test_other_paths_not_found(self):
        """Should answer 404 for anything but the redirect path."""
        received = []
        app = build_callback_app("/callback", received.append)

        async with httpx.AsyncClient(
            transport=httpx.ASGITransport(app=app), base_url="http://loopback"
        ) as client:
            response = await client.get("/favicon.ico")

        assert response.status_code == 404
        assert received == []


class TestLaunch:
    """Tests for LoopbackSignInLauncher.launch."""

    @pytest.mark.asyncio
    async def test_captures_redirect(self):
        """Should open the handle URL and return the redirect parameters."""
        launcher = LoopbackSignInLauncher("http://127.0.0.1:0/callback", timeout=5)
        open_browser, opened, responses, _ = _browser_hitting(
            launcher, "/callback?code=abc&state=s1"
        )
        launcher._open_browser = open_browser

        result = await launcher.launch(HANDLE)

        assert opened == [HANDLE.url]
        assert result.result_code is PickerResultCode.OK
        assert result.payload == {"code": "abc", "state": "s1"}

    @pytest.mark.asyncio
    async def test_dismissed_chooser(self):
        """Should report a dismissed chooser as cancelled."""
        launcher = LoopbackSignInLauncher("http://127.0.0.1:0/callback", timeout=5)
        open_browser, _, _, _ = _browser_hitting(
            launcher, "/callback?error=access_denied&state=s1"
        )
        launcher._open_browser = open_browser

        result = await launcher.launch(HANDLE)

        assert result.result_code is PickerResultCode.CANCELED

    @pytest.mark.asyncio
    async def test_ignores_other_paths(self):
        """Should answer 404 for unrelated requests and keep waiting."""
        launcher = LoopbackSignInLauncher("http://127.0.0.1:0/callback", timeout=5)
        open_browser, _, responses, _ = _browser_hitting(
            launcher, "/favicon.ico", "/callback?code=abc&state=s1"
        )
        launcher._open_browser = open_browser

        result = await launcher.launch(HANDLE)

        assert result.payload == {"code": "abc", "state": "s1"}
        assert responses[0].status_code == 404

    @pytest.mark.asyncio
    async def test_idle_connection_does_not_block_return(self):
        """Should return even when a connection never sends a request."""
        launcher = LoopbackSignInLauncher("http://127.0.0.1:0/callback", timeout=5)
        open_browser, _, _, idle = _browser_hitting(
            launcher, "/callback?code=abc&state=s1", idle_first=True
        )
        launcher._open_browser = open_browser

        try:
            result = await asyncio.wait_for(launcher.launch(HANDLE), timeout=15)
        finally:
            for writer in idle:
                writer.close()

        assert result.result_code is PickerResultCode.OK
        assert len(idle) == 1

    @pytest.mark.asyncio
    async def test_timeout_is_cancel(self):
        """Should give up quietly when the user never returns."""
        launcher = LoopbackSignInLauncher(
            "http://127.0.0.1:0/callback", open_browser=lambda url: None, timeout=0.05
        )

        result = await launcher.launch(HANDLE)

        assert result.result_code is PickerResultCode.CANCELED
        assert result.payload is None

    @pytest.mark.asyncio
    async def test_listener_stops_after_launch(self):
        """Should stop accepting connections once the result is in."""
        launcher = LoopbackSignInLauncher("http://127.0.0.1:0/callback", timeout=5)
        open_browser, _, _, _ = _browser_hitting(launcher, "/callback?code=abc&state=s1")
        launcher._open_browser = open_browser

        await launcher.launch(HANDLE)

        with pytest.raises(OSError):
            await asyncio.open_connection("127.0.0.1", launcher.bound_port)

    def test_parses_redirect_uri(self):
        """Should listen where Google will redirect."""
        launcher = LoopbackSignInLauncher("http://localhost:8765/oauth/cb")

        assert launcher.host == "localhost"
        assert launcher.port == 8765
        assert launcher.path == "/oauth/cb"
