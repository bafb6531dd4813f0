"""
Loopback launcher for the credential picker.

Opens the picker URL in the system browser and waits for Google to redirect
back to a short-lived FastAPI app served by uvicorn on the loopback interface.
"""

import asyncio
import logging
import webbrowser
from typing import Callable, Optional
from urllib.parse import urlparse

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse

from firesign.auth.models import PickerResult, PickerResultCode, SignInHandle
from firesign.config import get_settings

logger = logging.getLogger(__name__)

DEFAULT_LAUNCH_TIMEOUT = 300.0
STARTUP_TIMEOUT = 10.0
SHUTDOWN_TIMEOUT = 5

_RESPONSE_PAGE = (
    "<!doctype html><html><head><title>FireSign</title></head>"
    "<body><p>You can close this window and return to the app.</p></body></html>"
)


def open_url_with_system_browser(url: str) -> None:
    """Open a URL in the default browser, logging it for manual use."""
    logger.info(f"Opening Google sign-in: {url}")
    try:
        webbrowser.open(url)
    except webbrowser.Error as e:
        logger.warning(f"Could not open a browser ({e}); open the URL above manually")


def build_callback_app(path: str, on_callback: Callable[[dict[str, str]], None]) -> FastAPI:
    """
    Build the app that receives the picker redirect.

    Args:
        path: Redirect path registered with Google
        on_callback: Called with the redirect query parameters

    Returns:
        FastAPI app with a single GET route; other paths answer 404
    """
    app = FastAPI(docs_url=None, redoc_url=None, openapi_url=None)

    @app.get(path, response_class=HTMLResponse)
    async def sign_in_callback(request: Request) -> str:
        on_callback(dict(request.query_params))
        return _RESPONSE_PAGE

    return app


class LoopbackSignInLauncher:
    """Launches the picker in a browser and captures its redirect."""

    def __init__(
        self,
        redirect_uri: Optional[str] = None,
        *,
        open_browser: Optional[Callable[[str], None]] = None,
        timeout: float = DEFAULT_LAUNCH_TIMEOUT,
    ):
        parsed = urlparse(redirect_uri or get_settings().google_oauth_redirect_uri)
        self.host = parsed.hostname or "127.0.0.1"
        self.port = parsed.port if parsed.port is not None else 80
        self.path = parsed.path or "/"
        self.timeout = timeout
        self.bound_port: Optional[int] = None
        self._open_browser = open_browser or open_url_with_system_browser

    async def launch(self, handle: SignInHandle) -> PickerResult:
        """
        Show the picker and wait for its result.

        Returns:
            PickerResult built from the redirect; CANCELED if the user never
            comes back before the timeout
        """
        loop = asyncio.get_running_loop()
        result: asyncio.Future = loop.create_future()

        def on_callback(params: dict[str, str]) -> None:
            if not result.done():
                result.set_result(PickerResult.from_callback(params))

        server = uvicorn.Server(
            uvicorn.Config(
                build_callback_app(self.path, on_callback),
                host=self.host,
                port=self.port,
                lifespan="off",
                access_log=False,
                log_config=None,
                timeout_graceful_shutdown=SHUTDOWN_TIMEOUT,
            )
        )
        serve_task = asyncio.create_task(server.serve())

        try:
            await self._wait_started(server, serve_task)
            self._open_browser(handle.url)
            try:
                return await asyncio.wait_for(result, self.timeout)
            except asyncio.TimeoutError:
                logger.warning(f"No sign-in redirect received within {self.timeout:.0f}s")
                return PickerResult(result_code=PickerResultCode.CANCELED)
        finally:
            server.should_exit = True
            await serve_task

    async def _wait_started(self, server: uvicorn.Server, serve_task: asyncio.Task) -> None:
        deadline = asyncio.get_running_loop().time() + STARTUP_TIMEOUT
        while not server.started:
            if serve_task.done():
                serve_task.result()
                raise RuntimeError("Sign-in callback server stopped during startup")
            if asyncio.get_running_loop().time() > deadline:
                raise RuntimeError("Sign-in callback server did not start in time")
            await asyncio.sleep(0.01)

        self.bound_port = server.servers[0].sockets[0].getsockname()[1]
        logger.debug(f"Listening for the sign-in redirect on {self.host}:{self.bound_port}")
