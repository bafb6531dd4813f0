"""
Sign-in screen flow.

Connects the session state store to navigation between the sign-in and
profile screens. Screens, the picker launch and transient messages are
supplied by the host through the protocols below.
"""

import logging
from enum import Enum
from typing import Optional, Protocol

from firesign.auth.client import FireAuthClient
from firesign.auth.models import PickerResult, SignInHandle, UserRecord
from firesign.auth.session import SessionState, SessionStateStore

logger = logging.getLogger(__name__)

SIGN_IN_SUCCESS_MESSAGE = "Sign in successful"
SIGNED_OUT_MESSAGE = "Signed out"


class Route(str, Enum):
    """Screens of the app."""

    SIGN_IN = "sign_in"
    PROFILE = "profile"


class Navigator(Protocol):
    """Moves between screens."""

    @property
    def current_route(self) -> Route:
        ...

    def navigate(self, route: Route) -> None:
        ...


class SignInLauncher(Protocol):
    """Launches the credential picker and waits for its result."""

    async def launch(self, handle: SignInHandle) -> PickerResult:
        ...


class Notifier(Protocol):
    """Shows short transient messages."""

    def show_message(self, text: str) -> None:
        ...


class SignInFlowController:
    """
    Drives the sign-in screen.

    The host runs observe() for the lifetime of the screen, calls start()
    once, and calls sign_in()/sign_out() from user actions. Cancelling the
    task running sign_in() leaves the session state untouched.
    """

    def __init__(
        self,
        client: FireAuthClient,
        store: SessionStateStore,
        navigator: Navigator,
        launcher: SignInLauncher,
        notifier: Notifier,
    ):
        self._client = client
        self._store = store
        self._navigator = navigator
        self._launcher = launcher
        self._notifier = notifier

    @property
    def profile_user(self) -> Optional[UserRecord]:
        return self._client.current_user()

    def start(self) -> None:
        """Skip the sign-in screen when a session already exists."""
        if self._client.current_user() is not None:
            self._navigate(Route.PROFILE)

    async def sign_in(self) -> None:
        handle = await self._client.begin_sign_in()
        if handle is None:
            return
        result = await self._launcher.launch(handle)
        await self.on_picker_result(result)

    async def on_picker_result(self, result: PickerResult) -> None:
        """Complete the sign-in if the picker returned a credential."""
        if not result.is_ok:
            logger.info(f"Credential picker finished without a credential ({result.result_code.value})")
            return
        outcome = await self._client.complete_sign_in(result.payload)
        self._store.apply(outcome)

    async def observe(self) -> None:
        """React to state changes until the store is closed."""
        async for state in self._store.subscribe():
            self.render(state)

    def render(self, state: SessionState) -> None:
        if state.last_error:
            self._notifier.show_message(state.last_error)
        if state.is_signed_in:
            self._notifier.show_message(SIGN_IN_SUCCESS_MESSAGE)
            self._navigate(Route.PROFILE)
            if not self._store.closed:
                self._store.reset()

    async def sign_out(self) -> None:
        await self._client.sign_out()
        self._notifier.show_message(SIGNED_OUT_MESSAGE)
        self._navigate(Route.SIGN_IN)

    def _navigate(self, route: Route) -> None:
        if self._navigator.current_route == route:
            logger.debug(f"Already on {route.value}, not navigating")
            return
        self._navigator.navigate(route)
