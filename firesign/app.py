"""
Console entry point for FireSign.

Runs one sign-in round-trip in the terminal: the sign-in and profile screens
are printed, the Google account chooser opens in the browser.
"""

import asyncio
import logging
import sys

from firesign.auth import FireAuthClient, SessionStateStore
from firesign.config import Settings, configure_logging, get_settings
from firesign.ui import LoopbackSignInLauncher, Route, SignInFlowController

logger = logging.getLogger(__name__)

NO_USER_TEXT = "Found No Google User!"


class ConsoleNavigator:
    """Prints the current screen."""

    def __init__(self, client: FireAuthClient):
        self._client = client
        self._route = Route.SIGN_IN

    @property
    def current_route(self) -> Route:
        return self._route

    def navigate(self, route: Route) -> None:
        self._route = route
        if route is Route.PROFILE:
            user = self._client.current_user()
            print("== Profile ==")
            if user is None:
                print(NO_USER_TEXT)
                return
            if user.profile_picture_url:
                print(f"Picture: {user.profile_picture_url}")
            if user.display_name:
                print(f"Name:    {user.display_name}")
            print(f"User ID: {user.user_id}")
        else:
            print("== Sign in ==")


class ConsoleNotifier:
    def show_message(self, text: str) -> None:
        print(f"* {text}")


async def run_app(settings: Settings) -> None:
    client = FireAuthClient.from_settings(settings)
    store = SessionStateStore()
    navigator = ConsoleNavigator(client)
    controller = SignInFlowController(
        client=client,
        store=store,
        navigator=navigator,
        launcher=LoopbackSignInLauncher(settings.google_oauth_redirect_uri),
        notifier=ConsoleNotifier(),
    )

    observer = asyncio.create_task(controller.observe())
    try:
        controller.start()
        if navigator.current_route is Route.SIGN_IN:
            await controller.sign_in()
        # Let the observer render the outcome before reading the route.
        await asyncio.sleep(0)
        if navigator.current_route is Route.PROFILE:
            await asyncio.to_thread(input, "Press Enter to sign out...")
            await controller.sign_out()
    finally:
        store.close()
        await observer


def main() -> int:
    settings = get_settings()
    configure_logging(settings)

    try:
        settings.validate_sign_in_config()
    except ValueError as e:
        logger.error(str(e))
        return 1

    try:
        asyncio.run(run_app(settings))
    except KeyboardInterrupt:
        return 130
    return 0


if __name__ == "__main__":
    sys.exit(main())
