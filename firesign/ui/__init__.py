"""
Screen flow for FireSign.

Provides the sign-in flow controller and the loopback picker launcher.
"""

from firesign.ui.flow import (
    Navigator,
    Notifier,
    Route,
    SignInFlowController,
    SignInLauncher,
)
from firesign.ui.launcher import LoopbackSignInLauncher, open_url_with_system_browser

__all__ = [
    "Navigator",
    "Notifier",
    "Route",
    "SignInFlowController",
    "SignInLauncher",
    "LoopbackSignInLauncher",
    "open_url_with_system_browser",
]
