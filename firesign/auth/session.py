"""
Observable sign-in session state.

One SessionStateStore lives per sign-in screen. It is the only writer of
SessionState; readers follow it through subscribe(), each with a private
FIFO queue so every reader sees emissions in the order they were made.
"""

import asyncio
import logging
from typing import AsyncIterator, Optional

from pydantic import BaseModel, ConfigDict

from firesign.auth.models import SignInOutcome, SignInSuccess

logger = logging.getLogger(__name__)

_CLOSED = object()


class SessionState(BaseModel):
    """Latest sign-in outcome as seen by the UI."""

    model_config = ConfigDict(frozen=True)

    is_signed_in: bool = False
    last_error: Optional[str] = None


class SessionStateStore:
    """Single-writer, multi-reader holder of SessionState."""

    def __init__(self) -> None:
        self._state = SessionState()
        self._subscribers: set[asyncio.Queue] = set()
        self._closed = False

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def closed(self) -> bool:
        return self._closed

    def apply(self, outcome: SignInOutcome) -> None:
        """Record a sign-in outcome."""
        self._emit(
            SessionState(
                is_signed_in=isinstance(outcome, SignInSuccess),
                last_error=outcome.error_message,
            )
        )

    def reset(self) -> None:
        """Restore the initial state."""
        self._emit(SessionState())

    def close(self) -> None:
        """End all subscriptions; the store accepts no further mutations."""
        if self._closed:
            return
        self._closed = True
        for queue in self._subscribers:
            queue.put_nowait(_CLOSED)

    async def subscribe(self) -> AsyncIterator[SessionState]:
        """
        Follow the state.

        Yields the current state first, then every later emission until the
        store is closed.
        """
        if self._closed:
            return
        queue: asyncio.Queue = asyncio.Queue()
        queue.put_nowait(self._state)
        self._subscribers.add(queue)
        try:
            while True:
                item = await queue.get()
                if item is _CLOSED:
                    return
                yield item
        finally:
            self._subscribers.discard(queue)

    def _emit(self, state: SessionState) -> None:
        if self._closed:
            raise RuntimeError("Session state store is closed")
        self._state = state
        logger.debug(f"Session state: {state!r}")
        for queue in self._subscribers:
            queue.put_nowait(state)
