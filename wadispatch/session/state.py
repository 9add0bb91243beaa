"""Session authentication state machine.

Transitions are a pure function of (state, event) so they can be tested
without a client and applied from any callback in one place.
"""

from __future__ import annotations

import logging
from enum import Enum

from wadispatch.types import SessionState

from .client import EVENT_AUTH_FAILURE, EVENT_AUTHENTICATED, EVENT_QR, EVENT_READY

logger = logging.getLogger(__name__)


class SessionEvent(str, Enum):
    """Triggers that move the session between states."""

    INITIALIZE = "initialize"
    PAIRING_PAYLOAD = EVENT_QR
    AUTHENTICATED = EVENT_AUTHENTICATED
    READY = EVENT_READY
    AUTH_FAILURE = EVENT_AUTH_FAILURE


_S = SessionState
_E = SessionEvent

_TRANSITIONS: dict[tuple[SessionState, SessionEvent], SessionState] = {
    (_S.UNINITIALIZED, _E.INITIALIZE): _S.INITIALIZING,
    # WhatsApp rotates the pairing code while nobody scans, so a fresh
    # payload may arrive while one is already showing.
    (_S.INITIALIZING, _E.PAIRING_PAYLOAD): _S.AWAITING_PAIRING,
    (_S.AWAITING_PAIRING, _E.PAIRING_PAYLOAD): _S.AWAITING_PAIRING,
    (_S.INITIALIZING, _E.AUTHENTICATED): _S.AUTHENTICATED,
    (_S.AWAITING_PAIRING, _E.AUTHENTICATED): _S.AUTHENTICATED,
    (_S.AUTHENTICATED, _E.AUTHENTICATED): _S.AUTHENTICATED,
    (_S.INITIALIZING, _E.READY): _S.AUTHENTICATED,
    (_S.AWAITING_PAIRING, _E.READY): _S.AUTHENTICATED,
    (_S.AUTHENTICATED, _E.READY): _S.AUTHENTICATED,
}


def next_state(state: SessionState, event: SessionEvent) -> SessionState | None:
    """Return the state ``event`` leads to, or None if it does not apply."""
    if event is SessionEvent.AUTH_FAILURE:
        return SessionState.AUTH_FAILED
    return _TRANSITIONS.get((state, event))


class SessionStateMachine:
    """Holds the current session state and applies events to it.

    Not thread-safe on its own; the session manager serializes calls.
    """

    def __init__(self, state: SessionState = SessionState.UNINITIALIZED) -> None:
        self._state = state

    @property
    def state(self) -> SessionState:
        return self._state

    def apply(self, event: SessionEvent) -> bool:
        """Apply ``event``; return True if it was accepted.

        Events that do not apply to the current state are logged and
        dropped, leaving the state untouched.
        """
        target = next_state(self._state, event)
        if target is None:
            logger.warning("Ignoring session event %s in state %s", event.value, self._state.value)
            return False
        if target is not self._state:
            logger.info("Session state %s -> %s (%s)", self._state.value, target.value, event.value)
        self._state = target
        return True
