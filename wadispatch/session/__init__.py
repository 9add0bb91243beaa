"""Paired-device WhatsApp session: state machine, pairing broker, manager."""

from .broker import PairingBroker
from .client import EVENT_AUTH_FAILURE, EVENT_AUTHENTICATED, EVENT_QR, EVENT_READY, SessionClient
from .manager import SessionManager
from .qr import render_qr
from .state import SessionEvent, SessionStateMachine, next_state

__all__ = [
    "EVENT_AUTHENTICATED",
    "EVENT_AUTH_FAILURE",
    "EVENT_QR",
    "EVENT_READY",
    "PairingBroker",
    "SessionClient",
    "SessionEvent",
    "SessionManager",
    "SessionStateMachine",
    "next_state",
    "render_qr",
]
