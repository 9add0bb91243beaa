"""Owner of the single paired WhatsApp client for this process."""

from __future__ import annotations

import asyncio
import logging
import threading
from collections.abc import Callable
from typing import Any

from wadispatch.phone import to_chat_id
from wadispatch.types import (
    ERROR_SESSION,
    MediaMessage,
    OutboundMessage,
    PairingArtifact,
    RequiresPairing,
    SendResult,
    SessionConfig,
    SessionState,
    SessionStatus,
)

from .broker import PairingBroker
from .client import EVENT_AUTH_FAILURE, EVENT_AUTHENTICATED, EVENT_QR, EVENT_READY, SessionClient
from .qr import render_qr
from .state import SessionEvent, SessionStateMachine

logger = logging.getLogger(__name__)

SEND_FAILED_DETAIL = "Failed to send message."

_PAIRING_OVER = frozenset({SessionState.AUTHENTICATED, SessionState.AUTH_FAILED})


class SessionManager:
    """Drives one client handle through pairing and sends through it once paired.

    Build one per process and share it. The client handle is created on the
    first :meth:`initialize` call and never replaced; a failed
    authentication is only recovered by restarting the process.

    Usage::

        manager = SessionManager(SessionConfig(client_factory=make_client))
        manager.initialize()
        artifact = manager.broker.await_artifact(timeout_ms=60_000)
        # show artifact.data_url to a human, then later:
        result = manager.send_via_session(TextMessage(to="919812345678", body="hi"))
    """

    def __init__(self, config: SessionConfig, *, broker: PairingBroker | None = None) -> None:
        if config.client_factory is None:
            raise ValueError("client_factory is required")
        self._config = config
        self._render: Callable[[str], bytes] = config.renderer or render_qr
        self._lock = threading.Lock()
        self._machine = SessionStateMachine()
        self._client: SessionClient | None = None
        self.broker = broker or PairingBroker()

    @property
    def pairing_timeout_ms(self) -> int:
        return self._config.pairing_timeout_ms

    @property
    def state(self) -> SessionState:
        with self._lock:
            return self._machine.state

    # ── Lifecycle ─────────────────────────────────────────────────

    def initialize(self) -> bool:
        """Create the client handle and start connecting, once per process.

        Safe to call from any number of threads. Only the first call does
        anything; connecting happens on a background thread so callers are
        never held up waiting for the browser to start.

        Returns True if this call created the handle.
        """
        with self._lock:
            if self._client is not None:
                return False
            client = self._config.client_factory()
            client.on(EVENT_QR, self._on_qr)
            client.on(EVENT_AUTHENTICATED, self._on_authenticated)
            client.on(EVENT_READY, self._on_ready)
            client.on(EVENT_AUTH_FAILURE, self._on_auth_failure)
            self._client = client
            self._apply(SessionEvent.INITIALIZE)

        threading.Thread(target=self._connect, args=(client,), name="wa-session-connect", daemon=True).start()
        return True

    def _connect(self, client: SessionClient) -> None:
        try:
            client.initialize()
        except Exception:
            logger.exception("WhatsApp client failed to initialize")
            self._on_auth_failure("client initialization failed")

    def status(self) -> SessionStatus:
        """Return the current state, with the artifact while awaiting pairing."""
        with self._lock:
            state = self._machine.state
            artifact = self.broker.current() if state is SessionState.AWAITING_PAIRING else None
        return SessionStatus(state=state, artifact=artifact)

    # ── Sending ───────────────────────────────────────────────────

    def send_via_session(self, message: OutboundMessage) -> SendResult | RequiresPairing:
        """Send through the paired client, or report that pairing is needed.

        Nothing is sent unless the session is authenticated. Send failures
        are reported, not raised, and do not reset the client.
        """
        with self._lock:
            state = self._machine.state
            client = self._client
            artifact = self.broker.current() if state is SessionState.AWAITING_PAIRING else None

        if state is not SessionState.AUTHENTICATED or client is None:
            logger.info("Session not authenticated (%s); pairing required", state.value)
            return RequiresPairing(artifact=artifact)

        options: dict[str, Any] = {}
        if isinstance(message, MediaMessage):
            options = {"media_url": message.media_url, "filename": message.filename}

        try:
            client.send_message(to_chat_id(message.to), message.body, **options)
        except Exception:
            logger.exception("Error sending WhatsApp message to %s via session", message.to)
            return SendResult.fail(SEND_FAILED_DETAIL, error_code=ERROR_SESSION)

        logger.info("WhatsApp %s message sent via session to %s", message.kind.value, message.to)
        return SendResult.ok()

    async def send_via_session_async(self, message: OutboundMessage) -> SendResult | RequiresPairing:
        """Async variant of :meth:`send_via_session` (runs in a thread)."""
        return await asyncio.to_thread(self.send_via_session, message)

    # ── Client event hooks ────────────────────────────────────────

    def _on_qr(self, payload: str) -> None:
        logger.info("Pairing code received")
        artifact = PairingArtifact(raw_payload=payload, image=self._render(payload))
        with self._lock:
            if self._apply(SessionEvent.PAIRING_PAYLOAD):
                self.broker.publish(artifact)

    def _on_authenticated(self, *args: Any) -> None:
        logger.info("WhatsApp client authenticated")
        with self._lock:
            self._apply(SessionEvent.AUTHENTICATED)

    def _on_ready(self, *args: Any) -> None:
        logger.info("WhatsApp client is ready")
        with self._lock:
            self._apply(SessionEvent.READY)

    def _on_auth_failure(self, reason: Any = None) -> None:
        logger.error("WhatsApp authentication failure: %s", reason)
        with self._lock:
            self._apply(SessionEvent.AUTH_FAILURE)

    def _apply(self, event: SessionEvent) -> bool:
        """Apply ``event`` and drop the artifact when leaving pairing. Lock held.

        Once paired or failed no further code will come, so callers still
        waiting for one are released.
        """
        accepted = self._machine.apply(event)
        if accepted and self._machine.state is not SessionState.AWAITING_PAIRING:
            self.broker.clear()
            if self._machine.state in _PAIRING_OVER:
                self.broker.cancel_waiters()
        return accepted
