"""Interface of the browser-automated WhatsApp client the session drives."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Protocol

# Event names emitted by the client library.
EVENT_QR = "qr"
EVENT_AUTHENTICATED = "authenticated"
EVENT_READY = "ready"
EVENT_AUTH_FAILURE = "auth_failure"


class SessionClient(Protocol):
    """A device-paired WhatsApp client.

    Construction is expensive (it launches a headless browser) and two live
    instances cannot share one paired device, so the session manager builds
    exactly one per process.
    """

    def initialize(self) -> None:
        """Connect and start emitting events. May block until connected."""
        ...

    def on(self, event: str, callback: Callable[..., Any]) -> None:
        """Subscribe ``callback`` to ``event``.

        ``qr`` callbacks receive the raw pairing payload, ``auth_failure``
        callbacks receive a reason string, the others receive nothing.
        """
        ...

    def send_message(
        self,
        chat_id: str,
        body: str,
        *,
        media_url: str | None = None,
        filename: str | None = None,
    ) -> Any:
        """Send a message to ``chat_id``. Raises on failure."""
        ...
