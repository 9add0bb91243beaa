"""Test doubles for the dispatch gateway.

``MockTransport`` stands in for the API-key transport and records what it
was asked to send. ``FakeSessionClient`` stands in for the browser-driven
WhatsApp client: tests fire its events by hand to walk the session through
pairing.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from .types import OutboundMessage, SendResult


@dataclass
class SentMessage:
    """Record of a message sent through a test double."""

    message: OutboundMessage
    result: SendResult


class MockTransport:
    """Stand-in for the API-key transport that records every send.

    Returns ``result`` for each send (a success by default), or raises
    ``error`` the way a broken provider would::

        transport = MockTransport(result=SendResult.fail("Failed to send message.", error_code="provider"))
        gateway = DispatchGateway(api_key=transport)
        gateway.dispatch(DispatchRequest(number="919812345678", message="hi"))
        assert transport.sent[0].message.body == "hi"
    """

    def __init__(self, *, result: SendResult | None = None, error: Exception | None = None) -> None:
        self.result = result if result is not None else SendResult.ok()
        self.error = error
        self.sent: list[SentMessage] = []

    def send(self, message: OutboundMessage) -> SendResult:
        if self.error is not None:
            raise self.error
        self.sent.append(SentMessage(message=message, result=self.result))
        return self.result

    def reset(self) -> None:
        self.sent.clear()


class FakeSessionClient:
    """In-memory ``SessionClient`` whose events are fired by the test.

    ``send_error`` makes every send raise it. ``initialize_error`` makes
    ``initialize`` raise it.
    """

    def __init__(
        self,
        *,
        send_error: Exception | None = None,
        initialize_error: Exception | None = None,
    ) -> None:
        self.send_error = send_error
        self.initialize_error = initialize_error
        self.initialized = False
        self.sent: list[tuple[str, str, dict[str, Any]]] = []
        self._handlers: dict[str, list[Callable[..., Any]]] = defaultdict(list)

    def initialize(self) -> None:
        if self.initialize_error is not None:
            raise self.initialize_error
        self.initialized = True

    def on(self, event: str, callback: Callable[..., Any]) -> None:
        self._handlers[event].append(callback)

    def emit(self, event: str, *args: Any) -> None:
        """Fire ``event`` at every subscribed callback, in subscription order."""
        for callback in list(self._handlers[event]):
            callback(*args)

    def send_message(
        self,
        chat_id: str,
        body: str,
        *,
        media_url: str | None = None,
        filename: str | None = None,
    ) -> dict[str, Any]:
        if self.send_error is not None:
            raise self.send_error
        options = {"media_url": media_url, "filename": filename}
        self.sent.append((chat_id, body, options))
        return {"id": f"fake_{len(self.sent)}"}
