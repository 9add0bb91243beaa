"""Base protocol for message transports."""

from __future__ import annotations

from typing import Protocol

from wadispatch.types import OutboundMessage, SendResult


class Transport(Protocol):
    """Interface for stateless transports the gateway can delegate to."""

    def send(self, message: OutboundMessage) -> SendResult:
        """Deliver a validated message and return the normalized result.

        Expected failures (provider rejection, network trouble) are reported
        through ``SendResult``, never raised.
        """
        ...
