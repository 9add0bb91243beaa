"""Exceptions raised by the dispatch gateway."""

from __future__ import annotations

from typing import Any


class DispatchError(RuntimeError):
    """Base class for dispatch failures."""


class ValidationError(DispatchError, ValueError):
    """Input was missing or malformed; no transport was touched."""


class ProviderError(DispatchError):
    """The remote endpoint was reached but rejected the message."""

    def __init__(self, message: str, payload: Any = None) -> None:
        super().__init__(message)
        self.payload = payload


class NetworkError(DispatchError):
    """The remote endpoint was unreachable or answered with garbage."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class SessionError(DispatchError):
    """The paired session is missing, failed, or could not be paired."""


class PairingTimeoutError(SessionError):
    """No pairing payload arrived before the waiter's deadline."""

    def __init__(self, timeout_ms: int) -> None:
        super().__init__(f"No pairing code received within {timeout_ms} ms")
        self.timeout_ms = timeout_ms


class PairingCancelledError(SessionError):
    """Pairing ended (paired or failed) before another code was issued."""
