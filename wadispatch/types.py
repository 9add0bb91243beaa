"""Core types for the dispatch gateway."""

from __future__ import annotations

import base64
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Any, Union

if TYPE_CHECKING:
    from .session.client import SessionClient

DEFAULT_API_ENDPOINT = "https://adrika.aknexus.in/api/send"
DEFAULT_PAIRING_TIMEOUT_MS = 60_000


class MessageKind(str, Enum):
    """Kind of outbound message."""

    TEXT = "text"
    MEDIA = "media"


class TransportKind(str, Enum):
    """Which transport delivers a dispatch request."""

    API_KEY = "api_key"
    SESSION = "session"


class SessionState(str, Enum):
    """Lifecycle of the paired WhatsApp session."""

    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    AWAITING_PAIRING = "awaiting_pairing"
    AUTHENTICATED = "authenticated"
    AUTH_FAILED = "auth_failed"


# ── Error codes carried on failed results ─────────────────────────────

ERROR_VALIDATION = "validation"
ERROR_PROVIDER = "provider"
ERROR_NETWORK = "network"
ERROR_SESSION = "session"


@dataclass(frozen=True, slots=True)
class SendResult:
    """Uniform result of a delivery attempt, returned by every transport."""

    success: bool
    detail: str
    error_code: str | None = None
    provider_payload: Any = None

    @property
    def succeeded(self) -> bool:
        return self.success

    @classmethod
    def ok(cls, detail: str = "Message sent successfully.", *, provider_payload: Any = None) -> SendResult:
        return cls(success=True, detail=detail, provider_payload=provider_payload)

    @classmethod
    def fail(
        cls,
        detail: str,
        *,
        error_code: str | None = None,
        provider_payload: Any = None,
    ) -> SendResult:
        return cls(
            success=False,
            detail=detail,
            error_code=error_code,
            provider_payload=provider_payload,
        )


# ── Message types ─────────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class TextMessage:
    """A plain text WhatsApp message."""

    to: str
    body: str

    @property
    def kind(self) -> MessageKind:
        return MessageKind.TEXT


@dataclass(frozen=True, slots=True)
class MediaMessage:
    """A WhatsApp message carrying a media attachment.

    ``body`` travels as the caption. ``filename`` is only needed when the
    attachment is a document.
    """

    to: str
    body: str
    media_url: str
    filename: str | None = None

    def __post_init__(self) -> None:
        if not self.media_url:
            raise ValueError("media_url is required for media messages")

    @property
    def kind(self) -> MessageKind:
        return MessageKind.MEDIA


OutboundMessage = Union[TextMessage, MediaMessage]


@dataclass(frozen=True, slots=True)
class DispatchRequest:
    """Raw, unvalidated input to the gateway, as received from a caller."""

    number: str | None = None
    message: str | None = None
    type: str = MessageKind.TEXT.value
    media_url: str | None = None
    filename: str | None = None


# ── Session types ─────────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class PairingArtifact:
    """A pairing payload from the client, rendered as a scannable PNG."""

    raw_payload: str
    image: bytes
    issued_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def data_url(self) -> str:
        """The image as a ``data:`` URL, ready for an ``<img src>``."""
        return "data:image/png;base64," + base64.b64encode(self.image).decode("ascii")


@dataclass(frozen=True, slots=True)
class SessionStatus:
    """Snapshot of the session, optionally with the pending pairing artifact."""

    state: SessionState
    artifact: PairingArtifact | None = None
    error: str | None = None

    @property
    def authenticated(self) -> bool:
        return self.state is SessionState.AUTHENTICATED


@dataclass(frozen=True, slots=True)
class RequiresPairing:
    """The session is not authenticated; a human must scan a code first.

    ``artifact`` is set only when one is already cached.
    """

    artifact: PairingArtifact | None = None


@dataclass(frozen=True, slots=True)
class PairingRequired:
    """Gateway outcome telling the caller to show ``artifact`` and retry."""

    artifact: PairingArtifact

    @property
    def succeeded(self) -> bool:
        return False


DispatchOutcome = Union[SendResult, PairingRequired]


# ── Transport configuration ───────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class ApiKeyConfig:
    """Configuration for the hosted API-key transport."""

    instance_id: str
    access_token: str
    endpoint: str = DEFAULT_API_ENDPOINT
    timeout_seconds: float = 10.0


@dataclass(frozen=True, slots=True)
class SessionConfig:
    """Configuration for the paired-session transport.

    ``client_factory`` builds the client handle; it is called at most once
    per process. ``renderer`` turns a raw pairing payload into PNG bytes.
    """

    client_factory: Callable[[], SessionClient]
    renderer: Callable[[str], bytes] | None = None
    pairing_timeout_ms: int = DEFAULT_PAIRING_TIMEOUT_MS
