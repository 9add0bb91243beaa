"""
wadispatch: WhatsApp dispatch gateway for the sales dashboard.

Turns "send this message to this buyer" into a delivered WhatsApp message,
through either of two transports:

- a hosted API authenticated by a fixed instance id and access token, or
- a paired WhatsApp session driven through a browser-automated client,
  which has to be linked to a phone by scanning a QR code first.

Quick start: hosted API::

    from wadispatch import ApiKeyConfig, ApiKeyProvider, DispatchGateway, DispatchRequest

    gateway = DispatchGateway(api_key=ApiKeyProvider(ApiKeyConfig(
        instance_id="6728BD...",
        access_token="67277e...",
    )))
    result = gateway.dispatch(DispatchRequest(number="919812345678", message="Thanks for your order!"))
    if result.succeeded:
        print(result.detail)

Quick start: paired session::

    from wadispatch import DispatchGateway, PairingRequired, SessionConfig, SessionManager, TransportKind

    session = SessionManager(SessionConfig(client_factory=make_client))
    gateway = DispatchGateway(session=session)
    outcome = gateway.dispatch(request, TransportKind.SESSION)
    if isinstance(outcome, PairingRequired):
        show_to_operator(outcome.artifact.data_url)

HTTP routes::

    from wadispatch.api import create_app

    app = create_app(client_factory=make_client)

For testing::

    from wadispatch import FakeSessionClient, MockTransport

Module overview
---------------
- ``types``        - Message records, SendResult, session types, configs
- ``errors``       - Exception hierarchy
- ``phone/``       - Recipient number validation
- ``builder``      - Validated message construction
- ``gateway``      - DispatchGateway facade
- ``providers/``   - ApiKeyProvider
- ``session/``     - SessionManager, state machine, PairingBroker, QR rendering
- ``api``          - FastAPI routes
- ``settings``     - Environment-driven settings for the routes
- ``mock``         - MockTransport, FakeSessionClient

What this library does NOT own:
- Sales and catalog records
- Operator authentication
- The WhatsApp client implementation (only its interface)
"""

from .builder import build_message
from .errors import (
    DispatchError,
    NetworkError,
    PairingCancelledError,
    PairingTimeoutError,
    ProviderError,
    SessionError,
    ValidationError,
)
from .gateway import DispatchGateway
from .mock import FakeSessionClient, MockTransport
from .phone import is_valid_phone, to_chat_id
from .providers import ApiKeyProvider, Transport
from .session import PairingBroker, SessionClient, SessionEvent, SessionManager, SessionStateMachine, render_qr
from .types import (
    ApiKeyConfig,
    DispatchOutcome,
    DispatchRequest,
    MediaMessage,
    MessageKind,
    OutboundMessage,
    PairingArtifact,
    PairingRequired,
    RequiresPairing,
    SendResult,
    SessionConfig,
    SessionState,
    SessionStatus,
    TextMessage,
    TransportKind,
)

__all__ = [
    # Gateway
    "DispatchGateway",
    "build_message",
    # Transports
    "Transport",
    "ApiKeyProvider",
    "MockTransport",
    # Session
    "SessionManager",
    "SessionStateMachine",
    "SessionEvent",
    "SessionClient",
    "PairingBroker",
    "FakeSessionClient",
    "render_qr",
    # Types
    "ApiKeyConfig",
    "DispatchOutcome",
    "DispatchRequest",
    "MediaMessage",
    "MessageKind",
    "OutboundMessage",
    "PairingArtifact",
    "PairingRequired",
    "RequiresPairing",
    "SendResult",
    "SessionConfig",
    "SessionState",
    "SessionStatus",
    "TextMessage",
    "TransportKind",
    # Errors
    "DispatchError",
    "NetworkError",
    "PairingCancelledError",
    "PairingTimeoutError",
    "ProviderError",
    "SessionError",
    "ValidationError",
    # Phone
    "is_valid_phone",
    "to_chat_id",
]
