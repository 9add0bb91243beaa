"""Dispatch gateway, the single entry point for sending messages.

The gateway validates raw input, picks a transport and hands back a
uniform outcome. For the session transport it also runs the pairing
dance: if the device is not paired yet, callers get a pairing code to
show instead of a delivery result.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from .builder import build_from_request
from .errors import PairingCancelledError, PairingTimeoutError, SessionError, ValidationError
from .types import (
    ERROR_SESSION,
    ERROR_VALIDATION,
    DispatchOutcome,
    DispatchRequest,
    PairingRequired,
    RequiresPairing,
    SendResult,
    SessionState,
    SessionStatus,
    TransportKind,
)

if TYPE_CHECKING:
    from .providers.base import Transport
    from .session.manager import SessionManager
    from .types import OutboundMessage

logger = logging.getLogger(__name__)

QR_FAILED_DETAIL = "Failed to generate QR code."
AUTH_FAILED_DETAIL = "WhatsApp authentication failed. Restart the service to pair again."


class DispatchGateway:
    """Routes dispatch requests to the API-key or session transport.

    Usage::

        from wadispatch import ApiKeyConfig, ApiKeyProvider, DispatchGateway, DispatchRequest

        gateway = DispatchGateway(api_key=ApiKeyProvider(ApiKeyConfig(instance_id="...", access_token="...")))
        result = gateway.dispatch(DispatchRequest(number="919812345678", message="Thanks for your order!"))
        if result.succeeded:
            print(result.detail)

    Either transport may be omitted; asking for a missing one raises
    :class:`SessionError` (session) or :class:`ValueError` (API key).
    """

    def __init__(
        self,
        *,
        api_key: Transport | None = None,
        session: SessionManager | None = None,
        pairing_timeout_ms: int | None = None,
    ) -> None:
        self.api_key = api_key
        self.session = session
        self._pairing_timeout_ms = pairing_timeout_ms

    @property
    def pairing_timeout_ms(self) -> int:
        if self._pairing_timeout_ms is not None:
            return self._pairing_timeout_ms
        if self.session is not None:
            return self.session.pairing_timeout_ms
        return 0

    # ── Sending ───────────────────────────────────────────────────

    def dispatch(
        self,
        request: DispatchRequest,
        transport: TransportKind | str = TransportKind.API_KEY,
    ) -> DispatchOutcome:
        """Validate ``request`` and deliver it through ``transport``.

        Returns a :class:`SendResult`, or :class:`PairingRequired` when the
        session transport needs a human to scan a code first.

        Raises:
            ValueError: if ``transport`` is not a known :class:`TransportKind`.
        """
        transport = TransportKind(transport)
        try:
            message = build_from_request(request)
        except ValidationError as exc:
            logger.info("Rejected dispatch to %r: %s", request.number, exc)
            return SendResult.fail(str(exc), error_code=ERROR_VALIDATION)

        if transport is TransportKind.SESSION:
            outcome = self._dispatch_session(message)
        else:
            outcome = self._dispatch_api_key(message)

        _log_outcome(message, transport, outcome)
        return outcome

    async def dispatch_async(
        self,
        request: DispatchRequest,
        transport: TransportKind | str = TransportKind.API_KEY,
    ) -> DispatchOutcome:
        """Dispatch asynchronously (runs sync dispatch in a thread)."""
        return await asyncio.to_thread(self.dispatch, request, transport)

    def _dispatch_api_key(self, message: OutboundMessage) -> SendResult:
        if self.api_key is None:
            raise ValueError("API-key transport is not configured")
        return self.api_key.send(message)

    def _dispatch_session(self, message: OutboundMessage) -> DispatchOutcome:
        session = self._require_session()
        session.initialize()

        outcome = session.send_via_session(message)
        if not isinstance(outcome, RequiresPairing):
            return outcome
        if outcome.artifact is not None:
            return PairingRequired(artifact=outcome.artifact)
        if session.state is SessionState.AUTH_FAILED:
            return SendResult.fail(AUTH_FAILED_DETAIL, error_code=ERROR_SESSION)

        try:
            artifact = session.broker.await_artifact(self.pairing_timeout_ms)
        except PairingTimeoutError:
            return SendResult.fail(QR_FAILED_DETAIL, error_code=ERROR_SESSION)
        except PairingCancelledError:
            # Paired or failed while we waited; a paired session can send now.
            outcome = session.send_via_session(message)
            if isinstance(outcome, SendResult):
                return outcome
            return SendResult.fail(AUTH_FAILED_DETAIL, error_code=ERROR_SESSION)
        return PairingRequired(artifact=artifact)

    # ── Session status ────────────────────────────────────────────

    def session_status(self, timeout_ms: int | None = None) -> SessionStatus:
        """Report whether the session is paired, waiting for a code if needed.

        Starts the session on first use. While unpaired, returns the cached
        pairing code or waits up to ``timeout_ms`` for the next one.
        """
        session = self._require_session()
        session.initialize()

        status = session.status()
        if status.authenticated or status.artifact is not None:
            return status
        if status.state is SessionState.AUTH_FAILED:
            return SessionStatus(state=status.state, error=AUTH_FAILED_DETAIL)

        timeout = self.pairing_timeout_ms if timeout_ms is None else timeout_ms
        try:
            artifact = session.broker.await_artifact(timeout)
        except (PairingTimeoutError, PairingCancelledError):
            status = session.status()
            if status.authenticated:
                return status
            if status.state is SessionState.AUTH_FAILED:
                return SessionStatus(state=status.state, error=AUTH_FAILED_DETAIL)
            return SessionStatus(state=status.state, error=QR_FAILED_DETAIL)

        return SessionStatus(state=session.state, artifact=artifact)

    def _require_session(self) -> SessionManager:
        if self.session is None:
            raise SessionError("Session transport is not configured")
        return self.session


def _log_outcome(message: OutboundMessage, transport: TransportKind, outcome: DispatchOutcome) -> None:
    if isinstance(outcome, PairingRequired):
        logger.info("Dispatch to %s via %s needs pairing", message.to, transport.value)
    elif outcome.success:
        logger.info("Dispatched %s message to %s via %s", message.kind.value, message.to, transport.value)
    else:
        logger.warning(
            "Dispatch of %s message to %s via %s failed: [%s] %s",
            message.kind.value,
            message.to,
            transport.value,
            outcome.error_code,
            outcome.detail,
        )
