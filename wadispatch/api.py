"""HTTP routes for the sales dashboard.

``POST /api/send-whatsapp`` sends through the hosted API-key transport.
``GET /api/whatsapp`` reports whether the paired session is ready, handing
back a pairing code to scan when it is not. ``POST /api/whatsapp`` sends
through the paired session.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from fastapi import FastAPI
from fastapi.responses import JSONResponse
from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from .gateway import QR_FAILED_DETAIL, DispatchGateway
from .providers.api_key import NETWORK_DETAIL, ApiKeyProvider
from .session.client import SessionClient
from .session.manager import SEND_FAILED_DETAIL, SessionManager
from .settings import Settings, get_settings
from .types import (
    ERROR_VALIDATION,
    DispatchRequest,
    PairingRequired,
    SendResult,
    SessionConfig,
    TransportKind,
)

logger = logging.getLogger(__name__)


class SendRequest(BaseModel):
    """Body of both send routes. Fields are optional so the gateway reports
    missing input with its own messages instead of a schema error."""

    model_config = ConfigDict(coerce_numbers_to_str=True)

    number: str | None = Field(default=None, validation_alias=AliasChoices("number", "phoneNumber"))
    message: str | None = None
    type: str = "text"
    media_url: str | None = None
    filename: str | None = None

    def to_dispatch(self) -> DispatchRequest:
        return DispatchRequest(
            number=self.number,
            message=self.message,
            type=self.type,
            media_url=self.media_url,
            filename=self.filename,
        )


def build_gateway(
    settings: Settings,
    client_factory: Callable[[], SessionClient] | None = None,
) -> DispatchGateway:
    """Wire transports from settings. The session needs a client factory."""
    api_key_config = settings.api_key_config()
    api_key = ApiKeyProvider(api_key_config) if api_key_config else None
    session = None
    if client_factory is not None:
        session = SessionManager(
            SessionConfig(client_factory=client_factory, pairing_timeout_ms=settings.qr_timeout_ms)
        )
    return DispatchGateway(api_key=api_key, session=session)


def _status_code(result: SendResult) -> int:
    if result.success:
        return 200
    if result.error_code == ERROR_VALIDATION:
        return 400
    return 500


def create_app(
    gateway: DispatchGateway | None = None,
    *,
    client_factory: Callable[[], SessionClient] | None = None,
    settings: Settings | None = None,
) -> FastAPI:
    """Build the FastAPI app around one long-lived gateway."""
    if gateway is None:
        gateway = build_gateway(settings or get_settings(), client_factory)

    app = FastAPI(title="wadispatch", version="0.1.0")
    app.state.gateway = gateway

    @app.post("/api/send-whatsapp")
    def send_whatsapp(body: SendRequest) -> JSONResponse:
        if gateway.api_key is None:
            return JSONResponse({"success": False, "message": "WhatsApp API is not configured."}, status_code=503)
        try:
            result = gateway.dispatch(body.to_dispatch(), TransportKind.API_KEY)
        except Exception:
            logger.exception("Error in send-whatsapp route")
            return JSONResponse({"success": False, "message": NETWORK_DETAIL}, status_code=500)
        assert isinstance(result, SendResult)  # the API-key path never asks for pairing
        return JSONResponse({"success": result.success, "message": result.detail}, status_code=_status_code(result))

    @app.get("/api/whatsapp")
    def session_status() -> JSONResponse:
        if gateway.session is None:
            return JSONResponse({"authenticated": False, "error": "WhatsApp session is not configured."}, status_code=503)
        try:
            status = gateway.session_status()
        except Exception:
            logger.exception("Error in whatsapp status route")
            return JSONResponse({"authenticated": False, "error": QR_FAILED_DETAIL}, status_code=500)
        if status.authenticated:
            return JSONResponse({"authenticated": True})
        if status.artifact is not None:
            return JSONResponse({"authenticated": False, "qrCode": status.artifact.data_url})
        return JSONResponse({"authenticated": False, "error": status.error}, status_code=500)

    @app.post("/api/whatsapp")
    def send_via_session(body: SendRequest) -> JSONResponse:
        if gateway.session is None:
            return JSONResponse({"success": False, "error": "WhatsApp session is not configured."}, status_code=503)
        try:
            outcome = gateway.dispatch(body.to_dispatch(), TransportKind.SESSION)
        except Exception:
            logger.exception("Error in whatsapp send route")
            return JSONResponse({"success": False, "error": SEND_FAILED_DETAIL}, status_code=500)
        if isinstance(outcome, PairingRequired):
            return JSONResponse({"success": False, "requiresQr": True, "qrCode": outcome.artifact.data_url})
        if outcome.success:
            return JSONResponse({"success": True})
        return JSONResponse({"success": False, "error": outcome.detail}, status_code=_status_code(outcome))

    return app
