"""Hosted WhatsApp API provider authenticated by instance id and access token."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

from wadispatch.errors import NetworkError, ProviderError
from wadispatch.types import (
    ERROR_NETWORK,
    ERROR_PROVIDER,
    ApiKeyConfig,
    MediaMessage,
    OutboundMessage,
    SendResult,
    TextMessage,
)

logger = logging.getLogger(__name__)

SENT_DETAIL = "Message sent successfully."
REJECTED_DETAIL = "Failed to send message."
NETWORK_DETAIL = "An error occurred while sending the message."


class ApiKeyProvider:
    """Sends WhatsApp messages through a hosted API with fixed credentials.

    One POST per message, no retries. A rejected or failed call is terminal
    and comes back as a failed ``SendResult``.
    """

    def __init__(self, config: ApiKeyConfig) -> None:
        if not config.instance_id:
            raise ValueError("instance_id is required")
        if not config.access_token:
            raise ValueError("access_token is required")
        if not config.endpoint:
            raise ValueError("endpoint is required")
        self._config = config
        self._client = httpx.Client(timeout=config.timeout_seconds)

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self._client.close()

    def __enter__(self) -> ApiKeyProvider:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    # ── Public API ────────────────────────────────────────────────

    def send(self, message: OutboundMessage) -> SendResult:
        """Send a message synchronously."""
        if not isinstance(message, (TextMessage, MediaMessage)):
            return SendResult.fail(
                f"Unsupported message type: {type(message).__name__}",
                error_code=ERROR_PROVIDER,
            )

        payload = self._build_payload(message)
        try:
            data = self._post(payload)
        except NetworkError as exc:
            logger.error("WhatsApp API unreachable for %s: %s", message.to, exc)
            return SendResult.fail(NETWORK_DETAIL, error_code=ERROR_NETWORK)

        try:
            _check_accepted(data)
        except ProviderError as exc:
            logger.error("WhatsApp API rejected message to %s: %s", message.to, exc.payload)
            return SendResult.fail(REJECTED_DETAIL, error_code=ERROR_PROVIDER, provider_payload=exc.payload)

        logger.info("WhatsApp %s message sent via API to %s", message.kind.value, message.to)
        return SendResult.ok(SENT_DETAIL, provider_payload=data)

    async def send_async(self, message: OutboundMessage) -> SendResult:
        """Send a message asynchronously (runs sync send in a thread)."""
        return await asyncio.to_thread(self.send, message)

    # ── Private helpers ───────────────────────────────────────────

    def _build_payload(self, message: OutboundMessage) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "number": message.to,
            "type": message.kind.value,
            "message": message.body,
            "instance_id": self._config.instance_id,
            "access_token": self._config.access_token,
        }
        if isinstance(message, MediaMessage):
            payload["media_url"] = message.media_url
            if message.filename:
                payload["filename"] = message.filename
        return payload

    def _post(self, payload: dict[str, Any]) -> dict[str, Any]:
        try:
            response = self._client.post(
                self._config.endpoint,
                json=payload,
                headers={"Content-Type": "application/json"},
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            status_code = exc.response.status_code
            raise NetworkError(
                f"WhatsApp API error ({status_code}): {exc.response.text}",
                status_code=status_code,
            ) from exc
        except httpx.HTTPError as exc:
            raise NetworkError(f"Network error communicating with WhatsApp API: {exc}") from exc

        try:
            data = response.json()
        except ValueError as exc:
            raise NetworkError("WhatsApp API returned invalid JSON") from exc

        if not isinstance(data, dict):
            raise NetworkError("WhatsApp API returned non-object JSON")
        return data


def _check_accepted(data: dict[str, Any]) -> None:
    """Raise ProviderError unless the provider reported success."""
    if data.get("success"):
        return
    raise ProviderError("provider rejected message", payload=data)
