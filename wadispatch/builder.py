"""Builds validated outbound messages from raw caller input."""

from __future__ import annotations

from .errors import ValidationError
from .phone import is_valid_phone
from .types import DispatchRequest, MediaMessage, MessageKind, OutboundMessage, TextMessage

MISSING_FIELDS = "Number and message are required."
INVALID_NUMBER = "Invalid phone number format."
INVALID_KIND = "Message type must be 'text' or 'media'."
MISSING_MEDIA = "media_url is required for media type messages."


def build_message(
    number: str | None,
    body: str | None,
    kind: str | MessageKind = MessageKind.TEXT,
    media_url: str | None = None,
    filename: str | None = None,
) -> OutboundMessage:
    """Validate input and return the matching message record.

    Checks run in a fixed order and the first failure wins, so callers
    always see the same error for the same input.

    Raises:
        ValidationError: with a user-facing detail string.
    """
    if not number or not body:
        raise ValidationError(MISSING_FIELDS)

    if not is_valid_phone(number):
        raise ValidationError(INVALID_NUMBER)

    try:
        kind = MessageKind(kind)
    except ValueError:
        raise ValidationError(INVALID_KIND) from None

    if kind is MessageKind.MEDIA:
        if not media_url:
            raise ValidationError(MISSING_MEDIA)
        return MediaMessage(to=number, body=body, media_url=media_url, filename=filename or None)

    return TextMessage(to=number, body=body)


def build_from_request(request: DispatchRequest) -> OutboundMessage:
    """Shortcut for :func:`build_message` over a :class:`DispatchRequest`."""
    return build_message(
        request.number,
        request.message,
        request.type or MessageKind.TEXT,
        media_url=request.media_url,
        filename=request.filename,
    )
