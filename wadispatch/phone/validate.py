"""Recipient number validation.

Numbers are accepted exactly as typed by the operator: 10 to 15 digits,
country code included, no ``+`` and no punctuation. No normalization is
attempted, so a number that fails here never reaches a transport.
"""

from __future__ import annotations

import re

_PHONE_RE = re.compile(r"\d{10,15}", re.ASCII)

CHAT_ID_SUFFIX = "@c.us"


def is_valid_phone(number: str | None) -> bool:
    """Return True if ``number`` is 10 to 15 ASCII digits and nothing else."""
    if not number:
        return False
    return _PHONE_RE.fullmatch(number) is not None


def to_chat_id(number: str) -> str:
    """Format a validated number as the session client's chat id."""
    return f"{number}{CHAT_ID_SUFFIX}"
