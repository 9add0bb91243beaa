"""Phone number validation utilities."""

from .validate import CHAT_ID_SUFFIX, is_valid_phone, to_chat_id

__all__ = [
    "CHAT_ID_SUFFIX",
    "is_valid_phone",
    "to_chat_id",
]
