"""Message transports."""

from .api_key import ApiKeyProvider
from .base import Transport

__all__ = ["ApiKeyProvider", "Transport"]
