"""Deployment settings for the HTTP app, read from the environment."""

from __future__ import annotations

import os
from functools import lru_cache

from pydantic import BaseModel

from .types import DEFAULT_API_ENDPOINT, DEFAULT_PAIRING_TIMEOUT_MS, ApiKeyConfig


class Settings(BaseModel):
    # --- Hosted API-key transport ---
    api_instance_id: str | None = os.getenv("WA_API_INSTANCE_ID")
    api_access_token: str | None = os.getenv("WA_API_ACCESS_TOKEN")
    api_endpoint: str = os.getenv("WA_API_ENDPOINT", DEFAULT_API_ENDPOINT)

    # --- Paired session transport ---
    # How long a status check or send waits for a pairing code to appear.
    qr_timeout_ms: int = int(os.getenv("WA_QR_TIMEOUT_MS", str(DEFAULT_PAIRING_TIMEOUT_MS)))

    def api_key_config(self) -> ApiKeyConfig | None:
        """Return the API-key transport config, or None if credentials are unset."""
        if not self.api_instance_id or not self.api_access_token:
            return None
        return ApiKeyConfig(
            instance_id=self.api_instance_id,
            access_token=self.api_access_token,
            endpoint=self.api_endpoint,
        )


@lru_cache
def get_settings() -> Settings:
    return Settings()
