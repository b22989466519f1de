"""Holder for the generation-service credential. Never part of saved records."""

from __future__ import annotations
from typing import Optional

from ..errors import ConfigurationError, ValidationError
from ..interfaces import KeyValueStore

CREDENTIAL_KEY = "openai_api_key"


class CredentialStore:
    def __init__(self, kv: KeyValueStore, *, key: str = CREDENTIAL_KEY) -> None:
        self._kv = kv
        self._key = key

    def get(self) -> Optional[str]:
        value = self._kv.get(self._key)
        return value if value and value.strip() else None

    def set(self, value: str) -> None:
        value = (value or "").strip()
        if not value:
            raise ValidationError("API key cannot be blank.")
        self._kv.set(self._key, value)

    def clear(self) -> None:
        self._kv.remove(self._key)

    def require(self) -> str:
        value = self.get()
        if value is None:
            raise ConfigurationError(
                "API key is not set. Enter your API key in the sidebar settings."
            )
        return value

    def __repr__(self) -> str:
        return f"CredentialStore(configured={self.get() is not None})"
