"""Client configuration and one-time diagnostics."""

from __future__ import annotations

import logging
import threading

from pydantic import BaseModel, ConfigDict

_DEFAULT_MODEL = "gpt-4.1-mini"


class ResponsesConfig(BaseModel):
    """Explicit settings for a client.

    Every credential and base URL is optional here; the provider registry falls
    back to environment variables and then to built-in defaults.
    """

    model_config = ConfigDict(frozen=True)

    openai_api_key: str | None = None
    # Legacy name kept for existing deployments; using it logs a deprecation notice.
    openai_responses_api_key: str | None = None
    xai_api_key: str | None = None
    openai_base_url: str | None = None
    xai_base_url: str | None = None
    default_model: str = _DEFAULT_MODEL
    timeout_s: float = 60.0

    def setting(self, name: str) -> str | None:
        """Return a string setting by field name, treating empty values as unset."""
        value = getattr(self, name, None)
        return value or None


class Diagnostics:
    """Warnings collected while a client runs.

    Messages registered through :meth:`warn_once` are logged the first time
    their key is seen and recorded in :attr:`messages`; later calls with the
    same key are ignored.
    """

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or logging.getLogger("unified_responses")
        self._lock = threading.Lock()
        self._seen: set[str] = set()
        self.messages: list[str] = []

    def warn_once(self, key: str, message: str) -> bool:
        """Log ``message`` unless ``key`` was already reported. Returns True when logged."""
        with self._lock:
            if key in self._seen:
                return False
            self._seen.add(key)
            self.messages.append(message)
        self._logger.warning(message)
        return True
