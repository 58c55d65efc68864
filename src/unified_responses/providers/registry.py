"""Provider lookup, model resolution and credentials."""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable, Mapping
from typing import Any

from unified_responses.config import Diagnostics, ResponsesConfig
from unified_responses.errors import FormatError, MissingCredentialError, UnknownModelError, UnknownProviderError
from unified_responses.options import get_in
from unified_responses.providers import openai, xai
from unified_responses.providers.base import ProviderInfo

_logger = logging.getLogger(__name__)

# Silences unsupported-option warnings when passed as ``provider_warnings``.
IGNORE_WARNINGS = "ignore"


class ProviderRegistry:
    """Read-only table of providers built once from a config.

    Heuristic model matching walks providers in registration order and the
    first match wins; prefix lists are expected not to overlap.
    """

    def __init__(
        self,
        config: ResponsesConfig | None = None,
        *,
        diagnostics: Diagnostics | None = None,
        providers: Iterable[ProviderInfo] | None = None,
    ) -> None:
        self._config = config or ResponsesConfig()
        self._diagnostics = diagnostics or Diagnostics(_logger)
        if providers is None:
            providers = (openai.definition(self._config), xai.definition(self._config))
        self._providers: tuple[ProviderInfo, ...] = tuple(providers)

    @property
    def config(self) -> ResponsesConfig:
        return self._config

    @property
    def diagnostics(self) -> Diagnostics:
        return self._diagnostics

    def providers(self) -> list[ProviderInfo]:
        return list(self._providers)

    def get(self, identifier: str | ProviderInfo) -> ProviderInfo | None:
        """Return a provider by id (case-insensitive), or None."""
        if isinstance(identifier, ProviderInfo):
            return identifier
        if not isinstance(identifier, str):
            return None
        wanted = identifier.lower()
        return next((p for p in self._providers if p.id == wanted), None)

    def get_provider(self, identifier: str | ProviderInfo) -> ProviderInfo:
        """Return a provider by id or raise UnknownProviderError."""
        provider = self.get(identifier)
        if provider is None:
            raise UnknownProviderError(str(identifier), (p.id for p in self._providers))
        return provider

    def resolve_model(self, model: Any) -> tuple[ProviderInfo, str]:
        """Return ``(provider, canonical_model)`` for a user supplied model string.

        ``"xai:grok-4"`` routes explicitly; a bare name is matched against each
        provider's model prefixes.
        """
        if not isinstance(model, str) or not model:
            raise UnknownModelError(model)

        prefix, sep, name = model.partition(":")
        if sep and name:
            return self.get_provider(prefix), name

        for provider in self._providers:
            if provider.matches_model(model):
                return provider, model
        raise UnknownModelError(model)

    def assign_model(self, payload: Mapping[str, Any]) -> tuple[dict[str, Any], ProviderInfo]:
        """Replace ``payload["model"]`` with its canonical name and return its provider."""
        if "model" not in payload:
            raise FormatError('Missing required "model" option')
        provider, canonical = self.resolve_model(payload["model"])
        return {**payload, "model": canonical}, provider

    def warn_on_unsupported(
        self,
        provider: ProviderInfo,
        options: Mapping[str, Any],
        preference: Any = None,
    ) -> list[str]:
        """Log a warning for each option the provider does not support.

        The request is never blocked. Returns the messages that were logged.
        """
        if preference == IGNORE_WARNINGS or preference is False:
            return []
        emitted = []
        for path, message in provider.unsupported_options:
            if get_in(options, path) is not None:
                _logger.warning(message)
                emitted.append(message)
        return emitted

    def fetch_api_key(self, provider: ProviderInfo) -> str:
        """Return the API key from config sources, then environment variables."""
        for source in provider.config_sources:
            value = self._config.setting(source.setting)
            if value:
                if source.deprecation:
                    self._diagnostics.warn_once(f"{provider.id}:{source.setting}", source.deprecation)
                return value

        for var in provider.env_vars:
            value = os.environ.get(var)
            if value:
                return value

        raise MissingCredentialError(provider.id, provider.name, provider.env_vars)
