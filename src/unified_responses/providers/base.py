"""Provider descriptors shared by every Responses-compatible API."""

from __future__ import annotations

import os
from dataclasses import dataclass

from unified_responses.config import ResponsesConfig

OptionPath = tuple[str, ...]


@dataclass(frozen=True)
class CredentialSource:
    """A config setting that may hold an API key.

    ``deprecation`` is the notice logged when a deprecated setting supplies the key.
    """

    setting: str
    deprecation: str | None = None


@dataclass(frozen=True)
class ProviderInfo:
    """Describes one upstream API implementation."""

    id: str
    name: str
    base_url: str
    config_sources: tuple[CredentialSource, ...]
    env_vars: tuple[str, ...]
    unsupported_options: tuple[tuple[OptionPath, str], ...] = ()
    model_prefixes: tuple[str, ...] = ()

    @property
    def unsupported_paths(self) -> list[OptionPath]:
        return [path for path, _message in self.unsupported_options]

    def matches_model(self, model: str) -> bool:
        """Return True when ``model`` starts with one of this provider's prefixes."""
        return any(model.startswith(prefix) for prefix in self.model_prefixes)


def resolve_base_url(config: ResponsesConfig, setting: str, env_var: str, default: str) -> str:
    """Pick a base URL from config, then the environment, then ``default``."""
    return config.setting(setting) or os.environ.get(env_var) or default
