"""xAI provider definition."""

from __future__ import annotations

from unified_responses.config import ResponsesConfig
from unified_responses.providers.base import CredentialSource, ProviderInfo, resolve_base_url

_DEFAULT_BASE_URL = "https://api.x.ai/v1"


def definition(config: ResponsesConfig) -> ProviderInfo:
    """Describe xAI's Responses-compatible API."""
    return ProviderInfo(
        id="xai",
        name="xAI",
        base_url=resolve_base_url(config, "xai_base_url", "XAI_BASE_URL", _DEFAULT_BASE_URL),
        config_sources=(CredentialSource("xai_api_key"),),
        env_vars=("XAI_API_KEY",),
        unsupported_options=(
            (
                ("instructions",),
                "xAI does not yet support the `instructions` option. The request will be sent unchanged.",
            ),
            (
                ("reasoning", "effort"),
                "xAI does not yet support reasoning effort. The request will be sent unchanged.",
            ),
        ),
        model_prefixes=("grok-",),
    )
