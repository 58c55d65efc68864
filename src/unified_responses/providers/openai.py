"""OpenAI provider definition."""

from __future__ import annotations

from unified_responses.config import ResponsesConfig
from unified_responses.providers.base import CredentialSource, ProviderInfo, resolve_base_url

_DEFAULT_BASE_URL = "https://api.openai.com/v1"


def definition(config: ResponsesConfig) -> ProviderInfo:
    """Describe the OpenAI Responses API."""
    return ProviderInfo(
        id="openai",
        name="OpenAI",
        base_url=resolve_base_url(config, "openai_base_url", "OPENAI_BASE_URL", _DEFAULT_BASE_URL),
        config_sources=(
            CredentialSource("openai_api_key"),
            CredentialSource(
                "openai_responses_api_key",
                deprecation=(
                    "The 'openai_responses_api_key' setting is deprecated. "
                    "Use 'openai_api_key' before the next major release."
                ),
            ),
        ),
        env_vars=("OPENAI_API_KEY",),
        model_prefixes=("gpt-", "o1", "o3", "o4"),
    )
