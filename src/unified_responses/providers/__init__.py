"""Provider definitions for unified_responses."""

from .base import CredentialSource, ProviderInfo
from .registry import IGNORE_WARNINGS, ProviderRegistry

__all__ = [
    "CredentialSource",
    "IGNORE_WARNINGS",
    "ProviderInfo",
    "ProviderRegistry",
]
