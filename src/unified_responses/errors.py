"""Package specific exception hierarchy."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

import httpx

_RETRYABLE_STATUS = frozenset({429, 500, 503})


class UnifiedResponsesError(Exception):
    """Base exception for unified_responses package."""


class FormatError(UnifiedResponsesError):
    """Raised when user supplied options have an unusable shape."""


class SchemaError(UnifiedResponsesError):
    """Raised when a schema specification cannot be compiled."""

    def __init__(self, spec: Any) -> None:
        super().__init__(f"Unsupported schema specification: {spec!r}")
        self.spec = spec


class UnknownProviderError(UnifiedResponsesError):
    """Raised when a model identifier names a provider that is not registered."""

    def __init__(self, provider: str, known: Iterable[str] = ()) -> None:
        known = sorted(known)
        suffix = f" Known providers: {', '.join(known)}." if known else ""
        super().__init__(f"Unknown provider '{provider}'.{suffix}")
        self.provider = provider


class UnknownModelError(UnifiedResponsesError):
    """Raised when no registered provider claims a model identifier."""

    def __init__(self, model: Any) -> None:
        super().__init__(
            f"Unknown model {model!r}. Provide a fully-qualified model "
            "(e.g. 'openai:gpt-4.1') or use a supported model."
        )
        self.model = model


class MissingCredentialError(UnifiedResponsesError):
    """Raised when no API key can be found for a provider."""

    def __init__(self, provider_id: str, provider_name: str, env_vars: Iterable[str]) -> None:
        env_vars = list(env_vars)
        message = f"Missing API key for provider {provider_name} ({provider_id})."
        if env_vars:
            message += (
                f" Set one of {', '.join(env_vars)} in the environment or configure it."
                f" Example: export {env_vars[0]}=..."
            )
        super().__init__(message)
        self.provider = provider_id
        self.env_vars = env_vars


class ProviderError(UnifiedResponsesError):
    """Represents provider-specific HTTP or API errors."""

    def __init__(
        self,
        provider: str,
        message: str,
        status_code: int | None = None,
        *,
        code: str | None = None,
        param: str | None = None,
        type: str | None = None,
    ) -> None:
        suffix = f" (status {status_code})" if status_code is not None else ""
        super().__init__(f"{provider}: {message}{suffix}")
        self.provider = provider
        self.message = message
        self.status_code = status_code
        self.code = code
        self.param = param
        self.type = type

    @classmethod
    def from_response(cls, provider: str, response: httpx.Response) -> ProviderError:
        """Build an error from a non-2xx response, using the API error shape when present."""
        try:
            body: Any = response.json()
        except ValueError:
            body = response.text

        error = body.get("error") if isinstance(body, dict) else None
        if isinstance(error, dict):
            return cls(
                provider,
                error.get("message") or response.reason_phrase,
                status_code=response.status_code,
                code=error.get("code"),
                param=error.get("param"),
                type=error.get("type"),
            )
        return cls(provider, f"Unknown error: {body!r}", status_code=response.status_code)


class StreamChunkError(UnifiedResponsesError):
    """A streamed record that could not be turned into an event.

    Instances are delivered to stream consumers as values; they are not raised.
    """

    kind = "invalid_chunk"

    def __init__(self, chunk: str) -> None:
        super().__init__(f"{self.kind}: {chunk!r}")
        self.chunk = chunk

    def __eq__(self, other: object) -> bool:
        return type(self) is type(other) and self.chunk == other.chunk  # type: ignore[attr-defined]

    def __hash__(self) -> int:
        return hash((type(self), self.chunk))


class JsonDecodeError(StreamChunkError):
    """The record had both prefixes but its data was not valid JSON."""

    kind = "json_decode_error"


class InvalidChunkFormat(StreamChunkError):
    """The record was missing its ``event:`` or ``data:`` prefix."""

    kind = "invalid_chunk_format"


class InvalidChunkStructure(StreamChunkError):
    """The record was not an event line followed by a data line."""

    kind = "invalid_chunk_structure"


class JsonTokenError(UnifiedResponsesError):
    """Raised when streamed text is not a valid JSON token sequence."""


def is_retryable(error: BaseException) -> bool:
    """Return True when retrying the failed call may succeed."""
    if isinstance(error, ProviderError):
        return error.status_code in _RETRYABLE_STATUS
    return isinstance(error, (httpx.TimeoutException, httpx.RemoteProtocolError, httpx.ReadError))
