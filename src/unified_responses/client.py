"""Async client for Responses-compatible APIs."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from typing import Any, cast

import httpx

from unified_responses.config import ResponsesConfig
from unified_responses.errors import FormatError, ProviderError
from unified_responses.options import (
    drop_preserved_paths,
    merge_input,
    merge_text,
    normalize,
    preserve_paths,
    split_option,
)
from unified_responses.pricing import get_pricing
from unified_responses.prompt import Functions, add_function_outputs
from unified_responses.providers import ProviderInfo, ProviderRegistry
from unified_responses.response import PricingLookup, process_response
from unified_responses.schema import build_output
from unified_responses.stream import StreamCallback, iterate, pump
from unified_responses.types import Response, StreamResult

_RESPONSES_PATH = "/responses"
_MODELS_PATH = "/models"

# Settings carried from a previous response into a follow-up; ``text.format`` is
# never carried over.
PRESERVED_PATHS = (("model",), ("reasoning", "effort"), ("text", "verbosity"))


class ResponsesClient:
    """High-level coordinator for Responses API calls across providers.

    One ``httpx.AsyncClient`` is opened per provider on first use; close them
    with :meth:`aclose` or by using the client as an async context manager.
    """

    _logger = logging.getLogger(__name__)

    def __init__(
        self,
        config: ResponsesConfig | None = None,
        *,
        registry: ProviderRegistry | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        pricing_lookup: PricingLookup = get_pricing,
    ) -> None:
        self._config = config or (registry.config if registry else ResponsesConfig())
        self._registry = registry or ProviderRegistry(self._config)
        self._transport = transport
        self._pricing_lookup = pricing_lookup
        self._clients: dict[str, httpx.AsyncClient] = {}

    @property
    def config(self) -> ResponsesConfig:
        return self._config

    @property
    def registry(self) -> ProviderRegistry:
        return self._registry

    async def aclose(self) -> None:
        """Close the underlying HTTP clients."""
        clients, self._clients = list(self._clients.values()), {}
        for client in clients:
            await client.aclose()

    async def __aenter__(self) -> ResponsesClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    def prepare_payload(self, options: Any) -> dict[str, Any]:
        """Normalize options into a request body.

        A ``schema`` option is compiled into ``text.format``; other ``text``
        settings are kept. A missing model falls back to the configured default.
        """
        schema, options = split_option(options, "schema")
        payload = normalize(options)
        if schema is not None:
            payload = merge_text(payload, {"format": build_output(schema)})

        if "model" not in payload:
            self._logger.warning(
                "No model specified; using default %r. Set the model option explicitly.",
                self._config.default_model,
            )
            payload["model"] = self._config.default_model
        return payload

    def build_request(self, options: Any) -> tuple[dict[str, Any], ProviderInfo]:
        """Return the request body with its canonical model, and the provider to send it to."""
        preference, options = split_option(options, "provider_warnings")
        payload, provider = self._registry.assign_model(self.prepare_payload(options))
        self._registry.warn_on_unsupported(provider, payload, preference)
        return payload, provider

    async def request(
        self,
        provider: str | ProviderInfo,
        method: str,
        url: str,
        json: Any = None,
    ) -> Response:
        """Send one authenticated request and wrap the JSON body in a :class:`Response`.

        Raises:
            ProviderError: the API answered with an error status.
        """
        provider = self._registry.get_provider(provider)
        self._logger.debug("%s %s%s", method, provider.base_url, url)
        response = await self._http(provider).request(method, url, headers=self._headers(provider), json=json)
        return Response(body=self._json_or_error(provider, response), provider=provider.id)

    async def create(self, options: Any = None, /, **kwargs: Any) -> Response:
        """Create a response.

        ``options`` is a mapping, a sequence of ``(key, value)`` pairs, or a
        string used as the ``input``; keyword arguments are merged in. A callable
        ``stream`` option receives every streamed event as it arrives.
        """
        options = merge_input(options, kwargs)
        callback, options = split_option(options, "stream")

        if callback is None:
            payload, provider = self.build_request(options)
            response = await self.request(provider, "POST", _RESPONSES_PATH, json=payload)
        elif callable(callback):
            response = await self.stream_with_callback(callback, options)
        else:
            raise FormatError(f"The stream option must be a callable, got: {callback!r}")

        return process_response(response, self._pricing_lookup)

    async def follow_up(self, previous: Response, options: Any = None, /, **kwargs: Any) -> Response:
        """Create a response that continues ``previous``.

        The model, reasoning effort and text verbosity of the previous response
        are reused unless given again. Carried-over settings the target provider
        does not support are dropped.
        """
        options = merge_input(options, kwargs)
        schema, options = split_option(options, "schema")
        user_options = normalize(options)

        merged = {**user_options, "previous_response_id": previous.body.get("id")}
        merged = preserve_paths(merged, previous.body, PRESERVED_PATHS)
        provider, _model = self._registry.resolve_model(merged.get("model", self._config.default_model))
        merged = drop_preserved_paths(merged, previous.body, user_options, provider.unsupported_paths)

        if schema is not None:
            merged["schema"] = schema
        return await self.create(merged)

    async def run(self, options: Any, functions: Functions) -> list[Response]:
        """Run a conversation, answering function calls until the model stops asking.

        ``functions`` maps function names to callables taking the parsed
        arguments. Returns every response in order; the last one has no
        function calls.
        """
        responses = [await self.create(options)]
        while responses[-1].function_calls:
            latest = responses[-1]
            outputs = add_function_outputs({"input": []}, latest.function_calls, functions)
            responses.append(await self.follow_up(latest, outputs))
        return responses

    async def stream_with_callback(self, callback: StreamCallback, options: Any) -> Response:
        """Stream a response into ``callback`` and return the completed response.

        ``callback`` gets a :class:`StreamEvent` or a :class:`StreamChunkError`
        for every record and may be a coroutine function. Returning ``False``
        stops the stream.
        """
        _ignored, options = split_option(options, "stream")
        payload, provider = self.build_request(options)
        payload["stream"] = True

        async with self._http(provider).stream(
            "POST",
            _RESPONSES_PATH,
            headers=self._headers(provider),
            json=payload,
        ) as response:
            if response.status_code >= 400:
                await response.aread()
                raise ProviderError.from_response(provider.id, response)
            body = await pump(response.aiter_text(), callback)

        return Response(body=body or {}, provider=provider.id)

    def stream(self, options: Any = None, /, **kwargs: Any) -> AsyncIterator[StreamResult]:
        """Return an async iterator over streamed events and chunk errors.

        Nothing is sent until iteration starts.
        """
        options = merge_input(options, kwargs)
        return iterate(lambda callback: self.stream_with_callback(callback, options))

    async def list_models(self, match: str = "") -> list[dict[str, Any]]:
        """List OpenAI models whose id contains ``match``."""
        response = await self.request("openai", "GET", _MODELS_PATH)
        models = response.body.get("data") or []
        return [model for model in models if match in str(model.get("id", ""))]

    def _http(self, provider: ProviderInfo) -> httpx.AsyncClient:
        client = self._clients.get(provider.id)
        if client is None:
            client = httpx.AsyncClient(
                base_url=provider.base_url,
                timeout=self._config.timeout_s,
                transport=self._transport,
            )
            self._clients[provider.id] = client
        return client

    def _headers(self, provider: ProviderInfo) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._registry.fetch_api_key(provider)}",
            "Content-Type": "application/json",
        }

    @staticmethod
    def _json_or_error(provider: ProviderInfo, response: httpx.Response) -> dict[str, Any]:
        if response.status_code >= 400:
            raise ProviderError.from_response(provider.id, response)
        return cast(dict[str, Any], response.json())
