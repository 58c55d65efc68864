"""Passes that derive convenience fields from a response body.

Each pass takes a :class:`Response` and returns an updated copy. Passes are
idempotent and never raise on bad model output: parse failures are recorded in
``Response.parse_error`` under a key per pass (``"json"``, ``"function_calls"``).
"""

from __future__ import annotations

import json
from collections.abc import Callable, Iterable
from decimal import Decimal
from typing import Any

from unified_responses.options import get_in
from unified_responses.pricing import ModelPricing, get_pricing
from unified_responses.schema import is_wrapped_array_schema
from unified_responses.types import Cost, FunctionCall, Response

_MILLION = Decimal(1_000_000)
_ZERO = Decimal(0)

PricingLookup = Callable[[str], ModelPricing | None]


def extract_text(response: Response) -> Response:
    """Set ``text`` from the first assistant message in the body.

    Only the first assistant output is read; the API has been seen to return
    the same assistant message twice.
    """
    if response.text is not None:
        return response

    outputs = response.body.get("output") or []
    assistant = next((o for o in outputs if isinstance(o, dict) and o.get("role") == "assistant"), None)
    parts: list[str] = []
    if assistant is not None:
        for content in assistant.get("content") or []:
            if isinstance(content, dict) and content.get("type") == "output_text":
                parts.append(content.get("text") or "")

    return response.model_copy(update={"text": "\n".join(parts)})


def extract_json(response: Response) -> Response:
    """Parse the text of a structured output response into ``parsed``.

    Root arrays that were wrapped by :func:`unified_responses.schema.build_output`
    are unwrapped again.
    """
    schema = get_in(response.body, ["text", "format", "schema"])
    if schema is None:
        return response

    response = extract_text(response)
    try:
        parsed = json.loads(response.text or "")
    except json.JSONDecodeError as exc:
        return response.model_copy(update={"parse_error": _with_error(response, "json", str(exc))})

    if is_wrapped_array_schema(schema) and isinstance(parsed, dict):
        parsed = parsed.get("items", parsed)
    return response.model_copy(update={"parsed": parsed})


def extract_function_calls(response: Response) -> Response:
    """Collect ``function_call`` outputs with their JSON arguments parsed."""
    if response.function_calls is not None:
        return response

    calls: list[FunctionCall] = []
    errors: list[str] = []
    for output in response.body.get("output") or []:
        if not isinstance(output, dict) or output.get("type") != "function_call":
            continue
        name = output.get("name")
        call_id = output.get("call_id")
        try:
            arguments = json.loads(output.get("arguments") or "")
        except (json.JSONDecodeError, TypeError) as exc:
            errors.append(f"Function call '{name}' ({call_id}): {exc}")
            continue
        calls.append(FunctionCall(name=name, call_id=call_id, arguments=arguments))

    update: dict[str, Any] = {"function_calls": calls}
    if errors:
        update["parse_error"] = _with_error(response, "function_calls", errors)
    return response.model_copy(update=update)


def calculate_cost(response: Response, pricing_lookup: PricingLookup = get_pricing) -> Response:
    """Set ``cost`` from token usage and the model's pricing.

    Unknown models and bodies without usage get a zero cost rather than None.
    """
    model = response.body.get("model")
    usage = response.body.get("usage")
    pricing = pricing_lookup(model) if isinstance(model, str) else None
    if not isinstance(usage, dict) or pricing is None:
        return response.model_copy(update={"cost": Cost()})
    return response.model_copy(update={"cost": cost_from_usage(usage, pricing)})


def cost_from_usage(usage: dict[str, Any], pricing: ModelPricing) -> Cost:
    input_tokens = usage.get("input_tokens") or 0
    output_tokens = usage.get("output_tokens") or 0
    cached_tokens = get_in(usage, ["input_tokens_details", "cached_tokens"]) or 0

    regular_input_cost = _tokens_cost(input_tokens - cached_tokens, pricing.input)
    cached_input_cost = _tokens_cost(cached_tokens, pricing.cached_input or pricing.input)
    output_cost = _tokens_cost(output_tokens, pricing.output)
    input_cost = regular_input_cost + cached_input_cost

    cached_discount = _ZERO
    if pricing.cached_input is not None and pricing.input is not None and cached_tokens > 0:
        cached_discount = _tokens_cost(cached_tokens, pricing.input) - cached_input_cost

    return Cost(
        input_cost=input_cost,
        output_cost=output_cost,
        total_cost=input_cost + output_cost,
        cached_discount=cached_discount,
    )


def process_response(response: Response, pricing_lookup: PricingLookup = get_pricing) -> Response:
    """Run every extraction pass."""
    response = extract_text(response)
    response = extract_json(response)
    response = extract_function_calls(response)
    return calculate_cost(response, pricing_lookup)


def _tokens_cost(tokens: int, price_per_million: Decimal | None) -> Decimal:
    if price_per_million is None or tokens <= 0:
        return _ZERO
    return Decimal(tokens) / _MILLION * price_per_million


def _with_error(response: Response, key: str, error: str | Iterable[str]) -> dict[str, Any]:
    errors = dict(response.parse_error or {})
    errors[key] = error if isinstance(error, str) else list(error)
    return errors
