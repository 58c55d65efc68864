"""Provider-agnostic response and streaming models."""

from __future__ import annotations

from collections.abc import Mapping
from decimal import Decimal, InvalidOperation
from typing import Any, Union

from pydantic import BaseModel, Field, field_validator

from unified_responses.errors import StreamChunkError
from unified_responses.options import key_to_str, stringify_keys_deep

_ZERO = Decimal(0)


def to_decimal(value: Any) -> Decimal:
    """Coerce a persisted cost value to Decimal; unusable values become zero."""
    if isinstance(value, Decimal):
        return value
    if value is None or isinstance(value, bool):
        return _ZERO
    if isinstance(value, (int, float, str)):
        try:
            return Decimal(str(value).strip())
        except InvalidOperation:
            return _ZERO
    return _ZERO


class StreamEvent(BaseModel):
    """A single server-sent event."""

    event: str
    data: Any = None


StreamResult = Union[StreamEvent, StreamChunkError]


class FunctionCall(BaseModel):
    """A function call requested by the model, with parsed arguments."""

    name: str | None = None
    call_id: str | None = None
    arguments: Any = None


class Cost(BaseModel):
    """Cost of a response in USD."""

    input_cost: Decimal = _ZERO
    output_cost: Decimal = _ZERO
    total_cost: Decimal = _ZERO
    cached_discount: Decimal = _ZERO

    @field_validator("input_cost", "output_cost", "total_cost", "cached_discount", mode="before")
    @classmethod
    def _coerce(cls, value: Any) -> Decimal:
        return to_decimal(value)

    @classmethod
    def zero(cls) -> Cost:
        return cls()


class Response(BaseModel):
    """A response from a Responses API.

    ``body`` is the raw JSON body and the source of truth; the other fields are
    derived from it by the passes in :mod:`unified_responses.response`.
    """

    body: dict[str, Any] = Field(default_factory=dict)
    text: str | None = None
    parsed: Any = None
    parse_error: dict[str, Any] | None = None
    function_calls: list[FunctionCall] | None = None
    cost: Cost | None = None
    provider: str | None = None

    @classmethod
    def from_map(cls, data: Mapping[Any, Any]) -> Response:
        """Rebuild a response from a plain mapping, e.g. one loaded from storage.

        Keys may be strings or enum members. Unknown keys are ignored.
        """
        data = {key_to_str(k): v for k, v in data.items()}

        body = data.get("body")
        parse_error = data.get("parse_error")
        function_calls = data.get("function_calls")
        cost = data.get("cost")

        return cls(
            body=stringify_keys_deep(body) if isinstance(body, Mapping) else {},
            text=data.get("text"),
            parsed=data.get("parsed"),
            parse_error={key_to_str(k): v for k, v in parse_error.items()}
            if isinstance(parse_error, Mapping)
            else None,
            function_calls=[
                FunctionCall.model_validate(stringify_keys_deep(call)) for call in function_calls if isinstance(call, Mapping)
            ]
            if isinstance(function_calls, list)
            else None,
            cost=Cost.model_validate({key_to_str(k): v for k, v in cost.items()}) if isinstance(cost, Mapping) else None,
            provider=data.get("provider"),
        )
