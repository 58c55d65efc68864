"""Helpers for composing the ``input`` option.

The helpers are pure: each returns a new options dict whose ``input`` is a list
of message dicts. Strings become user messages. Other keys of the options are
left as they were given, so a ``schema`` written as pairs keeps its order.
"""

from __future__ import annotations

import json
from collections.abc import Callable, Iterable, Mapping
from typing import Any

from unified_responses.errors import FormatError
from unified_responses.options import is_pair, key_to_str, stringify_keys_shallow
from unified_responses.types import FunctionCall

Message = dict[str, Any]
Functions = Mapping[Any, Callable[[Any], Any]] | Iterable[tuple[Any, Callable[[Any], Any]]]


def append(options: Any, messages: Any) -> dict[str, Any]:
    """Append message(s) to ``options["input"]``.

    ``messages`` may be a string, a message dict, or a list of either.
    """
    options = _as_dict(options)
    return {**options, "input": _to_messages(options.get("input")) + _to_messages(messages)}


def prepend(options: Any, messages: Any) -> dict[str, Any]:
    """Prepend message(s) to ``options["input"]``."""
    options = _as_dict(options)
    return {**options, "input": _to_messages(messages) + _to_messages(options.get("input"))}


def add_user(options: Any, content: str) -> dict[str, Any]:
    return append(options, {"role": "user", "content": content})


def add_developer(options: Any, content: str) -> dict[str, Any]:
    return append(options, {"role": "developer", "content": content})


def add_system(options: Any, content: str) -> dict[str, Any]:
    return append(options, {"role": "system", "content": content})


def add_function_outputs(options: Any, function_calls: Iterable[Any], functions: Functions) -> dict[str, Any]:
    """Run ``function_calls`` with ``functions`` and append their outputs to the input."""
    return append(options, execute_function_calls(function_calls, functions))


def execute_function_calls(function_calls: Iterable[Any], functions: Functions) -> list[Message]:
    """Run each requested call and return ``function_call_output`` items.

    A missing or failing function yields an error string as the output for that
    call; the remaining calls still run. Results that are not strings are sent
    as JSON.
    """
    table = _function_table(functions)
    outputs = []
    for call in function_calls:
        name, call_id, arguments = _call_fields(call)
        function = table.get(key_to_str(name)) if name is not None else None
        if function is None:
            result: Any = f"Error: Function '{name}' not found"
        elif not callable(function):
            result = f"Error: Invalid function for '{name}'"
        else:
            result = _invoke(function, name, arguments)
        outputs.append({"type": "function_call_output", "call_id": call_id, "output": _as_output(result)})
    return outputs


def _invoke(function: Callable[[Any], Any], name: Any, arguments: Any) -> Any:
    try:
        return function(arguments)
    except Exception as exc:
        return f"Error calling function '{name}': {exc}"


def _as_output(result: Any) -> str:
    if isinstance(result, str):
        return result
    return json.dumps(result, default=str)


def _call_fields(call: Any) -> tuple[Any, Any, Any]:
    if isinstance(call, FunctionCall):
        return call.name, call.call_id, call.arguments
    if isinstance(call, Mapping):
        call = stringify_keys_shallow(call)
        return call.get("name"), call.get("call_id"), call.get("arguments")
    raise FormatError(f"Invalid function call: {call!r}")


def _function_table(functions: Functions) -> dict[str, Any]:
    if isinstance(functions, Mapping):
        return stringify_keys_shallow(functions)
    table = {}
    for item in functions:
        if not is_pair(item):
            raise FormatError(f"Invalid function entry: {item!r}")
        table[key_to_str(item[0])] = item[1]
    return table


def _as_dict(options: Any) -> dict[str, Any]:
    if options is None:
        return {}
    if isinstance(options, Mapping):
        return stringify_keys_shallow(options)
    if isinstance(options, (list, tuple)):
        result = {}
        for item in options:
            if not is_pair(item):
                raise FormatError(f"Invalid option format: {item!r}")
            result[key_to_str(item[0])] = item[1]
        return result
    raise FormatError(f"Options must be a mapping or a sequence of (key, value) pairs, got: {options!r}")


def _to_messages(value: Any) -> list[Message]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [_to_message(item) for item in value]
    return [_to_message(value)]


def _to_message(item: Any) -> Message:
    if isinstance(item, str):
        return {"role": "user", "content": item}
    if isinstance(item, Mapping):
        message = stringify_keys_shallow(item)
        if ("role" in message and "content" in message) or "type" in message:
            return message
    raise FormatError(f"Expected a string or a message with role and content, got: {item!r}")
