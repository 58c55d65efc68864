"""Helpers for defining structured output schemas and function tools.

A compact Python syntax is compiled into the strict JSON Schema dialect the
Responses APIs expect::

    build_output({"name": str, "tags": ("array", "string")})
    build_output([("title", ("string", {"description": "Short title"})), ("done", bool)])
    build_output(("array", {"title": str, "priority": ("integer", {"minimum": 1})}))

Fields given as a mapping are listed in ``required`` alphabetically; fields
given as a sequence of ``(name, spec)`` pairs keep their order.

The APIs require an object at the root, so a root array is wrapped as
``{"items": [...]}`` and unwrapped again when the response is parsed. The
unwrap is a pure shape check (see :func:`is_wrapped_array_schema`): a schema
written by hand with a single required array property named ``items`` is
unwrapped too.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, Union

from unified_responses.errors import SchemaError
from unified_responses.options import is_pair, key_to_str

_PYTHON_TYPES: dict[type, str] = {
    str: "string",
    int: "integer",
    float: "number",
    bool: "boolean",
    list: "array",
    dict: "object",
    type(None): "null",
}


@dataclass(frozen=True)
class _Leaf:
    type_name: str
    options: tuple[tuple[str, Any], ...] = ()


@dataclass(frozen=True)
class _Array:
    items: _Node


@dataclass(frozen=True)
class _AnyOf:
    variants: tuple[_Node, ...]


@dataclass(frozen=True)
class _Object:
    fields: tuple[tuple[str, _Node], ...]
    options: tuple[tuple[str, Any], ...] = ()


_Node = Union[_Leaf, _Array, _AnyOf, _Object]


def build_output(spec: Any) -> dict[str, Any]:
    """Build the ``text.format`` entry for a structured output request."""
    schema = _build(_normalize(spec))

    if schema.get("type") == "array":
        schema = {
            "type": "object",
            "properties": {"items": schema},
            "additionalProperties": False,
            "required": ["items"],
        }

    return {
        "name": "data",
        "type": "json_schema",
        "strict": True,
        "schema": schema,
    }


def build_function(name: str, description: str, parameters: Any) -> dict[str, Any]:
    """Build a strict function calling tool.

    ``parameters`` uses the same syntax as :func:`build_output`.
    """
    return {
        "name": name,
        "type": "function",
        "strict": True,
        "description": description,
        "parameters": _build(_normalize(parameters)),
    }


def is_wrapped_array_schema(schema: Any) -> bool:
    """Return True when ``schema`` has the shape produced by wrapping a root array."""
    if not isinstance(schema, Mapping):
        return False
    properties = schema.get("properties") or {}
    required = schema.get("required") or []
    if not isinstance(properties, Mapping) or list(properties) != ["items"]:
        return False
    items = properties["items"]
    return list(required) == ["items"] and isinstance(items, Mapping) and items.get("type") == "array"


def _type_name(value: Any) -> str | None:
    if isinstance(value, str):
        return value
    if isinstance(value, Enum):
        return str(value.value)
    if value is None:
        return "null"
    if isinstance(value, type):
        return _PYTHON_TYPES.get(value)
    return None


def _is_tagged(spec: Any, tag: str) -> bool:
    return isinstance(spec, (list, tuple)) and len(spec) == 2 and _type_name(spec[0]) == tag


def _normalize(spec: Any) -> _Node:
    type_name = _type_name(spec)
    if type_name == "object":
        return _Object(())
    if type_name is not None:
        return _Leaf(type_name)

    if _is_tagged(spec, "array"):
        return _Array(_normalize(spec[1]))

    if _is_tagged(spec, "anyOf") and isinstance(spec[1], (list, tuple)):
        return _AnyOf(tuple(_normalize(variant) for variant in spec[1]))

    if _is_type_with_options(spec):
        type_name, opts = spec
        if isinstance(spec, list):
            opts = _unwrap_nested_options(opts)
        return _normalize_type_with_options(_type_name(type_name), opts, spec)

    if isinstance(spec, list):
        if not spec or is_pair(spec[0]):
            return _normalize_fields(spec)
        raise SchemaError(spec)

    if isinstance(spec, Mapping):
        return _normalize_fields(sorted(spec.items(), key=lambda item: key_to_str(item[0])))

    raise SchemaError(spec)


def _is_type_with_options(spec: Any) -> bool:
    return (
        isinstance(spec, (list, tuple))
        and len(spec) == 2
        and _type_name(spec[0]) is not None
        and isinstance(spec[1], (list, tuple, Mapping))
        and not isinstance(spec[1], str)
    )


def _unwrap_nested_options(opts: Any) -> Any:
    # [[key, value]] and [key, value] are read as a single option.
    if isinstance(opts, list):
        if len(opts) == 1 and isinstance(opts[0], (list, tuple)) and len(opts[0]) == 2:
            key, value = opts[0]
            if _is_key(key):
                return [(key, value)]
        if len(opts) == 2 and _is_key(opts[0]) and not isinstance(opts[1], tuple):
            return [(opts[0], opts[1])]
    return opts


def _is_key(value: Any) -> bool:
    return isinstance(value, (str, Enum))


def _option_items(opts: Any, spec: Any) -> list[tuple[Any, Any]]:
    if isinstance(opts, Mapping):
        return list(opts.items())
    if all(is_pair(item) for item in opts):
        return list(opts)
    raise SchemaError(spec)


def _normalize_type_with_options(type_name: str, opts: Any, spec: Any) -> _Node:
    items = _option_items(opts, spec)

    if type_name == "object":
        properties = next((v for k, v in items if key_to_str(k) == "properties"), None)
        extras = tuple((key_to_str(k), v) for k, v in items if key_to_str(k) != "properties")
        if properties is None:
            return _Object((), extras)
        if isinstance(properties, Mapping):
            fields = _normalize_fields(sorted(properties.items(), key=lambda item: key_to_str(item[0])))
        else:
            fields = _normalize_fields(list(properties))
        return _Object(fields.fields, extras)

    return _Leaf(type_name, tuple((key_to_str(k), v) for k, v in items))


def _normalize_fields(fields: list[Any]) -> _Object:
    normalized: dict[str, _Node] = {}
    for field in fields:
        if not (isinstance(field, tuple) and len(field) == 2):
            raise SchemaError(field)
        name, child = field
        normalized[key_to_str(name)] = _normalize(child)
    return _Object(tuple(normalized.items()))


def _build(node: _Node) -> dict[str, Any]:
    if isinstance(node, _Array):
        return {"type": "array", "items": _build(node.items)}

    if isinstance(node, _AnyOf):
        return {"anyOf": [_build(variant) for variant in node.variants]}

    if isinstance(node, _Object):
        properties = {name: _build(child) for name, child in node.fields}
        # Extra options never override the closed-object keys.
        return {
            **dict(node.options),
            "type": "object",
            "properties": properties,
            "additionalProperties": False,
            "required": list(properties),
        }

    schema: dict[str, Any] = {"type": node.type_name}
    schema.update(node.options)
    return schema
