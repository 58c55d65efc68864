"""Normalization and preservation of user supplied request options.

Options may be given as a mapping, as an ordered sequence of ``(key, value)``
pairs, or as keyword arguments. Everything downstream works on the normalized
form: a ``dict`` with ``str`` keys at every depth.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from enum import Enum
from typing import Any

from unified_responses.errors import FormatError

NormalizedOptions = dict[str, Any]
Path = Sequence[str]


def key_to_str(key: Any) -> str:
    """Return the string form of an option key."""
    if isinstance(key, str):
        return key
    if isinstance(key, Enum):
        return str(key.value)
    return str(key)


def is_pair(item: Any) -> bool:
    return isinstance(item, tuple) and len(item) == 2


def normalize(options: Any) -> NormalizedOptions:
    """Normalize user-provided options into a dict with string keys.

    Accepts mappings (any key type) and sequences of ``(key, value)`` tuples.
    Nested mappings and pair sequences are normalized recursively; other
    sequences are kept as lists.

    Raises:
        FormatError: ``options`` is not a mapping or pair sequence, or one of
            its items is not a pair.
    """
    if isinstance(options, Mapping):
        return {key_to_str(k): _normalize_value(v) for k, v in options.items()}

    if isinstance(options, (list, tuple)) and not isinstance(options, str):
        normalized: NormalizedOptions = {}
        for item in options:
            if not is_pair(item):
                raise FormatError(f"Invalid option format: {item!r}")
            key, value = item
            normalized[key_to_str(key)] = _normalize_value(value)
        return normalized

    raise FormatError(f"Options must be a mapping or a sequence of (key, value) pairs, got: {options!r}")


def _try_pairs(items: Sequence[Any]) -> NormalizedOptions | None:
    """Trial parse of a nested sequence as an option set; None when it is not one."""
    if not all(is_pair(item) for item in items):
        return None
    return {key_to_str(k): _normalize_value(v) for k, v in items}


def _normalize_value(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {key_to_str(k): _normalize_value(v) for k, v in value.items()}

    if isinstance(value, (list, tuple)):
        # A lone ("a", 1) stays literal; (("a", 1), ("b", 2)) is an option set.
        if value and is_pair(value[0]):
            as_options = _try_pairs(value)
            if as_options is not None:
                return as_options
        return [_normalize_value(item) for item in value]

    return value


def stringify_keys_shallow(mapping: Mapping[Any, Any]) -> NormalizedOptions:
    """Stringify top-level keys only."""
    return {key_to_str(k): v for k, v in mapping.items()}


def stringify_keys_deep(mapping: Mapping[Any, Any]) -> NormalizedOptions:
    """Stringify keys of nested mappings, including mappings inside lists."""
    result: NormalizedOptions = {}
    for key, value in mapping.items():
        if isinstance(value, Mapping):
            value = stringify_keys_deep(value)
        elif isinstance(value, list):
            value = [stringify_keys_deep(v) if isinstance(v, Mapping) else v for v in value]
        result[key_to_str(key)] = value
    return result


def merge_option(options: NormalizedOptions, section: Any, additions: Mapping[Any, Any]) -> NormalizedOptions:
    """Merge ``additions`` into ``options[section]`` without dropping its other keys.

    The merge is shallow at the section level and additions win.
    """
    section = key_to_str(section)
    additions = stringify_keys_deep(additions)
    existing = options.get(section)
    merged = {**existing, **additions} if isinstance(existing, dict) else additions
    return {**options, section: merged}


def merge_text(options: NormalizedOptions, additions: Mapping[Any, Any]) -> NormalizedOptions:
    return merge_option(options, "text", additions)


def merge_input(options: Any = None, extra: Mapping[str, Any] | None = None) -> Any:
    """Combine a positional options argument with keyword arguments.

    A bare string is shorthand for ``{"input": text}``. The result keeps the
    caller's shape (mapping or pair sequence) so it can still be normalized.
    """
    extra = dict(extra or {})
    if options is None:
        return extra
    if isinstance(options, str):
        return {"input": options, **extra}
    if not extra:
        return options
    if isinstance(options, Mapping):
        return {**options, **extra}
    if isinstance(options, (list, tuple)):
        return [*options, *extra.items()]
    raise FormatError(f"Options must be a mapping or a sequence of (key, value) pairs, got: {options!r}")


def split_option(options: Any, name: str) -> tuple[Any, Any]:
    """Pull the raw value of one option out of unnormalized input.

    Returns ``(value, remaining)``; ``value`` is None when the option is absent.
    The input itself is not modified.
    """
    if isinstance(options, Mapping):
        value = None
        remaining = {}
        for key, item in options.items():
            if key_to_str(key) == name:
                value = item
            else:
                remaining[key] = item
        return value, remaining

    if isinstance(options, (list, tuple)) and not isinstance(options, str):
        value = None
        remaining_pairs = []
        for item in options:
            if is_pair(item) and key_to_str(item[0]) == name:
                value = item[1]
            else:
                remaining_pairs.append(item)
        return value, remaining_pairs

    return None, options


def get_in(data: Any, path: Path) -> Any:
    """Return the value at ``path`` or None when any segment is missing."""
    current = data
    for segment in path:
        if not isinstance(current, Mapping):
            return None
        current = current.get(segment)
        if current is None:
            return None
    return current


def put_in(data: NormalizedOptions, path: Path, value: Any) -> NormalizedOptions:
    """Return a copy of ``data`` with ``value`` at ``path``, creating dicts as needed."""
    head, *rest = path
    if not rest:
        return {**data, head: value}
    child = data.get(head)
    child = child if isinstance(child, dict) else {}
    return {**data, head: put_in(child, rest, value)}


def delete_in(data: NormalizedOptions, path: Path) -> NormalizedOptions:
    """Return a copy of ``data`` without ``path``; containers left empty are removed."""
    head, *rest = path
    if head not in data:
        return data
    if not rest:
        return {k: v for k, v in data.items() if k != head}
    child = data[head]
    if not isinstance(child, dict):
        return data
    pruned = delete_in(child, rest)
    if not pruned:
        return {k: v for k, v in data.items() if k != head}
    return {**data, head: pruned}


def preserve_from(options: NormalizedOptions, source: Mapping[str, Any], keys: Sequence[str]) -> NormalizedOptions:
    """Copy top-level ``keys`` from ``source`` when they are absent from ``options``."""
    result = dict(options)
    for key in keys:
        if key not in result and key in source:
            result[key] = source[key]
    return result


def preserve_paths(options: NormalizedOptions, source: Mapping[str, Any], paths: Sequence[Path]) -> NormalizedOptions:
    """Copy nested ``paths`` from ``source`` into ``options`` where options has no value.

    Only the exact paths are copied; sibling keys in ``source`` are left behind.
    """
    result = options
    for path in paths:
        value = get_in(source, path)
        if value is not None and get_in(result, path) is None:
            result = put_in(result, path, value)
    return result


def drop_preserved_paths(
    options: NormalizedOptions,
    previous_body: Mapping[str, Any],
    user_options: Mapping[str, Any],
    paths: Sequence[Path],
) -> NormalizedOptions:
    """Remove values that were only carried over from ``previous_body``.

    A path is dropped when the user did not set it explicitly and its current
    value is still the one copied from the previous response.
    """
    result = options
    for path in paths:
        if get_in(user_options, path) is not None:
            continue
        previous = get_in(previous_body, path)
        if previous is None or get_in(result, path) != previous:
            continue
        result = delete_in(result, path)
    return result
