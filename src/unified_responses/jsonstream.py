"""Incremental JSON tokenizer for streamed structured output.

Text arrives in arbitrary fragments, so a token split across two fragments is
held back until the rest of it arrives. Events are emitted as soon as a token
is complete; nothing beyond the current partial token is buffered.
"""

from __future__ import annotations

import json
import re
from typing import Any, NamedTuple

from unified_responses.errors import JsonTokenError

_NUMBER = re.compile(r"-?(?:0|[1-9]\d*)(\.\d+)?([eE][+-]?\d+)?")
# A number may continue while the rest of the buffer is made of these.
_NUMBER_CHARS = re.compile(r"[-+.eE0-9]*")
_PUNCTUATION = {
    "{": "start_object",
    "}": "end_object",
    "[": "start_array",
    "]": "end_array",
    ":": "colon",
    ",": "comma",
}
_LITERALS = {
    "true": ("boolean", True),
    "false": ("boolean", False),
    "null": ("null", None),
}
_WHITESPACE = " \t\r\n"


class JsonEvent(NamedTuple):
    """One JSON token: ``kind`` names it, ``value`` holds scalar values."""

    kind: str
    value: Any = None


class JsonTokenizer:
    """Turns JSON text fed in fragments into a flat list of :class:`JsonEvent`."""

    def __init__(self) -> None:
        self._buffer = ""
        # Offset in the buffer where scanning of an unterminated string resumes.
        self._string_scan = 0

    def feed(self, text: str) -> list[JsonEvent]:
        self._buffer += text
        return self._drain(final=False)

    def close(self) -> list[JsonEvent]:
        """Flush the final token; raises JsonTokenError if the text ends mid-token."""
        events = self._drain(final=True)
        if self._buffer.strip(_WHITESPACE):
            raise JsonTokenError(f"Incomplete JSON token at end of stream: {self._buffer!r}")
        self._buffer = ""
        return events

    def _drain(self, final: bool) -> list[JsonEvent]:
        events: list[JsonEvent] = []
        buffer = self._buffer
        pos = 0
        while pos < len(buffer):
            char = buffer[pos]
            if char in _WHITESPACE:
                pos += 1
                continue

            if char in _PUNCTUATION:
                events.append(JsonEvent(_PUNCTUATION[char]))
                pos += 1
                continue

            if char == '"':
                end, scanned = _string_end(buffer, max(self._string_scan, pos + 1))
                if end is None:
                    self._string_scan = scanned - pos
                    break
                self._string_scan = 0
                try:
                    value = json.loads(buffer[pos : end + 1])
                except json.JSONDecodeError as exc:
                    raise JsonTokenError(f"Invalid JSON string: {buffer[pos : end + 1]!r}") from exc
                events.append(JsonEvent("string", value))
                pos = end + 1
                continue

            if char == "-" or char.isdigit():
                if not final and _NUMBER_CHARS.fullmatch(buffer, pos):
                    break
                match = _NUMBER.match(buffer, pos)
                if match is None:
                    raise JsonTokenError(f"Invalid JSON number at: {buffer[pos:pos + 20]!r}")
                token = match.group(0)
                if match.group(1) or match.group(2):
                    events.append(JsonEvent("float", float(token)))
                else:
                    events.append(JsonEvent("integer", int(token)))
                pos = match.end()
                continue

            literal = next((word for word in _LITERALS if buffer.startswith(word, pos)), None)
            if literal is not None:
                events.append(JsonEvent(*_LITERALS[literal]))
                pos += len(literal)
                continue
            rest = buffer[pos:]
            if not final and any(word.startswith(rest) for word in _LITERALS):
                break
            raise JsonTokenError(f"Unexpected character in JSON text: {buffer[pos:pos + 20]!r}")

        self._buffer = buffer[pos:]
        return events


def _string_end(buffer: str, resume: int) -> tuple[int | None, int]:
    """Find the closing quote of an open string.

    Scanning begins at ``resume``, which never points inside an escape sequence.
    Returns ``(end, resume)``: ``end`` is None while the string is unterminated.
    """
    pos = resume
    while pos < len(buffer):
        char = buffer[pos]
        if char == "\\":
            pos += 2
            continue
        if char == '"':
            return pos, pos
        pos += 1
    return None, pos


def tokenize(fragments: list[str]) -> list[JsonEvent]:
    """Tokenize a complete sequence of fragments."""
    tokenizer = JsonTokenizer()
    events: list[JsonEvent] = []
    for fragment in fragments:
        events.extend(tokenizer.feed(fragment))
    events.extend(tokenizer.close())
    return events
