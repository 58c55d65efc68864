"""Server-sent event handling for streamed responses.

Every record in the stream becomes either a :class:`StreamEvent` or a
:class:`StreamChunkError` value. Both are handed to the consumer; a bad record
never ends the stream.

Helpers compose on top of the raw results::

    await client.create(input="Write a story", model="gpt-4.1", stream=delta(print))

    async for text in text_deltas(client.stream(input="Count to 10", model="gpt-4.1")):
        print(text, end="")
"""

from __future__ import annotations

import asyncio
import inspect
import json
import logging
import threading
from collections.abc import AsyncIterable, AsyncIterator, Awaitable, Callable
from typing import Any

from unified_responses.errors import InvalidChunkFormat, InvalidChunkStructure, JsonDecodeError
from unified_responses.jsonstream import JsonEvent, JsonTokenizer
from unified_responses.types import StreamEvent, StreamResult

_logger = logging.getLogger(__name__)

TEXT_DELTA_EVENT = "response.output_text.delta"
COMPLETED_EVENT = "response.completed"

# Seconds the lazy iterator waits for the next event before treating the stream as finished.
STREAMING_TIMEOUT_S = 30.0

_EVENT_PREFIX = "event: "
_DATA_PREFIX = "data: "

StreamCallback = Callable[[StreamResult], Any]


def parse_record(record: str) -> StreamResult:
    """Parse one ``event:``/``data:`` record."""
    lines = record.split("\n", 1)
    if len(lines) != 2:
        return InvalidChunkStructure(record)

    event_line, data_line = lines
    if not (event_line.startswith(_EVENT_PREFIX) and data_line.startswith(_DATA_PREFIX)):
        return InvalidChunkFormat(record)

    event = event_line[len(_EVENT_PREFIX) :].strip()
    data = data_line[len(_DATA_PREFIX) :].strip()
    try:
        parsed = json.loads(data)
    except json.JSONDecodeError:
        return JsonDecodeError(record)
    return StreamEvent(event=event, data=parsed)


class SSEDecoder:
    """Splits streamed text into records and parses them.

    A record is only parsed once its terminating blank line has arrived; the
    unterminated tail is kept for the next :meth:`feed` or :meth:`flush`.
    """

    def __init__(self) -> None:
        self._pending = ""

    def feed(self, text: str) -> list[StreamResult]:
        self._pending += text.replace("\r\n", "\n")
        *records, self._pending = self._pending.split("\n\n")
        return [parse_record(record) for record in records if record.strip()]

    def flush(self) -> list[StreamResult]:
        record, self._pending = self._pending, ""
        if not record.strip():
            return []
        return [parse_record(record.strip("\n"))]


class ResponseAggregate:
    """Holds the final response body captured from a ``response.completed`` event."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._body: dict[str, Any] | None = None

    def observe(self, result: StreamResult) -> None:
        if isinstance(result, StreamEvent) and result.event == COMPLETED_EVENT:
            body = result.data.get("response") if isinstance(result.data, dict) else None
            with self._lock:
                self._body = body

    @property
    def body(self) -> dict[str, Any] | None:
        with self._lock:
            return self._body


async def deliver(callback: StreamCallback, result: StreamResult) -> bool:
    """Invoke a sync or async callback; returns False when it asks to stop."""
    outcome = callback(result)
    if inspect.isawaitable(outcome):
        outcome = await outcome
    return outcome is not False


async def pump(chunks: AsyncIterable[str], callback: StreamCallback) -> dict[str, Any] | None:
    """Feed text chunks through the decoder into ``callback``.

    Returns the body of the ``response.completed`` event, if one arrived.
    """
    aggregate = ResponseAggregate()
    decoder = SSEDecoder()

    async def forward(results: list[StreamResult]) -> bool:
        for result in results:
            aggregate.observe(result)
            if not await deliver(callback, result):
                return False
        return True

    stopped = False
    async for chunk in chunks:
        if not await forward(decoder.feed(chunk)):
            stopped = True
            _logger.debug("Stream callback asked to stop; closing stream early")
            break
    if not stopped:
        await forward(decoder.flush())

    if aggregate.body is None and not stopped:
        _logger.warning("Stream ended without a %s event", COMPLETED_EVENT)
    return aggregate.body


_CHUNK = "chunk"
_DONE = "done"
_FAILED = "failed"


async def iterate(start: Callable[[StreamCallback], Awaitable[Any]]) -> AsyncIterator[StreamResult]:
    """Run a callback-driven stream in a task and yield its results.

    Results pass through a one-slot queue, so the producer waits for the
    consumer. If no result arrives within :data:`STREAMING_TIMEOUT_S` the
    iteration ends. Closing the iterator cancels the producer task.
    """
    queue: asyncio.Queue[tuple[str, Any]] = asyncio.Queue(maxsize=1)

    async def forward(result: StreamResult) -> None:
        await queue.put((_CHUNK, result))

    async def produce() -> None:
        try:
            await start(forward)
        except Exception as exc:
            await queue.put((_FAILED, exc))
        else:
            await queue.put((_DONE, None))

    task = asyncio.create_task(produce())
    try:
        while True:
            try:
                kind, item = await asyncio.wait_for(queue.get(), STREAMING_TIMEOUT_S)
            except asyncio.TimeoutError:
                _logger.warning("No stream event for %.0f seconds; ending stream", STREAMING_TIMEOUT_S)
                return
            if kind == _DONE:
                return
            if kind == _FAILED:
                raise item
            yield item
    finally:
        task.cancel()


def delta(fn: Callable[[str], Any]) -> StreamCallback:
    """Adapt a plain text consumer into a stream callback.

    Only text delta events reach ``fn``; errors and other events are ignored.
    """

    def callback(result: StreamResult) -> None:
        if isinstance(result, StreamEvent) and result.event == TEXT_DELTA_EVENT:
            text = result.data.get("delta") if isinstance(result.data, dict) else None
            if isinstance(text, str):
                fn(text)

    return callback


async def text_deltas(stream: AsyncIterable[StreamResult]) -> AsyncIterator[str]:
    """Yield only the text of delta events, skipping errors and other events."""
    async for result in stream:
        if isinstance(result, StreamEvent) and result.event == TEXT_DELTA_EVENT:
            text = result.data.get("delta") if isinstance(result.data, dict) else None
            if isinstance(text, str):
                yield text


async def json_events(stream: AsyncIterable[StreamResult]) -> AsyncIterator[JsonEvent]:
    """Yield JSON token events for the streamed output text as it arrives."""
    tokenizer = JsonTokenizer()
    async for text in text_deltas(stream):
        for event in tokenizer.feed(text):
            yield event
    for event in tokenizer.close():
        yield event
