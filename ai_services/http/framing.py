"""
Incremental framers for streamed JSON bodies.

A framer receives decoded text in arbitrary slices (``feed``) and yields a
decoded value only once a complete JSON unit has been buffered. ``finish`` is
called at end of stream to flush or reject whatever is left.

* ``json``   -- a sequence of JSON values, bare or wrapped in a streamed top-level
  array (``[{...},\\r\\n{...}]``). Used for ``application/json`` and unknown
  content types.
* ``ndjson`` -- one JSON value per line.
* ``sse``    -- server-sent events, one JSON value per ``data:`` event.
"""

import json
from typing import Any, Iterator, List, Optional

from ai_services.core.exceptions import DecodingError

FRAMINGS = ("json", "ndjson", "sse")

_WHITESPACE = " \t\r\n"
_SCALAR_START = "-0123456789tfn"
_SCALAR_END = " \t\r\n,]}"


def _loads(fragment: str) -> Any:
    try:
        return json.loads(fragment)
    except json.JSONDecodeError as e:
        raise DecodingError(f"Malformed JSON in stream: {e.msg} (line {e.lineno}, column {e.colno})", fragment=fragment) from e


class JSONSequenceFramer:
    def __init__(self) -> None:
        self._buffer = ""
        self._pos = 0
        self._start = -1  # offset of the value being accumulated, -1 between values
        self._kind = ""  # "container", "string" or "scalar" while a value is open
        self._depth = 0
        self._in_string = False
        self._escape = False
        self._in_array = False  # inside a streamed top-level array

    def feed(self, text: str) -> Iterator[Any]:
        self._buffer += text
        buffer = self._buffer
        while self._pos < len(buffer):
            char = buffer[self._pos]

            if self._start < 0:
                self._pos += 1
                if char in _WHITESPACE or char == ",":
                    continue
                # the first [ outside a value opens the streamed array; its elements are the values
                if char == "[" and not self._in_array:
                    self._in_array = True
                elif char == "]" and self._in_array:
                    self._in_array = False
                else:
                    self._begin(char)
                continue

            if self._kind == "scalar":
                # numbers and literals end at the next delimiter, which is then re-read
                if char in _SCALAR_END:
                    yield self._emit(self._pos)
                else:
                    self._pos += 1
                continue

            self._pos += 1
            if self._in_string:
                if self._escape:
                    self._escape = False
                elif char == "\\":
                    self._escape = True
                elif char == '"':
                    self._in_string = False
                    if self._kind == "string":
                        yield self._emit(self._pos)
                continue

            if char == '"':
                self._in_string = True
            elif char in "{[":
                self._depth += 1
            elif char in "}]":
                self._depth -= 1
                if self._depth == 0:
                    yield self._emit(self._pos)
        self._compact()

    def finish(self) -> Iterator[Any]:
        if self._start >= 0:
            if self._kind != "scalar":
                raise DecodingError("Truncated JSON value at end of stream", fragment=self._buffer[self._start:])
            # a trailing number or literal is complete once the stream ends
            yield self._emit(len(self._buffer))

    def _begin(self, char: str) -> None:
        if char in "{[":
            self._kind = "container"
            self._depth = 1
        elif char == '"':
            self._kind = "string"
            self._in_string = True
        elif char in _SCALAR_START:
            self._kind = "scalar"
        else:
            raise DecodingError(f"Unexpected character {char!r} between JSON values", fragment=char)
        self._start = self._pos - 1

    def _emit(self, end: int) -> Any:
        fragment = self._buffer[self._start:end]
        self._start = -1
        self._kind = ""
        self._depth = 0
        return _loads(fragment)

    def _compact(self) -> None:
        if self._start < 0:
            self._buffer = ""
            self._pos = 0
        else:
            self._buffer = self._buffer[self._start:]
            self._pos -= self._start
            self._start = 0


class NDJSONFramer:
    def __init__(self) -> None:
        self._buffer = ""

    def feed(self, text: str) -> Iterator[Any]:
        self._buffer += text
        while True:
            newline = self._buffer.find("\n")
            if newline < 0:
                return
            line = self._buffer[:newline].strip()
            self._buffer = self._buffer[newline + 1:]
            if line:
                yield _loads(line)

    def finish(self) -> Iterator[Any]:
        # a last line without trailing newline is complete once the stream ends
        line, self._buffer = self._buffer.strip(), ""
        if line:
            yield _loads(line)


class SSEFramer:
    def __init__(self) -> None:
        self._buffer = ""
        self._data: List[str] = []
        self._done = False

    def feed(self, text: str) -> Iterator[Any]:
        self._buffer += text
        while True:
            newline = self._buffer.find("\n")
            if newline < 0:
                return
            line = self._buffer[:newline].rstrip("\r")
            self._buffer = self._buffer[newline + 1:]
            yield from self._process_line(line)

    def finish(self) -> Iterator[Any]:
        line, self._buffer = self._buffer.rstrip("\r"), ""
        if line:
            yield from self._process_line(line)
        yield from self._dispatch()

    def _process_line(self, line: str) -> Iterator[Any]:
        if not line:
            yield from self._dispatch()
            return
        if line.startswith(":"):
            return
        name, _, value = line.partition(":")
        if value.startswith(" "):
            value = value[1:]
        # event, id and retry fields carry nothing this reader needs
        if name == "data":
            self._data.append(value)

    def _dispatch(self) -> Iterator[Any]:
        if not self._data:
            return
        payload = "\n".join(self._data)
        self._data = []
        if self._done:
            return
        if payload.strip() == "[DONE]":
            self._done = True
            return
        yield _loads(payload)


def create_framer(framing: str, content_type: Optional[str] = None):
    """Return a framer for ``framing``, resolving ``auto`` from the content type."""
    if framing == "auto":
        framing = framing_for_content_type(content_type)
    if framing == "json":
        return JSONSequenceFramer()
    if framing == "ndjson":
        return NDJSONFramer()
    if framing == "sse":
        return SSEFramer()
    raise ValueError(f"Unknown stream framing: {framing!r} (expected auto or one of {', '.join(FRAMINGS)})")


def framing_for_content_type(content_type: Optional[str]) -> str:
    media_type = (content_type or "").split(";")[0].strip().lower()
    if media_type == "text/event-stream":
        return "sse"
    if media_type in {"application/x-ndjson", "application/ndjson", "application/jsonl", "application/x-jsonlines"}:
        return "ndjson"
    return "json"
