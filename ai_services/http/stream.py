"""
Streamed response reader.

``StreamResponse`` owns an open ``httpx.Response`` whose body has not been read
yet. ``read_stream()`` pulls the body chunk by chunk and yields decoded JSON
values as soon as each one is complete; the only suspension point is waiting
for more bytes from the network.

The response is single use. It is released when the sequence is exhausted,
when decoding or the transport fails, or when the consumer leaves early and
closes the StreamResponse (``async with`` or ``aclose()``)::

    async with await handler.request_stream(request) as response:
        async for chunk in response.read_stream():
            ...
"""

import codecs
import logging
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, Optional

import httpx

from ai_services.core import config
from ai_services.core.exceptions import DecodingError, RequestError
from ai_services.http.framing import create_framer

logger = logging.getLogger(__name__)


class StreamResponse:
    def __init__(
        self,
        response: httpx.Response,
        *,
        framing: Optional[str] = None,
        on_close: Optional[Callable[[], Awaitable[None]]] = None,
    ) -> None:
        self._response = response
        self._framing = framing or config.STREAM_FRAMING
        self._on_close = on_close
        self._iterator: Optional[AsyncIterator[Any]] = None
        self._consumed = False
        self._closed = False

    @property
    def status_code(self) -> int:
        return self._response.status_code

    @property
    def headers(self) -> Dict[str, str]:
        return dict(self._response.headers)

    @property
    def is_closed(self) -> bool:
        return self._closed

    def read_stream(self) -> AsyncIterator[Any]:
        iterator = self._read_stream()
        if self._iterator is None:
            self._iterator = iterator
        return iterator

    async def _read_stream(self) -> AsyncIterator[Any]:
        if self._consumed:
            logger.warning("stream response was already consumed; nothing left to read")
            return
        self._consumed = True

        try:
            framer = create_framer(self._framing, self._response.headers.get("content-type"))
            decoder = codecs.getincrementaldecoder("utf-8")()
            async for chunk in self._response.aiter_bytes():
                for value in framer.feed(_decode(decoder, chunk)):
                    yield value
            for value in framer.feed(_decode(decoder, b"", final=True)):
                yield value
            for value in framer.finish():
                yield value
        except httpx.HTTPError as e:
            # whatever fragment was buffered is dropped with the framer
            raise RequestError(f"Stream interrupted: {e}") from e
        finally:
            await self._release()

    def __aiter__(self) -> AsyncIterator[Any]:
        return self.read_stream()

    async def aclose(self) -> None:
        if self._iterator is not None:
            # runs the reader's cleanup if the consumer left mid-sequence
            await self._iterator.aclose()  # type: ignore[attr-defined]
        await self._release()

    async def __aenter__(self) -> "StreamResponse":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def _release(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            await self._response.aclose()
        finally:
            if self._on_close is not None:
                await self._on_close()
        logger.debug("stream response released (status %s)", self._response.status_code)


def _decode(decoder: codecs.IncrementalDecoder, chunk: bytes, final: bool = False) -> str:
    try:
        return decoder.decode(chunk, final)
    except UnicodeDecodeError as e:
        raise DecodingError(f"Stream is not valid UTF-8: {e.reason}") from e
