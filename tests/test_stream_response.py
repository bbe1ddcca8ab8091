# tests/test_stream_response.py
import json
import pytest
import httpx

from ai_services.core.exceptions import DecodingError, RequestError
from ai_services.http.framing import framing_for_content_type
from ai_services.http.stream import StreamResponse

BODY = b'{"text":"hi"}\n{"text":"yo"}'
EXPECTED = [{"text": "hi"}, {"text": "yo"}]


async def collect(stream):
    return [value async for value in stream.read_stream()]


@pytest.mark.asyncio
@pytest.mark.parametrize("content_type", [None, "application/x-ndjson"])
async def test_split_at_every_offset_yields_same_values(chunked_response, content_type):
    # Splits the body into two deliveries at every possible byte offset:
    # - Each split must yield exactly the two values of a single-shot parse, in order.
    for offset in range(1, len(BODY)):
        raw = chunked_response([BODY[:offset], BODY[offset:]], content_type=content_type)
        assert await collect(StreamResponse(raw)) == EXPECTED, f"split at {offset}"


@pytest.mark.asyncio
async def test_byte_by_byte_delivery_with_multibyte_text(chunked_response):
    # Delivers the body one byte at a time, including inside multi-byte UTF-8 characters:
    # - The reader must buffer and only emit complete values.
    body = '{"text":"héllo ☃"}\n{"text":"a \\"quoted\\" } brace"}\n'.encode("utf-8")
    raw = chunked_response([body[i:i + 1] for i in range(len(body))])
    values = await collect(StreamResponse(raw))
    assert values == [{"text": "héllo ☃"}, {"text": 'a "quoted" } brace'}]


@pytest.mark.asyncio
async def test_streamed_json_array_with_nested_brackets(chunked_response):
    # Tests the Gemini default stream shape: a top-level array spread over deliveries,
    # with brackets and braces inside strings and nested arrays in the values.
    values = [
        {"candidates": [{"content": {"role": "model", "parts": [{"text": "a]b}c"}]}, "index": 0}]},
        {"candidates": [{"content": {"role": "model", "parts": [{"text": "[x]"}]}, "finishReason": "STOP"}]},
    ]
    body = ("[" + ",\r\n".join(json.dumps(v, indent=2) for v in values) + "]").encode("utf-8")
    chunks = [body[i:i + 7] for i in range(0, len(body), 7)]
    raw = chunked_response(chunks, content_type="application/json; charset=UTF-8")
    assert await collect(StreamResponse(raw)) == values


@pytest.mark.asyncio
async def test_server_sent_events(chunked_response):
    # Tests SSE framing:
    # - data lines are decoded per event, comments are ignored,
    #   multi-line data is joined, and [DONE] ends the sequence.
    body = (
        b': keep-alive\r\n'
        b'data: {"a": 1}\r\n\r\n'
        b'event: message\ndata: {"b":\ndata: 2}\n\n'
        b'data: [DONE]\n\n'
        b'data: {"ignored": true}\n\n'
    )
    raw = chunked_response([body[:17], body[17:40], body[40:]], content_type="text/event-stream")
    assert await collect(StreamResponse(raw)) == [{"a": 1}, {"b": 2}]


@pytest.mark.asyncio
async def test_malformed_fragment_raises_at_its_position(chunked_response):
    # Tests decoding failure mid-stream:
    # - The value before the bad line is delivered, then DecodingError is raised,
    #   nothing after it is yielded, and the response is released.
    raw = chunked_response([b'{"a": 1}\n{"b": }\n{"c": 3}\n'], content_type="application/x-ndjson")
    stream = StreamResponse(raw)
    received = []
    with pytest.raises(DecodingError) as exc_info:
        async for value in stream.read_stream():
            received.append(value)
    assert received == [{"a": 1}]
    assert exc_info.value.fragment == '{"b": }'
    assert stream.is_closed
    assert raw.is_closed


@pytest.mark.asyncio
async def test_truncated_value_at_end_of_stream(chunked_response):
    # Tests that a value left open when the stream ends is a DecodingError, not a partial emission.
    raw = chunked_response([b'{"a": 1}\n{"b": "unterminated'])
    stream = StreamResponse(raw)
    received = []
    with pytest.raises(DecodingError):
        async for value in stream.read_stream():
            received.append(value)
    assert received == [{"a": 1}]
    assert stream.is_closed


@pytest.mark.asyncio
async def test_garbage_between_values_is_rejected(chunked_response):
    # Tests the json framer: anything other than separators between objects is an error.
    raw = chunked_response([b'{"a": 1} oops {"b": 2}'])
    with pytest.raises(DecodingError):
        await collect(StreamResponse(raw))


@pytest.mark.asyncio
async def test_connection_drop_discards_buffer_and_raises(chunked_response):
    # Tests a dropped connection mid-stream:
    # - The complete first value is delivered, the buffered partial one is discarded,
    #   and RequestError is raised through the sequence instead of an empty value.
    raw = chunked_response([b'{"a": 1}\n{"b"'], error=httpx.ReadError("connection reset"))
    stream = StreamResponse(raw)
    received = []
    with pytest.raises(RequestError):
        async for value in stream.read_stream():
            received.append(value)
    assert received == [{"a": 1}]
    assert stream.is_closed


@pytest.mark.asyncio
async def test_invalid_utf8_is_a_decoding_error(chunked_response):
    raw = chunked_response([b'{"a": "\xff"}\n'])
    with pytest.raises(DecodingError):
        await collect(StreamResponse(raw))


@pytest.mark.asyncio
async def test_stream_is_single_use(chunked_response, caplog):
    # Tests single use:
    # - After full consumption a second read yields nothing and logs a warning,
    #   prior values are never re-delivered.
    stream = StreamResponse(chunked_response([BODY]))
    assert await collect(stream) == EXPECTED
    assert await collect(stream) == []
    assert "already consumed" in caplog.text


@pytest.mark.asyncio
async def test_values_are_pulled_lazily(chunked_response):
    # Tests laziness: the first value is handed out before the second chunk is requested.
    pulled = []
    raw = chunked_response([b'{"a": 1}\n', b'{"b": 2}\n'], pulled=pulled)
    stream = StreamResponse(raw)
    iterator = stream.read_stream()
    first = await iterator.__anext__()
    assert first == {"a": 1}
    assert len(pulled) == 1
    await stream.aclose()


@pytest.mark.asyncio
async def test_early_abandonment_releases_connection(chunked_response):
    # Tests scoped release: leaving the loop early inside `async with` closes the response
    # and runs the owner's close callback exactly once.
    closed = []

    async def on_close():
        closed.append(True)

    raw = chunked_response([b'{"a": 1}\n{"b": 2}\n{"c": 3}\n'])
    async with StreamResponse(raw, on_close=on_close) as stream:
        async for value in stream:
            assert value == {"a": 1}
            break
        assert not stream.is_closed
    assert stream.is_closed
    assert raw.is_closed
    assert closed == [True]


@pytest.mark.asyncio
async def test_exhaustion_releases_connection(chunked_response):
    closed = []

    async def on_close():
        closed.append(True)

    raw = chunked_response([BODY])
    stream = StreamResponse(raw, on_close=on_close)
    await collect(stream)
    await stream.aclose()
    assert raw.is_closed
    assert closed == [True]


@pytest.mark.asyncio
async def test_unknown_framing_is_rejected(chunked_response):
    raw = chunked_response([BODY])
    stream = StreamResponse(raw, framing="xml")
    with pytest.raises(ValueError):
        await collect(stream)
    assert stream.is_closed


def test_framing_for_content_type():
    # Tests how the auto framing is resolved from the response Content-Type.
    assert framing_for_content_type("text/event-stream; charset=utf-8") == "sse"
    assert framing_for_content_type("application/x-ndjson") == "ndjson"
    assert framing_for_content_type("application/json") == "json"
    assert framing_for_content_type(None) == "json"


@pytest.mark.asyncio
async def test_release_is_logged_once(chunked_response, caplog_debug):
    stream = StreamResponse(chunked_response([BODY]))
    await collect(stream)
    await stream.aclose()
    released = [r for r in caplog_debug.records if "released" in r.getMessage()]
    assert len(released) == 1


@pytest.mark.asyncio
async def test_streamed_array_of_scalars(chunked_response):
    # Tests that array elements need not be objects: numbers, literals and strings are values too.
    raw = chunked_response([b"[1, 2]"], content_type="application/json")
    assert await collect(StreamResponse(raw)) == [1, 2]

    raw = chunked_response([b'[-1.5e2,tr', b'ue, null,"a,]b" ,', b'[3]]'], content_type="application/json")
    assert await collect(StreamResponse(raw)) == [-150.0, True, None, "a,]b", [3]]


@pytest.mark.asyncio
async def test_bare_string_and_scalar_bodies(chunked_response):
    raw = chunked_response([b'"o', b'k"'], content_type="application/json")
    assert await collect(StreamResponse(raw)) == ["ok"]

    # a trailing number is only complete once the stream ends
    raw = chunked_response([b"4", b"2"])
    assert await collect(StreamResponse(raw)) == [42]


@pytest.mark.asyncio
async def test_malformed_scalar_is_a_decoding_error(chunked_response):
    raw = chunked_response([b"[1, tru]"], content_type="application/json")
    with pytest.raises(DecodingError) as exc_info:
        await collect(StreamResponse(raw))
    assert exc_info.value.fragment == "tru"
