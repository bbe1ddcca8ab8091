# issues outbound requests with a streamed body and binds the live response to a StreamResponse
# transport failures and non-2xx statuses fail here, before any of the body is handed out

import json
import logging
from typing import Any, Optional

import httpx

from ai_services.core import config
from ai_services.core.exceptions import RequestError
from ai_services.http.stream import StreamResponse
from ai_services.schemas.request import StreamRequest

logger = logging.getLogger(__name__)


def _default_timeout() -> httpx.Timeout:
    return httpx.Timeout(config.STREAM_TIMEOUT, connect=config.CONNECT_TIMEOUT)


def _error_message(body: bytes, status_code: int) -> str:
    # providers put the reason in {"error": {"message": ...}} (possibly wrapped in a list)
    try:
        data: Any = json.loads(body)
    except ValueError:
        data = None
    if isinstance(data, list) and data:
        data = data[0]
    if isinstance(data, dict):
        error = data.get("error")
        if isinstance(error, dict) and isinstance(error.get("message"), str):
            return error["message"]
        if isinstance(error, str) and error:
            return error
    return f"Bad status code: {status_code}"


class StreamRequestHandler:
    def __init__(self, client: Optional[httpx.AsyncClient] = None, *, framing: Optional[str] = None) -> None:
        # a caller-supplied client is shared and never closed here
        self._client = client
        self._framing = framing

    async def request_stream(self, request: StreamRequest) -> StreamResponse:
        owns_client = self._client is None
        client = self._client or httpx.AsyncClient(timeout=_default_timeout())

        headers = dict(request.headers)
        if not any(k.lower() == "user-agent" for k in headers):
            headers["User-Agent"] = config.USER_AGENT

        kwargs: dict = {"headers": headers, "params": request.params or None}
        if isinstance(request.data, (str, bytes)):
            kwargs["content"] = request.data
        elif request.data is not None:
            kwargs["json"] = request.data
        if request.timeout is not None:
            kwargs["timeout"] = httpx.Timeout(request.timeout, connect=config.CONNECT_TIMEOUT)

        logger.debug("opening stream %s %s", request.method, request.url)
        sent = False
        try:
            try:
                http_request = client.build_request(request.method, request.url, **kwargs)
            except (httpx.InvalidURL, TypeError, ValueError) as e:
                # bad URL or a body that can't be JSON-encoded
                raise RequestError(f"Invalid request: {e}") from e
            try:
                response = await client.send(http_request, stream=True)
            except (httpx.HTTPError, httpx.InvalidURL) as e:
                raise RequestError(f"HTTP error: {e}") from e
            sent = True
        finally:
            if owns_client and not sent:
                await client.aclose()

        if not response.is_success:
            try:
                body = await response.aread()
            except httpx.HTTPError:
                body = b""
            finally:
                await response.aclose()
                if owns_client:
                    await client.aclose()
            logger.debug("stream request failed with status %s", response.status_code)
            raise RequestError(_error_message(body, response.status_code), status_code=response.status_code)

        return StreamResponse(
            response,
            framing=self._framing,
            on_close=client.aclose if owns_client else None,
        )
