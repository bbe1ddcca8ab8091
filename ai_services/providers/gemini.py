"""
Gemini-style provider built on the stream pipeline.

Requests go to ``models/{model}:streamGenerateContent?alt=sse`` (streamed) or
``models/{model}:generateContent`` (single body). Every decoded chunk is
turned into a Candidates value; candidate metadata is passed through as-is.
Lower-level RequestError / DecodingError / DataValidationError never leave
this module: they are re-raised as GenerativeAIError.
"""

import logging
from typing import Any, AsyncIterator, Dict, List, Mapping, Optional, Union

from ai_services.core import config
from ai_services.core.exceptions import DataValidationError, DecodingError, GenerativeAIError, RequestError
from ai_services.http.handler import StreamRequestHandler
from ai_services.http.stream import StreamResponse
from ai_services.providers.base import TextGenerationModel
from ai_services.schemas.candidates import Candidates
from ai_services.schemas.content import Content
from ai_services.schemas.enums import AICapability
from ai_services.schemas.request import StreamRequest
from ai_services.schemas.tools import Tools
from ai_services.services.formatter import format_and_validate_new_contents, format_system_instruction
from ai_services.services.generation_config import TextGenerationConfig

logger = logging.getLogger(__name__)

API_NAME = "Gemini"


def _request_exception(message: str) -> GenerativeAIError:
    return GenerativeAIError(f"Error while making request to the {API_NAME} API: {message}")


def _response_exception(message: str) -> GenerativeAIError:
    return GenerativeAIError(f"Error in the response from the {API_NAME} API: {message}")


class GeminiModel(TextGenerationModel):
    capabilities = [
        AICapability.CHAT_HISTORY.value,
        AICapability.FUNCTION_CALLING.value,
        AICapability.MULTIMODAL_INPUT.value,
        AICapability.TEXT_GENERATION.value,
    ]

    def __init__(
        self,
        model: Optional[str] = None,
        *,
        handler: Optional[StreamRequestHandler] = None,
        base_url: Optional[str] = None,
        headers: Optional[Dict[str, str]] = None,
        tools: Optional[Tools] = None,
        generation_config: Union[TextGenerationConfig, Mapping[str, Any], None] = None,
        system_instruction: Any = None,
    ) -> None:
        self.model = model or config.GEMINI_MODEL
        self._handler = handler or StreamRequestHandler()
        self._base_url = (base_url or config.GEMINI_API_BASE).rstrip("/")
        # auth headers, if any, are the caller's business
        self._headers = dict(headers or {})
        self._tools = tools
        self._generation_config = self._parse_generation_config(generation_config)
        self._system_instruction = (
            format_system_instruction(system_instruction) if system_instruction is not None else None
        )

    def build_request(self, contents: List[Content], *, stream: bool, timeout: Optional[float] = None) -> StreamRequest:
        body: Dict[str, Any] = {"contents": [content.to_dict() for content in contents]}
        if self._tools is not None and len(self._tools) > 0:
            body["tools"] = self._tools.to_dict()
        generation_config = self._generation_config_body()
        if generation_config:
            body["generationConfig"] = generation_config
        if self._system_instruction is not None:
            # the API has no "system" role; the instruction only carries parts
            body["systemInstruction"] = {"parts": self._system_instruction.parts.to_dict()}

        method = "streamGenerateContent" if stream else "generateContent"
        return StreamRequest(
            method="POST",
            url=f"{self._base_url}/models/{self.model}:{method}",
            headers={"Content-Type": "application/json", **self._headers},
            params={"alt": "sse"} if stream else {},
            data=body,
            timeout=timeout if timeout is not None else (None if stream else config.REQUEST_TIMEOUT),
        )

    async def generate_text(self, content: Any, **kwargs: Any) -> Candidates:
        contents = self._format_contents(content)
        response = await self._open(self.build_request(contents, stream=False, timeout=kwargs.get("timeout")))
        async with response:
            try:
                async for chunk in response.read_stream():
                    return self._parse_chunk(chunk)
            except (RequestError, DecodingError) as e:
                raise _response_exception(str(e)) from e
        raise _response_exception("No data received in response.")

    async def stream_generate_text(self, content: Any, **kwargs: Any) -> AsyncIterator[Candidates]:
        """Yield one Candidates value per streamed chunk.

        The connection is released once the stream is exhausted or fails. A
        caller that may stop early should close the generator explicitly,
        otherwise the connection stays open until it is garbage-collected::

            async with contextlib.aclosing(model.stream_generate_text(prompt)) as chunks:
                async for candidates in chunks:
                    ...
        """
        contents = self._format_contents(content)
        response = await self._open(self.build_request(contents, stream=True, timeout=kwargs.get("timeout")))
        async with response:
            try:
                async for chunk in response.read_stream():
                    yield self._parse_chunk(chunk)
            except (RequestError, DecodingError) as e:
                raise _response_exception(str(e)) from e

    @staticmethod
    def _parse_generation_config(value: Any) -> Optional[TextGenerationConfig]:
        if value is None or isinstance(value, TextGenerationConfig):
            return value
        try:
            return TextGenerationConfig.from_dict(value)
        except DataValidationError as e:
            raise GenerativeAIError(f"Invalid generation config: {e}") from e

    def _generation_config_body(self) -> Dict[str, Any]:
        if self._generation_config is None:
            return {}
        body = self._generation_config.to_dict()
        # the API names output modalities responseModalities and spells them in upper case
        modalities = body.pop("outputModalities", None)
        if modalities:
            body["responseModalities"] = [m.upper() for m in modalities]
        return body

    def _format_contents(self, content: Any) -> List[Content]:
        try:
            return format_and_validate_new_contents(content, self.capabilities)
        except DataValidationError as e:
            raise GenerativeAIError(str(e)) from e

    async def _open(self, request: StreamRequest) -> StreamResponse:
        logger.debug("sending %s request for model %s", API_NAME, self.model)
        try:
            return await self._handler.request_stream(request)
        except RequestError as e:
            raise _request_exception(str(e)) from e

    def _parse_chunk(self, chunk: Any) -> Candidates:
        if not isinstance(chunk, Mapping):
            raise _response_exception("Unexpected chunk type in response.")
        error = chunk.get("error")
        if error:
            message = error.get("message") if isinstance(error, Mapping) else str(error)
            raise _response_exception(message or "Unknown error.")
        if "candidates" not in chunk:
            feedback = chunk.get("promptFeedback")
            if isinstance(feedback, Mapping) and feedback.get("blockReason"):
                raise _response_exception(f"The prompt was blocked: {feedback['blockReason']}")
            raise _response_exception('The response is missing the "candidates" key.')
        try:
            return Candidates.from_dict(chunk["candidates"])
        except DataValidationError as e:
            raise _response_exception(str(e)) from e
