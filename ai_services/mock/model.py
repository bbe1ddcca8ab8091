# text generation model that never touches the network
# results come from MockResults registrations, see mock/results.py

import logging
from typing import Any, AsyncIterator, List

from ai_services.core.exceptions import DataValidationError, GenerativeAIError
from ai_services.mock.results import MockResults
from ai_services.providers.base import TextGenerationModel
from ai_services.schemas.candidates import Candidates
from ai_services.schemas.content import Content
from ai_services.schemas.enums import AICapability
from ai_services.services.formatter import format_and_validate_new_contents

logger = logging.getLogger(__name__)


class MockTextGenerationModel(MockResults, TextGenerationModel):
    capabilities = [
        AICapability.CHAT_HISTORY.value,
        AICapability.FUNCTION_CALLING.value,
        AICapability.MULTIMODAL_INPUT.value,
        AICapability.TEXT_GENERATION.value,
    ]

    def __init__(self, model: str = "mock-text-gen") -> None:
        super().__init__()
        self.model = model

    async def generate_text(self, content: Any, **kwargs: Any) -> Candidates:
        return self.resolve_expected_candidates(self._format_contents(content))

    async def stream_generate_text(self, content: Any, **kwargs: Any) -> AsyncIterator[Candidates]:
        yield self.resolve_expected_candidates(self._format_contents(content))

    def _format_contents(self, content: Any) -> List[Content]:
        try:
            contents = format_and_validate_new_contents(content, self.capabilities)
        except DataValidationError as e:
            raise GenerativeAIError(str(e)) from e
        logger.debug("resolving mock result for %d content(s)", len(contents))
        return contents
