# let's us swap/add providers without touching caller logic (gemini/mock...)
# declares the model contract that every provider implements

from typing import Any, AsyncIterator, List

from ai_services.schemas.candidates import Candidates


class TextGenerationModel:
    """Text generation contract shared by the real and mock providers.

    ``content`` is anything the formatter accepts: a prompt string, parts, a
    Content, or a list of Content making up a conversation.
    """

    capabilities: List[str] = []

    async def generate_text(self, content: Any, **kwargs: Any) -> Candidates:
        raise NotImplementedError  # implemented by providers/<name>.py

    def stream_generate_text(self, content: Any, **kwargs: Any) -> AsyncIterator[Candidates]:
        raise NotImplementedError
