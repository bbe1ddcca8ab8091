from typing import Any, Optional
from ai_services.core import config
from ai_services.core.exceptions import GenerativeAIError
from ai_services.providers.base import TextGenerationModel


def get_model(model: Optional[str] = None, **kwargs: Any) -> TextGenerationModel:
    if config.MOCK_ENABLED or config.PROVIDER == "mock":
        from ai_services.mock.model import MockTextGenerationModel
        return MockTextGenerationModel(model or "mock-text-gen")
    if config.PROVIDER == "gemini":
        from ai_services.providers.gemini import GeminiModel
        return GeminiModel(model, **kwargs)
    raise GenerativeAIError(f"Unknown provider: {config.PROVIDER}")
