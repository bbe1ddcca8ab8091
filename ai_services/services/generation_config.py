"""
Typed text generation settings.

Field names follow the provider's camelCase wire format. Every field is
optional and only the fields that were set are sent; keys not modelled here
are accepted and passed through so provider-specific settings keep working.
"""

from typing import Any, Dict, List, Literal, Optional

from pydantic import Field, StrictBool, StrictStr

from ai_services.schemas.base import WireModel
from ai_services.schemas.enums import Modality


class TextGenerationConfig(WireModel):
    model_config = {"extra": "allow", "use_enum_values": True}

    stopSequences: Optional[List[StrictStr]] = None
    responseMimeType: Optional[Literal["text/plain", "application/json"]] = None
    responseSchema: Optional[Dict[str, Any]] = None
    candidateCount: Optional[int] = Field(default=None, ge=1)
    maxOutputTokens: Optional[int] = Field(default=None, ge=1)
    temperature: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    topP: Optional[float] = None
    topK: Optional[int] = None
    presencePenalty: Optional[float] = None
    frequencyPenalty: Optional[float] = None
    responseLogprobs: Optional[StrictBool] = None
    logprobs: Optional[int] = None
    outputModalities: Optional[List[Modality]] = None
