# constrained string-valued categories shared by the content model and providers
# each concrete enum declares its fixed value set; membership is checked, never assumed

from enum import Enum
from typing import Any, List


class AbstractEnum(str, Enum):
    """Base for closed sets of string values.

    Members compare equal to their string value, so ``ContentRole.USER == "user"``.
    """

    @classmethod
    def is_valid_value(cls, value: Any) -> bool:
        if isinstance(value, Enum):
            value = value.value
        if not isinstance(value, str):
            return False
        return value in cls._value2member_map_

    @classmethod
    def get_values(cls) -> List[str]:
        return [member.value for member in cls]


class ContentRole(AbstractEnum):
    USER = "user"
    MODEL = "model"
    SYSTEM = "system"


class FinishReason(AbstractEnum):
    FINISH_REASON_UNSPECIFIED = "FINISH_REASON_UNSPECIFIED"
    STOP = "STOP"
    MAX_TOKENS = "MAX_TOKENS"
    SAFETY = "SAFETY"
    RECITATION = "RECITATION"
    LANGUAGE = "LANGUAGE"
    BLOCKLIST = "BLOCKLIST"
    PROHIBITED_CONTENT = "PROHIBITED_CONTENT"
    SPII = "SPII"
    MALFORMED_FUNCTION_CALL = "MALFORMED_FUNCTION_CALL"
    OTHER = "OTHER"


class AICapability(AbstractEnum):
    CHAT_HISTORY = "chat_history"
    FUNCTION_CALLING = "function_calling"
    IMAGE_GENERATION = "image_generation"
    MULTIMODAL_INPUT = "multimodal_input"
    MULTIMODAL_OUTPUT = "multimodal_output"
    TEXT_GENERATION = "text_generation"


class ServiceType(AbstractEnum):
    CLOUD = "cloud"
    SERVER = "server"
    CLIENT = "client"


class Modality(AbstractEnum):
    TEXT = "text"
    IMAGE = "image"
    AUDIO = "audio"
