from typing import Any, Iterable, List, Mapping, Union

from ai_services.core.exceptions import DataValidationError
from ai_services.schemas.content import Content
from ai_services.schemas.enums import AICapability, ContentRole
from ai_services.schemas.parts import Part, Parts, TextPart, part_from_dict


def format_content(value: Any, role: Union[str, ContentRole]) -> Content:
    """Turn a prompt value (str, parts, Content or mapping) into a Content with ``role``."""
    if isinstance(value, Content):
        return value
    if isinstance(value, str):
        parts = Parts()
        parts.add_text_part(value)
        return Content(role, parts)
    if isinstance(value, Parts):
        return Content(role, value)
    if isinstance(value, Mapping):
        return Content.from_dict(value)
    if isinstance(value, list) and value and all(isinstance(p, (Part, Mapping)) for p in value):
        return Content(role, Parts([p if isinstance(p, Part) else part_from_dict(p) for p in value]))
    raise DataValidationError("The value must be a string, a Parts instance, a list of parts, or a Content instance.")


def format_new_content(value: Any) -> Content:
    return format_content(value, ContentRole.USER)


def format_system_instruction(value: Any) -> Content:
    return format_content(value, ContentRole.SYSTEM)


def format_and_validate_new_contents(value: Any, capabilities: Iterable[str]) -> List[Content]:
    capabilities = {getattr(c, "value", c) for c in capabilities}

    # a list of Content/str/mappings is a conversation; a list of parts is one prompt
    if isinstance(value, list) and not (value and all(isinstance(p, Part) for p in value)):
        contents = [format_new_content(item) for item in value]
    else:
        contents = [format_new_content(value)]

    if not contents:
        raise DataValidationError("No prompt was provided.")
    if contents[0].role != ContentRole.USER:
        raise DataValidationError("The first Content instance in the conversation or prompt must be user content.")
    if AICapability.CHAT_HISTORY.value not in capabilities and len(contents) > 1:
        raise DataValidationError("The model does not support chat history. Only one content prompt must be provided.")
    if AICapability.MULTIMODAL_INPUT.value not in capabilities:
        # only the last content is checked; it is the only new one in a conversation
        last_parts = contents[-1].parts
        if len(last_parts.filter(TextPart)) < len(last_parts):
            raise DataValidationError("The model does not support multimodal input. Only text parts must be provided.")
    return contents
