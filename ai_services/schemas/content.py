# one role-tagged turn of a conversation: a role marker plus a non-empty list of parts

import copy
from typing import Any, Dict, List, Mapping, Union

from pydantic import ValidationError, field_serializer, field_validator

from ai_services.core.exceptions import DataValidationError
from ai_services.schemas.base import WireModel, validation_message
from ai_services.schemas.enums import ContentRole
from ai_services.schemas.parts import Part, Parts, part_from_dict


class Content(WireModel):
    model_config = {"extra": "allow", "arbitrary_types_allowed": True}

    role: ContentRole
    parts: Parts

    def __init__(self, role: Union[str, ContentRole], parts: Union[Parts, List[Part]], **data: Any) -> None:
        try:
            super().__init__(role=role, parts=parts, **data)
        except ValidationError as e:
            raise DataValidationError(validation_message(e)) from e

    @field_validator("role", mode="before")
    @classmethod
    def _check_role(cls, value: Any) -> Any:
        if not ContentRole.is_valid_value(value):
            raise ValueError(f"The role {value!r} is invalid.")
        return value

    @field_validator("parts", mode="before")
    @classmethod
    def _build_parts(cls, value: Any) -> Any:
        if isinstance(value, Parts):
            return value
        if not isinstance(value, list):
            raise ValueError("Content parts must be a list.")
        return Parts([p if isinstance(p, Part) else part_from_dict(p) for p in value])

    @field_validator("parts")
    @classmethod
    def _check_not_empty(cls, value: Parts) -> Parts:
        if len(value) == 0:
            raise ValueError("Content must contain at least one part.")
        return value

    @field_serializer("role")
    def _dump_role(self, role: ContentRole) -> str:
        return role.value

    @field_serializer("parts")
    def _dump_parts(self, parts: Parts) -> List[Dict[str, Any]]:
        return parts.to_dict()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Content":
        if not isinstance(data, Mapping) or "role" not in data or "parts" not in data:
            raise DataValidationError("Content data must contain role and parts.")
        return super().from_dict(data)

    def copy(self) -> "Content":
        return Content.from_dict(copy.deepcopy(self.to_dict()))
