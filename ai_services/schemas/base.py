# shared pydantic base for provider-shaped (camelCase) wire objects
# unknown keys are kept as extras so to_dict() gives back exactly what was set

import copy
from typing import Any, Dict, Mapping, Type, TypeVar

from pydantic import BaseModel, ValidationError

from ai_services.core.exceptions import DataValidationError

M = TypeVar("M", bound="WireModel")


def validation_message(error: ValidationError) -> str:
    first = error.errors()[0]
    message = first["msg"]
    if message.startswith("Value error, "):
        message = message[len("Value error, "):]
    location = ".".join(str(p) for p in first["loc"])
    return f"{message} ({location})" if location else message


class WireModel(BaseModel):
    model_config = {"extra": "allow"}

    def to_dict(self) -> Dict[str, Any]:
        # unset optionals stay absent, so an omitted id or name never shows up as None
        return self.model_dump(exclude_unset=True)

    @classmethod
    def from_dict(cls: Type[M], data: Mapping[str, Any]) -> M:
        try:
            return cls.model_validate(copy.deepcopy(data))
        except ValidationError as e:
            raise DataValidationError(validation_message(e)) from e

    def set_data(self, data: Mapping[str, Any]) -> None:
        """Replace this object's data in place, validating it like ``from_dict``."""
        other = type(self).from_dict(data)
        for name in ("__dict__", "__pydantic_extra__", "__pydantic_fields_set__"):
            object.__setattr__(self, name, getattr(other, name))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, WireModel):
            return NotImplemented
        return type(self) is type(other) and self.to_dict() == other.to_dict()
