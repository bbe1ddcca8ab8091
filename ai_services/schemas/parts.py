"""
Content parts exchanged with providers.

Each part is one variant of a tagged union, keyed by the single discriminant
key of its provider mapping (``text``, ``inlineData``, ``fileData``,
``functionCall``, ``functionResponse``). Field names follow the provider's
camelCase wire format. Any other keys, top-level or nested inside the
discriminant object, are kept as pydantic extras so ``to_dict()`` gives back
exactly the mapping that was set.
"""

from abc import ABC, abstractmethod
from typing import Any, ClassVar, Dict, Iterator, List, Mapping, Optional, Type

from pydantic import StrictStr, model_validator

from ai_services.core.exceptions import DataValidationError
from ai_services.schemas.base import WireModel

DISCRIMINANTS = ("text", "inlineData", "fileData", "functionCall", "functionResponse")


class InlineData(WireModel):
    mimeType: StrictStr
    data: StrictStr  # base64


class FileData(WireModel):
    mimeType: StrictStr
    fileUri: StrictStr


def _require_id_or_name(value: WireModel, label: str) -> None:
    for key in ("id", "name"):
        if key in value.model_fields_set and getattr(value, key) is None:
            raise ValueError(f"The {label} {key} value must be a string.")
    if value.id is None and value.name is None:
        raise ValueError(f"The {label} part data must contain either a string id value or a string name value.")


class FunctionCall(WireModel):
    id: Optional[StrictStr] = None
    name: Optional[StrictStr] = None
    args: Dict[str, Any]

    @model_validator(mode="after")
    def _check_id_or_name(self) -> "FunctionCall":
        _require_id_or_name(self, "function call")
        return self


class FunctionResponse(WireModel):
    id: Optional[StrictStr] = None
    name: Optional[StrictStr] = None
    response: Any

    @model_validator(mode="after")
    def _check_response(self) -> "FunctionResponse":
        _require_id_or_name(self, "function response")
        if self.response is None:
            raise ValueError("The function response part data must contain a response value.")
        return self


class Part(WireModel, ABC):
    """Base for all part variants; only the concrete variants can be created."""

    key: ClassVar[str] = ""

    @model_validator(mode="before")
    @classmethod
    def _check_discriminant(cls, data: Any) -> Any:
        if not isinstance(data, Mapping):
            raise ValueError("Part data must be a mapping.")
        if cls.key not in data:
            raise ValueError(f"Part data must contain a {cls.key} value.")
        others = [k for k in DISCRIMINANTS if k in data and k != cls.key]
        if others:
            raise ValueError(
                f"Part data must contain exactly one of {', '.join(DISCRIMINANTS)}; "
                f"got {cls.key} together with {', '.join(others)}."
            )
        return data

    @property
    @abstractmethod
    def value(self) -> Any:
        """The object stored under the discriminant key."""


class TextPart(Part):
    key: ClassVar[str] = "text"

    text: StrictStr

    @property
    def value(self) -> str:
        return self.text


class InlineDataPart(Part):
    key: ClassVar[str] = "inlineData"

    inlineData: InlineData

    @property
    def value(self) -> InlineData:
        return self.inlineData


class FileDataPart(Part):
    key: ClassVar[str] = "fileData"

    fileData: FileData

    @property
    def value(self) -> FileData:
        return self.fileData


class FunctionCallPart(Part):
    key: ClassVar[str] = "functionCall"

    functionCall: FunctionCall

    @property
    def value(self) -> FunctionCall:
        return self.functionCall


class FunctionResponsePart(Part):
    key: ClassVar[str] = "functionResponse"

    functionResponse: FunctionResponse

    @property
    def value(self) -> FunctionResponse:
        return self.functionResponse


PART_TYPES: Dict[str, Type[Part]] = {
    cls.key: cls
    for cls in (TextPart, InlineDataPart, FileDataPart, FunctionCallPart, FunctionResponsePart)
}


def part_from_dict(data: Mapping[str, Any]) -> Part:
    # the variant is chosen by the one discriminant key present
    if not isinstance(data, Mapping):
        raise DataValidationError("Invalid part data.")
    keys = [k for k in DISCRIMINANTS if k in data]
    if len(keys) != 1:
        raise DataValidationError(f"Part data must contain exactly one of {', '.join(DISCRIMINANTS)}.")
    return PART_TYPES[keys[0]].from_dict(data)


class Parts:
    """Ordered collection of parts."""

    def __init__(self, parts: Optional[List[Part]] = None) -> None:
        self._parts: List[Part] = []
        for part in parts or []:
            self.add_part(part)

    def add_text_part(self, text: str) -> None:
        self.add_part(TextPart.from_dict({"text": text}))

    def add_inline_data_part(self, mime_type: str, base64_data: str) -> None:
        self.add_part(InlineDataPart.from_dict({"inlineData": {"mimeType": mime_type, "data": base64_data}}))

    def add_file_data_part(self, mime_type: str, file_uri: str) -> None:
        self.add_part(FileDataPart.from_dict({"fileData": {"mimeType": mime_type, "fileUri": file_uri}}))

    def add_function_call_part(self, id: str, name: str, args: Dict[str, Any]) -> None:
        data: Dict[str, Any] = {}
        if id:
            data["id"] = id
        if name:
            data["name"] = name
        data["args"] = args
        self.add_part(FunctionCallPart.from_dict({"functionCall": data}))

    def add_function_response_part(self, id: str, name: str, response: Any) -> None:
        data: Dict[str, Any] = {}
        if id:
            data["id"] = id
        if name:
            data["name"] = name
        data["response"] = response
        self.add_part(FunctionResponsePart.from_dict({"functionResponse": data}))

    def add_part(self, part: Part) -> None:
        if not isinstance(part, Part):
            raise DataValidationError("Only Part instances can be added.")
        self._parts.append(part)

    def get(self, index: int) -> Part:
        if index < 0 or index >= len(self._parts):
            raise IndexError("Index out of bounds.")
        return self._parts[index]

    def filter(self, part_type: Optional[Type[Part]] = None) -> "Parts":
        return Parts([
            type(p).from_dict(p.to_dict())
            for p in self._parts
            if part_type is None or isinstance(p, part_type)
        ])

    def __iter__(self) -> Iterator[Part]:
        return iter(self._parts)

    def __len__(self) -> int:
        return len(self._parts)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Parts):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self) -> str:
        return f"Parts({self._parts!r})"

    def to_dict(self) -> List[Dict[str, Any]]:
        return [part.to_dict() for part in self._parts]

    @classmethod
    def from_dict(cls, data: List[Mapping[str, Any]]) -> "Parts":
        if not isinstance(data, list):
            raise DataValidationError("Parts data must be a list.")
        return cls([part_from_dict(item) for item in data])
