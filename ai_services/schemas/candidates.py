"""
Candidate completions returned for one request.

A candidate pairs a Content with provider metadata (finishReason,
safetyRatings, citationMetadata, groundingMetadata, index, ...). The metadata
is opaque here: it is kept as pydantic extras, stored and forwarded, never
interpreted. Candidate order reflects provider ranking and is kept as received.
"""

import copy
import re
from typing import Any, Dict, Iterator, List, Mapping, Optional, Type

from pydantic import ValidationError, model_validator

from ai_services.core.exceptions import DataValidationError
from ai_services.schemas.base import WireModel, validation_message
from ai_services.schemas.content import Content
from ai_services.schemas.enums import ContentRole
from ai_services.schemas.parts import Part

_UNDERSCORE_RE = re.compile(r"_([a-z0-9])")


def _camel_case(name: str) -> str:
    return _UNDERSCORE_RE.sub(lambda m: m.group(1).upper(), name)


class Candidate(WireModel):
    content: Content

    def __init__(self, content: Content, additional_data: Optional[Mapping[str, Any]] = None) -> None:
        if not isinstance(content, Content):
            raise DataValidationError("Candidate content must be a Content instance.")
        # content lives on the candidate itself; drop it here so it can't conflict
        data = {k: v for k, v in copy.deepcopy(dict(additional_data or {})).items() if k != "content"}
        try:
            super().__init__(content=content, **data)
        except ValidationError as e:
            raise DataValidationError(validation_message(e)) from e

    @model_validator(mode="before")
    @classmethod
    def _default_role(cls, data: Any) -> Any:
        # providers omit the role on returned content; it is always the model's
        if isinstance(data, Mapping) and isinstance(data.get("content"), Mapping) and "role" not in data["content"]:
            data = {**data, "content": {**data["content"], "role": ContentRole.MODEL.value}}
        return data

    @property
    def additional_data(self) -> Dict[str, Any]:
        return copy.deepcopy(self.model_extra or {})

    @property
    def finish_reason(self) -> Optional[str]:
        return self.get_field_value("finish_reason")

    def get_field_value(self, field: str) -> Any:
        extra = self.model_extra or {}
        if field in extra:
            return extra[field]
        if "_" in field:
            return extra.get(_camel_case(field))
        return None


class Candidates:
    def __init__(self, candidates: Optional[List[Candidate]] = None) -> None:
        self._candidates: List[Candidate] = []
        for candidate in candidates or []:
            self.add_candidate(candidate)

    def add_candidate(self, candidate: Candidate) -> None:
        if not isinstance(candidate, Candidate):
            raise DataValidationError("Only Candidate instances can be added.")
        self._candidates.append(candidate)

    def get(self, index: int) -> Candidate:
        if index < 0 or index >= len(self._candidates):
            raise IndexError("Index out of bounds.")
        return self._candidates[index]

    def filter(self, part_type: Optional[Type[Part]] = None) -> "Candidates":
        # keeps candidates that still have parts of part_type after filtering
        result = Candidates()
        for candidate in self._candidates:
            parts = candidate.content.parts.filter(part_type)
            if len(parts) == 0:
                continue
            data = candidate.to_dict()
            data["content"]["parts"] = parts.to_dict()
            result.add_candidate(Candidate.from_dict(data))
        return result

    def __iter__(self) -> Iterator[Candidate]:
        return iter(self._candidates)

    def __len__(self) -> int:
        return len(self._candidates)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Candidates):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self) -> str:
        return f"Candidates({self._candidates!r})"

    def to_dict(self) -> List[Dict[str, Any]]:
        return [candidate.to_dict() for candidate in self._candidates]

    @classmethod
    def from_dict(cls, data: List[Mapping[str, Any]]) -> "Candidates":
        if not isinstance(data, list):
            raise DataValidationError("Candidates data must be a list.")
        return cls([Candidate.from_dict(item) for item in data])
