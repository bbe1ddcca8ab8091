# tool descriptors attached to a generation request
# a tool keeps the raw provider mapping it was given; to_dict() reproduces exactly that

from typing import Any, ClassVar, Dict, Iterator, List, Mapping, Optional, Type

from pydantic import Field, StrictStr, model_validator

from ai_services.core.exceptions import DataValidationError
from ai_services.schemas.base import WireModel


class Tool(WireModel):
    """Generic provider-shaped tool, e.g. ``{"googleSearch": {}}``."""

    @model_validator(mode="before")
    @classmethod
    def _check_not_empty(cls, data: Any) -> Any:
        if not isinstance(data, Mapping) or not data:
            raise ValueError("Tool data must be a non-empty mapping.")
        return data


class FunctionDeclaration(WireModel):
    name: StrictStr
    description: Optional[StrictStr] = None
    parameters: Optional[Dict[str, Any]] = None


class FunctionDeclarationsTool(Tool):
    key: ClassVar[str] = "functionDeclarations"

    functionDeclarations: List[FunctionDeclaration]

    @property
    def function_declarations(self) -> List[Dict[str, Any]]:
        return [declaration.to_dict() for declaration in self.functionDeclarations]


class WebSearch(WireModel):
    allowedDomains: List[StrictStr] = Field(default_factory=list)
    disallowedDomains: List[StrictStr] = Field(default_factory=list)


class WebSearchTool(Tool):
    key: ClassVar[str] = "webSearch"

    webSearch: WebSearch

    @property
    def allowed_domains(self) -> List[str]:
        return list(self.webSearch.allowedDomains)

    @property
    def disallowed_domains(self) -> List[str]:
        return list(self.webSearch.disallowedDomains)


TOOL_TYPES: Dict[str, Type[Tool]] = {
    FunctionDeclarationsTool.key: FunctionDeclarationsTool,
    WebSearchTool.key: WebSearchTool,
}


def tool_from_dict(data: Mapping[str, Any]) -> Tool:
    if not isinstance(data, Mapping):
        raise DataValidationError("Invalid tool data.")
    for key, tool_type in TOOL_TYPES.items():
        if key in data:
            return tool_type.from_dict(data)
    return Tool.from_dict(data)


class Tools:
    def __init__(self, tools: Optional[List[Tool]] = None) -> None:
        self._tools: List[Tool] = []
        for tool in tools or []:
            self.add_tool(tool)

    def add_function_declarations_tool(self, function_declarations: List[Dict[str, Any]]) -> None:
        self.add_tool(FunctionDeclarationsTool.from_dict({"functionDeclarations": function_declarations}))

    def add_web_search_tool(
        self,
        allowed_domains: Optional[List[str]] = None,
        disallowed_domains: Optional[List[str]] = None,
    ) -> None:
        self.add_tool(WebSearchTool.from_dict({
            "webSearch": {
                "allowedDomains": list(allowed_domains or []),
                "disallowedDomains": list(disallowed_domains or []),
            },
        }))

    def add_tool(self, tool: Tool) -> None:
        if not isinstance(tool, Tool):
            raise DataValidationError("Only Tool instances can be added.")
        self._tools.append(tool)

    def get(self, index: int) -> Tool:
        if index < 0 or index >= len(self._tools):
            raise IndexError("Index out of bounds.")
        return self._tools[index]

    def __iter__(self) -> Iterator[Tool]:
        return iter(self._tools)

    def __len__(self) -> int:
        return len(self._tools)

    def to_dict(self) -> List[Dict[str, Any]]:
        return [tool.to_dict() for tool in self._tools]

    @classmethod
    def from_dict(cls, data: List[Mapping[str, Any]]) -> "Tools":
        if not isinstance(data, list):
            raise DataValidationError("Tools data must be a list.")
        return cls([tool_from_dict(item) for item in data])
