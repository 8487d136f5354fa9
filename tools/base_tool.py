"""Base tool interface and parameter checks."""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from typing import Any

from tools.schemas import ToolParameter, ToolResult

_TYPE_CHECKS = {
    "string": lambda v: isinstance(v, str),
    "number": lambda v: isinstance(v, int | float) and not isinstance(v, bool) and math.isfinite(v),
    "boolean": lambda v: isinstance(v, bool),
    "array": lambda v: isinstance(v, list),
    "object": lambda v: isinstance(v, dict),
}


class BaseTool(ABC):
    """Base class for tools exposed to an agent."""

    name: str
    description: str
    parameters: list[ToolParameter]

    def __init__(self, enabled: bool = True, settings: dict[str, Any] | None = None) -> None:
        self.enabled = enabled
        self.settings = settings or {}

    @abstractmethod
    async def execute(self, payload: dict[str, Any]) -> ToolResult:
        """Run the tool; failures are reported in the result, never raised."""

    def definition(self) -> dict[str, Any]:
        """Declaration in the JSON-schema shape used for function calling."""
        properties: dict[str, Any] = {}
        for param in self.parameters:
            prop: dict[str, Any] = {"type": param.type, "description": param.description}
            if param.default is not None:
                prop["default"] = param.default
            properties[param.name] = prop
        return {
            "name": self.name,
            "description": self.description,
            "parameters": {
                "type": "object",
                "properties": properties,
                "required": [p.name for p in self.parameters if p.required],
            },
        }

    def validate_parameters(self, payload: dict[str, Any]) -> str | None:
        """Return an error message for the first bad parameter, if any."""
        for param in self.parameters:
            value = payload.get(param.name)
            if param.required and (value is None or (isinstance(value, str) and not value.strip())):
                return f"Required parameter '{param.name}' is missing"
            if value is None:
                continue
            check = _TYPE_CHECKS.get(param.type)
            if check is not None and not check(value):
                return (
                    f"Parameter '{param.name}' must be of type {param.type}, "
                    f"got {type(value).__name__}"
                )
            if isinstance(value, str):
                problem = _text_problem(value)
                if problem is not None:
                    return f"Parameter '{param.name}' {problem}"
        return None


def _text_problem(value: str) -> str | None:
    if "\x00" in value:
        return "must not contain NUL bytes"
    try:
        value.encode("utf-8")
    except UnicodeEncodeError:
        return "must be valid UTF-8 text"
    return None
