"""Base types and definitions for tools."""

import copy
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel

from gutcheck.models.tools import ToolName, WireModel

# (validated arguments, user identity) -> result
ToolHandler = Callable[[Any, str], Awaitable[WireModel]]


@dataclass
class ToolDefinition:
    """Definition of a tool available to the AI assistant."""

    name: ToolName
    description: str
    input_schema_class: type[BaseModel]
    handler: ToolHandler
    parameters: dict[str, Any]  # JSON schema sent to the model, kept exactly as written

    def get_json_schema(self) -> dict[str, Any]:
        """Get the function-tool entry for this tool."""
        return {
            "type": "function",
            "function": {
                "name": self.name.value,
                "description": self.description,
                "parameters": copy.deepcopy(self.parameters),
            },
        }

    def parse_input(self, raw_input: dict[str, Any]) -> BaseModel:
        """Parse and validate tool input."""
        return self.input_schema_class.model_validate(raw_input)
