"""Tools registry for managing AI assistant tools."""

import json
from collections.abc import Callable
from datetime import date
from typing import Any

from pydantic import ValidationError

from gutcheck.models.messages import ToolCall
from gutcheck.models.tools import ToolName
from gutcheck.services.entries import EntryRepository
from gutcheck.services.health_data import HealthDataProvider
from gutcheck.services.literature import LiteratureSearch
from gutcheck.tools.analyze_health_patterns import create_analyze_health_patterns_tool
from gutcheck.tools.base import ToolDefinition
from gutcheck.tools.get_health_data import create_get_health_data_tool
from gutcheck.tools.query_user_data import create_query_user_data_tool
from gutcheck.tools.search_pubmed import create_search_pubmed_tool
from gutcheck.utils.logging import get_logger

logger = get_logger(__name__)


def _describe_validation_error(error: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(part) for part in err['loc']) or 'arguments'}: {err['msg']}" for err in error.errors()
    )


class ToolsRegistry:
    """Registry for the assistant's tools and their execution."""

    def __init__(
        self,
        entries: EntryRepository,
        literature: LiteratureSearch,
        health_data: HealthDataProvider,
        today: Callable[[], date] = date.today,
    ):
        """Initialize tools registry with the backing strategies."""
        self.entries = entries
        self.literature = literature
        self.health_data = health_data
        self.today = today
        self._tools: dict[ToolName, ToolDefinition] = {}
        self._register_default_tools()

    def _register_default_tools(self) -> None:
        """Register the four assistant tools, in catalog order."""
        tools = [
            create_query_user_data_tool(self.entries, self.today),
            create_search_pubmed_tool(self.literature),
            create_get_health_data_tool(self.health_data),
            create_analyze_health_patterns_tool(),
        ]

        for tool in tools:
            self.register_tool(tool)

    def register_tool(self, tool: ToolDefinition) -> None:
        """Register a tool, replacing any tool with the same name."""
        self._tools[tool.name] = tool

    def get_tool_schemas(self) -> list[dict[str, Any]]:
        """Get the function-tool catalog sent to the model."""
        return [tool.get_json_schema() for tool in self._tools.values()]

    def get_tool_names(self) -> list[str]:
        """Get list of all registered tool names."""
        return [name.value for name in self._tools]

    def has_tool(self, name: str) -> bool:
        """Check if a tool is registered."""
        return name in self._tools

    async def execute(self, call_id: str, name: str, raw_arguments: str, user_id: str) -> ToolCall:
        """Run one model-requested tool call.

        Failures of any kind are reported in the returned ToolCall's
        ``result["error"]``; this method does not raise.

        Args:
            call_id: Identifier the model assigned to the call
            name: Requested tool name
            raw_arguments: JSON-encoded arguments as produced by the model
            user_id: Identity that scopes data access

        Returns:
            The executed call with its result
        """
        try:
            arguments = json.loads(raw_arguments or "{}")
        except json.JSONDecodeError as e:
            logger.error(f"Tool {name} received malformed arguments: {raw_arguments!r}")
            return ToolCall(id=call_id, name=name, arguments={}, result={"error": f"Malformed tool arguments: {e}"})

        if not isinstance(arguments, dict):
            return ToolCall(
                id=call_id, name=name, arguments={}, result={"error": "Tool arguments must be a JSON object"}
            )

        if not self.has_tool(name):
            logger.error(f"Unknown tool requested: {name}")
            return ToolCall(id=call_id, name=name, arguments=arguments, result={"error": f"Unknown tool: {name}"})

        tool = self._tools[ToolName(name)]

        try:
            parsed = tool.parse_input(arguments)
        except ValidationError as e:
            logger.warning(f"Tool {name} rejected arguments {arguments}: {e}")
            return ToolCall(
                id=call_id,
                name=name,
                arguments=arguments,
                result={"error": f"Invalid arguments for {name}: {_describe_validation_error(e)}"},
            )

        logger.debug(f"Executing tool: {name} with input: {arguments}")
        try:
            result = await tool.handler(parsed, user_id)
        except Exception as e:
            logger.error(f"Tool {name} failed: {e}", exc_info=True)
            return ToolCall(
                id=call_id,
                name=name,
                arguments=parsed.model_dump(by_alias=True),
                result={"error": str(e) or type(e).__name__},
            )

        logger.debug(f"Tool {name} succeeded")
        return ToolCall(id=call_id, name=name, arguments=parsed.model_dump(by_alias=True), result=result.to_wire())
