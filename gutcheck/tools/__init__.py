"""Tools for the gut health assistant."""

from gutcheck.tools.registry import ToolsRegistry

__all__ = ["ToolsRegistry"]
