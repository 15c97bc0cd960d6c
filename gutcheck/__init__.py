"""Gut health tracking backend with a tool-calling chat assistant."""

__version__ = "0.1.0"
