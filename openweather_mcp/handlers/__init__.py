"""MCP tool handlers for the weather server."""

from .tool_handlers import WeatherToolHandlers, register_tools, text_response

__all__ = ["WeatherToolHandlers", "register_tools", "text_response"]
