"""
Tool adapters.

Tools are what the model may call mid-generation. They come from MCP
tool servers (`mcp`), inline Python functions (`function`) or nested
agents (`agent_tool`), and share the `Tool` type from `base`.
"""

__all__ = [
    "base",
    "mcp",
    "function",
    "agent_tool",
]
