"""
Exception hierarchy for the agent package.

Every error raised by this package derives from `AgentError`, so callers
can catch the whole family at once or pick out a single failure kind.
"""

from __future__ import annotations

from typing import Iterable, List, Optional


class AgentError(Exception):
    """Base class for all errors raised by mcp_ai_agent."""


class ConfigurationError(AgentError):
    """
    Raised when a configuration entry cannot be used.

    This covers unsupported entry shapes and auto-resolved servers whose
    required environment parameters are missing. In the latter case
    `missing` lists every absent parameter, not only the first one.
    """

    def __init__(self, message: str, missing: Optional[Iterable[str]] = None) -> None:
        super().__init__(message)
        self.missing: List[str] = list(missing or [])


class MCPConnectionError(AgentError, ConnectionError):
    """Raised when a tool server process cannot be spawned or reached."""

    def __init__(self, server_name: str, message: str) -> None:
        super().__init__(f"Tool server '{server_name}': {message}")
        self.server_name = server_name


class ToolExecutionError(AgentError):
    """Raised when an inline or remote tool fails while executing."""

    def __init__(self, tool_name: str, message: str) -> None:
        super().__init__(f"Tool '{tool_name}' failed: {message}")
        self.tool_name = tool_name


class InvocationError(AgentError):
    """Raised when the model invocation call fails."""
