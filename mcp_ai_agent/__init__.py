"""
Agent package root.

This package assembles language-model agents from tool servers (MCP over
stdio, SSE or streamable HTTP), inline Python functions and other nested
agents. The most used names are re-exported here; the sub-packages hold
configuration loading, core agent logic, model providers and tool
adapters.
"""

from mcp_ai_agent.config import (
    AgentConfig,
    AutoParameter,
    HTTPServerConfig,
    MCPAutoConfig,
    MCPConfig,
    SSEServerConfig,
    StdioServerConfig,
    ToolConfig,
)
from mcp_ai_agent.core.agent import AIAgent
from mcp_ai_agent.core.schema import json_schema
from mcp_ai_agent.errors import (
    AgentError,
    ConfigurationError,
    InvocationError,
    MCPConnectionError,
    ToolExecutionError,
)
from mcp_ai_agent.models import anthropic_model, openai_model

__all__ = [
    "config",
    "core",
    "models",
    "servers",
    "tools",
    "AIAgent",
    "AgentConfig",
    "AutoParameter",
    "HTTPServerConfig",
    "MCPAutoConfig",
    "MCPConfig",
    "SSEServerConfig",
    "StdioServerConfig",
    "ToolConfig",
    "json_schema",
    "AgentError",
    "ConfigurationError",
    "InvocationError",
    "MCPConnectionError",
    "ToolExecutionError",
    "anthropic_model",
    "openai_model",
]
