"""
Base classes for tools.

A tool is a named, schema-described callable the model may invoke while
generating. Tools come from tool servers, from inline Python functions,
or from nested agents, but all of them share the `Tool` shape below and
are collected in a `ToolRegistry` for lookup by name.
"""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, List, Optional

from mcp_ai_agent.errors import ToolExecutionError

logger = logging.getLogger(__name__)


@dataclass
class Tool:
    """
    Represents a tool that the agent can invoke.

    `parameters` is a JSON schema object describing the keyword arguments
    `execute` accepts. `execute` may be a plain function or a coroutine
    function.
    """

    name: str
    description: str
    parameters: Dict[str, Any] = field(
        default_factory=lambda: {"type": "object", "properties": {}}
    )
    execute: Optional[Callable[..., Any]] = None

    async def run(self, arguments: Dict[str, Any]) -> Any:
        if self.execute is None:
            raise ToolExecutionError(self.name, "no execute function")
        result = self.execute(**arguments)
        if inspect.isawaitable(result):
            result = await result
        return result

    def to_openai(self) -> Dict[str, Any]:
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            },
        }


class ToolRegistry:
    """
    Registers and retrieves tools by name.

    Registering a name twice keeps the later tool.
    """

    def __init__(self) -> None:
        self._tools: Dict[str, Tool] = {}

    def register_tool(self, tool: Tool, name: Optional[str] = None) -> None:
        key = name or tool.name
        if key in self._tools and self._tools[key] is not tool:
            logger.warning("Tool '%s' is registered twice; keeping the latest.", key)
        self._tools[key] = tool

    def merge(self, tools: Dict[str, Tool]) -> None:
        for name, tool in tools.items():
            self.register_tool(tool, name=name)

    def get_tool(self, name: str) -> Optional[Tool]:
        return self._tools.get(name)

    def list_tools(self) -> List[Tool]:
        return list(self._tools.values())

    def names(self) -> List[str]:
        return list(self._tools)

    def as_dict(self) -> Dict[str, Tool]:
        return dict(self._tools)

    def clear(self) -> None:
        self._tools.clear()

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def __iter__(self) -> Iterator[str]:
        return iter(self._tools)
