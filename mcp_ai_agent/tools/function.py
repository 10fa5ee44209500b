"""
Inline function tools.

Registers a caller-supplied Python function as a tool. No process or
network resource is opened; the function runs in the agent's event loop
(or inline, if it is a plain function).
"""

from __future__ import annotations

import inspect
from typing import Any, Dict

from mcp_ai_agent.config import ToolConfig
from mcp_ai_agent.core.schema import is_model_class, to_json_schema
from mcp_ai_agent.errors import ToolExecutionError
from mcp_ai_agent.tools.base import Tool
from mcp_ai_agent.utils import to_snake_case


def function_tool(config: ToolConfig) -> Tool:
    """
    Build a Tool from a ToolConfig.

    When `config.parameters` is a pydantic model the arguments are
    validated (and coerced) by it before `config.execute` is called.
    Anything the function raises comes back as ToolExecutionError.
    """
    name = to_snake_case(config.name)
    params_model = config.parameters if is_model_class(config.parameters) else None

    async def execute(**arguments: Any) -> Any:
        try:
            if params_model is not None:
                arguments = params_model.model_validate(arguments).model_dump()
            result = config.execute(**arguments)
            if inspect.isawaitable(result):
                result = await result
        except ToolExecutionError:
            raise
        except Exception as exc:  # noqa: BLE001
            raise ToolExecutionError(name, str(exc)) from exc
        return result

    parameters: Dict[str, Any] = to_json_schema(config.parameters)
    return Tool(
        name=name,
        description=config.description,
        parameters=parameters,
        execute=execute,
    )
