"""
Nested agents as tools.

A parent agent can delegate work to another agent. The nested agent is
exposed as a single tool taking a `context` and a `prompt`; calling it runs
the nested agent's generate_response and hands its text back to the
parent's model.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Tuple

from mcp_ai_agent.config import AgentConfig
from mcp_ai_agent.core.prompts import PromptManager
from mcp_ai_agent.tools.base import Tool
from mcp_ai_agent.utils import resolve_option, to_snake_case

logger = logging.getLogger(__name__)


def agent_info(agent: Any) -> Dict[str, Any]:
    get_info = getattr(agent, "get_info", None)
    return (get_info() if callable(get_info) else None) or {}


def agent_tool_name(config: AgentConfig) -> str:
    """Name the nested agent: override name, then its own name, then a random id."""
    if config.name:
        return to_snake_case(config.name)
    return to_snake_case(agent_info(config.agent).get("name"))


def build_agent_tool(
    config: AgentConfig,
    parent_model: Any = None,
    prompts: Optional[PromptManager] = None,
) -> Tuple[str, Tool]:
    """
    Build the tool wrapping `config.agent`.

    Returns the nested agent's resolved name together with the tool, which
    is named `agent_<resolved name>`.
    """
    prompts = prompts or PromptManager()
    name = agent_tool_name(config)
    info = agent_info(config.agent)
    description = (
        config.description
        or info.get("description")
        or prompts.agent_tool_description(config.name or info.get("name") or name)
    )

    async def execute(context: str, prompt: str) -> str:
        task = prompts.agent_tool_prompt(context, prompt)
        messages = None
        if config.messages is not None:
            messages = list(config.messages) + [{"role": "user", "content": task}]
            task = None
        response = await config.agent.generate_response(
            model=resolve_option(config.model, info.get("model"), parent_model),
            prompt=task,
            messages=messages,
            system=resolve_option(config.system, info.get("system"), ""),
            tools=config.tools,
            tool_choice=config.tool_choice,
            max_steps=config.max_steps,
            provider_options=config.provider_options,
            on_step_finish=config.on_step_finish,
            filter_tools=config.filter_tools,
        )
        logger.debug("Agent %s responded: %s", name, response.text)
        return response.text

    tool = Tool(
        name=f"agent_{name}",
        description=description,
        parameters={
            "type": "object",
            "properties": {
                "context": {"type": "string", "description": prompts.get("agent_tool_context")},
                "prompt": {"type": "string", "description": prompts.get("agent_tool_task")},
            },
            "required": ["context", "prompt"],
        },
        execute=execute,
    )
    return name, tool
