"""
Prompt management.

This module provides a PromptManager class that holds the fixed prompt
fragments used by the agent: how a delegated task is presented to a
nested agent, how a response schema is described to the model, and the
fallback text shown when generation ends on tool calls. Each fragment can
be overridden from the `prompts` section of the YAML configuration.
"""

import json
from typing import Any, Dict, Optional

DEFAULT_PROMPTS: Dict[str, str] = {
    "agent_tool_prompt": "<Context>{context}</Context>\n<Prompt>{prompt}</Prompt>",
    "agent_tool_description": "Call the {name} agent for specialized tasks",
    "agent_tool_context": (
        "The context to send to the agent. Add any relevant information the "
        "agent needs to know for the task."
    ),
    "agent_tool_task": "The prompt to send to the agent",
    "response_format": (
        "\n\n<Response Format>\n"
        "<Schema Name>{schema_name}</Schema Name>\n"
        "<Schema Description>{schema_description}</Schema Description>\n"
        "<Schema>{schema}</Schema>\n"
        "</Response Format>\n\n"
    ),
    "object_extraction": (
        "Create an object that matches the schema from the response: "
        "<Response>{response}</Response>"
    ),
    "empty_tool_response": (
        "The AI completed with tool calls, but no final text was generated. "
        "Check if the requested resources were found."
    ),
}


class PromptManager:
    """
    Store and access prompt fragments used by agents.

    Prompts can be configured in the YAML file under the `prompts` key;
    anything not configured falls back to DEFAULT_PROMPTS.
    """

    def __init__(self, prompts_cfg: Optional[Dict[str, str]] = None) -> None:
        self.prompts_cfg = prompts_cfg or {}

    def get(self, key: str) -> str:
        return self.prompts_cfg.get(key, DEFAULT_PROMPTS[key])

    def agent_tool_prompt(self, context: str, prompt: str) -> str:
        """Wrap a delegated task in labeled context and prompt sections."""
        return self.get("agent_tool_prompt").format(context=context, prompt=prompt)

    def agent_tool_description(self, name: Optional[str]) -> str:
        return self.get("agent_tool_description").format(name=name)

    def response_format_system(
        self,
        system: Optional[str],
        schema: Dict[str, Any],
        schema_name: Optional[str] = None,
        schema_description: Optional[str] = None,
    ) -> str:
        """
        Append a response-format block describing `schema` to a system prompt.

        Returns:
            The system prompt followed by the schema name, description and
            JSON representation.
        """
        block = self.get("response_format").format(
            schema_name=schema_name or "",
            schema_description=schema_description or "",
            schema=json.dumps(schema),
        )
        return (system or "") + block

    def object_extraction(self, response: str) -> str:
        return self.get("object_extraction").format(response=response)

    def empty_tool_response(self) -> str:
        return self.get("empty_tool_response")
