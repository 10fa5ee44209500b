"""
High-level agent implementation.

An AIAgent owns a language model default, a system prompt default and a
list of configuration entries. On initialization every entry is routed to
its initializer (tool servers are connected, inline tools and nested
agents are registered), and the tools of all connected servers are merged
into one registry. generate_response then forwards the prompt, the merged
tools and the resolved model to the generation loop.
"""

from __future__ import annotations

import asyncio
import dataclasses
import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from mcp_ai_agent.config import WorkflowConfig
from mcp_ai_agent.core.generation import (
    DEFAULT_MAX_STEPS,
    GenerateObjectResult,
    GenerateTextResult,
    generate_object,
    generate_text,
)
from mcp_ai_agent.core.prompts import PromptManager
from mcp_ai_agent.core.router import ConfigRouter
from mcp_ai_agent.core.schema import to_json_schema
from mcp_ai_agent.errors import AgentError, InvocationError
from mcp_ai_agent.models import default_model
from mcp_ai_agent.models.base import LanguageModel, Usage
from mcp_ai_agent.tools.base import Tool, ToolRegistry
from mcp_ai_agent.tools.mcp import MCPClient
from mcp_ai_agent.utils import filter_tools as _filter_tools
from mcp_ai_agent.utils import resolve_option, to_snake_case

logger = logging.getLogger(__name__)


@dataclass
class ObjectGenerationResult:
    object: Any
    text_generation_result: GenerateTextResult
    object_generation_result: GenerateObjectResult
    usage: Usage


class AIAgent:
    """
    Agent bound to a model and a set of tool providers.

    The agent initializes lazily on the first generate call, or explicitly
    through `initialize()` / `async with`. `close()` releases every tool
    server connection, closes nested agents and returns the agent to its
    uninitialized state.

    Nested agents are held by reference, not copied: closing this agent
    closes them too, so one agent should not be nested in two parents
    that are closed independently.
    """

    def __init__(
        self,
        name: str,
        description: str,
        tools_configs: Optional[List[WorkflowConfig]] = None,
        system_prompt: Optional[str] = None,
        model: Optional[LanguageModel] = None,
        verbose: bool = False,
        prompts: Optional[PromptManager] = None,
    ) -> None:
        self.name = name
        self.description = description
        self.system = system_prompt
        self.model = model
        self.verbose = verbose
        self.prompts = prompts or PromptManager()
        self._config: List[WorkflowConfig] = list(tools_configs or [])
        self._clients: Dict[str, MCPClient] = {}
        self._tools = ToolRegistry()
        self._agents: Dict[str, Any] = {}
        self._initialized = False
        self._init_lock = asyncio.Lock()
        self._router = ConfigRouter(self)
        self._logger = logger.getChild(to_snake_case(name))
        self._level = logging.INFO if verbose else logging.DEBUG

    @property
    def initialized(self) -> bool:
        return self._initialized

    def _log(self, message: str, *args: Any) -> None:
        self._logger.log(self._level, message, *args)

    async def _register_client(self, name: str, client: MCPClient) -> None:
        previous = self._clients.get(name)
        self._clients[name] = client
        if previous is not None and previous is not client:
            self._logger.warning(
                "Tool server '%s' configured twice; closing the older connection.", name
            )
            await previous.close()

    async def _route_all(self) -> None:
        results = await asyncio.gather(
            *(self._router.route(config) for config in self._config),
            return_exceptions=True,
        )
        failures = [r for r in results if isinstance(r, BaseException)]
        for failure in failures[1:]:
            self._logger.error("Additional initialization failure: %s", failure)
        if failures:
            raise failures[0]

    async def _discover_tools(self) -> None:
        clients = list(self._clients.values())
        tool_sets = await asyncio.gather(
            *(client.tools() for client in clients),
            return_exceptions=True,
        )
        failures = [r for r in tool_sets if isinstance(r, BaseException)]
        for failure in failures[1:]:
            self._logger.error("Additional tool discovery failure: %s", failure)
        if failures:
            raise failures[0]
        for tools in tool_sets:
            self._tools.merge(tools)

    async def initialize(self) -> None:
        """
        Start every configured resource and collect the available tools.

        If any entry fails, whatever was already opened is closed and the
        first failure is raised. Calling it on an initialized agent does
        nothing.
        """
        async with self._init_lock:
            if self._initialized:
                return
            try:
                await self._route_all()
                await self._discover_tools()
            except Exception:
                self._logger.exception("Error initializing agent %s", self.name)
                try:
                    await self.close()
                except Exception:  # noqa: BLE001
                    self._logger.exception(
                        "Error closing agent %s after failed initialization", self.name
                    )
                raise
            self._initialized = True
        self._log("Agent %s initialized with tools %s", self.name, self._tools.names())

    def _resolve_model(self, model: Optional[LanguageModel]) -> LanguageModel:
        resolved = resolve_option(model, self.model)
        return resolved if resolved is not None else default_model()

    async def generate_response(
        self,
        prompt: Optional[str] = None,
        messages: Optional[List[Dict[str, Any]]] = None,
        model: Optional[LanguageModel] = None,
        system: Optional[str] = None,
        tools: Optional[Dict[str, Tool]] = None,
        tool_choice: Any = None,
        max_steps: Optional[int] = None,
        provider_options: Optional[Dict[str, Any]] = None,
        on_step_finish: Optional[Callable[..., Any]] = None,
        filter_tools: Optional[Callable[[Tool], bool]] = None,
    ) -> GenerateTextResult:
        """
        Generate a response, letting the model call the agent's tools.

        `tools` are ad hoc tools for this call only; they win over
        discovered tools of the same name. `filter_tools` narrows the
        discovered tools before the merge. A `max_steps` of zero or less
        falls back to DEFAULT_MAX_STEPS.
        """
        if not self._initialized:
            await self.initialize()

        all_tools = {**_filter_tools(self._tools.as_dict(), filter_tools), **(tools or {})}
        effective_model = self._resolve_model(model)
        # Zero or negative caps count as unset.
        requested = max_steps if max_steps is not None and max_steps > 0 else None
        steps = resolve_option(requested, None, DEFAULT_MAX_STEPS)

        self._log(
            "Generating response with %s",
            json.dumps(
                {
                    "name": self.name,
                    "prompt": prompt,
                    "model": effective_model.model_id,
                    "allTools": list(all_tools),
                    "maxSteps": steps,
                },
                indent=2,
            ),
        )

        try:
            response = await generate_text(
                model=effective_model,
                prompt=prompt,
                messages=messages,
                system=resolve_option(system, self.system),
                tools=all_tools,
                tool_choice=tool_choice,
                max_steps=steps,
                provider_options=provider_options,
                on_step_finish=on_step_finish,
            )
        except AgentError:
            self._logger.exception("Error generating response for agent %s", self.name)
            raise
        except Exception as exc:  # noqa: BLE001
            self._logger.exception("Error generating response for agent %s", self.name)
            raise InvocationError(str(exc)) from exc

        if not response.text and response.finish_reason == "tool-calls":
            response = dataclasses.replace(response, text=self.prompts.empty_tool_response())
        return response

    async def generate_object(
        self,
        schema: Any,
        schema_name: Optional[str] = None,
        schema_description: Optional[str] = None,
        prompt: Optional[str] = None,
        messages: Optional[List[Dict[str, Any]]] = None,
        model: Optional[LanguageModel] = None,
        system: Optional[str] = None,
        tools: Optional[Dict[str, Tool]] = None,
        tool_choice: Any = None,
        max_steps: Optional[int] = None,
        provider_options: Optional[Dict[str, Any]] = None,
        on_step_finish: Optional[Callable[..., Any]] = None,
        filter_tools: Optional[Callable[[Tool], bool]] = None,
    ) -> ObjectGenerationResult:
        """
        Generate a structured object matching `schema`.

        The agent first answers in free text with the schema described in
        its system prompt (tools available), then a second call extracts
        the object from that answer. Usage is summed over both calls.
        """
        if not self._initialized:
            await self.initialize()

        schema_json = to_json_schema(schema)
        effective_model = self._resolve_model(model)

        text_result = await self.generate_response(
            prompt=prompt,
            messages=messages,
            model=effective_model,
            system=self.prompts.response_format_system(
                resolve_option(system, self.system), schema_json, schema_name, schema_description
            ),
            tools=tools,
            tool_choice=tool_choice,
            max_steps=max_steps,
            provider_options=provider_options,
            on_step_finish=on_step_finish,
            filter_tools=filter_tools,
        )

        try:
            object_result = await generate_object(
                model=effective_model,
                schema=schema,
                prompt=self.prompts.object_extraction(text_result.text),
                schema_name=schema_name,
                schema_description=schema_description,
                provider_options=provider_options,
            )
        except AgentError:
            self._logger.exception("Error generating object for agent %s", self.name)
            raise
        except Exception as exc:  # noqa: BLE001
            self._logger.exception("Error generating object for agent %s", self.name)
            raise InvocationError(str(exc)) from exc

        return ObjectGenerationResult(
            object=object_result.object,
            text_generation_result=text_result,
            object_generation_result=object_result,
            usage=text_result.usage + object_result.usage,
        )

    async def close(self) -> None:
        """
        Close every tool server connection and every nested agent.

        All closes run to completion before the first failure, if any, is
        raised.
        """
        results = await asyncio.gather(
            *(client.close() for client in self._clients.values()),
            *(agent.close() for agent in self._agents.values()),
            return_exceptions=True,
        )
        self._clients.clear()
        self._agents.clear()
        self._tools.clear()
        self._initialized = False

        failures = [r for r in results if isinstance(r, BaseException)]
        for failure in failures:
            self._logger.error("Error closing agent %s: %s", self.name, failure)
        if failures:
            raise failures[0]

    def get_info(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "tools": self._tools.names(),
            "agents": list(self._agents),
            "model": self.model,
            "system": self.system,
        }

    async def __aenter__(self) -> "AIAgent":
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
