"""
Routing logic.

ModelRouter resolves which provider and model should handle a request.
ConfigRouter decides, for each configuration entry of an agent, which
initializer starts the backing resource: a subprocess or network tool
server, an auto-resolved server template, an inline function tool, or a
nested agent.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any, Union

from mcp_ai_agent.config import (
    AgentConfig,
    HTTPServerConfig,
    MCPAutoConfig,
    MCPConfig,
    SSEServerConfig,
    StdioServerConfig,
    ToolConfig,
)
from mcp_ai_agent.core.initializers import (
    initialize_auto_server,
    initialize_network_server,
    initialize_stdio_server,
)
from mcp_ai_agent.errors import ConfigurationError
from mcp_ai_agent.models.base import LanguageModel, ModelRegistry, ProviderError
from mcp_ai_agent.tools.agent_tool import build_agent_tool
from mcp_ai_agent.tools.function import function_tool
from mcp_ai_agent.utils import to_snake_case

if TYPE_CHECKING:
    from mcp_ai_agent.core.agent import AIAgent

logger = logging.getLogger(__name__)


class ModelRouter:
    """
    ModelRouter turns model references into LanguageModel objects using
    the providers and models registered in a ModelRegistry.
    """

    def __init__(self, model_registry: ModelRegistry) -> None:
        self.model_registry = model_registry

    def resolve(self, model: Union[LanguageModel, str]) -> LanguageModel:
        """
        Resolve a model reference.

        Args:
            model: A LanguageModel (returned as is) or a string of the form
                "provider/model_key" naming a registered model.

        Raises:
            ProviderError: If the provider or model cannot be resolved.
        """
        if isinstance(model, LanguageModel):
            return model
        provider_name, sep, model_key = str(model).partition("/")
        if not sep or not model_key:
            raise ProviderError(f"Model reference must look like 'provider/model', got '{model}'.")
        return self.model_registry.language_model(provider_name, model_key)


class ConfigRouter:
    """
    Dispatch configuration entries to their initializers.

    The router holds no state of its own; clients, tools and nested
    agents are registered on the agent passed in.
    """

    def __init__(self, agent: "AIAgent") -> None:
        self.agent = agent

    async def route(self, config: Any) -> None:
        if isinstance(config, MCPAutoConfig):
            self.agent._log("Config Router: Initializing auto server %s", config.name)
            await self.route_server(config.name, config)
        elif isinstance(config, AgentConfig):
            self.agent._log("Config Router: Initializing agent config %s", config.name)
            self.route_agent(config)
        elif isinstance(config, ToolConfig):
            self.agent._log("Config Router: Initializing tool %s", config.name)
            self.route_tool(config)
        elif isinstance(config, MCPConfig):
            self.agent._log(
                "Config Router: Initializing MCP config %s", list(config.mcp_servers)
            )
            await self.route_servers(config)
        else:
            raise ConfigurationError(
                f"Unsupported configuration entry: {type(config).__name__}"
            )

    async def route_servers(self, config: MCPConfig) -> None:
        results = await asyncio.gather(
            *(self.route_server(name, server) for name, server in config.mcp_servers.items()),
            return_exceptions=True,
        )
        failures = [r for r in results if isinstance(r, BaseException)]
        if failures:
            raise failures[0]

    async def route_server(self, name: str, server: Any) -> None:
        if isinstance(server, StdioServerConfig):
            self.agent._log("Initializing stdio server %s", name)
            client = await initialize_stdio_server(name, server)
        elif isinstance(server, (SSEServerConfig, HTTPServerConfig)):
            self.agent._log("Initializing %s server %s", server.type, name)
            client = await initialize_network_server(name, server)
        elif isinstance(server, MCPAutoConfig):
            self.agent._log("Initializing auto server %s", name)
            client = await initialize_auto_server(name, server)
        else:
            raise ConfigurationError(f"Unsupported server type for server {name}")
        await self.agent._register_client(name, client)

    def route_agent(self, config: AgentConfig) -> None:
        name, tool = build_agent_tool(config, self.agent.model, self.agent.prompts)
        self.agent._agents[name] = config.agent
        self.agent._tools.register_tool(tool)

    def route_tool(self, config: ToolConfig) -> None:
        self.agent._tools.register_tool(function_tool(config), name=to_snake_case(config.name))
