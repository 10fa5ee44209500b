"""
Tool server initializers.

Each initializer opens one kind of tool server connection and returns the
connected `MCPClient`. Storing the client under its name is left to the
caller (the configuration router).
"""

from __future__ import annotations

import dataclasses
import logging
import os
import re
from typing import Dict, Mapping, Optional, Union

from mcp_ai_agent.config import (
    HTTPServerConfig,
    MCPAutoConfig,
    MCPConfig,
    ServerConfig,
    SSEServerConfig,
    StdioServerConfig,
)
from mcp_ai_agent.errors import ConfigurationError
from mcp_ai_agent.tools.mcp import MCPClient

logger = logging.getLogger(__name__)

_PLACEHOLDER = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")


def substitute_placeholders(value: str, env: Mapping[str, str]) -> str:
    """Replace `${VAR}` with env[VAR]. Unknown variables are left untouched."""
    return _PLACEHOLDER.sub(lambda m: env.get(m.group(1), m.group(0)), value)


def resolve_auto_environment(
    config: MCPAutoConfig, environ: Mapping[str, str]
) -> Dict[str, str]:
    """
    Collect the auto server's parameters from `environ`.

    Raises ConfigurationError naming every missing required parameter.
    """
    missing = [
        key
        for key, param in config.parameters.items()
        if param.required and not environ.get(key)
    ]
    if missing:
        raise ConfigurationError(
            f"Missing environment variables for '{config.name}': {', '.join(missing)}",
            missing=missing,
        )
    return {key: environ[key] for key in config.parameters if environ.get(key)}


def select_server_config(config: MCPAutoConfig) -> ServerConfig:
    server = config.mcp_config
    if isinstance(server, list):
        if not server:
            raise ConfigurationError(f"Auto server '{config.name}' has no server configuration.")
        server = server[0]
    if isinstance(server, MCPConfig):
        if not server.mcp_servers:
            raise ConfigurationError(f"Auto server '{config.name}' has no server configuration.")
        server = next(iter(server.mcp_servers.values()))
    if not isinstance(server, (StdioServerConfig, SSEServerConfig, HTTPServerConfig)):
        raise ConfigurationError(
            f"Auto server '{config.name}' must wrap a stdio, sse or http server."
        )
    return server


async def initialize_stdio_server(name: str, config: StdioServerConfig) -> MCPClient:
    logger.debug("Starting stdio server %s: %s %s", name, config.command, config.args)
    client = MCPClient.stdio(name, config)
    await client.connect()
    return client


async def initialize_network_server(
    name: str, config: Union[SSEServerConfig, HTTPServerConfig]
) -> MCPClient:
    logger.debug("Connecting to %s server %s at %s", config.type, name, config.url)
    client = MCPClient.network(name, config)
    await client.connect()
    return client


async def initialize_auto_server(
    name: str,
    config: MCPAutoConfig,
    environ: Optional[Mapping[str, str]] = None,
) -> MCPClient:
    """
    Resolve an auto server template and connect to it.

    Parameters are validated before anything is spawned. Present
    parameters are merged into the server's environment and substituted
    into `${VAR}` placeholders.
    """
    injected = resolve_auto_environment(config, os.environ if environ is None else environ)
    server = select_server_config(config)

    if isinstance(server, StdioServerConfig):
        env = {**(server.env or {}), **injected}
        resolved = dataclasses.replace(
            server,
            env=env,
            args=[substitute_placeholders(arg, env) for arg in server.args],
        )
        return await initialize_stdio_server(name, resolved)

    resolved_net = dataclasses.replace(
        server,
        url=substitute_placeholders(server.url, injected),
        headers={
            key: substitute_placeholders(value, injected)
            for key, value in (server.headers or {}).items()
        }
        or None,
    )
    return await initialize_network_server(name, resolved_net)
