"""
Configuration types and loaders for the agent system.

An agent is built from a list of configuration entries. Each entry is one
of a closed set of dataclasses (a tagged union keyed by `type`):

- MCPConfig: a map of server names to stdio / sse / http / auto servers.
- MCPAutoConfig: a reusable server template filled in from the environment.
- AgentConfig: a nested agent exposed to the parent as a single tool.
- ToolConfig: a Python function registered directly as a tool.

Entries can also be written as plain dictionaries in a YAML file. This
module loads that file and turns the dictionaries into the dataclasses.
Secrets are never stored in YAML; auto servers read them from environment
variables at initialization time.
"""

from __future__ import annotations

import copy
import os
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, TextIO, Union

import yaml

from mcp_ai_agent.errors import ConfigurationError


@dataclass
class StdioServerConfig:
    """
    Run a tool server as a child process and talk to it over stdin/stdout.

    `stderr` controls the child's error stream: "inherit" shares the
    parent's stderr, "ignore" discards it, or pass a writable text file.
    """

    command: str
    args: List[str] = field(default_factory=list)
    env: Optional[Dict[str, str]] = None
    cwd: Optional[str] = None
    stderr: Union[str, TextIO] = "inherit"
    type: str = field(default="stdio", init=False)


@dataclass
class SSEServerConfig:
    """Connect to a tool server over Server-Sent Events."""

    url: str
    headers: Optional[Dict[str, str]] = None
    type: str = field(default="sse", init=False)


@dataclass
class HTTPServerConfig:
    """Connect to a tool server over streamable HTTP."""

    url: str
    headers: Optional[Dict[str, str]] = None
    type: str = field(default="http", init=False)


ServerConfig = Union[StdioServerConfig, SSEServerConfig, HTTPServerConfig]


@dataclass
class AutoParameter:
    description: str
    required: bool = False


@dataclass
class MCPConfig:
    """Map of server names to their configurations."""

    mcp_servers: Dict[str, Union[ServerConfig, "MCPAutoConfig"]]


@dataclass
class MCPAutoConfig:
    """
    Parameterized tool server template.

    `parameters` names environment variables. Every parameter marked
    required must be set when the agent initializes; present parameters
    (required or optional) are injected into the server's environment.
    """

    name: str
    description: str
    tools_description: Dict[str, str]
    parameters: Dict[str, AutoParameter]
    mcp_config: Union[ServerConfig, List[ServerConfig], MCPConfig]
    github_repo: Optional[str] = None
    license: Optional[str] = None
    type: str = field(default="auto", init=False)


@dataclass
class AgentConfig:
    """
    Expose another agent to the parent agent as a single tool.

    Everything besides `agent` is optional. `name` and `description`
    override the nested agent's own; the remaining fields are passed
    through to the nested agent's generate_response call.
    """

    agent: Any
    name: Optional[str] = None
    description: Optional[str] = None
    model: Any = None
    system: Optional[str] = None
    tools: Optional[Dict[str, Any]] = None
    tool_choice: Any = None
    max_steps: Optional[int] = None
    messages: Optional[List[Dict[str, Any]]] = None
    provider_options: Optional[Dict[str, Any]] = None
    on_step_finish: Optional[Callable[..., Any]] = None
    filter_tools: Optional[Callable[[Any], bool]] = None
    type: str = field(default="agent", init=False)


@dataclass
class ToolConfig:
    """Register a Python callable as a tool. No server is started."""

    name: str
    description: str
    parameters: Any
    execute: Callable[..., Any]
    type: str = field(default="tool", init=False)


WorkflowConfig = Union[MCPConfig, MCPAutoConfig, AgentConfig, ToolConfig]


def load_app_config(path: str) -> Dict[str, Any]:
    """
    Load the application configuration from a YAML file.

    Args:
        path: Path to the YAML configuration file.

    Returns:
        A dictionary representing the configuration.

    Raises:
        FileNotFoundError: If the config file does not exist.
        ConfigurationError: If the top-level configuration is not a mapping.
    """
    if not os.path.exists(path):
        raise FileNotFoundError(f"Config file not found at: {path}")

    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ConfigurationError("Top-level configuration must be a mapping/dictionary.")

    return data


def _pick(raw: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    # Accept both JSON-style camelCase and snake_case keys.
    for key in keys:
        if key in raw:
            return raw[key]
    return default


def parse_server_config(
    name: str, raw: Mapping[str, Any]
) -> Union[ServerConfig, MCPAutoConfig]:
    """
    Build a server configuration from a plain dictionary.

    The `type` key selects the transport and defaults to "stdio".
    """
    if not isinstance(raw, Mapping):
        raise ConfigurationError(f"Server '{name}' must be a mapping.")

    server_type = raw.get("type", "stdio")
    if server_type == "stdio":
        if not raw.get("command"):
            raise ConfigurationError(f"Server '{name}' requires a 'command'.")
        return StdioServerConfig(
            command=raw["command"],
            args=[str(a) for a in raw.get("args", [])],
            env=raw.get("env"),
            cwd=raw.get("cwd"),
            stderr=raw.get("stderr", "inherit"),
        )
    if server_type in ("sse", "http"):
        if not raw.get("url"):
            raise ConfigurationError(f"Server '{name}' requires a 'url'.")
        cls = SSEServerConfig if server_type == "sse" else HTTPServerConfig
        return cls(url=raw["url"], headers=raw.get("headers"))
    if server_type == "auto":
        return parse_auto_config(raw, default_name=name)
    raise ConfigurationError(f"Unsupported server type '{server_type}' for server {name}")


def parse_mcp_config(raw: Mapping[str, Any]) -> MCPConfig:
    servers = _pick(raw, "mcpServers", "mcp_servers", default={})
    if not isinstance(servers, Mapping):
        raise ConfigurationError("'mcpServers' must map server names to configurations.")
    return MCPConfig(
        mcp_servers={name: parse_server_config(name, cfg) for name, cfg in servers.items()}
    )


def parse_auto_config(
    raw: Mapping[str, Any], default_name: Optional[str] = None
) -> MCPAutoConfig:
    """Build an MCPAutoConfig from a plain dictionary."""
    name = raw.get("name") or default_name
    if not name:
        raise ConfigurationError("Auto server configuration requires a 'name'.")

    parameters = {
        key: AutoParameter(
            description=str((spec or {}).get("description", "")),
            required=bool((spec or {}).get("required", False)),
        )
        for key, spec in (raw.get("parameters") or {}).items()
    }

    raw_server = _pick(raw, "mcpConfig", "mcp_config")
    if raw_server is None:
        raise ConfigurationError(f"Auto server '{name}' requires an 'mcpConfig'.")
    if isinstance(raw_server, list):
        if not raw_server:
            raise ConfigurationError(f"Auto server '{name}' has an empty 'mcpConfig' list.")
        mcp_config: Any = [parse_server_config(name, item) for item in raw_server]
    elif isinstance(raw_server, Mapping) and (
        "mcpServers" in raw_server or "mcp_servers" in raw_server
    ):
        mcp_config = parse_mcp_config(raw_server)
    else:
        mcp_config = parse_server_config(name, raw_server)

    return MCPAutoConfig(
        name=name,
        description=raw.get("description", ""),
        tools_description=dict(_pick(raw, "toolsDescription", "tools_description", default={})),
        parameters=parameters,
        mcp_config=mcp_config,
        github_repo=_pick(raw, "gitHubRepo", "github_repo"),
        license=raw.get("license"),
    )


def parse_tools_configs(
    raw_list: List[Any], catalog: Optional[Mapping[str, MCPAutoConfig]] = None
) -> List[WorkflowConfig]:
    """
    Turn the `tools:` list of a YAML agent definition into config entries.

    Each item is one of:
      - a string naming a built-in auto server (e.g. "brave-search"),
      - a mapping with `type: auto`,
      - a mapping with an `mcpServers` key.
    """
    catalog = catalog or {}
    configs: List[WorkflowConfig] = []
    for item in raw_list or []:
        if isinstance(item, str):
            template = catalog.get(item)
            if template is None:
                raise ConfigurationError(f"Unknown built-in server '{item}'.")
            configs.append(copy.deepcopy(template))
        elif isinstance(item, Mapping) and item.get("type") == "auto":
            configs.append(parse_auto_config(item))
        elif isinstance(item, Mapping) and ("mcpServers" in item or "mcp_servers" in item):
            configs.append(parse_mcp_config(item))
        else:
            raise ConfigurationError(f"Unsupported tools configuration entry: {item!r}")
    return configs
