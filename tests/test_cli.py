"""
Tests for the command line entry point helpers.
"""

import pytest

from main import build_agents, build_model_registry, parse_args
from mcp_ai_agent.config import AgentConfig, MCPAutoConfig
from mcp_ai_agent.core.prompts import PromptManager
from mcp_ai_agent.core.router import ModelRouter
from mcp_ai_agent.errors import ConfigurationError


def _config(**agents):
    return {
        "providers": {
            "openai": {"enabled": True, "models": {"fast": {"name": "gpt-4o-mini"}}},
            "local": {"enabled": False, "kind": "ollama"},
        },
        "agents": agents,
    }


class TestBuildAgents:
    def test_nested_agents_and_catalog_tools(self):
        cfg = _config(
            memory={"name": "Memory", "description": "Remembers", "tools": ["memory"]},
            master={
                "name": "Master",
                "description": "Delegates",
                "model": "openai/fast",
                "agents": ["memory"],
            },
        )
        router = ModelRouter(build_model_registry(cfg))

        agents = build_agents(cfg, router, PromptManager())

        master = agents["master"]
        assert master.model.name == "gpt-4o-mini"
        nested = [c for c in master._config if isinstance(c, AgentConfig)]
        assert nested[0].agent is agents["memory"]
        assert isinstance(agents["memory"]._config[0], MCPAutoConfig)

    def test_cycles_are_rejected(self):
        cfg = _config(a={"agents": ["b"]}, b={"agents": ["a"]})
        router = ModelRouter(build_model_registry(cfg))
        with pytest.raises(ConfigurationError, match="nests itself"):
            build_agents(cfg, router, PromptManager())

    def test_unknown_provider_kind(self):
        cfg = {"providers": {"local": {"enabled": True, "kind": "ollama"}}}
        with pytest.raises(ConfigurationError, match="ollama"):
            build_model_registry(cfg)


class TestParseArgs:
    def test_ask(self):
        args = parse_args(["--verbose", "ask", "master", "hello", "--max-steps", "4"])
        assert args.command == "ask"
        assert args.agent == "master"
        assert args.prompt == "hello"
        assert args.max_steps == 4
        assert args.verbose

    def test_servers(self):
        args = parse_args(["servers"])
        assert args.command == "servers"
        assert args.config == "config.yaml"
