from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import Any, Dict, List, Optional, Set

from dotenv import load_dotenv

from mcp_ai_agent.config import AgentConfig, load_app_config, parse_tools_configs
from mcp_ai_agent.core.agent import AIAgent
from mcp_ai_agent.core.prompts import PromptManager
from mcp_ai_agent.core.router import ModelRouter
from mcp_ai_agent.errors import AgentError, ConfigurationError
from mcp_ai_agent.models.anthropic_provider import AnthropicProvider
from mcp_ai_agent.models.base import ModelRegistry
from mcp_ai_agent.models.openai_provider import OpenAIProvider
from mcp_ai_agent.servers import CATALOG

logger = logging.getLogger("mcp_ai_agent.cli")

PROVIDER_KINDS = {
    "openai": OpenAIProvider,
    "anthropic": AnthropicProvider,
}


# --------------------------------------------------------------------------------------
# Model / agent builders
# --------------------------------------------------------------------------------------


def build_model_registry(cfg: Dict[str, Any]) -> ModelRegistry:
    """
    Build and register all configured model providers and their models.

    Providers must specify whether they are enabled. `kind` selects the
    implementation and defaults to the provider's own name, so an
    OpenAI-compatible endpoint can be declared as a provider with
    `kind: openai` and its own `base_url` and `api_key_env`.
    """
    registry = ModelRegistry()
    for provider_name, provider_cfg in cfg.get("providers", {}).items():
        if not provider_cfg.get("enabled", False):
            continue
        kind = provider_cfg.get("kind", provider_name)
        provider_cls = PROVIDER_KINDS.get(kind)
        if provider_cls is None:
            raise ConfigurationError(f"Unknown provider kind '{kind}' for '{provider_name}'.")
        registry.register_provider(provider_cls.from_config(provider_name, provider_cfg))
    return registry


def build_agents(
    cfg: Dict[str, Any], router: ModelRouter, prompts: PromptManager, verbose: bool = False
) -> Dict[str, AIAgent]:
    """
    Build every agent declared under `agents:`.

    An agent may list other agents under `agents:`; those are nested as
    tools. Nested agents are built once and shared by key.
    """
    agents_cfg: Dict[str, Dict[str, Any]] = cfg.get("agents", {})
    built: Dict[str, AIAgent] = {}

    def build(key: str, stack: Set[str]) -> AIAgent:
        if key in built:
            return built[key]
        if key in stack:
            raise ConfigurationError(f"Agent '{key}' nests itself through {sorted(stack)}.")
        acfg = agents_cfg.get(key)
        if acfg is None:
            raise ConfigurationError(f"Unknown agent '{key}'.")

        tools_configs: List[Any] = parse_tools_configs(acfg.get("tools", []), CATALOG)
        for nested_key in acfg.get("agents", []):
            tools_configs.append(AgentConfig(agent=build(nested_key, stack | {key})))

        model = router.resolve(acfg["model"]) if acfg.get("model") else None
        built[key] = AIAgent(
            name=acfg.get("name", key),
            description=acfg.get("description", ""),
            tools_configs=tools_configs,
            system_prompt=acfg.get("system_prompt"),
            model=model,
            verbose=verbose,
            prompts=prompts,
        )
        return built[key]

    for key in agents_cfg:
        build(key, set())
    return built


# --------------------------------------------------------------------------------------
# Commands
# --------------------------------------------------------------------------------------


async def run_ask(agent: AIAgent, prompt: str, max_steps: Optional[int]) -> None:
    try:
        response = await agent.generate_response(prompt=prompt, max_steps=max_steps)
        print(response.text)
    finally:
        await agent.close()


async def run_chat(agent: AIAgent, max_steps: Optional[int]) -> None:
    """
    Simple terminal chat loop.

    The conversation history is kept across turns. The session keeps
    running until the user types /exit or /quit, or presses Ctrl+C.
    """
    print(f"\n[Interactive chat with {agent.name}]")
    print("Type /exit or press Ctrl+C to end the session.\n")

    history: List[Dict[str, Any]] = []
    try:
        while True:
            user_input = (await asyncio.to_thread(input, "You> ")).strip()
            if not user_input:
                continue
            if user_input.lower() in {"/exit", "/quit"}:
                print("Bye")
                break

            history.append({"role": "user", "content": user_input})
            response = await agent.generate_response(messages=history, max_steps=max_steps)
            history.extend(response.response_messages)
            print("Assistant> ", response.text)
    except (KeyboardInterrupt, EOFError):
        print("\n[Session interrupted by user, exiting chat]")
    finally:
        await agent.close()


async def run_info(agent: AIAgent) -> None:
    try:
        await agent.initialize()
        info = agent.get_info()
        info["model"] = info["model"].model_id if info["model"] is not None else None
        print(json.dumps(info, indent=2))
    finally:
        await agent.close()


def print_servers() -> None:
    for name, server in CATALOG.items():
        required = [key for key, param in server.parameters.items() if param.required]
        print(f"{name}: {server.description}")
        print(f"  tools   : {', '.join(server.tools_description)}")
        print(f"  requires: {', '.join(required) or '-'}")


# --------------------------------------------------------------------------------------
# CLI
# --------------------------------------------------------------------------------------


def parse_args(argv: List[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Run MCP tool-using agents defined in a YAML config file."
    )
    parser.add_argument(
        "--config",
        default="config.yaml",
        help="Path to the YAML config file.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log agent lifecycle and generation details.",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    ask_parser = subparsers.add_parser("ask", help="Send a single prompt to an agent.")
    ask_parser.add_argument("agent", help="Agent key as defined under `agents:`.")
    ask_parser.add_argument("prompt", help="Prompt to send to the agent.")
    ask_parser.add_argument(
        "--max-steps",
        type=int,
        default=None,
        help="Maximum model/tool steps.",
    )

    chat_parser = subparsers.add_parser("chat", help="Interactive chat session with an agent.")
    chat_parser.add_argument("agent", help="Agent key as defined under `agents:`.")
    chat_parser.add_argument(
        "--max-steps",
        type=int,
        default=None,
        help="Maximum model/tool steps per turn.",
    )

    info_parser = subparsers.add_parser("info", help="Show an agent's tools and nested agents.")
    info_parser.add_argument("agent", help="Agent key as defined under `agents:`.")

    subparsers.add_parser("servers", help="List the built-in tool servers.")

    return parser.parse_args(argv)


def main() -> None:
    # Load environment variables from .env (if present)
    load_dotenv()

    args = parse_args(sys.argv[1:])
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "servers":
        print_servers()
        return

    try:
        config = load_app_config(args.config)
        router = ModelRouter(build_model_registry(config))
        prompts = PromptManager(config.get("prompts", {}))
        agents = build_agents(config, router, prompts, verbose=args.verbose)

        agent = agents.get(args.agent)
        if agent is None:
            raise SystemExit(f"Unknown agent: {args.agent!r}")

        if args.command == "ask":
            asyncio.run(run_ask(agent, args.prompt, args.max_steps))
        elif args.command == "chat":
            asyncio.run(run_chat(agent, args.max_steps))
        elif args.command == "info":
            asyncio.run(run_info(agent))
        else:
            # Should never reach here
            raise SystemExit(f"Unknown command: {args.command!r}")
    except AgentError as exc:
        logger.error("%s", exc)
        raise SystemExit(1) from exc


if __name__ == "__main__":
    main()
