"""
Model provider implementations.

This package collects base types and helper classes in `base.py` and
concrete provider implementations for OpenAI and Anthropic. Adding a new
provider involves creating a new module that subclasses `BaseProvider`.

`openai_model` and `anthropic_model` build `LanguageModel` references
backed by providers that read their API keys from the default
environment variables.
"""

from typing import Dict

from mcp_ai_agent.models.anthropic_provider import AnthropicProvider
from mcp_ai_agent.models.base import BaseProvider, LanguageModel
from mcp_ai_agent.models.openai_provider import OpenAIProvider

DEFAULT_MODEL_NAME = "gpt-4o"

_default_providers: Dict[str, BaseProvider] = {}


def openai_model(name: str) -> LanguageModel:
    provider = _default_providers.get("openai")
    if provider is None:
        provider = OpenAIProvider.from_config("openai", {})
        _default_providers["openai"] = provider
    return LanguageModel(provider=provider, name=name)


def anthropic_model(name: str) -> LanguageModel:
    provider = _default_providers.get("anthropic")
    if provider is None:
        provider = AnthropicProvider.from_config("anthropic", {})
        _default_providers["anthropic"] = provider
    return LanguageModel(provider=provider, name=name)


def default_model() -> LanguageModel:
    return openai_model(DEFAULT_MODEL_NAME)


__all__ = [
    "base",
    "openai_provider",
    "anthropic_provider",
    "DEFAULT_MODEL_NAME",
    "openai_model",
    "anthropic_model",
    "default_model",
]
