"""
Base types and registry for model providers.

Defines common classes and data structures that all model providers
implement, along with a registry to map provider names and models.
Messages are passed around in OpenAI chat format; providers with a
different wire format translate at their boundary.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from mcp_ai_agent.errors import InvocationError
from mcp_ai_agent.utils import to_snake_case


@dataclass
class Usage:
    """Token accounting for one or more model calls."""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0

    def __add__(self, other: "Usage") -> "Usage":
        return Usage(
            prompt_tokens=self.prompt_tokens + other.prompt_tokens,
            completion_tokens=self.completion_tokens + other.completion_tokens,
            total_tokens=self.total_tokens + other.total_tokens,
        )


@dataclass
class ToolCall:
    """A single tool invocation requested by the model."""

    id: str
    name: str
    arguments: Dict[str, Any] = field(default_factory=dict)

    def to_message(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": "function",
            "function": {"name": self.name, "arguments": json.dumps(self.arguments)},
        }


@dataclass
class ChatResponse:
    """
    Normalized chat response returned by providers.

    The text attribute contains the plain response text. `finish_reason`
    is one of "stop", "length", "tool-calls", "content-filter", "error" or
    "other". The raw attribute contains provider-specific response data
    for debugging or advanced use.
    """

    text: str
    raw: Any
    tool_calls: List[ToolCall] = field(default_factory=list)
    finish_reason: str = "stop"
    usage: Usage = field(default_factory=Usage)


@dataclass
class ObjectResponse:
    """Raw structured-output response: the decoded JSON value plus metadata."""

    value: Any
    text: str
    raw: Any
    finish_reason: str = "stop"
    usage: Usage = field(default_factory=Usage)


class ProviderError(InvocationError):
    """Raised when a provider fails to execute a request."""


class BaseProvider:
    """
    Abstract base class for all LLM providers.

    Providers must implement the `chat` method. A classmethod
    `from_config` is used to construct provider instances from
    configuration dictionaries.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self.models: Dict[str, ModelInfo] = {}

    async def chat(
        self,
        model: str,
        messages: List[Dict[str, Any]],
        tools: Optional[List[Dict[str, Any]]] = None,
        tool_choice: Any = None,
        provider_options: Optional[Dict[str, Any]] = None,
    ) -> ChatResponse:
        raise NotImplementedError

    async def complete_object(
        self,
        model: str,
        messages: List[Dict[str, Any]],
        schema: Dict[str, Any],
        name: Optional[str] = None,
        description: Optional[str] = None,
        provider_options: Optional[Dict[str, Any]] = None,
    ) -> ObjectResponse:
        """
        Ask the model for a JSON value matching `schema`.

        The default strategy offers a single tool whose input schema is the
        target schema and forces the model to call it. Providers with a
        native JSON-schema mode override this.
        """
        tool_name = to_snake_case(name) if name else "json"
        tool = {
            "type": "function",
            "function": {
                "name": tool_name,
                "description": description or "Respond with a JSON object.",
                "parameters": schema,
            },
        }
        response = await self.chat(
            model=model,
            messages=messages,
            tools=[tool],
            tool_choice={"type": "tool", "toolName": tool_name},
            provider_options=provider_options,
        )
        if not response.tool_calls:
            raise ProviderError(
                f"{self.name} provider returned no structured output for '{tool_name}'."
            )
        value = response.tool_calls[0].arguments
        return ObjectResponse(
            value=value,
            text=json.dumps(value),
            raw=response.raw,
            finish_reason="stop",
            usage=response.usage,
        )

    @classmethod
    def from_config(cls, name: str, cfg: Dict[str, Any]) -> "BaseProvider":
        raise NotImplementedError


@dataclass
class ModelInfo:
    """
    ModelInfo stores metadata about a model used by a provider.
    """

    name: str
    supports_tools: bool = True
    max_context_tokens: int = 8192


@dataclass
class LanguageModel:
    """
    A model bound to the provider that serves it.

    This is the value agents store as their default model and accept as a
    per-call override.
    """

    provider: BaseProvider
    name: str

    @property
    def model_id(self) -> str:
        return f"{self.provider.name}:{self.name}"

    def __repr__(self) -> str:
        return f"LanguageModel({self.model_id!r})"


class ModelRegistry:
    """
    ModelRegistry keeps track of providers and their models.
    """

    def __init__(self) -> None:
        self.providers: Dict[str, BaseProvider] = {}
        self.models: Dict[Tuple[str, str], ModelInfo] = {}

    def register_provider(self, provider: BaseProvider) -> None:
        self.providers[provider.name] = provider
        for model_key, model_info in provider.models.items():
            self.register_model(provider.name, model_key, model_info)

    def register_model(
        self,
        provider_name: str,
        model_key: str,
        model_info: ModelInfo,
    ) -> None:
        self.models[(provider_name, model_key)] = model_info

    def resolve(
        self, provider_name: str, model_key: str
    ) -> Tuple[BaseProvider, ModelInfo]:
        """
        Resolve a provider and model pair from registered names.
        """
        provider = self.providers.get(provider_name)
        if provider is None:
            raise ProviderError(f"Provider '{provider_name}' not registered.")
        model_info = self.models.get((provider_name, model_key))
        if model_info is None:
            raise ProviderError(
                f"Model '{model_key}' not registered for provider '{provider_name}'."
            )
        return provider, model_info

    def language_model(self, provider_name: str, model_key: str) -> LanguageModel:
        provider, model_info = self.resolve(provider_name, model_key)
        return LanguageModel(provider=provider, name=model_info.name)


def parse_tool_arguments(raw: Any) -> Dict[str, Any]:
    """Decode tool-call arguments that may arrive as a JSON string."""
    if raw is None or raw == "":
        return {}
    if isinstance(raw, dict):
        return raw
    try:
        parsed = json.loads(raw)
    except (TypeError, json.JSONDecodeError) as exc:
        raise ProviderError(f"Model returned malformed tool arguments: {raw!r}") from exc
    if not isinstance(parsed, dict):
        raise ProviderError(f"Tool arguments must be a JSON object, got: {raw!r}")
    return parsed
