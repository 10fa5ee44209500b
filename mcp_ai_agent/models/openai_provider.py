"""
OpenAI provider implementation.

Wraps the OpenAI Chat Completions API using the official async SDK,
including function tools and JSON-schema structured output. The provider
configuration must specify the environment variable containing the API
key, the base URL for the API, and a list of models with their
capabilities.
"""

import json
import os
from typing import Any, Dict, List, Optional

from openai import AsyncOpenAI

from mcp_ai_agent.models.base import (
    BaseProvider,
    ChatResponse,
    ModelInfo,
    ObjectResponse,
    ProviderError,
    ToolCall,
    Usage,
    parse_tool_arguments,
)
from mcp_ai_agent.utils import to_snake_case

_FINISH_REASONS = {
    "stop": "stop",
    "length": "length",
    "tool_calls": "tool-calls",
    "function_call": "tool-calls",
    "content_filter": "content-filter",
}


def _tool_choice(choice: Any) -> Any:
    if choice is None or isinstance(choice, str):
        return choice
    if isinstance(choice, dict) and choice.get("type") == "tool":
        return {"type": "function", "function": {"name": choice["toolName"]}}
    return choice


def _usage(resp: Any) -> Usage:
    usage = getattr(resp, "usage", None)
    if usage is None:
        return Usage()
    return Usage(
        prompt_tokens=usage.prompt_tokens or 0,
        completion_tokens=usage.completion_tokens or 0,
        total_tokens=usage.total_tokens or 0,
    )


class OpenAIProvider(BaseProvider):
    """
    OpenAIProvider wraps the OpenAI Chat Completions API via the official SDK.
    """

    def __init__(
        self,
        name: str,
        api_key_env: str,
        base_url: str,
        models: Dict[str, ModelInfo],
    ) -> None:
        super().__init__(name=name)
        self.api_key_env = api_key_env
        self.base_url = base_url
        self.models = models
        self._client_instance: Optional[AsyncOpenAI] = None

    @classmethod
    def from_config(cls, name: str, cfg: Dict[str, Any]) -> "OpenAIProvider":
        api_key_env = cfg.get("api_key_env", "OPENAI_API_KEY")
        base_url = cfg.get("base_url", "https://api.openai.com/v1")
        models_cfg = cfg.get("models", {})
        models: Dict[str, ModelInfo] = {}
        for model_key, mcfg in models_cfg.items():
            models[model_key] = ModelInfo(
                name=mcfg["name"],
                supports_tools=bool(mcfg.get("supports_tools", True)),
                max_context_tokens=int(mcfg.get("max_context_tokens", 128000)),
            )
        return cls(
            name=name,
            api_key_env=api_key_env,
            base_url=base_url,
            models=models,
        )

    def _client(self) -> AsyncOpenAI:
        if self._client_instance is not None:
            return self._client_instance
        api_key = os.getenv(self.api_key_env)
        if not api_key:
            raise ProviderError(
                f"Environment variable '{self.api_key_env}' is not set for provider '{self.name}'."
            )
        self._client_instance = AsyncOpenAI(api_key=api_key, base_url=self.base_url)
        return self._client_instance

    def _options(self, provider_options: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        return dict((provider_options or {}).get(self.name, {}))

    async def chat(
        self,
        model: str,
        messages: List[Dict[str, Any]],
        tools: Optional[List[Dict[str, Any]]] = None,
        tool_choice: Any = None,
        provider_options: Optional[Dict[str, Any]] = None,
    ) -> ChatResponse:
        client = self._client()
        kwargs = self._options(provider_options)
        if tools:
            kwargs["tools"] = tools
            if tool_choice is not None:
                kwargs["tool_choice"] = _tool_choice(tool_choice)
        try:
            resp = await client.chat.completions.create(
                model=model, messages=messages, **kwargs
            )
        except Exception as exc:  # noqa: BLE001
            raise ProviderError(f"OpenAI provider error: {exc}") from exc

        choice = resp.choices[0]
        tool_calls = [
            ToolCall(
                id=call.id,
                name=call.function.name,
                arguments=parse_tool_arguments(call.function.arguments),
            )
            for call in (choice.message.tool_calls or [])
        ]
        return ChatResponse(
            text=choice.message.content or "",
            raw=resp,
            tool_calls=tool_calls,
            finish_reason=_FINISH_REASONS.get(choice.finish_reason, "other"),
            usage=_usage(resp),
        )

    async def complete_object(
        self,
        model: str,
        messages: List[Dict[str, Any]],
        schema: Dict[str, Any],
        name: Optional[str] = None,
        description: Optional[str] = None,
        provider_options: Optional[Dict[str, Any]] = None,
    ) -> ObjectResponse:
        client = self._client()
        json_schema: Dict[str, Any] = {
            "name": to_snake_case(name) if name else "response",
            "schema": schema,
            "strict": False,
        }
        if description:
            json_schema["description"] = description
        try:
            resp = await client.chat.completions.create(
                model=model,
                messages=messages,
                response_format={"type": "json_schema", "json_schema": json_schema},
                **self._options(provider_options),
            )
        except Exception as exc:  # noqa: BLE001
            raise ProviderError(f"OpenAI provider error: {exc}") from exc

        choice = resp.choices[0]
        text = choice.message.content or ""
        try:
            value = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ProviderError(f"OpenAI returned invalid JSON: {text!r}") from exc
        return ObjectResponse(
            value=value,
            text=text,
            raw=resp,
            finish_reason=_FINISH_REASONS.get(choice.finish_reason, "other"),
            usage=_usage(resp),
        )
