"""
Anthropic provider implementation.

This provider wraps the Claude API via the official `anthropic` SDK.
It translates OpenAI-style chat messages, tool definitions and tool
results into the format expected by Anthropic's Claude models.
"""

import json
import os
from typing import Any, Dict, List, Optional

import anthropic

from mcp_ai_agent.models.base import (
    BaseProvider,
    ChatResponse,
    ModelInfo,
    ProviderError,
    ToolCall,
    Usage,
)

_FINISH_REASONS = {
    "end_turn": "stop",
    "stop_sequence": "stop",
    "tool_use": "tool-calls",
    "max_tokens": "length",
    "refusal": "content-filter",
}


def _convert_tools(tools: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    converted = []
    for tool in tools:
        fn = tool.get("function", tool)
        converted.append(
            {
                "name": fn["name"],
                "description": fn.get("description", ""),
                "input_schema": fn.get("parameters") or {"type": "object", "properties": {}},
            }
        )
    return converted


def _tool_choice(choice: Any) -> Optional[Dict[str, Any]]:
    if choice is None:
        return None
    if choice == "required":
        return {"type": "any"}
    if isinstance(choice, str):
        return {"type": choice}
    if isinstance(choice, dict) and choice.get("type") == "tool":
        return {"type": "tool", "name": choice["toolName"]}
    return choice


def convert_messages(messages: List[Dict[str, Any]]) -> tuple:
    """
    Convert OpenAI chat messages into (system_prompt, anthropic_messages).

    Assistant tool calls become `tool_use` blocks and consecutive tool
    results are folded into one user message of `tool_result` blocks.
    """
    system_prompt = ""
    converted: List[Dict[str, Any]] = []
    for msg in messages:
        role = msg.get("role")
        content = msg.get("content") or ""
        if role == "system":
            system_prompt += content + "\n"
        elif role == "assistant":
            blocks: List[Dict[str, Any]] = []
            if content:
                blocks.append({"type": "text", "text": content})
            for call in msg.get("tool_calls") or []:
                fn = call["function"]
                blocks.append(
                    {
                        "type": "tool_use",
                        "id": call["id"],
                        "name": fn["name"],
                        "input": json.loads(fn.get("arguments") or "{}"),
                    }
                )
            converted.append({"role": "assistant", "content": blocks or content})
        elif role == "tool":
            block = {
                "type": "tool_result",
                "tool_use_id": msg["tool_call_id"],
                "content": content,
            }
            last = converted[-1] if converted else None
            if last and last["role"] == "user" and isinstance(last["content"], list) and all(
                b.get("type") == "tool_result" for b in last["content"]
            ):
                last["content"].append(block)
            else:
                converted.append({"role": "user", "content": [block]})
        else:
            converted.append({"role": "user", "content": content})
    return system_prompt.strip(), converted


class AnthropicProvider(BaseProvider):
    """
    AnthropicProvider wraps the Claude messages API via the official anthropic SDK.
    """

    def __init__(
        self,
        name: str,
        api_key_env: str,
        models: Dict[str, ModelInfo],
        max_tokens: int = 4096,
    ) -> None:
        super().__init__(name=name)
        self.api_key_env = api_key_env
        self.models = models
        self.max_tokens = max_tokens
        self._client_instance: Optional[anthropic.AsyncAnthropic] = None

    @classmethod
    def from_config(cls, name: str, cfg: Dict[str, Any]) -> "AnthropicProvider":
        api_key_env = cfg.get("api_key_env", "ANTHROPIC_API_KEY")
        models_cfg = cfg.get("models", {})
        models: Dict[str, ModelInfo] = {}
        for model_key, mcfg in models_cfg.items():
            models[model_key] = ModelInfo(
                name=mcfg["name"],
                supports_tools=bool(mcfg.get("supports_tools", True)),
                max_context_tokens=int(mcfg.get("max_context_tokens", 200000)),
            )
        return cls(
            name=name,
            api_key_env=api_key_env,
            models=models,
            max_tokens=int(cfg.get("max_tokens", 4096)),
        )

    def _client(self) -> anthropic.AsyncAnthropic:
        if self._client_instance is not None:
            return self._client_instance
        api_key = os.getenv(self.api_key_env)
        if not api_key:
            raise ProviderError(
                f"Environment variable '{self.api_key_env}' is not set for provider '{self.name}'."
            )
        self._client_instance = anthropic.AsyncAnthropic(api_key=api_key)
        return self._client_instance

    async def chat(
        self,
        model: str,
        messages: List[Dict[str, Any]],
        tools: Optional[List[Dict[str, Any]]] = None,
        tool_choice: Any = None,
        provider_options: Optional[Dict[str, Any]] = None,
    ) -> ChatResponse:
        client = self._client()
        system_prompt, converted = convert_messages(messages)
        kwargs: Dict[str, Any] = {"max_tokens": self.max_tokens}
        kwargs.update((provider_options or {}).get(self.name, {}))
        if system_prompt:
            kwargs["system"] = system_prompt
        if tools:
            kwargs["tools"] = _convert_tools(tools)
            choice = _tool_choice(tool_choice)
            if choice is not None:
                kwargs["tool_choice"] = choice
        try:
            resp = await client.messages.create(model=model, messages=converted, **kwargs)
        except Exception as exc:  # noqa: BLE001
            raise ProviderError(f"Anthropic provider error: {exc}") from exc

        parts = []
        tool_calls = []
        for block in resp.content:
            block_type = getattr(block, "type", "")
            if block_type == "text":
                parts.append(block.text)
            elif block_type == "tool_use":
                tool_calls.append(ToolCall(id=block.id, name=block.name, arguments=dict(block.input)))
        usage = Usage(
            prompt_tokens=resp.usage.input_tokens,
            completion_tokens=resp.usage.output_tokens,
            total_tokens=resp.usage.input_tokens + resp.usage.output_tokens,
        )
        return ChatResponse(
            text="\n".join(parts),
            raw=resp,
            tool_calls=tool_calls,
            finish_reason=_FINISH_REASONS.get(resp.stop_reason, "other"),
            usage=usage,
        )
