"""
Shared fakes for the agent test suite.

No test talks to a real model provider or spawns a tool server: providers
replay scripted responses and MCP clients are in-memory stand-ins.
"""

from typing import Any, Dict, List, Optional

import pytest

from mcp_ai_agent.models.base import (
    BaseProvider,
    ChatResponse,
    LanguageModel,
    ObjectResponse,
    ToolCall,
    Usage,
)
from mcp_ai_agent.tools.base import Tool


class FakeProvider(BaseProvider):
    """Replays scripted chat responses and records every request."""

    def __init__(self, responses: Optional[List[ChatResponse]] = None, objects=None) -> None:
        super().__init__(name="fake")
        self.responses = list(responses or [])
        self.objects = list(objects or [])
        self.calls: List[Dict[str, Any]] = []
        self.object_calls: List[Dict[str, Any]] = []

    async def chat(self, model, messages, tools=None, tool_choice=None, provider_options=None):
        self.calls.append(
            {
                "model": model,
                "messages": [dict(m) for m in messages],
                "tools": tools,
                "tool_choice": tool_choice,
                "provider_options": provider_options,
            }
        )
        if not self.responses:
            return ChatResponse(text="done", raw=None)
        return self.responses.pop(0)

    async def complete_object(
        self, model, messages, schema, name=None, description=None, provider_options=None
    ):
        self.object_calls.append(
            {"model": model, "messages": messages, "schema": schema, "name": name}
        )
        return self.objects.pop(0)


class FakeClient:
    """In-memory stand-in for MCPClient."""

    def __init__(self, name: str, tools: Optional[Dict[str, Tool]] = None, fail_close=False):
        self.name = name
        self._tools = tools or {}
        self.closed = False
        self.fail_close = fail_close

    async def tools(self) -> Dict[str, Tool]:
        return dict(self._tools)

    async def close(self) -> None:
        self.closed = True
        if self.fail_close:
            raise RuntimeError(f"{self.name} refused to close")


def text_response(text: str, prompt_tokens=1, completion_tokens=1) -> ChatResponse:
    return ChatResponse(
        text=text,
        raw=None,
        finish_reason="stop",
        usage=Usage(prompt_tokens, completion_tokens, prompt_tokens + completion_tokens),
    )


def tool_response(*calls: ToolCall, text: str = "") -> ChatResponse:
    return ChatResponse(
        text=text,
        raw=None,
        tool_calls=list(calls),
        finish_reason="tool-calls",
        usage=Usage(1, 1, 2),
    )


def object_response(value: Any, prompt_tokens=3, completion_tokens=4) -> ObjectResponse:
    return ObjectResponse(
        value=value,
        text=str(value),
        raw=None,
        usage=Usage(prompt_tokens, completion_tokens, prompt_tokens + completion_tokens),
    )


def add_tool() -> Tool:
    return Tool(
        name="add",
        description="Add two numbers",
        parameters={
            "type": "object",
            "properties": {"a": {"type": "number"}, "b": {"type": "number"}},
            "required": ["a", "b"],
        },
        execute=lambda a, b: a + b,
    )


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def model(provider):
    return LanguageModel(provider=provider, name="fake-model")
