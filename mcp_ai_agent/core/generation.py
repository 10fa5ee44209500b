"""
Model invocation loop.

`generate_text` runs a multi-step conversation: the model is called, any
tool calls it makes are executed, their results are appended to the
conversation, and the model is called again until it stops calling tools
or the step cap is reached. `generate_object` asks the model for a JSON
value matching a schema and validates it.
"""

from __future__ import annotations

import asyncio
import inspect
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from pydantic import BaseModel

from mcp_ai_agent.core.schema import parse_object, to_json_schema
from mcp_ai_agent.errors import InvocationError, ToolExecutionError
from mcp_ai_agent.models.base import ChatResponse, LanguageModel, ToolCall, Usage
from mcp_ai_agent.tools.base import Tool

logger = logging.getLogger(__name__)

DEFAULT_MAX_STEPS = 20


@dataclass
class ToolResult:
    tool_call_id: str
    name: str
    arguments: Dict[str, Any]
    result: Any
    is_error: bool = False


@dataclass
class StepResult:
    """One model call plus the tool executions it triggered."""

    text: str
    finish_reason: str
    usage: Usage
    tool_calls: List[ToolCall] = field(default_factory=list)
    tool_results: List[ToolResult] = field(default_factory=list)
    response: Optional[ChatResponse] = None


@dataclass
class GenerateTextResult:
    """
    Result of `generate_text`.

    `text` and `finish_reason` come from the last step, `usage` is summed
    over all steps, and `steps` holds the full tool-call trace.
    """

    text: str
    finish_reason: str
    usage: Usage
    steps: List[StepResult] = field(default_factory=list)
    response_messages: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def tool_calls(self) -> List[ToolCall]:
        return self.steps[-1].tool_calls if self.steps else []

    @property
    def tool_results(self) -> List[ToolResult]:
        return self.steps[-1].tool_results if self.steps else []

    @property
    def all_tool_calls(self) -> List[ToolCall]:
        return [call for step in self.steps for call in step.tool_calls]


@dataclass
class GenerateObjectResult:
    object: Any
    finish_reason: str
    usage: Usage
    text: str = ""
    raw: Any = None


def _stringify(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, BaseModel):
        return value.model_dump_json()
    try:
        return json.dumps(value, default=str)
    except (TypeError, ValueError):
        return str(value)


def _tool_specs(tools: Dict[str, Tool]) -> List[Dict[str, Any]]:
    return [
        {
            "type": "function",
            "function": {
                "name": name,
                "description": tool.description,
                "parameters": tool.parameters,
            },
        }
        for name, tool in tools.items()
    ]


def _initial_messages(
    prompt: Optional[str],
    messages: Optional[List[Dict[str, Any]]],
    system: Optional[str],
) -> List[Dict[str, Any]]:
    if prompt is not None and messages is not None:
        raise InvocationError("Provide either a prompt or a message list, not both.")
    if prompt is None and messages is None:
        raise InvocationError("A prompt or a message list is required.")

    conversation: List[Dict[str, Any]] = []
    if system:
        conversation.append({"role": "system", "content": system})
    if prompt is not None:
        conversation.append({"role": "user", "content": prompt})
    else:
        conversation.extend(dict(m) for m in messages)
    return conversation


async def _call_tool(tools: Dict[str, Tool], call: ToolCall) -> ToolResult:
    tool = tools.get(call.name)
    if tool is None:
        logger.warning("Model requested unknown tool '%s'", call.name)
        return ToolResult(
            tool_call_id=call.id,
            name=call.name,
            arguments=call.arguments,
            result=f"Tool '{call.name}' is not available.",
            is_error=True,
        )
    try:
        result = await tool.run(call.arguments)
    except ToolExecutionError:
        raise
    except Exception as exc:  # noqa: BLE001
        raise ToolExecutionError(call.name, str(exc)) from exc
    return ToolResult(
        tool_call_id=call.id, name=call.name, arguments=call.arguments, result=result
    )


async def _notify(callback: Optional[Callable[..., Any]], step: StepResult) -> None:
    if callback is None:
        return
    outcome = callback(step)
    if inspect.isawaitable(outcome):
        await outcome


async def generate_text(
    model: LanguageModel,
    prompt: Optional[str] = None,
    messages: Optional[List[Dict[str, Any]]] = None,
    system: Optional[str] = None,
    tools: Optional[Dict[str, Tool]] = None,
    tool_choice: Any = None,
    max_steps: int = 1,
    provider_options: Optional[Dict[str, Any]] = None,
    on_step_finish: Optional[Callable[..., Any]] = None,
) -> GenerateTextResult:
    """
    Generate text, executing tool calls for up to `max_steps` model calls.

    Tool calls within one step run concurrently. A tool that raises stops
    generation with ToolExecutionError.
    """
    conversation = _initial_messages(prompt, messages, system)
    tools = tools or {}
    specs = _tool_specs(tools) or None

    steps: List[StepResult] = []
    response_messages: List[Dict[str, Any]] = []
    usage = Usage()

    for _ in range(max(1, max_steps)):
        response = await model.provider.chat(
            model=model.name,
            messages=conversation,
            tools=specs,
            tool_choice=tool_choice,
            provider_options=provider_options,
        )
        assistant: Dict[str, Any] = {"role": "assistant", "content": response.text or None}
        if response.tool_calls:
            assistant["tool_calls"] = [call.to_message() for call in response.tool_calls]
        conversation.append(assistant)
        response_messages.append(assistant)

        results = await asyncio.gather(*(_call_tool(tools, call) for call in response.tool_calls))
        for result in results:
            message = {
                "role": "tool",
                "tool_call_id": result.tool_call_id,
                "content": _stringify(result.result),
            }
            conversation.append(message)
            response_messages.append(message)

        step = StepResult(
            text=response.text,
            finish_reason=response.finish_reason,
            usage=response.usage,
            tool_calls=list(response.tool_calls),
            tool_results=list(results),
            response=response,
        )
        steps.append(step)
        usage = usage + response.usage
        await _notify(on_step_finish, step)

        if not response.tool_calls:
            break

    last = steps[-1]
    return GenerateTextResult(
        text=last.text,
        finish_reason=last.finish_reason,
        usage=usage,
        steps=steps,
        response_messages=response_messages,
    )


async def generate_object(
    model: LanguageModel,
    schema: Any,
    prompt: Optional[str] = None,
    messages: Optional[List[Dict[str, Any]]] = None,
    system: Optional[str] = None,
    schema_name: Optional[str] = None,
    schema_description: Optional[str] = None,
    provider_options: Optional[Dict[str, Any]] = None,
) -> GenerateObjectResult:
    """Ask the model for a value matching `schema` and validate it."""
    conversation = _initial_messages(prompt, messages, system)
    response = await model.provider.complete_object(
        model=model.name,
        messages=conversation,
        schema=to_json_schema(schema),
        name=schema_name,
        description=schema_description,
        provider_options=provider_options,
    )
    try:
        value = parse_object(schema, response.value)
    except ValueError as exc:
        raise InvocationError(f"Model output does not match the schema: {exc}") from exc
    return GenerateObjectResult(
        object=value,
        finish_reason=response.finish_reason,
        usage=response.usage,
        text=response.text,
        raw=response.raw,
    )
