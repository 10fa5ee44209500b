"""
Tests for AIAgent: lazy initialization, tool merging, nested agents,
object generation and the close lifecycle.

Tool servers are replaced by FakeClient instances by patching the
initializers the configuration router calls.
"""

import asyncio
from unittest.mock import AsyncMock, patch

import pytest

from mcp_ai_agent.config import AgentConfig, MCPConfig, StdioServerConfig, ToolConfig
from mcp_ai_agent.core.agent import AIAgent
from mcp_ai_agent.core.generation import DEFAULT_MAX_STEPS
from mcp_ai_agent.core.schema import json_schema
from mcp_ai_agent.errors import ConfigurationError, MCPConnectionError, ToolExecutionError
from mcp_ai_agent.models.base import LanguageModel, ToolCall
from mcp_ai_agent.servers import brave_search
from mcp_ai_agent.tools.base import Tool

from tests.conftest import (
    FakeClient,
    FakeProvider,
    add_tool,
    object_response,
    text_response,
    tool_response,
)

STDIO_PATCH = "mcp_ai_agent.core.router.initialize_stdio_server"


def _servers(*names):
    return MCPConfig(mcp_servers={name: StdioServerConfig(command=name) for name in names})


def _tool_names(call):
    return [spec["function"]["name"] for spec in call["tools"] or []]


class TestInitialization:
    @pytest.mark.asyncio
    async def test_initializes_lazily_and_once(self, provider, model):
        client = FakeClient("math", {"add": add_tool()})
        agent = AIAgent("Math", "Does math", tools_configs=[_servers("math")], model=model)

        with patch(STDIO_PATCH, new=AsyncMock(return_value=client)) as start:
            assert not agent.initialized
            await agent.generate_response(prompt="one")
            await agent.generate_response(prompt="two")

        start.assert_awaited_once()
        assert agent.initialized
        assert _tool_names(provider.calls[0]) == ["add"]

    @pytest.mark.asyncio
    async def test_failure_closes_what_was_opened(self, model):
        good = FakeClient("good")

        async def start(name, config):
            if name == "bad":
                raise MCPConnectionError(name, "spawn failed")
            return good

        agent = AIAgent("A", "a", tools_configs=[_servers("good", "bad")], model=model)
        with patch(STDIO_PATCH, new=AsyncMock(side_effect=start)):
            with pytest.raises(MCPConnectionError, match="spawn failed"):
                await agent.initialize()

        assert good.closed
        assert not agent.initialized
        assert agent.get_info()["tools"] == []

    @pytest.mark.asyncio
    async def test_unsupported_entry(self, model):
        agent = AIAgent("A", "a", tools_configs=[object()], model=model)
        with pytest.raises(ConfigurationError, match="Unsupported configuration entry"):
            await agent.generate_response(prompt="hi")

    @pytest.mark.asyncio
    async def test_auto_server_missing_environment(self, monkeypatch, model):
        monkeypatch.delenv("BRAVE_API_KEY", raising=False)
        agent = AIAgent("Search", "s", tools_configs=[brave_search], model=model)

        with patch(
            "mcp_ai_agent.core.initializers.initialize_stdio_server", new=AsyncMock()
        ) as start:
            with pytest.raises(ConfigurationError) as excinfo:
                await agent.initialize()

        start.assert_not_awaited()
        assert excinfo.value.missing == ["BRAVE_API_KEY"]

    @pytest.mark.asyncio
    async def test_duplicate_server_name_keeps_one_connection(self, model):
        clients = [FakeClient("mem"), FakeClient("mem")]
        agent = AIAgent("A", "a", tools_configs=[_servers("mem"), _servers("mem")], model=model)

        with patch(STDIO_PATCH, new=AsyncMock(side_effect=clients)):
            await agent.initialize()

        assert sum(client.closed for client in clients) == 1
        assert not agent._clients["mem"].closed

    @pytest.mark.asyncio
    async def test_tool_discovery_settles_before_cleanup(self, model):
        class BrokenClient(FakeClient):
            async def tools(self):
                raise MCPConnectionError(self.name, "list_tools failed")

        class SlowClient(FakeClient):
            discovery_finished = False
            finished_before_close = None

            async def tools(self):
                await asyncio.sleep(0.05)
                self.discovery_finished = True
                return {"add": add_tool()}

            async def close(self):
                self.finished_before_close = self.discovery_finished
                await super().close()

        clients = {"broken": BrokenClient("broken"), "slow": SlowClient("slow")}
        agent = AIAgent("A", "a", tools_configs=[_servers("broken", "slow")], model=model)

        with patch(STDIO_PATCH, new=AsyncMock(side_effect=lambda name, cfg: clients[name])):
            with pytest.raises(MCPConnectionError, match="list_tools failed"):
                await agent.initialize()

        assert clients["slow"].closed
        assert clients["slow"].finished_before_close is True
        assert clients["broken"].closed
        assert not agent.initialized
        assert agent.get_info()["tools"] == []


class TestGenerateResponse:
    @pytest.mark.asyncio
    async def test_ad_hoc_tools_override_discovered_ones(self, provider, model):
        client = FakeClient("math", {"add": add_tool()})
        override = Tool(name="add", description="Adds differently", execute=lambda a, b: 0)
        agent = AIAgent("Math", "m", tools_configs=[_servers("math")], model=model)

        with patch(STDIO_PATCH, new=AsyncMock(return_value=client)):
            await agent.generate_response(prompt="hi", tools={"add": override})

        specs = provider.calls[0]["tools"]
        assert len(specs) == 1
        assert specs[0]["function"]["description"] == "Adds differently"

    @pytest.mark.asyncio
    async def test_filter_narrows_discovered_tools(self, provider, model):
        tools = {
            "add": add_tool(),
            "sub": Tool(name="sub", description="Subtract", execute=lambda a, b: a - b),
        }
        agent = AIAgent("Math", "m", tools_configs=[_servers("math")], model=model)

        with patch(STDIO_PATCH, new=AsyncMock(return_value=FakeClient("math", tools))):
            await agent.generate_response(prompt="hi", filter_tools=lambda t: t.name == "sub")

        assert _tool_names(provider.calls[0]) == ["sub"]

    @pytest.mark.asyncio
    async def test_empty_text_after_tool_calls_is_substituted(self, provider, model):
        provider.responses = [
            tool_response(ToolCall(id="c", name="add", arguments={"a": 1, "b": 1}))
        ]
        agent = AIAgent("Math", "m", model=model)

        result = await agent.generate_response(
            prompt="hi", tools={"add": add_tool()}, max_steps=1
        )

        assert result.finish_reason == "tool-calls"
        assert result.text.startswith("The AI completed with tool calls")

    @pytest.mark.asyncio
    async def test_model_and_system_precedence(self, provider, model):
        other = FakeProvider()
        agent = AIAgent("A", "a", system_prompt="Agent system.", model=model)

        await agent.generate_response(prompt="first")
        await agent.generate_response(
            prompt="second", model=LanguageModel(other, "other"), system="Call system."
        )

        assert provider.calls[0]["messages"][0]["content"] == "Agent system."
        assert len(provider.calls) == 1
        assert other.calls[0]["messages"][0]["content"] == "Call system."
        assert other.calls[0]["model"] == "other"

    @pytest.mark.asyncio
    async def test_falls_back_to_default_model(self, provider, model):
        agent = AIAgent("A", "a")
        with patch("mcp_ai_agent.core.agent.default_model", return_value=model):
            result = await agent.generate_response(prompt="hi")
        assert result.text == "done"

    @pytest.mark.asyncio
    async def test_inline_tool_is_registered_and_errors_propagate(self, provider, model):
        def fail(reason):
            raise ValueError(reason)

        provider.responses = [
            tool_response(ToolCall(id="c", name="fail_loudly", arguments={"reason": "nope"}))
        ]
        agent = AIAgent(
            "A",
            "a",
            tools_configs=[
                ToolConfig(
                    name="Fail Loudly",
                    description="Always fails",
                    parameters={"type": "object", "properties": {"reason": {"type": "string"}}},
                    execute=fail,
                )
            ],
            model=model,
        )

        with pytest.raises(ToolExecutionError, match="nope"):
            await agent.generate_response(prompt="hi", max_steps=2)
        assert _tool_names(provider.calls[0]) == ["fail_loudly"]

    @pytest.mark.asyncio
    async def test_non_positive_step_cap_uses_default(self, provider, model):
        call = ToolCall(id="c", name="add", arguments={"a": 1, "b": 1})
        provider.responses = [tool_response(call) for _ in range(DEFAULT_MAX_STEPS + 5)]
        agent = AIAgent("Math", "m", model=model)

        await agent.generate_response(prompt="loop", tools={"add": add_tool()}, max_steps=0)

        assert len(provider.calls) == DEFAULT_MAX_STEPS


class TestNestedAgents:
    @pytest.mark.asyncio
    async def test_nested_agent_exposed_as_tool(self, provider, model):
        namer = AIAgent("Namer", "Names things")
        provider.responses = [
            tool_response(
                ToolCall(
                    id="c",
                    name="agent_namer",
                    arguments={"context": "A small cat", "prompt": "Name it"},
                )
            ),
            text_response("Whiskers"),
            text_response("The cat is called Whiskers"),
        ]
        parent = AIAgent(
            "Parent", "p", tools_configs=[AgentConfig(agent=namer, max_steps=3)], model=model
        )

        result = await parent.generate_response(prompt="Name my cat", max_steps=3)

        assert result.text == "The cat is called Whiskers"
        assert _tool_names(provider.calls[0]) == ["agent_namer"]
        assert provider.calls[0]["tools"][0]["function"]["description"] == "Names things"
        nested_request = provider.calls[1]["messages"]
        assert nested_request == [
            {"role": "user", "content": "<Context>A small cat</Context>\n<Prompt>Name it</Prompt>"}
        ]
        assert provider.calls[2]["messages"][-1]["content"] == "Whiskers"
        assert parent.get_info()["agents"] == ["namer"]

    @pytest.mark.asyncio
    async def test_override_name_and_description(self, model):
        namer = AIAgent("Namer", "Names things")
        parent = AIAgent(
            "Parent",
            "p",
            tools_configs=[
                AgentConfig(agent=namer, name="Pet Namer", description="Names pets")
            ],
            model=model,
        )
        await parent.initialize()
        info = parent.get_info()
        assert info["tools"] == ["agent_pet_namer"]
        assert info["agents"] == ["pet_namer"]
        assert parent._tools.get_tool("agent_pet_namer").description == "Names pets"


class TestGenerateObject:
    @pytest.mark.asyncio
    async def test_two_phase_generation(self, model):
        provider = model.provider
        provider.responses = [text_response("Ada is 36", 2, 3)]
        provider.objects = [object_response({"name": "Ada", "age": 36})]
        schema = json_schema(
            {
                "type": "object",
                "properties": {"name": {"type": "string"}, "age": {"type": "integer"}},
                "required": ["name", "age"],
            }
        )
        agent = AIAgent("A", "a", system_prompt="Be precise.", model=model)

        result = await agent.generate_object(
            schema=schema, schema_name="person", prompt="Who is Ada?"
        )

        assert result.object == {"name": "Ada", "age": 36}
        assert result.usage.total_tokens == 5 + 7
        system = provider.calls[0]["messages"][0]["content"]
        assert system.startswith("Be precise.")
        assert "<Schema Name>person</Schema Name>" in system
        extraction = provider.object_calls[0]["messages"]
        assert extraction == [
            {
                "role": "user",
                "content": "Create an object that matches the schema from the response: "
                "<Response>Ada is 36</Response>",
            }
        ]


class TestClose:
    @pytest.mark.asyncio
    async def test_close_waits_for_everything_then_raises(self, model):
        clients = {"a": FakeClient("a", fail_close=True), "b": FakeClient("b")}
        nested = AIAgent("Helper", "h")
        nested.close = AsyncMock()
        agent = AIAgent(
            "A", "a", tools_configs=[_servers("a", "b"), AgentConfig(agent=nested)], model=model
        )

        with patch(STDIO_PATCH, new=AsyncMock(side_effect=lambda name, cfg: clients[name])):
            await agent.initialize()

        with pytest.raises(RuntimeError, match="refused to close"):
            await agent.close()

        assert clients["a"].closed and clients["b"].closed
        nested.close.assert_awaited_once()
        assert not agent.initialized

    @pytest.mark.asyncio
    async def test_failing_nested_close_still_closes_siblings(self, model):
        clients = {"left": FakeClient("left", fail_close=True), "right": FakeClient("right")}
        left = AIAgent("Left", "l", tools_configs=[_servers("left")], model=model)
        right = AIAgent("Right", "r", tools_configs=[_servers("right")], model=model)
        parent = AIAgent(
            "Parent",
            "p",
            tools_configs=[AgentConfig(agent=left), AgentConfig(agent=right)],
            model=model,
        )

        with patch(STDIO_PATCH, new=AsyncMock(side_effect=lambda name, cfg: clients[name])):
            await left.initialize()
            await right.initialize()
            await parent.initialize()

        with pytest.raises(RuntimeError, match="left refused to close"):
            await parent.close()

        assert clients["left"].closed and clients["right"].closed
        assert not left.initialized and not right.initialized
        assert not parent.initialized

    @pytest.mark.asyncio
    async def test_reinitializes_after_close(self, model):
        agent = AIAgent("A", "a", tools_configs=[_servers("math")], model=model)
        with patch(
            STDIO_PATCH, new=AsyncMock(side_effect=lambda name, cfg: FakeClient(name))
        ) as start:
            async with agent:
                assert agent.initialized
            assert not agent.initialized
            await agent.generate_response(prompt="hi")

        assert start.await_count == 2

    @pytest.mark.asyncio
    async def test_get_info(self, model):
        agent = AIAgent("Info", "Describes itself", system_prompt="sys", model=model)
        await agent.initialize()
        assert agent.get_info() == {
            "name": "Info",
            "description": "Describes itself",
            "tools": [],
            "agents": [],
            "model": model,
            "system": "sys",
        }
