"""
Tests for MCPClient.

The MCP session class is replaced by an in-memory session so the
connection lifecycle and tool wrapping can be exercised without spawning
a server.
"""

import sys
from contextlib import asynccontextmanager
from unittest.mock import patch

import pytest
from mcp import types

from mcp_ai_agent.config import StdioServerConfig
from mcp_ai_agent.errors import MCPConnectionError, ToolExecutionError
from mcp_ai_agent.tools.mcp import MCPClient


class FakeSession:
    instances = []
    fail_calls = False

    def __init__(self, read, write):
        self.streams = (read, write)
        self.initialized = False
        self.exited = False
        self.calls = []
        FakeSession.instances.append(self)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.exited = True

    async def initialize(self):
        self.initialized = True

    async def list_tools(self):
        return types.ListToolsResult(
            tools=[
                types.Tool(
                    name="echo",
                    description="Echo the input",
                    inputSchema={"type": "object", "properties": {"text": {"type": "string"}}},
                )
            ]
        )

    async def call_tool(self, name, arguments):
        self.calls.append((name, arguments))
        if FakeSession.fail_calls:
            raise RuntimeError("connection reset")
        text = arguments.get("text", "")
        return types.CallToolResult(
            content=[types.TextContent(type="text", text=text)],
            isError=text == "error",
        )


@pytest.fixture
def session_cls():
    FakeSession.instances = []
    FakeSession.fail_calls = False
    with patch("mcp_ai_agent.tools.mcp.ClientSession", FakeSession):
        yield FakeSession


async def _open_streams(stack):
    return "read", "write"


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_connect_and_close(self, session_cls):
        client = MCPClient("echo", _open_streams)
        await client.connect()

        session = session_cls.instances[0]
        assert session.initialized
        assert session.streams == ("read", "write")
        assert client.session is session

        await client.close()
        assert session.exited
        assert client.closed
        assert client.session is None

        # Closing again is a no-op.
        await client.close()

    @pytest.mark.asyncio
    async def test_connect_failure_is_wrapped(self, session_cls):
        async def refuse(stack):
            raise FileNotFoundError("no such command: mcp-server")

        client = MCPClient("missing", refuse)
        with pytest.raises(MCPConnectionError, match="no such command") as excinfo:
            await client.connect()

        assert excinfo.value.server_name == "missing"
        assert client.closed
        await client.close()

    @pytest.mark.asyncio
    async def test_tools_require_a_connection(self, session_cls):
        client = MCPClient("idle", _open_streams)
        with pytest.raises(MCPConnectionError, match="not connected"):
            await client.tools()

    @pytest.mark.asyncio
    async def test_stdio_transport_parameters(self, session_cls):
        seen = {}

        @asynccontextmanager
        async def fake_stdio_client(params, errlog):
            seen["params"] = params
            seen["errlog"] = errlog
            yield "r", "w"

        config = StdioServerConfig(command="npx", args=["-y", "server"], env={"KEY": "v"})
        with patch("mcp_ai_agent.tools.mcp.stdio_client", fake_stdio_client):
            client = MCPClient.stdio("files", config)
            await client.connect()
            await client.close()

        assert seen["params"].command == "npx"
        assert seen["params"].args == ["-y", "server"]
        assert seen["params"].env == {"KEY": "v"}
        assert seen["errlog"] is sys.stderr


class TestTools:
    @pytest.mark.asyncio
    async def test_tools_are_wrapped(self, session_cls):
        client = MCPClient("echo", _open_streams)
        await client.connect()
        try:
            tools = await client.tools()
            assert list(tools) == ["echo"]
            assert tools["echo"].description == "Echo the input"
            assert tools["echo"].parameters["properties"]["text"]["type"] == "string"
            assert await tools["echo"].run({"text": "hello"}) == "hello"
            assert session_cls.instances[0].calls == [("echo", {"text": "hello"})]
        finally:
            await client.close()

    @pytest.mark.asyncio
    async def test_server_side_error(self, session_cls):
        client = MCPClient("echo", _open_streams)
        await client.connect()
        try:
            tools = await client.tools()
            with pytest.raises(ToolExecutionError, match="Tool 'echo' failed"):
                await tools["echo"].run({"text": "error"})
        finally:
            await client.close()

    @pytest.mark.asyncio
    async def test_transport_error(self, session_cls):
        client = MCPClient("echo", _open_streams)
        await client.connect()
        try:
            tools = await client.tools()
            session_cls.fail_calls = True
            with pytest.raises(ToolExecutionError, match="connection reset"):
                await tools["echo"].run({"text": "hi"})
        finally:
            await client.close()
