"""
MCP tool server client.

Wraps one `mcp.ClientSession` and exposes the server's tools as `Tool`
objects. The transport (stdio subprocess, SSE or streamable HTTP) is
provided by the official `mcp` SDK.

The session is opened and closed inside a dedicated task: the SDK's
transports use anyio cancel scopes, which must be exited by the same task
that entered them, while the agent opens and closes clients from
different tasks.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import sys
from contextlib import AsyncExitStack
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple

from mcp import ClientSession, StdioServerParameters
from mcp.client.sse import sse_client
from mcp.client.stdio import stdio_client
from mcp.client.streamable_http import streamablehttp_client

from mcp_ai_agent.config import HTTPServerConfig, SSEServerConfig, StdioServerConfig
from mcp_ai_agent.errors import MCPConnectionError, ToolExecutionError
from mcp_ai_agent.tools.base import Tool

logger = logging.getLogger(__name__)

Opener = Callable[[AsyncExitStack], Awaitable[Tuple[Any, Any]]]


def _content_text(content: Any) -> str:
    parts = []
    for item in content or []:
        if getattr(item, "type", None) == "text":
            parts.append(item.text)
        elif hasattr(item, "model_dump"):
            parts.append(json.dumps(item.model_dump(mode="json")))
        else:
            parts.append(str(item))
    return "\n".join(parts)


class MCPClient:
    """
    A connection to one tool server.

    Create it with `MCPClient.stdio(...)` or `MCPClient.network(...)`, then
    `await connect()`. `tools()` lists the server's tools; `close()` shuts
    the connection (and the child process, for stdio) down.
    """

    def __init__(self, name: str, opener: Opener) -> None:
        self.name = name
        self._opener = opener
        self.session: Optional[ClientSession] = None
        self.closed = False
        self._task: Optional[asyncio.Task] = None
        self._ready: Optional[asyncio.Future] = None
        self._closing: Optional[asyncio.Event] = None

    @classmethod
    def stdio(cls, name: str, config: StdioServerConfig) -> "MCPClient":
        params = StdioServerParameters(
            command=config.command,
            args=list(config.args),
            env=config.env,
            cwd=config.cwd,
        )

        async def opener(stack: AsyncExitStack) -> Tuple[Any, Any]:
            if config.stderr == "inherit":
                errlog = sys.stderr
            elif config.stderr == "ignore":
                errlog = stack.enter_context(open(os.devnull, "w"))
            else:
                errlog = config.stderr
            read, write = await stack.enter_async_context(stdio_client(params, errlog=errlog))
            return read, write

        return cls(name, opener)

    @classmethod
    def network(cls, name: str, config: Any) -> "MCPClient":
        if isinstance(config, SSEServerConfig):
            transport = sse_client
        elif isinstance(config, HTTPServerConfig):
            transport = streamablehttp_client
        else:
            raise TypeError(f"Not a network server configuration: {config!r}")

        async def opener(stack: AsyncExitStack) -> Tuple[Any, Any]:
            streams = await stack.enter_async_context(
                transport(config.url, headers=config.headers)
            )
            return streams[0], streams[1]

        return cls(name, opener)

    async def connect(self) -> None:
        if self._task is not None:
            return
        self._ready = asyncio.get_running_loop().create_future()
        self._closing = asyncio.Event()
        self._task = asyncio.create_task(self._lifecycle(), name=f"mcp-client-{self.name}")
        try:
            await self._ready
        except Exception as exc:  # noqa: BLE001
            self.closed = True
            await self._task
            raise MCPConnectionError(self.name, str(exc) or type(exc).__name__) from exc
        logger.debug("Connected to tool server %s", self.name)

    async def _lifecycle(self) -> None:
        try:
            async with AsyncExitStack() as stack:
                read, write = await self._opener(stack)
                session = await stack.enter_async_context(ClientSession(read, write))
                await session.initialize()
                self.session = session
                self._ready.set_result(None)
                await self._closing.wait()
        except Exception as exc:  # noqa: BLE001
            if not self._ready.done():
                self._ready.set_exception(exc)
                return
            raise
        finally:
            self.session = None

    def _require_session(self) -> ClientSession:
        if self.session is None:
            raise MCPConnectionError(self.name, "client is not connected")
        return self.session

    async def tools(self) -> Dict[str, Tool]:
        """List the server's tools as Tool objects keyed by tool name."""
        result = await self._require_session().list_tools()
        return {spec.name: self._wrap(spec) for spec in result.tools}

    def _wrap(self, spec: Any) -> Tool:
        tool_name = spec.name

        async def execute(**arguments: Any) -> str:
            session = self._require_session()
            try:
                result = await session.call_tool(tool_name, arguments)
            except Exception as exc:  # noqa: BLE001
                raise ToolExecutionError(tool_name, str(exc)) from exc
            text = _content_text(result.content)
            if result.isError:
                raise ToolExecutionError(tool_name, text or "the server reported an error")
            return text

        return Tool(
            name=tool_name,
            description=spec.description or "",
            parameters=spec.inputSchema or {"type": "object", "properties": {}},
            execute=execute,
        )

    async def close(self) -> None:
        if self.closed or self._task is None:
            self.closed = True
            return
        self.closed = True
        self._closing.set()
        try:
            await self._task
        except Exception as exc:  # noqa: BLE001
            raise MCPConnectionError(self.name, f"error while closing: {exc}") from exc
        logger.debug("Closed tool server %s", self.name)
