"""
MCP stdio server exposing the sandboxed filesystem tools.
"""

import asyncio
import contextlib
import logging
import os
import signal
import stat
import sys
from typing import Any, Optional

import anyio
import anyio.lowlevel
import mcp.types as types
from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.shared.message import SessionMessage

from sandbox_mcp.filesystem import PathValidator, ToolDispatcher
from sandbox_mcp.settings import ServerConfig

logger = logging.getLogger(__name__)

# Protocol revision this server was built against; the SDK performs the
# actual version negotiation during the initialize handshake.
PROTOCOL_VERSION = "2025-06-18"

# Longest request line accepted on stdin (write_file carries whole files)
STDIN_LINE_LIMIT = 64 * 1024 * 1024


@contextlib.asynccontextmanager
async def stdio_pipe_transport(limit: int = STDIN_LINE_LIMIT):
    """
    stdio transport that reads stdin through the event loop.

    The SDK's ``stdio_server`` reads stdin on a worker thread that cannot be
    interrupted, so leaving it waits until the client closes stdin. Here a
    pending read is cancelled together with its task. Only usable when
    stdin is a pipe.
    """
    loop = asyncio.get_running_loop()
    reader = asyncio.StreamReader(limit=limit)
    protocol = asyncio.StreamReaderProtocol(reader)
    transport, _ = await loop.connect_read_pipe(lambda: protocol, sys.stdin)

    read_stream_writer, read_stream = anyio.create_memory_object_stream(0)
    write_stream, write_stream_reader = anyio.create_memory_object_stream(0)
    stdout = sys.stdout.buffer

    async def stdin_reader() -> None:
        try:
            async with read_stream_writer:
                while True:
                    try:
                        line = await reader.readline()
                    except ValueError as e:
                        # Line longer than the limit; the buffer was discarded
                        await read_stream_writer.send(e)
                        continue
                    if not line:
                        break
                    try:
                        message = types.JSONRPCMessage.model_validate_json(line)
                    except Exception as e:
                        await read_stream_writer.send(e)
                        continue
                    await read_stream_writer.send(SessionMessage(message))
        except (anyio.ClosedResourceError, anyio.BrokenResourceError):
            await anyio.lowlevel.checkpoint()

    async def stdout_writer() -> None:
        try:
            async with write_stream_reader:
                async for session_message in write_stream_reader:
                    payload = session_message.message.model_dump_json(
                        by_alias=True, exclude_none=True
                    )
                    stdout.write(payload.encode("utf-8") + b"\n")
                    stdout.flush()
        except anyio.ClosedResourceError:
            await anyio.lowlevel.checkpoint()

    tasks = [
        asyncio.create_task(stdin_reader()),
        asyncio.create_task(stdout_writer()),
    ]
    try:
        yield read_stream, write_stream
    finally:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        transport.close()


def stdin_is_pipe() -> bool:
    """True when stdin is a FIFO the event loop can watch directly."""
    if os.name == "nt":
        return False
    try:
        return stat.S_ISFIFO(os.fstat(sys.stdin.fileno()).st_mode)
    except (AttributeError, OSError, ValueError):
        return False


class SandboxMCPServer:
    """
    Model Context Protocol server backed by a ``ToolDispatcher``.

    The policy is built once from ``config`` and passed explicitly into the
    validator and dispatcher; there is no module-level state.

    Usage:
        server = SandboxMCPServer(ServerConfig.from_env())
        exit_code = asyncio.run(server.run())
    """

    def __init__(self, config: ServerConfig):
        self.config = config
        self.validator = PathValidator(config.policy)
        self.dispatcher = ToolDispatcher(self.validator)
        self.server: Server = Server(
            name=config.name,
            version=config.version,
            instructions=(
                "Filesystem and system-information tools restricted to the "
                "configured sandbox directories."
            ),
        )
        self._register_handlers()

    def _register_handlers(self) -> None:
        @self.server.list_tools()
        async def _list_tools() -> list[types.Tool]:
            logger.debug("ListTools request received")
            return self.list_tools()

        # Arguments are checked by the dispatcher so malformed input comes
        # back in the same envelope as every other failure.
        @self.server.call_tool(validate_input=False)
        async def _call_tool(
            name: str, arguments: Optional[dict[str, Any]]
        ) -> types.CallToolResult:
            return await self.call_tool(name, arguments)

    def list_tools(self) -> list[types.Tool]:
        """Static tool catalog as protocol objects."""
        return [types.Tool(**schema) for schema in self.dispatcher.get_tool_schemas()]

    async def call_tool(
        self, name: str, arguments: Optional[dict[str, Any]]
    ) -> types.CallToolResult:
        """Run one tool call and wrap the result for the transport."""
        logger.info(f"CallTool request received: {name}")
        result = await self.dispatcher.execute_tool(name, arguments)
        return types.CallToolResult(
            content=[types.TextContent(type="text", text=result.message)],
            isError=result.is_error,
        )

    async def run(self) -> int:
        """
        Serve over stdio until the client disconnects or a signal arrives.

        SIGINT and SIGTERM close the transport before returning.

        Returns:
            Process exit status (0)
        """
        shutdown_event = asyncio.Event()
        loop = asyncio.get_running_loop()

        def signal_handler(sig: signal.Signals) -> None:
            logger.info(f"Received {sig.name}, closing server...")
            shutdown_event.set()

        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, signal_handler, sig)
            except NotImplementedError:
                # Windows event loops have no add_signal_handler
                signal.signal(
                    sig,
                    lambda s, _frame: loop.call_soon_threadsafe(
                        signal_handler, signal.Signals(s)
                    ),
                )

        transport = stdio_pipe_transport() if stdin_is_pipe() else stdio_server()
        async with transport as (read_stream, write_stream):
            logger.info(f"{self.config.name} running on stdio")
            logger.info(f"Available tools: {self.dispatcher.tool_names}")
            logger.info(
                f"Allowed paths: {[str(p) for p in self.validator.get_allowed_roots()]}"
            )

            serve_task = asyncio.create_task(
                self.server.run(
                    read_stream,
                    write_stream,
                    self.server.create_initialization_options(),
                )
            )
            stop_task = asyncio.create_task(shutdown_event.wait())

            done, _ = await asyncio.wait(
                {serve_task, stop_task}, return_when=asyncio.FIRST_COMPLETED
            )

            if stop_task in done:
                serve_task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await serve_task
            else:
                stop_task.cancel()
                # Surface transport failures to the caller
                serve_task.result()

        logger.info("Server closed")
        return 0
