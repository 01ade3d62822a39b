"""MCP server wiring: request handlers, stdio transport and shutdown hook."""
from __future__ import annotations

import asyncio
import logging
import os
import signal
import sys
import threading
from typing import Iterable, List, Optional

from mcp import types
from mcp.server.lowlevel import Server
from mcp.server.stdio import stdio_server

from . import tools
from .config import Settings

log = logging.getLogger(__name__)

SHUTDOWN_SIGNALS = (signal.SIGINT, signal.SIGTERM)


def create_server(settings: Optional[Settings] = None) -> Server:
    """Build a low-level MCP server exposing the audit tools.

    Handlers are registered directly (not through ``@server.call_tool()``)
    so that :class:`McpError` raised by the router reaches the session and
    becomes a JSON-RPC error instead of an ``isError`` tool result.
    """
    settings = settings or Settings()
    server = Server(settings.server_name, version=settings.server_version)

    async def handle_list_tools(req: types.ListToolsRequest) -> types.ServerResult:
        return types.ServerResult(types.ListToolsResult(tools=tools.list_tools()))

    async def handle_call_tool(req: types.CallToolRequest) -> types.ServerResult:
        result = await tools.call_tool(req.params.name, req.params.arguments, settings=settings)
        return types.ServerResult(result)

    server.request_handlers[types.ListToolsRequest] = handle_list_tools
    server.request_handlers[types.CallToolRequest] = handle_call_tool
    return server


def _exit_process(code: int = 0) -> None:
    logging.shutdown()
    sys.stderr.flush()
    os._exit(code)


def install_shutdown_hook(
    task: asyncio.Task,
    signals: Iterable[signal.Signals] = SHUTDOWN_SIGNALS,
    grace_s: float = 2.0,
) -> None:
    """Stop the server when one of ``signals`` arrives.

    The first signal cancels ``task`` (the transport) so in-flight audits can
    close their browsers, then ends the process after ``grace_s``. The stdio
    transport reads stdin from a worker thread that cancellation cannot
    interrupt, so the process is exited explicitly. A second signal exits at
    once. Call once, from the running loop, when the server starts.
    """
    loop = asyncio.get_running_loop()
    pending: List[threading.Timer] = []

    def _shutdown(sig: signal.Signals) -> None:
        if pending:
            log.info("Received %s again, exiting now", sig.name)
            pending[0].cancel()
            _exit_process(0)
            return
        log.info("Received %s, closing transport", sig.name)
        task.cancel()
        # a daemon timer, so it still fires if the loop has already closed and
        # interpreter shutdown is blocked joining the stdin thread
        timer = threading.Timer(grace_s, _exit_process, args=(0,))
        timer.daemon = True
        timer.start()
        pending.append(timer)

    for sig in signals:
        try:
            loop.add_signal_handler(sig, _shutdown, sig)
        except NotImplementedError:
            # Windows event loops; Ctrl+C still raises KeyboardInterrupt there
            log.debug("Signal handlers not supported on this loop; skipping %s", sig.name)


async def serve(settings: Optional[Settings] = None) -> None:
    """Run the server on stdin/stdout until EOF or a shutdown signal."""
    settings = settings or Settings()
    server = create_server(settings)
    install_shutdown_hook(asyncio.current_task(), grace_s=settings.shutdown_grace_ms / 1000)
    try:
        async with stdio_server() as (read_stream, write_stream):
            log.info("A11y Accessibility MCP server running on stdio")
            await server.run(read_stream, write_stream, server.create_initialization_options())
    except asyncio.CancelledError:
        log.info("Server stopped")
