import asyncio
import json
import os
import signal
import subprocess
import sys
import threading
from pathlib import Path

import pytest
from mcp import types
from mcp.server.lowlevel import NotificationOptions
from mcp.shared.exceptions import McpError

from a11y_mcp.config import Settings
from a11y_mcp.schema import AxeResults
from a11y_mcp import server as server_module
from a11y_mcp.server import create_server, install_shutdown_hook


def _call_request(name, arguments):
    return types.CallToolRequest(
        method="tools/call",
        params=types.CallToolRequestParams(name=name, arguments=arguments),
    )


def test_handlers_registered():
    server = create_server(Settings())
    assert types.ListToolsRequest in server.request_handlers
    assert types.CallToolRequest in server.request_handlers
    assert server.name == "a11y-accessibility"
    caps = server.get_capabilities(notification_options=NotificationOptions(), experimental_capabilities={})
    assert caps.tools is not None


def test_list_tools_handler():
    server = create_server()
    handler = server.request_handlers[types.ListToolsRequest]
    result = asyncio.run(handler(types.ListToolsRequest(method="tools/list")))
    assert [t.name for t in result.root.tools] == ["audit_webpage", "get_summary"]


def test_call_tool_handler(monkeypatch, raw_axe):
    async def fake_run_axe(url, *, tags=None, settings=None):
        return AxeResults.model_validate(raw_axe)

    monkeypatch.setattr("a11y_mcp.browser.run_axe", fake_run_axe)
    server = create_server()
    handler = server.request_handlers[types.CallToolRequest]
    result = asyncio.run(handler(_call_request("get_summary", {"url": "https://example.com/"})))
    assert result.root.isError is False
    assert json.loads(result.root.content[0].text)["totalIssues"] == 4


def test_call_tool_handler_faults_propagate():
    server = create_server()
    handler = server.request_handlers[types.CallToolRequest]
    with pytest.raises(McpError) as exc:
        asyncio.run(handler(_call_request("audit_webpage", {})))
    assert exc.value.error.code == types.INVALID_PARAMS


@pytest.fixture
def exits(monkeypatch):
    codes = []
    done = threading.Event()

    def fake_exit(code=0):
        codes.append(code)
        done.set()

    monkeypatch.setattr(server_module, "_exit_process", fake_exit)
    return codes, done


def test_shutdown_hook_cancels_task_then_exits(exits):
    codes, done = exits

    async def scenario():
        loop = asyncio.get_running_loop()
        task = asyncio.ensure_future(asyncio.sleep(10))
        install_shutdown_hook(task, signals=(signal.SIGUSR1,), grace_s=0.05)
        try:
            os.kill(os.getpid(), signal.SIGUSR1)
            with pytest.raises(asyncio.CancelledError):
                await task
        finally:
            loop.remove_signal_handler(signal.SIGUSR1)

    asyncio.run(scenario())
    # the exit fires even though the loop is gone
    assert done.wait(5)
    assert codes == [0]


def test_second_signal_exits_immediately(exits):
    codes, _ = exits

    async def scenario():
        loop = asyncio.get_running_loop()
        task = asyncio.ensure_future(asyncio.sleep(10))
        install_shutdown_hook(task, signals=(signal.SIGUSR1,), grace_s=60)
        try:
            os.kill(os.getpid(), signal.SIGUSR1)
            with pytest.raises(asyncio.CancelledError):
                await task
            assert codes == []
            os.kill(os.getpid(), signal.SIGUSR1)
            await asyncio.sleep(0.05)
        finally:
            loop.remove_signal_handler(signal.SIGUSR1)

    asyncio.run(scenario())
    assert codes == [0]


@pytest.mark.skipif(sys.platform == "win32", reason="POSIX signals")
def test_serve_exits_on_sigint_with_stdin_open():
    root = Path(__file__).resolve().parents[1]
    env = dict(os.environ)
    env["PYTHONPATH"] = os.pathsep.join(filter(None, [str(root), env.get("PYTHONPATH")]))
    env["A11Y_MCP_SHUTDOWN_GRACE_MS"] = "200"
    proc = subprocess.Popen(
        [sys.executable, "-m", "a11y_mcp", "serve"],
        cwd=root,
        env=env,
        stdin=subprocess.PIPE,
        stdout=subprocess.PIPE,
        stderr=subprocess.DEVNULL,
    )
    try:
        initialize = {
            "jsonrpc": "2.0",
            "id": 1,
            "method": "initialize",
            "params": {
                "protocolVersion": "2024-11-05",
                "capabilities": {},
                "clientInfo": {"name": "test", "version": "0"},
            },
        }
        proc.stdin.write((json.dumps(initialize) + "\n").encode())
        proc.stdin.flush()
        response = json.loads(proc.stdout.readline())
        assert response["id"] == 1
        assert response["result"]["serverInfo"]["name"] == "a11y-accessibility"

        # stdin stays open: only the signal can end the process
        proc.send_signal(signal.SIGINT)
        assert proc.wait(timeout=10) == 0
    finally:
        if proc.poll() is None:
            proc.kill()
            proc.wait()
        proc.stdin.close()
        proc.stdout.close()
