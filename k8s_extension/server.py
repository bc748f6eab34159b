"""
Kubernetes Extension — generic resource operations over MCP

Exposes seven tools over MCP stdio transport:
  • Resources  — create, delete, wait (for a status condition)
  • Access     — authCanI (SubjectAccessReview with optional expectation)
  • Kubeconfig — listContexts, getCurrentContext, viewConfig (optionally minified)

Configuration is read from the environment, see k8s_extension.config.

Run with:
    python -m k8s_extension.server
"""

from __future__ import annotations

import asyncio
import shutil
import signal
import sys
from datetime import datetime, timezone

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import (
    CallToolResult,
    ListToolsResult,
    TextContent,
)

from k8s_extension import config
from k8s_extension.client import KubectlClient, ResourceClient
from k8s_extension.errors import InitializationError
from k8s_extension.formatters import to_call_result
from k8s_extension.logging_utils import configure_logging, get_logger
from k8s_extension.outcome import Outcome
from k8s_extension.tools.access import ACCESS_HANDLERS, ACCESS_TOOLS
from k8s_extension.tools.kubeconfig import KUBECONFIG_HANDLERS, KUBECONFIG_TOOLS
from k8s_extension.tools.resources import RESOURCE_HANDLERS, RESOURCE_TOOLS, WRITE_TOOLS

logger = get_logger("server")

# ---------------------------------------------------------------------------
# Server setup
# ---------------------------------------------------------------------------

server = Server("kubernetes")

if config.READ_ONLY:
    ALL_TOOLS = [t for t in RESOURCE_TOOLS if t.name not in WRITE_TOOLS] + ACCESS_TOOLS + KUBECONFIG_TOOLS
    ALL_HANDLERS: dict = {
        **{k: v for k, v in RESOURCE_HANDLERS.items() if k not in WRITE_TOOLS},
        **ACCESS_HANDLERS,
        **KUBECONFIG_HANDLERS,
    }
else:
    ALL_TOOLS = RESOURCE_TOOLS + ACCESS_TOOLS + KUBECONFIG_TOOLS
    ALL_HANDLERS = {
        **RESOURCE_HANDLERS,
        **ACCESS_HANDLERS,
        **KUBECONFIG_HANDLERS,
    }

# Created by _run() and set on SIGINT/SIGTERM; in-flight waits observe it and fail promptly.
_shutdown: asyncio.Event | None = None

_client: ResourceClient | None = None
_init_error: str = "initialize() was not called"


def set_client(client: ResourceClient | None, error: str = "") -> None:
    global _client, _init_error
    _client = client
    _init_error = error


def initialize(kubeconfig: str | None = None) -> ResourceClient | None:
    """Build the kubectl-backed client. On failure every tool call reports why."""
    try:
        if not shutil.which("kubectl"):
            raise InitializationError("kubectl not found on PATH")
        path = config.resolve_kubeconfig_path(kubeconfig)
    except InitializationError as e:
        logger.error(f"Client initialization failed: {e}")
        set_client(None, str(e))
        return None

    client = KubectlClient(path)
    logger.info(f"Using kubeconfig {path}")
    set_client(client)
    return client


def _audit(name: str, args: dict) -> None:
    ts = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
    safe_args = {k: v for k, v in args.items() if k not in ("spec", "data", "stringData")}
    for key in ("spec", "data", "stringData"):
        if key in args:
            safe_args[f"{key}_size"] = f"{len(str(args[key]))} bytes"
    print(f"[AUDIT] {ts} {name} {safe_args}", file=sys.stderr)


@server.list_tools()
async def list_tools() -> ListToolsResult:
    return ListToolsResult(tools=ALL_TOOLS)


@server.call_tool()
async def call_tool(name: str, arguments: dict) -> CallToolResult:
    args = arguments or {}

    handler = ALL_HANDLERS.get(name)
    if handler is None:
        return CallToolResult(
            content=[TextContent(type="text", text=f"Unknown tool: {name}")],
            isError=True,
        )

    if _client is None:
        return to_call_result(
            Outcome.failure(InitializationError(f"kubernetes client not initialized: {_init_error}"))
        )

    if name in WRITE_TOOLS:
        _audit(name, args)

    try:
        outcome = await handler(_client, args, cancel=_shutdown)
    except Exception as exc:  # noqa: BLE001
        logger.exception(f"Unexpected error in {name}")
        return CallToolResult(
            content=[TextContent(type="text", text=f"Unexpected error: {exc}")],
            isError=True,
        )
    return to_call_result(outcome)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

async def _serve() -> None:
    async with stdio_server() as (read_stream, write_stream):
        await server.run(
            read_stream,
            write_stream,
            server.create_initialization_options(),
        )


async def _run() -> None:
    global _shutdown
    mode = "read-only" if config.READ_ONLY else "full"
    logger.info(f"kubernetes extension starting: {len(ALL_TOOLS)} tools registered ({mode} mode)")
    initialize()

    _shutdown = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, _shutdown.set)
        except NotImplementedError:
            pass  # Windows

    serve = asyncio.create_task(_serve())
    stop = asyncio.create_task(_shutdown.wait())
    await asyncio.wait({serve, stop}, return_when=asyncio.FIRST_COMPLETED)
    if not serve.done():
        logger.info("Shutdown requested, stopping")
        # Give in-flight waits a moment to report their cancellation.
        await asyncio.sleep(0.1)
        serve.cancel()
    stop.cancel()
    await asyncio.gather(serve, stop, return_exceptions=True)


def main() -> None:
    configure_logging(config.LOG_LEVEL)
    asyncio.run(_run())


if __name__ == "__main__":
    main()
