"""
Kubeconfig tools (read-only).

Tools:
  listContexts       — list kubeconfig contexts and which one is current
  getCurrentContext  — name of the current context
  viewConfig         — the kubeconfig as YAML, optionally minified to the
                       current context, its cluster and its user
"""

from __future__ import annotations

import asyncio

from mcp.types import Tool, ToolAnnotations

from k8s_extension.client import ResourceClient
from k8s_extension.errors import ExtensionError, KubeconfigError
from k8s_extension.logging_utils import fields, get_logger
from k8s_extension.outcome import Outcome
from k8s_extension.values import nested_bool

logger = get_logger("kubeconfig")

_RO_ANNOTATIONS = ToolAnnotations(readOnlyHint=True, destructiveHint=False, openWorldHint=False)


KUBECONFIG_TOOLS: list[Tool] = [
    Tool(
        name="listContexts",
        description="List all kubeconfig contexts and indicate which one is currently active.",
        inputSchema={"type": "object", "properties": {}},
        annotations=_RO_ANNOTATIONS,
    ),
    Tool(
        name="getCurrentContext",
        description="Return the name of the current kubeconfig context. Fails if none is set.",
        inputSchema={"type": "object", "properties": {}},
        annotations=_RO_ANNOTATIONS,
    ),
    Tool(
        name="viewConfig",
        description=(
            "Return the kubeconfig as YAML. With minify=true only the current context, "
            "the cluster it points at and its user (if any) are included."
        ),
        inputSchema={
            "type": "object",
            "properties": {
                "minify": {
                    "type": "boolean",
                    "default": False,
                    "description": "Only include the current context and its dependencies.",
                },
            },
        },
        annotations=_RO_ANNOTATIONS,
    ),
]


async def handle_list_contexts(client: ResourceClient, args: dict, cancel: asyncio.Event | None = None) -> Outcome:
    logger.info("Listing kubeconfig contexts")
    try:
        contexts = await client.list_contexts()
    except ExtensionError as e:
        logger.error(f"Failed to list contexts {fields(error=e)}")
        return Outcome.failure(KubeconfigError(f"failed to list contexts: {e}"))

    if not contexts:
        return Outcome.failure(KubeconfigError("no contexts found in kubeconfig"))

    current = next((c.name for c in contexts if c.is_current), "")
    logger.info(f"Contexts listed successfully {fields(count=len(contexts), current=current)}")
    return Outcome.ok(
        f"Found {len(contexts)} context(s), current: {current}",
        {
            "current": current,
            "count": str(len(contexts)),
            "contexts": ",".join(c.name for c in contexts),
        },
    )


async def handle_get_current_context(client: ResourceClient, args: dict, cancel: asyncio.Event | None = None) -> Outcome:
    logger.info("Getting current kubeconfig context")
    try:
        current = await client.get_current_context()
    except ExtensionError as e:
        logger.error(f"Failed to get current context {fields(error=e)}")
        return Outcome.failure(KubeconfigError(f"failed to get current context: {e}"))

    if not current:
        return Outcome.failure(KubeconfigError("no current context set in kubeconfig"))

    logger.info(f"Current context retrieved {fields(context=current)}")
    return Outcome.ok(f"Current context: {current}", {"context": current})


async def handle_view_config(client: ResourceClient, args: dict, cancel: asyncio.Event | None = None) -> Outcome:
    minify = isinstance(args, dict) and nested_bool(args, "minify") is True
    logger.info(f"Viewing kubeconfig {fields(minify=minify)}")

    try:
        config_yaml = await client.view_config(minify)
    except ExtensionError as e:
        logger.error(f"Failed to view config {fields(error=e)}")
        return Outcome.failure(KubeconfigError(f"failed to view config: {e}"))

    logger.info("Kubeconfig retrieved successfully")
    return Outcome.ok("Kubeconfig retrieved", {"config": config_yaml})


KUBECONFIG_HANDLERS = {
    "listContexts": handle_list_contexts,
    "getCurrentContext": handle_get_current_context,
    "viewConfig": handle_view_config,
}
