"""
Generic resource tools.

Tools:
  create  — create any resource from its full object description (medium risk)
  delete  — delete a resource with foreground cascading (medium risk)
  wait    — poll a resource until a status condition reaches a value (read-only)

Resources are addressed by apiVersion/kind/metadata only, so these work for
any kind the cluster serves, custom resources included.
"""

from __future__ import annotations

import asyncio

from mcp.types import Tool, ToolAnnotations

from k8s_extension.client import PROPAGATION_FOREGROUND, ResourceClient
from k8s_extension.errors import (
    CapabilityError,
    NotFoundError,
    ResolutionError,
    ValidationError,
    WaitTimeoutError,
)
from k8s_extension.logging_utils import fields, get_logger
from k8s_extension.outcome import Outcome
from k8s_extension.resource import parse_ref, resolve, resolve_object
from k8s_extension.values import Unstructured, nested_bool, nested_str, str_or_empty
from k8s_extension.waiter import (
    DEFAULT_STATUS,
    DEFAULT_TIMEOUT,
    ConditionWaiter,
    PollState,
    WaitState,
    parse_timeout,
)

logger = get_logger("resources")


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------

_REF_PROPERTIES = {
    "apiVersion": {"type": "string", "description": "API version (e.g., v1, apps/v1)"},
    "kind": {"type": "string", "description": "Resource kind (e.g., Pod, Namespace, Deployment)"},
    "metadata": {"type": "object", "description": "Resource metadata (name, namespace)"},
}


# ---------------------------------------------------------------------------
# Tool definitions
# ---------------------------------------------------------------------------

RESOURCE_TOOLS: list[Tool] = [
    Tool(
        name="create",
        description=(
            "[RISK: MEDIUM] Create a Kubernetes resource. Pass the full object: "
            "apiVersion, kind, metadata (name, namespace, labels, annotations) and "
            "spec or data as the kind requires. Returns the name, namespace, uid and "
            "resourceVersion of the created object."
        ),
        inputSchema={
            "type": "object",
            "description": "Kubernetes resource spec (apiVersion, kind, metadata, spec, etc.)",
            "required": ["apiVersion", "kind", "metadata"],
            "properties": {
                **_REF_PROPERTIES,
                "metadata": {
                    "type": "object",
                    "description": "Resource metadata (name, namespace, labels, annotations)",
                },
                "spec": {
                    "type": "object",
                    "description": "Resource spec (optional, depends on resource type)",
                },
            },
        },
        annotations=ToolAnnotations(readOnlyHint=False, destructiveHint=False, openWorldHint=True),
    ),
    Tool(
        name="delete",
        description=(
            "[RISK: MEDIUM] Delete a Kubernetes resource. Dependents are removed first "
            "(foreground cascading). Set ignoreNotFound=true to succeed when the "
            "resource is already gone."
        ),
        inputSchema={
            "type": "object",
            "description": "Resource reference to delete",
            "required": ["apiVersion", "kind", "metadata"],
            "properties": {
                **_REF_PROPERTIES,
                "ignoreNotFound": {
                    "type": "boolean",
                    "description": "If true, do not fail when the resource does not exist",
                },
            },
        },
        annotations=ToolAnnotations(readOnlyHint=False, destructiveHint=True, idempotentHint=True, openWorldHint=True),
    ),
    Tool(
        name="wait",
        description=(
            "Wait for a status condition on a Kubernetes resource, e.g. Available on a "
            "Deployment or Ready on a Pod. Checks immediately, then once a second until "
            "the condition has the expected status or the timeout elapses."
        ),
        inputSchema={
            "type": "object",
            "description": "Resource reference with condition to wait for",
            "required": ["apiVersion", "kind", "metadata", "condition"],
            "properties": {
                **_REF_PROPERTIES,
                "condition": {
                    "type": "string",
                    "description": "Condition type to wait for (e.g., Ready, Available)",
                },
                "status": {
                    "type": "string",
                    "description": f"Expected condition status (default: {DEFAULT_STATUS})",
                },
                "timeout": {
                    "type": "string",
                    "description": f"Timeout duration (e.g., 60s, 5m, default: {DEFAULT_TIMEOUT})",
                },
            },
        },
        annotations=ToolAnnotations(readOnlyHint=True, destructiveHint=False, openWorldHint=True),
    ),
]


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------

async def handle_create(client: ResourceClient, args: dict, cancel: asyncio.Event | None = None) -> Outcome:
    if not isinstance(args, dict):
        return Outcome.failure(ValidationError("args must be a resource spec object"))

    obj = Unstructured(args)
    if not obj.kind:
        return Outcome.failure(ValidationError("kind is required"))

    try:
        coordinate = resolve_object(obj.api_version, obj.kind)
    except ResolutionError as e:
        return Outcome.failure(e)

    namespace = obj.namespace
    logger.info(f"Creating resource {fields(kind=obj.kind, name=obj.name, namespace=namespace)}")

    try:
        created = Unstructured(await client.create(coordinate, args, namespace))
    except CapabilityError as e:
        logger.error(f"Failed to create resource {fields(kind=obj.kind, name=obj.name, error=e)}")
        return Outcome.failure(CapabilityError(f"failed to create resource: {e}"))

    logger.info(f"Resource created successfully {fields(kind=obj.kind, name=created.name, uid=created.uid)}")
    return Outcome.ok(
        f"Created {obj.kind}/{created.name}",
        {
            "name": created.name,
            "namespace": created.namespace,
            "uid": created.uid,
            "resourceVersion": created.resource_version,
        },
    )


async def handle_delete(client: ResourceClient, args: dict, cancel: asyncio.Event | None = None) -> Outcome:
    if not isinstance(args, dict):
        return Outcome.failure(ValidationError("args must be an object"))

    try:
        ref = parse_ref(args)
        coordinate = resolve(ref)
    except (ValidationError, ResolutionError) as e:
        return Outcome.failure(e)

    ignore_not_found = nested_bool(args, "ignoreNotFound") is True
    logger.info(
        f"Deleting resource {fields(kind=ref.kind, name=ref.name, namespace=ref.namespace, ignoreNotFound=ignore_not_found)}"
    )

    try:
        await client.delete(coordinate, ref.name, ref.namespace, PROPAGATION_FOREGROUND)
    except NotFoundError as e:
        if ignore_not_found:
            logger.info(f"Resource not found (ignored) {fields(kind=ref.kind, name=ref.name)}")
            return Outcome.ok(f"{ref} not found (ignored)")
        logger.error(f"Failed to delete resource {fields(kind=ref.kind, name=ref.name, error=e)}")
        return Outcome.failure(NotFoundError(f"failed to delete resource: {e}"))
    except CapabilityError as e:
        logger.error(f"Failed to delete resource {fields(kind=ref.kind, name=ref.name, error=e)}")
        return Outcome.failure(CapabilityError(f"failed to delete resource: {e}"))

    logger.info(f"Resource deleted successfully {fields(kind=ref.kind, name=ref.name)}")
    return Outcome.ok(f"Deleted {ref}")


async def handle_wait(client: ResourceClient, args: dict, cancel: asyncio.Event | None = None) -> Outcome:
    if not isinstance(args, dict):
        return Outcome.failure(ValidationError("args must be an object"))

    try:
        ref = parse_ref(args)
        condition = str_or_empty(nested_str(args, "condition"))
        if not condition:
            raise ValidationError("condition is required")
        status = str_or_empty(nested_str(args, "status")) or DEFAULT_STATUS
        timeout_str = str_or_empty(nested_str(args, "timeout")) or DEFAULT_TIMEOUT
        timeout = parse_timeout(timeout_str)
        coordinate = resolve(ref)
    except (ValidationError, ResolutionError) as e:
        return Outcome.failure(e)

    logger.info(
        "Waiting for condition "
        + fields(kind=ref.kind, name=ref.name, namespace=ref.namespace,
                 condition=condition, status=status, timeout=timeout_str)
    )

    state = PollState(ref=ref, condition=condition, status=status, timeout=timeout)
    await ConditionWaiter(client, coordinate).wait(state, cancel=cancel)

    if state.state is not WaitState.SATISFIED:
        last = state.last_status_label
        verb = "cancelled" if state.cancelled else "timed out"
        logger.error(
            f"Condition wait {verb} "
            + fields(kind=ref.kind, name=ref.name, condition=condition, lastStatus=last)
        )
        if state.cancelled:
            err = WaitTimeoutError(f"wait for {ref} cancelled: last status was {last}")
        else:
            err = WaitTimeoutError(f"timed out waiting for {ref}: last status was {last}")
        return Outcome.failure(
            err, message=f"Condition {condition}={status} not met (last status: {last})"
        )

    logger.info(f"Condition met {fields(kind=ref.kind, name=ref.name, condition=condition, status=status)}")
    return Outcome.ok(f"{ref} condition {condition}={status}")


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------

RESOURCE_HANDLERS = {
    "create": handle_create,
    "delete": handle_delete,
    "wait": handle_wait,
}

WRITE_TOOLS = {"create", "delete"}
