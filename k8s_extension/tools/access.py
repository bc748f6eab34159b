"""
Permission check tool.

Tools:
  authCanI  — ask the API server whether a user or service account may perform
              a verb on a resource (SubjectAccessReview), optionally asserting
              the expected answer

The decision itself is made server-side; nothing here evaluates RBAC rules.
"""

from __future__ import annotations

import asyncio

from mcp.types import Tool, ToolAnnotations

from k8s_extension.client import AccessQuery, ResourceClient
from k8s_extension.errors import CapabilityError, ExpectationError, ValidationError
from k8s_extension.logging_utils import fields, get_logger
from k8s_extension.outcome import Outcome
from k8s_extension.values import Missing, nested_field, nested_str, str_or_empty

logger = get_logger("access")


ACCESS_TOOLS: list[Tool] = [
    Tool(
        name="authCanI",
        description=(
            "Check if a user or service account can perform an action on a resource. "
            "Leave namespace empty for a cluster-wide check. Pass expect.allowed to "
            "turn an unexpected answer into a failure."
        ),
        inputSchema={
            "type": "object",
            "description": "Permission check parameters",
            "required": ["verb", "resource", "as"],
            "properties": {
                "verb": {
                    "type": "string",
                    "description": "Action verb (get, list, create, delete, watch, patch, update, etc.)",
                },
                "resource": {
                    "type": "string",
                    "description": "Resource name (pods, deployments, configmaps, etc.)",
                },
                "as": {
                    "type": "string",
                    "description": "User or service account to impersonate (e.g., alice, system:serviceaccount:ns:sa-name)",
                },
                "namespace": {
                    "type": "string",
                    "description": "Namespace scope (optional, empty for cluster-wide check)",
                },
                "apiGroup": {
                    "type": "string",
                    "description": "API group (optional, empty for core API, e.g., apps, batch, rbac.authorization.k8s.io)",
                },
                "resourceName": {
                    "type": "string",
                    "description": "Specific resource name to check access for (optional)",
                },
                "expect": {
                    "type": "object",
                    "description": "Expected result for inline verification",
                    "properties": {
                        "allowed": {
                            "type": "boolean",
                            "description": "Expected permission result (true for allowed, false for denied)",
                        },
                    },
                },
            },
        },
        annotations=ToolAnnotations(readOnlyHint=True, destructiveHint=False, idempotentHint=True, openWorldHint=True),
    ),
]


def _bool_text(value: bool) -> str:
    return "true" if value else "false"


def _expected_allowed(args: dict) -> bool | None:
    """The caller's ``expect.allowed``, or None when no expectation was given."""
    expect = nested_field(args, "expect")
    if expect is Missing.ABSENT:
        return None
    if not isinstance(expect, dict):
        raise ValidationError("expect must be an object")
    if "allowed" not in expect:
        return None
    if not isinstance(expect["allowed"], bool):
        raise ValidationError("expect.allowed must be a boolean")
    return expect["allowed"]


def parse_query(args: dict) -> AccessQuery:
    query = AccessQuery(
        subject=str_or_empty(nested_str(args, "as")),
        verb=str_or_empty(nested_str(args, "verb")),
        resource=str_or_empty(nested_str(args, "resource")),
        group=str_or_empty(nested_str(args, "apiGroup")),
        namespace=str_or_empty(nested_str(args, "namespace")),
        resource_name=str_or_empty(nested_str(args, "resourceName")),
    )
    if not query.verb:
        raise ValidationError("verb is required")
    if not query.resource:
        raise ValidationError("resource is required")
    if not query.subject:
        raise ValidationError("as is required")
    return query


def summarize(query: AccessQuery, allowed: bool) -> str:
    msg = f"{query.subject} can {query.verb} {query.resource}"
    if query.namespace:
        msg += f" in namespace {query.namespace}"
    else:
        msg += " cluster-wide"
    return msg + (": allowed" if allowed else ": denied")


async def handle_auth_can_i(client: ResourceClient, args: dict, cancel: asyncio.Event | None = None) -> Outcome:
    if not isinstance(args, dict):
        return Outcome.failure(ValidationError("args must be an object"))

    try:
        query = parse_query(args)
    except ValidationError as e:
        return Outcome.failure(e)

    logger.info(
        "Checking permissions "
        + fields(verb=query.verb, resource=query.resource, subject=query.subject,
                 namespace=query.namespace, apiGroup=query.group, resourceName=query.resource_name)
    )

    try:
        decision = await client.check_access(query)
    except CapabilityError as e:
        logger.error(f"Failed to check permissions {fields(error=e)}")
        return Outcome.failure(CapabilityError(f"failed to check permissions: {e}"))

    logger.info(f"Permission check completed {fields(allowed=decision.allowed, reason=decision.reason)}")

    try:
        expected = _expected_allowed(args)
    except ValidationError as e:
        return Outcome.failure(e)

    if expected is not None and expected != decision.allowed:
        return Outcome.failure(
            ExpectationError("permission expectation not met"),
            message=(
                f"permission check failed: expected allowed={_bool_text(expected)} "
                f"but got allowed={_bool_text(decision.allowed)}"
            ),
        )

    return Outcome.ok(
        summarize(query, decision.allowed),
        {"allowed": _bool_text(decision.allowed), "reason": decision.reason},
    )


ACCESS_HANDLERS = {
    "authCanI": handle_auth_can_i,
}
