"""Shared output formatting helpers."""

from __future__ import annotations

from typing import Any

from mcp.types import CallToolResult, TextContent

from k8s_extension.outcome import Outcome


def section(title: str, body: str) -> str:
    """Format a titled section."""
    bar = "─" * len(title)
    return f"{title}\n{bar}\n{body}"


def kv_table(pairs: list[tuple[str, Any]], indent: int = 0) -> str:
    if not pairs:
        return ""
    max_key = max(len(str(k)) for k, _ in pairs)
    pad = " " * indent
    lines = [f"{pad}{str(k).ljust(max_key)}  {v}" for k, v in pairs]
    return "\n".join(lines)


def render_outcome(outcome: Outcome) -> str:
    """Human-readable text for an outcome.

    Single-line outputs are shown as an aligned table; multi-line outputs
    (a kubeconfig, for instance) each get their own titled section.
    """
    if outcome.success:
        parts = [outcome.message]
    else:
        parts = [f"Error: {outcome.message}"]
        if outcome.error and outcome.error != outcome.message:
            parts.append(outcome.error)

    short = [(k, v) for k, v in outcome.outputs.items() if "\n" not in v]
    long = [(k, v) for k, v in outcome.outputs.items() if "\n" in v]
    if short:
        parts.append(kv_table(short, indent=2))
    for key, value in long:
        parts.append(section(key, value.rstrip("\n")))
    return "\n\n".join(parts)


def to_call_result(outcome: Outcome) -> CallToolResult:
    structured: dict[str, Any] = dict(outcome.outputs)
    if not outcome.success and outcome.error_type:
        structured["errorType"] = outcome.error_type
    return CallToolResult(
        content=[TextContent(type="text", text=render_outcome(outcome))],
        structuredContent=structured or None,
        isError=not outcome.success,
    )
