"""
Async kubectl wrapper.

Uses asyncio.create_subprocess_exec — no shell involved, immune to injection.
Objects are always passed on stdin as JSON, never interpolated into args.

Safety features:
  - Concurrency semaphore to limit parallel subprocess count
  - Enriched error messages for common failure modes
  - NotFound responses raised as KubectlNotFoundError so callers can branch on them
"""

from __future__ import annotations

import asyncio
import json
from typing import Any, Sequence

from k8s_extension.config import KUBECTL_TIMEOUT
from k8s_extension.errors import CapabilityError, NotFoundError

MAX_OUTPUT_BYTES = 10 * 1024 * 1024  # 10 MB
MAX_CONCURRENT_KUBECTL = 10


# ---------------------------------------------------------------------------
# Error enrichment
# ---------------------------------------------------------------------------

_ERROR_HINTS = {
    "No such file or directory": (
        "kubectl binary not found. Ensure kubectl is installed and on your PATH."
    ),
    "Unable to connect to the server": (
        "Cannot reach the Kubernetes API server. Check that your cluster is running "
        "and kubeconfig is correct."
    ),
    "error: You must be logged in": (
        "Authentication failed. Your kubeconfig credentials may have expired."
    ),
    "the server has asked for the client to provide credentials": (
        "Cluster rejected credentials. Token may be expired."
    ),
    "the server doesn't have a resource type": (
        "The API server does not serve this resource. Check apiVersion and kind, "
        "or whether the CRD is installed."
    ),
    "was refused": (
        "Connection refused by the API server. The cluster may be down or the endpoint is wrong."
    ),
}

_NOT_FOUND_MARKER = "(NotFound)"


def _enrich_error(raw_stderr: str) -> str:
    """Prepend an actionable hint to common kubectl errors."""
    for pattern, hint in _ERROR_HINTS.items():
        if pattern in raw_stderr:
            return f"{hint}\n\nkubectl stderr: {raw_stderr}"
    return raw_stderr


# ---------------------------------------------------------------------------
# Concurrency control
# ---------------------------------------------------------------------------

_semaphore: asyncio.Semaphore | None = None


def _get_semaphore() -> asyncio.Semaphore:
    global _semaphore
    if _semaphore is None:
        _semaphore = asyncio.Semaphore(MAX_CONCURRENT_KUBECTL)
    return _semaphore


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class KubectlError(CapabilityError):
    """Raised when kubectl exits with a non-zero status."""


class KubectlNotFoundError(KubectlError, NotFoundError):
    """Raised when the API server answers NotFound."""


# ---------------------------------------------------------------------------
# Core functions
# ---------------------------------------------------------------------------

def _build_args(
    args: Sequence[str],
    kubeconfig: str | None = None,
    namespace: str | None = None,
) -> list[str]:
    prefix: list[str] = []
    if kubeconfig:
        prefix += ["--kubeconfig", kubeconfig]
    if namespace:
        prefix += ["--namespace", namespace]
    return prefix + list(args)


async def kubectl(
    args: Sequence[str],
    *,
    kubeconfig: str | None = None,
    namespace: str | None = None,
    stdin_data: str | None = None,
) -> str:
    """Run kubectl and return stdout as a string.

    The child is killed and reaped if the call times out or the awaiting
    task is cancelled.
    """
    full_args = _build_args(args, kubeconfig=kubeconfig, namespace=namespace)
    timeout = KUBECTL_TIMEOUT
    stdin = stdin_data.encode() if stdin_data is not None else None

    async with _get_semaphore():
        proc = await asyncio.create_subprocess_exec(
            "kubectl",
            *full_args,
            stdin=asyncio.subprocess.PIPE if stdin is not None else asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )

        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(input=stdin), timeout=timeout)
        except asyncio.TimeoutError:
            raise KubectlError(f"kubectl timed out after {timeout}s: kubectl {' '.join(full_args)}")
        finally:
            if proc.returncode is None:
                try:
                    proc.kill()
                except ProcessLookupError:
                    pass  # exited between the check and the kill
                await proc.wait()

    if len(stdout) > MAX_OUTPUT_BYTES:
        stdout = stdout[:MAX_OUTPUT_BYTES] + b"\n[... output truncated at 10 MB ...]"

    if proc.returncode != 0:
        err = stderr.decode(errors="replace").strip()
        if _NOT_FOUND_MARKER in err:
            raise KubectlNotFoundError(err)
        raise KubectlError(_enrich_error(err) if err else f"kubectl exited with code {proc.returncode}")

    return stdout.decode(errors="replace").strip()


async def kubectl_json(
    args: Sequence[str],
    *,
    kubeconfig: str | None = None,
    namespace: str | None = None,
    stdin_obj: Any = None,
) -> dict:
    """Run kubectl with -o json, optionally piping ``stdin_obj`` as JSON, and parse the result."""
    output = await kubectl(
        list(args) + ["-o", "json"],
        kubeconfig=kubeconfig,
        namespace=namespace,
        stdin_data=json.dumps(stdin_obj) if stdin_obj is not None else None,
    )
    try:
        result = json.loads(output)
    except json.JSONDecodeError:
        raise KubectlError(
            "Response too large to parse as JSON (likely truncated at 10 MB)."
        )
    if not isinstance(result, dict):
        raise KubectlError(f"expected a JSON object from kubectl, got {type(result).__name__}")
    return result
