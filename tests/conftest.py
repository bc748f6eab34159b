"""
Shared fixtures for the test suite.
"""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from k8s_extension.client import AccessDecision, AccessQuery, ResourceClient
from k8s_extension.errors import NotFoundError
from k8s_extension.kubeconfig import ContextInfo
from k8s_extension.resource import EndpointCoordinate


# ---------------------------------------------------------------------------
# Subprocess mock factory
# ---------------------------------------------------------------------------

def make_proc(stdout: bytes = b"", stderr: bytes = b"", returncode: int = 0):
    """Mimics the object returned by asyncio.create_subprocess_exec."""
    proc = MagicMock()
    proc.returncode = returncode
    proc.communicate = AsyncMock(return_value=(stdout, stderr))
    proc.kill = MagicMock()
    proc.wait = AsyncMock(return_value=returncode)
    return proc


def make_hanging_proc():
    """A still-running process whose communicate() never returns; kill() ends it."""
    proc = make_proc()
    proc.returncode = None

    async def hang(input=None):
        await asyncio.Event().wait()

    def kill():
        proc.returncode = -9

    proc.communicate = hang
    proc.kill = MagicMock(side_effect=kill)
    return proc


@pytest.fixture
def mock_run(monkeypatch):
    """
    Patches asyncio.create_subprocess_exec with a fake that pops responses
    from a queue. Every call's argv is recorded on ``queue.calls``.

    Usage:
        mock_run((b"output", b"", 0))
        mock_run((b"out1", b"", 0), (b"out2", b"", 0))  # multiple calls
    """
    responses: list[tuple[bytes, bytes, int]] = []
    calls: list[tuple[str, ...]] = []

    async def fake_exec(*args, **kwargs):
        assert responses, f"Unexpected kubectl call: {args}"
        calls.append(args)
        stdout, stderr, rc = responses.pop(0)
        return make_proc(stdout, stderr, rc)

    monkeypatch.setattr("asyncio.create_subprocess_exec", fake_exec)

    def queue(*items: tuple[bytes, bytes, int]):
        responses.extend(items)

    queue.calls = calls
    return queue


# ---------------------------------------------------------------------------
# In-memory ResourceClient
# ---------------------------------------------------------------------------

class FakeClient(ResourceClient):
    """ResourceClient test double.

    Each operation can be overridden by assigning a plain (sync) callable to
    the matching ``*_fn`` attribute; raising from it simulates a failure.
    Calls are recorded in ``calls`` as ``(operation, args)`` tuples.
    """

    def __init__(self, **overrides):
        self.create_fn = None
        self.get_fn = None
        self.delete_fn = None
        self.check_access_fn = None
        self.list_contexts_fn = None
        self.get_current_context_fn = None
        self.view_config_fn = None
        self.calls: list[tuple[str, tuple]] = []
        for key, fn in overrides.items():
            setattr(self, f"{key}_fn", fn)

    async def create(self, coordinate: EndpointCoordinate, obj: dict, namespace: str) -> dict:
        self.calls.append(("create", (coordinate, obj, namespace)))
        if self.create_fn:
            return self.create_fn(coordinate, obj, namespace)
        return obj

    async def get(self, coordinate: EndpointCoordinate, name: str, namespace: str) -> dict:
        self.calls.append(("get", (coordinate, name, namespace)))
        if self.get_fn:
            return self.get_fn(coordinate, name, namespace)
        raise NotFoundError(f"{coordinate.resource} \"{name}\" not found")

    async def delete(self, coordinate: EndpointCoordinate, name: str, namespace: str, propagation: str) -> None:
        self.calls.append(("delete", (coordinate, name, namespace, propagation)))
        if self.delete_fn:
            self.delete_fn(coordinate, name, namespace, propagation)

    async def check_access(self, query: AccessQuery) -> AccessDecision:
        self.calls.append(("check_access", (query,)))
        if self.check_access_fn:
            return self.check_access_fn(query)
        return AccessDecision(allowed=True)

    async def list_contexts(self) -> list[ContextInfo]:
        self.calls.append(("list_contexts", ()))
        if self.list_contexts_fn:
            return self.list_contexts_fn()
        return [ContextInfo(name="default", cluster="default-cluster", user="default-user", is_current=True)]

    async def get_current_context(self) -> str:
        self.calls.append(("get_current_context", ()))
        if self.get_current_context_fn:
            return self.get_current_context_fn()
        return "default"

    async def view_config(self, minify: bool) -> str:
        self.calls.append(("view_config", (minify,)))
        if self.view_config_fn:
            return self.view_config_fn(minify)
        return "apiVersion: v1\nkind: Config\n"


@pytest.fixture
def fake_client():
    return FakeClient()


# ---------------------------------------------------------------------------
# Sample objects
# ---------------------------------------------------------------------------

DEPLOYMENT_REF = {
    "apiVersion": "apps/v1",
    "kind": "Deployment",
    "metadata": {"name": "nginx", "namespace": "default"},
}


def with_conditions(*conditions: dict) -> dict:
    return {**DEPLOYMENT_REF, "status": {"conditions": list(conditions)}}


KUBECONFIG = {
    "apiVersion": "v1",
    "kind": "Config",
    "preferences": {},
    "current-context": "prod",
    "clusters": [
        {"name": "prod-cluster", "cluster": {"server": "https://prod.example:6443"}},
        {"name": "dev-cluster", "cluster": {"server": "https://dev.example:6443"}},
    ],
    "contexts": [
        {"name": "prod", "context": {"cluster": "prod-cluster", "user": "prod-user", "namespace": "web"}},
        {"name": "dev", "context": {"cluster": "dev-cluster", "user": "dev-user"}},
    ],
    "users": [
        {"name": "prod-user", "user": {"token": "prod-token"}},
        {"name": "dev-user", "user": {"token": "dev-token"}},
    ],
}
