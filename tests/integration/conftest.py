"""
Integration test fixtures — requires a reachable cluster in the current kubeconfig context.
"""

from __future__ import annotations

import subprocess
import uuid

import pytest

from k8s_extension.config import resolve_kubeconfig_path
from k8s_extension.errors import InitializationError


def _kubeconfig() -> str | None:
    try:
        return str(resolve_kubeconfig_path())
    except InitializationError:
        return None


def _cluster_reachable() -> bool:
    path = _kubeconfig()
    if path is None:
        return False
    try:
        result = subprocess.run(
            ["kubectl", "--kubeconfig", path, "cluster-info"],
            capture_output=True,
            timeout=5,
        )
        return result.returncode == 0
    except (OSError, subprocess.SubprocessError):
        return False


skip_no_cluster = pytest.mark.skipif(
    not _cluster_reachable(),
    reason="cluster not reachable — skipping integration tests",
)


@pytest.fixture
def kubeconfig_path() -> str:
    path = _kubeconfig()
    assert path is not None
    return path


@pytest.fixture
def unique_name() -> str:
    return f"k8s-ext-it-{uuid.uuid4().hex[:8]}"
