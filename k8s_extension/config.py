"""
Runtime configuration, read from environment variables.

  K8S_EXT_KUBECONFIG=/path         — kubeconfig to use (else first KUBECONFIG entry, else ~/.kube/config)
  K8S_EXT_READ_ONLY=true           — only register tools that do not modify the cluster
  K8S_EXT_KUBECTL_TIMEOUT=60       — per-call kubectl timeout in seconds
  K8S_EXT_LOG_LEVEL=INFO           — log level for the stderr logger
"""

from __future__ import annotations

import os
from pathlib import Path

from k8s_extension.errors import InitializationError


def _flag(name: str) -> bool:
    return os.environ.get(name, "").lower() in ("1", "true", "yes")


READ_ONLY = _flag("K8S_EXT_READ_ONLY")
KUBECTL_TIMEOUT = int(os.environ.get("K8S_EXT_KUBECTL_TIMEOUT", "60"))
LOG_LEVEL = os.environ.get("K8S_EXT_LOG_LEVEL", "INFO").upper()

DEFAULT_KUBECONFIG = Path("~/.kube/config")


def resolve_kubeconfig_path(explicit: str | None = None) -> Path:
    """Locate the kubeconfig file and make sure it exists.

    Precedence: ``explicit``, ``K8S_EXT_KUBECONFIG``, the first entry of
    ``KUBECONFIG``, then ``~/.kube/config``. A leading ``~`` is expanded.
    """
    raw = explicit or os.environ.get("K8S_EXT_KUBECONFIG", "")
    if not raw:
        raw = os.environ.get("KUBECONFIG", "").split(os.pathsep)[0]
    path = Path(raw) if raw else DEFAULT_KUBECONFIG

    try:
        path = path.expanduser()
    except RuntimeError as e:
        raise InitializationError(f"failed to get home directory: {e}") from e

    if not path.is_file():
        raise InitializationError(f"kubeconfig not found: {path}")
    return path
