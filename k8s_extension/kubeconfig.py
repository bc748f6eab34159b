"""
Kubeconfig reading and minification.

A kubeconfig keeps clusters, contexts and users as lists of
``{name: ..., <kind>: {...}}`` entries. Everything here works on the mapping
PyYAML loads, so the file is re-read on every call and nothing is cached.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from k8s_extension.errors import KubeconfigError
from k8s_extension.values import Missing, nested_str, str_or_empty


@dataclass(frozen=True)
class ContextInfo:
    name: str
    cluster: str
    user: str
    namespace: str = ""
    is_current: bool = False


def load_kubeconfig(path: str | Path) -> dict[str, Any]:
    try:
        with open(path, encoding="utf-8") as fh:
            config = yaml.safe_load(fh)
    except OSError as e:
        raise KubeconfigError(f"failed to load kubeconfig: {e}") from e
    except yaml.YAMLError as e:
        raise KubeconfigError(f"failed to load kubeconfig: invalid YAML: {e}") from e

    if config is None:
        return {}
    if not isinstance(config, dict):
        raise KubeconfigError("failed to load kubeconfig: top level is not a mapping")
    return config


def named_entries(config: dict[str, Any], section: str, field: str) -> dict[str, dict[str, Any]]:
    """Index a ``clusters``/``contexts``/``users`` list by entry name.

    The value is the inner object (``entry[field]``); an entry without a name
    is skipped, an entry with a null body maps to an empty dict.
    """
    entries = config.get(section) or []
    if not isinstance(entries, list):
        raise KubeconfigError(f"failed to load kubeconfig: {section} is not a list")

    index: dict[str, dict[str, Any]] = {}
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        name = nested_str(entry, "name")
        if isinstance(name, Missing) or not name:
            continue
        body = entry.get(field)
        index[name] = body if isinstance(body, dict) else {}
    return index


def current_context(config: dict[str, Any]) -> str:
    return str_or_empty(nested_str(config, "current-context"))


def list_contexts(config: dict[str, Any]) -> list[ContextInfo]:
    """All contexts sorted by name; at most one is flagged current."""
    current = current_context(config)
    contexts = [
        ContextInfo(
            name=name,
            cluster=str_or_empty(nested_str(body, "cluster")),
            user=str_or_empty(nested_str(body, "user")),
            namespace=str_or_empty(nested_str(body, "namespace")),
            is_current=bool(current) and name == current,
        )
        for name, body in named_entries(config, "contexts", "context").items()
    ]
    return sorted(contexts, key=lambda c: c.name)


def minify(config: dict[str, Any]) -> dict[str, Any]:
    """Reduce ``config`` to the current context and what it references.

    Fails with a KubeconfigError naming the missing piece when the current
    context is unset or dangling, or points at an undefined cluster or user.
    A context without a user is valid.
    """
    current = current_context(config)
    if not current:
        raise KubeconfigError("no current context set in kubeconfig")

    contexts = named_entries(config, "contexts", "context")
    if current not in contexts:
        raise KubeconfigError(f'current context "{current}" not found in kubeconfig')
    context = contexts[current]

    cluster_name = str_or_empty(nested_str(context, "cluster"))
    if not cluster_name:
        raise KubeconfigError(f'current context "{current}" has no cluster')
    clusters = named_entries(config, "clusters", "cluster")
    if cluster_name not in clusters:
        raise KubeconfigError(f'cluster "{cluster_name}" not found in kubeconfig')

    users_out: list[dict[str, Any]] = []
    user_name = str_or_empty(nested_str(context, "user"))
    if user_name:
        users = named_entries(config, "users", "user")
        if user_name not in users:
            raise KubeconfigError(f'user "{user_name}" not found in kubeconfig')
        users_out.append({"name": user_name, "user": users[user_name]})

    preferences = config.get("preferences")
    return {
        "apiVersion": "v1",
        "kind": "Config",
        "preferences": preferences if isinstance(preferences, dict) else {},
        "clusters": [{"name": cluster_name, "cluster": clusters[cluster_name]}],
        "contexts": [{"name": current, "context": context}],
        "users": users_out,
        "current-context": current,
    }


def dump(config: dict[str, Any]) -> str:
    return yaml.safe_dump(config, default_flow_style=False, sort_keys=False)
