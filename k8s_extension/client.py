"""
Resource-access capability.

``ResourceClient`` is the only thing the tool handlers talk to. The
production implementation drives kubectl against one kubeconfig file;
tests substitute an in-memory fake.
"""

from __future__ import annotations

import abc
import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from k8s_extension import kubeconfig as kcfg
from k8s_extension.kubeconfig import ContextInfo
from k8s_extension.kubectl import kubectl, kubectl_json
from k8s_extension.resource import EndpointCoordinate
from k8s_extension.values import nested_bool, nested_str, str_or_empty

# Delete propagation policy, as spelled by the API server.
PROPAGATION_FOREGROUND = "Foreground"


@dataclass(frozen=True)
class AccessQuery:
    subject: str
    verb: str
    resource: str
    group: str = ""
    namespace: str = ""
    resource_name: str = ""

    def review(self) -> dict[str, Any]:
        """SubjectAccessReview manifest for this query."""
        attributes = {"verb": self.verb, "resource": self.resource}
        if self.group:
            attributes["group"] = self.group
        if self.namespace:
            attributes["namespace"] = self.namespace
        if self.resource_name:
            attributes["name"] = self.resource_name
        return {
            "apiVersion": "authorization.k8s.io/v1",
            "kind": "SubjectAccessReview",
            "spec": {"user": self.subject, "resourceAttributes": attributes},
        }


@dataclass(frozen=True)
class AccessDecision:
    allowed: bool
    reason: str = ""


class ResourceClient(abc.ABC):
    """Create/get/delete, access checks and kubeconfig introspection."""

    @abc.abstractmethod
    async def create(self, coordinate: EndpointCoordinate, obj: dict, namespace: str) -> dict:
        """Create ``obj`` and return the object as stored by the server."""

    @abc.abstractmethod
    async def get(self, coordinate: EndpointCoordinate, name: str, namespace: str) -> dict:
        ...

    @abc.abstractmethod
    async def delete(
        self, coordinate: EndpointCoordinate, name: str, namespace: str, propagation: str
    ) -> None:
        """Delete a resource. Raises NotFoundError if it does not exist."""

    @abc.abstractmethod
    async def check_access(self, query: AccessQuery) -> AccessDecision:
        ...

    @abc.abstractmethod
    async def list_contexts(self) -> list[ContextInfo]:
        """All kubeconfig contexts sorted by name."""

    @abc.abstractmethod
    async def get_current_context(self) -> str:
        ...

    @abc.abstractmethod
    async def view_config(self, minify: bool) -> str:
        """The kubeconfig as YAML; with ``minify`` only the current context and its deps."""


class KubectlClient(ResourceClient):
    """ResourceClient backed by the kubectl binary and a kubeconfig on disk."""

    def __init__(self, kubeconfig_path: str | Path):
        self.kubeconfig_path = str(kubeconfig_path)

    def __repr__(self) -> str:
        return f"KubectlClient({self.kubeconfig_path!r})"

    async def create(self, coordinate: EndpointCoordinate, obj: dict, namespace: str) -> dict:
        return await kubectl_json(
            ["create", "-f", "-"],
            kubeconfig=self.kubeconfig_path,
            namespace=namespace or None,
            stdin_obj=obj,
        )

    async def get(self, coordinate: EndpointCoordinate, name: str, namespace: str) -> dict:
        return await kubectl_json(
            ["get", coordinate.kubectl_arg, name],
            kubeconfig=self.kubeconfig_path,
            namespace=namespace or None,
        )

    async def delete(
        self, coordinate: EndpointCoordinate, name: str, namespace: str, propagation: str
    ) -> None:
        await kubectl(
            [
                "delete",
                coordinate.kubectl_arg,
                name,
                f"--cascade={propagation.lower()}",
                "--wait=false",
            ],
            kubeconfig=self.kubeconfig_path,
            namespace=namespace or None,
        )

    async def check_access(self, query: AccessQuery) -> AccessDecision:
        result = await kubectl_json(
            ["create", "-f", "-"],
            kubeconfig=self.kubeconfig_path,
            stdin_obj=query.review(),
        )
        allowed = nested_bool(result, "status", "allowed")
        return AccessDecision(
            allowed=allowed is True,
            reason=str_or_empty(nested_str(result, "status", "reason")),
        )

    # The kubeconfig is re-read on every call, off the event loop.

    async def _load(self) -> dict[str, Any]:
        return await asyncio.to_thread(kcfg.load_kubeconfig, self.kubeconfig_path)

    async def list_contexts(self) -> list[ContextInfo]:
        return kcfg.list_contexts(await self._load())

    async def get_current_context(self) -> str:
        return kcfg.current_context(await self._load())

    async def view_config(self, minify: bool) -> str:
        config = await self._load()
        if minify:
            config = kcfg.minify(config)
        return kcfg.dump(config)
