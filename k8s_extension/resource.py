"""
Resource references and their API endpoint coordinates.

``parse_ref`` turns the loose ``{apiVersion, kind, metadata}`` arguments a
host sends into a validated ``ResourceRef``; ``resolve`` maps that onto the
(group, version, resource) triple the API server serves it under.
"""

from __future__ import annotations

from dataclasses import dataclass

from k8s_extension.errors import ResolutionError, ValidationError
from k8s_extension.values import Missing, nested_map, nested_str


# Kinds whose resource name is not derived by the suffix rules below.
_IRREGULAR_RESOURCES = {
    "podmetrics": "pods",
    "nodemetrics": "nodes",
}

_ES_SUFFIXES = ("s", "x", "z", "ch", "sh")
_VOWELS = set("aeiou")


@dataclass(frozen=True)
class ResourceRef:
    api_version: str
    kind: str
    name: str
    namespace: str = ""

    def __str__(self) -> str:
        return f"{self.kind}/{self.name}"


@dataclass(frozen=True)
class EndpointCoordinate:
    group: str
    version: str
    resource: str

    @property
    def kubectl_arg(self) -> str:
        """Fully qualified ``resource.version.group`` form (``pods.v1.`` for core)."""
        if not self.version:
            return self.resource
        return f"{self.resource}.{self.version}.{self.group}"

    def __str__(self) -> str:
        gv = f"{self.group}/{self.version}" if self.group else self.version
        return f"{gv}, Resource={self.resource}"


def _required_str(value: str | Missing, field: str) -> str:
    if isinstance(value, Missing) or not value:
        raise ValidationError(f"{field} is required")
    return value


def parse_ref(args: dict) -> ResourceRef:
    """Validate ``args`` and build a ResourceRef. Raises ValidationError."""
    api_version = _required_str(nested_str(args, "apiVersion"), "apiVersion")
    kind = _required_str(nested_str(args, "kind"), "kind")

    metadata = nested_map(args, "metadata")
    if isinstance(metadata, Missing):
        raise ValidationError("metadata.name is required")
    name = _required_str(nested_str(metadata, "name"), "metadata.name")
    namespace = nested_str(metadata, "namespace")

    return ResourceRef(
        api_version=api_version,
        kind=kind,
        name=name,
        namespace="" if isinstance(namespace, Missing) else namespace,
    )


def parse_group_version(api_version: str) -> tuple[str, str]:
    """Split ``group/version``; a bare ``version`` belongs to the core group."""
    if not api_version:
        return "", ""
    parts = api_version.split("/")
    if len(parts) == 1:
        return "", parts[0]
    if len(parts) == 2 and parts[0] and parts[1]:
        return parts[0], parts[1]
    raise ResolutionError(f"invalid apiVersion: unexpected GroupVersion string: {api_version}")


def guess_resource(kind: str) -> str:
    """Best-effort plural resource name for a kind.

    Reproduces the built-in kinds (Pod -> pods, Ingress -> ingresses,
    NetworkPolicy -> networkpolicies). Custom kinds with irregular plurals
    may come out wrong; there is no discovery lookup behind this.
    """
    singular = kind.lower()
    if not singular:
        return ""
    if singular.endswith("endpoints"):
        return singular
    if singular in _IRREGULAR_RESOURCES:
        return _IRREGULAR_RESOURCES[singular]
    if singular.endswith(_ES_SUFFIXES):
        return singular + "es"
    if singular.endswith("y") and len(singular) > 1 and singular[-2] not in _VOWELS:
        return singular[:-1] + "ies"
    return singular + "s"


def resolve(ref: ResourceRef) -> EndpointCoordinate:
    return resolve_object(ref.api_version, ref.kind)


def resolve_object(api_version: str, kind: str) -> EndpointCoordinate:
    """Resolve an endpoint straight from an object's apiVersion/kind pair."""
    group, version = parse_group_version(api_version)
    return EndpointCoordinate(group=group, version=version, resource=guess_resource(kind))
