"""
Pydantic models for the workload objects the policies inspect.

Only the fields the policies read are modelled; everything else in the
admitted object is ignored. Mutable kinds form a closed set: adding a new
kind means adding a model and one entry to ``MUTABLE_KIND_MODELS``.
"""

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field


class ObjectMeta(BaseModel):
    """Standard object metadata."""

    name: str = ""
    namespace: str = ""
    annotations: dict[str, str] | None = None
    labels: dict[str, str] | None = None


class Container(BaseModel):
    """A container within a pod spec."""

    name: str = ""
    image: str = ""


class PodSpec(BaseModel):
    """The subset of a pod spec relevant to image validation."""

    model_config = {"populate_by_name": True}

    containers: list[Container] = Field(default_factory=list)
    init_containers: list[Container] = Field(
        default_factory=list, alias="initContainers"
    )


class KubernetesObject(BaseModel):
    """Common shape of every top-level object."""

    model_config = {"populate_by_name": True}

    api_version: str = Field("", alias="apiVersion")
    kind: str = ""
    metadata: ObjectMeta = Field(default_factory=ObjectMeta)


class Pod(KubernetesObject):
    """core/v1 Pod."""

    spec: PodSpec = Field(default_factory=PodSpec)


class Deployment(KubernetesObject):
    """apps/v1 Deployment."""

    spec: dict[str, Any] | None = None


class Service(KubernetesObject):
    """core/v1 Service."""

    spec: dict[str, Any] | None = None


class MutableKind(StrEnum):
    """Kinds handled by the mutation policy."""

    DEPLOYMENT = "Deployment"
    SERVICE = "Service"
    UNSUPPORTED = "Unsupported"

    @classmethod
    def from_kind(cls, kind: str) -> "MutableKind":
        """Map a request kind name onto the closed set of mutable kinds."""
        if kind in MUTABLE_KIND_MODELS:
            return cls(kind)
        return cls.UNSUPPORTED


MUTABLE_KIND_MODELS: dict[str, type[KubernetesObject]] = {
    MutableKind.DEPLOYMENT.value: Deployment,
    MutableKind.SERVICE.value: Service,
}
