"""Builders for AdmissionReview envelopes and workload manifests."""

import json
import uuid
from typing import Any

ALLOWED_REGISTRIES = ["docker.io/library/", "ghcr.io/acme/"]


def make_review(
    kind: str,
    obj: dict[str, Any] | None,
    group: str = "",
    uid: str | None = None,
    operation: str = "CREATE",
    api_version: str = "admission.k8s.io/v1",
) -> dict[str, Any]:
    """Build an AdmissionReview request envelope as the API server sends it."""
    request: dict[str, Any] = {
        "uid": uid or str(uuid.uuid4()),
        "kind": {"group": group, "version": "v1", "kind": kind},
        "resource": {"group": group, "version": "v1", "resource": kind.lower() + "s"},
        "namespace": "default",
        "name": (obj or {}).get("metadata", {}).get("name", ""),
        "operation": operation,
        "userInfo": {"username": "kubernetes-admin", "groups": ["system:masters"]},
    }
    if obj is not None:
        request["object"] = obj
    return {"apiVersion": api_version, "kind": "AdmissionReview", "request": request}


def make_pod(*images: str, init_images: tuple[str, ...] = ()) -> dict[str, Any]:
    """Build a Pod manifest with one container per image."""
    spec: dict[str, Any] = {
        "containers": [
            {"name": f"c{index}", "image": image} for index, image in enumerate(images)
        ]
    }
    if init_images:
        spec["initContainers"] = [
            {"name": f"init{index}", "image": image}
            for index, image in enumerate(init_images)
        ]
    return {
        "apiVersion": "v1",
        "kind": "Pod",
        "metadata": {"name": "test-pod", "namespace": "default"},
        "spec": spec,
    }


def make_object(
    kind: str, annotations: dict[str, str] | None = None, name: str = "test-obj"
) -> dict[str, Any]:
    """Build a Deployment or Service manifest with optional annotations."""
    metadata: dict[str, Any] = {"name": name, "namespace": "default"}
    if annotations is not None:
        metadata["annotations"] = annotations
    api_version = "apps/v1" if kind == "Deployment" else "v1"
    return {"apiVersion": api_version, "kind": kind, "metadata": metadata, "spec": {}}


def encode(review: dict[str, Any]) -> bytes:
    return json.dumps(review).encode()
