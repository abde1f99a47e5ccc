"""
Pydantic models for the AdmissionReview envelope.

These models mirror the ``admission.k8s.io/v1`` wire format. Field names
are snake_case in Python and camelCase on the wire; serialize with
``by_alias=True`` and ``exclude_none=True``.
"""

import base64
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field, field_serializer, field_validator

from ..constants import PATCH_TYPE_JSON_PATCH


class GroupVersionKind(BaseModel):
    """Fully qualified kind of the object under admission."""

    group: str = ""
    version: str = ""
    kind: str = ""


class GroupVersionResource(BaseModel):
    """Fully qualified resource of the object under admission."""

    group: str = ""
    version: str = ""
    resource: str = ""


class UserInfo(BaseModel):
    """Identity of the user that issued the request."""

    username: str = ""
    uid: str = ""
    groups: list[str] = Field(default_factory=list)
    extra: dict[str, list[str]] | None = None


class AdmissionRequest(BaseModel):
    """The request half of an AdmissionReview."""

    model_config = {"populate_by_name": True}

    uid: str = Field(..., description="Correlation identifier echoed in the response")
    kind: GroupVersionKind = Field(default_factory=GroupVersionKind)
    resource: GroupVersionResource = Field(default_factory=GroupVersionResource)
    sub_resource: str | None = Field(None, alias="subResource")
    namespace: str = ""
    name: str = ""
    operation: str = ""
    user_info: UserInfo = Field(default_factory=UserInfo, alias="userInfo")
    raw_object: dict[str, Any] | None = Field(
        None, alias="object", description="Object being admitted, still undecoded"
    )
    raw_old_object: dict[str, Any] | None = Field(None, alias="oldObject")
    dry_run: bool | None = Field(None, alias="dryRun")


class Status(BaseModel):
    """Result details attached to an admission response."""

    code: int | None = None
    message: str | None = None
    reason: str | None = None


class AdmissionResponse(BaseModel):
    """The response half of an AdmissionReview."""

    model_config = {"populate_by_name": True}

    uid: str = ""
    allowed: bool = False
    status: Status | None = None
    patch: bytes | None = None
    patch_type: str | None = Field(None, alias="patchType")
    warnings: list[str] | None = None

    @field_validator("patch", mode="before")
    @classmethod
    def decode_patch(cls, value: Any) -> Any:
        # patch travels base64-encoded on the wire
        if isinstance(value, str):
            return base64.b64decode(value)
        return value

    @field_serializer("patch")
    def encode_patch(self, value: bytes | None) -> str | None:
        if value is None:
            return None
        return base64.b64encode(value).decode("ascii")


class AdmissionReview(BaseModel):
    """Envelope exchanged with the API server for every admission call."""

    model_config = {"populate_by_name": True}

    api_version: str = Field("", alias="apiVersion")
    kind: str = ""
    request: AdmissionRequest | None = None
    response: AdmissionResponse | None = None


class PatchOp(StrEnum):
    """JSON patch operations emitted by the mutation policy."""

    ADD = "add"
    REPLACE = "replace"


class PatchOperation(BaseModel):
    """A single JSON patch operation.

    The value is either a plain annotation value or an annotation map.
    """

    op: PatchOp
    path: str
    value: str | dict[str, str]


def allow(patch: bytes | None = None) -> AdmissionResponse:
    """Build an allowing response, optionally carrying a JSON patch."""
    if patch is None:
        return AdmissionResponse(allowed=True)
    return AdmissionResponse(
        allowed=True, patch=patch, patch_type=PATCH_TYPE_JSON_PATCH
    )


def deny(message: str, code: int | None = None) -> AdmissionResponse:
    """Build a denying response with a human readable reason."""
    return AdmissionResponse(allowed=False, status=Status(code=code, message=message))
