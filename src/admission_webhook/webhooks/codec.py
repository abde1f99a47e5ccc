"""
Decoder and encoder for admission envelopes and admitted objects.

One ``AdmissionCodec`` is built at startup and handed to the review engine
and both policies; it knows every envelope and object shape the webhook
accepts.
"""

from typing import TypeVar

from pydantic import BaseModel, TypeAdapter, ValidationError

from ..errors import AdmissionDecodeError, UnsupportedKindError
from ..models.admission import AdmissionRequest, AdmissionReview, PatchOperation
from ..models.workloads import MUTABLE_KIND_MODELS, KubernetesObject, MutableKind

ModelT = TypeVar("ModelT", bound=BaseModel)


class AdmissionCodec:
    """Schema-aware (de)serializer bound to the known admission types."""

    def __init__(self):
        self._patch_adapter = TypeAdapter(list[PatchOperation])
        self._object_models = dict(MUTABLE_KIND_MODELS)

    def decode_review(self, body: bytes) -> AdmissionReview:
        """
        Parse a request body as an AdmissionReview.

        Raises:
            AdmissionDecodeError: If the body is not a valid AdmissionReview
        """
        try:
            return AdmissionReview.model_validate_json(body)
        except ValidationError as e:
            raise AdmissionDecodeError(
                f"failed to decode AdmissionReview: {e}", cause=e
            ) from e

    def decode_object(self, request: AdmissionRequest, model: type[ModelT]) -> ModelT:
        """
        Parse the object embedded in an admission request as ``model``.

        Raises:
            AdmissionDecodeError: If the object is missing or does not match
        """
        if request.raw_object is None:
            raise AdmissionDecodeError("admission request carries no object")
        try:
            return model.model_validate(request.raw_object)
        except ValidationError as e:
            raise AdmissionDecodeError(
                f"failed to decode {model.__name__}: {e}", cause=e
            ) from e

    def decode_mutable(
        self, request: AdmissionRequest
    ) -> tuple[MutableKind, KubernetesObject]:
        """
        Parse the embedded object according to the request's declared kind.

        Raises:
            UnsupportedKindError: If the kind is not a mutable kind
            AdmissionDecodeError: If the object does not match its kind
        """
        kind = MutableKind.from_kind(request.kind.kind)
        if kind is MutableKind.UNSUPPORTED:
            raise UnsupportedKindError(request.kind.kind)
        return kind, self.decode_object(request, self._object_models[kind.value])

    def encode_review(self, review: AdmissionReview) -> bytes:
        """Serialize an AdmissionReview to its JSON wire form."""
        return review.model_dump_json(by_alias=True, exclude_none=True).encode("utf-8")

    def encode_patch(self, operations: list[PatchOperation]) -> bytes:
        """Serialize JSON patch operations in order."""
        return self._patch_adapter.dump_json(operations)
