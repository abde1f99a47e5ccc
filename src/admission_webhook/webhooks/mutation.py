"""
Mutating admission policy for Deployments and Services.

Stamps ``io.ydzs.admission-webhook/status: mutated`` onto admitted objects
unless they opted out or already carry the stamp.
"""

import logging

from ..constants import (
    ANNOTATION_MUTATE_KEY,
    ANNOTATION_STATUS_KEY,
    MUTATE_OPT_OUT_VALUES,
    STATUS_CODE_BAD_REQUEST,
    STATUS_MUTATED,
)
from ..errors import AdmissionDecodeError, UnsupportedKindError
from ..models.admission import (
    AdmissionRequest,
    AdmissionResponse,
    PatchOp,
    PatchOperation,
    allow,
    deny,
)
from ..models.workloads import ObjectMeta
from ..observability.metrics import PATCHES_TOTAL
from .codec import AdmissionCodec

logger = logging.getLogger(__name__)

ANNOTATIONS_PATH = "/metadata/annotations"


def mutation_required(metadata: ObjectMeta) -> bool:
    """
    Decide whether an object still needs the status annotation.

    Args:
        metadata: Metadata of the admitted object

    Returns:
        False if the object opted out or is already mutated, True otherwise
    """
    annotations = metadata.annotations or {}

    required = annotations.get(ANNOTATION_MUTATE_KEY, "").lower() not in MUTATE_OPT_OUT_VALUES
    if annotations.get(ANNOTATION_STATUS_KEY, "").lower() == STATUS_MUTATED:
        required = False

    logger.info(
        f"Mutation policy for {metadata.namespace}/{metadata.name}: required: {required}"
    )
    return required


def escape_pointer_token(token: str) -> str:
    """Escape a key for use as a JSON pointer reference token (RFC 6901)."""
    return token.replace("~", "~0").replace("/", "~1")


def mutate_annotations(
    target: dict[str, str] | None, added: dict[str, str]
) -> list[PatchOperation]:
    """
    Build the patch that sets ``added`` on top of ``target`` annotations.

    A key that is absent or empty is written by adding the whole annotation
    map, existing annotations included. A key with a value is replaced in
    place.

    Args:
        target: Current annotations of the object, None if it has none
        added: Annotations to set

    Returns:
        Ordered JSON patch operations
    """
    current = target or {}
    merged = dict(current)
    patch: list[PatchOperation] = []

    for key, value in added.items():
        if not current.get(key):
            merged[key] = value
            patch.append(
                PatchOperation(op=PatchOp.ADD, path=ANNOTATIONS_PATH, value=dict(merged))
            )
        else:
            patch.append(
                PatchOperation(
                    op=PatchOp.REPLACE,
                    path=f"{ANNOTATIONS_PATH}/{escape_pointer_token(key)}",
                    value=value,
                )
            )
    return patch


class AnnotationMutationPolicy:
    """Idempotent status annotation injection."""

    def __init__(self, codec: AdmissionCodec):
        self.codec = codec
        self.annotations = {ANNOTATION_STATUS_KEY: STATUS_MUTATED}

    def review(self, request: AdmissionRequest) -> AdmissionResponse:
        """
        Compute the mutation for a Deployment or Service.

        Args:
            request: Admission request carrying the object

        Returns:
            Allowing response with a JSON patch when mutation is required,
            a plain allow when it is not, or a 400 denial for unsupported
            kinds and undecodable objects
        """
        logger.info(
            f"AdmissionReview for Kind={request.kind.kind}, "
            f"Namespace={request.namespace} Name={request.name} UID={request.uid} "
            f"Operation={request.operation} UserInfo={request.user_info.username}",
            extra={
                "kind": request.kind.kind,
                "namespace": request.namespace,
                "resource_name": request.name,
                "operation": request.operation,
            },
        )

        try:
            kind, obj = self.codec.decode_mutable(request)
        except UnsupportedKindError as e:
            logger.warning(str(e))
            return deny(str(e), code=STATUS_CODE_BAD_REQUEST)
        except AdmissionDecodeError as e:
            logger.error(f"Can't unmarshal raw object: {e}")
            return deny(str(e), code=STATUS_CODE_BAD_REQUEST)

        if not mutation_required(obj.metadata):
            return allow()

        operations = mutate_annotations(obj.metadata.annotations, self.annotations)
        for operation in operations:
            PATCHES_TOTAL.labels(kind=kind.value, op=operation.op.value).inc()

        return allow(patch=self.codec.encode_patch(operations))
