"""
Validating admission policy for Pods.

Every container image, init containers included, must start with one of
the configured registry prefixes. The first offending image denies the
whole Pod.
"""

import logging
from collections.abc import Sequence

from ..constants import STATUS_CODE_BAD_REQUEST, STATUS_CODE_FORBIDDEN
from ..errors import AdmissionDecodeError
from ..models.admission import AdmissionRequest, AdmissionResponse, allow, deny
from ..models.workloads import Pod
from .codec import AdmissionCodec

logger = logging.getLogger(__name__)


class ImageAllowListPolicy:
    """Image registry allow-list check over pod specs."""

    def __init__(self, codec: AdmissionCodec, allowed_registries: Sequence[str]):
        """
        Initialize the policy.

        Args:
            codec: Decoder for the embedded Pod
            allowed_registries: Image prefixes; matching is case-sensitive
        """
        self.codec = codec
        self.allowed_registries = list(allowed_registries)

    def review(self, request: AdmissionRequest) -> AdmissionResponse:
        """
        Decide whether a Pod may be admitted.

        Args:
            request: Admission request carrying a Pod

        Returns:
            Allowing response, or a denial naming the first untrusted image
        """
        try:
            pod = self.codec.decode_object(request, Pod)
        except AdmissionDecodeError as e:
            logger.error(f"Can't unmarshal object raw: {e}")
            return deny(str(e), code=STATUS_CODE_BAD_REQUEST)

        image = self.first_violation(pod)
        if image is None:
            logger.debug(f"All images of pod {request.namespace}/{request.name} allowed")
            return allow()

        registries = ", ".join(self.allowed_registries)
        message = (
            f"{image} image comes from an untrusted registry! "
            f"Only images from [{registries}] are allowed"
        )
        logger.warning(
            f"Pod {request.namespace}/{request.name} rejected: {message}",
            extra={"uid": request.uid, "allowed": False},
        )
        return deny(message, code=STATUS_CODE_FORBIDDEN)

    def first_violation(self, pod: Pod) -> str | None:
        """Return the first image not on the allow-list, if any."""
        for container in [*pod.spec.containers, *pod.spec.init_containers]:
            if not self.is_allowed(container.image):
                return container.image
        return None

    def is_allowed(self, image: str) -> bool:
        return any(image.startswith(prefix) for prefix in self.allowed_registries)
