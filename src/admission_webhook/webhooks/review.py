"""
Admission review engine.

Turns one HTTP call from the API server into exactly one AdmissionReview
response. Transport problems (empty body, wrong content type, encode
failure) are answered with an HTTP error status; everything else, decode
failures included, is answered with HTTP 200 and the decision inside the
envelope.
"""

import logging
import time
from enum import StrEnum

from aiohttp import web
from pydantic_core import PydanticSerializationError

from ..constants import (
    ADMISSION_API_VERSION,
    ADMISSION_REVIEW_KIND,
    CONTENT_TYPE_JSON,
    DEFAULT_MUTATE_PATH,
    DEFAULT_VALIDATE_PATH,
    STATUS_CODE_BAD_REQUEST,
)
from ..errors import AdmissionDecodeError
from ..models.admission import AdmissionRequest, AdmissionResponse, AdmissionReview, deny
from ..observability.logging import correlation_scope
from ..observability.metrics import (
    ADMISSION_REQUEST_DURATION,
    ADMISSION_REQUESTS_TOTAL,
    TRANSPORT_ERRORS_TOTAL,
)
from .codec import AdmissionCodec
from .mutation import AnnotationMutationPolicy
from .validation import ImageAllowListPolicy

logger = logging.getLogger(__name__)


class AdmissionRoute(StrEnum):
    """Policies reachable over HTTP."""

    VALIDATE = "validate"
    MUTATE = "mutate"


class AdmissionReviewEngine:
    """Decode, dispatch and assemble admission reviews."""

    def __init__(
        self,
        codec: AdmissionCodec,
        validation_policy: ImageAllowListPolicy,
        mutation_policy: AnnotationMutationPolicy,
        validate_path: str = DEFAULT_VALIDATE_PATH,
        mutate_path: str = DEFAULT_MUTATE_PATH,
    ):
        """
        Initialize the engine.

        Args:
            codec: Shared envelope and object decoder
            validation_policy: Policy answering the validate route
            mutation_policy: Policy answering the mutate route
            validate_path: URL path of the validate route
            mutate_path: URL path of the mutate route
        """
        self.codec = codec
        self.routes = {
            validate_path: AdmissionRoute.VALIDATE,
            mutate_path: AdmissionRoute.MUTATE,
        }
        self._policies = {
            AdmissionRoute.VALIDATE: validation_policy.review,
            AdmissionRoute.MUTATE: mutation_policy.review,
        }

    async def handle(self, request: web.Request) -> web.Response:
        """aiohttp handler shared by both routes."""
        route = self.routes.get(request.path)
        if route is None:
            return self._transport_error("unknown", 404, f"no webhook at {request.path}")

        body = await request.read()
        if not body:
            logger.error("empty data body")
            return self._transport_error(route, 400, "empty data body")

        if request.content_type != CONTENT_TYPE_JSON:
            logger.error(
                f"Content-Type is {request.content_type}, but expect {CONTENT_TYPE_JSON}"
            )
            return self._transport_error(
                route, 415, f"Content-Type invalid, expect {CONTENT_TYPE_JSON}"
            )

        start_time = time.perf_counter()
        review = self.review(route, body)

        try:
            payload = self.codec.encode_review(review)
        except (PydanticSerializationError, ValueError) as e:
            logger.error(f"Can't encode response: {e}")
            return self._transport_error(route, 500, f"Can't encode response: {e}")

        result = "allowed" if review.response and review.response.allowed else "denied"
        ADMISSION_REQUESTS_TOTAL.labels(route=route.value, result=result).inc()
        ADMISSION_REQUEST_DURATION.labels(route=route.value).observe(
            time.perf_counter() - start_time
        )
        return web.Response(body=payload, content_type=CONTENT_TYPE_JSON)

    def review(self, route: AdmissionRoute, body: bytes) -> AdmissionReview:
        """
        Produce the response envelope for a request body.

        Args:
            route: Policy to dispatch to
            body: Raw request body

        Returns:
            Response AdmissionReview; never raises for malformed input
        """
        try:
            request_review = self.codec.decode_review(body)
        except AdmissionDecodeError as e:
            logger.error(f"Can't decode body: {e}")
            return AdmissionReview(
                api_version=ADMISSION_API_VERSION,
                kind=ADMISSION_REVIEW_KIND,
                response=deny(str(e), code=STATUS_CODE_BAD_REQUEST),
            )

        request = request_review.request
        with correlation_scope(request.uid if request else None):
            response = self.dispatch(route, request)
            if request is not None:
                response.uid = request.uid

            logger.info(
                f"sending response: allowed={response.allowed}",
                extra={
                    "uid": response.uid,
                    "route": route.value,
                    "allowed": response.allowed,
                },
            )

        return AdmissionReview(
            api_version=request_review.api_version or ADMISSION_API_VERSION,
            kind=request_review.kind or ADMISSION_REVIEW_KIND,
            response=response,
        )

    def dispatch(
        self, route: AdmissionRoute, request: AdmissionRequest | None
    ) -> AdmissionResponse:
        if request is None:
            return deny("AdmissionReview carries no request", code=STATUS_CODE_BAD_REQUEST)
        return self._policies[route](request)

    def _transport_error(self, route: str, status: int, message: str) -> web.Response:
        TRANSPORT_ERRORS_TOTAL.labels(route=str(route), status=str(status)).inc()
        return web.Response(status=status, text=message)
