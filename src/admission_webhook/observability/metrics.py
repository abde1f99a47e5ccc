"""
Prometheus metrics for the admission webhook.

This module provides metrics collection for admission decisions and
webhook registration, plus a small plain-HTTP server exposing them along
with liveness and readiness probes.
"""

import logging
from collections.abc import Callable

from aiohttp.web import (
    Application,
    AppRunner,
    Request,
    Response,
    TCPSite,
    json_response,
)
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

logger = logging.getLogger(__name__)

# Registry shared by /metrics, built on first use
_metrics_registry: CollectorRegistry | None = None

ADMISSION_REQUESTS_TOTAL = Counter(
    "admission_webhook_requests_total",
    "Total number of admission reviews answered",
    ["route", "result"],
    registry=None,
)

ADMISSION_REQUEST_DURATION = Histogram(
    "admission_webhook_request_duration_seconds",
    "Time spent answering admission reviews",
    ["route"],
    buckets=[0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 2.5],
    registry=None,
)

TRANSPORT_ERRORS_TOTAL = Counter(
    "admission_webhook_transport_errors_total",
    "Admission calls rejected before policy evaluation",
    ["route", "status"],
    registry=None,
)

PATCHES_TOTAL = Counter(
    "admission_webhook_patches_total",
    "JSON patch operations emitted by the mutation policy",
    ["kind", "op"],
    registry=None,
)

REGISTRATIONS_TOTAL = Counter(
    "admission_webhook_registrations_total",
    "Webhook configuration reconciliations by outcome",
    ["kind", "action"],
    registry=None,
)


def get_metrics_registry() -> CollectorRegistry:
    """Return the registry holding every webhook metric."""
    global _metrics_registry

    if _metrics_registry is None:
        _metrics_registry = CollectorRegistry()

        for metric in [
            ADMISSION_REQUESTS_TOTAL,
            ADMISSION_REQUEST_DURATION,
            TRANSPORT_ERRORS_TOTAL,
            PATCHES_TOTAL,
            REGISTRATIONS_TOTAL,
        ]:
            _metrics_registry.register(metric)

    return _metrics_registry


class MetricsServer:
    """HTTP server for exposing Prometheus metrics and probes."""

    def __init__(
        self,
        port: int = 8081,
        host: str = "0.0.0.0",
        ready_check: Callable[[], bool] | None = None,
    ):
        """
        Initialize the probe and metrics server.

        Args:
            port: Plain HTTP port, separate from the TLS admission port
            host: Host interface to bind to
            ready_check: Returns True once the webhook listener is serving
        """
        self.port = port
        self.host = host
        self.ready_check = ready_check
        self.app = Application()
        self.runner: AppRunner | None = None
        self.site: TCPSite | None = None
        self._setup_routes()

    def _setup_routes(self) -> None:
        self.app.router.add_get("/metrics", self._metrics_handler)
        self.app.router.add_get("/healthz", self._healthz_handler)
        self.app.router.add_get("/ready", self._ready_handler)

    async def _metrics_handler(self, request: Request) -> Response:
        """Prometheus text exposition of the webhook registry."""
        try:
            metrics_data = generate_latest(get_metrics_registry())
            return Response(
                body=metrics_data, headers={"Content-Type": CONTENT_TYPE_LATEST}
            )
        except Exception as e:
            logger.error(f"Failed to generate metrics: {e}")
            return Response(
                text=f"metrics unavailable: {type(e).__name__}",
                status=500,
            )

    async def _healthz_handler(self, request: Request) -> Response:
        """Handle /healthz endpoint: 200 while the process is up."""
        return Response(text="ok")

    async def _ready_handler(self, request: Request) -> Response:
        """Handle /ready endpoint: 200 once the webhook listener serves."""
        ready = self.ready_check() if self.ready_check else False
        if ready:
            return json_response({"status": "ready"})
        return json_response({"status": "not_ready"}, status=503)

    async def start(self) -> None:
        """Bind the probe port; raises OSError if it is taken."""
        try:
            self.runner = AppRunner(self.app)
            await self.runner.setup()

            self.site = TCPSite(self.runner, self.host, self.port)
            await self.site.start()

            logger.info(f"Probe and metrics server listening on {self.host}:{self.port}")
        except Exception as e:
            logger.error(f"Probe and metrics server failed to bind: {e}")
            await self.stop()
            raise

    async def stop(self) -> None:
        """Release the probe port."""
        try:
            if self.site:
                await self.site.stop()
                self.site = None

            if self.runner:
                await self.runner.cleanup()
                self.runner = None

            logger.info("Metrics server stopped")
        except Exception as e:
            logger.error(f"Error stopping metrics server: {e}")
