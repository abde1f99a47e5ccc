#!/usr/bin/env python3
"""
Admission Webhook - Main entry point.

Startup runs strictly in order:
1. Generate a CA and a serving certificate for the webhook Service
2. Write the serving certificate and key to CERT_FILE / KEY_FILE
3. Create or replace the webhook configurations with the new CA bundle
4. Serve HTTPS until SIGINT/SIGTERM, then drain in-flight requests

Usage:
    python -m admission_webhook.main
    # Or via the console script:
    admission-webhook

Environment Variables:
    WHITELIST_REGISTRIES: Comma-separated list of allowed image prefixes
    WEBHOOK_NAMESPACE / WEBHOOK_SERVICE: Service fronting the webhook
    VALIDATE_CONFIG / MUTATE_CONFIG: Webhook configuration names
    BOOTSTRAP_ONLY: Set to 'true' to exit after registration
"""

import asyncio
import logging
import signal
import sys

from kubernetes.client.rest import ApiException
from kubernetes.config import ConfigException

from admission_webhook.errors import BootstrapError, WebhookError
from admission_webhook.models.registration import RegistrationOptions
from admission_webhook.observability.logging import setup_structured_logging
from admission_webhook.observability.metrics import MetricsServer
from admission_webhook.services import AdmissionConfigReconciler
from admission_webhook.settings import Settings
from admission_webhook.settings import settings as webhook_settings
from admission_webhook.utils.pki import (
    LeafCredential,
    generate_ca,
    issue_leaf,
    persist,
    service_dns_names,
)
from admission_webhook.webhooks.codec import AdmissionCodec
from admission_webhook.webhooks.mutation import AnnotationMutationPolicy
from admission_webhook.webhooks.review import AdmissionReviewEngine
from admission_webhook.webhooks.server import WebhookServer
from admission_webhook.webhooks.validation import ImageAllowListPolicy

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings = webhook_settings) -> None:
    """Configure structured logging based on settings."""
    setup_structured_logging(
        log_level=settings.log_level.upper(),
        enable_json_formatting=settings.json_logs,
        correlation_id_enabled=settings.correlation_ids,
        log_health_probes=settings.log_health_probes,
    )


def bootstrap(
    settings: Settings, reconciler: AdmissionConfigReconciler | None = None
) -> LeafCredential:
    """
    Generate credentials and register the webhook.

    Args:
        settings: Webhook settings
        reconciler: Registration reconciler, created on demand if not provided

    Returns:
        The serving credential written to disk

    Raises:
        BootstrapError: If key generation, signing or file writes fail
        ConfigurationError: If registration is requested without a service
        ApiException: If the API server rejects a registration call
    """
    ca = generate_ca()
    leaf = issue_leaf(
        ca,
        dns_names=service_dns_names(
            settings.webhook_service, settings.webhook_namespace, settings.cluster_domain
        ),
        common_name=f"{settings.webhook_service}.{settings.webhook_namespace}.svc",
    )
    persist(leaf, settings.cert_file, settings.key_file)
    logger.info("webhook server tls generated successfully")

    if not settings.register_webhooks:
        logger.info("Webhook registration disabled (REGISTER_WEBHOOKS=false)")
        return leaf

    reconciler = reconciler or AdmissionConfigReconciler()
    reconciler.reconcile(ca.certificate_pem, RegistrationOptions.from_settings(settings))
    logger.info("Webhook admission configuration objects reconciled successfully")
    return leaf


def build_engine(settings: Settings) -> AdmissionReviewEngine:
    """Wire the codec and both policies into a review engine."""
    codec = AdmissionCodec()
    allowed = settings.allowed_registries
    if not allowed:
        logger.warning("WHITELIST_REGISTRIES is empty, every pod will be denied")
    return AdmissionReviewEngine(
        codec=codec,
        validation_policy=ImageAllowListPolicy(codec, allowed),
        mutation_policy=AnnotationMutationPolicy(codec),
        validate_path=settings.validate_path,
        mutate_path=settings.mutate_path,
    )


async def serve(settings: Settings) -> int:
    """
    Serve admission calls until a shutdown signal arrives.

    Returns:
        Process exit code: 0 after a graceful shutdown, 1 if the listener died
    """
    ssl_context = WebhookServer.load_ssl_context(settings.cert_file, settings.key_file)
    server = WebhookServer(
        build_engine(settings),
        host=settings.host,
        port=settings.port,
        ssl_context=ssl_context,
    )

    shutdown = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, shutdown.set)

    metrics_server: MetricsServer | None = None
    if settings.metrics_enabled:
        metrics_server = MetricsServer(
            port=settings.metrics_port,
            host=settings.metrics_host,
            ready_check=lambda: server.serving,
        )
        try:
            await metrics_server.start()
        except OSError as e:
            logger.warning(f"Continuing without metrics server: {e}")
            metrics_server = None

    listener = server.start()
    logger.info("Server started")
    shutdown_wait = asyncio.create_task(shutdown.wait())
    await asyncio.wait({listener, shutdown_wait}, return_when=asyncio.FIRST_COMPLETED)

    exit_code = 0
    if listener.done():
        shutdown_wait.cancel()
        error = None if listener.cancelled() else listener.exception()
        logger.error(f"Webhook server stopped unexpectedly: {error}")
        exit_code = 1
    else:
        logger.info("Got OS shutdown signal, shutting down webhook server gracefully...")
        await server.stop()

    if metrics_server is not None:
        await metrics_server.stop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.remove_signal_handler(sig)
    return exit_code


def main() -> None:
    """
    Main entry point for the webhook.

    Any bootstrap failure exits with status 1 before the listener starts.
    """
    configure_logging()

    try:
        bootstrap(webhook_settings)
    except (WebhookError, ApiException, ConfigException) as e:
        logger.error(f"Webhook bootstrap failed: {e}", exc_info=True)
        sys.exit(1)

    if webhook_settings.bootstrap_only:
        logger.info("BOOTSTRAP_ONLY set, exiting after registration")
        return

    try:
        exit_code = asyncio.run(serve(webhook_settings))
    except BootstrapError as e:
        logger.error(f"failed to load key pair: {e}")
        sys.exit(1)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
