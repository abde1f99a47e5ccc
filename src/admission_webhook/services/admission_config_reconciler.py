"""
Reconciler for the webhook's admission registration objects.

Creates or fully replaces the ValidatingWebhookConfiguration and the
MutatingWebhookConfiguration that point the API server at this webhook,
embedding the CA certificate generated at startup as the trust bundle.
Must finish before the listener starts serving with the new credential.
"""

import base64
import logging
from collections.abc import Callable
from typing import Any

from kubernetes import client
from kubernetes.client.rest import ApiException

from ..constants import (
    ADMISSION_REVIEW_VERSIONS,
    MUTATING_WEBHOOK_NAME,
    SIDE_EFFECT_CLASS_NONE,
    VALIDATING_WEBHOOK_NAME,
)
from ..errors import ConfigurationError
from ..models.registration import RegistrationOptions
from ..observability.metrics import REGISTRATIONS_TOTAL

logger = logging.getLogger(__name__)

ADMISSIONREGISTRATION_API_VERSION = "admissionregistration.k8s.io/v1"

# Operations both webhooks are called for
REGISTERED_OPERATIONS = ["CREATE", "UPDATE"]


class AdmissionConfigReconciler:
    """
    Create-or-replace reconciler for webhook configurations.

    Each configuration is fetched by name; a 404 leads to a create, an
    existing object is overwritten with the desired one. Any other API
    error propagates unchanged.
    """

    def __init__(self, k8s_client: client.ApiClient | None = None):
        """
        Initialize the reconciler.

        Args:
            k8s_client: Kubernetes API client, will be created if not provided
        """
        self.k8s_client = k8s_client

    @property
    def kubernetes_client(self) -> client.ApiClient:
        """Get or create Kubernetes API client."""
        if self.k8s_client is None:
            from ..utils.kubernetes import get_kubernetes_client

            self.k8s_client = get_kubernetes_client()
        return self.k8s_client

    def reconcile(self, ca_certificate: bytes, options: RegistrationOptions) -> None:
        """
        Register both webhook configurations with the given CA bundle.

        Args:
            ca_certificate: PEM encoded CA certificate trusted by the API server
            options: Target service and configuration names

        Raises:
            ConfigurationError: If a configuration is requested without a service
            ApiException: On any API error other than "not found" on read
        """
        if not (options.validating_config_name or options.mutating_config_name):
            logger.info("No webhook configuration names set, skipping registration")
            return
        if not options.service_name or not options.service_namespace:
            raise ConfigurationError(
                "webhook service name and namespace are required for registration",
                user_action="Set WEBHOOK_SERVICE and WEBHOOK_NAMESPACE",
            )

        api = client.AdmissionregistrationV1Api(self.kubernetes_client)

        if options.validating_config_name:
            desired = self.build_validating_configuration(ca_certificate, options)
            self._apply(
                kind="validating",
                name=options.validating_config_name,
                desired=desired,
                read=api.read_validating_webhook_configuration,
                create=api.create_validating_webhook_configuration,
                replace=api.replace_validating_webhook_configuration,
            )
        else:
            REGISTRATIONS_TOTAL.labels(kind="validating", action="skipped").inc()

        if options.mutating_config_name:
            desired = self.build_mutating_configuration(ca_certificate, options)
            self._apply(
                kind="mutating",
                name=options.mutating_config_name,
                desired=desired,
                read=api.read_mutating_webhook_configuration,
                create=api.create_mutating_webhook_configuration,
                replace=api.replace_mutating_webhook_configuration,
            )
        else:
            REGISTRATIONS_TOTAL.labels(kind="mutating", action="skipped").inc()

    def build_validating_configuration(
        self, ca_certificate: bytes, options: RegistrationOptions
    ) -> client.V1ValidatingWebhookConfiguration:
        """Build the desired ValidatingWebhookConfiguration for pods."""
        webhook = client.V1ValidatingWebhook(
            name=VALIDATING_WEBHOOK_NAME,
            client_config=self._client_config(
                ca_certificate, options, options.validate_path
            ),
            rules=[
                client.V1RuleWithOperations(
                    operations=list(REGISTERED_OPERATIONS),
                    api_groups=[""],
                    api_versions=["v1"],
                    resources=["pods"],
                )
            ],
            admission_review_versions=list(ADMISSION_REVIEW_VERSIONS),
            side_effects=SIDE_EFFECT_CLASS_NONE,
            failure_policy=options.failure_policy,
            timeout_seconds=options.timeout_seconds,
        )
        return client.V1ValidatingWebhookConfiguration(
            api_version=ADMISSIONREGISTRATION_API_VERSION,
            kind="ValidatingWebhookConfiguration",
            metadata=client.V1ObjectMeta(name=options.validating_config_name),
            webhooks=[webhook],
        )

    def build_mutating_configuration(
        self, ca_certificate: bytes, options: RegistrationOptions
    ) -> client.V1MutatingWebhookConfiguration:
        """Build the desired MutatingWebhookConfiguration for deployments and services."""
        webhook = client.V1MutatingWebhook(
            name=MUTATING_WEBHOOK_NAME,
            client_config=self._client_config(
                ca_certificate, options, options.mutate_path
            ),
            rules=[
                client.V1RuleWithOperations(
                    operations=list(REGISTERED_OPERATIONS),
                    api_groups=["apps", ""],
                    api_versions=["v1"],
                    resources=["deployments", "services"],
                )
            ],
            admission_review_versions=list(ADMISSION_REVIEW_VERSIONS),
            side_effects=SIDE_EFFECT_CLASS_NONE,
            failure_policy=options.failure_policy,
            timeout_seconds=options.timeout_seconds,
        )
        return client.V1MutatingWebhookConfiguration(
            api_version=ADMISSIONREGISTRATION_API_VERSION,
            kind="MutatingWebhookConfiguration",
            metadata=client.V1ObjectMeta(name=options.mutating_config_name),
            webhooks=[webhook],
        )

    @staticmethod
    def _client_config(
        ca_certificate: bytes, options: RegistrationOptions, path: str
    ) -> client.AdmissionregistrationV1WebhookClientConfig:
        # caBundle is a byte field, base64 on the wire
        return client.AdmissionregistrationV1WebhookClientConfig(
            ca_bundle=base64.b64encode(ca_certificate).decode("ascii"),
            service=client.AdmissionregistrationV1ServiceReference(
                name=options.service_name,
                namespace=options.service_namespace,
                path=path,
                port=options.service_port,
            ),
        )

    def _apply(
        self,
        kind: str,
        name: str,
        desired: Any,
        read: Callable[..., Any],
        create: Callable[..., Any],
        replace: Callable[..., Any],
    ) -> None:
        try:
            existing = read(name)
        except ApiException as e:
            if e.status != 404:
                raise
            logger.info(f"Creating {kind} webhook configuration {name}")
            create(body=desired)
            REGISTRATIONS_TOTAL.labels(kind=kind, action="created").inc()
            return

        resource_version = getattr(existing.metadata, "resource_version", None)
        desired.metadata.resource_version = resource_version
        logger.info(
            f"Replacing {kind} webhook configuration {name} "
            f"(resourceVersion {resource_version})"
        )
        replace(name=name, body=desired)
        REGISTRATIONS_TOTAL.labels(kind=kind, action="updated").inc()
