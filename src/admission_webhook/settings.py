"""Centralized webhook settings using pydantic-settings.

This module provides a single source of truth for all webhook configuration
loaded from environment variables. Uses pydantic for automatic validation,
type coercion, and documentation.
"""

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from admission_webhook.constants import (
    DEFAULT_CERT_FILE,
    DEFAULT_CLUSTER_DOMAIN,
    DEFAULT_KEY_FILE,
    DEFAULT_MUTATE_PATH,
    DEFAULT_VALIDATE_PATH,
    FAILURE_POLICIES,
)


class Settings(BaseSettings):
    """Webhook configuration loaded from environment variables.

    All settings have sensible defaults for an in-cluster deployment. Override
    via environment variables as documented per field.
    """

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # HTTPS listener
    port: int = Field(
        default=443,
        validation_alias="PORT",
        description="Port for the admission webhook HTTPS server",
    )
    host: str = Field(
        default="0.0.0.0",
        validation_alias="HOST",
        description="Host address to bind the webhook server",
    )
    cert_file: str = Field(
        default=DEFAULT_CERT_FILE,
        validation_alias="CERT_FILE",
        description="x509 certificate file served by the webhook",
    )
    key_file: str = Field(
        default=DEFAULT_KEY_FILE,
        validation_alias="KEY_FILE",
        description="x509 private key file served by the webhook",
    )

    # Validation policy
    whitelist_registries: str = Field(
        default="",
        validation_alias="WHITELIST_REGISTRIES",
        description="Comma-separated list of allowed image prefixes",
    )

    # Webhook service identity
    webhook_namespace: str = Field(
        default="default",
        validation_alias="WEBHOOK_NAMESPACE",
        description="Namespace of the Service fronting the webhook",
    )
    webhook_service: str = Field(
        default="admission-webhook",
        validation_alias="WEBHOOK_SERVICE",
        description="Name of the Service fronting the webhook",
    )
    webhook_service_port: int = Field(
        default=443,
        validation_alias="WEBHOOK_SERVICE_PORT",
        description="Port of the Service fronting the webhook",
    )
    cluster_domain: str = Field(
        default=DEFAULT_CLUSTER_DOMAIN,
        validation_alias="CLUSTER_DOMAIN",
        description="Cluster DNS domain used for certificate SANs",
    )

    # Webhook registration
    validate_config: str = Field(
        default="",
        validation_alias="VALIDATE_CONFIG",
        description="ValidatingWebhookConfiguration name (empty = do not register)",
    )
    mutate_config: str = Field(
        default="",
        validation_alias="MUTATE_CONFIG",
        description="MutatingWebhookConfiguration name (empty = do not register)",
    )
    validate_path: str = Field(
        default=DEFAULT_VALIDATE_PATH,
        validation_alias="VALIDATE_PATH",
        description="URL path of the validating webhook",
    )
    mutate_path: str = Field(
        default=DEFAULT_MUTATE_PATH,
        validation_alias="MUTATE_PATH",
        description="URL path of the mutating webhook",
    )
    failure_policy: str = Field(
        default="Fail",
        validation_alias="WEBHOOK_FAILURE_POLICY",
        description="Failure policy declared on both webhooks (Fail or Ignore)",
    )
    timeout_seconds: int = Field(
        default=10,
        ge=1,
        le=30,
        validation_alias="WEBHOOK_TIMEOUT_SECONDS",
        description="Timeout the API server applies to each admission call",
    )
    register_webhooks: bool = Field(
        default=True,
        validation_alias="REGISTER_WEBHOOKS",
        description="Create or update webhook configurations on startup",
    )
    bootstrap_only: bool = Field(
        default=False,
        validation_alias="BOOTSTRAP_ONLY",
        description="Generate certificates and register webhooks, then exit",
    )

    # Logging configuration
    log_level: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    json_logs: bool = Field(
        default=True,
        validation_alias="JSON_LOGS",
        description="Enable JSON formatted logging for structured log aggregation",
    )
    correlation_ids: bool = Field(
        default=True,
        validation_alias="CORRELATION_IDS",
        description="Enable correlation IDs in logs for request tracing",
    )
    log_health_probes: bool = Field(
        default=False,
        validation_alias="LOG_HEALTH_PROBES",
        description="Log health probe and metrics scrape requests",
    )

    # Metrics and observability
    metrics_enabled: bool = Field(
        default=True,
        validation_alias="METRICS_ENABLED",
        description="Serve Prometheus metrics and health probes",
    )
    metrics_port: int = Field(
        default=8081,
        validation_alias="METRICS_PORT",
        description="Port for Prometheus metrics endpoint",
    )
    metrics_host: str = Field(
        default="0.0.0.0",
        validation_alias="METRICS_HOST",
        description="Host address to bind metrics server",
    )

    @field_validator("port", "webhook_service_port", "metrics_port")
    @classmethod
    def validate_port(cls, value: int) -> int:
        if not 0 < value < 65536:
            raise ValueError(f"port must be between 1 and 65535, got {value}")
        return value

    @field_validator("validate_path", "mutate_path")
    @classmethod
    def validate_path_prefix(cls, value: str) -> str:
        if not value.startswith("/"):
            raise ValueError(f"webhook path must start with '/', got {value!r}")
        return value

    @field_validator("failure_policy")
    @classmethod
    def validate_failure_policy(cls, value: str) -> str:
        if value not in FAILURE_POLICIES:
            raise ValueError(
                f"failure policy must be one of {sorted(FAILURE_POLICIES)}, got {value!r}"
            )
        return value

    @model_validator(mode="after")
    def validate_distinct_paths(self) -> "Settings":
        if self.validate_path == self.mutate_path:
            raise ValueError("validate and mutate paths must differ")
        return self

    @property
    def allowed_registries(self) -> list[str]:
        """Parse the image allow-list from the comma-separated string.

        Returns:
            List of image prefixes, whitespace-trimmed, empty entries dropped
        """
        return [
            prefix.strip()
            for prefix in self.whitelist_registries.split(",")
            if prefix.strip()
        ]


# Global settings instance - initialized once at module import
settings = Settings()
