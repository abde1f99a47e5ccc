"""
Pydantic models describing how the webhook registers itself.

``RegistrationOptions`` is the input of the admission configuration
reconciler: where the API server should call the webhook and under which
names the two configuration objects live.
"""

from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

from ..constants import DEFAULT_MUTATE_PATH, DEFAULT_VALIDATE_PATH

if TYPE_CHECKING:
    from ..settings import Settings


class RegistrationOptions(BaseModel):
    """Target service and configuration names for webhook registration."""

    service_name: str = Field(..., description="Service fronting the webhook")
    service_namespace: str = Field(..., description="Namespace of the Service")
    service_port: int = Field(443, description="Port of the Service")
    validate_path: str = Field(DEFAULT_VALIDATE_PATH)
    mutate_path: str = Field(DEFAULT_MUTATE_PATH)
    validating_config_name: str = Field(
        "", description="ValidatingWebhookConfiguration name, empty to skip"
    )
    mutating_config_name: str = Field(
        "", description="MutatingWebhookConfiguration name, empty to skip"
    )
    failure_policy: str = Field("Fail")
    timeout_seconds: int = Field(10)

    @classmethod
    def from_settings(cls, settings: "Settings") -> "RegistrationOptions":
        return cls(
            service_name=settings.webhook_service,
            service_namespace=settings.webhook_namespace,
            service_port=settings.webhook_service_port,
            validate_path=settings.validate_path,
            mutate_path=settings.mutate_path,
            validating_config_name=settings.validate_config,
            mutating_config_name=settings.mutate_config,
            failure_policy=settings.failure_policy,
            timeout_seconds=settings.timeout_seconds,
        )
