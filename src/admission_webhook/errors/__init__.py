"""
Error handling module for the admission webhook.

This module provides an error hierarchy that separates fatal bootstrap
failures from per-request admission failures.
"""

from .webhook_errors import (
    AdmissionDecodeError,
    BootstrapError,
    CertificateEncodingError,
    ConfigurationError,
    FilesystemError,
    KeyGenerationError,
    TLSCredentialError,
    UnsupportedKindError,
    WebhookError,
)

__all__ = [
    "WebhookError",
    "BootstrapError",
    "KeyGenerationError",
    "CertificateEncodingError",
    "FilesystemError",
    "TLSCredentialError",
    "ConfigurationError",
    "AdmissionDecodeError",
    "UnsupportedKindError",
]
