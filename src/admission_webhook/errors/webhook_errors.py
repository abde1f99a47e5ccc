"""
Webhook error hierarchy with categorization.

Bootstrap errors abort the process before the listener starts serving.
Admission errors stay inside a single request and are turned into
``allowed=false`` admission responses by the review engine.
"""


class WebhookError(Exception):
    """
    Base error class for all webhook-related exceptions.

    Provides categorization and user guidance for resolution.
    """

    def __init__(
        self,
        message: str,
        category: str,
        user_action: str | None = None,
        cause: Exception | None = None,
    ):
        """
        Initialize webhook error.

        Args:
            message: Human-readable error description
            category: Error category (bootstrap, admission, configuration)
            user_action: What the operator should do to resolve the issue
            cause: Underlying exception that caused this error
        """
        super().__init__(message)
        self.category = category
        self.user_action = user_action
        self.cause = cause

    def __str__(self) -> str:
        """Enhanced string representation with user guidance."""
        base_msg = super().__str__()
        if self.user_action:
            return f"{base_msg}\nAction required: {self.user_action}"
        return base_msg


class BootstrapError(WebhookError):
    """Fatal error raised before the webhook can start serving."""

    def __init__(
        self,
        message: str,
        user_action: str | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(
            message=message,
            category="bootstrap",
            user_action=user_action or "Inspect the logs and restart the webhook",
            cause=cause,
        )


class KeyGenerationError(BootstrapError):
    """Key pair generation failed."""

    def __init__(self, message: str, cause: Exception | None = None):
        super().__init__(
            message=f"Key generation failed: {message}",
            user_action="Check that the cryptography backend supports RSA key generation",
            cause=cause,
        )


class CertificateEncodingError(BootstrapError):
    """Certificate could not be built, signed or serialized."""

    def __init__(self, message: str, cause: Exception | None = None):
        super().__init__(
            message=f"Certificate encoding failed: {message}",
            cause=cause,
        )


class FilesystemError(BootstrapError):
    """Certificate material could not be written to disk."""

    def __init__(self, path: str, cause: Exception | None = None):
        detail = f": {cause}" if cause else ""
        super().__init__(
            message=f"Failed to write {path}{detail}",
            user_action="Check that the certificate directory is writable",
            cause=cause,
        )
        self.path = path


class TLSCredentialError(BootstrapError):
    """Serving certificate or key could not be loaded."""

    def __init__(self, cert_file: str, key_file: str, cause: Exception | None = None):
        detail = f": {cause}" if cause else ""
        super().__init__(
            message=f"Failed to load key pair {cert_file}/{key_file}{detail}",
            user_action="Check CERT_FILE and KEY_FILE point at a matching PEM pair",
            cause=cause,
        )


class ConfigurationError(WebhookError):
    """Error in webhook configuration."""

    def __init__(self, message: str, user_action: str | None = None):
        super().__init__(
            message=message,
            category="configuration",
            user_action=user_action or "Review and correct configuration",
        )


class AdmissionDecodeError(WebhookError):
    """An admission envelope or its embedded object could not be parsed."""

    def __init__(self, message: str, cause: Exception | None = None):
        super().__init__(message=message, category="admission", cause=cause)


class UnsupportedKindError(WebhookError):
    """Mutation was requested for a resource kind the webhook does not handle."""

    def __init__(self, kind: str):
        super().__init__(
            message=f"Can't handle the kind({kind}) object", category="admission"
        )
        self.kind = kind
