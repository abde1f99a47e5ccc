"""
Services for startup-time interaction with the Kubernetes API.

The admission configuration reconciler registers the webhook with the
API server before the listener begins serving.
"""

from .admission_config_reconciler import AdmissionConfigReconciler

__all__ = ["AdmissionConfigReconciler"]
