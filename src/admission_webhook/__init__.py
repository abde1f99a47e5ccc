"""
Admission Webhook - A self-bootstrapping Kubernetes admission webhook.

This service provides:
- Image allow-list validation for Pods
- Idempotent annotation injection for Deployments and Services
- Self-generated CA and serving certificate
- Automatic registration of its webhook configurations
"""

__version__ = "0.1.0"
