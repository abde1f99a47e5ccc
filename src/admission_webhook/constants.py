"""
Constants used throughout the admission webhook.

This module defines all constant values used by the webhook including:
- Annotation keys read and written by the mutation policy
- Admission API versions and patch types
- Webhook registration names and defaults
- Certificate subject and validity defaults
"""

# Annotation constants for mutation control
ANNOTATION_PREFIX = "io.ydzs.admission-webhook"
ANNOTATION_MUTATE_KEY = f"{ANNOTATION_PREFIX}/mutate"
ANNOTATION_STATUS_KEY = f"{ANNOTATION_PREFIX}/status"
STATUS_MUTATED = "mutated"

# Values of the mutate annotation that opt an object out of mutation
MUTATE_OPT_OUT_VALUES = frozenset({"n", "no", "false", "off"})

# Admission API envelope
ADMISSION_API_VERSION = "admission.k8s.io/v1"
ADMISSION_REVIEW_KIND = "AdmissionReview"
PATCH_TYPE_JSON_PATCH = "JSONPatch"
CONTENT_TYPE_JSON = "application/json"

# Webhook registration
VALIDATING_WEBHOOK_NAME = f"{ANNOTATION_PREFIX}.validate"
MUTATING_WEBHOOK_NAME = f"{ANNOTATION_PREFIX}.mutate"
ADMISSION_REVIEW_VERSIONS = ["v1"]
SIDE_EFFECT_CLASS_NONE = "None"
FAILURE_POLICIES = frozenset({"Fail", "Ignore"})

# Default routes
DEFAULT_VALIDATE_PATH = "/validate"
DEFAULT_MUTATE_PATH = "/mutate"

# Default certificate locations
DEFAULT_CERT_FILE = "/etc/webhook/certs/tls.crt"
DEFAULT_KEY_FILE = "/etc/webhook/certs/tls.key"

# PKI defaults
MIN_RSA_KEY_SIZE = 4096
RSA_PUBLIC_EXPONENT = 65537
CERTIFICATE_VALIDITY_DAYS = 3650  # 10 years
DEFAULT_SUBJECT_COUNTRY = "CN"
DEFAULT_SUBJECT_PROVINCE = "HuNan"
DEFAULT_SUBJECT_LOCALITY = "ChangSha"
DEFAULT_SUBJECT_ORGANIZATION = "ydzs.io"
DEFAULT_SUBJECT_ORGANIZATIONAL_UNIT = "ydzs.io"
DEFAULT_CLUSTER_DOMAIN = "cluster.local"

# HTTP status codes carried inside admission responses
STATUS_CODE_BAD_REQUEST = 400
STATUS_CODE_FORBIDDEN = 403
