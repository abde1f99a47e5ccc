"""Shared pytest fixtures for admission webhook unit tests."""

import pytest

from admission_webhook.utils.pki import generate_ca, issue_leaf, service_dns_names
from admission_webhook.webhooks.codec import AdmissionCodec
from admission_webhook.webhooks.mutation import AnnotationMutationPolicy
from admission_webhook.webhooks.review import AdmissionReviewEngine
from admission_webhook.webhooks.validation import ImageAllowListPolicy
from tests.utils.admission_helpers import ALLOWED_REGISTRIES


@pytest.fixture
def codec():
    return AdmissionCodec()


@pytest.fixture
def validation_policy(codec):
    return ImageAllowListPolicy(codec, ALLOWED_REGISTRIES)


@pytest.fixture
def mutation_policy(codec):
    return AnnotationMutationPolicy(codec)


@pytest.fixture
def engine(codec, validation_policy, mutation_policy):
    return AdmissionReviewEngine(
        codec=codec,
        validation_policy=validation_policy,
        mutation_policy=mutation_policy,
    )


@pytest.fixture(scope="session")
def certificate_authority():
    """One CA per test session; 4096-bit key generation is slow."""
    return generate_ca()


@pytest.fixture(scope="session")
def leaf_credential(certificate_authority):
    return issue_leaf(
        certificate_authority,
        dns_names=service_dns_names("admission-webhook", "default"),
        common_name="admission-webhook.default.svc",
    )
