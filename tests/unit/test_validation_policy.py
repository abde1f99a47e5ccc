"""
Unit tests for the image allow-list validation policy.

Policies are exercised directly with decoded AdmissionRequests; no HTTP
server is involved.
"""

from admission_webhook.models.admission import AdmissionReview
from admission_webhook.webhooks.validation import ImageAllowListPolicy
from tests.utils.admission_helpers import make_pod, make_review


def _request(obj):
    return AdmissionReview.model_validate(make_review("Pod", obj)).request


class TestImageAllowListPolicy:
    """Tests for ImageAllowListPolicy.review."""

    def test_all_images_allowed(self, validation_policy):
        """Pod whose every image matches a prefix is allowed without a message."""
        request = _request(
            make_pod("docker.io/library/nginx:1.27", "ghcr.io/acme/sidecar:v2")
        )

        response = validation_policy.review(request)

        assert response.allowed is True
        assert response.status is None
        assert response.patch is None

    def test_untrusted_image_denied(self, validation_policy):
        """An image outside the allow-list denies the pod and is named."""
        request = _request(make_pod("docker.io/library/nginx", "quay.io/evil/miner:1"))

        response = validation_policy.review(request)

        assert response.allowed is False
        assert response.status.code == 403
        assert "quay.io/evil/miner:1" in response.status.message
        assert "docker.io/library/" in response.status.message
        assert "ghcr.io/acme/" in response.status.message

    def test_first_violation_wins(self, validation_policy):
        """Only the first offending image is reported."""
        request = _request(make_pod("quay.io/first:1", "quay.io/second:1"))

        response = validation_policy.review(request)

        assert response.allowed is False
        assert "quay.io/first:1" in response.status.message
        assert "quay.io/second:1" not in response.status.message

    def test_prefix_match_is_case_sensitive(self, validation_policy):
        """Prefix matching does not fold case."""
        request = _request(make_pod("Docker.io/library/nginx"))

        response = validation_policy.review(request)

        assert response.allowed is False

    def test_prefix_is_not_a_glob(self, codec):
        """Wildcard characters in prefixes match literally."""
        policy = ImageAllowListPolicy(codec, ["docker.io/*"])

        response = policy.review(_request(make_pod("docker.io/library/nginx")))

        assert response.allowed is False

    def test_init_container_checked(self, validation_policy):
        """Init containers are subject to the same allow-list."""
        request = _request(
            make_pod("docker.io/library/nginx", init_images=("quay.io/setup:1",))
        )

        response = validation_policy.review(request)

        assert response.allowed is False
        assert "quay.io/setup:1" in response.status.message

    def test_pod_without_containers_allowed(self, validation_policy):
        """A pod with no containers has no violation."""
        response = validation_policy.review(_request(make_pod()))

        assert response.allowed is True

    def test_empty_allow_list_denies(self, codec):
        """With nothing allow-listed every image is untrusted."""
        policy = ImageAllowListPolicy(codec, [])

        response = policy.review(_request(make_pod("docker.io/library/nginx")))

        assert response.allowed is False

    def test_undecodable_pod_denied_with_400(self, validation_policy):
        """A pod that does not match the Pod schema is denied with code 400."""
        pod = make_pod("docker.io/library/nginx")
        pod["spec"]["containers"] = "not-a-list"

        response = validation_policy.review(_request(pod))

        assert response.allowed is False
        assert response.status.code == 400
        assert "failed to decode Pod" in response.status.message

    def test_missing_object_denied_with_400(self, validation_policy):
        """A request without an embedded object is denied with code 400."""
        response = validation_policy.review(_request(None))

        assert response.allowed is False
        assert response.status.code == 400
        assert "carries no object" in response.status.message
