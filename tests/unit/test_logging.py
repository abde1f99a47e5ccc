"""Unit tests for structured logging helpers."""

import io
import json
import logging

from admission_webhook.models.admission import AdmissionReview
from admission_webhook.observability.logging import (
    ACCESS_LOGGER,
    CorrelationIDFilter,
    HealthProbeFilter,
    StructuredFormatter,
    correlation_scope,
    get_correlation_id,
)
from tests.utils.admission_helpers import make_pod, make_review

ACCESS_LINE = (
    '127.0.0.1 [18/Oct/2026:10:00:00 +0000] "{method} {path} HTTP/1.1" 200 2 "-" "kube-probe/1.30"'
)


def _record(
    message: str, name: str = "admission_webhook.test", **extra
) -> logging.LogRecord:
    record = logging.LogRecord(
        name=name,
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg=message,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestCorrelationScope:
    def test_binds_and_resets(self):
        assert get_correlation_id() == ""

        with correlation_scope("uid-123") as corr_id:
            assert corr_id == "uid-123"
            assert get_correlation_id() == "uid-123"

        assert get_correlation_id() == ""

    def test_generates_id_when_empty(self):
        with correlation_scope(None) as corr_id:
            assert len(corr_id) == 8
            assert get_correlation_id() == corr_id


class TestFilters:
    def test_correlation_filter_sets_placeholder(self):
        record = _record("hello")

        assert CorrelationIDFilter().filter(record) is True
        assert record.correlation_id == "-"

    def test_correlation_filter_uses_scope(self):
        record = _record("hello")

        with correlation_scope("abc"):
            CorrelationIDFilter().filter(record)

        assert record.correlation_id == "abc"

    def test_health_check_access_lines_dropped(self):
        health_filter = HealthProbeFilter()

        for path in ("/healthz", "/ready", "/metrics"):
            line = ACCESS_LINE.format(method="GET", path=path)
            assert health_filter.filter(_record(line, name=ACCESS_LOGGER)) is False

    def test_admission_access_lines_kept(self):
        health_filter = HealthProbeFilter()
        line = ACCESS_LINE.format(method="POST", path="/validate")

        assert health_filter.filter(_record(line, name=ACCESS_LOGGER)) is True

    def test_prefix_sharing_paths_kept(self):
        """Only exact health check paths match, not paths sharing their prefix."""
        health_filter = HealthProbeFilter()
        line = ACCESS_LINE.format(method="GET", path="/metrics-export")

        assert health_filter.filter(_record(line, name=ACCESS_LOGGER)) is True

    def test_application_records_never_dropped(self):
        """Object names such as metrics-server do not look like health check traffic."""
        health_filter = HealthProbeFilter()
        record = _record("Pod default/metrics-server rejected: evil.io/x:1")

        assert health_filter.filter(record) is True

    def test_health_health_filter_disabled(self):
        health_filter = HealthProbeFilter(suppress_health_logs=False)
        line = ACCESS_LINE.format(method="GET", path="/metrics")

        assert health_filter.filter(_record(line, name=ACCESS_LOGGER)) is True

    def test_denial_for_metrics_named_pod_is_logged(self, validation_policy):
        stream = io.StringIO()
        handler = logging.StreamHandler(stream)
        handler.setFormatter(StructuredFormatter())
        handler.addFilter(CorrelationIDFilter())
        handler.addFilter(HealthProbeFilter())
        root_logger = logging.getLogger()
        previous_level = root_logger.level
        root_logger.addHandler(handler)
        root_logger.setLevel(logging.INFO)

        pod = make_pod("evil.io/x:1")
        pod["metadata"]["name"] = "metrics-server"
        request = AdmissionReview.model_validate(make_review("Pod", pod)).request
        try:
            response = validation_policy.review(request)
        finally:
            root_logger.removeHandler(handler)
            root_logger.setLevel(previous_level)

        assert response.allowed is False
        logged = stream.getvalue()
        assert "default/metrics-server rejected" in logged
        assert "evil.io/x:1" in logged


class TestStructuredFormatter:
    def test_json_output_with_structured_fields(self):
        record = _record(
            "sending response", correlation_id="u-1", uid="u-1", allowed=False
        )

        data = json.loads(StructuredFormatter().format(record))

        assert data["message"] == "sending response"
        assert data["level"] == "INFO"
        assert data["correlation_id"] == "u-1"
        assert data["uid"] == "u-1"
        assert data["allowed"] is False
        assert "route" not in data
