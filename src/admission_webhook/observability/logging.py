"""
Structured logging utilities for the admission webhook.

This module provides correlation ID tracking and structured log formatting.
During an admission call the correlation ID is the admission request UID, so
every line logged for one call can be joined with the API server's audit log.
"""

import json
import logging
import re
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, datetime

# Admission request UID of the call being handled, "" outside a call
correlation_id: ContextVar[str] = ContextVar("correlation_id", default="")

# Probe and scrape paths served by the metrics server
HEALTH_PROBE_PATHS = frozenset({"/healthz", "/ready", "/metrics"})

# Logger aiohttp writes one record per served request to
ACCESS_LOGGER = "aiohttp.access"

# Request line of an access record hitting a probe path
_PROBE_REQUEST_LINE = re.compile(
    r"\"[A-Z]+ (?:"
    + "|".join(re.escape(path) for path in sorted(HEALTH_PROBE_PATHS))
    + r")[ ?]"
)

# Extra record attributes copied into JSON output
STRUCTURED_FIELDS = (
    "uid",
    "route",
    "kind",
    "namespace",
    "resource_name",
    "operation",
    "allowed",
    "http_status",
    "duration",
    "error_type",
)

# Third-party loggers capped at WARNING
QUIET_LOGGERS = (
    "kubernetes",
    "urllib3",
    ACCESS_LOGGER,
    "aiohttp.server",
    "aiohttp.web",
)


class HealthProbeFilter(logging.Filter):
    """Drop access log lines for kubelet probes and Prometheus scrapes."""

    def __init__(self, suppress_health_logs: bool = True):
        super().__init__()
        self.suppress_health_logs = suppress_health_logs

    def filter(self, record: logging.LogRecord) -> bool:
        if not self.suppress_health_logs or record.name != ACCESS_LOGGER:
            return True
        return _PROBE_REQUEST_LINE.search(record.getMessage()) is None


class CorrelationIDFilter(logging.Filter):
    """Logging filter that adds correlation ID to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = get_correlation_id() or "-"
        return True


class StructuredFormatter(logging.Formatter):
    """
    One JSON object per record.

    Admission fields passed through ``extra`` (see ``STRUCTURED_FIELDS``) are
    copied to the top level so decisions can be queried by uid or route.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "correlation_id": getattr(record, "correlation_id", ""),
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for field in STRUCTURED_FIELDS:
            if hasattr(record, field):
                log_data[field] = getattr(record, field)

        return json.dumps(log_data, default=str)


def generate_correlation_id() -> str:
    """
    Generate a new correlation ID.

    Returns:
        Unique correlation ID string
    """
    return str(uuid.uuid4())[:8]


def get_correlation_id() -> str:
    """Get the current correlation ID, or empty string if none set."""
    return correlation_id.get("")


@contextmanager
def correlation_scope(corr_id: str | None = None) -> Iterator[str]:
    """
    Bind a correlation ID for the duration of a block.

    Args:
        corr_id: Correlation ID to bind; a fresh one is generated when empty

    Yields:
        The correlation ID in effect inside the block
    """
    value = corr_id or generate_correlation_id()
    token = correlation_id.set(value)
    try:
        yield value
    finally:
        correlation_id.reset(token)


def setup_structured_logging(
    log_level: str = "INFO",
    enable_json_formatting: bool = True,
    correlation_id_enabled: bool = True,
    log_health_probes: bool = False,
) -> None:
    """
    Install a single stderr handler on the root logger.

    Args:
        log_level: Root log level name; unknown names fall back to INFO
        enable_json_formatting: Emit JSON lines instead of plain text
        correlation_id_enabled: Stamp records with the admission request UID
        log_health_probes: Keep access log lines for probe and scrape paths
    """
    root_logger = logging.getLogger()
    for existing in list(root_logger.handlers):
        root_logger.removeHandler(existing)

    handler = logging.StreamHandler()

    if enable_json_formatting:
        formatter: logging.Formatter = StructuredFormatter()
    elif correlation_id_enabled:
        formatter = logging.Formatter(
            "%(asctime)s - %(correlation_id)s - %(name)s - %(levelname)s - %(message)s"
        )
    else:
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )

    handler.setFormatter(formatter)

    if correlation_id_enabled:
        handler.addFilter(CorrelationIDFilter())

    if not log_health_probes:
        handler.addFilter(HealthProbeFilter(suppress_health_logs=True))

    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
