"""
Tests for correlation ID tracking and the logging filter.
"""

import logging
import uuid

from backend.observability.correlation import (
    clear_correlation_id,
    get_correlation_id,
    job_correlation,
    set_correlation_id,
)
from backend.observability.logger import CorrelationIdFilter


def make_record() -> logging.LogRecord:
    return logging.LogRecord("test", logging.INFO, __file__, 1, "hello", None, None)


class TestCorrelation:
    """Test suite for correlation ID context."""

    def test_set_generates_id_when_missing(self):
        value = set_correlation_id()

        assert uuid.UUID(value)
        assert get_correlation_id() == value
        clear_correlation_id()

    def test_job_correlation_restores_previous_id(self):
        set_correlation_id("req-1")
        job_id = uuid.uuid4()

        with job_correlation(job_id) as value:
            assert value == f"job-{job_id}"
            assert get_correlation_id() == value

        assert get_correlation_id() == "req-1"
        clear_correlation_id()


class TestCorrelationIdFilter:
    """Test suite for the log record filter."""

    def test_outside_context_uses_dash(self):
        clear_correlation_id()
        record = make_record()

        assert CorrelationIdFilter().filter(record)
        assert record.correlation_id == "-"

    def test_inside_job_run_uses_job_id(self):
        record = make_record()

        with job_correlation("abc"):
            CorrelationIdFilter().filter(record)

        assert record.correlation_id == "job-abc"
