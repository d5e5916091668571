"""
Observability module.

Provides logging configuration, correlation ID tracking for requests and
job runs, and request logging middleware.
"""

from backend.observability.correlation import (
    get_correlation_id,
    job_correlation,
    set_correlation_id,
)
from backend.observability.logger import configure_logging

__all__ = ["configure_logging", "get_correlation_id", "job_correlation", "set_correlation_id"]
