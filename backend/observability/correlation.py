"""
Correlation ID context.

HTTP requests carry the caller's X-Correlation-ID (or a generated UUID);
job runs outside a request use "job-<id>" so worker log lines can be
matched to the job's own log entries.

Dependencies: contextvars
System role: Request and job tracing across async boundaries
"""

from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator
from uuid import UUID
import uuid

correlation_id_ctx: ContextVar[str] = ContextVar("correlation_id", default="")


def set_correlation_id(correlation_id: str | None = None) -> str:
    """
    Set correlation ID in context.

    Args:
        correlation_id: Optional correlation ID (generates new if None)

    Returns:
        str: The correlation ID that was set
    """
    value = correlation_id or str(uuid.uuid4())
    correlation_id_ctx.set(value)
    return value


def get_correlation_id() -> str:
    """Current correlation ID ("" outside a request or job run)."""
    return correlation_id_ctx.get()


def clear_correlation_id() -> None:
    correlation_id_ctx.set("")


@contextmanager
def job_correlation(job_id: UUID | str) -> Iterator[str]:
    """
    Tag everything logged inside the block with the job's correlation ID.

    Restores the previous ID on exit, so a background run started from a
    request does not leak its ID back into the request.
    """
    token = correlation_id_ctx.set(f"job-{job_id}")
    try:
        yield correlation_id_ctx.get()
    finally:
        correlation_id_ctx.reset(token)
