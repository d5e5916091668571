"""Supporting adapters."""

from .job_dispatcher import (
    BackgroundJobDispatcher,
    CeleryJobDispatcher,
    JobDispatcher,
    get_job_dispatcher,
)

__all__ = [
    "BackgroundJobDispatcher",
    "CeleryJobDispatcher",
    "JobDispatcher",
    "get_job_dispatcher",
]
