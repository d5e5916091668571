"""
Processing job pipeline.

Exports:
  - JobRunState, transition helpers: Job state machine
  - ProgressSnapshot, build_progress_snapshot(): Progress and ETA
  - JobRunner: Claims and runs jobs through the stages
"""

from backend.core.job_pipeline.progress import (
    ProgressSnapshot,
    build_progress_snapshot,
    estimate_time_remaining,
    stage_progress,
)
from backend.core.job_pipeline.runner import JobRunner
from backend.core.job_pipeline.state_machine import (
    CANCELLABLE_JOB_STATES,
    INITIAL_STAGE,
    RETRYABLE_JOB_STATES,
    TERMINAL_JOB_STATES,
    JobRunState,
    can_transition_job,
    is_job_terminal,
    validate_job_transition,
)

__all__ = [
    "CANCELLABLE_JOB_STATES",
    "INITIAL_STAGE",
    "RETRYABLE_JOB_STATES",
    "TERMINAL_JOB_STATES",
    "JobRunState",
    "JobRunner",
    "ProgressSnapshot",
    "build_progress_snapshot",
    "can_transition_job",
    "estimate_time_remaining",
    "is_job_terminal",
    "stage_progress",
    "validate_job_transition",
]
