"""
Processing job state machine.

Job lifecycle: PENDING -> PROCESSING -> COMPLETED | FAILED | CANCELLED,
with FAILED -> PENDING on retry and PENDING -> CANCELLED on early cancel.

COMPLETED and CANCELLED are final. FAILED is terminal for a run (it has a
completed_at) but may be re-queued by retry.

Every transition is expressed as a new immutable JobRunState; the CRUD layer
persists the state's columns in a single conditional write so status,
progress and current stage are never observed half-updated.

Dependencies: backend.boundary.db.models, backend.core.exceptions
System role: Transition rules and run-state bookkeeping for processing jobs
"""

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, FrozenSet, Set, Tuple

from backend.boundary.db.models.job_model import JobStatus, ProcessingJobModel
from backend.core.exceptions import InvalidTransitionError

INITIAL_STAGE = "initializing"

TERMINAL_JOB_STATES: FrozenSet[JobStatus] = frozenset({
    JobStatus.COMPLETED,
    JobStatus.FAILED,
    JobStatus.CANCELLED,
})

CANCELLABLE_JOB_STATES: FrozenSet[JobStatus] = frozenset({
    JobStatus.PENDING,
    JobStatus.PROCESSING,
})

RETRYABLE_JOB_STATES: FrozenSet[JobStatus] = frozenset({JobStatus.FAILED})

_JOB_TRANSITIONS: Set[Tuple[JobStatus, JobStatus]] = {
    # Worker claim
    (JobStatus.PENDING, JobStatus.PROCESSING),
    # Stage advance keeps the job in PROCESSING
    (JobStatus.PROCESSING, JobStatus.PROCESSING),
    # Run outcomes
    (JobStatus.PROCESSING, JobStatus.COMPLETED),
    (JobStatus.PROCESSING, JobStatus.FAILED),
    # User cancellation
    (JobStatus.PENDING, JobStatus.CANCELLED),
    (JobStatus.PROCESSING, JobStatus.CANCELLED),
    # Retry re-enters the queue under the same job id
    (JobStatus.FAILED, JobStatus.PENDING),
}


def is_job_terminal(status: JobStatus) -> bool:
    """
    Check if a job status ends a run.

    Args:
        status: The job status to check

    Returns:
        True if completed_at must be set for this status
    """
    return status in TERMINAL_JOB_STATES


def can_transition_job(from_status: JobStatus, to_status: JobStatus) -> bool:
    """
    Check if a job state transition is legal.

    Args:
        from_status: Current job status
        to_status: Target job status

    Returns:
        True if the transition is allowed, False otherwise
    """
    return (from_status, to_status) in _JOB_TRANSITIONS


def validate_job_transition(
    from_status: JobStatus,
    to_status: JobStatus,
    message: str | None = None,
) -> None:
    """
    Validate a job state transition, raising an exception if illegal.

    Args:
        from_status: Current job status
        to_status: Target job status
        message: Optional user-facing message for the error

    Raises:
        InvalidTransitionError: If the transition is not allowed
    """
    if not can_transition_job(from_status, to_status):
        raise InvalidTransitionError(
            message or f"Cannot move job from {from_status.value} to {to_status.value}",
            current_status=from_status.value,
            target_status=to_status.value,
        )


@dataclass(frozen=True)
class JobRunState:
    """
    Run-scoped fields of a processing job as one immutable value.

    Each transition method validates the move and returns a new state; the
    original is never modified. as_update() yields the column values to
    write, always including status so a write cannot update progress
    without also asserting the status it was computed for.
    """

    status: JobStatus
    progress: int = 0
    current_stage: str | None = None
    error_message: str | None = None
    output_record_count: int | None = None
    pii_detected_count: int | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None

    @classmethod
    def from_model(cls, job: ProcessingJobModel) -> "JobRunState":
        """Build the run state from a loaded job row."""
        return cls(
            status=job.status,
            progress=job.progress,
            current_stage=job.current_stage,
            error_message=job.error_message,
            output_record_count=job.output_record_count,
            pii_detected_count=job.pii_detected_count,
            started_at=job.started_at,
            completed_at=job.completed_at,
        )

    def _move(self, target: JobStatus, message: str | None = None, **changes: Any) -> "JobRunState":
        validate_job_transition(self.status, target, message)
        return replace(self, status=target, **changes)

    def claim(self, now: datetime) -> "JobRunState":
        """PENDING -> PROCESSING when a worker takes the job."""
        return self._move(
            JobStatus.PROCESSING,
            progress=0,
            current_stage=INITIAL_STAGE,
            started_at=now,
            completed_at=None,
        )

    def advance(self, progress: int, current_stage: str | None) -> "JobRunState":
        """
        Record stage progress while PROCESSING.

        Progress is clamped to 0-100 and never lowered within a run.
        """
        clamped = max(0, min(100, int(progress)))
        return self._move(
            JobStatus.PROCESSING,
            progress=max(self.progress, clamped),
            current_stage=current_stage,
        )

    def complete(self, output_record_count: int, pii_detected_count: int, now: datetime) -> "JobRunState":
        """PROCESSING -> COMPLETED with the run's result counts."""
        return self._move(
            JobStatus.COMPLETED,
            progress=100,
            current_stage=None,
            output_record_count=output_record_count,
            pii_detected_count=pii_detected_count,
            completed_at=now,
        )

    def fail(self, error_message: str, now: datetime) -> "JobRunState":
        """PROCESSING -> FAILED, keeping the stage that failed."""
        return self._move(
            JobStatus.FAILED,
            error_message=error_message,
            completed_at=now,
        )

    def cancel(self, now: datetime) -> "JobRunState":
        """PENDING/PROCESSING -> CANCELLED."""
        return self._move(
            JobStatus.CANCELLED,
            "Only pending or processing jobs can be cancelled",
            completed_at=now,
        )

    def reset_for_retry(self) -> "JobRunState":
        """FAILED -> PENDING with every run-scoped field cleared."""
        return self._move(
            JobStatus.PENDING,
            "Only failed jobs can be retried",
            progress=0,
            current_stage=None,
            error_message=None,
            output_record_count=None,
            pii_detected_count=None,
            started_at=None,
            completed_at=None,
        )

    def as_update(self) -> dict[str, Any]:
        """Column values for a conditional write of this state."""
        return {
            "status": self.status,
            "progress": self.progress,
            "current_stage": self.current_stage,
            "error_message": self.error_message,
            "output_record_count": self.output_record_count,
            "pii_detected_count": self.pii_detected_count,
            "started_at": self.started_at,
            "completed_at": self.completed_at,
        }
