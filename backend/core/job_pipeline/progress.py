"""
Progress accounting for processing jobs.

Maps stage completion onto an overall percentage and derives the progress
snapshot served to clients (processed record estimate and ETA).

Dependencies: backend.boundary.db.models
System role: Progress and ETA derivation
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from uuid import UUID

from backend.boundary.db.models.job_model import JobStatus, ProcessingJobModel


@dataclass(frozen=True)
class ProgressSnapshot:
    """Point-in-time view of a job's progress."""

    job_id: UUID
    status: JobStatus
    current_stage: str | None
    overall_progress: int
    processed_records: int
    total_records: int
    estimated_time_remaining: int | None
    pii_detected_count: int | None


def stage_progress(stage_index: int, total_stages: int, fraction: float = 1.0) -> int:
    """
    Overall percentage for a point inside the stage sequence.

    Args:
        stage_index: Zero-based index of the stage being reported
        total_stages: Number of stages in the run
        fraction: Share of the stage completed (0.0-1.0)

    Returns:
        Integer percentage 0-100
    """
    if total_stages <= 0:
        return 100
    fraction = max(0.0, min(1.0, fraction))
    return max(0, min(100, round(100 * (stage_index + fraction) / total_stages)))


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes for timezone-aware columns
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def estimate_time_remaining(
    status: JobStatus,
    progress: int,
    started_at: datetime | None,
    now: datetime,
) -> int | None:
    """
    Seconds left for a running job, extrapolated linearly from elapsed time.

    Returns None unless the job is processing, has made progress and has a
    start time.
    """
    if status != JobStatus.PROCESSING or progress <= 0 or started_at is None:
        return None
    elapsed = (_as_utc(now) - _as_utc(started_at)).total_seconds()
    total = elapsed / (progress / 100)
    return max(0, round(total - elapsed))


def build_progress_snapshot(job: ProcessingJobModel, now: datetime) -> ProgressSnapshot:
    """
    Build the progress snapshot for a job.

    Args:
        job: Loaded job row
        now: Reference time for the ETA

    Returns:
        ProgressSnapshot
    """
    total = job.input_record_count or 0
    return ProgressSnapshot(
        job_id=job.id,
        status=job.status,
        current_stage=job.current_stage,
        overall_progress=job.progress,
        processed_records=round(total * job.progress / 100),
        total_records=total,
        estimated_time_remaining=estimate_time_remaining(
            job.status, job.progress, job.started_at, now
        ),
        pii_detected_count=job.pii_detected_count,
    )
