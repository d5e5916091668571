"""
Unit tests for progress accounting and ETA estimation.
"""

import uuid
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

from backend.boundary.db.models import JobStatus
from backend.core.job_pipeline.progress import (
    build_progress_snapshot,
    estimate_time_remaining,
    stage_progress,
)

NOW = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


def make_job(**overrides):
    """Stand-in for a loaded job row."""
    values = dict(
        id=uuid.uuid4(),
        status=JobStatus.PROCESSING,
        current_stage="filter",
        progress=50,
        input_record_count=200,
        started_at=NOW - timedelta(seconds=60),
        pii_detected_count=None,
    )
    values.update(overrides)
    return SimpleNamespace(**values)


class TestStageProgress:
    """Test suite for stage_progress."""

    def test_stage_boundaries_for_four_stages(self):
        assert [stage_progress(i, 4, 0.0) for i in range(4)] == [0, 25, 50, 75]
        assert stage_progress(3, 4, 1.0) == 100

    def test_partial_stage(self):
        assert stage_progress(1, 4, 0.5) == 38

    def test_fraction_is_clamped(self):
        assert stage_progress(0, 4, 2.0) == 25
        assert stage_progress(2, 4, -1.0) == 50

    def test_no_stages_is_complete(self):
        assert stage_progress(0, 0) == 100


class TestEstimateTimeRemaining:
    """Test suite for estimate_time_remaining."""

    def test_linear_extrapolation(self):
        started = NOW - timedelta(seconds=30)

        assert estimate_time_remaining(JobStatus.PROCESSING, 25, started, NOW) == 90

    def test_naive_start_time_is_treated_as_utc(self):
        started = (NOW - timedelta(seconds=50)).replace(tzinfo=None)

        assert estimate_time_remaining(JobStatus.PROCESSING, 50, started, NOW) == 50

    def test_none_without_progress(self):
        assert estimate_time_remaining(JobStatus.PROCESSING, 0, NOW, NOW) is None

    def test_none_when_not_processing(self):
        started = NOW - timedelta(seconds=30)

        assert estimate_time_remaining(JobStatus.PENDING, 0, None, NOW) is None
        assert estimate_time_remaining(JobStatus.COMPLETED, 100, started, NOW) is None
        assert estimate_time_remaining(JobStatus.FAILED, 50, started, NOW) is None


class TestBuildProgressSnapshot:
    """Test suite for build_progress_snapshot."""

    def test_processing_job_snapshot(self):
        job = make_job()

        snapshot = build_progress_snapshot(job, NOW)

        assert snapshot.job_id == job.id
        assert snapshot.overall_progress == 50
        assert snapshot.processed_records == 100
        assert snapshot.total_records == 200
        assert snapshot.current_stage == "filter"
        assert snapshot.estimated_time_remaining == 60

    def test_completed_job_has_no_eta(self):
        job = make_job(status=JobStatus.COMPLETED, progress=100, current_stage=None, pii_detected_count=7)

        snapshot = build_progress_snapshot(job, NOW)

        assert snapshot.processed_records == 200
        assert snapshot.estimated_time_remaining is None
        assert snapshot.pii_detected_count == 7

    def test_pending_job_with_unknown_record_count(self):
        job = make_job(status=JobStatus.PENDING, progress=0, input_record_count=0, started_at=None)

        snapshot = build_progress_snapshot(job, NOW)

        assert snapshot.processed_records == 0
        assert snapshot.total_records == 0
        assert snapshot.estimated_time_remaining is None

    def test_repeated_reads_differ_only_in_eta(self):
        job = make_job()

        first = build_progress_snapshot(job, NOW)
        again = build_progress_snapshot(job, NOW)
        later = build_progress_snapshot(job, NOW + timedelta(seconds=10))

        assert first == again
        assert later.estimated_time_remaining != first.estimated_time_remaining
        assert replace(later, estimated_time_remaining=None) == replace(
            first, estimated_time_remaining=None
        )

    def test_half_way_through_hundred_records(self):
        job = make_job(input_record_count=100, progress=50)

        assert build_progress_snapshot(job, NOW).processed_records == 50
