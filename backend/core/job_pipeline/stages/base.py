"""
Stage contract for the processing pipeline.

A stage is any object with a `name` and an async `execute(context)` that
returns a StageOutcome. The runner threads each outcome's artifact into the
next stage's context.

Dependencies: backend.boundary.db.models, backend.boundary.storage, backend.configs
System role: Pipeline stage interface
"""

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Protocol
from uuid import UUID

from backend.boundary.db.models import (
    DataSourceModel,
    OutputFormat,
    ProcessingJobModel,
    SchemaMappingModel,
)
from backend.boundary.storage import DatasetStorage
from backend.configs.pipeline import PipelineSettings

ProgressCallback = Callable[[float], Awaitable[None]]


async def _ignore_progress(fraction: float) -> None:
    return None


@dataclass(frozen=True)
class JobSnapshot:
    """Job fields a stage may read. Taken once when the run is claimed."""

    id: UUID
    organisation_id: UUID
    project_id: UUID
    output_format: OutputFormat
    output_name: str
    input_record_count: int

    @classmethod
    def from_model(cls, job: ProcessingJobModel) -> "JobSnapshot":
        return cls(
            id=job.id,
            organisation_id=job.organisation_id,
            project_id=job.project_id,
            output_format=job.output_format,
            output_name=job.output_name or f"job-{job.id}",
            input_record_count=job.input_record_count,
        )


@dataclass(frozen=True)
class StageContext:
    """
    Everything a stage needs to run.

    Attributes:
        job: Snapshot of the job being run
        data_source: Source the records come from
        schema_mapping: Mapping, PII and filter configuration
        storage: Dataset storage backend
        settings: Pipeline settings
        artifact: Output of the previous stage (None for the first)
        report_progress: Awaitable callback taking the stage's completed share
    """

    job: JobSnapshot
    data_source: DataSourceModel
    schema_mapping: SchemaMappingModel
    storage: DatasetStorage
    settings: PipelineSettings
    artifact: Any = None
    report_progress: ProgressCallback = field(default=_ignore_progress)


@dataclass(frozen=True)
class StageOutcome:
    """Result of one stage: the artifact for the next stage plus counts."""

    artifact: Any
    records_processed: int
    pii_findings: int | None = None


class PipelineStage(Protocol):
    """A named, independently failing unit of the processing pipeline."""

    name: str

    async def execute(self, context: StageContext) -> StageOutcome: ...


async def report_every(
    context: StageContext,
    done: int,
    total: int,
) -> None:
    """Report intra-stage progress every `progress_report_every` records."""
    every = max(1, context.settings.progress_report_every)
    if total and done % every == 0 and done < total:
        await context.report_progress(done / total)
