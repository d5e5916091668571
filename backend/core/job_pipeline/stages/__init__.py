"""
Processing pipeline stages.

Exports: PipelineStage, StageContext, StageOutcome, JobSnapshot and the four
default stages, plus default_stages() giving them in run order.
"""

from .base import JobSnapshot, PipelineStage, ProgressCallback, StageContext, StageOutcome
from .encode import EncodedDataset, EncodeStage
from .filter import FilterStage
from .ingest import IngestStage
from .map_redact import MapRedactStage
from .pii import PiiRedactor


def default_stages() -> list[PipelineStage]:
    """Stages in run order: ingest, map_redact, filter, encode."""
    return [IngestStage(), MapRedactStage(), FilterStage(), EncodeStage()]


__all__ = [
    "EncodedDataset",
    "EncodeStage",
    "FilterStage",
    "IngestStage",
    "JobSnapshot",
    "MapRedactStage",
    "PiiRedactor",
    "PipelineStage",
    "ProgressCallback",
    "StageContext",
    "StageOutcome",
    "default_stages",
]
