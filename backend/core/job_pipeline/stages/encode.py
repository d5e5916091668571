"""
Encode stage: serialise records in the requested output format and store them.

Dependencies: backend.boundary.storage
System role: Final stage of the processing pipeline
"""

import asyncio
import csv
import io
import json
import logging
import re
from dataclasses import dataclass
from typing import Any

from backend.boundary.db.models import OutputFormat
from backend.core.exceptions import StageExecutionError, StorageError
from backend.core.job_pipeline.stages.base import StageContext, StageOutcome

logger = logging.getLogger(__name__)

CONTENT_TYPES = {
    OutputFormat.JSON: "application/json",
    OutputFormat.JSONL: "application/x-ndjson",
    OutputFormat.CSV: "text/csv",
}


@dataclass(frozen=True)
class EncodedDataset:
    """Location and size of a written dataset file."""

    file_path: str
    file_size: int
    record_count: int
    format: OutputFormat


def slugify(name: str) -> str:
    """Reduce a dataset name to a safe file name stem."""
    slug = re.sub(r"[^A-Za-z0-9._-]+", "-", name).strip("-.")
    return slug[:120] or "dataset"


def dataset_key(context: StageContext) -> str:
    """Storage key for a job's output file."""
    job = context.job
    extension = job.output_format.value
    return (
        f"{job.organisation_id}/{job.project_id}/datasets/{job.id}/"
        f"{slugify(job.output_name)}.{extension}"
    )


def encode_records(records: list[dict[str, Any]], output_format: OutputFormat) -> bytes:
    """
    Serialise records.

    CSV columns are the union of keys in first-seen order; nested values are
    written as JSON text.
    """
    if output_format == OutputFormat.JSON:
        return json.dumps(records, indent=2, ensure_ascii=False, default=str).encode("utf-8")

    if output_format == OutputFormat.JSONL:
        lines = [json.dumps(r, ensure_ascii=False, default=str) for r in records]
        return ("\n".join(lines) + ("\n" if lines else "")).encode("utf-8")

    columns = list(dict.fromkeys(key for record in records for key in record))
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=columns, extrasaction="ignore")
    writer.writeheader()
    for record in records:
        writer.writerow({
            key: json.dumps(value, ensure_ascii=False, default=str)
            if isinstance(value, (dict, list))
            else value
            for key, value in record.items()
        })
    return buffer.getvalue().encode("utf-8")


class EncodeStage:
    """Write the processed records to dataset storage."""

    name = "encode"

    async def execute(self, context: StageContext) -> StageOutcome:
        records: list[dict[str, Any]] = context.artifact or []
        output_format = OutputFormat(context.job.output_format)
        payload = encode_records(records, output_format)
        key = dataset_key(context)

        try:
            size = await asyncio.to_thread(
                context.storage.write_bytes, key, payload, CONTENT_TYPES[output_format]
            )
        except StorageError as e:
            raise StageExecutionError(e.message, stage=self.name, details=e.details) from e

        logger.info(
            f"{__name__}:execute - Wrote {len(records)} records ({size} bytes) to {key}",
            extra={"job_id": str(context.job.id)},
        )
        await context.report_progress(1.0)
        return StageOutcome(
            artifact=EncodedDataset(
                file_path=key,
                file_size=size,
                record_count=len(records),
                format=output_format,
            ),
            records_processed=len(records),
        )
