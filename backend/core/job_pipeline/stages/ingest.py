"""
Ingest stage: materialise raw records from the data source file.

Accepted encodings: JSON (array of objects, or an object with a "records"
array), JSON Lines, and CSV with a header row. The encoding comes from the
data source's format, falling back to the file extension.

Dependencies: backend.boundary.storage
System role: First stage of the processing pipeline
"""

import asyncio
import csv
import io
import json
import logging
from pathlib import PurePosixPath
from typing import Any

from backend.core.exceptions import StageExecutionError, StorageError
from backend.core.job_pipeline.stages.base import StageContext, StageOutcome

logger = logging.getLogger(__name__)

SUPPORTED_SOURCE_FORMATS = ("json", "jsonl", "csv")


class IngestStage:
    """Read and decode the data source's records."""

    name = "ingest"

    async def execute(self, context: StageContext) -> StageOutcome:
        source = context.data_source
        if not source.file_path:
            raise StageExecutionError("Data source has no stored file", stage=self.name)

        source_format = self._detect_format(source.format, source.file_path)

        try:
            raw = await asyncio.to_thread(context.storage.read_bytes, source.file_path)
        except StorageError as e:
            raise StageExecutionError(e.message, stage=self.name, details=e.details) from e

        records = self.decode(raw, source_format)
        logger.info(
            f"{__name__}:execute - Ingested {len(records)} records",
            extra={"job_id": str(context.job.id), "format": source_format},
        )
        await context.report_progress(1.0)
        return StageOutcome(artifact=records, records_processed=len(records))

    def _detect_format(self, declared: str | None, file_path: str) -> str:
        source_format = (declared or PurePosixPath(file_path).suffix.lstrip(".")).lower()
        if source_format == "ndjson":
            source_format = "jsonl"
        if source_format not in SUPPORTED_SOURCE_FORMATS:
            raise StageExecutionError(
                f"Unsupported data source format: {source_format or 'unknown'}",
                stage=self.name,
            )
        return source_format

    def decode(self, raw: bytes, source_format: str) -> list[dict[str, Any]]:
        """
        Decode raw file content into a list of record dicts.

        Raises:
            StageExecutionError: If the content cannot be decoded
        """
        try:
            text = raw.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise StageExecutionError("Data source is not valid UTF-8", stage=self.name) from e

        if source_format == "csv":
            return [dict(row) for row in csv.DictReader(io.StringIO(text))]

        if source_format == "jsonl":
            records = []
            for line_no, line in enumerate(text.splitlines(), start=1):
                if not line.strip():
                    continue
                try:
                    records.append(json.loads(line))
                except json.JSONDecodeError as e:
                    raise StageExecutionError(
                        f"Invalid JSON on line {line_no}: {e.msg}", stage=self.name
                    ) from e
            return self._require_objects(records)

        try:
            payload = json.loads(text)
        except json.JSONDecodeError as e:
            raise StageExecutionError(f"Invalid JSON: {e.msg}", stage=self.name) from e
        if isinstance(payload, dict) and isinstance(payload.get("records"), list):
            payload = payload["records"]
        if not isinstance(payload, list):
            raise StageExecutionError(
                "JSON data source must be an array or an object with a 'records' array",
                stage=self.name,
            )
        return self._require_objects(payload)

    def _require_objects(self, records: list[Any]) -> list[dict[str, Any]]:
        for index, record in enumerate(records):
            if not isinstance(record, dict):
                raise StageExecutionError(
                    f"Record {index} is not an object", stage=self.name
                )
        return records
