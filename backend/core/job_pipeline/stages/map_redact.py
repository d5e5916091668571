"""
Map + redact stage: project raw records onto the mapping config and redact PII.

Source fields are looked up by exact key first, then as a dotted path into
nested objects. Identifier and timestamp fields are carried through
unredacted; every other string value, including metadata values, is passed
through the PII redactor.

Dependencies: pydantic, backend.core.job_pipeline.stages.pii
System role: Second stage of the processing pipeline
"""

import logging
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from backend.core.exceptions import StageExecutionError
from backend.core.job_pipeline.stages.base import StageContext, StageOutcome, report_every
from backend.core.job_pipeline.stages.pii import PiiRedactor
from backend.models.schema_mapping import MappingConfig, PiiConfig

logger = logging.getLogger(__name__)

UNREDACTED_FIELDS = frozenset({"message_id", "thread_id", "timestamp"})
_MISSING = object()


def resolve_field(record: dict[str, Any], path: str) -> Any:
    """
    Look up a source field in a raw record.

    Args:
        record: Raw record
        path: Key, or dotted path into nested objects

    Returns:
        The value, or None if absent
    """
    if path in record:
        return record[path]
    current: Any = record
    for part in path.split("."):
        if isinstance(current, dict):
            current = current.get(part, _MISSING)
        elif isinstance(current, list) and part.isdigit() and int(part) < len(current):
            current = current[int(part)]
        else:
            return None
        if current is _MISSING:
            return None
    return current


def map_record(record: dict[str, Any], mapping: MappingConfig) -> dict[str, Any]:
    """Project a raw record onto the target fields of a mapping."""
    mapped: dict[str, Any] = {
        "message_id": resolve_field(record, mapping.message_id),
        "role": resolve_field(record, mapping.role),
        "message_text": resolve_field(record, mapping.message_text),
        "timestamp": resolve_field(record, mapping.timestamp),
    }
    if mapping.thread_id:
        mapped["thread_id"] = resolve_field(record, mapping.thread_id)
    if mapping.metadata:
        mapped["metadata"] = {
            key: resolve_field(record, source) for key, source in mapping.metadata.items()
        }
    return mapped


class MapRedactStage:
    """Apply the schema mapping and PII redaction to each record."""

    name = "map_redact"

    async def execute(self, context: StageContext) -> StageOutcome:
        records: list[dict[str, Any]] = context.artifact or []
        mapping_row = context.schema_mapping
        try:
            mapping = MappingConfig.model_validate(mapping_row.mapping_config or {})
            pii_config = PiiConfig.model_validate(mapping_row.pii_config or {})
        except PydanticValidationError as e:
            raise StageExecutionError(
                f"Invalid schema mapping configuration: {e.error_count()} error(s)",
                stage=self.name,
                details={"errors": e.errors(include_url=False, include_context=False)},
            ) from e

        redactor = PiiRedactor(
            pii_config,
            hash_salt=context.settings.hash_salt,
            hash_length=context.settings.hash_length,
        )

        output: list[dict[str, Any]] = []
        findings = 0
        total = len(records)
        for index, record in enumerate(records, start=1):
            mapped, found = self._redact_record(map_record(record, mapping), redactor)
            output.append(mapped)
            findings += found
            await report_every(context, index, total)

        logger.info(
            f"{__name__}:execute - Mapped {total} records, {findings} PII findings",
            extra={"job_id": str(context.job.id)},
        )
        return StageOutcome(artifact=output, records_processed=total, pii_findings=findings)

    def _redact_record(
        self, mapped: dict[str, Any], redactor: PiiRedactor
    ) -> tuple[dict[str, Any], int]:
        findings = 0
        for key, value in mapped.items():
            if key in UNREDACTED_FIELDS:
                continue
            if isinstance(value, str):
                mapped[key], count = redactor.redact(value)
                findings += count
            elif isinstance(value, dict):
                for meta_key, meta_value in value.items():
                    if isinstance(meta_value, str):
                        value[meta_key], count = redactor.redact(meta_value)
                        findings += count
        return mapped, findings
