"""
Filter stage: keep records matching the mapping's filter rules.

Rules compare the string form of a mapped field (dotted paths reach into
metadata). A mapping with no filter config, or with no rules, keeps every
record.

Dependencies: pydantic
System role: Third stage of the processing pipeline
"""

import logging
import re
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from backend.core.exceptions import StageExecutionError
from backend.core.job_pipeline.stages.base import StageContext, StageOutcome, report_every
from backend.core.job_pipeline.stages.map_redact import resolve_field
from backend.models.schema_mapping import FilterConfig, FilterLogic, FilterOperator, FilterRule

logger = logging.getLogger(__name__)


def rule_matches(record: dict[str, Any], rule: FilterRule, pattern: re.Pattern[str] | None = None) -> bool:
    """Evaluate one rule against a mapped record. Missing fields never match."""
    value = resolve_field(record, rule.field)
    if value is None:
        return False
    text = value if isinstance(value, str) else str(value)

    if rule.operator == FilterOperator.EQUALS:
        return text == rule.value
    if rule.operator == FilterOperator.CONTAINS:
        return rule.value in text
    if rule.operator == FilterOperator.STARTS_WITH:
        return text.startswith(rule.value)
    return (pattern or re.compile(rule.value)).search(text) is not None


def record_matches(
    record: dict[str, Any],
    config: FilterConfig,
    patterns: dict[int, re.Pattern[str]] | None = None,
) -> bool:
    """Combine rule results with the config's AND/OR logic."""
    if not config.rules:
        return True
    patterns = patterns or {}
    results = (
        rule_matches(record, rule, patterns.get(index))
        for index, rule in enumerate(config.rules)
    )
    if config.logic == FilterLogic.OR:
        return any(results)
    return all(results)


class FilterStage:
    """Drop records that fail the filter rules."""

    name = "filter"

    async def execute(self, context: StageContext) -> StageOutcome:
        records: list[dict[str, Any]] = context.artifact or []
        raw_config = context.schema_mapping.filter_config
        if not raw_config:
            await context.report_progress(1.0)
            return StageOutcome(artifact=records, records_processed=len(records))

        try:
            config = FilterConfig.model_validate(raw_config)
        except PydanticValidationError as e:
            raise StageExecutionError(
                f"Invalid filter configuration: {e.error_count()} error(s)",
                stage=self.name,
            ) from e

        patterns: dict[int, re.Pattern[str]] = {}
        for index, rule in enumerate(config.rules):
            if rule.operator == FilterOperator.REGEX:
                try:
                    patterns[index] = re.compile(rule.value)
                except re.error as e:
                    raise StageExecutionError(
                        f"Invalid regex in filter rule for '{rule.field}': {e}",
                        stage=self.name,
                    ) from e

        kept: list[dict[str, Any]] = []
        total = len(records)
        for index, record in enumerate(records, start=1):
            if record_matches(record, config, patterns):
                kept.append(record)
            await report_every(context, index, total)

        logger.info(
            f"{__name__}:execute - Kept {len(kept)} of {total} records",
            extra={"job_id": str(context.job.id)},
        )
        return StageOutcome(artifact=kept, records_processed=total)
