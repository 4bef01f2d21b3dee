"""
Reform integration for Spark Structured Streaming.

Adapts RecordReformer to micro-batches delivered through foreachBatch.
"""

import logging
import time
from collections.abc import Callable
from typing import Any

from pydantic import ValidationError
from pyspark.sql import DataFrame

from record_reformer.core.models import Event
from record_reformer.core.reform import RecordReformer
from record_reformer.observability.metrics import MetricsCollector

logger = logging.getLogger(__name__)


def row_to_event(
    row_dict: dict[str, Any],
    tag_column: str = "tag",
    time_column: str = "time",
    record_column: str | None = None,
) -> Event:
    """
    Build an Event from a row dictionary.

    With record_column set, that column holds the record; otherwise every
    column other than the tag and time columns is a record field.

    Raises:
        ValidationError: If the row does not form a valid event
    """
    if record_column:
        record = row_dict.get(record_column) or {}
    else:
        record = {k: v for k, v in row_dict.items() if k not in (tag_column, time_column)}

    return Event(tag=row_dict.get(tag_column), time=row_dict.get(time_column), record=record)


def event_to_row(
    event: Event,
    tag_column: str = "tag",
    time_column: str = "time",
    record_column: str | None = None,
) -> dict[str, Any]:
    """Inverse of row_to_event."""
    if record_column:
        return {tag_column: event.tag, time_column: event.time, record_column: dict(event.record)}
    return {**event.record, tag_column: event.tag, time_column: event.time}


def create_reform_foreach_batch(
    reformer: RecordReformer,
    metrics: MetricsCollector | None = None,
    tag_column: str = "tag",
    time_column: str = "time",
    record_column: str | None = None,
) -> Callable[[DataFrame, int], list[dict[str, Any]]]:
    """
    Create a foreachBatch function that reforms micro-batches.

    Args:
        reformer: Configured RecordReformer
        metrics: Metrics collector (a new one if None)
        tag_column: Column holding the event tag
        time_column: Column holding the event time
        record_column: Column holding the record (None: all other columns)

    Returns:
        Function compatible with foreachBatch, returning the emitted rows
    """
    metrics = metrics or MetricsCollector()

    def reform_batch(batch_df: DataFrame, batch_id: int) -> list[dict[str, Any]]:
        """
        Reform a micro-batch.

        Args:
            batch_df: Batch DataFrame
            batch_id: Batch identifier

        Returns:
            Emitted rows as dictionaries
        """
        start = time.time()
        rows = batch_df.collect()
        logger.info(f"Reforming batch {batch_id} with {len(rows)} rows")

        emitted_rows = []
        suppressed = 0
        invalid = 0

        for row in rows:
            try:
                event = row_to_event(row.asDict(recursive=True), tag_column, time_column, record_column)
            except ValidationError as e:
                logger.error(f"Skipping invalid row in batch {batch_id}: {e.error_count()} error(s)")
                invalid += 1
                continue

            result = reformer.reform(event)
            metrics.record_result(result.emitted, result.failed_fields)

            if result.event is None:
                suppressed += 1
                continue
            emitted_rows.append(event_to_row(result.event, tag_column, time_column, record_column))

        metrics.record_invalid_input(invalid)
        metrics.record_batch(time.time() - start, mode="spark")

        logger.info(
            f"Batch {batch_id} reform complete: {len(emitted_rows)} emitted, "
            f"{suppressed} suppressed, {invalid} invalid"
        )

        return emitted_rows

    return reform_batch
