"""
Event pipeline orchestration for reforming a stream of events.

Coordinates the flow: source lines → events → reformer → sink
"""

import json
import logging
import time
from collections.abc import Callable, Iterable
from typing import Any

from pydantic import ValidationError

from record_reformer.core.models import Event
from record_reformer.core.reform import RecordReformer
from record_reformer.observability.metrics import MetricsCollector

logger = logging.getLogger(__name__)


class InvalidEventError(ValueError):
    """Raised when an input line cannot be turned into an Event."""
    pass


def parse_event_line(line: str) -> Event:
    """
    Parse one JSON line into an Event.

    Expected shape: {"tag": "app.web", "time": 1265000645, "record": {...}}

    Raises:
        InvalidEventError: If the line is not valid JSON or not an event
    """
    try:
        payload = json.loads(line)
    except json.JSONDecodeError as e:
        raise InvalidEventError(f"not valid JSON: {e}") from e

    if not isinstance(payload, dict):
        raise InvalidEventError(f"expected a JSON object, got {type(payload).__name__}")

    try:
        return Event.model_validate(payload)
    except ValidationError as e:
        raise InvalidEventError(f"not a valid event: {e.error_count()} error(s)") from e


def event_to_json(event: Event) -> str:
    """Serialize an event as one JSON line (datetimes become ISO strings)."""
    return json.dumps(event.model_dump(mode="json"), ensure_ascii=False)


class ReformPipeline:
    """
    Runs a RecordReformer over a stream of events.

    Emitted events go to the sink; suppressed events are dropped. Malformed
    input lines are logged and counted but never stop the stream.
    """

    def __init__(self, reformer: RecordReformer, metrics: MetricsCollector | None = None):
        """
        Initialize the pipeline.

        Args:
            reformer: Configured RecordReformer
            metrics: Metrics collector (a new one if None)
        """
        self.reformer = reformer
        self.metrics = metrics or MetricsCollector()

        self.emitted_count = 0
        self.suppressed_count = 0
        self.failed_field_count = 0
        self.invalid_line_count = 0

    def process_events(self, events: Iterable[Event], sink: Callable[[Event], Any]) -> None:
        """
        Reform events and forward the emitted ones to the sink.

        Args:
            events: Incoming events
            sink: Called once per emitted event
        """
        start = time.time()
        for event in events:
            self._handle(event, sink)
        self.metrics.record_batch(time.time() - start, mode="stream")

    def process_lines(self, lines: Iterable[str], sink: Callable[[Event], Any]) -> None:
        """
        Parse JSON lines into events, reform them and forward the results.

        Blank lines are skipped.

        Args:
            lines: JSON lines, one event each
            sink: Called once per emitted event
        """
        start = time.time()
        for line_number, line in enumerate(lines, start=1):
            if not line.strip():
                continue
            try:
                event = parse_event_line(line)
            except InvalidEventError as e:
                logger.error(f"Skipping line {line_number}: {e}", extra={"line_number": line_number})
                self.invalid_line_count += 1
                self.metrics.record_invalid_input()
                continue
            self._handle(event, sink)
        self.metrics.record_batch(time.time() - start, mode="stream")

    def _handle(self, event: Event, sink: Callable[[Event], Any]) -> None:
        result = self.reformer.reform(event)

        self.failed_field_count += len(result.failed_fields)
        self.metrics.record_result(result.emitted, result.failed_fields)

        if result.event is None:
            self.suppressed_count += 1
            return

        self.emitted_count += 1
        sink(result.event)

    def get_metrics(self) -> dict[str, int]:
        """
        Get pipeline counters.

        Returns:
            Dictionary of counters
        """
        return {
            "emitted": self.emitted_count,
            "suppressed": self.suppressed_count,
            "failed_fields": self.failed_field_count,
            "invalid_lines": self.invalid_line_count,
        }
