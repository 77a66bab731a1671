"""Replay of JSON-lines checkpoint event logs into a tracker.

Each line of an event log is one JSON object tagged by ``event``:

    {"event": "triggered", "checkpoint_id": 1, "trigger_timestamp": 100, "num_subtasks": 4}
    {"event": "acknowledged", "checkpoint_id": 1, "ack_timestamp": 150, "state_size": 250}
    {"event": "completed", "checkpoint_id": 1, "state_size": 1000, "external_path": "s3://cp/1"}
    {"event": "failed", "checkpoint_id": 2, "failure_timestamp": 250, "failure_message": "timeout"}
    {"event": "restored", "checkpoint_id": 1, "restore_timestamp": 900, "savepoint": true}
    {"event": "discarded", "checkpoint_id": 1}

Lines are external input: they are validated with Pydantic at this
boundary and converted to the frozen event contracts before reaching the
tracker. A line that fails validation, or that the tracker rejects, is
logged and skipped; the rest of the log still applies.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Annotated, Literal

import structlog
from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from checkpoint_stats.contracts.enums import CheckpointType
from checkpoint_stats.contracts.events import (
    CheckpointAcknowledged,
    CheckpointCompleted,
    CheckpointDiscarded,
    CheckpointEvent,
    CheckpointFailed,
    CheckpointRestored,
    CheckpointTriggered,
)
from checkpoint_stats.contracts.records import CheckpointProperties
from checkpoint_stats.stats.errors import InvalidCheckpointEventError
from checkpoint_stats.stats.tracker import CheckpointStatsTracker

logger = structlog.get_logger(__name__)


class _EventLine(BaseModel):
    model_config = {"frozen": True, "extra": "forbid"}

    checkpoint_id: int = Field(ge=0)


class _PropertiesMixin(BaseModel):
    savepoint: bool = Field(default=False, description="Savepoint rather than periodic checkpoint")
    forced: bool | None = Field(default=None, description="Defaults to True for savepoints")

    def to_properties(self) -> CheckpointProperties:
        checkpoint_type = CheckpointType.SAVEPOINT if self.savepoint else CheckpointType.CHECKPOINT
        forced = self.savepoint if self.forced is None else self.forced
        return CheckpointProperties(checkpoint_type=checkpoint_type, forced=forced)


class TriggeredLine(_EventLine, _PropertiesMixin):
    event: Literal["triggered"]
    trigger_timestamp: int
    num_subtasks: int

    def to_event(self) -> CheckpointEvent:
        return CheckpointTriggered(
            checkpoint_id=self.checkpoint_id,
            trigger_timestamp=self.trigger_timestamp,
            num_subtasks=self.num_subtasks,
            properties=self.to_properties(),
        )


class AcknowledgedLine(_EventLine):
    event: Literal["acknowledged"]
    ack_timestamp: int
    state_size: int = 0
    alignment_buffered: int = 0

    def to_event(self) -> CheckpointEvent:
        return CheckpointAcknowledged(
            checkpoint_id=self.checkpoint_id,
            ack_timestamp=self.ack_timestamp,
            state_size=self.state_size,
            alignment_buffered=self.alignment_buffered,
        )


class CompletedLine(_EventLine):
    event: Literal["completed"]
    state_size: int
    alignment_buffered: int = 0
    external_path: str | None = None

    def to_event(self) -> CheckpointEvent:
        return CheckpointCompleted(
            checkpoint_id=self.checkpoint_id,
            state_size=self.state_size,
            alignment_buffered=self.alignment_buffered,
            external_path=self.external_path,
        )


class FailedLine(_EventLine):
    event: Literal["failed"]
    failure_timestamp: int
    failure_message: str | None = None

    def to_event(self) -> CheckpointEvent:
        return CheckpointFailed(
            checkpoint_id=self.checkpoint_id,
            failure_timestamp=self.failure_timestamp,
            failure_message=self.failure_message,
        )


class RestoredLine(_EventLine, _PropertiesMixin):
    event: Literal["restored"]
    restore_timestamp: int
    external_path: str | None = None

    def to_event(self) -> CheckpointEvent:
        return CheckpointRestored(
            checkpoint_id=self.checkpoint_id,
            restore_timestamp=self.restore_timestamp,
            properties=self.to_properties(),
            external_path=self.external_path,
        )


class DiscardedLine(_EventLine):
    event: Literal["discarded"]

    def to_event(self) -> CheckpointEvent:
        return CheckpointDiscarded(checkpoint_id=self.checkpoint_id)


EventLine = Annotated[
    TriggeredLine | AcknowledgedLine | CompletedLine | FailedLine | RestoredLine | DiscardedLine,
    Field(discriminator="event"),
]

_EVENT_LINE_ADAPTER: TypeAdapter[EventLine] = TypeAdapter(EventLine)


def parse_event_line(line: str) -> CheckpointEvent:
    """Parse one JSON line into a lifecycle event.

    Raises:
        pydantic.ValidationError: If the line is not a valid event object.
    """
    return _EVENT_LINE_ADAPTER.validate_json(line).to_event()


@dataclass
class ReplayResult:
    """Outcome of replaying an event log."""

    applied: int = 0
    ignored: int = 0
    rejected: list[tuple[int, str]] = field(default_factory=list)

    @property
    def total(self) -> int:
        return self.applied + self.ignored + len(self.rejected)


def replay_events(lines: Iterable[str], tracker: CheckpointStatsTracker) -> ReplayResult:
    """Apply every event line to tracker in order.

    Blank lines are skipped. Line numbers in ``rejected`` are 1-based.
    """
    result = ReplayResult()
    for line_number, line in enumerate(lines, start=1):
        if not line.strip():
            continue
        try:
            event = parse_event_line(line)
        except ValidationError as e:
            logger.warning("Skipping unparseable event line", line=line_number, errors=e.error_count())
            result.rejected.append((line_number, str(e)))
            continue

        try:
            applied = tracker.handle_event(event)
        except InvalidCheckpointEventError as e:
            logger.warning(
                "Tracker rejected event",
                line=line_number,
                checkpoint_id=e.checkpoint_id,
                reason=e.reason,
            )
            result.rejected.append((line_number, str(e)))
            continue

        if applied:
            result.applied += 1
        else:
            result.ignored += 1

    logger.debug(
        "Event log replayed",
        applied=result.applied,
        ignored=result.ignored,
        rejected=len(result.rejected),
    )
    return result
