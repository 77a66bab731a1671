"""Checkpoint lifecycle events.

These are the facts the checkpoint coordinator reports to the stats
tracker. Each event maps onto exactly one tracker operation (see
``CheckpointStatsTracker.handle_event``). Events are immutable so they can
be queued or replayed from a log without defensive copies.

Timestamps are milliseconds since the epoch, sizes are bytes.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from checkpoint_stats.contracts.records import CheckpointProperties


@dataclass(frozen=True, slots=True)
class CheckpointEvent:
    """Base class for all lifecycle events."""

    checkpoint_id: int


@dataclass(frozen=True, slots=True)
class CheckpointTriggered(CheckpointEvent):
    """The coordinator started a new checkpoint attempt."""

    trigger_timestamp: int
    num_subtasks: int
    properties: CheckpointProperties = field(default_factory=CheckpointProperties.for_checkpoint)


@dataclass(frozen=True, slots=True)
class CheckpointAcknowledged(CheckpointEvent):
    """One subtask acknowledged the checkpoint.

    Attributes:
        ack_timestamp: When the subtask acknowledged
        state_size: Bytes of state the subtask persisted
        alignment_buffered: Bytes the subtask buffered while aligning barriers
    """

    ack_timestamp: int
    state_size: int = 0
    alignment_buffered: int = 0


@dataclass(frozen=True, slots=True)
class CheckpointCompleted(CheckpointEvent):
    """All subtasks acknowledged and the checkpoint was finalized."""

    state_size: int
    alignment_buffered: int = 0
    external_path: str | None = None


@dataclass(frozen=True, slots=True)
class CheckpointFailed(CheckpointEvent):
    """The checkpoint was aborted before completion."""

    failure_timestamp: int
    failure_message: str | None = None


@dataclass(frozen=True, slots=True)
class CheckpointRestored(CheckpointEvent):
    """The job resumed from a checkpoint or savepoint."""

    restore_timestamp: int
    properties: CheckpointProperties = field(default_factory=CheckpointProperties.for_checkpoint)
    external_path: str | None = None


@dataclass(frozen=True, slots=True)
class CheckpointDiscarded(CheckpointEvent):
    """A completed checkpoint was superseded and its data released."""
