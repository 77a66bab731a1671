"""Checkpoint record contracts.

A checkpoint attempt is described by exactly one ``CheckpointRecord`` at a
time. The record carries the fields every lifecycle state shares and a
``payload`` holding the state-specific part:

- PendingPayload: still collecting acknowledgements (IN_PROGRESS)
- CompletedPayload: all subtasks acknowledged, data persisted
- FailedPayload: aborted before completion

The payload is a discriminated union; consumers dispatch on it with
``match record.payload`` rather than on a class hierarchy of records.

All records are frozen. State changes (an acknowledgement, a transition,
a completed checkpoint being discarded) produce a new record value via
``dataclasses.replace``; values handed out in snapshots never change.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Literal

from checkpoint_stats.contracts.enums import CheckpointStatus, CheckpointType

# Timestamp / size value used when nothing has been observed yet.
UNKNOWN = -1

# Largest integer a canonical JSON report can carry (RFC 8785 / IEEE 754 safe range).
MAX_REPORTED_VALUE = 2**53 - 1


@dataclass(frozen=True, slots=True)
class CheckpointProperties:
    """Flags describing how a checkpoint was triggered."""

    checkpoint_type: CheckpointType = CheckpointType.CHECKPOINT
    forced: bool = False

    @classmethod
    def for_checkpoint(cls) -> CheckpointProperties:
        """Properties of a regular periodic checkpoint."""
        return cls(checkpoint_type=CheckpointType.CHECKPOINT, forced=False)

    @classmethod
    def for_savepoint(cls) -> CheckpointProperties:
        """Properties of a user-triggered savepoint (always forced)."""
        return cls(checkpoint_type=CheckpointType.SAVEPOINT, forced=True)

    @property
    def is_savepoint(self) -> bool:
        return self.checkpoint_type is CheckpointType.SAVEPOINT


# =============================================================================
# State-specific payloads
# =============================================================================


@dataclass(frozen=True, slots=True)
class PendingPayload:
    """Payload of a checkpoint still waiting for acknowledgements."""

    status: Literal[CheckpointStatus.IN_PROGRESS] = field(default=CheckpointStatus.IN_PROGRESS, init=False)


@dataclass(frozen=True, slots=True)
class CompletedPayload:
    """Payload of a completed checkpoint.

    Attributes:
        external_path: Durable storage location, if the checkpoint was persisted externally
        discarded: True once a newer checkpoint superseded this one and its data was released
    """

    external_path: str | None = None
    discarded: bool = False
    status: Literal[CheckpointStatus.COMPLETED] = field(default=CheckpointStatus.COMPLETED, init=False)


@dataclass(frozen=True, slots=True)
class FailedPayload:
    """Payload of a failed checkpoint.

    Attributes:
        failure_timestamp: When the failure was reported (ms since epoch)
        failure_message: Human-readable cause, if one was reported
    """

    failure_timestamp: int
    failure_message: str | None = None
    status: Literal[CheckpointStatus.FAILED] = field(default=CheckpointStatus.FAILED, init=False)


CheckpointPayload = PendingPayload | CompletedPayload | FailedPayload


# =============================================================================
# Records
# =============================================================================


@dataclass(frozen=True, slots=True)
class CheckpointRecord:
    """Immutable fact about one checkpoint attempt.

    Timestamps are milliseconds since the epoch, sizes are bytes.

    Invariants:
    - latest_ack_timestamp is UNKNOWN until the first acknowledgement,
      afterwards >= trigger_timestamp
    - 0 <= num_acknowledged_subtasks <= num_subtasks
    - state_size and alignment_buffered are never negative
    """

    checkpoint_id: int
    trigger_timestamp: int
    properties: CheckpointProperties
    num_subtasks: int
    payload: CheckpointPayload = field(default_factory=PendingPayload)
    latest_ack_timestamp: int = UNKNOWN
    num_acknowledged_subtasks: int = 0
    state_size: int = 0
    alignment_buffered: int = 0

    @property
    def status(self) -> CheckpointStatus:
        return self.payload.status

    @property
    def is_savepoint(self) -> bool:
        return self.properties.is_savepoint

    @property
    def end_to_end_duration(self) -> int:
        """Milliseconds from trigger to the latest acknowledgement, UNKNOWN without acks."""
        if self.latest_ack_timestamp == UNKNOWN:
            return UNKNOWN
        return self.latest_ack_timestamp - self.trigger_timestamp

    @property
    def is_discarded(self) -> bool:
        return isinstance(self.payload, CompletedPayload) and self.payload.discarded

    def acknowledged(self, ack_timestamp: int, state_size: int, alignment_buffered: int) -> CheckpointRecord:
        """Return a copy with one more subtask acknowledgement folded in."""
        return replace(
            self,
            latest_ack_timestamp=max(self.latest_ack_timestamp, ack_timestamp),
            num_acknowledged_subtasks=self.num_acknowledged_subtasks + 1,
            state_size=self.state_size + state_size,
            alignment_buffered=self.alignment_buffered + alignment_buffered,
        )

    def completed(self, state_size: int, alignment_buffered: int, external_path: str | None) -> CheckpointRecord:
        """Return the completed form of this pending record."""
        return replace(
            self,
            payload=CompletedPayload(external_path=external_path),
            state_size=state_size,
            alignment_buffered=alignment_buffered,
        )

    def failed(self, failure_timestamp: int, failure_message: str | None) -> CheckpointRecord:
        """Return the failed form of this pending record."""
        return replace(
            self,
            payload=FailedPayload(failure_timestamp=failure_timestamp, failure_message=failure_message),
        )

    def discarded(self) -> CheckpointRecord:
        """Return a copy marked discarded. Only valid for completed records."""
        if not isinstance(self.payload, CompletedPayload):
            raise ValueError(f"Only completed checkpoints can be discarded, {self.checkpoint_id} is {self.status}")
        return replace(self, payload=replace(self.payload, discarded=True))


@dataclass(frozen=True, slots=True)
class RestoredCheckpointStats:
    """The checkpoint the job most recently resumed from.

    May reference a checkpoint id older than anything in the history.
    """

    checkpoint_id: int
    restore_timestamp: int
    properties: CheckpointProperties
    external_path: str | None = None

    @property
    def is_savepoint(self) -> bool:
        return self.properties.is_savepoint
