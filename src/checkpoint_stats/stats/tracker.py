"""CheckpointStatsTracker accumulates checkpoint lifecycle statistics.

The tracker is the single mutable owner of:
1. Counts (total, in progress, completed, failed, restored)
2. Min/max/avg accumulators over completed checkpoints
3. The bounded history ring and its latest slots
4. The pending record of every in-flight checkpoint
5. The checkpoint the job was last restored from

Per-checkpoint state machine:
    TRIGGERED -> ACKNOWLEDGED* -> COMPLETED | FAILED

Design principles:
- One lock covers ALL state, so create_snapshot() sees counts, aggregates
  and history that agree with each other
- Validate first, mutate second: a rejected event leaves no trace
- Events for unknown or already terminal checkpoints are ignored (acks
  can overtake a completion on the network); they are logged at debug
  level and counted in health_metrics, never raised

Thread Safety:
    Every public method acquires self._lock. Producers (coordinator
    threads, acknowledging subtasks) and report readers may call from
    any thread. Snapshots are immutable values and need no lock.
"""

from __future__ import annotations

import threading
from typing import Any

import structlog

from checkpoint_stats.contracts.events import (
    CheckpointAcknowledged,
    CheckpointCompleted,
    CheckpointDiscarded,
    CheckpointEvent,
    CheckpointFailed,
    CheckpointRestored,
    CheckpointTriggered,
)
from checkpoint_stats.contracts.records import (
    MAX_REPORTED_VALUE,
    CheckpointProperties,
    CheckpointRecord,
    CompletedPayload,
    RestoredCheckpointStats,
)
from checkpoint_stats.contracts.snapshot import (
    CheckpointCounts,
    CheckpointStatsSnapshot,
    CompletedCheckpointSummary,
)
from checkpoint_stats.stats.aggregate import MinMaxAvgAccumulator
from checkpoint_stats.stats.errors import InvalidCheckpointEventError
from checkpoint_stats.stats.history import CheckpointHistoryRing

logger = structlog.get_logger(__name__)


def _require_non_negative(checkpoint_id: int | None, name: str, value: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidCheckpointEventError(checkpoint_id, f"{name} must be an int, got {type(value).__name__}")
    if value < 0:
        raise InvalidCheckpointEventError(checkpoint_id, f"{name} must be >= 0, got {value}")
    if value > MAX_REPORTED_VALUE:
        raise InvalidCheckpointEventError(checkpoint_id, f"{name} must be <= {MAX_REPORTED_VALUE}, got {value}")


def _require_properties(checkpoint_id: int | None, properties: object) -> None:
    if not isinstance(properties, CheckpointProperties):
        raise InvalidCheckpointEventError(
            checkpoint_id,
            f"properties must be CheckpointProperties, got {type(properties).__name__}",
        )


class CheckpointStatsTracker:
    """Process-wide checkpoint statistics for one job.

    Example:
        >>> tracker = CheckpointStatsTracker(history_size=10)
        >>> tracker.report_trigger(1, 100, CheckpointProperties.for_checkpoint(), num_subtasks=1)
        >>> tracker.report_ack(1, 150)
        True
        >>> tracker.report_completed(1, state_size=1000, alignment_buffered=0, external_path="p1")
        True
        >>> tracker.create_snapshot().counts.completed
        1
    """

    def __init__(self, history_size: int = 10) -> None:
        """Initialize an empty tracker.

        Args:
            history_size: Capacity of the history ring.

        Raises:
            ValueError: If history_size < 1.
        """
        self._lock = threading.Lock()

        self._history = CheckpointHistoryRing(capacity=history_size)
        self._pending: dict[int, CheckpointRecord] = {}
        self._latest_restored: RestoredCheckpointStats | None = None
        self._last_triggered_id: int | None = None

        # Counts
        self._total = 0
        self._in_progress = 0
        self._completed = 0
        self._failed = 0
        self._restored = 0

        # Aggregates over completed checkpoints
        self._state_size = MinMaxAvgAccumulator()
        self._end_to_end_duration = MinMaxAvgAccumulator()
        self._alignment_buffered = MinMaxAvgAccumulator()

        # Health metrics
        self._events_ignored = 0

    # =========================================================================
    # Lifecycle operations
    # =========================================================================

    def report_trigger(
        self,
        checkpoint_id: int,
        trigger_timestamp: int,
        properties: CheckpointProperties,
        num_subtasks: int,
    ) -> None:
        """Start tracking a new checkpoint attempt.

        Raises:
            InvalidCheckpointEventError: If the id is not greater than every
                previously triggered id, or a value is out of range.
        """
        _require_non_negative(checkpoint_id, "checkpoint_id", checkpoint_id)
        _require_non_negative(checkpoint_id, "trigger_timestamp", trigger_timestamp)
        _require_non_negative(checkpoint_id, "num_subtasks", num_subtasks)
        _require_properties(checkpoint_id, properties)
        if num_subtasks < 1:
            raise InvalidCheckpointEventError(checkpoint_id, "num_subtasks must be >= 1")

        with self._lock:
            if self._last_triggered_id is not None and checkpoint_id <= self._last_triggered_id:
                raise InvalidCheckpointEventError(
                    checkpoint_id,
                    f"id must be greater than last triggered id {self._last_triggered_id}",
                )

            record = CheckpointRecord(
                checkpoint_id=checkpoint_id,
                trigger_timestamp=trigger_timestamp,
                properties=properties,
                num_subtasks=num_subtasks,
            )
            self._last_triggered_id = checkpoint_id
            self._pending[checkpoint_id] = record
            self._history.append(record)
            self._total += 1
            self._in_progress += 1

    def report_ack(
        self,
        checkpoint_id: int,
        ack_timestamp: int,
        *,
        state_size: int = 0,
        alignment_buffered: int = 0,
    ) -> bool:
        """Fold one subtask acknowledgement into a pending checkpoint.

        Returns:
            True if applied, False if the checkpoint is unknown or terminal.

        Raises:
            InvalidCheckpointEventError: If a value is out of range (including an
                accumulated size beyond MAX_REPORTED_VALUE), the ack predates the
                trigger, or every subtask has already acknowledged.
        """
        _require_non_negative(checkpoint_id, "ack_timestamp", ack_timestamp)
        _require_non_negative(checkpoint_id, "state_size", state_size)
        _require_non_negative(checkpoint_id, "alignment_buffered", alignment_buffered)

        with self._lock:
            pending = self._pending.get(checkpoint_id)
            if pending is None:
                self._ignore("acknowledgement", checkpoint_id)
                return False
            if ack_timestamp < pending.trigger_timestamp:
                raise InvalidCheckpointEventError(
                    checkpoint_id,
                    f"ack_timestamp {ack_timestamp} precedes trigger_timestamp {pending.trigger_timestamp}",
                )
            if pending.num_acknowledged_subtasks >= pending.num_subtasks:
                raise InvalidCheckpointEventError(
                    checkpoint_id,
                    f"all {pending.num_subtasks} subtasks already acknowledged",
                )
            for name, total in (
                ("state_size", pending.state_size + state_size),
                ("alignment_buffered", pending.alignment_buffered + alignment_buffered),
            ):
                if total > MAX_REPORTED_VALUE:
                    raise InvalidCheckpointEventError(
                        checkpoint_id,
                        f"accumulated {name} {total} exceeds {MAX_REPORTED_VALUE}",
                    )

            updated = pending.acknowledged(ack_timestamp, state_size, alignment_buffered)
            self._pending[checkpoint_id] = updated
            self._history.replace(updated)
            return True

    def report_completed(
        self,
        checkpoint_id: int,
        state_size: int,
        alignment_buffered: int,
        external_path: str | None = None,
    ) -> bool:
        """Transition a pending checkpoint to completed.

        Feeds the state size, alignment and (when at least one ack was seen)
        end-to-end duration aggregates.

        Returns:
            True if applied, False if the checkpoint is unknown or terminal.

        Raises:
            InvalidCheckpointEventError: If a size is negative or above MAX_REPORTED_VALUE.
        """
        _require_non_negative(checkpoint_id, "state_size", state_size)
        _require_non_negative(checkpoint_id, "alignment_buffered", alignment_buffered)

        with self._lock:
            pending = self._pending.get(checkpoint_id)
            if pending is None:
                self._ignore("completion", checkpoint_id)
                return False

            completed = pending.completed(state_size, alignment_buffered, external_path)
            duration = completed.end_to_end_duration

            del self._pending[checkpoint_id]
            self._in_progress -= 1
            self._completed += 1
            self._state_size.update(state_size)
            self._alignment_buffered.update(alignment_buffered)
            if duration >= 0:
                self._end_to_end_duration.update(duration)
            self._record_terminal(completed)
            return True

    def report_failed(
        self,
        checkpoint_id: int,
        failure_timestamp: int,
        failure_message: str | None = None,
    ) -> bool:
        """Transition a pending checkpoint to failed.

        Failed checkpoints contribute no aggregate samples.

        Returns:
            True if applied, False if the checkpoint is unknown or terminal.

        Raises:
            InvalidCheckpointEventError: If the failure predates the trigger.
        """
        _require_non_negative(checkpoint_id, "failure_timestamp", failure_timestamp)

        with self._lock:
            pending = self._pending.get(checkpoint_id)
            if pending is None:
                self._ignore("failure", checkpoint_id)
                return False
            if failure_timestamp < pending.trigger_timestamp:
                raise InvalidCheckpointEventError(
                    checkpoint_id,
                    f"failure_timestamp {failure_timestamp} precedes trigger_timestamp {pending.trigger_timestamp}",
                )

            failed = pending.failed(failure_timestamp, failure_message)

            del self._pending[checkpoint_id]
            self._in_progress -= 1
            self._failed += 1
            self._record_terminal(failed)
            return True

    def report_restored(
        self,
        checkpoint_id: int,
        restore_timestamp: int,
        properties: CheckpointProperties,
        external_path: str | None = None,
    ) -> None:
        """Record that the job resumed from a checkpoint. Last report wins.

        Raises:
            InvalidCheckpointEventError: If a value is out of range or properties
                is not a CheckpointProperties.
        """
        _require_non_negative(checkpoint_id, "checkpoint_id", checkpoint_id)
        _require_non_negative(checkpoint_id, "restore_timestamp", restore_timestamp)
        _require_properties(checkpoint_id, properties)

        restored = RestoredCheckpointStats(
            checkpoint_id=checkpoint_id,
            restore_timestamp=restore_timestamp,
            properties=properties,
            external_path=external_path,
        )
        with self._lock:
            self._latest_restored = restored
            self._restored += 1

        logger.info(
            "Job restored from checkpoint",
            checkpoint_id=checkpoint_id,
            is_savepoint=properties.is_savepoint,
            external_path=external_path,
        )

    def report_discarded(self, checkpoint_id: int) -> bool:
        """Mark a completed checkpoint as discarded.

        Returns:
            True if a record changed, False if the id is no longer retained
            or was already discarded.

        Raises:
            InvalidCheckpointEventError: If the checkpoint is retained but not completed.
        """
        with self._lock:
            record = self._history.get(checkpoint_id)
            if record is None:
                self._ignore("discard", checkpoint_id)
                return False
            if not isinstance(record.payload, CompletedPayload):
                raise InvalidCheckpointEventError(
                    checkpoint_id,
                    f"only completed checkpoints can be discarded, checkpoint is {record.status}",
                )
            if record.payload.discarded:
                return False

            discarded = record.discarded()
            self._history.replace(discarded)
            self._history.refresh_latest(discarded)
            return True

    def handle_event(self, event: CheckpointEvent) -> bool:
        """Apply a lifecycle event by dispatching to the matching report_* method.

        Returns:
            False if the event was ignored (unknown or terminal checkpoint),
            True otherwise.

        Raises:
            InvalidCheckpointEventError: If the event is malformed.
            TypeError: If the event type is not a known lifecycle event.
        """
        match event:
            case CheckpointTriggered():
                self.report_trigger(
                    event.checkpoint_id,
                    event.trigger_timestamp,
                    event.properties,
                    event.num_subtasks,
                )
                return True
            case CheckpointAcknowledged():
                return self.report_ack(
                    event.checkpoint_id,
                    event.ack_timestamp,
                    state_size=event.state_size,
                    alignment_buffered=event.alignment_buffered,
                )
            case CheckpointCompleted():
                return self.report_completed(
                    event.checkpoint_id,
                    event.state_size,
                    event.alignment_buffered,
                    event.external_path,
                )
            case CheckpointFailed():
                return self.report_failed(event.checkpoint_id, event.failure_timestamp, event.failure_message)
            case CheckpointRestored():
                self.report_restored(
                    event.checkpoint_id,
                    event.restore_timestamp,
                    event.properties,
                    event.external_path,
                )
                return True
            case CheckpointDiscarded():
                return self.report_discarded(event.checkpoint_id)
            case _:
                raise TypeError(f"Unsupported checkpoint event: {type(event).__name__}")

    # =========================================================================
    # Read path
    # =========================================================================

    def create_snapshot(self) -> CheckpointStatsSnapshot:
        """Atomically copy all tracker state into an immutable snapshot."""
        with self._lock:
            return CheckpointStatsSnapshot(
                counts=CheckpointCounts(
                    restored=self._restored,
                    total=self._total,
                    in_progress=self._in_progress,
                    completed=self._completed,
                    failed=self._failed,
                ),
                summary=CompletedCheckpointSummary(
                    state_size=self._state_size.snapshot(),
                    end_to_end_duration=self._end_to_end_duration.snapshot(),
                    alignment_buffered=self._alignment_buffered.snapshot(),
                ),
                history=self._history.snapshot(),
                latest_restored=self._latest_restored,
            )

    @property
    def health_metrics(self) -> dict[str, Any]:
        """Return tracker bookkeeping metrics for monitoring.

        - events_ignored: Events for unknown or already terminal checkpoints
        - history_evicted: Records evicted from the history ring
        - history_size / history_capacity: Current and maximum ring size
        - pending: Checkpoints currently in flight
        """
        with self._lock:
            return {
                "events_ignored": self._events_ignored,
                "history_evicted": self._history.evicted_count,
                "history_size": len(self._history),
                "history_capacity": self._history.capacity,
                "pending": len(self._pending),
            }

    # =========================================================================
    # Internals (caller holds self._lock)
    # =========================================================================

    def _record_terminal(self, record: CheckpointRecord) -> None:
        if not self._history.replace(record):
            # Pending entry was evicted while in flight
            self._history.append(record)
        self._history.update_latest(record)

    def _ignore(self, kind: str, checkpoint_id: int) -> None:
        self._events_ignored += 1
        logger.debug(
            "Ignoring event for unknown or terminal checkpoint",
            event_kind=kind,
            checkpoint_id=checkpoint_id,
        )
