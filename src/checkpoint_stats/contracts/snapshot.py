"""Immutable point-in-time views produced by the stats tracker.

Everything here is a frozen value with no reference back to the tracker.
A snapshot can be shared across threads and held for the lifetime of a
report request without synchronization.
"""

from __future__ import annotations

from dataclasses import dataclass

from checkpoint_stats.contracts.records import UNKNOWN, CheckpointRecord, RestoredCheckpointStats


@dataclass(frozen=True, slots=True)
class CheckpointCounts:
    """Running totals of checkpoint attempts.

    Invariant: total == in_progress + completed + failed.
    ``restored`` counts restores and is independent of the other four.
    """

    restored: int = 0
    total: int = 0
    in_progress: int = 0
    completed: int = 0
    failed: int = 0

    def __post_init__(self) -> None:
        for name in ("restored", "total", "in_progress", "completed", "failed"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be >= 0, got {getattr(self, name)}")
        if self.total != self.in_progress + self.completed + self.failed:
            raise ValueError(
                f"total ({self.total}) must equal in_progress + completed + failed "
                f"({self.in_progress} + {self.completed} + {self.failed})"
            )


@dataclass(frozen=True, slots=True)
class MinMaxAvg:
    """Minimum, maximum and average of a numeric series.

    All three values are UNKNOWN (-1) when no sample has been seen.
    """

    min: int = UNKNOWN
    max: int = UNKNOWN
    avg: int = UNKNOWN
    count: int = 0


@dataclass(frozen=True, slots=True)
class CompletedCheckpointSummary:
    """Aggregates over completed checkpoints only."""

    state_size: MinMaxAvg = MinMaxAvg()
    end_to_end_duration: MinMaxAvg = MinMaxAvg()
    alignment_buffered: MinMaxAvg = MinMaxAvg()


@dataclass(frozen=True, slots=True)
class CheckpointHistory:
    """Recent checkpoint records plus the latest record of each terminal kind.

    ``checkpoints`` is ordered oldest first. The ``latest_*`` slots may hold
    records that are no longer part of ``checkpoints``.
    """

    checkpoints: tuple[CheckpointRecord, ...] = ()
    latest_completed: CheckpointRecord | None = None
    latest_savepoint: CheckpointRecord | None = None
    latest_failed: CheckpointRecord | None = None

    def get_checkpoint(self, checkpoint_id: int) -> CheckpointRecord | None:
        """Find a record by id in the history or the latest slots."""
        for record in self.checkpoints:
            if record.checkpoint_id == checkpoint_id:
                return record
        for latest in (self.latest_completed, self.latest_savepoint, self.latest_failed):
            if latest is not None and latest.checkpoint_id == checkpoint_id:
                return latest
        return None


@dataclass(frozen=True, slots=True)
class CheckpointStatsSnapshot:
    """Atomic copy of all tracker state at one instant."""

    counts: CheckpointCounts
    summary: CompletedCheckpointSummary
    history: CheckpointHistory
    latest_restored: RestoredCheckpointStats | None = None
