"""Shared contracts for cross-boundary data types.

Records, lifecycle events and snapshot values are defined here so the
tracker (``checkpoint_stats.stats``) and the report projection
(``checkpoint_stats.report``) agree on one set of types.

This package is a LEAF MODULE: it imports nothing from core, stats or report.
"""

from checkpoint_stats.contracts.enums import CheckpointStatus, CheckpointType
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
    UNKNOWN,
    CheckpointPayload,
    CheckpointProperties,
    CheckpointRecord,
    CompletedPayload,
    FailedPayload,
    PendingPayload,
    RestoredCheckpointStats,
)
from checkpoint_stats.contracts.snapshot import (
    CheckpointCounts,
    CheckpointHistory,
    CheckpointStatsSnapshot,
    CompletedCheckpointSummary,
    MinMaxAvg,
)

__all__ = [
    "MAX_REPORTED_VALUE",
    "UNKNOWN",
    "CheckpointAcknowledged",
    "CheckpointCompleted",
    "CheckpointCounts",
    "CheckpointDiscarded",
    "CheckpointEvent",
    "CheckpointFailed",
    "CheckpointHistory",
    "CheckpointPayload",
    "CheckpointProperties",
    "CheckpointRecord",
    "CheckpointRestored",
    "CheckpointStatsSnapshot",
    "CheckpointStatus",
    "CheckpointTriggered",
    "CheckpointType",
    "CompletedCheckpointSummary",
    "CompletedPayload",
    "FailedPayload",
    "MinMaxAvg",
    "PendingPayload",
    "RestoredCheckpointStats",
]
