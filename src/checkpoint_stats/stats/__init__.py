"""Checkpoint statistics bookkeeping.

Components:
- aggregate: MinMaxAvgAccumulator for state size / duration / alignment series
- history: CheckpointHistoryRing, bounded history with latest slots
- tracker: CheckpointStatsTracker, the lock-guarded owner of all state
- replay: JSON-lines event log replay into a tracker
- errors: CheckpointStatsError, InvalidCheckpointEventError

Usage:
    from checkpoint_stats.stats import CheckpointStatsTracker

    tracker = CheckpointStatsTracker(history_size=10)
    tracker.report_trigger(1, 100, CheckpointProperties.for_checkpoint(), num_subtasks=4)
    snapshot = tracker.create_snapshot()
"""

from checkpoint_stats.stats.aggregate import MinMaxAvgAccumulator
from checkpoint_stats.stats.errors import CheckpointStatsError, InvalidCheckpointEventError
from checkpoint_stats.stats.history import CheckpointHistoryRing
from checkpoint_stats.stats.replay import ReplayResult, parse_event_line, replay_events
from checkpoint_stats.stats.tracker import CheckpointStatsTracker

__all__ = [
    "CheckpointHistoryRing",
    "CheckpointStatsError",
    "CheckpointStatsTracker",
    "InvalidCheckpointEventError",
    "MinMaxAvgAccumulator",
    "ReplayResult",
    "parse_event_line",
    "replay_events",
]
