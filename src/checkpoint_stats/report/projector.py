"""Projection of checkpoint stats snapshots into the report document.

The report is the wire contract consumed by the dashboard and the CLI:

    {
      "counts":  {"restored", "total", "in_progress", "completed", "failed"},
      "summary": {"state_size", "end_to_end_duration", "alignment_buffered"},  # each {min, max, avg}
      "latest":  {"completed"?, "savepoint"?, "failed"?, "restored"?},
      "history": [...]  # oldest first
    }

Omission rules:
- A ``latest.*`` key is absent (not null) until a record of that kind exists
- History entries carry ``external_path``/``discarded`` only when COMPLETED
  and ``failure_timestamp``/``failure_message`` only when FAILED
- Numeric "not observed yet" values use the -1 sentinel

All functions here are pure and total over tracker-produced snapshots.
"""

from __future__ import annotations

from typing import NotRequired, TypedDict

from checkpoint_stats.contracts.records import (
    UNKNOWN,
    CheckpointRecord,
    CompletedPayload,
    FailedPayload,
    PendingPayload,
    RestoredCheckpointStats,
)
from checkpoint_stats.contracts.snapshot import (
    CheckpointCounts,
    CheckpointStatsSnapshot,
    CompletedCheckpointSummary,
    MinMaxAvg,
)

# =============================================================================
# Document schema
# =============================================================================


class CountsView(TypedDict):
    restored: int
    total: int
    in_progress: int
    completed: int
    failed: int


class MinMaxAvgView(TypedDict):
    min: int
    max: int
    avg: int


class SummaryView(TypedDict):
    state_size: MinMaxAvgView
    end_to_end_duration: MinMaxAvgView
    alignment_buffered: MinMaxAvgView


class CheckpointView(TypedDict):
    id: int
    trigger_timestamp: int
    latest_ack_timestamp: int
    state_size: int
    end_to_end_duration: int
    alignment_buffered: int
    external_path: str | None


class FailedView(TypedDict):
    id: int
    trigger_timestamp: int
    latest_ack_timestamp: int
    state_size: int
    end_to_end_duration: int
    alignment_buffered: int
    failure_timestamp: int
    failure_message: str | None


class RestoredView(TypedDict):
    id: int
    restore_timestamp: int
    is_savepoint: bool
    external_path: str | None


class LatestView(TypedDict, total=False):
    completed: CheckpointView
    savepoint: CheckpointView
    failed: FailedView
    restored: RestoredView


class HistoryEntryView(TypedDict):
    id: int
    status: str
    is_savepoint: bool
    trigger_timestamp: int
    latest_ack_timestamp: int
    state_size: int
    end_to_end_duration: int
    alignment_buffered: int
    num_subtasks: int
    num_acknowledged_subtasks: int
    external_path: NotRequired[str | None]  # COMPLETED only
    discarded: NotRequired[bool]  # COMPLETED only
    failure_timestamp: NotRequired[int]  # FAILED only
    failure_message: NotRequired[str | None]  # FAILED only


class CheckpointStatsDocument(TypedDict):
    counts: CountsView
    summary: SummaryView
    latest: LatestView
    history: list[HistoryEntryView]


# =============================================================================
# Projection
# =============================================================================


def project_snapshot(snapshot: CheckpointStatsSnapshot) -> CheckpointStatsDocument:
    """Map a snapshot to the report document. Returns a fresh dict every call."""
    return {
        "counts": _project_counts(snapshot.counts),
        "summary": _project_summary(snapshot.summary),
        "latest": _project_latest(snapshot),
        "history": [project_history_entry(record) for record in snapshot.history.checkpoints],
    }


def project_checkpoint_details(snapshot: CheckpointStatsSnapshot, checkpoint_id: int) -> HistoryEntryView | None:
    """Details view of one checkpoint, or None if the snapshot no longer retains it."""
    record = snapshot.history.get_checkpoint(checkpoint_id)
    if record is None:
        return None
    return project_history_entry(record)


def project_history_entry(record: CheckpointRecord) -> HistoryEntryView:
    entry: HistoryEntryView = {
        "id": record.checkpoint_id,
        "status": str(record.status),
        "is_savepoint": record.is_savepoint,
        "trigger_timestamp": record.trigger_timestamp,
        "latest_ack_timestamp": record.latest_ack_timestamp,
        "state_size": record.state_size,
        "end_to_end_duration": record.end_to_end_duration,
        "alignment_buffered": record.alignment_buffered,
        "num_subtasks": record.num_subtasks,
        "num_acknowledged_subtasks": record.num_acknowledged_subtasks,
    }
    match record.payload:
        case CompletedPayload(external_path=external_path, discarded=discarded):
            entry["external_path"] = external_path
            entry["discarded"] = discarded
        case FailedPayload(failure_timestamp=failure_timestamp, failure_message=failure_message):
            entry["failure_timestamp"] = failure_timestamp
            entry["failure_message"] = failure_message
        case PendingPayload():
            pass
    return entry


def _project_counts(counts: CheckpointCounts) -> CountsView:
    return {
        "restored": counts.restored,
        "total": counts.total,
        "in_progress": counts.in_progress,
        "completed": counts.completed,
        "failed": counts.failed,
    }


def _project_min_max_avg(stats: MinMaxAvg) -> MinMaxAvgView:
    return {"min": stats.min, "max": stats.max, "avg": stats.avg}


def _project_summary(summary: CompletedCheckpointSummary) -> SummaryView:
    return {
        "state_size": _project_min_max_avg(summary.state_size),
        "end_to_end_duration": _project_min_max_avg(summary.end_to_end_duration),
        "alignment_buffered": _project_min_max_avg(summary.alignment_buffered),
    }


def _project_latest(snapshot: CheckpointStatsSnapshot) -> LatestView:
    history = snapshot.history
    latest: LatestView = {}
    if history.latest_completed is not None:
        latest["completed"] = _project_checkpoint(history.latest_completed)
    if history.latest_savepoint is not None:
        latest["savepoint"] = _project_checkpoint(history.latest_savepoint)
    if history.latest_failed is not None:
        latest["failed"] = _project_failed(history.latest_failed)
    if snapshot.latest_restored is not None:
        latest["restored"] = _project_restored(snapshot.latest_restored)
    return latest


def _project_checkpoint(record: CheckpointRecord) -> CheckpointView:
    external_path = record.payload.external_path if isinstance(record.payload, CompletedPayload) else None
    return {
        "id": record.checkpoint_id,
        "trigger_timestamp": record.trigger_timestamp,
        "latest_ack_timestamp": record.latest_ack_timestamp,
        "state_size": record.state_size,
        "end_to_end_duration": record.end_to_end_duration,
        "alignment_buffered": record.alignment_buffered,
        "external_path": external_path,
    }


def _project_failed(record: CheckpointRecord) -> FailedView:
    failure_timestamp, failure_message = UNKNOWN, None
    if isinstance(record.payload, FailedPayload):
        failure_timestamp = record.payload.failure_timestamp
        failure_message = record.payload.failure_message
    return {
        "id": record.checkpoint_id,
        "trigger_timestamp": record.trigger_timestamp,
        "latest_ack_timestamp": record.latest_ack_timestamp,
        "state_size": record.state_size,
        "end_to_end_duration": record.end_to_end_duration,
        "alignment_buffered": record.alignment_buffered,
        "failure_timestamp": failure_timestamp,
        "failure_message": failure_message,
    }


def _project_restored(restored: RestoredCheckpointStats) -> RestoredView:
    return {
        "id": restored.checkpoint_id,
        "restore_timestamp": restored.restore_timestamp,
        "is_savepoint": restored.is_savepoint,
        "external_path": restored.external_path,
    }
