"""Report rendering for checkpoint statistics.

- projector: pure snapshot -> document mapping (the wire contract)
- render_report / report_hash: canonical JSON of a projected snapshot
"""

from checkpoint_stats.contracts.snapshot import CheckpointStatsSnapshot
from checkpoint_stats.core.canonical import canonical_json, stable_hash
from checkpoint_stats.report.projector import (
    CheckpointStatsDocument,
    HistoryEntryView,
    project_checkpoint_details,
    project_history_entry,
    project_snapshot,
)


def render_report(snapshot: CheckpointStatsSnapshot) -> str:
    """Canonical JSON of the report document for snapshot."""
    return canonical_json(project_snapshot(snapshot))


def report_hash(snapshot: CheckpointStatsSnapshot) -> str:
    """Content hash of the report document, equal for equal snapshots."""
    return stable_hash(project_snapshot(snapshot))


__all__ = [
    "CheckpointStatsDocument",
    "HistoryEntryView",
    "project_checkpoint_details",
    "project_history_entry",
    "project_snapshot",
    "render_report",
    "report_hash",
]
