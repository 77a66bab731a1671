"""Helpers that drive a tracker through common checkpoint lifecycles."""

from checkpoint_stats.contracts import CheckpointProperties
from checkpoint_stats.stats import CheckpointStatsTracker


def run_completed(
    tracker: CheckpointStatsTracker,
    checkpoint_id: int,
    *,
    trigger: int = 100,
    ack: int = 150,
    state_size: int = 1000,
    alignment_buffered: int = 0,
    external_path: str | None = None,
    savepoint: bool = False,
) -> None:
    """Drive one checkpoint through trigger -> ack -> complete."""
    properties = CheckpointProperties.for_savepoint() if savepoint else CheckpointProperties.for_checkpoint()
    tracker.report_trigger(checkpoint_id, trigger, properties, num_subtasks=1)
    tracker.report_ack(checkpoint_id, ack)
    tracker.report_completed(checkpoint_id, state_size, alignment_buffered, external_path)


def run_failed(
    tracker: CheckpointStatsTracker,
    checkpoint_id: int,
    *,
    trigger: int = 200,
    failure: int = 250,
    message: str | None = "timeout",
) -> None:
    """Drive one checkpoint through trigger -> fail."""
    tracker.report_trigger(checkpoint_id, trigger, CheckpointProperties.for_checkpoint(), num_subtasks=1)
    tracker.report_failed(checkpoint_id, failure, message)
