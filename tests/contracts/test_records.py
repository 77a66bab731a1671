"""Tests for checkpoint record contracts."""

from dataclasses import FrozenInstanceError

import pytest

from checkpoint_stats.contracts import (
    UNKNOWN,
    CheckpointCounts,
    CheckpointHistory,
    CheckpointProperties,
    CheckpointRecord,
    CheckpointStatus,
    CheckpointType,
    CompletedPayload,
    FailedPayload,
    PendingPayload,
    RestoredCheckpointStats,
)


def make_pending(checkpoint_id: int = 1, trigger: int = 100, num_subtasks: int = 4) -> CheckpointRecord:
    return CheckpointRecord(
        checkpoint_id=checkpoint_id,
        trigger_timestamp=trigger,
        properties=CheckpointProperties.for_checkpoint(),
        num_subtasks=num_subtasks,
    )


class TestCheckpointProperties:
    def test_checkpoint_factory(self) -> None:
        props = CheckpointProperties.for_checkpoint()
        assert props.checkpoint_type == CheckpointType.CHECKPOINT
        assert props.is_savepoint is False
        assert props.forced is False

    def test_savepoint_factory_is_forced(self) -> None:
        props = CheckpointProperties.for_savepoint()
        assert props.is_savepoint is True
        assert props.forced is True


class TestPendingRecord:
    def test_new_record_is_in_progress(self) -> None:
        record = make_pending()
        assert isinstance(record.payload, PendingPayload)
        assert record.status == CheckpointStatus.IN_PROGRESS
        assert record.latest_ack_timestamp == UNKNOWN
        assert record.num_acknowledged_subtasks == 0

    def test_duration_unknown_without_ack(self) -> None:
        assert make_pending().end_to_end_duration == UNKNOWN

    def test_acknowledged_accumulates(self) -> None:
        record = make_pending().acknowledged(150, 10, 1).acknowledged(140, 20, 2)

        assert record.latest_ack_timestamp == 150  # max, not last
        assert record.num_acknowledged_subtasks == 2
        assert record.state_size == 30
        assert record.alignment_buffered == 3
        assert record.end_to_end_duration == 50

    def test_acknowledged_returns_new_value(self) -> None:
        original = make_pending()
        original.acknowledged(150, 10, 0)
        assert original.num_acknowledged_subtasks == 0

    def test_records_are_frozen(self) -> None:
        record = make_pending()
        with pytest.raises(FrozenInstanceError):
            record.state_size = 5  # type: ignore[misc]


class TestTerminalRecords:
    def test_completed_overrides_sizes(self) -> None:
        record = make_pending().acknowledged(150, 10, 1).completed(1000, 7, "s3://cp/1")

        assert record.status == CheckpointStatus.COMPLETED
        assert record.state_size == 1000
        assert record.alignment_buffered == 7
        assert record.payload == CompletedPayload(external_path="s3://cp/1", discarded=False)
        assert record.end_to_end_duration == 50

    def test_failed_payload(self) -> None:
        record = make_pending().failed(250, "timeout")

        assert record.status == CheckpointStatus.FAILED
        assert record.payload == FailedPayload(failure_timestamp=250, failure_message="timeout")

    def test_discarded_marks_completed(self) -> None:
        record = make_pending().completed(1, 0, None).discarded()
        assert record.is_discarded is True

    def test_discarding_failed_record_raises(self) -> None:
        with pytest.raises(ValueError, match="Only completed checkpoints"):
            make_pending().failed(250, None).discarded()

    def test_status_values_are_wire_strings(self) -> None:
        assert str(CheckpointStatus.IN_PROGRESS) == "IN_PROGRESS"
        assert str(CheckpointStatus.COMPLETED) == "COMPLETED"
        assert str(CheckpointStatus.FAILED) == "FAILED"
        assert CheckpointStatus.IN_PROGRESS.is_terminal is False
        assert CheckpointStatus.FAILED.is_terminal is True


class TestRestoredCheckpointStats:
    def test_is_savepoint_from_properties(self) -> None:
        restored = RestoredCheckpointStats(
            checkpoint_id=7,
            restore_timestamp=900,
            properties=CheckpointProperties.for_savepoint(),
            external_path="s3://sp/7",
        )
        assert restored.is_savepoint is True


class TestSnapshotValues:
    def test_counts_invariant_enforced(self) -> None:
        with pytest.raises(ValueError, match="total"):
            CheckpointCounts(total=2, in_progress=1, completed=0, failed=0)

    def test_counts_reject_negative(self) -> None:
        with pytest.raises(ValueError, match="restored must be >= 0"):
            CheckpointCounts(restored=-1)

    def test_history_lookup_includes_latest_slots(self) -> None:
        evicted = make_pending(checkpoint_id=3).completed(1, 0, None)
        history = CheckpointHistory(checkpoints=(make_pending(checkpoint_id=4),), latest_completed=evicted)

        assert history.get_checkpoint(4) is history.checkpoints[0]
        assert history.get_checkpoint(3) is evicted
        assert history.get_checkpoint(99) is None
