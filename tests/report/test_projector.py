"""Tests for the snapshot -> report document projection."""

import json

from checkpoint_stats.contracts import (
    UNKNOWN,
    CheckpointCounts,
    CheckpointHistory,
    CheckpointProperties,
    CheckpointRecord,
    CheckpointStatsSnapshot,
    CompletedCheckpointSummary,
    CompletedPayload,
    FailedPayload,
    MinMaxAvg,
    RestoredCheckpointStats,
)
from checkpoint_stats.report import (
    project_checkpoint_details,
    project_snapshot,
    render_report,
    report_hash,
)
from checkpoint_stats.stats import CheckpointStatsTracker
from tests.helpers import run_completed, run_failed


def full_snapshot() -> CheckpointStatsSnapshot:
    """Snapshot with every record variant and every latest slot populated."""
    in_progress = CheckpointRecord(
        checkpoint_id=1992139,
        trigger_timestamp=1919191900,
        properties=CheckpointProperties.for_checkpoint(),
        num_subtasks=501,
        latest_ack_timestamp=1977791901,
        num_acknowledged_subtasks=101,
        state_size=111939272822,
        alignment_buffered=1,
    )
    completed_savepoint = CheckpointRecord(
        checkpoint_id=1322139,
        trigger_timestamp=191900,
        properties=CheckpointProperties.for_savepoint(),
        num_subtasks=33501,
        payload=CompletedPayload(external_path="completed-external-path", discarded=True),
        latest_ack_timestamp=197791901,
        num_acknowledged_subtasks=211,
        state_size=1119822,
        alignment_buffered=111,
    )
    failed = CheckpointRecord(
        checkpoint_id=110719,
        trigger_timestamp=191900,
        properties=CheckpointProperties.for_checkpoint(),
        num_subtasks=33501,
        payload=FailedPayload(failure_timestamp=119230, failure_message="failure message"),
        latest_ack_timestamp=197791901,
        num_acknowledged_subtasks=1,
        state_size=1119822,
        alignment_buffered=111,
    )
    latest_completed = CheckpointRecord(
        checkpoint_id=1992139,
        trigger_timestamp=1919191900,
        properties=CheckpointProperties.for_checkpoint(),
        num_subtasks=1,
        payload=CompletedPayload(external_path="latest-completed-external-path"),
        latest_ack_timestamp=1977791901,
        num_acknowledged_subtasks=1,
        state_size=111939272822,
        alignment_buffered=182813,
    )
    latest_failed = CheckpointRecord(
        checkpoint_id=1112,
        trigger_timestamp=1200,
        properties=CheckpointProperties.for_checkpoint(),
        num_subtasks=1,
        payload=FailedPayload(failure_timestamp=11999976, failure_message="expected cause"),
        latest_ack_timestamp=1212,
        num_acknowledged_subtasks=1,
        state_size=111,
        alignment_buffered=2,
    )
    return CheckpointStatsSnapshot(
        counts=CheckpointCounts(restored=123123123, total=12981231203, in_progress=191919, completed=12881867774, failed=99171510),
        summary=CompletedCheckpointSummary(
            state_size=MinMaxAvg(min=81238123, max=19919191999, avg=1133, count=3),
            end_to_end_duration=MinMaxAvg(min=1182, max=88654, avg=171, count=3),
            alignment_buffered=MinMaxAvg(min=81818181899, max=89999911118654, avg=11203131, count=3),
        ),
        history=CheckpointHistory(
            checkpoints=(in_progress, completed_savepoint, failed),
            latest_completed=latest_completed,
            latest_savepoint=completed_savepoint,
            latest_failed=latest_failed,
        ),
        latest_restored=RestoredCheckpointStats(
            checkpoint_id=1199,
            restore_timestamp=434242,
            properties=CheckpointProperties.for_savepoint(),
            external_path="restored savepoint path",
        ),
    )


class TestFullDocument:
    def test_counts(self) -> None:
        doc = project_snapshot(full_snapshot())
        assert doc["counts"] == {
            "restored": 123123123,
            "total": 12981231203,
            "in_progress": 191919,
            "completed": 12881867774,
            "failed": 99171510,
        }

    def test_summary(self) -> None:
        doc = project_snapshot(full_snapshot())
        assert doc["summary"] == {
            "state_size": {"min": 81238123, "max": 19919191999, "avg": 1133},
            "end_to_end_duration": {"min": 1182, "max": 88654, "avg": 171},
            "alignment_buffered": {"min": 81818181899, "max": 89999911118654, "avg": 11203131},
        }

    def test_latest_completed_and_savepoint(self) -> None:
        latest = project_snapshot(full_snapshot())["latest"]
        assert latest["completed"] == {
            "id": 1992139,
            "trigger_timestamp": 1919191900,
            "latest_ack_timestamp": 1977791901,
            "state_size": 111939272822,
            "end_to_end_duration": 58600001,
            "alignment_buffered": 182813,
            "external_path": "latest-completed-external-path",
        }
        assert latest["savepoint"]["id"] == 1322139
        assert latest["savepoint"]["external_path"] == "completed-external-path"

    def test_latest_failed(self) -> None:
        failed = project_snapshot(full_snapshot())["latest"]["failed"]
        assert failed == {
            "id": 1112,
            "trigger_timestamp": 1200,
            "latest_ack_timestamp": 1212,
            "state_size": 111,
            "end_to_end_duration": 12,
            "alignment_buffered": 2,
            "failure_timestamp": 11999976,
            "failure_message": "expected cause",
        }
        assert "external_path" not in failed

    def test_latest_restored(self) -> None:
        restored = project_snapshot(full_snapshot())["latest"]["restored"]
        assert restored == {
            "id": 1199,
            "restore_timestamp": 434242,
            "is_savepoint": True,
            "external_path": "restored savepoint path",
        }

    def test_history_entries_by_status(self) -> None:
        in_progress, completed, failed = project_snapshot(full_snapshot())["history"]

        assert in_progress == {
            "id": 1992139,
            "status": "IN_PROGRESS",
            "is_savepoint": False,
            "trigger_timestamp": 1919191900,
            "latest_ack_timestamp": 1977791901,
            "state_size": 111939272822,
            "end_to_end_duration": 58600001,
            "alignment_buffered": 1,
            "num_subtasks": 501,
            "num_acknowledged_subtasks": 101,
        }

        assert completed["status"] == "COMPLETED"
        assert completed["is_savepoint"] is True
        assert completed["external_path"] == "completed-external-path"
        assert completed["discarded"] is True
        assert "failure_timestamp" not in completed
        assert "failure_message" not in completed

        assert failed["status"] == "FAILED"
        assert failed["failure_timestamp"] == 119230
        assert failed["failure_message"] == "failure message"
        assert "external_path" not in failed
        assert "discarded" not in failed

    def test_document_is_json_serializable(self) -> None:
        doc = project_snapshot(full_snapshot())
        assert json.loads(json.dumps(doc)) == doc


class TestOmission:
    def test_empty_tracker_document(self) -> None:
        doc = project_snapshot(CheckpointStatsTracker().create_snapshot())

        assert doc == {
            "counts": {"restored": 0, "total": 0, "in_progress": 0, "completed": 0, "failed": 0},
            "summary": {
                "state_size": {"min": UNKNOWN, "max": UNKNOWN, "avg": UNKNOWN},
                "end_to_end_duration": {"min": UNKNOWN, "max": UNKNOWN, "avg": UNKNOWN},
                "alignment_buffered": {"min": UNKNOWN, "max": UNKNOWN, "avg": UNKNOWN},
            },
            "latest": {},
            "history": [],
        }

    def test_only_populated_latest_keys_present(self) -> None:
        tracker = CheckpointStatsTracker()
        run_failed(tracker, 2)

        latest = project_snapshot(tracker.create_snapshot())["latest"]

        assert set(latest) == {"failed"}

    def test_pending_entry_has_no_variant_fields(self) -> None:
        tracker = CheckpointStatsTracker()
        tracker.report_trigger(1, 100, CheckpointProperties.for_checkpoint(), num_subtasks=3)

        [entry] = project_snapshot(tracker.create_snapshot())["history"]

        assert entry["latest_ack_timestamp"] == UNKNOWN
        assert entry["end_to_end_duration"] == UNKNOWN
        for key in ("external_path", "discarded", "failure_timestamp", "failure_message"):
            assert key not in entry


class TestScenarios:
    def test_completed_then_failed(self) -> None:
        tracker = CheckpointStatsTracker()
        run_completed(tracker, 1, trigger=100, ack=150, state_size=1000, external_path="p1")

        doc = project_snapshot(tracker.create_snapshot())
        assert doc["counts"] == {"restored": 0, "total": 1, "in_progress": 0, "completed": 1, "failed": 0}
        assert doc["summary"]["state_size"] == {"min": 1000, "max": 1000, "avg": 1000}
        assert doc["latest"]["completed"]["id"] == 1
        assert doc["latest"]["completed"]["external_path"] == "p1"
        assert [entry["status"] for entry in doc["history"]] == ["COMPLETED"]

        run_failed(tracker, 2, trigger=200, failure=250, message="timeout")

        doc = project_snapshot(tracker.create_snapshot())
        assert doc["counts"]["failed"] == 1
        assert doc["counts"]["in_progress"] == 0
        assert doc["latest"]["failed"]["failure_message"] == "timeout"
        assert doc["summary"]["state_size"] == {"min": 1000, "max": 1000, "avg": 1000}

    def test_unknown_ack_leaves_document_unchanged(self) -> None:
        tracker = CheckpointStatsTracker()
        run_completed(tracker, 1)
        before = render_report(tracker.create_snapshot())

        tracker.report_ack(999, 1)

        assert render_report(tracker.create_snapshot()) == before


class TestRendering:
    def test_render_is_canonical(self) -> None:
        rendered = render_report(CheckpointStatsTracker().create_snapshot())
        assert rendered.startswith('{"counts":{"completed":0,')
        assert " " not in rendered

    def test_repeated_snapshots_render_identically(self) -> None:
        tracker = CheckpointStatsTracker()
        run_completed(tracker, 1)
        run_failed(tracker, 2)

        first, second = tracker.create_snapshot(), tracker.create_snapshot()

        assert project_snapshot(first) == project_snapshot(second)
        assert render_report(first) == render_report(second)
        assert report_hash(first) == report_hash(second)

    def test_hash_changes_with_content(self) -> None:
        tracker = CheckpointStatsTracker()
        before = report_hash(tracker.create_snapshot())
        run_completed(tracker, 1)
        assert report_hash(tracker.create_snapshot()) != before


class TestCheckpointDetails:
    def test_details_for_retained_checkpoint(self) -> None:
        details = project_checkpoint_details(full_snapshot(), 110719)
        assert details is not None
        assert details["status"] == "FAILED"

    def test_details_from_latest_slot(self) -> None:
        details = project_checkpoint_details(full_snapshot(), 1112)
        assert details is not None
        assert details["failure_message"] == "expected cause"

    def test_details_for_unknown_checkpoint(self) -> None:
        assert project_checkpoint_details(full_snapshot(), 4) is None
