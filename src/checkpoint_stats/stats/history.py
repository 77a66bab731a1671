"""Bounded history of recent checkpoint records.

Keeps the most recent checkpoint attempts in trigger order plus one owning
slot for each "latest" kind (completed checkpoint, savepoint, failed
checkpoint). The slots are independent of ring membership: a record that
is evicted from the ring stays reachable through its latest slot.

Key design decisions:
- Plain list of owned record values: capacity is small (tens of entries),
  so O(N) victim search and in-place replacement are cheap
- Evict AFTER append, never the newest entry
- Victim preference: failed/discarded first, latest-referenced last
"""

from __future__ import annotations

from collections.abc import Iterator

import structlog

from checkpoint_stats.contracts.records import CheckpointRecord, CompletedPayload, FailedPayload
from checkpoint_stats.contracts.snapshot import CheckpointHistory

logger = structlog.get_logger(__name__)


class CheckpointHistoryRing:
    """Fixed-capacity, insertion-ordered ring of checkpoint records.

    Thread Safety:
        NOT thread-safe. The CheckpointStatsTracker is responsible for
        serializing access together with its counts and accumulators.

    Attributes:
        evicted_count: Total number of records evicted due to capacity.

    Example:
        ring = CheckpointHistoryRing(capacity=10)
        ring.append(pending)
        ring.replace(completed)
        ring.update_latest(completed)
        history = ring.snapshot()
    """

    def __init__(self, capacity: int = 10) -> None:
        """Initialize the ring.

        Args:
            capacity: Maximum number of records retained. Defaults to 10.

        Raises:
            ValueError: If capacity < 1.
        """
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        self._capacity = capacity
        self._records: list[CheckpointRecord] = []
        self._latest_completed: CheckpointRecord | None = None
        self._latest_savepoint: CheckpointRecord | None = None
        self._latest_failed: CheckpointRecord | None = None
        self._evicted_count = 0

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def evicted_count(self) -> int:
        return self._evicted_count

    @property
    def latest_completed(self) -> CheckpointRecord | None:
        return self._latest_completed

    @property
    def latest_savepoint(self) -> CheckpointRecord | None:
        return self._latest_savepoint

    @property
    def latest_failed(self) -> CheckpointRecord | None:
        return self._latest_failed

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[CheckpointRecord]:
        """Iterate oldest first."""
        return iter(tuple(self._records))

    def __contains__(self, checkpoint_id: object) -> bool:
        return self._index_of(checkpoint_id) is not None

    def append(self, record: CheckpointRecord) -> None:
        """Insert record at the tail, evicting one older entry if over capacity."""
        self._records.append(record)
        if len(self._records) > self._capacity:
            victim_index = self._select_victim()
            victim = self._records.pop(victim_index)
            self._evicted_count += 1
            logger.debug(
                "Evicted checkpoint from history",
                checkpoint_id=victim.checkpoint_id,
                status=str(victim.status),
                capacity=self._capacity,
            )

    def replace(self, record: CheckpointRecord) -> bool:
        """Swap the entry with record's id for record, keeping its position.

        Returns:
            True if the id was in the ring, False if it had been evicted.
        """
        index = self._index_of(record.checkpoint_id)
        if index is None:
            return False
        self._records[index] = record
        return True

    def update_latest(self, record: CheckpointRecord) -> None:
        """Point the matching latest slot at record.

        Completed savepoints go to latest_savepoint, other completed
        checkpoints to latest_completed, failures to latest_failed.
        Pending records are ignored.
        """
        match record.payload:
            case CompletedPayload():
                if record.is_savepoint:
                    self._latest_savepoint = record
                else:
                    self._latest_completed = record
            case FailedPayload():
                self._latest_failed = record
            case _:
                pass

    def refresh_latest(self, record: CheckpointRecord) -> None:
        """Replace any latest slot currently holding record's id (e.g. after discard)."""
        checkpoint_id = record.checkpoint_id
        if self._latest_completed is not None and self._latest_completed.checkpoint_id == checkpoint_id:
            self._latest_completed = record
        if self._latest_savepoint is not None and self._latest_savepoint.checkpoint_id == checkpoint_id:
            self._latest_savepoint = record
        if self._latest_failed is not None and self._latest_failed.checkpoint_id == checkpoint_id:
            self._latest_failed = record

    def get(self, checkpoint_id: int) -> CheckpointRecord | None:
        """Look a record up by id in the ring or the latest slots."""
        index = self._index_of(checkpoint_id)
        if index is not None:
            return self._records[index]
        for latest in (self._latest_completed, self._latest_savepoint, self._latest_failed):
            if latest is not None and latest.checkpoint_id == checkpoint_id:
                return latest
        return None

    def snapshot(self) -> CheckpointHistory:
        """Copy the ring and latest slots into an immutable CheckpointHistory."""
        return CheckpointHistory(
            checkpoints=tuple(self._records),
            latest_completed=self._latest_completed,
            latest_savepoint=self._latest_savepoint,
            latest_failed=self._latest_failed,
        )

    def _index_of(self, checkpoint_id: object) -> int | None:
        for index, record in enumerate(self._records):
            if record.checkpoint_id == checkpoint_id:
                return index
        return None

    def _latest_ids(self) -> set[int]:
        return {
            latest.checkpoint_id
            for latest in (self._latest_completed, self._latest_savepoint, self._latest_failed)
            if latest is not None
        }

    def _select_victim(self) -> int:
        """Pick the index to evict. The newest entry (last index) is never chosen."""
        candidates = range(len(self._records) - 1)
        referenced = self._latest_ids()

        for index in candidates:
            record = self._records[index]
            if record.checkpoint_id in referenced:
                continue
            if isinstance(record.payload, FailedPayload) or record.is_discarded:
                return index

        for index in candidates:
            if self._records[index].checkpoint_id not in referenced:
                return index

        # Every older entry is referenced by a latest slot (capacity < 4).
        # The slots own their records, so dropping the oldest loses nothing.
        return 0
