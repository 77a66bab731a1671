"""Running min/max/average accumulator for a numeric series."""

from checkpoint_stats.contracts.snapshot import MinMaxAvg
from checkpoint_stats.stats.errors import InvalidCheckpointEventError


class MinMaxAvgAccumulator:
    """O(1) accumulator for non-negative integer samples.

    The average is derived from an exact integer running sum rather than
    an incrementally updated mean, so skewed series (a few huge state
    sizes among many small ones) do not drift.

    Thread Safety:
        NOT thread-safe. The CheckpointStatsTracker serializes all updates
        under its own lock.

    Example:
        acc = MinMaxAvgAccumulator()
        acc.update(1000)
        acc.snapshot()  # MinMaxAvg(min=1000, max=1000, avg=1000, count=1)
    """

    def __init__(self) -> None:
        self._min: int | None = None
        self._max: int | None = None
        self._sum = 0
        self._count = 0

    @staticmethod
    def validate(sample: int) -> None:
        """Raise InvalidCheckpointEventError if sample cannot be accumulated."""
        if isinstance(sample, bool) or not isinstance(sample, int):
            raise InvalidCheckpointEventError(None, f"sample must be an int, got {type(sample).__name__}")
        if sample < 0:
            raise InvalidCheckpointEventError(None, f"sample must be >= 0, got {sample}")

    def update(self, sample: int) -> None:
        """Add one sample.

        Raises:
            InvalidCheckpointEventError: If sample is negative or not an int.
        """
        self.validate(sample)
        self._min = sample if self._min is None else min(self._min, sample)
        self._max = sample if self._max is None else max(self._max, sample)
        self._sum += sample
        self._count += 1

    @property
    def count(self) -> int:
        return self._count

    def snapshot(self) -> MinMaxAvg:
        if self._min is None or self._max is None:
            return MinMaxAvg()
        return MinMaxAvg(min=self._min, max=self._max, avg=self._sum // self._count, count=self._count)
