"""Stats-tracker exceptions.

Only malformed input raises. Events referencing unknown or already
terminal checkpoints are not errors; the tracker ignores them.
"""


class CheckpointStatsError(Exception):
    """Base class for checkpoint statistics errors."""


class InvalidCheckpointEventError(CheckpointStatsError, ValueError):
    """Raised when a lifecycle event carries values the tracker cannot accept.

    Raised BEFORE any state is touched, so the tracker is unchanged after
    the exception propagates.

    Attributes:
        checkpoint_id: Id the rejected event referenced (None for bare samples)
        reason: Human-readable description of the problem
    """

    def __init__(self, checkpoint_id: int | None, reason: str) -> None:
        self.checkpoint_id = checkpoint_id
        self.reason = reason
        if checkpoint_id is None:
            super().__init__(f"Invalid checkpoint event: {reason}")
        else:
            super().__init__(f"Invalid event for checkpoint {checkpoint_id}: {reason}")
