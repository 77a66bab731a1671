"""Status codes and kinds shared by the tracker and the report projection."""

from enum import StrEnum


class CheckpointStatus(StrEnum):
    """Lifecycle status of a single checkpoint attempt.

    Emitted verbatim in the report history (``status`` field), so the
    values are part of the wire contract.
    """

    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"

    @property
    def is_terminal(self) -> bool:
        return self is not CheckpointStatus.IN_PROGRESS


class CheckpointType(StrEnum):
    """Whether an attempt is a periodic checkpoint or a savepoint."""

    CHECKPOINT = "checkpoint"
    SAVEPOINT = "savepoint"
