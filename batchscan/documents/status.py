"""Document processing status state machine.

    pending ──claim──> processing ──> completed
       ^                   │    └───> failed
       └──lease expired────┘

Images on the fast path are created directly as ``completed``.
"""

from enum import Enum

from batchscan.processor.exceptions import InvalidStatusTransitionError


class ProcessingStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset({ProcessingStatus.COMPLETED, ProcessingStatus.FAILED})

INITIAL_STATUSES = frozenset({ProcessingStatus.PENDING, ProcessingStatus.COMPLETED})

ALLOWED_TRANSITIONS: dict[ProcessingStatus, frozenset[ProcessingStatus]] = {
    ProcessingStatus.PENDING: frozenset({ProcessingStatus.PROCESSING}),
    ProcessingStatus.PROCESSING: frozenset(
        {
            ProcessingStatus.COMPLETED,
            ProcessingStatus.FAILED,
            ProcessingStatus.PENDING,
        }
    ),
    ProcessingStatus.COMPLETED: frozenset(),
    ProcessingStatus.FAILED: frozenset(),
}


def can_transition(source: ProcessingStatus, target: ProcessingStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[source]


def ensure_transition(source: ProcessingStatus, target: ProcessingStatus) -> None:
    """Raise if ``source -> target`` is not an allowed transition."""
    if not can_transition(source, target):
        raise InvalidStatusTransitionError(
            f"Cannot move document from '{source.value}' to '{target.value}'"
        )


def sources_for(target: ProcessingStatus) -> list[ProcessingStatus]:
    """All statuses that may transition into ``target``."""
    return [source for source in ALLOWED_TRANSITIONS if can_transition(source, target)]


def ensure_initial(status: ProcessingStatus) -> None:
    """Raise if a new document would be created in ``status``."""
    if status not in INITIAL_STATUSES:
        raise InvalidStatusTransitionError(
            f"Documents cannot be created with status '{status.value}'"
        )
