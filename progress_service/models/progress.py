from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ItemType(str, Enum):
    LESSON = "lesson"
    ASSESSMENT = "assessment"
    PATH = "path"
    CLASS_INSTANCE = "class_instance"


class ProgressStatus(str, Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    PASSED = "passed"
    FAILED = "failed"
    COMPLETED = "completed"

    @property
    def priority(self) -> int:
        return STATUS_PRIORITY[self]


# failed ranks with in_progress: a failed attempt is still activity,
# but not an advance over it.
STATUS_PRIORITY: dict[ProgressStatus, int] = {
    ProgressStatus.NOT_STARTED: 0,
    ProgressStatus.IN_PROGRESS: 1,
    ProgressStatus.FAILED: 1,
    ProgressStatus.PASSED: 2,
    ProgressStatus.COMPLETED: 3,
}


@dataclass(frozen=True, slots=True)
class ProgressRecord:
    """One row per (user_id, item_type, item_id).

    Leaf records (lesson, assessment) are written by callers through the
    engine; path and class_instance records are derived roll-ups.
    """

    user_id: str
    item_type: ItemType
    item_id: str
    status: ProgressStatus = ProgressStatus.NOT_STARTED
    progress_percentage: int = 0
    last_position: str | None = None
    updated_at: int | None = None

    @staticmethod
    def default(user_id: str, item_type: ItemType, item_id: str) -> ProgressRecord:
        """The implicit record for an item with no recorded activity."""
        return ProgressRecord(user_id=user_id, item_type=item_type, item_id=item_id)

    @property
    def key(self) -> tuple[str, ItemType, str]:
        return (self.user_id, self.item_type, self.item_id)


@dataclass(frozen=True, slots=True)
class ProgressUpdate:
    """A proposed change to a progress record. Every field is optional."""

    status: ProgressStatus | None = None
    progress_percentage: int | None = None
    last_position: str | None = None

    def __post_init__(self) -> None:
        pct = self.progress_percentage
        if pct is not None and not 0 <= pct <= 100:
            raise ValueError(f"progress_percentage must be 0..100 (got {pct})")

    @staticmethod
    def completed() -> ProgressUpdate:
        return ProgressUpdate(
            status=ProgressStatus.COMPLETED, progress_percentage=100
        )


@dataclass(frozen=True, slots=True)
class ProgressEvent:
    """Outbound progress-changed notification for realtime subscribers."""

    user_id: str
    item_type: ItemType
    item_id: str
    progress_percentage: int
    status: ProgressStatus
    occurred_at: int

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "item_type": self.item_type.value,
            "item_id": self.item_id,
            "progress_percentage": self.progress_percentage,
            "status": self.status.value,
            "occurred_at": self.occurred_at,
        }
