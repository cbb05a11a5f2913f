"""Where should a learner pick up, and how well do they know an item?

Both read progress records only; neither writes.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from progress_service.models.progress import ItemType, ProgressStatus
from progress_service.repos.hierarchy_repo import HierarchyRepo
from progress_service.repos.progress_repo import ProgressRepo


class MasteryLevel(str, Enum):
    NOVICE = "novice"
    DEVELOPING = "developing"
    PROFICIENT = "proficient"
    ADVANCED = "advanced"
    EXPERT = "expert"


# (minimum percentage, level), checked top-down
_MASTERY_THRESHOLDS: tuple[tuple[int, MasteryLevel], ...] = (
    (95, MasteryLevel.EXPERT),
    (85, MasteryLevel.ADVANCED),
    (70, MasteryLevel.PROFICIENT),
    (50, MasteryLevel.DEVELOPING),
)


@dataclass(frozen=True, slots=True)
class CoursePosition:
    path_id: str | None = None
    lesson_id: str | None = None
    last_position: str | None = None


@dataclass(frozen=True, slots=True)
class ResumePoint:
    type: str | None = None  # "lesson" or None
    id: str | None = None
    title: str | None = None
    position: str | None = None


def mastery_for_percentage(percentage: int) -> MasteryLevel:
    for minimum, level in _MASTERY_THRESHOLDS:
        if percentage >= minimum:
            return level
    return MasteryLevel.NOVICE


class ResumeService:
    def __init__(self, progress_repo: ProgressRepo, hierarchy_repo: HierarchyRepo) -> None:
        self._progress = progress_repo
        self._hierarchy = hierarchy_repo

    async def get_current_position(
        self, user_id: str, base_class_id: str
    ) -> CoursePosition:
        """First lesson (in path order, then lesson order) not yet completed.

        When every lesson is completed the last one is returned; a base
        class with no lessons gives an empty position.
        """
        lessons = await self._hierarchy.list_lessons_for_base_class(base_class_id)
        if not lessons:
            return CoursePosition()

        records = await self._progress.list_for_items(
            user_id, ItemType.LESSON, [lesson.id for lesson in lessons]
        )
        by_lesson = {r.item_id: r for r in records}

        for lesson in lessons:
            record = by_lesson.get(lesson.id)
            if record is None or record.status != ProgressStatus.COMPLETED:
                return CoursePosition(
                    path_id=lesson.path_id,
                    lesson_id=lesson.id,
                    last_position=record.last_position if record else None,
                )

        last = lessons[-1]
        record = by_lesson.get(last.id)
        return CoursePosition(
            path_id=last.path_id,
            lesson_id=last.id,
            last_position=record.last_position if record else None,
        )

    async def get_resume_point(self, user_id: str, base_class_id: str) -> ResumePoint:
        position = await self.get_current_position(user_id, base_class_id)
        if position.lesson_id is None:
            return ResumePoint()

        lesson = await self._hierarchy.get_lesson(position.lesson_id)
        return ResumePoint(
            type="lesson",
            id=position.lesson_id,
            title=lesson.title if lesson is not None else None,
            position=position.last_position,
        )

    async def calculate_mastery(
        self, user_id: str, item_type: ItemType, item_id: str
    ) -> MasteryLevel:
        record = await self._progress.get(user_id, item_type, item_id)
        if record is None:
            return MasteryLevel.NOVICE
        return mastery_for_percentage(record.progress_percentage)
