from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol

from progress_service.models.hierarchy import (
    Assessment,
    BaseClass,
    ClassInstance,
    Lesson,
    Path,
    RosterEntry,
)


class HierarchyRepo(Protocol):
    async def get_lesson(self, lesson_id: str) -> Lesson | None: ...
    async def get_assessment(self, assessment_id: str) -> Assessment | None: ...
    async def get_path(self, path_id: str) -> Path | None: ...
    async def get_class_instance(
        self, class_instance_id: str
    ) -> ClassInstance | None: ...
    async def list_path_ids_for_base_class(self, base_class_id: str) -> list[str]: ...
    async def list_lesson_ids_for_paths(self, path_ids: Iterable[str]) -> list[str]: ...
    async def list_assessment_ids_for_paths(
        self, path_ids: Iterable[str]
    ) -> list[str]: ...
    async def list_assessment_ids_for_lessons(
        self, lesson_ids: Iterable[str]
    ) -> list[str]: ...
    async def list_assessment_ids_for_base_class(
        self, base_class_id: str
    ) -> list[str]: ...
    async def list_lessons_for_base_class(self, base_class_id: str) -> list[Lesson]: ...
    async def list_student_enrollments(self, user_id: str) -> list[RosterEntry]: ...


class InMemoryHierarchyRepo:
    """Dict-backed hierarchy for tests and DATABASE_URL-less runs.

    The ``add_*`` helpers stand in for the course-authoring side that owns
    these rows in production.
    """

    def __init__(self) -> None:
        self._base_classes: dict[str, BaseClass] = {}
        self._paths: dict[str, Path] = {}
        self._lessons: dict[str, Lesson] = {}
        self._assessments: dict[str, Assessment] = {}
        self._class_instances: dict[str, ClassInstance] = {}
        self._rosters: list[RosterEntry] = []

    def clear(self) -> None:
        self._base_classes.clear()
        self._paths.clear()
        self._lessons.clear()
        self._assessments.clear()
        self._class_instances.clear()
        self._rosters.clear()

    # --- seeding ---

    def add_base_class(self, base_class: BaseClass) -> None:
        self._base_classes[base_class.id] = base_class

    def add_path(self, path: Path) -> None:
        self._paths[path.id] = path

    def add_lesson(self, lesson: Lesson) -> None:
        self._lessons[lesson.id] = lesson

    def add_assessment(self, assessment: Assessment) -> None:
        self._assessments[assessment.id] = assessment

    def add_class_instance(self, class_instance: ClassInstance) -> None:
        self._class_instances[class_instance.id] = class_instance

    def add_roster_entry(self, entry: RosterEntry) -> None:
        if entry in self._rosters:
            raise ValueError("roster entry already exists")
        self._rosters.append(entry)

    # --- HierarchyRepo ---

    async def get_lesson(self, lesson_id: str) -> Lesson | None:
        return self._lessons.get(lesson_id)

    async def get_assessment(self, assessment_id: str) -> Assessment | None:
        return self._assessments.get(assessment_id)

    async def get_path(self, path_id: str) -> Path | None:
        return self._paths.get(path_id)

    async def get_class_instance(self, class_instance_id: str) -> ClassInstance | None:
        return self._class_instances.get(class_instance_id)

    async def list_path_ids_for_base_class(self, base_class_id: str) -> list[str]:
        return [p.id for p in self._paths.values() if p.base_class_id == base_class_id]

    async def list_lesson_ids_for_paths(self, path_ids: Iterable[str]) -> list[str]:
        wanted = set(path_ids)
        return [
            lesson.id for lesson in self._lessons.values() if lesson.path_id in wanted
        ]

    async def list_assessment_ids_for_paths(self, path_ids: Iterable[str]) -> list[str]:
        wanted = set(path_ids)
        return [a.id for a in self._assessments.values() if a.path_id in wanted]

    async def list_assessment_ids_for_lessons(
        self, lesson_ids: Iterable[str]
    ) -> list[str]:
        wanted = set(lesson_ids)
        return [a.id for a in self._assessments.values() if a.lesson_id in wanted]

    async def list_assessment_ids_for_base_class(self, base_class_id: str) -> list[str]:
        return [
            a.id
            for a in self._assessments.values()
            if a.base_class_id == base_class_id
        ]

    async def list_lessons_for_base_class(self, base_class_id: str) -> list[Lesson]:
        paths = sorted(
            (p for p in self._paths.values() if p.base_class_id == base_class_id),
            key=lambda p: p.order_index,
        )
        ordered: list[Lesson] = []
        for path in paths:
            ordered.extend(
                sorted(
                    (le for le in self._lessons.values() if le.path_id == path.id),
                    key=lambda le: le.order_index,
                )
            )
        return ordered

    async def list_student_enrollments(self, user_id: str) -> list[RosterEntry]:
        return [
            r for r in self._rosters if r.user_id == user_id and r.role == "student"
        ]
