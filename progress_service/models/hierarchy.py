"""Course hierarchy as the progress engine sees it.

  BaseClass ─┬─ Path ── Lesson ── (lesson-scoped) Assessment
             │    └──── (path-scoped) Assessment
             ├─ (course-level) Assessment
             └─ ClassInstance ── RosterEntry (learner, role)

These rows are owned by the course-authoring side; the engine only reads
them.
"""

from __future__ import annotations

from dataclasses import dataclass
from uuid import uuid4


@dataclass(frozen=True, slots=True)
class BaseClass:
    id: str
    name: str

    @staticmethod
    def new(*, name: str) -> BaseClass:
        return BaseClass(id=str(uuid4()), name=name)


@dataclass(frozen=True, slots=True)
class Path:
    id: str
    base_class_id: str
    title: str = ""
    order_index: int = 0

    @staticmethod
    def new(*, base_class_id: str, title: str = "", order_index: int = 0) -> Path:
        return Path(
            id=str(uuid4()),
            base_class_id=base_class_id,
            title=title,
            order_index=order_index,
        )


@dataclass(frozen=True, slots=True)
class Lesson:
    id: str
    path_id: str | None
    base_class_id: str | None = None
    title: str = ""
    order_index: int = 0

    @staticmethod
    def new(
        *,
        path_id: str | None,
        base_class_id: str | None = None,
        title: str = "",
        order_index: int = 0,
    ) -> Lesson:
        return Lesson(
            id=str(uuid4()),
            path_id=path_id,
            base_class_id=base_class_id,
            title=title,
            order_index=order_index,
        )


@dataclass(frozen=True, slots=True)
class Assessment:
    """An assessment hangs off a path, a lesson, or directly off a base class."""

    id: str
    path_id: str | None = None
    lesson_id: str | None = None
    base_class_id: str | None = None
    title: str = ""

    @staticmethod
    def new(
        *,
        path_id: str | None = None,
        lesson_id: str | None = None,
        base_class_id: str | None = None,
        title: str = "",
    ) -> Assessment:
        return Assessment(
            id=str(uuid4()),
            path_id=path_id,
            lesson_id=lesson_id,
            base_class_id=base_class_id,
            title=title,
        )


@dataclass(frozen=True, slots=True)
class ClassInstance:
    id: str
    base_class_id: str
    name: str = ""

    @staticmethod
    def new(*, base_class_id: str, name: str = "") -> ClassInstance:
        return ClassInstance(id=str(uuid4()), base_class_id=base_class_id, name=name)


@dataclass(frozen=True, slots=True)
class RosterEntry:
    user_id: str
    class_instance_id: str
    role: str = "student"  # student|teacher|observer
