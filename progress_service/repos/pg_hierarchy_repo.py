"""PostgreSQL implementation of HierarchyRepo (read-only)."""

from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from progress_service.db.tables import (
    AssessmentRow,
    ClassInstanceRow,
    LessonRow,
    PathRow,
    RosterRow,
)
from progress_service.models.hierarchy import (
    Assessment,
    ClassInstance,
    Lesson,
    Path,
    RosterEntry,
)


class PgHierarchyRepo:
    """Satisfies the HierarchyRepo Protocol using PostgreSQL via SQLAlchemy."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_lesson(self, lesson_id: str) -> Lesson | None:
        row = await self._session.get(LessonRow, lesson_id)
        return _row_to_lesson(row) if row is not None else None

    async def get_assessment(self, assessment_id: str) -> Assessment | None:
        row = await self._session.get(AssessmentRow, assessment_id)
        if row is None:
            return None
        return Assessment(
            id=row.id,
            path_id=row.path_id,
            lesson_id=row.lesson_id,
            base_class_id=row.base_class_id,
            title=row.title,
        )

    async def get_path(self, path_id: str) -> Path | None:
        row = await self._session.get(PathRow, path_id)
        if row is None:
            return None
        return Path(
            id=row.id,
            base_class_id=row.base_class_id,
            title=row.title,
            order_index=row.order_index,
        )

    async def get_class_instance(self, class_instance_id: str) -> ClassInstance | None:
        row = await self._session.get(ClassInstanceRow, class_instance_id)
        if row is None:
            return None
        return ClassInstance(id=row.id, base_class_id=row.base_class_id, name=row.name)

    async def list_path_ids_for_base_class(self, base_class_id: str) -> list[str]:
        stmt = select(PathRow.id).where(PathRow.base_class_id == base_class_id)
        return list((await self._session.execute(stmt)).scalars().all())

    async def list_lesson_ids_for_paths(self, path_ids: Iterable[str]) -> list[str]:
        ids = list(path_ids)
        if not ids:
            return []
        stmt = select(LessonRow.id).where(LessonRow.path_id.in_(ids))
        return list((await self._session.execute(stmt)).scalars().all())

    async def list_assessment_ids_for_paths(self, path_ids: Iterable[str]) -> list[str]:
        ids = list(path_ids)
        if not ids:
            return []
        stmt = select(AssessmentRow.id).where(AssessmentRow.path_id.in_(ids))
        return list((await self._session.execute(stmt)).scalars().all())

    async def list_assessment_ids_for_lessons(
        self, lesson_ids: Iterable[str]
    ) -> list[str]:
        ids = list(lesson_ids)
        if not ids:
            return []
        stmt = select(AssessmentRow.id).where(AssessmentRow.lesson_id.in_(ids))
        return list((await self._session.execute(stmt)).scalars().all())

    async def list_assessment_ids_for_base_class(self, base_class_id: str) -> list[str]:
        stmt = select(AssessmentRow.id).where(
            AssessmentRow.base_class_id == base_class_id
        )
        return list((await self._session.execute(stmt)).scalars().all())

    async def list_lessons_for_base_class(self, base_class_id: str) -> list[Lesson]:
        stmt = (
            select(LessonRow)
            .join(PathRow, LessonRow.path_id == PathRow.id)
            .where(PathRow.base_class_id == base_class_id)
            .order_by(PathRow.order_index, LessonRow.order_index)
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_lesson(r) for r in rows]

    async def list_student_enrollments(self, user_id: str) -> list[RosterEntry]:
        stmt = select(RosterRow).where(
            RosterRow.profile_id == user_id,
            RosterRow.role == "student",
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [
            RosterEntry(
                user_id=r.profile_id,
                class_instance_id=r.class_instance_id,
                role=r.role,
            )
            for r in rows
        ]


def _row_to_lesson(row: LessonRow) -> Lesson:
    return Lesson(
        id=row.id,
        path_id=row.path_id,
        base_class_id=row.base_class_id,
        title=row.title,
        order_index=row.order_index,
    )
