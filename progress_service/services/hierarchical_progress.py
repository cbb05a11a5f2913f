"""Hierarchical progress engine.

A leaf update flows upward one level at a time, each level awaited before
the next because it reads what the level below just wrote:

    lesson ──> path ──> class instance
    assessment ──> path ──> class instance
    assessment (course-level) ──────> class instance

At every level the engine reads the stored record, computes a candidate,
passes it through the monotonicity gate and writes only if the gate
accepts.  Aggregated records (path, class instance) are never authored
directly; they are recomputed from leaf records on each relevant change.

Event ordering
  lesson:     write, cascade, then emit (upper levels are visible first)
  assessment: write, emit, then cascade
  path:       write, cascade, then emit
  class:      write, emit

Failure model
  Nothing is locked and nothing spans levels transactionally.  An exception
  from a repo propagates and aborts the rest of the cascade; levels already
  written stay written.  Two concurrent cascades for the same learner can
  both read a stale aggregate and both write; since each candidate is
  derived from leaf state and gated against a fresh read, the stored value
  still never ends below the true maximum.
"""

from __future__ import annotations

import datetime
import logging
from collections.abc import Iterable

from progress_service.core.metrics import (
    CASCADE_SKIPS,
    PROGRESS_EVENTS_EMITTED,
    PROGRESS_UPDATES,
)
from progress_service.models.progress import (
    ItemType,
    ProgressEvent,
    ProgressRecord,
    ProgressUpdate,
)
from progress_service.repos.hierarchy_repo import HierarchyRepo
from progress_service.repos.progress_repo import ProgressRepo
from progress_service.services.aggregation import RollupResult, calculate_rollup
from progress_service.services.notifier import ProgressNotifier
from progress_service.services.progress_gate import decide_update

logger = logging.getLogger(__name__)


class UnsupportedItemTypeError(ValueError):
    pass


def _unique(ids: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(ids))


class HierarchicalProgressService:
    def __init__(
        self,
        progress_repo: ProgressRepo,
        hierarchy_repo: HierarchyRepo,
        notifier: ProgressNotifier,
    ) -> None:
        self._progress = progress_repo
        self._hierarchy = hierarchy_repo
        self._notifier = notifier

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_progress(
        self, user_id: str, item_type: ItemType, item_id: str
    ) -> ProgressRecord:
        """Stored record, or the implicit not_started/0% one."""
        record = await self._progress.get(user_id, item_type, item_id)
        if record is None:
            return ProgressRecord.default(user_id, item_type, item_id)
        return record

    # ------------------------------------------------------------------
    # Leaf entry points
    # ------------------------------------------------------------------

    async def update_lesson_progress(
        self, lesson_id: str, user_id: str, update: ProgressUpdate
    ) -> ProgressRecord | None:
        """Record lesson progress and cascade upward.

        Returns the stored lesson record, or None when the gate rejected
        the update (nothing written, nothing cascaded, nothing emitted).
        """
        stored = await self._apply(user_id, ItemType.LESSON, lesson_id, update)
        if stored is None:
            return None

        lesson = await self._hierarchy.get_lesson(lesson_id)
        if lesson is not None and lesson.path_id:
            await self.update_path_progress(lesson.path_id, user_id)
        else:
            logger.info("Lesson %s has no path; nothing to cascade", lesson_id)

        await self._emit(stored)
        return stored

    async def update_assessment_progress(
        self, assessment_id: str, user_id: str, update: ProgressUpdate
    ) -> ProgressRecord | None:
        """Record assessment progress, notify, then cascade upward.

        Path-scoped assessments cascade into their path; lesson-scoped ones
        into their lesson's path; course-level ones (no path) go straight to
        the class instance.
        """
        stored = await self._apply(user_id, ItemType.ASSESSMENT, assessment_id, update)
        if stored is None:
            return None

        await self._emit(stored)

        assessment = await self._hierarchy.get_assessment(assessment_id)
        if assessment is None:
            logger.info("Assessment %s not found; nothing to cascade", assessment_id)
            return stored

        path_id = assessment.path_id
        if path_id is None and assessment.lesson_id is not None:
            lesson = await self._hierarchy.get_lesson(assessment.lesson_id)
            path_id = lesson.path_id if lesson is not None else None

        if path_id:
            await self.update_path_progress(path_id, user_id)
        elif assessment.base_class_id:
            await self.update_class_instance_progress(assessment.base_class_id, user_id)
        else:
            logger.info("Assessment %s has no parent; nothing to cascade", assessment_id)
        return stored

    async def mark_completed(
        self, item_id: str, user_id: str, item_type: ItemType
    ) -> ProgressRecord | None:
        if item_type is ItemType.LESSON:
            return await self.update_lesson_progress(
                item_id, user_id, ProgressUpdate.completed()
            )
        if item_type is ItemType.ASSESSMENT:
            return await self.update_assessment_progress(
                item_id, user_id, ProgressUpdate.completed()
            )
        raise UnsupportedItemTypeError(
            f"{item_type.value} progress is derived and cannot be set directly"
        )

    # ------------------------------------------------------------------
    # Aggregated levels
    # ------------------------------------------------------------------

    async def update_path_progress(
        self, path_id: str, user_id: str
    ) -> ProgressRecord | None:
        rollup = await self.calculate_path_progress(path_id, user_id)
        stored = await self._apply(
            user_id,
            ItemType.PATH,
            path_id,
            ProgressUpdate(
                status=rollup.status, progress_percentage=rollup.progress_percentage
            ),
        )

        # Runs even when this path did not move: a sibling path may have,
        # and the class instance has to see it.
        path = await self._hierarchy.get_path(path_id)
        if path is not None:
            await self.update_class_instance_progress(path.base_class_id, user_id)

        if stored is not None:
            await self._emit(stored)
        return stored

    async def update_class_instance_progress(
        self, base_class_id: str, user_id: str
    ) -> ProgressRecord | None:
        class_instance_id = await self.resolve_class_instance(base_class_id, user_id)
        if class_instance_id is None:
            return None

        rollup = await self.calculate_class_instance_progress(base_class_id, user_id)
        stored = await self._apply(
            user_id,
            ItemType.CLASS_INSTANCE,
            class_instance_id,
            ProgressUpdate(
                status=rollup.status, progress_percentage=rollup.progress_percentage
            ),
        )
        if stored is not None:
            await self._emit(stored)
        return stored

    async def resolve_class_instance(
        self, base_class_id: str, user_id: str
    ) -> str | None:
        """The class instance of ``base_class_id`` the learner is a student in.

        None means there is nothing to aggregate into: either the learner
        is self-paced (no student roster entry at all) or none of their
        enrollments is an offering of this base class.
        """
        enrollments = await self._hierarchy.list_student_enrollments(user_id)
        if not enrollments:
            CASCADE_SKIPS.labels(reason="not_enrolled").inc()
            logger.info(
                "No enrollment for user %s; self-paced, skipping class progress",
                user_id,
                extra={"user_id": user_id},
            )
            return None

        for entry in enrollments:
            instance = await self._hierarchy.get_class_instance(entry.class_instance_id)
            if instance is not None and instance.base_class_id == base_class_id:
                return instance.id

        CASCADE_SKIPS.labels(reason="base_class_mismatch").inc()
        logger.info(
            "User %s has no class instance of base class %s",
            user_id,
            base_class_id,
            extra={"user_id": user_id},
        )
        return None

    # ------------------------------------------------------------------
    # Roll-up calculation (no writes)
    # ------------------------------------------------------------------

    async def calculate_path_progress(self, path_id: str, user_id: str) -> RollupResult:
        lesson_ids = _unique(await self._hierarchy.list_lesson_ids_for_paths([path_id]))
        assessment_ids = _unique(
            await self._hierarchy.list_assessment_ids_for_paths([path_id])
            + await self._hierarchy.list_assessment_ids_for_lessons(lesson_ids)
        )
        rollup = await self._rollup(user_id, lesson_ids, assessment_ids)
        logger.debug(
            "Path %s: %d%% (%d/%d items)",
            path_id,
            rollup.progress_percentage,
            rollup.completed_items,
            rollup.total_items,
        )
        return rollup

    async def calculate_class_instance_progress(
        self, base_class_id: str, user_id: str
    ) -> RollupResult:
        path_ids = await self._hierarchy.list_path_ids_for_base_class(base_class_id)
        lesson_ids = _unique(await self._hierarchy.list_lesson_ids_for_paths(path_ids))
        assessment_ids = _unique(
            await self._hierarchy.list_assessment_ids_for_base_class(base_class_id)
            + await self._hierarchy.list_assessment_ids_for_paths(path_ids)
            + await self._hierarchy.list_assessment_ids_for_lessons(lesson_ids)
        )
        rollup = await self._rollup(user_id, lesson_ids, assessment_ids)
        logger.debug(
            "Base class %s: %d%% (%d/%d items)",
            base_class_id,
            rollup.progress_percentage,
            rollup.completed_items,
            rollup.total_items,
        )
        return rollup

    async def _rollup(
        self, user_id: str, lesson_ids: list[str], assessment_ids: list[str]
    ) -> RollupResult:
        lesson_records = await self._progress.list_for_items(
            user_id, ItemType.LESSON, lesson_ids
        )
        assessment_records = await self._progress.list_for_items(
            user_id, ItemType.ASSESSMENT, assessment_ids
        )
        return calculate_rollup(
            lesson_records, len(lesson_ids), assessment_records, len(assessment_ids)
        )

    # ------------------------------------------------------------------
    # Gate, write, notify
    # ------------------------------------------------------------------

    async def _apply(
        self,
        user_id: str,
        item_type: ItemType,
        item_id: str,
        update: ProgressUpdate,
    ) -> ProgressRecord | None:
        context = {"user_id": user_id, "item_type": item_type.value, "item_id": item_id}
        current = await self._progress.get(user_id, item_type, item_id)
        decision = decide_update(current, update)

        if not decision.apply or decision.safe_value is None:
            PROGRESS_UPDATES.labels(item_type=item_type.value, outcome="rejected").inc()
            logger.debug(
                "Skipping %s update: proposed %s%% (%s) vs stored %s%% (%s)",
                item_type.value,
                update.progress_percentage,
                update.status.value if update.status else None,
                current.progress_percentage if current else 0,
                current.status.value if current else "not_started",
                extra=context,
            )
            return None

        safe = decision.safe_value
        stored = await self._progress.upsert(
            ProgressRecord(
                user_id=user_id,
                item_type=item_type,
                item_id=item_id,
                status=safe.status,  # type: ignore[arg-type]
                progress_percentage=safe.progress_percentage or 0,
                last_position=safe.last_position,
            )
        )
        PROGRESS_UPDATES.labels(item_type=item_type.value, outcome="applied").inc()
        logger.info(
            "Updated %s %s -> %d%% (%s)",
            item_type.value,
            item_id,
            stored.progress_percentage,
            stored.status.value,
            extra=context,
        )
        return stored

    async def _emit(self, record: ProgressRecord) -> None:
        event = ProgressEvent(
            user_id=record.user_id,
            item_type=record.item_type,
            item_id=record.item_id,
            progress_percentage=record.progress_percentage,
            status=record.status,
            occurred_at=int(datetime.datetime.now(datetime.UTC).timestamp()),
        )
        await self._notifier.emit(event)
        PROGRESS_EVENTS_EMITTED.labels(item_type=record.item_type.value).inc()
