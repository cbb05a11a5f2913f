"""Weighted roll-up of leaf progress into a composite (path or class instance).

Lessons carry 80% of the weight and assessments 20%, but only when the
composite has both.  A composite with only lessons (or only assessments)
is measured entirely by them; one with neither sits at 0%.
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass

from progress_service.models.progress import ProgressRecord, ProgressStatus

LESSON_WEIGHT = 0.8
ASSESSMENT_WEIGHT = 0.2

_ASSESSMENT_DONE = (ProgressStatus.COMPLETED, ProgressStatus.PASSED)


@dataclass(frozen=True, slots=True)
class RollupResult:
    progress_percentage: int
    status: ProgressStatus  # not_started|in_progress|completed only
    total_items: int
    completed_items: int


def status_for_percentage(percentage: int) -> ProgressStatus:
    if percentage <= 0:
        return ProgressStatus.NOT_STARTED
    if percentage >= 100:
        return ProgressStatus.COMPLETED
    return ProgressStatus.IN_PROGRESS


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def calculate_rollup(
    lesson_records: Iterable[ProgressRecord],
    total_lessons: int,
    assessment_records: Iterable[ProgressRecord],
    total_assessments: int,
) -> RollupResult:
    """Roll leaf records up into one percentage and status.

    ``total_*`` are the number of children the composite has, not the
    number of records: children nobody has touched yet have no record and
    count as incomplete.
    """
    completed_lessons = sum(
        1 for r in lesson_records if r.status == ProgressStatus.COMPLETED
    )
    completed_assessments = sum(
        1 for r in assessment_records if r.status in _ASSESSMENT_DONE
    )

    lesson_pct = completed_lessons / total_lessons * 100 if total_lessons else 0.0
    assessment_pct = (
        completed_assessments / total_assessments * 100 if total_assessments else 0.0
    )

    if total_lessons and total_assessments:
        overall = lesson_pct * LESSON_WEIGHT + assessment_pct * ASSESSMENT_WEIGHT
    elif total_lessons:
        overall = lesson_pct
    elif total_assessments:
        overall = assessment_pct
    else:
        overall = 0.0

    percentage = _round_half_up(overall)
    return RollupResult(
        progress_percentage=percentage,
        status=status_for_percentage(percentage),
        total_items=total_lessons + total_assessments,
        completed_items=completed_lessons + completed_assessments,
    )
