from __future__ import annotations

import pytest

from progress_service.models.progress import ItemType, ProgressRecord, ProgressStatus
from progress_service.services.aggregation import (
    calculate_rollup,
    status_for_percentage,
)


def _records(
    item_type: ItemType, *statuses: ProgressStatus
) -> list[ProgressRecord]:
    return [
        ProgressRecord(
            user_id="u-1", item_type=item_type, item_id=f"{item_type.value}-{i}", status=s
        )
        for i, s in enumerate(statuses)
    ]


def _lessons(*statuses: ProgressStatus) -> list[ProgressRecord]:
    return _records(ItemType.LESSON, *statuses)


def _assessments(*statuses: ProgressStatus) -> list[ProgressRecord]:
    return _records(ItemType.ASSESSMENT, *statuses)


DONE = ProgressStatus.COMPLETED
WIP = ProgressStatus.IN_PROGRESS


# ---- weighting ----


def test_lessons_and_assessments_weighted_80_20() -> None:
    # 3/4 lessons (75%) and 1/1 assessment (100%): 60 + 20
    result = calculate_rollup(_lessons(DONE, DONE, DONE), 4, _assessments(DONE), 1)
    assert result.progress_percentage == 80
    assert result.status == ProgressStatus.IN_PROGRESS
    assert result.total_items == 5
    assert result.completed_items == 4


def test_half_the_lessons_and_all_assessments_is_60() -> None:
    # 1/2 lessons (50% * 0.8 = 40) and 2/2 assessments (100% * 0.2 = 20)
    result = calculate_rollup(
        _lessons(DONE), 2, _assessments(ProgressStatus.PASSED, DONE), 2
    )
    assert result.progress_percentage == 60
    assert result.status == ProgressStatus.IN_PROGRESS
    assert result.completed_items == 3


def test_lessons_only_count_fully() -> None:
    result = calculate_rollup(_lessons(DONE, DONE, DONE), 4, [], 0)
    assert result.progress_percentage == 75


def test_assessments_only_count_fully() -> None:
    result = calculate_rollup([], 0, _assessments(DONE, WIP), 2)
    assert result.progress_percentage == 50


def test_all_lessons_without_assessments_caps_at_80_when_both_exist() -> None:
    result = calculate_rollup(_lessons(DONE, DONE), 2, [], 1)
    assert result.progress_percentage == 80
    assert result.status == ProgressStatus.IN_PROGRESS


def test_everything_done_is_completed() -> None:
    result = calculate_rollup(_lessons(DONE, DONE), 2, _assessments(DONE), 1)
    assert result.progress_percentage == 100
    assert result.status == ProgressStatus.COMPLETED


def test_no_children_is_not_started() -> None:
    result = calculate_rollup([], 0, [], 0)
    assert result.progress_percentage == 0
    assert result.status == ProgressStatus.NOT_STARTED
    assert result.total_items == 0


def test_untouched_children_count_as_incomplete() -> None:
    # Only one record exists for three lessons.
    result = calculate_rollup(_lessons(DONE), 3, [], 0)
    assert result.progress_percentage == 33
    assert result.completed_items == 1


# ---- what counts as done ----


def test_passed_assessment_counts_failed_does_not() -> None:
    result = calculate_rollup(
        [], 0, _assessments(ProgressStatus.PASSED, ProgressStatus.FAILED), 2
    )
    assert result.progress_percentage == 50
    assert result.completed_items == 1


def test_lesson_must_be_completed_not_just_advanced() -> None:
    result = calculate_rollup(_lessons(WIP, ProgressStatus.PASSED), 2, [], 0)
    assert result.progress_percentage == 0
    assert result.status == ProgressStatus.NOT_STARTED


# ---- rounding ----


def test_rounds_half_up() -> None:
    # 1/8 = 12.5% -> 13 (banker's rounding would give 12)
    result = calculate_rollup(_lessons(DONE), 8, [], 0)
    assert result.progress_percentage == 13


def test_rounds_two_thirds_up() -> None:
    result = calculate_rollup(_lessons(DONE, DONE), 3, [], 0)
    assert result.progress_percentage == 67


# ---- status derivation ----


@pytest.mark.parametrize(
    ("pct", "status"),
    [
        (0, ProgressStatus.NOT_STARTED),
        (1, ProgressStatus.IN_PROGRESS),
        (99, ProgressStatus.IN_PROGRESS),
        (100, ProgressStatus.COMPLETED),
    ],
)
def test_status_for_percentage(pct: int, status: ProgressStatus) -> None:
    assert status_for_percentage(pct) == status
