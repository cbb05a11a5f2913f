from __future__ import annotations

import pytest

from progress_service.models.progress import (
    ItemType,
    ProgressRecord,
    ProgressStatus,
    ProgressUpdate,
)
from progress_service.services.progress_gate import decide_update


def _stored(
    pct: int,
    status: ProgressStatus = ProgressStatus.IN_PROGRESS,
    last_position: str | None = None,
) -> ProgressRecord:
    return ProgressRecord(
        user_id="u-1",
        item_type=ItemType.LESSON,
        item_id="l-1",
        status=status,
        progress_percentage=pct,
        last_position=last_position,
    )


# ---- no stored record ----


def test_first_update_applies() -> None:
    decision = decide_update(None, ProgressUpdate(progress_percentage=30))
    assert decision.apply is True
    assert decision.safe_value == ProgressUpdate(
        status=ProgressStatus.IN_PROGRESS, progress_percentage=30
    )


def test_first_update_with_nothing_in_it_is_rejected() -> None:
    # 0% not_started over the implicit 0% not_started
    decision = decide_update(
        None, ProgressUpdate(status=ProgressStatus.NOT_STARTED, progress_percentage=0)
    )
    assert decision.apply is False
    assert decision.safe_value is None


def test_status_only_update_counts_as_zero_percent() -> None:
    decision = decide_update(None, ProgressUpdate(status=ProgressStatus.IN_PROGRESS))
    assert decision.apply is True
    assert decision.safe_value is not None
    assert decision.safe_value.progress_percentage == 0


# ---- percentage ----


def test_lower_percentage_is_rejected() -> None:
    assert decide_update(_stored(50), ProgressUpdate(progress_percentage=40)).apply is False


def test_lower_percentage_is_rejected_even_with_higher_status() -> None:
    decision = decide_update(
        _stored(80),
        ProgressUpdate(status=ProgressStatus.COMPLETED, progress_percentage=60),
    )
    assert decision.apply is False


def test_higher_percentage_applies() -> None:
    decision = decide_update(_stored(50), ProgressUpdate(progress_percentage=70))
    assert decision.apply is True
    assert decision.safe_value is not None
    assert decision.safe_value.progress_percentage == 70


def test_higher_percentage_with_lower_status_takes_proposed_status() -> None:
    # Percentage rose, so the gate accepts and the proposed status is written.
    decision = decide_update(
        _stored(40, ProgressStatus.PASSED),
        ProgressUpdate(status=ProgressStatus.IN_PROGRESS, progress_percentage=60),
    )
    assert decision.apply is True
    assert decision.safe_value is not None
    assert decision.safe_value.status == ProgressStatus.IN_PROGRESS


# ---- equal percentage, status priority ----


@pytest.mark.parametrize(
    ("current", "proposed", "applies"),
    [
        (ProgressStatus.IN_PROGRESS, ProgressStatus.COMPLETED, True),
        (ProgressStatus.IN_PROGRESS, ProgressStatus.PASSED, True),
        (ProgressStatus.FAILED, ProgressStatus.PASSED, True),
        (ProgressStatus.NOT_STARTED, ProgressStatus.IN_PROGRESS, True),
        (ProgressStatus.IN_PROGRESS, ProgressStatus.IN_PROGRESS, False),
        (ProgressStatus.IN_PROGRESS, ProgressStatus.FAILED, False),
        (ProgressStatus.FAILED, ProgressStatus.IN_PROGRESS, False),
        (ProgressStatus.COMPLETED, ProgressStatus.PASSED, False),
        (ProgressStatus.PASSED, ProgressStatus.FAILED, False),
        (ProgressStatus.PASSED, ProgressStatus.IN_PROGRESS, False),
        (ProgressStatus.PASSED, ProgressStatus.COMPLETED, True),
    ],
)
def test_equal_percentage_needs_strictly_higher_status(
    current: ProgressStatus, proposed: ProgressStatus, applies: bool
) -> None:
    decision = decide_update(
        _stored(50, current), ProgressUpdate(status=proposed, progress_percentage=50)
    )
    assert decision.apply is applies


def test_passed_to_completed_at_same_score_keeps_percentage() -> None:
    decision = decide_update(
        _stored(50, ProgressStatus.PASSED),
        ProgressUpdate(status=ProgressStatus.COMPLETED, progress_percentage=50),
    )
    assert decision.apply is True
    assert decision.safe_value is not None
    assert decision.safe_value.status == ProgressStatus.COMPLETED
    assert decision.safe_value.progress_percentage == 50


# ---- last_position ----


def test_last_position_kept_when_update_omits_it() -> None:
    decision = decide_update(
        _stored(20, last_position="page-3"), ProgressUpdate(progress_percentage=30)
    )
    assert decision.safe_value is not None
    assert decision.safe_value.last_position == "page-3"


def test_last_position_replaced_when_update_carries_it() -> None:
    decision = decide_update(
        _stored(20, last_position="page-3"),
        ProgressUpdate(progress_percentage=30, last_position="page-5"),
    )
    assert decision.safe_value is not None
    assert decision.safe_value.last_position == "page-5"


# ---- ProgressUpdate validation ----


@pytest.mark.parametrize("pct", [-1, 101])
def test_update_rejects_out_of_range_percentage(pct: int) -> None:
    with pytest.raises(ValueError, match="progress_percentage must be 0..100"):
        ProgressUpdate(progress_percentage=pct)
