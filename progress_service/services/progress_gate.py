"""Monotonicity gate: progress for a key never goes backwards.

Every level of the cascade (lesson, assessment, path, class instance) runs
its candidate through ``decide_update`` against the freshly read stored
record before writing.  The gate is the only thing standing between a late
or lower-fidelity update and a regression; no locks are taken, so it must
be re-evaluated against a fresh read at every step.

    current  proposed            decision
    50%      40%                 reject (percentage would drop)
    50%      50%, lower status   reject (status would drop)
    50%      50%, same status    reject (nothing to write)
    50%      50%, higher status  apply, keep 50%, take the new status
    50%      70%                 apply
"""

from __future__ import annotations

from dataclasses import dataclass

from progress_service.models.progress import (
    ProgressRecord,
    ProgressStatus,
    ProgressUpdate,
)


@dataclass(frozen=True, slots=True)
class GateDecision:
    apply: bool
    safe_value: ProgressUpdate | None = None


_REJECT = GateDecision(apply=False)


def decide_update(
    current: ProgressRecord | None, proposed: ProgressUpdate
) -> GateDecision:
    """Decide whether ``proposed`` may be written over ``current``.

    A missing record counts as 0% / not_started.  A proposal without a
    percentage counts as 0%; one without a status counts as in_progress.
    When applied, ``safe_value`` always has both fields filled in.
    """
    current_pct = current.progress_percentage if current is not None else 0
    current_status = current.status if current is not None else ProgressStatus.NOT_STARTED
    proposed_pct = proposed.progress_percentage or 0
    proposed_status = proposed.status or ProgressStatus.IN_PROGRESS

    if proposed_pct < current_pct:
        return _REJECT

    if proposed_pct == current_pct and proposed_status.priority <= current_status.priority:
        return _REJECT

    last_position = proposed.last_position
    if last_position is None and current is not None:
        last_position = current.last_position

    return GateDecision(
        apply=True,
        safe_value=ProgressUpdate(
            status=proposed_status,
            progress_percentage=max(current_pct, proposed_pct),
            last_position=last_position,
        ),
    )
