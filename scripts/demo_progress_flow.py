"""Demo: walk one learner through a small course using FastAPI TestClient.

Run with:
    python scripts/demo_progress_flow.py

Runs against the in-memory repositories, so leave DATABASE_URL and
REDIS_URL unset.
"""

from __future__ import annotations

from fastapi.testclient import TestClient

from progress_service.main import app
from progress_service.models.hierarchy import (
    Assessment,
    BaseClass,
    ClassInstance,
    Lesson,
    Path,
    RosterEntry,
)
from progress_service.repos.factory import hierarchy_repo
from progress_service.services.notifier import progress_notifier

LEARNER = "demo-learner"


def main() -> None:
    client = TestClient(app)
    base = f"/v1/learners/{LEARNER}"

    # ── Seed hierarchy ──────────────────────────────────────────────
    course = BaseClass.new(name="Intro to Statistics")
    path = Path.new(base_class_id=course.id, title="Descriptive stats")
    lessons = [
        Lesson.new(path_id=path.id, title=title, order_index=i)
        for i, title in enumerate(("Mean", "Median", "Variance"))
    ]
    quiz = Assessment.new(path_id=path.id, title="Checkpoint quiz")
    offering = ClassInstance.new(base_class_id=course.id, name="Fall cohort")

    hierarchy_repo.add_base_class(course)
    hierarchy_repo.add_path(path)
    for lesson in lessons:
        hierarchy_repo.add_lesson(lesson)
    hierarchy_repo.add_assessment(quiz)
    hierarchy_repo.add_class_instance(offering)
    hierarchy_repo.add_roster_entry(
        RosterEntry(user_id=LEARNER, class_instance_id=offering.id)
    )

    def show(step: str) -> None:
        p = client.get(f"{base}/progress/path/{path.id}").json()
        c = client.get(f"{base}/progress/class_instance/{offering.id}").json()
        print(
            f"{step:<34} path={p['progress_percentage']:>3}% ({p['status']})"
            f"  class={c['progress_percentage']:>3}% ({c['status']})"
        )

    # ── Step 1: partial lesson progress ─────────────────────────────
    client.post(
        f"{base}/lessons/{lessons[0].id}/progress",
        json={"progress_percentage": 60, "last_position": "slide-4"},
    )
    show("1. lesson 1 at 60%")

    # ── Step 2: finish lesson 1 ─────────────────────────────────────
    client.post(f"{base}/lesson/{lessons[0].id}/complete")
    show("2. lesson 1 completed")

    # ── Step 3: a late, lower update is ignored ─────────────────────
    r = client.post(
        f"{base}/lessons/{lessons[0].id}/progress", json={"progress_percentage": 20}
    )
    print(f"3. stale update applied?            {r.json()['applied']}")

    # ── Step 4: pass the quiz ───────────────────────────────────────
    client.post(
        f"{base}/assessments/{quiz.id}/progress",
        json={"status": "passed", "progress_percentage": 90},
    )
    show("4. quiz passed")

    # ── Step 5: where to resume ─────────────────────────────────────
    point = client.get(f"{base}/base-classes/{course.id}/resume").json()
    print(f"5. resume at                        {point['title']!r}")

    # ── Step 6: finish the remaining lessons ────────────────────────
    for lesson in lessons[1:]:
        client.post(f"{base}/lesson/{lesson.id}/complete")
    show("6. all lessons completed")

    events = getattr(progress_notifier, "events", [])
    print(f"\n{len(events)} progress events emitted:")
    for e in events:
        print(f"   {e.item_type.value:<15} {e.progress_percentage:>3}%  {e.status.value}")


if __name__ == "__main__":
    main()
