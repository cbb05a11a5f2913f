from __future__ import annotations

import sys
from dataclasses import dataclass
from pathlib import Path as FsPath

import pytest
from fastapi.testclient import TestClient

# Ensure repo root is on sys.path so `import progress_service` works under pytest.
ROOT = FsPath(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from progress_service.main import app  # noqa: E402
from progress_service.models.hierarchy import (  # noqa: E402
    Assessment,
    BaseClass,
    ClassInstance,
    Lesson,
    Path,
    RosterEntry,
)
from progress_service.repos.factory import hierarchy_repo, progress_repo  # noqa: E402
from progress_service.services.cache import cache_service  # noqa: E402
from progress_service.services.notifier import progress_notifier  # noqa: E402
from progress_service.services.task_queue import task_queue  # noqa: E402

LEARNER = "learner-1"


@pytest.fixture(autouse=True)
def reset_progress_store() -> None:
    """Clear stored progress records between tests."""
    progress_repo._store.clear()


@pytest.fixture(autouse=True)
def reset_hierarchy() -> None:
    hierarchy_repo.clear()


@pytest.fixture(autouse=True)
def reset_notifier() -> None:
    """Clear captured progress events between tests."""
    if hasattr(progress_notifier, "clear"):
        progress_notifier.clear()  # type: ignore[union-attr]


@pytest.fixture(autouse=True)
def reset_cache() -> None:
    """Clear cache between tests."""
    if hasattr(cache_service, "_store"):
        cache_service._store.clear()  # type: ignore[union-attr]


@pytest.fixture(autouse=True)
def reset_task_queue() -> None:
    """Clear task queues between tests."""
    if hasattr(task_queue, "_queues"):
        task_queue._queues.clear()  # type: ignore[union-attr]


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


# ---------------------------------------------------------------------------
# Course hierarchy helpers
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SeededCourse:
    """Ids of the standard test course.

    base class bc-1
      path p-1 (order 0): lessons l-1, l-2; path assessment a-path
      path p-2 (order 1): lesson l-3
      course-level assessment a-final
      class instance ci-1, LEARNER enrolled as student
    """

    base_class_id: str = "bc-1"
    path_1: str = "p-1"
    path_2: str = "p-2"
    lesson_1: str = "l-1"
    lesson_2: str = "l-2"
    lesson_3: str = "l-3"
    path_assessment: str = "a-path"
    final_assessment: str = "a-final"
    class_instance_id: str = "ci-1"


def seed_course(*, enroll: str | None = LEARNER) -> SeededCourse:
    """Load the standard course into the in-memory hierarchy repo."""
    c = SeededCourse()
    hierarchy_repo.add_base_class(BaseClass(id=c.base_class_id, name="Algebra I"))
    hierarchy_repo.add_path(
        Path(id=c.path_1, base_class_id=c.base_class_id, title="Basics", order_index=0)
    )
    hierarchy_repo.add_path(
        Path(id=c.path_2, base_class_id=c.base_class_id, title="Equations", order_index=1)
    )
    hierarchy_repo.add_lesson(
        Lesson(id=c.lesson_1, path_id=c.path_1, title="Numbers", order_index=0)
    )
    hierarchy_repo.add_lesson(
        Lesson(id=c.lesson_2, path_id=c.path_1, title="Variables", order_index=1)
    )
    hierarchy_repo.add_lesson(
        Lesson(id=c.lesson_3, path_id=c.path_2, title="Linear", order_index=0)
    )
    hierarchy_repo.add_assessment(Assessment(id=c.path_assessment, path_id=c.path_1))
    hierarchy_repo.add_assessment(
        Assessment(id=c.final_assessment, base_class_id=c.base_class_id)
    )
    hierarchy_repo.add_class_instance(
        ClassInstance(id=c.class_instance_id, base_class_id=c.base_class_id)
    )
    if enroll is not None:
        hierarchy_repo.add_roster_entry(
            RosterEntry(user_id=enroll, class_instance_id=c.class_instance_id)
        )
    return c


@pytest.fixture
def course() -> SeededCourse:
    """Standard course with LEARNER enrolled in its class instance."""
    return seed_course()
