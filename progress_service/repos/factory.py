"""Picks the repository implementations for the configured backend.

Without DATABASE_URL every caller shares the module-level in-memory repos
below (tests seed and reset them directly).  With it, each scope gets a
fresh AsyncSession and the PostgreSQL repos bound to it.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass

from progress_service.db.engine import async_session_factory
from progress_service.repos.hierarchy_repo import HierarchyRepo, InMemoryHierarchyRepo
from progress_service.repos.pg_hierarchy_repo import PgHierarchyRepo
from progress_service.repos.pg_progress_repo import PgProgressRepo
from progress_service.repos.progress_repo import InMemoryProgressRepo, ProgressRepo

progress_repo = InMemoryProgressRepo()
hierarchy_repo = InMemoryHierarchyRepo()


@dataclass(frozen=True, slots=True)
class Repos:
    progress: ProgressRepo
    hierarchy: HierarchyRepo


@asynccontextmanager
async def open_repos() -> AsyncIterator[Repos]:
    if async_session_factory is None:
        yield Repos(progress=progress_repo, hierarchy=hierarchy_repo)
        return

    async with async_session_factory() as session:
        yield Repos(
            progress=PgProgressRepo(session), hierarchy=PgHierarchyRepo(session)
        )
