from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends, HTTPException, status

from progress_service.models.progress import ItemType
from progress_service.repos.factory import Repos, open_repos
from progress_service.services.hierarchical_progress import HierarchicalProgressService
from progress_service.services.notifier import progress_notifier
from progress_service.services.resume import ResumeService

logger = logging.getLogger(__name__)


async def get_repos() -> AsyncGenerator[Repos, None]:
    """Request-scoped repositories (one DB session per request)."""
    async with open_repos() as repos:
        yield repos


def get_progress_service(
    repos: Annotated[Repos, Depends(get_repos)],
) -> HierarchicalProgressService:
    return HierarchicalProgressService(
        repos.progress, repos.hierarchy, progress_notifier
    )


def get_resume_service(
    repos: Annotated[Repos, Depends(get_repos)],
) -> ResumeService:
    return ResumeService(repos.progress, repos.hierarchy)


def parse_item_type(item_type: str) -> ItemType:
    """Path-parameter dependency: 422 for anything outside the enum."""
    try:
        return ItemType(item_type)
    except ValueError:
        logger.warning("Rejected unknown item_type=%s", item_type)
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"unknown item_type {item_type!r}",
        ) from None
