"""Learner progress endpoints.

Leaf writes go through the hierarchical engine:
  Client -> POST /v1/learners/{user_id}/lessons/{lesson_id}/progress
  -> gate + upsert lesson -> recompute path -> recompute class instance
  -> notifications -> invalidate the learner's cached lookups -> 200

Reads are read-through cached:
  GET /v1/learners/{user_id}/progress/{item_type}/{item_id}
  -> cache hit: return; miss: read store (or implicit default), populate

Identity comes from the path.  Authentication and authorization are
enforced in front of this service.
"""

from __future__ import annotations

import json
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from progress_service.api.dependencies import (
    get_progress_service,
    get_resume_service,
    parse_item_type,
)
from progress_service.models.progress import (
    ItemType,
    ProgressRecord,
    ProgressStatus,
    ProgressUpdate,
)
from progress_service.services.cache import (
    PROGRESS_CACHE_TTL,
    cache_service,
    invalidate_learner,
    progress_key,
)
from progress_service.services.hierarchical_progress import (
    HierarchicalProgressService,
    UnsupportedItemTypeError,
)
from progress_service.services.resume import ResumeService
from progress_service.services.task_queue import RECALCULATION_QUEUE, task_queue

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/learners/{user_id}", tags=["progress"])

ProgressServiceDep = Annotated[
    HierarchicalProgressService, Depends(get_progress_service)
]


class ProgressUpdateIn(BaseModel):
    status: ProgressStatus | None = None
    progress_percentage: int | None = Field(default=None, ge=0, le=100)
    last_position: str | None = None

    def to_update(self) -> ProgressUpdate:
        return ProgressUpdate(
            status=self.status,
            progress_percentage=self.progress_percentage,
            last_position=self.last_position,
        )


class ProgressOut(BaseModel):
    user_id: str
    item_type: ItemType
    item_id: str
    status: ProgressStatus
    progress_percentage: int
    last_position: str | None = None
    updated_at: int | None = None

    @classmethod
    def from_record(cls, record: ProgressRecord) -> ProgressOut:
        return cls(
            user_id=record.user_id,
            item_type=record.item_type,
            item_id=record.item_id,
            status=record.status,
            progress_percentage=record.progress_percentage,
            last_position=record.last_position,
            updated_at=record.updated_at,
        )


class ProgressWriteOut(BaseModel):
    applied: bool  # False when the update would have regressed progress
    progress: ProgressOut


class ResumePointOut(BaseModel):
    type: str | None
    id: str | None
    title: str | None
    position: str | None


class MasteryOut(BaseModel):
    item_type: ItemType
    item_id: str
    mastery: str


class RecalculationOut(BaseModel):
    task_id: str
    status: str


async def _after_write(
    service: HierarchicalProgressService,
    user_id: str,
    item_type: ItemType,
    item_id: str,
    stored: ProgressRecord | None,
) -> ProgressWriteOut:
    if stored is not None:
        await invalidate_learner(user_id)
    current = stored or await service.get_progress(user_id, item_type, item_id)
    return ProgressWriteOut(
        applied=stored is not None, progress=ProgressOut.from_record(current)
    )


# ---------------------------------------------------------------------------
# Leaf writes
# ---------------------------------------------------------------------------


@router.post("/lessons/{lesson_id}/progress", response_model=ProgressWriteOut)
async def update_lesson_progress(
    user_id: str,
    lesson_id: str,
    body: ProgressUpdateIn,
    service: ProgressServiceDep,
) -> ProgressWriteOut:
    stored = await service.update_lesson_progress(lesson_id, user_id, body.to_update())
    return await _after_write(service, user_id, ItemType.LESSON, lesson_id, stored)


@router.post("/assessments/{assessment_id}/progress", response_model=ProgressWriteOut)
async def update_assessment_progress(
    user_id: str,
    assessment_id: str,
    body: ProgressUpdateIn,
    service: ProgressServiceDep,
) -> ProgressWriteOut:
    stored = await service.update_assessment_progress(
        assessment_id, user_id, body.to_update()
    )
    return await _after_write(
        service, user_id, ItemType.ASSESSMENT, assessment_id, stored
    )


@router.post("/{item_type}/{item_id}/complete", response_model=ProgressWriteOut)
async def mark_completed(
    user_id: str,
    item_id: str,
    kind: Annotated[ItemType, Depends(parse_item_type)],
    service: ProgressServiceDep,
) -> ProgressWriteOut:
    try:
        stored = await service.mark_completed(item_id, user_id, kind)
    except UnsupportedItemTypeError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)
        ) from None
    return await _after_write(service, user_id, kind, item_id, stored)


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


@router.get("/progress/{item_type}/{item_id}", response_model=ProgressOut)
async def get_progress(
    user_id: str,
    item_id: str,
    kind: Annotated[ItemType, Depends(parse_item_type)],
    service: ProgressServiceDep,
) -> ProgressOut:
    cache_key = progress_key(user_id, kind.value, item_id)

    cached = await cache_service.get(cache_key)
    if cached is not None:
        return ProgressOut(**json.loads(cached))

    out = ProgressOut.from_record(
        await service.get_progress(user_id, kind, item_id)
    )
    await cache_service.set(
        cache_key, json.dumps(out.model_dump(mode="json")), PROGRESS_CACHE_TTL
    )
    return out


@router.get(
    "/progress/{item_type}/{item_id}/mastery", response_model=MasteryOut
)
async def get_mastery(
    user_id: str,
    item_id: str,
    kind: Annotated[ItemType, Depends(parse_item_type)],
    resume: Annotated[ResumeService, Depends(get_resume_service)],
) -> MasteryOut:
    level = await resume.calculate_mastery(user_id, kind, item_id)
    return MasteryOut(item_type=kind, item_id=item_id, mastery=level.value)


@router.get("/base-classes/{base_class_id}/resume", response_model=ResumePointOut)
async def get_resume_point(
    user_id: str,
    base_class_id: str,
    resume: Annotated[ResumeService, Depends(get_resume_service)],
) -> ResumePointOut:
    point = await resume.get_resume_point(user_id, base_class_id)
    return ResumePointOut(
        type=point.type, id=point.id, title=point.title, position=point.position
    )


# ---------------------------------------------------------------------------
# Background recalculation
# ---------------------------------------------------------------------------


@router.post(
    "/paths/{path_id}/recalculate",
    response_model=RecalculationOut,
    status_code=status.HTTP_202_ACCEPTED,
)
async def recalculate_path(user_id: str, path_id: str) -> RecalculationOut:
    task = await task_queue.enqueue(
        RECALCULATION_QUEUE, {"user_id": user_id, "path_id": path_id}
    )
    logger.info("Queued path recalculation task=%s path=%s", task.id, path_id)
    return RecalculationOut(task_id=task.id, status="queued")


@router.post(
    "/base-classes/{base_class_id}/recalculate",
    response_model=RecalculationOut,
    status_code=status.HTTP_202_ACCEPTED,
)
async def recalculate_base_class(user_id: str, base_class_id: str) -> RecalculationOut:
    task = await task_queue.enqueue(
        RECALCULATION_QUEUE, {"user_id": user_id, "base_class_id": base_class_id}
    )
    logger.info(
        "Queued class recalculation task=%s base_class=%s", task.id, base_class_id
    )
    return RecalculationOut(task_id=task.id, status="queued")
