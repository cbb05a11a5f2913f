from __future__ import annotations

import datetime
from collections.abc import Iterable
from dataclasses import replace
from typing import Protocol

from progress_service.models.progress import ItemType, ProgressRecord


class ProgressRepo(Protocol):
    async def get(
        self, user_id: str, item_type: ItemType, item_id: str
    ) -> ProgressRecord | None: ...
    async def list_for_items(
        self, user_id: str, item_type: ItemType, item_ids: Iterable[str]
    ) -> list[ProgressRecord]: ...
    async def upsert(self, record: ProgressRecord) -> ProgressRecord: ...


def _now() -> int:
    return int(datetime.datetime.now(datetime.UTC).timestamp())


class InMemoryProgressRepo:
    def __init__(self) -> None:
        self._store: dict[tuple[str, ItemType, str], ProgressRecord] = {}

    async def get(
        self, user_id: str, item_type: ItemType, item_id: str
    ) -> ProgressRecord | None:
        return self._store.get((user_id, item_type, item_id))

    async def list_for_items(
        self, user_id: str, item_type: ItemType, item_ids: Iterable[str]
    ) -> list[ProgressRecord]:
        records = []
        for item_id in set(item_ids):
            record = self._store.get((user_id, item_type, item_id))
            if record is not None:
                records.append(record)
        return records

    async def upsert(self, record: ProgressRecord) -> ProgressRecord:
        stored = replace(record, updated_at=_now())
        self._store[stored.key] = stored
        return stored
