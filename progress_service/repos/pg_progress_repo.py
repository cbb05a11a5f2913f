"""PostgreSQL implementation of ProgressRepo."""

from __future__ import annotations

import datetime
from collections.abc import Iterable

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from progress_service.db.tables import ProgressRow
from progress_service.models.progress import ItemType, ProgressRecord, ProgressStatus


class PgProgressRepo:
    """Satisfies the ProgressRepo Protocol using PostgreSQL via SQLAlchemy.

    ``upsert`` commits immediately: each cascade level is its own
    transaction, keyed by (user_id, item_type, item_id).
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(
        self, user_id: str, item_type: ItemType, item_id: str
    ) -> ProgressRecord | None:
        stmt = select(ProgressRow).where(
            ProgressRow.user_id == user_id,
            ProgressRow.item_type == item_type.value,
            ProgressRow.item_id == item_id,
        )
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return _row_to_record(row)

    async def list_for_items(
        self, user_id: str, item_type: ItemType, item_ids: Iterable[str]
    ) -> list[ProgressRecord]:
        ids = list(set(item_ids))
        if not ids:
            return []
        stmt = select(ProgressRow).where(
            ProgressRow.user_id == user_id,
            ProgressRow.item_type == item_type.value,
            ProgressRow.item_id.in_(ids),
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_record(r) for r in rows]

    async def upsert(self, record: ProgressRecord) -> ProgressRecord:
        now = int(datetime.datetime.now(datetime.UTC).timestamp())
        values = {
            "user_id": record.user_id,
            "item_type": record.item_type.value,
            "item_id": record.item_id,
            "status": record.status.value,
            "progress_percentage": record.progress_percentage,
            "last_position": record.last_position,
            "updated_at": now,
        }
        stmt = (
            insert(ProgressRow)
            .values(**values)
            .on_conflict_do_update(
                constraint="uq_progress_key",
                set_={
                    "status": values["status"],
                    "progress_percentage": values["progress_percentage"],
                    "last_position": values["last_position"],
                    "updated_at": now,
                },
            )
            .returning(ProgressRow)
            # The row may already be in the identity map from get().
            .execution_options(populate_existing=True)
        )
        row = (await self._session.execute(stmt)).scalar_one()
        stored = _row_to_record(row)
        await self._session.commit()
        return stored


def _row_to_record(row: ProgressRow) -> ProgressRecord:
    return ProgressRecord(
        user_id=row.user_id,
        item_type=ItemType(row.item_type),
        item_id=row.item_id,
        status=ProgressStatus(row.status),
        progress_percentage=row.progress_percentage,
        last_position=row.last_position,
        updated_at=row.updated_at,
    )
