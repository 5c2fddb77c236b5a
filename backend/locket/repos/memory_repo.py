from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import extract, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from locket.db.models import Memory
from locket.utils.time_utils import utc_now


class MemoryRepo:
    """Read access to locket memories, plus inserts for seeding."""

    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def create_memory(
        self,
        memory_id: str,
        locket_id: str,
        captured_at: datetime,
        title: Optional[str] = None,
        description: Optional[str] = None,
        content_ref: Optional[str] = None,
    ) -> Memory:
        """Persist a memory record."""

        memory = Memory(
            id=memory_id,
            locket_id=locket_id,
            captured_at=captured_at,
            title=title,
            description=description,
            content_ref=content_ref,
            created_at=utc_now(),
        )
        self._db.add(memory)
        await self._db.flush()
        return memory

    async def first_on_this_day(
        self, locket_id: str, month: int, day: int, before_year: int
    ) -> Optional[Memory]:
        """Return the anniversary match from the most recent prior year.

        Ties inside the same year fall back to the earliest capture time, then id.
        """

        statement = on_this_day_query(
            self._db.get_bind().dialect.name, locket_id, month, day, before_year
        )
        result = await self._db.execute(statement)
        return result.scalar_one_or_none()

    async def count_memories(self, locket_id: str) -> int:
        """Count memories stored for a locket."""

        result = await self._db.execute(
            select(func.count()).select_from(Memory).where(Memory.locket_id == locket_id)
        )
        return int(result.scalar_one())

    async def memory_at(self, locket_id: str, offset: int) -> Optional[Memory]:
        """Return the memory at ``offset`` in id order."""

        result = await self._db.execute(
            select(Memory)
            .where(Memory.locket_id == locket_id)
            .order_by(Memory.id.asc())
            .offset(offset)
            .limit(1)
        )
        return result.scalar_one_or_none()


def on_this_day_query(dialect_name: str, locket_id: str, month: int, day: int, before_year: int):
    """Build the anniversary lookup, reading calendar fields in UTC."""

    captured_at = Memory.captured_at
    if dialect_name == "postgresql":
        # timestamptz fields are extracted in the session time zone otherwise.
        captured_at = func.timezone("UTC", Memory.captured_at)
    year = extract("year", captured_at)
    return (
        select(Memory)
        .where(
            Memory.locket_id == locket_id,
            extract("month", captured_at) == month,
            extract("day", captured_at) == day,
            year < before_year,
        )
        .order_by(year.desc(), Memory.captured_at.asc(), Memory.id.asc())
        .limit(1)
    )
