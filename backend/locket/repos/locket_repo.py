from __future__ import annotations

from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from locket.db.models import Locket
from locket.utils.time_utils import utc_now


class LocketRepo:
    """Repository for locket persistence."""

    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def create_locket(
        self,
        locket_id: str,
        name: str,
        admin_user_id: str,
        description: Optional[str] = None,
    ) -> Locket:
        """Persist a new locket and return it."""

        locket = Locket(
            id=locket_id,
            name=name,
            description=description,
            admin_user_id=admin_user_id,
            created_at=utc_now(),
        )
        self._db.add(locket)
        await self._db.flush()
        return locket

    async def get_locket(self, locket_id: str) -> Optional[Locket]:
        """Fetch a locket by ID."""

        result = await self._db.execute(select(Locket).where(Locket.id == locket_id))
        return result.scalar_one_or_none()
