from __future__ import annotations

import random
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from locket.db.models import Memory
from locket.repos.memory_repo import MemoryRepo
from locket.services.store_guard import guarded_store_call
from locket.utils.time_utils import ensure_utc, utc_now

SOURCE_ON_THIS_DAY = "on_this_day"
SOURCE_RANDOM = "random"
SOURCE_NONE = "none"


@dataclass(frozen=True)
class SpotlightResult:
    """Memory chosen for the dashboard spotlight and why it was chosen."""

    memory: Optional[Memory]
    source: str
    years_ago: Optional[int] = None


class SpotlightService:
    """Pick one memory to surface for a locket.

    Callers must already have passed the access gate for the locket.
    Anniversary matches ("on this day" in an earlier year) win, and are chosen
    deterministically: most recent year first, then earliest capture, then id.
    Otherwise a memory is drawn uniformly at random. Results are never cached.
    """

    def __init__(
        self,
        sessionmaker: async_sessionmaker[AsyncSession],
        store_timeout_sec: float,
        clock: Callable[[], datetime] = utc_now,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._sessionmaker = sessionmaker
        self._store_timeout = store_timeout_sec
        self._clock = clock
        self._rng = rng or random.Random()

    async def select_spotlight(self, locket_id: str) -> SpotlightResult:
        return await guarded_store_call(
            "memory.spotlight",
            self._select(locket_id),
            timeout_sec=self._store_timeout,
            locket_id=locket_id,
        )

    async def _select(self, locket_id: str) -> SpotlightResult:
        today = ensure_utc(self._clock())
        async with self._sessionmaker() as db:
            repo = MemoryRepo(db)
            anniversary = await repo.first_on_this_day(
                locket_id, month=today.month, day=today.day, before_year=today.year
            )
            if anniversary is not None:
                years_ago = today.year - ensure_utc(anniversary.captured_at).year
                return SpotlightResult(
                    memory=anniversary, source=SOURCE_ON_THIS_DAY, years_ago=years_ago
                )

            total = await repo.count_memories(locket_id)
            if total == 0:
                return SpotlightResult(memory=None, source=SOURCE_NONE)

            picked = await repo.memory_at(locket_id, self._rng.randrange(total))
            if picked is None:
                # Rows deleted between count and fetch.
                picked = await repo.memory_at(locket_id, 0)
            if picked is None:
                return SpotlightResult(memory=None, source=SOURCE_NONE)
            return SpotlightResult(memory=picked, source=SOURCE_RANDOM)


def get_spotlight_service(request: Request) -> SpotlightService:
    """Dependency to access spotlight service from app state."""

    return request.app.state.spotlight_service
