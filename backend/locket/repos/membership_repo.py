from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from locket.db.models import ROLE_MEMBER, LocketMember
from locket.utils.time_utils import utc_now

_UPSERT_INSERTS = {"sqlite": sqlite_insert, "postgresql": pg_insert}


@dataclass(frozen=True)
class MembershipWrite:
    """Result of a membership insert attempt."""

    created: bool
    joined_at: Optional[datetime] = None


class MembershipRepo:
    """Repository for locket membership persistence."""

    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def has_membership(self, locket_id: str, user_id: str) -> bool:
        """Return whether ``user_id`` currently belongs to ``locket_id``."""

        result = await self._db.execute(
            select(LocketMember.id)
            .where(LocketMember.locket_id == locket_id, LocketMember.user_id == user_id)
            .limit(1)
        )
        return result.scalar_one_or_none() is not None

    async def create_membership(
        self,
        locket_id: str,
        user_id: str,
        email: str,
        display_name: str,
        role: str = ROLE_MEMBER,
    ) -> MembershipWrite:
        """Insert a membership row unless the (locket, user) pair already exists.

        The outcome is decided by the unique constraint in a single statement,
        so concurrent callers for the same pair see exactly one ``created``.
        """

        joined_at = utc_now()
        values = {
            "id": uuid.uuid4().hex,
            "locket_id": locket_id,
            "user_id": user_id,
            "email": email,
            "display_name": display_name,
            "role": role,
            "joined_at": joined_at,
        }
        insert = _UPSERT_INSERTS.get(self._db.get_bind().dialect.name)
        if insert is not None:
            statement = (
                insert(LocketMember)
                .values(**values)
                .on_conflict_do_nothing(index_elements=["locket_id", "user_id"])
            )
            result = await self._db.execute(statement)
            created = result.rowcount == 1
            return MembershipWrite(created=created, joined_at=joined_at if created else None)

        try:
            async with self._db.begin_nested():
                self._db.add(LocketMember(**values))
        except IntegrityError:
            return MembershipWrite(created=False)
        return MembershipWrite(created=True, joined_at=joined_at)

    async def list_members(self, locket_id: str) -> list[LocketMember]:
        """List members of a locket in join order."""

        result = await self._db.execute(
            select(LocketMember)
            .where(LocketMember.locket_id == locket_id)
            .order_by(LocketMember.joined_at.asc(), LocketMember.user_id.asc())
        )
        return list(result.scalars().all())

