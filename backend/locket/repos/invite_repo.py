from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import and_, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from locket.db.models import InviteCode
from locket.utils.time_utils import ensure_utc, utc_now


def _not_lapsed(now: datetime):
    return and_(
        InviteCode.revoked.is_(False),
        or_(InviteCode.expires_at.is_(None), InviteCode.expires_at > now),
    )


def _still_valid(now: datetime):
    return and_(
        _not_lapsed(now),
        or_(InviteCode.max_uses.is_(None), InviteCode.use_count < InviteCode.max_uses),
    )


def is_invite_active(invite: InviteCode, now: datetime) -> bool:
    """Python-side twin of the SQL validity predicate, for listings."""

    if invite.revoked:
        return False
    if invite.expires_at is not None and ensure_utc(invite.expires_at) <= now:
        return False
    if invite.max_uses is not None and invite.use_count >= invite.max_uses:
        return False
    return True


class InviteRepo:
    """Repository for invite code lookup and bookkeeping."""

    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def create_invite(
        self,
        code: str,
        locket_id: str,
        expires_at: Optional[datetime] = None,
        max_uses: Optional[int] = None,
    ) -> InviteCode:
        """Persist a new invite code."""

        invite = InviteCode(
            code=code,
            locket_id=locket_id,
            created_at=utc_now(),
            expires_at=expires_at,
            max_uses=max_uses,
            use_count=0,
            revoked=False,
        )
        self._db.add(invite)
        await self._db.flush()
        return invite

    async def resolve_invite_code(self, code: str, now: datetime) -> Optional[str]:
        """Return the locket id of a code that is neither revoked nor expired.

        Usage limits are left to ``consume_invite_code`` so that a member
        re-submitting a used-up code is still recognised as a member.
        """

        result = await self._db.execute(
            select(InviteCode.locket_id).where(InviteCode.code == code, _not_lapsed(now))
        )
        return result.scalar_one_or_none()

    async def find_active_invite(self, code: str, now: datetime) -> Optional[InviteCode]:
        """Fetch a code that can still be redeemed by a new member."""

        result = await self._db.execute(
            select(InviteCode).where(InviteCode.code == code, _still_valid(now))
        )
        return result.scalar_one_or_none()

    async def consume_invite_code(self, code: str, now: datetime) -> bool:
        """Count one use of the code if it is still valid; False if it no longer is."""

        result = await self._db.execute(
            update(InviteCode)
            .where(InviteCode.code == code, _still_valid(now))
            .values(use_count=InviteCode.use_count + 1)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def list_invites(self, locket_id: str) -> list[InviteCode]:
        """List invite codes of a locket, newest first."""

        result = await self._db.execute(
            select(InviteCode)
            .where(InviteCode.locket_id == locket_id)
            .order_by(InviteCode.created_at.desc(), InviteCode.code.asc())
        )
        return list(result.scalars().all())
