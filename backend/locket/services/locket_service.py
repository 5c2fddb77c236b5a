from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from locket.core.errors import InviteInvalid, ValidationError
from locket.core.security import sanitize_text
from locket.db.models import InviteCode, Locket, LocketMember
from locket.repos.invite_repo import InviteRepo, is_invite_active
from locket.repos.locket_repo import LocketRepo
from locket.repos.membership_repo import MembershipRepo
from locket.services.store_guard import guarded_store_call
from locket.utils.time_utils import utc_now

MAX_CODE_LEN = 64


@dataclass(frozen=True)
class InviteView:
    """Invite code plus whether it can still be redeemed."""

    invite: InviteCode
    active: bool


@dataclass(frozen=True)
class InvitePreview:
    """What a prospective member sees before redeeming a code."""

    invite: InviteCode
    locket: Locket


class LocketService:
    """Read-only locket listings and invite previews."""

    def __init__(
        self,
        sessionmaker: async_sessionmaker[AsyncSession],
        store_timeout_sec: float,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._sessionmaker = sessionmaker
        self._store_timeout = store_timeout_sec
        self._clock = clock

    async def list_members(self, locket_id: str) -> list[LocketMember]:
        return await guarded_store_call(
            "locket.list_members",
            self._list_members(locket_id),
            timeout_sec=self._store_timeout,
            locket_id=locket_id,
        )

    async def list_invites(self, locket_id: str) -> list[InviteView]:
        return await guarded_store_call(
            "locket.list_invites",
            self._list_invites(locket_id),
            timeout_sec=self._store_timeout,
            locket_id=locket_id,
        )

    async def preview_invite(self, code: str) -> InvitePreview:
        """Describe the locket behind a redeemable code, for anyone signed in."""

        normalized = sanitize_text(code, MAX_CODE_LEN)
        if not normalized:
            raise ValidationError("Invite code is required")
        preview = await guarded_store_call(
            "invite.preview", self._preview_invite(normalized), timeout_sec=self._store_timeout
        )
        if preview is None:
            raise InviteInvalid()
        return preview

    async def _list_members(self, locket_id: str) -> list[LocketMember]:
        async with self._sessionmaker() as db:
            return await MembershipRepo(db).list_members(locket_id)

    async def _list_invites(self, locket_id: str) -> list[InviteView]:
        now = self._clock()
        async with self._sessionmaker() as db:
            invites = await InviteRepo(db).list_invites(locket_id)
        return [InviteView(invite=invite, active=is_invite_active(invite, now)) for invite in invites]

    async def _preview_invite(self, code: str) -> Optional[InvitePreview]:
        async with self._sessionmaker() as db:
            invite = await InviteRepo(db).find_active_invite(code, self._clock())
            if invite is None:
                return None
            locket = await LocketRepo(db).get_locket(invite.locket_id)
        if locket is None:
            return None
        return InvitePreview(invite=invite, locket=locket)


def get_locket_service(request: Request) -> LocketService:
    """Dependency to access locket service from app state."""

    return request.app.state.locket_service
