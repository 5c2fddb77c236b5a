from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from locket.core.errors import AlreadyMember, InviteInvalid, ValidationError
from locket.core.security import sanitize_text
from locket.providers.identity_provider import Identity
from locket.repos.invite_repo import InviteRepo
from locket.repos.membership_repo import MembershipRepo
from locket.services.store_guard import guarded_store_call
from locket.utils.time_utils import utc_now

logger = logging.getLogger(__name__)

MAX_CODE_LEN = 64


@dataclass(frozen=True)
class JoinOutcome:
    """Successful join of a locket through an invite code."""

    locket_id: str
    joined_at: datetime


class JoinService:
    """Admit users to lockets by invite code.

    Whether the caller is already a member is decided by the membership
    insert itself, never by a prior existence check.
    """

    def __init__(
        self,
        sessionmaker: async_sessionmaker[AsyncSession],
        store_timeout_sec: float,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._sessionmaker = sessionmaker
        self._store_timeout = store_timeout_sec
        self._clock = clock

    async def join(self, code: str, identity: Identity) -> JoinOutcome:
        """Join the locket behind ``code`` as ``identity``."""

        normalized = sanitize_text(code or "", MAX_CODE_LEN)
        if not normalized:
            raise ValidationError("Invite code is required")

        outcome = await guarded_store_call(
            "locket.join",
            self._join(normalized, identity),
            timeout_sec=self._store_timeout,
        )
        logger.info("User %s joined locket %s", identity.id, outcome.locket_id)
        return outcome

    async def _join(self, code: str, identity: Identity) -> JoinOutcome:
        now = self._clock()
        async with self._sessionmaker() as db:
            invite_repo = InviteRepo(db)
            membership_repo = MembershipRepo(db)

            async with db.begin():
                locket_id = await invite_repo.resolve_invite_code(code, now)
                if locket_id is None:
                    raise InviteInvalid()

                write = await membership_repo.create_membership(
                    locket_id=locket_id,
                    user_id=identity.id,
                    email=identity.email,
                    display_name=identity.display_name,
                )
                if not write.created:
                    raise AlreadyMember()

                # Usage limit is enforced here; failing rolls back the membership insert.
                if not await invite_repo.consume_invite_code(code, now):
                    raise InviteInvalid()

            return JoinOutcome(locket_id=locket_id, joined_at=write.joined_at or now)


def get_join_service(request: Request) -> JoinService:
    """Dependency to access join service from app state."""

    return request.app.state.join_service
