from __future__ import annotations

from typing import Optional, Sequence

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from locket.core.errors import AccessDenied, AuthRequired
from locket.providers.identity_provider import Identity
from locket.repos.membership_repo import MembershipRepo
from locket.services.identity import CredentialResolver
from locket.services.store_guard import guarded_store_call


class AccessGate:
    """Resolve the caller and check locket membership on every request.

    Resolvers are tried in order and the first identity wins. Membership is
    read from the store each time; grants are never cached.
    """

    def __init__(
        self,
        sessionmaker: async_sessionmaker[AsyncSession],
        resolvers: Sequence[CredentialResolver],
        store_timeout_sec: float,
    ) -> None:
        self._sessionmaker = sessionmaker
        self._resolvers = list(resolvers)
        self._store_timeout = store_timeout_sec

    def resolver(self, name: str) -> Optional[CredentialResolver]:
        """Look up a configured resolver by name."""

        for resolver in self._resolvers:
            if resolver.name == name:
                return resolver
        return None

    async def authenticate(self, request: Request) -> Identity:
        """Return the caller's identity or raise AuthRequired."""

        for resolver in self._resolvers:
            identity = await resolver.resolve(request)
            if identity is not None:
                return identity
        raise AuthRequired()

    async def authorize(self, request: Request, locket_id: str) -> Identity:
        """Return the caller's identity if they are a member of ``locket_id``."""

        identity = await self.authenticate(request)
        if not await self.has_access(identity, locket_id):
            raise AccessDenied()
        return identity

    async def has_access(self, identity: Identity, locket_id: str) -> bool:
        """Membership check used by every locket-scoped path."""

        return await guarded_store_call(
            "membership.check",
            self._check_membership(identity.id, locket_id),
            timeout_sec=self._store_timeout,
            locket_id=locket_id,
        )

    async def _check_membership(self, user_id: str, locket_id: str) -> bool:
        async with self._sessionmaker() as db:
            return await MembershipRepo(db).has_membership(locket_id, user_id)


def get_access_gate(request: Request) -> AccessGate:
    """Dependency to access the gate from app state."""

    return request.app.state.access_gate


async def require_identity(
    request: Request, gate: AccessGate = Depends(get_access_gate)
) -> Identity:
    """Dependency for routes that need an authenticated caller but no membership."""

    return await gate.authenticate(request)
