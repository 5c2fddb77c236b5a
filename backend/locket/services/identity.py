from __future__ import annotations

import asyncio
import logging
from dataclasses import asdict
from typing import Optional, Protocol

from fastapi import Request

from locket.core.errors import InfrastructureError
from locket.providers.identity_provider import Identity, IdentityProvider, parse_identity
from locket.utils.crypto import TokenSealer

logger = logging.getLogger(__name__)


class CredentialResolver(Protocol):
    """One way of turning an inbound request into an identity."""

    name: str

    async def resolve(self, request: Request) -> Optional[Identity]:
        """Return the caller's identity, or None if this credential is absent or invalid."""


class BearerHeaderResolver:
    """Resolves ``Authorization: Bearer <token>`` through the identity provider."""

    name = "bearer"

    def __init__(self, provider: IdentityProvider, timeout_sec: float) -> None:
        self._provider = provider
        self._timeout = timeout_sec

    def set_provider(self, provider: IdentityProvider) -> None:
        """Swap the identity provider (useful for tests)."""

        self._provider = provider

    async def resolve(self, request: Request) -> Optional[Identity]:
        token = bearer_token(request)
        if not token:
            return None
        try:
            return await asyncio.wait_for(self._provider.resolve_token(token), self._timeout)
        except asyncio.TimeoutError as exc:
            logger.error("Identity resolution timed out after %.1fs", self._timeout)
            raise InfrastructureError(
                "identity.resolve",
                "Identity provider did not respond in time.",
                code="IDENTITY_TIMEOUT",
            ) from exc


class SessionCookieResolver:
    """Resolves the ambient browser session cookie holding a sealed identity."""

    name = "session"

    def __init__(
        self, sealer: Optional[TokenSealer], cookie_name: str, ttl_sec: int
    ) -> None:
        self._sealer = sealer
        self.cookie_name = cookie_name
        self.ttl_sec = ttl_sec

    @property
    def enabled(self) -> bool:
        return self._sealer is not None

    async def resolve(self, request: Request) -> Optional[Identity]:
        token = request.cookies.get(self.cookie_name)
        if not token or self._sealer is None:
            return None
        payload = self._sealer.unseal(token, max_age_sec=self.ttl_sec)
        if payload is None:
            return None
        return parse_identity(payload)

    def seal(self, identity: Identity) -> str:
        """Produce a cookie value for ``identity``."""

        if self._sealer is None:
            raise InfrastructureError(
                "session.seal",
                "Session cookies are not configured.",
                code="SESSION_UNAVAILABLE",
            )
        payload = asdict(identity)
        payload["sub"] = payload.pop("id")
        return self._sealer.seal(payload)


def bearer_token(request: Request) -> Optional[str]:
    """Extract a bearer token from the Authorization header."""

    header = request.headers.get("Authorization") or ""
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer":
        return None
    token = token.strip()
    return token or None
