from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional, Protocol

import httpx

from locket.core.errors import InfrastructureError
from locket.providers.base import HTTPProviderAdapter, ProviderError

logger = logging.getLogger(__name__)

_SUBJECT_KEYS = ("sub", "id", "uid", "user_id")
_NAME_KEYS = ("name", "display_name", "displayName")


@dataclass(frozen=True)
class Identity:
    """A resolved caller: stable id plus cached profile fields."""

    id: str
    email: str = ""
    display_name: str = ""


class IdentityProvider(Protocol):
    """Turns a bearer token into an identity, or None if the token is not accepted."""

    async def resolve_token(self, token: str) -> Optional[Identity]:
        """Resolve a bearer token."""


class HTTPIdentityProvider(HTTPProviderAdapter):
    """Identity provider reached over an OIDC-style ``/userinfo`` endpoint."""

    provider_name = "identity"

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        timeout_sec: float = 5,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        super().__init__(timeout_sec=timeout_sec, http_client=http_client)
        self._base_url = base_url
        self._api_key = api_key

    async def resolve_token(self, token: str) -> Optional[Identity]:
        if not self._base_url:
            logger.warning("IDENTITY_PROVIDER_URL not configured; bearer credentials are ignored")
            return None

        headers = {"Authorization": f"Bearer {token}"}
        if self._api_key:
            headers["X-API-Key"] = self._api_key
        try:
            data = await self._get_json(
                self._endpoint(self._base_url, "/userinfo"), headers=headers
            )
        except ProviderError as exc:
            if exc.retryable or exc.code == "PROVIDER_PARSE_ERROR":
                logger.error("Identity provider unavailable: code=%s", exc.code)
                raise InfrastructureError(
                    "identity.resolve",
                    "Identity provider is unavailable.",
                    code="IDENTITY_UNAVAILABLE",
                ) from exc
            return None
        return parse_identity(data)


def parse_identity(data: dict[str, Any]) -> Optional[Identity]:
    """Build an identity from a userinfo payload, tolerating missing profile fields."""

    subject = _first_text(data, _SUBJECT_KEYS)
    if not subject:
        return None
    return Identity(
        id=subject,
        email=_first_text(data, ("email",)),
        display_name=_first_text(data, _NAME_KEYS),
    )


def _first_text(data: dict[str, Any], keys: tuple[str, ...]) -> str:
    for key in keys:
        value = data.get(key)
        if isinstance(value, (str, int)) and not isinstance(value, bool):
            text = str(value).strip()
            if text:
                return text
    return ""
