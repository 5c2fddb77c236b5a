from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response

from locket.core.config import get_settings
from locket.core.errors import AuthRequired
from locket.schemas.auth import SessionResponse, SessionUserOut
from locket.schemas.common import SuccessResponse
from locket.services.access_gate import AccessGate, get_access_gate
from locket.services.identity import SessionCookieResolver

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/session", response_model=SessionResponse)
async def open_session(
    request: Request,
    response: Response,
    gate: AccessGate = Depends(get_access_gate),
) -> SessionResponse:
    """Exchange a bearer credential for a browser session cookie."""

    bearer = gate.resolver("bearer")
    identity = await bearer.resolve(request) if bearer else None
    if identity is None:
        raise AuthRequired()

    session = _session_resolver(gate)
    response.set_cookie(
        session.cookie_name,
        session.seal(identity),
        max_age=session.ttl_sec,
        httponly=True,
        secure=get_settings().secure_cookies,
        samesite="lax",
        path="/",
    )
    return SessionResponse(
        user=SessionUserOut(
            id=identity.id, email=identity.email, display_name=identity.display_name
        )
    )


@router.delete("/session", response_model=SuccessResponse)
async def close_session(
    response: Response,
    gate: AccessGate = Depends(get_access_gate),
) -> SuccessResponse:
    """Clear the browser session cookie."""

    session = _session_resolver(gate)
    response.delete_cookie(
        session.cookie_name,
        path="/",
        httponly=True,
        secure=get_settings().secure_cookies,
        samesite="lax",
    )
    return SuccessResponse()


def _session_resolver(gate: AccessGate) -> SessionCookieResolver:
    resolver = gate.resolver("session")
    if not isinstance(resolver, SessionCookieResolver):
        raise RuntimeError("Session cookie resolver is not configured.")
    return resolver
