from __future__ import annotations

from locket.schemas.common import APIModel


class SessionUserOut(APIModel):
    """Identity bound to the session cookie."""

    id: str
    email: str
    display_name: str


class SessionResponse(APIModel):
    """Response after opening a browser session."""

    success: bool = True
    user: SessionUserOut
