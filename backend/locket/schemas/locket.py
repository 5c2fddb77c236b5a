from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import Field

from locket.schemas.common import APIModel


class JoinLocketRequest(APIModel):
    """Payload for joining a locket with an invite code."""

    code: Optional[str] = Field(default=None, max_length=256)


class JoinLocketData(APIModel):
    """Locket joined and when."""

    locket_id: str
    joined_at: datetime


class JoinLocketResponse(APIModel):
    """Response returned after joining a locket."""

    success: bool = True
    message: str
    data: JoinLocketData


class MemberOut(APIModel):
    """Serialized locket member."""

    user_id: str
    email: str
    display_name: str
    role: str
    joined_at: datetime


class LocketUsersResponse(APIModel):
    """Members of a locket."""

    success: bool = True
    users: List[MemberOut]


class InviteOut(APIModel):
    """Serialized invite code."""

    code: str
    locket_id: str
    created_at: datetime
    expires_at: Optional[datetime]
    max_uses: Optional[int]
    use_count: int
    active: bool


class LocketInvitesResponse(APIModel):
    """Invite codes of a locket."""

    success: bool = True
    invites: List[InviteOut]


class InvitePreviewOut(APIModel):
    """Locket details shown before an invite code is redeemed."""

    locket_id: str
    name: str
    description: Optional[str]
    expires_at: Optional[datetime]


class InvitePreviewResponse(APIModel):
    """Public view of a redeemable invite code."""

    success: bool = True
    invite: InvitePreviewOut
