from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from locket.core.errors import AccessDenied, ValidationError
from locket.providers.identity_provider import Identity
from locket.schemas.locket import (
    InviteOut,
    InvitePreviewOut,
    InvitePreviewResponse,
    JoinLocketData,
    JoinLocketRequest,
    JoinLocketResponse,
    LocketInvitesResponse,
    LocketUsersResponse,
    MemberOut,
)
from locket.services.access_gate import AccessGate, get_access_gate, require_identity
from locket.services.join_service import JoinService, get_join_service
from locket.services.locket_service import LocketService, get_locket_service

router = APIRouter(prefix="/api/lockets", tags=["lockets"])


@router.post("/join", response_model=JoinLocketResponse)
async def join_locket(
    payload: JoinLocketRequest,
    identity: Identity = Depends(require_identity),
    join_service: JoinService = Depends(get_join_service),
) -> JoinLocketResponse:
    """Join a locket using an invite code."""

    outcome = await join_service.join(payload.code or "", identity)
    return JoinLocketResponse(
        message="Joined locket successfully",
        data=JoinLocketData(locket_id=outcome.locket_id, joined_at=outcome.joined_at),
    )


@router.get(
    "/invites/{code}",
    response_model=InvitePreviewResponse,
    dependencies=[Depends(require_identity)],
)
async def preview_invite(
    code: str,
    locket_service: LocketService = Depends(get_locket_service),
) -> InvitePreviewResponse:
    """Show which locket an invite code leads to, without joining it."""

    preview = await locket_service.preview_invite(code)
    return InvitePreviewResponse(
        invite=InvitePreviewOut(
            locket_id=preview.locket.id,
            name=preview.locket.name,
            description=preview.locket.description,
            expires_at=preview.invite.expires_at,
        )
    )


@router.get("/{locket_id}/users", response_model=LocketUsersResponse)
async def list_locket_users(
    locket_id: str,
    request: Request,
    gate: AccessGate = Depends(get_access_gate),
    locket_service: LocketService = Depends(get_locket_service),
) -> LocketUsersResponse:
    """List the members of a locket."""

    locket_id = await _authorize_locket(request, locket_id, gate)
    members = await locket_service.list_members(locket_id)
    return LocketUsersResponse(users=[MemberOut.model_validate(member) for member in members])


@router.get("/{locket_id}/invites", response_model=LocketInvitesResponse)
async def list_locket_invites(
    locket_id: str,
    request: Request,
    gate: AccessGate = Depends(get_access_gate),
    locket_service: LocketService = Depends(get_locket_service),
) -> LocketInvitesResponse:
    """List the invite codes of a locket."""

    locket_id = await _authorize_locket(request, locket_id, gate)
    views = await locket_service.list_invites(locket_id)
    invites = [
        InviteOut(
            code=view.invite.code,
            locket_id=view.invite.locket_id,
            created_at=view.invite.created_at,
            expires_at=view.invite.expires_at,
            max_uses=view.invite.max_uses,
            use_count=view.invite.use_count,
            active=view.active,
        )
        for view in views
    ]
    return LocketInvitesResponse(invites=invites)


async def _authorize_locket(request: Request, locket_id: str, gate: AccessGate) -> str:
    identity = await gate.authenticate(request)
    normalized = locket_id.strip()
    if not normalized:
        raise ValidationError("Locket ID is required")
    if not await gate.has_access(identity, normalized):
        raise AccessDenied()
    return normalized
