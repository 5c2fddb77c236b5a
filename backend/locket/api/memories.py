from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from locket.core.errors import ValidationError
from locket.schemas.memory import MemoryOut, SpotlightOut, SpotlightResponse
from locket.services.access_gate import AccessGate, get_access_gate
from locket.services.spotlight_service import SpotlightService, get_spotlight_service

router = APIRouter(prefix="/api/memories", tags=["memories"])


@router.get("/spotlight", response_model=SpotlightResponse)
async def get_spotlight(
    request: Request,
    locket_id: Optional[str] = Query(default=None, alias="locketId"),
    gate: AccessGate = Depends(get_access_gate),
    spotlight_service: SpotlightService = Depends(get_spotlight_service),
) -> SpotlightResponse:
    """Return the spotlight memory (on this day, else random) for a locket."""

    locket_id = (locket_id or "").strip()
    if not locket_id:
        raise ValidationError("locketId query parameter is required")

    await gate.authorize(request, locket_id)
    result = await spotlight_service.select_spotlight(locket_id)
    memory = MemoryOut.model_validate(result.memory) if result.memory is not None else None
    return SpotlightResponse(
        data=SpotlightOut(memory=memory, source=result.source, years_ago=result.years_ago)
    )
