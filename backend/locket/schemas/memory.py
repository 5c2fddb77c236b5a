from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from locket.schemas.common import APIModel


class MemoryOut(APIModel):
    """Serialized memory record."""

    id: str
    locket_id: str
    captured_at: datetime
    title: Optional[str]
    description: Optional[str]
    content_ref: Optional[str]


class SpotlightOut(APIModel):
    """Spotlight pick with its provenance."""

    memory: Optional[MemoryOut]
    source: Literal["on_this_day", "random", "none"]
    years_ago: Optional[int] = None


class SpotlightResponse(APIModel):
    """Response for the spotlight endpoint."""

    success: bool = True
    data: SpotlightOut
