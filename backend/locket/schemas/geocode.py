from __future__ import annotations

from typing import Optional

from pydantic import Field

from locket.schemas.common import APIModel


class GeocodeRequest(APIModel):
    """Coordinates to reverse geocode; numbers only, no numeric strings."""

    latitude: float = Field(strict=True, ge=-90, le=90)
    longitude: float = Field(strict=True, ge=-180, le=180)


class GeocodeDetails(APIModel):
    """Address breakdown returned by the geocoder."""

    formatted_address: str
    place_name: Optional[str] = None
    neighborhood: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None


class GeocodeResponse(APIModel):
    """Display location; ``fallback`` is only present when coordinates were formatted locally."""

    success: bool = True
    location: str
    details: Optional[GeocodeDetails] = None
    fallback: Optional[bool] = None
