from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from fastapi import Request

from locket.providers.geocoding import GeocodeResult, Geocoder, format_coordinates


@dataclass(frozen=True)
class GeocodeOutcome:
    """Display location for a coordinate pair."""

    location: str
    details: Optional[GeocodeResult]
    fallback: bool


class GeocodeService:
    """Reverse geocoding with a formatted-coordinate fallback."""

    def __init__(self, geocoder: Geocoder) -> None:
        self._geocoder = geocoder

    def set_geocoder(self, geocoder: Geocoder) -> None:
        """Swap the geocoder implementation (useful for tests)."""

        self._geocoder = geocoder

    async def lookup(self, latitude: float, longitude: float) -> GeocodeOutcome:
        result = await self._geocoder.reverse(latitude, longitude)
        if result is None:
            return GeocodeOutcome(
                location=format_coordinates(latitude, longitude),
                details=None,
                fallback=True,
            )
        return GeocodeOutcome(location=result.short_name, details=result, fallback=False)


def get_geocode_service(request: Request) -> GeocodeService:
    """Dependency to access geocode service from app state."""

    return request.app.state.geocode_service
