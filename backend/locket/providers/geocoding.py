from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional, Protocol

import httpx

from locket.providers.base import HTTPProviderAdapter, ProviderError

logger = logging.getLogger(__name__)

FOCUSED_RESULT_TYPES = "point_of_interest|establishment|neighborhood|locality|sublocality"
PLACE_TYPES = {"point_of_interest", "establishment", "tourist_attraction"}


@dataclass
class GeocodeResult:
    """Human-readable description of a coordinate pair."""

    formatted_address: str
    short_name: str
    place_name: Optional[str] = None
    neighborhood: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None


class Geocoder(Protocol):
    """Reverse geocoder; returns None when no place could be determined."""

    async def reverse(self, latitude: float, longitude: float) -> Optional[GeocodeResult]:
        """Resolve coordinates to a place."""


class GoogleGeocoder(HTTPProviderAdapter):
    """Reverse geocoding through the Google Maps Geocoding API."""

    provider_name = "geocoding"

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://maps.googleapis.com",
        timeout_sec: float = 5,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        super().__init__(timeout_sec=timeout_sec, http_client=http_client)
        self._api_key = api_key
        self._base_url = base_url

    async def reverse(self, latitude: float, longitude: float) -> Optional[GeocodeResult]:
        if not self._api_key:
            logger.warning("GOOGLE_MAPS_API_KEY not configured, skipping reverse geocoding")
            return None

        params = {
            "latlng": f"{latitude},{longitude}",
            "key": self._api_key,
            "language": "en",
        }
        try:
            data = await self._lookup({**params, "result_type": FOCUSED_RESULT_TYPES})
            if data.get("status") != "OK":
                # Retry without the type filter for broader results.
                data = await self._lookup(params)
        except ProviderError as exc:
            logger.warning("Geocoding request failed: code=%s status=%s", exc.code, exc.status_code)
            return None

        if data.get("status") != "OK" or not data.get("results"):
            logger.warning(
                "Geocoding failed: status=%s message=%s",
                data.get("status"),
                data.get("error_message"),
            )
            return None
        return parse_geocode_response(data)

    async def _lookup(self, params: dict[str, str]) -> dict[str, Any]:
        url = self._endpoint(self._base_url, "/maps/api/geocode/json")
        return await self._get_json(url, params=params)


def parse_geocode_response(data: dict[str, Any]) -> GeocodeResult:
    """Reduce a Google geocode payload to the fields the app displays."""

    results = data["results"]
    first = results[0]

    components: dict[str, str] = {}
    for component in first.get("address_components", []):
        for component_type in component.get("types", []):
            components[component_type] = component.get("long_name", "")

    place_name: Optional[str] = None
    for result in results:
        if not PLACE_TYPES.intersection(result.get("types", [])):
            continue
        address_components = result.get("address_components") or []
        if address_components and "street_number" not in address_components[0].get("types", []):
            place_name = address_components[0].get("long_name")
            break

    neighborhood = components.get("neighborhood") or components.get("sublocality")
    city = components.get("locality") or components.get("administrative_area_level_2")
    formatted_address = first.get("formatted_address", "")

    if place_name:
        place_city = (
            components.get("locality")
            or components.get("sublocality")
            or components.get("administrative_area_level_2")
        )
        short_name = f"{place_name}, {place_city}" if place_city else place_name
    else:
        parts = [part for part in (neighborhood, city) if part]
        if len(parts) < 2 and components.get("country"):
            parts.append(components["country"])
        short_name = ", ".join(parts) if parts else formatted_address

    return GeocodeResult(
        formatted_address=formatted_address,
        short_name=short_name,
        place_name=place_name,
        neighborhood=neighborhood,
        city=city,
        state=components.get("administrative_area_level_1"),
        country=components.get("country"),
    )


def format_coordinates(latitude: float, longitude: float) -> str:
    """Format coordinates for display when no place name is available."""

    lat_dir = "N" if latitude >= 0 else "S"
    lon_dir = "E" if longitude >= 0 else "W"
    return f"{abs(latitude):.2f}°{lat_dir}, {abs(longitude):.2f}°{lon_dir}"
