from __future__ import annotations

from fastapi import APIRouter, Depends

from locket.providers.identity_provider import Identity
from locket.schemas.geocode import GeocodeDetails, GeocodeRequest, GeocodeResponse
from locket.services.access_gate import require_identity
from locket.services.geocode_service import GeocodeService, get_geocode_service

router = APIRouter(prefix="/api/geocode", tags=["geocode"])


@router.post("", response_model=GeocodeResponse, response_model_exclude_none=True)
async def reverse_geocode(
    payload: GeocodeRequest,
    _: Identity = Depends(require_identity),
    geocode_service: GeocodeService = Depends(get_geocode_service),
) -> GeocodeResponse:
    """Reverse geocode coordinates to a place name."""

    outcome = await geocode_service.lookup(payload.latitude, payload.longitude)
    if outcome.fallback:
        return GeocodeResponse(location=outcome.location, fallback=True)

    details = outcome.details
    return GeocodeResponse(
        location=outcome.location,
        details=GeocodeDetails(
            formatted_address=details.formatted_address,
            place_name=details.place_name,
            neighborhood=details.neighborhood,
            city=details.city,
            state=details.state,
            country=details.country,
        ),
    )
