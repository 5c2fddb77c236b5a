from __future__ import annotations

import httpx
import pytest

from locket.core.errors import InfrastructureError
from locket.providers.geocoding import GoogleGeocoder, format_coordinates
from locket.providers.identity_provider import HTTPIdentityProvider

GEOCODE_OK = {
    "status": "OK",
    "results": [
        {
            "formatted_address": "Piotrkowska 100, 90-001 Łódź, Poland",
            "types": ["point_of_interest", "establishment"],
            "address_components": [
                {"long_name": "Mandoria", "short_name": "Mandoria", "types": ["establishment"]},
                {"long_name": "Łódź", "short_name": "Łódź", "types": ["locality", "political"]},
                {
                    "long_name": "Łódź Voivodeship",
                    "short_name": "Łódź Voivodeship",
                    "types": ["administrative_area_level_1", "political"],
                },
                {"long_name": "Poland", "short_name": "PL", "types": ["country", "political"]},
            ],
        }
    ],
}


@pytest.mark.anyio
async def test_identity_provider_resolves_userinfo():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/userinfo"
        if request.headers["Authorization"] == "Bearer good-token":
            return httpx.Response(
                200, json={"sub": "user-42", "email": "dana@example.com", "name": "Dana"}
            )
        return httpx.Response(401, json={"error": "invalid_token"})

    transport = httpx.MockTransport(handler)
    async with httpx.AsyncClient(transport=transport) as client:
        provider = HTTPIdentityProvider("https://id.example.com", http_client=client)

        identity = await provider.resolve_token("good-token")
        assert identity.id == "user-42"
        assert identity.email == "dana@example.com"
        assert identity.display_name == "Dana"

        assert await provider.resolve_token("bad-token") is None


@pytest.mark.anyio
async def test_identity_provider_tolerates_missing_profile_fields():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.headers["Authorization"] == "Bearer no-subject":
            return httpx.Response(200, json={"email": "ghost@example.com"})
        return httpx.Response(200, json={"uid": "user-7"})

    transport = httpx.MockTransport(handler)
    async with httpx.AsyncClient(transport=transport) as client:
        provider = HTTPIdentityProvider("https://id.example.com", http_client=client)

        identity = await provider.resolve_token("minimal")
        assert identity.id == "user-7"
        assert identity.email == ""
        assert identity.display_name == ""
        assert await provider.resolve_token("no-subject") is None


@pytest.mark.anyio
async def test_identity_provider_outage_raises_infrastructure_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(502, text="bad gateway")

    transport = httpx.MockTransport(handler)
    async with httpx.AsyncClient(transport=transport) as client:
        provider = HTTPIdentityProvider("https://id.example.com", http_client=client)
        with pytest.raises(InfrastructureError) as excinfo:
            await provider.resolve_token("any-token")

    assert excinfo.value.code == "IDENTITY_UNAVAILABLE"


@pytest.mark.anyio
async def test_identity_provider_without_url_accepts_nobody():
    provider = HTTPIdentityProvider("")

    assert await provider.resolve_token("any-token") is None


@pytest.mark.anyio
async def test_google_geocoder_parses_place_name():
    seen_params = []

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/maps/api/geocode/json"
        seen_params.append(dict(request.url.params))
        return httpx.Response(200, json=GEOCODE_OK)

    transport = httpx.MockTransport(handler)
    async with httpx.AsyncClient(transport=transport) as client:
        geocoder = GoogleGeocoder("maps-key", http_client=client)
        result = await geocoder.reverse(51.77, 19.46)

    assert result.short_name == "Mandoria, Łódź"
    assert result.place_name == "Mandoria"
    assert result.city == "Łódź"
    assert result.state == "Łódź Voivodeship"
    assert result.country == "Poland"
    assert seen_params[0]["latlng"] == "51.77,19.46"
    assert "result_type" in seen_params[0]


@pytest.mark.anyio
async def test_google_geocoder_retries_without_type_filter():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(dict(request.url.params))
        if "result_type" in request.url.params:
            return httpx.Response(200, json={"status": "ZERO_RESULTS", "results": []})
        return httpx.Response(
            200,
            json={
                "status": "OK",
                "results": [
                    {
                        "formatted_address": "Somewhere Rd, Springfield, USA",
                        "types": ["route"],
                        "address_components": [
                            {"long_name": "Springfield", "types": ["locality"]},
                            {"long_name": "United States", "types": ["country"]},
                        ],
                    }
                ],
            },
        )

    transport = httpx.MockTransport(handler)
    async with httpx.AsyncClient(transport=transport) as client:
        geocoder = GoogleGeocoder("maps-key", http_client=client)
        result = await geocoder.reverse(39.8, -89.6)

    assert len(calls) == 2
    assert result.place_name is None
    assert result.short_name == "Springfield, United States"


@pytest.mark.anyio
async def test_google_geocoder_misses_return_none():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, text="upstream down")

    transport = httpx.MockTransport(handler)
    async with httpx.AsyncClient(transport=transport) as client:
        geocoder = GoogleGeocoder("maps-key", http_client=client)
        assert await geocoder.reverse(1.0, 2.0) is None

    assert await GoogleGeocoder("").reverse(1.0, 2.0) is None


def test_format_coordinates():
    assert format_coordinates(40.7, -74.0) == "40.70°N, 74.00°W"
    assert format_coordinates(-33.8688, 151.2094) == "33.87°S, 151.21°E"
