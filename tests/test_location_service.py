import httpx
import pytest

from marketplace.services.location_service import (
    GooglePlacesClient,
    LocationError,
    distance_km,
    find_providers_in_radius,
)


def _client(handler):
    return GooglePlacesClient(api_key="maps-key", transport=httpx.MockTransport(handler))


async def test_autocomplete_maps_predictions():
    captured = {}

    def handler(request: httpx.Request):
        captured["params"] = dict(request.url.params)
        return httpx.Response(200, json={
            "status": "OK",
            "predictions": [{
                "description": "123 Main St, Provo, UT, USA",
                "place_id": "place-1",
                "structured_formatting": {"main_text": "123 Main St", "secondary_text": "Provo, UT, USA"},
            }],
        })

    results = await _client(handler).autocomplete("123 Main", country="us")

    assert captured["params"]["components"] == "country:us"
    assert captured["params"]["key"] == "maps-key"
    assert results == [{
        "description": "123 Main St, Provo, UT, USA",
        "placeId": "place-1",
        "structuredFormatting": {"mainText": "123 Main St", "secondaryText": "Provo, UT, USA"},
    }]


async def test_short_query_skips_upstream():
    def handler(request):
        raise AssertionError("should not be called")

    assert await _client(handler).autocomplete("12") == []


async def test_place_details_extracts_components():
    def handler(request):
        return httpx.Response(200, json={
            "status": "OK",
            "result": {
                "formatted_address": "123 Main St, Provo, UT 84601, USA",
                "geometry": {"location": {"lat": 40.23, "lng": -111.66}},
                "address_components": [
                    {"long_name": "123", "short_name": "123", "types": ["street_number"]},
                    {"long_name": "Main Street", "short_name": "Main St", "types": ["route"]},
                    {"long_name": "Provo", "short_name": "Provo", "types": ["locality", "political"]},
                    {"long_name": "Utah", "short_name": "UT", "types": ["administrative_area_level_1"]},
                    {"long_name": "84601", "short_name": "84601", "types": ["postal_code"]},
                    {"long_name": "United States", "short_name": "US", "types": ["country"]},
                ],
            },
        })

    details = await _client(handler).place_details("place-1")

    assert details["coordinates"] == {"lat": 40.23, "lng": -111.66}
    assert details["addressComponents"] == {
        "streetNumber": "123",
        "route": "Main Street",
        "city": "Provo",
        "state": "UT",
        "zipCode": "84601",
        "country": "US",
    }


async def test_geocode_without_results_is_not_found():
    client = _client(lambda r: httpx.Response(200, json={"status": "ZERO_RESULTS", "results": []}))
    with pytest.raises(LocationError) as exc_info:
        await client.geocode("nowhere")
    assert exc_info.value.status_code == 404


async def test_denied_request_raises():
    client = _client(lambda r: httpx.Response(200, json={"status": "REQUEST_DENIED"}))
    with pytest.raises(LocationError) as exc_info:
        await client.geocode("Provo, UT")
    assert exc_info.value.status == "REQUEST_DENIED"


async def test_missing_api_key():
    with pytest.raises(LocationError) as exc_info:
        await GooglePlacesClient(api_key=None).geocode("Provo, UT")
    assert exc_info.value.status_code == 503


def test_distance_and_radius():
    provo = {"lat": 40.2338, "lng": -111.6585}
    lehi = {"lat": 40.3916, "lng": -111.8508}
    assert 23 < distance_km(provo, lehi) < 26

    providers = [
        {"id": "near", "coordinates": lehi},
        {"id": "far", "coordinates": {"lat": 40.7608, "lng": -111.8910}},
        {"id": "unknown", "coordinates": None},
    ]
    assert [p["id"] for p in find_providers_in_radius(providers, provo, 30)] == ["near"]
