"""
Location Service
Google Maps web services (Places autocomplete/details, Geocoding) over httpx,
plus distance helpers for matching providers to a service address.
"""
import logging
import math
from typing import Optional

import httpx

from ..config import GOOGLE_MAPS_API_KEY, GOOGLE_MAPS_API_URL, PLACES_COUNTRY

logger = logging.getLogger(__name__)

EARTH_RADIUS_KM = 6371.0
MIN_QUERY_LENGTH = 3


class LocationError(Exception):
    """Mapping provider rejected or failed a lookup"""

    def __init__(self, message: str, status: Optional[str] = None, status_code: int = 502):
        super().__init__(message)
        self.message = message
        self.status = status
        self.status_code = status_code


def _address_part(components: list[dict], component_type: str, short: bool = False) -> str:
    for component in components or []:
        if component_type in component.get("types", []):
            return component.get("short_name" if short else "long_name", "")
    return ""


class GooglePlacesClient:
    def __init__(
        self,
        api_key: Optional[str] = GOOGLE_MAPS_API_KEY,
        base_url: str = GOOGLE_MAPS_API_URL,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 8.0,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.transport = transport
        self.timeout = timeout

    async def _get(self, path: str, params: dict) -> dict:
        if not self.api_key:
            raise LocationError("Address lookup is not configured", status="NOT_CONFIGURED", status_code=503)

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.get(f"{self.base_url}/{path}", params={**params, "key": self.api_key})
        except httpx.HTTPError as e:
            logger.error(f"❌ Google Maps unreachable ({path}): {e}")
            raise LocationError("Geocoding provider unavailable") from e

        if response.status_code >= 400:
            logger.warning(f"Google Maps error {response.status_code}: {response.text[:200]}")
            raise LocationError("Geocoding provider error")

        data = response.json()
        status = data.get("status")
        if status not in ("OK", "ZERO_RESULTS"):
            logger.warning(f"⚠️ Google Maps {path} returned {status}: {data.get('error_message', '')}")
            raise LocationError("Geocoding provider error", status=status)
        return data

    async def autocomplete(
        self, text: str, country: Optional[str] = PLACES_COUNTRY, types: Optional[str] = "address"
    ) -> list[dict]:
        """Address predictions: description, placeId and structuredFormatting"""
        text = (text or "").strip()
        if len(text) < MIN_QUERY_LENGTH:
            return []

        params = {"input": text}
        if country:
            params["components"] = f"country:{country}"
        if types:
            params["types"] = types

        data = await self._get("place/autocomplete/json", params)
        return [
            {
                "description": p.get("description", ""),
                "placeId": p.get("place_id"),
                "structuredFormatting": {
                    "mainText": (p.get("structured_formatting") or {}).get("main_text", ""),
                    "secondaryText": (p.get("structured_formatting") or {}).get("secondary_text", ""),
                },
            }
            for p in data.get("predictions", [])
        ]

    async def place_details(self, place_id: str) -> dict:
        data = await self._get(
            "place/details/json",
            {"place_id": place_id, "fields": "formatted_address,geometry,address_component"},
        )
        result = data.get("result")
        if not result:
            raise LocationError("Place not found", status=data.get("status"), status_code=404)

        location = (result.get("geometry") or {}).get("location") or {}
        components = result.get("address_components", [])
        return {
            "formattedAddress": result.get("formatted_address", ""),
            "coordinates": {"lat": location.get("lat"), "lng": location.get("lng")},
            "addressComponents": {
                "streetNumber": _address_part(components, "street_number"),
                "route": _address_part(components, "route"),
                "city": _address_part(components, "locality"),
                "state": _address_part(components, "administrative_area_level_1", short=True),
                "zipCode": _address_part(components, "postal_code"),
                "country": _address_part(components, "country", short=True),
            },
        }

    async def geocode(self, address: str) -> dict:
        data = await self._get("geocode/json", {"address": address})
        results = data.get("results") or []
        if not results:
            raise LocationError(f"Geocoding failed: {data.get('status')}", status=data.get("status"), status_code=404)
        first = results[0]
        location = first["geometry"]["location"]
        return {"lat": location["lat"], "lng": location["lng"], "formattedAddress": first.get("formatted_address", "")}

    async def reverse_geocode(self, lat: float, lng: float) -> dict:
        data = await self._get("geocode/json", {"latlng": f"{lat},{lng}"})
        results = data.get("results") or []
        if not results:
            raise LocationError(
                f"Reverse geocoding failed: {data.get('status')}", status=data.get("status"), status_code=404
            )
        first = results[0]
        components = first.get("address_components", [])
        return {
            "city": _address_part(components, "locality"),
            "state": _address_part(components, "administrative_area_level_1"),
            "formattedAddress": first.get("formatted_address", ""),
        }


def distance_km(point1: dict, point2: dict) -> float:
    """Great-circle (haversine) distance between two {lat, lng} points"""
    lat1, lat2 = math.radians(point1["lat"]), math.radians(point2["lat"])
    d_lat = lat2 - lat1
    d_lng = math.radians(point2["lng"] - point1["lng"])
    a = math.sin(d_lat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(d_lng / 2) ** 2
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def find_providers_in_radius(providers: list[dict], center: dict, radius_km: float) -> list[dict]:
    """Providers with coordinates within radius_km of center; providers without coordinates are excluded"""
    nearby = []
    for provider in providers:
        coordinates = provider.get("coordinates")
        if not coordinates or coordinates.get("lat") is None or coordinates.get("lng") is None:
            continue
        if distance_km(center, coordinates) <= radius_km:
            nearby.append(provider)
    return nearby


def get_location_client() -> GooglePlacesClient:
    return GooglePlacesClient()
