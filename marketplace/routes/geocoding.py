"""Geocoding / Address autocomplete proxy.

Proxies Google Places and Geocoding so the Maps key stays server-side,
with per-IP rate limits and Redis caching in front of the upstream.
"""

import logging
import os
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from ..cache import cache
from ..rate_limiter import create_rate_limiter
from ..services.location_service import MIN_QUERY_LENGTH, GooglePlacesClient, LocationError, get_location_client

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/geocoding", tags=["Geocoding"])

rate_limit_autocomplete = create_rate_limiter(
    limit=int(os.getenv("GEOCODING_AUTOCOMPLETE_RPM", "60")),
    window_seconds=60,
    key_prefix="geocode_autocomplete",
    use_ip=True,
)
rate_limit_lookup = create_rate_limiter(limit=30, window_seconds=60, key_prefix="geocode_lookup")

CACHE_SECONDS = int(os.getenv("GEOCODING_AUTOCOMPLETE_CACHE_SECONDS", "3600"))


class StructuredFormatting(BaseModel):
    mainText: str = ""
    secondaryText: str = ""


class AutocompleteResponseItem(BaseModel):
    description: str
    placeId: Optional[str] = None
    structuredFormatting: StructuredFormatting = StructuredFormatting()


class AutocompleteResponse(BaseModel):
    results: list[AutocompleteResponseItem]


def _http_error(e: LocationError) -> HTTPException:
    return HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/autocomplete", response_model=AutocompleteResponse)
async def autocomplete(
    q: str,
    country: Optional[str] = "us",
    types: Optional[str] = "address",
    client: GooglePlacesClient = Depends(get_location_client),
    _: None = Depends(rate_limit_autocomplete),
):
    q = (q or "").strip()
    if len(q) < MIN_QUERY_LENGTH:
        return AutocompleteResponse(results=[])

    cache_key = f"geo:auto:{country or 'all'}:{types or 'any'}:{q.lower()}"
    cached = cache.get(cache_key)
    if cached is not None:
        return AutocompleteResponse(results=cached)

    try:
        results = await client.autocomplete(q, country=country, types=types)
    except LocationError as e:
        raise _http_error(e) from e

    cache.set(cache_key, results, ttl=CACHE_SECONDS)
    return AutocompleteResponse(results=results)


@router.get("/places/{place_id}")
async def place_details(
    place_id: str,
    client: GooglePlacesClient = Depends(get_location_client),
    _: None = Depends(rate_limit_lookup),
):
    cache_key = f"geo:place:{place_id}"
    cached = cache.get(cache_key)
    if cached is not None:
        return cached

    try:
        details = await client.place_details(place_id)
    except LocationError as e:
        raise _http_error(e) from e

    cache.set(cache_key, details, ttl=CACHE_SECONDS)
    return details


@router.get("/reverse")
async def reverse_geocode(
    lat: float = Query(..., ge=-90, le=90),
    lng: float = Query(..., ge=-180, le=180),
    client: GooglePlacesClient = Depends(get_location_client),
    _: None = Depends(rate_limit_lookup),
):
    try:
        return await client.reverse_geocode(lat, lng)
    except LocationError as e:
        raise _http_error(e) from e
