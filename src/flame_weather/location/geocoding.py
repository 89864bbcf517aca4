"""Geocoding: free-text place search and reverse lookup of place names."""

import asyncio
import logging
from functools import lru_cache
from typing import List, Optional

import httpx
from geopy.exc import GeopyError
from geopy.geocoders import Nominatim
from pydantic import ValidationError

from flame_weather.config import (
    GEOCODING_SEARCH_URL, GEOCODING_USER_AGENT, HTTP_TIMEOUT_SECONDS,
    SEARCH_RESULT_LIMIT
)
from flame_weather.errors import TransientNetworkError, UpstreamFormatError
from flame_weather.weather.models import Coordinate, Language, LocationCandidate

logger = logging.getLogger(__name__)


def _candidate_from_result(item: dict) -> LocationCandidate:
    parts = [item.get("admin1") or "", item.get("country") or ""]
    return LocationCandidate(
        display_name=item["name"],
        detail=", ".join(part for part in parts if part),
        coordinate=Coordinate(latitude=item["latitude"], longitude=item["longitude"]),
    )


class PlaceSearchClient:
    """Client for the Open-Meteo geocoding search API."""

    def __init__(
        self,
        base_url: str = GEOCODING_SEARCH_URL,
        client: Optional[httpx.AsyncClient] = None
    ):
        self.base_url = base_url
        self.client = client or httpx.AsyncClient(timeout=HTTP_TIMEOUT_SECONDS)

    async def search(
        self,
        query: str,
        language: Language,
        count: int = SEARCH_RESULT_LIMIT
    ) -> List[LocationCandidate]:
        """Look up places matching a free-text query.

        Args:
            query: Text typed by the user
            language: Language of the returned place names
            count: Maximum number of results

        Returns:
            Up to ``count`` candidates; an empty list when nothing matched

        Raises:
            TransientNetworkError: If the request fails
            UpstreamFormatError: If the payload cannot be parsed
        """
        params = {"name": query, "count": count, "language": language.value}
        try:
            response = await self.client.get(self.base_url, params=params)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPError as e:
            raise TransientNetworkError(f"Place search failed: {e!r}") from e
        except ValueError as e:
            raise UpstreamFormatError("Place search body is not JSON") from e

        if not isinstance(payload, dict):
            raise UpstreamFormatError("Place search payload is not an object")

        results = payload.get("results") or []
        if not isinstance(results, list):
            raise UpstreamFormatError("Place search results are not a list")

        candidates = []
        for item in results:
            try:
                candidates.append(_candidate_from_result(item))
            except (AttributeError, KeyError, TypeError, ValidationError) as e:
                logger.warning(f"Skipping malformed place search result: {e}")
        return candidates[:count]

    async def aclose(self):
        await self.client.aclose()


class ReverseGeocoder:
    """Resolves place names for coordinates using Nominatim."""

    def __init__(self, geolocator: Optional[Nominatim] = None):
        self.geolocator = geolocator or Nominatim(
            user_agent=GEOCODING_USER_AGENT, timeout=HTTP_TIMEOUT_SECONDS
        )

    @lru_cache(maxsize=1000)
    def reverse_geocode(self, lat: float, lon: float, language: str) -> Optional[str]:
        """Convert coordinates to a city name.

        Args:
            lat: Latitude, already rounded by the caller
            lon: Longitude, already rounded by the caller
            language: Preferred language of the name

        Returns:
            City name if found, None otherwise

        Raises:
            GeopyError: If the service is unavailable; errors are not cached
        """
        logger.info(f"Reverse geocoding coordinates: ({lat}, {lon})")
        location = self.geolocator.reverse((lat, lon), language=language)

        if location and location.raw.get("address"):
            address = location.raw["address"]
            city = (
                address.get("city") or
                address.get("town") or
                address.get("village") or
                address.get("municipality") or
                address.get("county")
            )
            if city:
                logger.info(f"Reverse geocoded ({lat}, {lon}) to '{city}'")
                return city

        logger.info(f"No city found for coordinates ({lat}, {lon})")
        return None

    async def place_name(self, coordinate: Coordinate, language: Language) -> Optional[str]:
        """Async wrapper; Nominatim is blocking so it runs in a worker thread."""
        lat, lon = round(coordinate.latitude, 4), round(coordinate.longitude, 4)
        try:
            return await asyncio.to_thread(self.reverse_geocode, lat, lon, language.value)
        except GeopyError as e:
            logger.warning(f"Reverse geocoding unavailable for ({lat}, {lon}): {e}")
            return None
