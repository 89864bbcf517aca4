"""Tests for reverse geocoding through geopy."""

from types import SimpleNamespace

import pytest
from geopy.exc import GeocoderUnavailable

from flame_weather.location.geocoding import ReverseGeocoder
from flame_weather.weather.models import Coordinate, Language


def place(**address):
    return SimpleNamespace(raw={"address": address})


class StubGeolocator:
    """Stands in for Nominatim; replays responses in order."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    def reverse(self, query, language=None):
        self.calls.append((query, language))
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


class TestReverseGeocoder:

    @pytest.mark.asyncio
    async def test_prefers_city_then_smaller_places(self):
        geolocator = StubGeolocator(place(town="Lillehammer", county="Innlandet"))
        geocoder = ReverseGeocoder(geolocator)

        name = await geocoder.place_name(Coordinate(latitude=61.115271, longitude=10.466231), Language.EN)

        assert name == "Lillehammer"
        assert geolocator.calls == [((61.1153, 10.4662), "en")]

    @pytest.mark.asyncio
    async def test_successful_lookups_are_cached(self, oslo):
        geolocator = StubGeolocator(place(city="Oslo"))
        geocoder = ReverseGeocoder(geolocator)

        assert await geocoder.place_name(oslo, Language.ZH) == "Oslo"
        assert await geocoder.place_name(oslo, Language.ZH) == "Oslo"
        assert len(geolocator.calls) == 1

    @pytest.mark.asyncio
    async def test_outage_is_not_remembered(self, oslo):
        geolocator = StubGeolocator(GeocoderUnavailable("503"), place(city="Oslo"))
        geocoder = ReverseGeocoder(geolocator)

        assert await geocoder.place_name(oslo, Language.ZH) is None
        assert await geocoder.place_name(oslo, Language.ZH) == "Oslo"
        assert len(geolocator.calls) == 2

    @pytest.mark.asyncio
    async def test_place_without_address_has_no_name(self, oslo):
        geocoder = ReverseGeocoder(StubGeolocator(SimpleNamespace(raw={}), None))

        assert await geocoder.place_name(oslo, Language.ZH) is None
        assert await geocoder.place_name(Coordinate(latitude=1.0, longitude=1.0), Language.ZH) is None
