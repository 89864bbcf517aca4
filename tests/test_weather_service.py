"""Tests for fetching and reducing the MET Norway forecast."""

from datetime import datetime, timedelta, timezone
from importlib.resources import files

import httpx
import pytest

from fakes import TODAY, make_entry, make_payload, mock_http_client
from flame_weather.weather.client import YrWeatherClient
from flame_weather.weather.models import Coordinate, Language
import flame_weather.weather.service as service
from flame_weather.weather.service import WeatherAggregator, local_timezone, parse_timeseries, reduce_daily


def make_aggregator(handler, tz=timezone.utc, geocoder=None, language=Language.ZH):
    client = YrWeatherClient(client=mock_http_client(handler))
    return WeatherAggregator(
        client=client,
        geocoder=geocoder,
        tz=tz,
        clock=lambda: TODAY,
        language=language,
    )


def json_handler(payload, seen=None):
    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        return httpx.Response(200, json=payload)
    return handler


class StaticGeocoder:
    def __init__(self, name):
        self.name = name

    async def place_name(self, coordinate, language):
        return self.name


class TestDailyReduction:
    """Selection of one representative entry per future local day."""

    def test_keeps_noon_utc_entry_per_future_day(self):
        points = parse_timeseries(make_payload([
            make_entry("2024-07-14T08:00:00Z", 18.0),
            make_entry("2024-07-15T06:00:00Z", 20.0),
            make_entry("2024-07-15T12:00:00Z", 26.4, symbol_6h="rain"),
            make_entry("2024-07-15T18:00:00Z", 22.0),
            make_entry("2024-07-16T12:00:00Z", 24.6, symbol_6h="cloudy"),
            make_entry("2024-07-17T00:00:00Z", 15.0),
            make_entry("2024-07-17T12:00:00Z", -3.2),
        ]))

        daily = reduce_daily(points, TODAY, timezone.utc)

        assert [(d.local_date, d.temperature_label, d.condition_code) for d in daily] == [
            ("07-15", "26°C", "rain"),
            ("07-16", "25°C", "cloudy"),
            ("07-17", "-3°C", None),
        ]

    def test_never_includes_today(self):
        points = parse_timeseries(make_payload([
            make_entry("2024-07-14T08:00:00Z", 18.0),
            make_entry("2024-07-14T12:00:00Z", 23.0),
            make_entry("2024-07-15T12:00:00Z", 21.0),
        ]))

        daily = reduce_daily(points, TODAY, timezone.utc)

        assert [d.local_date for d in daily] == ["07-15"]

    def test_first_entry_wins_for_duplicate_dates(self):
        points = parse_timeseries(make_payload([
            make_entry("2024-07-14T08:00:00Z", 18.0),
            make_entry("2024-07-15T12:00:00Z", 21.0),
            make_entry("2024-07-15T12:00:00Z", 30.0),
        ]))

        daily = reduce_daily(points, TODAY, timezone.utc)

        assert len(daily) == 1
        assert daily[0].temperature_label == "21°C"

    def test_local_date_follows_display_zone(self):
        # UTC+14: noon UTC on the 14th is already the 15th locally
        tz = timezone(timedelta(hours=14))
        points = parse_timeseries(make_payload([
            make_entry("2024-07-14T00:00:00Z", 18.0),
            make_entry("2024-07-14T12:00:00Z", 25.0),
            make_entry("2024-07-15T12:00:00Z", 27.0),
        ]))

        daily = reduce_daily(points, TODAY, tz)

        assert [d.local_date for d in daily] == ["07-15", "07-16"]

    def test_day_without_noon_entry_is_absent(self):
        points = parse_timeseries(make_payload([
            make_entry("2024-07-14T08:00:00Z", 18.0),
            make_entry("2024-07-15T06:00:00Z", 20.0),
            make_entry("2024-07-15T18:00:00Z", 22.0),
            make_entry("2024-07-16T12:00:00Z", 24.0),
        ]))

        daily = reduce_daily(points, TODAY, timezone.utc)

        assert [d.local_date for d in daily] == ["07-16"]

    def test_malformed_later_entries_are_skipped(self):
        broken = {"time": "2024-07-15T12:00:00Z", "data": {"next_6_hours": {}}}
        points = parse_timeseries(make_payload([
            make_entry("2024-07-14T08:00:00Z", 18.0),
            broken,
            make_entry("2024-07-16T12:00:00Z", 24.0),
        ]))

        assert len(points) == 2
        assert [d.local_date for d in reduce_daily(points, TODAY, timezone.utc)] == ["07-16"]

    def test_temperatures_round_half_up(self):
        points = parse_timeseries(make_payload([
            make_entry("2024-07-14T08:00:00Z", 18.0),
            make_entry("2024-07-15T12:00:00Z", 26.5),
            make_entry("2024-07-16T12:00:00Z", -0.5),
            make_entry("2024-07-17T12:00:00Z", 2.49),
        ]))

        daily = reduce_daily(points, TODAY, timezone.utc)

        assert [d.temperature_label for d in daily] == ["27°C", "0°C", "2°C"]


class TestLocalTimezone:

    @staticmethod
    def offsets(tz):
        winter = datetime(2024, 1, 15, 12, tzinfo=timezone.utc).astimezone(tz).utcoffset()
        summer = datetime(2024, 7, 15, 12, tzinfo=timezone.utc).astimezone(tz).utcoffset()
        return winter, summer

    def test_configured_zone_follows_daylight_saving(self, monkeypatch):
        monkeypatch.setattr(service, "LOCAL_TIMEZONE", "Europe/Oslo")

        assert self.offsets(local_timezone()) == (timedelta(hours=1), timedelta(hours=2))

    def test_host_zone_file_follows_daylight_saving(self, monkeypatch):
        monkeypatch.setattr(service, "LOCAL_TIMEZONE", None)
        monkeypatch.setattr(service, "HOST_ZONE_FILE", str(files("tzdata").joinpath("zoneinfo/Europe/Oslo")))

        assert self.offsets(local_timezone()) == (timedelta(hours=1), timedelta(hours=2))

    def test_missing_host_zone_file_uses_current_offset(self, monkeypatch, tmp_path):
        monkeypatch.setattr(service, "LOCAL_TIMEZONE", None)
        monkeypatch.setattr(service, "HOST_ZONE_FILE", str(tmp_path / "missing"))

        assert local_timezone().utcoffset(None) is not None


class TestWeatherAggregator:
    """Snapshot construction and failure handling."""

    @pytest.mark.asyncio
    async def test_snapshot_scenario(self, oslo):
        payload = make_payload([
            make_entry("2024-07-14T08:00:00Z", 21.3, wind=3.2),
            make_entry("2024-07-14T12:00:00Z", 24.0),
            make_entry("2024-07-15T12:00:00Z", 26.0),
        ])
        aggregator = make_aggregator(json_handler(payload))

        snapshot = await aggregator.fetch(oslo, "Oslo")

        assert snapshot.current_temperature_c == 21.3
        assert snapshot.current_temperature_label == "21.3°C"
        assert snapshot.wind_label == "风速: 3.2 m/s"
        assert [(d.local_date, d.temperature_label) for d in snapshot.forecast] == [("07-15", "26°C")]
        assert snapshot.location_name == "Oslo"

    @pytest.mark.asyncio
    async def test_missing_optional_fields_use_defaults(self, oslo):
        payload = make_payload([make_entry("2024-07-14T08:00:00Z", 12.0, wind=5.0)])
        aggregator = make_aggregator(json_handler(payload), language=Language.EN)

        snapshot = await aggregator.fetch(oslo, "Oslo")

        assert snapshot.precipitation_label == "Rain: 0.0 mm"
        assert snapshot.current_condition_code is None
        assert snapshot.aqi_label == "AQI: N/A"
        assert snapshot.forecast == ()

    @pytest.mark.asyncio
    async def test_short_horizon_block_feeds_current_conditions(self, oslo):
        payload = make_payload([
            make_entry("2024-07-14T08:00:00Z", 12.0, symbol_1h="lightrain", precipitation=0.4),
        ])
        aggregator = make_aggregator(json_handler(payload))

        snapshot = await aggregator.fetch(oslo, "Oslo", Language.EN)

        assert snapshot.current_condition_code == "lightrain"
        assert snapshot.precipitation_label == "Rain: 0.4 mm"

    @pytest.mark.asyncio
    async def test_request_uses_four_decimals_and_user_agent(self):
        seen = []
        payload = make_payload([make_entry("2024-07-14T08:00:00Z", 12.0)])
        aggregator = make_aggregator(json_handler(payload, seen))

        await aggregator.fetch(Coordinate(latitude=59.913912345, longitude=10.75), "Oslo")

        request = seen[0]
        assert request.url.params["lat"] == "59.9139"
        assert request.url.params["lon"] == "10.7500"
        assert request.headers["user-agent"].startswith("FlameWeather")

    @pytest.mark.asyncio
    async def test_location_name_from_reverse_geocoding(self, oslo):
        payload = make_payload([make_entry("2024-07-14T08:00:00Z", 12.0)])
        aggregator = make_aggregator(json_handler(payload), geocoder=StaticGeocoder("Oslo"))

        snapshot = await aggregator.fetch(oslo)

        assert snapshot.location_name == "Oslo"

    @pytest.mark.asyncio
    async def test_location_name_falls_back_to_unknown(self, oslo):
        payload = make_payload([make_entry("2024-07-14T08:00:00Z", 12.0)])
        aggregator = make_aggregator(json_handler(payload), geocoder=StaticGeocoder(None))

        snapshot = await aggregator.fetch(oslo)

        assert snapshot.location_name == "Unknown Location"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("response", [
        httpx.Response(503, text="busy"),
        httpx.Response(200, text="<html>not json</html>"),
        httpx.Response(200, json={"type": "Feature"}),
        httpx.Response(200, json=make_payload([{"time": "2024-07-14T08:00:00Z", "data": {}}])),
    ])
    async def test_failures_yield_none(self, oslo, response):
        aggregator = make_aggregator(lambda request: response)

        assert await aggregator.fetch(oslo, "Oslo") is None

    @pytest.mark.asyncio
    async def test_transport_error_yields_none(self, oslo):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        aggregator = make_aggregator(handler)

        assert await aggregator.fetch(oslo, "Oslo") is None
