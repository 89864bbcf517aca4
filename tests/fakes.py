"""Fakes and payload builders shared by the tests."""

from datetime import datetime, timezone
from typing import List, Optional

import httpx

from flame_weather.weather.models import Coordinate, WeatherSnapshot

TODAY = datetime(2024, 7, 14, 8, 0, tzinfo=timezone.utc)


class FakePositioningBackend:
    """Positioning backend driven by the test through ``emit``."""

    def __init__(self, permission: bool = True, providers=("gps", "network")):
        self.permission = permission
        self.providers = set(providers)
        self.listeners = []
        self.requests = []
        self.remove_calls = 0

    def has_permission(self) -> bool:
        return self.permission

    def is_provider_enabled(self, provider: str) -> bool:
        return provider in self.providers

    def request_updates(self, provider, min_time_s, min_distance_m, listener) -> None:
        self.requests.append((provider, min_time_s, min_distance_m))
        self.listeners.append(listener)

    def remove_updates(self, listener) -> None:
        self.remove_calls += 1
        if listener in self.listeners:
            self.listeners.remove(listener)

    def emit(self, latitude: float, longitude: float) -> None:
        for listener in list(self.listeners):
            listener(latitude, longitude)


class FakeIpResolver:
    def __init__(self, coordinate: Optional[Coordinate] = None):
        self.coordinate = coordinate
        self.calls = 0

    async def resolve(self) -> Optional[Coordinate]:
        self.calls += 1
        return self.coordinate

    async def aclose(self):
        pass


def make_snapshot(coordinate: Coordinate, name: Optional[str] = None, temperature: float = 21.3) -> WeatherSnapshot:
    return WeatherSnapshot(
        location_name=name or "Oslo",
        coordinate=coordinate,
        current_temperature_c=temperature,
        current_temperature_label=f"{temperature}°C",
        wind_label="风速: 3.2 m/s",
        precipitation_label="降雨: 0.0 mm",
        aqi_label="AQI: 暂无数据",
        current_condition_code="clearsky_day",
    )


class FakeAggregator:
    """Returns canned snapshots; ``fail`` makes fetch return None."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.calls = []

    async def fetch(self, coordinate, location_name=None, language=None):
        self.calls.append((coordinate, location_name, language))
        if self.fail:
            return None
        return make_snapshot(coordinate, location_name)

    async def aclose(self):
        pass


def make_entry(
    time: str,
    temperature: float,
    wind: float = 1.0,
    symbol_1h: Optional[str] = None,
    precipitation: Optional[float] = None,
    symbol_6h: Optional[str] = None
) -> dict:
    data = {"instant": {"details": {"air_temperature": temperature, "wind_speed": wind}}}
    if symbol_1h is not None or precipitation is not None:
        block = {}
        if symbol_1h is not None:
            block["summary"] = {"symbol_code": symbol_1h}
        if precipitation is not None:
            block["details"] = {"precipitation_amount": precipitation}
        data["next_1_hours"] = block
    if symbol_6h is not None:
        data["next_6_hours"] = {"summary": {"symbol_code": symbol_6h}}
    return {"time": time, "data": data}


def make_payload(entries: List[dict]) -> dict:
    return {
        "type": "Feature",
        "geometry": {"type": "Point", "coordinates": [10.75, 59.91, 12]},
        "properties": {"meta": {"units": {}}, "timeseries": entries},
    }


def mock_http_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


