"""Weather aggregation: raw forecast time series to a display snapshot."""

import logging
import math
import zoneinfo
from datetime import datetime, time, timezone, tzinfo
from typing import Any, Callable, Dict, List, Optional, Tuple

from flame_weather.config import DEFAULT_LANGUAGE, LOCAL_TIMEZONE, UNKNOWN_LOCATION
from flame_weather.errors import FlameWeatherError, UpstreamFormatError
from flame_weather.location.geocoding import ReverseGeocoder
from flame_weather.weather.client import YrWeatherClient
from flame_weather.weather.models import (
    Coordinate, DailyForecast, Language, RawForecastPoint, WeatherSnapshot
)

logger = logging.getLogger(__name__)

# One representative sample per day: the series entry at noon UTC
REFERENCE_TIME_UTC = time(12, 0, 0)
LOCAL_DATE_FORMAT = "%m-%d"
HOST_ZONE_FILE = "/etc/localtime"

_LABELS: Dict[Language, Dict[str, str]] = {
    Language.ZH: {"wind": "风速", "rain": "降雨", "aqi": "暂无数据"},
    Language.EN: {"wind": "Wind", "rain": "Rain", "aqi": "N/A"},
}


def local_timezone() -> tzinfo:
    """Configured display zone, defaulting to the host's local zone.

    The host zone is read from its tz database file so daylight saving
    changes apply in a long-running process. Only hosts without such a file
    fall back to the current fixed UTC offset.
    """
    if LOCAL_TIMEZONE:
        return zoneinfo.ZoneInfo(LOCAL_TIMEZONE)
    try:
        with open(HOST_ZONE_FILE, "rb") as zone_file:
            return zoneinfo.ZoneInfo.from_file(zone_file, key="localtime")
    except (OSError, ValueError) as e:
        logger.warning(f"Host time zone unavailable, using fixed UTC offset: {e}")
        return datetime.now().astimezone().tzinfo


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def parse_timestamp(timestamp_str: str) -> datetime:
    """Parse an ISO 8601 UTC timestamp such as ``2024-07-15T12:00:00Z``."""
    return datetime.fromisoformat(timestamp_str.replace("Z", "+00:00"))


def _summary_code(data: Dict[str, Any], block: str) -> Optional[str]:
    return ((data.get(block) or {}).get("summary") or {}).get("symbol_code")


def parse_point(entry: Dict[str, Any]) -> RawForecastPoint:
    """Build a RawForecastPoint from one timeseries entry.

    Raises:
        KeyError, TypeError, ValueError: If required fields are missing or malformed
    """
    data = entry["data"]
    instant = data["instant"]["details"]
    precipitation = ((data.get("next_1_hours") or {}).get("details") or {}).get("precipitation_amount")
    return RawForecastPoint(
        timestamp_utc=parse_timestamp(entry["time"]),
        air_temperature_c=instant["air_temperature"],
        wind_speed_ms=instant["wind_speed"],
        precipitation_mm=precipitation,
        condition_code=_summary_code(data, "next_1_hours"),
        daily_condition_code=_summary_code(data, "next_6_hours"),
    )


def parse_timeseries(raw_data: Dict[str, Any]) -> List[RawForecastPoint]:
    """Parse the whole series, skipping malformed entries after the first.

    Raises:
        UpstreamFormatError: If the series is empty or its first entry is malformed
    """
    try:
        timeseries = raw_data["properties"]["timeseries"]
        first = parse_point(timeseries[0])
    except (KeyError, IndexError, TypeError, ValueError) as e:
        raise UpstreamFormatError(f"Unusable first timeseries entry: {e}") from e

    points = [first]
    for entry in timeseries[1:]:
        try:
            points.append(parse_point(entry))
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Skipping invalid timeseries entry: {e}")
    return points


def reduce_daily(
    points: List[RawForecastPoint],
    today: datetime,
    tz: tzinfo
) -> List[DailyForecast]:
    """Pick one forecast per future local day.

    An entry is kept when its local date is not today, no entry for that date
    was kept yet, and its UTC time of day is the reference instant. Days the
    provider publishes without a noon UTC entry are left out rather than
    interpolated.

    Args:
        points: Series in chronological order
        today: Current time, used for its local date
        tz: Zone used for local dates

    Returns:
        Daily forecasts in first-occurrence order
    """
    today_key = today.astimezone(tz).strftime(LOCAL_DATE_FORMAT)
    seen = set()
    daily = []

    for point in points:
        utc_time = point.timestamp_utc.astimezone(timezone.utc)
        local_key = utc_time.astimezone(tz).strftime(LOCAL_DATE_FORMAT)
        if local_key == today_key or local_key in seen:
            continue
        if utc_time.time() != REFERENCE_TIME_UTC:
            continue

        daily.append(DailyForecast(
            local_date=local_key,
            temperature_label=f"{round_half_up(point.air_temperature_c)}°C",
            condition_code=point.daily_condition_code,
        ))
        seen.add(local_key)

    return daily


class WeatherAggregator:
    """Fetches the forecast for a coordinate and reduces it to a snapshot."""

    def __init__(
        self,
        client: Optional[YrWeatherClient] = None,
        geocoder: Optional[ReverseGeocoder] = None,
        tz: Optional[tzinfo] = None,
        clock: Optional[Callable[[], datetime]] = None,
        language: Language = Language(DEFAULT_LANGUAGE)
    ):
        """Initialize the aggregator.

        Args:
            client: Weather client instance (creates default if None)
            geocoder: Reverse geocoder for location names; None disables lookup
            tz: Zone for local dates (host zone if None)
            clock: Returns the current aware time
            language: Default label language
        """
        self.client = client or YrWeatherClient()
        self.geocoder = geocoder
        self.tz = tz or local_timezone()
        self.clock = clock or (lambda: datetime.now(self.tz))
        self.language = language

    async def fetch(
        self,
        coordinate: Coordinate,
        location_name: Optional[str] = None,
        language: Optional[Language] = None
    ) -> Optional[WeatherSnapshot]:
        """Fetch and aggregate weather for a coordinate.

        Args:
            coordinate: Where to fetch the forecast for
            location_name: Name to show; looked up by reverse geocoding if None
            language: Label language (aggregator default if None)

        Returns:
            The snapshot, or None on any transport or payload failure
        """
        language = language or self.language
        try:
            raw_data = await self.client.get_weather_forecast(coordinate)
            points = parse_timeseries(raw_data)
        except FlameWeatherError as e:
            logger.error(f"Weather fetch failed for ({coordinate.latitude}, {coordinate.longitude}): {e}")
            return None

        current, forecast = self.summarize(points, language)
        name = location_name or await self._lookup_name(coordinate, language)

        snapshot = WeatherSnapshot(
            location_name=name,
            coordinate=coordinate,
            forecast=tuple(forecast),
            **current
        )
        logger.info(f"Built snapshot for '{name}' with {len(forecast)} forecast days")
        return snapshot

    def summarize(
        self,
        points: List[RawForecastPoint],
        language: Language
    ) -> Tuple[Dict[str, Any], List[DailyForecast]]:
        """Current conditions from the first point plus the daily reduction."""
        labels = _LABELS[language]
        now = points[0]
        precipitation = now.precipitation_mm if now.precipitation_mm is not None else 0.0

        current = {
            "current_temperature_c": now.air_temperature_c,
            "current_temperature_label": f"{now.air_temperature_c}°C",
            "wind_label": f"{labels['wind']}: {now.wind_speed_ms} m/s",
            "precipitation_label": f"{labels['rain']}: {precipitation} mm",
            "aqi_label": f"AQI: {labels['aqi']}",
            "current_condition_code": now.condition_code,
        }
        forecast = reduce_daily(points, self.clock(), self.tz)
        return current, forecast

    async def _lookup_name(self, coordinate: Coordinate, language: Language) -> str:
        if self.geocoder is None:
            return UNKNOWN_LOCATION
        try:
            name = await self.geocoder.place_name(coordinate, language)
        except Exception as e:
            logger.warning(f"Reverse geocoding failed: {e}")
            name = None
        return name or UNKNOWN_LOCATION

    async def aclose(self):
        """Close the weather client."""
        try:
            await self.client.aclose()
        except Exception as e:
            logger.error(f"Error closing weather client: {e}")

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()
