"""Background weather refresh for the widget cache."""

import logging
from enum import Enum
from typing import Awaitable, Callable, Optional

from flame_weather.background.store import (
    KEY_LOCATION, KEY_SYMBOL, KEY_TEMPERATURE, KeyValueStore
)
from flame_weather.errors import ConfigurationError
from flame_weather.weather.models import Coordinate
from flame_weather.weather.service import WeatherAggregator

logger = logging.getLogger(__name__)


class WorkResult(str, Enum):
    SUCCESS = "success"
    RETRY = "retry"
    FAILURE = "failure"


class RefreshWorker:
    """One unit of periodic work: fetch, persist, signal the widget."""

    def __init__(
        self,
        aggregator: WeatherAggregator,
        store: KeyValueStore,
        redraw: Callable[[], Awaitable[object]]
    ):
        self.aggregator = aggregator
        self.store = store
        self.redraw = redraw

    async def run(
        self,
        coordinate: Optional[Coordinate],
        location_name: Optional[str] = None
    ) -> WorkResult:
        """Refresh the cached weather for ``coordinate``.

        Returns:
            FAILURE without any request when the coordinate is missing or the
            (0, 0) sentinel, RETRY when the fetch or cache write fails,
            SUCCESS otherwise
        """
        try:
            self._check_coordinate(coordinate)
        except ConfigurationError as e:
            logger.error(f"Background refresh misconfigured: {e}")
            return WorkResult.FAILURE

        try:
            snapshot = await self.aggregator.fetch(coordinate, location_name)
            if snapshot is None:
                logger.warning("Background refresh fetch failed, will retry")
                return WorkResult.RETRY

            await self.store.write({
                KEY_TEMPERATURE: snapshot.current_temperature_label,
                KEY_LOCATION: snapshot.location_name,
                KEY_SYMBOL: snapshot.current_condition_code or "",
            })
            await self.redraw()
        except Exception as e:
            logger.error(f"Background refresh failed: {e!r}")
            return WorkResult.RETRY

        logger.info(f"Background refresh stored {snapshot.current_temperature_label} for '{snapshot.location_name}'")
        return WorkResult.SUCCESS

    @staticmethod
    def _check_coordinate(coordinate: Optional[Coordinate]) -> None:
        if coordinate is None or coordinate.is_sentinel:
            raise ConfigurationError(f"No usable coordinate: {coordinate}")
