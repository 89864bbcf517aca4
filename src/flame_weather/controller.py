"""Interactive flow: resolve location, load weather, handle user choices."""

import logging
from typing import Dict, Optional

from flame_weather.background.scheduler import PeriodicWorkScheduler
from flame_weather.background.worker import RefreshWorker
from flame_weather.config import REFRESH_WORK_NAME
from flame_weather.location.coordinator import LocationCoordinator
from flame_weather.location.geocoding import PlaceSearchClient
from flame_weather.search.debouncer import PlaceSearchDebouncer
from flame_weather.state import StateStore
from flame_weather.weather.models import (
    Coordinate, FailureReason, Language, LocationCandidate, LocationFailure, LocationMode
)
from flame_weather.weather.service import WeatherAggregator

logger = logging.getLogger(__name__)

STATUS_MESSAGES: Dict[str, Dict[Language, str]] = {
    "locating": {Language.ZH: "定位中...", Language.EN: "Locating..."},
    "located": {Language.ZH: "定位成功", Language.EN: "Updated via GPS/IP"},
    "manual": {Language.ZH: "定位: {name}", Language.EN: "Location: {name}"},
    "switching": {Language.ZH: "切换至自动定位...", Language.EN: "Switching to Auto..."},
    "no_location": {Language.ZH: "无法获取位置", Language.EN: "Location unavailable"},
    "fetch_failed": {Language.ZH: "获取天气失败", Language.EN: "Fetch failed"},
}


class WeatherController:
    """Drives the state store from location, search and weather components.

    All methods run on the event loop, which is the only writer of the store.
    A failed weather fetch changes the status text only; the last good
    snapshot stays visible.
    """

    def __init__(
        self,
        store: StateStore,
        coordinator: LocationCoordinator,
        aggregator: WeatherAggregator,
        search_client: PlaceSearchClient,
        scheduler: Optional[PeriodicWorkScheduler] = None,
        refresh_worker: Optional[RefreshWorker] = None
    ):
        self.store = store
        self.coordinator = coordinator
        self.aggregator = aggregator
        self.scheduler = scheduler
        self.refresh_worker = refresh_worker
        self.debouncer = PlaceSearchDebouncer(
            search_client,
            on_candidates=lambda candidates: self.store.update(candidates=tuple(candidates)),
            language=lambda: self.store.state.language,
        )
        self._load_generation = 0

    def _message(self, key: str, **kwargs) -> str:
        return STATUS_MESSAGES[key][self.store.state.language].format(**kwargs)

    async def start(self) -> None:
        await self.refresh_automatic()

    async def refresh_automatic(self) -> None:
        """Resolve the device location and load its weather.

        Does nothing while a manual location is active.
        """
        if self.store.state.mode is LocationMode.MANUAL:
            return

        self.store.update(status=self._message("locating"))
        result = await self.coordinator.resolve()

        if self.store.state.mode is LocationMode.MANUAL:
            logger.info("Ignoring resolved location: manual location selected meanwhile")
            return
        if isinstance(result, LocationFailure):
            if result.reason is not FailureReason.SUPERSEDED:
                self.store.update(status=self._message("no_location"))
            return

        self._schedule_background_refresh(result)
        await self._load(result, success_status=self._message("located"))

    async def refresh(self) -> None:
        """Reload weather for the active coordinate."""
        state = self.store.state
        if state.active_coordinate is None:
            await self.refresh_automatic()
            return
        name = state.manual_location_name if state.mode is LocationMode.MANUAL else None
        await self._load(state.active_coordinate, name)

    def on_query_changed(self, text: str) -> None:
        self.debouncer.on_query_changed(text)

    async def select_candidate(self, candidate: LocationCandidate) -> None:
        """Switch to a user-chosen place; positioning results are ignored until reset.

        The selection becomes the active coordinate before the fetch, so a
        failed load still leaves later refreshes pointed at the chosen place.
        """
        self.coordinator.cancel()
        self.debouncer.cancel()
        self.store.update(
            mode=LocationMode.MANUAL,
            active_coordinate=candidate.coordinate,
            manual_location_name=candidate.display_name,
            candidates=(),
            status=self._message("manual", name=candidate.display_name),
        )
        self._schedule_background_refresh(candidate.coordinate, candidate.display_name)
        await self._load(candidate.coordinate, candidate.display_name)

    async def reset_location(self) -> None:
        """Return to automatic location."""
        self.store.update(
            mode=LocationMode.AUTOMATIC,
            manual_location_name=None,
            status=self._message("switching"),
        )
        await self.refresh_automatic()

    def set_language(self, language: Language) -> None:
        self.store.update(language=language)

    async def _load(
        self,
        coordinate: Coordinate,
        location_name: Optional[str] = None,
        success_status: Optional[str] = None
    ) -> None:
        self._load_generation += 1
        generation = self._load_generation

        snapshot = await self.aggregator.fetch(coordinate, location_name, self.store.state.language)
        if generation != self._load_generation:
            logger.debug("Dropping weather result of a superseded load")
            return

        if snapshot is None:
            self.store.update(status=self._message("fetch_failed"))
            return

        changes = {"snapshot": snapshot, "active_coordinate": coordinate}
        if success_status is not None:
            changes["status"] = success_status
        self.store.update(**changes)

    def _schedule_background_refresh(
        self,
        coordinate: Coordinate,
        location_name: Optional[str] = None
    ) -> None:
        if self.scheduler is None or self.refresh_worker is None:
            return
        worker = self.refresh_worker
        self.scheduler.enqueue_unique_periodic(
            REFRESH_WORK_NAME,
            lambda: worker.run(coordinate, location_name),
        )

    async def aclose(self) -> None:
        self.coordinator.cancel()
        await self.debouncer.aclose()
