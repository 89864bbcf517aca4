"""Continuous position updates from the host's positioning service."""

import logging
import threading
from typing import Callable, Optional, Protocol

from flame_weather.config import GEOFIX_MIN_TIME_SECONDS, GEOFIX_MIN_DISTANCE_METERS
from flame_weather.weather.models import Coordinate

logger = logging.getLogger(__name__)

GPS_PROVIDER = "gps"
NETWORK_PROVIDER = "network"

FixListener = Callable[[float, float], None]


class PositioningBackend(Protocol):
    """Host positioning service.

    Listeners may be invoked from any thread.
    """

    def has_permission(self) -> bool:
        ...

    def is_provider_enabled(self, provider: str) -> bool:
        ...

    def request_updates(
        self,
        provider: str,
        min_time_s: float,
        min_distance_m: float,
        listener: FixListener
    ) -> None:
        ...

    def remove_updates(self, listener: FixListener) -> None:
        ...


class NullPositioningBackend:
    """Backend for hosts without positioning hardware."""

    def has_permission(self) -> bool:
        return False

    def is_provider_enabled(self, provider: str) -> bool:
        return False

    def request_updates(self, provider, min_time_s, min_distance_m, listener) -> None:
        raise RuntimeError("No positioning provider available")

    def remove_updates(self, listener) -> None:
        pass


class GeoFixProvider:
    """Wraps a positioning backend behind start/stop/latest."""

    def __init__(
        self,
        backend: PositioningBackend,
        min_time_s: float = GEOFIX_MIN_TIME_SECONDS,
        min_distance_m: float = GEOFIX_MIN_DISTANCE_METERS
    ):
        self.backend = backend
        self.min_time_s = min_time_s
        self.min_distance_m = min_distance_m
        self._latest: Optional[Coordinate] = None
        self._on_fix: Optional[Callable[[Coordinate], None]] = None
        self._lock = threading.Lock()
        self._started = False

    @property
    def started(self) -> bool:
        return self._started

    def select_provider(self) -> Optional[str]:
        """Prefer satellite positioning, then network positioning."""
        if self.backend.is_provider_enabled(GPS_PROVIDER):
            return GPS_PROVIDER
        if self.backend.is_provider_enabled(NETWORK_PROVIDER):
            return NETWORK_PROVIDER
        return None

    def start(self, on_fix: Callable[[Coordinate], None]) -> bool:
        """Register for updates.

        Args:
            on_fix: Called with every new fix, possibly from a backend thread

        Returns:
            False when there is no permission, no enabled provider, or the
            backend refuses the registration
        """
        if not self.backend.has_permission():
            logger.info("Location permission not granted")
            return False

        provider = self.select_provider()
        if provider is None:
            logger.warning("No positioning provider enabled")
            return False

        if self._started:
            self.stop()

        self._on_fix = on_fix
        try:
            self.backend.request_updates(provider, self.min_time_s, self.min_distance_m, self._handle_fix)
        except Exception as e:
            logger.warning(f"Positioning registration with '{provider}' failed: {e!r}")
            self._on_fix = None
            return False
        self._started = True
        logger.info(f"Started location updates from '{provider}' provider")
        return True

    def stop(self) -> None:
        """Unregister from the backend. Safe to call when not started."""
        if not self._started:
            return
        self.backend.remove_updates(self._handle_fix)
        self._started = False
        self._on_fix = None
        logger.info("Stopped location updates")

    def latest(self) -> Optional[Coordinate]:
        with self._lock:
            return self._latest

    def _handle_fix(self, latitude: float, longitude: float) -> None:
        coordinate = Coordinate(latitude=latitude, longitude=longitude)
        with self._lock:
            self._latest = coordinate
            callback = self._on_fix
        logger.debug(f"Location fix: ({latitude}, {longitude})")
        if callback is not None:
            callback(coordinate)
