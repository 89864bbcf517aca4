"""Location resolution: positioning first, IP geolocation as fallback."""

import asyncio
import logging
from typing import Optional, Union

from flame_weather.config import LOCATION_DEADLINE_SECONDS
from flame_weather.location.geofix import GeoFixProvider
from flame_weather.location.ip_fallback import IpLocationResolver
from flame_weather.weather.models import Coordinate, FailureReason, LocationFailure

logger = logging.getLogger(__name__)

ResolveResult = Union[Coordinate, LocationFailure]


class LocationCoordinator:
    """Resolves the device position under a deadline.

    A fix from the positioning provider wins over IP geolocation because it is
    more accurate. Only one attempt runs at a time; starting a new one cancels
    the previous attempt, whose caller receives ``FailureReason.SUPERSEDED``.
    """

    def __init__(
        self,
        geofix: GeoFixProvider,
        ip_resolver: IpLocationResolver,
        deadline_s: float = LOCATION_DEADLINE_SECONDS
    ):
        self.geofix = geofix
        self.ip_resolver = ip_resolver
        self.deadline_s = deadline_s
        self._attempt: Optional[asyncio.Task] = None

    @property
    def in_flight(self) -> bool:
        return self._attempt is not None and not self._attempt.done()

    async def resolve(self, deadline_s: Optional[float] = None) -> ResolveResult:
        """Resolve the current coordinate.

        Args:
            deadline_s: Maximum wait for a positioning fix before falling back

        Returns:
            The coordinate, or a LocationFailure explaining why there is none
        """
        self.cancel()
        attempt = asyncio.ensure_future(
            self._resolve_once(self.deadline_s if deadline_s is None else deadline_s)
        )
        self._attempt = attempt
        try:
            return await attempt
        except asyncio.CancelledError:
            if attempt.cancelled() and self._attempt is not attempt:
                logger.info("Location resolution superseded")
                return LocationFailure(reason=FailureReason.SUPERSEDED)
            raise
        finally:
            if self._attempt is attempt:
                self._attempt = None

    def cancel(self) -> None:
        """Abort the in-flight attempt, if any."""
        attempt, self._attempt = self._attempt, None
        if attempt is not None and not attempt.done():
            attempt.cancel()

    async def _resolve_once(self, deadline_s: float) -> ResolveResult:
        fix = await self._wait_for_fix(deadline_s)
        if fix is not None:
            return fix

        coordinate = await self.ip_resolver.resolve()
        if coordinate is None:
            logger.warning("No location available from positioning or IP geolocation")
            return LocationFailure(reason=FailureReason.NO_LOCATION_AVAILABLE)
        logger.info("Using IP geolocation fallback")
        return coordinate

    async def _wait_for_fix(self, deadline_s: float) -> Optional[Coordinate]:
        loop = asyncio.get_running_loop()
        first_fix: "asyncio.Future[Coordinate]" = loop.create_future()

        def on_fix(coordinate: Coordinate) -> None:
            # Backends may call from their own thread
            loop.call_soon_threadsafe(_set_once, first_fix, coordinate)

        try:
            if not self.geofix.start(on_fix):
                logger.info(f"Positioning unavailable ({FailureReason.PERMISSION_UNAVAILABLE.value}), falling back")
                return None
            try:
                fix = await asyncio.wait_for(first_fix, timeout=deadline_s)
            except asyncio.TimeoutError:
                logger.info(f"No positioning fix within {deadline_s}s, falling back")
                return None
            logger.info(f"Positioning fix received: ({fix.latitude}, {fix.longitude})")
            return fix
        finally:
            self.geofix.stop()


def _set_once(future: asyncio.Future, value: Coordinate) -> None:
    if not future.done():
        future.set_result(value)
