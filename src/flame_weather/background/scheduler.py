"""Periodic execution of named units of work on the event loop."""

import asyncio
import logging
from typing import Awaitable, Callable, Dict, Optional

import httpx

from flame_weather.background.worker import WorkResult
from flame_weather.config import (
    CONNECTIVITY_CHECK_URL, REFRESH_INTERVAL_SECONDS, RETRY_BACKOFF_SECONDS
)

logger = logging.getLogger(__name__)

Work = Callable[[], Awaitable[WorkResult]]
NetworkCheck = Callable[[], Awaitable[bool]]


async def check_connectivity(
    url: str = CONNECTIVITY_CHECK_URL,
    timeout: float = 5.0,
    transport: Optional[httpx.AsyncBaseTransport] = None
) -> bool:
    """True when ``url`` answers at all; any HTTP status counts as online."""
    try:
        async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
            await client.head(url)
        return True
    except httpx.HTTPError as e:
        logger.info(f"Network unavailable: {e!r}")
        return False


class PeriodicWorkScheduler:
    """Runs named work periodically.

    Enqueueing a name that is already scheduled replaces the existing unit
    instead of adding a second one. RETRY results are re-run with exponential
    backoff before the next regular period; FAILURE results wait for the next
    period.
    """

    def __init__(
        self,
        network_check: NetworkCheck = check_connectivity,
        retry_backoff_s: float = RETRY_BACKOFF_SECONDS
    ):
        self.network_check = network_check
        self.retry_backoff_s = retry_backoff_s
        self._units: Dict[str, asyncio.Task] = {}

    def is_scheduled(self, name: str) -> bool:
        task = self._units.get(name)
        return task is not None and not task.done()

    def enqueue_unique_periodic(
        self,
        name: str,
        work: Work,
        interval_s: float = REFRESH_INTERVAL_SECONDS,
        requires_network: bool = True
    ) -> None:
        """Schedule ``work`` every ``interval_s`` seconds, starting now."""
        existing = self._units.pop(name, None)
        if existing is not None and not existing.done():
            logger.info(f"Replacing scheduled work '{name}'")
            existing.cancel()

        self._units[name] = asyncio.ensure_future(
            self._run_periodically(name, work, interval_s, requires_network)
        )

    def cancel(self, name: str) -> None:
        task = self._units.pop(name, None)
        if task is not None:
            task.cancel()

    async def shutdown(self) -> None:
        """Cancel every unit and wait for them to finish."""
        tasks = list(self._units.values())
        self._units.clear()
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    async def _run_periodically(
        self,
        name: str,
        work: Work,
        interval_s: float,
        requires_network: bool
    ) -> None:
        while True:
            await self._run_cycle(name, work, interval_s, requires_network)
            await asyncio.sleep(interval_s)

    async def _run_cycle(
        self,
        name: str,
        work: Work,
        interval_s: float,
        requires_network: bool
    ) -> Optional[WorkResult]:
        backoff = self.retry_backoff_s
        while True:
            if requires_network and not await self.network_check():
                logger.info(f"Skipping '{name}' this period: no network")
                return None

            try:
                result = await work()
            except Exception as e:
                logger.error(f"Scheduled work '{name}' raised: {e!r}")
                result = WorkResult.RETRY

            if result is not WorkResult.RETRY:
                logger.info(f"Scheduled work '{name}' finished: {result.value}")
                return result

            if backoff <= 0 or backoff >= interval_s:
                logger.warning(f"Scheduled work '{name}' still failing, waiting for next period")
                return result
            logger.info(f"Retrying '{name}' in {backoff:.0f}s")
            await asyncio.sleep(backoff)
            backoff *= 2
