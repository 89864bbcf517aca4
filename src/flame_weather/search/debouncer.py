"""Debounced place search driven by query edits."""

import asyncio
import logging
from typing import Callable, List, Optional

from flame_weather.config import SEARCH_QUIET_PERIOD_SECONDS, SEARCH_RESULT_LIMIT
from flame_weather.errors import FlameWeatherError
from flame_weather.location.geocoding import PlaceSearchClient
from flame_weather.weather.models import Language, LocationCandidate

logger = logging.getLogger(__name__)

CandidateListener = Callable[[List[LocationCandidate]], None]


class PlaceSearchDebouncer:
    """Turns keystrokes into rate-limited geocoding lookups.

    Each edit cancels the pending lookup task, which also aborts its HTTP
    request if it already started. A lookup publishes only if it is still the
    most recently issued one.
    """

    def __init__(
        self,
        search_client: PlaceSearchClient,
        on_candidates: CandidateListener,
        language: Callable[[], Language],
        quiet_period_s: float = SEARCH_QUIET_PERIOD_SECONDS,
        limit: int = SEARCH_RESULT_LIMIT
    ):
        """Initialize the debouncer.

        Args:
            search_client: Geocoding search client
            on_candidates: Receives each published candidate list
            language: Returns the current display language
            quiet_period_s: Delay without edits before a lookup is issued
            limit: Maximum number of candidates per lookup
        """
        self.search_client = search_client
        self.on_candidates = on_candidates
        self.language = language
        self.quiet_period_s = quiet_period_s
        self.limit = limit
        self._pending: Optional[asyncio.Task] = None
        self._generation = 0

    @property
    def pending(self) -> bool:
        return self._pending is not None and not self._pending.done()

    def on_query_changed(self, text: str) -> None:
        """Handle a query edit. Must be called from the event loop."""
        self.cancel()
        self._generation += 1

        query = text.strip()
        if not query:
            self.on_candidates([])
            return

        self._pending = asyncio.ensure_future(self._lookup_after_quiet_period(query, self._generation))

    def cancel(self) -> None:
        """Invalidate the pending lookup, if any."""
        pending, self._pending = self._pending, None
        if pending is not None and not pending.done():
            pending.cancel()

    async def _lookup_after_quiet_period(self, query: str, generation: int) -> None:
        await asyncio.sleep(self.quiet_period_s)
        logger.debug(f"Searching places for '{query}'")
        try:
            candidates = await self.search_client.search(query, self.language(), self.limit)
        except FlameWeatherError as e:
            logger.warning(f"Place search for '{query}' failed: {e}")
            candidates = []

        if generation == self._generation:
            self.on_candidates(candidates[:self.limit])

    async def aclose(self) -> None:
        pending = self._pending
        self.cancel()
        if pending is not None:
            try:
                await pending
            except asyncio.CancelledError:
                pass
