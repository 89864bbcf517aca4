"""Presentation state owned by the event loop."""

import logging
from typing import Callable, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, computed_field

from flame_weather.weather.conditions import describe
from flame_weather.weather.models import (
    Coordinate, Language, LocationCandidate, LocationMode, WeatherSnapshot
)

logger = logging.getLogger(__name__)


class AppState(BaseModel):
    """Everything the UI renders, as one immutable value."""
    model_config = ConfigDict(frozen=True)

    snapshot: Optional[WeatherSnapshot] = None
    status: str = "Initializing..."
    candidates: Tuple[LocationCandidate, ...] = ()
    mode: LocationMode = LocationMode.AUTOMATIC
    language: Language = Language.ZH
    active_coordinate: Optional[Coordinate] = Field(None, description="Coordinate weather is loaded for")
    manual_location_name: Optional[str] = Field(None, description="Name of the user-selected place")

    @computed_field
    @property
    def condition_text(self) -> Optional[str]:
        """Current condition in the active language."""
        if self.snapshot is None:
            return None
        return describe(self.snapshot.current_condition_code, self.language)

    @computed_field
    @property
    def forecast_condition_texts(self) -> List[str]:
        if self.snapshot is None:
            return []
        return [describe(day.condition_code, self.language) for day in self.snapshot.forecast]


StateListener = Callable[[AppState], None]


class StateStore:
    """Holds the current AppState and notifies subscribers on replacement.

    Only the event loop thread may call ``update``.
    """

    def __init__(self, initial: Optional[AppState] = None):
        self._state = initial or AppState()
        self._listeners: List[StateListener] = []

    @property
    def state(self) -> AppState:
        return self._state

    def update(self, **changes) -> AppState:
        """Replace the state with a copy carrying ``changes``."""
        self._state = self._state.model_copy(update=changes)
        for listener in list(self._listeners):
            try:
                listener(self._state)
            except Exception:
                logger.exception("State listener failed")
        return self._state

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register a listener; returns a function that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe
