"""Home-screen widget content built from the persisted cache."""

import logging
from typing import Callable, List

from pydantic import BaseModel, ConfigDict

from flame_weather.background.store import (
    KEY_LOCATION, KEY_SYMBOL, KEY_TEMPERATURE, KeyValueStore
)
from flame_weather.weather.conditions import icon_for

logger = logging.getLogger(__name__)

DEFAULT_TEMPERATURE = "--"
DEFAULT_LOCATION = "Locating..."


class WidgetView(BaseModel):
    model_config = ConfigDict(frozen=True)

    temperature: str = DEFAULT_TEMPERATURE
    location: str = DEFAULT_LOCATION
    icon: str = "cloudy"


class WidgetPublisher:
    """Rebuilds the widget view whenever the cache changes."""

    def __init__(self, store: KeyValueStore):
        self.store = store
        self._view = WidgetView()
        self._listeners: List[Callable[[WidgetView], None]] = []

    @property
    def view(self) -> WidgetView:
        return self._view

    def on_redraw(self, listener: Callable[[WidgetView], None]) -> None:
        self._listeners.append(listener)

    async def redraw(self) -> WidgetView:
        """Read the cache and publish a new view."""
        values = await self.store.read()
        temperature = values.get(KEY_TEMPERATURE) or DEFAULT_TEMPERATURE
        self._view = WidgetView(
            # "21.3°C" -> "21.3°"
            temperature=temperature.replace("°C", "°"),
            location=values.get(KEY_LOCATION) or DEFAULT_LOCATION,
            icon=icon_for(values.get(KEY_SYMBOL)),
        )
        for listener in list(self._listeners):
            listener(self._view)
        logger.debug(f"Widget redrawn: {self._view}")
        return self._view
