"""FastAPI application wiring the weather pipeline together."""

import asyncio
import logging
import traceback
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from flame_weather.api.endpoints import router as weather_router
from flame_weather.background.scheduler import PeriodicWorkScheduler
from flame_weather.background.store import KeyValueStore, create_store
from flame_weather.background.worker import RefreshWorker
from flame_weather.config import DEFAULT_LANGUAGE, HOST, PORT, DEBUG
from flame_weather.controller import WeatherController
from flame_weather.location.coordinator import LocationCoordinator
from flame_weather.location.geocoding import PlaceSearchClient, ReverseGeocoder
from flame_weather.location.geofix import (
    GeoFixProvider, NullPositioningBackend, PositioningBackend
)
from flame_weather.location.ip_fallback import IpLocationResolver
from flame_weather.logging_config import configure_logging
from flame_weather.state import AppState, StateStore
from flame_weather.weather.models import Language
from flame_weather.weather.service import WeatherAggregator
from flame_weather.widget import WidgetPublisher

configure_logging()
logger = logging.getLogger(__name__)


def create_lifespan(
    positioning: Optional[PositioningBackend] = None,
    store: Optional[KeyValueStore] = None
):
    """Build the lifespan handler; arguments replace the default collaborators."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        cache = store or create_store()
        widget = WidgetPublisher(cache)
        aggregator = WeatherAggregator(geocoder=ReverseGeocoder(), language=Language(DEFAULT_LANGUAGE))
        ip_resolver = IpLocationResolver()
        search_client = PlaceSearchClient()
        scheduler = PeriodicWorkScheduler()
        controller = WeatherController(
            store=StateStore(AppState(language=Language(DEFAULT_LANGUAGE))),
            coordinator=LocationCoordinator(
                GeoFixProvider(positioning or NullPositioningBackend()), ip_resolver
            ),
            aggregator=aggregator,
            search_client=search_client,
            scheduler=scheduler,
            refresh_worker=RefreshWorker(aggregator, cache, widget.redraw),
        )
        app.state.controller = controller
        app.state.widget = widget

        startup: Optional[asyncio.Task] = None
        try:
            logger.info("Starting Flame Weather service")
            await widget.redraw()
            startup = asyncio.ensure_future(controller.start())
            yield
        except Exception as e:
            logger.error(f"Startup error: {e}")
            logger.error(traceback.format_exc())
            raise
        finally:
            logger.info("Shutting down Flame Weather service")
            if startup is not None:
                startup.cancel()
            await controller.aclose()
            await scheduler.shutdown()
            await aggregator.aclose()
            await ip_resolver.aclose()
            await search_client.aclose()
            await cache.close()

    return lifespan


def create_app(
    positioning: Optional[PositioningBackend] = None,
    store: Optional[KeyValueStore] = None
) -> FastAPI:
    """Create and configure FastAPI application.

    Returns:
        Configured FastAPI application instance
    """
    app = FastAPI(
        title="Flame Weather",
        description="Location-aware daily forecasts from MET Norway data",
        version="1.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=create_lifespan(positioning, store)
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(weather_router)

    @app.get("/api", tags=["root"])
    async def api_info() -> dict:
        """API information endpoint."""
        return {
            "message": "Flame Weather",
            "docs": "/docs",
            "weather": "/weather",
            "widget": "/weather/widget",
            "health": "/weather/health"
        }

    return app


def main() -> None:
    """Main entry point for the application."""
    logger.info(f"Starting server on {HOST}:{PORT}")
    uvicorn.run(
        "flame_weather.main:create_app",
        factory=True,
        host=HOST,
        port=PORT,
        reload=DEBUG,
        log_level="info" if not DEBUG else "debug"
    )


if __name__ == "__main__":
    main()
