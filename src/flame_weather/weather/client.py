"""HTTP client for the MET Norway Locationforecast API."""

import logging
from typing import Any, Dict, Optional

import httpx
from pydantic import ValidationError

from flame_weather.config import YR_API_BASE_URL, USER_AGENT, HTTP_TIMEOUT_SECONDS
from flame_weather.errors import TransientNetworkError, UpstreamFormatError
from flame_weather.weather.models import Coordinate, YrForecastResponse

logger = logging.getLogger(__name__)


class YrWeatherClient:
    """Async client for fetching the complete forecast time series."""

    def __init__(
        self,
        base_url: str = YR_API_BASE_URL,
        user_agent: str = USER_AGENT,
        client: Optional[httpx.AsyncClient] = None
    ):
        """Initialize the weather client.

        Args:
            base_url: Locationforecast endpoint
            user_agent: User-Agent header, required by the MET Norway terms of service
            client: Preconfigured httpx client (mainly for tests)
        """
        self.base_url = base_url
        self.user_agent = user_agent
        self.client = client or httpx.AsyncClient(timeout=HTTP_TIMEOUT_SECONDS)

    async def get_weather_forecast(self, coordinate: Coordinate) -> Dict[str, Any]:
        """Fetch the raw forecast for a coordinate.

        Coordinates are sent with 4 decimals, which is the precision the
        upstream cache keys on.

        Returns:
            Raw forecast payload

        Raises:
            TransientNetworkError: If the request fails or returns a non-success status
            UpstreamFormatError: If the payload is not a forecast document
        """
        params = {
            "lat": f"{coordinate.latitude:.4f}",
            "lon": f"{coordinate.longitude:.4f}",
        }

        logger.info(f"Fetching forecast for lat={params['lat']}, lon={params['lon']}")

        try:
            response = await self.client.get(
                self.base_url,
                params=params,
                headers={"User-Agent": self.user_agent}
            )
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"HTTP error from met.no API: {e.response.status_code}")
            raise TransientNetworkError(f"met.no returned {e.response.status_code}") from e
        except httpx.RequestError as e:
            logger.error(f"Request error to met.no API: {e!r}")
            raise TransientNetworkError(str(e)) from e
        except ValueError as e:
            logger.error(f"met.no returned a non-JSON body: {e}")
            raise UpstreamFormatError("Forecast body is not JSON") from e

        try:
            YrForecastResponse.model_validate(data)
        except ValidationError as e:
            logger.error(f"Invalid API response format: {e}")
            raise UpstreamFormatError(f"Invalid API response format: {e}") from e

        logger.info(f"Fetched forecast with {len(data['properties']['timeseries'])} timeseries entries")
        return data

    async def aclose(self):
        """Close the async HTTP client."""
        await self.client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()
