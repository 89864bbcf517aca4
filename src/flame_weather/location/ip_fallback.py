"""Best-effort location from the public IP address."""

import logging
from typing import Optional

import httpx
from pydantic import ValidationError

from flame_weather.config import IP_GEOLOCATION_URL, IP_USER_AGENT, HTTP_TIMEOUT_SECONDS
from flame_weather.weather.models import Coordinate

logger = logging.getLogger(__name__)


class IpLocationResolver:
    """Single-shot IP geolocation lookup."""

    def __init__(self, url: str = IP_GEOLOCATION_URL, client: Optional[httpx.AsyncClient] = None):
        self.url = url
        self.client = client or httpx.AsyncClient(
            headers={"User-Agent": IP_USER_AGENT},
            timeout=HTTP_TIMEOUT_SECONDS
        )

    async def resolve(self) -> Optional[Coordinate]:
        """Return the coordinate reported for this host's IP, or None.

        Never raises for network or payload problems and never retries.
        """
        try:
            response = await self.client.get(self.url)
            response.raise_for_status()
            payload = response.json()
            coordinate = Coordinate(latitude=payload["latitude"], longitude=payload["longitude"])
        except httpx.HTTPError as e:
            logger.warning(f"IP geolocation request failed: {e!r}")
            return None
        except (ValueError, KeyError, TypeError, ValidationError) as e:
            logger.warning(f"IP geolocation returned an unusable payload: {e}")
            return None

        logger.info(f"IP geolocation resolved to ({coordinate.latitude}, {coordinate.longitude})")
        return coordinate

    async def aclose(self):
        await self.client.aclose()
