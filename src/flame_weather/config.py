"""Configuration settings for the flame weather service."""

import os
from typing import Final, Optional
from dotenv import load_dotenv

load_dotenv()

# Upstream APIs
YR_API_BASE_URL: Final[str] = os.getenv(
    "YR_API_BASE_URL", "https://api.met.no/weatherapi/locationforecast/2.0/complete"
)
USER_AGENT: Final[str] = os.getenv(
    "USER_AGENT", "FlameWeather/1.1 https://github.com/Flame-Software-Project"
)
IP_GEOLOCATION_URL: Final[str] = os.getenv("IP_GEOLOCATION_URL", "https://freeipapi.com/api/json")
IP_USER_AGENT: Final[str] = "Mozilla/5.0"
GEOCODING_SEARCH_URL: Final[str] = os.getenv(
    "GEOCODING_SEARCH_URL", "https://geocoding-api.open-meteo.com/v1/search"
)
GEOCODING_USER_AGENT: Final[str] = os.getenv("GEOCODING_USER_AGENT", "flame-weather-geocoder")
HTTP_TIMEOUT_SECONDS: float = float(os.getenv("HTTP_TIMEOUT_SECONDS", "15"))

# Location resolution
LOCATION_DEADLINE_SECONDS: float = float(os.getenv("LOCATION_DEADLINE_SECONDS", "8"))
GEOFIX_MIN_TIME_SECONDS: float = float(os.getenv("GEOFIX_MIN_TIME_SECONDS", "5"))
GEOFIX_MIN_DISTANCE_METERS: float = float(os.getenv("GEOFIX_MIN_DISTANCE_METERS", "100"))

# Place search
SEARCH_QUIET_PERIOD_SECONDS: float = float(os.getenv("SEARCH_QUIET_PERIOD_SECONDS", "0.5"))
SEARCH_RESULT_LIMIT: int = int(os.getenv("SEARCH_RESULT_LIMIT", "5"))

# Display
DEFAULT_LANGUAGE: str = os.getenv("DEFAULT_LANGUAGE", "zh")
# IANA zone name; unset means the host's local zone
LOCAL_TIMEZONE: Optional[str] = os.getenv("LOCAL_TIMEZONE") or None
UNKNOWN_LOCATION: Final[str] = "Unknown Location"

# Background refresh
REFRESH_WORK_NAME: Final[str] = "weather_refresh"
REFRESH_INTERVAL_SECONDS: float = float(os.getenv("REFRESH_INTERVAL_SECONDS", str(20 * 60)))
RETRY_BACKOFF_SECONDS: float = float(os.getenv("RETRY_BACKOFF_SECONDS", "30"))
CONNECTIVITY_CHECK_URL: str = os.getenv("CONNECTIVITY_CHECK_URL", "https://api.met.no/")

# Widget cache
REDIS_URL: str = os.getenv("REDIS_URL", "redis://localhost:6379")
CACHE_BACKEND: str = os.getenv("CACHE_BACKEND", "redis").lower()
CACHE_HASH_NAME: str = os.getenv("CACHE_HASH_NAME", "weather_prefs")

# Server configuration
HOST: str = os.getenv("HOST", "0.0.0.0")
PORT: int = int(os.getenv("PORT", "8000"))
DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"
