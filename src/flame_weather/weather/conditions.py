"""Classification of MET Norway symbol codes.

The upstream symbol vocabulary (``clearsky_day``, ``lightrainshowers_night``,
``heavysnowandthunder`` ...) is open-ended, so codes are matched by substring
against an ordered rule list. The first matching rule wins; codes matching no
rule are ``UNKNOWN``.
"""

from enum import Enum
from typing import Dict, Optional, Tuple

from flame_weather.weather.models import Language


class Condition(str, Enum):
    CLEAR = "clear"
    FAIR = "fair"
    CLOUDY = "cloudy"
    RAIN = "rain"
    SNOW = "snow"
    THUNDER = "thunder"
    UNKNOWN = "unknown"


# Order matters: "partlycloudy" must hit "cloudy", "rainandthunder" hits "rain".
CONDITION_RULES: Tuple[Tuple[str, Condition], ...] = (
    ("clearsky", Condition.CLEAR),
    ("fair", Condition.FAIR),
    ("cloudy", Condition.CLOUDY),
    ("rain", Condition.RAIN),
    ("snow", Condition.SNOW),
    ("thunder", Condition.THUNDER),
)

_DESCRIPTIONS: Dict[Condition, Dict[Language, str]] = {
    Condition.CLEAR: {Language.ZH: "晴朗", Language.EN: "Clear"},
    Condition.FAIR: {Language.ZH: "晴间多云", Language.EN: "Fair"},
    Condition.CLOUDY: {Language.ZH: "阴", Language.EN: "Cloudy"},
    Condition.RAIN: {Language.ZH: "雨", Language.EN: "Rain"},
    Condition.SNOW: {Language.ZH: "雪", Language.EN: "Snow"},
    Condition.THUNDER: {Language.ZH: "雷阵雨", Language.EN: "Thunderstorm"},
    Condition.UNKNOWN: {Language.ZH: "未知", Language.EN: "Unknown"},
}

_ICONS: Dict[Condition, str] = {
    Condition.CLEAR: "sunny",
    Condition.FAIR: "sunny",
    Condition.CLOUDY: "cloudy",
    Condition.RAIN: "rainy",
    Condition.SNOW: "snowy",
    Condition.THUNDER: "thunder",
}


def classify(code: Optional[str]) -> Condition:
    """Map a symbol code to a coarse condition."""
    if not code:
        return Condition.UNKNOWN
    lowered = code.lower()
    for keyword, condition in CONDITION_RULES:
        if keyword in lowered:
            return condition
    return Condition.UNKNOWN


def describe(code: Optional[str], language: Language) -> str:
    """Human readable condition text.

    A code that matches no rule is shown as-is, since it is still more
    informative than a generic "unknown".
    """
    condition = classify(code)
    if condition is Condition.UNKNOWN and code:
        return code.lower()
    return _DESCRIPTIONS[condition][language]


def icon_for(code: Optional[str]) -> str:
    """Widget icon name; unknown conditions display as cloudy."""
    return _ICONS.get(classify(code), "cloudy")
