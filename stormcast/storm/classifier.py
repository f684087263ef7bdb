"""샘플 분류 규칙입니다. / Per-sample storm classification rules."""

from __future__ import annotations

import math
from typing import Optional

from ..weather.models import WeatherSample
from .models import AlertLevel, ClassifiedSample, SeverityTier

STORM_CONDITIONS = frozenset({"Thunderstorm", "Tornado", "Squall"})
HIGH_WIND_THRESHOLD_MPH = 25.0
FREEZING_POINT_F = 32.0

COMPASS_POINTS = (
    "N",
    "NNE",
    "NE",
    "ENE",
    "E",
    "ESE",
    "SE",
    "SSE",
    "S",
    "SSW",
    "SW",
    "WSW",
    "W",
    "WNW",
    "NW",
    "NNW",
)


def is_storm_condition(condition: str, wind_speed_mph: float) -> bool:
    """폭풍 조건 여부입니다. / Whether the point is storm-worthy."""

    return condition in STORM_CONDITIONS or wind_speed_mph > HIGH_WIND_THRESHOLD_MPH


def storm_type_for(condition: str, wind_speed_mph: float) -> str:
    """폭풍 유형을 정합니다. / Decide storm type."""

    if condition == "Tornado":
        return "Tornado"
    if condition == "Thunderstorm":
        return "Thunderstorm"
    if wind_speed_mph > 40:
        return "High Wind Event"
    if wind_speed_mph > HIGH_WIND_THRESHOLD_MPH:
        return "Wind Advisory"
    return "Weather Event"


def severity_for(
    condition: str, wind_speed_mph: float, temperature_f: float
) -> SeverityTier:
    """심각도 단계를 정합니다. / Decide severity tier."""

    if condition == "Tornado" or wind_speed_mph > 50:
        return SeverityTier.SEVERE
    if condition == "Thunderstorm" or wind_speed_mph > 35:
        return SeverityTier.HIGH
    if wind_speed_mph > 20 or temperature_f < FREEZING_POINT_F:
        return SeverityTier.MEDIUM
    return SeverityTier.LOW


def alert_level_for(wind_speed_mph: float) -> AlertLevel:
    """경보 단계를 정합니다. / Decide alert level."""

    if wind_speed_mph > 50:
        return AlertLevel.EMERGENCY
    if wind_speed_mph > 35:
        return AlertLevel.WARNING
    if wind_speed_mph > 20:
        return AlertLevel.WATCH
    return AlertLevel.ADVISORY


def wind_direction(degrees: float) -> str:
    """풍향을 16방위로 변환합니다. / Convert degrees to a 16-point compass."""

    # half-up rounding, wraps past 360
    index = math.floor(degrees / 22.5 + 0.5) % len(COMPASS_POINTS)
    return COMPASS_POINTS[index]


def classify(sample: WeatherSample) -> ClassifiedSample:
    """샘플을 분류합니다. / Classify a single weather sample.

    Pure and total: the same sample always yields the same result. Severity
    is evaluated for every sample, storm or not.
    """

    condition = sample.condition_code
    wind = sample.wind_speed_mph
    storm = is_storm_condition(condition, wind)
    storm_type: Optional[str] = storm_type_for(condition, wind) if storm else None
    return ClassifiedSample(
        sample=sample,
        is_storm_condition=storm,
        storm_type=storm_type,
        severity_tier=severity_for(condition, wind, sample.temperature_f),
        alert_level=alert_level_for(wind) if storm else None,
    )
