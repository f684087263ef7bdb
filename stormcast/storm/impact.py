"""영향 예측기입니다. / Storm impact forecasting."""

from __future__ import annotations

import math
from typing import Dict, Optional

from ..weather.models import Location
from .models import (
    DamageLevel,
    ImpactForecast,
    ServiceDemand,
    SeverityTier,
    StormEvent,
    StormPeriod,
)

IMPACT_RADIUS_MILES: Dict[str, int] = {
    SeverityTier.SEVERE.value: 50,
    SeverityTier.HIGH.value: 30,
    SeverityTier.MEDIUM.value: 15,
}
DEFAULT_IMPACT_RADIUS_MILES = 10


def impact_radius_for(severity: SeverityTier | str) -> int:
    """영향 반경입니다. / Impact radius keyed on severity only."""

    key = severity.value if isinstance(severity, SeverityTier) else severity
    return IMPACT_RADIUS_MILES.get(key, DEFAULT_IMPACT_RADIUS_MILES)


def predict_damage(max_wind_speed_mph: float, severity: SeverityTier | str) -> DamageLevel:
    """피해 수준을 예측합니다. / Predict property damage level."""

    if max_wind_speed_mph > 50 or severity == SeverityTier.SEVERE:
        return DamageLevel.HIGH
    if max_wind_speed_mph > 35 or severity == SeverityTier.HIGH:
        return DamageLevel.MEDIUM
    return DamageLevel.LOW


def predict_service_demand(
    max_wind_speed_mph: float, severity: SeverityTier | str
) -> ServiceDemand:
    """서비스 수요를 예측합니다. / Predict tree service demand."""

    if max_wind_speed_mph > 50 or severity == SeverityTier.SEVERE:
        return ServiceDemand.EXTREME
    if max_wind_speed_mph > 35 or severity == SeverityTier.HIGH:
        return ServiceDemand.HIGH
    if max_wind_speed_mph > 25 or severity == SeverityTier.MEDIUM:
        return ServiceDemand.MEDIUM
    return ServiceDemand.LOW


def forecast_impact(period: StormPeriod) -> ImpactForecast:
    """구간의 영향을 예측합니다. / Forecast impact for a closed period."""

    return ImpactForecast(
        impact_radius_miles=impact_radius_for(period.severity_tier),
        predicted_damage=predict_damage(
            period.max_wind_speed_mph, period.severity_tier
        ),
        predicted_service_demand=predict_service_demand(
            period.max_wind_speed_mph, period.severity_tier
        ),
    )


def _duration_hours(period: StormPeriod) -> int:
    """반올림한 지속 시간입니다. / Duration in whole hours, half-up."""

    return int(math.floor(period.duration.total_seconds() / 3600 + 0.5))


def build_storm_event(
    period: StormPeriod,
    location: Location,
    forecast: Optional[ImpactForecast] = None,
) -> StormEvent:
    """저장용 폭풍 이벤트를 만듭니다. / Build the persisted storm event.

    The center is the scanned location itself; zip code enrichment is not
    performed, so ``affected_zip_codes`` stays empty.
    """

    impact = forecast or forecast_impact(period)
    return StormEvent(
        type=period.dominant_type,
        severity=period.severity_tier,
        affected_states=[location.state] if location.state else [],
        affected_cities=[location.city] if location.city else [],
        affected_zip_codes=[],
        center_latitude=location.latitude,
        center_longitude=location.longitude,
        impact_radius_miles=impact.impact_radius_miles,
        max_wind_speed_mph=period.max_wind_speed_mph,
        expected_duration_hours=_duration_hours(period),
        start_time=period.start_time,
        end_time=period.end_time,
        predicted_damage=impact.predicted_damage,
        predicted_service_demand=impact.predicted_service_demand,
    )
