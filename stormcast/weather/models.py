"""정규화된 날씨 모델입니다. / Normalized weather models."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import Field

from ..base import StormBaseModel


class Location(StormBaseModel):
    """모니터링 위치입니다. / Monitored location."""

    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    city: Optional[str] = None
    state: Optional[str] = None

    @property
    def label(self) -> str:
        """표시용 라벨입니다. / Human readable label."""

        if self.city and self.state:
            return f"{self.city}, {self.state}"
        if self.city:
            return self.city
        return f"{self.latitude:.4f},{self.longitude:.4f}"


class WeatherSample(StormBaseModel):
    """단일 관측 또는 예보 지점입니다. / Single observation or forecast point."""

    location: Location
    observed_at: datetime
    condition_code: str
    description: str = ""
    wind_speed_mph: float = Field(ge=0)
    wind_direction_deg: float = 0.0
    wind_gust_mph: Optional[float] = None
    temperature_f: float
    humidity: Optional[float] = None
    pressure: Optional[float] = None
    visibility_km: Optional[float] = None
    precipitation_in_last_hour: float = Field(default=0.0, ge=0)
