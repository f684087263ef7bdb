"""폭풍 분석 모델입니다. / Storm analysis models."""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import ConfigDict, Field, field_validator, model_validator

from ..base import StormBaseModel
from ..weather.models import WeatherSample


class SeverityTier(str, Enum):
    """심각도 단계입니다. / Severity tier."""

    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    SEVERE = "Severe"


class AlertLevel(str, Enum):
    """경보 단계입니다. / Alert level."""

    ADVISORY = "Advisory"
    WATCH = "Watch"
    WARNING = "Warning"
    EMERGENCY = "Emergency"


class DamageLevel(str, Enum):
    """예상 피해 수준입니다. / Predicted damage level."""

    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class ServiceDemand(str, Enum):
    """예상 서비스 수요입니다. / Predicted service demand."""

    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    EXTREME = "Extreme"


SEVERITY_RANK: Dict[str, int] = {
    SeverityTier.LOW.value: 0,
    SeverityTier.MEDIUM.value: 1,
    SeverityTier.HIGH.value: 2,
    SeverityTier.SEVERE.value: 3,
}


def severity_rank(tier: SeverityTier | str) -> int:
    """심각도 순위를 반환합니다. / Return ordinal rank of a tier."""

    value = tier.value if isinstance(tier, SeverityTier) else tier
    return SEVERITY_RANK[value]


def max_severity(current: SeverityTier | str, other: SeverityTier | str) -> str:
    """두 심각도 중 높은 값입니다. / Higher of two tiers."""

    if severity_rank(other) > severity_rank(current):
        return SeverityTier(other).value
    return SeverityTier(current).value


class ClassifiedSample(StormBaseModel):
    """분류된 샘플입니다. / Weather sample with derived classification."""

    sample: WeatherSample
    is_storm_condition: bool
    storm_type: Optional[str] = None
    severity_tier: SeverityTier
    alert_level: Optional[AlertLevel] = None

    @model_validator(mode="after")
    def _storm_type_matches_flag(self) -> "ClassifiedSample":
        if self.is_storm_condition != (self.storm_type is not None):
            raise ValueError("storm_type must be set iff is_storm_condition")
        return self

    @property
    def observed_at(self) -> datetime:
        """관측 시각입니다. / Observation time."""

        return self.sample.observed_at


class StormPeriod(StormBaseModel):
    """연속된 폭풍 샘플 구간입니다. / Contiguous run of storm samples."""

    model_config = ConfigDict(
        frozen=False,
        populate_by_name=True,
        use_enum_values=True,
        validate_assignment=True,
    )
    start_time: datetime
    end_time: datetime
    max_wind_speed_mph: float
    dominant_type: str
    severity_tier: SeverityTier
    member_samples: List[ClassifiedSample] = Field(default_factory=list)

    @property
    def duration(self) -> timedelta:
        """구간 길이입니다. / Period duration."""

        return self.end_time - self.start_time


class ImpactForecast(StormBaseModel):
    """영향 예측 결과입니다. / Impact forecast result."""

    impact_radius_miles: int
    predicted_damage: DamageLevel
    predicted_service_demand: ServiceDemand


AGENT_FIELDS = {
    "type",
    "severity",
    "affected_states",
    "affected_cities",
    "predicted_service_demand",
    "start_time",
    "end_time",
}


class StormEvent(StormBaseModel):
    """저장되는 폭풍 이벤트입니다. / Persisted storm event."""

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    type: str
    severity: SeverityTier
    affected_states: List[str] = Field(default_factory=list)
    affected_cities: List[str] = Field(default_factory=list)
    affected_zip_codes: List[str] = Field(default_factory=list)
    center_latitude: float
    center_longitude: float
    impact_radius_miles: int
    max_wind_speed_mph: float
    expected_duration_hours: int = Field(ge=0)
    start_time: datetime
    end_time: datetime
    predicted_damage: DamageLevel
    predicted_service_demand: ServiceDemand
    recorded_at: Optional[datetime] = None

    @field_validator("affected_states", "affected_cities", "affected_zip_codes")
    @classmethod
    def _as_sorted_set(cls, value: List[str]) -> List[str]:
        return sorted({item for item in value if item})

    def agent_payload(self) -> Dict[str, Any]:
        """에이전트 계층 전달 필드입니다. / Fields handed to the agent layer."""

        return self.model_dump(mode="json", include=AGENT_FIELDS)


class WeatherRecord(StormBaseModel):
    """현재 기상 기록입니다. / Current conditions record for dashboards."""

    classified: ClassifiedSample
    wind_direction: str
    data_source: str = "OpenWeatherMap"
    recorded_at: Optional[datetime] = None

    @property
    def sample(self) -> WeatherSample:
        """원본 샘플입니다. / Underlying sample."""

        return self.classified.sample
