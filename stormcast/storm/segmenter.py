"""폭풍 구간 분할기입니다. / Storm period segmentation."""

from __future__ import annotations

from typing import Iterable, List, Optional

from .models import ClassifiedSample, StormPeriod, max_severity


def _open_period(item: ClassifiedSample) -> StormPeriod:
    """새 구간을 엽니다. / Open a period seeded with one storm sample."""

    if item.storm_type is None:  # pragma: no cover - guarded by caller
        raise ValueError("Cannot open a period on a non-storm sample")
    return StormPeriod(
        start_time=item.observed_at,
        end_time=item.observed_at,
        max_wind_speed_mph=item.sample.wind_speed_mph,
        dominant_type=item.storm_type,
        severity_tier=item.severity_tier,
        member_samples=[item],
    )


def _extend_period(period: StormPeriod, item: ClassifiedSample) -> None:
    """구간을 확장합니다. / Extend the open period in place."""

    period.end_time = item.observed_at
    period.max_wind_speed_mph = max(
        period.max_wind_speed_mph, item.sample.wind_speed_mph
    )
    period.severity_tier = max_severity(period.severity_tier, item.severity_tier)
    period.member_samples.append(item)


def segment(samples: Iterable[ClassifiedSample]) -> List[StormPeriod]:
    """연속 폭풍 샘플을 구간으로 묶습니다. / Group contiguous storm samples.

    Samples must belong to one location and arrive in ascending time order;
    they are not re-sorted here. A non-storm sample closes the open period
    and starts nothing itself.
    """

    periods: List[StormPeriod] = []
    current: Optional[StormPeriod] = None
    for item in samples:
        if item.is_storm_condition:
            if current is None:
                current = _open_period(item)
            else:
                _extend_period(current, item)
        elif current is not None:
            periods.append(current)
            current = None
    if current is not None:
        periods.append(current)
    return periods
