"""폭풍 구간 분할 테스트입니다. / Storm period segmentation tests."""

from __future__ import annotations

from datetime import timedelta
from typing import List

from hypothesis import given
from hypothesis import strategies as st

from stormcast.storm.classifier import classify
from stormcast.storm.models import ClassifiedSample, SeverityTier, severity_rank
from stormcast.storm.segmenter import segment
from tests.fakes import make_sample, make_series

CONDITIONS = ["Clear", "Rain", "Snow", "Thunderstorm", "Tornado", "Squall"]

points = st.lists(
    st.tuples(
        st.floats(min_value=0.0, max_value=80.0),
        st.sampled_from(CONDITIONS),
        st.floats(min_value=0.0, max_value=90.0),
    ),
    max_size=40,
)


def _classified(raw: List[tuple]) -> List[ClassifiedSample]:
    return [
        classify(make_sample(index, wind, condition, temperature=temperature))
        for index, (wind, condition, temperature) in enumerate(raw)
    ]


def _storm_runs(flags: List[bool]) -> int:
    runs = 0
    previous = False
    for flag in flags:
        if flag and not previous:
            runs += 1
        previous = flag
    return runs


def test_all_clear_yields_no_periods() -> None:
    """맑은 날씨는 구간이 없습니다. / All-clear yields zero periods."""

    samples = [classify(s) for s in make_series([10.0] * 10, ["Clear"] * 10)]
    assert segment(samples) == []


def test_all_storm_yields_single_period() -> None:
    """전부 폭풍이면 한 구간입니다. / All-storm yields one spanning period."""

    samples = [
        classify(s) for s in make_series([30.0, 45.0, 28.0], ["Rain", "Rain", "Rain"])
    ]
    periods = segment(samples)
    assert len(periods) == 1
    period = periods[0]
    assert period.start_time == samples[0].observed_at
    assert period.end_time == samples[-1].observed_at
    assert period.max_wind_speed_mph == 45.0
    assert period.dominant_type == "Wind Advisory"
    assert period.severity_tier == SeverityTier.HIGH


def test_alternating_samples_yield_isolated_periods() -> None:
    """교대 샘플은 각각 구간입니다. / Alternating storm samples stay isolated."""

    samples = [
        classify(s)
        for s in make_series(
            [30.0, 5.0, 30.0, 5.0, 30.0], ["Clear"] * 5
        )
    ]
    periods = segment(samples)
    assert len(periods) == 3
    for period in periods:
        assert period.start_time == period.end_time
        assert period.duration == timedelta(0)
        assert len(period.member_samples) == 1


def test_dominant_type_is_first_storm_type() -> None:
    """지배 유형은 첫 샘플 유형입니다. / Dominant type is not re-evaluated."""

    samples = [
        classify(s)
        for s in make_series([30.0, 20.0, 60.0], ["Clear", "Thunderstorm", "Tornado"])
    ]
    periods = segment(samples)
    assert len(periods) == 1
    assert periods[0].dominant_type == "Wind Advisory"
    assert periods[0].severity_tier == SeverityTier.SEVERE


@given(raw=points)
def test_periods_match_maximal_storm_runs(raw: List[tuple]) -> None:
    """구간 수와 구성이 정확합니다. / Periods equal maximal storm runs."""

    samples = _classified(raw)
    periods = segment(samples)
    flags = [item.is_storm_condition for item in samples]
    assert len(periods) == _storm_runs(flags)

    storm_times = [item.observed_at for item in samples if item.is_storm_condition]
    member_times = [
        member.observed_at for period in periods for member in period.member_samples
    ]
    assert member_times == storm_times
    for period in periods:
        assert all(member.is_storm_condition for member in period.member_samples)
        assert period.start_time == period.member_samples[0].observed_at
        assert period.end_time == period.member_samples[-1].observed_at


@given(raw=points)
def test_period_severity_is_member_maximum(raw: List[tuple]) -> None:
    """구간 심각도는 최대값입니다. / Period tier is the max member tier."""

    for period in segment(_classified(raw)):
        highest = max(
            (member.severity_tier for member in period.member_samples),
            key=severity_rank,
        )
        assert period.severity_tier == highest
        assert period.max_wind_speed_mph == max(
            member.sample.wind_speed_mph for member in period.member_samples
        )
