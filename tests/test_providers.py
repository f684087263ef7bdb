"""날씨 제공자 단위 테스트입니다. / Weather provider unit tests."""

from __future__ import annotations

from datetime import datetime, timezone

import httpx
import pytest
import respx

from stormcast.config import CacheSettings, ProviderSettings, RateLimitSettings
from stormcast.weather.models import Location
from stormcast.weather.providers import (
    CircuitBreakerOpenError,
    MalformedResponseError,
    OpenWeatherMapAdapter,
    ProviderUnavailableError,
    RateLimitExceededError,
)

DALLAS = Location(latitude=32.7767, longitude=-96.797, city="Dallas", state="TX")
EPOCH = 1748736000  # 2025-06-01T00:00:00Z


def _sample_provider_settings(
    base_url: str, ttl_seconds: int = 60, requests_per_minute: int = 5
) -> ProviderSettings:
    """샘플 제공자 설정입니다. / Build sample provider settings."""

    return ProviderSettings(
        name="OpenWeatherMap",
        adapter="openweathermap",
        base_url=base_url,
        timeout_seconds=1.0,
        retries=1,
        cache=CacheSettings(ttl_seconds=ttl_seconds),
        rate_limit=RateLimitSettings(requests_per_minute=requests_per_minute),
        api_key="test-key",
    )


def _point(dt: int, main: str, wind: float, temp: float = 70.0, **extra) -> dict:
    payload = {
        "coord": {"lat": 32.7767, "lon": -96.797},
        "weather": [{"main": main, "description": main.lower()}],
        "main": {"temp": temp, "humidity": 60, "pressure": 1012},
        "wind": {"speed": wind, "deg": 200},
        "visibility": 10000,
        "dt": dt,
    }
    payload.update(extra)
    return payload


@pytest.mark.asyncio
async def test_current_conditions_parse_payload() -> None:
    """현재 날씨 파싱을 검증합니다. / Validate current conditions parsing."""

    settings = _sample_provider_settings("https://owm.test")
    provider = OpenWeatherMapAdapter(settings)
    payload = _point(EPOCH, "Rain", 12.5, rain={"1h": 0.4})
    payload["wind"]["gust"] = 20.0
    with respx.mock(base_url=settings.base_url) as mock:
        route = mock.get("/weather").respond(json=payload)
        sample = await provider.fetch_current(DALLAS)
    request = route.calls.last.request
    assert request.url.params["units"] == "imperial"
    assert request.url.params["appid"] == "test-key"
    assert sample.observed_at == datetime(2025, 6, 1, tzinfo=timezone.utc)
    assert sample.condition_code == "Rain"
    assert sample.wind_speed_mph == pytest.approx(12.5)
    assert sample.wind_gust_mph == pytest.approx(20.0)
    assert sample.precipitation_in_last_hour == pytest.approx(0.4)
    assert sample.visibility_km == pytest.approx(10.0)
    assert sample.location == DALLAS


@pytest.mark.asyncio
async def test_forecast_parses_list_and_defaults_precipitation() -> None:
    """예보 목록을 파싱합니다. / Forecast list parsing."""

    settings = _sample_provider_settings("https://owm.test")
    provider = OpenWeatherMapAdapter(settings)
    payload = {
        "list": [
            _point(EPOCH, "Clear", 5.0),
            _point(EPOCH + 10800, "Snow", 8.0, temp=28.0, snow={"1h": 1.2}),
        ]
    }
    with respx.mock(base_url=settings.base_url) as mock:
        route = mock.get("/forecast").respond(json=payload)
        samples = await provider.fetch_forecast(DALLAS, 2)
    assert route.calls.last.request.url.params["cnt"] == "2"
    assert [s.condition_code for s in samples] == ["Clear", "Snow"]
    assert samples[0].precipitation_in_last_hour == 0.0
    assert samples[1].precipitation_in_last_hour == pytest.approx(1.2)


@pytest.mark.asyncio
async def test_missing_fields_raise_malformed_response() -> None:
    """누락 필드는 형식 오류입니다. / Missing fields are malformed."""

    settings = _sample_provider_settings("https://owm.test")
    provider = OpenWeatherMapAdapter(settings)
    with respx.mock(base_url=settings.base_url) as mock:
        mock.get("/forecast").respond(json={"list": [{"dt": EPOCH}]})
        with pytest.raises(MalformedResponseError):
            await provider.fetch_forecast(DALLAS, 1)


@pytest.mark.asyncio
@pytest.mark.parametrize("dt", [10**20, 1e300])
async def test_out_of_range_timestamp_is_malformed(dt) -> None:
    """범위 밖 시각은 형식 오류입니다. / Out-of-range dt is malformed."""

    settings = _sample_provider_settings("https://owm.test")
    provider = OpenWeatherMapAdapter(settings)
    with respx.mock(base_url=settings.base_url) as mock:
        mock.get("/forecast").respond(json={"list": [_point(dt, "Rain", 30.0)]})
        with pytest.raises(MalformedResponseError):
            await provider.fetch_forecast(DALLAS, 1)
    assert provider.circuit_breaker.failure_count == 1


@pytest.mark.asyncio
async def test_server_error_raises_unavailable() -> None:
    """서버 오류는 접속 불가입니다. / Non-2xx maps to unavailable."""

    settings = _sample_provider_settings("https://down.test")
    provider = OpenWeatherMapAdapter(settings)
    with respx.mock(base_url=settings.base_url) as mock:
        mock.get("/forecast").respond(status_code=503)
        with pytest.raises(ProviderUnavailableError):
            await provider.fetch_forecast(DALLAS)


@pytest.mark.asyncio
async def test_timeout_raises_unavailable() -> None:
    """타임아웃은 접속 불가입니다. / Timeout maps to unavailable."""

    settings = _sample_provider_settings("https://slow.test")
    provider = OpenWeatherMapAdapter(settings)
    with respx.mock(base_url=settings.base_url) as mock:
        mock.get("/weather").mock(side_effect=httpx.ReadTimeout("timed out"))
        with pytest.raises(ProviderUnavailableError):
            await provider.fetch_current(DALLAS)


@pytest.mark.asyncio
async def test_caching_skips_second_call() -> None:
    """캐시가 두 번째 호출을 생략합니다. / Cache avoids second request."""

    settings = _sample_provider_settings("https://cache.test")
    provider = OpenWeatherMapAdapter(settings)
    with respx.mock(base_url=settings.base_url) as mock:
        route = mock.get("/forecast").respond(json={"list": []})
        await provider.fetch_forecast(DALLAS, 40)
        await provider.fetch_forecast(DALLAS, 40)
    assert route.call_count == 1


@pytest.mark.asyncio
async def test_rate_limit_guard() -> None:
    """레이트 리밋이 적용됩니다. / Rate limit is enforced."""

    settings = _sample_provider_settings(
        "https://limit.test", ttl_seconds=0, requests_per_minute=1
    )
    provider = OpenWeatherMapAdapter(settings)
    with respx.mock(base_url=settings.base_url) as mock:
        mock.get("/weather").respond(json=_point(EPOCH, "Clear", 3.0))
        await provider.fetch_current(DALLAS)
        with pytest.raises(RateLimitExceededError):
            await provider.fetch_current(DALLAS)


def test_circuit_breaker_cycle() -> None:
    """서킷 브레이커 사이클을 확인합니다. / Validate circuit breaker cycle."""

    provider = OpenWeatherMapAdapter(
        _sample_provider_settings("https://cb.test", ttl_seconds=0)
    )
    breaker = provider.circuit_breaker
    breaker.failure_threshold = 1
    breaker.record_failure()
    with pytest.raises(CircuitBreakerOpenError):
        breaker.ensure_closed()
    assert breaker.opened_at is not None
    breaker.opened_at -= breaker.reset_seconds + 1.0
    breaker.ensure_closed()
