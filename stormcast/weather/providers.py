"""날씨 제공자 어댑터입니다. / Weather provider adapters."""

from __future__ import annotations

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from collections import deque
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Deque, Dict, List, Optional, TypeVar

import httpx
from pydantic import ConfigDict, ValidationError
from tenacity import (
    AsyncRetrying,
    RetryError,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ..base import StormBaseModel
from ..config import ProviderSettings
from .models import Location, WeatherSample

LOGGER = logging.getLogger("weather.providers")

T = TypeVar("T")


class WeatherProviderError(Exception):
    """날씨 제공자 오류입니다. / Weather provider error."""


class ProviderUnavailableError(WeatherProviderError):
    """제공자 접속 불가 오류입니다. / Network, timeout or non-2xx error."""


class MalformedResponseError(WeatherProviderError):
    """응답 형식 오류입니다. / Response missing expected fields."""


class RateLimitExceededError(WeatherProviderError):
    """레이트 리밋 초과 오류입니다. / Rate limit exceeded error."""


class CircuitBreakerOpenError(WeatherProviderError):
    """서킷 브레이커 오픈 오류입니다. / Circuit breaker open error."""


@dataclass
class CacheEntry:
    """캐시 엔트리 구조입니다. / Cache entry structure."""

    value: Any
    expires_at: float


class TTLCache:
    """TTL 캐시 컨테이너입니다. / TTL cache container."""

    def __init__(self) -> None:
        self._store: Dict[str, CacheEntry] = {}
        self._lock = asyncio.Lock()

    async def get(self, key: str) -> Optional[Any]:
        """캐시에서 값을 가져옵니다. / Retrieve value from cache."""

        async with self._lock:
            entry = self._store.get(key)
            if not entry:
                return None
            if entry.expires_at < time.monotonic():
                self._store.pop(key, None)
                return None
            return entry.value

    async def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        """캐시에 값을 저장합니다. / Store value in cache."""

        if ttl_seconds <= 0:
            return
        async with self._lock:
            expires_at = time.monotonic() + ttl_seconds
            self._store[key] = CacheEntry(value=value, expires_at=expires_at)


class RateLimiter:
    """레이트 리밋 가드입니다. / Rate limit guard."""

    def __init__(self, capacity: int, period_seconds: float) -> None:
        self.capacity = capacity
        self.period_seconds = period_seconds
        self._events: Deque[float] = deque()
        self._lock = asyncio.Lock()

    async def acquire(self) -> None:
        """레이트 리밋 토큰을 획득합니다. / Acquire rate limit token."""

        async with self._lock:
            now = time.monotonic()
            while self._events and now - self._events[0] > self.period_seconds:
                self._events.popleft()
            if len(self._events) >= self.capacity:
                raise RateLimitExceededError("Rate limit exceeded")
            self._events.append(now)


class CircuitBreaker(StormBaseModel):
    """서킷 브레이커 상태입니다. / Circuit breaker state."""

    model_config = ConfigDict(
        frozen=False,
        populate_by_name=True,
        use_enum_values=True,
        validate_assignment=True,
    )
    failure_threshold: int
    reset_seconds: float
    failure_count: int = 0
    opened_at: Optional[float] = None

    def check(self) -> None:
        """서킷 상태를 확인합니다. / Check breaker state."""

        if self.opened_at is None:
            return
        if time.monotonic() - self.opened_at >= self.reset_seconds:
            self.failure_count = 0
            self.opened_at = None

    def record_failure(self) -> None:
        """실패를 기록합니다. / Record failure event."""

        self.failure_count += 1
        if self.failure_count >= self.failure_threshold:
            self.opened_at = time.monotonic()

    def record_success(self) -> None:
        """성공을 기록합니다. / Record success event."""

        self.failure_count = 0
        self.opened_at = None

    def ensure_closed(self) -> None:
        """브레이커가 닫혔는지 확인합니다. / Ensure breaker closed."""

        self.check()
        if self.opened_at is not None:
            raise CircuitBreakerOpenError("Circuit breaker is open")


class WeatherProvider(ABC):
    """날씨 제공자 인터페이스입니다. / Weather provider interface."""

    def __init__(self, settings: ProviderSettings) -> None:
        self.settings = settings
        self.cache = TTLCache()
        self.rate_limiter = RateLimiter(
            capacity=settings.rate_limit.requests_per_minute,
            period_seconds=60.0,
        )
        self.circuit_breaker = CircuitBreaker(
            failure_threshold=settings.circuit_breaker_failures,
            reset_seconds=60.0,
        )

    @property
    def name(self) -> str:
        """제공자 이름을 돌려줍니다. / Return provider name."""

        return self.settings.name

    async def fetch_current(self, location: Location) -> WeatherSample:
        """현재 날씨를 조회합니다. / Fetch current conditions."""

        cache_key = (
            f"{self.name}:current:{location.latitude:.4f}:{location.longitude:.4f}"
        )
        return await self._guarded(
            cache_key, lambda: self._fetch_current_remote(location)
        )

    async def fetch_forecast(
        self, location: Location, count: int = 40
    ) -> List[WeatherSample]:
        """예보 시계열을 조회합니다. / Fetch forecast time series."""

        cache_key = (
            f"{self.name}:forecast:{location.latitude:.4f}:"
            f"{location.longitude:.4f}:{count}"
        )
        return await self._guarded(
            cache_key, lambda: self._fetch_forecast_remote(location, count)
        )

    async def _guarded(self, cache_key: str, call: Callable[[], Awaitable[T]]) -> T:
        """캐시, 리밋, 브레이커를 적용합니다. / Apply cache, limit and breaker."""

        cached = await self.cache.get(cache_key)
        if cached is not None:
            return cached
        self.circuit_breaker.ensure_closed()
        await self.rate_limiter.acquire()
        try:
            result = await self._request_with_retry(call)
        except httpx.HTTPError as exc:
            self.circuit_breaker.record_failure()
            LOGGER.warning(
                "provider_unavailable",
                extra={"provider": self.name, "error": str(exc)},
            )
            raise ProviderUnavailableError(str(exc) or type(exc).__name__) from exc
        except WeatherProviderError as exc:
            self.circuit_breaker.record_failure()
            LOGGER.warning(
                "provider_error",
                extra={"provider": self.name, "error": str(exc)},
            )
            raise
        except Exception as exc:  # pragma: no cover - unexpected adapter bug
            self.circuit_breaker.record_failure()
            LOGGER.exception(
                "provider_error",
                extra={"provider": self.name, "error": str(exc)},
            )
            raise MalformedResponseError(str(exc) or type(exc).__name__) from exc
        else:
            self.circuit_breaker.record_success()
        await self.cache.set(cache_key, result, self.settings.cache.ttl_seconds)
        return result

    async def _request_with_retry(self, call: Callable[[], Awaitable[T]]) -> T:
        """리트라이 포함 요청입니다. / Perform request with retry."""

        retryer = AsyncRetrying(
            wait=wait_exponential(multiplier=0.5, min=0.5, max=5),
            stop=stop_after_attempt(max(self.settings.retries, 1)),
            retry=retry_if_exception_type(httpx.HTTPError),
            reraise=True,
        )
        try:
            async for attempt in retryer:
                with attempt:
                    return await call()
        except RetryError as exc:  # pragma: no cover - reraise=True
            raise ProviderUnavailableError(str(exc)) from exc
        raise ProviderUnavailableError(  # pragma: no cover - safety net
            "Retry loop produced no result"
        )

    @abstractmethod
    async def _fetch_current_remote(self, location: Location) -> WeatherSample:
        """원격 현재 날씨입니다. / Fetch remote current conditions."""

    @abstractmethod
    async def _fetch_forecast_remote(
        self, location: Location, count: int
    ) -> List[WeatherSample]:
        """원격 예보입니다. / Fetch remote forecast."""


class BaseHttpProvider(WeatherProvider):
    """HTTP 기반 제공자입니다. / HTTP based provider."""

    current_path: str = "/weather"
    forecast_path: str = "/forecast"

    async def _get_json(self, path: str, params: Dict[str, Any]) -> Dict[str, Any]:
        """HTTP 호출을 실행합니다. / Execute HTTP call."""

        timeout = httpx.Timeout(self.settings.timeout_seconds)
        async with httpx.AsyncClient(
            base_url=self.settings.base_url,
            timeout=timeout,
        ) as client:
            response = await client.get(
                path,
                params=params,
                headers=self.build_headers(),
            )
            response.raise_for_status()
            try:
                payload = response.json()
            except ValueError as exc:
                raise MalformedResponseError("Response body is not JSON") from exc
        if not isinstance(payload, dict):
            raise MalformedResponseError("Response root must be an object")
        return payload

    async def _fetch_current_remote(self, location: Location) -> WeatherSample:
        payload = await self._get_json(
            self.current_path, self.build_params(location, None)
        )
        return self._parse_or_raise(self.parse_sample, payload, location)

    async def _fetch_forecast_remote(
        self, location: Location, count: int
    ) -> List[WeatherSample]:
        payload = await self._get_json(
            self.forecast_path, self.build_params(location, count)
        )
        return self._parse_or_raise(self.parse_forecast, payload, location)

    @staticmethod
    def _parse_or_raise(
        parser: Callable[[Dict[str, Any], Location], T],
        payload: Dict[str, Any],
        location: Location,
    ) -> T:
        """파싱 오류를 변환합니다. / Map parse errors to MalformedResponse."""

        try:
            return parser(payload, location)
        except (
            KeyError,
            IndexError,
            TypeError,
            ValueError,
            OverflowError,
            OSError,
            ValidationError,
        ) as exc:
            raise MalformedResponseError(
                f"Unexpected response shape: {exc!r}"
            ) from exc

    @abstractmethod
    def build_params(self, location: Location, count: Optional[int]) -> Dict[str, Any]:
        """요청 파라미터를 구성합니다. / Build request parameters."""

    @abstractmethod
    def parse_sample(
        self, payload: Dict[str, Any], location: Location
    ) -> WeatherSample:
        """단일 지점을 파싱합니다. / Parse a single point payload."""

    def parse_forecast(
        self, payload: Dict[str, Any], location: Location
    ) -> List[WeatherSample]:
        """예보 목록을 파싱합니다. / Parse forecast list payload."""

        items = payload["list"]
        if not isinstance(items, list):
            raise TypeError("forecast list must be an array")
        return [self.parse_sample(item, location) for item in items]

    def build_headers(self) -> Dict[str, str]:
        """요청 헤더를 작성합니다. / Build request headers."""

        return {"accept": "application/json"}


class OpenWeatherMapAdapter(BaseHttpProvider):
    """OpenWeatherMap 어댑터입니다. / OpenWeatherMap adapter."""

    def build_params(self, location: Location, count: Optional[int]) -> Dict[str, Any]:
        """OpenWeatherMap 파라미터입니다. / OpenWeatherMap parameters."""

        params: Dict[str, Any] = {
            "lat": f"{location.latitude:.4f}",
            "lon": f"{location.longitude:.4f}",
            "units": self.settings.units,
        }
        if self.settings.api_key:
            params["appid"] = self.settings.api_key
        if count is not None:
            params["cnt"] = count
        return params

    def parse_sample(
        self, payload: Dict[str, Any], location: Location
    ) -> WeatherSample:
        """OpenWeatherMap 응답을 변환합니다. / Transform OpenWeatherMap point."""

        weather = payload["weather"][0]
        main = payload["main"]
        wind = payload["wind"]
        visibility = payload.get("visibility")
        return WeatherSample(
            location=location,
            observed_at=_parse_epoch(payload["dt"]),
            condition_code=str(weather["main"]),
            description=str(weather.get("description", "")),
            wind_speed_mph=float(wind["speed"]),
            wind_direction_deg=float(wind.get("deg", 0.0)),
            wind_gust_mph=_float_or_none(wind.get("gust")),
            temperature_f=float(main["temp"]),
            humidity=_float_or_none(main.get("humidity")),
            pressure=_float_or_none(main.get("pressure")),
            visibility_km=(
                float(visibility) / 1000 if visibility is not None else None
            ),
            precipitation_in_last_hour=_precipitation(payload),
        )


ADAPTER_REGISTRY: Dict[str, type[WeatherProvider]] = {
    "openweathermap": OpenWeatherMapAdapter,
}


class WeatherService:
    """날씨 서비스 파사드입니다. / Weather service facade."""

    def __init__(self, providers: List[WeatherProvider]) -> None:
        self.providers = providers

    async def fetch_current(self, location: Location) -> WeatherSample:
        """현재 날씨 폴백 체인입니다. / Current conditions with fallback."""

        return await self._with_fallback(
            lambda provider: provider.fetch_current(location)
        )

    async def fetch_forecast(
        self, location: Location, count: int = 40
    ) -> List[WeatherSample]:
        """예보 폴백 체인입니다. / Forecast with fallback."""

        return await self._with_fallback(
            lambda provider: provider.fetch_forecast(location, count)
        )

    async def _with_fallback(
        self, call: Callable[[WeatherProvider], Awaitable[T]]
    ) -> T:
        """폴백 체인을 수행합니다. / Perform fallback chain."""

        errors: List[str] = []
        last_error: Optional[WeatherProviderError] = None
        for provider in self.providers:
            try:
                LOGGER.debug("provider_attempt", extra={"provider": provider.name})
                return await call(provider)
            except WeatherProviderError as exc:
                LOGGER.warning(
                    "provider_failed",
                    extra={"provider": provider.name, "error": str(exc)},
                )
                errors.append(f"{provider.name}: {exc}")
                last_error = exc
                continue
        message = "; ".join(errors) or "All providers failed"
        if isinstance(last_error, MalformedResponseError):
            raise MalformedResponseError(message)
        raise ProviderUnavailableError(message)


def _parse_epoch(value: Any) -> datetime:
    """에포크 초를 변환합니다. / Parse epoch seconds to UTC datetime."""

    return datetime.fromtimestamp(int(value), tz=timezone.utc)


def _float_or_none(value: Any) -> Optional[float]:
    if value is None:
        return None
    return float(value)


def _precipitation(payload: Dict[str, Any]) -> float:
    """최근 1시간 강수량입니다. / Rain, else snow, last hour, default 0."""

    for key in ("rain", "snow"):
        block = payload.get(key) or {}
        amount = block.get("1h") if isinstance(block, dict) else None
        if amount:
            return float(amount)
    return 0.0


def create_provider(settings: ProviderSettings) -> WeatherProvider:
    """설정으로 제공자를 만듭니다. / Build provider from settings."""

    try:
        adapter_cls = ADAPTER_REGISTRY[settings.adapter]
    except KeyError as exc:
        raise ValueError(f"Unknown adapter: {settings.adapter}") from exc
    return adapter_cls(settings)


def build_service(providers: List[ProviderSettings], order: List[str]) -> WeatherService:
    """순서대로 서비스를 구성합니다. / Build service honoring provider order."""

    by_name = {provider.name: provider for provider in providers}
    chain: List[WeatherProvider] = []
    for name in order:
        if name not in by_name:
            raise KeyError(f"Unknown provider: {name}")
        chain.append(create_provider(by_name[name]))
    return WeatherService(chain)
