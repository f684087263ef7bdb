"""환경 및 설정 로더입니다. / Environment and configuration loader."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, List

import yaml
from pydantic import Field, SecretStr, ValidationError, field_validator

from .base import StormBaseModel
from .weather.models import Location
from .weather.roster import default_locations

OPENWEATHER_BASE_URL = "https://api.openweathermap.org/data/2.5"
API_KEY_ENV = "OPENWEATHER_API_KEY"
MAX_FORECAST_POINTS = 40


class CacheSettings(StormBaseModel):
    """캐시 관련 설정입니다. / Cache settings definition."""

    ttl_seconds: int = Field(default=300, ge=0)


class RateLimitSettings(StormBaseModel):
    """레이트 리밋 설정입니다. / Rate limit settings definition."""

    requests_per_minute: int = Field(default=120, ge=1)


class ProviderSettings(StormBaseModel):
    """개별 제공자 설정입니다. / Individual provider settings."""

    name: str = "OpenWeatherMap"
    base_url: str = OPENWEATHER_BASE_URL
    adapter: str = "openweathermap"
    timeout_seconds: float = Field(default=10.0, gt=0)
    retries: int = Field(default=1, ge=0)
    circuit_breaker_failures: int = Field(default=5, ge=1)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    rate_limit: RateLimitSettings = Field(default_factory=RateLimitSettings)
    units: str = Field(default="imperial")
    api_key: str | None = None
    secret_suffix: str | None = Field(default=None, exclude=True)

    @field_validator("units")
    @classmethod
    def _imperial_only(cls, value: str) -> str:
        # thresholds are expressed in mph and Fahrenheit
        if value != "imperial":
            raise ValueError("Only the imperial unit system is supported")
        return value


class MonitoringSettings(StormBaseModel):
    """모니터링 설정입니다. / Monitoring settings."""

    forecast_point_count: int = Field(default=MAX_FORECAST_POINTS, ge=1, le=MAX_FORECAST_POINTS)
    max_concurrent_scans: int = Field(default=5, ge=1)
    record_current_conditions: bool = True
    interval_minutes: float = Field(default=30.0, gt=0)
    locations: List[Location] = Field(default_factory=default_locations)


class ProviderSecret(StormBaseModel):
    """제공자 시크릿 래퍼입니다. / Provider secret wrapper."""

    api_key: SecretStr | None = None


class AppConfig(StormBaseModel):
    """애플리케이션 전체 설정입니다. / Application wide configuration."""

    providers: List[ProviderSettings] = Field(
        default_factory=lambda: [ProviderSettings()]
    )
    provider_order: List[str] = Field(default_factory=lambda: ["OpenWeatherMap"])
    monitoring: MonitoringSettings = Field(default_factory=MonitoringSettings)
    database_path: Path = Path("stormcast.db")

    def provider_by_name(self, name: str) -> ProviderSettings:
        """이름으로 제공자를 찾습니다. / Find provider by name."""

        for provider in self.providers:
            if provider.name == name:
                return provider
        raise KeyError(f"Unknown provider: {name}")


def load_yaml_config(path: Path) -> Dict[str, Any]:
    """YAML 설정을 읽습니다. / Load YAML configuration."""

    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    if not isinstance(data, dict):
        raise ValueError("Config root must be a mapping")
    return data


def load_secrets_from_env(suffixes: List[str]) -> Dict[str, ProviderSecret]:
    """환경 변수에서 시크릿을 적재합니다. / Load secrets from environment.

    The empty suffix maps to ``OPENWEATHER_API_KEY`` itself; any other suffix
    maps to ``OPENWEATHER_API_KEY_<SUFFIX>``.
    """

    mapping: Dict[str, ProviderSecret] = {}
    for suffix in ["", *suffixes]:
        env_key = f"{API_KEY_ENV}_{suffix}" if suffix else API_KEY_ENV
        raw_value = os.getenv(env_key)
        secret = SecretStr(raw_value) if raw_value else None
        mapping[suffix] = ProviderSecret(api_key=secret)
    return mapping


def merge_config(
    raw: Dict[str, Any], secrets: Dict[str, ProviderSecret]
) -> Dict[str, Any]:
    """환경과 파일 설정을 병합합니다. / Merge file config with secrets."""

    providers = raw.setdefault("providers", [{}])
    for provider in providers:
        if provider.get("api_key"):
            continue
        suffix = provider.get("secret_suffix") or ""
        secret = secrets.get(suffix)
        if secret and secret.api_key:
            provider["api_key"] = secret.api_key.get_secret_value()
    return raw


def load_app_config(path: Path | None = None) -> AppConfig:
    """최종 앱 설정을 반환합니다. / Return final app configuration."""

    config_path = path or Path("config.yaml")
    raw = load_yaml_config(config_path) if config_path.exists() else {}
    suffixes = [
        str(provider["secret_suffix"])
        for provider in raw.get("providers", [])
        if isinstance(provider, dict) and provider.get("secret_suffix")
    ]
    secrets = load_secrets_from_env(suffixes)
    merged = merge_config(raw, secrets)
    try:
        return AppConfig.model_validate(merged)
    except ValidationError as exc:
        raise ValueError(f"Invalid configuration: {exc}") from exc
