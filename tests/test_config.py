"""설정 로딩 테스트입니다. / Configuration loading tests."""

from __future__ import annotations

import pytest

from stormcast.config import AppConfig, ProviderSettings, load_app_config


def test_load_app_config_includes_secrets(tmp_path, monkeypatch) -> None:
    """환경 시크릿을 포함합니다. / Includes env secrets."""

    config_path = tmp_path / "config.yaml"
    config_path.write_text(
        """
providers:
  - name: Primary
    adapter: openweathermap
    base_url: https://primary.test
  - name: Mirror
    adapter: openweathermap
    base_url: https://mirror.test
    secret_suffix: MIRROR
provider_order:
  - Primary
  - Mirror
monitoring:
  forecast_point_count: 16
  locations:
    - latitude: 32.7767
      longitude: -96.797
      city: Dallas
      state: TX
""".strip(),
        encoding="utf-8",
    )
    monkeypatch.setenv("OPENWEATHER_API_KEY", "secret-primary")
    monkeypatch.setenv("OPENWEATHER_API_KEY_MIRROR", "secret-mirror")
    config = load_app_config(config_path)
    assert isinstance(config, AppConfig)
    assert config.provider_by_name("Primary").api_key == "secret-primary"
    assert config.provider_by_name("Mirror").api_key == "secret-mirror"
    assert config.monitoring.forecast_point_count == 16
    assert [loc.city for loc in config.monitoring.locations] == ["Dallas"]


def test_missing_file_uses_defaults(tmp_path, monkeypatch) -> None:
    """파일이 없으면 기본값입니다. / Defaults apply without a config file."""

    monkeypatch.setenv("OPENWEATHER_API_KEY", "secret")
    config = load_app_config(tmp_path / "absent.yaml")
    provider = config.provider_by_name("OpenWeatherMap")
    assert provider.api_key == "secret"
    assert provider.units == "imperial"
    assert provider.timeout_seconds == pytest.approx(10.0)
    assert config.monitoring.forecast_point_count == 40
    assert len(config.monitoring.locations) == 51


def test_invalid_config_raises_value_error(tmp_path) -> None:
    """잘못된 설정은 오류입니다. / Invalid config raises ValueError."""

    config_path = tmp_path / "config.yaml"
    config_path.write_text(
        "monitoring:\n  forecast_point_count: 41\n", encoding="utf-8"
    )
    with pytest.raises(ValueError):
        load_app_config(config_path)


def test_metric_units_rejected() -> None:
    """미터법은 거부됩니다. / Metric units are rejected."""

    with pytest.raises(ValueError):
        ProviderSettings(units="metric")
