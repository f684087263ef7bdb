"""운영자용 CLI입니다. / Operator-facing CLI."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import typer

from .config import AppConfig, load_app_config
from .monitor.scanner import (
    MonitoringScanner,
    ScanFailure,
    StormEventPersistenceError,
)
from .reporting.markdown import build_storm_report, format_cycle_summary
from .storm.metrics import summarize_storms
from .storm.models import SeverityTier, StormEvent, WeatherRecord
from .store.base import StormEventQuery, StormEventStoreError
from .store.sqlite import SQLiteStormEventStore
from .weather.models import Location
from .weather.providers import build_service

app = typer.Typer(help="Stormcast storm monitoring CLI")

_state = {"config_path": None}


@app.callback()
def main_options(
    config: Optional[Path] = typer.Option(None, help="Path to config.yaml"),
    log_level: str = typer.Option("WARNING", help="Logging level"),
) -> None:
    """공통 옵션입니다. / Shared options."""

    logging.basicConfig(
        level=log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    _state["config_path"] = config


def _load() -> AppConfig:
    return load_app_config(_state["config_path"])


def _build_scanner(config: AppConfig) -> MonitoringScanner:
    """스캐너를 생성합니다. / Build monitoring scanner."""

    service = build_service(config.providers, config.provider_order)
    store = SQLiteStormEventStore(config.database_path)
    return MonitoringScanner(service, store, config.monitoring)


def _print_record(record: WeatherRecord) -> None:
    """현재 기상을 출력합니다. / Print current conditions."""

    sample = record.sample
    classified = record.classified
    lines = [
        "Location | Condition | Temp (°F) | Wind (mph) | Dir | Severity | Storm",
        "---------|-----------|-----------|------------|-----|----------|------",
        (
            f"{sample.location.label} | {sample.condition_code} | "
            f"{sample.temperature_f:.1f} | {sample.wind_speed_mph:.1f} | "
            f"{record.wind_direction} | {classified.severity_tier} | "
            f"{classified.storm_type or '-'}"
        ),
    ]
    typer.echo("\n".join(lines))


def _print_events(events: list[StormEvent]) -> None:
    """폭풍 이벤트를 출력합니다. / Print storm events."""

    if not events:
        typer.echo("No storm events.")
        return
    for event in events:
        typer.echo(
            f"- {event.type} [{event.severity}] "
            f"{event.start_time.isoformat()} → {event.end_time.isoformat()} "
            f"wind {event.max_wind_speed_mph:.1f} mph, "
            f"radius {event.impact_radius_miles} mi, "
            f"damage {event.predicted_damage}, "
            f"demand {event.predicted_service_demand}"
        )


@app.command("current")
def current(
    lat: float,
    lon: float,
    city: Optional[str] = typer.Option(None),
    state: Optional[str] = typer.Option(None),
) -> None:
    """현재 기상을 조회합니다. / Fetch, classify and store current conditions."""

    scanner = _build_scanner(_load())
    location = Location(latitude=lat, longitude=lon, city=city, state=state)
    try:
        record = asyncio.run(scanner.observe_current_conditions(location))
    except StormEventStoreError as exc:
        typer.echo(f"Failed to store conditions: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    if record is None:
        typer.echo("Failed to fetch weather data", err=True)
        raise typer.Exit(code=1)
    _print_record(record)


@app.command("scan")
def scan(
    lat: float,
    lon: float,
    city: Optional[str] = typer.Option(None),
    state: Optional[str] = typer.Option(None),
) -> None:
    """한 위치의 폭풍을 분석합니다. / Scan one location for storms."""

    scanner = _build_scanner(_load())
    location = Location(latitude=lat, longitude=lon, city=city, state=state)
    try:
        outcome = asyncio.run(scanner.scan_location(location))
    except StormEventPersistenceError as exc:
        _print_events(exc.saved)
        written = f"{len(exc.saved)}/{len(exc.events)}"
        typer.echo(f"Failed to store storm events ({written} written): {exc}", err=True)
        raise typer.Exit(code=1) from exc
    if isinstance(outcome, ScanFailure):
        typer.echo(f"Scan failed: {outcome.reason}", err=True)
        raise typer.Exit(code=1)
    _print_events(outcome)


@app.command("monitor")
def monitor(
    interval_minutes: Optional[float] = typer.Option(
        None, help="Minutes between cycles (defaults to config)"
    ),
    cycles: int = typer.Option(1, help="Number of cycles, 0 runs forever"),
) -> None:
    """모니터링 주기를 실행합니다. / Run monitoring cycles over the roster."""

    config = _load()
    scanner = _build_scanner(config)
    interval = interval_minutes * 60 if interval_minutes is not None else None
    report = asyncio.run(
        scanner.run_forever(interval, max_cycles=cycles if cycles > 0 else None)
    )
    if report is not None:
        typer.echo(format_cycle_summary(report))


@app.command("storms")
def storms(
    state: Optional[str] = typer.Option(None),
    city: Optional[str] = typer.Option(None),
    severity: Optional[SeverityTier] = typer.Option(None, case_sensitive=False),
    limit: int = typer.Option(20),
    report_dir: Optional[Path] = typer.Option(None, help="Write markdown report"),
) -> None:
    """활성 폭풍을 조회합니다. / List active storms with metrics."""

    config = _load()
    store = SQLiteStormEventStore(config.database_path)
    now = datetime.now(timezone.utc)
    query = StormEventQuery(
        active_at=now,
        state=state,
        city=city,
        severity=severity.value if severity is not None else None,
        limit=limit,
    )
    events = store.list_events(query)
    metrics = summarize_storms(events)
    _print_events(events)
    typer.echo(
        f"\nActive: {metrics.total_active_storms}, "
        f"estimated demand: {metrics.estimated_service_demand}"
    )
    if report_dir is not None:
        report = build_storm_report(events, metrics, now, report_dir)
        typer.echo(f"Report saved to {report.path}")


def main() -> None:
    """CLI 엔트리 포인트입니다. / CLI entry point."""

    app()


if __name__ == "__main__":  # pragma: no cover - CLI guard
    main()
