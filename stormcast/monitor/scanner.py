"""모니터링 스캐너입니다. / Per-location storm monitoring scanner."""

from __future__ import annotations

import asyncio
import logging
import time
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional, Protocol, Sequence

from pydantic import Field

from ..base import StormBaseModel
from ..config import MonitoringSettings
from ..storm.classifier import classify, wind_direction
from ..storm.impact import build_storm_event, forecast_impact
from ..storm.models import StormEvent, WeatherRecord
from ..storm.segmenter import segment
from ..store.base import StormEventStore, StormEventStoreError
from ..weather.models import Location, WeatherSample
from ..weather.providers import WeatherProviderError

LOGGER = logging.getLogger("monitor.scanner")


class WeatherSampleSource(Protocol):
    async def fetch_current(self, location: Location) -> WeatherSample: ...

    async def fetch_forecast(
        self, location: Location, count: int = 40
    ) -> List[WeatherSample]: ...


class ScanStage(str, Enum):
    """스캔 단계입니다. / Scan pipeline stage."""

    IDLE = "Idle"
    FETCHING = "Fetching"
    CLASSIFYING = "Classifying"
    SEGMENTING = "Segmenting"
    FORECASTING = "Forecasting"
    PERSISTING = "Persisting"
    FAILED = "Failed"


class ScanStatus(str, Enum):
    """위치별 결과 상태입니다. / Per-location result status."""

    SUCCESS = "success"
    FAILED = "failed"
    ERROR = "error"


class ScanFailure(StormBaseModel):
    """스캔 실패 결과입니다. / Explicit scan failure result."""

    location: Location
    stage: ScanStage = ScanStage.FETCHING
    reason: str


class StormEventPersistenceError(Exception):
    """이벤트 저장 실패입니다. / Persisting computed storm events failed.

    ``events`` holds every event computed by the scan, ``saved`` the ones that
    reached the store before the failure.
    """

    def __init__(
        self,
        message: str,
        events: List[StormEvent],
        saved: List[StormEvent],
    ) -> None:
        super().__init__(message)
        self.events = events
        self.saved = saved


class LocationScanResult(StormBaseModel):
    """위치별 스캔 결과입니다. / Per-location scan result."""

    location: Location
    status: ScanStatus
    events: List[StormEvent] = Field(default_factory=list)
    written: int = 0
    current: Optional[WeatherRecord] = None
    error: Optional[str] = None

    @property
    def has_storms(self) -> bool:
        """폭풍 감지 여부입니다. / Whether any storm event was produced."""

        return bool(self.events)


class MonitoringCycleReport(StormBaseModel):
    """모니터링 주기 보고서입니다. / Monitoring cycle report."""

    started_at: datetime
    duration_seconds: float
    results: List[LocationScanResult]

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def processed(self) -> int:
        return sum(1 for result in self.results if result.status == ScanStatus.SUCCESS)

    @property
    def failed(self) -> int:
        return self.total - self.processed

    @property
    def storms_detected(self) -> int:
        return sum(1 for result in self.results if result.has_storms)

    @property
    def events_written(self) -> int:
        return sum(result.written for result in self.results)


class MonitoringScanner:
    """가져오기, 분류, 분할, 예측, 저장을 조율합니다.

    Orchestrates fetch, classify, segment, forecast and persist per location.
    Scans share no mutable state; a failure in one location never affects the
    others.
    """

    def __init__(
        self,
        source: WeatherSampleSource,
        store: StormEventStore,
        settings: MonitoringSettings | None = None,
    ) -> None:
        self.source = source
        self.store = store
        self.settings = settings or MonitoringSettings()

    def _stage(self, location: Location, stage: ScanStage) -> None:
        LOGGER.debug(
            "scan_stage",
            extra={"location": location.label, "stage": stage.value},
        )

    async def scan_location(self, location: Location) -> List[StormEvent] | ScanFailure:
        """한 위치를 스캔합니다. / Scan one location for storm events.

        Provider failures produce a ``ScanFailure`` before anything is
        classified or written. Store failures raise
        ``StormEventPersistenceError`` with the computed events attached.
        Every scan writes fresh events, even for a storm already recorded by
        an earlier scan.
        """

        self._stage(location, ScanStage.FETCHING)
        try:
            samples = await self.source.fetch_forecast(
                location, self.settings.forecast_point_count
            )
        except WeatherProviderError as exc:
            self._stage(location, ScanStage.FAILED)
            LOGGER.warning(
                "scan_failed",
                extra={"location": location.label, "error": str(exc)},
            )
            return ScanFailure(location=location, reason=str(exc))

        self._stage(location, ScanStage.CLASSIFYING)
        ordered = sorted(samples, key=lambda sample: sample.observed_at)
        classified = [classify(sample) for sample in ordered]

        self._stage(location, ScanStage.SEGMENTING)
        periods = segment(classified)

        self._stage(location, ScanStage.FORECASTING)
        events = [
            build_storm_event(period, location, forecast_impact(period))
            for period in periods
        ]

        self._stage(location, ScanStage.PERSISTING)
        saved: List[StormEvent] = []
        for event in events:
            try:
                saved.append(await asyncio.to_thread(self.store.save_event, event))
            except StormEventStoreError as exc:
                LOGGER.error(
                    "storm_event_persist_failed",
                    extra={"location": location.label, "error": str(exc)},
                )
                raise StormEventPersistenceError(str(exc), events, saved) from exc
            LOGGER.info(
                "storm_event_written",
                extra={
                    "location": location.label,
                    "type": event.type,
                    "severity": event.severity,
                },
            )
        self._stage(location, ScanStage.IDLE)
        return saved

    async def observe_current_conditions(
        self, location: Location
    ) -> Optional[WeatherRecord]:
        """현재 기상을 기록합니다. / Classify and store current conditions."""

        try:
            sample = await self.source.fetch_current(location)
        except WeatherProviderError as exc:
            LOGGER.warning(
                "current_conditions_failed",
                extra={"location": location.label, "error": str(exc)},
            )
            return None
        record = WeatherRecord(
            classified=classify(sample),
            wind_direction=wind_direction(sample.wind_direction_deg),
        )
        return await asyncio.to_thread(self.store.save_observation, record)

    async def _run_location(
        self, location: Location, semaphore: asyncio.Semaphore
    ) -> LocationScanResult:
        """세마포어 안에서 한 위치를 처리합니다. / Process one location."""

        async with semaphore:
            current: Optional[WeatherRecord] = None
            if self.settings.record_current_conditions:
                try:
                    current = await self.observe_current_conditions(location)
                except StormEventStoreError as exc:
                    LOGGER.error(
                        "current_conditions_persist_failed",
                        extra={"location": location.label, "error": str(exc)},
                    )
            try:
                outcome = await self.scan_location(location)
            except StormEventPersistenceError as exc:
                return LocationScanResult(
                    location=location,
                    status=ScanStatus.ERROR,
                    events=exc.events,
                    written=len(exc.saved),
                    current=current,
                    error=str(exc),
                )
            except StormEventStoreError as exc:
                return LocationScanResult(
                    location=location,
                    status=ScanStatus.ERROR,
                    current=current,
                    error=str(exc),
                )
        if isinstance(outcome, ScanFailure):
            return LocationScanResult(
                location=location,
                status=ScanStatus.FAILED,
                current=current,
                error=outcome.reason,
            )
        if outcome:
            LOGGER.info(
                "storm_conditions_detected",
                extra={"location": location.label, "events": len(outcome)},
            )
        return LocationScanResult(
            location=location,
            status=ScanStatus.SUCCESS,
            events=outcome,
            written=len(outcome),
            current=current,
        )

    async def run_cycle(
        self, locations: Sequence[Location] | None = None
    ) -> MonitoringCycleReport:
        """전체 목록을 한 번 스캔합니다. / Run one cycle over the roster."""

        roster = list(locations) if locations is not None else self.settings.locations
        started_at = datetime.now(timezone.utc)
        began = time.monotonic()
        LOGGER.info("monitoring_cycle_started", extra={"locations": len(roster)})
        semaphore = asyncio.Semaphore(self.settings.max_concurrent_scans)
        results = await asyncio.gather(
            *(self._run_location(location, semaphore) for location in roster)
        )
        report = MonitoringCycleReport(
            started_at=started_at,
            duration_seconds=time.monotonic() - began,
            results=list(results),
        )
        LOGGER.info(
            "monitoring_cycle_completed",
            extra={
                "processed": report.processed,
                "total": report.total,
                "storms_detected": report.storms_detected,
                "duration_seconds": report.duration_seconds,
            },
        )
        return report

    async def run_forever(
        self,
        interval_seconds: float | None = None,
        max_cycles: int | None = None,
    ) -> Optional[MonitoringCycleReport]:
        """주기적으로 스캔합니다. / Repeat cycles on a fixed interval.

        Returns the last report once ``max_cycles`` cycles have run.
        """

        interval = (
            interval_seconds
            if interval_seconds is not None
            else self.settings.interval_minutes * 60
        )
        last: Optional[MonitoringCycleReport] = None
        cycles = 0
        while max_cycles is None or cycles < max_cycles:
            last = await self.run_cycle()
            cycles += 1
            if max_cycles is not None and cycles >= max_cycles:
                break
            await asyncio.sleep(interval)
        return last
