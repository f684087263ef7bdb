"""SQLite 저장소입니다. / SQLite-backed storm event store."""

from __future__ import annotations

import json
import logging
import sqlite3
from contextlib import closing
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List

from ..storm.models import StormEvent, WeatherRecord
from .base import StormEventQuery, StormEventStoreError, order_events

LOGGER = logging.getLogger("store.sqlite")

SCHEMA = """
CREATE TABLE IF NOT EXISTS storm_events (
    id TEXT PRIMARY KEY,
    type TEXT NOT NULL,
    severity TEXT NOT NULL,
    affected_states TEXT NOT NULL,
    affected_cities TEXT NOT NULL,
    affected_zip_codes TEXT NOT NULL,
    center_latitude REAL NOT NULL,
    center_longitude REAL NOT NULL,
    impact_radius_miles INTEGER NOT NULL,
    max_wind_speed_mph REAL NOT NULL,
    expected_duration_hours INTEGER NOT NULL,
    start_time TEXT NOT NULL,
    end_time TEXT NOT NULL,
    predicted_damage TEXT NOT NULL,
    predicted_service_demand TEXT NOT NULL,
    recorded_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_storm_events_end ON storm_events (end_time);
CREATE TABLE IF NOT EXISTS weather_records (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    city TEXT,
    state TEXT,
    latitude REAL NOT NULL,
    longitude REAL NOT NULL,
    observed_at TEXT NOT NULL,
    condition TEXT NOT NULL,
    severity TEXT NOT NULL,
    is_storm_condition INTEGER NOT NULL,
    storm_type TEXT,
    alert_level TEXT,
    wind_direction TEXT NOT NULL,
    payload TEXT NOT NULL,
    recorded_at TEXT NOT NULL
);
"""

LIST_COLUMNS = ("affected_states", "affected_cities", "affected_zip_codes")


def _iso(value: datetime) -> str:
    """UTC ISO 문자열입니다. / Normalized UTC ISO string."""

    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


class SQLiteStormEventStore:
    """SQLite 추가 전용 저장소입니다. / Append-only SQLite store."""

    def __init__(self, path: Path | str) -> None:
        self.path = str(path)
        try:
            with closing(sqlite3.connect(self.path)) as conn:
                conn.executescript(SCHEMA)
        except sqlite3.Error as exc:
            raise StormEventStoreError(f"Cannot initialise {self.path}: {exc}") from exc

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.path)
        conn.row_factory = sqlite3.Row
        return conn

    def save_event(self, event: StormEvent) -> StormEvent:
        """이벤트를 삽입합니다. / Insert a storm event."""

        stored = event.model_copy(update={"recorded_at": datetime.now(timezone.utc)})
        row = stored.model_dump(mode="json")
        for column in LIST_COLUMNS:
            row[column] = json.dumps(row[column])
        row["start_time"] = _iso(stored.start_time)
        row["end_time"] = _iso(stored.end_time)
        row["recorded_at"] = _iso(stored.recorded_at)  # type: ignore[arg-type]
        columns = ", ".join(row)
        placeholders = ", ".join(f":{name}" for name in row)
        try:
            with closing(self._connect()) as conn, conn:
                conn.execute(
                    f"INSERT INTO storm_events ({columns}) VALUES ({placeholders})",
                    row,
                )
        except sqlite3.Error as exc:
            LOGGER.error("storm_event_write_failed", extra={"error": str(exc)})
            raise StormEventStoreError(str(exc)) from exc
        return stored

    def save_observation(self, record: WeatherRecord) -> WeatherRecord:
        """현재 기상 기록을 삽입합니다. / Insert a current conditions record."""

        stored = record.model_copy(update={"recorded_at": datetime.now(timezone.utc)})
        classified = stored.classified
        sample = classified.sample
        row: Dict[str, Any] = {
            "city": sample.location.city,
            "state": sample.location.state,
            "latitude": sample.location.latitude,
            "longitude": sample.location.longitude,
            "observed_at": _iso(sample.observed_at),
            "condition": sample.condition_code,
            "severity": classified.severity_tier,
            "is_storm_condition": int(classified.is_storm_condition),
            "storm_type": classified.storm_type,
            "alert_level": classified.alert_level,
            "wind_direction": stored.wind_direction,
            "payload": stored.model_dump_json(),
            "recorded_at": _iso(stored.recorded_at),  # type: ignore[arg-type]
        }
        columns = ", ".join(row)
        placeholders = ", ".join(f":{name}" for name in row)
        try:
            with closing(self._connect()) as conn, conn:
                conn.execute(
                    f"INSERT INTO weather_records ({columns}) VALUES ({placeholders})",
                    row,
                )
        except sqlite3.Error as exc:
            LOGGER.error("weather_record_write_failed", extra={"error": str(exc)})
            raise StormEventStoreError(str(exc)) from exc
        return stored

    def list_events(self, query: StormEventQuery) -> List[StormEvent]:
        """활성 폭풍을 조회합니다. / Query active storm events."""

        clauses: List[str] = []
        params: Dict[str, Any] = {}
        if query.active_at is not None:
            clauses.append("end_time >= :active_at")
            params["active_at"] = _iso(query.active_at)
        if query.severity:
            clauses.append("severity = :severity")
            params["severity"] = query.severity
        where = f" WHERE {' AND '.join(clauses)}" if clauses else ""
        try:
            with closing(self._connect()) as conn:
                rows = conn.execute(f"SELECT * FROM storm_events{where}", params).fetchall()
        except sqlite3.Error as exc:
            raise StormEventStoreError(str(exc)) from exc
        events = [_row_to_event(row) for row in rows]
        return order_events(
            (event for event in events if query.matches(event)), query.limit
        )


def _row_to_event(row: sqlite3.Row) -> StormEvent:
    data = dict(row)
    for column in LIST_COLUMNS:
        data[column] = json.loads(data[column])
    return StormEvent.model_validate(data)
