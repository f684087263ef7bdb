"""메모리 저장소입니다. / In-memory storm event store."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List

from ..storm.models import StormEvent, WeatherRecord
from .base import StormEventQuery, order_events


class InMemoryStormEventStore:
    """프로세스 내 저장소입니다. / Process-local append-only store."""

    def __init__(self) -> None:
        self.events: List[StormEvent] = []
        self.observations: List[WeatherRecord] = []

    def save_event(self, event: StormEvent) -> StormEvent:
        stored = event.model_copy(update={"recorded_at": datetime.now(timezone.utc)})
        self.events.append(stored)
        return stored

    def save_observation(self, record: WeatherRecord) -> WeatherRecord:
        stored = record.model_copy(update={"recorded_at": datetime.now(timezone.utc)})
        self.observations.append(stored)
        return stored

    def list_events(self, query: StormEventQuery) -> List[StormEvent]:
        return order_events(
            (event for event in self.events if query.matches(event)), query.limit
        )
