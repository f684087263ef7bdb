"""폭풍 이벤트 저장소 인터페이스입니다. / Storm event store interface."""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, List, Optional, Protocol

from pydantic import Field

from ..base import StormBaseModel
from ..storm.models import SeverityTier, StormEvent, WeatherRecord, severity_rank


class StormEventStoreError(Exception):
    """저장소 쓰기 오류입니다. / Storm event store failure."""


class StormEventQuery(StormBaseModel):
    """활성 폭풍 조회 조건입니다. / Active storm query."""

    active_at: Optional[datetime] = None
    state: Optional[str] = None
    city: Optional[str] = None
    severity: Optional[SeverityTier] = None
    limit: int = Field(default=20, ge=1)

    def matches(self, event: StormEvent) -> bool:
        """이벤트가 조건과 맞는지 확인합니다. / Check event against filters."""

        if self.active_at is not None and event.end_time < self.active_at:
            return False
        if self.state and self.state not in event.affected_states:
            return False
        if self.city and self.city not in event.affected_cities:
            return False
        if self.severity and event.severity != self.severity:
            return False
        return True


class StormEventStore(Protocol):
    def save_event(self, event: StormEvent) -> StormEvent: ...

    def save_observation(self, record: WeatherRecord) -> WeatherRecord: ...

    def list_events(self, query: StormEventQuery) -> List[StormEvent]: ...


def order_events(events: Iterable[StormEvent], limit: int) -> List[StormEvent]:
    """심각도, 시작 시각 역순 정렬입니다. / Severity desc, then start desc."""

    ranked = sorted(
        events,
        key=lambda event: (severity_rank(event.severity), event.start_time),
        reverse=True,
    )
    return ranked[:limit]
