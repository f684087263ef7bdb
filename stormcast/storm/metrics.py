"""활성 폭풍 지표입니다. / Active storm metrics."""

from __future__ import annotations

from collections import Counter
from typing import Dict, Iterable

from ..base import StormBaseModel
from .models import StormEvent

DEMAND_POINTS: Dict[str, int] = {
    "Extreme": 100,
    "High": 50,
    "Medium": 20,
    "Low": 5,
}


class StormMetrics(StormBaseModel):
    """폭풍 요약 지표입니다. / Storm summary metrics."""

    total_active_storms: int
    severity_breakdown: Dict[str, int]
    estimated_service_demand: int
    top_affected_states: Dict[str, int]


def summarize_storms(events: Iterable[StormEvent]) -> StormMetrics:
    """폭풍 목록을 요약합니다. / Summarize a list of storm events."""

    severity: Counter[str] = Counter()
    states: Counter[str] = Counter()
    total = 0
    demand = 0
    for event in events:
        total += 1
        severity[str(event.severity)] += 1
        demand += DEMAND_POINTS.get(str(event.predicted_service_demand), 0)
        states.update(event.affected_states)
    return StormMetrics(
        total_active_storms=total,
        severity_breakdown=dict(severity),
        estimated_service_demand=demand,
        top_affected_states=dict(states.most_common()),
    )
