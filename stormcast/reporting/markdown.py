"""마크다운 리포트 빌더입니다. / Markdown report builder."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import List, Sequence

from ..base import StormBaseModel
from ..monitor.scanner import MonitoringCycleReport
from ..storm.metrics import StormMetrics
from ..storm.models import StormEvent


class MarkdownReport(StormBaseModel):
    """마크다운 리포트 데이터입니다. / Markdown report data."""

    content: str
    path: Path


def format_cycle_summary(report: MonitoringCycleReport) -> str:
    """모니터링 주기 요약입니다. / Build monitoring cycle summary."""

    lines = [
        f"# Monitoring Cycle {report.started_at:%Y-%m-%d %H:%M} UTC",
        "",
        (
            f"- Processed: {report.processed}/{report.total} locations "
            f"in {report.duration_seconds:.2f}s"
        ),
        f"- Failed: {report.failed}",
        f"- Storms Detected: {report.storms_detected}",
        f"- Events Written: {report.events_written}",
        "",
        "| Location | Status | Events | Detail |",
        "|----------|--------|--------|--------|",
    ]
    for result in report.results:
        detail = result.error or ", ".join(
            f"{event.type} ({event.severity})" for event in result.events
        )
        lines.append(
            f"| {result.location.label} | {result.status} | "
            f"{len(result.events)} | {detail or '-'} |"
        )
    return "\n".join(lines).strip() + "\n"


def format_storm_report(
    events: Sequence[StormEvent],
    metrics: StormMetrics,
    generated_at: datetime,
) -> str:
    """활성 폭풍 리포트를 만듭니다. / Build active storm report."""

    lines: List[str] = [
        f"# Active Storm Report ({generated_at.isoformat()})",
        "",
        "## Metrics",
        f"- Active Storms: {metrics.total_active_storms}",
        f"- Estimated Service Demand: {metrics.estimated_service_demand}",
    ]
    for severity, count in sorted(metrics.severity_breakdown.items()):
        lines.append(f"- Severity {severity}: {count}")
    if metrics.top_affected_states:
        states = ", ".join(
            f"{state} ({count})" for state, count in metrics.top_affected_states.items()
        )
        lines.append(f"- Top Affected States: {states}")
    lines.extend(["", "## Storms"])
    if not events:
        lines.append("- No active storms")
    for event in events:
        area = ", ".join(event.affected_cities + event.affected_states) or (
            f"{event.center_latitude:.4f},{event.center_longitude:.4f}"
        )
        lines.extend(
            [
                "",
                f"### {event.type}: {area}",
                f"- Severity: {event.severity}",
                f"- Window: {event.start_time.isoformat()} → {event.end_time.isoformat()}",
                f"- Max Wind: {event.max_wind_speed_mph:.1f} mph",
                f"- Impact Radius: {event.impact_radius_miles} mi",
                f"- Predicted Damage: {event.predicted_damage}",
                f"- Service Demand: {event.predicted_service_demand}",
            ]
        )
    return "\n".join(lines).strip() + "\n"


def build_storm_report(
    events: Sequence[StormEvent],
    metrics: StormMetrics,
    generated_at: datetime,
    directory: Path,
) -> MarkdownReport:
    """리포트를 생성합니다. / Build markdown report file."""

    directory.mkdir(parents=True, exist_ok=True)
    path = directory / f"storms_{generated_at:%Y%m%dT%H%M}.md"
    content = format_storm_report(events, metrics, generated_at)
    path.write_text(content, encoding="utf-8")
    return MarkdownReport(content=content, path=path)
