"""CLI 테스트입니다. / CLI tests."""

from __future__ import annotations

from pathlib import Path

import pytest
from typer.testing import CliRunner

from stormcast import cli
from stormcast.monitor.scanner import MonitoringScanner
from tests.fakes import FailingStore, FakeSampleSource, make_series

runner = CliRunner()


def test_storms_rejects_unknown_severity(tmp_path: Path) -> None:
    """알 수 없는 등급은 사용 오류입니다. / Unknown tiers are usage errors."""

    result = runner.invoke(
        cli.app,
        ["--config", str(tmp_path / "missing.yaml"), "storms", "--severity", "Extreme"],
    )
    assert result.exit_code == 2
    assert "Traceback" not in result.output


def test_storms_accepts_lowercase_severity(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    """소문자 등급을 허용합니다. / Lowercase tier names are accepted."""

    monkeypatch.chdir(tmp_path)
    result = runner.invoke(
        cli.app,
        ["--config", str(tmp_path / "missing.yaml"), "storms", "--severity", "severe"],
    )
    assert result.exit_code == 0
    assert "No storm events." in result.output


def test_scan_reports_persistence_failure(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    """저장 실패는 종료 코드 1입니다. / Store failures exit with code 1."""

    series = make_series([30.0, 45.0, 5.0], ["Rain", "Thunderstorm", "Clear"])
    source = FakeSampleSource({"Dallas": series})
    monkeypatch.setattr(
        cli,
        "_build_scanner",
        lambda config: MonitoringScanner(source, FailingStore()),
    )
    result = runner.invoke(
        cli.app,
        [
            "--config",
            str(tmp_path / "missing.yaml"),
            "scan",
            "--city",
            "Dallas",
            "--state",
            "TX",
            "--",
            "32.7767",
            "-96.797",
        ],
    )
    assert result.exit_code == 1
    assert isinstance(result.exception, SystemExit)
    assert "Failed to store storm events (0/1 written)" in result.output
