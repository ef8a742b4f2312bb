from __future__ import annotations

import json
from dataclasses import replace
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest
from typer.testing import CliRunner

import slice_timing.cli as cli_module
from slice_timing.analysis import load_timing_log
from slice_timing.demo_utils import DEMO_BUILDER_KEY

runner = CliRunner()
T0 = datetime(2024, 1, 1, tzinfo=UTC)


@pytest.fixture()
def timing_log_path(tmp_path: Path) -> Path:
    def window(start_ms: int, stop_ms: int) -> dict[str, str]:
        return {
            "startTime": (T0 + timedelta(milliseconds=start_ms)).isoformat(),
            "stopTime": (T0 + timedelta(milliseconds=stop_ms)).isoformat(),
        }

    payload = {
        "actions": [
            {
                "builderKey": "pkg:builder",
                "stages": [
                    {"label": "Build", "slices": [window(0, 10), window(20, 40)]},
                    {"label": "Setup", "slices": [window(40, 41)]},
                ],
            }
        ]
    }
    path = tmp_path / "log.json"
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


def test_analyze_prints_mean_and_total(timing_log_path: Path) -> None:
    result = runner.invoke(
        cli_module.app,
        ["analyze", str(timing_log_path), "--builder-key", "pkg:builder", "--action-label", "Build"],
    )

    assert result.exit_code == 0, result.output
    assert '"builder key": "pkg:builder"' in result.stdout
    assert '"mean duration": "0:00:00.015000"' in result.stdout
    assert '"total duration": "0:00:00.030000"' in result.stdout
    assert "Setup" not in result.stdout


def test_analyze_requires_builder_key(timing_log_path: Path) -> None:
    result = runner.invoke(cli_module.app, ["analyze", str(timing_log_path), "--action-label", "Build"])

    assert result.exit_code == 2


def test_analyze_requires_action_label(timing_log_path: Path) -> None:
    result = runner.invoke(cli_module.app, ["analyze", str(timing_log_path), "--builder-key", "pkg:builder"])

    assert result.exit_code == 2


def test_analyze_rejects_invalid_log(tmp_path: Path) -> None:
    path = tmp_path / "broken.json"
    path.write_text(json.dumps({"actions": [{"stages": []}]}), encoding="utf-8")

    result = runner.invoke(
        cli_module.app,
        ["analyze", str(path), "--builder-key", "k", "--action-label", "l"],
    )

    assert result.exit_code == 2


def test_demo_writes_timing_log(tmp_path: Path) -> None:
    output = tmp_path / "demo" / "timings.json"

    result = runner.invoke(
        cli_module.app,
        ["demo", "--bursts", "2", "--burst-ms", "1", "--delay-ms", "2", "--exclude-nested", "--output", str(output)],
    )

    assert result.exit_code == 0, result.output
    assert "workload: slices=" in result.stdout
    log = load_timing_log(output)
    assert log.actions[0].builder_key == DEMO_BUILDER_KEY
    assert [stage.label for stage in log.actions[0].stages] == ["workload", "nested"]
    assert log.actions[0].stages[1].slices


def test_demo_refuses_when_tracking_disabled(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(cli_module, "config", replace(cli_module.config, enabled=False))

    result = runner.invoke(cli_module.app, ["demo", "--output", str(tmp_path / "out.json")])

    assert result.exit_code == 1
    assert not (tmp_path / "out.json").exists()


def test_demo_summarizes_simple_mode(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(cli_module, "config", replace(cli_module.config, enabled=True, mode="simple"))

    result = runner.invoke(
        cli_module.app,
        ["demo", "--bursts", "2", "--burst-ms", "0", "--delay-ms", "1", "--output", str(tmp_path / "out.json")],
    )

    assert result.exit_code == 0, result.output
    assert "mode=simple" in result.stdout
    assert "workload: slices=1 " in result.stdout
    assert "nested: slices=1 " in result.stdout
