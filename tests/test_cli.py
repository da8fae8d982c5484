from __future__ import annotations

import json
from pathlib import Path

import pytest

from compositor import cli
from compositor.services import composition_service
from compositor.timeline import StaticProber


@pytest.fixture()
def offline_prober(monkeypatch: pytest.MonkeyPatch):
    """Keep the CLI from shelling out to ffprobe for sources without metadata."""

    monkeypatch.setattr(
        composition_service,
        "FFprobeProber",
        lambda **_: StaticProber(),
    )


def _write_request(tmp_path: Path, payload) -> str:
    path = tmp_path / "request.json"
    path.write_text(json.dumps(payload, ensure_ascii=False), encoding="utf-8")
    return str(path)


def test_compose_writes_plan_file(tmp_path: Path, offline_prober):
    request = _write_request(
        tmp_path,
        {"target_duration": 10, "clip_sources": [{"location": "a.mp4", "duration": 12}]},
    )
    plan_path = tmp_path / "plan.json"

    exit_code = cli.run_cli(["compose", request, "--plan-out", str(plan_path)])

    assert exit_code == 0
    payload = json.loads(plan_path.read_text(encoding="utf-8"))
    assert payload["actual_duration"] == pytest.approx(10)
    assert payload["plan"][0]["trimmed"] is True


def test_compose_without_sources_exits_with_failure(tmp_path: Path, offline_prober):
    request = _write_request(tmp_path, {"target_duration": 10})

    assert cli.run_cli(["compose", request]) == 1


def test_invalid_request_exits_with_usage_error(tmp_path: Path, capsys):
    request = _write_request(tmp_path, {"target_duration": -3})

    assert cli.run_cli(["compose", request]) == 2
    assert "Invalid request" in capsys.readouterr().err


def test_missing_request_file_exits_with_usage_error(tmp_path: Path):
    assert cli.run_cli(["compose", str(tmp_path / "absent.json")]) == 2


def test_subtitles_prints_fragments_and_writes_srt(tmp_path: Path, capsys):
    request = _write_request(
        tmp_path,
        {"text": "你好。今天天气不错，适合出门。", "block_duration": 6, "block_start_offset": 5},
    )
    srt_path = tmp_path / "out.srt"

    exit_code = cli.run_cli(["subtitles", request, "--srt-out", str(srt_path)])

    assert exit_code == 0
    payload = json.loads(capsys.readouterr().out)
    assert len(payload["fragments"]) == 3
    assert srt_path.read_text(encoding="utf-8").startswith("1\n00:00:05,000 --> 00:00:06,000\n")


def test_subtitles_accepts_narration_blocks(tmp_path: Path, capsys):
    request = _write_request(
        tmp_path,
        {"blocks": [{"text": "一。", "duration": 1}, {"text": "二。", "duration": 2}]},
    )

    assert cli.run_cli(["subtitles", request]) == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["fragments"][-1]["end_time"] == pytest.approx(3)


def test_config_flag_loads_custom_settings(tmp_path: Path, offline_prober):
    config_path = tmp_path / "custom.yaml"
    config_path.write_text("composition:\n  static_image_duration: 2\n", encoding="utf-8")
    request = _write_request(
        tmp_path,
        {
            "target_duration": 10,
            "image_sources": [{"location": "square.jpg", "width": 1080, "height": 1080}],
        },
    )
    plan_path = tmp_path / "plan.json"

    exit_code = cli.run_cli(
        ["compose", request, "--config", str(config_path), "--plan-out", str(plan_path)]
    )

    assert exit_code == 0
    payload = json.loads(plan_path.read_text(encoding="utf-8"))
    assert payload["actual_duration"] == pytest.approx(2)
    assert payload["shortfall"] == pytest.approx(8)


def test_parser_requires_a_command():
    with pytest.raises(SystemExit):
        cli.parse_cli_args([])
