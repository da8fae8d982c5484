from __future__ import annotations

from pathlib import Path

import pytest

from compositor.config.loader import CompositionConfig
from compositor.media.exceptions import CommandExecutionError
from compositor.render import FFmpegMediaProcessor, create_media_processor, parse_color_for_ffmpeg
from compositor.timeline import allocate, emit_plan


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("#fff", "0xffffff"),
        ("#1a2b3c", "0x1a2b3c"),
        ("rgb(255, 0, 16)", "0xff0010"),
        ("rgb(300,0,0)", "0xff0000"),
        ("teal", "0x000000"),
        (None, "0x000000"),
    ],
)
def test_parse_color_for_ffmpeg(value, expected):
    assert parse_color_for_ffmpeg(value) == expected


def test_normalize_scales_pads_and_maps_streams(dummy_runner):
    processor = FFmpegMediaProcessor(
        executable="/usr/bin/ffmpeg", pad_color="#fff", command_runner=dummy_runner
    )

    processor.normalize("in.mp4", "out.mp4", frame_size=(1080, 1920), frame_rate=30)

    command = dummy_runner.commands[0]
    assert command[:4] == ["/usr/bin/ffmpeg", "-loglevel", "error", "-y"]
    filters = command[command.index("-vf") + 1]
    assert "scale=1080:1920:force_original_aspect_ratio=decrease" in filters
    assert "pad=1080:1920:(ow-iw)/2:(oh-ih)/2:color=0xffffff" in filters
    assert "setsar=1" in filters
    assert "-t" not in command
    assert command[command.index("-r") + 1] == "30"
    assert "0:a?" in command
    assert command[-1] == "out.mp4"


def test_normalize_applies_trim_duration(dummy_runner):
    processor = FFmpegMediaProcessor(command_runner=dummy_runner)

    processor.normalize("in.mp4", "out.mp4", frame_size=(720, 1280), frame_rate=25, duration=2.5)

    command = dummy_runner.commands[0]
    assert command[command.index("-t") + 1] == "2.500"


def test_render_scroll_crops_with_speed_for_duration(dummy_runner):
    processor = FFmpegMediaProcessor(command_runner=dummy_runner)

    processor.render_scroll(
        "tall.jpg",
        "scroll.mp4",
        duration=3.0,
        scroll_distance=240,
        scaled_height=2160,
        frame_size=(1080, 1920),
        frame_rate=30,
    )

    command = dummy_runner.commands[0]
    assert command[command.index("-loop") + 1] == "1"
    filters = command[command.index("-vf") + 1]
    assert "scale=1080:2160" in filters
    assert "crop=w=1080:h=1920:x=0:y='min(t*80.0000\\,240)'" in filters
    assert command[command.index("-t") + 1] == "3.000"


def test_render_still_adds_silent_audio(dummy_runner):
    processor = FFmpegMediaProcessor(command_runner=dummy_runner)

    processor.render_still(
        "photo.jpg",
        "still.mp4",
        duration=5.0,
        scaled_height=810,
        frame_size=(1080, 1920),
        frame_rate=30,
    )

    command = dummy_runner.commands[0]
    assert "anullsrc=channel_layout=stereo:sample_rate=44100" in command
    assert "-shortest" in command
    assert "scale=1080:810" in command[command.index("-vf") + 1]


def test_concatenate_writes_list_and_cleans_up(tmp_path: Path):
    captured: dict[str, str] = {}

    def runner(command, **_):
        list_path = command[command.index("-i") + 1]
        captured["list"] = Path(list_path).read_text(encoding="utf-8")
        captured["path"] = list_path

    processor = FFmpegMediaProcessor(command_runner=runner)
    output = tmp_path / "final.mp4"

    processor.concatenate([str(tmp_path / "a.mp4"), str(tmp_path / "b.mp4")], str(output))

    assert captured["list"].splitlines() == [
        f"file '{tmp_path / 'a.mp4'}'",
        f"file '{tmp_path / 'b.mp4'}'",
    ]
    assert not Path(captured["path"]).exists()


def test_concatenate_requires_inputs(dummy_runner):
    with pytest.raises(ValueError):
        FFmpegMediaProcessor(command_runner=dummy_runner).concatenate([], "out.mp4")


def test_render_plan_runs_one_command_per_entry_and_one_concat(tmp_path: Path, dummy_runner, make_pools):
    pools, prober = make_pools(clips=[4, 3], images=[(1000, 2000)], fillers=[9])
    plan = emit_plan(allocate(9, pools, prober).timeline)
    processor = FFmpegMediaProcessor(command_runner=dummy_runner)
    workdir = tmp_path / "work"

    result = processor.render_plan(plan, str(tmp_path / "final.mp4"), workdir=str(workdir))

    assert result == str(tmp_path / "final.mp4")
    assert len(dummy_runner.commands) == len(plan) + 1
    assert sum("concat" in command for command in dummy_runner.commands) == 1
    scroll_command = dummy_runner.commands[2]
    assert scroll_command[scroll_command.index("-t") + 1] == "2.000"
    assert workdir.exists()


def test_render_plan_propagates_command_failures(tmp_path: Path, make_pools):
    def failing_runner(command, **_):
        raise CommandExecutionError(command, returncode=1, stderr="Invalid data")

    pools, prober = make_pools(clips=[5])
    plan = emit_plan(allocate(5, pools, prober).timeline)

    with pytest.raises(CommandExecutionError):
        FFmpegMediaProcessor(command_runner=failing_runner).render_plan(
            plan, str(tmp_path / "final.mp4")
        )


def test_presets_override_encoder_arguments(dummy_runner):
    processor = FFmpegMediaProcessor(
        command_runner=dummy_runner, presets={"encode": ["-c:v", "libx265"]}
    )

    processor.trim("in.mp4", "out.mp4", 1.25)

    command = dummy_runner.commands[0]
    assert "libx265" in command
    assert "libx264" not in command
    assert command[command.index("-t") + 1] == "1.250"


def test_factory_uses_configuration(dummy_runner):
    config = CompositionConfig(ffmpeg_executable="/opt/ffmpeg", ffmpeg_loglevel="warning")

    processor = create_media_processor(config, command_runner=dummy_runner)
    processor.trim("a.mp4", "b.mp4", 1.0)

    assert dummy_runner.commands[0][:3] == ["/opt/ffmpeg", "-loglevel", "warning"]
