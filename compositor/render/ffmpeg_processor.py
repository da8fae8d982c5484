"""FFmpeg-backed media processor."""

from __future__ import annotations

import os
import re
import shutil
import tempfile
from typing import Iterable, Mapping, MutableMapping, Sequence

from compositor import logging_manager as log_mgr
from compositor.media.command_runner import run_command
from compositor.timeline.emitter import ConcatenationPlan, PlanEntry, concat_list
from compositor.timeline.models import SegmentKind

from .base import MediaProcessor

logger = log_mgr.get_logger().getChild("render.ffmpeg")

DEFAULT_ENCODE_PRESET: Sequence[str] = ("-c:v", "libx264", "-pix_fmt", "yuv420p")
DEFAULT_AUDIO_PRESET: Sequence[str] = ("-c:a", "aac")
SILENT_AUDIO_SOURCE = "anullsrc=channel_layout=stereo:sample_rate=44100"

_RGB_PATTERN = re.compile(r"rgb\((\d+),\s*(\d+),\s*(\d+)\)")


def parse_color_for_ffmpeg(color: str | None) -> str:
    """Convert ``#RGB``, ``#RRGGBB`` or ``rgb(r,g,b)`` to ffmpeg's ``0xRRGGBB``.

    Anything unrecognised maps to black.
    """

    if not color:
        return "0x000000"
    value = color.strip()
    if value.startswith("#"):
        hex_part = value[1:]
        if len(hex_part) == 3:
            return "0x" + "".join(char * 2 for char in hex_part)
        if len(hex_part) == 6:
            return f"0x{hex_part}"
    match = _RGB_PATTERN.search(value)
    if match:
        channels = (min(255, int(group)) for group in match.groups())
        return "0x" + "".join(f"{channel:02x}" for channel in channels)
    return "0x000000"


def _seconds(value: float) -> str:
    return f"{value:.3f}"


class FFmpegMediaProcessor(MediaProcessor):
    """Assemble ffmpeg commands for plan entries and run them."""

    def __init__(
        self,
        *,
        executable: str = "ffmpeg",
        loglevel: str = "error",
        pad_color: str = "#000000",
        presets: Mapping[str, Iterable[str] | str] | None = None,
        command_runner=run_command,
        timeout: float | None = None,
    ) -> None:
        self._executable = executable
        self._loglevel = loglevel
        self._pad_color = parse_color_for_ffmpeg(pad_color)
        self._presets = self._normalise_presets(presets or {})
        self._run_external = command_runner
        self._timeout = timeout

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def normalize(
        self,
        location: str,
        output_path: str,
        *,
        frame_size: Sequence[int],
        frame_rate: int,
        duration: float | None = None,
    ) -> str:
        width, height = frame_size
        command = self._base_command()
        command.extend(["-i", location])
        if duration is not None:
            command.extend(["-t", _seconds(duration)])
        command.extend(
            [
                "-vf",
                (
                    f"scale={width}:{height}:force_original_aspect_ratio=decrease,"
                    f"pad={width}:{height}:(ow-iw)/2:(oh-ih)/2:color={self._pad_color},"
                    "setsar=1"
                ),
            ]
        )
        command.extend(self._preset("encode", DEFAULT_ENCODE_PRESET))
        command.extend(["-r", str(frame_rate), "-map", "0:v:0", "-map", "0:a?"])
        command.extend(self._preset("audio", DEFAULT_AUDIO_PRESET))
        command.append(output_path)
        self._run_command(command)
        return output_path

    def render_scroll(
        self,
        image_location: str,
        output_path: str,
        *,
        duration: float,
        scroll_distance: int,
        scaled_height: int,
        frame_size: Sequence[int],
        frame_rate: int,
    ) -> str:
        width, height = frame_size
        speed = scroll_distance / duration
        crop_y = f"min(t*{speed:.4f}\\,{scroll_distance})"
        command = self._base_command()
        command.extend(["-loop", "1", "-framerate", str(frame_rate), "-i", image_location])
        command.extend(["-f", "lavfi", "-i", SILENT_AUDIO_SOURCE])
        command.extend(
            [
                "-vf",
                f"scale={width}:{scaled_height},crop=w={width}:h={height}:x=0:y='{crop_y}',"
                f"setsar=1,fps={frame_rate}",
                "-t",
                _seconds(duration),
            ]
        )
        command.extend(self._preset("encode", DEFAULT_ENCODE_PRESET))
        command.extend(["-map", "0:v:0", "-map", "1:a:0"])
        command.extend(self._preset("audio", DEFAULT_AUDIO_PRESET))
        command.append(output_path)
        self._run_command(command)
        return output_path

    def render_still(
        self,
        image_location: str,
        output_path: str,
        *,
        duration: float,
        scaled_height: int | None,
        frame_size: Sequence[int],
        frame_rate: int,
    ) -> str:
        width, height = frame_size
        target_height = scaled_height or height
        command = self._base_command()
        command.extend(["-loop", "1", "-framerate", str(frame_rate), "-i", image_location])
        command.extend(["-f", "lavfi", "-t", _seconds(duration), "-i", SILENT_AUDIO_SOURCE])
        command.extend(
            [
                "-vf",
                (
                    f"scale={width}:{target_height}:force_original_aspect_ratio=decrease,"
                    f"pad={width}:{height}:(ow-iw)/2:(oh-ih)/2:color={self._pad_color},"
                    "setsar=1"
                ),
                "-t",
                _seconds(duration),
            ]
        )
        command.extend(self._preset("encode", DEFAULT_ENCODE_PRESET))
        command.extend(["-r", str(frame_rate), "-shortest", "-map", "0:v:0", "-map", "1:a:0"])
        command.extend(self._preset("audio", DEFAULT_AUDIO_PRESET))
        command.append(output_path)
        self._run_command(command)
        return output_path

    def trim(self, path: str, output_path: str, duration: float) -> str:
        command = self._base_command()
        command.extend(["-i", path, "-t", _seconds(duration)])
        command.extend(self._preset("encode", DEFAULT_ENCODE_PRESET))
        command.extend(self._preset("audio", DEFAULT_AUDIO_PRESET))
        command.append(output_path)
        self._run_command(command)
        return output_path

    def concatenate(self, paths: Sequence[str], output_path: str) -> str:
        if not paths:
            raise ValueError("No video files provided for concatenation")

        os.makedirs(os.path.dirname(output_path) or ".", exist_ok=True)
        concat_list_path = f"{output_path}.concat.txt"
        with open(concat_list_path, "w", encoding="utf-8") as handle:
            handle.write(concat_list(paths))
            handle.write("\n")

        command = self._base_command()
        command.extend(["-f", "concat", "-safe", "0", "-i", concat_list_path])
        command.extend(self._preset("encode", DEFAULT_ENCODE_PRESET))
        command.extend(self._preset("audio", DEFAULT_AUDIO_PRESET))
        command.append(output_path)

        try:
            self._run_command(command)
        finally:
            self._safe_remove(concat_list_path)
        return output_path

    def render_plan(
        self,
        plan: ConcatenationPlan,
        output_path: str,
        *,
        workdir: str | None = None,
        cleanup: bool = True,
    ) -> str:
        if not len(plan):
            raise ValueError("Cannot render an empty plan")

        owns_workdir = workdir is None
        work_root = workdir or tempfile.mkdtemp(prefix="compositor-")
        os.makedirs(work_root, exist_ok=True)

        logger.info(
            "Rendering plan with %s entries (%.3fs)",
            len(plan),
            plan.total_duration,
            extra={"event": "render.plan.start", "attributes": {"output": output_path}},
        )

        rendered: list[str] = []
        try:
            for entry in plan:
                rendered.append(self._render_entry(entry, work_root))
            self.concatenate(rendered, output_path)
        finally:
            if cleanup:
                for path in rendered:
                    self._safe_remove(path)
                if owns_workdir:
                    shutil.rmtree(work_root, ignore_errors=True)

        logger.info(
            "Plan rendered to %s",
            output_path,
            extra={"event": "render.plan.complete", "attributes": {"output": output_path}},
        )
        return output_path

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _render_entry(self, entry: PlanEntry, work_root: str) -> str:
        frame_size = (entry.frame_width, entry.frame_height)
        target = os.path.join(work_root, f"segment-{entry.index:03d}.mp4")
        if entry.kind is SegmentKind.CLIP:
            return self.normalize(
                entry.location,
                target,
                frame_size=frame_size,
                frame_rate=entry.frame_rate,
                duration=entry.duration if entry.trimmed else None,
            )
        if entry.kind is SegmentKind.SCROLLING_IMAGE:
            return self.render_scroll(
                entry.location,
                target,
                duration=entry.duration,
                scroll_distance=entry.scroll_distance,
                scaled_height=entry.scaled_height or entry.frame_height + entry.scroll_distance,
                frame_size=frame_size,
                frame_rate=entry.frame_rate,
            )
        return self.render_still(
            entry.location,
            target,
            duration=entry.duration,
            scaled_height=entry.scaled_height,
            frame_size=frame_size,
            frame_rate=entry.frame_rate,
        )

    def _base_command(self) -> list[str]:
        return [self._executable, "-loglevel", self._loglevel, "-y"]

    def _run_command(self, command: Sequence[str]) -> None:
        logger.debug(
            "Executing FFmpeg command", extra={"event": "render.ffmpeg", "cmd": list(command)}
        )
        self._run_external(command, timeout=self._timeout)

    def _preset(self, name: str, fallback: Sequence[str]) -> list[str]:
        preset = self._presets.get(name)
        if preset is None:
            return list(fallback)
        if isinstance(preset, str):
            return [preset]
        return [str(part) for part in preset]

    @staticmethod
    def _normalise_presets(
        presets: Mapping[str, Iterable[str] | str]
    ) -> MutableMapping[str, Iterable[str] | str]:
        return {str(key): value for key, value in presets.items() if key}

    @staticmethod
    def _safe_remove(path: str) -> None:
        try:
            os.remove(path)
        except FileNotFoundError:
            return
        except OSError as exc:  # pragma: no cover - best effort cleanup
            logger.debug(
                "Failed to remove temporary file %s: %s",
                path,
                exc,
                extra={"event": "render.cleanup"},
            )


__all__ = ["FFmpegMediaProcessor", "parse_color_for_ffmpeg"]
