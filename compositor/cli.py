"""Command line entry point for timeline composition and subtitle timing."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Mapping, Optional, Sequence

from pydantic import ValidationError

from compositor import logging_manager as log_mgr
from compositor.config.loader import CompositorSettings, get_settings, load_settings
from compositor.media.exceptions import MediaBackendError
from compositor.schemas import CompositionRequest, NarrationSubtitleRequest, SubtitleRequest
from compositor.services.composition_service import (
    CompositionService,
    synthesize_narration_subtitles,
    synthesize_subtitles,
)
from compositor.subtitles.errors import SubtitleProcessingError, SubtitleTimingError
from compositor.timeline.errors import CompositionError, NoSourcesAvailable

logger = log_mgr.get_logger().getChild("cli")

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_INVALID_REQUEST = 2


def _add_shared_arguments(parser: argparse.ArgumentParser) -> argparse.ArgumentParser:
    parser.add_argument(
        "--config",
        default=None,
        help="Path to a YAML settings file (defaults to conf/compositor.yaml).",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging output.")
    return parser


def build_cli_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="compositor",
        description="Compose duration-budgeted timelines and time subtitle fragments.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    compose_parser = subparsers.add_parser(
        "compose", help="Allocate a timeline for a composition request", allow_abbrev=False
    )
    compose_parser.add_argument("request", help="Path to a JSON composition request.")
    compose_parser.add_argument(
        "--execute",
        metavar="OUTPUT",
        help="Render the plan with ffmpeg and write the video to OUTPUT.",
    )
    compose_parser.add_argument(
        "--plan-out", metavar="FILE", help="Write the JSON response to FILE instead of stdout."
    )
    compose_parser.add_argument("--workdir", help="Directory for intermediate segment renders.")
    _add_shared_arguments(compose_parser)

    subtitles_parser = subparsers.add_parser(
        "subtitles",
        help="Time subtitle fragments for a narration block or a list of blocks",
        allow_abbrev=False,
    )
    subtitles_parser.add_argument("request", help="Path to a JSON subtitle request.")
    subtitles_parser.add_argument("--srt-out", metavar="FILE", help="Write the SRT track to FILE.")
    _add_shared_arguments(subtitles_parser)
    return parser


def parse_cli_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    return build_cli_parser().parse_args(argv)


def _load_request(path: str) -> Mapping[str, Any]:
    with open(path, "r", encoding="utf-8") as handle:
        payload = json.load(handle)
    if not isinstance(payload, Mapping):
        raise ValueError(f"Request file {path} must contain a JSON object")
    return payload


def _emit(payload: Mapping[str, Any], destination: Optional[str]) -> None:
    text = json.dumps(payload, indent=2, ensure_ascii=False)
    if destination:
        target = Path(destination)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(text + "\n", encoding="utf-8")
    else:
        sys.stdout.write(text + "\n")


def _run_compose(args: argparse.Namespace, settings: CompositorSettings) -> int:
    request = CompositionRequest.model_validate(_load_request(args.request))
    service = CompositionService(config=settings.composition)
    response = service.compose(request, output_path=args.execute, workdir=args.workdir)
    if response.shortfall > 0:
        logger.warning(
            "Timeline is %.3fs short of the %.3fs target",
            response.shortfall,
            response.target_duration,
            extra={"event": "cli.compose.shortfall"},
        )
    _emit(response.model_dump(), args.plan_out)
    return EXIT_OK


def _run_subtitles(args: argparse.Namespace, settings: CompositorSettings) -> int:
    payload = _load_request(args.request)
    if "blocks" in payload:
        response = synthesize_narration_subtitles(
            NarrationSubtitleRequest.model_validate(payload),
            config=settings.subtitles,
            output_path=args.srt_out,
        )
    else:
        response = synthesize_subtitles(
            SubtitleRequest.model_validate(payload),
            config=settings.subtitles,
            output_path=args.srt_out,
        )
    _emit(response.model_dump(), None)
    return EXIT_OK


def run_cli(argv: Optional[Sequence[str]] = None) -> int:
    """Parse ``argv`` and dispatch to the selected command, returning an exit code."""

    args = parse_cli_args(argv)
    log_mgr.configure_logging_level(debug_enabled=args.debug)

    try:
        settings = load_settings(args.config) if args.config else get_settings()
        if args.command == "compose":
            return _run_compose(args, settings)
        return _run_subtitles(args, settings)
    except ValidationError as exc:
        sys.stderr.write(f"Invalid request: {exc}\n")
        return EXIT_INVALID_REQUEST
    except SubtitleTimingError as exc:
        sys.stderr.write(f"Invalid subtitle request: {exc}\n")
        return EXIT_INVALID_REQUEST
    except (OSError, ValueError) as exc:
        sys.stderr.write(f"Unable to read request: {exc}\n")
        return EXIT_INVALID_REQUEST
    except NoSourcesAvailable as exc:
        logger.error(
            "Composition produced no segments: %s",
            exc,
            extra={"event": "cli.compose.no_sources"},
        )
        return EXIT_FAILURE
    except (CompositionError, MediaBackendError, SubtitleProcessingError) as exc:
        logger.error("Command failed: %s", exc, extra={"event": "cli.failed"})
        return EXIT_FAILURE


def main(argv: Optional[Sequence[str]] = None) -> int:
    return run_cli(argv)


__all__ = ["build_cli_parser", "main", "parse_cli_args", "run_cli"]
