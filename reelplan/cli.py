#!/usr/bin/env python3
"""
reelplan — short-form video composition CLI.

Subcommands
-----------
  reelplan plan FLOW --request REQ.json     Print the RenderPlan (no ffmpeg)
  reelplan render FLOW --request REQ.json --out PATH
                                            Plan + execute; print RenderResult
  reelplan probe PATH                       ffprobe format/streams as JSON
  reelplan version                          Installed ffmpeg version

Flows: slideshow, captioned-slideshow, burn-subtitles, concat, transcode,
mix-audio, thumbnail.

Exit codes: 0 success, 1 planning / request error, 2 render execution failure.

sys.path is patched so that the flat imports used by planner/, renderer/,
schemas/ and tests/ resolve from the installed package directory.
"""
from __future__ import annotations

import sys
from pathlib import Path

# When installed via pip, __file__ is inside site-packages/reelplan/.
_PKG_DIR = Path(__file__).resolve().parent
if str(_PKG_DIR) not in sys.path:
    sys.path.insert(0, str(_PKG_DIR))

import argparse
import json
import logging

from pydantic import ValidationError

from planner.errors import PlanningError
from planner.flows import FLOWS, plan_request
from renderer.backend import FFmpegBackend
from renderer.ffmpeg_runner import RenderExecutionError, get_ffmpeg_version, run_ffprobe
from schemas.config import load_config

EXIT_OK = 0
EXIT_PLANNING = 1
EXIT_RENDER = 2


def _load_request(path: Path) -> dict:
    raw = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(raw, dict):
        raise ValueError(f"request file must contain a JSON object: {path}")
    return raw


def _report_planning_error(exc: PlanningError) -> int:
    print(json.dumps(exc.to_dict(), default=str), file=sys.stderr)
    return EXIT_PLANNING


# =============================================================================
# Commands
# =============================================================================

def cmd_plan(flow: str, request_path: Path, config_path: Path | None = None) -> int:
    """Print the RenderPlan JSON for *flow*.  Pure; never spawns ffmpeg."""
    try:
        config = load_config(config_path)
        plan = plan_request(flow, _load_request(request_path), config)
    except PlanningError as exc:
        return _report_planning_error(exc)
    except (OSError, ValueError, ValidationError) as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return EXIT_PLANNING

    print(plan.model_dump_json(indent=2))
    return EXIT_OK


def cmd_render(
    flow: str,
    request_path: Path,
    out_path: Path,
    config_path: Path | None = None,
    dry_run: bool = False,
) -> int:
    """Plan *flow*, execute it with ffmpeg, print the RenderResult JSON."""
    try:
        config = load_config(config_path)
        plan = plan_request(flow, _load_request(request_path), config)
        out_path = Path(out_path)
        if not out_path.suffix:
            out_path = out_path.with_suffix(plan.output.suffix)
        result = FFmpegBackend(config, dry_run=dry_run).render(plan, out_path)
    except PlanningError as exc:
        return _report_planning_error(exc)
    except (RenderExecutionError, TimeoutError) as exc:
        print(f"ERROR: render execution failed: {exc}", file=sys.stderr)
        return EXIT_RENDER
    except (OSError, ValueError, ValidationError) as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return EXIT_PLANNING

    print(result.model_dump_json(indent=2))
    return EXIT_OK


def cmd_probe(path: Path) -> int:
    try:
        info = run_ffprobe(str(path))
    except RenderExecutionError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return EXIT_RENDER
    print(json.dumps(info, indent=2))
    return EXIT_OK


def cmd_version() -> int:
    try:
        print(get_ffmpeg_version())
    except RenderExecutionError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return EXIT_RENDER
    return EXIT_OK


# =============================================================================
# CLI entry point
# =============================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="reelplan",
        description="reelplan — plan and render short-form videos with ffmpeg",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging on stderr")
    sub = parser.add_subparsers(dest="command", required=True)

    # ── reelplan plan ─────────────────────────────────────────────────────────
    plan_parser = sub.add_parser("plan", help="Print the RenderPlan for a request")
    plan_parser.add_argument("flow", choices=sorted(FLOWS))
    plan_parser.add_argument(
        "--request", type=Path, required=True, metavar="PATH",
        help="Request JSON file",
    )
    plan_parser.add_argument(
        "--config", type=Path, default=None, metavar="PATH",
        help="PlannerConfig JSON file (fonts, per-flow defaults, codecs)",
    )

    # ── reelplan render ───────────────────────────────────────────────────────
    render_parser = sub.add_parser("render", help="Plan and render a request")
    render_parser.add_argument("flow", choices=sorted(FLOWS))
    render_parser.add_argument(
        "--request", type=Path, required=True, metavar="PATH",
        help="Request JSON file",
    )
    render_parser.add_argument(
        "--out", type=Path, required=True, metavar="PATH",
        help="Output media path (suffix defaults to the flow's media type)",
    )
    render_parser.add_argument(
        "--config", type=Path, default=None, metavar="PATH",
        help="PlannerConfig JSON file",
    )
    render_parser.add_argument(
        "--dry-run", action="store_true",
        help="Resolve assets and build the ffmpeg command without running it",
    )

    # ── reelplan probe / version ──────────────────────────────────────────────
    probe_parser = sub.add_parser("probe", help="ffprobe a media file")
    probe_parser.add_argument("path", type=Path)
    sub.add_parser("version", help="Print the ffmpeg version")

    return parser


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    if args.command == "plan":
        sys.exit(cmd_plan(args.flow, args.request, args.config))
    elif args.command == "render":
        sys.exit(cmd_render(
            args.flow, args.request, args.out,
            config_path=args.config, dry_run=args.dry_run,
        ))
    elif args.command == "probe":
        sys.exit(cmd_probe(args.path))
    elif args.command == "version":
        sys.exit(cmd_version())


if __name__ == "__main__":
    main()
