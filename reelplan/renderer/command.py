"""
RenderPlan → ffmpeg argv.

This is the only module that knows ffmpeg's textual syntax.  Plan strings
(caption text, font and subtitle paths) arrive already escaped and are written
verbatim; only concat-list paths are escaped here, because they are resolved
by the backend after planning.
"""
from __future__ import annotations

from pathlib import Path
from typing import Callable, Optional, Sequence

from schemas.render_plan import (
    AmixStage,
    CaptionStage,
    CropOp,
    FitStage,
    FormatStage,
    MediaSource,
    PadOp,
    RenderPlan,
    ScaleOp,
    SubtitlesStage,
    TIME_DECIMALS,
    VolumeStage,
)
from planner.escaping import escape_concat_path

PathOf = Callable[[MediaSource], str]


def format_number(value: float) -> str:
    """Compact decimal: 2.0 → "2", 1.25 → "1.25", microsecond precision."""
    text = f"{value:.{TIME_DECIMALS}f}".rstrip("0").rstrip(".")
    return "0" if text in ("", "-0") else text


# ---------------------------------------------------------------------------
# Filter serialisation
# ---------------------------------------------------------------------------

def _transform_op(op) -> str:
    if isinstance(op, ScaleOp):
        if op.allow_upscale:
            size = f"{op.width}:{op.height}"
        else:
            size = f"w='min({op.width},iw)':h='min({op.height},ih)'"
        return f"scale={size}:force_original_aspect_ratio={op.aspect}"
    if isinstance(op, CropOp):
        return f"crop={op.width}:{op.height}"
    if isinstance(op, PadOp):
        return f"pad={op.width}:{op.height}:(ow-iw)/2:(oh-ih)/2:{op.color}"
    raise TypeError(f"unknown transform op: {op!r}")


def stage_filter(stage) -> str:
    """Serialise one video stage to its filter text."""
    if isinstance(stage, FitStage):
        return ",".join(_transform_op(op) for op in stage.operations)
    if isinstance(stage, FormatStage):
        return f"format={stage.pix_fmt}"
    if isinstance(stage, CaptionStage):
        return (
            f"drawtext=fontfile='{stage.font_file}'"
            f":text='{stage.text}'"
            f":x={stage.x}:y={stage.y}"
            f":fontsize={stage.font_size}"
            f":fontcolor={stage.font_color}"
            f":box={1 if stage.box else 0}"
            f":boxcolor={stage.box_color}"
            f":boxborderw={stage.box_border}"
            f":line_spacing={stage.line_spacing}"
            f":enable='gte(t,{format_number(stage.start)})*lt(t,{format_number(stage.end)})'"
        )
    if isinstance(stage, SubtitlesStage):
        return f"subtitles='{stage.path}'"
    raise TypeError(f"unknown video stage: {stage!r}")


def video_filter_chain(stages: Sequence) -> str:
    return ",".join(stage_filter(s) for s in stages)


def audio_filter_graph(stages: Sequence) -> str:
    parts: list[str] = []
    for stage in stages:
        if isinstance(stage, VolumeStage):
            parts.append(
                f"[{stage.input_index}:a]volume={format_number(stage.gain)}[{stage.label}]"
            )
        elif isinstance(stage, AmixStage):
            labels = "".join(f"[{label}]" for label in stage.inputs)
            parts.append(
                f"{labels}amix=inputs={len(stage.inputs)}"
                f":duration={stage.duration}"
                f":dropout_transition={format_number(stage.dropout_transition)}"
                f"[{stage.label}]"
            )
        else:
            raise TypeError(f"unknown audio stage: {stage!r}")
    return ";".join(parts)


# ---------------------------------------------------------------------------
# Concat list
# ---------------------------------------------------------------------------

def concat_list_text(plan: RenderPlan, path_of: Optional[PathOf] = None) -> str:
    """
    ffconcat list for the plan's timeline (with durations) or its
    concat_sources (without).  The timeline's trailing hold segment is
    written as a bare ``file`` line.
    """
    path_of = path_of or _plain_path
    lines = ["ffconcat version 1.0"]
    if plan.timeline:
        for seg in plan.timeline:
            lines.append(f"file '{escape_concat_path(path_of(seg.source))}'")
            if seg.duration is not None:
                lines.append(f"duration {format_number(seg.duration)}")
    else:
        for src in plan.concat_sources:
            lines.append(f"file '{escape_concat_path(path_of(src))}'")
    return "\n".join(lines) + "\n"


def needs_concat_list(plan: RenderPlan) -> bool:
    return any(inp.kind == "timeline" for inp in plan.inputs)


# ---------------------------------------------------------------------------
# Command
# ---------------------------------------------------------------------------

def build_command(
    plan: RenderPlan,
    output_path: Path,
    concat_list_path: Optional[Path] = None,
    path_of: Optional[PathOf] = None,
) -> list[str]:
    """
    Build the complete ffmpeg argv for *plan*.

    Args:
        plan:             RenderPlan to execute.
        output_path:      Destination media file.
        concat_list_path: Where concat_list_text(plan) was written; required
                          when the plan has a timeline input.
        path_of:          Maps a MediaSource to the local path to read
                          (defaults to source.path).

    Raises:
        ValueError: if a timeline input is present without *concat_list_path*.
    """
    path_of = path_of or _plain_path
    out = plan.output
    cmd: list[str] = ["ffmpeg", "-y"]

    for inp in plan.inputs:
        if inp.seek is not None:
            cmd += ["-ss", format_number(inp.seek)]
        if inp.kind == "timeline":
            if concat_list_path is None:
                raise ValueError("plan has a timeline input but no concat_list_path was given")
            cmd += ["-f", "concat", "-safe", "0", "-i", str(concat_list_path)]
        else:
            cmd += ["-i", path_of(inp.source)]

    if plan.filter_stages:
        cmd += ["-vf", video_filter_chain(plan.filter_stages)]
    if plan.audio_stages:
        cmd += ["-filter_complex", audio_filter_graph(plan.audio_stages)]
    for selector in out.maps:
        cmd += ["-map", selector]

    if out.stream_copy:
        cmd += ["-c", "copy"]
    else:
        if out.video_codec:
            cmd += ["-c:v", out.video_codec]
        if out.video_bitrate:
            cmd += ["-b:v", out.video_bitrate]
        if out.audio_codec:
            cmd += ["-c:a", out.audio_codec]

    if out.fps is not None:
        if out.lock_frame_rate:
            cmd += ["-fps_mode", "cfr"]
        cmd += ["-r", str(out.fps)]
    if out.max_frames is not None:
        cmd += ["-frames:v", str(out.max_frames)]
    if out.image_quality is not None:
        cmd += ["-q:v", str(out.image_quality)]
    if plan.truncation == "shortest":
        cmd += ["-shortest"]

    cmd.append(str(output_path))
    return cmd


def _plain_path(source: MediaSource) -> str:
    return source.path
