"""
RenderPlanAssembler — composes timeline, fit chain, captions and audio into
one RenderPlan.

Positional inputs (deterministic):
  0  visual — the slideshow timeline (one concat input) or a single video
  1  audio  — only when an audio source is present

Video stage order is fixed:
  fit → format → captions (input order) → output maps
Captions use final-canvas coordinates, so drawing them before the fit
stage would misplace them.  check_stage_order() enforces this for every
plan, including the ones built outside the assembler.

Pure: no I/O, no shared state.
"""
from __future__ import annotations

from typing import Optional, Sequence, Union

from schemas.config import EncodingConfig
from schemas.render_plan import (
    CaptionStage,
    FitStage,
    FormatStage,
    MediaSource,
    OutputPolicy,
    RenderInput,
    RenderPlan,
    TimelineSegment,
)
from schemas.requests import CanvasSpec

VISUAL_INPUT_INDEX = 0
AUDIO_INPUT_INDEX = 1

_STAGE_RANK: dict[str, int] = {
    "fit": 0,
    "format": 1,
    "caption": 2,
    "subtitles": 2,
}


def check_stage_order(stages: Sequence) -> None:
    """Raise ValueError if *stages* are not in fit → format → overlay order."""
    last_rank = -1
    for stage in stages:
        rank = _STAGE_RANK[stage.kind]
        if rank < last_rank:
            raise ValueError(
                f"filter stage {stage.kind!r} out of order: "
                f"{[s.kind for s in stages]}"
            )
        last_rank = rank


def assemble_plan(
    flow: str,
    canvas: CanvasSpec,
    visual: Union[Sequence[TimelineSegment], MediaSource],
    fit: FitStage,
    captions: Sequence[CaptionStage] = (),
    audio: Optional[MediaSource] = None,
    encoding: Optional[EncodingConfig] = None,
) -> RenderPlan:
    """
    Build a RenderPlan.

    Args:
        flow:     Flow name recorded on the plan.
        canvas:   Target geometry; canvas.fps locks the output frame rate.
        visual:   Timeline segments (slideshow) or one pre-existing video.
        fit:      Fit stage from planner.fit.build_fit_stage.
        captions: Caption stages in request order.
        audio:    Optional audio track; enables shortest-stream truncation.
        encoding: Codec / pixel format choices.
    """
    encoding = encoding or EncodingConfig()

    if isinstance(visual, MediaSource):
        timeline: list[TimelineSegment] = []
        inputs = [RenderInput(index=VISUAL_INPUT_INDEX, kind="file", source=visual)]
    else:
        timeline = list(visual)
        inputs = [RenderInput(index=VISUAL_INPUT_INDEX, kind="timeline")]

    maps = [f"{VISUAL_INPUT_INDEX}:v:0"]
    if audio is not None:
        inputs.append(RenderInput(index=AUDIO_INPUT_INDEX, kind="file", source=audio))
        maps.append(f"{AUDIO_INPUT_INDEX}:a:0")

    stages = [fit, FormatStage(pix_fmt=encoding.pix_fmt), *captions]
    check_stage_order(stages)

    return RenderPlan(
        flow=flow,
        inputs=inputs,
        timeline=timeline,
        filter_stages=stages,
        output=OutputPolicy(
            video_codec=encoding.video_codec,
            audio_codec=encoding.audio_codec if audio is not None else None,
            fps=canvas.fps,
            lock_frame_rate=True,
            maps=maps,
        ),
        truncation="shortest" if audio is not None else "none",
    )
