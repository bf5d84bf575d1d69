"""
Flow planners — one function per service operation.

Every flow takes a parsed request model plus a PlannerConfig and returns a
RenderPlan, or raises a PlanningError.  plan_request() is the single entry
point used by the CLI: it parses raw JSON-shaped dicts and dispatches by flow
name.

  slideshow            images (+audio) (+captions)  → mp4
  captioned-slideshow  images + audio + captions    → mp4
  burn-subtitles       video + subtitle file        → mp4
  concat               videos                       → mp4 (stream copy)
  transcode            video (+size/fps/bitrate)    → mp4
  mix-audio            voice + music                → m4a
  thumbnail            video + time                 → jpg
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from pydantic import BaseModel, ValidationError

from schemas.config import PlannerConfig
from schemas.render_plan import (
    AmixStage,
    FormatStage,
    OutputPolicy,
    RenderInput,
    RenderPlan,
    SubtitlesStage,
    VolumeStage,
)
from schemas.requests import (
    BurnSubtitlesRequest,
    CanvasSpec,
    CaptionedSlideshowRequest,
    ConcatRequest,
    MixAudioRequest,
    SlideshowRequest,
    ThumbnailRequest,
    TranscodeRequest,
)
from planner.assembler import assemble_plan, check_stage_order
from planner.captions import CaptionLayer
from planner.errors import (
    EmptyInputError,
    InvalidRequestError,
    MissingRequiredFieldError,
)
from planner.escaping import escape_filter_path
from planner.fit import build_fit_stage, validate_canvas
from planner.sources import local_path, media_source, media_sources
from planner.timeline import build_timeline

logger = logging.getLogger(__name__)


def _require(value: Any, field: str, flow: str) -> Any:
    if value is None or value == "":
        raise MissingRequiredFieldError(f"{flow}: {field} is required", field=field, value=value)
    return value


# ---------------------------------------------------------------------------
# Slideshows
# ---------------------------------------------------------------------------

def _plan_slideshow(
    flow: str,
    req: SlideshowRequest,
    config: PlannerConfig,
    default_font_size: int,
) -> RenderPlan:
    canvas = req.canvas
    timeline = build_timeline(media_sources(req.images, "image"), req.per_image_sec)
    fit = build_fit_stage(canvas)
    layer = CaptionLayer(config.fonts, config.caption_style, default_font_size=default_font_size)
    captions = layer.build(req.captions)
    audio = media_source(req.audio, "audio") if req.audio else None

    plan = assemble_plan(
        flow, canvas, timeline, fit,
        captions=captions, audio=audio, encoding=config.encoding,
    )
    logger.debug(
        "%s: %d images, %d captions, audio=%s, fit=%s",
        flow, len(req.images), len(captions), bool(audio), fit.mode,
    )
    return plan


def plan_slideshow(req: SlideshowRequest, config: PlannerConfig) -> RenderPlan:
    """Image slideshow; audio and captions optional."""
    return _plan_slideshow("slideshow", req, config, config.slideshow.caption_font_size)


def plan_captioned_slideshow(req: CaptionedSlideshowRequest, config: PlannerConfig) -> RenderPlan:
    """Image slideshow with burned-in captions; audio required."""
    _require(req.audio, "audio", "captioned-slideshow")
    return _plan_slideshow(
        "captioned-slideshow", req, config, config.captioned_slideshow.caption_font_size,
    )


# ---------------------------------------------------------------------------
# Single-video flows
# ---------------------------------------------------------------------------

def plan_burn_subtitles(req: BurnSubtitlesRequest, config: PlannerConfig) -> RenderPlan:
    video = _require(req.video, "video", "burn-subtitles")
    subtitles = _require(req.subtitles, "subtitles", "burn-subtitles")

    stages = [SubtitlesStage(path=escape_filter_path(local_path(subtitles)))]
    check_stage_order(stages)
    return RenderPlan(
        flow="burn-subtitles",
        inputs=[RenderInput(index=0, kind="file", source=media_source(video, "video"))],
        attachments=[media_source(subtitles, "subtitles")],
        filter_stages=stages,
        output=OutputPolicy(
            video_codec=config.encoding.video_codec,
            audio_codec="copy",
            maps=["0:v:0", "0:a?"],
        ),
    )


def plan_concat(req: ConcatRequest, config: PlannerConfig) -> RenderPlan:
    """Join videos end to end without re-encoding; inputs must share codecs."""
    if not req.videos:
        raise EmptyInputError("at least one video is required", field="videos", value=[])
    return RenderPlan(
        flow="concat",
        inputs=[RenderInput(index=0, kind="timeline")],
        concat_sources=media_sources(req.videos, "video"),
        output=OutputPolicy(stream_copy=True),
    )


def plan_transcode(req: TranscodeRequest, config: PlannerConfig) -> RenderPlan:
    """
    Re-encode one video.  width+height together letterbox it onto that
    canvas; a lone width or height is ignored.
    """
    video = _require(req.video, "video", "transcode")
    if req.fps is not None and req.fps <= 0:
        raise InvalidRequestError(f"fps must be > 0, got {req.fps}", field="fps", value=req.fps)

    stages: list = []
    if req.width and req.height:
        canvas = CanvasSpec(width=req.width, height=req.height, fps=req.fps or 30, fit="contain")
        stages.append(build_fit_stage(canvas))
    elif req.width or req.height:
        logger.debug("transcode: width and height must both be set to resize; ignoring")
    stages.append(FormatStage(pix_fmt=config.encoding.pix_fmt))
    check_stage_order(stages)

    return RenderPlan(
        flow="transcode",
        inputs=[RenderInput(index=0, kind="file", source=media_source(video, "video"))],
        filter_stages=stages,
        output=OutputPolicy(
            video_codec=config.encoding.video_codec,
            audio_codec=config.encoding.audio_codec,
            fps=req.fps,
            lock_frame_rate=req.fps is not None,
            video_bitrate=req.video_bitrate,
        ),
    )


def plan_thumbnail(req: ThumbnailRequest, config: PlannerConfig) -> RenderPlan:
    video = _require(req.video, "video", "thumbnail")
    if req.time_sec < 0:
        raise InvalidRequestError(
            f"time_sec must be >= 0, got {req.time_sec}", field="time_sec", value=req.time_sec,
        )
    return RenderPlan(
        flow="thumbnail",
        inputs=[RenderInput(
            index=0, kind="file", source=media_source(video, "video"), seek=req.time_sec,
        )],
        output=OutputPolicy(
            max_frames=1,
            image_quality=2,
            media_type="image/jpeg",
            suffix=".jpg",
        ),
    )


# ---------------------------------------------------------------------------
# Audio
# ---------------------------------------------------------------------------

def plan_mix_audio(req: MixAudioRequest, config: PlannerConfig) -> RenderPlan:
    """Voice over music: per-track gain, then amix for the longest input."""
    voice = _require(req.voice, "voice", "mix-audio")
    music = _require(req.music, "music", "mix-audio")
    for field in ("voice_gain", "music_gain"):
        gain = getattr(req, field)
        if gain < 0:
            raise InvalidRequestError(f"{field} must be >= 0, got {gain}", field=field, value=gain)

    return RenderPlan(
        flow="mix-audio",
        inputs=[
            RenderInput(index=0, kind="file", source=media_source(voice, "audio", index=0)),
            RenderInput(index=1, kind="file", source=media_source(music, "audio", index=1)),
        ],
        audio_stages=[
            VolumeStage(input_index=0, gain=req.voice_gain, label="v"),
            VolumeStage(input_index=1, gain=req.music_gain, label="m"),
            AmixStage(inputs=["v", "m"], duration="longest", dropout_transition=3, label="aout"),
        ],
        output=OutputPolicy(
            audio_codec=config.encoding.audio_codec,
            maps=["[aout]"],
            media_type="audio/mp4",
            suffix=".m4a",
        ),
    )


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------

FLOWS: dict[str, tuple[type[BaseModel], Callable[[Any, PlannerConfig], RenderPlan]]] = {
    "slideshow":           (SlideshowRequest, plan_slideshow),
    "captioned-slideshow": (CaptionedSlideshowRequest, plan_captioned_slideshow),
    "burn-subtitles":      (BurnSubtitlesRequest, plan_burn_subtitles),
    "concat":              (ConcatRequest, plan_concat),
    "transcode":           (TranscodeRequest, plan_transcode),
    "mix-audio":           (MixAudioRequest, plan_mix_audio),
    "thumbnail":           (ThumbnailRequest, plan_thumbnail),
}


def parse_request(model: type[BaseModel], raw: dict) -> BaseModel:
    """
    Validate *raw* into *model*, mapping pydantic errors onto PlanningErrors.

    Raises:
        MissingRequiredFieldError: a required field is absent.
        InvalidRequestError:       any other validation failure.
    """
    try:
        return model.model_validate(raw)
    except ValidationError as exc:
        err = exc.errors()[0]
        field = ".".join(str(part) for part in err["loc"])
        if err["type"] == "missing":
            raise MissingRequiredFieldError(f"{field} is required", field=field) from exc
        raise InvalidRequestError(
            f"{field}: {err['msg']}", field=field, value=err.get("input"),
        ) from exc


def plan_request(flow: str, raw: dict, config: Optional[PlannerConfig] = None) -> RenderPlan:
    """Parse *raw* for *flow* and return its RenderPlan."""
    if flow not in FLOWS:
        raise InvalidRequestError(
            f"unknown flow {flow!r}; expected one of {sorted(FLOWS)}", field="flow", value=flow,
        )
    model, planner = FLOWS[flow]
    request = parse_request(model, raw)
    return planner(request, config or PlannerConfig())
