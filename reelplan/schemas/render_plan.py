"""
RenderPlan — the structured output of the composition planner.

A RenderPlan is engine-agnostic data:
  - inputs:        positional engine inputs (index 0 = visual, index 1 = audio)
  - timeline:      ordered (source, duration) segments for slideshow flows
  - filter_stages: ordered typed video stages (fit → format → captions)
  - audio_stages:  labelled audio graph nodes (mix-audio flow only)
  - output:        codec / frame-rate / mapping policy
  - truncation:    "none" | "shortest"

Nothing in this module knows ffmpeg syntax; renderer/command.py is the only
place a plan is turned into an argv.  Plans are frozen and produced fresh per
request.
"""
from __future__ import annotations

import hashlib
import json
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


# Times are written to ffmpeg in seconds with microsecond precision
# (AV_TIME_BASE); planning rejects values that would round to zero.
TIME_DECIMALS = 6


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


# ---------------------------------------------------------------------------
# Sources and timeline
# ---------------------------------------------------------------------------

class MediaSource(_Frozen):
    """
    One input asset.  index is the asset's position in the request list for
    its role (images 0..N-1, the single audio track 0, ...).
    """
    index: int
    path: str
    kind: Literal["image", "audio", "video", "subtitles"] = "image"


class TimelineSegment(_Frozen):
    """One (source, duration) pair; duration=None marks the terminal hold segment."""
    source: MediaSource
    duration: Optional[float] = None


class RenderInput(_Frozen):
    """
    Positional engine input.

    kind="timeline" — the slideshow/concat list; the backend writes the
                      plan's timeline (or concat_sources) to an ffconcat file.
    kind="file"     — a single media file taken from *source*.
    seek            — input-side seek in seconds (thumbnail flow).
    """
    index: int
    kind: Literal["timeline", "file"] = "file"
    source: Optional[MediaSource] = None
    seek: Optional[float] = None


# ---------------------------------------------------------------------------
# Fit transform operations
# ---------------------------------------------------------------------------

class ScaleOp(_Frozen):
    """Aspect-preserving scale into a width×height box."""
    op: Literal["scale"] = "scale"
    width: int
    height: int
    aspect: Literal["increase", "decrease"]
    allow_upscale: bool = True


class CropOp(_Frozen):
    """Centre crop to exactly width×height."""
    op: Literal["crop"] = "crop"
    width: int
    height: int


class PadOp(_Frozen):
    """Centre pad (letterbox) to exactly width×height."""
    op: Literal["pad"] = "pad"
    width: int
    height: int
    color: str = "black"


TransformOp = Annotated[Union[ScaleOp, CropOp, PadOp], Field(discriminator="op")]


# ---------------------------------------------------------------------------
# Video stages
# ---------------------------------------------------------------------------

class FitStage(_Frozen):
    kind: Literal["fit"] = "fit"
    mode: Literal["cover", "contain"]
    width: int
    height: int
    operations: list[TransformOp]


class FormatStage(_Frozen):
    kind: Literal["format"] = "format"
    pix_fmt: str = "yuv420p"


class CaptionStage(_Frozen):
    """
    One drawtext instruction.  *text* is already escaped by
    planner.escaping.escape_text; nothing downstream escapes it again.
    Visible on the half-open window [start, end) of the output clock.
    """
    kind: Literal["caption"] = "caption"
    font_file: str
    text: str
    x: str
    y: str
    font_size: int
    start: float
    end: float
    font_color: str = "white"
    box: bool = True
    box_color: str = "black@0.45"
    box_border: int = 12
    line_spacing: int = 6


class SubtitlesStage(_Frozen):
    """Burn a subtitle file into the picture; *path* is already escaped."""
    kind: Literal["subtitles"] = "subtitles"
    path: str


VideoStage = Annotated[
    Union[FitStage, FormatStage, CaptionStage, SubtitlesStage],
    Field(discriminator="kind"),
]


# ---------------------------------------------------------------------------
# Audio stages (labelled graph nodes)
# ---------------------------------------------------------------------------

class VolumeStage(_Frozen):
    kind: Literal["volume"] = "volume"
    input_index: int
    gain: float
    label: str


class AmixStage(_Frozen):
    kind: Literal["amix"] = "amix"
    inputs: list[str]
    duration: Literal["longest", "shortest", "first"] = "longest"
    dropout_transition: float = 3
    label: str


AudioStage = Annotated[Union[VolumeStage, AmixStage], Field(discriminator="kind")]


# ---------------------------------------------------------------------------
# Output policy and plan
# ---------------------------------------------------------------------------

class OutputPolicy(_Frozen):
    """
    Output encoding policy.

    stream_copy=True copies every stream unchanged and ignores the codecs.
    lock_frame_rate=True forces a constant *fps* output clock so caption
    windows land on predictable frames.
    maps are output stream selectors: input references ("0:v") or graph
    labels ("aout").
    """
    video_codec: Optional[str] = None
    audio_codec: Optional[str] = None
    stream_copy: bool = False
    fps: Optional[int] = None
    lock_frame_rate: bool = False
    video_bitrate: Optional[str] = None
    max_frames: Optional[int] = None
    image_quality: Optional[int] = None
    maps: list[str] = Field(default_factory=list)
    media_type: str = "video/mp4"
    suffix: str = ".mp4"


class RenderPlan(_Frozen):
    """Ordered, deterministic render description consumed once by a backend."""
    schema_version: str = "1.0.0"
    flow: str
    inputs: list[RenderInput]
    timeline: list[TimelineSegment] = Field(default_factory=list)
    concat_sources: list[MediaSource] = Field(default_factory=list)
    attachments: list[MediaSource] = Field(default_factory=list)   # files read by filter stages
    filter_stages: list[VideoStage] = Field(default_factory=list)
    audio_stages: list[AudioStage] = Field(default_factory=list)
    output: OutputPolicy = Field(default_factory=OutputPolicy)
    truncation: Literal["none", "shortest"] = "none"

    def sources(self) -> list[MediaSource]:
        """Every distinct file the plan reads, in first-reference order."""
        found: list[MediaSource] = []
        candidates = [seg.source for seg in self.timeline]
        candidates += [inp.source for inp in self.inputs if inp.source is not None]
        candidates += list(self.concat_sources) + list(self.attachments)
        for src in candidates:
            if src not in found:
                found.append(src)
        return found

    def digest(self) -> str:
        """SHA-256 of canonical JSON (sorted keys, compact separators, UTF-8)."""
        canonical = json.dumps(
            self.model_dump(mode="json"),
            sort_keys=True, separators=(",", ":"), ensure_ascii=False,
        )
        return hashlib.sha256(canonical.encode("utf-8")).hexdigest()

    @property
    def stage_kinds(self) -> list[str]:
        return [stage.kind for stage in self.filter_stages]
