"""
Request models — one per flow.

Field names are snake_case; the camelCase names used by existing callers
(audioUrl, perImageSec, fontSize, lang, ...) are accepted as aliases.

Only types are validated here.  Required-for-the-flow checks (images present,
audio present, caption windows, fit mode) belong to planner.flows so they
surface as typed PlanningErrors rather than generic validation failures.
"""
from __future__ import annotations

from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


def _alias(*names: str) -> AliasChoices:
    return AliasChoices(*names)


# Language tags used by existing callers → canonical script names.
_LANGUAGE_ALIASES: dict[str, str] = {
    "hi": "devanagari",
    "roman": "latin",
}


class _Request(BaseModel):
    # NaN and infinity are not times, gains or sizes.
    model_config = ConfigDict(allow_inf_nan=False)


class CanvasSpec(_Request):
    """Target output geometry for one planning call."""
    width: int = 1080
    height: int = 1920
    fps: int = 30
    fit: str = "contain"


class CaptionCue(_Request):
    """
    A timed text overlay.  start/end are seconds on the output clock;
    visibility is the half-open window [start, end).
    x / y: "center" or an ffmpeg drawtext expression (e.g. "h-250").
    """
    text: str = ""
    start: float
    end: float
    language: Optional[str] = Field(default=None, validation_alias=_alias("language", "lang"))
    x: Optional[str] = None
    y: Optional[str] = None
    font_size: Optional[int] = Field(default=None, validation_alias=_alias("font_size", "fontSize"))

    @field_validator("text", mode="before")
    @classmethod
    def _none_text_is_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("language", mode="before")
    @classmethod
    def _canonical_language(cls, v: Any) -> Any:
        if isinstance(v, str):
            return _LANGUAGE_ALIASES.get(v, v)
        return v

    @field_validator("x", "y", mode="before")
    @classmethod
    def _numeric_position_to_str(cls, v: Any) -> Any:
        # Plain pixel offsets arrive as JSON numbers.
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v


class SlideshowRequest(_Request):
    """Images (+ optional audio, + optional captions) → mp4 slideshow."""
    images: list[str] = Field(default_factory=list)
    audio: Optional[str] = Field(default=None, validation_alias=_alias("audio", "audioUrl"))
    per_image_sec: float = Field(default=2, validation_alias=_alias("per_image_sec", "perImageSec"))
    width: int = 1080
    height: int = 1920
    fps: int = 30
    fit: str = "contain"
    captions: list[CaptionCue] = Field(default_factory=list)

    @property
    def canvas(self) -> CanvasSpec:
        return CanvasSpec(width=self.width, height=self.height, fps=self.fps, fit=self.fit)


class CaptionedSlideshowRequest(SlideshowRequest):
    """Slideshow with burned-in captions; audio is required by this flow."""


class BurnSubtitlesRequest(_Request):
    video: Optional[str] = Field(default=None, validation_alias=_alias("video", "videoUrl"))
    subtitles: Optional[str] = Field(
        default=None, validation_alias=_alias("subtitles", "subs", "srtUrl"),
    )


class ConcatRequest(_Request):
    videos: list[str] = Field(default_factory=list)


class TranscodeRequest(_Request):
    video: Optional[str] = Field(default=None, validation_alias=_alias("video", "videoUrl"))
    width: Optional[int] = None
    height: Optional[int] = None
    fps: Optional[int] = None
    video_bitrate: Optional[str] = Field(
        default=None, validation_alias=_alias("video_bitrate", "videoBitrate"),
    )


class MixAudioRequest(_Request):
    voice: Optional[str] = Field(default=None, validation_alias=_alias("voice", "voiceUrl"))
    music: Optional[str] = Field(default=None, validation_alias=_alias("music", "musicUrl"))
    voice_gain: float = Field(default=1.0, validation_alias=_alias("voice_gain", "voiceGain"))
    music_gain: float = Field(default=0.3, validation_alias=_alias("music_gain", "musicGain"))


class ThumbnailRequest(_Request):
    video: Optional[str] = Field(default=None, validation_alias=_alias("video", "videoUrl"))
    time_sec: float = Field(default=0.5, validation_alias=_alias("time_sec", "timeSec"))
