"""
PlannerConfig — process-wide settings, built once at startup and passed
explicitly into the planner and the backend.

Font paths point at files on the render host; the planner only copies them
into caption stages, a missing font file is reported by ffmpeg at render time.

Load order: model defaults → JSON file (optional) → REELPLAN_* environment.
"""
from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class FontTable(BaseModel):
    """Language → font file.  devanagari has its own font; everything else is Latin."""
    model_config = ConfigDict(frozen=True)

    latin: str = "/app/fonts/NotoSans-Regular.ttf"
    devanagari: str = "/app/fonts/NotoSansDevanagari-Regular.ttf"

    def font_for(self, language: Optional[str]) -> str:
        return self.devanagari if language == "devanagari" else self.latin


class CaptionStyle(BaseModel):
    """drawtext box styling shared by every caption."""
    model_config = ConfigDict(frozen=True)

    font_color: str = "white"
    box_color: str = "black@0.45"
    box_border: int = 12
    line_spacing: int = 6
    bottom_offset: int = 250   # unset y → 250 px above the bottom edge


class FlowDefaults(BaseModel):
    """Per-flow request defaults.  Each flow owns its own values."""
    model_config = ConfigDict(frozen=True)

    caption_font_size: int = 56


class EncodingConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    video_codec: str = "libx264"
    audio_codec: str = "aac"
    pix_fmt: str = "yuv420p"


class PlannerConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    fonts: FontTable = Field(default_factory=FontTable)
    caption_style: CaptionStyle = Field(default_factory=CaptionStyle)
    slideshow: FlowDefaults = Field(
        default_factory=lambda: FlowDefaults(caption_font_size=48)
    )
    captioned_slideshow: FlowDefaults = Field(
        default_factory=lambda: FlowDefaults(caption_font_size=56)
    )
    encoding: EncodingConfig = Field(default_factory=EncodingConfig)
    ffmpeg_timeout: int = 600   # seconds per render


_ENV_FONT_LATIN = "REELPLAN_FONT_LATIN"
_ENV_FONT_DEVANAGARI = "REELPLAN_FONT_DEVANAGARI"
_ENV_FFMPEG_TIMEOUT = "REELPLAN_FFMPEG_TIMEOUT"


def load_config(path: Optional[Path] = None, environ: Optional[dict] = None) -> PlannerConfig:
    """
    Build a PlannerConfig from an optional JSON file plus environment overrides.

    Args:
        path:    JSON file with any subset of PlannerConfig fields.
        environ: Mapping to read overrides from (defaults to os.environ).

    Raises:
        FileNotFoundError:        if *path* is given but does not exist.
        pydantic.ValidationError: if the file content is not a valid config.
    """
    env = os.environ if environ is None else environ

    if path is not None:
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"config file not found: {path}")
        config = PlannerConfig.model_validate_json(path.read_text(encoding="utf-8"))
    else:
        config = PlannerConfig()

    font_updates: dict[str, str] = {}
    if env.get(_ENV_FONT_LATIN):
        font_updates["latin"] = env[_ENV_FONT_LATIN]
    if env.get(_ENV_FONT_DEVANAGARI):
        font_updates["devanagari"] = env[_ENV_FONT_DEVANAGARI]

    updates: dict = {}
    if font_updates:
        updates["fonts"] = config.fonts.model_copy(update=font_updates)
    if env.get(_ENV_FFMPEG_TIMEOUT):
        updates["ffmpeg_timeout"] = int(env[_ENV_FFMPEG_TIMEOUT])

    return config.model_copy(update=updates) if updates else config
