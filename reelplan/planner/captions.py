"""
Caption cues → drawtext instructions.

Each cue becomes one independent CaptionStage.  Stages keep the request's
order, so when two cues overlap in time the later-declared one is drawn on
top.  Position expressions are evaluated by the engine against the final
canvas, which is why caption stages always follow the fit stage.
"""
from __future__ import annotations

import logging
import math
from typing import Optional, Sequence

from schemas.config import CaptionStyle, FontTable
from schemas.render_plan import TIME_DECIMALS, CaptionStage
from schemas.requests import CaptionCue
from planner.errors import InvalidCaptionWindowError
from planner.escaping import escape_filter_path, escape_text

logger = logging.getLogger(__name__)

CENTER = "center"
_CENTER_X = "(w-text_w)/2"
_CENTER_Y = "(h-text_h)/2"


class CaptionLayer:
    """
    Builds caption stages with an injected font table and style.

    Usage::

        layer = CaptionLayer(config.fonts, config.caption_style, default_font_size=56)
        stages = layer.build(request.captions)
    """

    def __init__(
        self,
        fonts: FontTable,
        style: Optional[CaptionStyle] = None,
        default_font_size: int = 56,
    ) -> None:
        self.fonts = fonts
        self.style = style or CaptionStyle()
        self.default_font_size = default_font_size

    def build(self, cues: Sequence[CaptionCue]) -> list[CaptionStage]:
        """
        Validate every cue, then build one stage per cue in input order.

        Raises:
            InvalidCaptionWindowError: on the first cue whose window is empty or
                not finite; no stages are returned.
        """
        for idx, cue in enumerate(cues):
            validate_window(cue, idx)
        stages = [self.instruction(cue) for cue in cues]
        logger.debug("built %d caption stage(s)", len(stages))
        return stages

    def instruction(self, cue: CaptionCue) -> CaptionStage:
        return CaptionStage(
            font_file=escape_filter_path(self.fonts.font_for(cue.language)),
            text=escape_text(cue.text),
            x=self.resolve_x(cue.x),
            y=self.resolve_y(cue.y),
            font_size=cue.font_size or self.default_font_size,
            start=cue.start,
            end=cue.end,
            font_color=self.style.font_color,
            box_color=self.style.box_color,
            box_border=self.style.box_border,
            line_spacing=self.style.line_spacing,
        )

    def resolve_x(self, x: Optional[str]) -> str:
        if not x or x == CENTER:
            return _CENTER_X
        return x

    def resolve_y(self, y: Optional[str]) -> str:
        if y == CENTER:
            return _CENTER_Y
        if not y:
            return f"h-{self.style.bottom_offset}"
        return y


def validate_window(cue: CaptionCue, index: int = 0) -> None:
    """start and end must be finite and start < end at microsecond precision."""
    start, end = cue.start, cue.end
    finite = math.isfinite(start) and math.isfinite(end)
    if not (finite and round(start, TIME_DECIMALS) < round(end, TIME_DECIMALS)):
        raise InvalidCaptionWindowError(
            f"caption {index}: end ({cue.end}) must be greater than start ({cue.start})",
            field=f"captions[{index}]",
            value={"start": cue.start, "end": cue.end},
        )
