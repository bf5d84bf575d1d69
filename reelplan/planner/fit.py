"""
Fit transforms: reconcile a source's aspect ratio with a fixed canvas.

  cover   — scale up/down until the canvas is fully covered, centre-crop the
            overflow.  Output is exactly width×height.
  contain — scale down (never up) until the source fits inside the canvas,
            letterbox-pad the remainder, centred on both axes.

build_fit_stage() produces the operation chain for the plan; fit_geometry()
is the same policy evaluated on concrete pixel sizes.
"""
from __future__ import annotations

import math
from typing import NamedTuple, Optional

from schemas.render_plan import CropOp, FitStage, PadOp, ScaleOp
from schemas.requests import CanvasSpec
from planner.errors import InvalidFitModeError, InvalidRequestError

FIT_MODES: tuple[str, ...] = ("cover", "contain")


class FitGeometry(NamedTuple):
    scaled_width: int
    scaled_height: int
    x_offset: int      # pad offset (contain) or crop offset (cover)
    y_offset: int
    width: int         # final frame size == canvas size
    height: int


def validate_fit_mode(mode: Optional[str]) -> str:
    if mode not in FIT_MODES:
        raise InvalidFitModeError(
            f"unsupported fit mode {mode!r}; expected one of {list(FIT_MODES)}",
            field="fit",
            value=mode,
        )
    return mode


def validate_canvas(canvas: CanvasSpec) -> None:
    for name in ("width", "height", "fps"):
        value = getattr(canvas, name)
        if value <= 0:
            raise InvalidRequestError(f"{name} must be > 0, got {value}", field=name, value=value)


def build_fit_stage(canvas: CanvasSpec, mode: Optional[str] = None) -> FitStage:
    """
    Return the transform chain mapping any source onto *canvas*.

    *mode* defaults to canvas.fit.

    Raises:
        InvalidFitModeError: if the mode is not cover/contain.
        InvalidRequestError: if the canvas has a non-positive dimension.
    """
    mode = validate_fit_mode(canvas.fit if mode is None else mode)
    validate_canvas(canvas)
    w, h = canvas.width, canvas.height

    if mode == "cover":
        operations = [
            ScaleOp(width=w, height=h, aspect="increase", allow_upscale=True),
            CropOp(width=w, height=h),
        ]
    else:
        operations = [
            ScaleOp(width=w, height=h, aspect="decrease", allow_upscale=False),
            PadOp(width=w, height=h),
        ]
    return FitStage(mode=mode, width=w, height=h, operations=operations)


def fit_geometry(
    source_width: int,
    source_height: int,
    canvas_width: int,
    canvas_height: int,
    mode: str,
) -> FitGeometry:
    """
    Evaluate the fit policy for a concrete source size.

    Offsets use integer floor of (canvas - scaled) / 2 for contain and
    (scaled - canvas) / 2 for cover, matching the engine's centring.
    """
    validate_fit_mode(mode)
    if min(source_width, source_height, canvas_width, canvas_height) <= 0:
        raise InvalidRequestError(
            "fit_geometry requires positive dimensions",
            field="size",
            value=(source_width, source_height, canvas_width, canvas_height),
        )

    if mode == "cover":
        ratio = max(canvas_width / source_width, canvas_height / source_height)
        sw = max(canvas_width, round(source_width * ratio))
        sh = max(canvas_height, round(source_height * ratio))
        return FitGeometry(
            sw, sh, (sw - canvas_width) // 2, (sh - canvas_height) // 2,
            canvas_width, canvas_height,
        )

    ratio = min(canvas_width / source_width, canvas_height / source_height, 1.0)
    sw = max(1, min(canvas_width, round(source_width * ratio)))
    sh = max(1, min(canvas_height, round(source_height * ratio)))
    return FitGeometry(
        sw, sh, (canvas_width - sw) // 2, (canvas_height - sh) // 2,
        canvas_width, canvas_height,
    )


def aspect_error_px(source_width: int, source_height: int, geometry: FitGeometry) -> float:
    """Rounding error, in pixels, of the scaled size along its derived axis."""
    height_error = math.fabs(geometry.scaled_height - geometry.scaled_width * source_height / source_width)
    width_error = math.fabs(geometry.scaled_width - geometry.scaled_height * source_width / source_height)
    return min(height_error, width_error)
