"""
Unit tests for planner/fit.py.

Tests:
  - cover → scale+crop, contain → scale+pad (no upscaling).
  - fit_geometry bounds: contain never exceeds the canvas and keeps aspect
    within one pixel; cover always equals the canvas.
  - Unsupported fit modes and bad canvases are rejected.

No ffmpeg required.
"""
from __future__ import annotations

import pytest

from schemas.requests import CanvasSpec
from planner.errors import InvalidFitModeError, InvalidRequestError
from planner.fit import aspect_error_px, build_fit_stage, fit_geometry

_SOURCE_SIZES = [
    (640, 360), (360, 640), (400, 400), (4000, 3000), (3000, 4000),
    (1080, 1920), (1920, 1080), (7, 1000), (1000, 7), (1081, 1921), (50, 50),
]
_CANVASES = [(1080, 1920), (1920, 1080), (720, 720), (1280, 720)]


class TestBuildFitStage:

    def test_contain_chain_is_scale_pad(self):
        stage = build_fit_stage(CanvasSpec(width=1080, height=1920, fit="contain"))
        assert stage.kind == "fit"
        assert stage.mode == "contain"
        assert [op.op for op in stage.operations] == ["scale", "pad"]
        scale, pad = stage.operations
        assert scale.aspect == "decrease"
        assert scale.allow_upscale is False
        assert (pad.width, pad.height) == (1080, 1920)

    def test_cover_chain_is_scale_crop(self):
        stage = build_fit_stage(CanvasSpec(width=1080, height=1920, fit="cover"))
        assert [op.op for op in stage.operations] == ["scale", "crop"]
        scale, crop = stage.operations
        assert scale.aspect == "increase"
        assert (crop.width, crop.height) == (1080, 1920)

    def test_mode_argument_overrides_canvas(self):
        stage = build_fit_stage(CanvasSpec(fit="contain"), mode="cover")
        assert stage.mode == "cover"

    @pytest.mark.parametrize("mode", ["stretch", "", "COVER", "fill"])
    def test_invalid_mode_raises(self, mode):
        with pytest.raises(InvalidFitModeError) as exc_info:
            build_fit_stage(CanvasSpec(fit=mode))
        assert exc_info.value.field == "fit"
        assert exc_info.value.value == mode

    @pytest.mark.parametrize("field", ["width", "height", "fps"])
    def test_non_positive_canvas_raises(self, field):
        canvas = CanvasSpec(**{field: 0})
        with pytest.raises(InvalidRequestError) as exc_info:
            build_fit_stage(canvas)
        assert exc_info.value.field == field


class TestFitGeometry:

    @pytest.mark.parametrize("src", _SOURCE_SIZES)
    @pytest.mark.parametrize("canvas", _CANVASES)
    def test_contain_within_canvas_and_aspect(self, src, canvas):
        geo = fit_geometry(*src, *canvas, "contain")
        assert geo.scaled_width <= canvas[0]
        assert geo.scaled_height <= canvas[1]
        assert (geo.width, geo.height) == canvas
        assert aspect_error_px(*src, geo) <= 1.0

    @pytest.mark.parametrize("src", _SOURCE_SIZES)
    @pytest.mark.parametrize("canvas", _CANVASES)
    def test_cover_equals_canvas(self, src, canvas):
        geo = fit_geometry(*src, *canvas, "cover")
        assert (geo.width, geo.height) == canvas
        assert geo.scaled_width >= canvas[0]
        assert geo.scaled_height >= canvas[1]
        assert aspect_error_px(*src, geo) <= 1.0

    def test_contain_never_upscales(self):
        geo = fit_geometry(400, 400, 1080, 1920, "contain")
        assert (geo.scaled_width, geo.scaled_height) == (400, 400)
        assert (geo.x_offset, geo.y_offset) == (340, 760)

    def test_contain_pad_offsets_centre(self):
        geo = fit_geometry(1920, 1080, 1080, 1920, "contain")
        assert (geo.scaled_width, geo.scaled_height) == (1080, 608)
        assert geo.x_offset == 0
        assert geo.y_offset == (1920 - 608) // 2

    def test_cover_crop_offsets_centre(self):
        geo = fit_geometry(1920, 1080, 1080, 1920, "cover")
        assert geo.scaled_height == 1920
        assert geo.scaled_width == round(1920 * 1920 / 1080)
        assert geo.x_offset == (geo.scaled_width - 1080) // 2
        assert geo.y_offset == 0

    def test_invalid_mode(self):
        with pytest.raises(InvalidFitModeError):
            fit_geometry(100, 100, 100, 100, "fill")

    def test_zero_source_size(self):
        with pytest.raises(InvalidRequestError):
            fit_geometry(0, 100, 100, 100, "contain")
