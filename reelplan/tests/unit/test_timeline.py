"""
Unit tests for planner/timeline.py.

Tests:
  - N images → N+1 segments; the last two reference the same source.
  - The hold segment has no duration.
  - Empty input and non-positive or non-finite durations are rejected with typed errors.

No ffmpeg required.
"""
from __future__ import annotations

import pytest

from schemas.render_plan import MediaSource
from planner.errors import EmptyInputError, InvalidDurationError, PlanningError
from planner.sources import media_sources
from planner.timeline import build_timeline, timeline_duration


def _sources(n: int) -> list[MediaSource]:
    return media_sources([f"/img/{i}.jpg" for i in range(n)], "image")


class TestBuildTimeline:

    @pytest.mark.parametrize("n", [1, 2, 3, 10])
    def test_n_plus_one_segments(self, n):
        segments = build_timeline(_sources(n), 2)
        assert len(segments) == n + 1

    @pytest.mark.parametrize("n,d", [(1, 0.5), (3, 2), (5, 1.25)])
    def test_first_n_carry_duration_last_is_hold(self, n, d):
        segments = build_timeline(_sources(n), d)
        assert [s.duration for s in segments[:n]] == [d] * n
        assert segments[-1].duration is None

    def test_last_two_reference_same_source(self):
        segments = build_timeline(_sources(4), 2)
        assert segments[-1].source == segments[-2].source
        assert segments[-1].source.path == "/img/3.jpg"

    def test_presentation_order_preserved(self):
        segments = build_timeline(_sources(3), 2)
        assert [s.source.index for s in segments] == [0, 1, 2, 2]

    def test_single_image(self):
        segments = build_timeline(_sources(1), 3)
        assert [(s.source.path, s.duration) for s in segments] == [
            ("/img/0.jpg", 3.0),
            ("/img/0.jpg", None),
        ]

    def test_empty_input_raises(self):
        with pytest.raises(EmptyInputError) as exc_info:
            build_timeline([], 2)
        assert exc_info.value.field == "images"

    @pytest.mark.parametrize("d", [0, -1, -0.001])
    def test_non_positive_duration_raises(self, d):
        with pytest.raises(InvalidDurationError) as exc_info:
            build_timeline(_sources(2), d)
        assert exc_info.value.field == "per_image_sec"
        assert exc_info.value.value == d

    @pytest.mark.parametrize("d", [float("nan"), float("inf"), float("-inf")])
    def test_non_finite_duration_raises(self, d):
        with pytest.raises(InvalidDurationError):
            build_timeline(_sources(2), d)

    def test_duration_below_a_microsecond_raises(self):
        with pytest.raises(InvalidDurationError):
            build_timeline(_sources(2), 1e-7)

    def test_sub_millisecond_duration_kept(self):
        assert build_timeline(_sources(1), 0.0004)[0].duration == 0.0004

    def test_errors_are_planning_errors(self):
        with pytest.raises(PlanningError):
            build_timeline([], 2)

    def test_empty_checked_before_duration(self):
        with pytest.raises(EmptyInputError):
            build_timeline([], -1)


class TestTimelineDuration:

    def test_hold_segment_adds_nothing(self):
        assert timeline_duration(build_timeline(_sources(3), 2)) == 6.0

    def test_empty(self):
        assert timeline_duration([]) == 0
