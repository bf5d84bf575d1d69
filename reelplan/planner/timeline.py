"""
Slideshow timeline construction.

Hold-last-frame invariant
-------------------------
The concat demuxer ends an entry's ``duration`` at the start of the *next*
listed entry.  The final image therefore only holds for its full duration if
it is listed a second time with no duration after it.  A timeline for N
images always has N+1 segments:

    (img_1, d), (img_2, d), ..., (img_N, d), (img_N, None)

The trailing segment looks redundant and must not be removed.
"""
from __future__ import annotations

import logging
import math
from typing import Sequence

from schemas.render_plan import TIME_DECIMALS, MediaSource, TimelineSegment
from planner.errors import EmptyInputError, InvalidDurationError

logger = logging.getLogger(__name__)


def build_timeline(sources: Sequence[MediaSource], per_image_sec: float) -> list[TimelineSegment]:
    """
    Build the N+1 segment timeline for *sources* shown *per_image_sec* each.

    Raises:
        EmptyInputError:      if *sources* is empty.
        InvalidDurationError: if *per_image_sec* is not a finite number that
                              stays > 0 at microsecond precision.
    """
    if not sources:
        raise EmptyInputError("at least one image is required", field="images", value=[])
    if not (math.isfinite(per_image_sec) and round(per_image_sec, TIME_DECIMALS) > 0):
        raise InvalidDurationError(
            f"per_image_sec must be > 0, got {per_image_sec!r}",
            field="per_image_sec",
            value=per_image_sec,
        )

    segments = [TimelineSegment(source=src, duration=float(per_image_sec)) for src in sources]
    segments.append(TimelineSegment(source=sources[-1], duration=None))
    logger.debug("timeline: %d images × %ss (+1 hold segment)", len(sources), per_image_sec)
    return segments


def timeline_duration(segments: Sequence[TimelineSegment]) -> float:
    """Presented duration in seconds; the hold segment adds nothing."""
    return sum(seg.duration for seg in segments if seg.duration is not None)
