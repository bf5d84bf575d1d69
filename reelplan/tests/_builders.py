"""Shared request and config builders for unit tests and scenario checks."""
from __future__ import annotations

from schemas.config import FontTable, PlannerConfig

FONT_LATIN = "/fonts/Latin.ttf"
FONT_DEVANAGARI = "/fonts/Devanagari.ttf"


def build_config(**overrides) -> PlannerConfig:
    """PlannerConfig with a fixed, host-independent font table."""
    return PlannerConfig(
        fonts=FontTable(latin=FONT_LATIN, devanagari=FONT_DEVANAGARI),
        **overrides,
    )


def slideshow_request(n_images: int = 3, **overrides) -> dict:
    """Raw request dict for the slideshow flows, using the callers' camelCase names."""
    raw = {
        "images": [f"/media/img_{i:03d}.jpg" for i in range(n_images)],
        "perImageSec": 2,
        "width": 1080,
        "height": 1920,
        "fps": 30,
        "fit": "contain",
    }
    raw.update(overrides)
    return raw
