"""
Shared pytest fixtures for reelplan/tests/.

Provides:
  - deterministic test images (generated with Pillow, not committed binaries)
  - a PlannerConfig with a fixed font table
  - require_ffmpeg: skip-marker for tests that need the ffmpeg binary
"""
from __future__ import annotations

import shutil
import subprocess
from pathlib import Path

import pytest
from PIL import Image

from schemas.config import PlannerConfig
from tests._builders import build_config

# Solid-colour images with different aspect ratios (name → (w, h, RGB)).
_IMAGES: dict[str, tuple[int, int, tuple[int, int, int]]] = {
    "landscape": (640, 360, (200, 60, 60)),
    "portrait":  (360, 640, (60, 200, 60)),
    "square":    (400, 400, (60, 60, 200)),
}


# ---------------------------------------------------------------------------
# Test-asset generation (deterministic with Pillow)
# ---------------------------------------------------------------------------

@pytest.fixture(scope="session")
def image_dir(tmp_path_factory: pytest.TempPathFactory) -> Path:
    """Three solid-colour PNGs: landscape.png, portrait.png, square.png."""
    out = tmp_path_factory.mktemp("images", numbered=False)
    for name, (w, h, color) in _IMAGES.items():
        Image.new("RGB", (w, h), color=color).save(
            str(out / f"{name}.png"), format="PNG", compress_level=9, optimize=False,
        )
    return out


@pytest.fixture(scope="session")
def image_paths(image_dir: Path) -> list[str]:
    return [str(image_dir / f"{name}.png") for name in _IMAGES]


# ---------------------------------------------------------------------------
# Config / request builders
# ---------------------------------------------------------------------------

@pytest.fixture()
def config() -> PlannerConfig:
    return build_config()


# ---------------------------------------------------------------------------
# FFmpeg availability check
# ---------------------------------------------------------------------------

@pytest.fixture(scope="session")
def require_ffmpeg():
    """Skip the test if ffmpeg is not available on PATH."""
    if shutil.which("ffmpeg") is None or shutil.which("ffprobe") is None:
        pytest.skip("ffmpeg not available — skipping render test.")
    result = subprocess.run(["ffmpeg", "-version"], capture_output=True, timeout=5)
    if result.returncode != 0:
        pytest.skip("ffmpeg not available — skipping render test.")
