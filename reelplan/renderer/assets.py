"""
Asset resolution: MediaSource → readable local file.

Sources must already be on local disk (plain paths or file:// URIs);
fetching remote files is the caller's job.  Images are opened with Pillow
so an undecodable upload fails before ffmpeg is started.
"""
from __future__ import annotations

import logging
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from schemas.render_plan import MediaSource, RenderPlan
from planner.errors import AssetNotFoundError
from renderer.ffmpeg_runner import probe_duration

logger = logging.getLogger(__name__)


def image_size(path: Path) -> tuple[int, int]:
    """
    Natural (width, height) of an image file.

    Raises:
        AssetNotFoundError: if the file cannot be decoded as an image.
    """
    try:
        with Image.open(path) as img:
            return img.size
    except (UnidentifiedImageError, OSError) as exc:
        raise AssetNotFoundError(
            f"not a readable image: {path} ({exc})", field="images", value=str(path),
        ) from exc


def media_duration(path: Path) -> float:
    """Duration of an audio/video file in seconds, via ffprobe."""
    return probe_duration(str(path))


class AssetResolver:
    """
    Resolves and checks every source of a plan.

    ``image_sizes`` holds the natural size of each image decoded for the most
    recent plan, keyed by local path; every resolve_plan call starts it afresh.
    """

    def __init__(self, verify_images: bool = True) -> None:
        self.verify_images = verify_images
        self.image_sizes: dict[str, tuple[int, int]] = {}

    def resolve(self, source: MediaSource) -> Path:
        """
        Return the local Path for *source*.

        Raises:
            AssetNotFoundError: remote reference, missing file, or bad image.
        """
        ref = source.path
        if "://" in ref:
            raise AssetNotFoundError(
                f"only local files are supported, got {ref!r}", field=source.kind, value=ref,
            )
        path = Path(ref)
        if not path.is_file():
            raise AssetNotFoundError(
                f"{source.kind} not found: {ref}", field=source.kind, value=ref,
            )
        if source.kind == "image" and self.verify_images:
            self.image_sizes[ref] = image_size(path)
        return path

    def resolve_plan(self, plan: RenderPlan) -> dict[str, Path]:
        """Resolve every source of *plan*; returns {source.path: local Path}."""
        self.image_sizes = {}
        resolved = {src.path: self.resolve(src) for src in plan.sources()}
        logger.debug("resolved %d source(s) for %s", len(resolved), plan.flow)
        return resolved
