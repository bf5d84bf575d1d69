"""Source references → MediaSource records (string handling only, no filesystem access)."""
from __future__ import annotations

from typing import Sequence
from urllib.parse import unquote, urlparse

from schemas.render_plan import MediaSource


def local_path(ref: str) -> str:
    """Strip a file:// scheme; plain paths and other schemes are returned unchanged."""
    if ref.startswith("file://"):
        return unquote(urlparse(ref).path)
    return ref


def media_source(ref: str, kind: str, index: int = 0) -> MediaSource:
    return MediaSource(index=index, path=local_path(ref), kind=kind)


def media_sources(refs: Sequence[str], kind: str) -> list[MediaSource]:
    """One MediaSource per ref, indexed by list position."""
    return [media_source(ref, kind, index=i) for i, ref in enumerate(refs)]
