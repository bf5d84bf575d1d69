"""
RenderResult — what the backend reports after executing a RenderPlan.

plan_digest is the RenderPlan's canonical-JSON SHA-256, so two results can be
compared for "same request" without comparing output bytes.  rendered_at is
wall-clock and excluded from any determinism comparison.
"""
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class SourceInfo(BaseModel):
    """One resolved input file."""
    path: str
    kind: str
    width: Optional[int] = None    # images only
    height: Optional[int] = None


class RenderResult(BaseModel):
    schema_version: str = "1.0.0"
    flow: str
    plan_digest: str
    media_type: str
    output_uri: Optional[str] = None     # file:// URI; None in dry-run
    sha256: Optional[str] = None         # SHA-256 of the output file; None in dry-run
    expected_duration: Optional[float] = None   # seconds, timeline flows only
    ffmpeg_version: str
    rendered_at: str                     # ISO 8601, or "dry-run"
    command: list[str] = Field(default_factory=list)
    sources: list[SourceInfo] = Field(default_factory=list)
