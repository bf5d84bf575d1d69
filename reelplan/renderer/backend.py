"""
FFmpegBackend — executes a RenderPlan with ffmpeg.

Steps per render:
  1. Resolve every plan source to a local file (images decoded with Pillow).
  2. Write the ffconcat list when the plan has a timeline input.
  3. Build the argv (renderer.command) and run it (renderer.ffmpeg_runner).
  4. Hash the output and return a RenderResult.

Planning errors never originate here except AssetNotFoundError from step 1;
everything the engine reports is a RenderExecutionError.
"""
from __future__ import annotations

import datetime
import hashlib
import logging
import tempfile
from pathlib import Path
from typing import Optional

from schemas.config import PlannerConfig
from schemas.render_output import RenderResult, SourceInfo
from schemas.render_plan import MediaSource, RenderPlan
from planner.fit import aspect_error_px, fit_geometry
from planner.timeline import timeline_duration
from renderer.assets import AssetResolver, media_duration
from renderer.command import build_command, concat_list_text, needs_concat_list
from renderer.ffmpeg_runner import run_ffmpeg, validate_ffmpeg

logger = logging.getLogger(__name__)

_CONCAT_LIST_NAME = "list.ffconcat"


class FFmpegBackend:
    """
    Usage::

        plan = plan_request("slideshow", raw_request, config)
        result = FFmpegBackend(config).render(plan, Path("out.mp4"))
        print(result.model_dump_json(indent=2))
    """

    def __init__(
        self,
        config: Optional[PlannerConfig] = None,
        dry_run: bool = False,
        resolver: Optional[AssetResolver] = None,
    ) -> None:
        self.config = config or PlannerConfig()
        self.dry_run = dry_run
        self.resolver = resolver or AssetResolver()
        # Fail fast: validate ffmpeg before any work; dry-run never spawns it.
        self._ffmpeg_version = "dry-run" if dry_run else validate_ffmpeg()

    def render(
        self,
        plan: RenderPlan,
        output_path: Path,
        work_dir: Optional[Path] = None,
    ) -> RenderResult:
        """
        Execute *plan*, writing the media file to *output_path*.

        Args:
            plan:        RenderPlan from planner.flows.
            output_path: Destination file; parent directories are created.
            work_dir:    Directory for the concat list; a temporary directory
                         is used (and removed) when omitted.

        Raises:
            AssetNotFoundError:   a source cannot be resolved.
            RenderExecutionError: ffmpeg failed.
            TimeoutError:         ffmpeg exceeded config.ffmpeg_timeout.
        """
        output_path = Path(output_path)
        resolved = self.resolver.resolve_plan(plan)
        self._log_fit_geometry(plan)

        if work_dir is not None:
            Path(work_dir).mkdir(parents=True, exist_ok=True)
            return self._render_in(plan, output_path, Path(work_dir), resolved)
        with tempfile.TemporaryDirectory(prefix=f"{plan.flow}-") as tmp:
            return self._render_in(plan, output_path, Path(tmp), resolved)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _render_in(
        self,
        plan: RenderPlan,
        output_path: Path,
        work_dir: Path,
        resolved: dict[str, Path],
    ) -> RenderResult:
        def path_of(source: MediaSource) -> str:
            return str(resolved[source.path].resolve())

        concat_path: Optional[Path] = None
        if needs_concat_list(plan):
            concat_path = work_dir / _CONCAT_LIST_NAME
            concat_path.write_text(concat_list_text(plan, path_of), encoding="utf-8")

        cmd = build_command(plan, output_path, concat_list_path=concat_path, path_of=path_of)

        if self.dry_run:
            logger.info("Dry-run %s: %d input(s), command built, not executed", plan.flow, len(plan.inputs))
            return self._result(plan, cmd, output_path=None, rendered_at="dry-run")

        output_path.parent.mkdir(parents=True, exist_ok=True)
        logger.info(
            "Render %s | inputs=%d | stages=%s | ffmpeg=%s",
            plan.flow, len(plan.inputs), plan.stage_kinds, self._ffmpeg_version,
        )
        run_ffmpeg(cmd, timeout=self.config.ffmpeg_timeout)
        logger.info("Render complete → %s", output_path)
        return self._result(
            plan, cmd,
            output_path=output_path,
            rendered_at=datetime.datetime.now(datetime.timezone.utc).isoformat(),
            resolved=resolved,
        )

    def _result(
        self,
        plan: RenderPlan,
        cmd: list[str],
        output_path: Optional[Path],
        rendered_at: str,
        resolved: Optional[dict[str, Path]] = None,
    ) -> RenderResult:
        sources = []
        for src in plan.sources():
            size = self.resolver.image_sizes.get(src.path)
            sources.append(SourceInfo(
                path=src.path,
                kind=src.kind,
                width=size[0] if size else None,
                height=size[1] if size else None,
            ))
        return RenderResult(
            flow=plan.flow,
            plan_digest=plan.digest(),
            media_type=plan.output.media_type,
            output_uri=f"file://{output_path.resolve()}" if output_path else None,
            sha256=_sha256_file(output_path) if output_path else None,
            expected_duration=self._expected_duration(plan, resolved),
            ffmpeg_version=self._ffmpeg_version,
            rendered_at=rendered_at,
            command=cmd,
            sources=sources,
        )

    def _expected_duration(
        self,
        plan: RenderPlan,
        resolved: Optional[dict[str, Path]],
    ) -> Optional[float]:
        """Timeline length, cut to the audio length under shortest-stream truncation."""
        if not plan.timeline:
            return None
        duration = timeline_duration(plan.timeline)
        if plan.truncation == "shortest" and resolved is not None:
            for inp in plan.inputs[1:]:
                if inp.source is not None and inp.source.kind == "audio":
                    audio_len = media_duration(resolved[inp.source.path])
                    if audio_len > 0:
                        duration = min(duration, audio_len)
        return duration

    def _log_fit_geometry(self, plan: RenderPlan) -> None:
        fit = next((s for s in plan.filter_stages if s.kind == "fit"), None)
        if fit is None or not logger.isEnabledFor(logging.DEBUG):
            return
        for path, (w, h) in self.resolver.image_sizes.items():
            geo = fit_geometry(w, h, fit.width, fit.height, fit.mode)
            logger.debug(
                "%s %dx%d → scaled %dx%d, offset (%d,%d) on %dx%d, aspect error %.2fpx",
                path, w, h, geo.scaled_width, geo.scaled_height,
                geo.x_offset, geo.y_offset, geo.width, geo.height,
                aspect_error_px(w, h, geo),
            )


def _sha256_file(path: Path) -> str:
    h = hashlib.sha256()
    with open(path, "rb") as fh:
        for chunk in iter(lambda: fh.read(65_536), b""):
            h.update(chunk)
    return h.hexdigest()
