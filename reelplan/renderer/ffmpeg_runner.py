"""
ffmpeg / ffprobe subprocess runner.

Standalone module: nothing here imports planner or schemas.  Every failure
of the external engine surfaces as a RenderExecutionError subclass (or
TimeoutError) so callers can tell engine failures from planning errors.

ffmpeg >= 6.1 is expected; renderer.command emits ``-fps_mode``, which older
builds reject.
"""
from __future__ import annotations

import json
import logging
import os
import re
import signal
import subprocess

logger = logging.getLogger(__name__)

FFMPEG_MIN_VERSION = (6, 1)

_STDERR_TAIL = 3000
_VERSION_RE = re.compile(r"^(\d+)\.(\d+)")


class RenderExecutionError(Exception):
    """The rendering engine could not produce an output."""


class FFmpegError(RenderExecutionError):
    """ffmpeg / ffprobe exited non-zero.  *stderr* holds the tail of its log."""

    def __init__(self, message: str, returncode: int, stderr: str = "") -> None:
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr


class FFmpegNotFound(RenderExecutionError):
    """The ffmpeg or ffprobe binary is not on PATH."""


# ---------------------------------------------------------------------------
# Version
# ---------------------------------------------------------------------------

def get_ffmpeg_version() -> str:
    """
    Installed ffmpeg version as printed by ``ffmpeg -version`` (e.g. "6.1.1").

    Raises:
        FFmpegNotFound: ffmpeg is missing or does not answer -version.
    """
    try:
        stdout, _ = _run(["ffmpeg", "-version"], timeout=10)
    except FFmpegError as exc:
        raise FFmpegNotFound(f"ffmpeg -version failed (rc={exc.returncode})") from exc

    first = stdout.splitlines()[0] if stdout else ""
    words = first.split()
    # "ffmpeg version 6.1.1-3ubuntu5 Copyright ..."
    if words[:2] == ["ffmpeg", "version"] and len(words) > 2:
        return words[2]
    return first


def validate_ffmpeg() -> str:
    """
    Check ffmpeg is installed; warn when it is older than FFMPEG_MIN_VERSION.

    Returns the version string.  Unparseable versions (git builds such as
    "N-112345-g...") are accepted silently.
    """
    version = get_ffmpeg_version()
    match = _VERSION_RE.match(version)
    if match and (int(match.group(1)), int(match.group(2))) < FFMPEG_MIN_VERSION:
        logger.warning(
            "ffmpeg %s is older than %d.%d; -fps_mode may be rejected",
            version, *FFMPEG_MIN_VERSION,
        )
    return version


# ---------------------------------------------------------------------------
# Runners
# ---------------------------------------------------------------------------

def run_ffmpeg(cmd: list[str], timeout: int = 600) -> str:
    """
    Run a complete ffmpeg argv and wait for it.

    Returns:
        ffmpeg's stderr log.

    Raises:
        FFmpegNotFound: ffmpeg is missing.
        FFmpegError:    non-zero exit.
        TimeoutError:   still running after *timeout* seconds (process group killed).
    """
    logger.debug("ffmpeg: %s", " ".join(cmd))
    _, stderr = _run(cmd, timeout)
    return stderr


def run_ffprobe(path: str, timeout: int = 60) -> dict:
    """``ffprobe -show_format -show_streams`` for *path*, parsed from JSON."""
    stdout, _ = _run(
        ["ffprobe", "-v", "error", "-print_format", "json", "-show_format", "-show_streams", path],
        timeout,
    )
    return json.loads(stdout)


def probe_duration(path: str) -> float:
    """Container duration in seconds; 0.0 when ffprobe reports none."""
    fmt = run_ffprobe(path).get("format", {})
    return float(fmt.get("duration") or 0.0)


# ---------------------------------------------------------------------------
# Internal
# ---------------------------------------------------------------------------

def _run(cmd: list[str], timeout: int) -> tuple[str, str]:
    """Run *cmd* in a new session; return (stdout, stderr) on exit code 0."""
    tool = cmd[0]
    try:
        proc = subprocess.Popen(
            cmd,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            preexec_fn=os.setsid,
        )
    except FileNotFoundError as exc:
        raise FFmpegNotFound(f"{tool} not found on PATH (install ffmpeg >= 6.1)") from exc

    try:
        stdout, stderr = proc.communicate(timeout=timeout)
    except subprocess.TimeoutExpired:
        _kill_group(proc)
        proc.communicate()
        raise TimeoutError(f"{tool} killed after {timeout}s: {' '.join(cmd[:6])} ...")

    if proc.returncode != 0:
        tail = stderr[-_STDERR_TAIL:]
        raise FFmpegError(
            f"{tool} exited {proc.returncode}\n{tail}",
            returncode=proc.returncode,
            stderr=tail,
        )
    return stdout, stderr


def _kill_group(proc: subprocess.Popen) -> None:
    """SIGKILL the whole process group started by _run."""
    try:
        os.killpg(os.getpgid(proc.pid), signal.SIGKILL)
    except ProcessLookupError:
        pass  # already exited
    except OSError as exc:
        logger.warning("could not kill %s process group: %s", proc.args[0], exc)
        proc.kill()
