"""
Unit tests for renderer/ffmpeg_runner.py.

Ordinary POSIX tools stand in for ffmpeg so the error paths run without it:
a missing binary, a non-zero exit, and a timeout that kills the process group.
"""
from __future__ import annotations

import logging

import pytest

from renderer import ffmpeg_runner
from renderer.ffmpeg_runner import (
    FFmpegError,
    FFmpegNotFound,
    RenderExecutionError,
    run_ffmpeg,
    validate_ffmpeg,
)


class TestRun:

    def test_missing_binary(self):
        with pytest.raises(FFmpegNotFound):
            run_ffmpeg(["reelplan-no-such-binary", "-version"])

    def test_non_zero_exit(self):
        with pytest.raises(FFmpegError) as exc_info:
            run_ffmpeg(["false"])
        assert exc_info.value.returncode == 1
        assert isinstance(exc_info.value, RenderExecutionError)

    def test_timeout_kills(self):
        with pytest.raises(TimeoutError):
            run_ffmpeg(["sleep", "5"], timeout=1)

    def test_returns_stderr(self):
        assert run_ffmpeg(["sh", "-c", "echo log-line >&2"]) == "log-line\n"


class TestVersion:

    def test_old_version_warns(self, monkeypatch, caplog):
        monkeypatch.setattr(ffmpeg_runner, "get_ffmpeg_version", lambda: "5.1.2")
        with caplog.at_level(logging.WARNING, logger="renderer.ffmpeg_runner"):
            assert validate_ffmpeg() == "5.1.2"
        assert "older than 6.1" in caplog.text

    @pytest.mark.parametrize("version", ["6.1.1-3ubuntu5", "7.0", "N-112345-gabcdef"])
    def test_current_or_unparseable_is_silent(self, monkeypatch, caplog, version):
        monkeypatch.setattr(ffmpeg_runner, "get_ffmpeg_version", lambda: version)
        with caplog.at_level(logging.WARNING, logger="renderer.ffmpeg_runner"):
            validate_ffmpeg()
        assert caplog.text == ""

    def test_parses_version_line(self, monkeypatch):
        monkeypatch.setattr(
            ffmpeg_runner, "_run",
            lambda cmd, timeout: ("ffmpeg version 6.1.1-3ubuntu5 Copyright (c) 2000-2023\n", ""),
        )
        assert ffmpeg_runner.get_ffmpeg_version() == "6.1.1-3ubuntu5"
