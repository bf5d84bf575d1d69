"""
Escaping for text embedded in ffmpeg filter descriptions and concat lists.

Each function is applied exactly once, at the point a user-supplied string
becomes part of a plan.  Stored plan strings are already escaped and are
written out verbatim by the command builder.
"""
from __future__ import annotations

# Characters that are structural in a drawtext option value.
_TEXT_SPECIAL = (":", "'")


def escape_text(text: str) -> str:
    """
    Escape caption text for a drawtext ``text='...'`` value.

    ``:`` and ``'`` each get one backslash; every other character, including
    backslashes already present in the input, passes through unchanged.
    Empty text stays empty.
    """
    out = []
    for ch in text:
        if ch in _TEXT_SPECIAL:
            out.append("\\")
        out.append(ch)
    return "".join(out)


def escape_filter_path(path: str) -> str:
    """
    Escape a file path for a single-quoted filter option (fontfile, subtitles).

    ffmpeg unescapes the value twice: the filtergraph parser strips the quotes,
    then the filter's option parser reads the remainder.  The option level
    needs ``\\``, ``'`` and ``:`` backslash-escaped; at the graph level, inside
    the quotes, a quote can only be written by closing the string, emitting
    ``\\'`` and reopening it.
    """
    option_level = path.replace("\\", "\\\\").replace("'", "\\'").replace(":", "\\:")
    return option_level.replace("'", "'\\''")


def escape_concat_path(path: str) -> str:
    """
    Escape a path for a ``file '...'`` line of an ffconcat list.

    The concat demuxer has no escape inside single quotes, so a quote closes
    the string, is emitted escaped, and the string is reopened.
    """
    return path.replace("'", "'\\''")
