"""Playlist parsing for plain m3u and extended m3u (extm3u).

Extended playlists carry ``#EXT...`` directives (``#EXTINF`` duration/title,
``#EXTGRP``, ...) that describe the path line after them. Directives are kept
verbatim on the entry they precede so the writer can round-trip them.

One bad line never blocks the rest: it is recorded as a malformed entry
(which the matcher reports as unresolved) and parsing continues.
"""

from __future__ import annotations

import codecs
import os
import re
from collections.abc import Iterable
from pathlib import Path
from urllib.parse import unquote, urlparse

from loguru import logger

from .errors import PlaylistParseError
from .models import (
    COMMENT_PREFIX,
    DIRECTIVE_PREFIX,
    EXTM3U_HEADER,
    PlaylistEntry,
    PlaylistFlavor,
)

log = logger.bind(stage="parse")

UTF8_BOM = "\ufeff"

# Scheme of at least two chars so "C://x" is not taken for a URL
_URL_RE = re.compile(r"^([a-zA-Z][a-zA-Z0-9+.\-]+)://")
_WINDOWS_ABS_RE = re.compile(r"^[a-zA-Z]:[\\/]")
_FILE_URI_DRIVE_RE = re.compile(r"^/[a-zA-Z]:")
_LINE_BREAK_RE = re.compile(r"\r\n|\r|\n")


def _split_lines(text: str) -> list[str]:
    """Split on CR, LF and CRLF only (str.splitlines also splits on \\x1c etc.)."""
    lines = _LINE_BREAK_RE.split(text)
    if lines and lines[-1] == "":
        lines.pop()
    return lines


def _is_header(stripped: str) -> bool:
    return stripped.split(maxsplit=1)[0].upper() == EXTM3U_HEADER


def _is_directive(stripped: str) -> bool:
    return stripped.upper().startswith(DIRECTIVE_PREFIX)


def _infer_from_lines(lines: Iterable[str | None]) -> PlaylistFlavor:
    for line in lines:
        if line is None:
            continue
        stripped = line.lstrip(UTF8_BOM).strip()
        if not stripped:
            continue
        if stripped.startswith(COMMENT_PREFIX) and _is_header(stripped):
            return PlaylistFlavor.EXTM3U
        return PlaylistFlavor.M3U
    return PlaylistFlavor.M3U


def infer_flavor(text: str) -> PlaylistFlavor:
    """extm3u if the first non-blank line is the #EXTM3U header, else m3u."""
    return _infer_from_lines(_split_lines(text))


def _is_absolute(path: str) -> bool:
    return path.startswith(("/", "\\")) or bool(_WINDOWS_ABS_RE.match(path))


def _extract_path(text: str) -> tuple[str, bool]:
    """Return (path, is_remote) for a path line.

    file:// URIs become plain paths:
        "file:///C:/Music/a%20b.mp3" -> "C:/Music/a b.mp3"
        "file://nas/share/a.mp3"    -> "//nas/share/a.mp3"
    Any other scheme (http, https, rtsp, ...) is remote and left as-is.
    """
    match = _URL_RE.match(text)
    if not match:
        return text, False
    if match.group(1).lower() != "file":
        return text, True

    parsed = urlparse(text)
    path = unquote(parsed.path)
    if parsed.netloc and parsed.netloc.lower() != "localhost":
        path = f"//{parsed.netloc}{path}"
    elif _FILE_URI_DRIVE_RE.match(path):
        path = path[1:]
    return path, False


def _malformed(
    raw: str,
    line_number: int,
    directives: list[str],
    reason: str,
    source: str,
) -> PlaylistEntry:
    error = PlaylistParseError(line_number, reason)
    log.warning(f"{source}: {error}")
    return PlaylistEntry(
        raw=raw,
        path="",
        line_number=line_number,
        directives=tuple(directives),
        error=str(error),
    )


def _parse_lines(
    lines: Iterable[str | None],
    flavor: PlaylistFlavor,
    base_dir: Path | None,
    source: str,
) -> list[PlaylistEntry]:
    """Turn decoded lines into entries. ``None`` marks an undecodable line."""
    extended = flavor is PlaylistFlavor.EXTM3U
    entries: list[PlaylistEntry] = []
    pending: list[str] = []
    pending_line = 0

    for line_number, line in enumerate(lines, start=1):
        if line is None:
            entries.append(
                _malformed("", line_number, pending, "line is not valid UTF-8", source)
            )
            pending = []
            continue

        if line_number == 1:
            line = line.lstrip(UTF8_BOM)
        stripped = line.strip()
        if not stripped:
            continue

        if stripped.startswith(COMMENT_PREFIX):
            if extended and _is_directive(stripped) and not _is_header(stripped):
                pending.append(line)
                pending_line = line_number
            continue

        if "\x00" in stripped:
            entries.append(
                _malformed(line, line_number, pending, "path contains a NUL byte", source)
            )
            pending = []
            continue

        path, remote = _extract_path(stripped)
        if not path.strip():
            entries.append(_malformed(line, line_number, pending, "empty path", source))
            pending = []
            continue

        if remote or base_dir is None or _is_absolute(path):
            display_path = path
        else:
            # Display only -- never assumed to be relative to the music root
            display_path = os.path.normpath(os.path.join(base_dir, path))

        entries.append(
            PlaylistEntry(
                raw=line,
                path=path,
                line_number=line_number,
                directives=tuple(pending),
                display_path=display_path,
                remote=remote,
            )
        )
        pending = []

    if pending:
        entries.append(
            _malformed(
                "", pending_line, pending, "directive without a following path", source
            )
        )

    return entries


def parse_playlist(
    text: str,
    flavor: PlaylistFlavor | None = None,
    base_dir: Path | None = None,
) -> list[PlaylistEntry]:
    """Parse playlist text into ordered entries.

    Args:
        text: Full playlist content.
        flavor: Playlist dialect. Inferred from the header when omitted.
        base_dir: Directory of the playlist file, used only to build
            ``display_path`` for relative entries.
    """
    lines = _split_lines(text)
    if flavor is None:
        flavor = _infer_from_lines(lines)
    return _parse_lines(lines, flavor, base_dir, source="<text>")


def _decode_lines(data: bytes, strict_utf8: bool) -> list[str | None]:
    """Decode each line on its own so one bad byte sequence stays local."""
    if data.startswith(codecs.BOM_UTF8):
        data = data[len(codecs.BOM_UTF8):]

    lines: list[str | None] = []
    for raw in data.splitlines():
        try:
            lines.append(raw.decode("utf-8"))
            continue
        except UnicodeDecodeError:
            if strict_utf8:
                lines.append(None)
                continue
        try:
            lines.append(raw.decode("cp1252"))
        except UnicodeDecodeError:
            lines.append(raw.decode("latin-1"))
    return lines


def read_playlist(
    path: Path,
    flavor: PlaylistFlavor | None = None,
) -> tuple[PlaylistFlavor, list[PlaylistEntry]]:
    """Read and parse a playlist file.

    ``.m3u8`` is UTF-8 by definition, so undecodable lines there become
    malformed entries. Legacy ``.m3u`` lines fall back to cp1252/latin-1.

    Raises OSError if the file cannot be read.
    """
    path = Path(path)
    data = path.read_bytes()
    lines = _decode_lines(data, strict_utf8=path.suffix.lower() == ".m3u8")
    if flavor is None:
        flavor = _infer_from_lines(lines)

    entries = _parse_lines(lines, flavor, base_dir=path.parent, source=path.name)
    malformed = sum(1 for e in entries if e.is_malformed)
    log.debug(
        f"Parsed {path.name}: flavor={flavor} entries={len(entries)} "
        f"malformed={malformed}"
    )
    return flavor, entries


def discover_playlists(root: Path, extension: str) -> list[Path]:
    """Find playlist files with the given extension under root, sorted."""
    ext = extension.strip().lower()
    if not ext.startswith("."):
        ext = "." + ext
    found = sorted(
        p for p in Path(root).rglob("*") if p.suffix.lower() == ext and p.is_file()
    )
    log.debug(f"Discovered {len(found)} *{ext} playlists under {root}")
    return found
