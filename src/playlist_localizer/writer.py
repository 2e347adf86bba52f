"""Serialize localized playlists as plain m3u or extended m3u."""

from __future__ import annotations

import os
import re
from pathlib import Path

from loguru import logger

from .models import (
    EXTM3U_HEADER,
    LocalizedPlaylist,
    PathMode,
    PlaylistEntry,
    PlaylistFlavor,
)

log = logger.bind(stage="write")


def _format_path(path: Path, output_dir: Path | None, path_mode: PathMode) -> str:
    if path_mode is PathMode.RELATIVE and output_dir is not None:
        try:
            return os.path.relpath(path, output_dir)
        except ValueError:
            # Different drive on Windows
            return str(path)
    return str(path)


def _title_from(location: str) -> str:
    """File stem of a path written with either separator."""
    name = re.split(r"[\\/]", location.rstrip("\\/"))[-1]
    stem, dot, _ = name.rpartition(".")
    return stem if dot and stem else name


def _extinf_lines(entry: PlaylistEntry, location: str) -> list[str]:
    if entry.directives:
        return list(entry.directives)
    # Duration unknown: tags are never read
    return [f"#EXTINF:-1,{_title_from(location)}"]


def render_playlist(
    playlist: LocalizedPlaylist,
    flavor: PlaylistFlavor,
    output_dir: Path | None = None,
    path_mode: PathMode = PathMode.ABSOLUTE,
    keep_unresolved: bool = False,
) -> str:
    """Render a playlist to text.

    Resolved entries are written with their local path. Unresolved entries
    are dropped, or written with their original path text when
    keep_unresolved is set (entries with no path at all are always dropped).
    Extended output carries each entry's original directives, or a
    synthesized #EXTINF line when it had none.
    """
    extended = flavor is PlaylistFlavor.EXTM3U
    lines: list[str] = [EXTM3U_HEADER] if extended else []

    for entry, result in playlist.entries:
        if result.is_resolved and result.local_path is not None:
            location = _format_path(result.local_path, output_dir, path_mode)
        elif keep_unresolved and entry.path:
            location = entry.raw.strip()
        else:
            continue

        if extended:
            lines.extend(_extinf_lines(entry, location))
        lines.append(location)

    if not lines:
        return ""
    return "\n".join(lines) + "\n"


def output_path(playlist: LocalizedPlaylist, output_dir: Path, extension: str) -> Path:
    """Destination ``<output_dir>/<playlist stem>.<extension>`` for a playlist."""
    return output_dir / f"{playlist.name}.{extension.lstrip('.')}"


def write_playlist(
    playlist: LocalizedPlaylist,
    output_dir: Path,
    flavor: PlaylistFlavor,
    extension: str,
    path_mode: PathMode = PathMode.ABSOLUTE,
    keep_unresolved: bool = False,
) -> Path:
    """Write ``<output_dir>/<playlist stem>.<extension>`` as UTF-8.

    Returns the written path. Raises OSError on write failure.
    """
    output_dir.mkdir(parents=True, exist_ok=True)
    dest = output_path(playlist, output_dir, extension)
    content = render_playlist(
        playlist,
        flavor,
        output_dir=output_dir,
        path_mode=path_mode,
        keep_unresolved=keep_unresolved,
    )
    dest.write_text(content, encoding="utf-8")
    log.info(
        f"Wrote {dest} ({playlist.resolved_count} resolved, "
        f"{playlist.unresolved_count} unresolved)"
    )
    return dest
