"""Path segment normalization.

Playlist references come from any OS, so paths are never handed to pathlib
for parsing -- a Windows path like ``C:\\Music\\a.mp3`` is a single opaque
name on POSIX. Instead both separators are split on and every segment is
trimmed, NFC-normalized and case-folded.
"""

import re
import unicodedata
from os import PathLike

from .models import PathSegments

_SEPARATORS_RE = re.compile(r"[\\/]+")


def normalize_segment(segment: str) -> str:
    """Normalize one path component for comparison.

    "  Queen " -> "queen"
    Decomposed (NFD) names from macOS compare equal to their NFC form.
    """
    return unicodedata.normalize("NFC", segment.strip()).casefold()


def normalize_segments(path: str | PathLike[str]) -> PathSegments:
    """Split a path on either separator into normalized segments.

    Empty and ``.`` segments are dropped; ``..`` removes the preceding
    segment when there is one. Raises ValueError if nothing is left.

    "C:\\Users\\old\\Music\\Queen\\Song.mp3"
        -> ("c:", "users", "old", "music", "queen", "song.mp3")
    """
    text = str(path)
    segments: list[str] = []
    for part in _SEPARATORS_RE.split(text):
        norm = normalize_segment(part)
        if not norm or norm == ".":
            continue
        if norm == "..":
            if segments:
                segments.pop()
            continue
        segments.append(norm)

    if not segments:
        raise ValueError(f"Path has no usable segments: {text!r}")
    return tuple(segments)

