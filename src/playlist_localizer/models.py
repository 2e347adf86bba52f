"""Core enums, constants, and data types for the playlist localizer.

Enums:
    PlaylistFlavor   -- Playlist dialect (plain m3u, extended m3u).
    PathMode         -- How the writer emits paths (absolute, relative).
    MatchStatus      -- Outcome of matching one entry (resolved, unresolved).
    UnresolvedReason -- Why an entry stayed unresolved (parse_error,
                        no_candidate, remote).

Dataclasses:
    MusicFile         -- One indexed file. Immutable once indexed.
    PlaylistEntry     -- One parsed playlist record with its attached directives.
    MatchResult       -- Resolved(local_path, score) or Unresolved(reason).
    LocalizedPlaylist -- Ordered (entry, result) pairs for one playlist file.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path

# Normalized path segments, filename last
PathSegments = tuple[str, ...]


class PlaylistFlavor(StrEnum):
    M3U = "m3u"
    EXTM3U = "extm3u"


class PathMode(StrEnum):
    ABSOLUTE = "absolute"
    RELATIVE = "relative"


class MatchStatus(StrEnum):
    RESOLVED = "resolved"
    UNRESOLVED = "unresolved"


class UnresolvedReason(StrEnum):
    PARSE_ERROR = "parse_error"
    NO_CANDIDATE = "no_candidate"
    REMOTE = "remote"


EXTM3U_HEADER = "#EXTM3U"
DIRECTIVE_PREFIX = "#EXT"
COMMENT_PREFIX = "#"

AUDIO_EXTENSIONS: frozenset[str] = frozenset(
    {
        ".mp3",
        ".m4a",
        ".m4b",
        ".flac",
        ".ogg",
        ".oga",
        ".opus",
        ".wav",
        ".wma",
        ".aac",
        ".aiff",
        ".alac",
        ".ape",
        ".wv",
    }
)

def default_extension_map() -> dict[str, bool]:
    """Allow-list mapping each known audio extension to True."""
    return {ext: True for ext in sorted(AUDIO_EXTENSIONS)}


@dataclass(frozen=True)
class MusicFile:
    """A file under the music root.

    ``segments`` is derived from the path relative to the music root,
    ``absolute_segments`` from the full absolute path. ``sort_key`` is the
    normalized absolute path used for deterministic tie-breaking.
    """

    path: Path
    segments: PathSegments
    absolute_segments: PathSegments

    @property
    def filename(self) -> str:
        return self.segments[-1]

    @property
    def sort_key(self) -> str:
        return "/".join(self.absolute_segments)


@dataclass(frozen=True)
class PlaylistEntry:
    """One path record parsed from a playlist, in playlist order."""

    raw: str  # original path line text, untouched
    path: str  # extracted path string ("" for malformed entries)
    line_number: int
    directives: tuple[str, ...] = ()  # metadata lines attached verbatim
    display_path: str = ""
    error: str | None = None
    remote: bool = False

    @property
    def is_malformed(self) -> bool:
        return self.error is not None


@dataclass(frozen=True)
class MatchResult:
    """Outcome of matching a single entry against the index."""

    status: MatchStatus
    local_path: Path | None = None
    score: int = 0
    reason: UnresolvedReason | None = None

    @classmethod
    def resolved(cls, local_path: Path, score: int) -> MatchResult:
        return cls(status=MatchStatus.RESOLVED, local_path=local_path, score=score)

    @classmethod
    def unresolved(cls, reason: UnresolvedReason) -> MatchResult:
        return cls(status=MatchStatus.UNRESOLVED, reason=reason)

    @property
    def is_resolved(self) -> bool:
        return self.status is MatchStatus.RESOLVED

    def to_dict(self) -> dict:
        return {
            "status": str(self.status),
            "local_path": str(self.local_path) if self.local_path else None,
            "score": self.score,
            "reason": str(self.reason) if self.reason else None,
        }


@dataclass
class LocalizedPlaylist:
    """Matching results for one playlist file, original order preserved."""

    source: Path
    flavor: PlaylistFlavor
    entries: list[tuple[PlaylistEntry, MatchResult]] = field(default_factory=list)

    @property
    def name(self) -> str:
        return self.source.stem

    @property
    def resolved_count(self) -> int:
        return sum(1 for _, result in self.entries if result.is_resolved)

    @property
    def unresolved_count(self) -> int:
        return len(self.entries) - self.resolved_count

    @property
    def unresolved(self) -> list[tuple[PlaylistEntry, MatchResult]]:
        return [(e, r) for e, r in self.entries if not r.is_resolved]

    def to_dict(self) -> dict:
        return {
            "source": str(self.source),
            "flavor": str(self.flavor),
            "resolved": self.resolved_count,
            "unresolved": self.unresolved_count,
            "entries": [
                {
                    "line": entry.line_number,
                    "path": entry.path,
                    "error": entry.error,
                    **result.to_dict(),
                }
                for entry, result in self.entries
            ],
        }
