"""Resolve playlist references to indexed files.

A reference is matched by its filename first (the only hard requirement),
then every file sharing that name is scored by how many parent directories
agree with the reference, counted backwards from the filename. This tolerates
any amount of prefix drift -- other drive letters, mount points, separators,
user folders -- while still preferring ``Queen/Song.mp3`` over ``Other/Song.mp3``.

All functions here are pure reads of an already-built MusicIndex.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from loguru import logger

from .models import (
    MatchResult,
    MusicFile,
    PathSegments,
    PlaylistEntry,
    UnresolvedReason,
)
from .music_index import MusicIndex
from .segments import normalize_segments

log = logger.bind(stage="match")


def suffix_score(reference: PathSegments, candidate: PathSegments) -> int:
    """Number of consecutive equal directory segments above the filename.

    The filename itself is not counted, so a filename-only match scores 0:
        ("old", "queen", "a.mp3") vs ("music", "rock", "queen", "a.mp3") -> 1
        ("x:", "old", "a.mp3")    vs ("music", "b", "a.mp3")             -> 0

    Every candidate comes from a filename lookup and so always agrees on
    the last segment. Counting it would add 1 to every score without
    changing the ranking, and the score then reads directly as "how many
    folders agree".
    """
    score = 0
    for ref_seg, cand_seg in zip(reversed(reference[:-1]), reversed(candidate[:-1])):
        if ref_seg != cand_seg:
            break
        score += 1
    return score


def _rank(reference: PathSegments, candidate: MusicFile) -> tuple[int, str, str]:
    # Highest score first, then smallest normalized path. The raw path breaks
    # ties between files differing only in case on case-sensitive filesystems.
    return (
        -suffix_score(reference, candidate.absolute_segments),
        candidate.sort_key,
        str(candidate.path),
    )


def best_candidate(
    reference: PathSegments, candidates: Sequence[MusicFile]
) -> tuple[MusicFile, int]:
    """Pick the winning candidate and its score. ``candidates`` must be non-empty."""
    winner = min(candidates, key=lambda c: _rank(reference, c))
    return winner, suffix_score(reference, winner.absolute_segments)


def match_reference(raw: str, index: MusicIndex) -> MatchResult:
    """Match one raw path string against the index."""
    try:
        reference = normalize_segments(raw)
    except ValueError:
        log.debug(f"Unusable reference: {raw!r}")
        return MatchResult.unresolved(UnresolvedReason.PARSE_ERROR)

    candidates = index.candidates(reference[-1])
    if not candidates:
        log.debug(f"No candidate for {raw!r}")
        return MatchResult.unresolved(UnresolvedReason.NO_CANDIDATE)

    winner, score = best_candidate(reference, candidates)
    if len(candidates) > 1:
        log.debug(
            f"{raw!r}: {len(candidates)} candidates, "
            f"chose {winner.path} (score={score})"
        )
    return MatchResult.resolved(winner.path, score)


def match_entry(entry: PlaylistEntry, index: MusicIndex) -> MatchResult:
    """Match a parsed entry. Malformed and remote entries bypass the index."""
    if entry.is_malformed:
        return MatchResult.unresolved(UnresolvedReason.PARSE_ERROR)
    if entry.remote:
        return MatchResult.unresolved(UnresolvedReason.REMOTE)
    return match_reference(entry.path, index)


def match_playlist(
    entries: Iterable[PlaylistEntry], index: MusicIndex
) -> list[tuple[PlaylistEntry, MatchResult]]:
    """Match every entry, preserving playlist order."""
    return [(entry, match_entry(entry, index)) for entry in entries]
