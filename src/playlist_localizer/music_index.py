"""Pre-built index of a music library for filename lookups.

Walks the music root once at run start, replacing per-reference filesystem
probing with dict lookups keyed by normalized filename. Supports:
- Extension allow-list applied before insertion
- Following symlinked directories without looping (per-chain identity set)
- One entry per real file and name, even when reachable through several
  linked directories
- Partial-failure tolerance: unreadable directories are recorded and skipped
"""

from __future__ import annotations

import os
from collections.abc import Iterator, Mapping
from pathlib import Path

from loguru import logger

from .errors import IndexingIOError
from .models import MusicFile
from .segments import normalize_segment, normalize_segments

log = logger.bind(stage="index")

# (st_dev, st_ino)
_Identity = tuple[int, int]


def _normalize_extension_map(extensions: Mapping[str, bool]) -> dict[str, bool]:
    """Lower-case keys and ensure a leading dot ("MP3" -> ".mp3")."""
    normalized = {}
    for ext, is_audio in extensions.items():
        ext = ext.strip().lower()
        if not ext:
            continue
        if not ext.startswith("."):
            ext = "." + ext
        normalized[ext] = bool(is_audio)
    return normalized


class MusicIndex:
    """In-memory index of every allowed file under a music root.

    Built once in the constructor. The filename map is frozen into tuples
    after the walk, so matchers running on other threads only ever see a
    complete, read-only index.
    """

    def __init__(
        self,
        music_root: Path,
        extensions: Mapping[str, bool] | None = None,
        follow_symlinks: bool = True,
    ) -> None:
        self.music_root = Path(music_root).resolve()
        self.follow_symlinks = follow_symlinks
        self._extensions = (
            _normalize_extension_map(extensions) if extensions is not None else None
        )
        self._errors: list[IndexingIOError] = []
        # (identity, normalized filename) of every indexed file
        self._seen_files: set[tuple[_Identity, str]] = set()
        self._paths: set[Path] = set()
        self.cycles_skipped = 0
        self.duplicates_skipped = 0

        building: dict[str, list[MusicFile]] = {}
        self._scan(building)
        # Map: normalized filename -> candidates sorted by normalized absolute path
        self._by_name: dict[str, tuple[MusicFile, ...]] = {
            name: tuple(sorted(files, key=lambda f: f.sort_key))
            for name, files in building.items()
        }
        log.info(
            f"Music index built: {self.file_count} files, "
            f"{self.filename_count} distinct names under {self.music_root}"
            + (f", {len(self._errors)} unreadable" if self._errors else "")
        )

    def _scan(self, building: dict[str, list[MusicFile]]) -> None:
        """Depth-first walk in sorted name order, tracking the ancestor chain."""
        root = self.music_root
        if not root.is_dir():
            log.debug(f"Music root is not a directory: {root}")
            return

        # Stack of (directory, identities of its ancestor directories)
        stack: list[tuple[Path, frozenset[_Identity]]] = [(root, frozenset())]
        while stack:
            directory, chain = stack.pop()
            try:
                st = directory.stat()
            except OSError as e:
                self._record_error(directory, e)
                continue

            identity = (st.st_dev, st.st_ino)
            if identity in chain:
                log.debug(f"Symlink cycle skipped: {directory}")
                self.cycles_skipped += 1
                continue
            chain = chain | {identity}

            try:
                with os.scandir(directory) as it:
                    entries = sorted(it, key=lambda e: e.name)
            except OSError as e:
                self._record_error(directory, e)
                continue

            subdirs: list[Path] = []
            for entry in entries:
                try:
                    if entry.is_dir(follow_symlinks=self.follow_symlinks):
                        subdirs.append(Path(entry.path))
                    elif entry.is_file(follow_symlinks=self.follow_symlinks):
                        self._add_file(Path(entry.path), building)
                except OSError as e:
                    self._record_error(Path(entry.path), e)

            # Reversed so the smallest name is popped (walked) first
            for sub in reversed(subdirs):
                stack.append((sub, chain))

    def _add_file(self, path: Path, building: dict[str, list[MusicFile]]) -> None:
        if not self._is_allowed(path.name):
            return

        # os.stat, not DirEntry.stat: the latter reports st_ino=0 on Windows
        st = os.stat(path)
        music_file = MusicFile(
            path=path,
            segments=normalize_segments(path.relative_to(self.music_root)),
            absolute_segments=normalize_segments(path),
        )
        # Same file under another name (hardlink, file symlink) stays lookupable
        key = ((st.st_dev, st.st_ino), music_file.filename)
        if key in self._seen_files:
            log.debug(f"Already indexed via another path: {path}")
            self.duplicates_skipped += 1
            return
        self._seen_files.add(key)

        building.setdefault(music_file.filename, []).append(music_file)
        self._paths.add(path)

    def _is_allowed(self, filename: str) -> bool:
        if self._extensions is None:
            return True
        suffix = Path(filename).suffix.lower()
        return self._extensions.get(suffix, False)

    def _record_error(self, path: Path, error: OSError) -> None:
        reason = error.strerror or str(error)
        log.warning(f"Skipping unreadable path {path}: {reason}")
        self._errors.append(IndexingIOError(path, reason))

    def candidates(self, filename: str) -> tuple[MusicFile, ...]:
        """All indexed files sharing a filename (O(1)), sorted by path."""
        return self._by_name.get(normalize_segment(filename), ())

    def files(self) -> Iterator[MusicFile]:
        """Every indexed file, grouped by filename in sorted order."""
        for name in sorted(self._by_name):
            yield from self._by_name[name]

    def __contains__(self, path: object) -> bool:
        return isinstance(path, Path) and path in self._paths

    def __len__(self) -> int:
        return self.file_count

    @property
    def errors(self) -> tuple[IndexingIOError, ...]:
        """Directories/files that could not be read during the walk."""
        return tuple(self._errors)

    @property
    def file_count(self) -> int:
        """Total number of indexed files."""
        return len(self._paths)

    @property
    def filename_count(self) -> int:
        """Number of distinct normalized filenames."""
        return len(self._by_name)
