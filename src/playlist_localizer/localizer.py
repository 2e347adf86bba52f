"""Run orchestration -- index once, then localize each playlist against it."""

from __future__ import annotations

from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from loguru import logger

from .config import LocalizerConfig
from .errors import InvalidInputError
from .matcher import match_playlist
from .models import LocalizedPlaylist
from .music_index import MusicIndex
from .playlist import discover_playlists, read_playlist
from .writer import output_path, write_playlist

log = logger.bind(stage="runner")


class PlaylistLocalizer:
    """Localizes a batch of playlists against one music root."""

    def __init__(self, config: LocalizerConfig) -> None:
        self.config = config
        self.index: MusicIndex | None = None
        # Playlists that could not be read or written: (path, reason)
        self.failed: list[tuple[Path, str]] = []

    def validate_inputs(self, music_root: Path, playlists: Sequence[Path]) -> None:
        """Reject a bad music root or playlist before any indexing starts."""
        if not music_root.exists():
            raise InvalidInputError(music_root, "music root does not exist")
        if not music_root.is_dir():
            raise InvalidInputError(music_root, "music root is not a directory")
        for playlist in playlists:
            if not playlist.is_file():
                raise InvalidInputError(playlist, "playlist file does not exist")

    def build_index(self, music_root: Path) -> MusicIndex:
        return MusicIndex(
            music_root,
            extensions=self.config.audio_extensions,
            follow_symlinks=self.config.follow_symlinks,
        )

    def localize(self, playlist_path: Path, index: MusicIndex) -> LocalizedPlaylist:
        """Parse one playlist and match every entry. Raises OSError on read failure."""
        flavor, entries = read_playlist(playlist_path)
        result = LocalizedPlaylist(
            source=playlist_path,
            flavor=flavor,
            entries=match_playlist(entries, index),
        )
        log.info(
            f"{playlist_path.name}: {result.resolved_count}/{len(result.entries)} "
            f"resolved"
        )
        for entry, match in result.unresolved:
            log.debug(
                f"{playlist_path.name}:{entry.line_number} unresolved "
                f"({match.reason}): {entry.display_path or entry.raw}"
            )
        return result

    def _localize_or_record(
        self, playlist_path: Path, index: MusicIndex
    ) -> LocalizedPlaylist | None:
        try:
            return self.localize(playlist_path, index)
        except OSError as e:
            reason = e.strerror or str(e)
            log.error(f"Cannot read playlist {playlist_path}: {reason}")
            self.failed.append((playlist_path, reason))
            return None

    def run(
        self,
        music_root: Path,
        playlists: Sequence[Path] | None = None,
    ) -> list[LocalizedPlaylist]:
        """Localize playlists against music_root.

        When no playlists are given, they are discovered under music_root
        by the configured input extension. Results keep input order;
        unreadable playlists are left out and listed in ``self.failed``.
        """
        music_root = Path(music_root)
        if playlists is None:
            self.validate_inputs(music_root, [])
            playlists = discover_playlists(music_root, self.config.input_extension)
        else:
            playlists = [Path(p) for p in playlists]
            self.validate_inputs(music_root, playlists)

        self.failed = []
        # Fully built before any matching starts
        index = self.build_index(music_root)
        self.index = index
        if not playlists:
            log.warning(f"No playlists to localize under {music_root}")
            return []

        workers = min(self.config.workers, len(playlists))
        if workers > 1:
            log.debug(f"Matching {len(playlists)} playlists on {workers} threads")
            with ThreadPoolExecutor(max_workers=workers) as pool:
                results = list(
                    pool.map(lambda p: self._localize_or_record(p, index), playlists)
                )
        else:
            results = [self._localize_or_record(p, index) for p in playlists]

        return [r for r in results if r is not None]

    def write_all(self, results: Sequence[LocalizedPlaylist]) -> list[Path]:
        """Write every localized playlist to the configured output dir.

        Nothing is written in dry-run mode. A failed write, or one that would
        clobber a source playlist or an earlier output of this run, is logged,
        recorded in ``self.failed`` and skipped.
        """
        if self.config.dry_run:
            for result in results:
                log.info(f"[dry-run] Would write {result.name}.{self.config.output_extension}")
            return []

        written: list[Path] = []
        # Never overwrite an input playlist or an output written earlier this run
        sources = {r.source.resolve() for r in results}
        sources.update(path.resolve() for path, _ in self.failed)
        claimed: set[Path] = set()
        for result in results:
            dest = output_path(
                result, self.config.output_dir, self.config.output_extension
            ).resolve()
            if dest in sources:
                reason = f"output would overwrite source playlist {dest}"
            elif dest in claimed:
                reason = f"output {dest} already written by another playlist"
            else:
                reason = None
            if reason is not None:
                log.error(f"Skipping {result.source}: {reason}")
                self.failed.append((result.source, reason))
                continue
            claimed.add(dest)

            try:
                written.append(
                    write_playlist(
                        result,
                        self.config.output_dir,
                        flavor=self.config.output_format,
                        extension=self.config.output_extension,
                        path_mode=self.config.path_mode,
                        keep_unresolved=self.config.keep_unresolved,
                    )
                )
            except OSError as e:
                log.error(f"Couldn't write playlist {result.name}: {e}")
                self.failed.append((result.source, str(e)))
        return written
