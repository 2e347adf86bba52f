"""Exception hierarchy for the playlist localizer.

Only InvalidInputError aborts a run. IndexingIOError and
PlaylistParseError are recorded where they occur -- on the index and on the
playlist entry respectively -- and surface in the per-entry status.
"""

from pathlib import Path


class LocalizerError(Exception):
    """Base exception for all localizer errors."""


class InvalidInputError(LocalizerError):
    """Music root or playlist path rejected at the boundary."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


class IndexingIOError(LocalizerError):
    """A directory or file could not be read during the music root walk."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"Cannot read {path}: {reason}")
        self.path = path
        self.reason = reason


class PlaylistParseError(LocalizerError):
    """A playlist line could not be interpreted as a path or directive."""

    def __init__(self, line_number: int, reason: str) -> None:
        super().__init__(f"line {line_number}: {reason}")
        self.line_number = line_number
        self.reason = reason
