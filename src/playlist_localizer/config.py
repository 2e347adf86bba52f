"""Localizer configuration via pydantic-settings (.env + env vars)."""

import re
import sys
from pathlib import Path

from loguru import logger
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .models import PathMode, PlaylistFlavor, default_extension_map


_UNSAFE_LOG_CHARS_RE = re.compile(r"[^\w.-]+")


def log_file_name(library_name: str | None = None) -> str:
    """Log file name for a run against the library called library_name."""
    if library_name:
        safe = _UNSAFE_LOG_CHARS_RE.sub("_", library_name).strip("._")
        if safe:
            return f"playlist-localizer-{safe}.log"
    return "playlist-localizer.log"


class LocalizerConfig(BaseSettings):
    """All localizer configuration with layered resolution:
    .env file < environment variables < constructor kwargs.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )

    # -- Directories --
    output_dir: Path = Path("localized")
    log_dir: Path | None = None

    # -- Playlists --
    input_extension: str = "m3u"
    output_format: PlaylistFlavor = PlaylistFlavor.M3U
    output_extension: str = "m3u"
    path_mode: PathMode = PathMode.ABSOLUTE
    keep_unresolved: bool = False

    # -- Indexing --
    follow_symlinks: bool = True
    # extension -> "is audio"; only True entries are indexed
    audio_extensions: dict[str, bool] = Field(default_factory=default_extension_map)

    # -- Matching --
    workers: int = Field(default=1, ge=1)

    # -- Behavior --
    dry_run: bool = False
    verbose: bool = False
    log_level: str = "INFO"

    @field_validator("input_extension", "output_extension")
    @classmethod
    def _strip_dot(cls, value: str) -> str:
        value = value.strip().lstrip(".")
        if not value:
            raise ValueError("extension must not be empty")
        return value

    def setup_logging(self, library_name: str | None = None) -> None:
        """Configure loguru for the localizer.

        With ``log_dir`` set, DEBUG output also goes to a rotating file named
        after the music library, e.g. ``playlist-localizer-Music.log``, so runs
        against different libraries keep separate histories.
        """
        logger.remove()  # Remove default stderr handler

        log_format = (
            "{time:YYYY-MM-DDTHH:mm:ssZ} | {level:<8} | "
            "{extra[stage]:<8} | {message}"
        )

        def _default_extra(record):
            record["extra"].setdefault("stage", "")
            return True

        logger.add(
            sys.stderr,
            format=log_format,
            level=self.log_level.upper(),
            filter=_default_extra,
        )

        if self.log_dir is None:
            return
        self.log_dir.mkdir(parents=True, exist_ok=True)
        logger.add(
            str(self.log_dir / log_file_name(library_name)),
            format=log_format,
            level="DEBUG",
            rotation="10 MB",
            retention="30 days",
            filter=_default_extra,
        )
