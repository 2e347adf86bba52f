"""CLI entry point for the playlist localizer."""

from __future__ import annotations

import json
from pathlib import Path

import click
from click.shell_completion import get_completion_class
from loguru import logger
from pydantic import ValidationError

from .config import LocalizerConfig
from .errors import InvalidInputError
from .localizer import PlaylistLocalizer
from .models import LocalizedPlaylist

log = logger.bind(stage="cli")

PROG_NAME = "playlist-localizer"
COMPLETE_VAR = "_PLAYLIST_LOCALIZER_COMPLETE"


def _print_completion(ctx: click.Context, param: click.Parameter, shell: str | None) -> None:
    """Print the shell completion script for SHELL and exit."""
    if not shell or ctx.resilient_parsing:
        return
    comp_cls = get_completion_class(shell)
    if comp_cls is None:
        raise click.BadParameter(f"Unsupported shell: {shell}", ctx=ctx, param=param)
    comp = comp_cls(ctx.command, {}, PROG_NAME, COMPLETE_VAR)
    click.echo(comp.source())
    ctx.exit()


def _print_summary(
    results: list[LocalizedPlaylist],
    failed: list[tuple[Path, str]],
    written: list[Path],
    verbose: bool,
) -> None:
    for result in results:
        click.echo(
            f"{result.name}: {result.resolved_count}/{len(result.entries)} resolved"
        )
        if verbose:
            for entry, match in result.unresolved:
                location = entry.display_path or entry.raw or "<no path>"
                click.echo(f"  line {entry.line_number}: {location} ({match.reason})")

    for path, reason in failed:
        click.echo(f"{path}: failed ({reason})", err=True)

    unresolved = sum(r.unresolved_count for r in results)
    click.echo(
        f"\n{len(results)} playlists, {unresolved} unresolved entries, "
        f"{len(written)} written"
    )


@click.command()
@click.argument(
    "music_root", type=click.Path(exists=True, file_okay=False, path_type=Path)
)
@click.argument(
    "playlists", nargs=-1, type=click.Path(exists=True, dir_okay=False, path_type=Path)
)
@click.option(
    "-o",
    "--output-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory for localized playlists.",
)
@click.option(
    "-i",
    "--input-extension",
    default=None,
    help="Extension of playlists to discover under MUSIC_ROOT when none are given.",
)
@click.option(
    "-f",
    "--format",
    "output_format",
    type=click.Choice(["m3u", "extm3u"]),
    default=None,
    help="Output playlist format.",
)
@click.option(
    "-e", "--extension", "output_extension", default=None, help="Output file extension."
)
@click.option(
    "--relative", is_flag=True, help="Write paths relative to the output directory."
)
@click.option(
    "--keep-unresolved",
    is_flag=True,
    help="Keep unresolved entries with their original path instead of dropping them.",
)
@click.option(
    "-j",
    "--workers",
    type=click.IntRange(min=1),
    default=None,
    help="Number of playlists matched in parallel.",
)
@click.option("--dry-run", is_flag=True, help="Match and report without writing files.")
@click.option(
    "--json-output",
    "json_out",
    is_flag=True,
    help="Output per-entry results as JSON instead of a summary.",
)
@click.option(
    "-v", "--verbose", is_flag=True, help="List unresolved entries, enable debug logging."
)
@click.option(
    "-c",
    "--config",
    "config_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Path to .env file.",
)
@click.option(
    "-g",
    "--generate-completion",
    type=click.Choice(["bash", "zsh", "fish"]),
    callback=_print_completion,
    expose_value=False,
    is_eager=True,
    help="Print a shell completion script and exit.",
)
def main(
    music_root: Path,
    playlists: tuple[Path, ...],
    output_dir: Path | None,
    input_extension: str | None,
    output_format: str | None,
    output_extension: str | None,
    relative: bool,
    keep_unresolved: bool,
    workers: int | None,
    dry_run: bool,
    json_out: bool,
    verbose: bool,
    config_file: Path | None,
) -> None:
    """Repoint playlists at the songs found under MUSIC_ROOT.

    Each PLAYLIST (or every playlist found under MUSIC_ROOT when none are
    given) is matched against the local library and rewritten with paths
    that exist on this machine.
    """
    # Pass CLI flags as kwargs to avoid env pollution; unset flags keep env/.env values
    config_kwargs: dict[str, object] = {}
    if config_file is not None:
        config_kwargs["_env_file"] = config_file
    if output_dir is not None:
        config_kwargs["output_dir"] = output_dir
    if input_extension is not None:
        config_kwargs["input_extension"] = input_extension
    if output_format is not None:
        config_kwargs["output_format"] = output_format
    if output_extension is not None:
        config_kwargs["output_extension"] = output_extension
    if workers is not None:
        config_kwargs["workers"] = workers
    if relative:
        config_kwargs["path_mode"] = "relative"
    if keep_unresolved:
        config_kwargs["keep_unresolved"] = True
    if dry_run:
        config_kwargs["dry_run"] = True
    if verbose:
        config_kwargs["verbose"] = True
        config_kwargs["log_level"] = "DEBUG"

    try:
        config = LocalizerConfig(**config_kwargs)  # type: ignore[arg-type]
    except ValidationError as e:
        raise click.UsageError(f"Invalid configuration: {e}") from e
    config.setup_logging(library_name=music_root.resolve().name)

    localizer = PlaylistLocalizer(config)
    log.info(
        f"Localizing against {music_root.resolve()} "
        f"format={config.output_format} dry_run={config.dry_run}"
    )
    try:
        results = localizer.run(music_root, list(playlists) or None)
    except InvalidInputError as e:
        raise click.UsageError(str(e)) from e

    written = localizer.write_all(results)

    if json_out:
        output = {
            "playlists": [r.to_dict() for r in results],
            "failed": [
                {"path": str(p), "reason": reason} for p, reason in localizer.failed
            ],
            "written": [str(p) for p in written],
        }
        if localizer.index is not None:
            output["index"] = {
                "files": localizer.index.file_count,
                "unreadable": [str(e.path) for e in localizer.index.errors],
            }
        click.echo(json.dumps(output, indent=2))
    else:
        _print_summary(results, localizer.failed, written, config.verbose)
