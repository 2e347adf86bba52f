"""Playlist Localizer -- repoint m3u/extm3u playlists at a local music library.

Core modules:
    config       -- Localizer configuration via pydantic-settings (.env + env vars).
                    CLI flags passed as kwargs to LocalizerConfig.
    cli          -- Click CLI entry point (playlist-localizer), including shell
                    completion script generation.
    localizer    -- Run orchestration: boundary validation, one index build per
                    run, per-playlist matching (optionally threaded), writing.
    music_index  -- Recursive music root walk into a filename-keyed index.
                    Symlink cycles are skipped via a per-chain directory identity
                    set; unreadable directories are recorded, not fatal.
    playlist     -- Playlist parsing (plain m3u and extended m3u). Directives are
                    attached verbatim to the following path entry; bad lines become
                    unresolved entries instead of aborting the playlist.
    segments     -- Separator-agnostic, case-folded path segment normalization.
    matcher      -- Filename lookup plus longest-common-suffix scoring with a
                    deterministic lexicographic tie-break.
    writer       -- m3u / extm3u serialization of localized playlists.
"""
