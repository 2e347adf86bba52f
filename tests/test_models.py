"""Tests for models.py -- enums, constants, result types."""

from pathlib import Path

from playlist_localizer.models import (
    AUDIO_EXTENSIONS,
    LocalizedPlaylist,
    MatchResult,
    MatchStatus,
    MusicFile,
    PlaylistEntry,
    PlaylistFlavor,
    UnresolvedReason,
    default_extension_map,
)


def _entry(path: str, line: int = 1, **kwargs) -> PlaylistEntry:
    return PlaylistEntry(raw=path, path=path, line_number=line, **kwargs)


class TestEnums:
    def test_flavor_values(self):
        assert PlaylistFlavor.M3U == "m3u"
        assert PlaylistFlavor.EXTM3U == "extm3u"

    def test_flavor_from_string(self):
        assert PlaylistFlavor("extm3u") is PlaylistFlavor.EXTM3U

    def test_unresolved_reasons(self):
        assert {r.value for r in UnresolvedReason} == {
            "parse_error",
            "no_candidate",
            "remote",
        }


class TestExtensions:
    def test_common_audio_extensions(self):
        for ext in (".mp3", ".flac", ".m4a", ".ogg", ".opus"):
            assert ext in AUDIO_EXTENSIONS

    def test_playlists_are_not_audio(self):
        assert ".m3u" not in AUDIO_EXTENSIONS

    def test_default_map_all_true(self):
        mapping = default_extension_map()
        assert set(mapping) == set(AUDIO_EXTENSIONS)
        assert all(mapping.values())


class TestMusicFile:
    def test_filename_and_sort_key(self):
        f = MusicFile(
            path=Path("/music/A/Song.mp3"),
            segments=("a", "song.mp3"),
            absolute_segments=("music", "a", "song.mp3"),
        )
        assert f.filename == "song.mp3"
        assert f.sort_key == "music/a/song.mp3"


class TestMatchResult:
    def test_resolved(self):
        result = MatchResult.resolved(Path("/music/a.mp3"), 2)
        assert result.status is MatchStatus.RESOLVED
        assert result.is_resolved
        assert result.local_path == Path("/music/a.mp3")
        assert result.score == 2
        assert result.reason is None

    def test_unresolved(self):
        result = MatchResult.unresolved(UnresolvedReason.NO_CANDIDATE)
        assert result.status is MatchStatus.UNRESOLVED
        assert not result.is_resolved
        assert result.local_path is None
        assert result.reason is UnresolvedReason.NO_CANDIDATE

    def test_to_dict(self):
        assert MatchResult.unresolved(UnresolvedReason.REMOTE).to_dict() == {
            "status": "unresolved",
            "local_path": None,
            "score": 0,
            "reason": "remote",
        }


class TestPlaylistEntry:
    def test_malformed_flag(self):
        assert _entry("a.mp3").is_malformed is False
        assert _entry("", error="line 1: empty path").is_malformed is True


class TestLocalizedPlaylist:
    def _playlist(self) -> LocalizedPlaylist:
        return LocalizedPlaylist(
            source=Path("/lists/road trip.m3u"),
            flavor=PlaylistFlavor.M3U,
            entries=[
                (_entry("a.mp3", 1), MatchResult.resolved(Path("/m/a.mp3"), 0)),
                (_entry("b.mp3", 2), MatchResult.unresolved(UnresolvedReason.NO_CANDIDATE)),
                (_entry("c.mp3", 3), MatchResult.resolved(Path("/m/c.mp3"), 1)),
            ],
        )

    def test_name_is_stem(self):
        assert self._playlist().name == "road trip"

    def test_counts(self):
        playlist = self._playlist()
        assert playlist.resolved_count == 2
        assert playlist.unresolved_count == 1

    def test_unresolved_list(self):
        unresolved = self._playlist().unresolved
        assert [e.path for e, _ in unresolved] == ["b.mp3"]

    def test_to_dict_keeps_order(self):
        data = self._playlist().to_dict()
        assert data["resolved"] == 2
        assert data["unresolved"] == 1
        assert [e["line"] for e in data["entries"]] == [1, 2, 3]
        assert data["entries"][1]["reason"] == "no_candidate"
