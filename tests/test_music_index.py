"""Tests for music_index.py -- recursive walk into a filename-keyed index."""

import os
from pathlib import Path

import pytest

from playlist_localizer.music_index import MusicIndex


def _touch(path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"audio")
    return path


@pytest.fixture
def music_tree(tmp_path):
    """Create a small library with a duplicate filename in two albums."""
    root = tmp_path / "music"
    _touch(root / "Rock" / "Queen" / "A Night at the Opera" / "Bohemian Rhapsody.mp3")
    _touch(root / "Rock" / "Queen" / "Greatest Hits" / "Bohemian Rhapsody.mp3")
    _touch(root / "Jazz" / "Coltrane" / "Giant Steps.flac")
    _touch(root / "Jazz" / "Coltrane" / "cover.jpg")
    _touch(root / "Unsorted" / "track01.MP3")
    return root


AUDIO = {".mp3": True, ".flac": True}


class TestMusicIndexBuild:
    """Test index construction from a directory tree."""

    def test_indexes_every_file_without_allow_list(self, music_tree):
        index = MusicIndex(music_tree)
        assert index.file_count == 5
        assert len(index) == 5

    def test_allow_list_filters_before_insertion(self, music_tree):
        index = MusicIndex(music_tree, extensions=AUDIO)
        assert index.file_count == 4
        assert index.candidates("cover.jpg") == ()

    def test_allow_list_false_entries_excluded(self, music_tree):
        index = MusicIndex(music_tree, extensions={".mp3": True, ".flac": False})
        assert index.candidates("Giant Steps.flac") == ()
        assert index.file_count == 3

    def test_allow_list_keys_normalized(self, music_tree):
        index = MusicIndex(music_tree, extensions={"MP3": True, "flac": True})
        assert index.file_count == 4

    def test_extension_match_case_insensitive(self, music_tree):
        index = MusicIndex(music_tree, extensions=AUDIO)
        assert len(index.candidates("track01.mp3")) == 1

    def test_handles_nonexistent_root(self, tmp_path):
        index = MusicIndex(tmp_path / "nonexistent")
        assert index.file_count == 0
        assert index.errors == ()

    def test_handles_empty_root(self, tmp_path):
        root = tmp_path / "empty"
        root.mkdir()
        index = MusicIndex(root)
        assert index.file_count == 0
        assert index.filename_count == 0

    def test_filename_count_groups_duplicates(self, music_tree):
        index = MusicIndex(music_tree, extensions=AUDIO)
        # two Bohemian Rhapsody files share one key
        assert index.filename_count == 3

    def test_root_is_resolved(self, music_tree):
        index = MusicIndex(music_tree)
        assert index.music_root == music_tree.resolve()
        assert index.music_root.is_absolute()


class TestCandidates:
    def test_lookup_is_case_insensitive(self, music_tree):
        index = MusicIndex(music_tree, extensions=AUDIO)
        assert len(index.candidates("BOHEMIAN RHAPSODY.MP3")) == 2

    def test_candidates_sorted_by_path(self, music_tree):
        index = MusicIndex(music_tree, extensions=AUDIO)
        names = [f.path.parent.name for f in index.candidates("bohemian rhapsody.mp3")]
        assert names == ["A Night at the Opera", "Greatest Hits"]

    def test_segments_relative_to_root(self, music_tree):
        index = MusicIndex(music_tree, extensions=AUDIO)
        (giant,) = index.candidates("giant steps.flac")
        assert giant.segments == ("jazz", "coltrane", "giant steps.flac")

    def test_absolute_segments_end_with_relative(self, music_tree):
        index = MusicIndex(music_tree, extensions=AUDIO)
        (giant,) = index.candidates("giant steps.flac")
        assert giant.absolute_segments[-3:] == giant.segments
        assert len(giant.absolute_segments) > len(giant.segments)

    def test_paths_are_absolute_and_exist(self, music_tree):
        index = MusicIndex(music_tree, extensions=AUDIO)
        for music_file in index.files():
            assert music_file.path.is_absolute()
            assert music_file.path.is_file()

    def test_contains(self, music_tree):
        index = MusicIndex(music_tree, extensions=AUDIO)
        real = music_tree.resolve() / "Jazz" / "Coltrane" / "Giant Steps.flac"
        assert real in index
        assert music_tree.resolve() / "nope.mp3" not in index
        assert "Giant Steps.flac" not in index

    def test_unknown_name(self, music_tree):
        index = MusicIndex(music_tree, extensions=AUDIO)
        assert index.candidates("missing-track.mp3") == ()


class TestSymlinks:
    def test_cycle_terminates_and_files_indexed_once(self, music_tree):
        (music_tree / "Jazz" / "loop").symlink_to(music_tree, target_is_directory=True)
        index = MusicIndex(music_tree)
        assert index.file_count == 5
        assert index.cycles_skipped >= 1

    def test_self_loop(self, music_tree):
        (music_tree / "Rock" / "self").symlink_to(
            music_tree / "Rock", target_is_directory=True
        )
        index = MusicIndex(music_tree)
        assert index.file_count == 5

    def test_linked_directory_indexed_once(self, tmp_path):
        root = tmp_path / "music"
        _touch(root / "Real" / "song.mp3")
        (root / "Link").symlink_to(root / "Real", target_is_directory=True)
        index = MusicIndex(root)
        assert index.file_count == 1
        assert index.duplicates_skipped == 1

    def test_file_symlink_under_other_name_indexed(self, tmp_path):
        root = tmp_path / "music"
        real = _touch(root / "Zeta" / "real.mp3")
        (root / "Alpha").mkdir()
        (root / "Alpha" / "alias.mp3").symlink_to(real)
        index = MusicIndex(root)
        assert index.file_count == 2
        assert index.duplicates_skipped == 0
        assert [f.path for f in index.candidates("real.mp3")] == [real.resolve()]
        assert [f.path for f in index.candidates("alias.mp3")] == [
            root.resolve() / "Alpha" / "alias.mp3"
        ]

    def test_hardlink_under_other_name_indexed(self, tmp_path):
        root = tmp_path / "music"
        real = _touch(root / "Zeta" / "real.mp3")
        (root / "Alpha").mkdir()
        os.link(real, root / "Alpha" / "alias.mp3")
        index = MusicIndex(root)
        assert index.file_count == 2
        assert len(index.candidates("real.mp3")) == 1
        assert len(index.candidates("alias.mp3")) == 1

    def test_symlinks_not_followed(self, tmp_path):
        root = tmp_path / "music"
        _touch(root / "Real" / "song.mp3")
        outside = tmp_path / "outside"
        _touch(outside / "elsewhere.mp3")
        (root / "Link").symlink_to(outside, target_is_directory=True)

        followed = MusicIndex(root, follow_symlinks=True)
        assert len(followed.candidates("elsewhere.mp3")) == 1

        not_followed = MusicIndex(root, follow_symlinks=False)
        assert not_followed.candidates("elsewhere.mp3") == ()
        assert not_followed.file_count == 1


class TestPartialFailure:
    def test_unreadable_directory_is_recorded_and_skipped(self, music_tree, monkeypatch):
        real_scandir = os.scandir

        def fake_scandir(path):
            if Path(path).name == "Jazz":
                raise PermissionError(13, "Permission denied", str(path))
            return real_scandir(path)

        monkeypatch.setattr(os, "scandir", fake_scandir)
        index = MusicIndex(music_tree)

        assert len(index.errors) == 1
        assert index.errors[0].path.name == "Jazz"
        assert index.errors[0].reason == "Permission denied"
        # Everything outside Jazz is still indexed
        assert index.file_count == 3
        assert len(index.candidates("bohemian rhapsody.mp3")) == 2
