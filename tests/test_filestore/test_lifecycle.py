"""
Directory lifecycle tests
"""

import logging
import os

from catalog_resources.filestore import DirectoryMover


class TestRename:
    """Moving record directories"""

    def test_rename_moves_content(self, data_dir):
        old_dir = data_dir / "00000-00099" / "42"
        (old_dir / "public").mkdir(parents=True)
        (old_dir / "public" / "map.png").write_bytes(b"x")
        new_dir = data_dir / "res" / "ABC-1"

        assert DirectoryMover(data_dir).rename(old_dir, new_dir) is True

        assert (new_dir / "public" / "map.png").read_bytes() == b"x"
        assert not old_dir.exists()

    def test_rename_prunes_old_ancestors(self, data_dir):
        old_dir = data_dir / "a" / "b" / "42"
        old_dir.mkdir(parents=True)
        (old_dir / "map.png").write_bytes(b"x")

        DirectoryMover(data_dir).rename(old_dir, data_dir / "moved")

        assert not (data_dir / "a").exists()
        assert data_dir.is_dir()

    def test_rename_keeps_populated_ancestors(self, data_dir):
        old_dir = data_dir / "00000-00099" / "42"
        old_dir.mkdir(parents=True)
        (data_dir / "00000-00099" / "43").mkdir()

        DirectoryMover(data_dir).rename(old_dir, data_dir / "moved")

        assert (data_dir / "00000-00099" / "43").is_dir()

    def test_rename_missing_source_creates_target(self, data_dir):
        new_dir = data_dir / "res" / "ABC-1"

        assert DirectoryMover(data_dir).rename(data_dir / "missing", new_dir) is True
        assert new_dir.is_dir()

    def test_rename_failure_is_logged(self, data_dir, caplog):
        old_dir = data_dir / "old"
        old_dir.mkdir(parents=True)
        (old_dir / "map.png").write_bytes(b"x")
        new_dir = data_dir / "taken"
        new_dir.mkdir()
        (new_dir / "other.png").write_bytes(b"y")

        with caplog.at_level(logging.ERROR):
            assert DirectoryMover(data_dir).rename(old_dir, new_dir) is False

        assert "Datastore issue" in caplog.text
        assert (old_dir / "map.png").is_file()


class TestPruneEmptyAncestors:
    """Removing empty folders"""

    def test_prunes_up_to_boundary(self, data_dir):
        deepest = data_dir / "a" / "b" / "c"
        deepest.mkdir(parents=True)

        removed = DirectoryMover(data_dir).prune_empty_ancestors(deepest, data_dir)

        assert [p.name for p in removed] == ["c", "b", "a"]
        assert data_dir.is_dir()

    def test_boundary_never_removed(self, data_dir):
        data_dir.mkdir(parents=True)

        assert DirectoryMover(data_dir).prune_empty_ancestors(data_dir, data_dir) == []
        assert data_dir.is_dir()

    def test_stops_at_first_non_empty(self, data_dir):
        deepest = data_dir / "a" / "b"
        deepest.mkdir(parents=True)
        (data_dir / "a" / "keep.txt").write_bytes(b"x")

        removed = DirectoryMover(data_dir).prune_empty_ancestors(deepest, data_dir)

        assert [p.name for p in removed] == ["b"]
        assert (data_dir / "a").is_dir()

    def test_missing_levels_skipped(self, data_dir):
        (data_dir / "a").mkdir(parents=True)

        removed = DirectoryMover(data_dir).prune_empty_ancestors(data_dir / "a" / "gone" / "42", data_dir)

        assert [p.name for p in removed] == ["a"]

    def test_outside_boundary_untouched(self, temp_dir, data_dir, caplog):
        outside = temp_dir / "elsewhere" / "empty"
        outside.mkdir(parents=True)

        with caplog.at_level(logging.WARNING):
            removed = DirectoryMover(data_dir).prune_empty_ancestors(outside, data_dir)

        assert removed == []
        assert outside.is_dir()
        assert "Refusing to prune" in caplog.text

    def test_accepts_string_paths(self, data_dir):
        deepest = data_dir / "a"
        deepest.mkdir(parents=True)

        removed = DirectoryMover(str(data_dir)).prune_empty_ancestors(os.fspath(deepest), str(data_dir))
        assert len(removed) == 1
