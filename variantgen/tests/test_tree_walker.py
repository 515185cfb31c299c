"""Tests for tree walking."""

import os

from variantgen.tree_walker import TreeWalker, walk_files


class TestWalkFiles:
    """Tests for walk_files."""

    def test_yields_every_file_once(self, tmp_path, write_file):
        write_file(tmp_path / 'a.png')
        write_file(tmp_path / 'sub' / 'b.png')
        write_file(tmp_path / 'sub' / 'deeper' / 'c.jpg')
        (tmp_path / 'empty' / 'nested').mkdir(parents=True)

        files = list(walk_files(str(tmp_path)))

        assert sorted(files) == sorted([
            str(tmp_path / 'a.png'),
            str(tmp_path / 'sub' / 'b.png'),
            str(tmp_path / 'sub' / 'deeper' / 'c.jpg'),
        ])

    def test_missing_root(self, tmp_path):
        assert list(walk_files(str(tmp_path / 'missing'))) == []

    def test_paths_are_absolute(self, tmp_path, write_file):
        write_file(tmp_path / 'a.png')

        assert all(os.path.isabs(p) for p in walk_files(str(tmp_path)))


class TestTreeWalker:
    """Tests for TreeWalker class."""

    def test_walk_visits_files(self, tmp_path, write_file, logger):
        write_file(tmp_path / 'a.png')
        write_file(tmp_path / 'x' / 'b.png')
        visited = []

        count = TreeWalker(logger).walk(str(tmp_path), visited.append)

        assert count == 2
        assert len(visited) == 2
