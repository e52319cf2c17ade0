"""Tests for referees.maze_generator."""

from __future__ import annotations

from collections import Counter

import pytest

from referees.maze_generator import FLOOR, WALL, MazeGenerator, TetrisPiece, flood_fill


class TestGenerate:
    def test_shape(self) -> None:
        rows = MazeGenerator(seed=7).generate(31, 13)
        assert len(rows) == 13
        assert all(len(r) == 31 for r in rows)
        assert set(''.join(rows)) <= {WALL, FLOOR}

    def test_seed_is_reproducible(self) -> None:
        assert MazeGenerator(seed=3).generate(21, 11) == MazeGenerator(seed=3).generate(21, 11)

    def test_top_and_bottom_are_walls(self) -> None:
        rows = MazeGenerator(seed=1).generate(21, 11)
        assert set(rows[0]) == {WALL}
        assert set(rows[-1]) == {WALL}

    @pytest.mark.parametrize("seed", [0, 1, 2, 3])
    def test_single_connected_region(self, seed) -> None:
        rows = MazeGenerator(seed=seed).generate(31, 13)
        floor = [(x, y) for y, r in enumerate(rows) for x, c in enumerate(r) if c == FLOOR]
        assert floor
        assert flood_fill(rows, floor[0], set()) == set(floor)

    def test_too_small(self) -> None:
        with pytest.raises(ValueError):
            MazeGenerator().generate(2, 5)


class TestTiling:
    def test_blocks_grouped_into_whole_pieces(self) -> None:
        owner = MazeGenerator(seed=9)._tile(8, 7)
        sizes = Counter(owner.values())
        assert sizes
        assert set(sizes.values()) <= {3, 4, 5}

    def test_tiling_is_seeded(self) -> None:
        assert MazeGenerator(seed=9)._tile(8, 7) == MazeGenerator(seed=9)._tile(8, 7)


class TestTetrisPiece:
    def test_flips(self) -> None:
        corner = TetrisPiece({(0, 0), (0, 1), (1, 1)})
        assert corner.flip_x().blocks == {(1, 0), (1, 1), (0, 1)}
        assert corner.flip_y().blocks == {(0, 1), (0, 0), (1, 0)}
        assert corner.transpose().blocks == {(0, 0), (1, 0), (1, 1)}
