"""Tests for agent.grid."""

from __future__ import annotations

import pytest

from agent.grid import Grid

CORRIDOR = [
    "#####",
    "#   #",
    "# # #",
    "#   #",
    "#####",
]


class TestGridConstruction:
    def test_dimensions_and_walls(self) -> None:
        grid = Grid(5, 5, CORRIDOR)
        assert (grid.width, grid.height) == (5, 5)
        assert grid.is_wall(0, 0)
        assert not grid.is_wall(1, 1)
        assert grid.is_wall(2, 2)

    def test_from_rows_infers_size(self) -> None:
        grid = Grid.from_rows(["   ", "   "])
        assert (grid.width, grid.height) == (3, 2)

    def test_wrong_row_count_raises(self) -> None:
        with pytest.raises(ValueError):
            Grid(3, 3, ["   ", "   "])

    def test_short_row_raises(self) -> None:
        with pytest.raises(ValueError):
            Grid(3, 2, ["   ", " "])

    def test_long_row_raises(self) -> None:
        with pytest.raises(ValueError):
            Grid(3, 1, ["     "])

    def test_ragged_rows_raise(self) -> None:
        with pytest.raises(ValueError):
            Grid.from_rows(["   ", "    "])

    def test_open_cells(self) -> None:
        grid = Grid(5, 5, CORRIDOR)
        assert len(list(grid.open_cells())) == 8

    def test_rows_round_trip(self) -> None:
        assert Grid(5, 5, CORRIDOR).rows() == CORRIDOR


class TestNeighbors:
    def test_corner_has_two_neighbors(self) -> None:
        grid = Grid.from_rows(["   ", "   ", "   "])
        assert [c.position for c in grid.neighbors(0, 0)] == [(1, 0), (0, 1)]

    def test_center_order_left_right_up_down(self) -> None:
        grid = Grid.from_rows(["   ", "   ", "   "])
        assert [c.position for c in grid.neighbors(1, 1)] == [(0, 1), (2, 1), (1, 0), (1, 2)]

    def test_walls_are_listed_as_neighbors(self) -> None:
        grid = Grid(5, 5, CORRIDOR)
        assert (2, 2) in [c.position for c in grid.neighbors(2, 1)]

    def test_adjacency_is_symmetric_and_in_bounds(self) -> None:
        grid = Grid(5, 5, CORRIDOR, wrap=True)
        for row in grid.cells:
            for cell in row:
                for n in cell.neighbors:
                    assert grid.in_bounds(n.x, n.y)
                    assert cell in n.neighbors

    def test_neighbors_are_cached(self) -> None:
        grid = Grid(5, 5, CORRIDOR)
        assert grid.neighbors(1, 1) is grid.neighbors(1, 1)

    def test_wrap_links_edge_columns(self) -> None:
        grid = Grid.from_rows(["    "], wrap=True)
        assert [c.position for c in grid.neighbors(0, 0)] == [(3, 0), (1, 0)]
        assert (0, 0) in [c.position for c in grid.neighbors(3, 0)]

    def test_no_wrap_by_default(self) -> None:
        grid = Grid.from_rows(["    "])
        assert [c.position for c in grid.neighbors(0, 0)] == [(1, 0)]


class TestManhattan:
    def test_plain(self) -> None:
        grid = Grid.from_rows(["     "] * 3)
        assert grid.manhattan((0, 0), (4, 2)) == 6

    def test_wrapped_takes_short_way(self) -> None:
        grid = Grid.from_rows(["     "] * 3, wrap=True)
        assert grid.manhattan((0, 0), (4, 2)) == 3
