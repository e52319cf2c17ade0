"""Tests for agent.pathfinder (A* search)."""

from __future__ import annotations

from collections import deque
from typing import Dict, Optional, Tuple

import pytest

from agent.grid import Grid
from agent.pathfinder import PathFinder

OPEN_5X5 = ["     "] * 5

WALL_CORRIDOR_5X5 = [
    "     ",
    " ### ",
    "   # ",
    "## # ",
    "     ",
]

ENCLOSED = [
    "     ",
    " ### ",
    " # # ",
    " ### ",
    "     ",
]


def bfs_distance(grid: Grid, start: Tuple[int, int], goal: Tuple[int, int]) -> Optional[int]:
    dist: Dict[Tuple[int, int], int] = {start: 0}
    queue = deque([start])
    while queue:
        pos = queue.popleft()
        if pos == goal:
            return dist[pos]
        for n in grid.neighbors(*pos):
            if not n.is_wall and n.position not in dist:
                dist[n.position] = dist[pos] + 1
                queue.append(n.position)
    return None


def assert_valid_path(grid: Grid, path) -> None:
    for a, b in zip(path, path[1:]):
        assert b in [n.position for n in grid.neighbors(*a)]
        assert not grid.is_wall(*b)


class TestShortestPath:
    @pytest.mark.parametrize("rows", [OPEN_5X5, WALL_CORRIDOR_5X5])
    def test_matches_bfs_for_all_pairs(self, rows) -> None:
        grid = Grid.from_rows(rows)
        finder = PathFinder(grid)
        cells = [c.position for c in grid.open_cells()]
        for start in cells:
            for goal in cells:
                path = finder.find_path(start, goal)
                expected = bfs_distance(grid, start, goal)
                assert path is not None
                assert len(path) - 1 == expected
                assert path[0] == start and path[-1] == goal
                assert_valid_path(grid, path)

    @pytest.mark.parametrize("goal", [(0, 0), (1, 0), (4, 0), (2, 3), (4, 4)])
    def test_open_grid_distance_is_manhattan(self, goal) -> None:
        finder = PathFinder(Grid.from_rows(OPEN_5X5))
        assert finder.distance((0, 0), goal) == goal[0] + goal[1]

    def test_start_equals_goal(self) -> None:
        finder = PathFinder(Grid.from_rows(OPEN_5X5))
        assert finder.find_path((2, 2), (2, 2)) == [(2, 2)]
        assert finder.distance((2, 2), (2, 2)) == 0

    def test_detour_around_wall(self) -> None:
        finder = PathFinder(Grid.from_rows(WALL_CORRIDOR_5X5))
        # (0, 3) is a wall: the path goes through the gap at (2, 3)
        assert finder.distance((0, 2), (0, 4)) == 6

    def test_deterministic(self) -> None:
        finder = PathFinder(Grid.from_rows(OPEN_5X5))
        first = finder.find_path((0, 0), (4, 4))
        for _ in range(5):
            assert finder.find_path((0, 0), (4, 4)) == first


class TestNoPath:
    def test_enclosed_cell_is_unreachable(self) -> None:
        finder = PathFinder(Grid.from_rows(ENCLOSED))
        assert finder.find_path((0, 0), (2, 2)) is None
        assert finder.distance((2, 2), (0, 0)) is None

    def test_wall_endpoint_raises(self) -> None:
        finder = PathFinder(Grid.from_rows(ENCLOSED))
        with pytest.raises(ValueError):
            finder.find_path((0, 0), (1, 1))


class TestScratchState:
    def test_grid_cells_carry_no_search_fields(self) -> None:
        grid = Grid.from_rows(OPEN_5X5)
        PathFinder(grid).find_path((0, 0), (4, 4))
        cell = grid.cell(2, 2)
        for name in ("g", "h", "f", "parent"):
            assert not hasattr(cell, name)

    def test_searches_do_not_interfere(self) -> None:
        grid = Grid.from_rows(WALL_CORRIDOR_5X5)
        finder = PathFinder(grid)
        a = finder.find_path((0, 0), (4, 4))
        finder.find_path((4, 4), (0, 2))
        assert finder.find_path((0, 0), (4, 4)) == a

    def test_search_counter(self) -> None:
        finder = PathFinder(Grid.from_rows(OPEN_5X5))
        finder.distance((0, 0), (1, 1))
        finder.distance((0, 0), (2, 1))
        assert finder.searches == 2


class TestWrap:
    def test_tunnel_shortens_path(self) -> None:
        rows = ["#####", "     ", "#####"]
        assert PathFinder(Grid.from_rows(rows)).distance((0, 1), (4, 1)) == 4
        assert PathFinder(Grid.from_rows(rows, wrap=True)).distance((0, 1), (4, 1)) == 1
