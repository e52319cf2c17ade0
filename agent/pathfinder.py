"""A* shortest path on the maze grid.

Edge cost is 1 and the heuristic is the grid's Manhattan distance, which is
admissible and consistent on a 4-connected grid. Per-search state (g, h,
parent) lives in a dict keyed by position that is created for each call, so
the Grid stays read-only and searches never see each other's values.
"""
import heapq
import itertools
from typing import Dict, List, Optional

from agent.grid import Grid, Position


class _Node:
    __slots__ = ('g', 'h', 'parent')

    def __init__(self, g: int, h: int, parent: Optional[Position]):
        self.g = g
        self.h = h
        self.parent = parent

    @property
    def f(self) -> int:
        return self.g + self.h


class PathFinder:
    """Computes hop-count shortest paths between open cells of a Grid.

    Ties on f are broken by lower h (the entry closer to the goal), then by
    push order, so a given grid always yields the same path.
    """

    def __init__(self, grid: Grid):
        self.grid = grid
        self.searches = 0

    def find_path(self, start: Position, goal: Position) -> Optional[List[Position]]:
        """Return the positions from start to goal inclusive, or None if unreachable."""
        grid = self.grid
        for label, (x, y) in (('start', start), ('goal', goal)):
            if grid.is_wall(x, y):
                raise ValueError(f"{label} {(x, y)} is a wall")
        self.searches += 1
        if start == goal:
            return [start]

        counter = itertools.count()
        h0 = grid.manhattan(start, goal)
        scratch: Dict[Position, _Node] = {start: _Node(0, h0, None)}
        open_heap = [(h0, h0, next(counter), start)]
        closed = set()

        while open_heap:
            f, h, _, current = heapq.heappop(open_heap)
            if current in closed:
                continue
            node = scratch[current]
            if f != node.f:
                # superseded by a cheaper entry pushed later
                continue
            if current == goal:
                return self._reconstruct(scratch, goal)
            closed.add(current)

            tentative_g = node.g + 1
            for neighbor in grid.neighbors(*current):
                pos = (neighbor.x, neighbor.y)
                if neighbor.is_wall or pos in closed:
                    continue
                known = scratch.get(pos)
                if known is not None and tentative_g >= known.g:
                    continue
                h_n = known.h if known is not None else grid.manhattan(pos, goal)
                scratch[pos] = _Node(tentative_g, h_n, current)
                heapq.heappush(open_heap, (tentative_g + h_n, h_n, next(counter), pos))

        return None

    def distance(self, start: Position, goal: Position) -> Optional[int]:
        """Hop count between start and goal, None when no path exists."""
        path = self.find_path(start, goal)
        if path is None:
            return None
        return len(path) - 1

    @staticmethod
    def _reconstruct(scratch: Dict[Position, _Node], goal: Position) -> List[Position]:
        path = []
        current: Optional[Position] = goal
        while current is not None:
            path.append(current)
            current = scratch[current].parent
        path.reverse()
        return path
