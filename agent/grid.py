"""Static maze topology.

The grid is built once from the startup map rows and never mutated afterwards:
searches keep their scratch state elsewhere (see pathfinder.PathFinder).
"""
from typing import Iterator, List, Tuple

WALL = '#'

Position = Tuple[int, int]


class Cell:
    """One grid square. Neighbors are filled in by Grid after construction."""
    __slots__ = ('x', 'y', 'is_wall', 'neighbors')

    def __init__(self, x: int, y: int, is_wall: bool):
        self.x = x
        self.y = y
        self.is_wall = is_wall
        self.neighbors: Tuple['Cell', ...] = ()

    @property
    def position(self) -> Position:
        return (self.x, self.y)

    def __repr__(self):
        return f"Cell({self.x}, {self.y}{', wall' if self.is_wall else ''})"


class Grid:
    """Rectangular maze of Cells.

    Neighbors are the orthogonal cells in bounds, in the order left, right,
    up, down. Walls are kept as neighbors; searches filter them. With
    ``wrap=True`` the first and last columns are adjacent (edge tunnels).
    """

    def __init__(self, width: int, height: int, rows: List[str], wrap: bool = False):
        if len(rows) != height:
            raise ValueError(f"expected {height} rows, got {len(rows)}")
        for y, row in enumerate(rows):
            if len(row) != width:
                raise ValueError(f"row {y} has {len(row)} cells, expected {width}")
        self.width = width
        self.height = height
        self.wrap = wrap
        self.cells: List[List[Cell]] = [
            [Cell(x, y, rows[y][x] == WALL) for x in range(width)]
            for y in range(height)
        ]
        for row in self.cells:
            for cell in row:
                cell.neighbors = tuple(self._compute_neighbors(cell))

    @classmethod
    def from_rows(cls, rows: List[str], wrap: bool = False) -> 'Grid':
        width = len(rows[0]) if rows else 0
        return cls(width, len(rows), rows, wrap=wrap)

    def _compute_neighbors(self, cell: Cell) -> List[Cell]:
        x, y = cell.x, cell.y
        found = []
        if x > 0:
            found.append(self.cells[y][x - 1])
        elif self.wrap and self.width > 1:
            found.append(self.cells[y][self.width - 1])
        if x < self.width - 1:
            found.append(self.cells[y][x + 1])
        elif self.wrap and self.width > 1:
            found.append(self.cells[y][0])
        if y > 0:
            found.append(self.cells[y - 1][x])
        if y < self.height - 1:
            found.append(self.cells[y + 1][x])
        # a 2-wide wrapped row would list the same cell twice
        unique = []
        for n in found:
            if n not in unique:
                unique.append(n)
        return unique

    def cell(self, x: int, y: int) -> Cell:
        return self.cells[y][x]

    def neighbors(self, x: int, y: int) -> Tuple[Cell, ...]:
        return self.cells[y][x].neighbors

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def is_wall(self, x: int, y: int) -> bool:
        return self.cells[y][x].is_wall

    def open_cells(self) -> Iterator[Cell]:
        for row in self.cells:
            for cell in row:
                if not cell.is_wall:
                    yield cell

    def manhattan(self, a: Position, b: Position) -> int:
        """Manhattan distance, taking the shorter way round when wrapping."""
        dx = abs(a[0] - b[0])
        if self.wrap:
            dx = min(dx, self.width - dx)
        return dx + abs(a[1] - b[1])

    def rows(self) -> List[str]:
        return [''.join(WALL if c.is_wall else ' ' for c in row) for row in self.cells]
