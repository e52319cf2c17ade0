"""Générateur de labyrinthe pour le referee local (pièces Tetris, symétrie horizontale).

The left half is carved from randomly placed Tetris pieces, mirrored to the
right, closed at the top and bottom, and reduced to its largest connected
region. Edge columns keep at most one opening per run, which become the
wrap-around tunnels.
"""
import logging
import random
from collections import deque
from typing import Dict, List, Optional, Set, Tuple

logger = logging.getLogger(__name__)

WALL = '#'
FLOOR = ' '

Block = Tuple[int, int]


class TetrisPiece:
    """Set of unit blocks anchored at (0, 0)."""
    def __init__(self, blocks: Set[Block]):
        self.blocks = frozenset(blocks)
        self.max_x = max(x for x, _ in blocks)
        self.max_y = max(y for _, y in blocks)

    def flip_x(self) -> 'TetrisPiece':
        return TetrisPiece({(self.max_x - x, y) for x, y in self.blocks})

    def flip_y(self) -> 'TetrisPiece':
        return TetrisPiece({(x, self.max_y - y) for x, y in self.blocks})

    def transpose(self) -> 'TetrisPiece':
        return TetrisPiece({(y, x) for x, y in self.blocks})


def _base_pieces() -> List[TetrisPiece]:
    square = TetrisPiece({(0, 0), (1, 0), (0, 1), (1, 1)})
    corner = TetrisPiece({(0, 0), (0, 1), (1, 1)})
    tee_v = TetrisPiece({(0, 0), (0, 1), (1, 1), (0, 2)})
    cross = TetrisPiece({(1, 0), (0, 1), (1, 1), (2, 1), (1, 2)})
    ell = TetrisPiece({(0, 0), (0, 1), (1, 1), (2, 1)})
    return [
        square,
        corner, corner.flip_x(), corner.flip_y(), corner.transpose(),
        tee_v, tee_v.flip_x(), tee_v.transpose(), tee_v.transpose().flip_y(),
        cross,
        ell, ell.flip_x(), ell.flip_y(), ell.flip_y().flip_x(),
        ell.transpose().flip_y().flip_x(), ell.transpose(),
        ell.transpose().flip_y(), ell.transpose().flip_x(),
    ]


class MazeGenerator:
    """Générateur de labyrinthe symétrique. Pass a seed for reproducible maps."""

    def __init__(self, seed: Optional[int] = None):
        self.rng = random.Random(seed)
        self.pieces = _base_pieces()

    def generate(self, width: int, height: int) -> List[str]:
        """Return ``height`` rows of ``width`` characters ('#' wall, ' ' floor)."""
        if width < 3 or height < 3:
            raise ValueError(f"maze must be at least 3x3, got {width}x{height}")
        half_w = width // 2 + 1
        half = self._carve(half_w, height)

        grid = [[WALL] * width for _ in range(height)]
        for y in range(1, height - 1):
            for x in range(half_w):
                if half[y][x] == FLOOR:
                    grid[y][x] = FLOOR
                    grid[y][width - x - 1] = FLOOR

        self._narrow_tunnels(grid, width, height)
        kept = self._keep_largest_region(grid)
        logger.info("maze %dx%d generated, %d floor cells", width, height, kept)
        return [''.join(row) for row in grid]

    def _carve(self, width: int, height: int) -> List[List[str]]:
        """Tile a half-resolution lattice with pieces and carve every piece outline.

        Lattice block (x, y) is centred on grid cell (2x - 1, 2y - 1). A side
        of a block whose neighbour belongs to another piece (or to none) is
        opened as a 3-cell corridor, so floor runs along the piece outlines.
        """
        owner = self._tile(width // 2 + 1, height // 2 + 1)
        grid = [[WALL] * width for _ in range(height)]
        for (bx, by), origin in owner.items():
            cx, cy = bx * 2 - 1, by * 2 - 1
            if bx < 1 or by < 1 or cx >= width or cy >= height:
                continue
            for dx, dy in ((0, -1), (1, 0), (0, 1), (-1, 0)):
                if owner.get((bx + dx, by + dy)) == origin:
                    continue
                for i in (-1, 0, 1):
                    x, y = (cx + i, cy + dy) if dx == 0 else (cx + dx, cy + i)
                    if 0 <= x < width and 0 <= y < height:
                        grid[y][x] = FLOOR
        return grid

    def _tile(self, lattice_w: int, lattice_h: int) -> Dict[Block, Block]:
        """Map each covered lattice block to the origin of the piece covering it.

        A free block gets a random piece among those that fit, but stays
        empty when only one fits; those gaps become the maze's open areas.
        """
        owner: Dict[Block, Block] = {}
        for y in range(lattice_h):
            for x in range(lattice_w):
                if (x, y) in owner:
                    continue
                fitting = [p for p in self.pieces
                           if not any((x + bx, y + by) in owner for bx, by in p.blocks)]
                if len(fitting) < 2:
                    continue
                for bx, by in self.rng.choice(fitting).blocks:
                    owner[(x + bx, y + by)] = (x, y)
        return owner

    @staticmethod
    def _narrow_tunnels(grid: List[List[str]], width: int, height: int) -> None:
        """Keep only the middle cell of each vertical run of floor on the edge columns."""
        for x in (0, width - 1):
            y = 1
            while y < height - 1:
                if grid[y][x] != FLOOR:
                    y += 1
                    continue
                start = y
                while y < height - 1 and grid[y][x] == FLOOR:
                    y += 1
                end = y - 1
                if end > start:
                    mid = (start + end) // 2
                    for cy in range(start, end + 1):
                        if cy != mid:
                            grid[cy][x] = WALL

    @staticmethod
    def _keep_largest_region(grid: List[List[str]]) -> int:
        height, width = len(grid), len(grid[0])
        seen: Set[Block] = set()
        regions: List[Set[Block]] = []
        for y in range(height):
            for x in range(width):
                if grid[y][x] == FLOOR and (x, y) not in seen:
                    regions.append(flood_fill(grid, (x, y), seen))
        if not regions:
            return 0
        largest = max(regions, key=len)
        if len(regions) > 1:
            logger.debug("removing %d isolated region(s)", len(regions) - 1)
        for region in regions:
            if region is largest:
                continue
            for x, y in region:
                grid[y][x] = WALL
        return len(largest)


def flood_fill(grid, start: Block, seen: Set[Block]) -> Set[Block]:
    """Connected floor cells reachable from ``start`` (rows may be strings or lists)."""
    height, width = len(grid), len(grid[0])
    region: Set[Block] = set()
    queue = deque([start])
    while queue:
        x, y = queue.popleft()
        if (x, y) in seen or not (0 <= x < width and 0 <= y < height):
            continue
        if grid[y][x] != FLOOR:
            continue
        seen.add((x, y))
        region.add((x, y))
        for dx, dy in ((0, -1), (1, 0), (0, 1), (-1, 0)):
            queue.append((x + dx, y + dy))
    return region
