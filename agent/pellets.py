"""Pellet registry rebuilt from each turn's visible pellets."""
import logging
from typing import Collection, Dict, Iterator, Optional, Tuple

from agent.grid import Position

logger = logging.getLogger(__name__)

REGULAR_VALUE = 1
SUPER_VALUE = 10


class Pellet:
    """A pellet, identified by its position."""
    __slots__ = ('x', 'y', 'value', 'consumed', 'targeted')

    def __init__(self, x: int, y: int, value: int):
        self.x = x
        self.y = y
        self.value = value
        self.consumed = False
        self.targeted = False

    @property
    def position(self) -> Position:
        return (self.x, self.y)

    @property
    def is_super(self) -> bool:
        return self.value == SUPER_VALUE

    def to_dict(self) -> Dict:
        return {
            'x': self.x,
            'y': self.y,
            'value': self.value,
            'consumed': self.consumed,
            'targeted': self.targeted,
        }

    def __repr__(self):
        return f"Pellet({self.x}, {self.y}, value={self.value}, consumed={self.consumed}, targeted={self.targeted})"


class PelletTracker:
    """Known pellets keyed by position, in first-seen order.

    At the start of a turn every pellet is marked consumed; the turn's
    visible pellets are then upserted, which brings them back. Anything not
    reported again stays consumed.
    """

    def __init__(self):
        self._pellets: Dict[Position, Pellet] = {}

    def __len__(self) -> int:
        return len(self._pellets)

    def __iter__(self) -> Iterator[Pellet]:
        return iter(self._pellets.values())

    def reset_visibility(self) -> None:
        for pellet in self._pellets.values():
            pellet.consumed = True

    def upsert(self, x: int, y: int, value: int) -> Pellet:
        pellet = self._pellets.get((x, y))
        if pellet is None:
            pellet = Pellet(x, y, value)
            self._pellets[(x, y)] = pellet
        else:
            pellet.value = value
            pellet.consumed = False
        return pellet

    def get(self, x: int, y: int) -> Optional[Pellet]:
        return self._pellets.get((x, y))

    def is_live(self, x: int, y: int) -> bool:
        pellet = self._pellets.get((x, y))
        return pellet is not None and not pellet.consumed

    def mark_consumed_at(self, x: int, y: int) -> Optional[Pellet]:
        pellet = self._pellets.get((x, y))
        if pellet is not None and not pellet.consumed:
            logger.debug("pellet %s eaten (value %d)", (x, y), pellet.value)
            pellet.consumed = True
        return pellet

    def mark_targeted(self, pellet: Pellet) -> None:
        pellet.targeted = True

    def release(self, x: int, y: int) -> None:
        """Clear the targeted flag of the pellet at (x, y), if any."""
        pellet = self._pellets.get((x, y))
        if pellet is not None:
            pellet.targeted = False

    def remaining(self) -> int:
        return sum(1 for p in self._pellets.values() if not p.consumed)

    def closest_unconsumed_untargeted(self, from_pos: Position, value: int, pathfinder,
                                      exclude: Collection[Position] = ()) -> Optional[Tuple[Pellet, int]]:
        """Closest free pellet of the given value by path length.

        Consumed, targeted and excluded pellets are skipped, as are pellets
        with no path from ``from_pos``. On equal distance the pellet seen
        first wins. Returns (pellet, hop count) or None.
        """
        best = None
        best_dist = None
        for pos, pellet in self._pellets.items():
            if pellet.value != value or pellet.consumed or pellet.targeted or pos in exclude:
                continue
            dist = pathfinder.distance(from_pos, pos)
            if dist is None:
                continue
            if best is None or dist < best_dist:
                best = pellet
                best_dist = dist
        if best is None:
            return None
        return best, best_dist
