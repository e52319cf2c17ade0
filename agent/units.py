"""Pac registry: own and opponent units, keyed by id per side."""
from typing import Dict, Iterator, List, Optional

from agent.grid import Position


class Pac:
    """A unit as last reported, plus its current target assignment.

    ``target_distance`` is None when no target is committed and 0 when the
    pac holds its position because nothing is left to collect.
    """

    def __init__(self, pac_id: int, mine: bool, position: Position, type_id: str = 'NEUTRAL',
                 speed_turns_left: int = 0, ability_cooldown: int = 0, last_seen: int = 0):
        self.id = pac_id
        self.mine = mine
        self.position = position
        self.type_id = type_id
        self.speed_turns_left = speed_turns_left
        self.ability_cooldown = ability_cooldown
        self.target: Position = position
        self.target_distance: Optional[int] = None
        self.last_seen = last_seen

    @property
    def arrived(self) -> bool:
        return self.position == self.target

    def clear_target(self) -> None:
        self.target = self.position
        self.target_distance = None

    def to_dict(self) -> Dict:
        return {
            'id': self.id,
            'mine': self.mine,
            'position': list(self.position),
            'type': self.type_id,
            'speed_turns_left': self.speed_turns_left,
            'ability_cooldown': self.ability_cooldown,
            'target': list(self.target),
            'target_distance': self.target_distance,
            'last_seen': self.last_seen,
        }

    def __repr__(self):
        side = 'mine' if self.mine else 'opp'
        return f"Pac({self.id}, {side}, pos={self.position}, target={self.target})"


class UnitTracker:
    """Both sides' pacs. Units are never removed once sighted."""

    def __init__(self):
        self._mine: Dict[int, Pac] = {}
        self._opponents: Dict[int, Pac] = {}

    def upsert_or_create(self, pac_id: int, mine: bool, x: int, y: int, type_id: str = 'NEUTRAL',
                         speed_turns_left: int = 0, ability_cooldown: int = 0, turn: int = 0) -> Pac:
        side = self._mine if mine else self._opponents
        pac = side.get(pac_id)
        if pac is None:
            pac = Pac(pac_id, mine, (x, y), type_id, speed_turns_left, ability_cooldown, last_seen=turn)
            side[pac_id] = pac
            return pac
        pac.position = (x, y)
        pac.type_id = type_id
        pac.speed_turns_left = speed_turns_left
        pac.ability_cooldown = ability_cooldown
        pac.last_seen = turn
        return pac

    def get(self, pac_id: int, mine: bool = True) -> Optional[Pac]:
        return (self._mine if mine else self._opponents).get(pac_id)

    def mine(self) -> Iterator[Pac]:
        return iter(self._mine.values())

    def opponents(self) -> Iterator[Pac]:
        return iter(self._opponents.values())

    def visible_mine(self, turn: int) -> List[Pac]:
        return [p for p in self._mine.values() if p.last_seen == turn]

    def visible(self, turn: int) -> List[Pac]:
        """Every pac, own first, that was reported on ``turn``."""
        return self.visible_mine(turn) + [p for p in self._opponents.values() if p.last_seen == turn]

    def __len__(self) -> int:
        return len(self._mine) + len(self._opponents)
