"""Per-turn target assignment.

Each owned pac is in one of three situations, recomputed every turn from its
position and stored target:

- arrived (position == target): pick the closest free super pellet, else the
  closest free regular pellet, else hold position;
- en route (position != target, target still a live pellet): keep going;
- stale (target no longer a live pellet): drop the target, then act as arrived.

Planning does not touch the trackers. ``TurnPlanner.plan`` returns a
TurnPlan describing what was eaten, which targets are dropped and where each
pac goes; ``TurnPlanner.apply`` commits it.
"""
import logging
from typing import Dict, List, Optional, Set, Tuple

from agent.grid import Position
from agent.pathfinder import PathFinder
from agent.pellets import REGULAR_VALUE, SUPER_VALUE

logger = logging.getLogger(__name__)

EN_ROUTE = 'en-route'
SUPER = 'super'
REGULAR = 'regular'
HOLD = 'hold'

# value tiers tried in order by an idle pac
TIERS = ((SUPER_VALUE, SUPER), (REGULAR_VALUE, REGULAR))


class Assignment:
    """Where one pac is sent this turn and why."""
    __slots__ = ('pac_id', 'target', 'distance', 'reason')

    def __init__(self, pac_id: int, target: Position, distance: Optional[int], reason: str):
        self.pac_id = pac_id
        self.target = target
        self.distance = distance
        self.reason = reason

    @property
    def commits_pellet(self) -> bool:
        return self.reason in (SUPER, REGULAR)

    def to_dict(self) -> Dict:
        return {
            'pac_id': self.pac_id,
            'target': list(self.target),
            'distance': self.distance,
            'reason': self.reason,
        }

    def __repr__(self):
        return f"Assignment(pac={self.pac_id}, target={self.target}, distance={self.distance}, reason={self.reason!r})"


class TurnPlan:
    """Outcome of one planning pass, not yet applied."""

    def __init__(self, turn: int):
        self.turn = turn
        self.consumed: List[Position] = []
        self.released: List[Position] = []
        self.cleared: List[int] = []
        self.assignments: List[Assignment] = []

    def assignment_for(self, pac_id: int) -> Optional[Assignment]:
        for a in self.assignments:
            if a.pac_id == pac_id:
                return a
        return None

    def moves(self) -> List[Tuple[int, int, int]]:
        return [(a.pac_id, a.target[0], a.target[1]) for a in self.assignments]

    def to_dict(self) -> Dict:
        return {
            'turn': self.turn,
            'consumed': [list(p) for p in self.consumed],
            'released': [list(p) for p in self.released],
            'cleared': list(self.cleared),
            'assignments': [a.to_dict() for a in self.assignments],
        }


class TurnPlanner:
    """Greedy nearest-pellet assignment, one pac after the other."""

    def __init__(self, pathfinder: PathFinder):
        self.pathfinder = pathfinder

    def plan(self, state) -> TurnPlan:
        pellets = state.pellets
        units = state.units
        plan = TurnPlan(state.turn)

        # every pac standing on a pellet eats it this turn, whoever targeted it
        eaten: Set[Position] = set()
        for pac in units.visible(state.turn):
            if pac.position not in eaten and pellets.is_live(*pac.position):
                eaten.add(pac.position)
                plan.consumed.append(pac.position)

        def live(pos: Position) -> bool:
            return pos not in eaten and pellets.is_live(*pos)

        # targets of pacs that were not reported this turn are dropped too,
        # otherwise their pellets would stay reserved forever
        for pac in units.mine():
            if pac.target == pac.position and not pac.target_distance:
                # idle or holding: nothing reserved
                continue
            if pac.last_seen != state.turn or not live(pac.target):
                self._drop_target(plan, pellets, pac)

        claimed: Set[Position] = set()
        cleared = set(plan.cleared)
        for pac in units.visible_mine(state.turn):
            target = pac.position if pac.id in cleared else pac.target
            if target != pac.position:
                assignment = Assignment(pac.id, target, pac.target_distance, EN_ROUTE)
            else:
                assignment = self._choose(pac, pellets, eaten | claimed)
                if assignment.commits_pellet:
                    claimed.add(assignment.target)
            logger.debug("turn %d: pac %d at %s -> %s (%s, distance=%s)", state.turn, pac.id,
                         pac.position, assignment.target, assignment.reason, assignment.distance)
            plan.assignments.append(assignment)
        return plan

    def _drop_target(self, plan: TurnPlan, pellets, pac) -> None:
        pellet = pellets.get(*pac.target)
        if pellet is not None and pellet.targeted:
            plan.released.append(pac.target)
        plan.cleared.append(pac.id)
        logger.debug("pac %d drops stale target %s", pac.id, pac.target)

    def _choose(self, pac, pellets, exclude: Set[Position]) -> Assignment:
        for value, reason in TIERS:
            found = pellets.closest_unconsumed_untargeted(pac.position, value, self.pathfinder, exclude=exclude)
            if found is not None:
                pellet, distance = found
                return Assignment(pac.id, pellet.position, distance, reason)
        return Assignment(pac.id, pac.position, 0, HOLD)

    @staticmethod
    def apply(plan: TurnPlan, state) -> None:
        pellets = state.pellets
        units = state.units
        for pos in plan.consumed:
            pellets.mark_consumed_at(*pos)
        for pos in plan.released:
            pellets.release(*pos)
        for pac_id in plan.cleared:
            units.get(pac_id, mine=True).clear_target()
        for a in plan.assignments:
            pac = units.get(a.pac_id, mine=True)
            pac.target = a.target
            pac.target_distance = a.distance
            if a.commits_pellet:
                pellets.mark_targeted(pellets.get(*a.target))
