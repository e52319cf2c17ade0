"""Top-level game state and the interface the transport layer talks to.

Typical use, one call sequence per turn::

    state = GameState()
    state.init_grid(width, height, rows)
    # each turn
    state.begin_turn(my_score, opponent_score)
    state.report_unit(pac_id, mine, x, y, type_id, speed_turns_left, ability_cooldown)
    state.report_pellet(x, y, value)
    moves = state.plan_turn()   # [(pac_id, x, y), ...]
"""
import logging
import time
from typing import Any, Dict, List, Optional, Tuple

from agent.grid import Grid
from agent.pathfinder import PathFinder
from agent.pellets import PelletTracker
from agent.planner import TurnPlan, TurnPlanner
from agent.units import UnitTracker

logger = logging.getLogger(__name__)

DEFAULT_TURN_BUDGET_MS = 50


class GameState:
    """Grid, pacs, pellets and scores for one game.

    The grid is built once by ``init_grid``; the trackers are updated by the
    ``report_*`` calls between ``begin_turn`` and ``plan_turn``.
    """

    def __init__(self, turn_budget_ms: float = DEFAULT_TURN_BUDGET_MS, wrap: bool = False):
        self.turn_budget_ms = turn_budget_ms
        self.wrap = wrap
        self.grid: Optional[Grid] = None
        self.pathfinder: Optional[PathFinder] = None
        self.planner: Optional[TurnPlanner] = None
        self.pellets = PelletTracker()
        self.units = UnitTracker()
        self.my_score = 0
        self.opponent_score = 0
        self.turn = 0
        self.last_plan: Optional[TurnPlan] = None

    def init_grid(self, width: int, height: int, rows: List[str]) -> None:
        self.grid = Grid(width, height, rows, wrap=self.wrap)
        self.pathfinder = PathFinder(self.grid)
        self.planner = TurnPlanner(self.pathfinder)
        logger.info("grid %dx%d ready (%d open cells, wrap=%s)", width, height,
                    sum(1 for _ in self.grid.open_cells()), self.wrap)

    def begin_turn(self, my_score: int, opponent_score: int) -> None:
        self.turn += 1
        self.my_score = my_score
        self.opponent_score = opponent_score
        self.pellets.reset_visibility()

    def report_unit(self, pac_id: int, mine: bool, x: int, y: int, type_id: str = 'NEUTRAL',
                    speed_turns_left: int = 0, ability_cooldown: int = 0):
        return self.units.upsert_or_create(pac_id, mine, x, y, type_id, speed_turns_left,
                                           ability_cooldown, turn=self.turn)

    def report_pellet(self, x: int, y: int, value: int):
        return self.pellets.upsert(x, y, value)

    def plan_turn(self) -> List[Tuple[int, int, int]]:
        """Plan and commit this turn's moves; returns (pac_id, x, y) per own visible pac."""
        if self.planner is None:
            raise RuntimeError("init_grid must be called before plan_turn")
        started = time.perf_counter()
        searches_before = self.pathfinder.searches
        plan = self.planner.plan(self)
        self.planner.apply(plan, self)
        self.last_plan = plan
        elapsed_ms = (time.perf_counter() - started) * 1000.0
        searches = self.pathfinder.searches - searches_before
        logger.debug("turn %d planned in %.2fms (%d searches, %d pellets left)", self.turn, elapsed_ms,
                     searches, self.pellets.remaining())
        if elapsed_ms > self.turn_budget_ms:
            logger.warning("turn %d took %.1fms, over the %sms budget (%d searches)", self.turn,
                           elapsed_ms, self.turn_budget_ms, searches)
        return plan.moves()

    def to_dict(self) -> Dict[str, Any]:
        return {
            'turn': self.turn,
            'scores': {'mine': self.my_score, 'opponent': self.opponent_score},
            'pacs': [p.to_dict() for p in self.units.mine()] + [p.to_dict() for p in self.units.opponents()],
            'pellets_left': self.pellets.remaining(),
            'last_plan': self.last_plan.to_dict() if self.last_plan else None,
        }
