"""Match Service - Orchestration des matchs locaux en self-play.

Responsabilité (SRP) : créer, faire avancer et exposer les matchs.
- Les deux camps sont joués par des agents en mémoire (GameState)
- Chaque agent reçoit exactement le texte du protocole, comme bot.py
- PAS de HTTP ici (app.py s'en charge)
"""
import io
import logging
import uuid
from typing import Any, Dict, Optional

from agent.game_state import GameState
from game_sdk import Referee, format_moves, read_init, read_turn
from referees.pellet_referee import OPPONENT, PLAYER, PelletReferee

MAX_STEPS_PER_CALL = 200


class InProcessBot:
    """Runs the agent on protocol text without a subprocess."""

    def __init__(self, wrap: bool = False, turn_budget_ms: float = 50):
        self.state = GameState(turn_budget_ms=turn_budget_ms, wrap=wrap)

    def init(self, init_block: str) -> None:
        width, height, rows = read_init(io.StringIO(init_block).readline)
        self.state.init_grid(width, height, rows)

    def act(self, turn_input: str) -> str:
        read_turn(io.StringIO(turn_input).readline, self.state)
        return format_moves(self.state.plan_turn())


class MatchService:
    """Service pour la gestion des matchs en mémoire.

    Pattern: Service Layer
    """

    def __init__(self, referee_class: type = PelletReferee):
        self.referee_class = referee_class
        self.logger = logging.getLogger(__name__)
        self.active_matches: Dict[str, Dict[str, Any]] = {}

    def create_match(self, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Crée un match.

        Args:
            params: init_params du referee (width, height, seed, ...)

        Returns:
            Dictionnaire avec match_id et state initial

        Raises:
            ValueError: si les paramètres sont invalides
        """
        ref: Referee = self.referee_class()
        ref.init_game(dict(params or {}))

        bots = {side: InProcessBot(wrap=getattr(ref, 'wrap', False)) for side in (PLAYER, OPPONENT)}
        init_block = ref.make_init_input()
        for bot in bots.values():
            bot.init(init_block)

        match_id = str(uuid.uuid4())
        self.active_matches[match_id] = {'id': match_id, 'ref': ref, 'bots': bots}
        self.logger.info("created match %s (%dx%d)", match_id, ref.width, ref.height)
        return {'match_id': match_id, 'state': ref.get_state()}

    def get_match(self, match_id: str) -> Optional[Dict[str, Any]]:
        return self.active_matches.get(match_id)

    def step_match(self, match_id: str, turns: int = 1) -> Dict[str, Any]:
        """Joue jusqu'à ``turns`` tours.

        Raises:
            KeyError: si le match est introuvable
            ValueError: si ``turns`` est hors bornes
        """
        match = self.active_matches.get(match_id)
        if match is None:
            raise KeyError(match_id)
        if not 1 <= turns <= MAX_STEPS_PER_CALL:
            raise ValueError(f"turns must be between 1 and {MAX_STEPS_PER_CALL}")

        ref: Referee = match['ref']
        entry = None
        for _ in range(turns):
            if ref.is_finished():
                break
            actions = {}
            for side, bot in match['bots'].items():
                actions[side] = ref.parse_bot_output(side, bot.act(ref.make_bot_input(side)))
            ref.step(actions)
            entry = ref.history[-1]
            entry['agents'] = {side: bot.state.last_plan.to_dict() for side, bot in match['bots'].items()}
        if entry is None:
            entry = ref.history[-1]
        finished = ref.is_finished()
        if finished:
            self.logger.info("match %s finished on turn %d: %s", match_id, ref.turn, ref.scores)
        return {'state': ref.get_state(), 'history_entry': entry, 'finished': finished}

    def get_history(self, match_id: str):
        match = self.active_matches.get(match_id)
        if match is None:
            raise KeyError(match_id)
        return match['ref'].history
