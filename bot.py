"""Pellet bot (stdin/stdout) for the pac arena.

Reads the map once, then loops: read one turn, print one line of
"MOVE <pac_id> <x> <y>" commands separated by " | ", flush.

stdout is the command channel, so logs go to stderr.
Configuration via env vars:
  - PACBOT_LOG_LEVEL: logging level name (default 'WARNING')
  - PACBOT_TURN_BUDGET_MS: per-turn time budget before a warning is logged (default 50)
  - PACBOT_WRAP: '1' if the maze's left and right edges connect (default '0')
"""
import logging
import os
import sys

from agent.game_state import DEFAULT_TURN_BUDGET_MS, GameState
from game_sdk import ProtocolError, format_moves, read_init, read_turn

logger = logging.getLogger(__name__)


def make_state_from_env() -> GameState:
    try:
        budget = float(os.environ.get('PACBOT_TURN_BUDGET_MS', DEFAULT_TURN_BUDGET_MS))
    except ValueError:
        logger.warning("invalid PACBOT_TURN_BUDGET_MS, using %s", DEFAULT_TURN_BUDGET_MS)
        budget = DEFAULT_TURN_BUDGET_MS
    wrap = os.environ.get('PACBOT_WRAP', '0').lower() in ('1', 'true', 'yes')
    return GameState(turn_budget_ms=budget, wrap=wrap)


def play(stdin, stdout, state: GameState) -> int:
    """Run the bot loop on the given streams. Returns the number of turns played."""
    width, height, rows = read_init(stdin.readline)
    state.init_grid(width, height, rows)
    turns = 0
    while True:
        try:
            read_turn(stdin.readline, state)
        except EOFError:
            logger.info("input closed after %d turns", turns)
            return turns
        moves = state.plan_turn()
        print(format_moves(moves), file=stdout, flush=True)
        turns += 1


def main() -> int:
    logging.basicConfig(stream=sys.stderr,
                        level=os.environ.get('PACBOT_LOG_LEVEL', 'WARNING').upper(),
                        format='%(asctime)s %(levelname)s %(name)s: %(message)s')
    state = make_state_from_env()
    try:
        play(sys.stdin, sys.stdout, state)
    except ProtocolError:
        logger.exception("malformed input on turn %d", state.turn)
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
