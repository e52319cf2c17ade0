"""Line protocol helpers and the referee base class.

Bot side: ``read_init`` / ``read_turn`` parse the arena's text protocol and
feed a GameState, ``format_moves`` builds the single output line.
Referee side: ``Referee`` is the base class for local referees,
``make_map_block`` and ``parse_moves`` are the mirror image of the bot helpers.

Protocol (one value group per line):
  init:  "<width> <height>" then <height> map rows ('#' wall, ' ' floor)
  turn:  "<my_score> <opponent_score>"
         "<visible_pac_count>" then per pac
             "<id> <mine> <x> <y> <type_id> <speed_turns_left> <ability_cooldown>"
         "<visible_pellet_count>" then per pellet "<x> <y> <value>"
  out:   "MOVE <id> <x> <y> | MOVE <id> <x> <y> ..."
"""
from typing import Any, Callable, Dict, List, Optional, Tuple
import logging

logger = logging.getLogger(__name__)

Readline = Callable[[], str]
Move = Tuple[int, int, int]


class ProtocolError(ValueError):
    """Raised when the input stream does not follow the line protocol."""


class Referee:
    """Base referee class. Subclass this to implement a local referee.

    Methods to implement:
    - init_game(init_params) -> None : initialize game state
    - get_protocol() -> dict : protocol description and constraints
    - get_state() -> dict : current state serializable to JSON
    - is_finished() -> bool
    - step(actions_by_bot: Dict[str,str]) -> Tuple[dict,str,str] : apply actions and advance one turn.
        returns: (state, stdout_log, stderr_log)
    - make_init_input() -> str : the startup block sent once to every bot
    - make_bot_input(bot_id) -> str : the string given to a bot on a turn
    - parse_bot_output(bot_id, output_str) -> str : normalize a bot's output line
    """
    def __init__(self):
        self.history: List[Dict[str, Any]] = []
        self.turn: int = 0
        self.logs: List[str] = []
        self.scores: Dict[str, int] = {}
        self.max_turns: int = 0

    def init_game(self, init_params: Dict[str, Any]):
        raise NotImplementedError()

    def get_protocol(self) -> Dict[str, Any]:
        return {}

    def get_state(self) -> Dict[str, Any]:
        raise NotImplementedError()

    def is_finished(self) -> bool:
        raise NotImplementedError()

    def step(self, actions_by_bot: Dict[str, str]) -> Tuple[Dict[str, Any], str, str]:
        raise NotImplementedError()

    def make_init_input(self) -> str:
        return ""

    def make_bot_input(self, bot_id: str) -> str:
        """Return the string sent to the bot for this turn."""
        return ""

    def parse_bot_output(self, bot_id: str, output_str: str) -> str:
        """Return an action string parsed from bot output."""
        return output_str.strip()

    def on_bot_timeout(self, bot_id: str, turn: int, reason: str = ''):
        """Called by the runner when a bot fails to provide output in time or terminates.

        By default this raises a TimeoutError including bot id, turn and an optional reason.
        Individual referees may override this to implement custom handling.
        """
        msg = f"Bot '{bot_id}' failed to provide output on turn {turn}"
        if reason:
            msg += f": {reason}"
        raise TimeoutError(msg)


# ------------------ bot side ------------------

def _ints(line: str, count: int, what: str) -> List[int]:
    parts = line.split()
    if len(parts) != count:
        raise ProtocolError(f"{what}: expected {count} values, got {line!r}")
    try:
        return [int(p) for p in parts]
    except ValueError:
        raise ProtocolError(f"{what}: not an integer in {line!r}") from None


def _next_line(readline: Readline, what: str) -> str:
    line = readline()
    if not line:
        raise ProtocolError(f"unexpected end of input while reading {what}")
    return line.rstrip('\r\n')


def read_init(readline: Readline) -> Tuple[int, int, List[str]]:
    """Read the startup block. Returns (width, height, rows)."""
    width, height = _ints(_next_line(readline, 'grid size'), 2, 'grid size')
    rows = []
    for y in range(height):
        row = _next_line(readline, f'map row {y}')
        # some transports strip trailing floor cells
        rows.append(row.ljust(width)[:width])
    return width, height, rows


def read_turn(readline: Readline, state) -> Tuple[int, int]:
    """Read one turn block into ``state`` (a GameState).

    Raises EOFError when the stream ends cleanly before the turn starts.
    Returns (visible_pac_count, visible_pellet_count).
    """
    first = readline()
    if not first:
        raise EOFError()
    my_score, opponent_score = _ints(first, 2, 'scores')
    state.begin_turn(my_score, opponent_score)

    pac_count, = _ints(_next_line(readline, 'pac count'), 1, 'pac count')
    for _ in range(pac_count):
        parts = _next_line(readline, 'pac').split()
        if len(parts) != 7:
            raise ProtocolError(f"pac: expected 7 values, got {parts!r}")
        try:
            pac_id, mine, x, y = (int(p) for p in parts[:4])
            speed_turns_left, ability_cooldown = int(parts[5]), int(parts[6])
        except ValueError:
            raise ProtocolError(f"pac: not an integer in {parts!r}") from None
        state.report_unit(pac_id, mine != 0, x, y, parts[4], speed_turns_left, ability_cooldown)

    pellet_count, = _ints(_next_line(readline, 'pellet count'), 1, 'pellet count')
    for _ in range(pellet_count):
        x, y, value = _ints(_next_line(readline, 'pellet'), 3, 'pellet')
        state.report_pellet(x, y, value)
    logger.debug("turn %d read: %d pacs, %d pellets", state.turn, pac_count, pellet_count)
    return pac_count, pellet_count


def format_moves(moves: List[Move]) -> str:
    return ' | '.join(f"MOVE {pac_id} {x} {y}" for pac_id, x, y in moves)


# ------------------ referee side ------------------

def make_map_block(width: int, height: int, rows: List[str]) -> str:
    return f"{width} {height}\n" + '\n'.join(rows[:height]) + '\n'


def parse_moves(line: Optional[str]) -> Tuple[List[Move], List[str]]:
    """Parse a command line. Returns (moves, rejected command strings).

    Commands are separated by '|'. Only "MOVE <id> <x> <y>" is understood;
    anything else is returned as rejected.
    """
    moves: List[Move] = []
    rejected: List[str] = []
    for cmd in (line or '').split('|'):
        cmd = cmd.strip()
        if not cmd:
            continue
        parts = cmd.split()
        if parts[0].upper() != 'MOVE' or len(parts) < 4:
            rejected.append(cmd)
            continue
        try:
            moves.append((int(parts[1]), int(parts[2]), int(parts[3])))
        except ValueError:
            rejected.append(cmd)
    return moves, rejected
