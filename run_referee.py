"""Command-line runner to pit two bots against each other using PelletReferee.

Usage:
    python3 run_referee.py player_bot.py opponent_bot.py [max_turns] [seed]

Each bot is started as a persistent process (python3 <script>) and is expected to
implement the CodinGame input/output pattern:
  - initial setup lines (width height and map rows)
  - game loop: the referee sends per-turn inputs; the bot must read stdin and
    print a single action line each turn

This runner will:
- start both bot processes
- send initial map information
- for each turn, write the per-turn input to each bot's stdin and read one output
  line (with timeout)
- apply actions via the referee and print the turn summary to stdout

Configuration via env vars:
  - REFEREE_READ_TIMEOUT_S: per-bot io timeout in seconds (default 0.5)
  - REFEREE_LOG_LEVEL: logging level (default 'INFO')
Bots inherit the environment with PACBOT_WRAP=1 when the map wraps.
"""
import logging
import os
import queue
import subprocess
import sys
import threading
from typing import Dict, List, Optional, Tuple

from referees.pellet_referee import OPPONENT, PLAYER, PelletReferee

logger = logging.getLogger(__name__)

READ_LINE_TIMEOUT_S = 0.5  # default per-bot io timeout (seconds)
FIRST_TURN_TIMEOUT_S = 1.0  # bots also pay their startup on turn 1


def _readline_with_timeout(proc, timeout_s: float) -> Tuple[str, bool]:
    """Read a single line from proc.stdout with timeout. Returns (line, timed_out).
    If proc has terminated, returns ('', False).
    """
    q = queue.Queue()

    def reader():
        try:
            q.put(proc.stdout.readline())
        except (OSError, ValueError):
            q.put('')

    threading.Thread(target=reader, daemon=True).start()
    try:
        return q.get(timeout=timeout_s), False
    except queue.Empty:
        return '', True


def _write(proc, data: str) -> bool:
    try:
        proc.stdin.write(data)
        proc.stdin.flush()
        return True
    except (BrokenPipeError, OSError):
        return False


def _drain_stream(stream, name):
    for line in stream:
        if line:
            sys.stderr.write(f"[{name} stderr] {line}")


def _start_bot(path: str, env: Dict[str, str]) -> subprocess.Popen:
    return subprocess.Popen([sys.executable, path], stdin=subprocess.PIPE, stdout=subprocess.PIPE,
                            stderr=subprocess.PIPE, text=True, env=env)


def _read_action(ref: PelletReferee, proc, bot_id: str, turn: int, timeout_s: float) -> Optional[str]:
    """One output line from the bot, or None after reporting the failure to the referee."""
    line, timed_out = _readline_with_timeout(proc, timeout_s)
    if timed_out:
        ref.on_bot_timeout(bot_id, turn, 'timeout')
        return None
    if line == '':
        # EOF on stdout: the bot exited or closed its output
        reason = 'process terminated' if proc.poll() is not None else 'output closed'
        ref.on_bot_timeout(bot_id, turn, reason)
        return None
    return ref.parse_bot_output(bot_id, line)


def run_match(player_bot_path: str, opponent_bot_path: str, max_turns: int = 200,
              seed: Optional[int] = None, timeout_s: Optional[float] = None,
              init_params: Optional[dict] = None) -> PelletReferee:
    """Play a full match and return the referee (scores, history)."""
    if timeout_s is None:
        timeout_s = float(os.environ.get('REFEREE_READ_TIMEOUT_S', READ_LINE_TIMEOUT_S))
    params = {'max_turns': max_turns, 'seed': seed}
    params.update(init_params or {})
    ref = PelletReferee()
    ref.init_game(params)

    env = dict(os.environ)
    env['PACBOT_WRAP'] = '1' if ref.wrap else '0'
    procs = {
        PLAYER: _start_bot(player_bot_path, env),
        OPPONENT: _start_bot(opponent_bot_path, env),
    }
    try:
        init_block = ref.make_init_input()
        for bot_id, proc in procs.items():
            _write(proc, init_block)
            threading.Thread(target=_drain_stream, args=(proc.stderr, bot_id), daemon=True).start()

        turn = 0
        while not ref.is_finished():
            turn += 1
            for bot_id, proc in procs.items():
                _write(proc, ref.make_bot_input(bot_id))

            actions = {}
            for bot_id, proc in procs.items():
                limit = max(timeout_s, FIRST_TURN_TIMEOUT_S) if turn == 1 else timeout_s
                action = _read_action(ref, proc, bot_id, turn, limit)
                if action is None:
                    break
                actions[bot_id] = action
            if ref.is_finished():
                break

            state, stdout_log, stderr_log = ref.step(actions)
            print(f"Turn {turn}: player -> {actions[PLAYER]} | opponent -> {actions[OPPONENT]}")
            if stdout_log:
                print(stdout_log, end='')
            if stderr_log:
                logger.warning("turn %d: %s", turn, stderr_log.strip())
            sys.stdout.flush()
    finally:
        for proc in procs.values():
            proc.kill()
            proc.wait()

    print("Match finished")
    print(f"Final scores: {ref.scores} winner: {ref.get_winner()}")
    return ref


def main(argv: List[str]) -> int:
    logging.basicConfig(level=os.environ.get('REFEREE_LOG_LEVEL', 'INFO').upper(),
                        format='%(asctime)s %(levelname)s %(name)s: %(message)s')
    usage = 'Usage: python3 run_referee.py player_bot.py opponent_bot.py [max_turns] [seed]'
    if len(argv) < 3:
        print(usage, file=sys.stderr)
        return 2
    try:
        max_turns = int(argv[3]) if len(argv) > 3 else 200
        seed = int(argv[4]) if len(argv) > 4 else None
    except ValueError:
        print(usage, file=sys.stderr)
        return 2
    run_match(argv[1], argv[2], max_turns=max_turns, seed=seed)
    return 0


if __name__ == '__main__':
    sys.exit(main(sys.argv))
