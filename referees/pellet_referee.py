"""Referee local pour les matchs de pellets (sans abilities ni combat).

Simplified arena used to exercise bots offline.

RÈGLES
======
1. Grille : '#' = mur, ' ' = sol. Les colonnes 0 et width-1 communiquent
   (tunnels) quand ``wrap`` est actif.
2. Chaque joueur contrôle ``pacs_per_player`` pacs (ids 0..n-1 par joueur),
   placés symétriquement à gauche (player) et à droite (opponent).
3. Commande : "MOVE <pac_id> <x> <y>" séparées par "|". Le pac avance d'une
   case par tour sur le plus court chemin (BFS) vers (x, y).
4. Collisions : deux pacs qui visent la même case, ou qui se croisent, restent
   sur place. Itéré jusqu'à stabilisation.
5. Pellets : 1 point, super pellets : 10 points. Un pac posé sur une case
   mange ce qu'elle contient.
6. Vision (fog) optionnelle : un pac voit en ligne droite jusqu'au premier
   mur. Les super pellets sont toujours visibles.
7. Fin : plus de pellets, max_turns atteint, avance insurmontable ou bot en
   échec (timeout/crash).
"""
import logging
from collections import deque
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

from game_sdk import Referee, make_map_block, parse_moves
from referees.maze_generator import FLOOR, WALL, MazeGenerator

logger = logging.getLogger(__name__)

Position = Tuple[int, int]

PLAYER = 'player'
OPPONENT = 'opponent'
SIDES = (PLAYER, OPPONENT)

REGULAR_SCORE = 1
SUPER_SCORE = 10


class RefPac:
    """Pac tel que vu par le referee."""
    def __init__(self, pac_id: int, owner: str, position: Position):
        self.id = pac_id
        self.owner = owner
        self.position = position
        self.path: List[Position] = [position]

    def to_dict(self) -> Dict:
        return {
            'id': self.id,
            'owner': self.owner,
            'position': list(self.position),
            'path': [list(p) for p in self.path],
        }


def other_side(bot_id: str) -> str:
    return OPPONENT if bot_id == PLAYER else PLAYER


class PelletReferee(Referee):
    """Referee two-player pellet race."""

    def __init__(self):
        super().__init__()
        self.width = 31
        self.height = 13
        self.grid: List[str] = []
        self.wrap = True
        self.pellets: Set[Position] = set()
        self.super_pellets: Set[Position] = set()
        self.pacs: Dict[Tuple[str, int], RefPac] = {}
        self.scores = {PLAYER: 0, OPPONENT: 0}
        self.max_turns = 200
        self.pacs_per_player = 2
        self.num_super_pellets = 4
        self.fog_enabled = False
        self.bot_failed: Optional[str] = None

    def init_game(self, init_params: Dict[str, Any]):
        """Initialise la partie.

        Paramètres reconnus : width, height, rows (carte imposée), wrap,
        pacs_per_player, num_super_pellets, fog_enabled, max_turns, seed.
        """
        logger.info("PelletReferee.init_game called with params: %s",
                    {k: v for k, v in init_params.items() if k != 'rows'})
        self.pacs_per_player = int(init_params.get('pacs_per_player', self.pacs_per_player))
        self.num_super_pellets = int(init_params.get('num_super_pellets', self.num_super_pellets))
        self.fog_enabled = bool(init_params.get('fog_enabled', self.fog_enabled))
        self.max_turns = int(init_params.get('max_turns', self.max_turns))
        self.wrap = bool(init_params.get('wrap', self.wrap))
        if self.pacs_per_player < 1:
            raise ValueError("pacs_per_player must be at least 1")

        rows = init_params.get('rows')
        if rows:
            self.height = len(rows)
            self.width = max(len(r) for r in rows)
            self.grid = [r.ljust(self.width, FLOOR) for r in rows]
        else:
            self.width = int(init_params.get('width', self.width))
            self.height = int(init_params.get('height', self.height))
            self.grid = MazeGenerator(init_params.get('seed')).generate(self.width, self.height)

        floor = [(x, y) for y in range(self.height) for x in range(self.width) if self.grid[y][x] != WALL]
        if len(floor) < 2 * self.pacs_per_player:
            raise ValueError(f"map has {len(floor)} floor cells, not enough for {self.pacs_per_player} pacs per player")

        self.pacs = {}
        self._spawn_pacs(floor)
        occupied = {pac.position for pac in self.pacs.values()}
        self.pellets = set(floor) - occupied
        self.super_pellets = set()
        self._place_super_pellets()

        self.scores = {PLAYER: 0, OPPONENT: 0}
        self.turn = 0
        self.bot_failed = None
        self.logs = []
        self.history = [{
            'turn': 0,
            'state': self.get_state(),
            'actions': {},
            'stdout': '',
            'stderr': '',
        }]

    def _spawn_pacs(self, floor: List[Position]):
        """Place les pacs en miroir : player à gauche, opponent à droite."""
        n = self.pacs_per_player
        half = self.width // 2
        paired = [p for p in floor if p[0] < half and self._is_floor(self.width - 1 - p[0], p[1])]
        if len(paired) >= n:
            step = max(1, len(paired) // (n + 1))
            left = [paired[min((i + 1) * step, len(paired) - 1)] for i in range(n)]
            right = [(self.width - 1 - x, y) for x, y in left]
        else:
            # carte imposée non symétrique
            left = floor[:n]
            right = floor[::-1][:n]
        for i in range(n):
            self.pacs[(PLAYER, i)] = RefPac(i, PLAYER, left[i])
            self.pacs[(OPPONENT, i)] = RefPac(i, OPPONENT, right[i])

    def _place_super_pellets(self):
        """Super pellets sur des paires de cases symétriques, réparties sur la carte."""
        candidates = sorted(p for p in self.pellets if p[0] < self.width // 2
                            and (self.width - 1 - p[0], p[1]) in self.pellets)
        pairs = max(1, self.num_super_pellets // 2) if self.num_super_pellets else 0
        pairs = min(pairs, len(candidates))
        if pairs == 0:
            return
        stride = max(1, len(candidates) // pairs)
        for pos in candidates[stride // 2::stride][:pairs]:
            for p in (pos, (self.width - 1 - pos[0], pos[1])):
                self.pellets.discard(p)
                self.super_pellets.add(p)

    def get_protocol(self):
        return {
            'init_inputs': 'width height and the map representation',
            'turn_inputs': 'scores, visible pacs, visible pellets',
            'turn_output': 'Commands separated by | : MOVE <id> <x> <y>',
            'constraints': {
                'max_turns': self.max_turns,
                'time_ms': 50,
                'pacs_per_player': self.pacs_per_player,
            },
        }

    def get_state(self):
        state = {
            'turn': self.turn,
            'grid': list(self.grid),
            'pacs': [pac.to_dict() for pac in self.pacs.values()],
            'pellets': sorted([list(p) for p in self.pellets]),
            'super_pellets': sorted([list(p) for p in self.super_pellets]),
            'scores': dict(self.scores),
        }
        if self.is_finished():
            state['winner'] = self.get_winner()
        return state

    def get_winner(self) -> str:
        p_score = self.scores[PLAYER]
        o_score = self.scores[OPPONENT]
        if p_score > o_score:
            return PLAYER
        if o_score > p_score:
            return OPPONENT
        return 'draw'

    def remaining_points(self) -> int:
        return len(self.pellets) * REGULAR_SCORE + len(self.super_pellets) * SUPER_SCORE

    def is_finished(self) -> bool:
        if self.bot_failed:
            return True
        if self.turn >= self.max_turns:
            return True
        remaining = self.remaining_points()
        if remaining == 0:
            return True
        # plus assez de points pour changer l'issue
        return abs(self.scores[PLAYER] - self.scores[OPPONENT]) > remaining

    # ---------- bot I/O ----------

    def make_init_input(self) -> str:
        return make_map_block(self.width, self.height, self.grid)

    def make_bot_input(self, bot_id: str) -> str:
        """Input d'un tour au format CG, vu depuis ``bot_id``."""
        lines = [f"{self.scores[bot_id]} {self.scores[other_side(bot_id)]}"]
        seen = self._visible_cells(bot_id)

        pacs = [pac for pac in self.pacs.values() if pac.owner == bot_id or pac.position in seen]
        lines.append(str(len(pacs)))
        for pac in pacs:
            mine = 1 if pac.owner == bot_id else 0
            lines.append(f"{pac.id} {mine} {pac.position[0]} {pac.position[1]} NEUTRAL 0 0")

        pellets = sorted(p for p in self.pellets if p in seen)
        supers = sorted(self.super_pellets)
        lines.append(str(len(pellets) + len(supers)))
        lines.extend(f"{x} {y} {REGULAR_SCORE}" for x, y in pellets)
        lines.extend(f"{x} {y} {SUPER_SCORE}" for x, y in supers)
        return '\n'.join(lines) + '\n'

    def _visible_cells(self, bot_id: str) -> Set[Position]:
        if not self.fog_enabled:
            return {(x, y) for y in range(self.height) for x in range(self.width)}
        seen: Set[Position] = set()
        for pac in self.pacs.values():
            if pac.owner != bot_id:
                continue
            seen.add(pac.position)
            for dx, dy in ((0, -1), (1, 0), (0, 1), (-1, 0)):
                x, y = pac.position
                for _ in range(max(self.width, self.height)):
                    x, y = self._wrapped(x + dx, y + dy)
                    if not (0 <= x < self.width and 0 <= y < self.height) or self.grid[y][x] == WALL:
                        break
                    seen.add((x, y))
        return seen

    def parse_bot_output(self, bot_id: str, output_str: str) -> str:
        """Normalise la sortie : première ligne non vide, commandes MOVE valides."""
        first_line = next((ln.strip() for ln in (output_str or '').splitlines() if ln.strip()), '')
        moves, _ = parse_moves(first_line)
        return ' | '.join(f"MOVE {pac_id} {x} {y}" for pac_id, x, y in moves)

    # ---------- simulation ----------

    def _wrapped(self, x: int, y: int) -> Position:
        if self.wrap:
            x %= self.width
        return x, y

    def _neighbors(self, pos: Position) -> Iterable[Position]:
        x, y = pos
        for dx, dy in ((0, -1), (1, 0), (0, 1), (-1, 0)):
            nx, ny = self._wrapped(x + dx, y + dy)
            if 0 <= nx < self.width and 0 <= ny < self.height and self.grid[ny][nx] != WALL:
                yield nx, ny

    def bfs_path(self, start: Position, target: Position) -> Optional[List[Position]]:
        """Plus court chemin BFS (avec tunnels si wrap)."""
        if start == target:
            return [start]
        parents: Dict[Position, Optional[Position]] = {start: None}
        queue = deque([start])
        while queue:
            current = queue.popleft()
            for nxt in self._neighbors(current):
                if nxt in parents:
                    continue
                parents[nxt] = current
                if nxt == target:
                    path = [nxt]
                    while parents[path[-1]] is not None:
                        path.append(parents[path[-1]])
                    path.reverse()
                    return path
                queue.append(nxt)
        return None

    def step(self, actions_by_bot: Dict[str, str]) -> Tuple[Dict[str, Any], str, str]:
        """Exécute un tour : déplacements, collisions, ingestion."""
        stdout = ''
        stderr = ''

        wanted: Dict[Tuple[str, int], Position] = {}
        for bot_id, action_str in actions_by_bot.items():
            moves, rejected = parse_moves(action_str)
            for cmd in rejected:
                stderr += f"{bot_id}: unknown command {cmd!r}\n"
            for pac_id, tx, ty in moves:
                pac = self.pacs.get((bot_id, pac_id))
                if pac is None:
                    stderr += f"{bot_id}: Invalid pac {pac_id}\n"
                    continue
                path = self.bfs_path(pac.position, (tx, ty)) if self._is_floor(tx, ty) else None
                if not path:
                    stderr += f"{bot_id}: No path from {pac.position} to ({tx},{ty})\n"
                    continue
                if len(path) > 1:
                    wanted[(bot_id, pac_id)] = path[1]

        for pac in self.pacs.values():
            pac.path = [pac.position]
        for key, new_pos in self._resolve_collisions(wanted).items():
            pac = self.pacs[key]
            pac.position = new_pos
            pac.path.append(new_pos)
            stdout += f"{pac.owner}: Pac {pac.id} moved to {new_pos}\n"

        for pac in self.pacs.values():
            pos = pac.position
            if pos in self.pellets:
                self.pellets.remove(pos)
                self.scores[pac.owner] += REGULAR_SCORE
                stdout += f"{pac.owner}: Pac {pac.id} ate pellet at {pos} (+{REGULAR_SCORE})\n"
            elif pos in self.super_pellets:
                self.super_pellets.remove(pos)
                self.scores[pac.owner] += SUPER_SCORE
                stdout += f"{pac.owner}: Pac {pac.id} ate super pellet at {pos} (+{SUPER_SCORE})\n"

        self.turn += 1
        state = self.get_state()
        self.history.append({
            'turn': self.turn,
            'state': state,
            'actions': dict(actions_by_bot),
            'stdout': stdout,
            'stderr': stderr,
        })
        self.logs.append(stdout + stderr)
        return state, stdout, stderr

    def _is_floor(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height and self.grid[y][x] != WALL

    def _resolve_collisions(self, wanted: Dict[Tuple[str, int], Position]) -> Dict[Tuple[str, int], Position]:
        """Drop moves until no two pacs share a cell and no pair swaps places."""
        moving = dict(wanted)
        while True:
            blocked: Set[Tuple[str, int]] = set()
            destination = {key: moving.get(key, pac.position) for key, pac in self.pacs.items()}
            by_cell: Dict[Position, List[Tuple[str, int]]] = {}
            for key, pos in destination.items():
                by_cell.setdefault(pos, []).append(key)
            for pos, keys in by_cell.items():
                if len(keys) > 1:
                    blocked.update(k for k in keys if k in moving)
            for a, pos_a in moving.items():
                for b, pos_b in moving.items():
                    if a < b and pos_a == self.pacs[b].position and pos_b == self.pacs[a].position:
                        blocked.update((a, b))
            if not blocked:
                return moving
            logger.debug("turn %d: blocked moves %s", self.turn, sorted(blocked))
            for key in blocked:
                del moving[key]

    def on_bot_timeout(self, bot_id: str, turn: int, reason: str = ''):
        """Un bot en échec perd la partie : score à zéro, fin immédiate."""
        logger.warning("bot %s failed on turn %d: %s", bot_id, turn, reason)
        self.bot_failed = bot_id
        self.scores[bot_id] = 0
        self.history.append({
            'turn': self.turn,
            'state': self.get_state(),
            'actions': {},
            'stdout': '',
            'stderr': f"Bot '{bot_id}' timeout on turn {turn}: {reason}",
        })
