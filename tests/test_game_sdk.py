"""Tests for game_sdk (line protocol)."""

from __future__ import annotations

import io

import pytest

from agent.game_state import GameState
from game_sdk import (ProtocolError, Referee, format_moves, make_map_block, parse_moves, read_init,
                      read_turn)


def reader(text: str):
    return io.StringIO(text).readline


class TestReadInit:
    def test_reads_size_and_rows(self) -> None:
        width, height, rows = read_init(reader("3 2\n# #\n   \n"))
        assert (width, height) == (3, 2)
        assert rows == ["# #", "   "]

    def test_pads_stripped_rows(self) -> None:
        _, _, rows = read_init(reader("4 2\n#\n####\n"))
        assert rows == ["#   ", "####"]

    def test_missing_row_raises(self) -> None:
        with pytest.raises(ProtocolError):
            read_init(reader("3 2\n###\n"))

    def test_bad_size_raises(self) -> None:
        with pytest.raises(ProtocolError):
            read_init(reader("3 x\n"))


class TestReadTurn:
    def make_state(self) -> GameState:
        state = GameState()
        state.init_grid(5, 1, ["     "])
        return state

    def test_feeds_state(self) -> None:
        state = self.make_state()
        text = "4 7\n2\n0 1 0 0 ROCK 0 0\n0 0 4 0 PAPER 2 5\n1\n2 0 10\n"
        assert read_turn(reader(text), state) == (2, 1)
        assert state.turn == 1
        assert (state.my_score, state.opponent_score) == (4, 7)
        assert state.units.get(0, mine=True).position == (0, 0)
        theirs = state.units.get(0, mine=False)
        assert theirs.type_id == 'PAPER'
        assert theirs.ability_cooldown == 5
        assert state.pellets.get(2, 0).value == 10

    def test_clean_end_of_input(self) -> None:
        with pytest.raises(EOFError):
            read_turn(reader(""), self.make_state())

    def test_truncated_turn_raises(self) -> None:
        with pytest.raises(ProtocolError):
            read_turn(reader("0 0\n1\n"), self.make_state())

    def test_short_pac_line_raises(self) -> None:
        with pytest.raises(ProtocolError):
            read_turn(reader("0 0\n1\n0 1 0 0\n0\n"), self.make_state())

    def test_non_integer_pellet_raises(self) -> None:
        with pytest.raises(ProtocolError):
            read_turn(reader("0 0\n0\n1\n1 a 1\n"), self.make_state())


class TestCommands:
    def test_format_moves(self) -> None:
        assert format_moves([(0, 1, 2), (1, 3, 4)]) == "MOVE 0 1 2 | MOVE 1 3 4"
        assert format_moves([]) == ""

    def test_parse_moves(self) -> None:
        moves, rejected = parse_moves("MOVE 0 1 2 | SPEED 1 | move 1 3 4 | MOVE x 1 1 |")
        assert moves == [(0, 1, 2), (1, 3, 4)]
        assert rejected == ["SPEED 1", "MOVE x 1 1"]

    def test_parse_none(self) -> None:
        assert parse_moves(None) == ([], [])

    def test_map_block(self) -> None:
        assert make_map_block(2, 2, ["# ", " #"]) == "2 2\n# \n #\n"


class TestRefereeBase:
    def test_default_timeout_raises(self) -> None:
        with pytest.raises(TimeoutError, match="player"):
            Referee().on_bot_timeout('player', 3, 'crashed')

    def test_abstract_methods(self) -> None:
        with pytest.raises(NotImplementedError):
            Referee().init_game({})
