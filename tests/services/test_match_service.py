"""Tests for services.match_service (in-memory self-play)."""

from __future__ import annotations

import pytest

from referees.pellet_referee import OPPONENT, PLAYER
from services.match_service import InProcessBot, MatchService

ROWS = [
    "#########",
    "         ",
    "# ## ## #",
    "         ",
    "#########",
]


@pytest.fixture
def service() -> MatchService:
    return MatchService()


def create(service: MatchService, **params) -> str:
    base = {'rows': ROWS, 'pacs_per_player': 1, 'num_super_pellets': 2, 'max_turns': 50}
    base.update(params)
    return service.create_match(base)['match_id']


class TestInProcessBot:
    def test_answers_with_protocol_line(self) -> None:
        bot = InProcessBot()
        bot.init("3 1\n   \n")
        assert bot.act("0 0\n1\n0 1 0 0 NEUTRAL 0 0\n1\n2 0 1\n") == "MOVE 0 2 0"


class TestMatchLifecycle:
    def test_create_returns_initial_state(self, service) -> None:
        result = service.create_match({'rows': ROWS, 'pacs_per_player': 1})
        assert result['state']['turn'] == 0
        assert service.get_match(result['match_id']) is not None

    def test_step_advances_and_records_agents(self, service) -> None:
        match_id = create(service)
        result = service.step_match(match_id)
        assert result['state']['turn'] == 1
        entry = result['history_entry']
        assert set(entry['actions']) == {PLAYER, OPPONENT}
        assert entry['actions'][PLAYER].startswith("MOVE 0 ")
        assert set(entry['agents']) == {PLAYER, OPPONENT}
        assert entry['agents'][PLAYER]['assignments'][0]['pac_id'] == 0

    def test_self_play_scores_points(self, service) -> None:
        match_id = create(service)
        result = service.step_match(match_id, turns=10)
        scores = result['state']['scores']
        assert scores[PLAYER] + scores[OPPONENT] > 0

    def test_runs_to_completion(self, service) -> None:
        match_id = create(service)
        result = service.step_match(match_id, turns=50)
        assert result['finished']
        assert 'winner' in result['state']
        # nothing more to play
        again = service.step_match(match_id)
        assert again['state']['turn'] == result['state']['turn']

    def test_history(self, service) -> None:
        match_id = create(service)
        service.step_match(match_id, turns=3)
        assert [h['turn'] for h in service.get_history(match_id)] == [0, 1, 2, 3]


class TestErrors:
    def test_unknown_match(self, service) -> None:
        with pytest.raises(KeyError):
            service.step_match('nope')
        with pytest.raises(KeyError):
            service.get_history('nope')
        assert service.get_match('nope') is None

    @pytest.mark.parametrize("turns", [0, 201])
    def test_turns_out_of_range(self, service, turns) -> None:
        with pytest.raises(ValueError):
            service.step_match(create(service), turns=turns)

    def test_invalid_params(self, service) -> None:
        with pytest.raises(ValueError):
            service.create_match({'rows': ROWS, 'pacs_per_player': 0})
