from collections import Counter

import pytest

from mafia.errors import InvalidPhase
from mafia.services.games.state import Phase, Winner
from mafia.services.games.voting import plurality, resolve_voting, tally_votes

ROLES = {
    'mob': 'mafia',
    'ann': 'villager',
    'bob': 'villager',
    'cat': 'villager',
    'jo': 'jester',
}


def test_plurality_needs_a_single_leader():
    assert plurality(Counter({'a': 3, 'b': 1})) == 'a'
    assert plurality(Counter({'a': 2, 'b': 2, 'c': 1})) is None
    assert plurality(Counter()) is None


def test_tally_ignores_blank_votes():
    assert tally_votes({'a': 'x', 'b': None, 'c': '', 'd': 'x'}) == Counter({'x': 2})


def test_single_plurality_target_is_eliminated(make_state):
    state = make_state(ROLES, phase=Phase.VOTING, votes={'mob': 'ann', 'bob': 'ann', 'cat': 'jo'})
    result = resolve_voting(state)
    assert result.player_alive['ann'] is False
    assert result.eliminated_players == ['ann']
    assert [e.kind for e in result.game_log] == ['elimination']
    assert result.game_log[0].message == 'Ann was eliminated by vote'
    assert result.phase == Phase.NIGHT
    assert result.current_night == 1
    assert result.votes == {}


def test_tie_eliminates_nobody(make_state):
    state = make_state(ROLES, phase=Phase.VOTING, votes={
        'mob': 'ann', 'bob': 'ann', 'ann': 'mob', 'cat': 'mob', 'jo': 'bob',
    })
    result = resolve_voting(state)
    assert all(result.player_alive.values())
    assert result.eliminated_players == []
    assert [e.kind for e in result.game_log] == ['vote_tie']
    assert result.phase == Phase.NIGHT


def test_no_votes_is_silent(make_state):
    result = resolve_voting(make_state(ROLES, phase=Phase.VOTING))
    assert result.game_log == []
    assert result.eliminated_players == []
    assert result.phase == Phase.NIGHT


def test_jester_win_is_only_announced(make_state):
    state = make_state(ROLES, phase=Phase.VOTING, votes={'ann': 'jo', 'bob': 'jo', 'cat': 'jo'})
    result = resolve_voting(state)
    assert [e.kind for e in result.game_log] == ['elimination', 'jester_win']
    assert result.winner is None
    assert result.phase == Phase.NIGHT


def test_executioner_win_when_target_voted_out(make_state):
    roles = dict(ROLES, exe='executioner', dan='villager')
    state = make_state(
        roles, phase=Phase.VOTING,
        votes={'mob': 'ann', 'bob': 'ann', 'exe': 'ann'},
        executioner_targets={'exe': 'ann'},
    )
    result = resolve_voting(state)
    assert [e.kind for e in result.game_log] == ['elimination', 'executioner_win']
    assert result.game_log[1].message == 'Exe (Executioner) wins!'
    assert result.winner is None


def test_dead_executioner_does_not_win(make_state):
    roles = dict(ROLES, exe='executioner', dan='villager')
    state = make_state(
        roles, phase=Phase.VOTING, alive={'exe': False},
        votes={'mob': 'ann', 'bob': 'ann'},
        executioner_targets={'exe': 'ann'},
    )
    result = resolve_voting(state)
    assert [e.kind for e in result.game_log] == ['elimination']


def test_voting_out_last_mafia_ends_game(make_state):
    state = make_state(ROLES, phase=Phase.VOTING, votes={'ann': 'mob', 'bob': 'mob', 'cat': 'mob'})
    result = resolve_voting(state)
    assert result.winner == Winner.VILLAGERS
    assert result.phase == Phase.GAME_OVER


def test_resolving_outside_voting_fails(make_state):
    with pytest.raises(InvalidPhase):
        resolve_voting(make_state(ROLES, phase=Phase.NIGHT))
