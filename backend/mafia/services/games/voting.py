"""Vote resolution: ``voting -> night | game_over``."""
from collections import Counter
from typing import Optional

from mafia.errors import InvalidPhase
from .state import GameState, Phase, Role
from .win import evaluate_winner

VOTING_WRITES = (
    'phase', 'current_night', 'player_alive', 'eliminated_players',
    'votes', 'winner', 'game_log',
)


def tally_votes(votes: dict) -> Counter:
    return Counter(target for target in votes.values() if target)


def plurality(tally: Counter) -> Optional[str]:
    """The single most-voted target, or None when the top count is shared."""
    if not tally:
        return None
    top = max(tally.values())
    leaders = [target for target, count in tally.items() if count == top]
    return leaders[0] if len(leaders) == 1 else None


def resolve_voting(state: GameState) -> GameState:
    """Tally the votes, eliminate the plurality target and return the resulting state.

    ``state`` itself is not modified.
    """
    if state.phase != Phase.VOTING:
        raise InvalidPhase(f"Cannot resolve voting during {state.phase.value}")

    result = state.copy()
    tally = tally_votes(result.votes)
    eliminated = plurality(tally)

    if eliminated:
        result.player_alive[eliminated] = False
        result.eliminated_players.append(eliminated)
        result.log('elimination', [eliminated], f"{result.name_of(eliminated)} was eliminated by vote")

        # Individual wins are announced only; they do not end the game
        if result.player_roles.get(eliminated) == Role.JESTER:
            result.log('jester_win', [eliminated], 'The Jester wins by being eliminated!')
        for executioner in result.alive_with_role(Role.EXECUTIONER):
            if result.executioner_targets.get(executioner) == eliminated:
                result.log(
                    'executioner_win',
                    [executioner, eliminated],
                    f"{result.name_of(executioner)} (Executioner) wins!",
                )
    elif tally:
        result.log('vote_tie', sorted(tally), 'Vote resulted in a tie - no one was eliminated')

    winner = evaluate_winner(result.player_roles, result.player_alive)
    result.votes = {}
    result.current_night += 1
    result.winner = winner
    result.phase = Phase.GAME_OVER if winner else Phase.NIGHT
    return result
