"""Night resolution: ``night -> day | game_over``.

Actions are applied in a fixed order against one liveness mapping:
mafia kill (unless the doctor protected the same player), witch save,
witch kill, then the detective's private investigation.
"""
from typing import Optional

from mafia.errors import InvalidPhase
from .state import (
    DETECTIVE_INVESTIGATE, DOCTOR_PROTECT, MAFIA_KILL, WITCH_ACTION,
    GameState, Phase, Role,
)
from .win import evaluate_winner

NIGHT_WRITES = (
    'phase', 'current_day', 'player_alive', 'eliminated_players',
    'night_actions', 'winner', 'game_log',
)


def _action(state: GameState, kind: str) -> dict:
    action = state.night_actions.get(kind)
    return action if isinstance(action, dict) else {}


def _investigator(state: GameState, actor: Optional[str]) -> Optional[str]:
    if actor and state.player_roles.get(actor) == Role.DETECTIVE and state.is_alive(actor):
        return actor
    detectives = state.alive_with_role(Role.DETECTIVE)
    return detectives[0] if detectives else None


def resolve_night(state: GameState) -> GameState:
    """Apply the submitted night actions and return the resulting state.

    ``state`` itself is not modified.
    """
    if state.phase != Phase.NIGHT:
        raise InvalidPhase(f"Cannot resolve night actions during {state.phase.value}")

    result = state.copy()
    alive = result.player_alive
    alive_before = {pid for pid, is_alive in alive.items() if is_alive}
    died = []

    def kill(pid):
        alive[pid] = False
        if pid in alive_before and pid not in died:
            died.append(pid)

    mafia_target = _action(result, MAFIA_KILL).get('target')
    protect_target = _action(result, DOCTOR_PROTECT).get('target')
    witch = _action(result, WITCH_ACTION)
    save_target = witch.get('save_target')
    witch_kill_target = witch.get('kill_target')
    detective = _action(result, DETECTIVE_INVESTIGATE)
    detective_target = detective.get('target')

    if mafia_target and mafia_target != protect_target:
        kill(mafia_target)
        result.log(MAFIA_KILL, [mafia_target], f"{result.name_of(mafia_target)} was killed by the Mafia")
    elif mafia_target:
        result.log(DOCTOR_PROTECT, [mafia_target], f"{result.name_of(mafia_target)} was protected by the Doctor")

    # Only deaths from this resolution can be undone
    if save_target and alive.get(save_target) is False and save_target in alive_before:
        alive[save_target] = True
        died.remove(save_target)
        result.log('witch_save', [save_target], f"{result.name_of(save_target)} was saved by the Witch")

    if witch_kill_target and alive.get(witch_kill_target):
        kill(witch_kill_target)
        result.log('witch_kill', [witch_kill_target], f"{result.name_of(witch_kill_target)} was killed by the Witch")

    if detective_target:
        detective_id = _investigator(result, detective.get('actor'))
        role = result.player_roles.get(detective_target)
        if detective_id and role:
            result.log(
                DETECTIVE_INVESTIGATE,
                [detective_target],
                f"{result.name_of(detective_id)} investigated {result.name_of(detective_target)} "
                f"and found they are a {role.value}",
                visible_to=detective_id,
            )

    winner = evaluate_winner(result.player_roles, alive)
    result.eliminated_players.extend(died)
    result.night_actions = {}
    result.current_day += 1
    result.winner = winner
    result.phase = Phase.GAME_OVER if winner else Phase.DAY
    return result
