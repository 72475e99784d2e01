from typing import Dict, Optional

from .state import Role, Winner

# Neutral roles (jester, executioner, witch) count for neither side
TOWN_ROLES = frozenset({Role.DOCTOR, Role.DETECTIVE, Role.VILLAGER})


def evaluate_winner(player_roles: Dict[str, Role], player_alive: Dict[str, bool]) -> Optional[Winner]:
    """Villagers win once no mafia is alive; mafia wins on reaching parity with the town."""
    alive = [pid for pid, is_alive in player_alive.items() if is_alive]
    alive_mafia = sum(1 for pid in alive if player_roles.get(pid) == Role.MAFIA)
    alive_town = sum(1 for pid in alive if player_roles.get(pid) in TOWN_ROLES)
    if alive_mafia == 0:
        return Winner.VILLAGERS
    if alive_mafia >= alive_town:
        return Winner.MAFIA
    return None
