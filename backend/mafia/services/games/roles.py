"""Role pool construction and binding roles to players."""
import random
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from mafia.errors import InsufficientPlayers, InvalidRequest, TooManyRoles
from .shuffle import shuffle
from .state import Role
from .win import TOWN_ROLES

MIN_PLAYERS = 4

# Order special roles are added to the pool after the mafia
SPECIAL_ROLE_ORDER = (Role.DOCTOR, Role.DETECTIVE, Role.JESTER, Role.EXECUTIONER, Role.WITCH)


def _count(value) -> int:
    try:
        return max(0, int(value or 0))
    except (TypeError, ValueError):
        raise InvalidRequest(f"Role counts must be integers, got {value!r}") from None


@dataclass
class RoleCounts:
    mafia: int = 1
    doctor: int = 0
    detective: int = 0
    jester: int = 0
    executioner: int = 0
    witch: int = 0

    @classmethod
    def from_settings(cls, settings: Optional[dict]) -> 'RoleCounts':
        """Read ``<role>_count`` keys from a room's game settings."""
        settings = settings or {}
        return cls(
            mafia=_count(settings.get('mafia_count', 1)),
            doctor=_count(settings.get('doctor_count')),
            detective=_count(settings.get('detective_count')),
            jester=_count(settings.get('jester_count')),
            executioner=_count(settings.get('executioner_count')),
            witch=_count(settings.get('witch_count')),
        )

    @property
    def effective_mafia(self) -> int:
        return max(1, self.mafia)

    def special_total(self) -> int:
        return self.effective_mafia + sum(getattr(self, role.value) for role in SPECIAL_ROLE_ORDER)


def build_role_pool(player_count: int, counts: RoleCounts, min_players: int = MIN_PLAYERS) -> List[Role]:
    if player_count < min_players:
        raise InsufficientPlayers(f"Need at least {min_players} players to start a game, got {player_count}")
    requested = counts.special_total()
    if requested > player_count:
        raise TooManyRoles(f"Requested {requested} special roles but only have {player_count} players")

    pool = [Role.MAFIA] * counts.effective_mafia
    for role in SPECIAL_ROLE_ORDER:
        pool.extend([role] * getattr(counts, role.value))
    pool.extend([Role.VILLAGER] * (player_count - len(pool)))
    return pool


def pick_executioner_targets(player_roles: Dict[str, Role], rng=None) -> Dict[str, str]:
    """Give every executioner a player to get voted out, preferring the town."""
    rng = rng or random
    targets = {}
    for pid, role in player_roles.items():
        if role != Role.EXECUTIONER:
            continue
        town = [other for other, r in player_roles.items() if r in TOWN_ROLES and other != pid]
        others = [other for other, r in player_roles.items() if r != Role.EXECUTIONER]
        candidates = town or others
        if candidates:
            targets[pid] = rng.choice(candidates)
    return targets


def assign_roles(player_ids: Sequence[str], counts: RoleCounts, rng=None, min_players: int = MIN_PLAYERS) -> Dict[str, Role]:
    """Shuffle the role pool and bind it positionally to ``player_ids``."""
    if len(set(player_ids)) != len(player_ids):
        raise InvalidRequest('Player ids must be unique')
    pool = shuffle(build_role_pool(len(player_ids), counts, min_players=min_players), rng=rng)
    return dict(zip(player_ids, pool))
