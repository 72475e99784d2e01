"""In-memory game state and the vocabulary shared by the resolvers."""
import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional


class Phase(str, Enum):
    STARTING = 'starting'
    NIGHT = 'night'
    DAY = 'day'
    VOTING = 'voting'
    GAME_OVER = 'game_over'


class Role(str, Enum):
    MAFIA = 'mafia'
    DOCTOR = 'doctor'
    DETECTIVE = 'detective'
    WITCH = 'witch'
    JESTER = 'jester'
    EXECUTIONER = 'executioner'
    VILLAGER = 'villager'


class Winner(str, Enum):
    VILLAGERS = 'villagers'
    MAFIA = 'mafia'


# Night action kinds, keyed in GameState.night_actions
MAFIA_KILL = 'mafia_kill'
DOCTOR_PROTECT = 'doctor_protect'
WITCH_ACTION = 'witch_action'
DETECTIVE_INVESTIGATE = 'detective_investigate'

ACTION_ROLES = {
    MAFIA_KILL: Role.MAFIA,
    DOCTOR_PROTECT: Role.DOCTOR,
    WITCH_ACTION: Role.WITCH,
    DETECTIVE_INVESTIGATE: Role.DETECTIVE,
}

# Fields stamped by the controller on every phase change
TIMING_FIELDS = ('phase_start_time', 'phase_time_remaining')


@dataclass
class LogEvent:
    kind: str
    targets: List[str]
    message: str
    visible_to: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'kind': self.kind,
            'targets': list(self.targets),
            'message': self.message,
            'visible_to': self.visible_to,
        }

    @classmethod
    def from_dict(cls, data) -> 'LogEvent':
        if isinstance(data, str):
            # Plain-text entries written before events were structured
            return cls(kind='message', targets=[], message=data)
        return cls(
            kind=data.get('kind') or 'message',
            targets=list(data.get('targets') or []),
            message=data.get('message') or '',
            visible_to=data.get('visible_to'),
        )

    def visible_for(self, viewer_id: Optional[str]) -> bool:
        return self.visible_to is None or self.visible_to == viewer_id


@dataclass
class GameState:
    id: Optional[str]
    room_id: str
    phase: Phase = Phase.STARTING
    current_day: int = 0
    current_night: int = 0
    player_roles: Dict[str, Role] = field(default_factory=dict)
    player_alive: Dict[str, bool] = field(default_factory=dict)
    player_usernames: Dict[str, str] = field(default_factory=dict)
    executioner_targets: Dict[str, str] = field(default_factory=dict)
    eliminated_players: List[str] = field(default_factory=list)
    night_actions: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    votes: Dict[str, str] = field(default_factory=dict)
    phase_start_time: Optional[float] = None
    phase_time_remaining: int = 0
    winner: Optional[Winner] = None
    game_log: List[LogEvent] = field(default_factory=list)

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> 'GameState':
        winner = doc.get('winner')
        return cls(
            id=doc.get('id'),
            room_id=doc.get('room_id'),
            phase=Phase(doc.get('phase') or Phase.STARTING.value),
            current_day=int(doc.get('current_day') or 0),
            current_night=int(doc.get('current_night') or 0),
            player_roles={pid: Role(r) for pid, r in (doc.get('player_roles') or {}).items()},
            player_alive={pid: bool(a) for pid, a in (doc.get('player_alive') or {}).items()},
            player_usernames=dict(doc.get('player_usernames') or {}),
            executioner_targets=dict(doc.get('executioner_targets') or {}),
            eliminated_players=list(doc.get('eliminated_players') or []),
            night_actions=dict(doc.get('night_actions') or {}),
            votes=dict(doc.get('votes') or {}),
            phase_start_time=doc.get('phase_start_time'),
            phase_time_remaining=int(doc.get('phase_time_remaining') or 0),
            winner=Winner(winner) if winner else None,
            game_log=[LogEvent.from_dict(e) for e in (doc.get('game_log') or [])],
        )

    def copy(self) -> 'GameState':
        return copy.deepcopy(self)

    def to_document(self) -> Dict[str, Any]:
        doc = self.patch(DOCUMENT_FIELDS)
        if self.id:
            doc['id'] = self.id
        return doc

    def patch(self, fields: Iterable[str]) -> Dict[str, Any]:
        """Plain values of exactly ``fields``, ready for a partial store update."""
        out = {}
        for name in fields:
            value = getattr(self, name)
            if name == 'player_roles':
                value = {pid: role.value for pid, role in value.items()}
            elif name == 'game_log':
                value = [event.to_dict() for event in value]
            elif isinstance(value, Enum):
                value = value.value
            elif isinstance(value, (dict, list)):
                value = copy.deepcopy(value)
            out[name] = value
        return out

    # --- queries -------------------------------------------------------
    def name_of(self, player_id: str) -> str:
        return self.player_usernames.get(player_id) or player_id

    def is_alive(self, player_id: str) -> bool:
        return bool(self.player_alive.get(player_id))

    def alive_with_role(self, role: Role) -> List[str]:
        return [pid for pid, r in self.player_roles.items() if r == role and self.is_alive(pid)]

    def log(self, kind: str, targets: Iterable[str], message: str, visible_to: Optional[str] = None) -> LogEvent:
        event = LogEvent(kind=kind, targets=[t for t in targets if t], message=message, visible_to=visible_to)
        self.game_log.append(event)
        return event

    def visible_log(self, viewer_id: Optional[str] = None) -> List[LogEvent]:
        return [event for event in self.game_log if event.visible_for(viewer_id)]

    def to_view(self, viewer_id: Optional[str] = None, remaining: Optional[int] = None) -> Dict[str, Any]:
        """What ``viewer_id`` may see of this game."""
        if self.phase == Phase.GAME_OVER:
            roles = {pid: role.value for pid, role in self.player_roles.items()}
        elif viewer_id in self.player_roles:
            roles = {viewer_id: self.player_roles[viewer_id].value}
        else:
            roles = {}
        return {
            'id': self.id,
            'room_id': self.room_id,
            'phase': self.phase.value,
            'current_day': self.current_day,
            'current_night': self.current_night,
            'player_usernames': dict(self.player_usernames),
            'player_alive': dict(self.player_alive),
            'player_roles': roles,
            'eliminated_players': list(self.eliminated_players),
            'phase_start_time': self.phase_start_time,
            'phase_time_remaining': self.phase_time_remaining,
            'remaining_seconds': remaining,
            'winner': self.winner.value if self.winner else None,
            'game_log': [event.to_dict() for event in self.visible_log(viewer_id)],
        }


DOCUMENT_FIELDS = (
    'room_id', 'phase', 'current_day', 'current_night', 'player_roles',
    'player_alive', 'player_usernames', 'executioner_targets',
    'eliminated_players', 'night_actions', 'votes', 'phase_start_time',
    'phase_time_remaining', 'winner', 'game_log',
)
