import time
from typing import Any, Dict, Iterable, Optional

from flask import current_app

from mafia.errors import GameBusy, InvalidAction, InvalidPhase, InvalidRequest, NotFound, StoreFailure
from . import roles
from .locks import GameLocks
from .night import NIGHT_WRITES, resolve_night
from .state import ACTION_ROLES, TIMING_FIELDS, WITCH_ACTION, GameState, Phase
from .timers import PhaseTimers
from .voting import VOTING_WRITES, resolve_voting

# phase -> (room game_settings key, app config key)
DURATION_KEYS = {
    Phase.STARTING: ('starting_time', 'STARTING_DURATION_SEC'),
    Phase.NIGHT: ('night_time', 'NIGHT_DURATION_SEC'),
    Phase.DAY: ('discussion_time', 'DAY_DURATION_SEC'),
    Phase.VOTING: ('voting_time', 'VOTING_DURATION_SEC'),
}
DEFAULT_DURATIONS = {Phase.STARTING: 15, Phase.NIGHT: 45, Phase.DAY: 120, Phase.VOTING: 60}


def get_controller() -> 'PhaseController':
    return current_app.extensions['phase_controller']


class PhaseController:
    """Drives every game through its phases.

    Transitions come from two sources: explicit resolve calls from the API
    and timer expiry. Both go through :meth:`advance`, which holds the
    game's lock, reloads the stored state, persists exactly the fields the
    step declares, and only then starts the next phase's timer.
    """

    def __init__(self, app, store, timers: PhaseTimers, locks: Optional[GameLocks] = None, rng=None):
        self.app = app
        self.store = store
        self.timers = timers
        self.locks = locks or GameLocks(timeout=float(app.config.get('GAME_LOCK_TIMEOUT_SEC', 10)))
        self.rng = rng
        self.timers.bind(self.handle_timer_expiry)
        self._steps = {
            Phase.STARTING: self._enter_night,
            Phase.NIGHT: self._resolve_night,
            Phase.DAY: self._enter_voting,
            Phase.VOTING: self._resolve_voting,
        }

    @property
    def logger(self):
        return self.app.logger

    # --- exposed operations -------------------------------------------
    def assign_roles(self, room_id: str, player_ids: Iterable[str], role_counts=None) -> Dict[str, Any]:
        """Start a game: bind roles to players, persist the game, start the Starting timer."""
        player_ids = [str(pid) for pid in (player_ids or [])]
        if not room_id:
            raise InvalidRequest('Room ID is required')
        room = self.store.get('rooms', room_id)
        settings = room.get('game_settings') or {}
        if not isinstance(role_counts, roles.RoleCounts):
            role_counts = roles.RoleCounts.from_settings(settings if role_counts is None else role_counts)

        cfg = self.app.config
        player_roles = roles.assign_roles(
            player_ids, role_counts, rng=self.rng,
            min_players=int(cfg.get('MIN_PLAYERS', roles.MIN_PLAYERS)),
        )
        duration = self._duration(settings, Phase.STARTING)
        state = GameState(
            id=None,
            room_id=room_id,
            phase=Phase.STARTING,
            player_roles=player_roles,
            player_alive={pid: True for pid in player_ids},
            player_usernames=self._usernames(player_ids),
            executioner_targets=roles.pick_executioner_targets(player_roles, rng=self.rng),
            phase_start_time=time.time(),
            phase_time_remaining=duration,
        )
        game_id = self.store.create('game_states', state.to_document())['id']
        try:
            self.store.update('rooms', room_id, {'status': 'playing', 'game_state_id': game_id})
        except StoreFailure:
            self._abandon(game_id, room_id)
            raise
        self.logger.info(f"[assign] game={game_id} room={room_id} players={len(player_ids)} counts={role_counts}")
        self.timers.start(game_id, duration, Phase.STARTING.value)
        return {
            'game_state_id': game_id,
            'player_roles': {pid: role.value for pid, role in player_roles.items()},
        }

    def resolve_night(self, game_id: str) -> GameState:
        return self.advance(game_id, Phase.NIGHT)

    def resolve_voting(self, game_id: str) -> GameState:
        return self.advance(game_id, Phase.VOTING)

    def remaining_time(self, game_id: str) -> Optional[int]:
        return self.timers.remaining(game_id)

    def load(self, game_id: str) -> GameState:
        return GameState.from_document(self.store.get('game_states', game_id))

    def game_view(self, game_id: str, viewer_id: Optional[str] = None) -> Dict[str, Any]:
        return self.load(game_id).to_view(viewer_id, remaining=self.timers.remaining(game_id))

    def submit_night_action(self, game_id: str, actor_id: str, action: str, target: Optional[str] = None,
                            save_target: Optional[str] = None, kill_target: Optional[str] = None) -> Dict[str, Any]:
        if action not in ACTION_ROLES:
            raise InvalidAction(f"Unknown night action '{action}'")
        with self.locks.hold(game_id):
            state = self.load(game_id)
            if state.phase != Phase.NIGHT:
                raise InvalidPhase(f"Night actions are not accepted during {state.phase.value}")
            if not state.is_alive(actor_id) or state.player_roles.get(actor_id) != ACTION_ROLES[action]:
                raise InvalidAction(f"Player '{actor_id}' cannot perform {action}")

            if action == WITCH_ACTION:
                if not (save_target or kill_target):
                    raise InvalidAction('The Witch must choose a player to save or to kill')
                for chosen in (save_target, kill_target):
                    if chosen and not state.is_alive(chosen):
                        raise InvalidAction(f"Player '{chosen}' is not a living player")
                entry = {'actor': actor_id, 'save_target': save_target, 'kill_target': kill_target}
            else:
                if not target or not state.is_alive(target):
                    raise InvalidAction(f"Player '{target}' is not a living player")
                entry = {'actor': actor_id, 'target': target}

            state.night_actions[action] = entry
            self.store.update('game_states', game_id, state.patch(('night_actions',)))
        self.logger.info(f"[night-action] game={game_id} action={action} actor={actor_id}")
        return entry

    def submit_vote(self, game_id: str, voter_id: str, target_id: Optional[str]) -> Dict[str, str]:
        """Record (or with no target, withdraw) ``voter_id``'s vote."""
        with self.locks.hold(game_id):
            state = self.load(game_id)
            if state.phase != Phase.VOTING:
                raise InvalidPhase(f"Votes are not accepted during {state.phase.value}")
            if not state.is_alive(voter_id):
                raise InvalidAction(f"Player '{voter_id}' cannot vote")
            if target_id is None:
                state.votes.pop(voter_id, None)
            elif not state.is_alive(target_id):
                raise InvalidAction(f"Player '{target_id}' is not a living player")
            else:
                state.votes[voter_id] = target_id
            self.store.update('game_states', game_id, state.patch(('votes',)))
        self.logger.info(f"[vote] game={game_id} voter={voter_id} target={target_id}")
        return dict(state.votes)

    # --- transitions ---------------------------------------------------
    def advance(self, game_id: str, expected: Phase) -> GameState:
        """Run the transition out of ``expected``; rejects if the game has moved on."""
        with self.locks.hold(game_id):
            state = self.load(game_id)
            if state.phase != expected:
                raise InvalidPhase(f"Game '{game_id}' is in {state.phase.value}, not {expected.value}")
            step = self._steps.get(state.phase)
            if step is None:
                raise InvalidPhase(f"Game '{game_id}' is over")
            result, writes = step(state)
            result = self._commit(state, result, writes)
        if result.phase == Phase.GAME_OVER:
            self.locks.discard(game_id)
        return result

    def handle_timer_expiry(self, game_id: str, phase: str) -> None:
        with self.app.app_context():
            try:
                self.advance(game_id, Phase(phase))
            except (InvalidPhase, NotFound) as exc:
                self.logger.info(f"[timer-abort] game={game_id} phase={phase} reason={exc}")
            except (StoreFailure, GameBusy) as exc:
                retry = int(self.app.config.get('TIMER_RETRY_SEC', 0))
                self.logger.warning(f"[timer-retry] game={game_id} phase={phase} retry_in={retry}s reason={exc}")
                # A newer timer means another trigger already moved the game along
                if retry > 0 and self.timers.remaining(game_id) is None:
                    self.timers.start(game_id, retry, phase)

    def _enter_night(self, state: GameState):
        result = state.copy()
        result.phase = Phase.NIGHT
        result.current_night += 1
        return result, ('phase', 'current_night')

    def _enter_voting(self, state: GameState):
        result = state.copy()
        result.phase = Phase.VOTING
        return result, ('phase',)

    def _resolve_night(self, state: GameState):
        return resolve_night(state), NIGHT_WRITES

    def _resolve_voting(self, state: GameState):
        return resolve_voting(state), VOTING_WRITES

    def _commit(self, before: GameState, result: GameState, writes) -> GameState:
        if result.phase == Phase.GAME_OVER:
            duration = 0
        else:
            duration = self._duration(self._room_settings(result.room_id), result.phase)
        result.phase_start_time = time.time()
        result.phase_time_remaining = duration

        self.store.update('game_states', result.id, result.patch(tuple(writes) + TIMING_FIELDS))
        self.logger.info(
            f"[phase] game={result.id} {before.phase.value} -> {result.phase.value} "
            f"day={result.current_day} night={result.current_night} winner={result.winner.value if result.winner else None}"
        )
        if result.phase == Phase.GAME_OVER:
            self.timers.stop(result.id)
        else:
            self.timers.start(result.id, duration, result.phase.value)
        return result

    # --- helpers -------------------------------------------------------
    def _abandon(self, game_id: str, room_id: str) -> None:
        """Close a game whose room never got linked to it, so nothing resumes it."""
        try:
            self.store.update('game_states', game_id, {'phase': Phase.GAME_OVER.value, 'phase_time_remaining': 0})
            self.logger.warning(f"[assign-abort] game={game_id} room={room_id} closed after room update failed")
        except StoreFailure as exc:
            self.logger.error(f"[assign-abort] game={game_id} room={room_id} could not be closed: {exc}")

    def _room_settings(self, room_id: str) -> Dict[str, Any]:
        try:
            return self.store.get('rooms', room_id).get('game_settings') or {}
        except NotFound:
            self.logger.warning(f"[room-missing] room={room_id} using configured durations")
            return {}

    def _duration(self, settings: Dict[str, Any], phase: Phase) -> int:
        settings_key, config_key = DURATION_KEYS[phase]
        value = settings.get(settings_key)
        try:
            if value is not None:
                return max(0, int(value))
        except (TypeError, ValueError):
            self.logger.warning(f"[settings] ignoring {settings_key}={value!r}")
        return int(self.app.config.get(config_key, DEFAULT_DURATIONS[phase]))

    def _usernames(self, player_ids) -> Dict[str, str]:
        fallback = self.app.config.get('UNKNOWN_PLAYER_NAME', 'Unknown Player')
        names = {}
        for pid in player_ids:
            try:
                names[pid] = self.store.get('users', pid).get('username') or fallback
            except (NotFound, StoreFailure) as exc:
                self.logger.warning(f"[username-fallback] player={pid} reason={exc}")
                names[pid] = fallback
        return names
