import os
import sys
import pytest

# Ensure the backend root (containing the `mafia` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from mafia import create_app, db
from mafia.models import Room, User
from mafia.services.games import GameState, Phase, PhaseTimers, Role, get_controller


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {}
    STARTING_DURATION_SEC = 15
    NIGHT_DURATION_SEC = 45
    DAY_DURATION_SEC = 120
    VOTING_DURATION_SEC = 60
    MIN_PLAYERS = 4
    UNKNOWN_PLAYER_NAME = 'Unknown Player'
    GAME_LOCK_TIMEOUT_SEC = 1
    TIMER_RETRY_SEC = 0


class ManualSpawner:
    """Collects timer workers instead of running them, so tests decide when a timer expires."""

    def __init__(self):
        self.tasks = []

    def __call__(self, target, *args):
        self.tasks.append((target, args))

    def run_pending(self):
        # Only what is queued right now; firing a timer schedules the next phase's worker
        pending, self.tasks = self.tasks, []
        for target, args in pending:
            target(*args)
        return len(pending)


class FakeClock:

    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture()
def spawner():
    return ManualSpawner()


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def timers(spawner, clock):
    return PhaseTimers(spawn=spawner, sleep=lambda seconds: None, clock=clock)


@pytest.fixture()
def flask_app(timers):
    application = create_app(TestConfig, timers=timers)
    with application.app_context():
        import mafia.models  # noqa: F401
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def controller(flask_app):
    return get_controller()


@pytest.fixture()
def make_room(flask_app):
    def _make(game_settings='{"mafia_count": 1}', room_id='room1'):
        room = Room(id=room_id, name='Test room', game_settings=game_settings)
        db.session.add(room)
        db.session.commit()
        return room.id
    return _make


@pytest.fixture()
def make_users(flask_app):
    def _make(*names):
        ids = []
        for name in names:
            user = User(id=f"u-{name}", username=name)
            db.session.add(user)
            ids.append(user.id)
        db.session.commit()
        return ids
    return _make


@pytest.fixture()
def make_state():
    """Build a GameState from ``{player_id: role}`` without touching the store."""
    def _make(roles, phase=Phase.NIGHT, alive=None, night_actions=None, votes=None, executioner_targets=None):
        player_roles = {pid: Role(role) for pid, role in roles.items()}
        player_alive = {pid: True for pid in player_roles}
        player_alive.update(alive or {})
        return GameState(
            id='game1',
            room_id='room1',
            phase=phase,
            player_roles=player_roles,
            player_alive=player_alive,
            player_usernames={pid: pid.title() for pid in player_roles},
            executioner_targets=executioner_targets or {},
            night_actions=night_actions or {},
            votes=votes or {},
        )
    return _make


@pytest.fixture()
def file_app(timers, tmp_path):
    """App on a file-backed sqlite database, for tests that touch the store from several threads."""
    class FileConfig(TestConfig):
        SQLALCHEMY_DATABASE_URI = f"sqlite:///{tmp_path / 'mafia.db'}"
        SQLALCHEMY_ENGINE_OPTIONS = {'connect_args': {'timeout': 5}}

    application = create_app(FileConfig, timers=timers)
    with application.app_context():
        import mafia.models  # noqa: F401
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()
