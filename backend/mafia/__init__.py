from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
from config import Config

db = SQLAlchemy()
migrate = Migrate()
allowed_origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://localhost:5174",
    "http://127.0.0.1:5174",
]
# Only used to run phase timers as background tasks under the server's async mode
socketio = SocketIO(cors_allowed_origins=allowed_origins, async_mode=None)


def create_app(config_class=Config, timers=None):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    db.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # Game engine: one controller per app, owning its timers and per-game locks
    from mafia.services.store import SqlDocumentStore
    from mafia.services.games import PhaseController, PhaseTimers
    if timers is None:
        timers = PhaseTimers(
            spawn=socketio.start_background_task,
            sleep=socketio.sleep,
            logger=flask_app.logger,
            heartbeat_sec=int(flask_app.config.get('TIMER_HEARTBEAT_SEC', 0)),
        )
    store = SqlDocumentStore(db, logger=flask_app.logger)
    flask_app.extensions['phase_controller'] = PhaseController(flask_app, store, timers)

    from mafia.main import main
    flask_app.register_blueprint(main)

    from mafia.api.games import games
    flask_app.register_blueprint(games, url_prefix='/api')

    @click.command('db-reset')
    def db_reset_command():
        """Drops, recreates, and seeds the database."""
        from mafia.models import Room, User
        with flask_app.app_context():
            db.drop_all()
            db.create_all()

            # Seed users and a room they can start a game in
            for u in ['testuser1', 'testuser2', 'testuser3', 'testuser4']:
                db.session.add(User(username=u))
            db.session.add(Room(name='Test room', game_settings='{"mafia_count": 1}'))

            db.session.commit()
            print('Database has been reset and seeded!')

    flask_app.cli.add_command(db_reset_command)

    return flask_app
