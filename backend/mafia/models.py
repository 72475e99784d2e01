from mafia import db
import json
import time
import uuid


def new_id():
    return uuid.uuid4().hex


def decode_json(raw, default_factory):
    """Decode a JSON text column, falling back to an empty value.

    Missing, malformed or wrongly-typed payloads never fail a read.
    """
    empty = default_factory()
    if raw is None or raw == '':
        return empty
    try:
        value = json.loads(raw)
    except (TypeError, ValueError):
        return empty
    if not isinstance(value, type(empty)):
        return empty
    return value


def encode_json(value):
    return json.dumps(value)


class DocumentMixin:
    """Row <-> plain document conversion used by the document store.

    Columns named in ``json_fields`` hold JSON text in the database and
    structured values (dicts / lists) in documents.
    """
    json_fields = {}

    def to_document(self):
        doc = {}
        for column in self.__table__.columns:
            value = getattr(self, column.name)
            if column.name in self.json_fields:
                value = decode_json(value, self.json_fields[column.name])
            doc[column.name] = value
        return doc

    def apply_document(self, partial):
        columns = self.__table__.columns
        unknown = [key for key in partial if key == 'id' or key not in columns]
        if unknown:
            raise KeyError(f"{self.__tablename__} has no writable field(s) {unknown}")
        for key, value in partial.items():
            if key in self.json_fields:
                value = encode_json(value if value is not None else self.json_fields[key]())
            setattr(self, key, value)


class User(DocumentMixin, db.Model):
    __tablename__ = 'user'
    id = db.Column(db.String(32), primary_key=True, default=new_id)
    username = db.Column(db.String(64), unique=True, nullable=False, index=True)

    def to_dict(self):
        return {
            'id': self.id,
            'username': self.username,
        }


class Room(DocumentMixin, db.Model):
    __tablename__ = 'room'
    json_fields = {'game_settings': dict}

    id = db.Column(db.String(32), primary_key=True, default=new_id)
    name = db.Column(db.String(64), nullable=True)
    status = db.Column(db.String(32), default='lobby', nullable=False)  # lobby, playing
    game_state_id = db.Column(db.String(32), nullable=True)
    game_settings = db.Column(db.Text, nullable=True)  # JSON-encoded durations and role counts


class GameStateRecord(DocumentMixin, db.Model):
    __tablename__ = 'game_state'
    json_fields = {
        'player_roles': dict,
        'player_alive': dict,
        'player_usernames': dict,
        'executioner_targets': dict,
        'eliminated_players': list,
        'night_actions': dict,
        'votes': dict,
        'game_log': list,
    }

    id = db.Column(db.String(32), primary_key=True, default=new_id)
    room_id = db.Column(db.String(32), nullable=False, index=True)
    phase = db.Column(db.String(16), nullable=False, default='starting')  # starting, night, day, voting, game_over
    current_day = db.Column(db.Integer, nullable=False, default=0)
    current_night = db.Column(db.Integer, nullable=False, default=0)
    player_roles = db.Column(db.Text, nullable=True)
    player_alive = db.Column(db.Text, nullable=True)
    player_usernames = db.Column(db.Text, nullable=True)
    executioner_targets = db.Column(db.Text, nullable=True)
    eliminated_players = db.Column(db.Text, nullable=True)
    night_actions = db.Column(db.Text, nullable=True)
    votes = db.Column(db.Text, nullable=True)
    phase_start_time = db.Column(db.Float, nullable=True)
    phase_time_remaining = db.Column(db.Integer, nullable=False, default=0)
    winner = db.Column(db.String(16), nullable=True)  # villagers, mafia
    game_log = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.Float, nullable=False, default=time.time)
