"""Error kinds surfaced by the game engine.

Every error carries a stable ``kind`` string and the HTTP status the API
layer answers with, so callers can tell failures apart without parsing
messages.
"""


class GameError(Exception):
    kind = 'game_error'
    status_code = 400

    def to_dict(self):
        return {'error': str(self), 'kind': self.kind}


class InsufficientPlayers(GameError):
    kind = 'insufficient_players'


class TooManyRoles(GameError):
    kind = 'too_many_roles'


class InvalidRequest(GameError):
    kind = 'invalid_request'


class InvalidAction(GameError):
    kind = 'invalid_action'


class NotFound(GameError):
    kind = 'not_found'
    status_code = 404


class InvalidPhase(GameError):
    kind = 'invalid_phase'
    status_code = 409


class GameBusy(GameError):
    kind = 'game_busy'
    status_code = 409


class StoreFailure(GameError):
    kind = 'store_failure'
    status_code = 503
