from flask import Blueprint, jsonify, request, current_app
from datetime import datetime, timezone

from mafia.errors import GameError, InvalidRequest
from mafia.services.games import get_controller


games = Blueprint('games', __name__)


@games.errorhandler(GameError)
def handle_game_error(exc):
    current_app.logger.info(f"[api-error] path={request.path} kind={exc.kind} error={exc}")
    return jsonify(exc.to_dict()), exc.status_code


def _require(data, key, message):
    value = data.get(key)
    if not value:
        raise InvalidRequest(message)
    return value


@games.route('/assign-roles', methods=['POST'])
def assign_roles():
    """
    Assigns roles to the room's players and starts the game.
    """
    data = request.get_json(silent=True) or {}
    room_id = _require(data, 'room_id', 'Room ID is required')
    player_ids = data.get('player_ids')
    if not isinstance(player_ids, list):
        raise InvalidRequest('player_ids must be a list')

    result = get_controller().assign_roles(room_id, player_ids, data.get('game_settings'))
    return jsonify({
        'success': True,
        'game_state_id': result['game_state_id'],
        'player_roles': result['player_roles'],
        'message': 'Game started successfully',
    })


@games.route('/process-night-actions', methods=['POST'])
def process_night_actions():
    data = request.get_json(silent=True) or {}
    game_state_id = _require(data, 'game_state_id', 'Game state ID is required')
    state = get_controller().resolve_night(game_state_id)
    return jsonify({
        'success': True,
        'message': 'Night actions processed successfully',
        'phase': state.phase.value,
        'winner': state.winner.value if state.winner else None,
    })


@games.route('/process-voting', methods=['POST'])
def process_voting():
    data = request.get_json(silent=True) or {}
    game_state_id = _require(data, 'game_state_id', 'Game state ID is required')
    controller = get_controller()
    state = controller.resolve_voting(game_state_id)
    return jsonify({
        'success': True,
        'message': 'Voting processed successfully',
        'game_state': state.to_view(remaining=controller.remaining_time(game_state_id)),
    })


@games.route('/timer-remaining/<string:game_state_id>', methods=['GET'])
def timer_remaining(game_state_id):
    remaining = get_controller().remaining_time(game_state_id)
    if remaining is None:
        return jsonify({'error': 'No timer found for this game'}), 404
    return jsonify({'remaining_seconds': remaining})


@games.route('/game-state/<string:game_state_id>', methods=['GET'])
def game_state(game_state_id):
    """
    Returns the game as seen by ``player_id`` (query arg): the public log plus
    that player's private entries, and only their own role until the game ends.
    """
    viewer_id = request.args.get('player_id')
    return jsonify(get_controller().game_view(game_state_id, viewer_id))


@games.route('/game-state/<string:game_state_id>/night-actions', methods=['POST'])
def submit_night_action(game_state_id):
    data = request.get_json(silent=True) or {}
    actor_id = _require(data, 'actor_id', 'Actor ID is required')
    action = _require(data, 'action', 'Action is required')
    entry = get_controller().submit_night_action(
        game_state_id,
        actor_id,
        action,
        target=data.get('target'),
        save_target=data.get('save_target'),
        kill_target=data.get('kill_target'),
    )
    return jsonify({'message': 'Night action submitted', 'action': entry}), 201


@games.route('/game-state/<string:game_state_id>/votes', methods=['POST'])
def submit_vote(game_state_id):
    data = request.get_json(silent=True) or {}
    voter_id = _require(data, 'voter_id', 'Voter ID is required')
    votes = get_controller().submit_vote(game_state_id, voter_id, data.get('target_id'))
    return jsonify({'message': 'Vote submitted', 'votes_cast': len(votes)}), 201


@games.route('/test-backend', methods=['GET'])
def test_backend():
    get_controller().store.ping()
    return jsonify({
        'success': True,
        'message': 'Backend is healthy',
        'timestamp': datetime.now(timezone.utc).isoformat(),
    })
