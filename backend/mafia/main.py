from flask import Blueprint, jsonify
from datetime import datetime, timezone
import time

main = Blueprint('main', __name__)

_started_at = time.monotonic()


@main.route('/')
def index():
    return jsonify({
        'message': 'Mafia game server',
        'endpoints': {
            'health': '/health',
            'test_backend': '/api/test-backend',
            'assign_roles': '/api/assign-roles',
            'process_night_actions': '/api/process-night-actions',
            'process_voting': '/api/process-voting',
            'timer_remaining': '/api/timer-remaining/<game_state_id>',
            'game_state': '/api/game-state/<game_state_id>',
        },
    })


@main.route('/health')
def health():
    return jsonify({
        'status': 'healthy',
        'timestamp': datetime.now(timezone.utc).isoformat(),
        'uptime': round(time.monotonic() - _started_at, 3),
    })
