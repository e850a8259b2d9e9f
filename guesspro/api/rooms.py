from flask import Blueprint, current_app, jsonify, request

from guesspro.errors import GameError, InvalidSession, NotHost
from guesspro.services import get_rooms, get_sessions
from guesspro.validation import (
    optional_difficulty, require_bool, require_name, require_session_id, require_uuid,
)

rooms = Blueprint('rooms', __name__)

SESSION_HEADER = 'X-Session-Id'


@rooms.errorhandler(GameError)
def handle_game_error(exc: GameError):
    if exc.status >= 500:
        current_app.logger.error(f"[request-failed] path={request.path} error={exc.code} message={exc.message}")
    return jsonify(exc.to_dict()), exc.status


def _json_body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _current_session(require_room: bool = True):
    session_id = require_session_id(request.headers.get(SESSION_HEADER))
    session = get_sessions().get(session_id)
    if session is None:
        raise InvalidSession('Session not found')
    if require_room and not session.room_id:
        raise InvalidSession('Session is not bound to a room')
    return session


@rooms.route('/create', methods=['POST'])
def create_room():
    data = _json_body()
    gamer_id = require_uuid(data, 'gamerId')
    display_name = require_name(data, 'displayName')
    difficulty = optional_difficulty(data)
    result = get_rooms().create(gamer_id, display_name, difficulty)
    return jsonify(result), 201


@rooms.route('/join', methods=['POST'])
def join_room():
    data = _json_body()
    room_id = require_uuid(data, 'roomId')
    gamer_id = require_uuid(data, 'gamerId')
    display_name = require_name(data, 'displayName')
    result = get_rooms().join(room_id, gamer_id, display_name)
    return jsonify(result), 201


@rooms.route('/ready', methods=['POST'])
def set_ready():
    session = _current_session()
    ready = require_bool(_json_body(), 'ready')
    registry = get_rooms()
    all_ready = registry.set_ready(session.room_id, session.gamer_id, ready)
    registry.broadcast(session.room_id, 'readyUpdate', {'gamerId': session.gamer_id, 'ready': ready})
    if all_ready:
        registry.broadcast(session.room_id, 'allReady', {})
    return jsonify({'success': True})


@rooms.route('/start', methods=['POST'])
def start_game():
    session = _current_session()
    registry = get_rooms()
    room = registry.require(session.room_id)
    if room.host_gamer_id != session.gamer_id:
        raise NotHost('Not the host')
    registry.start_game(session.room_id)
    registry.broadcast(session.room_id, 'gameStarted', {'status': 'inProgress'})
    return jsonify({'success': True})


@rooms.route('/guess', methods=['POST'])
def submit_guess():
    session = _current_session()
    guess = require_name(_json_body(), 'guess')
    registry = get_rooms()
    result = registry.process_guess(session.room_id, session.gamer_id, guess)
    registry.broadcast(session.room_id, 'guessResult', {
        'gamerId': session.gamer_id,
        'guessId': result['guessId'],
        'mask': result['mask'],
        'guessesRemaining': result['guessesRemaining'],
    })
    if result['isEnded']:
        room = registry.get(session.room_id)
        if room is not None:
            registry.broadcast(session.room_id, 'gameEnded', registry.game_ended_payload(room))
    return jsonify({'success': True, **result})


@rooms.route('/leave', methods=['POST'])
def leave_room():
    session = _current_session(require_room=False)
    get_rooms().release_session(session.session_id)
    return jsonify({'success': True})


@rooms.route('/heartbeat', methods=['POST'])
def heartbeat():
    session_id = require_session_id(request.headers.get(SESSION_HEADER))
    if not get_sessions().heartbeat(session_id):
        raise InvalidSession('Session not found')
    return jsonify({'success': True})


@rooms.route('/state', methods=['GET'])
def get_room_state():
    session = _current_session()
    return jsonify(get_rooms().snapshot(session.room_id))
