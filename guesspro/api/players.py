from flask import Blueprint, jsonify, request

from guesspro.errors import GameError
from guesspro.models import DIFFICULTIES
from guesspro.services import get_players

players = Blueprint('players', __name__)

DEFAULT_LIMIT = 10
MAX_LIMIT = 50


@players.errorhandler(GameError)
def handle_game_error(exc: GameError):
    return jsonify(exc.to_dict()), exc.status


@players.route('/search', methods=['GET'])
def search_players():
    """Autocomplete for guess input, scoped to a difficulty tier."""
    query = request.args.get('q', '')
    difficulty = request.args.get('difficulty', 'all')
    if difficulty not in DIFFICULTIES:
        difficulty = 'all'
    try:
        limit = int(request.args.get('limit', DEFAULT_LIMIT))
    except ValueError:
        limit = DEFAULT_LIMIT
    limit = max(1, min(limit, MAX_LIMIT))
    found = get_players().search(query, difficulty, limit)
    return jsonify({'players': [p.to_dict() for p in found]})
