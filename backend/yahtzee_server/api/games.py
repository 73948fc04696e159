from flask import Blueprint, current_app, jsonify

from yahtzee_server.models import CATEGORIES


games = Blueprint('games', __name__)


@games.route('/state', methods=['GET'])
def get_game_state():
    match = current_app.extensions['yahtzee_match']
    state = match.snapshot()
    state['maxPlayers'] = match.max_players
    state['dozOverlayMs'] = match.doz_overlay_ms
    return jsonify(state)


@games.route('/categories', methods=['GET'])
def get_categories():
    return jsonify({'categories': CATEGORIES})
