from flask import Blueprint, jsonify
from quizroom import get_engine

rooms = Blueprint('rooms', __name__)


@rooms.route('/<string:code>', methods=['GET'])
def get_room_state(code):
    """Public snapshot of a room; RoomNotFound maps to 404 via the app error handler."""
    return jsonify(get_engine().public_state(code))


@rooms.route('/<string:code>/leaderboard', methods=['GET'])
def get_leaderboard(code):
    engine = get_engine()
    state = engine.public_state(code)
    return jsonify({
        'code': state['code'],
        'state': state['state'],
        'leaderboard': engine.leaderboard(code),
    })
