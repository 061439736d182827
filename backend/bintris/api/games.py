from flask import Blueprint, jsonify, request, current_app
from bintris import socketio
from bintris.services.games import LevelsExhausted
from bintris.services.games.sessions import sessions, start_ticker
from bintris.socketio_events import bind_session_events, _end_session
from typing import Tuple


games = Blueprint('games', __name__)

ANSWER_SIDES = ('binary', 'numeric')


def parse_answer(data) -> Tuple[int, str, str]:
    """Validate an answer payload into (challenge_id, side, value)."""
    challenge_id = data.get('challenge_id')
    side = data.get('side')
    value = data.get('value')
    if challenge_id is None or side is None or value is None:
        raise ValueError('challenge_id, side and value are required')
    if side not in ANSWER_SIDES:
        raise ValueError("side must be 'binary' or 'numeric'")
    if isinstance(challenge_id, bool):
        raise ValueError('challenge_id must be an integer')
    try:
        challenge_id = int(challenge_id)
    except (TypeError, ValueError):
        raise ValueError('challenge_id must be an integer')
    return challenge_id, side, str(value)


@games.errorhandler(404)
def not_found(exc):
    return jsonify({'error': getattr(exc, 'description', None) or 'Not found'}), 404


@games.route('/levels', methods=['GET'])
def get_levels():
    settings = current_app.extensions['bintris.settings']
    return jsonify(settings.to_dict())


@games.route('/create', methods=['POST'])
def create_game():
    session = sessions.create(current_app._get_current_object(), on_created=bind_session_events)
    return jsonify({
        'message': 'New game created!',
        'game_code': session.code
    }), 201


@games.route('/<string:game_code>/start', methods=['POST'])
def start_game(game_code):
    """
    Starts (or restarts) the game and its tick loop.
    """
    session = sessions.get_or_404(game_code)
    session.start_game()
    start_ticker(current_app._get_current_object(), socketio, session)
    return jsonify(session.snapshot())


@games.route('/<string:game_code>/state', methods=['GET'])
def get_game_state(game_code):
    session = sessions.get_or_404(game_code)
    return jsonify(session.snapshot())


@games.route('/<string:game_code>/answer', methods=['POST'])
def submit_answer(game_code):
    """
    Checks an answer for one challenge. Wrong answers are free retries.
    """
    session = sessions.get_or_404(game_code)
    data = request.get_json(silent=True) or {}
    try:
        challenge_id, side, value = parse_answer(data)
    except ValueError as exc:
        return jsonify({'error': str(exc)}), 400

    try:
        correct = session.submit_answer(challenge_id, side, value)
    except LevelsExhausted as exc:
        current_app.logger.info(f"[levels-exhausted] game={session.code} score={exc.score}")
        return jsonify({
            'error': 'levels_exhausted',
            'score': exc.score,
            'level': exc.level,
            'count_resolved': exc.count_resolved,
            'state': session.snapshot(),
        }), 409
    return jsonify({'correct': correct, 'state': session.snapshot()})


@games.route('/<string:game_code>/end', methods=['POST'])
def end_game(game_code):
    session = sessions.get_or_404(game_code)
    _end_session(session.code)
    return jsonify({'message': f'Game {session.code} ended.'})
