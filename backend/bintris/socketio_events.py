from flask_socketio import join_room, leave_room, emit
from bintris import socketio
from flask import current_app, request
from bintris.services.games import LevelsExhausted
from bintris.services.games.sessions import GameSession, sessions, start_ticker
from typing import Dict, Any
import time


def _room(game_code: str) -> str:
    return f"game:{game_code.upper()}"


def bind_session_events(session: GameSession) -> None:
    """Forward controller events to every client in the game room."""
    room = _room(session.code)
    ctrl = session.controller

    def _broadcast(name, payload):
        socketio.emit(name, dict(payload, game_code=session.code), to=room, namespace='/ws')

    def on_started():
        _broadcast('state_update', ctrl.snapshot())

    def on_spawned(challenge_id, binary, numeric, base, binary_fixed):
        _broadcast('challenge_spawned', {
            'id': challenge_id,
            'binary': binary,
            'numeric': numeric,
            'base': base,
            'binary_fixed': binary_fixed,
        })

    def on_resolved(challenge_id):
        _broadcast('challenge_resolved', {
            'id': challenge_id,
            'score': ctrl.score,
            'level': ctrl.level,
            'count_resolved': ctrl.count_resolved,
        })

    def on_level_up(level):
        _broadcast('level_up', {'level': level})

    def on_game_over(score, level, count_resolved):
        _broadcast('game_over', {'score': score, 'level': level, 'count_resolved': count_resolved})

    def on_levels_exhausted(score, level, count_resolved):
        _broadcast('levels_exhausted', {'score': score, 'level': level, 'count_resolved': count_resolved})

    ctrl.subscribe('game_started', on_started)
    ctrl.subscribe('challenge_spawned', on_spawned)
    ctrl.subscribe('challenge_resolved', on_resolved)
    ctrl.subscribe('level_up', on_level_up)
    ctrl.subscribe('game_over', on_game_over)
    ctrl.subscribe('levels_exhausted', on_levels_exhausted)


def handle_connect():
    emit('connected', {'message': 'Connected to /ws'})


def handle_disconnect(*args):
    # On disconnect, if this socket was the last owner of a game, end it
    ctx = _sid_to_ctx.pop(_get_sid(), None)
    if not ctx:
        return
    game_code = ctx.get('game_code')
    if ctx.get('is_session_owner') and game_code:
        _owner_count[game_code] = max(0, _owner_count.get(game_code, 0) - 1)
        # In tests, end immediately for determinism; in prod, allow grace period
        if current_app.config.get('TESTING'):
            if _owner_count.get(game_code, 0) == 0:
                _end_session(game_code)
            return
        _schedule_end_if_no_owner(game_code)


def handle_join_game(data):
    game_code = (data or {}).get('game_code')
    is_session_owner = bool((data or {}).get('is_session_owner'))
    if not game_code:
        emit('error', {'message': 'game_code is required'})
        return
    game_code = game_code.upper()
    if game_code not in sessions:
        emit('error', {'message': f'Game {game_code} not found'})
        return
    room = _room(game_code)
    join_room(room)
    # Track session owner presence and socket context
    _sid_to_ctx[_get_sid()] = {'game_code': game_code, 'is_session_owner': is_session_owner}
    if is_session_owner:
        _owner_count[game_code] = _owner_count.get(game_code, 0) + 1
        _cancel_scheduled_end(game_code)
    emit('joined', {'room': room})


def handle_leave_game(data):
    game_code = (data or {}).get('game_code')
    if not game_code:
        emit('error', {'message': 'game_code is required'})
        return
    room = _room(game_code)
    leave_room(room)
    emit('left', {'room': room})
    # An owner leaving explicitly quits the game
    ctx = _sid_to_ctx.get(_get_sid())
    if ctx and ctx.get('is_session_owner') and ctx.get('game_code') == game_code.upper():
        _end_session(game_code.upper())


def handle_start_game(data):
    session = sessions.get((data or {}).get('game_code'))
    if session is None:
        emit('error', {'message': 'Game not found'})
        return
    session.start_game()
    start_ticker(current_app._get_current_object(), socketio, session)


def handle_submit_answer(data):
    from bintris.api.games import parse_answer
    data = data or {}
    session = sessions.get(data.get('game_code'))
    if session is None:
        emit('error', {'message': 'Game not found'})
        return
    try:
        challenge_id, side, value = parse_answer(data)
    except ValueError as exc:
        emit('error', {'message': str(exc)})
        return
    try:
        correct = session.submit_answer(challenge_id, side, value)
    except LevelsExhausted:
        # levels_exhausted was already broadcast to the room
        correct = True
    emit('answer_result', {'challenge_id': challenge_id, 'side': side, 'correct': correct})


def handle_ping(data):
    emit('pong', data or {})

# ---- Session owner lifecycle helpers ----

_sid_to_ctx: Dict[str, Dict[str, Any]] = {}
_owner_count: Dict[str, int] = {}
_end_deadline: Dict[str, float] = {}

def _get_sid() -> str:
    return request.sid  # type: ignore[attr-defined]

def _end_session(game_code: str) -> None:
    """End the session: notify clients and drop the game."""
    # Use socketio.emit since this may be called from a background task
    socketio.emit('session_ended', {'game_code': game_code}, to=_room(game_code), namespace='/ws')
    sessions.end(game_code)
    _owner_count.pop(game_code, None)
    _end_deadline.pop(game_code, None)

def _schedule_end_if_no_owner(game_code: str, delay_sec: float = 2.0) -> None:
    if _owner_count.get(game_code, 0) > 0:
        return
    _end_deadline[game_code] = time.time() + delay_sec

    def _runner(code: str, deadline: float):
        sleep_for = max(0.0, deadline - time.time())
        if sleep_for:
            socketio.sleep(sleep_for)
        if _owner_count.get(code, 0) == 0 and _end_deadline.get(code) == deadline:
            _end_session(code)

    socketio.start_background_task(_runner, game_code, _end_deadline[game_code])

def _cancel_scheduled_end(game_code: str) -> None:
    _end_deadline.pop(game_code, None)



def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    handlers = {
        'connect': handle_connect,
        'disconnect': handle_disconnect,
        'join_game': handle_join_game,
        'leave_game': handle_leave_game,
        'start_game': handle_start_game,
        'submit_answer': handle_submit_answer,
        'ping': handle_ping,
    }
    namespaces = ['/ws', '/'] if testing else ['/ws']
    for namespace in namespaces:
        for name, handler in handlers.items():
            socketio.on_event(name, handler, namespace=namespace)
