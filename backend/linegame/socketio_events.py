from flask_socketio import join_room, leave_room, emit
from flask import current_app, request
from linegame import socketio
from linegame.services.game.sessions import end_session, get_session
from typing import Dict, Any
import math
import time


_sid_to_ctx: Dict[str, Dict[str, Any]] = {}
_player_count: Dict[str, int] = {}
_end_deadline: Dict[str, float] = {}


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _resolve_session(data):
    """Session named in the payload, else the one this socket joined."""
    code = (data or {}).get('session_code')
    if not code:
        code = (_sid_to_ctx.get(_get_sid()) or {}).get('session_code')
    session = get_session(code)
    if session is None:
        emit('error', {'message': 'session_code is required' if not code else 'Session not found'})
    return session


def _read_point(data):
    try:
        x, y = float(data['x']), float(data['y'])
    except (KeyError, TypeError, ValueError):
        x = y = math.nan
    if not (math.isfinite(x) and math.isfinite(y)):
        emit('error', {'message': 'Numeric x and y are required'})
        return None
    return x, y


def handle_connect(auth=None):
    emit('connected', {'message': 'Connected to /ws'})


def handle_disconnect(reason=None):
    # The player's page went away: end the session unless it reconnects
    ctx = _sid_to_ctx.pop(_get_sid(), None)
    if not ctx:
        return
    code = ctx['session_code']
    _player_count[code] = max(0, _player_count.get(code, 0) - 1)
    if current_app.config.get('TESTING') and not current_app.config.get('ENABLE_SCHEDULER_IN_TESTS'):
        if _player_count.get(code, 0) == 0:
            _end(code)
        return
    schedule_end_if_abandoned(code)


def handle_join_session(data=None):
    session = _resolve_session(data)
    if session is None:
        return
    room = session.listener.room
    join_room(room)
    _sid_to_ctx[_get_sid()] = {'session_code': session.code}
    _player_count[session.code] = _player_count.get(session.code, 0) + 1
    _end_deadline.pop(session.code, None)
    emit('joined', {'room': room, 'state': session.controller.get_round_state()})


def handle_leave_session(data=None):
    session = _resolve_session(data)
    if session is None:
        return
    room = session.listener.room
    leave_room(room)
    ctx = _sid_to_ctx.pop(_get_sid(), None)
    if ctx:
        _player_count[session.code] = max(0, _player_count.get(session.code, 0) - 1)
        schedule_end_if_abandoned(session.code)
    emit('left', {'room': room})


def handle_pointer_select(data=None):
    session = _resolve_session(data)
    if session is None:
        return
    point = _read_point(data)
    if point is not None:
        session.controller.pointer_select(*point)


def handle_pointer_hover(data=None):
    session = _resolve_session(data)
    if session is None:
        return
    point = _read_point(data)
    if point is not None:
        session.controller.pointer_hover(*point)


def handle_submit_answer(data=None):
    session = _resolve_session(data)
    if session is None:
        return
    session.controller.submit_answer()
    # Feedback already went out on the room
    session.listener.drain_feedback()


def handle_apply_settings(data=None):
    session = _resolve_session(data)
    if session is None:
        return
    settings = (data or {}).get('settings')
    if not isinstance(settings, dict):
        emit('error', {'message': 'settings object is required'})
        return
    session.controller.apply_settings(settings)


def handle_new_round(data=None):
    session = _resolve_session(data)
    if session is None:
        return
    session.controller.new_round()


def handle_ping(data=None):
    emit('pong', data or {})

# ---- Session lifecycle helpers ----

def _end(code: str) -> None:
    end_session(code)
    _player_count.pop(code, None)
    _end_deadline.pop(code, None)


def schedule_end_if_abandoned(code: str) -> None:
    """End the session after a grace period unless a socket joins it first.

    Called when a session is created and whenever its last socket leaves.
    """
    if _player_count.get(code, 0) > 0:
        return
    grace = float(current_app.config.get('SESSION_END_GRACE_SEC', 30))
    deadline = time.time() + grace
    _end_deadline[code] = deadline
    # Tests run the expiry check by hand unless they opt in to real timers
    if current_app.config.get('TESTING') and not current_app.config.get('ENABLE_SCHEDULER_IN_TESTS'):
        return
    socketio.start_background_task(end_if_abandoned, code, deadline)


def end_if_abandoned(session_code: str, deadline: float) -> bool:
    sleep_for = max(0.0, deadline - time.time())
    if sleep_for:
        socketio.sleep(sleep_for)
    if _player_count.get(session_code, 0) == 0 and _end_deadline.get(session_code) == deadline:
        _end(session_code)
        return True
    return False


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    handlers = {
        'connect': handle_connect,
        'disconnect': handle_disconnect,
        'join_session': handle_join_session,
        'leave_session': handle_leave_session,
        'pointer_select': handle_pointer_select,
        'pointer_hover': handle_pointer_hover,
        'submit_answer': handle_submit_answer,
        'apply_settings': handle_apply_settings,
        'new_round': handle_new_round,
        'ping': handle_ping,
    }
    for name, handler in handlers.items():
        socketio.on_event(name, handler, namespace='/ws')

    if testing:
        # Test-only mirror on default namespace
        for name, handler in handlers.items():
            socketio.on_event(name, handler, namespace='/')
