import random
import string
from typing import Any, Dict, List, Optional, Tuple

from linegame import socketio
from .controller import RoundController, RoundListener
from .scheduler import BackgroundScheduler, ManualScheduler


class SocketRelayListener(RoundListener):
    """Forwards round notifications to the session's Socket.IO room.

    Feedback is also buffered so HTTP handlers can return what a call produced.
    """

    def __init__(self, session_code: str):
        self.session_code = session_code
        self.room = f"session:{session_code}"
        self._feedback: List[Dict[str, str]] = []

    def _emit(self, event: str, payload: Dict[str, Any]) -> None:
        socketio.emit(event, payload, to=self.room, namespace='/ws')

    def on_feedback(self, message, severity):
        entry = {'message': message, 'severity': severity}
        self._feedback.append(entry)
        self._emit('feedback', dict(entry, session_code=self.session_code))

    def on_score_changed(self, wins, losses):
        self._emit('score_changed', {'session_code': self.session_code, 'wins': wins, 'losses': losses})

    def on_timer_tick(self, remaining):
        self._emit('timer_tick', {'session_code': self.session_code, 'remaining': remaining})

    def on_state_changed(self, snapshot):
        self._emit('state_update', {'session_code': self.session_code, 'state': snapshot})

    def drain_feedback(self) -> List[Dict[str, str]]:
        entries, self._feedback = self._feedback, []
        return entries


class Session:
    def __init__(self, code: str, controller: RoundController, listener: SocketRelayListener, scheduler):
        self.code = code
        self.controller = controller
        self.listener = listener
        self.scheduler = scheduler


_sessions: Dict[str, Session] = {}


def generate_session_code(length: int = 4) -> str:
    """Generate a unique, short session code."""
    while True:
        code = ''.join(random.choices(string.ascii_uppercase + string.digits, k=length))
        if code not in _sessions:
            return code


def _make_scheduler(app):
    # Tests drive time by hand unless they opt in to real background timers
    if app.config.get('TESTING') and not app.config.get('ENABLE_SCHEDULER_IN_TESTS'):
        return ManualScheduler()
    return BackgroundScheduler(app)


def create_session(app, rng: Optional[random.Random] = None) -> Session:
    code = generate_session_code(int(app.config.get('SESSION_CODE_LENGTH', 4)))
    scheduler = _make_scheduler(app)
    listener = SocketRelayListener(code)
    controller = RoundController(app.config, scheduler, listener, rng=rng, logger=app.logger)
    session = Session(code, controller, listener, scheduler)
    _sessions[code] = session
    app.logger.info(f"[session-create] session={code}")
    controller.start()
    return session


def get_session(code: Optional[str]) -> Optional[Session]:
    if not code:
        return None
    return _sessions.get(code.upper())


def end_session(code: str) -> bool:
    session = _sessions.pop(code.upper(), None)
    if session is None:
        return False
    session.controller.close()
    socketio.emit('session_ended', {'session_code': session.code}, to=session.listener.room, namespace='/ws')
    return True


def clear_sessions() -> None:
    for code in list(_sessions):
        end_session(code)


def session_codes() -> Tuple[str, ...]:
    return tuple(_sessions)
