import os
import sys
import pytest

# Ensure the backend root (containing the `linegame` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from config import Config
from linegame import create_app, socketio
from linegame.services.game.controller import RoundController, RoundListener
from linegame.services.game.scheduler import ManualScheduler
from linegame.services.game.sessions import clear_sessions


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    TIMER_ENABLED_DEFAULT = False
    TIMER_DEFAULT_SEC = 30
    ROUND_ADVANCE_DELAY_MS = 3000
    SESSION_END_GRACE_SEC = 0


class RecordingListener(RoundListener):
    def __init__(self):
        self.feedback = []
        self.scores = []
        self.ticks = []
        self.snapshots = []

    def on_feedback(self, message, severity):
        self.feedback.append((message, severity))

    def on_score_changed(self, wins, losses):
        self.scores.append((wins, losses))

    def on_timer_tick(self, remaining):
        self.ticks.append(remaining)

    def on_state_changed(self, snapshot):
        self.snapshots.append(snapshot)


@pytest.fixture()
def scheduler():
    return ManualScheduler()


@pytest.fixture()
def listener():
    return RecordingListener()


@pytest.fixture()
def controller(scheduler, listener):
    config = {
        'COORD_MIN': -6,
        'COORD_MAX': 6,
        'CLICK_TOLERANCE': 0.3,
        'ROUND_ADVANCE_DELAY_MS': 3000,
        'TIMER_DEFAULT_SEC': 30,
        'TIMER_TICK_SEC': 1,
    }
    ctrl = RoundController(config, scheduler, listener)
    yield ctrl
    ctrl.close()


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        yield application
        clear_sessions()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_client(flask_app):
    test_client = socketio.test_client(
        flask_app,
        flask_test_client=flask_app.test_client(),
        namespace='/ws'
    )
    yield test_client
    try:
        test_client.disconnect(namespace='/ws')
    except Exception:
        pass
