import logging
import os
import sys
import pytest

# Ensure the backend root (containing the `yahtzee_server` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from yahtzee_server import create_app, socketio
from yahtzee_server.match import Match
from yahtzee_server.models import GameState, Player
from yahtzee_server.services.games.scheduler import OverlayScheduler


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    MAX_PLAYERS = 4
    DOZ_OVERLAY_MS = 2500
    DOZ_HEARTBEAT_DELAY_MS = 350
    CHEAT_MAX_VALUE = 999
    REPORT_POINTS = 5


class ScriptedRng:
    """Stands in for random.Random: hands out queued die faces, then 1s."""

    def __init__(self, values=()):
        self.values = list(values)

    def push(self, *values):
        self.values.extend(values)

    def randint(self, low, high):
        if self.values:
            return self.values.pop(0)
        return low


class RecordingEmitter:
    def __init__(self):
        self.sent = []

    def emit(self, event, *args, to=None, **kwargs):
        self.sent.append((event, args[0] if args else None, to))

    def names(self):
        return [name for name, _, _ in self.sent]

    def sfx(self):
        return [payload['name'] for name, payload, _ in self.sent if name == 'sfx']

    def last(self, event):
        for name, payload, _ in reversed(self.sent):
            if name == event:
                return payload
        return None

    def clear(self):
        self.sent.clear()


@pytest.fixture()
def rng():
    return ScriptedRng()


@pytest.fixture()
def make_state():
    def _make(count=2):
        state = GameState()
        for i in range(count):
            state.players.append(Player(f"p{i + 1}", f"Player{i + 1}"))
        return state
    return _make


@pytest.fixture()
def emitter():
    return RecordingEmitter()


@pytest.fixture()
def match(emitter, rng):
    logger = logging.getLogger('yahtzee_server.tests')
    scheduler = OverlayScheduler(socketio, logger, deferred=True)
    return Match(emitter, scheduler, logger, rng=rng)


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        yield application


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_factory(flask_app):
    clients = []

    def _connect():
        test_client = socketio.test_client(flask_app, flask_test_client=flask_app.test_client())
        clients.append(test_client)
        return test_client

    yield _connect
    for test_client in clients:
        if test_client.is_connected():
            test_client.disconnect()
