import os
import random
import sys
import uuid

import pytest

# Ensure the project root (containing the `guesspro` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
PROJECT_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from guesspro import create_app, socketio
from guesspro.services.players import PlayerDirectory
from guesspro.services.rooms import RoomRegistry
from guesspro.services.sessions import SessionRegistry
from guesspro.services.timers import TimerHandle

DATA_DIR = os.path.join(PROJECT_ROOT, 'guesspro', 'data')


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    CORS_ORIGINS = ['http://localhost:5173']
    LOG_LEVEL = 'DEBUG'
    PLAYER_DATA_DIR = DATA_DIR
    GUESSES_PER_GAMER = 8
    MAX_GAMERS_PER_ROOM = 3
    PENDING_TIMEOUT_SEC = 30
    MAX_TOTAL_SESSIONS = 100
    SESSION_INACTIVE_TIMEOUT_SEC = 120
    SESSION_SWEEP_INTERVAL_SEC = 0
    HEARTBEAT_INTERVAL_SEC = 0


class ManualTimers:
    """Timer service whose callbacks only run when a test fires them."""

    def __init__(self):
        self.handles = []

    def call_later(self, delay, callback, *args):
        handle = TimerHandle(delay, callback, args)
        self.handles.append(handle)
        return handle

    def live(self):
        return [h for h in self.handles if not h.cancelled and not h.fired]

    def fire_all(self):
        for handle in list(self.handles):
            handle.run()


class FakeChannel:
    """Records writes instead of pushing them to a client."""

    def __init__(self):
        self.events = []
        self.closed = False

    def write(self, event, payload):
        self.events.append((event, payload))

    def close(self):
        self.closed = True

    def names(self):
        return [name for name, _ in self.events]

    def payloads(self, name):
        return [payload for event, payload in self.events if event == name]


class FakeClock:
    def __init__(self, start=1000.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


def new_id():
    return str(uuid.uuid4())


@pytest.fixture()
def timers():
    return ManualTimers()


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def directory():
    return PlayerDirectory(DATA_DIR, rng=random.Random(7))


@pytest.fixture()
def sessions(clock):
    return SessionRegistry(max_sessions=10, inactive_timeout=120, clock=clock)


@pytest.fixture()
def rooms(sessions, directory, timers):
    registry = RoomRegistry(sessions, directory, timers, guesses_per_gamer=3, max_gamers=3, pending_timeout=30)
    sessions.on_expire = registry.release_session
    return registry


@pytest.fixture()
def seat(rooms, sessions):
    """Confirm a pending session id and open a fake channel for it."""

    def _seat(session_id):
        pending = rooms.confirm_join(session_id)
        return sessions.create(session_id, pending.gamer_id, pending.display_name, pending.room_id, FakeChannel())

    return _seat


@pytest.fixture()
def flask_app(timers):
    application = create_app(TestConfig, timers=timers)
    with application.app_context():
        yield application


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def connect(flask_app):
    """Open Socket.IO test clients on /ws for the given session ids."""
    opened = []

    def _connect(session_id):
        sio_client = socketio.test_client(
            flask_app,
            namespace='/ws',
            auth={'session_id': session_id},
            flask_test_client=flask_app.test_client(),
        )
        opened.append(sio_client)
        return sio_client

    yield _connect
    for sio_client in opened:
        try:
            if sio_client.is_connected('/ws'):
                sio_client.disconnect(namespace='/ws')
        except Exception:
            pass
