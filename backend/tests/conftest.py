import os
import sys
import pytest

# Ensure the backend root (containing the `ricpacsoe` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from ricpacsoe import create_app, socketio
from ricpacsoe.models import RoomSettings
from ricpacsoe.services.games.rooms import Room


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    CORS_ORIGINS = '*'
    BOARD_SIZE = 8
    MAX_PLAYERS = 4
    DEFAULT_TILES_PER_SYMBOL = 7
    DEFAULT_BLOCKER_COUNT = 0
    DEFAULT_POINTS_TO_WIN = 10
    CHAT_HISTORY_LIMIT = 5
    ROOM_CODE_LENGTH = 5
    RECONNECT_GRACE_SEC = 0


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        yield application


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
    except RuntimeError:
        pass


class FakeClock:
    def __init__(self, start=1000.0):
        self.now = start

    def __call__(self):
        self.now += 1.0
        return self.now


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def room(clock):
    """A started two-player room with no blockers: 'a' is seat 0, 'b' seat 1."""
    r = Room('TEST1', RoomSettings(tiles_per_symbol=7, blocker_count=0, points_to_win=10), clock=clock)
    r.join('a', 'Alice')
    r.join('b', 'Bob')
    r.new_game('a')
    return r
