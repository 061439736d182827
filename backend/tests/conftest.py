import os
import sys
import random
import pytest

# Ensure the backend root (containing the `bintris` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from bintris import create_app, socketio
from bintris.services.games.sessions import sessions
from bintris import socketio_events


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    BINARY_LENGTH = 8
    BASE_LIST = '8,10,16'
    MAX_ON_SCREEN = 9
    TICK_MS = 100
    RANDOM_SEED = 1234
    TICK_HEARTBEAT_SEC = 0
    LEVELS = {
        1: {'points': 1, 'delay': 15.0, 'threshold': 10},
        2: {'points': 2, 'delay': 10.0, 'threshold': 20},
    }


class ScriptedRandom(random.Random):
    """Random source that hands out scripted challenges and no jitter.

    Each entry of `challenges` is (value, base, binary_fixed) and is consumed
    in the order ChallengeModel draws: value, base, then the coin.
    """

    def __init__(self, challenges=()):
        super().__init__(0)
        self._values = [c[0] for c in challenges]
        self._bases = [c[1] for c in challenges]
        self._coins = [0.0 if c[2] else 0.9 for c in challenges]

    def randint(self, a, b):
        if self._values:
            return self._values.pop(0)
        return super().randint(a, b)

    def choice(self, seq):
        if self._bases:
            return self._bases.pop(0)
        return super().choice(seq)

    def random(self):
        if self._coins:
            return self._coins.pop(0)
        return super().random()

    def uniform(self, a, b):
        return (a + b) / 2


@pytest.fixture()
def scripted_rng():
    return ScriptedRandom


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        yield application
    sessions.clear()
    socketio_events._sid_to_ctx.clear()
    socketio_events._owner_count.clear()
    socketio_events._end_deadline.clear()


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
    if test_client.is_connected('/ws'):
        test_client.disconnect(namespace='/ws')
