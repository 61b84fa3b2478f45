import os
import sys
import pytest

# Ensure the backend root (containing the `quizroom` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from quizroom import create_app, socketio
from quizroom.services.quiz import RoomRegistry, SessionEngine


class TestConfig:
    TESTING = True
    CORS_ORIGINS = ['http://localhost:5173']
    ROOM_CODE_LENGTH = 6
    MAX_QUESTIONS = 50
    DEFAULT_POINTS = 1000
    DEFAULT_TIME_LIMIT_SEC = 20
    LEADERBOARD_PUBLIC_SIZE = 10


class FakeClock:
    """Monotonic clock the tests move by hand."""

    def __init__(self, start=100.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


def make_questions(count=1, points=1000, correct=0):
    return [
        {
            'text': f'Question {i + 1}?',
            'options': ['Red', 'Green', 'Blue', 'Yellow'],
            'correctIndex': correct,
            'points': points,
            'timeLimit': 15,
        }
        for i in range(count)
    ]


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def registry():
    return RoomRegistry()


@pytest.fixture()
def engine(registry, clock):
    return SessionEngine(registry, clock=clock)


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
    except Exception:
        pass
