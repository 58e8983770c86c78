import dataclasses
import os
import sys
from concurrent.futures import Future

import pytest

# Ensure the backend root (containing the `pitchmatch` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from pitchmatch import create_app, db, socketio
from pitchmatch.services.match import DurableWriteFailure, PlayerRecord


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    FREQUENCY_TOLERANCE = 150.0
    SCORE_INCREMENT = 10
    TARGET_FREQUENCY_MIN = 256.0
    TARGET_FREQUENCY_MAX = 2048.0
    DEFAULT_FREQUENCY = 440.0
    SINGLE_SESSION_PER_PLAYER = False


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        # Ensure models are imported so tables are created
        import pitchmatch.models  # noqa: F401
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def engine(flask_app):
    return flask_app.extensions['pitchmatch']


@pytest.fixture()
def make_player(flask_app):
    from pitchmatch.models import Player

    def _make(name, score=0, streak=0):
        player = Player(name=name, score=score, streak=streak)
        db.session.add(player)
        db.session.commit()
        return player.id

    return _make


@pytest.fixture()
def connect(flask_app):
    """Factory for Socket.IO test clients on /ws, disconnected at teardown."""
    opened = []

    def _connect(player_id=None, query_string=None):
        auth = {'playerId': player_id} if player_id else None
        test_client = socketio.test_client(
            flask_app,
            namespace='/ws',
            query_string=query_string,
            auth=auth,
            flask_test_client=flask_app.test_client(),
        )
        opened.append(test_client)
        return test_client

    yield _connect
    for test_client in opened:
        if test_client.is_connected('/ws'):
            test_client.disconnect(namespace='/ws')


class FakePlayerStore:
    """In-memory PlayerStore; writes resolve immediately and are recorded."""

    def __init__(self):
        self.records = {}
        self.writes = []
        self.failing = set()

    def add(self, player_id, name, score=0, streak=0, status='offline'):
        self.records[player_id] = PlayerRecord(player_id, name, score, streak, status)

    def find_by_id(self, player_id):
        return self.records.get(player_id)

    def update_status(self, player_id, status):
        self.writes.append(('update_status', player_id, status))
        return self._resolve(player_id, 'update_status', status=status)

    def update_score(self, player_id, score, streak, status=None):
        self.writes.append(('update_score', player_id, score, streak, status))
        changes = {'score': score, 'streak': streak}
        if status is not None:
            changes['status'] = status
        return self._resolve(player_id, 'update_score', **changes)

    def _resolve(self, player_id, operation, **changes):
        future = Future()
        if player_id in self.failing:
            future.set_exception(DurableWriteFailure(player_id, operation, RuntimeError('store offline')))
            return future
        self.records[player_id] = dataclasses.replace(self.records[player_id], **changes)
        future.set_result(True)
        return future


class RecordingChannel:
    def __init__(self):
        self.broadcasts = []
        self.sent = []

    def broadcast(self, event, payload):
        self.broadcasts.append((event, payload))

    def send(self, connection_id, event, payload):
        self.sent.append((connection_id, event, payload))


@pytest.fixture()
def store():
    fake = FakePlayerStore()
    fake.add('p-alice', 'Alice', score=5, streak=2)
    fake.add('p-bob', 'Bob', score=30, streak=0)
    return fake


@pytest.fixture()
def channel():
    return RecordingChannel()


def state_updates(received):
    """Payloads of gameStateUpdate packets from a test client's received list."""
    return [pkt['args'][0] for pkt in received if pkt['name'] == 'gameStateUpdate']
