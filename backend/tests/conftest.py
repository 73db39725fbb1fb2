import os
import random
import sys

import pytest

# Ensure the backend root (containing the `wordrush` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from helpers import FakeClock, ManualScheduler, RecordingBroadcaster
from wordrush.config import Config
from wordrush.game.registry import RoomRegistry
from wordrush.game.service import GameService
from wordrush.game.validators import HeuristicValidator
from wordrush.server import create_app


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = 'test-secret'
    SOCKETIO_ASYNC_MODE = 'threading'
    TRUST_PROXY_HEADERS = False
    LOG_LEVEL = 'DEBUG'
    VALIDATOR = 'heuristic'
    REQUIRE_DISTINCT_ANSWERS = False
    LATE_SUBMISSION_POLICY = 'notify'
    TURN_DURATION_SEC = 30
    WATCHDOG_ENABLED = False


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def scheduler():
    return ManualScheduler()


@pytest.fixture()
def broadcaster():
    return RecordingBroadcaster()


@pytest.fixture()
def registry():
    return RoomRegistry(rng=random.Random(7))


@pytest.fixture()
def make_service(registry, broadcaster, scheduler, clock):
    def _make(**overrides):
        kwargs = dict(
            turn_duration_ms=30_000,
            timeout_buffer_ms=500,
            watchdog_grace_ms=1500,
            clock=clock,
            rng=random.Random(42),
        )
        kwargs.update(overrides)
        return GameService(registry, broadcaster, scheduler, HeuristicValidator(), **kwargs)

    return _make


@pytest.fixture()
def service(make_service):
    return make_service()


@pytest.fixture()
def flask_app(registry, scheduler, clock):
    application, _ = create_app(TestConfig, registry=registry, scheduler=scheduler, clock=clock)
    yield application


@pytest.fixture()
def socketio(flask_app):
    return flask_app.extensions['socketio']


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def connect(flask_app, socketio):
    clients = []

    def _connect():
        test_client = socketio.test_client(flask_app, flask_test_client=flask_app.test_client())
        clients.append(test_client)
        return test_client

    yield _connect
    for test_client in clients:
        try:
            if test_client.is_connected():
                test_client.disconnect()
        except Exception:
            pass
