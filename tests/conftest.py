import heapq
import itertools
import os
import random
import sys

import pytest

# Ensure the repo root (containing the `trivia` package and config.py) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
REPO_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)

from trivia import create_app, socketio
from trivia.catalog import QuestionCatalog
from trivia.models import GameSettings
from trivia.services.games import CommandDispatcher, LobbyRegistry, ScoringPolicy, TimerHandle

TEST_QUESTIONS = os.path.join(CURRENT_DIR, 'data', 'questions.json')


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    QUESTIONS_PATH = TEST_QUESTIONS
    SOCKETIO_NAMESPACE = '/'
    QUESTION_TIME_LIMIT_SEC = 60
    REVEAL_DURATION_SEC = 4
    MAX_PLAYERS_PER_LOBBY = 4
    LOBBY_ID_LENGTH = 6
    ALLOW_LATE_JOIN = True
    KEEP_CATEGORY_ON_PLAY_AGAIN = False
    BASE_POINTS_CORRECT = 100
    TIME_BONUS_PER_SECOND = 5
    STREAK_BONUS = 25


class ManualScheduler:
    """Scheduler driven by hand: nothing fires until ``advance`` is called."""

    def __init__(self, start=1000.0):
        self._now = start
        self._queue = []
        self._seq = itertools.count()

    def now(self):
        return self._now

    def call_later(self, delay, callback):
        handle = TimerHandle(self._now + max(0.0, delay))
        heapq.heappush(self._queue, (handle.when, next(self._seq), handle, callback))
        return handle

    def advance(self, seconds):
        target = self._now + seconds
        while self._queue and self._queue[0][0] <= target:
            when, _, handle, callback = heapq.heappop(self._queue)
            self._now = max(self._now, when)
            if handle.cancelled:
                continue
            handle.fired = True
            callback()
        self._now = target

    def pending(self):
        return [handle for _, _, handle, _ in self._queue if handle.pending]


@pytest.fixture()
def scheduler():
    return ManualScheduler()


@pytest.fixture()
def catalog():
    return QuestionCatalog.load(TEST_QUESTIONS)


@pytest.fixture()
def settings():
    return GameSettings(time_limit=60, reveal_duration=4, max_players=4)


@pytest.fixture()
def published():
    """Emissions handed to the transport by timer callbacks."""
    return []


@pytest.fixture()
def registry(catalog, settings, scheduler, published):
    reg = LobbyRegistry(catalog, settings, ScoringPolicy(), scheduler, published.extend, rng=random.Random(1234))
    yield reg
    reg.close()


@pytest.fixture()
def dispatcher(registry, published):
    return CommandDispatcher(registry, published.extend)


@pytest.fixture()
def lobby(registry):
    """Factory: a lobby hosted by 'host' with extra players 'p1', 'p2', ..."""
    def _make(extra_players=1):
        session, _ = registry.create('host', 'Hana')
        for i in range(1, extra_players + 1):
            registry.join(f'p{i}', session.id, f'Player{i}')
        return session
    return _make


@pytest.fixture()
def flask_app(scheduler):
    application = create_app(TestConfig, scheduler=scheduler)
    with application.app_context():
        yield application
    application.extensions['trivia'].close()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_client(flask_app):
    test_client = socketio.test_client(
        flask_app,
        flask_test_client=flask_app.test_client(),
        namespace='/'
    )
    yield test_client
    try:
        test_client.disconnect(namespace='/')
    except Exception:
        pass
